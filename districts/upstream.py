# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Client for the Tencent Map WebService district list."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from districts.config import SyncConfig
from districts.errors import MissingCredential, UpstreamApiError, UpstreamHttpError

LOG = logging.getLogger(__name__)


@dataclass
class UpstreamEnvelope:
    status: int
    message: str
    result: Any
    data_version: Optional[str] = None


def _build_headers(caller_identity: Optional[str]) -> Dict[str, str]:
    headers: Dict[str, str] = {"Accept": "application/json"}
    if caller_identity:
        # key restrictions on the provider side check the referer
        headers["Referer"] = caller_identity
    return headers


def parse_envelope(body: Any) -> UpstreamEnvelope:
    if not isinstance(body, dict):
        raise UpstreamApiError(None, "response body is not a JSON object")
    status = body.get("status")
    message = str(body.get("message") or "")
    if status != 0:
        raise UpstreamApiError(status, message or "unknown error")
    version = body.get("data_version")
    return UpstreamEnvelope(
        status=0,
        message=message,
        result=body.get("result"),
        data_version=None if version is None else str(version),
    )


def fetch_districts(config: SyncConfig, caller_identity: Optional[str] = None) -> UpstreamEnvelope:
    """Fetch the full district list once; no retries."""

    if not config.api_key:
        raise MissingCredential("map API key is not configured (DISTRICTS_MAP_KEY)")
    identity = caller_identity or config.caller_identity

    LOG.info("Fetching district list from %s", config.api_url)
    try:
        response = requests.get(
            config.api_url,
            params={"key": config.api_key},
            headers=_build_headers(identity),
            timeout=config.http_timeout_s,
        )
    except requests.RequestException as exc:
        raise UpstreamHttpError(f"district request failed: {exc.__class__.__name__}") from exc

    status_code = getattr(response, "status_code", None)
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise UpstreamHttpError(f"district request returned HTTP {status_code}", status=status_code) from exc

    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError) as exc:
        raise UpstreamHttpError(f"district response is not JSON: {exc}", status=status_code) from exc

    envelope = parse_envelope(body)
    LOG.info("Upstream district list ok (data_version=%s)", envelope.data_version)
    return envelope
