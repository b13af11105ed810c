# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_API_URL = "https://apis.map.qq.com/ws/district/v1/getlist"
DEFAULT_OBJECT_KEY = "districts.json"
DEFAULT_HTTP_TIMEOUT_S = 30.0
DEFAULT_SCHEDULE_CRON = "0 3 * * *"


def _default_config_path() -> Path:
    env_path = os.getenv("DISTRICTS_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path(__file__).resolve().parent.parent / "config.yaml"


@lru_cache(maxsize=1)
def load() -> Dict[str, Any]:
    """Load the application configuration from YAML."""

    path = _default_config_path()
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        return {}
    return data


def _get_env(env: Mapping[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = env.get(name)
        if value is not None and value.strip() != "":
            return value.strip()
    return None


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class SyncConfig:
    """Everything one synchronization run needs, resolved up front."""

    api_key: Optional[str] = None
    object_key: str = DEFAULT_OBJECT_KEY
    caller_identity: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    http_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    store_dir: Optional[str] = None
    schedule_cron: str = DEFAULT_SCHEDULE_CRON

    @classmethod
    def from_env(
        cls,
        cfg: Optional[Mapping[str, Any]] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "SyncConfig":
        cfg = load() if cfg is None else cfg
        env = os.environ if env is None else env
        section = cfg.get("sync") or {}
        if not isinstance(section, Mapping):
            section = {}

        def pick(key: str, *env_names: str) -> Optional[str]:
            value = _get_env(env, *env_names)
            if value is not None:
                return value
            raw = section.get(key)
            if raw is None or str(raw).strip() == "":
                return None
            return str(raw).strip()

        return cls(
            api_key=pick("api_key", "DISTRICTS_MAP_KEY", "TENCENT_MAP_KEY"),
            object_key=pick("object_key", "DISTRICTS_OBJECT_KEY") or DEFAULT_OBJECT_KEY,
            caller_identity=pick("caller_identity", "DISTRICTS_CALLER_IDENTITY"),
            api_url=pick("api_url", "DISTRICTS_API_URL") or DEFAULT_API_URL,
            http_timeout_s=_as_float(
                pick("http_timeout_s", "DISTRICTS_HTTP_TIMEOUT_S"), DEFAULT_HTTP_TIMEOUT_S
            ),
            store_dir=pick("store_dir", "DISTRICTS_STORE_DIR"),
            schedule_cron=pick("schedule_cron", "DISTRICTS_SCHEDULE_CRON") or DEFAULT_SCHEDULE_CRON,
        )

    def redacted(self) -> Dict[str, Any]:
        return {
            "api_key": "***" if self.api_key else None,
            "object_key": self.object_key,
            "caller_identity": self.caller_identity,
            "api_url": self.api_url,
            "http_timeout_s": self.http_timeout_s,
            "store_dir": self.store_dir,
            "schedule_cron": self.schedule_cron,
        }
