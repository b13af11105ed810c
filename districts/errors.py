# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Error taxonomy for a synchronization run.

Every fatal kind carries a stable ``reason`` string that callers (HTTP trigger,
scheduler, CLI) report verbatim.  ``MalformedIdentifier`` is the only per-record
kind; the builder recovers from it locally.
"""

from __future__ import annotations

from typing import Optional


class SyncError(RuntimeError):
    reason = "SyncError"

    def to_dict(self) -> dict:
        return {"error": self.reason, "detail": str(self)}


class MissingCredential(SyncError):
    reason = "MissingCredential"


class UpstreamHttpError(SyncError):
    reason = "UpstreamHttpError"

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["status"] = self.status
        return payload


class UpstreamApiError(SyncError):
    reason = "UpstreamApiError"

    def __init__(self, code: object, message: str) -> None:
        super().__init__(f"upstream status {code}: {message}")
        self.code = code
        self.message = message

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["code"] = self.code
        payload["message"] = self.message
        return payload


class MalformedIdentifier(SyncError):
    reason = "MalformedIdentifier"

    def __init__(self, identifier: object, depth: int, message: str = "") -> None:
        super().__init__(message or f"identifier {identifier!r} is not valid at depth {depth}")
        self.identifier = identifier
        self.depth = depth


class EmptyResult(SyncError):
    reason = "EmptyResult"


class StoreWriteError(SyncError):
    reason = "StoreWriteError"


class SyncInProgress(SyncError):
    """Raised before a run starts when another run in this process holds the guard."""

    reason = "SyncInProgress"


__all__ = [
    "SyncError",
    "MissingCredential",
    "UpstreamHttpError",
    "UpstreamApiError",
    "MalformedIdentifier",
    "EmptyResult",
    "StoreWriteError",
    "SyncInProgress",
]
