from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ExtraFriendlyModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class StatusResponse(ExtraFriendlyModel):
    key: str
    exists: bool
    updated_at: Optional[str] = None
    uploaded: Optional[str] = None
    size: Optional[int] = None
    etag: Optional[str] = None
    data_version: Optional[str] = None


class TriggerResponse(ExtraFriendlyModel):
    message: str
    outcome: Optional[Dict[str, Any]] = None
