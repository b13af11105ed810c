# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

import html
import logging
import threading
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from fastapi import BackgroundTasks, Depends, FastAPI, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from districts.api.models import StatusResponse, TriggerResponse
from districts.common import configure_root_logger
from districts.config import SyncConfig
from districts.errors import SyncInProgress
from districts.scheduler import init_scheduler, shutdown_scheduler
from districts.store import ObjectStore, open_store
from districts.sync import SyncOutcome, iso_timestamp, last_updated, run_sync

app = FastAPI(title="Districts API", version="1.0.0")
logger = logging.getLogger(__name__)

DISPLAY_TZ = ZoneInfo("Asia/Shanghai")
NEVER_UPDATED = "从未更新"
UPSTREAM_REASONS = {"UpstreamHttpError", "UpstreamApiError"}

_STORE: Optional[ObjectStore] = None
_STORE_LOCK = threading.Lock()


@lru_cache(maxsize=1)
def get_config() -> SyncConfig:
    return SyncConfig.from_env()


def get_store() -> ObjectStore:
    global _STORE
    with _STORE_LOCK:
        if _STORE is None:
            _STORE = open_store(get_config().store_dir)
        return _STORE


@app.on_event("startup")
def _startup():
    configure_root_logger()
    config = get_config()
    logger.info("districts api starting with config: %s", config.redacted())
    init_scheduler(config, get_store())


@app.on_event("shutdown")
def _shutdown():
    shutdown_scheduler()


def _caller_identity(request: Request) -> Optional[str]:
    return request.headers.get("referer") or request.headers.get("origin") or None


def _format_local(value: Optional[datetime]) -> str:
    if value is None:
        return NEVER_UPDATED
    return value.astimezone(DISPLAY_TZ).strftime("%Y/%m/%d %H:%M:%S")


def _failure_response(outcome: SyncOutcome) -> JSONResponse:
    payload: Dict[str, Any] = outcome.error.to_dict() if outcome.error else {"error": "SyncError"}
    payload["outcome"] = outcome.to_dict()
    status_code = 502 if outcome.reason in UPSTREAM_REASONS else 500
    return JSONResponse(status_code=status_code, content=payload)


def _background_sync(config: SyncConfig, store: ObjectStore, caller_identity: Optional[str]) -> None:
    try:
        outcome = run_sync(config, store, caller_identity=caller_identity)
    except SyncInProgress:
        logger.info("Background sync skipped: another run is in progress")
        return
    if not outcome.ok:
        logger.error("Background sync failed: %s", outcome.reason)


@app.get("/v1/health")
def health():
    return {"ok": True}


@app.get("/api/data")
def get_data(
    config: SyncConfig = Depends(get_config),
    store: ObjectStore = Depends(get_store),
):
    obj = store.get(config.object_key)
    if obj is None:
        return JSONResponse(status_code=404, content={"error": "Data not found"})
    filename = config.object_key.rsplit("/", 1)[-1]
    headers = {
        "ETag": f'"{obj.meta.etag}"',
        "Content-Disposition": f'attachment; filename="{filename}"',
    }
    return Response(content=obj.body, media_type=obj.meta.content_type, headers=headers)


@app.get("/api/status", response_model=StatusResponse)
def get_status(
    config: SyncConfig = Depends(get_config),
    store: ObjectStore = Depends(get_store),
) -> StatusResponse:
    meta = store.head(config.object_key)
    if meta is None:
        return StatusResponse(key=config.object_key, exists=False)
    updated = last_updated(store, config.object_key)
    return StatusResponse(
        key=config.object_key,
        exists=True,
        updated_at=iso_timestamp(updated) if updated else None,
        uploaded=iso_timestamp(meta.uploaded),
        size=meta.size,
        etag=meta.etag,
        data_version=meta.custom_metadata.get("dataVersion"),
    )


@app.post("/api/trigger")
def trigger_sync(
    request: Request,
    background_tasks: BackgroundTasks,
    background: bool = Query(False),
    config: SyncConfig = Depends(get_config),
    store: ObjectStore = Depends(get_store),
):
    identity = _caller_identity(request) or config.caller_identity
    if background:
        background_tasks.add_task(_background_sync, config, store, identity)
        return JSONResponse(status_code=202, content={"message": "Update triggered"})

    try:
        outcome = run_sync(config, store, caller_identity=identity)
    except SyncInProgress as exc:
        return JSONResponse(status_code=409, content=exc.to_dict())
    if not outcome.ok:
        return _failure_response(outcome)
    return TriggerResponse(message="Update completed", outcome=outcome.to_dict())


@app.get("/", response_class=HTMLResponse)
def status_page(
    config: SyncConfig = Depends(get_config),
    store: ObjectStore = Depends(get_store),
) -> HTMLResponse:
    last_update = html.escape(_format_local(last_updated(store, config.object_key)))
    key = html.escape(config.object_key)
    body = f"""<!DOCTYPE html>
<html lang="zh-CN">
<head>
    <meta charset="UTF-8">
    <title>中国行政区划数据更新服务</title>
</head>
<body>
    <h1>行政区划数据服务</h1>
    <p>定时从腾讯地图同步最新数据并保存</p>
    <p>最后同步时间: <span id="last-update">{last_update}</span></p>
    <p><a href="/api/data">下载 {key}</a></p>
    <form method="post" action="/api/trigger?background=true">
        <button type="submit">立即手动同步</button>
    </form>
</body>
</html>"""
    return HTMLResponse(content=body)
