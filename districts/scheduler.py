# Districts
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

from __future__ import annotations

import logging
import os
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from districts.config import SyncConfig
from districts.errors import SyncInProgress
from districts.store import ObjectStore
from districts.sync import SyncOutcome, run_sync

LOG = logging.getLogger(__name__)

TIMEZONE = "Asia/Shanghai"
JOB_ID = "districts-sync"

_scheduler: Optional[BackgroundScheduler] = None


def scheduler_enabled() -> bool:
    return os.getenv("DISTRICTS_ENABLE_SCHEDULER") == "1"


def scheduled_sync(config: SyncConfig, store: ObjectStore) -> Optional[SyncOutcome]:
    try:
        outcome = run_sync(config, store)
    except SyncInProgress:
        LOG.info("Scheduled sync skipped: another run is in progress")
        return None
    if not outcome.ok:
        LOG.error("Scheduled sync failed: %s", outcome.reason)
    return outcome


def build_scheduler(config: SyncConfig, store: ObjectStore) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=TIMEZONE)
    scheduler.add_job(
        scheduled_sync,
        CronTrigger.from_crontab(config.schedule_cron, timezone=TIMEZONE),
        args=(config, store),
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler


def init_scheduler(config: SyncConfig, store: ObjectStore) -> Optional[BackgroundScheduler]:
    global _scheduler
    if not scheduler_enabled():
        return None
    if _scheduler is not None:
        return _scheduler
    _scheduler = build_scheduler(config, store)
    _scheduler.start()
    LOG.info("Districts sync scheduled with cron %r (%s)", config.schedule_cron, TIMEZONE)
    return _scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is None:
        return
    _scheduler.shutdown(wait=False)
    _scheduler = None
