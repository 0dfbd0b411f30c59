"""APScheduler-based interval scheduling for the sheet sync."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.blocking import BlockingScheduler

from scripts.sheet_sync.config import SyncConfig
from scripts.sheet_sync.errors import SheetSyncError
from scripts.sheet_sync.reconcile import run_once

logger = logging.getLogger("sheet_sync.scheduler")

JOB_ID = "sheet_sync"


def _sync_job(config: SyncConfig) -> None:
    """One attempt per interval. A failure waits for the next tick."""
    try:
        result = run_once(config)
    except SheetSyncError as exc:
        logger.error("Scheduled sync failed: %s", exc)
        return
    logger.info("Scheduled sync complete: %s", result.as_dict())


def _on_job_error(event) -> None:
    logger.error(
        "Job %s raised an exception: %s",
        event.job_id,
        event.exception,
    )


def build_scheduler(config: SyncConfig) -> BlockingScheduler:
    scheduler = BlockingScheduler(timezone=timezone.utc)
    scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)
    scheduler.add_job(
        _sync_job,
        "interval",
        minutes=config.scheduler.interval_min,
        args=[config],
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=config.scheduler.misfire_grace_time,
        next_run_time=datetime.now(timezone.utc),
    )
    return scheduler


def start_scheduler(config: SyncConfig) -> None:
    """Run the sync now and then every ``interval_min`` minutes."""
    scheduler = build_scheduler(config)
    logger.info(
        "Starting scheduler, interval %d min",
        config.scheduler.interval_min,
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
