"""GCP Cloud Run Job entry point for the sheet sync.

Deployed as a Cloud Run Job triggered by Cloud Scheduler.

Usage:
  python -m scripts.sheet_sync.entrypoints.gcp_cloudrun
  SYNC_DRY_RUN=1 python -m scripts.sheet_sync.entrypoints.gcp_cloudrun
"""

from __future__ import annotations

import logging
import os
import sys

from scripts.sheet_sync.config import load_config
from scripts.sheet_sync.errors import SheetSyncError
from scripts.sheet_sync.logging_config import configure_logging
from scripts.sheet_sync.normalize import is_truthy
from scripts.sheet_sync.reconcile import run_once

logger = logging.getLogger("sheet_sync.cloudrun")


def main() -> None:
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
    dry_run = is_truthy(os.environ.get("SYNC_DRY_RUN", ""))

    try:
        config = load_config()
        configure_logging(config.log_level, config.secret_values())
        logger.info("Cloud Run Job started, dry_run=%s", dry_run)
        result = run_once(config, dry_run=dry_run)
    except SheetSyncError as exc:
        logger.error("Sync failed: %s", exc, exc_info=True)
        sys.exit(1)

    logger.info("Sync complete: %s", result.as_dict())


if __name__ == "__main__":
    main()
