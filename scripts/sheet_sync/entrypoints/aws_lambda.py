"""AWS Lambda handler for the sheet sync.

Deployed as a Lambda function triggered by an EventBridge schedule.

Event format:
  {}                  -> sync
  {"dry_run": true}   -> fetch and parse only
"""

from __future__ import annotations

import json
import logging
import os

from scripts.sheet_sync.config import load_config
from scripts.sheet_sync.errors import SheetSyncError
from scripts.sheet_sync.logging_config import configure_logging
from scripts.sheet_sync.normalize import is_truthy
from scripts.sheet_sync.reconcile import run_once

logger = logging.getLogger("sheet_sync.lambda")


def handler(event: dict, context) -> dict:
    """Lambda entry point."""
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
    dry_run = is_truthy(str((event or {}).get("dry_run", "")))

    try:
        config = load_config()
        configure_logging(config.log_level, config.secret_values())
        logger.info("Lambda invoked, dry_run=%s", dry_run)
        result = run_once(config, dry_run=dry_run)
    except SheetSyncError as exc:
        logger.error("Sync failed: %s", exc, exc_info=True)
        return {
            "statusCode": 500,
            "body": json.dumps({"error": str(exc), "type": type(exc).__name__}),
        }

    return {
        "statusCode": 200,
        "body": json.dumps({"results": result.as_dict()}),
    }
