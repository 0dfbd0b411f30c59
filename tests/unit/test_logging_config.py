"""Tests for the JSON log formatter and credential masking."""

import json
import logging

from scripts.sheet_sync.logging_config import JsonFormatter, RedactingFormatter, configure_logging


def _record(msg, *args, **extra):
    record = logging.LogRecord("sheet_sync.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    line = JsonFormatter().format(_record("Upserting %s", "apps", table="apps", records=3))
    entry = json.loads(line)
    assert entry["message"] == "Upserting apps"
    assert entry["level"] == "INFO"
    assert entry["logger"] == "sheet_sync.test"
    assert entry["table"] == "apps"
    assert entry["records"] == 3
    assert "url" not in entry


def test_redacting_formatter_masks_secrets():
    formatter = RedactingFormatter(["postgresql://u:pw@db/app", "pw", ""])
    line = formatter.format(_record("cannot connect to postgresql://u:pw@db/app"))
    assert "pw" not in line
    assert json.loads(line)["message"] == "cannot connect to ***"


def test_configure_logging_replaces_handlers():
    configure_logging("debug")
    configure_logging("warning", ["k"])
    logger = logging.getLogger("sheet_sync")
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, RedactingFormatter)
    assert logger.propagate is False
