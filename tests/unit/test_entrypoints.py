"""Tests for the AWS Lambda and Cloud Run entry points."""

import json
from unittest.mock import patch

import pytest

from scripts.sheet_sync.entrypoints import aws_lambda, gcp_cloudrun
from scripts.sheet_sync.errors import ConfigurationError, StoreError
from scripts.sheet_sync.models import SyncResult


def test_lambda_success(sync_config):
    with patch.object(aws_lambda, "load_config", return_value=sync_config), \
            patch.object(aws_lambda, "run_once", return_value=SyncResult(2, 5)) as run:
        resp = aws_lambda.handler({}, None)
    run.assert_called_once_with(sync_config, dry_run=False)
    assert resp["statusCode"] == 200
    assert json.loads(resp["body"])["results"]["user_apps"] == 5


def test_lambda_dry_run_event(sync_config):
    with patch.object(aws_lambda, "load_config", return_value=sync_config), \
            patch.object(aws_lambda, "run_once", return_value=SyncResult(0, 0, dry_run=True)) as run:
        aws_lambda.handler({"dry_run": True}, None)
    run.assert_called_once_with(sync_config, dry_run=True)


def test_lambda_missing_config():
    with patch.object(aws_lambda, "load_config", side_effect=ConfigurationError(["SHEETS_APPS_URL"])), \
            patch.object(aws_lambda, "run_once") as run:
        resp = aws_lambda.handler({}, None)
    run.assert_not_called()
    assert resp["statusCode"] == 500
    body = json.loads(resp["body"])
    assert body["type"] == "ConfigurationError"
    assert "SHEETS_APPS_URL" in body["error"]


def test_cloudrun_success(sync_config, monkeypatch):
    monkeypatch.delenv("SYNC_DRY_RUN", raising=False)
    with patch.object(gcp_cloudrun, "load_config", return_value=sync_config), \
            patch.object(gcp_cloudrun, "run_once", return_value=SyncResult(1, 1)) as run:
        gcp_cloudrun.main()
    run.assert_called_once_with(sync_config, dry_run=False)


def test_cloudrun_failure_exits_nonzero(sync_config, monkeypatch):
    monkeypatch.setenv("SYNC_DRY_RUN", "yes")
    with patch.object(gcp_cloudrun, "load_config", return_value=sync_config), \
            patch.object(gcp_cloudrun, "run_once", side_effect=StoreError("user_apps", "boom")) as run:
        with pytest.raises(SystemExit) as e:
            gcp_cloudrun.main()
    assert e.value.code == 1
    run.assert_called_once_with(sync_config, dry_run=True)


@pytest.mark.parametrize(
    "event,expected",
    [({"dry_run": "false"}, False), ({"dry_run": False}, False), ({"dry_run": "true"}, True), (None, False)],
)
def test_lambda_dry_run_flag_parsing(sync_config, event, expected):
    with patch.object(aws_lambda, "load_config", return_value=sync_config), \
            patch.object(aws_lambda, "run_once", return_value=SyncResult(0, 0)) as run:
        aws_lambda.handler(event, None)
    run.assert_called_once_with(sync_config, dry_run=expected)
