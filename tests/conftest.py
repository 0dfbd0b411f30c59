"""Shared fixtures: a ready config, canned sheets, and a recording store."""

from __future__ import annotations

import logging

import pytest

from scripts.sheet_sync.config import SheetsConfig, StoreConfig, SyncConfig
from scripts.sheet_sync.errors import FetchError, StoreError

USERS_URL = "https://sheets.example.test/users.csv"
APPS_URL = "https://sheets.example.test/apps.csv"

APPS_CSV = (
    "App_No,Label,URL\n"
    "1,Payroll,https://payroll.example.test\n"
    "2,\"Timesheets, v2\",https://time.example.test\n"
)

USERS_CSV = (
    "Email,App_No,Allowed,Editor\r\n"
    "\u200bAlice@Example.com ,\"1, 2\",yes,\r\n"
    "bob@example.com,2,no,allow\r\n"
)


class FakeFetcher:
    """Stands in for SheetFetcher; hands back canned CSV or raises."""

    def __init__(self, users_csv: str = USERS_CSV, apps_csv: str = APPS_CSV, error=None):
        self.users_csv = users_csv
        self.apps_csv = apps_csv
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def fetch_pair(self, users_url: str, apps_url: str) -> tuple[str, str]:
        self.calls.append((users_url, apps_url))
        if self.error is not None:
            raise self.error
        return self.users_csv, self.apps_csv

    def close(self) -> None:
        pass


class RecordingStore:
    """Store that remembers every upsert and can be told to fail on a table."""

    def __init__(self, fail_on=None):
        self.calls: list[tuple[str, list[dict], list[str]]] = []
        self.fail_on = fail_on
        self.closed = False

    def upsert(self, table, rows, conflict_columns):
        if table == self.fail_on:
            raise StoreError(table, "status 409: conflict")
        self.calls.append((table, [dict(r) for r in rows], list(conflict_columns)))
        return len(rows)

    def close(self):
        self.closed = True


@pytest.fixture()
def sync_config() -> SyncConfig:
    return SyncConfig(
        sheets=SheetsConfig(users_url=USERS_URL, apps_url=APPS_URL),
        store=StoreConfig(
            url="https://project.supabase.test",
            service_role_key="service-role-secret",
        ),
    )


@pytest.fixture()
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def fetch_failure() -> FetchError:
    return FetchError(APPS_URL, 404)


@pytest.fixture(autouse=True)
def _reset_sheet_sync_logger():
    # configure_logging binds a handler to whatever sys.stderr was at the time.
    yield
    logger = logging.getLogger("sheet_sync")
    logger.handlers.clear()
    logger.propagate = True
