"""End-to-end reconciliation of the two sheets into the store."""

from __future__ import annotations

import logging
import time
from typing import Optional

from scripts.sheet_sync.config import SyncConfig
from scripts.sheet_sync.csv_text import parse_csv
from scripts.sheet_sync.fetch import SheetFetcher
from scripts.sheet_sync.models import AppRecord, FilterResult, SyncResult, UserAppRecord
from scripts.sheet_sync.store import Store, build_store
from scripts.sheet_sync.transform import build_apps, build_user_apps

logger = logging.getLogger("sheet_sync.reconcile")

APPS_TABLE = "apps"
APPS_CONFLICT = ["app_no"]
USER_APPS_TABLE = "user_apps"
USER_APPS_CONFLICT = ["email", "app_no"]


class SheetReconciler:
    """Fetch, parse, expand and upsert both datasets.

    Apps are always written before user_apps so that stores enforcing a
    foreign key from user_apps to apps see the referenced rows first. If
    the user_apps upsert fails the apps upsert is not rolled back.
    """

    def __init__(
        self,
        config: SyncConfig,
        store: Optional[Store],
        fetcher: Optional[SheetFetcher] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.fetcher = fetcher or SheetFetcher.from_config(config.sheets)

    def load(self) -> tuple[FilterResult[AppRecord], FilterResult[UserAppRecord]]:
        """Fetch both sheets and build the record sets, without writing."""
        sheets = self.config.sheets
        logger.info("Fetching sheets...")
        users_text, apps_text = self.fetcher.fetch_pair(sheets.users_url, sheets.apps_url)

        apps = build_apps(parse_csv(apps_text))
        user_apps = build_user_apps(parse_csv(users_text))
        for dataset, result in ((APPS_TABLE, apps), (USER_APPS_TABLE, user_apps)):
            if result.rejected:
                logger.info(
                    "Dropped %d incomplete %s rows",
                    result.rejected,
                    dataset,
                    extra={"dataset": dataset, "rejected": result.rejected},
                )
        return apps, user_apps

    def run(self, dry_run: bool = False) -> SyncResult:
        """Run one reconciliation. Any SheetSyncError propagates unchanged."""
        start = time.monotonic()
        apps, user_apps = self.load()

        if dry_run:
            logger.info(
                "Dry run: %d apps, %d user_apps would be upserted",
                len(apps.accepted),
                len(user_apps.accepted),
            )
        else:
            if self.store is None:
                raise ValueError("A store is required unless dry_run is set")
            self._upsert(APPS_TABLE, apps.accepted, APPS_CONFLICT)
            self._upsert(USER_APPS_TABLE, user_apps.accepted, USER_APPS_CONFLICT)

        result = SyncResult(
            apps=len(apps.accepted),
            user_apps=len(user_apps.accepted),
            apps_rejected=apps.rejected,
            user_apps_rejected=user_apps.rejected,
            dry_run=dry_run,
            duration_s=round(time.monotonic() - start, 3),
        )
        logger.info(
            "Sync complete",
            extra={
                "records": result.apps + result.user_apps,
                "rejected": result.apps_rejected + result.user_apps_rejected,
                "duration_s": result.duration_s,
            },
        )
        return result

    def _upsert(self, table: str, records: list, conflict_columns: list[str]) -> None:
        logger.info(
            "Upserting %s (%d)...",
            table,
            len(records),
            extra={"table": table, "records": len(records)},
        )
        self.store.upsert(table, [r.to_row() for r in records], conflict_columns)


def run_once(config: SyncConfig, dry_run: bool = False) -> SyncResult:
    """Build the store and fetcher from config, run one sync, release both."""
    store = None if dry_run else build_store(config.store)
    fetcher = SheetFetcher.from_config(config.sheets)
    try:
        return SheetReconciler(config, store, fetcher).run(dry_run=dry_run)
    finally:
        fetcher.close()
        if store is not None:
            store.close()
