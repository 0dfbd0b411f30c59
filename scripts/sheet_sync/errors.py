"""Exceptions raised by the sync pipeline. All of them are fatal for a run."""

from __future__ import annotations

from typing import Optional, Sequence


class SheetSyncError(Exception):
    """Base class for sync failures."""


class ConfigurationError(SheetSyncError):
    """One or more required settings are absent or unusable."""

    def __init__(self, missing: Sequence[str], message: Optional[str] = None) -> None:
        self.missing = list(missing)
        if message is None:
            message = "Missing env: " + ", ".join(self.missing)
        super().__init__(message)


class FetchError(SheetSyncError):
    """A sheet URL answered with a non-2xx status or could not be reached."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status = status
        if status is not None:
            message = f"Fetch failed {status}: {url}"
        else:
            message = f"Fetch failed: {url}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class StoreError(SheetSyncError):
    """The store rejected an upsert."""

    def __init__(self, table: str, detail: str) -> None:
        self.table = table
        self.detail = detail
        super().__init__(f"Upsert into {table} failed: {detail}")
