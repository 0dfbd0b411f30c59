"""Turn parsed sheet rows into store records.

Everything here is pure: no config, no I/O. Rows that fail field checks
are dropped and only counted.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from scripts.sheet_sync.models import AppRecord, FilterResult, UserAppRecord
from scripts.sheet_sync.normalize import is_truthy, normalize_email

_APP_NO_SEPARATORS = re.compile(r"[,\s]+")


def split_app_numbers(raw: str) -> list[str]:
    """Split an app_no cell such as ``1, 2  3`` into its numbers. Duplicates are kept."""
    return [tok for tok in _APP_NO_SEPARATORS.split(raw or "") if tok]


def expand_user_row(record: Mapping[str, str]) -> list[UserAppRecord]:
    """One users-sheet row -> one UserAppRecord per listed app number."""
    email = normalize_email(record.get("email", ""))
    allowed = is_truthy(record.get("allowed", ""))
    editor = is_truthy(record.get("editor", ""))
    return [
        UserAppRecord(email=email, app_no=app_no, allowed=allowed, editor=editor)
        for app_no in split_app_numbers(record.get("app_no", ""))
    ]


def build_user_apps(records: Iterable[Mapping[str, str]]) -> FilterResult[UserAppRecord]:
    expanded: list[UserAppRecord] = []
    for record in records:
        expanded.extend(expand_user_row(record))
    accepted = [r for r in expanded if r.email and r.app_no]
    return FilterResult(accepted=accepted, rejected=len(expanded) - len(accepted))


def build_apps(records: Iterable[Mapping[str, str]]) -> FilterResult[AppRecord]:
    """Trim the three app columns and keep only rows where all are present."""
    accepted: list[AppRecord] = []
    rejected = 0
    for record in records:
        candidate = AppRecord(
            app_no=(record.get("app_no") or "").strip(),
            label=(record.get("label") or "").strip(),
            url=(record.get("url") or "").strip(),
        )
        if candidate.app_no and candidate.label and candidate.url:
            accepted.append(candidate)
        else:
            rejected += 1
    return FilterResult(accepted=accepted, rejected=rejected)
