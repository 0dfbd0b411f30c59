"""Normalization of identity strings and yes/no cells."""

from __future__ import annotations

import re
from typing import Optional

# Zero-width space / non-joiner / joiner, and the BOM. Spreadsheet
# copy-paste tends to smuggle these into email cells.
_INVISIBLE = re.compile("[\u200b-\u200d\ufeff]")

TRUTHY_TOKENS = frozenset({"true", "1", "yes", "y", "ok", "allow"})


def normalize_email(raw: Optional[str]) -> str:
    """Canonical form of an email used as a relation key."""
    return _INVISIBLE.sub("", raw or "").strip().lower()


def is_truthy(raw: Optional[str]) -> bool:
    return (raw or "").lower() in TRUTHY_TOKENS
