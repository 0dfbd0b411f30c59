"""Records written to the store and the summaries the pipeline returns."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class AppRecord:
    app_no: str
    label: str
    url: str

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UserAppRecord:
    email: str
    app_no: str
    allowed: bool
    editor: bool

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FilterResult(Generic[T]):
    """Output of a validation stage: kept records plus how many were dropped."""

    accepted: list[T] = field(default_factory=list)
    rejected: int = 0


@dataclass(frozen=True)
class SyncResult:
    apps: int
    user_apps: int
    apps_rejected: int = 0
    user_apps_rejected: int = 0
    dry_run: bool = False
    duration_s: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)
