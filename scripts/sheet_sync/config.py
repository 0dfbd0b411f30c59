"""Configuration from environment variables (and an optional .env file).

Built once at process start and handed to the reconciler; nothing below
the entry points reads the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from scripts.sheet_sync.errors import ConfigurationError
from scripts.sheet_sync.secrets import resolve_secret

BACKEND_POSTGREST = "postgrest"
BACKEND_POSTGRES = "postgres"
STORE_BACKENDS = (BACKEND_POSTGREST, BACKEND_POSTGRES)


@dataclass(frozen=True)
class SheetsConfig:
    users_url: str
    apps_url: str
    timeout: Optional[float] = None  # None = wait indefinitely


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    min_connections: int = 1
    max_connections: int = 2


@dataclass(frozen=True)
class StoreConfig:
    backend: str = BACKEND_POSTGREST
    url: str = ""
    service_role_key: str = field(default="", repr=False)
    database: Optional[DatabaseConfig] = field(default=None, repr=False)
    batch_size: int = 500
    timeout: Optional[float] = None


@dataclass(frozen=True)
class SchedulerConfig:
    interval_min: int = 15
    misfire_grace_time: int = 300


@dataclass(frozen=True)
class SyncConfig:
    sheets: SheetsConfig
    store: StoreConfig
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    log_level: str = "INFO"

    def secret_values(self) -> list[str]:
        """Credentials that must never reach the logs."""
        values = [self.store.service_role_key]
        if self.store.database is not None:
            values.append(self.store.database.url)
        return [v for v in values if v]


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError([name], f"{name} must be an integer, got {raw!r}")


def _timeout_setting(env: Mapping[str, str], name: str) -> Optional[float]:
    raw = env.get(name, "")
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError([name], f"{name} must be a number, got {raw!r}")


def _secret_setting(name: str, value: str) -> str:
    try:
        return resolve_secret(value)
    except Exception as exc:
        raise ConfigurationError([name], f"Could not resolve {name}: {exc}") from exc


def load_config(env: Optional[Mapping[str, str]] = None) -> SyncConfig:
    """Build a SyncConfig, failing before any network activity.

    Every absent required variable is reported in a single
    ConfigurationError. ``env`` defaults to ``os.environ`` after loading
    a .env file.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    backend = (env.get("STORE_BACKEND") or BACKEND_POSTGREST).lower()
    if backend not in STORE_BACKENDS:
        raise ConfigurationError(
            ["STORE_BACKEND"],
            f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, got {backend!r}",
        )

    if backend == BACKEND_POSTGREST:
        required = ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"]
    else:
        required = ["DATABASE_URL"]
    required += ["SHEETS_USERS_URL", "SHEETS_APPS_URL"]

    missing = [name for name in required if not env.get(name)]
    if missing:
        raise ConfigurationError(missing)

    http_timeout = _timeout_setting(env, "SHEETS_HTTP_TIMEOUT")
    batch_size = _int_setting(env, "STORE_BATCH_SIZE", 500)
    if batch_size <= 0:
        raise ConfigurationError(["STORE_BATCH_SIZE"], "STORE_BATCH_SIZE must be positive")

    if backend == BACKEND_POSTGREST:
        store = StoreConfig(
            backend=backend,
            url=env["SUPABASE_URL"].rstrip("/"),
            service_role_key=_secret_setting(
                "SUPABASE_SERVICE_ROLE_KEY", env["SUPABASE_SERVICE_ROLE_KEY"]
            ),
            batch_size=batch_size,
            timeout=http_timeout,
        )
    else:
        store = StoreConfig(
            backend=backend,
            database=DatabaseConfig(
                url=_secret_setting("DATABASE_URL", env["DATABASE_URL"]),
                min_connections=_int_setting(env, "DB_MIN_CONNECTIONS", 1),
                max_connections=_int_setting(env, "DB_MAX_CONNECTIONS", 2),
            ),
            batch_size=batch_size,
        )

    return SyncConfig(
        sheets=SheetsConfig(
            users_url=env["SHEETS_USERS_URL"],
            apps_url=env["SHEETS_APPS_URL"],
            timeout=http_timeout,
        ),
        store=store,
        scheduler=SchedulerConfig(
            interval_min=_int_setting(env, "SYNC_INTERVAL_MIN", 15),
            misfire_grace_time=_int_setting(env, "SYNC_MISFIRE_GRACE_S", 300),
        ),
        log_level=env.get("LOG_LEVEL") or "INFO",
    )
