"""Store adapters. Each exposes ``upsert(table, rows, conflict_columns)``.

Two backends are available: the Supabase/PostgREST HTTP endpoint (the
default) and a direct PostgreSQL connection. Both insert new keys and
overwrite existing ones; neither deletes.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Generator, Mapping, Optional, Protocol, Sequence

import psycopg2
import psycopg2.extras
import psycopg2.pool
import requests

from scripts.sheet_sync.config import BACKEND_POSTGRES, DatabaseConfig, StoreConfig
from scripts.sheet_sync.errors import StoreError

logger = logging.getLogger("sheet_sync.store")


class Store(Protocol):
    def upsert(
        self,
        table: str,
        rows: Sequence[Mapping[str, Any]],
        conflict_columns: Sequence[str],
    ) -> int:
        ...

    def close(self) -> None:
        ...


def collapse_by_key(
    rows: Sequence[Mapping[str, Any]], conflict_columns: Sequence[str]
) -> list[Mapping[str, Any]]:
    """Keep the last row per conflict key, in first-seen key order.

    PostgreSQL refuses to touch the same row twice in one
    ``ON CONFLICT DO UPDATE`` statement, so a request carrying a repeated
    key is reduced to what applying the rows one by one would leave behind.
    """
    by_key: dict[tuple, Mapping[str, Any]] = {}
    for row in rows:
        by_key[tuple(row[c] for c in conflict_columns)] = row
    return list(by_key.values())


def _batches(rows: Sequence[Any], size: int) -> list[Sequence[Any]]:
    return [rows[i : i + size] for i in range(0, len(rows), size)]


class PostgrestStore:
    """Upserts through the Supabase REST endpoint with a service-role key."""

    def __init__(
        self,
        base_url: str,
        service_role_key: str,
        batch_size: int = 500,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base = base_url.rstrip("/")
        self._batch_size = batch_size
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
            "Content-Type": "application/json",
        })

    def close(self) -> None:
        self._session.close()

    def upsert(
        self,
        table: str,
        rows: Sequence[Mapping[str, Any]],
        conflict_columns: Sequence[str],
    ) -> int:
        if not rows:
            return 0

        url = f"{self._base}/rest/v1/{table}"
        on_conflict = ",".join(conflict_columns)
        total = 0
        for batch in _batches(collapse_by_key(rows, conflict_columns), self._batch_size):
            try:
                resp = self._session.post(
                    url,
                    json=[dict(r) for r in batch],
                    params={"on_conflict": on_conflict},
                    headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
                    timeout=self._timeout,
                )
            except requests.RequestException as exc:
                raise StoreError(table, str(exc)) from exc
            if not 200 <= resp.status_code < 300:
                raise StoreError(table, f"status {resp.status_code}: {resp.text}")
            total += len(batch)
        return total


class PostgresStore:
    """Upserts straight into PostgreSQL over a small connection pool."""

    def __init__(self, config: DatabaseConfig, batch_size: int = 500) -> None:
        self._batch_size = batch_size
        try:
            self._pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=config.min_connections,
                maxconn=config.max_connections,
                dsn=config.url,
            )
        except psycopg2.Error as exc:
            raise StoreError("<connect>", str(exc).strip()) from exc

    def close(self) -> None:
        self._pool.closeall()

    @contextmanager
    def transaction(self) -> Generator:
        """Yield a cursor inside an auto-commit/rollback transaction."""
        conn = self._pool.getconn()
        try:
            try:
                with conn.cursor() as cur:
                    yield cur
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        finally:
            self._pool.putconn(conn)

    def upsert(
        self,
        table: str,
        rows: Sequence[Mapping[str, Any]],
        conflict_columns: Sequence[str],
    ) -> int:
        """Bulk upsert with ON CONFLICT DO UPDATE, one transaction per table."""
        if not rows:
            return 0

        rows = collapse_by_key(rows, conflict_columns)
        columns = list(rows[0].keys())
        update_columns = [c for c in columns if c not in conflict_columns]

        col_list = ", ".join(columns)
        conflict_list = ", ".join(conflict_columns)
        if update_columns:
            action = "DO UPDATE SET " + ", ".join(
                f"{c} = EXCLUDED.{c}" for c in update_columns
            )
        else:
            action = "DO NOTHING"
        sql = (
            f"INSERT INTO {table} ({col_list}) VALUES %s "
            f"ON CONFLICT ({conflict_list}) {action}"
        )
        values = [tuple(r[c] for c in columns) for r in rows]

        total = 0
        try:
            with self.transaction() as cur:
                for batch in _batches(values, self._batch_size):
                    psycopg2.extras.execute_values(cur, sql, batch, page_size=self._batch_size)
                    total += cur.rowcount
        except psycopg2.Error as exc:
            raise StoreError(table, str(exc).strip()) from exc
        return total


def build_store(config: StoreConfig) -> Store:
    if config.backend == BACKEND_POSTGRES:
        return PostgresStore(config.database, batch_size=config.batch_size)
    return PostgrestStore(
        config.url,
        config.service_role_key,
        batch_size=config.batch_size,
        timeout=config.timeout,
    )
