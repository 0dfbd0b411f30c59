"""Download the two published sheets concurrently."""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Optional

import requests

from scripts.sheet_sync.config import SheetsConfig
from scripts.sheet_sync.errors import FetchError

logger = logging.getLogger("sheet_sync.fetch")


class SheetFetcher:
    """Fetches CSV exports over HTTP. One attempt per URL, no retries."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "text/csv, text/plain;q=0.9, */*;q=0.1")

    @classmethod
    def from_config(cls, config: SheetsConfig) -> "SheetFetcher":
        return cls(timeout=config.timeout)

    def close(self) -> None:
        self._session.close()

    def fetch_csv(self, url: str) -> str:
        """GET one sheet and return its body decoded as UTF-8, minus any BOM."""
        start = time.monotonic()
        try:
            resp = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise FetchError(url, reason=str(exc)) from exc

        if not 200 <= resp.status_code < 300:
            raise FetchError(url, resp.status_code)

        resp.encoding = "utf-8-sig"
        text = resp.text
        logger.debug(
            "Fetched %d bytes",
            len(text),
            extra={"url": url, "status": resp.status_code,
                   "duration_s": round(time.monotonic() - start, 3)},
        )
        return text

    def fetch_pair(self, users_url: str, apps_url: str) -> tuple[str, str]:
        """Fetch both sheets in parallel and return (users_csv, apps_csv).

        Whichever request fails first is raised without waiting for the
        other, whose result is discarded.
        """
        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="sheet-fetch")
        try:
            users_future = pool.submit(self.fetch_csv, users_url)
            apps_future = pool.submit(self.fetch_csv, apps_url)
            futures: list[Future] = [users_future, apps_future]

            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for future in futures:
                if future in done and future.exception() is not None:
                    raise future.exception()

            return users_future.result(), apps_future.result()
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
