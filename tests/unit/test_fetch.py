"""Tests for SheetFetcher with the HTTP session mocked out."""

import threading
import time
from unittest.mock import MagicMock

import pytest
import requests

from scripts.sheet_sync.errors import FetchError
from scripts.sheet_sync.fetch import SheetFetcher

USERS = "https://sheets.test/users.csv"
APPS = "https://sheets.test/apps.csv"


def _response(status: int, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    return resp


def _session(responses: dict) -> MagicMock:
    session = MagicMock()

    def get(url, timeout=None):
        outcome = responses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    session.get.side_effect = get
    return session


def test_fetch_csv_returns_text_and_passes_timeout():
    session = _session({USERS: _response(200, "email\nx@y.z\n")})
    fetcher = SheetFetcher(timeout=5.0, session=session)
    assert fetcher.fetch_csv(USERS) == "email\nx@y.z\n"
    session.get.assert_called_once_with(USERS, timeout=5.0)


def test_fetch_csv_non_success_status():
    fetcher = SheetFetcher(session=_session({USERS: _response(403, "denied")}))
    with pytest.raises(FetchError) as e:
        fetcher.fetch_csv(USERS)
    assert e.value.status == 403
    assert e.value.url == USERS
    assert str(e.value) == f"Fetch failed 403: {USERS}"


def test_fetch_csv_transport_failure():
    boom = requests.ConnectionError("connection refused")
    fetcher = SheetFetcher(session=_session({USERS: boom}))
    with pytest.raises(FetchError) as e:
        fetcher.fetch_csv(USERS)
    assert e.value.status is None
    assert e.value.__cause__ is boom


def test_fetch_pair_returns_users_then_apps():
    session = _session({USERS: _response(200, "users"), APPS: _response(200, "apps")})
    assert SheetFetcher(session=session).fetch_pair(USERS, APPS) == ("users", "apps")


@pytest.mark.parametrize("failing", [USERS, APPS])
def test_fetch_pair_either_failure_raises(failing):
    responses = {USERS: _response(200, "users"), APPS: _response(200, "apps")}
    responses[failing] = _response(500)
    with pytest.raises(FetchError) as e:
        SheetFetcher(session=_session(responses)).fetch_pair(USERS, APPS)
    assert e.value.url == failing
    assert e.value.status == 500


def test_fetch_csv_drops_utf8_bom():
    resp = requests.Response()
    resp.status_code = 200
    resp._content = b"\xef\xbb\xbfemail\nx\n"
    session = MagicMock()
    session.get.return_value = resp
    assert SheetFetcher(session=session).fetch_csv(USERS) == "email\nx\n"


def test_fetch_pair_does_not_wait_for_slow_sheet():
    gate = threading.Event()

    def get(url, timeout=None):
        if url == USERS:
            gate.wait(10)
            return _response(200, "users")
        return _response(500)

    session = MagicMock()
    session.get.side_effect = get
    start = time.monotonic()
    try:
        with pytest.raises(FetchError) as e:
            SheetFetcher(session=session).fetch_pair(USERS, APPS)
        assert time.monotonic() - start < 5
        assert e.value.url == APPS
    finally:
        gate.set()
