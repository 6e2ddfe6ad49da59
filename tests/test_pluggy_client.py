from __future__ import annotations

import urllib.parse
from typing import Any

import pytest
import requests
from fincontas.pluggy_client import PluggyClient, PluggyError

from tests.helpers.http import make_response


class _FakeApi:
    """Stands in for ``requests.Session.request``; routes by path and records every call."""

    def __init__(self, pages: dict[int, list[dict[str, Any]]]) -> None:
        self.pages = pages
        self.requests: list[tuple[str, str, str | None]] = []

    def __call__(
        self, session: requests.Session, method: str, url: str, **kwargs: Any
    ) -> requests.Response:
        path = urllib.parse.urlsplit(url).path
        params = kwargs.get("params") or {}
        self.requests.append((method, path, session.headers.get("X-API-KEY")))
        if path == "/auth":
            if kwargs["json"]["clientSecret"] != "secret":
                return make_response(401, {"message": "bad"}, url=url, reason="Unauthorized")
            return make_response(200, {"apiKey": "key-123"}, url=url)
        if path == "/transactions":
            page = int(params["page"])
            body = {"results": self.pages[page], "page": page, "totalPages": len(self.pages)}
            return make_response(200, body, url=url)
        if path == "/accounts":
            return make_response(200, {"results": [{"id": "acc-1"}, {"name": "no id"}]}, url=url)
        return make_response(404, url=url, reason="Not Found")


@pytest.fixture
def api(monkeypatch: pytest.MonkeyPatch) -> _FakeApi:
    fake = _FakeApi({1: [{"id": "t1"}, {"id": "t2"}], 2: [{"id": "t3"}]})
    def _request(session: requests.Session, method: str, url: str, **kwargs: Any) -> requests.Response:
        return fake(session, method, url, **kwargs)

    monkeypatch.setattr(requests.Session, "request", _request)
    return fake


def test_pages_through_account_transactions(api: _FakeApi) -> None:
    client = PluggyClient("cid", "secret", base_url="https://pluggy.test/")
    txs = client.get_all_account_transactions("acc-1", "2024-01-01")

    assert [t["id"] for t in txs] == ["t1", "t2", "t3"]
    assert [path for _, path, _ in api.requests] == ["/auth", "/transactions", "/transactions"]
    assert api.requests[0][2] is None
    assert all(key == "key-123" for _, path, key in api.requests if path != "/auth")


def test_item_transactions_skip_accounts_without_id(api: _FakeApi) -> None:
    client = PluggyClient("cid", "secret", base_url="https://pluggy.test")
    assert len(client.get_all_item_transactions("item-1")) == 3


def test_health_check_reauthenticates(api: _FakeApi) -> None:
    client = PluggyClient("cid", "secret", base_url="https://pluggy.test")
    client.authenticate()
    assert client.health_check() is True
    # the stale key is dropped before the second /auth call
    assert [(path, key) for _, path, key in api.requests] == [("/auth", None), ("/auth", None)]


def test_http_errors_become_pluggy_errors(api: _FakeApi) -> None:
    with pytest.raises(PluggyError) as ei:
        PluggyClient("cid", "wrong", base_url="https://pluggy.test").health_check()
    assert ei.value.status == 401
    assert "401" in str(ei.value)

    client = PluggyClient("cid", "secret", base_url="https://pluggy.test")
    with pytest.raises(PluggyError) as ei:
        client.get_item("missing")
    assert ei.value.status == 404


def test_unreachable_api(monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(session: requests.Session, method: str, url: str, **kwargs: Any) -> requests.Response:
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests.Session, "request", refuse)
    with pytest.raises(PluggyError, match="unreachable") as ei:
        PluggyClient("cid", "secret").health_check()
    assert ei.value.status is None
