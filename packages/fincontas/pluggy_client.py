"""Thin client for the Pluggy open-finance API.

Synchronous JSON calls over a ``requests.Session``. An API key is obtained from
``POST /auth`` with the client credentials on first use and sent as
``X-API-KEY`` on every later request.

Only the endpoints the bank synchronization flow needs are covered: items,
accounts and paged transactions.
"""

from __future__ import annotations

import urllib.parse
from collections.abc import Mapping
from typing import Any

import requests

from .config import DEFAULT_PLUGGY_API_URL
from .logging_setup import get_logger

logger = get_logger("fincontas.pluggy_client")

DEFAULT_PAGE_SIZE = 500


class PluggyError(RuntimeError):
    """The Pluggy API rejected a request or returned an unreadable body."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class PluggyClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        base_url: str = DEFAULT_PLUGGY_API_URL,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._api_key: str | None = None
        self._session = session or requests.Session()
        self._session.headers["Accept"] = "application/json"

    # ---- transport ---------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Any:
        if authenticated:
            self.authenticate()
        query = {k: v for k, v in (params or {}).items() if v is not None} or None
        try:
            resp = self._session.request(
                method,
                f"{self.base_url}{path}",
                params=query,
                json=body,
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.HTTPError as e:
            r = e.response
            status = r.status_code if r is not None else None
            reason = r.reason if r is not None else ""
            text = r.text if r is not None else ""
            raise PluggyError(f"Pluggy API error: {status} {reason}: {text}", status=status) from e
        except requests.RequestException as e:
            raise PluggyError(f"Pluggy API unreachable: {e}") from e

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise PluggyError("Failed to parse JSON from Pluggy API") from e

    # ---- endpoints ---------------------------------------------------------

    def authenticate(self) -> str:
        if self._api_key:
            return self._api_key
        payload = self._request(
            "POST",
            "/auth",
            body={"clientId": self.client_id, "clientSecret": self.client_secret},
            authenticated=False,
        )
        api_key = payload.get("apiKey") if isinstance(payload, Mapping) else None
        if not api_key:
            raise PluggyError("Pluggy authentication did not return an API key")
        self._api_key = str(api_key)
        self._session.headers["X-API-KEY"] = self._api_key
        return self._api_key

    def health_check(self) -> bool:
        """Authenticate with the configured credentials; raises :class:`PluggyError` on failure."""

        self._api_key = None
        self._session.headers.pop("X-API-KEY", None)
        self.authenticate()
        return True

    def get_item(self, item_id: str) -> dict[str, Any]:
        return self._request("GET", f"/items/{urllib.parse.quote(item_id, safe='')}")

    def get_accounts(self, item_id: str) -> list[dict[str, Any]]:
        payload = self._request("GET", "/accounts", params={"itemId": item_id})
        return list((payload or {}).get("results") or [])

    def get_account(self, account_id: str) -> dict[str, Any]:
        return self._request("GET", f"/accounts/{urllib.parse.quote(account_id, safe='')}")

    def get_transactions(
        self,
        *,
        account_id: str,
        from_date: str | None = None,
        to_date: str | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[dict[str, Any]], bool]:
        """Return one page of an account's transactions and whether more pages follow."""

        payload = self._request(
            "GET",
            "/transactions",
            params={
                "accountId": account_id,
                "from": from_date,
                "to": to_date,
                "page": page,
                "pageSize": page_size,
            },
        ) or {}
        results = list(payload.get("results") or [])
        total_pages = int(payload.get("totalPages") or 1)
        current = int(payload.get("page") or page)
        return results, current < total_pages

    def get_all_account_transactions(
        self, account_id: str, from_date: str | None = None
    ) -> list[dict[str, Any]]:
        transactions: list[dict[str, Any]] = []
        page = 1
        while True:
            batch, has_next = self.get_transactions(
                account_id=account_id, from_date=from_date, page=page
            )
            transactions.extend(batch)
            if not has_next:
                return transactions
            page += 1

    def get_all_item_transactions(
        self, item_id: str, from_date: str | None = None
    ) -> list[dict[str, Any]]:
        transactions: list[dict[str, Any]] = []
        for account in self.get_accounts(item_id):
            account_id = account.get("id")
            if not account_id:
                continue
            transactions.extend(self.get_all_account_transactions(str(account_id), from_date))
        logger.debug("Fetched %d transactions for item %s", len(transactions), item_id)
        return transactions


__all__ = ["DEFAULT_PAGE_SIZE", "PluggyClient", "PluggyError"]
