"""Aggregator routes.

Read-style endpoints answer ``{"status": "ok", "data": {...}}`` and report
aggregator failures inside ``data.error``; sync and webhook tests answer with
their own ``success`` envelopes.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ... import bank_sync, webhooks
from ...config import Settings
from ...errors import ApiError
from ...logging_setup import get_logger
from ...pluggy_client import PluggyError
from ...schemas import PluggyTransactionsRequest
from ..deps import AppSettings, CurrentUser, JsonBody, db_session

logger = get_logger("fincontas.web.pluggy")

router = APIRouter(prefix="/api/pluggy", tags=["pluggy"])


def _ok(data: dict[str, Any]) -> dict[str, Any]:
    return {"status": "ok", "data": data}


@router.post("/status")
def status(user: CurrentUser, settings: AppSettings) -> dict[str, Any]:
    with db_session("Failed to compute Pluggy status") as session:
        return _ok(bank_sync.status(session, user.id, settings))


@router.post("/accounts")
def accounts(user: CurrentUser, settings: AppSettings) -> dict[str, Any]:
    with db_session("Failed to fetch Pluggy accounts") as session:
        return _ok(bank_sync.live_accounts(session, user.id, settings))


@router.post("/transactions")
def transactions(
    payload: PluggyTransactionsRequest, user: CurrentUser, settings: AppSettings
) -> dict[str, Any]:
    with db_session("Failed to fetch Pluggy transactions") as session:
        client = bank_sync.client_for_user(session, user.id, settings)
    if client is None:
        return _ok({"error": "Pluggy credentials not configured"})
    try:
        return _ok(
            bank_sync.export_account_transactions(client, payload.accountId, payload.startDate)
        )
    except PluggyError as exc:
        logger.error("Error fetching Pluggy transactions: %s", exc)
        return _ok({"error": str(exc)})


@router.get("/config")
def get_config(user: CurrentUser, settings: AppSettings) -> dict[str, Any]:
    with db_session("Failed to load config") as session:
        return bank_sync.get_config(session, user.id, settings)


@router.post("/config")
def save_config(body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to save config") as session:
        return bank_sync.save_config(session, user.id, body)


@router.post("/test-connection")
def test_connection(body: JsonBody, user: CurrentUser, settings: AppSettings) -> dict[str, Any]:
    bank_sync.check_credentials(body, settings)
    return {"success": True, "message": "Connection with Pluggy API successful"}


@router.get("/connections")
def list_connections(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch connections") as session:
        return {"connections": bank_sync.list_connections(session, user.id)}


@router.post("/add-connection")
def add_connection(body: JsonBody, user: CurrentUser, settings: AppSettings) -> dict[str, Any]:
    with db_session("Failed to add connection") as session:
        bank_sync.add_connection(session, user.id, settings, body)
    return {"success": True, "message": "Connection added successfully"}


@router.delete("/connections/{connection_id}")
def delete_connection(connection_id: int, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to remove connection") as session:
        bank_sync.delete_connection(session, user.id, connection_id)
    return {"message": "Connection removed successfully"}


def _sync(user_id: str, settings: Settings, item_id: str | None) -> JSONResponse:
    headers = {"Cache-Control": "no-cache"}
    try:
        with db_session("Sync failed due to unexpected error") as session:
            result = bank_sync.sync_connections(session, user_id, settings, item_id)
    except ApiError as exc:
        return JSONResponse(
            {
                "success": False,
                "error": exc.message,
                "newTransactions": 0,
                "message": exc.message,
            },
            status_code=exc.status_code,
            headers=headers,
        )
    return JSONResponse(result, headers=headers)


@router.post("/sync")
def sync_all(user: CurrentUser, settings: AppSettings) -> JSONResponse:
    return _sync(user.id, settings, None)


@router.post("/sync/{item_id}")
def sync_item(item_id: str, user: CurrentUser, settings: AppSettings) -> JSONResponse:
    return _sync(user.id, settings, item_id)


@router.get("/webhook-config")
def get_webhook_config(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to load webhook config") as session:
        return webhooks.get_config(session, user.id)


@router.post("/webhook-config")
def save_webhook_config(body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to save webhook config") as session:
        webhooks.save_config(session, user.id, body)
    return {"success": True, "message": "Webhook configuration saved successfully"}


@router.post("/test-webhook")
def test_webhook(user: CurrentUser) -> JSONResponse:
    with db_session("Failed to test webhook") as session:
        result = webhooks.send_test(session, user.id)
    if result.success:
        return JSONResponse(
            {"success": True, "status": result.status, "message": "Webhook test successful"}
        )
    content: dict[str, Any] = {"success": False, "error": result.error}
    if result.status is not None:
        content["details"] = "Failed to reach webhook endpoint"
    return JSONResponse(content, status_code=400)


@router.get("/webhook-logs")
def webhook_logs(request: Request, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to load webhook logs") as session:
        return {"logs": webhooks.list_logs(session, user.id, request.query_params.get("limit"))}
