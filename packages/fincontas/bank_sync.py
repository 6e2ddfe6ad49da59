"""Bank synchronization through the Pluggy aggregator.

Covers the per-user aggregator credentials, the user's connections (Pluggy
"items"), a normalized export of one account's transactions, and the sync
pass that imports recent outflows as expenses.

Aggregator failures on one connection are collected and reported in the
result; they do not abort the rest of a sync pass.
"""

from __future__ import annotations

import json
import math
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from fincontas_db.models import Expense, PluggyConnection
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .categorize import map_pluggy_category
from .config import Settings
from .errors import BadRequest, NotFound
from .formatters import date_only, flatten_object, parse_date, payee_name, to_number, utc_now
from .logging_setup import get_logger
from .pluggy_client import PluggyClient, PluggyError
from .user_configs import get_config_value, upsert_config_value

logger = get_logger("fincontas.bank_sync")

CLIENT_ID_KEY = "pluggy_client_id"
CLIENT_SECRET_KEY = "pluggy_client_secret"
SYNC_WINDOW_DAYS = 30
SANDBOX_OWNER = "John Doe"
SANDBOX_START_DATE = "2000-01-01"

# Connection columns refreshed from a Pluggy item payload.
_ITEM_FIELDS = {
    "status_detail": ("statusDetail",),
    "execution_status": ("executionStatus",),
    "connector_id": ("connector", "id"),
    "connector_name": ("connector", "name"),
    "connector_image_url": ("connector", "imageUrl"),
    "connector_primary_color": ("connector", "primaryColor"),
    "client_user_id": ("clientUserId",),
}


@dataclass(frozen=True, slots=True)
class PluggyCredentials:
    client_id: str
    client_secret: str


# ---------------------------
# Credentials
# ---------------------------


def get_credentials(session: Session, user_id: str, settings: Settings) -> PluggyCredentials | None:
    """Stored per-user credentials, falling back to the process configuration."""

    client_id = get_config_value(session, user_id, CLIENT_ID_KEY) or settings.pluggy_client_id
    client_secret = (
        get_config_value(session, user_id, CLIENT_SECRET_KEY) or settings.pluggy_client_secret
    )
    if not client_id or not client_secret:
        return None
    return PluggyCredentials(client_id, client_secret)


def client_for_user(session: Session, user_id: str, settings: Settings) -> PluggyClient | None:
    credentials = get_credentials(session, user_id, settings)
    if credentials is None:
        return None
    return PluggyClient(
        credentials.client_id, credentials.client_secret, base_url=settings.pluggy_api_url
    )


def get_config(session: Session, user_id: str, settings: Settings) -> dict[str, str]:
    stored_id = get_config_value(session, user_id, CLIENT_ID_KEY)
    stored_secret = get_config_value(session, user_id, CLIENT_SECRET_KEY)
    return {
        "clientId": stored_id if stored_id is not None else settings.pluggy_client_id or "",
        "clientSecret": stored_secret
        if stored_secret is not None
        else settings.pluggy_client_secret or "",
    }


def _required_credentials(body: Mapping[str, Any]) -> PluggyCredentials:
    client_id = body.get("clientId")
    client_secret = body.get("clientSecret")
    client_id = client_id.strip() if isinstance(client_id, str) else ""
    client_secret = client_secret.strip() if isinstance(client_secret, str) else ""
    if not client_id or not client_secret:
        raise BadRequest("Client ID and Client Secret are required")
    return PluggyCredentials(client_id, client_secret)


def save_config(session: Session, user_id: str, body: Mapping[str, Any]) -> dict[str, Any]:
    credentials = _required_credentials(body)
    upsert_config_value(session, user_id, CLIENT_ID_KEY, credentials.client_id)
    upsert_config_value(session, user_id, CLIENT_SECRET_KEY, credentials.client_secret)
    return {
        "success": True,
        "clientId": credentials.client_id,
        "clientSecret": credentials.client_secret,
    }


def check_credentials(body: Mapping[str, Any], settings: Settings) -> None:
    """Authenticate with the given credentials; :class:`BadRequest` on failure."""

    credentials = _required_credentials(body)
    client = PluggyClient(
        credentials.client_id, credentials.client_secret, base_url=settings.pluggy_api_url
    )
    try:
        client.health_check()
    except PluggyError as exc:
        logger.info("Pluggy connection test failed: %s", exc)
        raise BadRequest(str(exc)) from exc


# ---------------------------
# Connections
# ---------------------------


def _connections(session: Session, user_id: str) -> list[PluggyConnection]:
    return list(
        session.scalars(
            select(PluggyConnection)
            .where(PluggyConnection.user_id == user_id)
            .order_by(PluggyConnection.created_at.desc(), PluggyConnection.id.desc())
        )
    )


def list_connections(session: Session, user_id: str) -> list[dict[str, Any]]:
    return [c.as_dict() for c in _connections(session, user_id)]


def status(session: Session, user_id: str, settings: Settings) -> dict[str, Any]:
    has_credentials = get_credentials(session, user_id, settings) is not None
    count = session.scalar(
        select(func.count())
        .select_from(PluggyConnection)
        .where(PluggyConnection.user_id == user_id)
    ) or 0
    return {
        "configured": has_credentials and count > 0,
        "hasCredentials": has_credentials,
        "connectionCount": count,
    }


def delete_connection(session: Session, user_id: str, connection_id: int) -> None:
    connection = session.scalar(
        select(PluggyConnection).where(
            PluggyConnection.id == connection_id, PluggyConnection.user_id == user_id
        )
    )
    if connection is None:
        raise NotFound("Connection not found")
    session.delete(connection)
    session.flush()


def update_connection_metadata(
    session: Session, connection_id: int, values: Mapping[str, Any], *, synced_now: bool = False
) -> None:
    extra: dict[str, Any] = {"updated_at": func.current_timestamp()}
    if synced_now:
        extra["last_sync_at"] = func.current_timestamp()
    session.execute(
        update(PluggyConnection)
        .where(PluggyConnection.id == connection_id)
        .values(**values, **extra)
        .execution_options(synchronize_session=False)
    )


def _dig(payload: Mapping[str, Any] | None, path: tuple[str, ...]) -> Any:
    value: Any = payload
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _item_metadata(item: Mapping[str, Any] | None) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for column, path in _ITEM_FIELDS.items():
        value = _dig(item, path)
        # statusDetail arrives as an object; text columns store it as JSON.
        if isinstance(value, Mapping | list):
            value = json.dumps(value, ensure_ascii=False)
        values[column] = value
    return values


def _org_metadata(accounts: list[dict[str, Any]]) -> dict[str, Any]:
    org = next((a["org"] for a in accounts if isinstance(a.get("org"), Mapping)), None)
    return {
        "org_id": _dig(org, ("id",)),
        "org_name": _dig(org, ("name",)),
        "org_domain": _dig(org, ("domain",)),
    }


def add_connection(
    session: Session, user_id: str, settings: Settings, body: Mapping[str, Any]
) -> None:
    raw_item_id = body.get("itemId")
    item_id = raw_item_id.strip() if isinstance(raw_item_id, str) else ""
    if not item_id:
        raise BadRequest("Item ID is required")

    client = client_for_user(session, user_id, settings)
    if client is None:
        raise BadRequest("Pluggy credentials not configured")

    try:
        item = client.get_item(item_id) or {}
    except PluggyError as exc:
        raise BadRequest(str(exc)) from exc

    existing = session.scalar(
        select(PluggyConnection.id).where(
            PluggyConnection.user_id == user_id, PluggyConnection.pluggy_item_id == item_id
        )
    )
    if existing is not None:
        raise BadRequest("Connection already exists")

    connector_name = _dig(item, ("connector", "name"))
    institution = (
        (connector_name.strip() if isinstance(connector_name, str) else "")
        or item.get("clientUserId")
        or "Unknown Institution"
    )
    connection = PluggyConnection(
        user_id=user_id,
        pluggy_item_id=item_id,
        institution_name=institution,
        connection_status=item.get("status") or "CONNECTED",
    )
    session.add(connection)
    session.flush()

    try:
        org = _org_metadata(client.get_accounts(item_id))
    except PluggyError as exc:
        logger.error("Error fetching accounts metadata for item %s: %s", item_id, exc)
        org = _org_metadata([])

    update_connection_metadata(
        session,
        connection.id,
        {
            **_item_metadata(item),
            **org,
            "last_sync_message": "Conexão cadastrada com sucesso",
        },
    )
    logger.info("Added Pluggy connection %s for item %s", connection.id, item_id)


def live_accounts(session: Session, user_id: str, settings: Settings) -> dict[str, Any]:
    """Accounts of every connection, straight from the aggregator."""

    client = client_for_user(session, user_id, settings)
    if client is None:
        return {"accounts": [], "error": "Pluggy credentials not configured"}
    connections = _connections(session, user_id)
    if not connections:
        return {"accounts": [], "error": "Nenhuma conexão Pluggy cadastrada"}

    accounts: list[dict[str, Any]] = []
    for connection in connections:
        try:
            fetched = client.get_accounts(connection.pluggy_item_id)
        except PluggyError as exc:
            logger.error("Error fetching accounts for connection %s: %s", connection.id, exc)
            continue
        accounts.extend(fetched)
        update_connection_metadata(session, connection.id, _org_metadata(fetched))
    return {"accounts": accounts}


# ---------------------------
# Transaction export
# ---------------------------


def _round_half_up(value: float) -> float:
    return math.floor(value + 0.5)


def _balance(account: Mapping[str, Any]) -> float:
    return to_number(account.get("balance")) or 0.0


def _is_credit(account: Mapping[str, Any]) -> bool:
    kind = account.get("type")
    return isinstance(kind, str) and kind.upper() == "CREDIT"


def export_account_transactions(
    client: PluggyClient, account_id: str, start_date: str | None = None
) -> dict[str, Any]:
    """Balances plus all/booked/pending transaction lists, newest first.

    Amounts of credit accounts have their sign flipped. Each transaction is
    the flattened aggregator payload overlaid with the normalized fields.
    """

    account = client.get_account(account_id) or {}
    sandbox = account.get("owner") == SANDBOX_OWNER
    credit = _is_credit(account)

    start = parse_date(start_date) if start_date else None
    if sandbox:
        from_date: str | None = SANDBOX_START_DATE
    else:
        from_date = date_only(start) if start else None

    starting_balance = int(_round_half_up(_balance(account) * 100))
    if credit:
        starting_balance = -starting_balance

    updated = parse_date(account.get("updatedAt"))
    balances = [
        {
            "balanceAmount": {"amount": starting_balance, "currency": account.get("currencyCode")},
            "balanceType": "expected",
            "referenceDate": date_only(updated or utc_now()),
        }
    ]

    booked: list[dict[str, Any]] = []
    pending: list[dict[str, Any]] = []
    everything: list[dict[str, Any]] = []

    for raw in client.get_all_account_transactions(account_id, from_date):
        tx = dict(raw)
        moment = parse_date(tx.get("date"))
        if moment is None:
            logger.warning("Skipping transaction %s with unreadable date", tx.get("id"))
            continue
        if start and moment < start and not tx.get("sandbox"):
            continue

        if credit:
            for key in ("amountInAccountCurrency", "amount"):
                if isinstance(tx.get(key), int | float) and not isinstance(tx.get(key), bool):
                    tx[key] = -tx[key]

        in_currency = tx.get("amountInAccountCurrency")
        if in_currency is None:
            in_currency = tx.get("amount")
        amount = _round_half_up((to_number(in_currency) or 0) * 100) / 100

        is_booked = tx.get("status") != "PENDING"
        normalized = {
            "booked": is_booked,
            "date": date_only(moment),
            "payeeName": payee_name(tx),
            "notes": tx.get("descriptionRaw") or tx.get("description"),
            "transactionAmount": {
                "amount": amount,
                "currency": tx.get("currencyCode") or account.get("currencyCode"),
            },
            "transactionId": tx.get("id"),
            "sortOrder": int(moment.timestamp() * 1000),
        }
        tx.pop("amount", None)
        row = {**flatten_object(tx), **normalized}

        (booked if is_booked else pending).append(row)
        everything.append(row)

    def newest_first(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return sorted(rows, key=lambda r: r["sortOrder"], reverse=True)

    return {
        "balances": balances,
        "startingBalance": starting_balance,
        "transactions": {
            "all": newest_first(everything),
            "booked": newest_first(booked),
            "pending": newest_first(pending),
        },
    }


# ---------------------------
# Sync
# ---------------------------


def new_sync_id() -> str:
    return f"sync-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def _import_outflows(
    session: Session,
    user_id: str,
    transactions: list[dict[str, Any]],
    errors: list[str],
    sync_id: str,
) -> int:
    imported = 0
    for tx in transactions:
        amount = to_number(tx.get("amount"))
        if amount is None or amount >= 0:
            continue
        tx_id = str(tx.get("id"))
        existing = session.scalar(
            select(Expense.id).where(
                Expense.user_id == user_id, Expense.pluggy_transaction_id == tx_id
            )
        )
        if existing is not None:
            continue
        try:
            with session.begin_nested():
                session.add(
                    Expense(
                        user_id=user_id,
                        amount=abs(amount),
                        description=tx.get("description") or "Transação",
                        category=map_pluggy_category(tx),
                        date=str(tx.get("date") or "").split("T")[0],
                        pluggy_transaction_id=tx_id,
                        is_synced_from_bank=True,
                    )
                )
        except SQLAlchemyError as exc:
            logger.error("[%s] Error processing transaction %s: %s", sync_id, tx_id, exc)
            errors.append(f"Transaction {tx_id}: {exc}")
            continue
        imported += 1
    return imported


def _sync_message(new_count: int) -> str:
    stamp = utc_now().strftime("%d/%m/%Y, %H:%M:%S")
    return f"Última sincronização em {stamp} ({new_count} novas despesas)."


def sync_connections(
    session: Session, user_id: str, settings: Settings, item_id: str | None = None
) -> dict[str, Any]:
    """Import the last 30 days of outflows of one or all connections as expenses."""

    sync_id = new_sync_id()
    logger.info("[%s] Starting sync for user %s, item %s", sync_id, user_id, item_id or "all")

    client = client_for_user(session, user_id, settings)
    if client is None:
        logger.info("[%s] Pluggy credentials not configured", sync_id)
        raise BadRequest("Pluggy credentials not configured")

    stmt = select(PluggyConnection).where(PluggyConnection.user_id == user_id)
    if item_id:
        stmt = stmt.where(PluggyConnection.pluggy_item_id == item_id)
    connections = list(session.scalars(stmt.order_by(PluggyConnection.id)))
    if item_id and not connections:
        logger.info("[%s] Connection not found for item %s", sync_id, item_id)
        raise NotFound("Connection not found")

    logger.info("[%s] Found %d connections to sync", sync_id, len(connections))
    since = date_only(utc_now() - timedelta(days=SYNC_WINDOW_DAYS))
    total_new = 0
    errors: list[str] = []

    for connection in connections:
        try:
            transactions = client.get_all_item_transactions(connection.pluggy_item_id, since)
        except PluggyError as exc:
            logger.error("[%s] Error syncing connection %s: %s", sync_id, connection.id, exc)
            errors.append(f"Connection {connection.id}: {exc}")
            update_connection_metadata(
                session,
                connection.id,
                {
                    "connection_status": "ERROR",
                    "status_detail": str(exc),
                    "last_sync_message": f"Falha na sincronização: {exc}",
                },
                synced_now=True,
            )
            continue

        logger.info(
            "[%s] Found %d transactions for connection %s",
            sync_id,
            len(transactions),
            connection.id,
        )
        new_count = _import_outflows(session, user_id, transactions, errors, sync_id)
        total_new += new_count

        item: dict[str, Any] | None = None
        try:
            item = client.get_item(connection.pluggy_item_id)
        except PluggyError as exc:
            logger.error(
                "[%s] Failed to refresh item details for %s: %s",
                sync_id,
                connection.pluggy_item_id,
                exc,
            )
        update_connection_metadata(
            session,
            connection.id,
            {
                **_item_metadata(item),
                "connection_status": _dig(item, ("status",)) or "CONNECTED",
                "last_sync_message": _sync_message(new_count),
            },
            synced_now=True,
        )

    logger.info(
        "[%s] Sync completed. New transactions: %d, Errors: %d", sync_id, total_new, len(errors)
    )
    if errors:
        message = (
            f"Sync completed with {len(errors)} errors. {total_new} new transactions imported."
        )
    else:
        message = f"Sync completed successfully. {total_new} new transactions imported."
    return {"success": True, "newTransactions": total_new, "errors": errors, "message": message}
