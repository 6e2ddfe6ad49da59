"""Account management for the authenticated user."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fincontas_db.models import Account
from sqlalchemy import select
from sqlalchemy.orm import Session

from .errors import BadRequest, NotFound
from .formatters import to_boolean, to_number
from .persistence import delete_owned, fetch_owned, insert_row, update_owned
from .schemas import optional_text, required_text


def list_accounts(session: Session, user_id: str) -> list[dict[str, Any]]:
    rows = session.scalars(
        select(Account)
        .where(Account.user_id == user_id)
        .order_by(Account.created_at.desc(), Account.id.desc())
    )
    return [a.as_dict() for a in rows]


def _balance(value: Any) -> float:
    if value is None:
        return 0.0
    number = to_number(value)
    if number is None:
        raise BadRequest("Invalid balance value")
    return number


def create_account(session: Session, user_id: str, body: Mapping[str, Any]) -> dict[str, Any]:
    message = "Name and account type are required"
    account = Account(
        user_id=user_id,
        name=required_text(body.get("name"), message),
        account_type=required_text(body.get("account_type"), message),
        account_subtype=optional_text(body.get("account_subtype"), "Invalid account subtype"),
        institution_name=optional_text(body.get("institution_name"), "Invalid institution name"),
        balance=_balance(body.get("balance", 0)),
        sync_enabled=to_boolean(body.get("sync_enabled", True)),
        currency_code=optional_text(body.get("currency_code"), "Invalid currency code") or "BRL",
    )
    return insert_row(session, account).as_dict()


def update_account(
    session: Session, user_id: str, account_id: int, body: Mapping[str, Any]
) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if isinstance(body.get("name"), str):
        values["name"] = body["name"]
    if isinstance(body.get("account_type"), str):
        values["account_type"] = body["account_type"]
    if "account_subtype" in body:
        values["account_subtype"] = optional_text(body["account_subtype"], "Invalid account subtype")
    if "institution_name" in body:
        values["institution_name"] = optional_text(
            body["institution_name"], "Invalid institution name"
        )
    if "balance" in body:
        values["balance"] = _balance(body["balance"])
    if isinstance(body.get("sync_enabled"), bool):
        values["sync_enabled"] = body["sync_enabled"]
    if isinstance(body.get("currency_code"), str):
        values["currency_code"] = body["currency_code"]
    if isinstance(body.get("is_active"), bool):
        values["is_active"] = body["is_active"]

    if not values:
        raise BadRequest("No valid fields to update")
    if update_owned(session, Account, user_id, account_id, values) == 0:
        raise NotFound("Account not found")

    account = fetch_owned(session, Account, user_id, account_id)
    assert account is not None
    return account.as_dict()


def delete_account(session: Session, user_id: str, account_id: int) -> None:
    if delete_owned(session, Account, user_id, Account.id == account_id) == 0:
        raise NotFound("Account not found")
