"""Credit cards and the read-only holdings summaries (investments, loans, bills)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fincontas_db.models import Account, CreditCard, CreditCardBill, Investment, Loan
from sqlalchemy import or_, select
from sqlalchemy.orm import Session, aliased

from .errors import BadRequest, NotFound
from .formatters import iso_utc, to_int, to_number, utc_now
from .persistence import delete_owned, insert_row, update_owned

_LINKED_FIELDS = {
    "linked_account_name": Account.name,
    "linked_account_balance": Account.balance,
    "linked_credit_limit": Account.credit_limit,
    "linked_available_credit": Account.available_credit_limit,
    "linked_minimum_payment": Account.minimum_payment,
    "linked_due_date": Account.balance_due_date,
}


def list_credit_cards(session: Session, user_id: str) -> list[dict[str, Any]]:
    stmt = (
        select(CreditCard, *_LINKED_FIELDS.values())
        .outerjoin(Account, CreditCard.linked_account_id == Account.id)
        .where(CreditCard.user_id == user_id)
        .order_by(CreditCard.created_at.desc(), CreditCard.id.desc())
    )
    cards = []
    for card, *linked in session.execute(stmt):
        row = card.as_dict()
        row.update(zip(_LINKED_FIELDS, linked))
        cards.append(row)
    return cards


def _amount(value: Any, message: str) -> float:
    if value is None:
        return 0.0
    number = to_number(value)
    if number is None:
        raise BadRequest(message)
    return number


def _due_day(value: Any) -> int:
    day = to_int(value)
    if day is None or not 1 <= day <= 31:
        raise BadRequest("Invalid due day")
    return day


def _card_values(body: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
    values: dict[str, Any] = {}
    name = body.get("name")
    if isinstance(name, str) and name.strip():
        values["name"] = name.strip()
    elif not partial:
        raise BadRequest("Name is required")
    if "credit_limit" in body or not partial:
        values["credit_limit"] = _amount(body.get("credit_limit"), "Invalid credit limit")
    if "current_balance" in body or not partial:
        values["current_balance"] = _amount(body.get("current_balance"), "Invalid current balance")
    if "due_day" in body:
        values["due_day"] = _due_day(body["due_day"])
    return values


def create_credit_card(session: Session, user_id: str, body: Mapping[str, Any]) -> int:
    card = insert_row(session, CreditCard(user_id=user_id, **_card_values(body, partial=False)))
    return card.id


def update_credit_card(session: Session, user_id: str, card_id: int, body: Mapping[str, Any]) -> None:
    values = _card_values(body, partial=True)
    if not values:
        raise BadRequest("No valid fields to update")
    if update_owned(session, CreditCard, user_id, card_id, values) == 0:
        raise NotFound("Credit card not found")


def delete_credit_card(session: Session, user_id: str, card_id: int) -> None:
    if delete_owned(session, CreditCard, user_id, CreditCard.id == card_id) == 0:
        raise NotFound("Credit card not found")


def available_accounts(session: Session, user_id: str) -> list[dict[str, Any]]:
    """Credit accounts of the user that no card is linked to yet."""

    linked = aliased(CreditCard)
    stmt = (
        select(Account)
        .outerjoin(linked, linked.linked_account_id == Account.id)
        .where(
            Account.user_id == user_id,
            or_(Account.account_type == "credit", Account.account_subtype == "creditCard"),
            linked.id.is_(None),
        )
        .order_by(Account.institution_name, Account.name)
    )
    return [a.as_dict() for a in session.scalars(stmt)]


def link_credit_card(session: Session, user_id: str, card_id: int, account_id: Any) -> None:
    target: int | None = None
    if account_id is not None:
        target = session.scalar(
            select(Account.id).where(Account.id == to_int(account_id), Account.user_id == user_id)
        )
        if target is None:
            raise BadRequest("Invalid account reference")
    if update_owned(session, CreditCard, user_id, card_id, {"linked_account_id": target}) == 0:
        raise NotFound("Credit card not found")


def sync_credit_card(session: Session, user_id: str, card_id: int) -> dict[str, Any]:
    """Copy the linked aggregator account's balance and limit onto the card."""

    row = session.execute(
        select(CreditCard.id, Account.pluggy_account_id, Account.balance, Account.credit_limit)
        .outerjoin(Account, CreditCard.linked_account_id == Account.id)
        .where(CreditCard.id == card_id, CreditCard.user_id == user_id)
    ).first()
    if row is None:
        raise NotFound("Credit card not found")
    if not row.pluggy_account_id:
        raise BadRequest("Credit card is not linked to a Pluggy account")

    values: dict[str, Any] = {"last_synced_at": iso_utc(utc_now())}
    if row.balance is not None:
        values["current_balance"] = row.balance
    if row.credit_limit is not None:
        values["credit_limit"] = row.credit_limit
    update_owned(session, CreditCard, user_id, card_id, values)
    return values


def _newest_first(session: Session, model: type, user_id: str) -> list[dict[str, Any]]:
    rows = session.scalars(
        select(model)
        .where(model.user_id == user_id)
        .order_by(model.created_at.desc(), model.id.desc())
    )
    return [r.as_dict() for r in rows]


def list_investments(session: Session, user_id: str) -> list[dict[str, Any]]:
    return _newest_first(session, Investment, user_id)


def list_loans(session: Session, user_id: str) -> list[dict[str, Any]]:
    return _newest_first(session, Loan, user_id)


def list_bills(session: Session, user_id: str) -> list[dict[str, Any]]:
    return _newest_first(session, CreditCardBill, user_id)
