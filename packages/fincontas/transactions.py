"""Transaction listing, editing, bulk operations and auto-categorization."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from fincontas_db.models import Account, Transaction
from sqlalchemy import ColumnElement, String, func, select, update
from sqlalchemy.orm import Session

from .categorize import categorize_text
from .errors import BadRequest, NotFound
from .formatters import iso_utc, parse_date, to_boolean, to_int, to_number
from .persistence import delete_owned, insert_row, update_owned
from .schemas import TransactionIn, optional_text, required_text

TRANSACTION_TYPES = ("income", "expense", "transfer")
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
EDITABLE_FIELDS = ("description", "category", "merchant_name", "notes", "reconciled")
BULK_OPERATIONS = ("categorize", "reconcile", "delete")


@dataclass(frozen=True, slots=True)
class TransactionFilters:
    account_id: int | None = None
    category: str | None = None
    transaction_type: str | None = None
    description: str | None = None
    merchant_name: str | None = None
    amount_gte: float | None = None
    amount_lte: float | None = None
    date_from: str | None = None
    date_to: str | None = None

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> TransactionFilters:
        """Build filters from query parameters; unparseable values are ignored."""

        def _date(key: str) -> str | None:
            parsed = parse_date(query.get(key)) if query.get(key) else None
            return iso_utc(parsed) if parsed else None

        tx_type = query.get("type")
        return cls(
            account_id=to_int(query.get("accountId")),
            category=query.get("category") or None,
            transaction_type=tx_type if tx_type in TRANSACTION_TYPES else None,
            description=query.get("description") or None,
            merchant_name=query.get("merchantName") or None,
            amount_gte=to_number(query.get("amountGte")),
            amount_lte=to_number(query.get("amountLte")),
            date_from=_date("from"),
            date_to=_date("to"),
        )

    def clauses(self, user_id: str) -> list[ColumnElement[bool]]:
        t = Transaction
        out: list[ColumnElement[bool]] = [t.user_id == user_id]
        if self.account_id is not None:
            out.append(t.account_id == self.account_id)
        if self.category:
            out.append(t.category == self.category)
        if self.transaction_type:
            out.append(t.transaction_type == self.transaction_type)
        if self.description:
            out.append(
                func.lower(t.description, type_=String).contains(
                    self.description.lower(), autoescape=True
                )
            )
        if self.merchant_name:
            out.append(
                func.lower(t.merchant_name, type_=String).contains(
                    self.merchant_name.lower(), autoescape=True
                )
            )
        if self.amount_gte is not None:
            out.append(t.amount >= self.amount_gte)
        if self.amount_lte is not None:
            out.append(t.amount <= self.amount_lte)
        if self.date_from:
            out.append(t.date >= self.date_from)
        if self.date_to:
            out.append(t.date <= self.date_to)
        return out


def _page_params(query: Mapping[str, str]) -> tuple[int, int]:
    page = to_int(query.get("page"))
    page_size = to_int(query.get("pageSize"))
    if page is None:
        page = 1
    if page_size is None:
        page_size = DEFAULT_PAGE_SIZE
    return max(page, 1), min(max(page_size, 1), MAX_PAGE_SIZE)


def _with_account(tx: Transaction, account_name: str | None, account_type: str | None) -> dict:
    row = tx.as_dict()
    row["account_name"] = account_name
    row["account_type"] = account_type
    return row


def _select_with_account():
    return select(Transaction, Account.name, Account.account_type).outerjoin(
        Account, Transaction.account_id == Account.id
    )


def list_transactions(
    session: Session, user_id: str, query: Mapping[str, str]
) -> dict[str, Any]:
    page, page_size = _page_params(query)
    clauses = TransactionFilters.from_query(query).clauses(user_id)

    stmt = (
        _select_with_account()
        .where(*clauses)
        .order_by(Transaction.date.desc(), Transaction.created_at.desc(), Transaction.id.desc())
        .limit(page_size)
        .offset((page - 1) * page_size)
    )
    items = [_with_account(tx, name, kind) for tx, name, kind in session.execute(stmt)]
    total = session.scalar(select(func.count()).select_from(Transaction).where(*clauses)) or 0

    return {
        "transactions": items,
        "pagination": {
            "page": page,
            "pageSize": page_size,
            "total": total,
            "totalPages": math.ceil(total / page_size),
        },
    }


def get_transaction(session: Session, user_id: str, transaction_id: int) -> dict[str, Any] | None:
    row = session.execute(
        _select_with_account()
        .where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        .execution_options(populate_existing=True)
    ).first()
    if row is None:
        return None
    tx, name, kind = row
    return _with_account(tx, name, kind)


def create_transaction(session: Session, user_id: str, payload: TransactionIn) -> dict[str, Any]:
    if payload.account_id is not None:
        owned = session.scalar(
            select(Account.id).where(Account.id == payload.account_id, Account.user_id == user_id)
        )
        if owned is None:
            raise BadRequest("Invalid account reference")
    tx = insert_row(session, Transaction(user_id=user_id, **payload.model_dump()))
    result = get_transaction(session, user_id, tx.id)
    assert result is not None
    return result


def update_transaction(
    session: Session, user_id: str, transaction_id: int, body: Mapping[str, Any]
) -> dict[str, Any]:
    if not any(f in body for f in EDITABLE_FIELDS):
        raise BadRequest("No valid fields to update")
    values: dict[str, Any] = {}
    for key in ("description", "category"):
        if key in body:
            values[key] = required_text(body[key], f"Invalid {key}")
    for key in ("merchant_name", "notes"):
        if key in body:
            values[key] = optional_text(body[key], f"Invalid {key}")
    if "reconciled" in body:
        values["reconciled"] = to_boolean(body["reconciled"])

    if update_owned(session, Transaction, user_id, transaction_id, values) == 0:
        raise NotFound("Transaction not found")
    result = get_transaction(session, user_id, transaction_id)
    assert result is not None
    return result


def delete_transaction(session: Session, user_id: str, transaction_id: int) -> None:
    if delete_owned(session, Transaction, user_id, Transaction.id == transaction_id) == 0:
        raise NotFound("Transaction not found")


def auto_categorize(session: Session, user_id: str, transaction_id: int) -> str:
    row = session.execute(
        select(Transaction.description, Transaction.merchant_name).where(
            Transaction.id == transaction_id, Transaction.user_id == user_id
        )
    ).first()
    if row is None:
        raise NotFound("Transaction not found")

    category = categorize_text(row.description, row.merchant_name)
    update_owned(session, Transaction, user_id, transaction_id, {"category": category})
    return category


def bulk_operation(session: Session, user_id: str, body: Mapping[str, Any]) -> int:
    """Apply ``categorize``, ``reconcile`` or ``delete`` to the selected ids; return rows touched."""

    operation = body.get("operation")
    raw_ids = body.get("transactionIds")
    if not operation or not isinstance(raw_ids, Sequence) or isinstance(raw_ids, str):
        raise BadRequest("Invalid bulk operation parameters")

    ids = [i for i in (to_int(v) for v in raw_ids) if i is not None]
    if not ids:
        raise BadRequest("No valid transactions selected")

    params = body.get("params") or {}
    if not isinstance(params, Mapping):
        params = {}

    if operation == "categorize":
        category = params.get("category")
        if not isinstance(category, str) or not category.strip():
            raise BadRequest("Category is required for categorize operation")
        return _bulk_update(session, user_id, ids, {"category": category})
    if operation == "reconcile":
        return _bulk_update(
            session, user_id, ids, {"reconciled": to_boolean(params.get("reconciled"))}
        )
    if operation == "delete":
        return delete_owned(session, Transaction, user_id, Transaction.id.in_(ids))
    raise BadRequest("Invalid operation")


def _bulk_update(session: Session, user_id: str, ids: list[int], values: dict[str, Any]) -> int:
    stmt = (
        update(Transaction)
        .where(Transaction.user_id == user_id, Transaction.id.in_(ids))
        .values(**values, updated_at=func.current_timestamp())
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount
