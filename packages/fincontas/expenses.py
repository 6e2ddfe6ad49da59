"""Manually entered and bank-imported expenses."""

from __future__ import annotations

from typing import Any

from fincontas_db.models import Expense
from sqlalchemy import select
from sqlalchemy.orm import Session

from .errors import NotFound
from .persistence import delete_owned, insert_row, update_owned
from .schemas import ExpenseIn


def list_expenses(session: Session, user_id: str) -> list[dict[str, Any]]:
    rows = session.scalars(
        select(Expense)
        .where(Expense.user_id == user_id)
        .order_by(Expense.date.desc(), Expense.created_at.desc(), Expense.id.desc())
    )
    return [e.as_dict() for e in rows]


def create_expense(session: Session, user_id: str, payload: ExpenseIn) -> dict[str, Any]:
    expense = Expense(user_id=user_id, **payload.model_dump())
    return insert_row(session, expense).as_dict()


def update_expense(session: Session, user_id: str, expense_id: int, payload: ExpenseIn) -> None:
    if update_owned(session, Expense, user_id, expense_id, payload.model_dump()) == 0:
        raise NotFound("Expense not found")


def delete_expense(session: Session, user_id: str, expense_id: int) -> None:
    if delete_owned(session, Expense, user_id, Expense.id == expense_id) == 0:
        raise NotFound("Expense not found")
