from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from ... import expenses as service
from ...schemas import ExpenseIn
from ..deps import CurrentUser, db_session

router = APIRouter(prefix="/api/expenses", tags=["expenses"])


@router.get("")
def list_expenses(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch expenses") as session:
        return {"expenses": service.list_expenses(session, user.id)}


@router.post("")
def create_expense(payload: ExpenseIn, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to create expense") as session:
        expense = service.create_expense(session, user.id, payload)
    return {"expense": expense, "message": "Expense created successfully"}


@router.put("/{expense_id}")
def update_expense(expense_id: int, payload: ExpenseIn, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to update expense") as session:
        service.update_expense(session, user.id, expense_id, payload)
    return {"message": "Expense updated successfully"}


@router.delete("/{expense_id}")
def delete_expense(expense_id: int, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to delete expense") as session:
        service.delete_expense(session, user.id, expense_id)
    return {"message": "Expense deleted successfully"}
