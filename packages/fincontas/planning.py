"""Budgets and savings goals.

Both entities may reference one of the user's accounts; listings include the
account name. Dates are stored as ISO-8601 UTC timestamps.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from fincontas_db.models import Account, Budget, Goal
from sqlalchemy import select
from sqlalchemy.orm import Session

from .errors import BadRequest, NotFound
from .formatters import iso_utc, parse_date, to_number
from .persistence import delete_owned, insert_row, update_owned
from .schemas import optional_text


def _number(value: Any, message: str) -> float:
    number = to_number(value)
    if number is None:
        raise BadRequest(message)
    return number


def _timestamp(value: Any, message: str) -> str:
    parsed = parse_date(value)
    if parsed is None:
        raise BadRequest(message)
    return iso_utc(parsed)


def _account_ref(session: Session, user_id: str, value: Any) -> int | None:
    if value is None:
        return None
    number = to_number(value)
    if number is None or not number.is_integer():
        raise BadRequest("Invalid account reference")
    owned = session.scalar(
        select(Account.id).where(Account.id == int(number), Account.user_id == user_id)
    )
    if owned is None:
        raise BadRequest("Invalid account reference")
    return owned


def _with_account_name(model: type, user_id: str):
    return (
        select(model, Account.name)
        .outerjoin(Account, model.account_id == Account.id)
        .where(model.user_id == user_id)
    )


def _row(entity: Any, account_name: str | None) -> dict[str, Any]:
    data = entity.as_dict()
    data["account_name"] = account_name
    return data


def _fetch_one(session: Session, model: type, user_id: str, row_id: Any) -> dict[str, Any]:
    stmt = (
        _with_account_name(model, user_id)
        .where(model.id == row_id)
        .execution_options(populate_existing=True)
    )
    result = session.execute(stmt).first()
    if result is None:
        raise NotFound(f"{model.__name__} not found")
    return _row(*result)


# ---------------------------
# Budgets
# ---------------------------


def list_budgets(session: Session, user_id: str) -> list[dict[str, Any]]:
    stmt = _with_account_name(Budget, user_id).order_by(
        Budget.period_start.desc(), Budget.created_at.desc(), Budget.id.desc()
    )
    return [_row(b, name) for b, name in session.execute(stmt)]


def create_budget(session: Session, user_id: str, body: Mapping[str, Any]) -> dict[str, Any]:
    name = body.get("name")
    category = body.get("category")
    if not (isinstance(name, str) and name.strip() and isinstance(category, str) and category.strip()):
        raise BadRequest("Name and category are required")

    start = parse_date(body.get("period_start"))
    end = parse_date(body.get("period_end"))
    if start is None or end is None:
        raise BadRequest("Invalid period dates")

    budget = Budget(
        user_id=user_id,
        name=name.strip(),
        category=category.strip(),
        amount=_number(body.get("amount"), "Invalid amount value"),
        spent=_number(body["spent"], "Invalid spent value") if "spent" in body else 0.0,
        period_start=iso_utc(start),
        period_end=iso_utc(end),
        status=optional_text(body.get("status"), "Invalid status") or "active",
        notes=optional_text(body.get("notes"), "Invalid notes"),
        account_id=_account_ref(session, user_id, body.get("account_id")),
    )
    insert_row(session, budget)
    return _fetch_one(session, Budget, user_id, budget.id)


def update_budget(
    session: Session, user_id: str, budget_id: int, body: Mapping[str, Any]
) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if isinstance(body.get("name"), str):
        values["name"] = body["name"].strip()
    if isinstance(body.get("category"), str):
        values["category"] = body["category"].strip()
    if "amount" in body:
        values["amount"] = _number(body["amount"], "Invalid amount value")
    if "spent" in body:
        values["spent"] = _number(body["spent"], "Invalid spent value")
    if isinstance(body.get("status"), str):
        values["status"] = body["status"]
    if "notes" in body and (body["notes"] is None or isinstance(body["notes"], str)):
        values["notes"] = body["notes"]
    if body.get("period_start"):
        values["period_start"] = _timestamp(body["period_start"], "Invalid period_start date")
    if body.get("period_end"):
        values["period_end"] = _timestamp(body["period_end"], "Invalid period_end date")
    if "account_id" in body:
        values["account_id"] = _account_ref(session, user_id, body["account_id"])

    if not values:
        raise BadRequest("No valid fields to update")
    if update_owned(session, Budget, user_id, budget_id, values) == 0:
        raise NotFound("Budget not found")
    return _fetch_one(session, Budget, user_id, budget_id)


def delete_budget(session: Session, user_id: str, budget_id: int) -> None:
    if delete_owned(session, Budget, user_id, Budget.id == budget_id) == 0:
        raise NotFound("Budget not found")


# ---------------------------
# Goals
# ---------------------------


def list_goals(session: Session, user_id: str) -> list[dict[str, Any]]:
    stmt = _with_account_name(Goal, user_id).order_by(
        Goal.target_date.asc(), Goal.created_at.desc()
    )
    return [_row(g, name) for g, name in session.execute(stmt)]


def create_goal(session: Session, user_id: str, body: Mapping[str, Any]) -> dict[str, Any]:
    title = body.get("title")
    if not isinstance(title, str) or not title.strip():
        raise BadRequest("Title is required")
    target_date = _timestamp(body.get("target_date"), "Invalid target date")

    target_amount = body.get("target_amount")
    raw_id = body.get("id")
    goal_id = raw_id if isinstance(raw_id, str) and raw_id.strip() else str(uuid.uuid4())

    goal = Goal(
        id=goal_id,
        user_id=user_id,
        title=title.strip(),
        description=optional_text(body.get("description"), "Invalid description"),
        target_amount=0.0
        if target_amount is None
        else _number(target_amount, "Invalid target amount"),
        current_amount=_number(body["current_amount"], "Invalid current amount")
        if "current_amount" in body
        else 0.0,
        target_date=target_date,
        category=optional_text(body.get("category"), "Invalid category") or "savings",
        status=optional_text(body.get("status"), "Invalid status") or "active",
        priority=optional_text(body.get("priority"), "Invalid priority") or "medium",
        account_id=_account_ref(session, user_id, body.get("account_id")),
    )
    insert_row(session, goal)
    return _fetch_one(session, Goal, user_id, goal_id)


def update_goal(
    session: Session, user_id: str, goal_id: str, body: Mapping[str, Any]
) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if isinstance(body.get("title"), str):
        values["title"] = body["title"].strip()
    if "description" in body and (body["description"] is None or isinstance(body["description"], str)):
        values["description"] = body["description"]
    if "target_amount" in body:
        values["target_amount"] = _number(body["target_amount"], "Invalid target amount")
    if "current_amount" in body:
        values["current_amount"] = _number(body["current_amount"], "Invalid current amount")
    if body.get("target_date"):
        values["target_date"] = _timestamp(body["target_date"], "Invalid target date")
    for key in ("category", "status", "priority"):
        if isinstance(body.get(key), str):
            values[key] = body[key]
    if "account_id" in body:
        values["account_id"] = _account_ref(session, user_id, body["account_id"])

    if not values:
        raise BadRequest("No valid fields to update")
    if update_owned(session, Goal, user_id, goal_id, values) == 0:
        raise NotFound("Goal not found")
    return _fetch_one(session, Goal, user_id, goal_id)


def delete_goal(session: Session, user_id: str, goal_id: str) -> None:
    if delete_owned(session, Goal, user_id, Goal.id == goal_id) == 0:
        raise NotFound("Goal not found")
