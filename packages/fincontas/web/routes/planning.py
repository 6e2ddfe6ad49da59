from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from ... import planning as service
from ..deps import CurrentUser, JsonBody, db_session

budgets = APIRouter(prefix="/api/budgets", tags=["budgets"])
goals = APIRouter(prefix="/api/goals", tags=["goals"])


@budgets.get("")
def list_budgets(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch budgets") as session:
        return {"budgets": service.list_budgets(session, user.id)}


@budgets.post("", status_code=201)
def create_budget(body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to create budget") as session:
        return {"budget": service.create_budget(session, user.id, body)}


@budgets.put("/{budget_id}")
def update_budget(budget_id: int, body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to update budget") as session:
        return {"budget": service.update_budget(session, user.id, budget_id, body)}


@budgets.delete("/{budget_id}")
def delete_budget(budget_id: int, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to delete budget") as session:
        service.delete_budget(session, user.id, budget_id)
    return {"message": "Budget deleted successfully"}


@goals.get("")
def list_goals(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch goals") as session:
        return {"goals": service.list_goals(session, user.id)}


@goals.post("", status_code=201)
def create_goal(body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to create goal") as session:
        return {"goal": service.create_goal(session, user.id, body)}


@goals.put("/{goal_id}")
def update_goal(goal_id: str, body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to update goal") as session:
        return {"goal": service.update_goal(session, user.id, goal_id, body)}


@goals.delete("/{goal_id}")
def delete_goal(goal_id: str, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to delete goal") as session:
        service.delete_goal(session, user.id, goal_id)
    return {"message": "Goal deleted successfully"}
