from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from ... import categories as service
from ..deps import CurrentUser, JsonBody, db_session

router = APIRouter(prefix="/api/transaction-categories", tags=["categories"])


@router.get("")
def list_categories(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch categories") as session:
        return {"categories": service.list_categories(session, user.id)}


@router.post("")
def create_category(body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to create category") as session:
        category = service.create_category(session, user.id, body)
    return {"id": category["id"], "category": category, "message": "Category created successfully"}


@router.put("/{category_id}")
def update_category(category_id: int, body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to update category") as session:
        service.update_category(session, user.id, category_id, body)
    return {"message": "Category updated successfully"}


@router.delete("/{category_id}")
def delete_category(category_id: int, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to delete category") as session:
        service.delete_category(session, user.id, category_id)
    return {"message": "Category deleted successfully"}
