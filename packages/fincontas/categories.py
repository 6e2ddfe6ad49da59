"""User-defined transaction categories."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from fincontas_db.models import TransactionCategory
from sqlalchemy import select
from sqlalchemy.orm import Session

from .errors import NotFound
from .formatters import to_int
from .persistence import delete_owned, insert_row, update_owned
from .schemas import optional_text, required_text


def _as_dict(category: TransactionCategory) -> dict[str, Any]:
    row = category.as_dict()
    raw = row.get("keywords")
    if raw:
        try:
            row["keywords"] = json.loads(raw)
        except json.JSONDecodeError:
            row["keywords"] = [raw]
    return row


def _fields(body: Mapping[str, Any]) -> dict[str, Any]:
    name = required_text(body.get("name"), "Category name is required")
    keywords = body.get("keywords")
    return {
        "name": name,
        "color": optional_text(body.get("color"), "Invalid color"),
        "description": optional_text(body.get("description"), "Invalid description"),
        "keywords": json.dumps(keywords, ensure_ascii=False) if keywords else None,
        "parent_id": to_int(body.get("parent_id")),
    }


def list_categories(session: Session, user_id: str) -> list[dict[str, Any]]:
    rows = session.scalars(
        select(TransactionCategory)
        .where(TransactionCategory.user_id == user_id)
        .order_by(TransactionCategory.name.asc())
    )
    return [_as_dict(c) for c in rows]


def create_category(session: Session, user_id: str, body: Mapping[str, Any]) -> dict[str, Any]:
    category = insert_row(session, TransactionCategory(user_id=user_id, **_fields(body)))
    return _as_dict(category)


def update_category(session: Session, user_id: str, category_id: int, body: Mapping[str, Any]) -> None:
    if update_owned(session, TransactionCategory, user_id, category_id, _fields(body)) == 0:
        raise NotFound("Category not found")


def delete_category(session: Session, user_id: str, category_id: int) -> None:
    deleted = delete_owned(
        session,
        TransactionCategory,
        user_id,
        TransactionCategory.id == category_id,
        TransactionCategory.is_default.is_(False),
    )
    if deleted == 0:
        raise NotFound("Category not found or cannot be deleted")
