"""Small query helpers for user-owned rows.

Every query is scoped by ``user_id``; updates and deletes report how many
rows they touched so callers can answer 404 for rows the user does not own.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

M = TypeVar("M")


def fetch_owned(session: Session, model: type[M], user_id: str, row_id: Any) -> M | None:
    stmt = (
        select(model)
        .where(model.id == row_id, model.user_id == user_id)  # type: ignore[attr-defined]
        .execution_options(populate_existing=True)
    )
    return session.scalars(stmt).first()


def update_owned(
    session: Session, model: type, user_id: str, row_id: Any, values: Mapping[str, Any]
) -> int:
    stmt = (
        update(model)
        .where(model.id == row_id, model.user_id == user_id)
        .values(**values, updated_at=func.current_timestamp())
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount


def delete_owned(session: Session, model: type, user_id: str, *criteria: Any) -> int:
    stmt = (
        delete(model)
        .where(model.user_id == user_id, *criteria)
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount


def insert_row(session: Session, row: M) -> M:
    """Add ``row``, flush it and reload server-side defaults."""

    session.add(row)
    session.flush()
    session.refresh(row)
    return row
