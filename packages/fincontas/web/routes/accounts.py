from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from ... import accounts as service
from ..deps import CurrentUser, JsonBody, db_session

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("")
def list_accounts(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch accounts") as session:
        return {"accounts": service.list_accounts(session, user.id)}


@router.post("", status_code=201)
def create_account(body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to create account") as session:
        return {"account": service.create_account(session, user.id, body)}


@router.put("/{account_id}")
def update_account(account_id: int, body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to update account") as session:
        return {"account": service.update_account(session, user.id, account_id, body)}


@router.delete("/{account_id}")
def delete_account(account_id: int, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to delete account") as session:
        service.delete_account(session, user.id, account_id)
    return {"message": "Account deleted successfully"}
