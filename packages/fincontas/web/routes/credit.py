from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from ... import credit as service
from ..deps import CurrentUser, JsonBody, db_session

router = APIRouter(prefix="/api/credit-cards", tags=["credit-cards"])
summaries = APIRouter(prefix="/api", tags=["summaries"])


@router.get("")
def list_credit_cards(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch credit cards") as session:
        return {"creditCards": service.list_credit_cards(session, user.id)}


@router.post("")
def create_credit_card(body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to create credit card") as session:
        card_id = service.create_credit_card(session, user.id, body)
    return {"id": card_id, "message": "Credit card created successfully"}


@router.get("/available-accounts")
def available_accounts(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch available accounts") as session:
        return {"accounts": service.available_accounts(session, user.id)}


@router.put("/{card_id}")
def update_credit_card(card_id: int, body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to update credit card") as session:
        service.update_credit_card(session, user.id, card_id, body)
    return {"message": "Credit card updated successfully"}


@router.delete("/{card_id}")
def delete_credit_card(card_id: int, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to delete credit card") as session:
        service.delete_credit_card(session, user.id, card_id)
    return {"message": "Credit card deleted successfully"}


@router.post("/{card_id}/link")
def link_credit_card(card_id: int, body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to link credit card") as session:
        service.link_credit_card(session, user.id, card_id, body.get("accountId"))
    return {"message": "Credit card linked successfully"}


@router.post("/{card_id}/sync")
def sync_credit_card(card_id: int, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to sync credit card") as session:
        synced = service.sync_credit_card(session, user.id, card_id)
    return {"message": "Credit card synced successfully", "card": synced}


@summaries.get("/investments")
def list_investments(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch investments") as session:
        return {"investments": service.list_investments(session, user.id)}


@summaries.get("/loans")
def list_loans(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch loans") as session:
        return {"loans": service.list_loans(session, user.id)}


@summaries.get("/credit-card-bills")
def list_bills(user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch credit card bills") as session:
        return {"bills": service.list_bills(session, user.id)}
