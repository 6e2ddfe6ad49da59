from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from ... import transactions as service
from ...analytics import transaction_analytics
from ...errors import NotFound
from ...schemas import TransactionIn
from ..deps import CurrentUser, JsonBody, db_session

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("")
def list_transactions(request: Request, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch transactions") as session:
        return service.list_transactions(session, user.id, dict(request.query_params))


@router.post("", status_code=201)
def create_transaction(payload: TransactionIn, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to create transaction") as session:
        return {"transaction": service.create_transaction(session, user.id, payload)}


# Fixed paths are registered before "/{transaction_id}".
@router.get("/analytics")
def analytics(request: Request, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch analytics") as session:
        return transaction_analytics(session, user.id, dict(request.query_params))


@router.post("/bulk")
def bulk(body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to perform bulk operation") as session:
        service.bulk_operation(session, user.id, body)
    return {"message": "Bulk operation completed successfully"}


@router.get("/{transaction_id}")
def get_transaction(transaction_id: int, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to fetch transaction") as session:
        transaction = service.get_transaction(session, user.id, transaction_id)
    if transaction is None:
        raise NotFound("Transaction not found")
    return {"transaction": transaction}


@router.put("/{transaction_id}")
def update_transaction(transaction_id: int, body: JsonBody, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to update transaction") as session:
        return {
            "transaction": service.update_transaction(session, user.id, transaction_id, body)
        }


@router.delete("/{transaction_id}")
def delete_transaction(transaction_id: int, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to delete transaction") as session:
        service.delete_transaction(session, user.id, transaction_id)
    return {"message": "Transaction deleted successfully"}


@router.post("/{transaction_id}/categorize")
def categorize(transaction_id: int, user: CurrentUser) -> dict[str, Any]:
    with db_session("Failed to categorize transaction") as session:
        category = service.auto_categorize(session, user.id, transaction_id)
    return {"message": "Transaction categorized successfully", "category": category}
