from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tests.helpers.db import DEV_USER_ID, fetch_all, seed_account, seed_transaction

BASE = "/api/transactions"


def test_create_transaction_normalizes_date(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    account_id = seed_account(DEV_USER_ID, name="Nubank")
    r = client.post(
        BASE,
        json={
            "amount": -35.9,
            "description": " iFood ",
            "category": "Alimentação",
            "date": "2024-02-10",
            "account_id": account_id,
        },
        headers=auth_headers,
    )
    assert r.status_code == 201, r.text
    tx = r.json()["transaction"]
    assert tx["date"] == "2024-02-10T00:00:00.000Z"
    assert tx["description"] == "iFood"
    assert tx["transaction_type"] == "expense"
    assert tx["account_name"] == "Nubank"
    assert tx["reconciled"] is False

    r = client.get(f"{BASE}/{tx['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["transaction"]["id"] == tx["id"]


def test_create_transaction_rejects_bad_input(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    base = {"amount": 10, "description": "x", "category": "Outros", "date": "2024-02-10"}

    r = client.post(BASE, json={**base, "date": "not a date"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request"

    r = client.post(BASE, json={**base, "transaction_type": "gift"}, headers=auth_headers)
    assert r.status_code == 400

    foreign = seed_account("someone_else")
    r = client.post(BASE, json={**base, "account_id": foreign}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid account reference"}


def test_list_filters_and_pagination(client: TestClient, auth_headers: dict[str, str]) -> None:
    seed_transaction(DEV_USER_ID, description="Uber centro", date="2024-01-05T00:00:00.000Z")
    seed_transaction(DEV_USER_ID, description="Padaria", date="2024-01-20T00:00:00.000Z")
    seed_transaction(
        DEV_USER_ID,
        description="Salário",
        amount=5000,
        transaction_type="income",
        category="Receita",
        date="2024-02-01T00:00:00.000Z",
    )
    seed_transaction("someone_else", description="Uber alheio")

    r = client.get(BASE, params={"pageSize": 2}, headers=auth_headers)
    body = r.json()
    assert [t["description"] for t in body["transactions"]] == ["Salário", "Padaria"]
    assert body["pagination"] == {"page": 1, "pageSize": 2, "total": 3, "totalPages": 2}

    r = client.get(BASE, params={"pageSize": 2, "page": 2}, headers=auth_headers)
    assert [t["description"] for t in r.json()["transactions"]] == ["Uber centro"]

    r = client.get(BASE, params={"description": "UBER"}, headers=auth_headers)
    assert [t["description"] for t in r.json()["transactions"]] == ["Uber centro"]

    r = client.get(BASE, params={"type": "income"}, headers=auth_headers)
    assert [t["description"] for t in r.json()["transactions"]] == ["Salário"]

    r = client.get(BASE, params={"from": "2024-01-10", "to": "2024-01-31"}, headers=auth_headers)
    assert [t["description"] for t in r.json()["transactions"]] == ["Padaria"]

    r = client.get(BASE, params={"amountGte": 0}, headers=auth_headers)
    assert [t["description"] for t in r.json()["transactions"]] == ["Salário"]

    r = client.get(BASE, params={"pageSize": 1000, "page": "zero"}, headers=auth_headers)
    assert r.json()["pagination"]["pageSize"] == 100
    assert r.json()["pagination"]["page"] == 1


def test_update_only_touches_editable_fields(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    tx_id = seed_transaction(DEV_USER_ID, amount=-20)

    r = client.put(
        f"{BASE}/{tx_id}",
        json={"category": "Saúde", "reconciled": "true", "amount": 999},
        headers=auth_headers,
    )
    assert r.status_code == 200, r.text
    tx = r.json()["transaction"]
    assert tx["category"] == "Saúde"
    assert tx["reconciled"] is True
    assert tx["amount"] == -20

    r = client.put(f"{BASE}/{tx_id}", json={"amount": 1}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "No valid fields to update"}

    r = client.put(f"{BASE}/999", json={"notes": "x"}, headers=auth_headers)
    assert r.status_code == 404


@pytest.mark.parametrize(
    ("body", "error"),
    [
        ({"description": None}, "Invalid description"),
        ({"description": "   "}, "Invalid description"),
        ({"category": 5}, "Invalid category"),
        ({"notes": {"a": 1}}, "Invalid notes"),
        ({"merchant_name": ["x"]}, "Invalid merchant_name"),
    ],
)
def test_update_rejects_wrongly_typed_fields(
    client: TestClient, auth_headers: dict[str, str], body: dict, error: str
) -> None:
    tx_id = seed_transaction(DEV_USER_ID)
    r = client.put(f"{BASE}/{tx_id}", json=body, headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"error": error}

    r = client.put(f"{BASE}/{tx_id}", json={"notes": None}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["transaction"]["notes"] is None


def test_delete_and_get_missing(client: TestClient, auth_headers: dict[str, str]) -> None:
    tx_id = seed_transaction(DEV_USER_ID)
    other_id = seed_transaction("someone_else")

    assert client.get(f"{BASE}/{other_id}", headers=auth_headers).status_code == 404
    assert client.delete(f"{BASE}/{other_id}", headers=auth_headers).status_code == 404

    r = client.delete(f"{BASE}/{tx_id}", headers=auth_headers)
    assert r.json() == {"message": "Transaction deleted successfully"}
    r = client.get(f"{BASE}/{tx_id}", headers=auth_headers)
    assert r.status_code == 404
    assert r.json() == {"error": "Transaction not found"}


def test_auto_categorize(client: TestClient, auth_headers: dict[str, str]) -> None:
    tx_id = seed_transaction(DEV_USER_ID, description="UBER *TRIP", category="Outros")

    r = client.post(f"{BASE}/{tx_id}/categorize", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Transaction categorized successfully", "category": "Transporte"}
    assert fetch_all("SELECT category FROM transactions WHERE id = :id", id=tx_id) == [
        {"category": "Transporte"}
    ]

    assert client.post(f"{BASE}/999/categorize", headers=auth_headers).status_code == 404


def test_bulk_operations(client: TestClient, auth_headers: dict[str, str]) -> None:
    a = seed_transaction(DEV_USER_ID)
    b = seed_transaction(DEV_USER_ID)
    foreign = seed_transaction("someone_else", category="Outros")

    r = client.post(
        f"{BASE}/bulk",
        json={
            "operation": "categorize",
            "transactionIds": [a, b, foreign],
            "params": {"category": "Lazer"},
        },
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.json() == {"message": "Bulk operation completed successfully"}
    rows = fetch_all("SELECT id, category FROM transactions ORDER BY id")
    assert rows == [
        {"id": a, "category": "Lazer"},
        {"id": b, "category": "Lazer"},
        {"id": foreign, "category": "Outros"},
    ]

    client.post(
        f"{BASE}/bulk",
        json={"operation": "reconcile", "transactionIds": [a], "params": {"reconciled": True}},
        headers=auth_headers,
    )
    assert fetch_all("SELECT reconciled FROM transactions WHERE id = :id", id=a) == [
        {"reconciled": 1}
    ]

    client.post(
        f"{BASE}/bulk",
        json={"operation": "delete", "transactionIds": [str(b), foreign]},
        headers=auth_headers,
    )
    assert [r["id"] for r in fetch_all("SELECT id FROM transactions ORDER BY id")] == [a, foreign]


def test_bulk_validation(client: TestClient, auth_headers: dict[str, str]) -> None:
    cases = [
        ({"transactionIds": [1]}, "Invalid bulk operation parameters"),
        ({"operation": "delete", "transactionIds": "1"}, "Invalid bulk operation parameters"),
        ({"operation": "delete", "transactionIds": ["x", None]}, "No valid transactions selected"),
        ({"operation": "categorize", "transactionIds": [1]}, "Category is required for categorize operation"),
        (
            {"operation": "categorize", "transactionIds": [1], "params": {"category": 3}},
            "Category is required for categorize operation",
        ),
        ({"operation": "archive", "transactionIds": [1]}, "Invalid operation"),
    ]
    for body, message in cases:
        r = client.post(f"{BASE}/bulk", json=body, headers=auth_headers)
        assert r.status_code == 400, body
        assert r.json() == {"error": message}


def test_analytics_endpoint(client: TestClient, auth_headers: dict[str, str]) -> None:
    account_id = seed_account(DEV_USER_ID)
    seed_transaction(
        DEV_USER_ID, amount=30, category="Alimentação", merchant_name="iFood",
        date="2024-01-10T00:00:00.000Z", account_id=account_id,
    )
    seed_transaction(
        DEV_USER_ID, amount=70, category="Transporte", merchant_name="Uber",
        date="2024-02-03T00:00:00.000Z", account_id=account_id,
    )
    seed_transaction(DEV_USER_ID, amount=500, category="Outros", date="2023-06-01T00:00:00.000Z")

    r = client.get(f"{BASE}/analytics", params={"from": "2024-01-01"}, headers=auth_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["totalTransactions"] == 2
    assert data["totalAmount"] == 100
    assert data["averageAmount"] == 50
    assert [m["month"] for m in data["monthlyTrends"]] == ["2024-02", "2024-01"]
    assert [m["merchant_name"] for m in data["topMerchants"]] == ["Uber", "iFood"]
    shares = {c["category"]: c["percentage"] for c in data["categoryBreakdown"]}
    assert shares == {"Alimentação": 30, "Transporte": 70}

    r = client.get(f"{BASE}/analytics", params={"accountId": account_id}, headers=auth_headers)
    assert r.json()["totalTransactions"] == 2
