from __future__ import annotations

from fastapi.testclient import TestClient

from tests.helpers.db import fetch_all

EXPENSE = {"amount": 42.5, "description": "Mercado", "category": "Compras", "date": "2024-03-10"}


def test_create_and_list_expenses(client: TestClient, auth_headers: dict[str, str]) -> None:
    r = client.post("/api/expenses", json=EXPENSE, headers=auth_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "Expense created successfully"
    assert body["expense"]["amount"] == 42.5
    assert body["expense"]["is_synced_from_bank"] is False

    client.post(
        "/api/expenses", json={**EXPENSE, "date": "2024-04-01", "description": "Farmácia"},
        headers=auth_headers,
    )
    expenses = client.get("/api/expenses", headers=auth_headers).json()["expenses"]
    assert [e["description"] for e in expenses] == ["Farmácia", "Mercado"]


def test_expense_validation(client: TestClient, auth_headers: dict[str, str]) -> None:
    for bad in (
        {**EXPENSE, "amount": 0},
        {**EXPENSE, "amount": "12"},
        {**EXPENSE, "description": ""},
        {**EXPENSE, "date": "10/03/2024"},
        {k: v for k, v in EXPENSE.items() if k != "category"},
    ):
        r = client.post("/api/expenses", json=bad, headers=auth_headers)
        assert r.status_code == 400, bad
        assert r.json()["error"] == "Invalid request"
        assert r.json()["details"]

    assert fetch_all("SELECT id FROM expenses") == []


def test_update_and_delete_expense(client: TestClient, auth_headers: dict[str, str]) -> None:
    expense_id = client.post("/api/expenses", json=EXPENSE, headers=auth_headers).json()[
        "expense"
    ]["id"]

    r = client.put(
        f"/api/expenses/{expense_id}", json={**EXPENSE, "amount": 50}, headers=auth_headers
    )
    assert r.status_code == 200
    assert r.json() == {"message": "Expense updated successfully"}
    assert fetch_all("SELECT amount FROM expenses WHERE id = :id", id=expense_id) == [
        {"amount": 50}
    ]

    assert client.put("/api/expenses/999", json=EXPENSE, headers=auth_headers).status_code == 404

    r = client.delete(f"/api/expenses/{expense_id}", headers=auth_headers)
    assert r.json() == {"message": "Expense deleted successfully"}
    r = client.delete(f"/api/expenses/{expense_id}", headers=auth_headers)
    assert r.status_code == 404
    assert r.json() == {"error": "Expense not found"}
