from __future__ import annotations

from fastapi.testclient import TestClient
from fincontas_db.models import CreditCardBill, Investment

from tests.helpers.db import DEV_USER_ID, add_row, fetch_all, seed_account

BASE = "/api/credit-cards"


def _create(client: TestClient, headers: dict[str, str], **body) -> int:
    r = client.post(BASE, json={"name": "Visa", **body}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Credit card created successfully"
    return r.json()["id"]


def test_create_update_delete_card(client: TestClient, auth_headers: dict[str, str]) -> None:
    card_id = _create(client, auth_headers, due_day=10)

    cards = client.get(BASE, headers=auth_headers).json()["creditCards"]
    assert len(cards) == 1
    assert cards[0]["credit_limit"] == 0
    assert cards[0]["due_day"] == 10
    assert cards[0]["linked_account_name"] is None

    r = client.put(
        f"{BASE}/{card_id}", json={"credit_limit": "5000", "name": "Visa Gold"}, headers=auth_headers
    )
    assert r.json() == {"message": "Credit card updated successfully"}
    card = client.get(BASE, headers=auth_headers).json()["creditCards"][0]
    assert (card["name"], card["credit_limit"]) == ("Visa Gold", 5000)

    r = client.delete(f"{BASE}/{card_id}", headers=auth_headers)
    assert r.json() == {"message": "Credit card deleted successfully"}
    assert client.delete(f"{BASE}/{card_id}", headers=auth_headers).status_code == 404


def test_card_validation(client: TestClient, auth_headers: dict[str, str]) -> None:
    cases = [
        ({"name": ""}, "Name is required"),
        ({"name": "X", "credit_limit": "much"}, "Invalid credit limit"),
        ({"name": "X", "current_balance": []}, "Invalid current balance"),
        ({"name": "X", "due_day": 32}, "Invalid due day"),
    ]
    for body, message in cases:
        r = client.post(BASE, json=body, headers=auth_headers)
        assert r.status_code == 400, body
        assert r.json() == {"error": message}

    card_id = _create(client, auth_headers)
    r = client.put(f"{BASE}/{card_id}", json={"color": "red"}, headers=auth_headers)
    assert r.json() == {"error": "No valid fields to update"}
    r = client.put(f"{BASE}/999", json={"name": "Y"}, headers=auth_headers)
    assert r.json() == {"error": "Credit card not found"}


def test_link_and_available_accounts(client: TestClient, auth_headers: dict[str, str]) -> None:
    credit_a = seed_account(
        DEV_USER_ID, name="Cartão A", account_type="credit", institution_name="Banco A"
    )
    credit_b = seed_account(
        DEV_USER_ID,
        name="Cartão B",
        account_type="checking",
        account_subtype="creditCard",
        institution_name="Banco B",
    )
    seed_account(DEV_USER_ID, name="Corrente", account_type="checking")
    foreign = seed_account("someone_else", name="Alheio", account_type="credit")

    available = client.get(f"{BASE}/available-accounts", headers=auth_headers).json()["accounts"]
    assert [a["name"] for a in available] == ["Cartão A", "Cartão B"]

    card_id = _create(client, auth_headers)
    r = client.post(f"{BASE}/{card_id}/link", json={"accountId": credit_a}, headers=auth_headers)
    assert r.json() == {"message": "Credit card linked successfully"}

    available = client.get(f"{BASE}/available-accounts", headers=auth_headers).json()["accounts"]
    assert [a["id"] for a in available] == [credit_b]
    card = client.get(BASE, headers=auth_headers).json()["creditCards"][0]
    assert card["linked_account_name"] == "Cartão A"

    r = client.post(f"{BASE}/{card_id}/link", json={"accountId": foreign}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid account reference"}

    r = client.post(f"{BASE}/{card_id}/link", json={"accountId": None}, headers=auth_headers)
    assert r.status_code == 200
    assert fetch_all("SELECT linked_account_id FROM credit_cards") == [{"linked_account_id": None}]

    r = client.post(f"{BASE}/999/link", json={"accountId": credit_a}, headers=auth_headers)
    assert r.status_code == 404


def test_sync_copies_linked_account_figures(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    unlinked_id = _create(client, auth_headers)
    r = client.post(f"{BASE}/{unlinked_id}/sync", headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Credit card is not linked to a Pluggy account"}

    account_id = seed_account(
        DEV_USER_ID,
        name="Cartão Pluggy",
        account_type="credit",
        pluggy_account_id="acc-1",
        balance=1234.56,
        credit_limit=8000,
    )
    card_id = _create(client, auth_headers, name="Master")
    client.post(f"{BASE}/{card_id}/link", json={"accountId": account_id}, headers=auth_headers)

    r = client.post(f"{BASE}/{card_id}/sync", headers=auth_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "Credit card synced successfully"
    assert body["card"]["current_balance"] == 1234.56
    assert body["card"]["credit_limit"] == 8000
    assert body["card"]["last_synced_at"].endswith("Z")

    rows = fetch_all("SELECT current_balance, credit_limit FROM credit_cards WHERE id = :id", id=card_id)
    assert rows == [{"current_balance": 1234.56, "credit_limit": 8000}]

    assert client.post(f"{BASE}/999/sync", headers=auth_headers).status_code == 404


def test_holdings_summaries(client: TestClient, auth_headers: dict[str, str]) -> None:
    add_row(Investment(user_id=DEV_USER_ID, name="CDB", type="fixed_income", amount=1000))
    add_row(Investment(user_id="someone_else", name="Ações", type="stocks", amount=50))
    add_row(CreditCardBill(user_id=DEV_USER_ID, total_amount=321.0, bill_month=3, bill_year=2024))

    r = client.get("/api/investments", headers=auth_headers)
    assert [i["name"] for i in r.json()["investments"]] == ["CDB"]
    assert client.get("/api/loans", headers=auth_headers).json() == {"loans": []}
    bills = client.get("/api/credit-card-bills", headers=auth_headers).json()["bills"]
    assert [b["total_amount"] for b in bills] == [321.0]
