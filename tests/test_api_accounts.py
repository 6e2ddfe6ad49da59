from __future__ import annotations

from fastapi.testclient import TestClient

from tests.helpers.db import DEV_USER_ID, seed_account


def test_create_and_list_accounts(client: TestClient, auth_headers: dict[str, str]) -> None:
    r = client.post(
        "/api/accounts",
        json={"name": "Nubank", "account_type": "checking", "balance": "150.25"},
        headers=auth_headers,
    )
    assert r.status_code == 201, r.text
    account = r.json()["account"]
    assert account["name"] == "Nubank"
    assert account["balance"] == 150.25
    assert account["currency_code"] == "BRL"
    assert account["user_id"] == "user_test"

    client.post(
        "/api/accounts",
        json={"name": "Itaú", "account_type": "savings"},
        headers=auth_headers,
    )

    r = client.get("/api/accounts", headers=auth_headers)
    assert r.status_code == 200
    names = [a["name"] for a in r.json()["accounts"]]
    assert names == ["Itaú", "Nubank"]


def test_create_requires_name_and_type(client: TestClient, auth_headers: dict[str, str]) -> None:
    r = client.post("/api/accounts", json={"name": "Sem tipo"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Name and account type are required"}

    r = client.post(
        "/api/accounts",
        json={"name": "X", "account_type": "checking", "balance": "abc"},
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid balance value"


def test_update_account(client: TestClient, auth_headers: dict[str, str]) -> None:
    account_id = client.post(
        "/api/accounts", json={"name": "Old", "account_type": "checking"}, headers=auth_headers
    ).json()["account"]["id"]

    r = client.put(
        f"/api/accounts/{account_id}",
        json={"name": "New", "balance": 10, "is_active": False, "unknown": 1},
        headers=auth_headers,
    )
    assert r.status_code == 200, r.text
    account = r.json()["account"]
    assert account["name"] == "New"
    assert account["balance"] == 10
    assert account["is_active"] is False

    r = client.put(f"/api/accounts/{account_id}", json={"unknown": 1}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "No valid fields to update"


def test_accounts_are_scoped_to_the_user(client: TestClient, auth_headers: dict[str, str]) -> None:
    other_id = seed_account("someone_else", name="Not mine")

    r = client.get("/api/accounts", headers=auth_headers)
    assert r.json()["accounts"] == []

    r = client.put(f"/api/accounts/{other_id}", json={"name": "Hijack"}, headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Account not found"

    r = client.delete(f"/api/accounts/{other_id}", headers=auth_headers)
    assert r.status_code == 404


def test_delete_account(client: TestClient, auth_headers: dict[str, str]) -> None:
    account_id = client.post(
        "/api/accounts", json={"name": "Temp", "account_type": "checking"}, headers=auth_headers
    ).json()["account"]["id"]

    r = client.delete(f"/api/accounts/{account_id}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Account deleted successfully"}
    assert client.get("/api/accounts", headers=auth_headers).json()["accounts"] == []

    r = client.delete(f"/api/accounts/{account_id}", headers=auth_headers)
    assert r.status_code == 404


def test_account_text_fields_must_be_strings(
    client: TestClient, auth_headers: dict[str, str]
) -> None:
    r = client.post(
        "/api/accounts", json={"name": {"x": 1}, "account_type": "checking"}, headers=auth_headers
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Name and account type are required"}

    r = client.post(
        "/api/accounts",
        json={"name": "Inter", "account_type": "checking", "institution_name": 42},
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid institution name"}

    account_id = seed_account(DEV_USER_ID)
    r = client.put(
        f"/api/accounts/{account_id}", json={"account_subtype": ["x"]}, headers=auth_headers
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid account subtype"}

    r = client.put(
        f"/api/accounts/{account_id}", json={"account_subtype": None}, headers=auth_headers
    )
    assert r.status_code == 200
    assert r.json()["account"]["account_subtype"] is None
