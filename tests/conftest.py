"""Pytest configuration for test isolation.

Every test gets its own file-backed SQLite database under ``tmp_path`` and a
fresh shared engine. File-backed databases let the migration runner, the API
and the seeding helpers use separate connections against the same state
(in-memory SQLite databases are per-connection).

API tests use the development token verifier: any non-empty bearer token
authenticates as ``DEV_USER_ID``.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from fincontas.config import Settings
from fincontas.web.app import create_app
from fincontas_db.client import reset_engine

from tests.helpers.db import DEV_USER_ID, migrate

AUTH_HEADERS = {"Authorization": "Bearer test-token"}
SETTINGS_ENV = [field.alias for field in Settings.model_fields.values()]


@pytest.fixture(autouse=True)
def _isolate_engine(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start and end every test without a shared engine bound to another database."""

    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    reset_engine()
    yield
    reset_engine()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+pysqlite:///{tmp_path / 'fincontas.db'}"


@pytest.fixture
def settings(database_url: str) -> Settings:
    return Settings(database_url=database_url, dev_user_id=DEV_USER_ID)


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    """App client over a migrated database, so helpers can seed rows before the first request."""

    app = create_app(settings)
    migrate(settings.database_url)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return dict(AUTH_HEADERS)
