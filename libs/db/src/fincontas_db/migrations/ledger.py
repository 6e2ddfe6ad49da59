"""Migration Ledger: the ``schema_migrations`` table.

One row per applied migration unit. Helpers take an open SQLAlchemy
``Connection`` so they run inside the caller's transaction.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.engine import Connection

LEDGER_TABLE = "schema_migrations"

_CREATE_LEDGER_SQL = (
    f"CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} ("
    "id TEXT PRIMARY KEY, "
    "applied_at DATETIME NOT NULL"
    ")"
)


def ensure_ledger_table(conn: Connection) -> None:
    conn.execute(text(_CREATE_LEDGER_SQL))


def applied_migration_ids(conn: Connection) -> set[str]:
    rows = conn.execute(text(f"SELECT id FROM {LEDGER_TABLE}")).scalars().all()
    return {str(r) for r in rows}


def record_applied(conn: Connection, migration_id: str) -> None:
    conn.execute(
        text(f"INSERT INTO {LEDGER_TABLE} (id, applied_at) VALUES (:id, CURRENT_TIMESTAMP)"),
        {"id": migration_id},
    )


def ledger_entries(conn: Connection) -> list[tuple[str, str]]:
    """Return ``(id, applied_at)`` rows ordered by id."""

    rows = conn.execute(
        text(f"SELECT id, applied_at FROM {LEDGER_TABLE} ORDER BY id")
    ).all()
    return [(str(r[0]), str(r[1])) for r in rows]


__all__ = [
    "LEDGER_TABLE",
    "applied_migration_ids",
    "ensure_ledger_table",
    "ledger_entries",
    "record_applied",
]
