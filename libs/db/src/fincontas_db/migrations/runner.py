"""Migration Runner: apply pending migration units exactly once.

``MigrationRunner.ensure_schema()`` is the entry point used by request
handlers. The first caller in a process performs the migration pass; callers
arriving while it runs block on the same lock and return once it finishes.
A failed pass leaves the runner incomplete so the next call retries from the
first unapplied unit.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError

from .errors import DuplicateMigrationError, MigrationError
from .ledger import applied_migration_ids, ensure_ledger_table, ledger_entries, record_applied
from .loader import MigrationUnit, load_bundled_migrations

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MigrationStatus:
    applied: list[tuple[str, str]]
    pending: list[str]


class MigrationRunner:
    """Apply an ordered set of migration units to ``engine``."""

    def __init__(self, engine: Engine, migrations: Sequence[MigrationUnit] | None = None) -> None:
        if migrations is None:
            migrations = load_bundled_migrations()
        units = sorted(migrations, key=lambda u: u.id)
        ids = [u.id for u in units]
        for prev, cur in zip(ids, ids[1:]):
            if prev == cur:
                raise DuplicateMigrationError(
                    f"Duplicate migration detected for id {cur!r}", migration_id=cur
                )
        self._engine = engine
        self._migrations: tuple[MigrationUnit, ...] = tuple(units)
        self._lock = threading.Lock()
        self._complete = False

    @property
    def migrations(self) -> tuple[MigrationUnit, ...]:
        return self._migrations

    @property
    def complete(self) -> bool:
        return self._complete

    def ensure_schema(self) -> list[str]:
        """Apply pending migrations once per process; return ids applied by this call."""

        if self._complete:
            return []
        with self._lock:
            if self._complete:
                return []
            applied = self._run_pending()
            self._complete = True
            return applied

    def pending_migrations(self) -> list[str]:
        with self._engine.begin() as conn:
            ensure_ledger_table(conn)
            done = applied_migration_ids(conn)
        return [u.id for u in self._migrations if u.id not in done]

    def status(self) -> MigrationStatus:
        with self._engine.begin() as conn:
            ensure_ledger_table(conn)
            entries = ledger_entries(conn)
        done = {mid for mid, _ in entries}
        return MigrationStatus(
            applied=entries,
            pending=[u.id for u in self._migrations if u.id not in done],
        )

    def _run_pending(self) -> list[str]:
        pending = self.pending_migrations()
        if not pending:
            logger.debug("Schema up to date (%d migrations)", len(self._migrations))
            return []
        by_id = {u.id: u for u in self._migrations}
        applied: list[str] = []
        for migration_id in pending:
            self.apply_migration(by_id[migration_id])
            applied.append(migration_id)
        logger.info("Applied %d migration(s): %s", len(applied), ", ".join(applied))
        return applied

    def apply_migration(self, unit: MigrationUnit) -> None:
        """Apply one unit: pragmas first, then statements plus ledger row in one transaction."""

        logger.info("Applying migration %s", unit.id)
        with self._engine.connect() as conn:
            for stmt in unit.pragmas:
                self._execute_pragma(conn, unit.id, stmt)
            with conn.begin():
                for stmt in unit.transactional:
                    try:
                        conn.exec_driver_sql(stmt)
                    except DBAPIError as exc:
                        logger.error("Migration %s failed on statement: %s", unit.id, stmt)
                        raise MigrationError(
                            f"Migration {unit.id} failed: {exc.orig}",
                            migration_id=unit.id,
                            statement=stmt,
                        ) from exc
                record_applied(conn, unit.id)

    @staticmethod
    def _execute_pragma(conn: Connection, migration_id: str, stmt: str) -> None:
        # Raw DBAPI cursor: no SQLAlchemy transaction is opened for pragmas.
        cursor = conn.connection.dbapi_connection.cursor()
        try:
            cursor.execute(stmt)
        except Exception as exc:
            raise MigrationError(
                f"Migration {migration_id} failed: {exc}",
                migration_id=migration_id,
                statement=stmt,
            ) from exc
        finally:
            cursor.close()


__all__ = ["MigrationRunner", "MigrationStatus"]
