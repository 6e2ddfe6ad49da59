"""Exceptions raised by the migration loader and runner."""

from __future__ import annotations


class MigrationError(RuntimeError):
    """A migration could not be loaded or applied.

    When raised for a failing statement, ``migration_id`` and ``statement``
    identify what failed and the driver error is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        migration_id: str | None = None,
        statement: str | None = None,
    ) -> None:
        super().__init__(message)
        self.migration_id = migration_id
        self.statement = statement


class DuplicateMigrationError(MigrationError):
    """Two bundled migration units share the same identifier."""


__all__ = ["DuplicateMigrationError", "MigrationError"]
