"""SQL migration units bundled with ``fincontas_db`` and the runner that applies them."""

from .errors import DuplicateMigrationError, MigrationError
from .loader import (
    MigrationUnit,
    build_migration_set,
    load_bundled_migrations,
    migration_id_from_path,
    split_sql_statements,
)
from .runner import MigrationRunner, MigrationStatus

__all__ = [
    "DuplicateMigrationError",
    "MigrationError",
    "MigrationRunner",
    "MigrationStatus",
    "MigrationUnit",
    "build_migration_set",
    "load_bundled_migrations",
    "migration_id_from_path",
    "split_sql_statements",
]
