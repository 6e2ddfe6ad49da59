from __future__ import annotations

import pytest
from fincontas_db.migrations import (
    DuplicateMigrationError,
    MigrationError,
    build_migration_set,
    load_bundled_migrations,
    migration_id_from_path,
)


def test_migration_id_is_file_name_without_suffix() -> None:
    assert migration_id_from_path("sql/0001_initial.sql") == "0001_initial"
    assert migration_id_from_path("C:\\repo\\sql\\0002_more.SQL") == "0002_more"


def test_units_are_ordered_by_id_regardless_of_input_order() -> None:
    units = build_migration_set(
        [
            ("0003_c", "SELECT 3;"),
            ("0001_a", "SELECT 1;"),
            ("0002_b", "SELECT 2;"),
        ]
    )
    assert [u.id for u in units] == ["0001_a", "0002_b", "0003_c"]


def test_ordering_is_by_codepoint_not_numeric() -> None:
    units = build_migration_set([("10_x", "SELECT 1;"), ("9_y", "SELECT 1;")])
    assert [u.id for u in units] == ["10_x", "9_y"]


def test_duplicate_ids_are_rejected() -> None:
    with pytest.raises(DuplicateMigrationError) as ei:
        build_migration_set([("0001_a", "SELECT 1;"), ("0001_a", "SELECT 2;")])
    assert ei.value.migration_id == "0001_a"


def test_empty_units_are_skipped_but_empty_set_is_an_error() -> None:
    units = build_migration_set([("0001_a", "-- nothing\n"), ("0002_b", "SELECT 1;")])
    assert [u.id for u in units] == ["0002_b"]

    with pytest.raises(MigrationError):
        build_migration_set([("0001_a", "-- nothing\n")])
    with pytest.raises(MigrationError):
        build_migration_set([])


def test_pragmas_are_separated_from_transactional_statements() -> None:
    (unit,) = build_migration_set(
        [("0001_a", "PRAGMA foreign_keys = ON;\nCREATE TABLE t (id INTEGER);\n")]
    )
    assert unit.pragmas == ("PRAGMA foreign_keys = ON",)
    assert unit.transactional == ("CREATE TABLE t (id INTEGER)",)


def test_bundled_migrations_are_loaded_in_order() -> None:
    units = load_bundled_migrations()
    ids = [u.id for u in units]
    assert ids == sorted(ids)
    assert ids[:3] == ["0001_initial", "0002_drop_recursive_triggers", "0003_webhook_logs_user"]
    initial = units[0]
    assert any(s.startswith("CREATE TABLE IF NOT EXISTS accounts") for s in initial.statements)
    assert any("CREATE TRIGGER" in s for s in initial.statements)
