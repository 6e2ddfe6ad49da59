"""Migration Loader: bundled SQL files to ordered :class:`MigrationUnit` objects.

Each ``sql/*.sql`` file shipped with this package is one migration unit. The
unit identifier is the file name without its ``.sql`` suffix; units apply in
ascending lexicographic order of that identifier.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from importlib import resources
from pathlib import PurePosixPath

from .errors import DuplicateMigrationError, MigrationError

logger = logging.getLogger(__name__)

_SQL_PACKAGE = "fincontas_db.migrations.sql"
_SQL_SUFFIX_RE = re.compile(r"\.sql$", re.IGNORECASE)
_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_LEADING_COMMENTS_RE = re.compile(r"^(?:\s+|--[^\n]*(?:\n|$)|/\*.*?\*/)*", re.DOTALL)


# ---------------------------
# Statement splitting
# ---------------------------


def _strip_leading_comments(statement: str) -> str:
    return _LEADING_COMMENTS_RE.sub("", statement, count=1)


def split_sql_statements(sql: str) -> list[str]:
    """Split a SQL script into individual statements.

    Semicolons end a statement except inside quoted strings, comments, and
    ``CREATE TRIGGER ... BEGIN ... END`` bodies. ``CASE ... END`` inside a
    trigger body is tracked so its ``END`` does not close the body early.
    The terminating ``;`` is removed and comment-only fragments are dropped.
    """

    statements: list[str] = []
    buf: list[str] = []
    in_single = in_double = in_line_comment = in_block_comment = False
    trigger_pending = False
    depth = 0
    first_word: str | None = None

    def flush() -> None:
        nonlocal trigger_pending, depth, first_word
        text = "".join(buf).strip()
        buf.clear()
        trigger_pending = False
        depth = 0
        first_word = None
        if text.endswith(";"):
            text = text[:-1].rstrip()
        if _strip_leading_comments(text):
            statements.append(text)

    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        nxt = sql[i + 1] if i + 1 < n else ""

        if in_line_comment:
            buf.append(ch)
            if ch == "\n":
                in_line_comment = False
            i += 1
            continue
        if in_block_comment:
            buf.append(ch)
            if ch == "*" and nxt == "/":
                buf.append(nxt)
                i += 1
                in_block_comment = False
            i += 1
            continue
        if in_single or in_double:
            buf.append(ch)
            if (in_single and ch == "'") or (in_double and ch == '"'):
                in_single = in_double = False
            i += 1
            continue

        if ch == "-" and nxt == "-":
            buf.append("--")
            in_line_comment = True
            i += 2
            continue
        if ch == "/" and nxt == "*":
            buf.append("/*")
            in_block_comment = True
            i += 2
            continue
        if ch == "'":
            in_single = True
            buf.append(ch)
            i += 1
            continue
        if ch == '"':
            in_double = True
            buf.append(ch)
            i += 1
            continue

        prev = sql[i - 1] if i > 0 else ""
        if (ch.isalpha() or ch == "_") and not (prev.isalnum() or prev == "_"):
            m = _WORD_RE.match(sql, i)
            assert m is not None  # guarded by the isalpha check
            word = m.group(0)
            upper = word.upper()
            if first_word is None:
                first_word = upper
            if upper == "TRIGGER" and first_word == "CREATE" and depth == 0:
                trigger_pending = True
            elif upper == "BEGIN" and (trigger_pending or depth > 0):
                depth += 1
                trigger_pending = False
            elif upper == "CASE" and depth > 0:
                depth += 1
            elif upper == "END" and depth > 0:
                depth -= 1
            buf.append(word)
            i = m.end()
            continue

        buf.append(ch)
        if ch == ";" and depth == 0:
            flush()
        i += 1

    flush()
    return statements


# ---------------------------
# Migration units
# ---------------------------


def is_pragma(statement: str) -> bool:
    """Return True for engine configuration statements (``PRAGMA ...``)."""

    return _strip_leading_comments(statement).upper().startswith("PRAGMA")


@dataclass(frozen=True, slots=True)
class MigrationUnit:
    """A named, ordered batch of SQL statements representing one schema change."""

    id: str
    statements: tuple[str, ...]

    @property
    def pragmas(self) -> tuple[str, ...]:
        return tuple(s for s in self.statements if is_pragma(s))

    @property
    def transactional(self) -> tuple[str, ...]:
        return tuple(s for s in self.statements if not is_pragma(s))


def migration_id_from_path(path: str) -> str:
    """Return the migration id for a file path (file name minus ``.sql``)."""

    name = PurePosixPath(path.replace("\\", "/")).name
    return _SQL_SUFFIX_RE.sub("", name)


def build_migration_set(sources: Iterable[tuple[str, str]]) -> tuple[MigrationUnit, ...]:
    """Build the ordered migration set from ``(id, sql)`` pairs.

    Pairs may arrive in any order. Raises :class:`DuplicateMigrationError`
    when an id repeats and :class:`MigrationError` when no unit has any
    statements. Units whose script contains no statements are skipped.
    """

    staged = sorted(sources, key=lambda pair: pair[0])
    seen: set[str] = set()
    units: list[MigrationUnit] = []
    for migration_id, sql in staged:
        if migration_id in seen:
            raise DuplicateMigrationError(
                f"Duplicate migration detected for id {migration_id!r}",
                migration_id=migration_id,
            )
        seen.add(migration_id)
        statements = split_sql_statements(sql)
        if not statements:
            logger.debug("Skipping empty migration %s", migration_id)
            continue
        units.append(MigrationUnit(id=migration_id, statements=tuple(statements)))

    if not units:
        raise MigrationError(
            "No SQL migrations were bundled; the migrations/sql directory must "
            "contain at least one .sql file"
        )
    return tuple(units)


def _bundled_sources() -> list[tuple[str, str]]:
    root = resources.files(_SQL_PACKAGE)
    sources: list[tuple[str, str]] = []
    for entry in root.iterdir():
        if entry.is_file() and _SQL_SUFFIX_RE.search(entry.name):
            sources.append((migration_id_from_path(entry.name), entry.read_text(encoding="utf-8")))
    return sources


def load_bundled_migrations() -> tuple[MigrationUnit, ...]:
    """Return the migration units bundled with this package, in apply order."""

    return build_migration_set(_bundled_sources())


__all__ = [
    "MigrationUnit",
    "build_migration_set",
    "is_pragma",
    "load_bundled_migrations",
    "migration_id_from_path",
    "split_sql_statements",
]
