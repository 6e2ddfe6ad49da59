"""Console interface for FinContas.

Environment variables (notably ``DATABASE_URL``) are loaded from a local
``.env`` using ``python-dotenv`` in the root callback before any command runs.
"""

from __future__ import annotations

from pathlib import Path

import typer
from dotenv import load_dotenv
from fincontas_db import MigrationError, MigrationRunner
from fincontas_db.client import get_engine
from sqlalchemy.exc import SQLAlchemyError

from .logging_setup import configure_logging

# DATABASE_URL missing (RuntimeError), unusable URL or failing migration.
_CLI_ERRORS = (MigrationError, RuntimeError, SQLAlchemyError)

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="FinContas backend: apply schema migrations and serve the HTTP API.",
)


def _runner(database_url: str | None) -> MigrationRunner:
    return MigrationRunner(get_engine(database_url=database_url))


@app.command("migrate")
def migrate_cmd(
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Apply pending migrations and print the ids applied."""

    try:
        applied = _runner(database_url).ensure_schema()
    except _CLI_ERRORS as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    if not applied:
        typer.echo("Schema is up to date.")
        return
    for migration_id in applied:
        typer.echo(f"applied {migration_id}")


@app.command("status")
def status_cmd(
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Show applied ledger entries and pending migration ids."""

    try:
        status = _runner(database_url).status()
    except _CLI_ERRORS as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    for migration_id, applied_at in status.applied:
        typer.echo(f"applied  {migration_id}  {applied_at}")
    for migration_id in status.pending:
        typer.echo(f"pending  {migration_id}")
    if not status.pending:
        typer.echo("No pending migrations.")


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8787, help="Port to listen on."),
    reload: bool = typer.Option(False, help="Reload on code changes (development)."),
) -> None:
    """Run the HTTP API under uvicorn."""

    import uvicorn

    uvicorn.run(
        "fincontas.web.app:create_app", factory=True, host=host, port=port, reload=reload
    )


@app.callback()
def _root() -> None:
    """Load ``.env`` from the current directory and configure logging."""

    # override=False keeps variables already set in the environment
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
