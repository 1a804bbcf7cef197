from __future__ import annotations

import sys

import typer

from tinyrecord.config import get_settings
from tinyrecord.infrastructure.db_factory import open_store
from tinyrecord.infrastructure.store import quote_identifier
from tinyrecord.utils.logging import configure_logging

app = typer.Typer(help="tinyrecord CLI.")


@app.callback()
def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    if settings.db_backend == "postgres":
        target = f"{settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    else:
        target = settings.sqlite_path
    typer.echo(f"backend={settings.db_backend} | DB={target} | env={settings.app_env}")


@app.command()
def columns(table: str = typer.Argument(..., help="Table to introspect.")) -> None:
    """
    List the columns of a table, in the order a model sees them.
    """
    with open_store() as store:
        names = store.columns_of(table)
    ordered = [c for c in names if c == "id"] + [c for c in names if c != "id"]
    typer.echo(", ".join(ordered))


@app.command()
def count(table: str = typer.Argument(..., help="Table to count rows of.")) -> None:
    """
    Count the rows of a table.
    """
    with open_store() as store:
        rows = store.execute(f'SELECT COUNT("id") FROM {quote_identifier(table)}')
    typer.echo(str(rows[0][0]))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
