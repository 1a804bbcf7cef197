"""
Seeding script for tinyrecord databases.

Reads a JSON document mapping table names to lists of rows, for example

    {
      "pokemons": [{"id": 25, "index": 25, "name": "Pikachu"}],
      "categories": [{"id": 1, "name": "Mouse"}]
    }

and inserts every row with parameterized INSERT statements inside a single
transaction. Rows are written as given, ids included, bypassing validations.
"""

from __future__ import annotations

import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List

import typer
from pydantic import RootModel

from tinyrecord.config import get_settings
from tinyrecord.infrastructure.db_factory import open_store
from tinyrecord.infrastructure.store import Store, quote_identifier
from tinyrecord.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Seed tables from a JSON document.")
log = get_logger(__name__)


class SeedTables(RootModel[Dict[str, List[Dict[str, Any]]]]):
    """Table name -> rows (column -> scalar value)."""


def _load_tables(path: Path) -> SeedTables:
    with path.open("r", encoding="utf-8") as f:
        return SeedTables.model_validate(json.load(f))


def _seed_row(store: Store, table_name: str, row: Dict[str, Any]) -> None:
    identifiers = ", ".join(quote_identifier(name) for name in row)
    placeholders = ", ".join(f":{name}" for name in row)
    store.execute(
        f"INSERT INTO {quote_identifier(table_name)} ({identifiers}) VALUES ({placeholders})",
        row,
    )


def _seed_tables(store: Store, tables: SeedTables, reset: bool = True) -> int:
    """
    Insert all rows in one transaction; returns the number of rows written.

    With `reset`, the listed tables are emptied first.
    """
    written = 0
    with store.transaction():
        if reset:
            for table_name in tables.root:
                store.execute(f"DELETE FROM {quote_identifier(table_name)}")
        for table_name, rows in tables.root.items():
            for row in rows:
                _seed_row(store, table_name, row)
            written += len(rows)
            log.info("Seeded table", extra={"table": table_name, "rows": len(rows)})
    return written


@app.command()
def main(
    source: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="JSON file mapping table names to rows.",
    ),
    reset: bool = typer.Option(
        True,
        "--reset/--no-reset",
        help="Empty the listed tables before inserting.",
    ),
) -> None:
    """
    Load a JSON document of tables into the configured store.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    start = time.perf_counter()
    tables = _load_tables(source)
    with open_store(settings) as store:
        written = _seed_tables(store, tables, reset=reset)
    duration = time.perf_counter() - start
    typer.echo(f"Seeded {written:,} rows into {len(tables.root)} tables in {duration:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
