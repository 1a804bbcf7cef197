"""
Store factory utilities for tinyrecord.

Builds the store selected by settings (`DB_BACKEND`): a `SqliteStore` on a
database file, or a `PostgresStore` on a psycopg connection.

Connection establishment retries transient failures using tenacity. Once a
store is open, statements are never retried.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import psycopg
from psycopg import Connection
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from tinyrecord.config import Settings, get_settings
from tinyrecord.infrastructure.postgres_store import PostgresStore
from tinyrecord.infrastructure.sqlite_store import SqliteStore
from tinyrecord.infrastructure.store import Store
from tinyrecord.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a PostgreSQL DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def get_sync_connection(dsn: Optional[str] = None, attempts: Optional[int] = None) -> Connection:
    """
    Acquire a dedicated psycopg connection with automatic retry.

    Retries with exponential backoff on transient connection errors.

    Parameters
    ----------
    dsn : str, optional
        Connection string. Defaults to the DSN built from settings.
    attempts : int, optional
        Maximum connection attempts. Defaults to `DB_CONNECT_ATTEMPTS`.

    Returns
    -------
    Connection
        A new psycopg connection in autocommit mode.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    settings = get_settings()
    retrying = Retrying(
        stop=stop_after_attempt(attempts or settings.db_connect_attempts),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
        reraise=True,
    )
    for attempt in retrying:
        with attempt:
            return psycopg.connect(dsn or build_dsn(settings), autocommit=True)
    raise AssertionError("unreachable")  # pragma: no cover


def open_store(settings: Optional[Settings] = None) -> Store:
    """
    Open the store configured by `settings.db_backend`.

    Example
    -------
        store = open_store()
        Base.__registry__.bind(store)
    """
    settings = settings or get_settings()
    if settings.db_backend == "postgres":
        log.info("Opening PostgreSQL store", extra={"host": settings.db_host, "db": settings.db_name})
        return PostgresStore(get_sync_connection(build_dsn(settings)))

    path = Path(settings.sqlite_path)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)
    log.info("Opening SQLite store", extra={"path": str(path)})
    return SqliteStore(path)


__all__ = [
    "build_dsn",
    "get_sync_connection",
    "open_store",
]
