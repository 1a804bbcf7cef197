"""
Infrastructure package for tinyrecord.

Centralizes the store boundary: the `Store` protocol, the normalized `Row`,
the SQLite and PostgreSQL adapters, and the factory that opens them.
Keep this layer focused on I/O, decoupled from mapping logic.
"""

from tinyrecord.infrastructure.db_factory import build_dsn, get_sync_connection, open_store
from tinyrecord.infrastructure.postgres_store import PostgresStore, translate_placeholders
from tinyrecord.infrastructure.sqlite_store import SqliteStore
from tinyrecord.infrastructure.store import AbstractStore, Row, Store, quote_identifier

__all__ = [
    "AbstractStore",
    "PostgresStore",
    "Row",
    "SqliteStore",
    "Store",
    "build_dsn",
    "get_sync_connection",
    "open_store",
    "quote_identifier",
    "translate_placeholders",
]
