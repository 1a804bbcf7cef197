"""
SQLite store adapter.

sqlite3 understands the `?` and `:name` placeholders natively, so statements
are passed through untouched. The connection runs in autocommit mode;
`transaction()` issues BEGIN/COMMIT/ROLLBACK explicitly.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, List, Optional, Union

from tinyrecord.infrastructure.store import AbstractStore, BindValues, Row, normalize_binds
from tinyrecord.utils.logging import get_logger

log = get_logger(__name__)


class SqliteStore(AbstractStore):
    """
    Store backed by a single `sqlite3` connection.

    Parameters
    ----------
    path : str | Path
        Database file, or ":memory:" for a private in-memory database.
    """

    def __init__(self, path: Union[str, Path] = ":memory:") -> None:
        self.path = str(path)
        self._conn = sqlite3.connect(self.path, isolation_level=None)
        self._last_id: Optional[int] = None

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def execute(self, sql: str, bind_values: BindValues = ()) -> List[Row]:
        params = normalize_binds(bind_values)
        log.debug("execute", extra={"sql": sql, "binds": params})
        cur = self._conn.execute(sql, params)
        try:
            if cur.description is None:
                if cur.lastrowid:
                    self._last_id = cur.lastrowid
                return []
            columns = [d[0] for d in cur.description]
            return [Row.from_sequence(columns, values) for values in cur.fetchall()]
        finally:
            cur.close()

    def last_inserted_id(self) -> int:
        if self._last_id is None:
            raise sqlite3.OperationalError("no row has been inserted on this connection")
        return self._last_id

    def _describe(self, sql: str) -> List[str]:
        cur = self._conn.execute(sql)
        try:
            return [d[0] for d in cur.description]
        finally:
            cur.close()

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """
        Wrap writes in a transaction, committing on success.

        Example
        -------
            with store.transaction():
                store.execute('DELETE FROM "pokemons"')
        """
        self._conn.execute("BEGIN")
        try:
            yield
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        else:
            self._conn.execute("COMMIT")

    def close(self) -> None:
        self._conn.close()


__all__ = ["SqliteStore"]
