"""
PostgreSQL store adapter built on psycopg 3.

psycopg uses the `format`/`pyformat` paramstyles, so statements written with
`?` and `:name` placeholders are translated before execution. Quoted strings,
quoted identifiers, and `::` casts keep their meaning; every literal `%`
(inside quotes or not) is doubled since parameters are always passed.

The inserted id is read back with `SELECT lastval()`, which is valid right
after an INSERT into a table whose id comes from a sequence (SERIAL,
BIGSERIAL, IDENTITY).
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Generator, List

from psycopg import Connection

from tinyrecord.infrastructure.store import AbstractStore, BindValues, Row, normalize_binds
from tinyrecord.utils.logging import get_logger

log = get_logger(__name__)

_PLACEHOLDER = re.compile(
    r"""
    '(?:[^']|'')*'          # string literal
    | "(?:[^"]|"")*"        # quoted identifier
    | ::                    # type cast
    | :(?P<name>[A-Za-z_]\w*)
    | \?
    | %
    """,
    re.VERBOSE,
)


def translate_placeholders(sql: str) -> str:
    """
    Rewrite `?` and `:name` placeholders into psycopg's `%s` / `%(name)s`.

    Example
    -------
        translate_placeholders('"name" = :name AND "index" > ?')
        # '"name" = %(name)s AND "index" > %s'
    """

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if match.group("name"):
            return f"%({match.group('name')})s"
        if token == "?":
            return "%s"
        if token == "%":
            return "%%"
        return token.replace("%", "%%")

    return _PLACEHOLDER.sub(_replace, sql)


class PostgresStore(AbstractStore):
    """
    Store backed by one psycopg connection in autocommit mode.

    Obtain connections through `tinyrecord.infrastructure.db_factory` to get
    connection retries; the store itself never retries a statement.
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn
        self._conn.autocommit = True

    @property
    def connection(self) -> Connection:
        return self._conn

    def execute(self, sql: str, bind_values: BindValues = ()) -> List[Row]:
        params = normalize_binds(bind_values)
        statement = translate_placeholders(sql)
        log.debug("execute", extra={"sql": statement, "binds": params})
        with self._conn.cursor() as cur:
            cur.execute(statement, params)
            if cur.description is None:
                return []
            columns = [d.name for d in cur.description]
            return [Row.from_sequence(columns, values) for values in cur.fetchall()]

    def last_inserted_id(self) -> int:
        with self._conn.cursor() as cur:
            cur.execute("SELECT lastval()")
            (value,) = cur.fetchone()
        return int(value)

    def _describe(self, sql: str) -> List[str]:
        with self._conn.cursor() as cur:
            cur.execute(sql)
            return [d.name for d in cur.description]

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        with self._conn.transaction():
            yield

    def close(self) -> None:
        self._conn.close()


__all__ = ["PostgresStore", "translate_placeholders"]
