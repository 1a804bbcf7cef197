"""
Store interface for tinyrecord.

The record engine talks to the relational database only through the `Store`
protocol defined here. Adapters (SQLite, PostgreSQL) normalize the rows their
drivers return into `Row` objects so the engine never branches on row shapes.

SQL handed to `execute` uses `?` for positional and `:name` for named
placeholders. WHERE fragments written by callers are used verbatim: values
must travel through bind parameters, the fragment text itself is trusted.
"""

from __future__ import annotations

import abc
from contextlib import AbstractContextManager
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Protocol,
    Sequence,
    Tuple,
    Union,
    runtime_checkable,
)

BindValues = Union[Sequence[Any], Mapping[str, Any]]


class Row:
    """
    One result row as ordered (column, value) pairs.

    Indexable by position (`row[0]`) and by column name (`row["name"]`).
    Iterating yields values in column order.
    """

    __slots__ = ("_columns", "_values")

    def __init__(self, pairs: Iterable[Tuple[str, Any]]) -> None:
        items = list(pairs)
        self._columns: Tuple[str, ...] = tuple(column for column, _ in items)
        self._values: Tuple[Any, ...] = tuple(value for _, value in items)

    @classmethod
    def from_sequence(cls, columns: Sequence[str], values: Sequence[Any]) -> "Row":
        return cls(zip(columns, values))

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    def items(self) -> List[Tuple[str, Any]]:
        return list(zip(self._columns, self._values))

    def as_dict(self) -> Dict[str, Any]:
        return dict(zip(self._columns, self._values))

    def __getitem__(self, key: Union[int, str]) -> Any:
        if isinstance(key, str):
            try:
                return self._values[self._columns.index(key)]
            except ValueError:
                raise KeyError(key) from None
        return self._values[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Row):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"Row({self.items()!r})"


@runtime_checkable
class Store(Protocol):
    """
    Parameterized-query executor used by the record engine.

    Methods
    -------
    execute(sql, bind_values)
        Run a statement. SELECT-style statements return rows, other
        statements return an empty list.
    last_inserted_id()
        Identifier assigned by the last INSERT on this connection.
    columns_of(table_name)
        Ordered column names of a table.
    transaction()
        Context manager wrapping several writes in one transaction.
    close()
        Release the underlying connection.
    """

    def execute(self, sql: str, bind_values: BindValues = ()) -> List[Row]:
        ...

    def last_inserted_id(self) -> int:
        ...

    def columns_of(self, table_name: str) -> List[str]:
        ...

    def transaction(self) -> AbstractContextManager[Any]:
        ...

    def close(self) -> None:
        ...


class AbstractStore(abc.ABC):
    """
    ABC helper for driver-backed stores.

    Subclasses implement `execute`, `last_inserted_id`, `transaction` and
    `close`; introspection is shared and reads the cursor description of an
    empty SELECT, so a missing table surfaces as the driver's own error.
    """

    @abc.abstractmethod
    def execute(self, sql: str, bind_values: BindValues = ()) -> List[Row]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def last_inserted_id(self) -> int:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def transaction(self) -> AbstractContextManager[Any]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def close(self) -> None:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def _describe(self, sql: str) -> List[str]:  # pragma: no cover
        """Column names reported by the driver for `sql`."""
        raise NotImplementedError

    def columns_of(self, table_name: str) -> List[str]:
        return self._describe(f"SELECT * FROM {quote_identifier(table_name)} LIMIT 0")

    def __enter__(self) -> "AbstractStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def quote_identifier(name: str) -> str:
    """Quote a table or column name for SQL ("index" -> "\"index\"")."""
    return '"' + name.replace('"', '""') + '"'


def normalize_binds(bind_values: BindValues) -> BindValues:
    """Return a mapping as a dict and any other sequence as a tuple."""
    if isinstance(bind_values, Mapping):
        return dict(bind_values)
    return tuple(bind_values)


__all__ = [
    "AbstractStore",
    "BindValues",
    "Row",
    "Store",
    "normalize_binds",
    "quote_identifier",
]
