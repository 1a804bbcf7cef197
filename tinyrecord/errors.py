"""
Exception hierarchy for tinyrecord.

"Not found" is never an exception: `find`/`find_by` return None and `where`
returns an empty list. Errors raised by the store driver (psycopg, sqlite3)
are not wrapped and reach the caller unchanged.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TinyRecordError(Exception):
    """Base exception for all tinyrecord errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.message} [{context_str}]"


class InvalidRecordError(TinyRecordError):
    """Raised by `save`/`create` when a record fails its validations."""

    def __init__(self, record: Any) -> None:
        super().__init__(
            "Invalid record",
            context={"model": type(record).__name__, "id": record.id},
        )
        self.record = record


class UnknownAttributeError(TinyRecordError):
    """Raised when an attribute name does not match a column of the table."""

    def __init__(self, model: type, attribute: str) -> None:
        super().__init__(
            f"Unknown attribute '{attribute}' for {model.__name__}",
            context={"table": model.table_name()},
        )
        self.model = model
        self.attribute = attribute


class NameResolutionError(TinyRecordError):
    """Raised by `constantize` when a class name cannot be resolved."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Uninitialized constant {name}")
        self.name = name


class FrozenRecordError(TinyRecordError):
    """Raised when mutating a destroyed record or re-assigning its id."""

    def __init__(self, record: Any, message: str = "Can't modify frozen record") -> None:
        super().__init__(message, context={"model": type(record).__name__, "id": record.id})
        self.record = record


class StoreNotBoundError(TinyRecordError):
    """Raised when a registry is used before a store has been bound to it."""


class AssociationError(TinyRecordError):
    """Raised when an association declaration cannot be resolved."""


__all__ = [
    "TinyRecordError",
    "InvalidRecordError",
    "UnknownAttributeError",
    "NameResolutionError",
    "FrozenRecordError",
    "StoreNotBoundError",
    "AssociationError",
]
