"""
Validations.

A model registers zero-argument boolean predicates, in order. A record is
valid when every predicate holds, and `save` refuses to write an invalid
record.

Example:

    class Pokemon(Base):
        @validate
        def valid_name(self):
            return isinstance(self.name, str) and self.name != "" and self.is_unique("name")

Uniqueness is checked against the store. A record that is not persisted yet
must match no row; a persisted record may match exactly one row, its own.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from tinyrecord.infrastructure.store import quote_identifier

F = TypeVar("F", bound=Callable[..., Any])


def validate(method: F) -> F:
    """Mark an instance method as a validation predicate of its model."""
    method.__validation__ = True  # type: ignore[attr-defined]
    return method


class ValidationsMixin:
    """Validation behavior mixed into `Model`."""

    @classmethod
    def validations(cls) -> list[str]:
        return list(cls._descriptor().validations)

    @classmethod
    def add_validation(cls, method_name: str) -> None:
        """Append a predicate by name after the class has been created."""
        cls._descriptor().validations.append(method_name)

    def is_valid(self) -> bool:
        return all(getattr(self, name)() for name in type(self)._descriptor().validations)

    def is_unique(self, *attribute_names: str) -> bool:
        """
        True when no other row shares the values of `attribute_names`.

        NULL values never compare equal in SQL, so a None attribute always
        counts as unique.
        """
        names = [str(name) for name in attribute_names]
        clause = " AND ".join(f"{quote_identifier(name)} = :{name}" for name in names)
        model = type(self)
        rows = model._store().execute(
            f"SELECT COUNT({quote_identifier('id')}) FROM {quote_identifier(model.table_name())} "
            f"WHERE {clause}",
            {name: self.get(name) for name in names},
        )
        count = rows[0][0]
        if self.is_persisted():
            return 0 <= count <= 1
        return count == 0


__all__ = ["ValidationsMixin", "validate"]
