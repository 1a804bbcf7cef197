"""
Record engine.

`Model` maps a class to a table and a record to a row. Columns are not
declared: they are introspected from the store the first time they are
needed. Attributes are held in a per-record mapping restricted to those
columns and exposed as `record["name"]`, `record.get("name")`,
`record.set("name", value)`, or plain attribute access `record.name`.

    registry = Registry()
    Base = declarative_base(registry=registry)

    class Pokemon(Base):
        pass

    registry.bind(SqliteStore("db/development.sqlite3"))
    pikachu = Pokemon.create(index=25, name="Pikachu")
    Pokemon.find_by('"name" = ?', "Pikachu")

Lifecycle: a new record has no id; `save` INSERTs it and stores the id the
database assigned; later saves UPDATE the row; `destroy` DELETEs the row and
freezes the record (still readable, no longer writable).

The clause passed to `where`/`find_by` is inserted into the SQL verbatim.
Only bind values are escaped, so never build a clause from untrusted input.
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Tuple

from tinyrecord.errors import FrozenRecordError, InvalidRecordError, UnknownAttributeError
from tinyrecord.infrastructure.store import Row, Store, quote_identifier
from tinyrecord.schema import ModelDescriptor, Registry
from tinyrecord.utils.logging import get_logger
from tinyrecord.validations import ValidationsMixin

log = get_logger(__name__)

Mutation = Callable[["Model"], Any]


class Model(ValidationsMixin):
    """
    Base class of mapped models. Subclass the class returned by
    `declarative_base` rather than this one.
    """

    __registry__: ClassVar[Registry]
    __abstract__: ClassVar[bool] = True

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.__dict__.get("__abstract__", False):
            return
        cls.__registry__.register(cls)

    # Schema ---------------------------------------------------------------

    @classmethod
    def _descriptor(cls) -> ModelDescriptor:
        return cls.__registry__.descriptor(cls)

    @classmethod
    def _store(cls) -> Store:
        return cls.__registry__.store

    @classmethod
    def table_name(cls) -> str:
        """Pokemon.table_name() -> "pokemons" """
        return cls._descriptor().table_name

    @classmethod
    def set_table_name(cls, value: str) -> None:
        cls._descriptor().set_table_name(value)

    @classmethod
    def column_names(cls) -> Tuple[str, ...]:
        """Pokemon.column_names() -> ("id", "index", "name")"""
        return cls._descriptor().column_names

    # Construction ---------------------------------------------------------

    def __init__(
        self,
        attributes: Optional[Mapping[str, Any]] = None,
        mutation: Optional[Mutation] = None,
        /,
        **kwargs: Any,
    ) -> None:
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_attributes", dict.fromkeys(type(self).column_names()))
        self.assign_attributes(attributes, **kwargs)
        if mutation is not None:
            mutation(self)

    @classmethod
    def new(
        cls,
        attributes: Optional[Mapping[str, Any]] = None,
        mutation: Optional[Mutation] = None,
        /,
        **kwargs: Any,
    ) -> "Model":
        return cls(attributes, mutation, **kwargs)

    @classmethod
    def create(
        cls,
        attributes: Optional[Mapping[str, Any]] = None,
        mutation: Optional[Mutation] = None,
        /,
        **kwargs: Any,
    ) -> "Model":
        """
        Build and save a record.

        Raises InvalidRecordError when validations fail.

        Example
        -------
            Pokemon.create(index=25, name="Pikachu")
            Pokemon.create(None, lambda pokemon: pokemon.set("name", "Pikachu"))
        """
        record = cls(attributes, mutation, **kwargs)
        record.save()
        return record

    @classmethod
    def _build_record(cls, row: Row) -> "Model":
        return cls(row.as_dict())

    # Attributes -----------------------------------------------------------

    @property
    def id(self) -> Optional[int]:
        return self._attributes.get("id")

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Any:
        if name not in self._attributes:
            raise UnknownAttributeError(type(self), name)
        return self._attributes[name]

    def set(self, name: str, value: Any) -> None:
        if name not in self._attributes:
            raise UnknownAttributeError(type(self), name)
        if self._frozen:
            raise FrozenRecordError(self)
        if name == "id" and self.id is not None and value != self.id:
            raise FrozenRecordError(self, "id can't be changed once assigned")
        self._attributes[name] = value

    def assign_attributes(self, attributes: Optional[Mapping[str, Any]] = None, /, **kwargs: Any) -> None:
        """
        Set several attributes at once.

        Every key is checked before anything is assigned, so an unknown key
        leaves the record untouched.
        """
        values = {**(attributes or {}), **kwargs}
        for name in values:
            if name not in self._attributes:
                raise UnknownAttributeError(type(self), name)
        for name, value in values.items():
            self.set(name, value)

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails.
        if not name.startswith("_"):
            attributes = self.__dict__.get("_attributes", {})
            if name in attributes:
                return attributes[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.__dict__.get("_attributes", {}):
            self.set(name, value)
        else:
            super().__setattr__(name, value)

    # Queries --------------------------------------------------------------

    @classmethod
    def _select(
        cls,
        clause: Optional[str],
        binds: Tuple[Any, ...],
        named: Dict[str, Any],
        limit: Optional[int] = None,
    ) -> List["Model"]:
        if binds and named:
            raise ValueError("Use either positional or named bind values, not both")
        if len(binds) == 1 and isinstance(binds[0], Mapping):
            named = dict(binds[0])
            binds = ()
        sql = f"SELECT * FROM {quote_identifier(cls.table_name())}"
        if clause is not None:
            sql += f" WHERE {clause}"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        rows = cls._store().execute(sql, named or binds)
        return [cls._build_record(row) for row in rows]

    @classmethod
    def all(cls) -> List["Model"]:
        return cls._select(None, (), {})

    @classmethod
    def where(cls, clause: str, *bind_values: Any, **named_binds: Any) -> List["Model"]:
        """
        Records matching a WHERE clause; empty list when none match.

        Example
        -------
            Pokemon.where('"name" = ?', "Pikachu")
            Pokemon.where('"name" = :name', name="Pikachu")
        """
        return cls._select(clause, bind_values, named_binds)

    @classmethod
    def find_by(cls, clause: str, *bind_values: Any, **named_binds: Any) -> Optional["Model"]:
        """First record matching a WHERE clause, or None."""
        records = cls._select(clause, bind_values, named_binds, limit=1)
        return records[0] if records else None

    @classmethod
    def find(cls, id: Any) -> Optional["Model"]:
        return cls.find_by(f"{quote_identifier('id')} = ?", id)

    @classmethod
    def exists(cls, id: Any) -> bool:
        return cls.find(id) is not None

    @classmethod
    def count(cls) -> int:
        rows = cls._store().execute(
            f"SELECT COUNT({quote_identifier('id')}) FROM {quote_identifier(cls.table_name())}"
        )
        return rows[0][0]

    # Persistence ----------------------------------------------------------

    def is_persisted(self) -> bool:
        return self.id is not None and type(self).exists(self.id)

    def save(self) -> bool:
        """
        Insert or update the record.

        Raises
        ------
        FrozenRecordError
            If the record has been destroyed.
        InvalidRecordError
            If a validation fails; nothing is written.
        """
        if self._frozen:
            raise FrozenRecordError(self)
        if not self.is_valid():
            log.info("Invalid record not saved", extra={"model": type(self).__name__, "id": self.id})
            raise InvalidRecordError(self)
        if self.id is None:
            self._insert()
        else:
            self._update()
        return True

    def update(self, attributes: Optional[Mapping[str, Any]] = None, /, **kwargs: Any) -> bool:
        self.assign_attributes(attributes, **kwargs)
        return self.save()

    def _insert(self) -> None:
        model = type(self)
        columns = [name for name in model.column_names() if name != "id"]
        identifiers = ", ".join(quote_identifier(name) for name in columns)
        placeholders = ", ".join(f":{name}" for name in columns)
        store = model._store()
        table = quote_identifier(model.table_name())
        if columns:
            store.execute(
                f"INSERT INTO {table} ({identifiers}) VALUES ({placeholders})",
                {name: self._attributes[name] for name in columns},
            )
        else:
            store.execute(f"INSERT INTO {table} DEFAULT VALUES")
        self._attributes["id"] = store.last_inserted_id()
        log.debug("Inserted record", extra={"table": model.table_name(), "id": self.id})

    def _update(self) -> None:
        model = type(self)
        columns = [name for name in model.column_names() if name != "id"]
        if not columns:
            return
        assignments = ", ".join(f"{quote_identifier(name)} = :{name}" for name in columns)
        model._store().execute(
            f"UPDATE {quote_identifier(model.table_name())} SET {assignments} "
            f"WHERE {quote_identifier('id')} = :id",
            self.attributes,
        )
        log.debug("Updated record", extra={"table": model.table_name(), "id": self.id})

    def destroy(self) -> "Model":
        """
        Delete the row and freeze the record.

        The record stays readable. Destroying twice is harmless: the second
        DELETE matches no row.
        """
        model = type(self)
        if self.id is not None:
            model._store().execute(
                f"DELETE FROM {quote_identifier(model.table_name())} WHERE {quote_identifier('id')} = :id",
                {"id": self.id},
            )
            log.debug("Destroyed record", extra={"table": model.table_name(), "id": self.id})
        object.__setattr__(self, "_frozen", True)
        return self

    def reload(self) -> Optional["Model"]:
        """A fresh copy of the record from the store, or None if its row is gone."""
        return type(self).find(self.id)

    # Comparison -----------------------------------------------------------

    def compare(self, other: Any) -> Optional[int]:
        """
        -1, 0 or 1 comparing attribute values in column order; None when
        `other` is not a record of the same class or values don't order.
        """
        if type(other) is not type(self):
            return None
        mine = tuple(self._attributes.values())
        theirs = tuple(other._attributes.values())
        if mine == theirs:
            return 0
        try:
            return -1 if mine < theirs else 1
        except TypeError:
            return None

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._attributes == other._attributes

    __hash__ = None  # type: ignore[assignment]

    def __lt__(self, other: Any) -> bool:
        result = self.compare(other)
        return NotImplemented if result is None else result < 0

    def __le__(self, other: Any) -> bool:
        result = self.compare(other)
        return NotImplemented if result is None else result <= 0

    def __gt__(self, other: Any) -> bool:
        result = self.compare(other)
        return NotImplemented if result is None else result > 0

    def __ge__(self, other: Any) -> bool:
        result = self.compare(other)
        return NotImplemented if result is None else result >= 0

    def __repr__(self) -> str:
        fields = " ".join(f"{name}={value!r}" for name, value in self._attributes.items())
        return f"<{type(self).__name__} {fields}>"


def declarative_base(store: Optional[Store] = None, registry: Optional[Registry] = None, name: str = "Base") -> type:
    """
    Create an abstract base class bound to a registry.

    Parameters
    ----------
    store : Store, optional
        Store to bind right away. Can be bound later with `registry.bind`.
    registry : Registry, optional
        Registry to use; a new one is created when omitted.
    name : str
        Name of the generated class.
    """
    registry = registry or Registry()
    if store is not None:
        registry.bind(store)
    return type(name, (Model,), {"__registry__": registry, "__abstract__": True})


__all__ = ["Model", "declarative_base"]
