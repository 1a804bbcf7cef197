"""
Schema descriptors and the model registry.

Each model class gets one `ModelDescriptor` when the class is created. It
holds the table name, the column list introspected from the store (queried
once, then cached), the validation predicate names, and the association
definitions. Descriptors live in a `Registry`, which also owns the store the
models talk to and resolves model classes by name for associations.

Cached columns are never refreshed: altering a table after its first
introspection leaves the descriptor stale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from tinyrecord.errors import StoreNotBoundError
from tinyrecord.infrastructure.store import Store
from tinyrecord.support import inflector
from tinyrecord.utils.logging import get_logger

log = get_logger(__name__)


class AssociationKind(str, Enum):
    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    HAS_MANY_THROUGH = "has_many_through"
    HAS_ONE_THROUGH = "has_one_through"


class AssociationDefinition(BaseModel):
    """
    Resolved options of one declared association.

    For `belongs_to` the foreign key is a column of the declaring table; for
    every other kind it is a column of the associated (or through) table. For
    the through kinds `class_name` names the join model.
    """

    name: str = Field(..., description="Accessor name on the declaring model.")
    kind: AssociationKind
    class_name: str = Field(..., description="Associated model, or join model for through kinds.")
    foreign_key: str
    through: Optional[str] = Field(None, description="Association yielding the join records.")
    source: Optional[str] = Field(None, description="Association on the join model yielding the target.")

    model_config = {
        "frozen": True,
    }


@dataclass
class ModelDescriptor:
    """
    Per-model metadata built once at class creation.
    """

    model: type
    registry: "Registry"
    explicit_table_name: Optional[str] = None
    validations: List[str] = field(default_factory=list)
    associations: Dict[str, AssociationDefinition] = field(default_factory=dict)
    _table_name: Optional[str] = field(default=None, repr=False)
    _column_names: Optional[Tuple[str, ...]] = field(default=None, repr=False)

    @property
    def table_name(self) -> str:
        if self._table_name is None:
            self._table_name = self.explicit_table_name or inflector.tableize(self.model.__name__)
        return self._table_name

    def set_table_name(self, value: str) -> None:
        self._table_name = value
        self._column_names = None

    @property
    def column_names(self) -> Tuple[str, ...]:
        if self._column_names is None:
            columns = self.registry.store.columns_of(self.table_name)
            # "id" always leads; the remaining order is the store's.
            ordered = [c for c in columns if c == "id"] + [c for c in columns if c != "id"]
            self._column_names = tuple(ordered)
            log.debug(
                "Introspected columns",
                extra={"table": self.table_name, "columns": list(self._column_names)},
            )
        return self._column_names


class Registry:
    """
    Owns the store and the descriptors of a family of model classes.

    Example
    -------
        registry = Registry()
        Base = declarative_base(registry=registry)

        class Pokemon(Base):
            ...

        registry.bind(SqliteStore("db/development.sqlite3"))
    """

    def __init__(self, store: Optional[Store] = None) -> None:
        self._store = store
        self._descriptors: Dict[type, ModelDescriptor] = {}
        self._models: Dict[str, type] = {}

    @property
    def store(self) -> Store:
        if self._store is None:
            raise StoreNotBoundError("Registry is not bound to a store; call registry.bind(store)")
        return self._store

    def bind(self, store: Store) -> None:
        self._store = store

    @property
    def models(self) -> Dict[str, type]:
        return dict(self._models)

    def register(self, model: type) -> ModelDescriptor:
        """
        Build the descriptor of `model` from its class body.

        Associations and `@validate` predicates of a registered parent model
        come first, in their declaration order.
        """
        from tinyrecord.associations import Association

        descriptor = ModelDescriptor(
            model=model,
            registry=self,
            explicit_table_name=model.__dict__.get("__tablename__"),
        )
        for base in model.__mro__[1:]:
            parent = self._descriptors.get(base)
            if parent is not None:
                descriptor.validations.extend(parent.validations)
                descriptor.associations.update(parent.associations)
                break

        for attr_name, value in model.__dict__.items():
            if isinstance(value, Association):
                descriptor.associations[attr_name] = value.bind(model)
            elif getattr(value, "__validation__", False):
                descriptor.validations.append(attr_name)

        self._descriptors[model] = descriptor
        self._models[model.__name__] = model
        return descriptor

    def descriptor(self, model: type) -> ModelDescriptor:
        return self._descriptors[model]

    def resolve(self, class_name: str) -> Any:
        """Model class for `class_name`; raises NameResolutionError if unknown."""
        return inflector.constantize(class_name, namespace=self._models)


__all__ = [
    "AssociationDefinition",
    "AssociationKind",
    "ModelDescriptor",
    "Registry",
]
