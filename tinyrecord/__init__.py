"""
tinyrecord - a minimal active-record style ORM over a relational store.

This package maps model classes to tables without declaring columns:

- Table names and foreign keys are derived by a naming inflector
- Columns are introspected from the store once per model
- CRUD and queries go through parameterized SQL
- Associations (belongs_to, has_one, has_many and their "through" forms)
  are resolved by query on every access
- Validations, including a store-backed uniqueness check, gate `save`

The store is any object implementing `tinyrecord.infrastructure.Store`;
SQLite and PostgreSQL (psycopg) adapters are included.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from tinyrecord.associations import (
    belongs_to,
    has_many,
    has_many_through,
    has_one,
    has_one_through,
)
from tinyrecord.base import Model, declarative_base
from tinyrecord.config import Settings, get_settings
from tinyrecord.errors import (
    AssociationError,
    FrozenRecordError,
    InvalidRecordError,
    NameResolutionError,
    StoreNotBoundError,
    TinyRecordError,
    UnknownAttributeError,
)
from tinyrecord.infrastructure import PostgresStore, Row, SqliteStore, Store, open_store
from tinyrecord.schema import AssociationDefinition, AssociationKind, ModelDescriptor, Registry
from tinyrecord.utils.logging import configure_logging, get_logger
from tinyrecord.validations import validate

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Models
    "Model",
    "declarative_base",
    "Registry",
    "ModelDescriptor",
    "AssociationDefinition",
    "AssociationKind",
    # Associations
    "belongs_to",
    "has_one",
    "has_many",
    "has_many_through",
    "has_one_through",
    # Validations
    "validate",
    # Stores
    "Store",
    "Row",
    "SqliteStore",
    "PostgresStore",
    "open_store",
    # Errors
    "TinyRecordError",
    "AssociationError",
    "FrozenRecordError",
    "InvalidRecordError",
    "NameResolutionError",
    "StoreNotBoundError",
    "UnknownAttributeError",
    # Logging
    "configure_logging",
    "get_logger",
]
