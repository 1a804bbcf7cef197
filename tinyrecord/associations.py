"""
Association descriptors.

Associations are declared in the model class body; the attribute name is the
association name:

    class Pokemon(Base):
        pokemon_category = has_one()
        category = has_one_through("pokemon_category")
        pokemon_abilities = has_many()
        abilities = has_many_through("pokemon_abilities")
        stats = has_one(class_name="Stats")

    class PokemonCategory(Base):
        pokemon = belongs_to()
        category = belongs_to()

Reading an association runs a query every time; nothing is cached on the
record. Assigning one reconciles the store with the new value using as few
writes as possible: records that stay associated keep their rows and ids.

Expansions for `pokemon` above:

    pokemon.pokemon_category  ->  PokemonCategory.find_by('"pokemon_id" = ?', pokemon.id)
    pokemon.category          ->  pokemon.pokemon_category.category (None-safe)
    pokemon.pokemon_abilities ->  PokemonAbility.where('"pokemon_id" = ?', pokemon.id)
    pokemon.abilities         ->  [pa.ability for pa in pokemon.pokemon_abilities]
    pokemon_category.pokemon  ->  Pokemon.find(pokemon_category.pokemon_id)
"""

from __future__ import annotations

from typing import Any, List, Optional

from tinyrecord.errors import AssociationError
from tinyrecord.infrastructure.store import quote_identifier
from tinyrecord.schema import AssociationDefinition, AssociationKind
from tinyrecord.support import inflector
from tinyrecord.utils.logging import get_logger

log = get_logger(__name__)


def _same_record(left: Any, right: Any) -> bool:
    """Persisted records match by class and id; unsaved records match by value."""
    if left is None or right is None:
        return left is right
    if left.id is not None and right.id is not None:
        return type(left) is type(right) and left.id == right.id
    return left == right


def _contains(records: List[Any], record: Any) -> bool:
    return any(_same_record(candidate, record) for candidate in records)


class Association:
    """
    Base descriptor. Subclasses set `kind` and implement `_defaults`,
    `read`, and `write`.
    """

    kind: AssociationKind

    def __init__(
        self,
        class_name: Optional[str] = None,
        foreign_key: Optional[str] = None,
        through: Optional[str] = None,
        source: Optional[str] = None,
    ) -> None:
        self.name: Optional[str] = None
        self.class_name = class_name
        self.foreign_key = foreign_key
        self.through = through
        self.source = source
        self.definition: Optional[AssociationDefinition] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def bind(self, owner: type) -> AssociationDefinition:
        """Resolve default options against the declaring class."""
        class_name, foreign_key, source = self._defaults(owner)
        self.definition = AssociationDefinition(
            name=self.name,
            kind=self.kind,
            class_name=self.class_name or class_name,
            foreign_key=self.foreign_key or foreign_key,
            through=self.through,
            source=self.source or source,
        )
        return self.definition

    def _defaults(self, owner: type) -> tuple[str, str, Optional[str]]:  # pragma: no cover
        raise NotImplementedError

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return self.read(instance)

    def __set__(self, instance: Any, value: Any) -> None:
        self.write(instance, value)

    def target(self, instance: Any) -> type:
        return type(instance).__registry__.resolve(self.definition.class_name)

    def _clause(self) -> str:
        return f"{quote_identifier(self.definition.foreign_key)} = ?"

    def read(self, instance: Any) -> Any:  # pragma: no cover
        raise NotImplementedError

    def write(self, instance: Any, value: Any) -> None:  # pragma: no cover
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class BelongsTo(Association):
    kind = AssociationKind.BELONGS_TO

    def _defaults(self, owner: type) -> tuple[str, str, Optional[str]]:
        return inflector.classify(self.name), inflector.foreign_key(self.name), None

    def read(self, instance: Any) -> Any:
        return self.target(instance).find(instance.get(self.definition.foreign_key))

    def write(self, instance: Any, value: Any) -> None:
        instance.update({self.definition.foreign_key: value.id if value is not None else None})


class HasOne(Association):
    kind = AssociationKind.HAS_ONE

    def _defaults(self, owner: type) -> tuple[str, str, Optional[str]]:
        return inflector.classify(self.name), inflector.foreign_key(owner.__name__), None

    def read(self, instance: Any) -> Any:
        return self.target(instance).find_by(self._clause(), instance.id)

    def write(self, instance: Any, value: Any) -> None:
        current = self.read(instance)
        if _same_record(current, value):
            return
        if current is not None:
            log.debug("Destroying orphaned association", extra={"association": self.name})
            current.destroy()
        if value is None:
            return
        value.update({self.definition.foreign_key: instance.id})


class HasMany(Association):
    kind = AssociationKind.HAS_MANY

    def _defaults(self, owner: type) -> tuple[str, str, Optional[str]]:
        return inflector.classify(self.name), inflector.foreign_key(owner.__name__), None

    def read(self, instance: Any) -> List[Any]:
        return self.target(instance).where(self._clause(), instance.id)

    def write(self, instance: Any, value: Any) -> None:
        current = self.read(instance)
        new_collection = list(value)

        for record in current:
            if not _contains(new_collection, record):
                record.destroy()

        for record in new_collection:
            if not _contains(current, record):
                record.update({self.definition.foreign_key: instance.id})


class _ThroughAssociation(Association):
    """
    Shared behavior of associations resolved via a join model.

    `class_name` and `foreign_key` describe the join model: the foreign key
    is the join table's column pointing back at the declaring record.
    """

    def __init__(self, through: str, **options: Any) -> None:
        super().__init__(through=through, **options)

    def through_records(self, instance: Any) -> Any:
        return getattr(instance, self.definition.through)

    def link(self, instance: Any, target: Any) -> Any:
        """Create the join record between `instance` and `target`."""
        through_model = self.target(instance)
        registry = through_model.__registry__
        source = registry.descriptor(through_model).associations.get(self.definition.source)
        if source is None or source.kind is not AssociationKind.BELONGS_TO:
            raise AssociationError(
                f"{through_model.__name__}.{self.definition.source} must be a belongs_to association",
                context={"association": self.name},
            )
        if target.id is None:
            target.save()
        return through_model.create(
            {self.definition.foreign_key: instance.id, source.foreign_key: target.id}
        )


class HasManyThrough(_ThroughAssociation):
    kind = AssociationKind.HAS_MANY_THROUGH

    def _defaults(self, owner: type) -> tuple[str, str, Optional[str]]:
        return (
            inflector.classify(self.through),
            inflector.foreign_key(owner.__name__),
            inflector.singularize(self.name),
        )

    def read(self, instance: Any) -> List[Any]:
        return [getattr(record, self.definition.source) for record in self.through_records(instance)]

    def write(self, instance: Any, value: Any) -> None:
        remaining = list(value)

        for through_record in self.through_records(instance):
            target = getattr(through_record, self.definition.source)
            if target is not None and _contains(remaining, target):
                remaining = [record for record in remaining if not _same_record(record, target)]
            else:
                through_record.destroy()

        for target in remaining:
            self.link(instance, target)


class HasOneThrough(_ThroughAssociation):
    kind = AssociationKind.HAS_ONE_THROUGH

    def _defaults(self, owner: type) -> tuple[str, str, Optional[str]]:
        return inflector.classify(self.through), inflector.foreign_key(owner.__name__), self.name

    def read(self, instance: Any) -> Any:
        through_record = self.through_records(instance)
        if through_record is None:
            return None
        return getattr(through_record, self.definition.source)

    def write(self, instance: Any, value: Any) -> None:
        if _same_record(self.read(instance), value):
            return
        through_record = self.through_records(instance)
        if through_record is not None:
            through_record.destroy()
        if value is None:
            return
        self.link(instance, value)


def belongs_to(class_name: Optional[str] = None, foreign_key: Optional[str] = None) -> BelongsTo:
    """
    The declaring table holds the foreign key of one associated record.

    Defaults: `class_name = classify(name)`, `foreign_key = foreign_key(name)`.
    Assigning a record stores its id in the foreign key and saves.
    """
    return BelongsTo(class_name=class_name, foreign_key=foreign_key)


def has_one(class_name: Optional[str] = None, foreign_key: Optional[str] = None) -> HasOne:
    """
    One associated record holds the declaring record's id.

    Defaults: `class_name = classify(name)`,
    `foreign_key = foreign_key(DeclaringClass)`. Assigning destroys the
    previous record (if different) and points the new one at this record.
    """
    return HasOne(class_name=class_name, foreign_key=foreign_key)


def has_many(class_name: Optional[str] = None, foreign_key: Optional[str] = None) -> HasMany:
    """
    Zero or more associated records hold the declaring record's id.

    Assigning a collection destroys the records left out of it and points
    the records new to it at this record. Records in both are not touched.
    """
    return HasMany(class_name=class_name, foreign_key=foreign_key)


def has_many_through(
    through: str,
    class_name: Optional[str] = None,
    foreign_key: Optional[str] = None,
    source: Optional[str] = None,
) -> HasManyThrough:
    """
    Many-to-many via the join records yielded by the `through` association.

    Defaults: `class_name = classify(through)` (the join model),
    `foreign_key = foreign_key(DeclaringClass)`, `source = singularize(name)`.
    """
    return HasManyThrough(through, class_name=class_name, foreign_key=foreign_key, source=source)


def has_one_through(
    through: str,
    class_name: Optional[str] = None,
    foreign_key: Optional[str] = None,
    source: Optional[str] = None,
) -> HasOneThrough:
    """
    One-to-one via the join record yielded by the `through` association.

    Defaults: `class_name = classify(through)`, `source = name`.
    """
    return HasOneThrough(through, class_name=class_name, foreign_key=foreign_key, source=source)


__all__ = [
    "Association",
    "BelongsTo",
    "HasMany",
    "HasManyThrough",
    "HasOne",
    "HasOneThrough",
    "belongs_to",
    "has_many",
    "has_many_through",
    "has_one",
    "has_one_through",
]
