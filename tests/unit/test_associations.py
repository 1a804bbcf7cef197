from __future__ import annotations

from types import SimpleNamespace

import pytest

from tinyrecord import AssociationKind, declarative_base, has_many, has_many_through
from tinyrecord.associations import BelongsTo, HasManyThrough
from tinyrecord.errors import AssociationError, NameResolutionError
from tinyrecord.infrastructure import SqliteStore

MEW_INDEX = 151


class TestDefinitions:
    """Options derived from association and class names."""

    def test_belongs_to_defaults(self, pokedex: SimpleNamespace):
        definition = pokedex.registry.descriptor(pokedex.Evolution).associations["pokemon_evolution"]
        assert definition.kind is AssociationKind.BELONGS_TO
        assert definition.class_name == "Pokemon"
        assert definition.foreign_key == "pokemon_evolution_id"

    def test_has_many_defaults(self, pokedex: SimpleNamespace):
        definition = pokedex.registry.descriptor(pokedex.Pokemon).associations["pokemon_abilities"]
        assert definition.class_name == "PokemonAbility"
        assert definition.foreign_key == "pokemon_id"

    def test_has_many_through_defaults(self, pokedex: SimpleNamespace):
        definition = pokedex.registry.descriptor(pokedex.Pokemon).associations["abilities"]
        assert definition.kind is AssociationKind.HAS_MANY_THROUGH
        assert definition.class_name == "PokemonAbility"
        assert definition.through == "pokemon_abilities"
        assert definition.source == "ability"

    def test_has_one_through_defaults(self, pokedex: SimpleNamespace):
        definition = pokedex.registry.descriptor(pokedex.Pokemon).associations["category"]
        assert definition.class_name == "PokemonCategory"
        assert definition.source == "category"

    def test_explicit_class_name_wins(self, pokedex: SimpleNamespace):
        assert pokedex.registry.descriptor(pokedex.Pokemon).associations["stats"].class_name == "Stats"

    def test_descriptor_on_class_returns_association(self, pokedex: SimpleNamespace):
        assert isinstance(pokedex.Evolution.pokemon, BelongsTo)
        assert isinstance(pokedex.Pokemon.abilities, HasManyThrough)

    def test_subclass_inherits_associations(self, pokedex: SimpleNamespace):
        class ShinyPokemon(pokedex.Pokemon):
            __tablename__ = "pokemons"

        associations = pokedex.registry.descriptor(ShinyPokemon).associations
        assert set(associations) == set(pokedex.registry.descriptor(pokedex.Pokemon).associations)
        assert ShinyPokemon.validations() == pokedex.Pokemon.validations()


class TestBelongsTo:
    def test_reads_owner(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        evolution = pokedex.Evolution.find_by('"pokemon_id" = ?', seeded.bulbasaur.id)
        assert evolution.pokemon == seeded.bulbasaur
        assert evolution.pokemon_evolution == seeded.ivysaur

    def test_unset_foreign_key_reads_none(self, pokedex: SimpleNamespace):
        assert pokedex.Evolution.new().pokemon is None

    def test_assignment_stores_foreign_key_and_saves(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        evolution = pokedex.Evolution.new()
        evolution.pokemon = seeded.ivysaur
        assert evolution.pokemon_id == seeded.ivysaur.id
        assert evolution.id is not None
        assert evolution.reload().pokemon == seeded.ivysaur

    def test_assigning_none_clears_foreign_key(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        evolution = pokedex.Evolution.find_by('"pokemon_id" = ?', seeded.bulbasaur.id)
        evolution.pokemon_evolution = None
        assert evolution.reload().pokemon_evolution_id is None


class TestHasOne:
    def test_reads_associated_record(self, seeded: SimpleNamespace):
        stats = seeded.pikachu.stats
        assert stats.hp == 8
        assert stats.pokemon == seeded.pikachu

    def test_reads_none_without_match(self, seeded: SimpleNamespace):
        assert seeded.bulbasaur.stats is None

    def test_assignment_replaces_and_destroys_previous(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        previous = seeded.pikachu.stats
        replacement = pokedex.Stats.new(hp=9, attack=13, defense=7)

        seeded.pikachu.stats = replacement

        assert replacement.pokemon_id == seeded.pikachu.id
        assert seeded.pikachu.stats == replacement
        assert pokedex.Stats.find(previous.id) is None
        assert pokedex.Stats.count() == 1

    def test_assigning_current_record_is_a_no_op(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        current = seeded.pikachu.stats
        seeded.pikachu.stats = current
        assert seeded.pikachu.stats.id == current.id

    def test_reused_record_with_unsaved_changes_keeps_its_row(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        stats = seeded.pikachu.stats
        stats.hp = 9

        seeded.pikachu.stats = stats

        assert pokedex.Stats.find(stats.id) is not None
        assert seeded.pikachu.stats.id == stats.id

    def test_assigning_none_destroys_current(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        seeded.pikachu.stats = None
        assert seeded.pikachu.stats is None
        assert pokedex.Stats.count() == 0


class TestHasMany:
    def test_reads_all_matches(self, seeded: SimpleNamespace):
        assert len(seeded.bulbasaur.pokemon_abilities) == 2
        assert seeded.ivysaur.pokemon_abilities == []

    def test_assignment_reconciles_collection(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        pikachu = seeded.pikachu
        kept = pokedex.SignatureMove.create(name="Volt Tackle", pokemon_id=pikachu.id)
        dropped = pokedex.SignatureMove.create(name="Thunder", pokemon_id=pikachu.id)
        added = pokedex.SignatureMove.new(name="Nuzzle")

        pikachu.signature_moves = [kept, added]

        moves = pikachu.signature_moves
        assert sorted(move.name for move in moves) == ["Nuzzle", "Volt Tackle"]
        assert kept.id in [move.id for move in moves]
        assert pokedex.SignatureMove.find(dropped.id) is None
        assert added.pokemon_id == pikachu.id

    def test_reused_record_with_unsaved_changes_keeps_its_row(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        pikachu = seeded.pikachu
        kept = pokedex.SignatureMove.create(name="Volt Tackle", pokemon_id=pikachu.id)
        kept.name = "Volt Tackle+"

        pikachu.signature_moves = [kept]

        assert [move.id for move in pikachu.signature_moves] == [kept.id]
        assert pokedex.SignatureMove.find(kept.id).name == "Volt Tackle"

    def test_assigning_empty_collection_destroys_all(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        seeded.bulbasaur.evolutions = []
        assert seeded.bulbasaur.evolutions == []
        assert pokedex.Evolution.count() == 0

    def test_unresolvable_class_name_raises(self, store: SqliteStore):
        Base = declarative_base(store)

        class Pokemon(Base):
            trainers = has_many()

        pokemon = Pokemon.create()
        with pytest.raises(NameResolutionError):
            pokemon.trainers


class TestHasManyThrough:
    def test_reads_targets_via_join_records(self, seeded: SimpleNamespace):
        names = sorted(ability.name for ability in seeded.bulbasaur.abilities)
        assert names == ["Chlorophyll", "Overgrow"]

    def test_reads_empty_without_join_records(self, seeded: SimpleNamespace):
        assert seeded.ivysaur.abilities == []

    def test_assignment_keeps_shared_links(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        bulbasaur = seeded.bulbasaur
        overgrow_link = pokedex.PokemonAbility.find_by(
            '"pokemon_id" = ? AND "ability_id" = ?', bulbasaur.id, seeded.overgrow.id
        )

        bulbasaur.abilities = [seeded.overgrow, seeded.static]

        assert sorted(ability.name for ability in bulbasaur.abilities) == ["Overgrow", "Static"]
        assert overgrow_link.reload() is not None
        assert pokedex.PokemonAbility.where('"ability_id" = ?', seeded.chlorophyll.id) == []
        assert pokedex.Ability.find(seeded.chlorophyll.id) is not None

    def test_reused_target_with_unsaved_changes_keeps_its_link(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        bulbasaur = seeded.bulbasaur
        link_ids = sorted(link.id for link in bulbasaur.pokemon_abilities)
        seeded.overgrow.name = "Overgrow+"

        bulbasaur.abilities = [seeded.overgrow, seeded.chlorophyll]

        assert sorted(link.id for link in bulbasaur.pokemon_abilities) == link_ids
        assert pokedex.Ability.find(seeded.overgrow.id).name == "Overgrow"

    def test_assignment_saves_new_targets(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        leaf_guard = pokedex.Ability.new(name="Leaf Guard")
        seeded.ivysaur.abilities = [leaf_guard]
        assert leaf_guard.id is not None
        assert seeded.ivysaur.abilities == [leaf_guard]

    def test_assignment_does_not_mutate_argument(self, seeded: SimpleNamespace):
        value = [seeded.overgrow]
        seeded.bulbasaur.abilities = value
        assert value == [seeded.overgrow]

    def test_source_must_be_belongs_to(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        class Trainer(pokedex.Base):
            __tablename__ = "pokemons"
            pokemon_abilities = has_many(foreign_key="pokemon_id")
            moves = has_many_through("pokemon_abilities", source="pokemon_id")

        trainer = Trainer.find(seeded.ivysaur.id)
        with pytest.raises(AssociationError):
            trainer.moves = [seeded.static]


class TestHasOneThrough:
    def test_reads_target_via_join_record(self, seeded: SimpleNamespace):
        assert seeded.pikachu.category == seeded.mouse

    def test_reads_none_without_join_record(self, pokedex: SimpleNamespace):
        mew = pokedex.Pokemon.create(index=MEW_INDEX, name="Mew")
        assert mew.category is None

    def test_assignment_relinks(self, seeded: SimpleNamespace, pokedex: SimpleNamespace):
        seeded.pikachu.category = seeded.seed
        assert seeded.pikachu.category == seeded.seed
        assert len(pokedex.PokemonCategory.where('"pokemon_id" = ?', seeded.pikachu.id)) == 1
        assert pokedex.Category.find(seeded.mouse.id) is not None

    def test_assigning_same_target_keeps_join_record(self, seeded: SimpleNamespace):
        link = seeded.pikachu.pokemon_category
        seeded.pikachu.category = seeded.mouse
        assert seeded.pikachu.pokemon_category.id == link.id

    def test_assigning_none_removes_join_record(self, seeded: SimpleNamespace):
        seeded.pikachu.category = None
        assert seeded.pikachu.pokemon_category is None
        assert seeded.pikachu.category is None
