"""
Pytest configuration for tinyrecord.

Provides fixtures for:
- An in-memory SQLite store with the Pokédex schema
- The Pokédex model classes bound to that store
- A small seeded dataset
- Settings and PostgreSQL connectivity for integration tests
"""

from __future__ import annotations

import os
from pathlib import Path
from types import SimpleNamespace
from typing import Generator

import psycopg
import pytest

from tinyrecord import (
    Registry,
    SqliteStore,
    belongs_to,
    declarative_base,
    has_many,
    has_many_through,
    has_one,
    has_one_through,
    validate,
)
from tinyrecord.config import Settings, get_settings

SQLITE_SCHEMA = """
CREATE TABLE "pokemons" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT,
    "index" INTEGER,
    "name" TEXT
);
CREATE TABLE "categories" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT,
    "name" TEXT
);
CREATE TABLE "pokemon_categories" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT,
    "pokemon_id" INTEGER,
    "category_id" INTEGER
);
CREATE TABLE "abilities" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT,
    "name" TEXT
);
CREATE TABLE "pokemon_abilities" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT,
    "pokemon_id" INTEGER,
    "ability_id" INTEGER
);
CREATE TABLE "stats" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT,
    "hp" INTEGER,
    "attack" INTEGER,
    "defense" INTEGER,
    "pokemon_id" INTEGER
);
CREATE TABLE "evolutions" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT,
    "pokemon_id" INTEGER,
    "pokemon_evolution_id" INTEGER
);
CREATE TABLE "signature_moves" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT,
    "name" TEXT,
    "pokemon_id" INTEGER
);
"""


def _has_unique_name(self) -> bool:
    return isinstance(self.name, str) and self.name != "" and self.is_unique("name")


def build_pokedex(registry: Registry) -> SimpleNamespace:
    """Define the Pokédex models on `registry` and return them by name."""
    Base = declarative_base(registry=registry)

    class Category(Base):
        valid_name = validate(_has_unique_name)

    class Ability(Base):
        valid_name = validate(_has_unique_name)

    class PokemonCategory(Base):
        pokemon = belongs_to()
        category = belongs_to()

    class PokemonAbility(Base):
        pokemon = belongs_to()
        ability = belongs_to()

    class Stats(Base):
        pokemon = belongs_to()

        @validate
        def valid_stats(self) -> bool:
            return all(
                isinstance(value, int) and 0 <= value <= 15
                for name, value in self.attributes.items()
                if name not in ("id", "pokemon_id")
            )

    class Evolution(Base):
        pokemon = belongs_to()
        pokemon_evolution = belongs_to(class_name="Pokemon")

    class SignatureMove(Base):
        pokemon = belongs_to()

    class Pokemon(Base):
        pokemon_category = has_one()
        category = has_one_through("pokemon_category")

        pokemon_abilities = has_many()
        abilities = has_many_through("pokemon_abilities")

        stats = has_one(class_name="Stats")
        evolutions = has_many()
        signature_moves = has_many()

        @validate
        def valid_index(self) -> bool:
            return isinstance(self.index, int) and self.index > 0 and self.is_unique("index")

        valid_name = validate(_has_unique_name)

    return SimpleNamespace(
        registry=registry,
        Base=Base,
        Ability=Ability,
        Category=Category,
        Evolution=Evolution,
        Pokemon=Pokemon,
        PokemonAbility=PokemonAbility,
        PokemonCategory=PokemonCategory,
        SignatureMove=SignatureMove,
        Stats=Stats,
    )


@pytest.fixture
def store() -> Generator[SqliteStore, None, None]:
    """
    Private in-memory SQLite database with the Pokédex tables.
    """
    sqlite_store = SqliteStore(":memory:")
    sqlite_store.connection.executescript(SQLITE_SCHEMA)
    try:
        yield sqlite_store
    finally:
        sqlite_store.close()


@pytest.fixture
def pokedex(store: SqliteStore) -> SimpleNamespace:
    """
    Pokédex model classes bound to the in-memory store.
    """
    return build_pokedex(Registry(store))


@pytest.fixture
def seeded(pokedex: SimpleNamespace) -> SimpleNamespace:
    """
    A few Pokémon with categories, abilities, stats and an evolution.
    """
    mouse = pokedex.Category.create(name="Mouse")
    seed = pokedex.Category.create(name="Seed")
    static = pokedex.Ability.create(name="Static")
    overgrow = pokedex.Ability.create(name="Overgrow")
    chlorophyll = pokedex.Ability.create(name="Chlorophyll")

    bulbasaur = pokedex.Pokemon.create(index=1, name="Bulbasaur")
    ivysaur = pokedex.Pokemon.create(index=2, name="Ivysaur")
    pikachu = pokedex.Pokemon.create(index=25, name="Pikachu")

    pokedex.PokemonCategory.create(pokemon_id=bulbasaur.id, category_id=seed.id)
    pokedex.PokemonCategory.create(pokemon_id=ivysaur.id, category_id=seed.id)
    pokedex.PokemonCategory.create(pokemon_id=pikachu.id, category_id=mouse.id)

    pokedex.PokemonAbility.create(pokemon_id=bulbasaur.id, ability_id=overgrow.id)
    pokedex.PokemonAbility.create(pokemon_id=bulbasaur.id, ability_id=chlorophyll.id)
    pokedex.PokemonAbility.create(pokemon_id=pikachu.id, ability_id=static.id)

    pokedex.Stats.create(hp=8, attack=12, defense=6, pokemon_id=pikachu.id)
    pokedex.Evolution.create(pokemon_id=bulbasaur.id, pokemon_evolution_id=ivysaur.id)

    return SimpleNamespace(
        mouse=mouse,
        seed=seed,
        static=static,
        overgrow=overgrow,
        chlorophyll=chlorophyll,
        bulbasaur=bulbasaur,
        ivysaur=ivysaur,
        pikachu=pikachu,
    )


@pytest.fixture
def sqlite_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    SQLite database file with the Pokédex tables, selected through the
    environment the way the CLI reads it.
    """
    path = tmp_path / "pokedex.sqlite3"
    with SqliteStore(path) as sqlite_store:
        sqlite_store.connection.executescript(SQLITE_SCHEMA)
    monkeypatch.setenv("DB_BACKEND", "sqlite")
    monkeypatch.setenv("SQLITE_PATH", str(path))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    return path


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_backend="postgres",
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "pokedex"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False
