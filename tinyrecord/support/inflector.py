"""
String inflections used to derive table, class, and column names.

The rules are suffix heuristics only, with no table of irregular words. They
have known false positives (a singular word ending in "s" is taken as already
plural) and table/class name derivation relies on exactly these quirks.

Examples:
    tableize("PokemonShiny")    -> "pokemon_shinies"
    classify("pokemon_shinies") -> "PokemonShiny"
    foreign_key("Pokedex::Trainer") -> "trainer_id"
"""

from __future__ import annotations

import builtins
import importlib
import re
from typing import Any, Mapping, Optional

from tinyrecord.errors import NameResolutionError

_NAMESPACE_SEPARATOR = re.compile(r"::|\.")


def pluralize(string: str) -> str:
    """
    Return the plural form of `string`.

    Categor[y] -> Categor[ies], Weakne[ss] -> Weakness[es], Stat[s] -> Stats,
    Pokemon -> Pokemon[s].
    """
    if string.endswith("y"):
        return string[:-1] + "ies"
    if string.endswith("ss"):
        return string + "es"
    if string.endswith("s"):
        return string
    return string + "s"


def singularize(string: str) -> str:
    """
    Inverse of `pluralize`.

    Categor[ies] -> Categor[y], Weakne[sses] -> Weakness, Weakness -> Weakness,
    Pokemon[s] -> Pokemon.
    """
    if string.endswith("ies"):
        return string[:-3] + "y"
    if string.endswith("sses"):
        return string[:-2]
    if string.endswith("ss"):
        return string
    if string.endswith("s"):
        return string[:-1]
    return string


def camelize(string: str) -> str:
    """pokemon_shiny -> PokemonShiny"""
    return "".join(segment.capitalize() for segment in string.split("_"))


def underscorize(string: str) -> str:
    """PokemonShiny -> pokemon_shiny"""
    if not string:
        return string
    head, tail = string[0], string[1:]
    return head.lower() + "".join(f"_{char.lower()}" if char.isupper() else char for char in tail)


def demodulize(string: str) -> str:
    """PokemonGo::Trainer -> Trainer, pokedex.models.Trainer -> Trainer"""
    return _NAMESPACE_SEPARATOR.split(string)[-1]


def tableize(string: str) -> str:
    return pluralize(underscorize(string))


def classify(string: str) -> str:
    return singularize(camelize(string))


def foreign_key(string: str) -> str:
    return underscorize(demodulize(string)) + "_id"


def constantize(string: str, namespace: Optional[Mapping[str, Any]] = None) -> Any:
    """
    Resolve a class from its name.

    Lookup order: the `namespace` mapping (a registry's model classes), a
    dotted import path such as ``pokedex.models.Pokemon`` (``::`` is accepted
    as a separator), then builtins.

    Raises
    ------
    NameResolutionError
        If the name cannot be resolved.
    """
    if namespace is not None and string in namespace:
        return namespace[string]

    path = string.replace("::", ".")
    module_name, _, attribute = path.rpartition(".")
    if module_name:
        try:
            return getattr(importlib.import_module(module_name), attribute)
        except (ImportError, AttributeError) as exc:
            raise NameResolutionError(string) from exc

    if hasattr(builtins, path):
        return getattr(builtins, path)
    raise NameResolutionError(string)


__all__ = [
    "pluralize",
    "singularize",
    "camelize",
    "underscorize",
    "demodulize",
    "tableize",
    "classify",
    "constantize",
    "foreign_key",
]
