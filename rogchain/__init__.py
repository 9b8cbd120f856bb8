"""Deterministic roguelike dungeon engine and move validation.

Submodules: rng, combat, dungeon, monsters, items, dungeongame, queries, parser.
"""

__version__ = "0.1.0"

__all__ = [
    "rng",
    "combat",
    "dungeon",
    "monsters",
    "items",
    "dungeongame",
    "queries",
    "parser",
]