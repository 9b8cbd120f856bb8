"""Monster templates, monster instances and deterministic spawning."""

from __future__ import annotations

import math
from dataclasses import dataclass

from rogchain.dungeon import Dungeon, Tile
from rogchain.rng import Mt19937


@dataclass
class Monster:
    """A monster living in a dungeon."""

    name: str
    symbol: str
    x: int
    y: int
    hp: int
    max_hp: int
    attack: int
    defense: int
    crit_chance: int
    detection_range: int
    xp_value: int
    alive: bool = True
    aware_of_player: bool = False


@dataclass(frozen=True)
class MonsterTemplate:
    """Base stats of a kind of monster and the depth it first appears at."""

    name: str
    symbol: str
    min_depth: int
    max_hp: int
    attack: int
    defense: int
    crit_chance: int
    detection_range: int
    xp_value: int


_TEMPLATES: tuple[MonsterTemplate, ...] = (
    # Depth 1.
    MonsterTemplate("Giant Rat", "r", 1, 24, 5, 2, 3, 5, 10),
    MonsterTemplate("Giant Spider", "s", 1, 24, 7, 3, 5, 5, 12),
    MonsterTemplate("Cave Bat", "b", 1, 15, 8, 2, 12, 6, 8),
    # Depth 2.
    MonsterTemplate("Goblin", "g", 2, 30, 8, 4, 5, 6, 18),
    MonsterTemplate("Skeleton", "S", 2, 40, 10, 4, 3, 5, 22),
    MonsterTemplate("Kobold", "k", 2, 45, 9, 3, 4, 6, 20),
    MonsterTemplate("Wolf", "w", 2, 40, 10, 3, 6, 7, 20),
    # Depth 3 and deeper.
    MonsterTemplate("Orc Warrior", "O", 3, 65, 12, 6, 5, 7, 35),
    MonsterTemplate("Specter", "P", 3, 60, 15, 5, 8, 8, 40),
    MonsterTemplate("Centaur", "C", 3, 65, 14, 7, 5, 7, 38),
    # Depth 4 and deeper.
    MonsterTemplate("Minotaur", "M", 4, 85, 16, 8, 5, 8, 55),
    MonsterTemplate("Dark Mage", "D", 5, 70, 18, 5, 7, 8, 65),
)

ELITE_DEPTH = 7


def monster_templates() -> tuple[MonsterTemplate, ...]:
    """Return every monster template."""
    return _TEMPLATES


def create_monster(template: MonsterTemplate, x: int, y: int, depth: int) -> Monster:
    """Create a monster at (x, y) with stats scaled to the dungeon depth.

    HP scales by 1 + (depth-1)*0.4 and attack by 1 + (depth-1)*0.3.
    """
    hp_scale = 1.0 + (depth - 1) * 0.4
    atk_scale = 1.0 + (depth - 1) * 0.3
    max_hp = math.floor(template.max_hp * hp_scale)

    name = template.name
    if depth >= ELITE_DEPTH:
        name = f"Elite {name}"

    return Monster(
        name=name,
        symbol=template.symbol,
        x=x,
        y=y,
        hp=max_hp,
        max_hp=max_hp,
        attack=math.floor(template.attack * atk_scale),
        defense=template.defense,
        crit_chance=template.crit_chance,
        detection_range=template.detection_range,
        xp_value=template.xp_value,
    )


def spawn_monsters(dungeon: Dungeon, depth: int, rng: Mt19937) -> list[Monster]:
    """Spawn up to 8 + 2*depth monsters on distinct floor tiles."""
    eligible = [t for t in _TEMPLATES if t.min_depth <= depth]
    if not eligible:
        return []

    floors = [
        (x, y)
        for y in range(Dungeon.HEIGHT)
        for x in range(Dungeon.WIDTH)
        if dungeon.get_tile(x, y) == Tile.FLOOR
    ]
    if not floors:
        return []

    monsters: list[Monster] = []
    occupied: set[tuple[int, int]] = set()
    for _ in range(8 + depth * 2):
        template = eligible[rng.randint(0, len(eligible) - 1)]
        position = floors[rng.randint(0, len(floors) - 1)]
        if position in occupied:
            continue
        monsters.append(create_monster(template, position[0], position[1], depth))
        occupied.add(position)

    return monsters