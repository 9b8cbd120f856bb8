"""The item database and player inventory queries."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from rogchain.combat import PlayerStats

MAX_INVENTORY = 20
"""Maximum number of inventory rows per player."""


@dataclass(frozen=True)
class ItemDef:
    """Static definition of an item type."""

    id: str
    name: str
    type: str
    slot: str
    attack_power: int = 0
    defense: int = 0
    strength: int = 0
    dexterity: int = 0
    constitution: int = 0
    intelligence: int = 0
    max_health: int = 0
    heal_amount: int = 0
    value: int = 0
    consumable: bool = False
    stackable: bool = False


def _item(id_, name, type_, slot, atk, dfn, str_, dex, con, int_, max_hp, heal,
          value, consumable, stackable) -> ItemDef:
    return ItemDef(id_, name, type_, slot, atk, dfn, str_, dex, con, int_,
                   max_hp, heal, value, consumable, stackable)


_ITEMS: tuple[ItemDef, ...] = (
    # Melee weapons.
    _item("dagger", "Dagger", "weapon", "weapon", 3, 0, 0, 1, 0, 0, 0, 0, 10, False, False),
    _item("short_sword", "Short Sword", "weapon", "weapon", 5, 0, 0, 0, 0, 0, 0, 0, 25, False, False),
    _item("iron_sword", "Iron Sword", "weapon", "weapon", 6, 0, 1, 0, 0, 0, 0, 0, 35, False, False),
    _item("long_sword", "Long Sword", "weapon", "weapon", 8, 0, 1, 0, 0, 0, 0, 0, 50, False, False),
    _item("scimitar", "Scimitar", "weapon", "weapon", 7, 0, 0, 1, 0, 0, 0, 0, 38, False, False),
    _item("battle_axe", "Battle Axe", "weapon", "weapon", 10, 0, 2, -1, 0, 0, 0, 0, 65, False, False),
    _item("mace", "Iron Mace", "weapon", "weapon", 7, 0, 1, 0, 1, 0, 0, 0, 42, False, False),
    _item("staff", "Wooden Staff", "weapon", "weapon", 4, 0, 0, 0, 0, 2, 0, 0, 40, False, False),
    # Head armour.
    _item("leather_cap", "Leather Cap", "armor", "head", 0, 1, 0, 0, 0, 0, 0, 0, 15, False, False),
    _item("iron_helmet", "Iron Helmet", "armor", "head", 0, 3, 0, 0, 1, 0, 0, 0, 40, False, False),
    # Body armour.
    _item("leather_armor", "Leather Armor", "armor", "body", 0, 2, 0, 1, 0, 0, 0, 0, 25, False, False),
    _item("studded_leather", "Studded Leather", "armor", "body", 0, 3, 0, 1, 0, 0, 0, 0, 40, False, False),
    _item("scale_mail", "Scale Mail", "armor", "body", 0, 5, 0, 0, 1, 0, 0, 0, 50, False, False),
    _item("chainmail", "Chainmail", "armor", "body", 0, 4, 0, -1, 1, 0, 0, 0, 60, False, False),
    _item("plate_armor", "Plate Armor", "armor", "body", 0, 7, 1, -2, 2, 0, 0, 0, 100, False, False),
    # Feet armour.
    _item("leather_boots", "Leather Boots", "armor", "feet", 0, 1, 0, 1, 0, 0, 0, 0, 20, False, False),
    _item("iron_boots", "Iron Boots", "armor", "feet", 0, 2, 0, -1, 1, 0, 0, 0, 35, False, False),
    _item("reinforced_boots", "Reinforced Boots", "armor", "feet", 0, 1, 0, 1, 1, 0, 0, 0, 28, False, False),
    # Shields.
    _item("wooden_shield", "Wooden Shield", "armor", "offhand", 0, 2, 0, 0, 0, 0, 0, 0, 25, False, False),
    _item("reinforced_shield", "Reinforced Shield", "armor", "offhand", 0, 3, 0, 0, 1, 0, 0, 0, 40, False, False),
    _item("iron_shield", "Iron Shield", "armor", "offhand", 0, 4, 0, 0, 1, 0, 0, 0, 60, False, False),
    _item("tower_shield", "Tower Shield", "armor", "offhand", 0, 7, 0, -1, 2, 0, 0, 0, 120, False, False),
    # Rings.
    _item("silver_ring", "Silver Ring", "accessory", "ring", 0, 2, 3, 1, 0, 0, 0, 0, 45, False, False),
    _item("ring_of_protection", "Ring of Protection", "accessory", "ring", 0, 2, 0, 0, 0, 0, 0, 0, 80, False, False),
    _item("ring_of_strength", "Ring of Strength", "accessory", "ring", 0, 0, 2, 0, 0, 0, 0, 0, 80, False, False),
    # Amulets.
    _item("bone_necklace", "Bone Necklace", "accessory", "amulet", 2, 0, 1, 0, 0, 0, 0, 0, 35, False, False),
    _item("amulet_of_health", "Amulet of Health", "accessory", "amulet", 0, 0, 0, 0, 1, 0, 15, 0, 75, False, False),
    # Potions.
    _item("health_potion", "Health Potion", "potion", "", 0, 0, 0, 0, 0, 0, 0, 20, 15, True, True),
    _item("greater_health_potion", "Greater Health Potion", "potion", "", 0, 0, 0, 0, 0, 0, 0, 50, 40, True, True),
    _item("mana_potion", "Mana Potion", "potion", "", 0, 0, 0, 0, 0, 0, 0, 0, 15, True, True),
    # Miscellaneous.
    _item("gold_coins", "Gold Coins", "misc", "", 0, 0, 0, 0, 0, 0, 0, 0, 1, False, True),
)

_BY_ID: dict[str, ItemDef] = {item.id: item for item in _ITEMS}

_EQUIPMENT_TYPES = frozenset({"weapon", "armor", "accessory"})


def all_items() -> tuple[ItemDef, ...]:
    """Return every item definition."""
    return _ITEMS


def lookup_item(item_id: str) -> ItemDef | None:
    """Return the definition with the given id, or None if unknown."""
    return _BY_ID.get(item_id)


def spawnable_items(depth: int) -> list[ItemDef]:
    """Return the items that may lie on the floor at the given depth."""
    result = []
    for item in _ITEMS:
        if item.id in ("gold_coins", "mana_potion"):
            continue
        if item.type == "potion":
            if item.id == "greater_health_potion" and depth < 3:
                continue
            result.append(item)
        elif item.type in _EQUIPMENT_TYPES and item.value <= depth * 20 + 30:
            result.append(item)
    return result


def compute_player_stats(conn: sqlite3.Connection, name: str) -> PlayerStats:
    """Return a player's base stats plus the bonuses of all equipped items."""
    stats = PlayerStats()

    row = conn.execute(
        "SELECT `level`, `strength`, `dexterity`, `constitution`, `intelligence`"
        " FROM `players` WHERE `name` = ?1",
        (name,),
    ).fetchone()
    if row is not None:
        (stats.level, stats.strength, stats.dexterity,
         stats.constitution, stats.intelligence) = (int(v) for v in row)

    equipped = conn.execute(
        "SELECT `item_id` FROM `inventory` WHERE `name` = ?1 AND `slot` != 'bag'",
        (name,),
    )
    for (item_id,) in equipped:
        item = lookup_item(item_id) if item_id is not None else None
        if item is None:
            continue
        stats.equip_attack += item.attack_power
        stats.equip_defense += item.defense
        stats.strength += item.strength
        stats.dexterity += item.dexterity
        stats.constitution += item.constitution
        stats.intelligence += item.intelligence

    return stats


def count_inventory(conn: sqlite3.Connection, name: str) -> int:
    """Return the number of inventory rows the player has."""
    (count,) = conn.execute(
        "SELECT COUNT(*) FROM `inventory` WHERE `name` = ?1", (name,)
    ).fetchone()
    return int(count)


def player_potions(conn: sqlite3.Connection, name: str) -> list[tuple[str, int]]:
    """Return the (item id, quantity) of healing potions in the player's bag."""
    rows = conn.execute(
        "SELECT `item_id`, `quantity` FROM `inventory`"
        " WHERE `name` = ?1 AND `slot` = 'bag'"
        " AND `item_id` IN ('health_potion', 'greater_health_potion')",
        (name,),
    )
    return [(item_id, int(qty)) for item_id, qty in rows]