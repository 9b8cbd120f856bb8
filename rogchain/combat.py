"""Combat resolution between the player and monsters."""

from __future__ import annotations

from dataclasses import dataclass

from rogchain.rng import Mt19937


@dataclass
class PlayerStats:
    """Combat-relevant player stats, including equipment bonuses."""

    level: int = 1
    strength: int = 10
    dexterity: int = 10
    constitution: int = 10
    intelligence: int = 10
    equip_attack: int = 0
    equip_defense: int = 0


@dataclass(frozen=True)
class AttackResult:
    """Outcome of a single attack."""

    hit: bool
    critical: bool
    damage: int


def _div(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def player_attack_power(stats: PlayerStats) -> int:
    """Return strength + level/2 + equipment attack."""
    return stats.strength + _div(stats.level, 2) + stats.equip_attack


def player_defense(stats: PlayerStats) -> int:
    """Return constitution/2 + level/3 + equipment defense."""
    return _div(stats.constitution, 2) + _div(stats.level, 3) + stats.equip_defense


def player_attack_monster(
    stats: PlayerStats, monster_defense: int, rng: Mt19937
) -> AttackResult:
    """Resolve the player attacking a monster with the given defense."""
    base = player_attack_power(stats)

    total = base + monster_defense
    if total == 0:
        miss_chance = 0.25
    else:
        miss_chance = min(0.25, monster_defense / total * 0.4)

    if rng.randint(1, 100) <= int(miss_chance * 100):
        return AttackResult(hit=False, critical=False, damage=0)

    damage = base * rng.randint(80, 120) / 100.0

    critical = rng.randint(1, 100) <= 5 + _div(stats.dexterity, 5)
    if critical:
        damage *= 1.5

    return AttackResult(
        hit=True, critical=critical, damage=max(1, int(damage) - monster_defense)
    )


def monster_attack_player(
    monster_attack: int, monster_crit_chance: int, stats: PlayerStats, rng: Mt19937
) -> AttackResult:
    """Resolve a monster attacking the player."""
    defense = player_defense(stats)
    dodge_chance = min(50, 5 + int(stats.dexterity * 0.5))

    if rng.randint(1, 100) <= dodge_chance:
        return AttackResult(hit=False, critical=False, damage=0)

    damage = monster_attack * rng.randint(90, 110) / 100.0

    critical = rng.randint(1, 100) <= monster_crit_chance
    if critical:
        damage *= 1.5

    return AttackResult(
        hit=True, critical=critical, damage=max(1, int(damage) - defense)
    )