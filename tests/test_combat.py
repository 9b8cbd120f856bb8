from hypothesis import given, settings
from hypothesis import strategies as st

from rogchain.combat import (
    AttackResult,
    PlayerStats,
    monster_attack_player,
    player_attack_monster,
    player_defense,
)
from rogchain.combat import player_attack_power
from rogchain.rng import Mt19937

stats_strategy = st.builds(
    PlayerStats,
    level=st.integers(min_value=1, max_value=50),
    strength=st.integers(min_value=0, max_value=60),
    dexterity=st.integers(min_value=0, max_value=200),
    constitution=st.integers(min_value=0, max_value=60),
    intelligence=st.integers(min_value=0, max_value=60),
    equip_attack=st.integers(min_value=0, max_value=30),
    equip_defense=st.integers(min_value=0, max_value=30),
)


def test_attack_power_formula():
    assert player_attack_power(PlayerStats(level=4, strength=10)) == 12


def test_attack_power_includes_equipment():
    base = player_attack_power(PlayerStats())
    assert player_attack_power(PlayerStats(equip_attack=7)) - base == 7


def test_defense_includes_equipment():
    base = player_defense(PlayerStats())
    assert player_defense(PlayerStats(equip_defense=4)) - base == 4


def test_defense_grows_with_constitution():
    assert player_defense(PlayerStats(constitution=20)) > player_defense(
        PlayerStats(constitution=10)
    )


@settings(max_examples=60)
@given(
    stats=stats_strategy,
    defense=st.integers(min_value=0, max_value=40),
    seed=st.integers(min_value=0, max_value=2**32 - 1),
)
def test_player_attack_invariants(stats, defense, seed):
    result = player_attack_monster(stats, defense, Mt19937(seed))
    if result.hit:
        assert result.damage >= 1
    else:
        assert result == AttackResult(hit=False, critical=False, damage=0)


@settings(max_examples=60)
@given(
    stats=stats_strategy,
    attack=st.integers(min_value=0, max_value=60),
    crit=st.integers(min_value=0, max_value=100),
    seed=st.integers(min_value=0, max_value=2**32 - 1),
)
def test_monster_attack_invariants(stats, attack, crit, seed):
    result = monster_attack_player(attack, crit, stats, Mt19937(seed))
    if result.hit:
        assert result.damage >= 1
    else:
        assert result == AttackResult(hit=False, critical=False, damage=0)


def test_zero_monster_defense_never_misses():
    rng = Mt19937(17)
    results = [player_attack_monster(PlayerStats(), 0, rng) for _ in range(300)]
    assert all(r.hit for r in results)


def test_zero_attack_and_defense_is_handled():
    rng = Mt19937(5)
    stats = PlayerStats(strength=0, level=1)
    results = [player_attack_monster(stats, 0, rng) for _ in range(100)]
    assert all(r.damage >= 1 for r in results if r.hit)
    assert any(not r.hit for r in results)


def test_high_dexterity_always_crits():
    rng = Mt19937(23)
    stats = PlayerStats(dexterity=475)
    results = [player_attack_monster(stats, 0, rng) for _ in range(200)]
    assert all(r.hit and r.critical for r in results)


def test_huge_monster_defense_leaves_minimum_damage():
    rng = Mt19937(31)
    results = [player_attack_monster(PlayerStats(), 1000, rng) for _ in range(200)]
    hits = [r for r in results if r.hit]
    assert hits
    assert all(r.damage == 1 for r in hits)


def test_monster_full_crit_chance_always_crits_on_hit():
    rng = Mt19937(2)
    stats = PlayerStats(dexterity=0)
    results = [monster_attack_player(20, 100, stats, rng) for _ in range(200)]
    hits = [r for r in results if r.hit]
    assert hits
    assert all(r.critical for r in hits)


def test_monster_zero_crit_chance_never_crits():
    rng = Mt19937(4)
    results = [monster_attack_player(20, 0, PlayerStats(), rng) for _ in range(200)]
    assert not any(r.critical for r in results)


def test_dodge_chance_is_capped():
    rng = Mt19937(77)
    stats = PlayerStats(dexterity=1000)
    results = [monster_attack_player(30, 0, stats, rng) for _ in range(600)]
    hit_rate = sum(r.hit for r in results) / len(results)
    assert 0.35 < hit_rate < 0.65


def test_combat_is_deterministic():
    stats = PlayerStats(strength=14, dexterity=18)
    a, b = Mt19937(123), Mt19937(123)
    first = [player_attack_monster(stats, 3, a) for _ in range(50)]
    second = [player_attack_monster(stats, 3, b) for _ in range(50)]
    assert first == second
    assert a.serialize() == b.serialize()