from collections import deque

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from rogchain.dungeon import Dungeon, Gate, Room, Tile
from rogchain.rng import Mt19937


def grid(dungeon):
    return [
        [dungeon.get_tile(x, y) for x in range(Dungeon.WIDTH)]
        for y in range(Dungeon.HEIGHT)
    ]


def reachable(dungeon, start):
    seen = {start}
    queue = deque([start])
    while queue:
        x, y = queue.popleft()
        for nx, ny in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
            if (nx, ny) not in seen and dungeon.get_tile(nx, ny) != Tile.WALL:
                seen.add((nx, ny))
                queue.append((nx, ny))
    return seen


def open_tiles(dungeon):
    return {
        (x, y)
        for y in range(Dungeon.HEIGHT)
        for x in range(Dungeon.WIDTH)
        if dungeon.get_tile(x, y) != Tile.WALL
    }


def test_room_center_lies_inside_room():
    room = Room(x=2, y=3, width=5, height=4)
    assert room.x <= room.center_x() < room.x + room.width
    assert room.y <= room.center_y() < room.y + room.height


def test_generation_is_deterministic():
    a = Dungeon.generate("abc123", 3)
    b = Dungeon.generate("abc123", 3)
    assert grid(a) == grid(b)
    assert a.rooms == b.rooms
    assert a.gates == b.gates
    assert a.depth == 3


def test_depth_changes_layout():
    assert grid(Dungeon.generate("abc123", 1)) != grid(
        Dungeon.generate("abc123", 2)
    )


def test_seed_changes_layout():
    assert grid(Dungeon.generate("seed1", 1)) != grid(Dungeon.generate("seed2", 1))


@settings(max_examples=25, deadline=None)
@given(seed=st.text(max_size=12), depth=st.integers(min_value=1, max_value=20))
def test_generated_dungeon_invariants(seed, depth):
    dungeon = Dungeon.generate(seed, depth)

    assert 1 <= len(dungeon.rooms) <= Dungeon.MAX_ROOMS
    for i, a in enumerate(dungeon.rooms):
        assert Dungeon.MIN_ROOM_WIDTH <= a.width <= Dungeon.MAX_ROOM_WIDTH
        assert Dungeon.MIN_ROOM_HEIGHT <= a.height <= Dungeon.MAX_ROOM_HEIGHT
        for b in dungeon.rooms[i + 1:]:
            assert not Dungeon._rooms_overlap(a, b)
        for y in range(a.y, a.y + a.height):
            for x in range(a.x, a.x + a.width):
                assert dungeon.get_tile(x, y) == Tile.FLOOR

    assert sorted(g.direction for g in dungeon.gates) == sorted(
        ["north", "south", "east", "west"]
    )
    assert dungeon.count_tiles(Tile.GATE) == len(dungeon.gates)
    for gate in dungeon.gates:
        assert dungeon.get_tile(gate.x, gate.y) == Tile.GATE
        if gate.direction == "north":
            assert gate.y == 0
        elif gate.direction == "south":
            assert gate.y == Dungeon.HEIGHT - 1
        elif gate.direction == "west":
            assert gate.x == 0
        else:
            assert gate.x == Dungeon.WIDTH - 1

    start = (dungeon.rooms[0].center_x(), dungeon.rooms[0].center_y())
    assert reachable(dungeon, start) == open_tiles(dungeon)


def test_tile_counts_cover_whole_grid():
    dungeon = Dungeon.generate("count", 2)
    total = sum(dungeon.count_tiles(t) for t in Tile)
    assert total == Dungeon.WIDTH * Dungeon.HEIGHT


def test_outside_grid_is_wall():
    dungeon = Dungeon.generate("edge", 1)
    assert dungeon.get_tile(-1, 0) == Tile.WALL
    assert dungeon.get_tile(0, Dungeon.HEIGHT) == Tile.WALL
    assert dungeon.get_tile(Dungeon.WIDTH, 5) == Tile.WALL


def test_set_tile_inside_and_outside():
    dungeon = Dungeon()
    dungeon.set_tile(5, 6, Tile.FLOOR)
    dungeon.set_tile(-3, 6, Tile.FLOOR)
    dungeon.set_tile(5, Dungeon.HEIGHT + 2, Tile.FLOOR)
    assert dungeon.get_tile(5, 6) == Tile.FLOOR
    assert dungeon.count_tiles(Tile.FLOOR) == 1


def test_empty_constraints_match_unconstrained():
    plain = Dungeon.generate("same", 4)
    constrained = Dungeon.generate("same", 4, [])
    assert grid(plain) == grid(constrained)
    assert plain.gates == constrained.gates


def test_constrained_gate_is_kept():
    fixed = Gate(x=10, y=0, direction="north")
    dungeon = Dungeon.generate("linked", 2, [fixed])
    assert dungeon.gates[0] == fixed
    assert dungeon.get_tile(10, 0) == Tile.GATE
    assert [g.direction for g in dungeon.gates].count("north") == 1
    assert {g.direction for g in dungeon.gates} == {"north", "south", "east", "west"}
    start = (dungeon.rooms[0].center_x(), dungeon.rooms[0].center_y())
    assert reachable(dungeon, start) == open_tiles(dungeon)


def test_two_constraints_are_kept():
    fixed = [Gate(x=0, y=12, direction="west"), Gate(x=30, y=39, direction="south")]
    dungeon = Dungeon.generate("linked", 5, fixed)
    assert dungeon.gates[:2] == fixed
    assert len(dungeon.gates) == 4


def test_constraint_outside_grid_rejected():
    with pytest.raises(ValueError):
        Dungeon.generate("bad", 1, [Gate(x=200, y=0, direction="north")])


def test_random_floor_position_is_floor():
    dungeon = Dungeon.generate("floors", 3)
    rng = Mt19937(8)
    for _ in range(50):
        x, y = dungeon.random_floor_position(rng)
        assert dungeon.get_tile(x, y) == Tile.FLOOR


def test_random_floor_position_without_floor():
    assert Dungeon().random_floor_position(Mt19937(1)) is None