"""Deterministic dungeon generation from a seed string and depth."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from itertools import pairwise
from typing import Iterable, Iterator

from rogchain.rng import Mt19937, hash_seed


class Tile(IntEnum):
    """Kinds of dungeon tile."""

    WALL = 0
    FLOOR = 1
    GATE = 2


DIRECTIONS = ("north", "south", "east", "west")

# Order in which directions without a fixed gate get a random one.
_GATE_ORDER = ("north", "south", "west", "east")


@dataclass
class Room:
    """A rectangular room."""

    x: int
    y: int
    width: int
    height: int

    def center_x(self) -> int:
        return self.x + self.width // 2

    def center_y(self) -> int:
        return self.y + self.height // 2


@dataclass
class Gate:
    """An exit on one of the four outer walls."""

    x: int
    y: int
    direction: str


@dataclass
class Dungeon:
    """A grid of tiles with its rooms and gates."""

    WIDTH = 80
    HEIGHT = 40

    MIN_ROOMS = 8
    MAX_ROOMS = 15
    MIN_ROOM_WIDTH = 4
    MAX_ROOM_WIDTH = 8
    MIN_ROOM_HEIGHT = 4
    MAX_ROOM_HEIGHT = 7
    ROOM_BUFFER = 1
    GATE_MARGIN = 2

    rooms: list[Room] = field(default_factory=list)
    gates: list[Gate] = field(default_factory=list)
    depth: int = 0
    _tiles: list[list[Tile]] = field(
        default_factory=lambda: [
            [Tile.WALL] * Dungeon.WIDTH for _ in range(Dungeon.HEIGHT)
        ],
        repr=False,
    )

    @classmethod
    def generate(
        cls, seed: str, depth: int, constraints: Iterable[Gate] | None = None
    ) -> "Dungeon":
        """Generate a dungeon; the same seed and depth give the same dungeon.

        Gates in ``constraints`` are placed at their exact positions; every
        cardinal direction not covered gets a gate at a random position.
        """
        dungeon = cls(depth=depth)
        rng = Mt19937(hash_seed(f"{seed}:{depth}"))
        dungeon._generate_rooms(rng)
        dungeon._connect_rooms(rng)

        placed = set()
        for gate in constraints or ():
            dungeon._place_gate(gate.x, gate.y, gate.direction, rng)
            placed.add(gate.direction)

        for direction in _GATE_ORDER:
            if direction not in placed:
                x, y = dungeon._random_gate_position(direction, rng)
                dungeon._place_gate(x, y, direction, rng)

        return dungeon

    @classmethod
    def _in_bounds(cls, x: int, y: int) -> bool:
        return 0 <= x < cls.WIDTH and 0 <= y < cls.HEIGHT

    def get_tile(self, x: int, y: int) -> Tile:
        """Return the tile at (x, y); outside the grid everything is wall."""
        if not self._in_bounds(x, y):
            return Tile.WALL
        return self._tiles[y][x]

    def set_tile(self, x: int, y: int, tile: Tile) -> None:
        """Set the tile at (x, y); positions outside the grid are ignored."""
        if self._in_bounds(x, y):
            self._tiles[y][x] = tile

    def _positions(self, tile: Tile) -> Iterator[tuple[int, int]]:
        for y, row in enumerate(self._tiles):
            for x, value in enumerate(row):
                if value == tile:
                    yield x, y

    def random_floor_position(self, rng: Mt19937) -> tuple[int, int] | None:
        """Return a random floor position, or None if there is no floor."""
        floors = list(self._positions(Tile.FLOOR))
        if not floors:
            return None
        return floors[rng.randint(0, len(floors) - 1)]

    def count_tiles(self, tile: Tile) -> int:
        """Return the number of tiles of the given kind."""
        return sum(1 for _ in self._positions(tile))

    # Generation steps.

    def _carve_room(self, room: Room) -> None:
        for y in range(room.y, room.y + room.height):
            for x in range(room.x, room.x + room.width):
                self._tiles[y][x] = Tile.FLOOR

    @classmethod
    def _rooms_overlap(cls, a: Room, b: Room) -> bool:
        buffer = cls.ROOM_BUFFER
        return (
            a.x <= b.x + b.width + buffer
            and a.x + a.width + buffer >= b.x
            and a.y <= b.y + b.height + buffer
            and a.y + a.height + buffer >= b.y
        )

    def _carve_horizontal(self, x1: int, x2: int, y: int) -> None:
        for x in range(min(x1, x2), max(x1, x2) + 1):
            self.set_tile(x, y, Tile.FLOOR)

    def _carve_vertical(self, y1: int, y2: int, x: int) -> None:
        for y in range(min(y1, y2), max(y1, y2) + 1):
            self.set_tile(x, y, Tile.FLOOR)

    def _carve_l_corridor(
        self, x1: int, y1: int, x2: int, y2: int, rng: Mt19937
    ) -> None:
        if rng.randint(0, 1) == 0:
            self._carve_horizontal(x1, x2, y1)
            self._carve_vertical(y1, y2, x2)
        else:
            self._carve_vertical(y1, y2, x1)
            self._carve_horizontal(x1, x2, y2)

    def _generate_rooms(self, rng: Mt19937) -> None:
        wanted = rng.randint(self.MIN_ROOMS, self.MAX_ROOMS)
        for _ in range(wanted * 3):
            if len(self.rooms) >= wanted:
                break
            width = rng.randint(self.MIN_ROOM_WIDTH, self.MAX_ROOM_WIDTH)
            height = rng.randint(self.MIN_ROOM_HEIGHT, self.MAX_ROOM_HEIGHT)
            x = rng.randint(1, self.WIDTH - width - 2)
            y = rng.randint(1, self.HEIGHT - height - 2)
            room = Room(x=x, y=y, width=width, height=height)
            if not any(self._rooms_overlap(room, other) for other in self.rooms):
                self._carve_room(room)
                self.rooms.append(room)

    def _connect_rooms(self, rng: Mt19937) -> None:
        if len(self.rooms) < 2:
            return
        for a, b in pairwise(self.rooms):
            self._carve_l_corridor(
                a.center_x(), a.center_y(), b.center_x(), b.center_y(), rng
            )
        if len(self.rooms) > 2:
            first, last = self.rooms[0], self.rooms[-1]
            self._carve_l_corridor(
                first.center_x(), first.center_y(),
                last.center_x(), last.center_y(), rng,
            )

    def _random_gate_position(self, direction: str, rng: Mt19937) -> tuple[int, int]:
        margin = self.GATE_MARGIN
        if direction == "north":
            return rng.randint(margin, self.WIDTH - margin - 1), 0
        if direction == "south":
            return rng.randint(margin, self.WIDTH - margin - 1), self.HEIGHT - 1
        if direction == "west":
            return 0, rng.randint(margin, self.HEIGHT - margin - 1)
        return self.WIDTH - 1, rng.randint(margin, self.HEIGHT - margin - 1)

    def _place_gate(self, x: int, y: int, direction: str, rng: Mt19937) -> None:
        if not self._in_bounds(x, y):
            raise ValueError(f"gate position ({x}, {y}) is outside the dungeon")
        gate = Gate(x=x, y=y, direction=direction)
        self.gates.append(gate)
        self._tiles[y][x] = Tile.GATE
        self._connect_gate(gate, rng)

    def _connect_gate(self, gate: Gate, rng: Mt19937) -> None:
        if not self.rooms:
            return
        nearest = min(
            self.rooms,
            key=lambda r: abs(gate.x - r.center_x()) + abs(gate.y - r.center_y()),
        )

        start_x, start_y = gate.x, gate.y
        if gate.direction == "north":
            start_y = 1
        elif gate.direction == "south":
            start_y = self.HEIGHT - 2
        elif gate.direction == "west":
            start_x = 1
        elif gate.direction == "east":
            start_x = self.WIDTH - 2

        self._carve_l_corridor(
            start_x, start_y, nearest.center_x(), nearest.center_y(), rng
        )