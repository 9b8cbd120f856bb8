"""A deterministic dungeon session: player actions, monster AI and loot.

The same seed, depth, player stats and action sequence always produce the
same outcome, so any node can replay a session to verify claimed results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from rogchain.combat import PlayerStats, monster_attack_player, player_attack_monster
from rogchain.dungeon import Dungeon, Tile
from rogchain.items import lookup_item, spawnable_items
from rogchain.monsters import Monster, spawn_monsters
from rogchain.rng import Mt19937, hash_seed

_SAFE_SPAWN_DISTANCE = 5
_GOLD = "gold_coins"
_HEALTH_POTION = "health_potion"


@dataclass
class GroundItem:
    """An item lying on the dungeon floor."""

    x: int
    y: int
    item_id: str
    quantity: int


class ActionType(Enum):
    """Kinds of player action."""

    MOVE = "move"
    PICKUP = "pickup"
    USE_ITEM = "use_item"
    ENTER_GATE = "enter_gate"
    WAIT = "wait"


@dataclass(frozen=True)
class Action:
    """A player action; ``dx``/``dy`` apply to moves, ``item_id`` to item use."""

    type: ActionType
    dx: int = 0
    dy: int = 0
    item_id: str = ""


@dataclass
class CollectedItem:
    """An item collected during the session."""

    item_id: str
    quantity: int


def _manhattan(x1: int, y1: int, x2: int, y2: int) -> int:
    return abs(x1 - x2) + abs(y1 - y2)


@dataclass(eq=False)
class DungeonGame:
    """A complete dungeon game session."""

    dungeon: Dungeon = field(default_factory=Dungeon)
    rng: Mt19937 = field(default_factory=Mt19937, repr=False)
    player_x: int = 0
    player_y: int = 0
    player_hp: int = 0
    player_max_hp: int = 0
    stats: PlayerStats = field(default_factory=PlayerStats)
    monsters: list[Monster] = field(default_factory=list)
    ground_items: list[GroundItem] = field(default_factory=list)
    turn_count: int = 0
    total_xp: int = 0
    total_gold: int = 0
    total_kills: int = 0
    loot: list[CollectedItem] = field(default_factory=list)
    game_over: bool = False
    survived: bool = False
    exit_gate: str = ""
    depth: int = 0
    action_log: list[Action] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        seed: str,
        depth: int,
        stats: PlayerStats,
        hp: int,
        max_hp: int,
        starting_potions: Iterable[tuple[str, int]] = (),
    ) -> "DungeonGame":
        """Start a new session for the given seed, depth and player."""
        game = cls(
            dungeon=Dungeon.generate(seed, depth),
            rng=Mt19937(hash_seed(f"{seed}:game:{depth}")),
            player_hp=hp,
            player_max_hp=max_hp,
            stats=stats,
            depth=depth,
        )

        rooms = game.dungeon.rooms
        if rooms:
            game.player_x, game.player_y = rooms[0].center_x(), rooms[0].center_y()
        else:
            game.player_x, game.player_y = Dungeon.WIDTH // 2, Dungeon.HEIGHT // 2

        game.monsters = [
            m
            for m in spawn_monsters(game.dungeon, depth, game.rng)
            if _manhattan(m.x, m.y, game.player_x, game.player_y)
            >= _SAFE_SPAWN_DISTANCE
        ]

        game._spawn_ground_items()

        game.loot.extend(
            CollectedItem(item_id, qty) for item_id, qty in starting_potions if qty > 0
        )
        return game

    @classmethod
    def replay(
        cls,
        seed: str,
        depth: int,
        stats: PlayerStats,
        hp: int,
        max_hp: int,
        starting_potions: Iterable[tuple[str, int]],
        actions: Iterable[Action],
    ) -> "DungeonGame":
        """Create a session and apply actions until the first invalid one."""
        game = cls.create(seed, depth, stats, hp, max_hp, starting_potions)
        for action in actions:
            if not game.process_action(action):
                break
        return game

    def process_action(self, action: Action) -> bool:
        """Apply one player action, then let the monsters act.

        Returns False, consuming no turn, if the action is not valid.
        """
        if self.game_over:
            return False

        handlers = {
            ActionType.MOVE: self._move,
            ActionType.PICKUP: self._pickup,
            ActionType.USE_ITEM: self._use_item,
            ActionType.ENTER_GATE: self._enter_gate,
            ActionType.WAIT: lambda _action: True,
        }
        if not handlers[action.type](action):
            return False

        self.action_log.append(action)
        self.turn_count += 1

        if not self.game_over:
            self._monster_turns()
        return True

    def serialize_rng(self) -> str:
        """Return a text snapshot of the random generator state."""
        return self.rng.serialize()

    def restore_rng(self, data: str) -> None:
        """Restore the random generator from a snapshot."""
        self.rng.restore(data)

    # Player actions.

    def _move(self, action: Action) -> bool:
        if not (-1 <= action.dx <= 1 and -1 <= action.dy <= 1):
            return False
        if action.dx == 0 and action.dy == 0:
            return False

        nx = self.player_x + action.dx
        ny = self.player_y + action.dy

        target = self._monster_at(nx, ny)
        if target is not None:
            self._attack(target)
            return True
        if self._is_walkable(nx, ny):
            self.player_x, self.player_y = nx, ny
            return True
        return False

    def _attack(self, target: Monster) -> None:
        result = player_attack_monster(self.stats, target.defense, self.rng)
        if not result.hit:
            return
        target.hp -= result.damage
        if target.hp > 0:
            return

        target.alive = False
        self.total_xp += target.xp_value
        self.total_kills += 1

        if self.rng.randint(1, 100) > 35:
            return
        drop_roll = self.rng.randint(1, 100)
        if drop_roll <= 50:
            amount = self.rng.randint(1, 5 + self.depth * 3)
            self.ground_items.append(GroundItem(target.x, target.y, _GOLD, amount))
        elif drop_roll <= 75:
            self.ground_items.append(
                GroundItem(target.x, target.y, _HEALTH_POTION, 1)
            )
        else:
            spawnable = spawnable_items(self.depth)
            if spawnable:
                item = spawnable[self.rng.randint(0, len(spawnable) - 1)]
                self.ground_items.append(GroundItem(target.x, target.y, item.id, 1))

    def _pickup(self, action: Action) -> bool:
        item = self._item_at(self.player_x, self.player_y)
        if item is None:
            return False

        if item.item_id == _GOLD:
            self.total_gold += item.quantity
        else:
            existing = next((l for l in self.loot if l.item_id == item.item_id), None)
            if existing is not None:
                existing.quantity += item.quantity
            else:
                self.loot.append(CollectedItem(item.item_id, item.quantity))

        picked = item.item_id
        self.ground_items = [
            gi
            for gi in self.ground_items
            if not (
                gi.x == self.player_x and gi.y == self.player_y and gi.item_id == picked
            )
        ]
        return True

    def _use_item(self, action: Action) -> bool:
        item = lookup_item(action.item_id)
        if item is None or not item.consumable or item.heal_amount <= 0:
            return False

        entry = next(
            (l for l in self.loot if l.item_id == action.item_id and l.quantity > 0),
            None,
        )
        if entry is None:
            return False
        entry.quantity -= 1
        self.player_hp = min(self.player_hp + item.heal_amount, self.player_max_hp)
        return True

    def _enter_gate(self, action: Action) -> bool:
        if self.dungeon.get_tile(self.player_x, self.player_y) != Tile.GATE:
            return False
        gate = next(
            (
                g
                for g in self.dungeon.gates
                if g.x == self.player_x and g.y == self.player_y
            ),
            None,
        )
        if gate is not None:
            self.exit_gate = gate.direction
        self.game_over = True
        self.survived = True
        return True

    # Monsters.

    def _monster_turns(self) -> None:
        for monster in self.monsters:
            if not monster.alive:
                continue
            self._monster_act(monster)
            if self.game_over:
                return

    def _monster_act(self, m: Monster) -> None:
        dist = _manhattan(m.x, m.y, self.player_x, self.player_y)

        if (
            not m.aware_of_player
            and dist <= m.detection_range
            and self._has_line_of_sight(m.x, m.y, self.player_x, self.player_y)
        ):
            m.aware_of_player = True

        if not m.aware_of_player:
            if self.rng.randint(1, 4) == 1:
                nx = m.x + self.rng.randint(-1, 1)
                ny = m.y + self.rng.randint(-1, 1)
                if (
                    0 <= nx < Dungeon.WIDTH
                    and 0 <= ny < Dungeon.HEIGHT
                    and self.dungeon.get_tile(nx, ny) != Tile.WALL
                    and (nx, ny) != (self.player_x, self.player_y)
                    and self._monster_at(nx, ny) is None
                ):
                    m.x, m.y = nx, ny
            return

        if abs(m.x - self.player_x) <= 1 and abs(m.y - self.player_y) <= 1:
            result = monster_attack_player(m.attack, m.crit_chance, self.stats, self.rng)
            if result.hit:
                self.player_hp -= result.damage
                if self.player_hp <= 0:
                    self._player_died()
            return

        best_dist = dist
        best = (m.x, m.y)
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                nx, ny = m.x + dx, m.y + dy
                if not (0 <= nx < Dungeon.WIDTH and 0 <= ny < Dungeon.HEIGHT):
                    continue
                if self.dungeon.get_tile(nx, ny) == Tile.WALL:
                    continue
                if (nx, ny) == (self.player_x, self.player_y):
                    continue
                if self._monster_at(nx, ny) is not None:
                    continue
                d = _manhattan(nx, ny, self.player_x, self.player_y)
                if d < best_dist:
                    best_dist = d
                    best = (nx, ny)
        m.x, m.y = best

    def _player_died(self) -> None:
        self.player_hp = 0
        self.game_over = True
        self.survived = False

    # Queries.

    def _is_walkable(self, x: int, y: int) -> bool:
        if not (0 <= x < Dungeon.WIDTH and 0 <= y < Dungeon.HEIGHT):
            return False
        if self.dungeon.get_tile(x, y) == Tile.WALL:
            return False
        return self._monster_at(x, y) is None

    def _monster_at(self, x: int, y: int) -> Monster | None:
        return next(
            (m for m in self.monsters if m.alive and m.x == x and m.y == y), None
        )

    def _item_at(self, x: int, y: int) -> GroundItem | None:
        return next((gi for gi in self.ground_items if gi.x == x and gi.y == y), None)

    def _has_line_of_sight(self, x1: int, y1: int, x2: int, y2: int) -> bool:
        dx = abs(x2 - x1)
        dy = -abs(y2 - y1)
        sx = 1 if x1 < x2 else -1
        sy = 1 if y1 < y2 else -1
        err = dx + dy

        cx, cy = x1, y1
        while cx != x2 or cy != y2:
            if self.dungeon.get_tile(cx, cy) == Tile.WALL and (cx, cy) != (x1, y1):
                return False
            e2 = 2 * err
            if e2 >= dy:
                err += dy
                cx += sx
            if e2 <= dx:
                err += dx
                cy += sy
        return True

    # Setup.

    def _spawn_ground_items(self) -> None:
        count = self.rng.randint(6, 12)
        spawnable = spawnable_items(self.depth)
        has_gold = lookup_item(_GOLD) is not None
        has_potion = lookup_item(_HEALTH_POTION) is not None

        for _ in range(count):
            position = self.dungeon.random_floor_position(self.rng)
            if position is None:
                continue
            x, y = position
            if (x, y) == (self.player_x, self.player_y):
                continue

            roll = self.rng.randint(1, 100)
            if roll <= 30 and has_gold:
                qty = self.rng.randint(1 + self.depth, 5 + self.depth * 3)
                self.ground_items.append(GroundItem(x, y, _GOLD, qty))
            elif roll <= 55 and has_potion:
                self.ground_items.append(GroundItem(x, y, _HEALTH_POTION, 1))
            elif spawnable:
                item = spawnable[self.rng.randint(0, len(spawnable) - 1)]
                self.ground_items.append(GroundItem(x, y, item.id, 1))