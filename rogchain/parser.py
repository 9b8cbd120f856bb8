"""Validation of moves against the game state, dispatching to handlers.

Moves come from the chain and are untrusted.  A move that fails validation
is logged and ignored.  Moves that pass are handed to the ``process_*``
methods, which subclasses implement to update the database or to track
pending state.
"""

from __future__ import annotations

import logging
import math
import sqlite3
from abc import ABC, abstractmethod
from typing import Any

from rogchain.queries import player_exists, player_in_active_visit, player_in_channel

log = logging.getLogger(__name__)

DIRECTIONS = frozenset({"north", "south", "east", "west"})
STATS = frozenset({"strength", "dexterity", "constitution", "intelligence"})
EQUIP_SLOTS = frozenset(
    {"weapon", "offhand", "head", "body", "feet", "ring", "amulet"}
)
MIN_DISCOVER_DEPTH = 1
MAX_DISCOVER_DEPTH = 20

_INT32 = (-(2**31), 2**31 - 1)
_INT64 = (-(2**63), 2**63 - 1)


def _is_integral(value: Any, bounds: tuple[int, int]) -> bool:
    """Whether a JSON value is an integer within bounds (integral floats count)."""
    low, high = bounds
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return low <= value <= high
    if isinstance(value, float):
        return math.isfinite(value) and value.is_integer() and low <= value <= high
    return False


def _is_int(value: Any) -> bool:
    return _is_integral(value, _INT32)


def _is_int64(value: Any) -> bool:
    return _is_integral(value, _INT64)


def _as_string(value: Any) -> str:
    """Convert a scalar JSON value to text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise TypeError(f"JSON value is not convertible to a string: {value!r}")


class MoveParser(ABC):
    """Validates moves and dispatches valid ones to the ``process_*`` methods."""

    def __init__(self, conn: sqlite3.Connection, height: int) -> None:
        self.conn = conn
        self.current_height = height

    # Database helpers.

    def _row(self, sql: str, params: tuple) -> tuple | None:
        return self.conn.execute(sql, params).fetchone()

    def _scalar(self, sql: str, params: tuple) -> int:
        row = self._row(sql, params)
        if row is None or row[0] is None:
            return 0
        return int(row[0])

    def _hp_and_segment(self, name: str) -> tuple[int, int]:
        row = self._row(
            "SELECT `hp`, `current_segment` FROM `players` WHERE `name` = ?1",
            (name,),
        )
        if row is None:
            return 0, 0
        return int(row[0] or 0), int(row[1] or 0)

    def _visit_status(self, visit_id: int) -> tuple[str, str] | None:
        row = self._row(
            "SELECT `status`, `initiator` FROM `visits` WHERE `id` = ?1",
            (visit_id,),
        )
        if row is None:
            return None
        return str(row[0] or ""), str(row[1] or "")

    def _is_participant(self, visit_id: int, name: str) -> bool:
        return (
            self._scalar(
                "SELECT COUNT(*) FROM `visit_participants`"
                " WHERE `visit_id` = ?1 AND `name` = ?2",
                (visit_id, name),
            )
            > 0
        )

    def _link_exists(self, segment: int, direction: str) -> bool:
        return (
            self._scalar(
                "SELECT COUNT(*) FROM `segment_links`"
                " WHERE `from_segment` = ?1 AND `from_direction` = ?2",
                (segment, direction),
            )
            > 0
        )

    def _segment_exists(self, segment_id: int) -> bool:
        return (
            self._scalar("SELECT COUNT(*) FROM `segments` WHERE `id` = ?1", (segment_id,))
            > 0
        )

    def _inventory_slot(self, rowid: int, name: str) -> str | None:
        row = self._row(
            "SELECT `slot` FROM `inventory` WHERE `rowid` = ?1 AND `name` = ?2",
            (rowid, name),
        )
        if row is None:
            return None
        return str(row[0] or "")

    def _registered(self, name: str) -> bool:
        if not player_exists(self.conn, name):
            log.warning("Player %s not registered", name)
            return False
        return True

    @staticmethod
    def _id_field(op: Any, what: str, missing: str) -> int | None:
        if not isinstance(op, dict):
            log.warning("Invalid %s move: %r", what, op)
            return None
        if not _is_int64(op.get("id")):
            log.warning("%s: %r", missing, op)
            return None
        return int(op["id"])

    # Entry point.

    def process_one(self, obj: Any) -> None:
        """Validate and dispatch a single entry of a block's moves array."""
        if not isinstance(obj, dict):
            log.warning("Move is not an object: %r", obj)
            return

        name = obj.get("name")
        if not isinstance(name, str):
            log.warning("Move has no name: %r", obj)
            return

        txid = ""
        if "mvid" in obj:
            txid = _as_string(obj["mvid"])
        elif "txid" in obj:
            txid = _as_string(obj["txid"])

        mv = obj.get("move")
        if not isinstance(mv, dict):
            log.warning("Invalid move from %s: %r", name, mv)
            return

        self._handle_operation(name, txid, mv)

    def _handle_operation(self, name: str, txid: str, mv: dict) -> None:
        if len(mv) != 1:
            log.warning("Move must have exactly one action key: %r", mv)
            return

        ((key, op),) = mv.items()
        if key == "r":
            self._handle_register(name, op)
        elif key == "d":
            self._handle_discover(name, txid, op)
        elif key == "v":
            self._handle_visit(name, op)
        elif key == "j":
            self._handle_join(name, op)
        elif key == "lv":
            self._handle_leave(name, op)
        elif key == "s":
            self._handle_settle(name, op)
        elif key == "as":
            self._handle_allocate_stat(name, op)
        elif key == "t":
            self._handle_travel(name, txid, op)
        elif key == "ui":
            self._handle_use_item(name, op)
        elif key == "eq":
            self._handle_equip(name, op)
        elif key == "uq":
            self._handle_unequip(name, op)
        elif key == "ec":
            self._handle_enter_channel(name, op)
        elif key == "xc":
            self._handle_exit_channel(name, op)
        else:
            log.warning("Unknown action in move: %r", mv)

    # Handlers.

    def _handle_register(self, name: str, op: Any) -> None:
        if not isinstance(op, dict) or op:
            log.warning("Invalid register move: %r", op)
            return
        if player_exists(self.conn, name):
            log.warning("Player %s already registered", name)
            return
        self.process_register(name)

    def _handle_discover(self, name: str, txid: str, op: Any) -> None:
        if not isinstance(op, dict):
            log.warning("Invalid discover move: %r", op)
            return
        if not _is_int(op.get("depth")):
            log.warning("Discover move missing depth: %r", op)
            return
        depth = int(op["depth"])
        if not MIN_DISCOVER_DEPTH <= depth <= MAX_DISCOVER_DEPTH:
            log.warning("Discover depth out of range: %d", depth)
            return
        if not self._registered(name):
            return
        if player_in_active_visit(self.conn, name):
            log.warning("Player %s already in an active visit", name)
            return
        if player_in_channel(self.conn, name):
            log.warning("Player %s is in a channel", name)
            return

        direction = ""
        if "dir" in op:
            if not isinstance(op["dir"], str):
                log.warning("Invalid dir in discover: %r", op)
                return
            direction = op["dir"]
            if direction not in DIRECTIONS:
                log.warning("Invalid direction: %s", direction)
                return
            current = self._scalar(
                "SELECT `current_segment` FROM `players` WHERE `name` = ?1", (name,)
            )
            if self._link_exists(current, direction):
                log.warning("Segment %d already has a link %s", current, direction)
                return

        self.process_discover(name, depth, txid, direction)

    def _handle_visit(self, name: str, op: Any) -> None:
        segment_id = self._id_field(op, "visit", "Visit move missing segment id")
        if segment_id is None or not self._registered(name):
            return
        if player_in_active_visit(self.conn, name):
            log.warning("Player %s already in an active visit", name)
            return
        if not self._segment_exists(segment_id):
            log.warning("Segment %d does not exist", segment_id)
            return
        running = self._scalar(
            "SELECT COUNT(*) FROM `visits` WHERE `segment_id` = ?1"
            " AND (`status` = 'open' OR `status` = 'active')",
            (segment_id,),
        )
        if running > 0:
            log.warning("Segment %d already has an open or active visit", segment_id)
            return
        self.process_visit(name, segment_id)

    def _handle_join(self, name: str, op: Any) -> None:
        visit_id = self._id_field(op, "join", "Join move missing visit id")
        if visit_id is None or not self._registered(name):
            return
        if player_in_active_visit(self.conn, name):
            log.warning("Player %s already in an active visit", name)
            return

        row = self._row(
            "SELECT v.`status`, s.`max_players`,"
            " (SELECT COUNT(*) FROM `visit_participants` WHERE `visit_id` = ?1)"
            " FROM `visits` v JOIN `segments` s ON v.`segment_id` = s.`id`"
            " WHERE v.`id` = ?1",
            (visit_id,),
        )
        if row is None:
            log.warning("Visit %d does not exist", visit_id)
            return
        status = str(row[0] or "")
        max_players = int(row[1] or 0)
        current_players = int(row[2] or 0)

        if status != "open":
            log.warning("Visit %d is not open (status: %s)", visit_id, status)
            return
        if current_players >= max_players:
            log.warning("Visit %d is full", visit_id)
            return
        if self._is_participant(visit_id, name):
            log.warning("Player %s already in visit %d", name, visit_id)
            return
        self.process_join(name, visit_id)

    def _handle_leave(self, name: str, op: Any) -> None:
        visit_id = self._id_field(op, "leave", "Leave move missing visit id")
        if visit_id is None:
            return
        visit = self._visit_status(visit_id)
        if visit is None:
            log.warning("Visit %d does not exist", visit_id)
            return
        status, initiator = visit
        if status != "open":
            log.warning("Cannot leave visit %d (status: %s)", visit_id, status)
            return
        if name == initiator:
            log.warning("Initiator %s cannot leave their own visit", name)
            return
        if not self._is_participant(visit_id, name):
            log.warning("Player %s is not in visit %d", name, visit_id)
            return
        self.process_leave(name, visit_id)

    def _handle_settle(self, name: str, op: Any) -> None:
        visit_id = self._id_field(op, "settle", "Settle move missing visit id")
        if visit_id is None:
            return
        results = op.get("results")
        if not isinstance(results, list):
            log.warning("Settle move missing results array: %r", op)
            return

        visit = self._visit_status(visit_id)
        if visit is None:
            log.warning("Visit %d does not exist", visit_id)
            return
        status, initiator = visit
        if status != "active":
            log.warning("Visit %d is not active (status: %s)", visit_id, status)
            return
        if name != initiator:
            log.warning(
                "Only initiator %s can settle visit %d, not %s",
                initiator, visit_id, name,
            )
            return

        if all(self._valid_result(visit_id, r) for r in results):
            self.process_settle(name, visit_id, results)

    def _valid_result(self, visit_id: int, result: Any) -> bool:
        if not isinstance(result, dict):
            log.warning("Invalid result entry: %r", result)
            return False
        player = result.get("p")
        if not isinstance(player, str):
            log.warning("Result missing player name: %r", result)
            return False
        if not self._is_participant(visit_id, player):
            log.warning("Player %s is not a participant of visit %d", player, visit_id)
            return False
        for key in ("xp", "gold", "kills"):
            if key in result and (not _is_int(result[key]) or result[key] < 0):
                log.warning("Invalid %s in result: %r", key, result)
                return False
        if "loot" in result:
            loot = result["loot"]
            if not isinstance(loot, list):
                log.warning("Invalid loot in result: %r", result)
                return False
            for entry in loot:
                if (
                    not isinstance(entry, dict)
                    or not isinstance(entry.get("item"), str)
                    or not _is_int(entry.get("n"))
                    or entry["n"] <= 0
                ):
                    log.warning("Invalid loot entry: %r", entry)
                    return False
        return True

    def _handle_allocate_stat(self, name: str, op: Any) -> None:
        if not isinstance(op, dict):
            log.warning("Invalid allocate stat move: %r", op)
            return
        stat = op.get("stat")
        if not isinstance(stat, str):
            log.warning("Allocate stat missing stat name: %r", op)
            return
        if stat not in STATS:
            log.warning("Invalid stat name: %s", stat)
            return
        if not self._registered(name):
            return
        points = self._scalar(
            "SELECT `stat_points` FROM `players` WHERE `name` = ?1", (name,)
        )
        if points <= 0:
            log.warning("Player %s has no stat points", name)
            return
        self.process_allocate_stat(name, stat)

    def _handle_travel(self, name: str, txid: str, op: Any) -> None:
        if not isinstance(op, dict):
            log.warning("Invalid travel move: %r", op)
            return
        direction = op.get("dir")
        if not isinstance(direction, str):
            log.warning("Travel move missing dir: %r", op)
            return
        if direction not in DIRECTIONS:
            log.warning("Invalid travel direction: %s", direction)
            return
        if not self._registered(name):
            return
        if player_in_channel(self.conn, name):
            log.warning("Player %s is in a channel", name)
            return
        if player_in_active_visit(self.conn, name):
            log.warning("Player %s is in an active visit", name)
            return
        hp, current = self._hp_and_segment(name)
        if hp <= 0:
            log.warning("Player %s has 0 HP, cannot travel", name)
            return
        if not self._link_exists(current, direction):
            log.warning("No link from segment %d in direction %s", current, direction)
            return
        self.process_travel(name, direction, txid)

    def _handle_use_item(self, name: str, op: Any) -> None:
        if not isinstance(op, dict):
            log.warning("Invalid use item move: %r", op)
            return
        item_id = op.get("item")
        if not isinstance(item_id, str):
            log.warning("Use item move missing item: %r", op)
            return
        if not self._registered(name):
            return
        if player_in_channel(self.conn, name):
            log.warning("Player %s is in a channel", name)
            return
        row = self._row(
            "SELECT `quantity` FROM `inventory`"
            " WHERE `name` = ?1 AND `item_id` = ?2 AND `slot` = 'bag' LIMIT 1",
            (name, item_id),
        )
        if row is None:
            log.warning("Player %s has no %s in bag", name, item_id)
            return
        if int(row[0] or 0) <= 0:
            log.warning("Player %s has no %s", name, item_id)
            return
        self.process_use_item(name, item_id)

    def _handle_equip(self, name: str, op: Any) -> None:
        if not isinstance(op, dict):
            log.warning("Invalid equip move: %r", op)
            return
        if not _is_int64(op.get("rowid")):
            log.warning("Equip move missing rowid: %r", op)
            return
        slot = op.get("slot")
        if not isinstance(slot, str):
            log.warning("Equip move missing slot: %r", op)
            return
        rowid = int(op["rowid"])
        if slot not in EQUIP_SLOTS:
            log.warning("Invalid equip slot: %s", slot)
            return
        if not self._registered(name):
            return
        if player_in_channel(self.conn, name):
            log.warning("Player %s is in a channel", name)
            return
        current = self._inventory_slot(rowid, name)
        if current is None:
            log.warning("Item %d not found for %s", rowid, name)
            return
        if current != "bag":
            log.warning("Item %d is not in bag (in %s)", rowid, current)
            return
        self.process_equip(name, rowid, slot)

    def _handle_unequip(self, name: str, op: Any) -> None:
        if not isinstance(op, dict):
            log.warning("Invalid unequip move: %r", op)
            return
        if not _is_int64(op.get("rowid")):
            log.warning("Unequip move missing rowid: %r", op)
            return
        rowid = int(op["rowid"])
        if not self._registered(name):
            return
        if player_in_channel(self.conn, name):
            log.warning("Player %s is in a channel", name)
            return
        current = self._inventory_slot(rowid, name)
        if current is None:
            log.warning("Item %d not found for %s", rowid, name)
            return
        if current == "bag":
            log.warning("Item %d is already in bag", rowid)
            return
        self.process_unequip(name, rowid)

    def _handle_enter_channel(self, name: str, op: Any) -> None:
        segment_id = self._id_field(
            op, "enter channel", "Enter channel missing segment id"
        )
        if segment_id is None or not self._registered(name):
            return
        if player_in_channel(self.conn, name):
            log.warning("Player %s already in a channel", name)
            return
        if player_in_active_visit(self.conn, name):
            log.warning("Player %s is in an active visit", name)
            return
        hp, current = self._hp_and_segment(name)
        if hp <= 0:
            log.warning("Player %s has 0 HP, cannot enter channel", name)
            return
        if current != segment_id:
            log.warning("Player %s is at segment %d, not %d", name, current, segment_id)
            return
        if not self._segment_exists(segment_id):
            log.warning("Segment %d does not exist", segment_id)
            return
        self.process_enter_channel(name, segment_id)

    def _handle_exit_channel(self, name: str, op: Any) -> None:
        visit_id = self._id_field(op, "exit channel", "Exit channel missing visit id")
        if visit_id is None or not self._registered(name):
            return
        if not player_in_channel(self.conn, name):
            log.warning("Player %s is not in a channel", name)
            return
        if not isinstance(op.get("results"), dict):
            log.warning("Exit channel missing results: %r", op)
            return
        if not isinstance(op.get("actions"), list):
            log.warning("Exit channel missing actions proof: %r", op)
            return
        visit = self._visit_status(visit_id)
        if visit is None:
            log.warning("Visit %d does not exist", visit_id)
            return
        status, initiator = visit
        if status != "active":
            log.warning("Visit %d is not active", visit_id)
            return
        if name != initiator:
            log.warning("Only initiator can exit channel visit %d", visit_id)
            return
        self.process_exit_channel(name, visit_id, op["results"], op["actions"])

    # Actions on validated moves.

    @abstractmethod
    def process_register(self, name: str) -> None:
        """Register a new player."""

    @abstractmethod
    def process_discover(self, name: str, depth: int, txid: str, direction: str) -> None:
        """Discover a new segment; ``direction`` is empty for an unlinked one."""

    @abstractmethod
    def process_visit(self, name: str, segment_id: int) -> None:
        """Start a new visit to an existing segment."""

    @abstractmethod
    def process_join(self, name: str, visit_id: int) -> None:
        """Join an open visit."""

    @abstractmethod
    def process_leave(self, name: str, visit_id: int) -> None:
        """Leave an open visit."""

    @abstractmethod
    def process_settle(self, name: str, visit_id: int, results: list) -> None:
        """Settle an active visit with the given results."""

    @abstractmethod
    def process_allocate_stat(self, name: str, stat: str) -> None:
        """Spend one stat point on the named stat."""

    @abstractmethod
    def process_travel(self, name: str, direction: str, txid: str) -> None:
        """Travel through a linked gate."""

    @abstractmethod
    def process_use_item(self, name: str, item_id: str) -> None:
        """Use an item from the bag."""

    @abstractmethod
    def process_equip(self, name: str, rowid: int, slot: str) -> None:
        """Equip an inventory row into a slot."""

    @abstractmethod
    def process_unequip(self, name: str, rowid: int) -> None:
        """Move an equipped inventory row back to the bag."""

    @abstractmethod
    def process_enter_channel(self, name: str, segment_id: int) -> None:
        """Enter a solo channel session in the given segment."""

    @abstractmethod
    def process_exit_channel(
        self, name: str, visit_id: int, results: dict, actions: list
    ) -> None:
        """Close a channel session with claimed results and the action proof."""