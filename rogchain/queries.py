"""Read-only queries about a player's situation in the game-state database."""

from __future__ import annotations

import sqlite3


def player_exists(conn: sqlite3.Connection, name: str) -> bool:
    """Return whether a player with the given name is registered."""
    (count,) = conn.execute(
        "SELECT COUNT(*) FROM `players` WHERE `name` = ?1", (name,)
    ).fetchone()
    return int(count) > 0


def player_in_channel(conn: sqlite3.Connection, name: str) -> bool:
    """Return whether the player is currently inside a channel session.

    An unknown player is not in a channel.
    """
    row = conn.execute(
        "SELECT `in_channel` FROM `players` WHERE `name` = ?1", (name,)
    ).fetchone()
    if row is None or row[0] is None:
        return False
    return int(row[0]) != 0


def player_in_active_visit(conn: sqlite3.Connection, name: str) -> bool:
    """Return whether the player takes part in any open or active visit."""
    (count,) = conn.execute(
        "SELECT COUNT(*) FROM `visit_participants` vp"
        " JOIN `visits` v ON vp.`visit_id` = v.`id`"
        " WHERE vp.`name` = ?1"
        " AND (v.`status` = 'open' OR v.`status` = 'active')",
        (name,),
    ).fetchone()
    return int(count) > 0