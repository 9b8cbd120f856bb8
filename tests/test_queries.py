import sqlite3

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from rogchain.queries import player_exists, player_in_active_visit, player_in_channel

_SCHEMA = """
CREATE TABLE `players` (
  `name` TEXT PRIMARY KEY,
  `in_channel` INTEGER
);
CREATE TABLE `visits` (
  `id` INTEGER PRIMARY KEY,
  `status` TEXT NOT NULL
);
CREATE TABLE `visit_participants` (
  `visit_id` INTEGER NOT NULL,
  `name` TEXT NOT NULL
);
"""


def _connect() -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:")
    conn.executescript(_SCHEMA)
    return conn


@pytest.fixture
def conn():
    connection = _connect()
    yield connection
    connection.close()


def _add_player(conn, name, in_channel=0):
    conn.execute(
        "INSERT INTO `players` (`name`, `in_channel`) VALUES (?, ?)",
        (name, in_channel),
    )


def _add_visit(conn, visit_id, status, participants):
    conn.execute(
        "INSERT INTO `visits` (`id`, `status`) VALUES (?, ?)", (visit_id, status)
    )
    conn.executemany(
        "INSERT INTO `visit_participants` (`visit_id`, `name`) VALUES (?, ?)",
        [(visit_id, p) for p in participants],
    )


def test_player_exists_after_insert(conn):
    _add_player(conn, "alice")
    assert player_exists(conn, "alice") is True


def test_unknown_player_does_not_exist(conn):
    _add_player(conn, "alice")
    assert player_exists(conn, "nobody") is False


def test_player_exists_empty_table(conn):
    assert player_exists(conn, "alice") is False


def test_player_name_match_is_exact(conn):
    _add_player(conn, "alice")
    assert player_exists(conn, "Alice") is False
    assert player_exists(conn, "alice ") is False


@settings(max_examples=30)
@given(st.text(max_size=20))
def test_player_exists_round_trip(name):
    connection = _connect()
    try:
        assert player_exists(connection, name) is False
        _add_player(connection, name)
        assert player_exists(connection, name) is True
    finally:
        connection.close()


def test_not_in_channel_by_default(conn):
    _add_player(conn, "alice", 0)
    assert player_in_channel(conn, "alice") is False


def test_in_channel_when_flag_set(conn):
    _add_player(conn, "alice", 1)
    assert player_in_channel(conn, "alice") is True


def test_unknown_player_not_in_channel(conn):
    _add_player(conn, "alice", 1)
    assert player_in_channel(conn, "bob") is False


def test_null_channel_flag_counts_as_not_in_channel(conn):
    _add_player(conn, "alice", None)
    assert player_in_channel(conn, "alice") is False


def test_channel_flag_is_per_player(conn):
    _add_player(conn, "alice", 1)
    _add_player(conn, "bob", 0)
    assert player_in_channel(conn, "alice") is True
    assert player_in_channel(conn, "bob") is False


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("open", True),
        ("active", True),
        ("completed", False),
        ("expired", False),
    ],
)
def test_active_visit_depends_on_status(conn, status, expected):
    _add_player(conn, "alice")
    _add_visit(conn, 1, status, ["alice"])
    assert player_in_active_visit(conn, "alice") is expected


def test_no_visits_means_not_in_active_visit(conn):
    _add_player(conn, "alice")
    assert player_in_active_visit(conn, "alice") is False


def test_other_players_visit_does_not_count(conn):
    _add_player(conn, "alice")
    _add_player(conn, "bob")
    _add_visit(conn, 1, "open", ["bob"])
    assert player_in_active_visit(conn, "alice") is False
    assert player_in_active_visit(conn, "bob") is True


def test_one_open_visit_among_finished_ones(conn):
    _add_player(conn, "alice")
    _add_visit(conn, 1, "completed", ["alice"])
    _add_visit(conn, 2, "expired", ["alice"])
    assert player_in_active_visit(conn, "alice") is False
    _add_visit(conn, 3, "active", ["alice", "bob"])
    assert player_in_active_visit(conn, "alice") is True
    assert player_in_active_visit(conn, "bob") is True


def test_participant_of_missing_visit_is_not_active(conn):
    conn.execute(
        "INSERT INTO `visit_participants` (`visit_id`, `name`) VALUES (?, ?)",
        (42, "alice"),
    )
    assert player_in_active_visit(conn, "alice") is False


def test_visit_status_change_is_seen(conn):
    _add_visit(conn, 1, "open", ["alice"])
    assert player_in_active_visit(conn, "alice") is True
    conn.execute("UPDATE `visits` SET `status` = 'completed' WHERE `id` = 1")
    assert player_in_active_visit(conn, "alice") is False