# rogchain

A deterministic roguelike engine. Given the same seed, depth, player stats
and actions, every run produces the same dungeon, the same monsters and the
same outcome, so a claimed result can be checked by replaying it. A move
validator checks player moves against an SQLite game state.

## Installation

```
pip install rogchain
```

For the test suite:

```
pip install "rogchain[test]"
pytest
```

## Modules

- `rogchain.rng`: `hash_seed(text)` returns the 32-bit FNV-1a hash of the
  UTF-8 text. `Mt19937(seed)` is a 32-bit Mersenne Twister with
  `next_u32()`, `randint(low, high)` (inclusive bounds),
  `serialize()` and `restore(data)`. `restore` raises `ValueError` on
  malformed state.
- `rogchain.combat`: `PlayerStats`, `AttackResult`, `player_attack_power`,
  `player_defense`, `player_attack_monster` and `monster_attack_player`.
  Both attack functions draw from an `Mt19937`.
- `rogchain.dungeon`: `Tile`, `Room`, `Gate` and `Dungeon`.
  `Dungeon.generate(seed, depth, constraints=None)` builds an 80x40 map
  with rooms, L-shaped corridors and one gate on each outer wall. Gates
  passed in `constraints` are placed at their exact positions, and the
  other directions get random ones. A gate position outside the map raises
  `ValueError`. A dungeon also has `get_tile`, `set_tile`,
  `random_floor_position` (returns `None` when there is no floor) and
  `count_tiles`.
- `rogchain.monsters`: `MonsterTemplate`, `Monster`, `monster_templates()`,
  `create_monster(template, x, y, depth)` (stats scaled by depth, with an
  "Elite" prefix from depth 7) and `spawn_monsters(dungeon, depth, rng)`
  (up to `8 + 2*depth` monsters on distinct floor tiles).
- `rogchain.items`: the item table (`ItemDef`, `all_items`, `lookup_item`,
  `spawnable_items`, `MAX_INVENTORY`) and functions that read a player's
  data from an `sqlite3.Connection`: `compute_player_stats`,
  `count_inventory` and `player_potions`.
- `rogchain.dungeongame`: `DungeonGame`, one dungeon session.
  `DungeonGame.create(...)` starts one. `process_action(action)` takes an
  `Action` (`ActionType.MOVE`, `PICKUP`, `USE_ITEM`, `ENTER_GATE`, `WAIT`)
  and lets the monsters act after it. It returns `False`, using no turn,
  for an invalid action. `DungeonGame.replay(...)` applies a list of actions
  to a fresh session and stops at the first invalid one.
  `serialize_rng` and `restore_rng` save and load the random state.
- `rogchain.queries`: `player_exists`, `player_in_channel` and
  `player_in_active_visit`.
- `rogchain.parser`: `MoveParser(conn, height)`, an abstract base class.
  `process_one(obj)` checks one entry of a block's moves array (register,
  discover, visit, join, leave, settle, allocate stat, travel, use item,
  equip, unequip, enter channel, exit channel) against the database. It
  logs and ignores a move that fails the checks, and passes a valid move to
  the matching `process_*` method, which a subclass implements.

## Example

```python
from rogchain.combat import PlayerStats
from rogchain.dungeongame import Action, ActionType, DungeonGame

game = DungeonGame.create("abc123", 1, PlayerStats(), 100, 100,
                          [("health_potion", 3)])
game.process_action(Action(ActionType.MOVE, dx=1, dy=0))
game.process_action(Action(ActionType.WAIT))
print(game.player_x, game.player_y, game.player_hp, game.turn_count)
```

## What this package does not do

- It does not create the database schema. The SQLite helpers in
  `rogchain.items`, `rogchain.queries` and `rogchain.parser` expect
  existing tables (`players`, `inventory`, `segments`, `segment_links`,
  `visits`, `visit_participants`).
- It has no implementation of the `MoveParser.process_*` methods. Nothing
  in it writes moves to the database, settles visits or expires them.
- It has no daemon, RPC server, command-line program or interactive game
  screen.