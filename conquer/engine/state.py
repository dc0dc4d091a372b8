"""
Game state representation.
All state is immutable; mutations return new state copies.
Includes JSON serialization for snapshots handed to the UI.
"""

import json
from collections import deque
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from conquer.engine import BOARD_SIZE, LOG_CAPACITY, MIN_PLAYERS, MAX_PLAYERS


class Phase(str, Enum):
    """Turn phase. ENDED is terminal until the table is reset."""
    IDLE = "idle"
    CHOOSING_OPERATOR = "choosing_operator"
    CHOOSING_TARGET = "choosing_target"
    ENDED = "ended"


def _int(value: Any, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _ensure_int_list(value: Any) -> list[int]:
    """Ensure value is a list of ints (drops anything unparseable)."""
    if not isinstance(value, list):
        return []
    out = []
    for x in value:
        try:
            out.append(int(x))
        except (TypeError, ValueError):
            continue
    return out


def _ensure_dice(value: Any) -> tuple[int, int] | None:
    dice = _ensure_int_list(value)
    if len(dice) != 2:
        return None
    return dice[0], dice[1]


def _ensure_phase(value: Any) -> Phase:
    try:
        return Phase(value)
    except ValueError:
        return Phase.IDLE


class EventLog:
    """
    Bounded, most-recent-first list of human-readable log lines.
    Backed by a deque with maxlen so the oldest line is evicted on overflow.
    """

    def __init__(self, entries: Iterable[str] = (), capacity: int = LOG_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Log capacity must be positive, got {capacity}")
        self._entries: deque[str] = deque(maxlen=capacity)
        # entries arrive newest-first; extend keeps that order
        self._entries.extend(list(entries)[:capacity])

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def append(self, line: str) -> None:
        self._entries.appendleft(line)

    def clear(self) -> None:
        self._entries.clear()

    def latest(self) -> str | None:
        return self._entries[0] if self._entries else None

    def to_list(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EventLog):
            return NotImplemented
        return self.capacity == other.capacity and self.to_list() == other.to_list()

    def __repr__(self) -> str:
        return f"EventLog({self.to_list()!r}, capacity={self.capacity})"


@dataclass
class CellState:
    """State of a single board cell."""
    owner: int | None = None  # player_id or None if unowned

    def to_dict(self) -> dict[str, Any]:
        return {"owner": self.owner}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CellState":
        if not isinstance(data, dict):
            data = {}
        owner = data.get("owner")
        try:
            return cls(owner=int(owner) if owner is not None else None)
        except (TypeError, ValueError):
            return cls(owner=None)


@dataclass
class PlayerState:
    """Per-seat mutable record: score, position and conquests."""
    player_id: int
    name: str
    color: str
    score: int = 0
    last_cell: int = 0  # 0 = has not moved yet
    # Cells this player newly claimed, in claim order
    conquered_cells: list[int] = field(default_factory=list)

    @property
    def has_moved(self) -> bool:
        return self.last_cell != 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "color": self.color,
            "score": self.score,
            "last_cell": self.last_cell,
            "conquered_cells": list(self.conquered_cells),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerState":
        if not isinstance(data, dict):
            data = {}
        return cls(
            player_id=_int(data.get("player_id"), 0),
            name=str(data.get("name") or ""),
            color=str(data.get("color") or ""),
            score=max(0, _int(data.get("score"), 0)),
            last_cell=_int(data.get("last_cell"), 0),
            conquered_cells=_ensure_int_list(data.get("conquered_cells")),
        )


@dataclass
class GameState:
    """Complete game state for one table."""
    player_count: int  # active seats, MIN_PLAYERS..MAX_PLAYERS
    players: list[PlayerState]  # all seats; only the first player_count play
    cells: list[CellState]  # cell n lives at index n - 1
    active_player_index: int = 0
    phase: Phase = Phase.IDLE
    turn_number: int = 1
    # Current turn's decision data (cleared when the turn advances)
    pending_dice: tuple[int, int] | None = None
    pending_operator: str | None = None
    pending_move_value: int | None = None
    candidate_targets: list[int] = field(default_factory=list)
    log: EventLog = field(default_factory=EventLog)

    def copy(self) -> "GameState":
        """Return a deep copy of this game state."""
        return deepcopy(self)

    @property
    def ended(self) -> bool:
        return self.phase is Phase.ENDED

    @property
    def active_players(self) -> list[PlayerState]:
        return self.players[:self.player_count]

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.active_player_index]

    @property
    def owned_cell_count(self) -> int:
        return sum(1 for c in self.cells if c.owner is not None)

    def cell(self, cell_number: int) -> CellState:
        if cell_number < 1 or cell_number > len(self.cells):
            raise ValueError(f"Cell {cell_number} is off the board (1-{len(self.cells)})")
        return self.cells[cell_number - 1]

    def cell_owner(self, cell_number: int) -> int | None:
        return self.cell(cell_number).owner

    def get_player(self, player_id: int) -> PlayerState | None:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    # ===== Serialization Methods =====

    def to_dict(self) -> dict[str, Any]:
        """Convert GameState to a dictionary for JSON serialization (UI snapshot)."""
        return {
            "player_count": self.player_count,
            "players": [p.to_dict() for p in self.players],
            "cells": [c.to_dict() for c in self.cells],
            "active_player_index": self.active_player_index,
            "phase": self.phase.value,
            "turn_number": self.turn_number,
            "pending_dice": list(self.pending_dice) if self.pending_dice else None,
            "pending_operator": self.pending_operator,
            "pending_move_value": self.pending_move_value,
            "candidate_targets": list(self.candidate_targets),
            "ended": self.ended,
            "owned_cells": self.owned_cell_count,
            "log": self.log.to_list(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameState":
        """Create GameState from a dictionary (missing keys fall back to defaults)."""
        players_raw = data.get("players") or []
        if not isinstance(players_raw, list):
            players_raw = []
        players = [PlayerState.from_dict(p) for p in players_raw if isinstance(p, dict)]
        if len(players) < MIN_PLAYERS:
            raise ValueError(
                f"Game state needs at least {MIN_PLAYERS} players, got {len(players)}"
            )
        cells_raw = data.get("cells") or []
        if not isinstance(cells_raw, list):
            cells_raw = []
        cells = [CellState.from_dict(c) for c in cells_raw[:BOARD_SIZE]]
        cells.extend(CellState() for _ in range(BOARD_SIZE - len(cells)))
        player_count = _int(data.get("player_count"), len(players))
        player_count = min(max(player_count, MIN_PLAYERS), min(MAX_PLAYERS, len(players)))
        log_raw = data.get("log")
        return cls(
            player_count=player_count,
            players=players,
            cells=cells,
            active_player_index=_int(data.get("active_player_index"), 0) % player_count,
            phase=_ensure_phase(data.get("phase")),
            turn_number=_int(data.get("turn_number"), 1),
            pending_dice=_ensure_dice(data.get("pending_dice")),
            pending_operator=data.get("pending_operator") if isinstance(data.get("pending_operator"), str) else None,
            pending_move_value=_int(data.get("pending_move_value"), 0) if data.get("pending_move_value") is not None else None,
            candidate_targets=_ensure_int_list(data.get("candidate_targets")),
            log=EventLog(log_raw if isinstance(log_raw, list) else []),
        )

    def to_json(self, indent: int = 2) -> str:
        """Serialize GameState to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "GameState":
        """Deserialize GameState from a JSON string."""
        return cls.from_dict(json.loads(json_str))
