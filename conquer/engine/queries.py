"""
Query functions for UI integration.
These functions help the UI understand what actions are available
without mutating game state.
"""

from dataclasses import dataclass
from typing import Any

from conquer.engine import BOARD_SIZE, DICE_SIDES, MIN_PLAYERS, MAX_PLAYERS
from conquer.engine.actions import (
    Action,
    CONFIGURE_PLAYER_COUNT,
    ROLL,
    CHOOSE_OPERATOR,
    CHOOSE_TARGET,
)
from conquer.engine.definitions import OPERATORS, normalize_operator
from conquer.engine.movement import derive_move_value, get_subsequent_targets
from conquer.engine.reducer import PHASE_ALLOWED_ACTIONS, TURN_ACTIONS, can_rechoose_operator
from conquer.engine.state import GameState, PlayerState
from conquer.engine.utils import compute_winners


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error}


# ===== Action Validation =====

def validate_action(state: GameState, action: Action) -> ValidationResult:
    """
    Validate an action without applying it.
    Returns ValidationResult with valid=True or valid=False with error message.
    """
    if action.type in TURN_ACTIONS:
        current_id = state.current_player.player_id
        if action.player != current_id:
            return ValidationResult(
                False,
                f"Not player {action.player}'s turn. Current player: {current_id}"
            )

    allowed = get_available_action_types(state)
    if action.type not in allowed:
        if state.ended:
            return ValidationResult(False, "Game is over. Reset to play again.")
        return ValidationResult(
            False,
            f"Cannot {action.type} during {state.phase.value} phase. Allowed: {allowed}"
        )

    # Action-specific validation
    if action.type == ROLL:
        return _validate_roll(action)
    elif action.type == CHOOSE_OPERATOR:
        return _validate_choose_operator(state, action)
    elif action.type == CHOOSE_TARGET:
        return _validate_choose_target(state, action)
    elif action.type == CONFIGURE_PLAYER_COUNT:
        return _validate_player_count(state, action)

    return ValidationResult(True)


def _validate_roll(action: Action) -> ValidationResult:
    dice = action.payload.get("dice")
    if not isinstance(dice, (list, tuple)) or len(dice) != 2:
        return ValidationResult(False, "Roll needs exactly two dice")
    for d in dice:
        if isinstance(d, bool) or not isinstance(d, int) or d < 1 or d > DICE_SIDES:
            return ValidationResult(False, f"Die values must be integers 1-{DICE_SIDES}")
    return ValidationResult(True)


def _validate_choose_operator(state: GameState, action: Action) -> ValidationResult:
    if state.pending_dice is None:
        return ValidationResult(False, "No dice rolled this turn")
    try:
        normalize_operator(action.payload.get("operator", ""))
    except ValueError as e:
        return ValidationResult(False, str(e))
    return ValidationResult(True)


def _validate_choose_target(state: GameState, action: Action) -> ValidationResult:
    cell = action.payload.get("cell")
    if isinstance(cell, bool) or not isinstance(cell, int):
        return ValidationResult(False, f"Cell must be an integer, got {cell!r}")
    if cell not in state.candidate_targets:
        return ValidationResult(
            False,
            f"Cell {cell} is not a candidate target. Candidates: {state.candidate_targets}"
        )
    return ValidationResult(True)


def _validate_player_count(state: GameState, action: Action) -> ValidationResult:
    count = action.payload.get("player_count")
    if isinstance(count, bool) or not isinstance(count, int):
        return ValidationResult(False, f"Player count must be an integer, got {count!r}")
    upper = min(MAX_PLAYERS, len(state.players))
    if count < MIN_PLAYERS or count > upper:
        return ValidationResult(False, f"Player count must be between {MIN_PLAYERS} and {upper}")
    return ValidationResult(True)


def get_available_action_types(state: GameState) -> list[str]:
    """Get action types available in the current phase."""
    allowed = list(PHASE_ALLOWED_ACTIONS.get(state.phase, []))
    if can_rechoose_operator(state):
        allowed.append(CHOOSE_OPERATOR)
    return allowed


# ===== Players =====

def get_winners(state: GameState) -> list[PlayerState]:
    """
    Players sharing the top score, in seat order.
    Empty while the game is still running.
    """
    if not state.ended:
        return []
    return compute_winners(state.active_players)


def get_player_stats(state: GameState) -> list[dict[str, Any]]:
    """Scoreboard rows for the active players."""
    owned: dict[int, int] = {}
    for c in state.cells:
        if c.owner is not None:
            owned[c.owner] = owned.get(c.owner, 0) + 1
    return [
        {
            "player_id": p.player_id,
            "name": p.name,
            "color": p.color,
            "score": p.score,
            "last_cell": p.last_cell,
            "conquered": len(p.conquered_cells),
            "owned_cells": owned.get(p.player_id, 0),
            "is_current": p.player_id == state.current_player.player_id,
        }
        for p in state.active_players
    ]


# ===== Turn Helpers =====

def get_operator_options(state: GameState) -> list[dict[str, Any]]:
    """
    Preview every operator for the pending dice: symbol, move value and the
    cells it would offer. Empty unless an operator can be chosen right now.
    """
    if CHOOSE_OPERATOR not in get_available_action_types(state) or state.pending_dice is None:
        return []
    d1, d2 = state.pending_dice
    last_cell = state.current_player.last_cell
    options = []
    for op in OPERATORS.values():
        move_value = derive_move_value(d1, d2, op.operator_id)
        options.append({
            "operator": op.operator_id,
            "symbol": op.symbol,
            "move_value": move_value,
            "targets": get_subsequent_targets(last_cell, move_value),
        })
    return options


def get_cell_owners(state: GameState) -> list[int | None]:
    """Owner of each cell, index 0 = cell 1."""
    return [c.owner for c in state.cells]


def get_game_summary(state: GameState) -> dict[str, Any]:
    """
    Get a summary of the current game state for UI display.
    """
    owned = state.owned_cell_count
    current = state.current_player
    return {
        "turn_number": state.turn_number,
        "current_player": current.player_id,
        "current_player_name": current.name,
        "phase": state.phase.value,
        "ended": state.ended,
        "owned_cells": owned,
        "remaining_cells": BOARD_SIZE - owned,
        "winners": [p.player_id for p in get_winners(state)],
        "available_actions": get_available_action_types(state),
        "players": get_player_stats(state),
    }
