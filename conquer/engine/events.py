"""
Game events for UI hooks and logging.
Events describe what happened during action processing.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameEvent":
        return cls(type=data["type"], payload=data["payload"])


# ===== Event Type Constants =====

# Table events
GAME_RESET = "game_reset"
PLAYER_COUNT_CHANGED = "player_count_changed"

# Turn events
DICE_ROLLED = "dice_rolled"
OPERATOR_CHOSEN = "operator_chosen"
NO_TARGETS = "no_targets"
TURN_ADVANCED = "turn_advanced"

# Landing events
CELL_CONQUERED = "cell_conquered"
LANDED_ON_OWN_CELL = "landed_on_own_cell"
LANDED_ON_OPPONENT_CELL = "landed_on_opponent_cell"

# Score events
SCORE_CHANGED = "score_changed"

# End of game
GAME_ENDED = "game_ended"


# ===== Event Factory Functions =====

def game_reset(player_count: int) -> GameEvent:
    return GameEvent(GAME_RESET, {"player_count": player_count})


def player_count_changed(old_count: int, new_count: int) -> GameEvent:
    return GameEvent(PLAYER_COUNT_CHANGED, {
        "old_count": old_count,
        "new_count": new_count,
    })


def dice_rolled(player: int, dice: tuple[int, int], needs_operator: bool) -> GameEvent:
    return GameEvent(DICE_ROLLED, {
        "player": player,
        "dice": list(dice),
        "needs_operator": needs_operator,
    })


def operator_chosen(player: int, operator: str, symbol: str, move_value: int) -> GameEvent:
    return GameEvent(OPERATOR_CHOSEN, {
        "player": player,
        "operator": operator,
        "symbol": symbol,
        "move_value": move_value,
    })


def no_targets(player: int, last_cell: int, move_value: int) -> GameEvent:
    """Emitted when the chosen operator leaves nowhere to go (e.g. equal dice, subtract)."""
    return GameEvent(NO_TARGETS, {
        "player": player,
        "last_cell": last_cell,
        "move_value": move_value,
    })


def turn_advanced(turn_number: int, previous_player: int, next_player: int) -> GameEvent:
    return GameEvent(TURN_ADVANCED, {
        "turn_number": turn_number,
        "previous_player": previous_player,
        "next_player": next_player,
    })


def cell_conquered(player: int, cell: int) -> GameEvent:
    return GameEvent(CELL_CONQUERED, {"player": player, "cell": cell})


def landed_on_own_cell(player: int, cell: int) -> GameEvent:
    return GameEvent(LANDED_ON_OWN_CELL, {"player": player, "cell": cell})


def landed_on_opponent_cell(player: int, cell: int, owner: int, bonus: int) -> GameEvent:
    """bonus is what the owner earns: 10% of the mover's score, rounded down."""
    return GameEvent(LANDED_ON_OPPONENT_CELL, {
        "player": player,
        "cell": cell,
        "owner": owner,
        "bonus": bonus,
    })


def score_changed(player: int, old_score: int, new_score: int, reason: str) -> GameEvent:
    return GameEvent(SCORE_CHANGED, {
        "player": player,
        "old_score": old_score,
        "new_score": new_score,
        "change": new_score - old_score,
        "reason": reason,  # "conquest", "own_cell_penalty", "landing_bonus"
    })


def game_ended(winners: list[int], final_scores: dict[int, int]) -> GameEvent:
    """
    Emitted once, when the last unowned cell is claimed.

    Args:
        winners: player_ids sharing the top score (more than one = tie)
        final_scores: {player_id: score} for every active player
    """
    return GameEvent(GAME_ENDED, {
        "winners": winners,
        "final_scores": final_scores,
    })
