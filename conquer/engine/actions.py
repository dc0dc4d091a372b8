"""
Action definitions for the game.
Actions are immutable, deterministic instructions.
"""

from dataclasses import dataclass, field
from typing import Any

# Action types
CONFIGURE_PLAYER_COUNT = "configure_player_count"
ROLL = "roll"
CHOOSE_OPERATOR = "choose_operator"
CHOOSE_TARGET = "choose_target"
RESET = "reset"


@dataclass(frozen=True)
class Action:
    """Base action class. All actions have a type, acting player and payload."""
    type: str
    player: int | None  # player_id taking the turn; None for table-level actions
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "player": self.player, "payload": dict(self.payload)}


def configure_player_count(player_count: int) -> Action:
    """
    Change how many seats are active (2-6).
    Starts a fresh game with the new count; only allowed between turns.
    """
    return Action(
        type=CONFIGURE_PLAYER_COUNT,
        player=None,
        payload={"player_count": player_count},
    )


def roll(player: int, dice: tuple[int, int] | list[int]) -> Action:
    """
    Roll the two dice for the current player.
    dice must be provided (deterministic, no RNG in reducer).

    Example: roll(0, (4, 6))
    """
    return Action(
        type=ROLL,
        player=player,
        payload={"dice": list(dice)},
    )


def choose_operator(player: int, operator: str) -> Action:
    """
    Pick the operator that turns the rolled dice into a move value.
    Only asked of players who have already moved.

    Example: choose_operator(1, "multiply")
    """
    return Action(
        type=CHOOSE_OPERATOR,
        player=player,
        payload={"operator": operator},
    )


def choose_target(player: int, cell: int) -> Action:
    """Move to one of the offered candidate cells and resolve the landing."""
    return Action(
        type=CHOOSE_TARGET,
        player=player,
        payload={"cell": cell},
    )


def reset() -> Action:
    """Clear the board and scores. Seats and player count are kept."""
    return Action(type=RESET, player=None, payload={})
