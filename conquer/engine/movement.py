"""
Move arithmetic: dice + operator -> move value -> candidate destination cells.
Pure functions, no state mutation.
"""

from conquer.engine import BOARD_SIZE
from conquer.engine.definitions import (
    ADD,
    SUBTRACT,
    FLOOR_DIVIDE,
    MULTIPLY,
    normalize_operator,
)
from conquer.engine.state import PlayerState


def _on_board(values: list[int | None], board_size: int = BOARD_SIZE) -> list[int]:
    """
    Drop values outside 1..board_size (and None), then remove duplicates
    keeping the first occurrence so formula order is preserved.
    """
    seen: set[int] = set()
    result = []
    for v in values:
        if v is None or v < 1 or v > board_size:
            continue
        if v in seen:
            continue
        seen.add(v)
        result.append(v)
    return result


def derive_move_value(d1: int, d2: int, operator: str) -> int:
    """
    Combine a die pair into a single move value.

    add: d1 + d2
    subtract: |d1 - d2|
    floor-divide: max // min (dice are >= 1, so never a zero divisor)
    multiply: d1 * d2
    """
    op = normalize_operator(operator)
    hi, lo = max(d1, d2), min(d1, d2)
    if op == ADD:
        return d1 + d2
    if op == SUBTRACT:
        return abs(d1 - d2)
    if op == FLOOR_DIVIDE:
        return hi // lo
    if op == MULTIPLY:
        return d1 * d2
    raise ValueError(f"Unknown operator: {operator}")


def get_opening_targets(d1: int, d2: int, board_size: int = BOARD_SIZE) -> list[int]:
    """Targets for a player's first move: every operator applied to the dice directly."""
    hi, lo = max(d1, d2), min(d1, d2)
    return _on_board([d1 + d2, abs(d1 - d2), hi // lo, d1 * d2], board_size)


def get_subsequent_targets(last_cell: int, move_value: int, board_size: int = BOARD_SIZE) -> list[int]:
    """
    Targets reachable from last_cell with move_value:
    [L + v, L - v, L // v, L * v], on-board and deduplicated.
    A move value of 0 (equal dice, subtract) reaches nothing.
    """
    if move_value <= 0:
        return []
    return _on_board([
        last_cell + move_value,
        last_cell - move_value,
        last_cell // move_value,
        last_cell * move_value,
    ], board_size)


def get_candidate_targets(
    player: PlayerState,
    dice: tuple[int, int],
    operator: str | None = None,
) -> list[int]:
    """
    Candidate cells for player given the rolled dice.
    Opening move ignores operator; later moves require one.
    """
    d1, d2 = dice
    if not player.has_moved:
        return get_opening_targets(d1, d2)
    if operator is None:
        raise ValueError(f"{player.name} has moved before and must choose an operator")
    return get_subsequent_targets(player.last_cell, derive_move_value(d1, d2, operator))
