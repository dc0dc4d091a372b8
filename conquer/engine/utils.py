"""
Utility functions for the game engine.
"""

import random

from conquer.engine import BOARD_SIZE, DICE_SIDES, LOG_CAPACITY, MIN_PLAYERS, MAX_PLAYERS
from conquer.engine.definitions import PlayerDefinition, load_player_definitions
from conquer.engine.state import CellState, EventLog, GameState, Phase, PlayerState


def validate_player_count(player_count: int) -> None:
    """Raise ValueError unless MIN_PLAYERS <= player_count <= MAX_PLAYERS."""
    if isinstance(player_count, bool) or not isinstance(player_count, int):
        raise ValueError(f"Player count must be an integer, got {player_count!r}")
    if player_count < MIN_PLAYERS or player_count > MAX_PLAYERS:
        raise ValueError(
            f"Player count must be between {MIN_PLAYERS} and {MAX_PLAYERS}, got {player_count}"
        )


def initialize_game_state(
    player_count: int,
    player_defs: list[PlayerDefinition] | None = None,
    log_capacity: int = LOG_CAPACITY,
) -> GameState:
    """
    Create a fresh game: empty board, zero scores, first seat to play.

    Args:
        player_count: Active seats (2-6)
        player_defs: Seat identities; defaults to the six standard seats
        log_capacity: Lines kept in the event log
    """
    validate_player_count(player_count)
    if player_defs is None:
        player_defs = load_player_definitions()
    if len(player_defs) < player_count:
        raise ValueError(f"Need {player_count} seat definitions, got {len(player_defs)}")

    players = [
        PlayerState(player_id=d.player_id, name=d.name, color=d.color)
        for d in player_defs
    ]
    return GameState(
        player_count=player_count,
        players=players,
        cells=[CellState() for _ in range(BOARD_SIZE)],
        log=EventLog(capacity=log_capacity),
    )


def reinitialize_game_state(state: GameState, player_count: int | None = None) -> GameState:
    """
    Fresh game that keeps the seats (ids, names, colors) and log capacity of state.
    player_count defaults to the current count.
    """
    player_defs = [
        PlayerDefinition(player_id=p.player_id, name=p.name, color=p.color)
        for p in state.players
    ]
    count = state.player_count if player_count is None else player_count
    return initialize_game_state(count, player_defs, log_capacity=state.log.capacity)


def compute_winners(players: list[PlayerState]) -> list[PlayerState]:
    """Every player holding the top score, in seat order. Ties are not broken."""
    if not players:
        return []
    best = max(p.score for p in players)
    return [p for p in players if p.score == best]


class DiceRoller:
    """
    Source of die values. Holds its own random.Random so tables do not share
    generator state; pass a seed for reproducible games.
    """

    def __init__(self, seed: int | None = None, sides: int = DICE_SIDES):
        self.sides = sides
        self._rng = random.Random(seed)

    def roll_die(self) -> int:
        return self._rng.randint(1, self.sides)

    def roll_pair(self) -> tuple[int, int]:
        return self.roll_die(), self.roll_die()


def roll_dice(seed: int | None = None) -> tuple[int, int]:
    """Roll two independent dice. One-off helper; use DiceRoller for a whole game."""
    return DiceRoller(seed).roll_pair()


def print_game_state(state: GameState, columns: int = 10) -> None:
    """
    Pretty-print the board and scoreboard.
    Owned cells show the owner's seat number, e.g. " 37:P2".
    """
    current = state.current_player
    print(f"\n{'='*60}")
    print(
        f"Turn {state.turn_number} | Player: {current.name} | Phase: {state.phase.value}")
    if state.pending_dice:
        print(f"Dice: {state.pending_dice[0]} and {state.pending_dice[1]}")
    if state.phase is Phase.CHOOSING_TARGET:
        print(f"Targets: {state.candidate_targets}")
    print(f"{'='*60}")

    for row_start in range(1, len(state.cells) + 1, columns):
        row = []
        for n in range(row_start, min(row_start + columns, len(state.cells) + 1)):
            owner = state.cells[n - 1].owner
            tag = f"P{owner + 1}" if owner is not None else "--"
            row.append(f"{n:>3}:{tag}")
        print(" ".join(row))

    print(f"\n{'Scores':.<40}")
    for p in state.active_players:
        print(f"  {p.name}: {p.score} (at {p.last_cell}, conquered {len(p.conquered_cells)})")
    print()
