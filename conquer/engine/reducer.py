"""
Main game reducer.
Applies actions to state, enforcing rules and producing new state.
Returns (new_state, events) where events describe what happened.
"""

from conquer.engine import BOARD_SIZE, DICE_SIDES
from conquer.engine.actions import (
    Action,
    CONFIGURE_PLAYER_COUNT,
    ROLL,
    CHOOSE_OPERATOR,
    CHOOSE_TARGET,
    RESET,
)
from conquer.engine.definitions import OPERATORS, normalize_operator
from conquer.engine.movement import derive_move_value, get_opening_targets, get_subsequent_targets
from conquer.engine.state import GameState, Phase
from conquer.engine.utils import compute_winners, reinitialize_game_state, validate_player_count
from conquer.engine.events import (
    GameEvent,
    game_reset,
    player_count_changed,
    dice_rolled,
    operator_chosen,
    no_targets,
    turn_advanced,
    cell_conquered,
    landed_on_own_cell,
    landed_on_opponent_cell,
    score_changed,
    game_ended,
)


# Landing on your own cell keeps 95% of your score (rounded down).
OWN_CELL_KEEP_PERCENT = 95
# Landing on an opponent's cell pays them 10% of the mover's score (rounded down).
OPPONENT_BONUS_PERCENT = 10


# Phase rules: which action types are allowed in which phases
# Note: choose_operator is also allowed in choosing_target when the chosen
# operator left no candidate cells (see _validate_action_for_phase)
PHASE_ALLOWED_ACTIONS = {
    Phase.IDLE: [ROLL, CONFIGURE_PLAYER_COUNT, RESET],
    Phase.CHOOSING_OPERATOR: [CHOOSE_OPERATOR, RESET],
    Phase.CHOOSING_TARGET: [CHOOSE_TARGET, RESET],
    Phase.ENDED: [CONFIGURE_PLAYER_COUNT, RESET],
}

# Actions taken by the player whose turn it is (others are table-level)
TURN_ACTIONS = [ROLL, CHOOSE_OPERATOR, CHOOSE_TARGET]


def can_rechoose_operator(state: GameState) -> bool:
    """True when the last operator choice produced no targets, so another may be picked."""
    return (
        state.phase is Phase.CHOOSING_TARGET
        and not state.candidate_targets
        and state.pending_dice is not None
        and state.current_player.has_moved
    )


def _validate_action_for_phase(action: Action, state: GameState) -> None:
    """
    Validate that an action is allowed in the current phase.

    Special rule for choosing_target:
    - If the candidate list is empty, choose_operator is allowed again
    """
    phase = state.phase
    allowed_actions = PHASE_ALLOWED_ACTIONS.get(phase, [])

    if action.type == CHOOSE_OPERATOR and can_rechoose_operator(state):
        return

    if action.type not in allowed_actions:
        if phase is Phase.ENDED:
            raise ValueError("Game is over. Reset to play again.")
        raise ValueError(
            f"Action '{action.type}' is not allowed in phase '{phase.value}'. "
            f"Allowed actions: {', '.join(allowed_actions)}"
        )


def _parse_dice(payload: dict) -> tuple[int, int]:
    dice = payload.get("dice")
    if not isinstance(dice, (list, tuple)) or len(dice) != 2:
        raise ValueError(f"Roll needs exactly two dice, got {dice!r}")
    for d in dice:
        if isinstance(d, bool) or not isinstance(d, int) or d < 1 or d > DICE_SIDES:
            raise ValueError(f"Die values must be integers 1-{DICE_SIDES}, got {dice!r}")
    return dice[0], dice[1]


def apply_action(state: GameState, action: Action) -> tuple[GameState, list[GameEvent]]:
    """
    Apply a single action to the current state, returning new state and events.

    Validates:
    - Turn actions name the current player
    - Action is valid for the current phase

    The input state is never modified; a rejected action raises ValueError
    and leaves it exactly as it was.

    Args:
        state: Current game state
        action: Action to apply

    Returns:
        Tuple of (new_state, events) where events describe what happened
    """
    # Validate player
    if action.type in TURN_ACTIONS:
        current_id = state.current_player.player_id
        if action.player != current_id:
            raise ValueError(
                f"Action player {action.player} does not match current player {current_id}")

    # Validate action is allowed in current phase
    _validate_action_for_phase(action, state)

    new_state = state.copy()
    events: list[GameEvent] = []

    if action.type == ROLL:
        new_state, evts = _handle_roll(new_state, action)
        events.extend(evts)

    elif action.type == CHOOSE_OPERATOR:
        new_state, evts = _handle_choose_operator(new_state, action)
        events.extend(evts)

    elif action.type == CHOOSE_TARGET:
        new_state, evts = _handle_choose_target(new_state, action)
        events.extend(evts)

    elif action.type == RESET:
        new_state, evts = _handle_reset(new_state)
        events.extend(evts)

    elif action.type == CONFIGURE_PLAYER_COUNT:
        new_state, evts = _handle_configure_player_count(new_state, action)
        events.extend(evts)

    else:
        raise ValueError(f"Unknown action type: {action.type}")

    return new_state, events


def _handle_roll(state: GameState, action: Action) -> tuple[GameState, list[GameEvent]]:
    """
    Store the dice. A player who has never moved goes straight to target
    selection (every operator applied to the dice); anyone else picks an operator first.
    """
    d1, d2 = _parse_dice(action.payload)
    player = state.current_player
    state.pending_dice = (d1, d2)
    state.pending_operator = None
    state.pending_move_value = None

    if not player.has_moved:
        state.candidate_targets = get_opening_targets(d1, d2)
        state.phase = Phase.CHOOSING_TARGET
        state.log.append(f"{player.name} rolled {d1}, {d2}")
        return state, [dice_rolled(player.player_id, (d1, d2), needs_operator=False)]

    state.candidate_targets = []
    state.phase = Phase.CHOOSING_OPERATOR
    state.log.append(f"{player.name} rolled {d1}, {d2} → choose op")
    return state, [dice_rolled(player.player_id, (d1, d2), needs_operator=True)]


def _handle_choose_operator(state: GameState, action: Action) -> tuple[GameState, list[GameEvent]]:
    """Turn the dice into a move value and list the cells it reaches from the last cell."""
    if state.pending_dice is None:
        raise ValueError("No dice rolled this turn")
    operator = normalize_operator(action.payload.get("operator", ""))
    player = state.current_player
    d1, d2 = state.pending_dice

    move_value = derive_move_value(d1, d2, operator)
    state.pending_operator = operator
    state.pending_move_value = move_value
    state.candidate_targets = get_subsequent_targets(player.last_cell, move_value)
    state.phase = Phase.CHOOSING_TARGET

    symbol = OPERATORS[operator].symbol
    state.log.append(f"{player.name} chose {symbol} ({move_value})")
    events = [operator_chosen(player.player_id, operator, symbol, move_value)]
    if not state.candidate_targets:
        state.log.append(f"{player.name} has no target from {player.last_cell} with {move_value}")
        events.append(no_targets(player.player_id, player.last_cell, move_value))
    return state, events


def _handle_choose_target(state: GameState, action: Action) -> tuple[GameState, list[GameEvent]]:
    """
    Move the current player to the chosen cell and resolve the landing:
    - unowned: conquer it, score += cell number
    - own cell: score drops to 95% (rounded down)
    - opponent's cell: the owner gains 10% of the mover's score (rounded down)
    Then hand the turn to the next player.
    """
    cell = action.payload.get("cell")
    if isinstance(cell, bool) or not isinstance(cell, int) or cell not in state.candidate_targets:
        raise ValueError(
            f"Cell {cell!r} is not a candidate target. Candidates: {state.candidate_targets}")

    player = state.current_player
    cell_state = state.cell(cell)
    owner_id = cell_state.owner
    score_before = player.score
    events: list[GameEvent] = []

    if owner_id is None:
        cell_state.owner = player.player_id
        player.last_cell = cell
        player.score = score_before + cell
        player.conquered_cells.append(cell)
        state.log.append(f"{player.name} conquered {cell}")
        events.append(cell_conquered(player.player_id, cell))
        events.append(score_changed(player.player_id, score_before, player.score, "conquest"))

    elif owner_id == player.player_id:
        player.last_cell = cell
        player.score = score_before * OWN_CELL_KEEP_PERCENT // 100
        state.log.append(f"{player.name} landed on own tile {cell}")
        events.append(landed_on_own_cell(player.player_id, cell))
        events.append(score_changed(player.player_id, score_before, player.score, "own_cell_penalty"))

    else:
        owner = state.get_player(owner_id)
        if owner is None:
            raise ValueError(f"Cell {cell} is owned by unknown player {owner_id}")
        bonus = score_before * OPPONENT_BONUS_PERCENT // 100
        player.last_cell = cell
        owner_before = owner.score
        owner.score = owner_before + bonus
        state.log.append(f"{player.name} landed on {owner.name}'s tile {cell}")
        events.append(landed_on_opponent_cell(player.player_id, cell, owner_id, bonus))
        events.append(score_changed(owner_id, owner_before, owner.score, "landing_bonus"))

    state, evts = _advance_turn(state)
    events.extend(evts)
    return state, events


def _advance_turn(state: GameState) -> tuple[GameState, list[GameEvent]]:
    """Pass the turn on, clear per-turn data, and end the game once every cell is owned."""
    previous = state.current_player.player_id
    state.active_player_index = (state.active_player_index + 1) % state.player_count
    state.pending_dice = None
    state.pending_operator = None
    state.pending_move_value = None
    state.candidate_targets = []
    state.phase = Phase.IDLE
    state.turn_number += 1
    events = [turn_advanced(state.turn_number, previous, state.current_player.player_id)]

    if not state.ended and state.owned_cell_count >= BOARD_SIZE:
        state.phase = Phase.ENDED
        state.log.append("Game ended: all tiles conquered.")
        winners = compute_winners(state.active_players)
        events.append(game_ended(
            [p.player_id for p in winners],
            {p.player_id: p.score for p in state.active_players},
        ))

    return state, events


def _handle_reset(state: GameState) -> tuple[GameState, list[GameEvent]]:
    """Start over with the same seats and player count."""
    new_state = reinitialize_game_state(state)
    return new_state, [game_reset(new_state.player_count)]


def _handle_configure_player_count(state: GameState, action: Action) -> tuple[GameState, list[GameEvent]]:
    """Change the number of active seats. This starts a fresh game."""
    player_count = action.payload.get("player_count")
    validate_player_count(player_count)
    if player_count > len(state.players):
        raise ValueError(f"Only {len(state.players)} seats are defined, cannot seat {player_count}")
    old_count = state.player_count
    new_state = reinitialize_game_state(state, player_count)
    return new_state, [player_count_changed(old_count, player_count), game_reset(player_count)]


def replay_from_actions(
    initial_state: GameState,
    actions: list[Action],
) -> GameState:
    """
    Replay a sequence of actions from an initial state.
    Actions carry their dice, so a replay is fully deterministic.
    """
    state = initial_state
    for action in actions:
        state, _ = apply_action(state, action)
    return state
