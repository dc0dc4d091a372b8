"""Tests for the turn engine — conquer/engine/reducer.py.

Tests cover:
  - roll / choose_operator / choose_target phase flow
  - landing resolution (unowned, own cell, opponent cell)
  - turn order for every table size
  - end of game on the last cell, winners and ties
  - reset and player count changes
  - rejected actions never modify state
"""

import pytest

from conquer.engine.actions import (
    Action,
    configure_player_count,
    roll,
    choose_operator,
    choose_target,
    reset,
)
from conquer.engine.definitions import ADD, SUBTRACT, FLOOR_DIVIDE, MULTIPLY
from conquer.engine.events import (
    CELL_CONQUERED,
    DICE_ROLLED,
    GAME_ENDED,
    GAME_RESET,
    LANDED_ON_OPPONENT_CELL,
    LANDED_ON_OWN_CELL,
    NO_TARGETS,
    OPERATOR_CHOSEN,
    PLAYER_COUNT_CHANGED,
    TURN_ADVANCED,
)
from conquer.engine.queries import get_winners
from conquer.engine.reducer import apply_action, replay_from_actions
from conquer.engine.state import Phase
from conquer.engine.utils import initialize_game_state


def _types(events):
    return [e.type for e in events]


def _conquer(state, player, dice, cell):
    """Opening move for player: roll dice and land on cell."""
    state, _ = apply_action(state, roll(player, dice))
    state, events = apply_action(state, choose_target(player, cell))
    return state, events


@pytest.fixture
def two_player():
    return initialize_game_state(2)


class TestRoll:

    def test_opening_roll_skips_operator(self, two_player):
        state, events = apply_action(two_player, roll(0, (4, 6)))
        assert state.phase is Phase.CHOOSING_TARGET
        assert state.pending_dice == (4, 6)
        assert state.candidate_targets == [10, 2, 1, 24]
        assert state.pending_operator is None
        assert _types(events) == [DICE_ROLLED]
        assert events[0].payload["needs_operator"] is False
        assert state.log.latest() == "Player 1 rolled 4, 6"

    def test_later_roll_asks_for_operator(self, two_player):
        state, _ = _conquer(two_player, 0, (4, 6), 24)
        state, _ = _conquer(state, 1, (3, 5), 8)
        state, events = apply_action(state, roll(0, (2, 2)))
        assert state.phase is Phase.CHOOSING_OPERATOR
        assert state.candidate_targets == []
        assert events[0].payload["needs_operator"] is True
        assert state.log.latest() == "Player 1 rolled 2, 2 → choose op"

    @pytest.mark.parametrize("dice", [(0, 3), (3, 7), (1,), (1, 2, 3), ("1", 2), (True, 2)])
    def test_bad_dice_rejected(self, two_player, dice):
        with pytest.raises(ValueError):
            apply_action(two_player, Action(type="roll", player=0, payload={"dice": list(dice)}))

    def test_wrong_player_rejected(self, two_player):
        with pytest.raises(ValueError, match="current player"):
            apply_action(two_player, roll(1, (1, 2)))

    def test_roll_twice_rejected(self, two_player):
        state, _ = apply_action(two_player, roll(0, (1, 2)))
        with pytest.raises(ValueError, match="not allowed"):
            apply_action(state, roll(0, (3, 4)))


class TestChooseOperator:

    @pytest.fixture
    def awaiting_operator(self, two_player):
        state, _ = _conquer(two_player, 0, (4, 6), 24)
        state, _ = _conquer(state, 1, (3, 5), 8)
        state, _ = apply_action(state, roll(0, (2, 2)))
        return state

    def test_targets_from_last_cell(self, awaiting_operator):
        state, events = apply_action(awaiting_operator, choose_operator(0, ADD))
        assert state.phase is Phase.CHOOSING_TARGET
        assert state.pending_operator == ADD
        assert state.pending_move_value == 4
        assert state.candidate_targets == [28, 20, 6, 96]
        assert _types(events) == [OPERATOR_CHOSEN]
        assert state.log.latest() == "Player 1 chose + (4)"

    def test_zero_move_value_allows_another_operator(self, awaiting_operator):
        state, events = apply_action(awaiting_operator, choose_operator(0, SUBTRACT))
        assert state.phase is Phase.CHOOSING_TARGET
        assert state.candidate_targets == []
        assert _types(events) == [OPERATOR_CHOSEN, NO_TARGETS]

        state, _ = apply_action(state, choose_operator(0, MULTIPLY))
        assert state.pending_operator == MULTIPLY
        assert state.candidate_targets == [28, 20, 6, 96]

    def test_cannot_rechoose_when_targets_exist(self, awaiting_operator):
        state, _ = apply_action(awaiting_operator, choose_operator(0, ADD))
        with pytest.raises(ValueError):
            apply_action(state, choose_operator(0, MULTIPLY))

    def test_unknown_operator_rejected(self, awaiting_operator):
        before = awaiting_operator.to_dict()
        with pytest.raises(ValueError, match="Unknown operator"):
            apply_action(awaiting_operator, choose_operator(0, "modulo"))
        assert awaiting_operator.to_dict() == before

    def test_not_allowed_when_idle(self, two_player):
        with pytest.raises(ValueError):
            apply_action(two_player, choose_operator(0, ADD))

    def test_not_allowed_on_opening_move(self, two_player):
        state, _ = apply_action(two_player, roll(0, (4, 6)))
        with pytest.raises(ValueError):
            apply_action(state, choose_operator(0, ADD))


class TestLanding:

    def test_conquer_unowned(self, two_player):
        state, events = _conquer(two_player, 0, (4, 6), 24)
        p0, p1 = state.players[0], state.players[1]
        assert state.cell_owner(24) == 0
        assert p0.score == 24
        assert p0.last_cell == 24
        assert p0.conquered_cells == [24]
        assert p1.score == 0
        assert CELL_CONQUERED in _types(events)
        assert state.log.to_list()[0] == "Player 1 conquered 24"

    def test_own_cell_penalty(self, two_player):
        state, _ = _conquer(two_player, 0, (4, 6), 24)
        state, _ = _conquer(state, 1, (3, 5), 8)
        state, _ = apply_action(state, roll(0, (2, 3)))
        state, _ = apply_action(state, choose_operator(0, FLOOR_DIVIDE))
        assert state.candidate_targets == [25, 23, 24]
        assert state.to_dict()["pending_operator"] == "floor-divide"

        state, events = apply_action(state, choose_target(0, 24))
        p0 = state.players[0]
        assert p0.score == 22  # floor(24 * 0.95)
        assert p0.last_cell == 24
        assert p0.conquered_cells == [24]
        assert state.cell_owner(24) == 0
        assert state.players[1].score == 8
        assert LANDED_ON_OWN_CELL in _types(events)

    def test_opponent_cell_bonus(self, two_player):
        state = two_player.copy()
        state.players[0].last_cell = 10
        state.players[0].score = 57
        state.players[1].score = 5
        state.players[1].last_cell = 12
        state.players[1].conquered_cells = [12]
        state.cell(12).owner = 1

        state, _ = apply_action(state, roll(0, (1, 2)))
        state, _ = apply_action(state, choose_operator(0, MULTIPLY))
        assert state.candidate_targets == [12, 8, 5, 20]
        state, events = apply_action(state, choose_target(0, 12))

        p0, p1 = state.players[0], state.players[1]
        assert p1.score == 10  # 5 + floor(57 * 0.10)
        assert p0.score == 57
        assert p0.last_cell == 12
        assert p1.last_cell == 12
        assert state.cell_owner(12) == 1
        assert p0.conquered_cells == []
        landing = next(e for e in events if e.type == LANDED_ON_OPPONENT_CELL)
        assert landing.payload == {"player": 0, "cell": 12, "owner": 1, "bonus": 5}

    def test_target_outside_candidates_rejected(self, two_player):
        state, _ = apply_action(two_player, roll(0, (4, 6)))
        before = state.to_dict()
        for bad in (3, 0, 101, "10", None):
            with pytest.raises(ValueError):
                apply_action(state, Action(type="choose_target", player=0, payload={"cell": bad}))
        assert state.to_dict() == before

    def test_conquered_sets_partition_owned_cells(self, two_player):
        state, _ = _conquer(two_player, 0, (4, 6), 24)
        state, _ = _conquer(state, 1, (3, 5), 8)
        state, _ = apply_action(state, roll(0, (2, 2)))
        state, _ = apply_action(state, choose_operator(0, ADD))
        state, _ = apply_action(state, choose_target(0, 96))
        owned = {n for n in range(1, 101) if state.cell_owner(n) is not None}
        conquered = [c for p in state.players for c in p.conquered_cells]
        assert sorted(conquered) == sorted(owned) == [8, 24, 96]
        assert state.players[0].score == 120


class TestTurnOrder:

    @pytest.mark.parametrize("count", [2, 3, 4, 5, 6])
    def test_advances_modulo_active_count(self, count):
        for start in range(count):
            state = initialize_game_state(count)
            state.active_player_index = start
            state, events = _conquer(state, start, (1, 1), 2)
            assert state.active_player_index == (start + 1) % count
            assert state.phase is Phase.IDLE
            assert state.pending_dice is None
            assert state.pending_operator is None
            assert state.candidate_targets == []
            assert events[-1].type == TURN_ADVANCED

    def test_turn_number_counts_moves(self, two_player):
        state, _ = _conquer(two_player, 0, (4, 6), 24)
        state, _ = _conquer(state, 1, (3, 5), 8)
        assert state.turn_number == 3
        assert state.active_player_index == 0


class TestEndOfGame:

    @pytest.fixture
    def one_cell_left(self, two_player):
        state = two_player.copy()
        for n in range(1, 101):
            if n != 10:
                state.cell(n).owner = 1
                state.players[1].conquered_cells.append(n)
        state.players[1].score = 40
        state.players[1].last_cell = 99
        return state

    def test_last_cell_ends_game(self, one_cell_left):
        state, events = _conquer(one_cell_left, 0, (4, 6), 10)
        assert state.ended
        assert state.phase is Phase.ENDED
        assert state.owned_cell_count == 100
        assert state.log.latest() == "Game ended: all tiles conquered."
        ended = next(e for e in events if e.type == GAME_ENDED)
        assert ended.payload["winners"] == [1]
        assert [p.player_id for p in get_winners(state)] == [1]

    def test_no_play_after_end(self, one_cell_left):
        state, _ = _conquer(one_cell_left, 0, (4, 6), 10)
        current = state.current_player.player_id
        with pytest.raises(ValueError, match="Game is over"):
            apply_action(state, roll(current, (1, 2)))
        assert state.ended

    def test_not_ended_before_last_cell(self, two_player):
        state, events = _conquer(two_player, 0, (4, 6), 24)
        assert not state.ended
        assert GAME_ENDED not in _types(events)
        assert get_winners(state) == []

    def test_tie_lists_every_leader_in_seat_order(self):
        state = initialize_game_state(4)
        for p, score in zip(state.players, [30, 50, 10, 50]):
            p.score = score
        state.phase = Phase.ENDED
        assert [p.player_id for p in get_winners(state)] == [1, 3]

    def test_dormant_seats_ignored(self):
        state = initialize_game_state(2)
        state.players[4].score = 999
        state.players[0].score = 3
        state.phase = Phase.ENDED
        assert [p.player_id for p in get_winners(state)] == [0]


class TestReset:

    def test_reset_clears_game_keeps_seats(self, two_player):
        state, _ = _conquer(two_player, 0, (4, 6), 24)
        state, _ = apply_action(state, roll(1, (3, 5)))
        state, events = apply_action(state, reset())

        assert _types(events) == [GAME_RESET]
        assert state.player_count == 2
        assert state.phase is Phase.IDLE
        assert not state.ended
        assert state.active_player_index == 0
        assert state.turn_number == 1
        assert state.pending_dice is None
        assert state.candidate_targets == []
        assert len(state.log) == 0
        assert all(c.owner is None for c in state.cells)
        for before, after in zip(two_player.players, state.players):
            assert (after.player_id, after.name, after.color) == (before.player_id, before.name, before.color)
            assert after.score == 0
            assert after.last_cell == 0
            assert after.conquered_cells == []

    def test_reset_after_end(self):
        state = initialize_game_state(3)
        state.phase = Phase.ENDED
        state, _ = apply_action(state, reset())
        assert not state.ended
        assert state.player_count == 3


class TestPlayerCount:

    def test_change_starts_fresh_game(self, two_player):
        state, _ = _conquer(two_player, 0, (4, 6), 24)
        state, events = apply_action(state, configure_player_count(5))
        assert _types(events) == [PLAYER_COUNT_CHANGED, GAME_RESET]
        assert state.player_count == 5
        assert len(state.active_players) == 5
        assert state.owned_cell_count == 0
        assert state.players[0].score == 0

    @pytest.mark.parametrize("count", [1, 7, 0, -2, "4", 2.5, None])
    def test_out_of_range_rejected(self, two_player, count):
        before = two_player.to_dict()
        with pytest.raises(ValueError):
            apply_action(two_player, configure_player_count(count))
        assert two_player.to_dict() == before

    def test_not_allowed_mid_turn(self, two_player):
        state, _ = apply_action(two_player, roll(0, (1, 2)))
        with pytest.raises(ValueError):
            apply_action(state, configure_player_count(4))


class TestPurity:

    def test_input_state_not_modified(self, two_player):
        before = two_player.to_dict()
        state, _ = _conquer(two_player, 0, (4, 6), 24)
        assert two_player.to_dict() == before
        assert state.to_dict() != before

    def test_replay(self, two_player):
        actions = [
            roll(0, (4, 6)), choose_target(0, 24),
            roll(1, (3, 5)), choose_target(1, 8),
            roll(0, (2, 2)), choose_operator(0, ADD), choose_target(0, 96),
        ]
        state = replay_from_actions(two_player, actions)
        assert state.players[0].score == 120
        assert state.players[1].score == 8
        assert state.active_player_index == 1

    def test_unknown_action_type(self, two_player):
        with pytest.raises(ValueError):
            apply_action(two_player, Action(type="teleport", player=0, payload={}))
