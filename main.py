"""
Main entry point for the Mathematical Conquer game engine.
Demonstrates core functionality with a short seeded scenario.
"""

from conquer.engine.actions import (
    configure_player_count,
    roll,
    choose_operator,
    choose_target,
    reset,
)
from conquer.engine.queries import get_game_summary, get_operator_options, get_winners
from conquer.engine.reducer import apply_action
from conquer.engine.state import Phase
from conquer.engine.utils import DiceRoller, initialize_game_state, print_game_state


def play_turn(state, roller):
    """Roll, take the first operator that reaches somewhere, land on the first offered cell."""
    player = state.current_player
    state, events = apply_action(state, roll(player.player_id, roller.roll_pair()))
    print(f"  {state.log.latest()}")

    if state.phase is Phase.CHOOSING_OPERATOR:
        options = get_operator_options(state)
        option = next(o for o in options if o["targets"])
        state, events = apply_action(state, choose_operator(player.player_id, option["operator"]))
        print(f"  {state.log.latest()}")

    cell = state.candidate_targets[0]
    state, events = apply_action(state, choose_target(player.player_id, cell))
    print(f"  {state.log.latest()}")
    print(f"  Events: {[e.type for e in events]}")
    return state


def main():
    print("Mathematical Conquer Game Engine")
    print("=" * 60)

    roller = DiceRoller(seed=42)
    state = initialize_game_state(6)

    # ===== SCENARIO 1: Table setup =====
    print("\n[SCENARIO 1: Three players]")
    state, events = apply_action(state, configure_player_count(3))
    print(f"✓ Player count set to {state.player_count}")
    print(f"  Events: {[e.type for e in events]}")

    # ===== SCENARIO 2: A few rounds =====
    print("\n[SCENARIO 2: Four rounds of play]")
    for _ in range(4 * state.player_count):
        state = play_turn(state, roller)
    print_game_state(state)

    # ===== SCENARIO 3: Rejected action leaves state untouched =====
    print("\n[SCENARIO 3: Out-of-phase action]")
    before = state.to_dict()
    try:
        apply_action(state, choose_target(state.current_player.player_id, 1))
        print("✗ Action unexpectedly accepted")
    except ValueError as e:
        print(f"✓ Rejected: {e}")
    print(f"  State unchanged: {state.to_dict() == before}")

    # ===== SCENARIO 4: Reset =====
    print("\n[SCENARIO 4: Reset]")
    state, events = apply_action(state, reset())
    summary = get_game_summary(state)
    print(f"✓ Reset: {summary['owned_cells']} cells owned, phase {summary['phase']}")
    print(f"  Winners so far: {[p.name for p in get_winners(state)]}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
