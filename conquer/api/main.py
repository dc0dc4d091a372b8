"""
FastAPI backend for Mathematical Conquer.
Provides REST API endpoints the board UI uses to drive the engine.
Tables live in memory only; restarting the server clears them.
"""

import threading
import uuid
from dataclasses import asdict
from typing import Any, Callable

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from conquer.config import API_HOST, API_PORT, CORS_ORIGINS, DEFAULT_PLAYER_COUNT
from conquer.engine import BOARD_SIZE, DICE_SIDES, MIN_PLAYERS, MAX_PLAYERS
from conquer.engine.state import GameState
from conquer.engine.actions import (
    Action,
    configure_player_count,
    roll,
    choose_operator,
    choose_target,
    reset,
)
from conquer.engine.reducer import apply_action
from conquer.engine.definitions import OPERATORS, load_player_definitions
from conquer.engine.queries import (
    validate_action,
    get_available_action_types,
    get_operator_options,
    get_game_summary,
)
from conquer.engine.utils import DiceRoller, initialize_game_state

app = FastAPI(
    title="Mathematical Conquer API",
    description="Backend API for Mathematical Conquer - a dice-and-arithmetic territory game",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """
    Print a line for every server error with the table endpoint it came from.
    Rule violations are 400s and stay quiet; only engine crashes show up here.
    """
    method = getattr(request, "method", "?")
    url = getattr(request, "url", None)
    path = url.path if url else "?"
    try:
        response = await call_next(request)
        if response.status_code >= 500:
            print(f"[conquer 500] {method} {path}", flush=True)
        return response
    except Exception:
        print(f"[conquer 500] {method} {path} (engine raised)", flush=True)
        raise


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    """
    Unexpected engine errors reach the board UI as JSON it can show in the
    game log panel. CORS headers are added by hand because this response
    bypasses the CORS middleware.
    """
    import traceback
    tb = traceback.format_exc()
    traceback.print_exc()
    origin = request.headers.get("origin")
    allow_origin = origin if origin in CORS_ORIGINS else CORS_ORIGINS[0]
    return JSONResponse(
        status_code=500,
        content={"detail": f"Engine error: {exc}", "traceback": tb},
        headers={
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Credentials": "true",
        },
    )


# In-memory tables: game_id -> current state
games: dict[str, GameState] = {}

# One dice source per table so seeded games stay reproducible
dice_rollers: dict[str, DiceRoller] = {}

# One lock per table. Sync endpoints run in a threadpool, so every
# read-validate-apply-save sequence on a table holds its lock.
game_locks: dict[str, threading.Lock] = {}


# ===== Pydantic Models =====

class CreateGameRequest(BaseModel):
    player_count: int = Field(DEFAULT_PLAYER_COUNT, ge=MIN_PLAYERS, le=MAX_PLAYERS)
    seed: int | None = None  # fixes the dice sequence (tests, demos)


class PlayerCountRequest(BaseModel):
    player_count: int


class OperatorRequest(BaseModel):
    operator: str  # "add" | "subtract" | "floor-divide" | "multiply"


class TargetRequest(BaseModel):
    cell: int


# ===== Helpers =====

def get_game(game_id: str) -> GameState:
    """Get game state; raise 404 if not found."""
    state = games.get(game_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Game {game_id} not found")
    return state


def get_game_lock(game_id: str) -> threading.Lock:
    """Lock guarding one table; raise 404 if the table does not exist."""
    get_game(game_id)
    return game_locks.setdefault(game_id, threading.Lock())


def save_game(game_id: str, state: GameState) -> None:
    games[game_id] = state


def state_for_response(state: GameState) -> dict[str, Any]:
    """State dict plus the computed summary the UI renders from."""
    return {
        "state": state.to_dict(),
        "summary": get_game_summary(state),
    }


def _run_action(game_id: str, make_action: Callable[[GameState], Action]) -> dict[str, Any]:
    """
    Build an action from the stored state, then validate, apply and store it.
    The table lock is held from the read to the save, so two requests on the
    same table never act on the same snapshot. Rejected actions leave the
    table untouched.
    """
    with get_game_lock(game_id):
        state = get_game(game_id)
        action = make_action(state)
        validation = validate_action(state, action)
        if not validation.valid:
            raise HTTPException(status_code=400, detail=validation.error)
        try:
            new_state, events = apply_action(state, action)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        save_game(game_id, new_state)
    return {
        **state_for_response(new_state),
        "events": [e.to_dict() for e in events],
    }


# ===== API Endpoints =====

@app.get("/")
def root():
    return {"message": "Mathematical Conquer API", "version": "1.0.0"}


@app.get("/definitions")
def get_definitions():
    """Static data: seats, operators and board constants."""
    return {
        "players": [asdict(p) for p in load_player_definitions()],
        "operators": [asdict(op) for op in OPERATORS.values()],
        "board_size": BOARD_SIZE,
        "dice_sides": DICE_SIDES,
        "min_players": MIN_PLAYERS,
        "max_players": MAX_PLAYERS,
    }


@app.post("/games")
def create_game(request: CreateGameRequest):
    """Open a new table."""
    game_id = str(uuid.uuid4())
    state = initialize_game_state(request.player_count)
    game_locks[game_id] = threading.Lock()
    dice_rollers[game_id] = DiceRoller(request.seed)
    save_game(game_id, state)
    return {"game_id": game_id, **state_for_response(state)}


@app.get("/games/{game_id}")
def get_game_state(game_id: str):
    return state_for_response(get_game(game_id))


@app.delete("/games/{game_id}")
def delete_game(game_id: str):
    with get_game_lock(game_id):
        get_game(game_id)
        games.pop(game_id, None)
        dice_rollers.pop(game_id, None)
    game_locks.pop(game_id, None)
    return {"deleted": game_id}


@app.get("/games/{game_id}/available-actions")
def get_available_actions(game_id: str):
    """Action types for the current phase, with operator previews when relevant."""
    state = get_game(game_id)
    return {
        "current_player": state.current_player.player_id,
        "phase": state.phase.value,
        "available_actions": get_available_action_types(state),
        "operator_options": get_operator_options(state),
        "candidate_targets": list(state.candidate_targets),
    }


@app.post("/games/{game_id}/player-count")
def do_configure_player_count(game_id: str, request: PlayerCountRequest):
    """Change the number of seats. Starts a fresh game."""
    return _run_action(game_id, lambda state: configure_player_count(request.player_count))


@app.post("/games/{game_id}/roll")
def do_roll(game_id: str):
    """Roll two dice for the current player."""
    def make_roll(state: GameState) -> Action:
        player_id = state.current_player.player_id
        # Check the phase before drawing so a rejected roll does not consume dice
        validation = validate_action(state, roll(player_id, (1, 1)))
        if not validation.valid:
            raise HTTPException(status_code=400, detail=validation.error)
        roller = dice_rollers.setdefault(game_id, DiceRoller())
        return roll(player_id, roller.roll_pair())

    return _run_action(game_id, make_roll)


@app.post("/games/{game_id}/operator")
def do_choose_operator(game_id: str, request: OperatorRequest):
    return _run_action(
        game_id,
        lambda state: choose_operator(state.current_player.player_id, request.operator),
    )


@app.post("/games/{game_id}/target")
def do_choose_target(game_id: str, request: TargetRequest):
    return _run_action(
        game_id,
        lambda state: choose_target(state.current_player.player_id, request.cell),
    )


@app.post("/games/{game_id}/reset")
def do_reset(game_id: str):
    return _run_action(game_id, lambda state: reset())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
