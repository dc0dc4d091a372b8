"""
Static game definitions.
Seats (name + color) and the four dice operators. These never change during a game.
"""

from dataclasses import dataclass

from conquer.engine import MAX_PLAYERS


# Seat colors, in seat order
PLAYER_COLORS = [
    "#2563eb", "#dc2626", "#16a34a", "#f59e0b", "#7c3aed", "#059669",
]

ADD = "add"
SUBTRACT = "subtract"
FLOOR_DIVIDE = "floor-divide"
MULTIPLY = "multiply"


@dataclass(frozen=True)
class PlayerDefinition:
    """Identity of one seat at the table. Survives resets."""
    player_id: int  # 0-based, stable for the whole game
    name: str
    color: str  # cosmetic only


@dataclass(frozen=True)
class OperatorDefinition:
    """A dice operator the player can pick after rolling."""
    operator_id: str
    symbol: str  # display glyph
    display_name: str


# Order matters: it is the order operator buttons are offered in.
OPERATORS: dict[str, OperatorDefinition] = {
    ADD: OperatorDefinition(ADD, "+", "Add"),
    SUBTRACT: OperatorDefinition(SUBTRACT, "−", "Subtract"),
    FLOOR_DIVIDE: OperatorDefinition(FLOOR_DIVIDE, "÷", "Divide (floor)"),
    MULTIPLY: OperatorDefinition(MULTIPLY, "×", "Multiply"),
}

# Short names accepted from clients
OPERATOR_ALIASES = {
    "sub": SUBTRACT,
    "div": FLOOR_DIVIDE,
    "floor_divide": FLOOR_DIVIDE,
    "mul": MULTIPLY,
}


def normalize_operator(operator: str) -> str:
    """Return the canonical operator id for operator (or one of its aliases)."""
    key = str(operator).strip().lower()
    key = OPERATOR_ALIASES.get(key, key)
    if key not in OPERATORS:
        raise ValueError(
            f"Unknown operator: {operator}. "
            f"Expected one of: {', '.join(OPERATORS)}"
        )
    return key


def load_player_definitions(count: int = MAX_PLAYERS) -> list[PlayerDefinition]:
    """Build the seat definitions: "Player 1".."Player N" with the fixed palette."""
    if count < 1 or count > len(PLAYER_COLORS):
        raise ValueError(f"Seat count must be between 1 and {len(PLAYER_COLORS)}, got {count}")
    return [
        PlayerDefinition(player_id=i, name=f"Player {i + 1}", color=PLAYER_COLORS[i])
        for i in range(count)
    ]
