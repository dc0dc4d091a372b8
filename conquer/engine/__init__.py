"""
Mathematical Conquer Game Engine
Core rules only - no web framework, persistence, or UI
"""

BOARD_SIZE = 100
DICE_SIDES = 6

MIN_PLAYERS = 2
MAX_PLAYERS = 6

# Number of lines kept in the in-game event log (oldest are dropped first).
LOG_CAPACITY = 100
