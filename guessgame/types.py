"""
Labels for clarity.
"""

from typing import Literal

Verdict = Literal["UP", "DOWN", "CORRECT"]
GameStatus = Literal["LOBBY", "PLAYING", "FINISHED"]

MIN_GUESS = 1
MAX_GUESS = 100
LEADERBOARD_SIZE = 10
