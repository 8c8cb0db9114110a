"""
Explicit validation & Pydantic models
- Define the structure of API requests and responses.
- Also used as the read-only leaderboard copy the game controller caches.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .types import LEADERBOARD_SIZE, MAX_GUESS, MIN_GUESS


# 1. Starts a game
class StartGameRequest(BaseModel):
    player_name: str = Field(..., description="Name shown on the leaderboard", max_length=64)

    model_config = {
        "json_schema_extra": {"examples": [{"player_name": "민지"}]}
    }


# 2. Validates player's guess
class GuessRequest(BaseModel):
    # strict: JSON true or "42" is not a number and must not become one
    guess: int = Field(..., strict=True, description=f"A whole number between {MIN_GUESS} and {MAX_GUESS}")

    @field_validator("guess")
    @classmethod
    def validate_range(cls, guess: int) -> int:
        """
        Out-of-range values are rejected, never clamped.
        The controller checks again so non-HTTP callers get the same rule.
        """
        if guess < MIN_GUESS or guess > MAX_GUESS:
            raise ValueError(f"Guess must be between {MIN_GUESS} and {MAX_GUESS} inclusive.")
        return guess

    model_config = {
        "json_schema_extra": {"examples": [{"guess": 50}]}
    }


# 3. One guess in the history
class GuessRecordOut(BaseModel):
    id: str = Field(..., description="Stable identity of the guess")
    value: int = Field(..., description="The player's guess")
    verdict: Literal["UP", "DOWN", "CORRECT"] = Field(..., description="UP = go higher, DOWN = go lower")
    timestamp: datetime = Field(..., description="When the guess was made")
    commentary: Optional[str] = Field(None, description="AI host reaction ('...' while pending)")


# 4. Leaderboard row (read-only copy of the stored entry)
class LeaderboardEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    player_name: str
    attempts: int = Field(..., gt=0)
    time_seconds: float = Field(..., ge=0)
    created_at: Optional[datetime] = None


class LeaderboardOut(BaseModel):
    entries: List[LeaderboardEntryOut] = Field(..., description=f"Top {LEADERBOARD_SIZE}, best first")
    warning: Optional[str] = Field(None, description="Advisory when the leaderboard could not be loaded")


# 5. Overall state of the game
class GameStateOut(BaseModel):
    status: Literal["LOBBY", "PLAYING", "FINISHED"]
    player_name: Optional[str] = None
    history: List[GuessRecordOut] = Field(..., description="Most recent guess first")
    attempts: int = Field(..., description="Guesses made so far")
    elapsed_seconds: float = Field(..., description="Frozen once the game is finished")
    started_at: Optional[datetime] = None
    is_new_record: bool = False
    host_message: str
    best_record: Optional[LeaderboardEntryOut] = None
    leaderboard_warning: Optional[str] = None
    target: Optional[int] = Field(None, description="Only revealed once the game is finished")


# 6. Result of a guess
class GuessResponse(BaseModel):
    verdict: Literal["UP", "DOWN", "CORRECT"]
    message: str = Field(..., description="Quick verdict text; AI commentary arrives later")
    state: GameStateOut
