"""
Pure game logic (no HTTP, no storage).
Two rules live here:
- evaluate: where a guess sits relative to the target (UP / DOWN / CORRECT)
- is_new_record: whether a finished game beats the current best entry

The record rule uses the same ordering as the leaderboard query
(attempts ascending, then time_seconds ascending), so "new record"
means exactly "would be rank 1".
"""

from typing import Any, NamedTuple, Optional

from .errors import InvalidGuessError, InvalidPlayerNameError
from .types import MAX_GUESS, MIN_GUESS, Verdict

START_MESSAGE = "도전이 시작되었습니다! 숫자를 입력하세요."

QUICK_MESSAGES = {
    "UP": "더 높은 숫자입니다! ⬆️",
    "DOWN": "더 낮은 숫자입니다! ⬇️",
    "CORRECT": "정답입니다! 🎉",
}


class RecordScore(NamedTuple):
    attempts: int
    time_seconds: float


def evaluate(guess: int, target: int) -> Verdict:
    """
    Example:
      target = 42
      evaluate(10, 42) -> "UP"       (go higher)
      evaluate(70, 42) -> "DOWN"     (go lower)
      evaluate(42, 42) -> "CORRECT"
    The caller validates the range first (see validate_guess).
    """
    if guess < target:
        return "UP"
    if guess > target:
        return "DOWN"
    return "CORRECT"


def is_new_record(candidate: Any, best: Optional[Any]) -> bool:
    """
    Both arguments only need `attempts` and `time_seconds` attributes,
    so ORM rows, schemas and RecordScore all work.
    Fewer attempts always wins; time only breaks ties on equal attempts.
    """
    if best is None:
        return True
    if candidate.attempts != best.attempts:
        return candidate.attempts < best.attempts
    return candidate.time_seconds < best.time_seconds


def validate_guess(value: Any) -> int:
    """Return the guess as an int, or raise InvalidGuessError. Never clamps."""
    # bool is an int subclass; True is not a guess
    if isinstance(value, bool):
        raise InvalidGuessError(f"Guess must be a whole number between {MIN_GUESS} and {MAX_GUESS}.")

    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            raise InvalidGuessError(f"Guess must be a whole number between {MIN_GUESS} and {MAX_GUESS}.")

    if not isinstance(value, int):
        raise InvalidGuessError(f"Guess must be a whole number between {MIN_GUESS} and {MAX_GUESS}.")

    if value < MIN_GUESS or value > MAX_GUESS:
        raise InvalidGuessError(f"Guess must be between {MIN_GUESS} and {MAX_GUESS} inclusive.")
    return value


def validate_player_name(name: Optional[str]) -> str:
    """Trimmed name, or InvalidPlayerNameError when nothing is left."""
    trimmed = (name or "").strip()
    if not trimmed:
        raise InvalidPlayerNameError("Player name must not be empty.")
    return trimmed


def verdict_text(verdict: Verdict) -> str:
    # the commentary prompt uses the Korean word for a correct answer
    return "정답" if verdict == "CORRECT" else verdict


def quick_message(verdict: Verdict) -> str:
    return QUICK_MESSAGES[verdict]
