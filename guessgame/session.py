"""
In-memory game state for the single player.

GameController owns one GameSession and performs every transition:

  LOBBY --start_game--> PLAYING --submit_guess (CORRECT)--> FINISHED
    ^                                                          |
    +------------------------reset_to_lobby--------------------+

reset_to_lobby also works from PLAYING (the player abandons the game).
The leaderboard and commentary clients are collaborators passed in by the
caller; their failures are logged and never undo a transition.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from threading import RLock
from typing import Any, Callable, List, Optional
from uuid import uuid4

from .commentary_client import PENDING_COMMENT, CommentaryClient
from .config import settings
from .engine import (
    START_MESSAGE,
    RecordScore,
    evaluate,
    is_new_record,
    quick_message,
    validate_guess,
    validate_player_name,
)
from .errors import InvalidTransitionError, LeaderboardError
from .random_client import fetch_target
from .schemas import GameStateOut, GuessRecordOut, LeaderboardEntryOut
from .timer import ElapsedTimer
from .types import LEADERBOARD_SIZE, GameStatus, Verdict

logger = logging.getLogger(__name__)

LOBBY_MESSAGE = "행운을 빌어요!"


@dataclass
class GuessRecord:
    value: int
    verdict: Verdict
    timestamp: datetime = field(default_factory=datetime.utcnow)
    commentary: Optional[str] = None
    # late commentary is matched on this, never on list position
    id: str = field(default_factory=lambda: str(uuid4()))
    # guess values oldest first up to and including this one, taken under the lock
    history_values: List[int] = field(default_factory=list, repr=False)


@dataclass
class GameSession:
    status: GameStatus = "LOBBY"
    player_name: str = ""
    target: Optional[int] = None
    # most recent guess first
    history: List[GuessRecord] = field(default_factory=list)
    started_at: Optional[datetime] = None
    elapsed_seconds: float = 0.0
    attempts: int = 0
    is_new_record: bool = False
    host_message: str = LOBBY_MESSAGE
    timer: Optional[ElapsedTimer] = field(default=None, repr=False)

    def history_values(self) -> List[int]:
        """Guess values oldest first."""
        return [record.value for record in reversed(self.history)]

    def find(self, guess_id: str) -> Optional[GuessRecord]:
        for record in self.history:
            if record.id == guess_id:
                return record
        return None

    def stop_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()


def _default_timer() -> ElapsedTimer:
    return ElapsedTimer(interval=settings.tick_seconds, increment=settings.tick_increment)


class GameController:
    def __init__(
        self,
        draw_target: Callable[[], int] = fetch_target,
        timer_factory: Callable[[], ElapsedTimer] = _default_timer,
        leaderboard_size: int = LEADERBOARD_SIZE,
    ) -> None:
        self._lock = RLock()
        self._draw_target = draw_target
        self._timer_factory = timer_factory
        self.leaderboard_size = leaderboard_size
        self.session = GameSession()
        # read-only cached copy, best first
        self.leaderboard: List[LeaderboardEntryOut] = []
        self.leaderboard_warning: Optional[str] = None

    # --- Derived values ---

    @property
    def best_record(self) -> Optional[LeaderboardEntryOut]:
        return self.leaderboard[0] if self.leaderboard else None

    @property
    def elapsed_seconds(self) -> float:
        with self._lock:
            session = self.session
            if session.status == "PLAYING" and session.timer is not None:
                return session.timer.elapsed
            return session.elapsed_seconds

    # --- Transitions ---

    def start_game(self, player_name: Optional[str]) -> GameSession:
        with self._lock:
            if self.session.status != "LOBBY":
                raise InvalidTransitionError(
                    f"Cannot start a game while {self.session.status}. Return to the lobby first."
                )
            name = validate_player_name(player_name)

            target = self._draw_target()
            timer = self._timer_factory()
            self.session = GameSession(
                status="PLAYING",
                player_name=name,
                target=target,
                started_at=datetime.utcnow(),
                host_message=START_MESSAGE,
                timer=timer,
            )
            timer.start()
            logger.info("Game started for %r", name)
            return self.session

    def submit_guess(self, value: Any, leaderboard: Any = None) -> GuessRecord:
        """
        Evaluate one guess and prepend it to the history.
        A CORRECT guess finishes the game; `leaderboard` (fetch_top/insert)
        then receives the result. Without a leaderboard nothing is saved.
        """
        with self._lock:
            session = self.session
            if session.status != "PLAYING":
                raise InvalidTransitionError(f"Cannot guess while {session.status}.")
            guess = validate_guess(value)

            verdict = evaluate(guess, session.target)
            record = GuessRecord(value=guess, verdict=verdict, commentary=PENDING_COMMENT)
            session.history.insert(0, record)
            record.history_values = session.history_values()
            session.host_message = quick_message(verdict)

            if verdict == "CORRECT":
                self._finish(leaderboard)
            return record

    def _finish(self, leaderboard: Any) -> None:
        # caller holds self._lock
        session = self.session
        session.stop_timer()
        session.elapsed_seconds = session.timer.elapsed if session.timer is not None else 0.0
        session.attempts = len(session.history)
        session.is_new_record = is_new_record(
            RecordScore(session.attempts, session.elapsed_seconds), self.best_record
        )
        session.status = "FINISHED"
        logger.info(
            "Game finished for %r: %d attempts in %.2fs (new record: %s)",
            session.player_name, session.attempts, session.elapsed_seconds, session.is_new_record,
        )

        if leaderboard is None:
            return
        save_warning = None
        try:
            leaderboard.insert(session.player_name, session.attempts, session.elapsed_seconds)
        except LeaderboardError as exc:
            save_warning = exc.advisory
            logger.warning("Result not saved, game continues: %s", exc)
        self.refresh_leaderboard(leaderboard)
        # a successful refresh must not hide the failed save
        if save_warning:
            self.leaderboard_warning = save_warning

    def reset_to_lobby(self, leaderboard: Any = None) -> GameSession:
        with self._lock:
            if self.session.status == "PLAYING":
                logger.info("Game abandoned by %r", self.session.player_name)
            self.session.stop_timer()
            self.session = GameSession()
            if leaderboard is not None:
                self.refresh_leaderboard(leaderboard)
            return self.session

    # --- Collaborators ---

    def refresh_leaderboard(self, leaderboard: Any) -> List[LeaderboardEntryOut]:
        """Reload the cached top entries; on failure keep the stale copy."""
        with self._lock:
            try:
                self.leaderboard = list(leaderboard.fetch_top(self.leaderboard_size))
                self.leaderboard_warning = None
            except LeaderboardError as exc:
                self.leaderboard_warning = exc.advisory
                logger.warning("Using cached leaderboard (%d entries): %s", len(self.leaderboard), exc)
            return self.leaderboard

    def attach_commentary(self, guess_id: str, text: str) -> bool:
        """
        Attach late commentary to the guess with this id.
        Returns False when the guess is gone (new game or lobby reset).
        """
        with self._lock:
            session = self.session
            record = session.find(guess_id)
            if record is None:
                logger.debug("Dropping commentary for stale guess %s", guess_id)
                return False
            record.commentary = text
            # only the newest guess drives the host message; a correct guess keeps its banner
            if session.history[0] is record and record.verdict != "CORRECT":
                session.host_message = text
            return True

    # --- Views ---

    def snapshot(self) -> GameStateOut:
        with self._lock:
            session = self.session
            return GameStateOut(
                status=session.status,
                player_name=session.player_name or None,
                history=[
                    GuessRecordOut(
                        id=r.id,
                        value=r.value,
                        verdict=r.verdict,
                        timestamp=r.timestamp,
                        commentary=r.commentary,
                    )
                    for r in session.history
                ],
                attempts=len(session.history),
                elapsed_seconds=self.elapsed_seconds,
                started_at=session.started_at,
                is_new_record=session.is_new_record,
                host_message=session.host_message,
                best_record=self.best_record,
                leaderboard_warning=self.leaderboard_warning,
                target=session.target if session.status == "FINISHED" else None,
            )


def request_commentary(
    controller: GameController,
    client: CommentaryClient,
    guess_id: str,
    guess: int,
    verdict: Verdict,
    history_values: List[int],
) -> None:
    """Fire-and-forget job: ask for commentary, then attach it by guess id."""
    text = client.comment(guess, verdict, history_values)
    controller.attach_commentary(guess_id, text)
