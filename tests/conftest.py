"""
- Spins up temp test DB
- Create tables before tests run
- Provide a db_session fixture and override FastAPI's get_db so routes use the test session.
- Provide a fresh GameController per test (target fixed at 42, timer ticked by hand).
- Provide a client fixture (TestClient(app)) that already has the overrides applied.
"""
import os
import pytest
from typing import Generator

# Must be set before guessgame.db is imported: it reads DATABASE_URL at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
# Ensure the app does NOT run dev-only startup hooks, call Gemini or random.org
os.environ["APP_ENV"] = "test"
os.environ["GEMINI_API_KEY"] = ""
os.environ["USE_RANDOM_ORG"] = "0"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from guessgame.db import Base, get_db
from guessgame.errors import LeaderboardError
from guessgame.main import app, get_commentary_client, get_controller
from guessgame.session import GameController
from guessgame.schemas import LeaderboardEntryOut
from guessgame.timer import ElapsedTimer
from guessgame import models  # noqa: F401

# Use SQLite in-memory for tests (fast, isolated)
TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"

TEST_TARGET = 42


@pytest.fixture(scope="session")
def engine():
    # StaticPool + check_same_thread=False lets Starlette's TestClient and SQLAlchemy
    # share ONE in-memory SQLite database across threads.
    engine = create_engine(
        TEST_DATABASE_URL,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(engine) -> Generator:
    """Provide a clean session per test with rollback."""
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    db = TestingSessionLocal()
    try:
        yield db
        db.rollback()
    finally:
        db.close()


@pytest.fixture(autouse=True)
def _clean_db(engine):
    """The leaderboard commits inside requests, so rows would leak between tests."""
    with engine.begin() as conn:
        conn.execute(text("DELETE FROM game_leaderboard"))
    yield


def manual_timer() -> ElapsedTimer:
    return ElapsedTimer(interval=0.1, increment=0.1, autostart_thread=False)


@pytest.fixture
def controller() -> Generator:
    game = GameController(draw_target=lambda: TEST_TARGET, timer_factory=manual_timer)
    yield game
    game.session.stop_timer()


class FakeCommentaryClient:
    """Records calls and answers with predictable text."""

    def __init__(self):
        self.calls = []

    def comment(self, guess, verdict, history_values):
        self.calls.append((guess, verdict, list(history_values)))
        return f"comment for {guess}"


@pytest.fixture
def commentary() -> FakeCommentaryClient:
    return FakeCommentaryClient()


class MemoryLeaderboard:
    """In-memory stand-in with the same fetch_top/insert surface as DBLeaderboard."""

    def __init__(self, entries=None, fail_fetch=False, fail_insert=False):
        self.entries = list(entries or [])
        self.fail_fetch = fail_fetch
        self.fail_insert = fail_insert
        self.inserted = []

    def fetch_top(self, n=10):
        if self.fail_fetch:
            raise LeaderboardError("boom", advisory="Leaderboard is unavailable right now.")
        ranked = sorted(self.entries, key=lambda e: (e.attempts, e.time_seconds))
        return ranked[:n]

    def insert(self, player_name, attempts, time_seconds):
        if self.fail_insert:
            raise LeaderboardError("insert boom", advisory="Could not save your result.")
        entry = LeaderboardEntryOut(player_name=player_name, attempts=attempts, time_seconds=time_seconds)
        self.entries.append(entry)
        self.inserted.append(entry)
        return entry


@pytest.fixture(autouse=True)
def override_dep(db_session, controller, commentary):
    """Force the app to use our test session, controller and commentary client."""
    def _get_db_for_tests():
        yield db_session

    app.dependency_overrides[get_db] = _get_db_for_tests
    app.dependency_overrides[get_controller] = lambda: controller
    app.dependency_overrides[get_commentary_client] = lambda: commentary
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    # Talks to the FastAPI app in-process; background tasks run before the call returns.
    return TestClient(app)


@pytest.fixture
def make_leaderboard():
    return MemoryLeaderboard
