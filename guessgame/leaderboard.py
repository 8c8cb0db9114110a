"""
DB-backed leaderboard client.

Public methods:
- fetch_top(n) -> list[LeaderboardEntryOut]   (attempts asc, time_seconds asc)
- insert(player_name, attempts, time_seconds) -> LeaderboardEntryOut

Every database failure is rolled back and re-raised as LeaderboardError,
so callers only deal with one exception type and can keep the game going.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import OperationalError, ProgrammingError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import LeaderboardError
from .models import LeaderboardEntry as LeaderboardORM
from .schemas import LeaderboardEntryOut
from .types import LEADERBOARD_SIZE

logger = logging.getLogger(__name__)

MISSING_TABLE_ADVISORY = "Leaderboard table is missing. Create the game_leaderboard table first."


def _advisory_for(exc: SQLAlchemyError) -> str:
    text = str(exc).lower()
    # sqlite says "no such table", mysql/postgres mention the relation/table
    if isinstance(exc, (OperationalError, ProgrammingError)) and (
        "no such table" in text or "doesn't exist" in text or "relation" in text
    ):
        return MISSING_TABLE_ADVISORY
    return "Leaderboard is unavailable right now."


def _to_entry_out(row: LeaderboardORM) -> LeaderboardEntryOut:
    return LeaderboardEntryOut.model_validate(row)


def _valid_entries(rows: List[LeaderboardORM]) -> List[LeaderboardEntryOut]:
    """Convert rows, skipping any that break the entry rules (other writers can store anything)."""
    entries = []
    for row in rows:
        try:
            entries.append(_to_entry_out(row))
        except ValidationError as exc:
            logger.warning("Skipping invalid leaderboard row %s: %s", row.id, exc)
    return entries


class DBLeaderboard:
    def __init__(self, db: Session):
        self.db = db

    def fetch_top(self, n: int = LEADERBOARD_SIZE) -> List[LeaderboardEntryOut]:
        if n <= 0:
            return []
        query = (
            select(LeaderboardORM)
            .order_by(
                LeaderboardORM.attempts.asc(),
                LeaderboardORM.time_seconds.asc(),
                LeaderboardORM.created_at.asc(),
            )
            .limit(n)
        )
        try:
            rows = self.db.execute(query).scalars().all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Leaderboard fetch failed: %s", exc)
            raise LeaderboardError(f"fetch failed: {exc}", advisory=_advisory_for(exc)) from exc
        return _valid_entries(rows)

    def insert(self, player_name: str, attempts: int, time_seconds: float) -> LeaderboardEntryOut:
        row = LeaderboardORM(
            player_name=player_name,
            attempts=attempts,
            time_seconds=time_seconds,
            created_at=datetime.utcnow(),
        )
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Leaderboard insert failed for %r: %s", player_name, exc)
            raise LeaderboardError(f"insert failed: {exc}", advisory=_advisory_for(exc)) from exc
        logger.info("Saved result for %r: %d attempts in %.2fs", player_name, attempts, time_seconds)
        try:
            return _to_entry_out(row)
        except ValidationError as exc:
            raise LeaderboardError(f"stored entry is invalid: {exc}") from exc
