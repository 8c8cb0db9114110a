"""
ORM table for the global leaderboard.

One row per finished game. Rows are only ever inserted; ranking is
attempts ascending, then time_seconds ascending.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import String, Integer, Float, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


def _new_id() -> str:
    return str(uuid4())


class LeaderboardEntry(Base):
    __tablename__ = "game_leaderboard"

    # UUIDs generated in code; stored as strings
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    player_name: Mapped[str] = mapped_column(String(64), nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False)
    time_seconds: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    # matches the ranking query
    __table_args__ = (Index("ix_leaderboard_rank", "attempts", "time_seconds"),)
