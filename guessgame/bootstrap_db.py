"""
Dev convenience: create the leaderboard table if it doesn't exist.
Call this at startup in local/dev only
"""

from .db import engine, Base
from . import models  # noqa: F401  (registers the table on Base.metadata)


def create_all():
    Base.metadata.create_all(bind=engine)
