"""
Single place to:
- Read DATABASE_URL from env
- Create a SQLAlchemy Engine (MySQL via PyMySQL in prod, SQLite works for dev)
- Create a Session factory (SessionLocal) for per-request DB sessions
- Provide get_db() dependency for FastAPI routes
"""

import os
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from . import config  # noqa: F401  (loads .env before we read DATABASE_URL)

# 1) Pull the connection string.
DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError(
        "DATABASE_URL is not set. Add it to your environment or a local .env (not committed)."
    )

# 2) Create the SQLAlchemy Engine.
#    pool_pre_ping=True = auto-detect dead connections (helps with long-lived processes).
engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    echo=False,
    future=True,
)

# 3) Session factory; each request gets its own session.
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


# 4) Base class for ORM models.
class Base(DeclarativeBase):
    pass


# 5) FastAPI dependency that yields a DB session for the duration of a request.
def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
