"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of natrack.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from natrack.database.models import Base, CardType, User  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all NaTrack tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used by the session routes).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a transactional session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------
def add_user(engine: Engine, name: str = "Alice", **kwargs) -> str:
    """Insert a human user and return its id."""
    with Session(engine) as session:
        user = User(name=name, **kwargs)
        session.add(user)
        session.commit()
        return user.id


def add_bot(
    engine: Engine,
    name: str,
    card_type: CardType | str = CardType.DEFI,
    *,
    avg_distance_m: float | None = None,
    target_distance_m: float | None = None,
    drop_rate: float | None = None,
    event_date: date | None = None,
    season: int | None = None,
) -> str:
    """Insert a bot user and return its id."""
    with Session(engine) as session:
        bot = User(
            name=name,
            is_bot=True,
            avg_distance_m=avg_distance_m,
            bot_card_type=str(card_type),
            bot_target_distance_m=target_distance_m,
            bot_drop_rate=drop_rate,
            bot_event_date=event_date,
            bot_season_int=season,
        )
        session.add(bot)
        session.commit()
        return bot.id


def make_token(sub: str, role: str = "user") -> str:
    """Create a signed JWT for API tests."""
    import jwt

    from natrack.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub, "role": role}, JWT_SECRET, algorithm=JWT_ALGORITHM)
