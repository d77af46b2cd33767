"""
natrack.database.engine — Engine, per-user transactions, thread offload
========================================================================

One synchronous SQLAlchemy engine serves both halves of NaTrack:

* The daily jobs open a :func:`get_session` transaction per user, so a
  crash while assigning one swimmer rolls back that swimmer only.
* The API records swim/run sessions from async route handlers, which
  hand the blocking work to :func:`run_db`.

Usage::

    from natrack.database.engine import create_db_engine, get_session, run_db

    engine = create_db_engine()
    with get_session(engine) as session:
        assign_for_user(session, ctx, user_id)

    recorded = await run_db(record_session, engine, user_id,
                            session_date=day, distance=2500)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from natrack.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine() -> Engine:
    """Build a SQLAlchemy :class:`Engine` from the ``DATABASE_URL`` env var.

    The daily batch holds one connection at a time; the API may burst to
    ``pool_size + max_overflow`` (15).  Connections are pinged before use
    and recycled hourly.

    Raises
    ------
    RuntimeError
        If ``DATABASE_URL`` is not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set; the NaTrack jobs and API need the "
            "PostgreSQL URL (see .env.example)."
        )

    engine = create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Database engine created → %s", engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create missing NaTrack tables, then seed the gameplay settings.

    Only missing setting keys are inserted, so values tuned by an admin
    survive.  Production schemas come from ``alembic upgrade head``; this
    covers local runs and the test suite.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")

    from natrack.database.seed import seed_default_settings

    seed_default_settings(engine)


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """One transaction: committed when the block exits, rolled back if it raises."""
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Await a blocking service call (e.g. :func:`record_session`) via
    :func:`asyncio.to_thread`.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
