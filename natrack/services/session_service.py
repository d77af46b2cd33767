"""
natrack.services.session_service — Session persistence
=======================================================

Shared by the API (human sessions) and the daily jobs (synthetic bot
sessions).

* :func:`record_session` inserts a session and, for human users, runs the
  request-time reward hooks in the same transaction.
* :func:`ensure_bot_session` gives a bot one session per day, so its own
  activity matches the challenge it issued.  Reruns are no-ops.
* :func:`run_bot_daily` logs a jittered daily session for each bot of a
  roster.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from natrack.constants import DEFAULT_BOT_SESSION_TYPE, SESSION_TYPES
from natrack.database.engine import get_session
from natrack.database.models import SportSession, User
from natrack.engine.distance import jitter_distance
from natrack.services.completion_service import SessionRewards, on_session_recorded

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

DEFAULT_BOT_DAILY_JITTER = 0.10


class UserNotFoundError(LookupError):
    """Raised when a session targets a user id that does not exist."""


@dataclass(frozen=True, slots=True)
class RecordedSession:
    id: str
    user_id: str
    session_date: date
    distance: float
    type: str
    rewards: SessionRewards

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.session_date.isoformat(),
            "distance": self.distance,
            "type": self.type,
            "challenge_completed": self.rewards.challenge_completed,
            "challenge": (
                self.rewards.challenge.to_dict() if self.rewards.challenge else None
            ),
            "object_cards": self.rewards.object_cards,
        }


# ---------------------------------------------------------------------------
# Human sessions
# ---------------------------------------------------------------------------
def record_session(
    engine: Engine,
    user_id: str,
    *,
    session_date: date,
    distance: float,
    session_type: str = "swim",
    session_id: str | None = None,
    now: datetime | None = None,
) -> RecordedSession:
    """Insert a session and apply challenge / object-card rewards.

    Bots never earn rewards; their sessions are stored as-is.

    Raises
    ------
    UserNotFoundError
        If *user_id* does not exist.
    """
    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        row = SportSession(
            user_id=user_id,
            session_date=session_date,
            distance=distance,
            type=session_type,
        )
        if session_id:
            row.id = session_id
        session.add(row)
        session.flush()

        rewards = SessionRewards()
        if not user.is_bot:
            rewards = on_session_recorded(
                session,
                user_id=user_id,
                session_id=row.id,
                session_date=session_date,
                distance=distance,
                now=now,
            )

        return RecordedSession(
            id=row.id,
            user_id=user_id,
            session_date=session_date,
            distance=distance,
            type=session_type,
            rewards=rewards,
        )


# ---------------------------------------------------------------------------
# Bot sessions
# ---------------------------------------------------------------------------
def ensure_bot_session(
    session: Session,
    bot_id: str,
    day: date,
    distance: float,
    session_type: str = DEFAULT_BOT_SESSION_TYPE,
) -> SportSession | None:
    """Insert a session for *bot_id* on *day* unless it already has one.

    Returns the new row, or ``None`` when the bot already had a session.
    """
    already = session.scalar(
        select(exists().where(
            SportSession.user_id == bot_id,
            SportSession.session_date == day,
        ))
    )
    if already:
        return None

    row = SportSession(
        user_id=bot_id,
        session_date=day,
        distance=distance,
        type=session_type,
    )
    session.add(row)
    session.flush()
    logger.info("Bot %s session created: %.0fm %s on %s", bot_id, distance, session_type, day)
    return row


def _normalize_type(raw: object) -> str:
    value = str(raw or "").strip().lower()
    return value if value in SESSION_TYPES else DEFAULT_BOT_SESSION_TYPE


def _resolve_bot_id(session: Session, entry: Mapping) -> str | None:
    bot_id = entry.get("id")
    if bot_id:
        return str(bot_id)
    name = entry.get("name")
    if not name:
        return None
    return session.scalar(
        select(User.id).where(User.name == name, User.is_bot.is_(True)).limit(1)
    )


def run_bot_daily(
    engine: Engine,
    roster: Iterable[Mapping],
    today: date,
    *,
    ratio: float = DEFAULT_BOT_DAILY_JITTER,
    rng: random.Random | None = None,
) -> dict[str, int]:
    """Create one jittered session per roster bot for *today*.

    Roster entries carry ``id`` or ``name``, ``distance_m`` and an optional
    ``type`` (swim|run, default run).  A bot that already logged a session
    of that type today is left alone.

    Returns ``{"created": N, "existing": M, "skipped": K}``.
    """
    created = existing = skipped = 0

    with get_session(engine) as session:
        for entry in roster:
            label = entry.get("name") or entry.get("id")
            bot_id = _resolve_bot_id(session, entry)
            if bot_id is None:
                logger.warning("Bot user not found: %s", label)
                skipped += 1
                continue

            session_type = _normalize_type(entry.get("type"))
            has_session = session.scalar(
                select(exists().where(
                    SportSession.user_id == bot_id,
                    SportSession.session_date == today,
                    SportSession.type == session_type,
                ))
            )
            if has_session:
                logger.info("Already has session today: %s", label)
                existing += 1
                continue

            distance = jitter_distance(entry.get("distance_m"), ratio, rng=rng)
            if not distance:
                logger.warning("Invalid distance for bot: %s", label)
                skipped += 1
                continue

            session.add(SportSession(
                user_id=bot_id,
                session_date=today,
                distance=distance,
                type=session_type,
            ))
            created += 1
            logger.info("Created session for %s: %dm %s on %s", label, distance, session_type, today)

    return {"created": created, "existing": existing, "skipped": skipped}
