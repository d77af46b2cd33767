"""
natrack.services.completion_service — Request-time rewards
===========================================================

Runs synchronously inside the session-creation request, after the new
session row is flushed and before the response is built:

1. **Completion detector** — the user's active challenge is completed if
   the session is inside its window and reaches the target.  The status
   change is a conditional UPDATE, so of two concurrent qualifying
   sessions only one completes the challenge and mints the card.
2. **Object cards** — every ``objet`` bot whose threshold the session
   reaches grants one card.  Not deduplicated: repeating the feat earns
   the card again.

Input validation (date format, positive distance) is the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from natrack.database.models import CardResult, CardType, ChallengeStatus, User
from natrack.engine.lifecycle import ChallengeSnapshot, session_meets_challenge
from natrack.engine.messages import success_message
from natrack.services.challenge_service import get_active_challenge, transition_challenge
from natrack.services.notification_service import (
    create_notification,
    mark_start_notifications_read,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompletedChallenge:
    """Descriptive fields returned to the session-creation response."""

    id: str
    bot_id: str
    bot_name: str | None
    type: str
    target_distance_m: float
    due_date: date

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bot_id": self.bot_id,
            "bot_name": self.bot_name,
            "type": self.type,
            "target_distance_m": self.target_distance_m,
            "due_date": self.due_date.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class SessionRewards:
    challenge: CompletedChallenge | None = None
    object_cards: int = 0

    @property
    def challenge_completed(self) -> bool:
        return self.challenge is not None


# ---------------------------------------------------------------------------
# Completion detector
# ---------------------------------------------------------------------------
def complete_challenge(
    session: Session,
    challenge: ChallengeSnapshot,
    *,
    session_id: str,
    session_date: date,
    distance: float,
    now: datetime | None = None,
) -> bool:
    """Complete *challenge* and mint its card.

    Returns ``False`` (and writes nothing) if another writer already moved
    the challenge out of ``active``.
    """
    now = now or datetime.now(UTC)
    moved = transition_challenge(
        session,
        challenge.id,
        ChallengeStatus.COMPLETED,
        completed_at=now,
        completed_session_id=session_id,
    )
    if not moved:
        return False

    session.add(CardResult(
        user_id=challenge.user_id,
        bot_id=challenge.bot_id,
        type=challenge.type,
        distance_m=distance,
        target_distance_m=challenge.target_distance_m,
        session_id=session_id,
        achieved_at=session_date,
    ))
    create_notification(session, challenge.user_id, success_message(challenge, distance))
    cleared = mark_start_notifications_read(session, challenge.user_id, now)
    logger.info(
        "User %s completed %s challenge %s (%.0fm / %.0fm), %d start notifications cleared",
        challenge.user_id, challenge.type, challenge.id,
        distance, challenge.target_distance_m, cleared,
    )
    return True


def handle_challenge_completion(
    session: Session,
    *,
    user_id: str,
    session_id: str,
    session_date: date,
    distance: float,
    now: datetime | None = None,
) -> CompletedChallenge | None:
    """Check the user's active challenge against a just-recorded session."""
    active = get_active_challenge(session, user_id)
    if active is None:
        return None

    snapshot = ChallengeSnapshot.from_model(active)
    if not session_meets_challenge(snapshot, session_date, distance):
        return None

    if not complete_challenge(
        session,
        snapshot,
        session_id=session_id,
        session_date=session_date,
        distance=distance,
        now=now,
    ):
        return None

    bot = session.get(User, snapshot.bot_id)
    return CompletedChallenge(
        id=snapshot.id,
        bot_id=snapshot.bot_id,
        bot_name=bot.name if bot else None,
        type=snapshot.type,
        target_distance_m=snapshot.target_distance_m,
        due_date=snapshot.due_date,
    )


# ---------------------------------------------------------------------------
# Object card grants
# ---------------------------------------------------------------------------
def grant_object_cards(
    session: Session,
    *,
    user_id: str,
    session_id: str,
    session_date: date,
    distance: float,
) -> int:
    """Append one ``objet`` card per bot whose threshold *distance* reaches."""
    bots = session.scalars(
        select(User).where(
            User.is_bot.is_(True),
            User.bot_card_type == CardType.OBJET.value,
            User.bot_target_distance_m.is_not(None),
            User.bot_target_distance_m <= distance,
        )
    ).all()

    for bot in bots:
        session.add(CardResult(
            user_id=user_id,
            bot_id=bot.id,
            type=CardType.OBJET.value,
            distance_m=distance,
            target_distance_m=bot.bot_target_distance_m,
            session_id=session_id,
            achieved_at=session_date,
        ))
    if bots:
        session.flush()
        logger.info("User %s earned %d object card(s) with %.0fm", user_id, len(bots), distance)
    return len(bots)


def on_session_recorded(
    session: Session,
    *,
    user_id: str,
    session_id: str,
    session_date: date,
    distance: float,
    now: datetime | None = None,
) -> SessionRewards:
    """Run both request-time hooks for a human user's new session."""
    completed = handle_challenge_completion(
        session,
        user_id=user_id,
        session_id=session_id,
        session_date=session_date,
        distance=distance,
        now=now,
    )
    cards = grant_object_cards(
        session,
        user_id=user_id,
        session_id=session_id,
        session_date=session_date,
        distance=distance,
    )
    return SessionRewards(challenge=completed, object_cards=cards)
