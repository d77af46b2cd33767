"""
natrack.services.challenge_service — Challenge reads and status transitions
============================================================================

:func:`transition_challenge` is the only place a challenge status changes.
It validates the edge against the state machine, then runs a conditional
UPDATE that only matches while the row still has the expected status, so
two writers racing on the same challenge can never both win.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import exists, select, update
from sqlalchemy.orm import Session

from natrack.database.engine import get_session
from natrack.database.models import CardType, Challenge, ChallengeStatus
from natrack.engine.lifecycle import validate_transition

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def get_active_challenge(session: Session, user_id: str) -> Challenge | None:
    """The user's most recent active challenge, if any."""
    return session.scalar(
        select(Challenge)
        .where(
            Challenge.user_id == user_id,
            Challenge.status == ChallengeStatus.ACTIVE.value,
        )
        .order_by(Challenge.created_at.desc(), Challenge.start_date.desc())
        .limit(1)
    )


def has_completed_event(session: Session, user_id: str, day: date) -> bool:
    """Whether *user_id* already completed an event card started on *day*.

    Any event bot counts, not only the one currently drawn.
    """
    return bool(session.scalar(
        select(exists().where(
            Challenge.user_id == user_id,
            Challenge.type == CardType.EVENEMENT.value,
            Challenge.start_date == day,
            Challenge.status == ChallengeStatus.COMPLETED.value,
        ))
    ))


def transition_challenge(
    session: Session,
    challenge_id: str,
    target: ChallengeStatus,
    *,
    expected: ChallengeStatus = ChallengeStatus.ACTIVE,
    **changes: Any,
) -> bool:
    """Move a challenge from *expected* to *target*.

    Extra keyword arguments are written in the same UPDATE (e.g.
    ``completed_at``).  Returns ``False`` when no row matched, meaning
    another writer already moved it.

    Raises
    ------
    InvalidTransitionError
        If *expected* → *target* is not an edge of the state machine.
    """
    validate_transition(expected, target)
    result = session.execute(
        update(Challenge)
        .where(
            Challenge.id == challenge_id,
            Challenge.status == expected.value,
        )
        .values(status=target.value, updated_at=datetime.now(UTC), **changes)
        .execution_options(synchronize_session=False)
    )
    moved = result.rowcount == 1
    if moved:
        logger.info("Challenge %s: %s → %s", challenge_id, expected.value, target.value)
    else:
        logger.info(
            "Challenge %s: %s → %s skipped (no longer %s)",
            challenge_id, expected.value, target.value, expected.value,
        )
    return moved


def cancel_active_challenge(engine: Engine, user_id: str) -> bool:
    """Cancel the user's active challenge (operator action).

    Returns ``False`` if the user had none.
    """
    with get_session(engine) as session:
        active = get_active_challenge(session, user_id)
        if active is None:
            return False
        return transition_challenge(session, active.id, ChallengeStatus.CANCELLED)
