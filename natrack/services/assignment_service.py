"""
natrack.services.assignment_service — Daily challenge assignment batch
=======================================================================

One run per calendar day:

1. Resolve the current season and load the bot roster.
2. Build the run-scoped :class:`~natrack.engine.lifecycle.BatchContext`
   (pools, the shared daily event bot, bots already used today).  An event
   already issued today pins the event bot for every later run that day.
3. For each human user, in its own transaction: plan with
   :func:`~natrack.engine.lifecycle.plan_for_user`, apply expiries,
   persist the new challenge, emit the start notification, and give the
   opposing bot a matching session.

A failure aborts the remaining users.  Users already handled keep their
committed work, and since users with a valid active challenge are
skipped, rerunning the job picks up where it stopped.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session

from natrack.constants import DEFAULT_LOCALE
from natrack.database.engine import get_session
from natrack.database.models import (
    CardType,
    Challenge,
    ChallengeStatus,
    Season,
    User,
)
from natrack.engine.lifecycle import (
    AssignmentPlan,
    BatchContext,
    ChallengeSnapshot,
    ChallengeTuning,
    build_batch_context,
    plan_for_user,
)
from natrack.engine.messages import start_message
from natrack.engine.pools import BotCandidate, resolve_season
from natrack.services.challenge_service import (
    get_active_challenge,
    has_completed_event,
    transition_challenge,
)
from natrack.services.notification_service import create_notification
from natrack.services.session_service import ensure_bot_session

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from natrack.engine.cache import ConfigCache

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------
def get_current_season(session: Session, today: date) -> int | None:
    rows = session.execute(select(Season.number, Season.start_date)).all()
    return resolve_season(((r.number, r.start_date) for r in rows), today)


def load_bot_candidates(session: Session) -> list[BotCandidate]:
    bots = session.scalars(
        select(User).where(User.is_bot.is_(True)).order_by(User.name, User.id)
    ).all()
    return [BotCandidate.from_user(bot) for bot in bots]


def load_used_bot_ids(session: Session, today: date) -> set[str]:
    """Bots already facing someone in a non-event challenge started today."""
    return set(session.scalars(
        select(Challenge.bot_id).where(
            Challenge.start_date == today,
            Challenge.type != CardType.EVENEMENT.value,
        )
    ).all())


def load_today_event_bot_id(session: Session, today: date) -> str | None:
    """The bot of an event card already issued today, if any."""
    return session.scalar(
        select(Challenge.bot_id)
        .where(
            Challenge.start_date == today,
            Challenge.type == CardType.EVENEMENT.value,
        )
        .order_by(Challenge.created_at, Challenge.id)
        .limit(1)
    )


def load_human_user_ids(session: Session) -> list[str]:
    return list(session.scalars(
        select(User.id).where(User.is_bot.is_(False)).order_by(User.created_at, User.id)
    ).all())


# ---------------------------------------------------------------------------
# Per-user step
# ---------------------------------------------------------------------------
def apply_plan(
    session: Session,
    ctx: BatchContext,
    user_id: str,
    plan: AssignmentPlan,
    *,
    locale: str = DEFAULT_LOCALE,
) -> Challenge | None:
    """Persist *plan* for *user_id*.  Returns the new challenge, if any."""
    for challenge_id, reason in plan.expire:
        if transition_challenge(session, challenge_id, ChallengeStatus.EXPIRED):
            logger.info("Expired challenge %s for user %s (%s)", challenge_id, user_id, reason)

    assignment = plan.assignment
    if assignment is None:
        return None

    challenge = Challenge(
        user_id=user_id,
        bot_id=assignment.bot.id,
        type=assignment.card_type,
        status=ChallengeStatus.ACTIVE.value,
        target_distance_m=assignment.target_distance_m,
        start_date=assignment.start_date,
        due_date=assignment.due_date,
        due_at=assignment.due_at,
    )
    session.add(challenge)
    session.flush()

    if not assignment.is_event:
        ctx.mark_used(assignment.bot.id)

    create_notification(session, user_id, start_message(assignment, challenge.id, locale=locale))
    ensure_bot_session(session, assignment.bot.id, ctx.today, assignment.target_distance_m)

    logger.info(
        "Assigned %s %s to user %s: %.0fm due %s",
        assignment.card_type, assignment.bot.name, user_id,
        assignment.target_distance_m, assignment.due_date,
    )
    return challenge


def assign_for_user(
    session: Session,
    ctx: BatchContext,
    user_id: str,
    *,
    locale: str = DEFAULT_LOCALE,
    rng: random.Random | None = None,
) -> AssignmentPlan:
    active = get_active_challenge(session, user_id)
    snapshot = ChallengeSnapshot.from_model(active) if active is not None else None

    completed_event = False
    if ctx.event_bot is not None:
        completed_event = has_completed_event(session, user_id, ctx.today)

    plan = plan_for_user(ctx, snapshot, completed_event_today=completed_event, rng=rng)
    apply_plan(session, ctx, user_id, plan, locale=locale)
    return plan


# ---------------------------------------------------------------------------
# Batch run
# ---------------------------------------------------------------------------
def run_daily_assignment(
    engine: Engine,
    cache: ConfigCache | None = None,
    *,
    today: date,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> dict[str, int]:
    """Run the assignment batch once for *today*.

    Returns counters: ``users``, ``assigned``, ``events``, ``expired``
    and one ``skipped.<reason>`` entry per skip reason seen.

    Datastore errors propagate; the caller decides the exit status.
    """
    now = now or datetime.now(UTC)
    rng = rng or random.Random()
    tuning = ChallengeTuning.from_cache(cache)
    locale = cache.get_str("display.locale", DEFAULT_LOCALE) if cache else DEFAULT_LOCALE

    with Session(engine) as session:
        season = get_current_season(session, today)
        bots = load_bot_candidates(session)
        used = load_used_bot_ids(session, today)
        event_bot_id = load_today_event_bot_id(session, today)
        user_ids = load_human_user_ids(session)

    ctx = build_batch_context(
        today=today,
        now=now,
        season=season,
        bots=bots,
        used_bot_ids=used,
        event_bot_id=event_bot_id,
        tuning=tuning,
        rng=rng,
    )
    logger.info(
        "Daily assignment %s: season=%s, %d users, %d event / %d challenge candidates",
        today, season, len(user_ids), len(ctx.pools.event), len(ctx.pools.challenge),
    )

    summary: Counter[str] = Counter(users=len(user_ids))
    for user_id in user_ids:
        with get_session(engine) as session:
            plan = assign_for_user(session, ctx, user_id, locale=locale, rng=rng)

        summary["expired"] += len(plan.expire)
        if plan.assignment is not None:
            summary["events" if plan.assignment.is_event else "assigned"] += 1
        elif plan.skip_reason:
            summary[f"skipped.{plan.skip_reason}"] += 1

    result = dict(summary)
    logger.info("Daily assignment done: %s", result)
    return result
