"""
natrack.engine.lifecycle — Challenge state machine and per-user planning
==========================================================================

Pure calculation — no DB I/O.

State machine::

    active ──► completed   (qualifying session, request time)
      │  ├───► expired     (past due, or interrupted by the daily event)
      │  └───► cancelled   (operator cancellation)

Terminal states have no outgoing edges.

The daily batch builds one :class:`BatchContext` per run (shared event
bot, candidate pools, used-today set) and asks :func:`plan_for_user` what
to do for each user.  The service layer applies the returned
:class:`AssignmentPlan` and records the drawn bot in the context.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from natrack.database.models import CardType, ChallengeStatus
from natrack.engine.distance import DEFAULT_JITTER_RATIO, challenge_target
from natrack.engine.picker import pick_weighted
from natrack.engine.pools import (
    DEFAULT_RARE_PENALTY,
    DEFAULT_SEASON_BOOST,
    BotCandidate,
    CandidatePools,
    build_pools,
    challenge_weight,
    drop_rate_weight,
)

if TYPE_CHECKING:
    from natrack.database.models import Challenge
    from natrack.engine.cache import ConfigCache

logger = logging.getLogger(__name__)

DEFAULT_DURATION_DAYS = 3


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------
ALLOWED_TRANSITIONS: dict[ChallengeStatus, frozenset[ChallengeStatus]] = {
    ChallengeStatus.ACTIVE: frozenset({
        ChallengeStatus.COMPLETED,
        ChallengeStatus.EXPIRED,
        ChallengeStatus.CANCELLED,
    }),
    ChallengeStatus.COMPLETED: frozenset(),
    ChallengeStatus.EXPIRED: frozenset(),
    ChallengeStatus.CANCELLED: frozenset(),
}


class InvalidTransitionError(ValueError):
    """Raised when a challenge is asked to move along an illegal edge."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Illegal challenge transition {current!r} → {target!r}")
        self.current = current
        self.target = target


def can_transition(current: str, target: str) -> bool:
    try:
        return ChallengeStatus(target) in ALLOWED_TRANSITIONS[ChallengeStatus(current)]
    except ValueError:
        return False


def validate_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)


# ---------------------------------------------------------------------------
# Snapshots & tuning
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ChallengeSnapshot:
    """Detached view of the fields the planner and detector read."""

    id: str
    user_id: str
    bot_id: str
    type: str
    status: str
    target_distance_m: float
    start_date: date
    due_date: date

    @classmethod
    def from_model(cls, challenge: Challenge) -> ChallengeSnapshot:
        return cls(
            id=challenge.id,
            user_id=challenge.user_id,
            bot_id=challenge.bot_id,
            type=challenge.type,
            status=challenge.status,
            target_distance_m=challenge.target_distance_m,
            start_date=challenge.start_date,
            due_date=challenge.due_date,
        )

    @property
    def is_event(self) -> bool:
        return self.type == CardType.EVENEMENT


def session_meets_challenge(
    challenge: ChallengeSnapshot, session_date: date, distance: float
) -> bool:
    """True when a session falls in the challenge window and reaches its target."""
    if not (challenge.start_date <= session_date <= challenge.due_date):
        return False
    return float(distance) >= float(challenge.target_distance_m)


@dataclass(frozen=True, slots=True)
class ChallengeTuning:
    jitter_ratio: float = DEFAULT_JITTER_RATIO
    duration_days: int = DEFAULT_DURATION_DAYS
    season_boost: float = DEFAULT_SEASON_BOOST
    rare_penalty: float = DEFAULT_RARE_PENALTY

    @classmethod
    def from_cache(cls, cache: ConfigCache | None) -> ChallengeTuning:
        if cache is None:
            return cls()
        return cls(
            jitter_ratio=cache.get_float("challenge.jitter_ratio", DEFAULT_JITTER_RATIO),
            duration_days=cache.get_int("challenge.duration_days", DEFAULT_DURATION_DAYS),
            season_boost=cache.get_float("challenge.season_boost", DEFAULT_SEASON_BOOST),
            rare_penalty=cache.get_float("challenge.rare_penalty", DEFAULT_RARE_PENALTY),
        )


# ---------------------------------------------------------------------------
# Batch context — shared across the per-user loop of one run
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class BatchContext:
    """Run-scoped state.

    Everything is fixed once built except ``used_bot_ids``, which grows
    as non-event bots are handed out so no bot faces two users in a day.
    """

    today: date
    now: datetime
    season: int | None
    pools: CandidatePools
    event_bot: BotCandidate | None = None
    tuning: ChallengeTuning = field(default_factory=ChallengeTuning)
    used_bot_ids: set[str] = field(default_factory=set)

    def available_challenge_pool(self) -> list[BotCandidate]:
        return self.pools.available_challenge(self.used_bot_ids)

    def mark_used(self, bot_id: str) -> None:
        self.used_bot_ids.add(bot_id)


def build_batch_context(
    *,
    today: date,
    now: datetime,
    season: int | None,
    bots: Sequence[BotCandidate],
    used_bot_ids: Iterable[str] = (),
    event_bot_id: str | None = None,
    tuning: ChallengeTuning | None = None,
    rng: random.Random | None = None,
) -> BatchContext:
    """Build the pools and settle the single daily event bot (if any).

    *event_bot_id* is the bot of an event already issued today by an
    earlier run.  It is reused instead of drawing again, so a rerun never
    hands out a second event.  If that bot has since left the roster,
    there is no event for the rest of the day.
    """
    pools = build_pools(bots, today, season)
    if event_bot_id is not None:
        event_bot = next((b for b in bots if b.id == event_bot_id), None)
        if event_bot is None:
            logger.warning("Event bot %s issued earlier today no longer exists", event_bot_id)
        else:
            logger.info("Daily event bot (already issued): %s (%s)", event_bot.name, event_bot.id)
    else:
        event_bot = pick_weighted(pools.event, drop_rate_weight, rng=rng) if pools.event else None
        if event_bot is not None:
            logger.info("Daily event bot: %s (%s)", event_bot.name, event_bot.id)
    return BatchContext(
        today=today,
        now=now,
        season=season,
        pools=pools,
        event_bot=event_bot,
        tuning=tuning or ChallengeTuning(),
        used_bot_ids=set(used_bot_ids),
    )


# ---------------------------------------------------------------------------
# Per-user plan
# ---------------------------------------------------------------------------
EXPIRE_OVERDUE = "overdue"
EXPIRE_EVENT_OVERRIDE = "event_override"

SKIP_ACTIVE = "active_challenge"
SKIP_EVENT_ALREADY_ASSIGNED = "event_already_assigned"
SKIP_EVENT_ALREADY_DONE = "event_already_completed"
SKIP_NO_CANDIDATE = "no_candidate"
SKIP_INVALID_DISTANCE = "invalid_distance"


@dataclass(frozen=True, slots=True)
class Assignment:
    bot: BotCandidate
    card_type: str
    target_distance_m: float
    start_date: date
    due_date: date
    due_at: datetime

    @property
    def is_event(self) -> bool:
        return self.card_type == CardType.EVENEMENT


@dataclass(frozen=True, slots=True)
class AssignmentPlan:
    expire: tuple[tuple[str, str], ...] = ()  # (challenge_id, reason)
    assignment: Assignment | None = None
    skip_reason: str | None = None


def _event_assignment(ctx: BatchContext, bot: BotCandidate) -> Assignment:
    return Assignment(
        bot=bot,
        card_type=CardType.EVENEMENT.value,
        target_distance_m=float(bot.target_distance_m),  # type: ignore[arg-type]
        start_date=ctx.today,
        due_date=ctx.today,
        due_at=ctx.now,
    )


def _challenge_assignment(
    ctx: BatchContext, rng: random.Random | None
) -> tuple[Assignment | None, str | None]:
    tuning = ctx.tuning
    bot = pick_weighted(
        ctx.available_challenge_pool(),
        lambda b: challenge_weight(
            b, ctx.season,
            season_boost=tuning.season_boost,
            rare_penalty=tuning.rare_penalty,
        ),
        rng=rng,
    )
    if bot is None:
        return None, SKIP_NO_CANDIDATE

    target = challenge_target(bot, tuning.jitter_ratio, rng=rng)
    if not target or target <= 0:
        logger.warning("Invalid target distance for bot %s (%s)", bot.name, bot.id)
        return None, SKIP_INVALID_DISTANCE

    return Assignment(
        bot=bot,
        card_type=bot.card_type or CardType.DEFI.value,
        target_distance_m=float(target),
        start_date=ctx.today,
        due_date=ctx.today + timedelta(days=tuning.duration_days),
        due_at=ctx.now + timedelta(days=tuning.duration_days),
    ), None


def plan_for_user(
    ctx: BatchContext,
    active: ChallengeSnapshot | None,
    *,
    completed_event_today: bool = False,
    rng: random.Random | None = None,
) -> AssignmentPlan:
    """Decide whether to expire, keep, or replace *active* for one user.

    1. An overdue active challenge is expired.
    2. When a daily event exists, a still-valid challenge is expired so the
       event takes over, unless it already *is* today's event or the user
       already completed an event today.
    3. Otherwise a still-valid challenge means nothing to do today.
    4. Else assign the event, or draw a bot from the available pool.
    """
    expire: list[tuple[str, str]] = []

    if active is not None and active.due_date < ctx.today:
        expire.append((active.id, EXPIRE_OVERDUE))
        active = None

    if ctx.event_bot is not None:
        if active is not None and active.is_event and active.start_date == ctx.today:
            return AssignmentPlan(expire=tuple(expire), skip_reason=SKIP_EVENT_ALREADY_ASSIGNED)
        if completed_event_today:
            return AssignmentPlan(expire=tuple(expire), skip_reason=SKIP_EVENT_ALREADY_DONE)
        if active is not None:
            expire.append((active.id, EXPIRE_EVENT_OVERRIDE))
        return AssignmentPlan(
            expire=tuple(expire),
            assignment=_event_assignment(ctx, ctx.event_bot),
        )

    if active is not None:
        return AssignmentPlan(expire=tuple(expire), skip_reason=SKIP_ACTIVE)

    assignment, skip_reason = _challenge_assignment(ctx, rng)
    return AssignmentPlan(expire=tuple(expire), assignment=assignment, skip_reason=skip_reason)
