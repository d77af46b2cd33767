"""
natrack.engine.pools — Season resolution and bot candidate pools
==================================================================

Pure calculation — no DB I/O.  The assignment service loads bots and
seasons, turns them into :class:`BotCandidate` snapshots, and hands them
to :func:`build_pools`.

Pools:
  * **event**     — ``evenement`` bots firing today with a positive target.
  * **challenge** — ``defi`` / ``rare`` bots with a positive average distance.

Both pools only contain bots eligible for the current season.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from natrack.database.models import CardType

if TYPE_CHECKING:
    from natrack.database.models import User

DEFAULT_SEASON_BOOST = 1.5
DEFAULT_RARE_PENALTY = 0.5


# ---------------------------------------------------------------------------
# BotCandidate — detached snapshot of a bot user
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BotCandidate:
    id: str
    name: str
    card_type: str | None
    event_date: date | None = None
    drop_rate: float | None = None
    target_distance_m: float | None = None
    avg_distance_m: float | None = None
    season_affinity: int | None = None

    @classmethod
    def from_user(cls, user: User) -> BotCandidate:
        return cls(
            id=user.id,
            name=user.name,
            card_type=user.bot_card_type,
            event_date=user.bot_event_date,
            drop_rate=user.bot_drop_rate,
            target_distance_m=user.bot_target_distance_m,
            avg_distance_m=user.avg_distance_m,
            season_affinity=user.bot_season_int,
        )


def _positive(value: float | None) -> bool:
    if value is None:
        return False
    try:
        num = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(num) and num > 0


# ---------------------------------------------------------------------------
# Season resolver
# ---------------------------------------------------------------------------
def resolve_season(seasons: Iterable[tuple[int, date]], today: date) -> int | None:
    """Return the number of the season with the latest start ≤ *today*.

    *seasons* is an iterable of ``(number, start_date)`` pairs.  ``None``
    means no season has started yet, which is a normal state.
    """
    current: tuple[int, date] | None = None
    for number, start in seasons:
        if start > today:
            continue
        if current is None or start > current[1]:
            current = (number, start)
    return current[0] if current else None


def is_season_eligible(bot: BotCandidate, season: int | None) -> bool:
    """Bots without affinity always qualify; others need a season ≥ theirs."""
    if bot.season_affinity is None:
        return True
    if season is None:
        return False
    return bot.season_affinity <= season


# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------
def drop_rate_weight(bot: BotCandidate) -> float:
    """The bot's drop rate.

    Missing or non-numeric rates weigh 1; negative rates weigh 0, so the
    bot is never drawn.
    """
    if bot.drop_rate is None:
        return 1.0
    try:
        rate = float(bot.drop_rate)
    except (TypeError, ValueError):
        return 1.0
    if math.isnan(rate):
        return 1.0
    if rate < 0:
        return 0.0
    if math.isinf(rate):
        return 1.0
    return rate


def challenge_weight(
    bot: BotCandidate,
    season: int | None,
    *,
    season_boost: float = DEFAULT_SEASON_BOOST,
    rare_penalty: float = DEFAULT_RARE_PENALTY,
) -> float:
    """``drop_rate × season_boost × rarity_penalty`` for the challenge pool."""
    weight = drop_rate_weight(bot)
    if season is not None and bot.season_affinity == season:
        weight *= season_boost
    if bot.card_type == CardType.RARE:
        weight *= rare_penalty
    return weight


# ---------------------------------------------------------------------------
# Pools
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CandidatePools:
    event: tuple[BotCandidate, ...]
    challenge: tuple[BotCandidate, ...]

    def available_challenge(self, used_bot_ids: Iterable[str]) -> list[BotCandidate]:
        """Challenge pool minus bots already used as an opponent today."""
        used = set(used_bot_ids)
        return [bot for bot in self.challenge if bot.id not in used]


def build_pools(
    bots: Sequence[BotCandidate],
    today: date,
    season: int | None,
) -> CandidatePools:
    """Partition the bot roster into event and challenge pools for *today*."""
    event: list[BotCandidate] = []
    challenge: list[BotCandidate] = []
    for bot in bots:
        if not is_season_eligible(bot, season):
            continue
        if bot.card_type == CardType.EVENEMENT:
            if bot.event_date == today and _positive(bot.target_distance_m):
                event.append(bot)
        elif bot.card_type in (CardType.DEFI, CardType.RARE):
            if _positive(bot.avg_distance_m):
                challenge.append(bot)
    return CandidatePools(event=tuple(event), challenge=tuple(challenge))
