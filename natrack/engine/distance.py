"""
natrack.engine.distance — Target distance normalization and jitter
====================================================================

Pure helpers, no DB I/O.  Invalid input yields ``None`` so callers can
skip a pairing without raising.
"""

from __future__ import annotations

import math
import random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from natrack.engine.pools import BotCandidate

DEFAULT_JITTER_RATIO = 0.15

# Values below this are read as kilometres.
_KM_THRESHOLD = 1000


def _as_positive_float(value: object) -> float | None:
    try:
        num = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num) or num <= 0:
        return None
    return num


def normalize_meters(value: object) -> float | None:
    """Return *value* in metres, or ``None`` if it is not a positive number.

    Values below 1000 are assumed to be kilometres and scaled ×1000
    (``500`` → ``500000``); anything else is already metres.
    """
    num = _as_positive_float(value)
    if num is None:
        return None
    if num < _KM_THRESHOLD:
        return float(round(num * 1000))
    return num


def jitter_distance(
    base: object,
    ratio: float = DEFAULT_JITTER_RATIO,
    *,
    rng: random.Random | None = None,
) -> int | None:
    """Perturb *base* by a uniform factor in ``[-ratio, +ratio]``.

    The result is rounded to the nearest whole metre and therefore lies
    in ``[round(base*(1-ratio)), round(base*(1+ratio))]``.
    """
    num = _as_positive_float(base)
    if num is None:
        return None
    draw = (rng or random).uniform(-ratio, ratio)
    return round(num * (1 + draw))


def challenge_target(
    bot: BotCandidate,
    ratio: float = DEFAULT_JITTER_RATIO,
    *,
    rng: random.Random | None = None,
) -> int | None:
    """Jittered target for a defi/rare bot.

    Base is the bot's explicit target when set, else its average distance.
    """
    raw = bot.target_distance_m if bot.target_distance_m is not None else bot.avg_distance_m
    base = normalize_meters(raw)
    if base is None:
        return None
    return jitter_distance(base, ratio, rng=rng)
