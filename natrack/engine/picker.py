"""
natrack.engine.picker — Weighted random draw
==============================================

Selection probability is proportional to weight.  A pool whose weights
sum to zero yields ``None`` ("no selection"), which callers treat as
"nothing to assign" rather than an error.
"""

from __future__ import annotations

import math
import random
from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


def coerce_weight(value: object) -> float:
    """Clamp a raw weight to a finite, non-negative float (else 0)."""
    try:
        num = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(num) or num < 0:
        return 0.0
    return num


def pick_weighted(
    items: Sequence[T],
    weight_fn: Callable[[T], object],
    *,
    rng: random.Random | None = None,
) -> T | None:
    """Draw one element of *items* with probability ∝ ``weight_fn(item)``.

    Walks the list subtracting weights from a single uniform roll in
    ``[0, total)``.  Zero-weight items are never returned; if rounding
    exhausts the list, the last weighted item wins.
    """
    if not items:
        return None
    weights = [coerce_weight(weight_fn(item)) for item in items]
    total = sum(weights)
    if total <= 0:
        return None

    roll = (rng or random).random() * total
    last = items[-1]
    for item, weight in zip(items, weights):
        if weight <= 0:
            continue
        last = item
        roll -= weight
        if roll <= 0:
            return item
    return last
