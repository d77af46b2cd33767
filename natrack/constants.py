"""
natrack.constants — Shared Constants & Helpers
================================================

Single source of truth for presentation constants and distance formatting.
Import from here instead of duplicating in services, jobs, and routes.
"""

from __future__ import annotations

import math
from datetime import date

# ---------------------------------------------------------------------------
# Session types
# ---------------------------------------------------------------------------
SESSION_TYPES: frozenset[str] = frozenset({"swim", "run"})
DEFAULT_BOT_SESSION_TYPE = "run"


# ---------------------------------------------------------------------------
# Distance formatting
# ---------------------------------------------------------------------------
def format_km(meters: float | int | None, digits: int = 1) -> str:
    """Render *meters* as kilometres with a fixed number of decimals.

    Returns an empty string for missing or non-finite input.
    """
    if meters is None:
        return ""
    try:
        km = float(meters) / 1000
    except (TypeError, ValueError):
        return ""
    if not math.isfinite(km):
        return ""
    return f"{km:.{digits}f}"


# ---------------------------------------------------------------------------
# Localized date labels (used by challenge notifications)
# ---------------------------------------------------------------------------
_WEEKDAYS: dict[str, tuple[str, ...]] = {
    "fr": ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"),
    "en": ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"),
}

_MONTHS: dict[str, tuple[str, ...]] = {
    "fr": (
        "janvier", "février", "mars", "avril", "mai", "juin",
        "juillet", "août", "septembre", "octobre", "novembre", "décembre",
    ),
    "en": (
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
}

DEFAULT_LOCALE = "fr"


def format_due_label(day: date, locale: str = DEFAULT_LOCALE) -> str:
    """Human-readable deadline, e.g. ``"jeudi 22 octobre"``.

    Unknown locales fall back to :data:`DEFAULT_LOCALE`.
    """
    lang = locale.split("-")[0].split("_")[0].lower() if locale else DEFAULT_LOCALE
    if lang not in _WEEKDAYS:
        lang = DEFAULT_LOCALE
    weekday = _WEEKDAYS[lang][day.weekday()]
    month = _MONTHS[lang][day.month - 1]
    return f"{weekday} {day.day} {month}"
