"""
natrack.database.seed — Default Settings Seeder
=================================================

Baseline gameplay tuning seeded on first startup.  Idempotent — only
inserts keys that don't already exist, so admin edits are never
overwritten.
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from natrack.database.models import Setting

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Default settings catalogue
# ---------------------------------------------------------------------------
DEFAULT_SETTINGS: dict[str, tuple[object, str, str]] = {
    "challenge.jitter_ratio": (
        0.15, "challenge", "Max relative perturbation applied to challenge targets",
    ),
    "challenge.duration_days": (
        3, "challenge", "Days a user has to complete a bot challenge",
    ),
    "challenge.season_boost": (
        1.5, "challenge", "Weight multiplier for bots affiliated with the current season",
    ),
    "challenge.rare_penalty": (
        0.5, "challenge", "Weight multiplier applied to rare bots",
    ),
    "bot_daily.jitter_ratio": (
        0.10, "bots", "Max relative perturbation of daily bot sessions",
    ),
    "display.locale": (
        "fr", "display", "Locale used for notification date labels",
    ),
}
"""Each entry maps ``key`` → ``(default_value, category, description)``."""


# ---------------------------------------------------------------------------
# Seeder
# ---------------------------------------------------------------------------
def seed_default_settings(engine: Engine) -> None:
    """Insert default settings that don't yet exist."""
    session = Session(engine)
    inserted = 0
    try:
        for key, (value, category, desc) in DEFAULT_SETTINGS.items():
            existing = session.get(Setting, key)
            if existing is None:
                session.add(Setting(
                    key=key,
                    value_json=json.dumps(value),
                    category=category,
                    description=desc,
                ))
                inserted += 1
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    if inserted:
        logger.info("Seeded %d default settings.", inserted)
