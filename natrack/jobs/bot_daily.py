"""
natrack.jobs.bot_daily — Entry point for the daily bot sessions
================================================================

Reads the bot roster (``bot_list_path`` in config.yaml, overridable with
``$NATRACK_BOT_LIST``) and logs one jittered session per bot for today.

Roster format::

    - name: Tortue
      distance_m: 3000
      type: swim
    - id: 5c1f…
      distance_m: 8000

Run with::

    python -m natrack.jobs.bot_daily
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

from natrack.config import load_config_or_env
from natrack.database.engine import create_db_engine
from natrack.engine.cache import ConfigCache
from natrack.services.session_service import DEFAULT_BOT_DAILY_JITTER, run_bot_daily

logger = logging.getLogger("natrack.jobs.bot_daily")


def load_roster(path: str | Path) -> list[dict]:
    """Parse the YAML roster.  Raises ``ValueError`` if it is not a list."""
    with open(path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or []
    if not isinstance(raw, list):
        raise ValueError(f"Bot roster must be a list: {path}")
    return [entry for entry in raw if isinstance(entry, dict)]


def main() -> None:
    """Create today's bot sessions once."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    load_dotenv()

    try:
        cfg = load_config_or_env()
        roster_path = os.getenv("NATRACK_BOT_LIST") or cfg.bot_list_path
        if not roster_path:
            logger.critical("No bot roster configured (bot_list_path / NATRACK_BOT_LIST).")
            sys.exit(1)
        roster = load_roster(roster_path)

        engine = create_db_engine()
        cache = ConfigCache(engine)
        cache.load_all()
        ratio = cache.get_float("bot_daily.jitter_ratio", DEFAULT_BOT_DAILY_JITTER)

        summary = run_bot_daily(engine, roster, cfg.today(), ratio=ratio)
        logger.info("Bot sessions: %s", summary)
    except Exception:
        logger.exception("Bot daily job failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
