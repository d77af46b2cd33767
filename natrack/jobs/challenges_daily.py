"""
natrack.jobs.challenges_daily — Entry point for the daily assignment batch
===========================================================================

Wiring:
1. Load .env (DATABASE_URL).
2. Load config.yaml (timezone → "today"), or NATRACK_TIMEZONE when the
   file is absent.
3. Create the SQLAlchemy engine and ensure tables exist.
4. Warm the ConfigCache (gameplay tuning from the DB).
5. Run the batch once and exit.

Exit status is 0 on success and 1 on any uncaught failure, so the
external scheduler can alert on it.

Run with::

    python -m natrack.jobs.challenges_daily
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime

from dotenv import load_dotenv

from natrack.config import load_config_or_env
from natrack.database.engine import create_db_engine, init_db
from natrack.engine.cache import ConfigCache
from natrack.services.assignment_service import run_daily_assignment

logger = logging.getLogger("natrack.jobs.challenges_daily")


def main() -> None:
    """Run the daily challenge assignment once."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    load_dotenv()

    try:
        cfg = load_config_or_env()
        engine = create_db_engine()
        init_db(engine)

        cache = ConfigCache(engine)
        cache.load_all()

        now = datetime.now(cfg.tz)
        summary = run_daily_assignment(engine, cache, today=now.date(), now=now)
        logger.info("Challenges assigned: %s", summary)
    except Exception:
        logger.exception("Daily challenge assignment failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
