"""
natrack.engine.cache — In-Memory Settings Cache
=================================================

Gameplay tuning lives in the ``settings`` table.  The daily jobs are
short-lived processes, so the cache is loaded once at startup and never
invalidated; API workers call :meth:`ConfigCache.load_all` again if they
need fresh values.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from natrack.database.models import Setting

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


class ConfigCache:
    """Thread-safe in-memory copy of the ``settings`` table.

    Usage:
        cache = ConfigCache(engine)
        cache.load_all()

        ratio = cache.get_float("challenge.jitter_ratio", 0.15)
        days = cache.get_int("challenge.duration_days", 3)
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._lock = threading.Lock()
        # key → parsed JSON value
        self._settings: dict[str, Any] = {}

    # -------------------------------------------------------------------
    # Cache loading
    # -------------------------------------------------------------------
    def load_all(self) -> None:
        """Load all settings from the DB."""
        with Session(self._engine) as session:
            rows = session.scalars(select(Setting)).all()
            parsed: dict[str, Any] = {}
            for row in rows:
                try:
                    parsed[row.key] = json.loads(row.value_json)
                except (json.JSONDecodeError, TypeError):
                    parsed[row.key] = row.value_json

        with self._lock:
            self._settings = parsed
        logger.info("ConfigCache loaded: %d settings", len(parsed))

    # -------------------------------------------------------------------
    # Typed setting accessors (thread-safe)
    # -------------------------------------------------------------------
    def get_setting(self, key: str, default: Any = None) -> Any:
        """Return the parsed JSON value for *key*, or *default*."""
        with self._lock:
            return self._settings.get(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        val = self.get_setting(key)
        if val is None:
            return default
        try:
            return int(val)
        except (TypeError, ValueError):
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        val = self.get_setting(key)
        if val is None:
            return default
        try:
            return float(val)
        except (TypeError, ValueError):
            return default

    def get_str(self, key: str, default: str = "") -> str:
        val = self.get_setting(key)
        if val is None:
            return default
        return str(val)
