"""
natrack.config — YAML Configuration Loader
===========================================

This module reads ``config.yaml`` for **infrastructure-only** settings
(application identity, timezone, API port, bot roster path).  All gameplay
tuning values (jitter ratio, challenge duration, season boost, …) live in
the ``settings`` database table and are read through
:class:`~natrack.engine.cache.ConfigCache`.

Usage::

    from natrack.config import load_config

    cfg = load_config()          # reads $NATRACK_CONFIG or ./config.yaml
    cfg = load_config_or_env()   # same, or $NATRACK_TIMEZONE etc. when absent
    print(cfg.app_name)          # "NaTrack"
    print(cfg.tz)                # ZoneInfo('Europe/Paris')
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import yaml

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "NaTrack"
DEFAULT_TIMEZONE = "Europe/Paris"
DEFAULT_API_PORT = 3001


# ---------------------------------------------------------------------------
# Typed settings object — infrastructure only.
# Gameplay tuning lives in the DB ``settings`` table.
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class NatrackConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    app_name: str

    # Calendar — "today" for the daily batch is computed in this zone
    timezone: str

    # API
    api_port: int

    # Optional
    bot_list_path: str | None = None  # Roster for the bot-daily job

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def today(self) -> date:
        """Current calendar date in the configured timezone."""
        return datetime.now(self.tz).date()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def default_config_path() -> Path:
    return Path(os.getenv("NATRACK_CONFIG", "config.yaml"))


def load_config(path: str | Path | None = None) -> NatrackConfig:
    """Read *path* and return a :class:`NatrackConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        ``$NATRACK_CONFIG`` or ``config.yaml`` in the working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path) if path is not None else default_config_path()
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: set NATRACK_CONFIG or run from the repository root."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return NatrackConfig(
        app_name=raw["app_name"],
        timezone=raw["timezone"],
        api_port=int(raw["api_port"]),
        bot_list_path=raw.get("bot_list_path") or None,
    )


def config_from_env() -> NatrackConfig:
    """Build a :class:`NatrackConfig` from environment variables alone.

    ``NATRACK_TIMEZONE`` (default Europe/Paris), ``NATRACK_APP_NAME``,
    ``NATRACK_API_PORT`` and ``NATRACK_BOT_LIST``.
    """
    return NatrackConfig(
        app_name=os.getenv("NATRACK_APP_NAME") or DEFAULT_APP_NAME,
        timezone=os.getenv("NATRACK_TIMEZONE") or DEFAULT_TIMEZONE,
        api_port=int(os.getenv("NATRACK_API_PORT") or DEFAULT_API_PORT),
        bot_list_path=os.getenv("NATRACK_BOT_LIST") or None,
    )


def load_config_or_env(path: str | Path | None = None) -> NatrackConfig:
    """Like :func:`load_config`, but fall back to :func:`config_from_env`
    when the file does not exist.

    A file that exists but is malformed still raises.
    """
    config_path = Path(path) if path is not None else default_config_path()
    if config_path.exists():
        return load_config(config_path)
    cfg = config_from_env()
    logger.warning(
        "Configuration file %s not found; using environment (timezone=%s)",
        config_path, cfg.timezone,
    )
    return cfg
