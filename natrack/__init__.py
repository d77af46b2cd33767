"""
NaTrack — Challenge & Card Engine for a Sports-Tracking Backend
================================================================
Users log swim and run sessions; automated opponents (bots) issue a
rotating daily challenge or event, and finishing one mints a collectible
card.  This package holds the daily assignment batch, the request-time
completion and reward logic, and a thin API around them.

Package layout::

    natrack/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Session types, km / due-date formatting
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # ORM models (users, sessions, challenges, …)
    │   └── seed.py        # Default tuning settings
    ├── engine/
    │   ├── cache.py       # In-memory settings cache
    │   ├── distance.py    # Target normalization + jitter
    │   ├── picker.py      # Weighted random draw
    │   ├── pools.py       # Season resolution + bot candidate pools
    │   ├── lifecycle.py   # Challenge state machine + per-user planning
    │   └── messages.py    # Notification copy
    ├── services/
    │   ├── assignment_service.py  # Daily batch (expire / override / assign)
    │   ├── challenge_service.py   # Conditional status transitions
    │   ├── completion_service.py  # Completion detector + object cards
    │   ├── notification_service.py
    │   └── session_service.py     # Session recording + bot sessions
    ├── jobs/
    │   ├── challenges_daily.py    # python -m natrack.jobs.challenges_daily
    │   └── bot_daily.py           # python -m natrack.jobs.bot_daily
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT + DB dependencies
        └── routes/        # Session recording + read endpoints
"""

__version__ = "0.1.0"
