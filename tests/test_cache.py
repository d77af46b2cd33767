"""
tests/test_cache.py — ConfigCache and settings seeding
========================================================
"""

from __future__ import annotations

import json

import pytest
from sqlalchemy.orm import Session

from natrack.database.models import Setting
from natrack.database.seed import DEFAULT_SETTINGS, seed_default_settings
from natrack.engine.cache import ConfigCache


class TestSeedDefaultSettings:
    def test_inserts_all_defaults(self, db_engine):
        seed_default_settings(db_engine)
        with Session(db_engine) as session:
            keys = {row.key for row in session.query(Setting).all()}
        assert keys == set(DEFAULT_SETTINGS)

    def test_admin_edits_survive_reseed(self, db_engine):
        with Session(db_engine) as session:
            session.add(Setting(key="challenge.duration_days", value_json="5",
                                category="challenge"))
            session.commit()
        seed_default_settings(db_engine)
        with Session(db_engine) as session:
            assert session.get(Setting, "challenge.duration_days").value_json == "5"


class TestConfigCache:
    @pytest.fixture
    def cache(self, db_engine):
        seed_default_settings(db_engine)
        c = ConfigCache(db_engine)
        c.load_all()
        return c

    def test_typed_accessors(self, cache):
        assert cache.get_float("challenge.jitter_ratio") == 0.15
        assert cache.get_int("challenge.duration_days") == 3
        assert cache.get_float("challenge.season_boost") == 1.5
        assert cache.get_str("display.locale") == "fr"

    def test_missing_key_uses_default(self, cache):
        assert cache.get_int("nope", 7) == 7
        assert cache.get_float("nope", 0.5) == 0.5
        assert cache.get_str("nope", "en") == "en"
        assert cache.get_setting("nope") is None

    def test_bad_value_uses_default(self, db_engine):
        with Session(db_engine) as session:
            session.add(Setting(key="challenge.duration_days",
                                value_json=json.dumps("three"), category="challenge"))
            session.add(Setting(key="display.locale", value_json="not json",
                                category="display"))
            session.commit()
        cache = ConfigCache(db_engine)
        cache.load_all()
        assert cache.get_int("challenge.duration_days", 3) == 3
        assert cache.get_str("display.locale") == "not json"

    def test_reload_picks_up_changes(self, cache, db_engine):
        with Session(db_engine) as session:
            session.get(Setting, "challenge.jitter_ratio").value_json = "0.05"
            session.commit()
        assert cache.get_float("challenge.jitter_ratio") == 0.15
        cache.load_all()
        assert cache.get_float("challenge.jitter_ratio") == 0.05
