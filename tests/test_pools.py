"""
tests/test_pools.py — Season resolution, eligibility, weights, pools
======================================================================
"""

from __future__ import annotations

from datetime import date

import pytest

from natrack.engine.pools import (
    BotCandidate,
    build_pools,
    challenge_weight,
    drop_rate_weight,
    is_season_eligible,
    resolve_season,
)

TODAY = date(2026, 10, 19)


def _bot(bot_id: str, card_type: str = "defi", **kwargs) -> BotCandidate:
    return BotCandidate(id=bot_id, name=bot_id.title(), card_type=card_type, **kwargs)


class TestResolveSeason:
    def test_latest_started_season(self):
        seasons = [(1, date(2026, 1, 1)), (2, date(2026, 6, 1)), (3, date(2026, 12, 1))]
        assert resolve_season(seasons, TODAY) == 2

    def test_season_starting_today_counts(self):
        assert resolve_season([(4, TODAY)], TODAY) == 4

    def test_no_season_started(self):
        assert resolve_season([(1, date(2027, 1, 1))], TODAY) is None

    def test_empty(self):
        assert resolve_season([], TODAY) is None

    def test_order_does_not_matter(self):
        seasons = [(2, date(2026, 6, 1)), (1, date(2026, 1, 1))]
        assert resolve_season(seasons, TODAY) == 2


class TestSeasonEligibility:
    def test_no_affinity_always_eligible(self):
        assert is_season_eligible(_bot("a"), None)
        assert is_season_eligible(_bot("a"), 3)

    def test_affinity_needs_a_season(self):
        assert not is_season_eligible(_bot("a", season_affinity=1), None)

    @pytest.mark.parametrize("affinity, season, eligible", [
        (1, 1, True),
        (1, 2, True),
        (3, 2, False),
    ])
    def test_affinity_vs_season(self, affinity, season, eligible):
        assert is_season_eligible(_bot("a", season_affinity=affinity), season) is eligible


class TestWeights:
    @pytest.mark.parametrize("rate, expected", [
        (None, 1.0),
        (2, 2.0),
        (0, 0.0),
        (-1, 0.0),
        (float("-inf"), 0.0),
        (float("inf"), 1.0),
        (float("nan"), 1.0),
        ("abc", 1.0),
    ])
    def test_drop_rate_weight(self, rate, expected):
        assert drop_rate_weight(_bot("a", drop_rate=rate)) == expected

    def test_season_boost(self):
        bot = _bot("a", drop_rate=2, season_affinity=2)
        assert challenge_weight(bot, 2) == pytest.approx(3.0)
        assert challenge_weight(bot, 3) == pytest.approx(2.0)

    def test_negative_rate_excludes_bot_from_challenge_draw(self):
        assert challenge_weight(_bot("neg", drop_rate=-2, season_affinity=1), 1) == 0.0

    def test_rare_penalty(self):
        assert challenge_weight(_bot("r", "rare"), None) == pytest.approx(0.5)

    def test_boost_and_penalty_combine(self):
        bot = _bot("r", "rare", drop_rate=4, season_affinity=1)
        assert challenge_weight(bot, 1) == pytest.approx(4 * 1.5 * 0.5)

    def test_custom_tuning(self):
        bot = _bot("r", "rare", season_affinity=1)
        assert challenge_weight(bot, 1, season_boost=2.0, rare_penalty=0.25) == pytest.approx(0.5)


class TestBuildPools:
    def test_partition(self):
        bots = [
            _bot("ev", "evenement", event_date=TODAY, target_distance_m=5000),
            _bot("ev-later", "evenement", event_date=date(2026, 10, 20), target_distance_m=5000),
            _bot("ev-notarget", "evenement", event_date=TODAY),
            _bot("defi", "defi", avg_distance_m=8000),
            _bot("rare", "rare", avg_distance_m=12_000),
            _bot("defi-nodist", "defi"),
            _bot("obj", "objet", target_distance_m=10_000, avg_distance_m=10_000),
        ]
        pools = build_pools(bots, TODAY, None)
        assert [b.id for b in pools.event] == ["ev"]
        assert [b.id for b in pools.challenge] == ["defi", "rare"]

    def test_season_filter_applies_to_all_pools(self):
        bots = [
            _bot("ev", "evenement", event_date=TODAY, target_distance_m=5000, season_affinity=2),
            _bot("defi", "defi", avg_distance_m=8000, season_affinity=2),
            _bot("free", "defi", avg_distance_m=8000),
        ]
        pools = build_pools(bots, TODAY, 1)
        assert pools.event == ()
        assert [b.id for b in pools.challenge] == ["free"]

        pools = build_pools(bots, TODAY, 2)
        assert [b.id for b in pools.event] == ["ev"]
        assert {b.id for b in pools.challenge} == {"defi", "free"}

    def test_available_excludes_used(self):
        pools = build_pools(
            [_bot("a", avg_distance_m=1000), _bot("b", avg_distance_m=1000)], TODAY, None
        )
        assert [b.id for b in pools.available_challenge({"a"})] == ["b"]
        assert len(pools.challenge) == 2
