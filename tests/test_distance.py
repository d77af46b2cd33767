"""
tests/test_distance.py — Target normalization and jitter
==========================================================
"""

from __future__ import annotations

import math
import random

import pytest

from natrack.engine.distance import challenge_target, jitter_distance, normalize_meters
from natrack.engine.pools import BotCandidate


class TestNormalizeMeters:
    def test_small_values_are_kilometres(self):
        assert normalize_meters(500) == 500_000

    def test_large_values_are_metres(self):
        assert normalize_meters(5000) == 5000

    def test_threshold_is_metres(self):
        assert normalize_meters(1000) == 1000

    def test_fractional_kilometres(self):
        assert normalize_meters(2.5) == 2500

    @pytest.mark.parametrize("value", [0, -1, -5000, None, "abc", math.inf, math.nan])
    def test_rejects_invalid(self, value):
        assert normalize_meters(value) is None

    def test_numeric_strings_accepted(self):
        assert normalize_meters("8000") == 8000


class TestJitterDistance:
    def test_within_bounds(self):
        rng = random.Random(42)
        base, ratio = 10_000, 0.15
        low, high = round(base * (1 - ratio)), round(base * (1 + ratio))
        for _ in range(2000):
            value = jitter_distance(base, ratio, rng=rng)
            assert low <= value <= high

    def test_returns_whole_metres(self):
        value = jitter_distance(1234.5, 0.1, rng=random.Random(1))
        assert isinstance(value, int)

    def test_zero_ratio_is_identity(self):
        assert jitter_distance(7000, 0.0, rng=random.Random(3)) == 7000

    @pytest.mark.parametrize("base", [0, -10, None, math.inf])
    def test_rejects_invalid_base(self, base):
        assert jitter_distance(base, 0.15, rng=random.Random(0)) is None

    def test_seeded_rng_is_deterministic(self):
        a = jitter_distance(9000, 0.15, rng=random.Random(7))
        b = jitter_distance(9000, 0.15, rng=random.Random(7))
        assert a == b


class TestChallengeTarget:
    def test_prefers_explicit_target(self):
        bot = BotCandidate(id="b", name="B", card_type="defi",
                           target_distance_m=4000, avg_distance_m=10_000)
        value = challenge_target(bot, 0.15, rng=random.Random(5))
        assert 3400 <= value <= 4600

    def test_falls_back_to_average(self):
        bot = BotCandidate(id="b", name="B", card_type="defi", avg_distance_m=10_000)
        value = challenge_target(bot, 0.15, rng=random.Random(5))
        assert 8500 <= value <= 11_500

    def test_average_in_kilometres(self):
        bot = BotCandidate(id="b", name="B", card_type="rare", avg_distance_m=5)
        value = challenge_target(bot, 0.0, rng=random.Random(5))
        assert value == 5000

    def test_no_distance(self):
        bot = BotCandidate(id="b", name="B", card_type="defi")
        assert challenge_target(bot, rng=random.Random(5)) is None
