#!/usr/bin/env python3
"""
Unit tests for the scoring cache.

Tests LRU behaviour, statistics, and memoization of engine outcomes.
"""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from sleep_score_engine.core.exceptions import ErrorCodes, InvalidInputError
from sleep_score_engine.core.scoring.engine import ScoringOutcome
from sleep_score_engine.services.cache_service import LRUCache, ScoreCache, scoring_input_key

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def score_cache(engine) -> ScoreCache:
    """ScoreCache around the default engine."""
    return ScoreCache(engine, maxsize=4)


# ============================================================================
# TestLRUCache - LRU Cache Implementation
# ============================================================================


class TestLRUCache:
    """Tests for LRUCache class."""

    def test_get_returns_none_for_missing_key(self):
        """Returns None for keys not in cache."""
        assert LRUCache().get("missing_key") is None

    def test_get_returns_cached_value(self):
        cache = LRUCache()
        cache.set("key", "value")

        assert cache.get("key") == "value"

    def test_evicts_least_recently_used(self):
        """Oldest untouched entry is evicted first."""
        cache = LRUCache(maxsize=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3

    def test_stats_track_hits_and_misses(self):
        cache = LRUCache(maxsize=5)
        cache.set("a", 1)
        cache.get("a")
        cache.get("a")
        cache.get("missing")

        stats = cache.stats

        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["size"] == 1
        assert stats["hit_rate"] == pytest.approx(66.7)

    def test_clear(self):
        cache = LRUCache()
        cache.set("a", 1)
        cache.clear()

        assert len(cache) == 0


# ============================================================================
# TestScoringInputKey - Content Hashing
# ============================================================================


class TestScoringInputKey:
    """Tests for scoring_input_key."""

    def test_equal_inputs_share_key(self, make_input):
        assert scoring_input_key(make_input(age=30)) == scoring_input_key(make_input(age=30))

    def test_profile_changes_key(self, make_input):
        assert scoring_input_key(make_input(age=30)) != scoring_input_key(make_input(age=31))

    def test_key_is_sha256_hex(self, make_input):
        key = scoring_input_key(make_input())

        assert len(key) == 64
        int(key, 16)


# ============================================================================
# TestScoreCache - Memoized Scoring
# ============================================================================


class TestScoreCache:
    """Tests for ScoreCache."""

    def test_second_call_is_a_hit(self, score_cache, make_input):
        scoring_input = make_input(age=30)

        first = score_cache.score(scoring_input)
        second = score_cache.score(scoring_input)

        assert second.breakdown.to_json_dict(include_timestamp=False) == first.breakdown.to_json_dict(include_timestamp=False)
        assert score_cache.stats["hits"] == 1
        assert score_cache.stats["misses"] == 1

    def test_hit_is_restamped(self, score_cache, make_input):
        scoring_input = make_input()
        later = datetime(2030, 1, 1, tzinfo=UTC)

        score_cache.score(scoring_input, now=datetime(2024, 1, 1, tzinfo=UTC))
        cached = score_cache.score(scoring_input, now=later)

        assert cached.breakdown.calculated_at == later

    def test_engine_called_once_per_input(self, make_input):
        engine = MagicMock()
        engine.score.return_value = ScoringOutcome(breakdown=MagicMock())
        cache = ScoreCache(engine)
        scoring_input = make_input()

        cache.score(scoring_input)
        cache.score(scoring_input)

        engine.score.assert_called_once()

    def test_errors_are_not_cached(self, make_input):
        engine = MagicMock()
        engine.score.return_value = ScoringOutcome(error=InvalidInputError("bad", ErrorCodes.INVALID_INPUT))
        cache = ScoreCache(engine)
        scoring_input = make_input()

        cache.score(scoring_input)
        cache.score(scoring_input)

        assert engine.score.call_count == 2
