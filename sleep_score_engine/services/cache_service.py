#!/usr/bin/env python3
"""Memoization of scoring outcomes."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sleep_score_engine.core.scoring.engine import ScoringOutcome

if TYPE_CHECKING:
    from sleep_score_engine.core.scoring.engine import SleepScoringEngine
    from sleep_score_engine.schemas.models import SleepScoringInput

logger = logging.getLogger(__name__)


# === LRU Cache Implementation ===


class LRUCache:
    """Thread-safe LRU cache with hit/miss tracking."""

    def __init__(self, maxsize: int = 256) -> None:
        self._maxsize = maxsize
        self._cache: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Get value from cache, updating LRU order."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                self._hits += 1
                return self._cache[key]
            self._misses += 1
            return None

    def set(self, key: str, value: Any) -> None:
        """Set value in cache with LRU eviction."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = value
            while len(self._cache) > self._maxsize:
                self._cache.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    @property
    def stats(self) -> dict[str, int | float]:
        """Get cache statistics."""
        total = self._hits + self._misses
        return {
            "size": len(self._cache),
            "maxsize": self._maxsize,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


# === Scoring Cache ===


def scoring_input_key(scoring_input: SleepScoringInput) -> str:
    """SHA-256 of the canonical JSON of the night, its history and the profile."""
    payload = scoring_input.model_dump(mode="json", by_alias=True)
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ScoreCache:
    """
    Memoizes one engine's outcomes by input content.

    Scoring is deterministic apart from calculated_at, so a hit returns the
    cached breakdown re-stamped with the current time. Outcomes carrying an
    error are not cached.
    """

    def __init__(self, engine: SleepScoringEngine, maxsize: int = 256) -> None:
        self.engine = engine
        self._cache = LRUCache(maxsize=maxsize)

    def score(self, scoring_input: SleepScoringInput, now: datetime | None = None) -> ScoringOutcome:
        key = scoring_input_key(scoring_input)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Score cache hit for %s", key[:12])
            return ScoringOutcome(breakdown=cached.model_copy(update={"calculated_at": now or datetime.now(UTC)}))

        outcome = self.engine.score(scoring_input, now=now)
        if outcome.ok:
            self._cache.set(key, outcome.breakdown)
        return outcome

    def clear(self) -> None:
        self._cache.clear()

    @property
    def stats(self) -> dict[str, int | float]:
        return self._cache.stats
