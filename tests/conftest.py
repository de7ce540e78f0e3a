#!/usr/bin/env python3
"""
Shared test fixtures for the sleep score engine.
Provides record/profile factories and a fixed scoring clock.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import Any

import pytest

from sleep_score_engine.core.constants import DataSource
from sleep_score_engine.core.scoring.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from sleep_score_engine.core.scoring.engine import SleepScoringEngine
from sleep_score_engine.schemas.models import ScreenTimeSummary, SleepRecord, SleepScoringInput, UserProfile

FIXED_NOW = datetime(2024, 3, 20, 8, 0, tzinfo=UTC)
FIRST_NIGHT = date(2024, 3, 1)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "scenario: mark test as an end-to-end scoring scenario")


def build_record(
    night: date = FIRST_NIGHT,
    duration: float | None = 460,
    deep: float | None = 83,
    rem: float | None = 97,
    light: float | None = 260,
    awake: float | None = 20,
    source: DataSource | str = DataSource.WEARABLE,
    bedtime: tuple[int, int] | None = (23, 0),
    time_in_bed: float | None = 505,
    screen_minutes: float | None = None,
    **overrides: Any,
) -> SleepRecord:
    """
    Build one night. Bedtime is on the evening of `night` (or the next
    morning for times before noon); the night ends time_in_bed minutes later.
    """
    start = end = None
    if bedtime is not None:
        hour, minute = bedtime
        start = datetime(night.year, night.month, night.day, hour, minute)
        if hour < 12:
            start += timedelta(days=1)
        if time_in_bed is not None:
            end = start + timedelta(minutes=time_in_bed)

    fields: dict[str, Any] = {
        "id": f"night-{night.isoformat()}",
        "date": night,
        "start_time": start,
        "end_time": end,
        "duration_minutes": duration,
        "deep_sleep_minutes": deep,
        "rem_sleep_minutes": rem,
        "light_sleep_minutes": light,
        "awake_sleep_minutes": awake,
        "source": source,
    }
    if screen_minutes is not None:
        fields["screen_time_summary"] = ScreenTimeSummary(total_minutes_last_2_hours=screen_minutes)
    fields.update(overrides)
    return SleepRecord(**fields)


def build_history(nights: int, start: date = FIRST_NIGHT, **kwargs: Any) -> list[SleepRecord]:
    """`nights` consecutive nights starting at `start`, oldest first."""
    return [build_record(night=start + timedelta(days=offset), **kwargs) for offset in range(nights)]


@pytest.fixture
def make_record() -> Callable[..., SleepRecord]:
    """Factory for SleepRecord with sensible wearable defaults."""
    return build_record


@pytest.fixture
def make_history() -> Callable[..., list[SleepRecord]]:
    """Factory for a chronologically ordered list of nights."""
    return build_history


@pytest.fixture
def make_input() -> Callable[..., SleepScoringInput]:
    """Factory for SleepScoringInput."""

    def _make(
        current: SleepRecord | None = None,
        history: list[SleepRecord] | None = None,
        **profile: Any,
    ) -> SleepScoringInput:
        night = FIRST_NIGHT + timedelta(days=len(history or []))
        return SleepScoringInput(
            current=current or build_record(night=night),
            history=history or [],
            user_profile=UserProfile(**profile) if profile else None,
        )

    return _make


@pytest.fixture
def config() -> ScoringConfig:
    return DEFAULT_SCORING_CONFIG


@pytest.fixture
def engine(config: ScoringConfig) -> SleepScoringEngine:
    return SleepScoringEngine(config)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
