"""
Pydantic models for the sleep score engine.

These models are the single source of truth for scoring input and output
shapes. Python attributes are snake_case; the JSON representation uses the
camelCase keys consumed by the mobile app and the sleep backend module.
"""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sleep_score_engine.core.constants import Chronotype, ComponentKey, ConfidenceLevel, DataSource

_MODEL_CONFIG = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


# =============================================================================
# Input Models
# =============================================================================


class ScreenTimeSummary(BaseModel):
    """Pre-bed phone usage summary from the screen-time native module."""

    model_config = _MODEL_CONFIG

    total_minutes_last_2_hours: float | None = Field(default=None, alias="totalMinutesLast2Hours")
    blue_light: bool | None = None
    last_app_used_minutes_before_bed: float | None = None


class SleepRecord(BaseModel):
    """
    One night of sleep telemetry as produced by the sync layer.

    All minute fields are optional; absence lowers completeness and
    confidence instead of failing the score.
    """

    model_config = _MODEL_CONFIG

    id: str = ""
    date: dt.date | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration_minutes: float | None = None
    deep_sleep_minutes: float | None = None
    rem_sleep_minutes: float | None = None
    light_sleep_minutes: float | None = None
    awake_sleep_minutes: float | None = None
    source: DataSource
    confidence: ConfidenceLevel = ConfidenceLevel.MEDIUM
    estimated_bedtime: datetime | None = None
    estimated_wakeup: datetime | None = None
    screen_time_summary: ScreenTimeSummary | None = None

    @property
    def bedtime(self) -> datetime | None:
        """Start of the night, falling back to the screen-time estimate."""
        return self.start_time or self.estimated_bedtime

    @property
    def wakeup(self) -> datetime | None:
        """End of the night, falling back to the screen-time estimate."""
        return self.end_time or self.estimated_wakeup

    @property
    def stage_minutes(self) -> tuple[float | None, float | None, float | None, float | None]:
        """Deep, REM, light and awake minutes in that order."""
        return (
            self.deep_sleep_minutes,
            self.rem_sleep_minutes,
            self.light_sleep_minutes,
            self.awake_sleep_minutes,
        )

    @property
    def has_all_stages(self) -> bool:
        return all(value is not None for value in self.stage_minutes)


class UserProfile(BaseModel):
    """Demographic context. Every field is optional."""

    model_config = _MODEL_CONFIG

    age: int | None = None
    chronotype: Chronotype | None = None
    sleep_goal_minutes: float | None = None


class SleepScoringInput(BaseModel):
    """Everything the engine needs to score one night."""

    model_config = _MODEL_CONFIG

    current: SleepRecord
    history: list[SleepRecord] = Field(default_factory=list)
    user_profile: UserProfile | None = None


# =============================================================================
# Reference Models
# =============================================================================


class AgeNorm(BaseModel):
    """Population reference values for one age bucket."""

    model_config = _MODEL_CONFIG

    ideal_duration_min: float
    min_healthy_duration_min: float
    deep_pct_ideal: float
    deep_pct_low: float
    deep_pct_high: float
    rem_pct_ideal: float
    rem_pct_low: float
    rem_pct_high: float
    efficiency_ideal: float
    efficiency_low: float
    waso_expected: float
    waso_acceptable: float


class UserBaseline(BaseModel):
    """Rolling personal statistics derived from prior nights."""

    model_config = _MODEL_CONFIG

    avg_duration_min: float
    avg_deep_pct: float
    avg_rem_pct: float
    avg_efficiency: float
    avg_waso_min: float
    median_bedtime_minutes_from_midnight: float
    median_wake_minutes_from_midnight: float
    bedtime_variance_minutes: float
    p25_duration_min: float
    p75_duration_min: float
    nights_analysed: int


# =============================================================================
# Output Models
# =============================================================================


class ComponentResult(BaseModel):
    """Raw metric, its target, normalized score and weighted contribution."""

    model_config = _MODEL_CONFIG

    raw: float
    norm: float
    normalised: float
    weight: float
    contribution: float


class ScoreAdjustments(BaseModel):
    """Factors applied after component aggregation."""

    model_config = _MODEL_CONFIG

    source_reliability_factor: float
    data_completeness_factor: float
    chronic_debt_penalty: float
    age_efficiency_correction: float
    chronotype_alignment_delta: float


class ScoreBreakdown(BaseModel):
    """Final, explainable result of scoring one night."""

    model_config = _MODEL_CONFIG

    score: int
    confidence: ConfidenceLevel
    components: dict[ComponentKey, ComponentResult]
    weights: dict[ComponentKey, float]
    adjustments: ScoreAdjustments
    baseline: UserBaseline
    age_norm: AgeNorm
    flags: list[str]
    calculated_at: datetime

    def to_json_dict(self, include_timestamp: bool = True) -> dict[str, Any]:
        """Serialize with camelCase keys and ISO-8601 timestamp."""
        exclude = None if include_timestamp else {"calculated_at"}
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


# =============================================================================
# Summary Models
# =============================================================================


class DaySleepData(BaseModel):
    """One tracked day as consumed by the weekly and monthly summaries."""

    model_config = _MODEL_CONFIG

    date: dt.date
    duration_hours: float
    quality: float = 0.0
    deep_min: float = 0.0
    rem_min: float = 0.0
    light_min: float = 0.0
    awake_min: float = 0.0
    start_time: datetime | None = None
    end_time: datetime | None = None


class DayHours(BaseModel):
    model_config = _MODEL_CONFIG

    day: str
    hours: float


class WeeklySummary(BaseModel):
    """Seven-day roll-up with plain-text insights."""

    model_config = _MODEL_CONFIG

    total_hours: float
    avg_hours: float
    avg_quality: int
    best_day: DayHours | None
    worst_day: DayHours | None
    days_with_good_sleep: int
    avg_deep_percent: int
    avg_rem_percent: int
    consistency_score: int
    insights: list[str]
    main_insight: str


class MonthlySummary(BaseModel):
    """Month roll-up with weekly averages and plain-text insights."""

    model_config = _MODEL_CONFIG

    total_hours: float
    avg_hours: float
    avg_quality: int
    days_tracked: int
    days_with_good_sleep: int
    avg_deep_percent: int
    avg_rem_percent: int
    consistency_score: int
    weekly_averages: list[float]
    insights: list[str]
    main_insight: str
