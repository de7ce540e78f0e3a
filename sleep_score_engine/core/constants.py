#!/usr/bin/env python3
"""
String enums for the sleep score engine.

These enums are the single source of truth for categorical values used by the
scoring pipeline and its JSON representation.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class DataSource(StrEnum):
    """Origin of a sleep record, as reported by the sync layer."""

    WEARABLE = "wearable"
    HEALTH_CONNECT = "health_connect"
    MANUAL = "manual"
    DIGITAL_WELLBEING = "digital_wellbeing"
    USAGE_STATS = "usage_stats"


class ConfidenceLevel(StrEnum):
    """Credibility of a record or of a computed score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Chronotype(StrEnum):
    """Natural sleep/wake timing preference."""

    MORNING = "morning"
    INTERMEDIATE = "intermediate"
    EVENING = "evening"


class ComponentKey(StrEnum):
    """
    Keys of the eight scored components.

    Values are the camelCase keys used in the serialized breakdown.
    """

    DURATION = "duration"
    DEEP_SLEEP = "deepSleep"
    REM_SLEEP = "remSleep"
    EFFICIENCY = "efficiency"
    WASO = "waso"
    CONSISTENCY = "consistency"
    TIMING = "timing"
    SCREEN_TIME = "screenTime"


class AgeBucket(IntEnum):
    """
    Physiological age-norm buckets, ordered by their inclusive upper age bound.

    The value is the highest age belonging to the bucket; ``AGE_65_PLUS`` is
    open-ended.
    """

    UNDER_18 = 17
    AGE_18_25 = 25
    AGE_26_35 = 35
    AGE_36_50 = 50
    AGE_51_65 = 65
    AGE_65_PLUS = 200

    @property
    def label(self) -> str:
        """Human-readable bucket label."""
        return _AGE_BUCKET_LABELS[self]

    @classmethod
    def get_default(cls) -> AgeBucket:
        """Bucket used when age is unknown."""
        return cls.AGE_26_35


_AGE_BUCKET_LABELS = {
    AgeBucket.UNDER_18: "<18",
    AgeBucket.AGE_18_25: "18-25",
    AgeBucket.AGE_26_35: "26-35",
    AgeBucket.AGE_36_50: "36-50",
    AgeBucket.AGE_51_65: "51-65",
    AgeBucket.AGE_65_PLUS: "65+",
}


class ScoreFlag(StrEnum):
    """Interpretable flags attached to a score breakdown."""

    DURATION_BELOW_5H = "duration_below_5h"
    DURATION_BELOW_GOAL = "duration_below_goal_20pct"
    DEEP_LOW = "deep_below_15pct"
    REM_LOW = "rem_below_15pct"
    AWAKE_HIGH = "awake_above_10pct_tst"
    WASO_ABOVE_ACCEPTABLE = "waso_above_acceptable"
    WASO_SEVERE = "waso_severe"
    LATE_BEDTIME = "late_bedtime_vs_median"
    EXTREME_BEDTIME_SHIFT = "extreme_bedtime_shift"
    SOCIAL_JET_LAG = "social_jet_lag"
    DATA_INCOMPLETE_STAGES = "data_incomplete_stages"
    SOURCE_LOW_RELIABILITY = "source_low_reliability"
    DATA_INCOMPLETE = "data_incomplete"


class SummaryPeriod(StrEnum):
    """Aggregation period for sleep summaries."""

    WEEK = "week"
    MONTH = "month"
