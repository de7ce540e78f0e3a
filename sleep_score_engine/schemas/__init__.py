"""Pydantic schemas for scoring input, output and summaries."""

from __future__ import annotations

from .models import (
    AgeNorm,
    ComponentResult,
    DayHours,
    DaySleepData,
    MonthlySummary,
    ScoreAdjustments,
    ScoreBreakdown,
    ScreenTimeSummary,
    SleepRecord,
    SleepScoringInput,
    UserBaseline,
    UserProfile,
    WeeklySummary,
)

__all__ = [
    "AgeNorm",
    "ComponentResult",
    "DayHours",
    "DaySleepData",
    "MonthlySummary",
    "ScoreAdjustments",
    "ScoreBreakdown",
    "ScreenTimeSummary",
    "SleepRecord",
    "SleepScoringInput",
    "UserBaseline",
    "UserProfile",
    "WeeklySummary",
]
