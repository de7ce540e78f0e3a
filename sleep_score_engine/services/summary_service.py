"""
Weekly and monthly sleep summaries.

Rolls tracked days up into totals, averages, best/worst days, stage
percentages, a duration-consistency score and short plain-text insights.
Only days with a positive duration count. Consistency maps the population
standard deviation of nightly hours onto 0-100: 0 h spread is 100, 3 h or
more is 0.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from sleep_score_engine.core.constants import SummaryPeriod
from sleep_score_engine.schemas.models import DayHours, DaySleepData, MonthlySummary, WeeklySummary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sleep_score_engine.services.batch_scoring_service import NightResult

logger = logging.getLogger(__name__)

GOOD_SLEEP_HOURS = 7.0
CONSISTENCY_MAX_STD_HOURS = 3.0
SOCIAL_JET_LAG_HOURS = 1.5
TREND_THRESHOLD_HOURS = 0.5
MAX_WEEKLY_INSIGHTS = 3
MAX_MONTHLY_INSIGHTS = 4


def _round_half_up(value: float, digits: int = 0) -> float:
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def _days_frame(days: Sequence[DaySleepData]) -> pd.DataFrame:
    """Valid days (duration > 0) as a DataFrame, in input order."""
    df = pd.DataFrame([day.model_dump() for day in days])
    if df.empty:
        return df
    return df[df["duration_hours"] > 0].reset_index(drop=True)


def consistency_from_std(std_hours: float) -> int:
    score = (1 - std_hours / CONSISTENCY_MAX_STD_HOURS) * 100
    return int(_round_half_up(min(100.0, max(0.0, score))))


def _stage_percentages(df: pd.DataFrame) -> tuple[int, int]:
    total_sleep_min = float(df["duration_hours"].sum()) * 60
    if total_sleep_min <= 0:
        return 0, 0
    deep = int(_round_half_up(float(df["deep_min"].sum()) / total_sleep_min * 100))
    rem = int(_round_half_up(float(df["rem_min"].sum()) / total_sleep_min * 100))
    return deep, rem


def _duration_consistency(df: pd.DataFrame) -> int:
    return consistency_from_std(float(np.std(df["duration_hours"].to_numpy(dtype=float))))


def _day_hours(row: pd.Series) -> DayHours:
    return DayHours(day=row["date"].strftime("%A"), hours=float(row["duration_hours"]))


def weekly_summary(days: Sequence[DaySleepData]) -> WeeklySummary:
    """
    Summarize one week of tracked days.

    Args:
        days: Tracked days; days without sleep are ignored

    Returns:
        WeeklySummary with at most three insights

    """
    df = _days_frame(days)
    if df.empty:
        return WeeklySummary(
            total_hours=0,
            avg_hours=0,
            avg_quality=0,
            best_day=None,
            worst_day=None,
            days_with_good_sleep=0,
            avg_deep_percent=0,
            avg_rem_percent=0,
            consistency_score=0,
            insights=["No sleep data available for this week."],
            main_insight="Start tracking your sleep to get personalized insights.",
        )

    hours = df["duration_hours"]
    total_hours = float(hours.sum())
    avg_hours = float(hours.mean())
    avg_quality = float(df["quality"].mean())

    by_duration = df.sort_values("duration_hours", ascending=False, kind="stable")
    best_day = _day_hours(by_duration.iloc[0])
    worst_day = _day_hours(by_duration.iloc[-1])
    days_with_good_sleep = int((hours >= GOOD_SLEEP_HOURS).sum())
    avg_deep_percent, avg_rem_percent = _stage_percentages(df)
    consistency_score = _duration_consistency(df)

    insights: list[str] = []
    if avg_hours >= 7.5:
        insights.append("Excellent sleep duration this week! You're meeting the recommended 7-9 hours.")
        main_insight = f"Great week for sleep! Your average of {avg_hours:.1f} hours is optimal."
    elif avg_hours >= 6.5:
        insights.append("Your sleep duration is adequate but could be improved. Aim for 7-8 hours.")
        main_insight = "Good progress, but try to add 30-60 more minutes of sleep per night."
    else:
        insights.append("You're not getting enough sleep. This can affect your energy, mood, and health.")
        main_insight = f"Sleep debt alert! Averaging only {avg_hours:.1f} hours. Prioritize rest."

    if consistency_score >= 80:
        insights.append("Your sleep schedule is very consistent, which helps maintain a healthy circadian rhythm.")
    elif consistency_score >= 50:
        insights.append("Your sleep times vary moderately. Try to go to bed at the same time each night.")
    else:
        insights.append("Your sleep schedule is irregular. This can disrupt your body clock and reduce sleep quality.")

    if avg_deep_percent < 13:
        insights.append("Your deep sleep is below optimal (target: 15-20%). Avoid alcohol and screens before bed.")
    elif avg_deep_percent >= 18:
        insights.append("Excellent deep sleep! This indicates good physical recovery.")

    weekend = df["date"].map(lambda day: day.weekday() >= 5)
    if weekend.any() and (~weekend).any():
        gap = abs(float(hours[weekend].mean()) - float(hours[~weekend].mean()))
        if gap > SOCIAL_JET_LAG_HOURS:
            insights.append(
                'Large difference between weekend and weekday sleep. This "social jet lag" can affect your energy.'
            )

    return WeeklySummary(
        total_hours=_round_half_up(total_hours, 1),
        avg_hours=_round_half_up(avg_hours, 1),
        avg_quality=int(_round_half_up(avg_quality)),
        best_day=best_day,
        worst_day=worst_day,
        days_with_good_sleep=days_with_good_sleep,
        avg_deep_percent=avg_deep_percent,
        avg_rem_percent=avg_rem_percent,
        consistency_score=consistency_score,
        insights=insights[:MAX_WEEKLY_INSIGHTS],
        main_insight=main_insight,
    )


def monthly_summary(days: Sequence[DaySleepData]) -> MonthlySummary:
    """
    Summarize one month of tracked days.

    Weekly averages are taken over consecutive blocks of seven tracked days.
    """
    df = _days_frame(days)
    if df.empty:
        return MonthlySummary(
            total_hours=0,
            avg_hours=0,
            avg_quality=0,
            days_tracked=0,
            days_with_good_sleep=0,
            avg_deep_percent=0,
            avg_rem_percent=0,
            consistency_score=0,
            weekly_averages=[],
            insights=["No sleep data available for this month."],
            main_insight="Start tracking your sleep to get monthly insights.",
        )

    hours = df["duration_hours"]
    avg_hours = float(hours.mean())
    avg_quality = float(df["quality"].mean())
    days_with_good_sleep = int((hours >= GOOD_SLEEP_HOURS).sum())
    avg_deep_percent, avg_rem_percent = _stage_percentages(df)
    consistency_score = _duration_consistency(df)

    blocks = hours.groupby(np.arange(len(df)) // 7).mean()
    weekly_averages = [_round_half_up(float(value), 1) for value in blocks]

    insights: list[str] = []
    goal_achievement = int(_round_half_up(days_with_good_sleep / len(df) * 100))
    if goal_achievement >= 80:
        insights.append(f"Excellent month! You hit your 7+ hour goal {goal_achievement}% of tracked nights.")
        main_insight = "Outstanding sleep consistency this month. Keep it up!"
    elif goal_achievement >= 60:
        insights.append(f"Good effort! You achieved 7+ hours on {goal_achievement}% of nights.")
        main_insight = "Solid month overall. A few more good nights would make it great."
    else:
        insights.append(f"Room for improvement: Only {goal_achievement}% of nights met the 7-hour goal.")
        main_insight = "This month's sleep needs attention. Consider adjusting your schedule."

    if len(weekly_averages) >= 2:
        trend = weekly_averages[-1] - weekly_averages[0]
        if trend > TREND_THRESHOLD_HOURS:
            insights.append("Positive trend: Your sleep duration improved over the month.")
        elif trend < -TREND_THRESHOLD_HOURS:
            insights.append("Declining trend: Your sleep duration decreased as the month went on.")

    if avg_quality >= 80:
        insights.append("High sleep quality throughout the month indicates restful, restorative sleep.")
    elif avg_quality < 60:
        insights.append("Sleep quality could be improved. Consider your sleep environment and pre-bed routine.")

    if avg_deep_percent < 15:
        insights.append("Deep sleep is below optimal. Regular exercise (not too close to bedtime) can help.")

    return MonthlySummary(
        total_hours=_round_half_up(float(hours.sum())),
        avg_hours=_round_half_up(avg_hours, 1),
        avg_quality=int(_round_half_up(avg_quality)),
        days_tracked=len(df),
        days_with_good_sleep=days_with_good_sleep,
        avg_deep_percent=avg_deep_percent,
        avg_rem_percent=avg_rem_percent,
        consistency_score=consistency_score,
        weekly_averages=weekly_averages,
        insights=insights[:MAX_MONTHLY_INSIGHTS],
        main_insight=main_insight,
    )


def days_from_results(results: Sequence[NightResult]) -> list[DaySleepData]:
    """
    Convert batch results into summary days.

    The night's score is its quality. Nights that failed scoring or have no
    date are skipped.
    """
    days = []
    for result in results:
        record = result.record
        if not result.outcome.ok or result.night_date is None:
            continue
        days.append(
            DaySleepData(
                date=result.night_date,
                duration_hours=(record.duration_minutes or 0.0) / 60,
                quality=result.outcome.score,
                deep_min=record.deep_sleep_minutes or 0.0,
                rem_min=record.rem_sleep_minutes or 0.0,
                light_min=record.light_sleep_minutes or 0.0,
                awake_min=record.awake_sleep_minutes or 0.0,
                start_time=record.start_time,
                end_time=record.end_time,
            )
        )
    logger.debug("Built %d summary days from %d results", len(days), len(results))
    return days


def summarize(days: Sequence[DaySleepData], period: SummaryPeriod) -> WeeklySummary | MonthlySummary:
    if period == SummaryPeriod.WEEK:
        return weekly_summary(days)
    return monthly_summary(days)
