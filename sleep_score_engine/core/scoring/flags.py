"""
Interpretable flags for a scored night.

Flags are emitted in a stable order from fixed thresholds. Bedtime flags need
at least FlagThresholds.min_history_nights nights of personal history.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sleep_score_engine.core.constants import DataSource, ScoreFlag

from .night_metrics import bedtime_night_minutes, total_sleep_minutes

if TYPE_CHECKING:
    from sleep_score_engine.schemas.models import AgeNorm, SleepRecord, UserBaseline

    from .config import ScoringConfig

LOW_RELIABILITY_SOURCES = frozenset({DataSource.USAGE_STATS, DataSource.DIGITAL_WELLBEING})


def _ratio_below(minutes: float | None, tst: float, ratio: float) -> bool:
    return tst > 0 and bool(minutes) and minutes / tst < ratio


def compute_flags(
    record: SleepRecord,
    age_norm: AgeNorm,
    baseline: UserBaseline,
    goal_minutes: float,
    config: ScoringConfig,
) -> list[ScoreFlag]:
    """
    Return the flags raised by one night.

    Args:
        record: Night being scored
        age_norm: Population norm of the user's age bucket
        baseline: Personal baseline built from prior nights
        goal_minutes: Nightly sleep goal
        config: Scoring configuration

    Returns:
        Flags in a fixed order, without duplicates

    """
    thresholds = config.flags
    tst = total_sleep_minutes(record)
    waso = record.awake_sleep_minutes or 0.0
    flags: list[ScoreFlag] = []

    if tst < thresholds.duration_below_5h:
        flags.append(ScoreFlag.DURATION_BELOW_5H)
    if tst < goal_minutes * thresholds.goal_duration_low_ratio:
        flags.append(ScoreFlag.DURATION_BELOW_GOAL)
    if _ratio_below(record.deep_sleep_minutes, tst, thresholds.deep_low_ratio):
        flags.append(ScoreFlag.DEEP_LOW)
    if _ratio_below(record.rem_sleep_minutes, tst, thresholds.rem_low_ratio):
        flags.append(ScoreFlag.REM_LOW)
    if tst > 0 and waso > 0 and waso / tst > thresholds.awake_tst_high_ratio:
        flags.append(ScoreFlag.AWAKE_HIGH)

    if waso > age_norm.waso_acceptable:
        flags.append(ScoreFlag.WASO_ABOVE_ACCEPTABLE)
    if waso > config.waso.severe_minutes:
        flags.append(ScoreFlag.WASO_SEVERE)

    if baseline.nights_analysed >= thresholds.min_history_nights:
        bedtime = bedtime_night_minutes(record)
        if bedtime is not None:
            deviation = abs(bedtime - baseline.median_bedtime_minutes_from_midnight)
            if deviation > thresholds.bedtime_deviation_warning_minutes:
                flags.append(ScoreFlag.LATE_BEDTIME)
            if deviation > thresholds.bedtime_deviation_severe_minutes:
                flags.append(ScoreFlag.EXTREME_BEDTIME_SHIFT)
        if baseline.bedtime_variance_minutes > thresholds.social_jet_lag_variance_minutes:
            flags.append(ScoreFlag.SOCIAL_JET_LAG)

    if not record.deep_sleep_minutes or not record.rem_sleep_minutes:
        flags.append(ScoreFlag.DATA_INCOMPLETE_STAGES)

    if record.source in LOW_RELIABILITY_SOURCES:
        flags.append(ScoreFlag.SOURCE_LOW_RELIABILITY)

    return flags
