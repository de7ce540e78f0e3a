"""
Personal baseline builder.

Aggregates a bounded window of prior nights into rolling statistics:

    - arithmetic mean of duration, stage percentages, efficiency and WASO
    - median (not mean) bedtime and wake time, to resist outlier nights
    - population standard deviation of bedtime in minutes (bedtime spread)
    - 25th/75th duration percentiles by linear interpolation

Only nights with a positive duration are analysed. Statistics without any
contributing night fall back to the age norm, so an empty history yields the
age-norm ideals with nights_analysed = 0. The builder is pure and is
recomputed for every scoring call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from sleep_score_engine.core.validation import InputValidator
from sleep_score_engine.schemas.models import UserBaseline
from sleep_score_engine.utils.time_utils import to_night_axis

from .night_metrics import (
    bedtime_night_minutes,
    sleep_efficiency,
    stage_percentage,
    total_sleep_minutes,
    wake_night_minutes,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sleep_score_engine.schemas.models import AgeNorm, SleepRecord

    from .config import ScoringConfig

logger = logging.getLogger(__name__)


def select_baseline_nights(history: Sequence[SleepRecord], config: ScoringConfig) -> list[SleepRecord]:
    """
    Return the most recent analysable nights, oldest first.

    Invalid nights are dropped with a warning; nights without a positive
    duration are skipped silently.
    """
    analysable = []
    for index, record in enumerate(history):
        if not InputValidator.is_valid_record(record):
            logger.warning("Skipping invalid history night %d (id=%r)", index, record.id)
            continue
        if total_sleep_minutes(record) > 0:
            analysable.append(record)
    return analysable[-config.history_window_nights :]


def _mean_or(values: list[float], fallback: float) -> float:
    return float(np.mean(values)) if values else fallback


def _median_or(values: list[float], fallback: float) -> float:
    return float(np.median(values)) if values else fallback


def empty_baseline(age_norm: AgeNorm, config: ScoringConfig) -> UserBaseline:
    """Baseline for a user without usable history: the age-norm ideals."""
    return UserBaseline(
        avg_duration_min=age_norm.ideal_duration_min,
        avg_deep_pct=age_norm.deep_pct_ideal,
        avg_rem_pct=age_norm.rem_pct_ideal,
        avg_efficiency=age_norm.efficiency_ideal,
        avg_waso_min=age_norm.waso_expected,
        median_bedtime_minutes_from_midnight=to_night_axis(config.timing.default_bedtime),
        median_wake_minutes_from_midnight=to_night_axis(config.timing.default_wake),
        bedtime_variance_minutes=0.0,
        p25_duration_min=age_norm.ideal_duration_min,
        p75_duration_min=age_norm.ideal_duration_min,
        nights_analysed=0,
    )


def build_baseline(nights: Sequence[SleepRecord], age_norm: AgeNorm, config: ScoringConfig) -> UserBaseline:
    """
    Build rolling personal statistics from prior nights.

    Args:
        nights: Nights returned by select_baseline_nights, oldest first
        age_norm: Resolved population norm used for fallbacks
        config: Scoring configuration

    Returns:
        UserBaseline over the given nights

    """
    if not nights:
        return empty_baseline(age_norm, config)

    durations = np.array([total_sleep_minutes(record) for record in nights], dtype=float)

    deep_pcts = [pct for record in nights if (pct := stage_percentage(record.deep_sleep_minutes, record))]
    rem_pcts = [pct for record in nights if (pct := stage_percentage(record.rem_sleep_minutes, record))]
    efficiencies = [eff for record in nights if (eff := sleep_efficiency(record)) is not None]
    wasos = [record.awake_sleep_minutes for record in nights if record.awake_sleep_minutes is not None]
    bedtimes = [minutes for record in nights if (minutes := bedtime_night_minutes(record)) is not None]
    wakes = [minutes for record in nights if (minutes := wake_night_minutes(record)) is not None]

    p25, p75 = np.percentile(durations, [25, 75])
    spread = float(np.std(bedtimes)) if len(bedtimes) > 1 else 0.0
    empty = empty_baseline(age_norm, config)

    baseline = UserBaseline(
        avg_duration_min=float(durations.mean()),
        avg_deep_pct=_mean_or(deep_pcts, empty.avg_deep_pct),
        avg_rem_pct=_mean_or(rem_pcts, empty.avg_rem_pct),
        avg_efficiency=_mean_or(efficiencies, empty.avg_efficiency),
        avg_waso_min=_mean_or(wasos, empty.avg_waso_min),
        median_bedtime_minutes_from_midnight=_median_or(bedtimes, empty.median_bedtime_minutes_from_midnight),
        median_wake_minutes_from_midnight=_median_or(wakes, empty.median_wake_minutes_from_midnight),
        bedtime_variance_minutes=spread,
        p25_duration_min=float(p25),
        p75_duration_min=float(p75),
        nights_analysed=len(nights),
    )
    logger.debug(
        "Baseline over %d nights: avg duration %.1f min, bedtime spread %.1f min",
        baseline.nights_analysed,
        baseline.avg_duration_min,
        baseline.bedtime_variance_minutes,
    )
    return baseline
