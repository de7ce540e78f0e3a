"""
Component scorers.

Each of the eight components extracts a raw metric from the night, compares
it with its target and normalizes the result into [0, 1]. The shared curve is
a two-sided Gaussian:

    normalised = exp(-((x - target) / sigma)^2 / 2)

with sigma = sigma_below when x < target and sigma_above otherwise, so that
falling short of a target can cost more than a mild overshoot.

Component-specific rules:
    - duration, deep, REM, efficiency: asymmetric Gaussian against blended targets
    - waso: one-sided exponential decay above the blended target
    - consistency: deviation from median bedtime blended with bedtime spread
    - timing: circular distance from the chronotype's ideal bedtime
    - screen time: logistic decay of pre-bed screen minutes

A component without usable input returns the neutral score. Deep and REM
also return the neutral score when the source's stage data is not valid.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sleep_score_engine.core.constants import Chronotype, ComponentKey
from sleep_score_engine.utils.time_utils import MINUTES_PER_DAY, circular_diff_minutes

from .night_metrics import bedtime_night_minutes, sleep_efficiency, stage_percentage, total_sleep_minutes

if TYPE_CHECKING:
    from sleep_score_engine.schemas.models import AgeNorm, SleepRecord, UserBaseline, UserProfile

    from .blending import BlendedTargets
    from .config import ScoringConfig, SourceReliability


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


def gaussian_score(value: float, target: float, sigma: float) -> float:
    """Symmetric Gaussian similarity, 1.0 at the target."""
    if sigma <= 0:
        return 0.0
    return math.exp(-0.5 * ((value - target) / sigma) ** 2)


def asymmetric_gaussian(value: float, target: float, sigma_below: float, sigma_above: float) -> float:
    """Gaussian similarity with separate spreads below and above the target."""
    sigma = sigma_below if value < target else sigma_above
    return gaussian_score(value, target, sigma)


def logistic_decay(value: float, midpoint: float, slope: float) -> float:
    """Falls from 1 towards 0 as value grows; 0.5 at the midpoint."""
    exponent = slope * (value - midpoint)
    if exponent > 700:
        return 0.0
    return 1.0 / (1.0 + math.exp(exponent))


@dataclass(frozen=True)
class ComponentScore:
    """Raw metric, its target and the normalized score of one component."""

    raw: float
    norm: float
    normalised: float


@dataclass(frozen=True)
class ComponentContext:
    """Inputs shared by all component scorers."""

    record: SleepRecord
    profile: UserProfile
    baseline: UserBaseline
    age_norm: AgeNorm
    targets: BlendedTargets
    source: SourceReliability
    config: ScoringConfig

    @property
    def neutral(self) -> float:
        return self.config.neutral_component_score


def score_duration(context: ComponentContext) -> ComponentScore:
    tst = total_sleep_minutes(context.record)
    target = context.targets.duration_min
    sigma = context.config.sigma
    normalised = asymmetric_gaussian(tst, target, sigma.duration_below, sigma.duration_above)
    return ComponentScore(raw=tst, norm=target, normalised=clamp(normalised))


def _score_stage(
    context: ComponentContext,
    stage_minutes: float | None,
    target: float,
    sigma_below: float,
    sigma_above: float,
) -> ComponentScore:
    pct = stage_percentage(stage_minutes, context.record)
    if pct is None or not context.source.stage_data_valid:
        return ComponentScore(raw=pct or 0.0, norm=target, normalised=context.neutral)
    return ComponentScore(raw=pct, norm=target, normalised=clamp(asymmetric_gaussian(pct, target, sigma_below, sigma_above)))


def score_deep_sleep(context: ComponentContext) -> ComponentScore:
    sigma = context.config.sigma
    return _score_stage(
        context,
        context.record.deep_sleep_minutes,
        context.targets.deep_pct,
        sigma.deep_below,
        sigma.deep_above,
    )


def score_rem_sleep(context: ComponentContext) -> ComponentScore:
    sigma = context.config.sigma
    # Evening types lose REM-rich late sleep to early alarms
    sigma_below = sigma.rem_below_evening_chronotype if context.profile.chronotype == Chronotype.EVENING else sigma.rem_below
    return _score_stage(
        context,
        context.record.rem_sleep_minutes,
        context.targets.rem_pct,
        sigma_below,
        sigma.rem_above,
    )


def score_efficiency(context: ComponentContext) -> ComponentScore:
    target = context.targets.efficiency
    efficiency = sleep_efficiency(context.record)
    if efficiency is None:
        return ComponentScore(raw=0.0, norm=target, normalised=context.neutral)
    sigma = context.config.sigma
    normalised = asymmetric_gaussian(efficiency, target, sigma.efficiency_below, sigma.efficiency_above)
    return ComponentScore(raw=efficiency, norm=target, normalised=clamp(normalised))


def waso_decay_rate(target: float, waso_acceptable: float, config: ScoringConfig) -> float:
    """
    Exponential decay rate for WASO above the target.

    The curve reaches baseline_tail_target at twice the acceptable WASO.
    """
    denominator = max(1.0, waso_acceptable * 2 - target)
    return math.log(1.0 / config.waso.baseline_tail_target) / denominator


def score_waso(context: ComponentContext) -> ComponentScore:
    target = context.targets.waso_min
    waso = context.record.awake_sleep_minutes
    if waso is None:
        return ComponentScore(raw=0.0, norm=target, normalised=context.neutral)
    rate = waso_decay_rate(target, context.age_norm.waso_acceptable, context.config)
    excess = max(context.config.waso.relative_floor, waso - target)
    return ComponentScore(raw=waso, norm=target, normalised=clamp(math.exp(-rate * excess)))


def score_consistency(context: ComponentContext) -> ComponentScore:
    baseline = context.baseline
    bedtime = bedtime_night_minutes(context.record)
    min_nights = context.config.dynamic_weights.consistency_low_history.threshold_nights
    if bedtime is None or baseline.nights_analysed < min_nights:
        return ComponentScore(raw=0.0, norm=0.0, normalised=context.neutral)

    consistency = context.config.consistency
    deviation = abs(bedtime - baseline.median_bedtime_minutes_from_midnight)
    deviation_score = gaussian_score(deviation, 0.0, context.config.sigma.consistency_minutes)
    spread_score = clamp(1.0 - baseline.bedtime_variance_minutes / consistency.spread_ceiling_minutes)
    normalised = consistency.deviation_share * deviation_score + consistency.spread_share * spread_score
    return ComponentScore(raw=deviation, norm=0.0, normalised=clamp(normalised))


def timing_score_for_target(bedtime_clock: float, target: float, config: ScoringConfig) -> float:
    diff = circular_diff_minutes(bedtime_clock, target)
    return clamp(gaussian_score(diff, 0.0, config.sigma.timing_minutes))


def score_timing(context: ComponentContext) -> ComponentScore:
    target = context.config.timing.target_for(context.profile.chronotype)
    bedtime = bedtime_night_minutes(context.record)
    if bedtime is None:
        return ComponentScore(raw=0.0, norm=target, normalised=context.neutral)
    bedtime_clock = bedtime % MINUTES_PER_DAY
    return ComponentScore(raw=bedtime_clock, norm=target, normalised=timing_score_for_target(bedtime_clock, target, context.config))


def score_screen_time(context: ComponentContext) -> ComponentScore:
    screen_time = context.config.screen_time
    summary = context.record.screen_time_summary
    if summary is None:
        return ComponentScore(raw=0.0, norm=screen_time.midpoint_minutes, normalised=context.neutral)
    minutes = summary.total_minutes_last_2_hours or 0.0
    normalised = logistic_decay(minutes, screen_time.midpoint_minutes, screen_time.slope)
    return ComponentScore(raw=minutes, norm=screen_time.midpoint_minutes, normalised=clamp(normalised))


def score_components(context: ComponentContext) -> dict[ComponentKey, ComponentScore]:
    """Run all eight component scorers."""
    return {
        ComponentKey.DURATION: score_duration(context),
        ComponentKey.DEEP_SLEEP: score_deep_sleep(context),
        ComponentKey.REM_SLEEP: score_rem_sleep(context),
        ComponentKey.EFFICIENCY: score_efficiency(context),
        ComponentKey.WASO: score_waso(context),
        ComponentKey.CONSISTENCY: score_consistency(context),
        ComponentKey.TIMING: score_timing(context),
        ComponentKey.SCREEN_TIME: score_screen_time(context),
    }
