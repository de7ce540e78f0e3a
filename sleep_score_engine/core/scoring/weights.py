"""
Dynamic component weighting.

Weights start from the configured base allocation and pass through an ordered
list of named, pure rules. Each rule takes the current weights and the scoring
context and returns new weights (unchanged when its condition does not hold).
After the last rule every weight is clamped to >= 0 and the vector is
renormalized to sum to 1.0.

Rule order:
    1. untrusted_stage_data      - source without valid stage data
    2. age_over_50
    3. evening_chronotype
    4. duration_near_goal
    5. short_sleep
    6. consistency_low_history
    7. consistency_high_history
    8. missing_screen_time       - night without a screen-time summary
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sleep_score_engine.core.constants import Chronotype, ComponentKey

from .night_metrics import total_sleep_minutes

if TYPE_CHECKING:
    from sleep_score_engine.schemas.models import SleepRecord, UserBaseline, UserProfile

    from .config import ScoringConfig, SourceReliability

logger = logging.getLogger(__name__)

Weights = Mapping[ComponentKey, float]


@dataclass(frozen=True)
class WeightContext:
    """Inputs the weight rules may read."""

    record: SleepRecord
    profile: UserProfile
    baseline: UserBaseline
    source: SourceReliability
    goal_minutes: float
    config: ScoringConfig


@dataclass(frozen=True)
class WeightRule:
    """A named, pure weight transformation."""

    name: str
    transform: Callable[[Weights, WeightContext], Weights]

    def __call__(self, weights: Weights, context: WeightContext) -> Weights:
        return self.transform(weights, context)


def _shift(weights: Weights, deltas: Mapping[ComponentKey, float]) -> dict[ComponentKey, float]:
    shifted = dict(weights)
    for key, delta in deltas.items():
        shifted[key] += delta
    return shifted


def _untrusted_stage_data(weights: Weights, context: WeightContext) -> Weights:
    if context.source.stage_data_valid:
        return weights
    rule = context.config.dynamic_weights.untrusted_stage_data
    deep = weights[ComponentKey.DEEP_SLEEP]
    rem = weights[ComponentKey.REM_SLEEP]
    freed = (deep + rem) * (1.0 - rule.keep_ratio)
    return _shift(
        weights,
        {
            ComponentKey.DURATION: freed * rule.to_duration,
            ComponentKey.EFFICIENCY: freed * rule.to_efficiency,
            ComponentKey.WASO: freed * rule.to_waso,
            ComponentKey.DEEP_SLEEP: deep * rule.keep_ratio - deep,
            ComponentKey.REM_SLEEP: rem * rule.keep_ratio - rem,
        },
    )


def _age_over_50(weights: Weights, context: WeightContext) -> Weights:
    rule = context.config.dynamic_weights.age_over_50
    age = context.profile.age
    if age is None or age <= rule.age_threshold:
        return weights
    return _shift(
        weights,
        {
            ComponentKey.DEEP_SLEEP: rule.deep_sleep_plus,
            ComponentKey.EFFICIENCY: -rule.efficiency_minus,
            ComponentKey.WASO: rule.waso_plus,
        },
    )


def _evening_chronotype(weights: Weights, context: WeightContext) -> Weights:
    if context.profile.chronotype != Chronotype.EVENING:
        return weights
    rule = context.config.dynamic_weights.evening_chronotype
    return _shift(
        weights,
        {
            ComponentKey.REM_SLEEP: rule.rem_plus,
            ComponentKey.CONSISTENCY: rule.consistency_plus,
            ComponentKey.TIMING: rule.timing_plus,
        },
    )


def _duration_near_goal(weights: Weights, context: WeightContext) -> Weights:
    rule = context.config.dynamic_weights.duration_near_goal
    if total_sleep_minutes(context.record) / context.goal_minutes < rule.goal_ratio:
        return weights
    return _shift(
        weights,
        {
            ComponentKey.DURATION: -rule.duration_minus,
            ComponentKey.EFFICIENCY: rule.efficiency_plus,
            ComponentKey.DEEP_SLEEP: rule.deep_plus,
            ComponentKey.REM_SLEEP: rule.rem_plus,
        },
    )


def _short_sleep(weights: Weights, context: WeightContext) -> Weights:
    rule = context.config.dynamic_weights.short_sleep
    if total_sleep_minutes(context.record) >= rule.threshold_min:
        return weights
    return _shift(
        weights,
        {
            ComponentKey.DURATION: rule.duration_plus,
            ComponentKey.EFFICIENCY: -rule.efficiency_minus,
            ComponentKey.WASO: -rule.waso_minus,
        },
    )


def _consistency_low_history(weights: Weights, context: WeightContext) -> Weights:
    rule = context.config.dynamic_weights.consistency_low_history
    if context.baseline.nights_analysed >= rule.threshold_nights:
        return weights
    consistency = weights[ComponentKey.CONSISTENCY]
    freed = consistency * (1.0 - rule.keep_ratio)
    return _shift(
        weights,
        {
            ComponentKey.CONSISTENCY: -freed,
            ComponentKey.DURATION: freed * rule.redistribute_duration,
            ComponentKey.EFFICIENCY: freed * rule.redistribute_efficiency,
        },
    )


def _consistency_high_history(weights: Weights, context: WeightContext) -> Weights:
    rule = context.config.dynamic_weights.consistency_high_history
    if context.baseline.nights_analysed < rule.threshold_nights:
        return weights
    return _shift(
        weights,
        {
            ComponentKey.CONSISTENCY: rule.consistency_plus,
            ComponentKey.TIMING: rule.timing_plus,
        },
    )


def _missing_screen_time(weights: Weights, context: WeightContext) -> Weights:
    if context.record.screen_time_summary is not None:
        return weights
    screen_time = weights[ComponentKey.SCREEN_TIME]
    return _shift(weights, {ComponentKey.EFFICIENCY: screen_time, ComponentKey.SCREEN_TIME: -screen_time})


WEIGHT_RULES: tuple[WeightRule, ...] = (
    WeightRule("untrusted_stage_data", _untrusted_stage_data),
    WeightRule("age_over_50", _age_over_50),
    WeightRule("evening_chronotype", _evening_chronotype),
    WeightRule("duration_near_goal", _duration_near_goal),
    WeightRule("short_sleep", _short_sleep),
    WeightRule("consistency_low_history", _consistency_low_history),
    WeightRule("consistency_high_history", _consistency_high_history),
    WeightRule("missing_screen_time", _missing_screen_time),
)


def normalize_weights(weights: Weights) -> dict[ComponentKey, float]:
    """Clamp every weight to >= 0 and rescale the vector to sum to 1.0."""
    clamped = {key: max(0.0, weights[key]) for key in ComponentKey}
    total = sum(clamped.values())
    if total <= 0:
        return {key: 1.0 if key == ComponentKey.DURATION else 0.0 for key in ComponentKey}
    return {key: value / total for key, value in clamped.items()}


def adjust_weights(context: WeightContext, rules: tuple[WeightRule, ...] = WEIGHT_RULES) -> dict[ComponentKey, float]:
    """
    Apply the ordered weight rules to the base weights and renormalize.

    Returns:
        Weights keyed by every ComponentKey, summing to 1.0

    """
    weights: Weights = context.config.base_weights.as_dict()
    applied = []
    for rule in rules:
        adjusted = rule(weights, context)
        if adjusted is not weights:
            applied.append(rule.name)
        weights = adjusted

    logger.debug("Weight rules applied: %s", ", ".join(applied) or "none")
    return normalize_weights(weights)
