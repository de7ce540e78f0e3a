"""
Sleep scoring engine.

Scores one night against the user's personal baseline and population age
norms and returns an explainable ScoreBreakdown:

    1. validate the night and the profile
    2. resolve the age norm and build the baseline from prior valid nights
    3. blend personal and population targets
    4. adjust component weights with the ordered weight rules
    5. score the eight components and sum their weighted contributions
    6. apply the age efficiency correction, chronic debt and shrinkage
    7. clamp to [0, 100], round, and attach confidence and flags

Invalid input never raises out of score(): it is returned as
ScoringOutcome(error=...). The engine holds no mutable state and the same
input always produces the same breakdown apart from calculated_at.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pydantic

from sleep_score_engine.core.constants import ComponentKey, ConfidenceLevel, ScoreFlag
from sleep_score_engine.core.exceptions import InvalidInputError, SleepScoreError
from sleep_score_engine.core.validation import InputValidator, invalid_input_from_pydantic
from sleep_score_engine.schemas.models import (
    ComponentResult,
    ScoreAdjustments,
    ScoreBreakdown,
    SleepRecord,
    SleepScoringInput,
    UserProfile,
)
from sleep_score_engine.utils.time_utils import MINUTES_PER_DAY

from .baseline import build_baseline, select_baseline_nights
from .blending import blend_targets
from .components import ComponentContext, ComponentScore, clamp, score_components, timing_score_for_target
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .corrections import age_efficiency_correction, chronic_debt_penalty, shrink_toward_prior, shrinkage_retention
from .flags import compute_flags
from .night_metrics import bedtime_night_minutes, total_sleep_minutes
from .norms import resolve_age_norm
from .quality import assess_data_quality, derive_confidence, resolve_source
from .weights import WeightContext, adjust_weights

if TYPE_CHECKING:
    from sleep_score_engine.schemas.models import AgeNorm, UserBaseline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringOutcome:
    """Either a breakdown or the error that prevented scoring."""

    breakdown: ScoreBreakdown | None = None
    error: SleepScoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.breakdown is not None

    @property
    def score(self) -> int | None:
        return self.breakdown.score if self.breakdown is not None else None

    def to_dict(self, include_timestamp: bool = True) -> dict[str, Any]:
        if self.breakdown is not None:
            return {"ok": True, "breakdown": self.breakdown.to_json_dict(include_timestamp=include_timestamp)}
        return {"ok": False, "error": self.error.to_dict() if self.error else None}


def _parse_history(raw_history: Sequence[Any]) -> list[SleepRecord]:
    """Parse history nights one by one; unparseable nights are dropped with a warning."""
    nights = []
    for index, item in enumerate(raw_history):
        try:
            nights.append(SleepRecord.model_validate(item))
        except pydantic.ValidationError as e:
            logger.warning("Skipping unparseable history night: %s", invalid_input_from_pydantic(e, f"history.{index}"))
    return nights


def parse_scoring_input(payload: Mapping[str, Any]) -> SleepScoringInput:
    """
    Build a SleepScoringInput from a camelCase (or snake_case) JSON payload.

    History nights that do not match the schema are dropped with a warning,
    the same way invalid history values are left out of the baseline.

    Raises:
        InvalidInputError: If the current night or the profile does not match the input schema

    """
    raw_history = payload.get("history") if isinstance(payload, Mapping) else None
    if isinstance(raw_history, list):
        payload = {**payload, "history": _parse_history(raw_history)}
    try:
        return SleepScoringInput.model_validate(payload)
    except pydantic.ValidationError as e:
        raise invalid_input_from_pydantic(e) from e


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class SleepScoringEngine:
    """
    Stateless scorer bound to one immutable ScoringConfig.

    Example:
        engine = SleepScoringEngine()
        outcome = engine.score(scoring_input)
        if outcome.ok:
            print(outcome.breakdown.score)

    """

    def __init__(self, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> None:
        self.config = config

    def score(self, scoring_input: SleepScoringInput, now: datetime | None = None) -> ScoringOutcome:
        """
        Score the current night of scoring_input.

        Args:
            scoring_input: Night, prior nights (oldest first) and optional profile
            now: Timestamp stamped into calculated_at; defaults to the current UTC time

        Returns:
            ScoringOutcome with a breakdown, or with the validation error

        """
        try:
            InputValidator.validate_scoring_input(scoring_input)
        except InvalidInputError as e:
            logger.warning("Rejected scoring input: %s", e)
            return ScoringOutcome(error=e)

        calculated_at = now or datetime.now(UTC)
        breakdown = self._score_valid_input(scoring_input, calculated_at)
        logger.debug("Scored night %r: %d (%s)", scoring_input.current.id, breakdown.score, breakdown.confidence)
        return ScoringOutcome(breakdown=breakdown)

    def score_payload(self, payload: Mapping[str, Any], now: datetime | None = None) -> ScoringOutcome:
        """Parse a JSON payload and score it; schema errors come back as outcomes."""
        try:
            scoring_input = parse_scoring_input(payload)
        except InvalidInputError as e:
            logger.warning("Rejected scoring payload: %s", e)
            return ScoringOutcome(error=e)
        return self.score(scoring_input, now=now)

    def _score_valid_input(self, scoring_input: SleepScoringInput, calculated_at: datetime) -> ScoreBreakdown:
        config = self.config
        current = scoring_input.current
        profile = scoring_input.user_profile or UserProfile()
        goal_minutes = profile.sleep_goal_minutes or config.default_sleep_goal_minutes

        age_norm = resolve_age_norm(profile.age, config)
        nights = select_baseline_nights(scoring_input.history, config)
        baseline = build_baseline(nights, age_norm, config)

        if total_sleep_minutes(current) <= 0:
            logger.info("Night %r has no sleep duration; returning empty breakdown", current.id)
            return self._empty_breakdown(current, baseline, age_norm, calculated_at)

        source = resolve_source(current, config)
        targets = blend_targets(baseline, age_norm, config)
        weights = adjust_weights(WeightContext(current, profile, baseline, source, goal_minutes, config))
        context = ComponentContext(current, profile, baseline, age_norm, targets, source, config)
        scores = score_components(context)

        components = _component_results(scores, weights)
        aggregate = sum(result.contribution for result in components.values())

        efficiency_lost = (1.0 - scores[ComponentKey.EFFICIENCY].normalised) * weights[ComponentKey.EFFICIENCY] * 100
        age_correction = age_efficiency_correction(profile.age, efficiency_lost, config)
        score = aggregate + age_correction

        debt_penalty = chronic_debt_penalty(nights, goal_minutes, config)
        score *= 1.0 - debt_penalty

        quality = assess_data_quality(current, config)
        confidence = derive_confidence(quality, baseline.nights_analysed, current.confidence, config)
        score = shrink_toward_prior(score, shrinkage_retention(quality.factor, confidence, config), config)
        final_score = _round_half_up(clamp(score, 0.0, 100.0))

        logger.debug(
            "Aggregate %.2f, age correction %.2f, debt penalty %.3f, quality %.3f -> %d",
            aggregate,
            age_correction,
            debt_penalty,
            quality.factor,
            final_score,
        )

        adjustments = ScoreAdjustments(
            source_reliability_factor=quality.reliability_factor,
            data_completeness_factor=quality.completeness_factor,
            chronic_debt_penalty=debt_penalty,
            age_efficiency_correction=age_correction,
            chronotype_alignment_delta=self._chronotype_alignment_delta(context, weights),
        )
        flags = compute_flags(current, age_norm, baseline, goal_minutes, config)

        return ScoreBreakdown(
            score=final_score,
            confidence=confidence,
            components=components,
            weights=weights,
            adjustments=adjustments,
            baseline=baseline,
            age_norm=age_norm,
            flags=[str(flag) for flag in flags],
            calculated_at=calculated_at,
        )

    def _chronotype_alignment_delta(self, context: ComponentContext, weights: Mapping[ComponentKey, float]) -> float:
        """Score points gained or lost by using the chronotype's own bedtime target."""
        bedtime = bedtime_night_minutes(context.record)
        if bedtime is None:
            return 0.0
        timing = self.config.timing
        bedtime_clock = bedtime % MINUTES_PER_DAY
        own = timing_score_for_target(bedtime_clock, timing.target_for(context.profile.chronotype), self.config)
        default = timing_score_for_target(bedtime_clock, timing.intermediate_target, self.config)
        return (own - default) * weights[ComponentKey.TIMING] * 100

    def _empty_breakdown(
        self,
        record: SleepRecord,
        baseline: UserBaseline,
        age_norm: AgeNorm,
        calculated_at: datetime,
    ) -> ScoreBreakdown:
        """Breakdown for a night without any sleep duration."""
        weights = {key: 1.0 if key == ComponentKey.DURATION else 0.0 for key in ComponentKey}
        components = {
            key: ComponentResult(raw=0.0, norm=0.0, normalised=0.0, weight=weight, contribution=0.0)
            for key, weight in weights.items()
        }
        return ScoreBreakdown(
            score=0,
            confidence=ConfidenceLevel.LOW,
            components=components,
            weights=weights,
            adjustments=ScoreAdjustments(
                source_reliability_factor=resolve_source(record, self.config).factor,
                data_completeness_factor=self.config.completeness.min_factor,
                chronic_debt_penalty=0.0,
                age_efficiency_correction=0.0,
                chronotype_alignment_delta=0.0,
            ),
            baseline=baseline,
            age_norm=age_norm,
            flags=[str(ScoreFlag.DATA_INCOMPLETE), str(ScoreFlag.DATA_INCOMPLETE_STAGES)],
            calculated_at=calculated_at,
        )


def _component_results(
    scores: Mapping[ComponentKey, ComponentScore],
    weights: Mapping[ComponentKey, float],
) -> dict[ComponentKey, ComponentResult]:
    return {
        key: ComponentResult(
            raw=score.raw,
            norm=score.norm,
            normalised=score.normalised,
            weight=weights[key],
            contribution=score.normalised * weights[key] * 100,
        )
        for key, score in scores.items()
    }


def calculate_sleep_score(
    scoring_input: SleepScoringInput,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    now: datetime | None = None,
) -> ScoringOutcome:
    """Score one night with a throwaway engine bound to config."""
    return SleepScoringEngine(config).score(scoring_input, now=now)
