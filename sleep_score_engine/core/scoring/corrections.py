"""
Post-aggregation corrections.

Applied in this order to the aggregate of component contributions:

    1. Age efficiency correction: older users get back part of the efficiency
       points they lost, 0.15 points per year over 40, capped at 5 points.
    2. Chronic debt: mean nightly deficit below the goal over the last 7
       nights, in hours, scaled by 0.5 and capped at 0.12; applied as
       score * (1 - penalty). Needs at least 3 analysable nights.
    3. Confidence shrinkage: score pulled toward the prior mean (50),
       keeping only data_quality of the distance; low confidence keeps a
       further 0.9 of that.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sleep_score_engine.core.constants import ConfidenceLevel

from .night_metrics import total_sleep_minutes

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sleep_score_engine.schemas.models import SleepRecord

    from .config import ScoringConfig

logger = logging.getLogger(__name__)


def chronic_debt_penalty(history: Sequence[SleepRecord], goal_minutes: float, config: ScoringConfig) -> float:
    """
    Rolling sleep-debt drag in [0, max_penalty].

    Args:
        history: Prior nights, oldest first
        goal_minutes: Nightly sleep goal
        config: Scoring configuration

    Returns:
        Penalty fraction; 0 when fewer than min_history_nights recent nights have data

    """
    debt = config.chronic_debt
    recent = [record for record in history[-debt.recent_window_nights :] if total_sleep_minutes(record) > 0]
    if len(recent) < debt.min_history_nights:
        return 0.0

    mean_tst = sum(total_sleep_minutes(record) for record in recent) / len(recent)
    deficit_hours = max(0.0, goal_minutes - mean_tst) / 60.0
    penalty = min(debt.max_penalty, deficit_hours * debt.deficit_scale)
    logger.debug("Chronic debt: %d nights, mean deficit %.2f h, penalty %.3f", len(recent), deficit_hours, penalty)
    return penalty


def age_efficiency_correction(age: int | None, efficiency_points_lost: float, config: ScoringConfig) -> float:
    """
    Score points returned for age-related efficiency loss.

    Never more than the efficiency points the night actually lost.
    """
    correction = config.age_efficiency_correction
    if age is None or age <= correction.age_start:
        return 0.0
    points = min(correction.max_correction_points, (age - correction.age_start) * correction.points_per_year)
    return max(0.0, min(points, efficiency_points_lost))


def shrinkage_retention(data_quality: float, confidence: ConfidenceLevel, config: ScoringConfig) -> float:
    """Fraction of the distance from the prior mean that survives shrinkage."""
    retention = data_quality
    if confidence == ConfidenceLevel.LOW:
        retention *= config.shrinkage.low_confidence_extra_factor
    return retention


def shrink_toward_prior(score: float, retention: float, config: ScoringConfig) -> float:
    prior = config.shrinkage.prior_mean
    return prior + (score - prior) * retention
