"""
Baseline blending.

Merges the personal baseline and the population age norm into one target per
scored dimension:

    target = personal_share * personal + (1 - personal_share) * population

The personal share depends on history depth:

    - 0 nights: 0 (targets equal the age-norm ideals)
    - fewer than consistency_low_history.threshold_nights: nominal * keep_ratio
    - otherwise: the nominal BASELINE_BLEND personal share (0.6)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sleep_score_engine.schemas.models import AgeNorm, UserBaseline

    from .config import ScoringConfig


@dataclass(frozen=True)
class BlendedTargets:
    """Scoring targets after blending personal and population references."""

    personal_share: float
    duration_min: float
    deep_pct: float
    rem_pct: float
    efficiency: float
    waso_min: float


def personal_blend_share(nights_analysed: int, config: ScoringConfig) -> float:
    """Share of the personal baseline in every blended target."""
    if nights_analysed <= 0:
        return 0.0
    nominal = config.baseline_blend.personal
    low_history = config.dynamic_weights.consistency_low_history
    if nights_analysed < low_history.threshold_nights:
        return nominal * low_history.keep_ratio
    return nominal


def _blend(personal: float, population: float, share: float) -> float:
    return share * personal + (1.0 - share) * population


def blend_targets(baseline: UserBaseline, age_norm: AgeNorm, config: ScoringConfig) -> BlendedTargets:
    """Blend the personal baseline with the age norm for every normed dimension."""
    share = personal_blend_share(baseline.nights_analysed, config)
    return BlendedTargets(
        personal_share=share,
        duration_min=_blend(baseline.avg_duration_min, age_norm.ideal_duration_min, share),
        deep_pct=_blend(baseline.avg_deep_pct, age_norm.deep_pct_ideal, share),
        rem_pct=_blend(baseline.avg_rem_pct, age_norm.rem_pct_ideal, share),
        efficiency=_blend(baseline.avg_efficiency, age_norm.efficiency_ideal, share),
        waso_min=_blend(baseline.avg_waso_min, age_norm.waso_expected, share),
    )
