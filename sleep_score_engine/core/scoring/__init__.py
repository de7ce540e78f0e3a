"""
Sleep scoring package - pure, deterministic night scoring.

Pipeline stages, one module each:
    norms       - age bucket and population norm resolution
    baseline    - rolling personal statistics from prior nights
    blending    - personal/population target blending
    weights     - ordered dynamic weight rules
    components  - the eight component scorers
    quality     - completeness, source reliability and confidence
    corrections - age efficiency correction, chronic debt, shrinkage
    flags       - interpretable flags
    engine      - orchestration and ScoreBreakdown assembly

Example Usage:
    ```python
    from sleep_score_engine.core.scoring import SleepScoringEngine, parse_scoring_input

    engine = SleepScoringEngine()
    outcome = engine.score(parse_scoring_input(payload))
    if outcome.ok:
        print(outcome.breakdown.score, outcome.breakdown.flags)
    ```
"""

from __future__ import annotations

# ============================================================================
# CONFIGURATION
# ============================================================================
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig, SourceReliability

# ============================================================================
# ENGINE
# ============================================================================
from .engine import ScoringOutcome, SleepScoringEngine, calculate_sleep_score, parse_scoring_input

# ============================================================================
# PIPELINE STAGES
# ============================================================================
from .baseline import build_baseline
from .blending import BlendedTargets, blend_targets
from .norms import resolve_age_bucket, resolve_age_norm
from .weights import WEIGHT_RULES, WeightRule, adjust_weights

# ============================================================================
# PUBLIC API
# ============================================================================
__all__ = [
    "DEFAULT_SCORING_CONFIG",
    "WEIGHT_RULES",
    "BlendedTargets",
    "ScoringConfig",
    "ScoringOutcome",
    "SleepScoringEngine",
    "SourceReliability",
    "WeightRule",
    "adjust_weights",
    "blend_targets",
    "build_baseline",
    "calculate_sleep_score",
    "parse_scoring_input",
    "resolve_age_bucket",
    "resolve_age_norm",
]
