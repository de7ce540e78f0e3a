"""
Data completeness, source reliability and score confidence.

Completeness starts at 1.0, loses missing_stage_penalty for every missing
stage field (deep, REM, light, awake) and missing_time_penalty when the night
lacks a bedtime/wake-up pair, and is floored at min_factor.

Data quality = completeness * source reliability factor. It drives both the
confidence level and the shrinkage toward the prior mean.

Confidence:
    - low: quality < low_max_quality, or stage data is untrusted and stage
      fields are missing, or no personal history and quality below high
    - high: quality >= high_min_quality and the sync layer did not report low
    - medium: everything else
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sleep_score_engine.core.constants import ConfidenceLevel

from .components import clamp
from .night_metrics import has_timing_window

if TYPE_CHECKING:
    from sleep_score_engine.schemas.models import SleepRecord

    from .config import ScoringConfig, SourceReliability


@dataclass(frozen=True)
class DataQuality:
    """Completeness and reliability of one night's data."""

    completeness_factor: float
    reliability_factor: float
    stage_data_valid: bool
    has_all_stages: bool
    has_timing: bool

    @property
    def factor(self) -> float:
        """Combined multiplicative credibility of the night."""
        return self.completeness_factor * self.reliability_factor


def resolve_source(record: SleepRecord, config: ScoringConfig) -> SourceReliability:
    return config.source_reliability[record.source]


def completeness_factor(record: SleepRecord, config: ScoringConfig) -> float:
    penalties = config.completeness
    missing_stages = sum(1 for value in record.stage_minutes if value is None)
    factor = 1.0 - missing_stages * penalties.missing_stage_penalty
    if not has_timing_window(record):
        factor -= penalties.missing_time_penalty
    return clamp(factor, penalties.min_factor, 1.0)


def assess_data_quality(record: SleepRecord, config: ScoringConfig) -> DataQuality:
    """Completeness and source reliability of the night being scored."""
    source = resolve_source(record, config)
    return DataQuality(
        completeness_factor=completeness_factor(record, config),
        reliability_factor=source.factor,
        stage_data_valid=source.stage_data_valid,
        has_all_stages=record.has_all_stages,
        has_timing=has_timing_window(record),
    )


def derive_confidence(
    quality: DataQuality,
    nights_analysed: int,
    record_confidence: ConfidenceLevel,
    config: ScoringConfig,
) -> ConfidenceLevel:
    """
    Confidence in the score as a pure function of data quality, stage
    validity, history depth and the sync layer's own confidence.
    """
    cutoffs = config.confidence
    if quality.factor < cutoffs.low_max_quality:
        return ConfidenceLevel.LOW
    if not quality.stage_data_valid and not quality.has_all_stages:
        return ConfidenceLevel.LOW

    if quality.factor >= cutoffs.high_min_quality:
        if record_confidence == ConfidenceLevel.LOW:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.HIGH

    if nights_analysed == 0:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.MEDIUM
