"""Unit tests for completeness, reliability and confidence."""

from __future__ import annotations

import pytest

from sleep_score_engine.core.constants import ConfidenceLevel, DataSource
from sleep_score_engine.core.scoring.quality import (
    DataQuality,
    assess_data_quality,
    completeness_factor,
    derive_confidence,
)


def quality(completeness: float, reliability: float, stage_valid: bool = True, has_stages: bool = True) -> DataQuality:
    return DataQuality(
        completeness_factor=completeness,
        reliability_factor=reliability,
        stage_data_valid=stage_valid,
        has_all_stages=has_stages,
        has_timing=True,
    )


class TestCompletenessFactor:
    """Penalties for missing fields."""

    def test_complete_night(self, make_record, config) -> None:
        assert completeness_factor(make_record(), config) == 1.0

    def test_one_missing_stage(self, make_record, config) -> None:
        assert completeness_factor(make_record(rem=None), config) == pytest.approx(0.9)

    def test_missing_stage_and_times(self, make_record, config) -> None:
        assert completeness_factor(make_record(deep=None, bedtime=None), config) == pytest.approx(0.85)

    def test_floor(self, make_record, config) -> None:
        record = make_record(deep=None, rem=None, light=None, awake=None, bedtime=None)

        assert completeness_factor(record, config) == pytest.approx(0.6)

    def test_estimated_endpoints_count_as_times(self, make_record, config) -> None:
        plain = make_record(bedtime=None)
        estimated = make_record(
            bedtime=None,
            estimated_bedtime=make_record().start_time,
            estimated_wakeup=make_record().end_time,
        )

        assert completeness_factor(plain, config) == pytest.approx(0.95)
        assert completeness_factor(estimated, config) == 1.0


class TestAssessDataQuality:
    def test_source_reliability_applied(self, make_record, config) -> None:
        result = assess_data_quality(make_record(source=DataSource.HEALTH_CONNECT), config)

        assert result.reliability_factor == pytest.approx(0.95)
        assert result.factor == pytest.approx(0.95)
        assert result.stage_data_valid is True

    def test_usage_stats(self, make_record, config) -> None:
        result = assess_data_quality(make_record(source=DataSource.USAGE_STATS), config)

        assert result.reliability_factor <= 0.65
        assert result.stage_data_valid is False


class TestDeriveConfidence:
    """Confidence from quality, stage validity, history and sync confidence."""

    def test_high_quality_is_high(self, config) -> None:
        assert derive_confidence(quality(1.0, 1.0), 0, ConfidenceLevel.MEDIUM, config) == ConfidenceLevel.HIGH

    def test_low_sync_confidence_caps_at_medium(self, config) -> None:
        assert derive_confidence(quality(1.0, 1.0), 10, ConfidenceLevel.LOW, config) == ConfidenceLevel.MEDIUM

    def test_poor_quality_is_low(self, config) -> None:
        assert derive_confidence(quality(0.6, 0.85), 20, ConfidenceLevel.HIGH, config) == ConfidenceLevel.LOW

    def test_untrusted_source_without_stages_is_low(self, config) -> None:
        result = derive_confidence(quality(0.9, 0.85, stage_valid=False, has_stages=False), 20, ConfidenceLevel.HIGH, config)

        assert result == ConfidenceLevel.LOW

    def test_middling_quality_without_history_is_low(self, config) -> None:
        assert derive_confidence(quality(1.0, 0.7, stage_valid=False), 0, ConfidenceLevel.HIGH, config) == ConfidenceLevel.LOW

    def test_middling_quality_with_history_is_medium(self, config) -> None:
        assert derive_confidence(quality(1.0, 0.7, stage_valid=False), 10, ConfidenceLevel.HIGH, config) == ConfidenceLevel.MEDIUM
