"""Unit tests for post-aggregation corrections."""

from __future__ import annotations

import pytest

from sleep_score_engine.core.constants import ConfidenceLevel
from sleep_score_engine.core.scoring.corrections import (
    age_efficiency_correction,
    chronic_debt_penalty,
    shrink_toward_prior,
    shrinkage_retention,
)


class TestChronicDebtPenalty:
    """Rolling sleep-debt drag."""

    def test_seven_nights_an_hour_short_saturates(self, make_history, config) -> None:
        assert chronic_debt_penalty(make_history(7, duration=420), 480, config) == pytest.approx(0.12)

    def test_small_deficit_scales_with_hours(self, make_history, config) -> None:
        # 10 min short on average -> 1/6 h * 0.5
        assert chronic_debt_penalty(make_history(7, duration=470), 480, config) == pytest.approx(0.5 / 6)

    def test_needs_three_nights(self, make_history, config) -> None:
        assert chronic_debt_penalty(make_history(2, duration=300), 480, config) == 0.0

    def test_no_penalty_above_goal(self, make_history, config) -> None:
        assert chronic_debt_penalty(make_history(7, duration=500), 480, config) == 0.0

    def test_only_last_seven_nights(self, make_history, config) -> None:
        history = make_history(10, duration=200) + make_history(7, duration=480)

        assert chronic_debt_penalty(history, 480, config) == 0.0

    def test_zero_duration_nights_ignored(self, make_history, config) -> None:
        history = make_history(5, duration=0) + make_history(2, duration=420)

        assert chronic_debt_penalty(history, 480, config) == 0.0

    @pytest.mark.parametrize("duration", [0.5, 60, 240, 400])
    def test_never_exceeds_cap(self, make_history, config, duration: float) -> None:
        assert 0.0 <= chronic_debt_penalty(make_history(7, duration=duration), 480, config) <= 0.12


class TestAgeEfficiencyCorrection:
    """Efficiency points returned to older users."""

    @pytest.mark.parametrize("age", [None, 20, 40])
    def test_no_correction_up_to_40(self, config, age) -> None:
        assert age_efficiency_correction(age, 20.0, config) == 0.0

    def test_linear_above_40(self, config) -> None:
        assert age_efficiency_correction(50, 20.0, config) == pytest.approx(1.5)

    def test_capped_at_five_points(self, config) -> None:
        assert age_efficiency_correction(90, 20.0, config) == pytest.approx(5.0)

    def test_limited_to_points_lost(self, config) -> None:
        assert age_efficiency_correction(70, 0.8, config) == pytest.approx(0.8)


class TestShrinkage:
    """Pull toward the prior mean."""

    def test_retention_is_quality(self, config) -> None:
        assert shrinkage_retention(0.9, ConfidenceLevel.HIGH, config) == pytest.approx(0.9)

    def test_low_confidence_shrinks_further(self, config) -> None:
        assert shrinkage_retention(0.5, ConfidenceLevel.LOW, config) == pytest.approx(0.45)

    def test_shrink_toward_fifty(self, config) -> None:
        assert shrink_toward_prior(80.0, 0.5, config) == pytest.approx(65.0)
        assert shrink_toward_prior(20.0, 0.5, config) == pytest.approx(35.0)

    def test_full_retention_is_identity(self, config) -> None:
        assert shrink_toward_prior(87.0, 1.0, config) == pytest.approx(87.0)
