"""Unit tests for personal/population target blending."""

from __future__ import annotations

import pytest

from sleep_score_engine.core.scoring.baseline import empty_baseline
from sleep_score_engine.core.scoring.blending import blend_targets, personal_blend_share
from sleep_score_engine.core.scoring.norms import resolve_age_norm


@pytest.fixture
def norm(config):
    return resolve_age_norm(30, config)


class TestPersonalBlendShare:
    """Personal share grows with history depth."""

    def test_no_history_is_pure_population(self, config) -> None:
        assert personal_blend_share(0, config) == 0.0

    @pytest.mark.parametrize("nights", [1, 2, 3, 4])
    def test_thin_history_is_damped(self, config, nights: int) -> None:
        assert personal_blend_share(nights, config) == pytest.approx(0.06)

    @pytest.mark.parametrize("nights", [5, 14, 30])
    def test_nominal_share_from_five_nights(self, config, nights: int) -> None:
        assert personal_blend_share(nights, config) == pytest.approx(0.6)


class TestBlendTargets:
    """Targets combine baseline and norm."""

    def test_zero_nights_targets_equal_norm(self, norm, config) -> None:
        targets = blend_targets(empty_baseline(norm, config), norm, config)

        assert targets.personal_share == 0.0
        assert targets.duration_min == norm.ideal_duration_min
        assert targets.deep_pct == norm.deep_pct_ideal
        assert targets.rem_pct == norm.rem_pct_ideal
        assert targets.efficiency == norm.efficiency_ideal
        assert targets.waso_min == norm.waso_expected

    def test_deep_history_weights_personal_sixty_percent(self, norm, config) -> None:
        baseline = empty_baseline(norm, config).model_copy(update={"avg_duration_min": 400.0, "nights_analysed": 10})

        targets = blend_targets(baseline, norm, config)

        assert targets.duration_min == pytest.approx(0.6 * 400 + 0.4 * 460)

    def test_thin_history_barely_moves_targets(self, norm, config) -> None:
        baseline = empty_baseline(norm, config).model_copy(update={"avg_duration_min": 400.0, "nights_analysed": 2})

        targets = blend_targets(baseline, norm, config)

        assert targets.duration_min == pytest.approx(0.06 * 400 + 0.94 * 460)
