"""Unit tests for interpretable flags."""

from __future__ import annotations

import pytest

from sleep_score_engine.core.constants import DataSource, ScoreFlag
from sleep_score_engine.core.scoring.baseline import empty_baseline
from sleep_score_engine.core.scoring.flags import compute_flags
from sleep_score_engine.core.scoring.norms import resolve_age_norm


@pytest.fixture
def norm(config):
    return resolve_age_norm(30, config)


@pytest.fixture
def make_baseline(norm, config):
    def _make(nights: int = 0, median: float = 1380.0, spread: float = 0.0):
        return empty_baseline(norm, config).model_copy(
            update={
                "nights_analysed": nights,
                "median_bedtime_minutes_from_midnight": median,
                "bedtime_variance_minutes": spread,
            }
        )

    return _make


class TestDurationFlags:
    def test_healthy_night_has_no_flags(self, make_record, make_baseline, norm, config) -> None:
        assert compute_flags(make_record(), norm, make_baseline(), 480, config) == []

    def test_short_night(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(duration=280), norm, make_baseline(), 480, config)

        assert ScoreFlag.DURATION_BELOW_5H in flags
        assert ScoreFlag.DURATION_BELOW_GOAL in flags

    def test_below_goal_only(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(duration=370, deep=70, rem=70), norm, make_baseline(), 480, config)

        assert ScoreFlag.DURATION_BELOW_5H not in flags
        assert ScoreFlag.DURATION_BELOW_GOAL in flags


class TestStageFlags:
    def test_low_deep_and_rem(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(deep=60, rem=60), norm, make_baseline(), 480, config)

        assert ScoreFlag.DEEP_LOW in flags
        assert ScoreFlag.REM_LOW in flags

    def test_missing_stages_flagged_incomplete(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(deep=None, rem=None), norm, make_baseline(), 480, config)

        assert ScoreFlag.DATA_INCOMPLETE_STAGES in flags
        assert ScoreFlag.DEEP_LOW not in flags

    def test_zero_deep_counts_as_incomplete(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(deep=0), norm, make_baseline(), 480, config)

        assert ScoreFlag.DATA_INCOMPLETE_STAGES in flags


class TestWasoFlags:
    def test_awake_share_and_acceptable(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(awake=50), norm, make_baseline(), 480, config)

        assert ScoreFlag.AWAKE_HIGH in flags
        assert ScoreFlag.WASO_ABOVE_ACCEPTABLE in flags
        assert ScoreFlag.WASO_SEVERE not in flags

    def test_severe(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(awake=75), norm, make_baseline(), 480, config)

        assert ScoreFlag.WASO_SEVERE in flags


class TestBedtimeFlags:
    """Bedtime flags need five nights of history."""

    def test_late_bedtime(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(bedtime=(1, 0)), norm, make_baseline(nights=10), 480, config)

        assert ScoreFlag.LATE_BEDTIME in flags
        assert ScoreFlag.EXTREME_BEDTIME_SHIFT not in flags

    def test_extreme_shift(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(bedtime=(3, 0)), norm, make_baseline(nights=10), 480, config)

        assert ScoreFlag.LATE_BEDTIME in flags
        assert ScoreFlag.EXTREME_BEDTIME_SHIFT in flags

    def test_social_jet_lag(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(), norm, make_baseline(nights=10, spread=120), 480, config)

        assert ScoreFlag.SOCIAL_JET_LAG in flags

    def test_thin_history_suppresses_bedtime_flags(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(bedtime=(3, 0)), norm, make_baseline(nights=4, spread=120), 480, config)

        assert ScoreFlag.LATE_BEDTIME not in flags
        assert ScoreFlag.SOCIAL_JET_LAG not in flags


class TestSourceFlags:
    @pytest.mark.parametrize("source", [DataSource.USAGE_STATS, DataSource.DIGITAL_WELLBEING])
    def test_low_reliability_sources(self, make_record, make_baseline, norm, config, source) -> None:
        flags = compute_flags(make_record(source=source), norm, make_baseline(), 480, config)

        assert ScoreFlag.SOURCE_LOW_RELIABILITY in flags

    def test_manual_is_not_low_reliability(self, make_record, make_baseline, norm, config) -> None:
        flags = compute_flags(make_record(source=DataSource.MANUAL), norm, make_baseline(), 480, config)

        assert ScoreFlag.SOURCE_LOW_RELIABILITY not in flags
