#!/usr/bin/env python3
"""
Unit tests for InputValidator.

Tests domain validation of minute counts, nights and profiles.
"""

from __future__ import annotations

import pydantic
import pytest

from sleep_score_engine.core.exceptions import ErrorCodes, InvalidInputError, ValidationError
from sleep_score_engine.core.validation import InputValidator, invalid_input_from_pydantic
from sleep_score_engine.schemas.models import ScreenTimeSummary, SleepRecord, SleepScoringInput, UserProfile

# ============================================================================
# TestValidateMinutes - Primitive Validation
# ============================================================================


class TestValidateMinutes:
    """Tests for validate_minutes method."""

    @pytest.mark.parametrize("value", [None, 0, 0.5, 460, 1440])
    def test_accepts_valid_values(self, value):
        """Valid or absent values pass silently."""
        InputValidator.validate_minutes(value, "duration")

    def test_rejects_negative(self):
        """OUT_OF_RANGE for negative minutes."""
        with pytest.raises(InvalidInputError) as exc_info:
            InputValidator.validate_minutes(-1, "duration")
        assert exc_info.value.error_code == ErrorCodes.OUT_OF_RANGE
        assert exc_info.value.context["field"] == "duration"

    def test_rejects_more_than_a_day(self):
        """OUT_OF_RANGE above the maximum."""
        with pytest.raises(InvalidInputError) as exc_info:
            InputValidator.validate_minutes(1441, "duration")
        assert exc_info.value.error_code == ErrorCodes.OUT_OF_RANGE

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_rejects_non_finite(self, value):
        """INVALID_INPUT for NaN and infinity."""
        with pytest.raises(InvalidInputError) as exc_info:
            InputValidator.validate_minutes(value, "duration")
        assert exc_info.value.error_code == ErrorCodes.INVALID_INPUT

    @pytest.mark.parametrize("value", ["460", True, [460]])
    def test_rejects_non_numeric(self, value):
        """INVALID_FORMAT for strings, booleans and containers."""
        with pytest.raises(InvalidInputError) as exc_info:
            InputValidator.validate_minutes(value, "duration")
        assert exc_info.value.error_code == ErrorCodes.INVALID_FORMAT

    def test_unbounded_maximum(self):
        """maximum=None disables the upper bound."""
        InputValidator.validate_minutes(5000, "minutes", maximum=None)

    def test_invalid_input_is_validation_error(self):
        """InvalidInputError is caught by ValidationError handlers."""
        with pytest.raises(ValidationError):
            InputValidator.validate_minutes(-5, "duration")


# ============================================================================
# TestValidateRecord - Night Validation
# ============================================================================


class TestValidateRecord:
    """Tests for validate_record method."""

    def test_accepts_complete_night(self, make_record):
        InputValidator.validate_record(make_record())

    def test_accepts_missing_fields(self, make_record):
        """Absence is never an error."""
        InputValidator.validate_record(make_record(duration=None, deep=None, rem=None, light=None, awake=None, bedtime=None))

    def test_field_name_carries_prefix(self, make_record):
        with pytest.raises(InvalidInputError) as exc_info:
            InputValidator.validate_record(make_record(light=-3), prefix="history[2]")
        assert exc_info.value.context["field"] == "history[2].light_sleep_minutes"

    def test_screen_time_limited_to_two_hours(self, make_record):
        record = make_record(screen_time_summary=ScreenTimeSummary(total_minutes_last_2_hours=150))

        with pytest.raises(InvalidInputError):
            InputValidator.validate_record(record)

    def test_is_valid_record(self, make_record):
        assert InputValidator.is_valid_record(make_record())
        assert not InputValidator.is_valid_record(make_record(deep=-1))


# ============================================================================
# TestValidateProfile - Profile Validation
# ============================================================================


class TestValidateProfile:
    """Tests for validate_profile method."""

    def test_none_profile_is_valid(self):
        InputValidator.validate_profile(None)

    def test_empty_profile_is_valid(self):
        InputValidator.validate_profile(UserProfile())

    @pytest.mark.parametrize("age", [-1, 131])
    def test_rejects_impossible_age(self, age):
        with pytest.raises(InvalidInputError) as exc_info:
            InputValidator.validate_profile(UserProfile(age=age))
        assert exc_info.value.error_code == ErrorCodes.OUT_OF_RANGE

    def test_rejects_zero_goal(self):
        with pytest.raises(InvalidInputError):
            InputValidator.validate_profile(UserProfile(sleep_goal_minutes=0))


class TestValidateScoringInput:
    """Only the current night and profile are validated."""

    def test_invalid_history_is_not_fatal(self, make_record):
        scoring_input = SleepScoringInput(current=make_record(), history=[make_record(deep=-1)])

        InputValidator.validate_scoring_input(scoring_input)

    def test_invalid_current_raises(self, make_record):
        with pytest.raises(InvalidInputError):
            InputValidator.validate_scoring_input(SleepScoringInput(current=make_record(duration=-1)))


# ============================================================================
# TestInvalidInputFromPydantic - Schema Error Conversion
# ============================================================================


class TestInvalidInputFromPydantic:
    """Schema errors become InvalidInputError naming the failing field."""

    def test_unknown_source(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            SleepRecord.model_validate({"durationMinutes": 400, "source": "smart_ring"})

        error = invalid_input_from_pydantic(exc_info.value, prefix="history.1")

        assert error.error_code == ErrorCodes.INVALID_FORMAT
        assert error.context["field"] == "history.1.source"
        assert "history.1.source" in str(error)

    def test_without_prefix(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            SleepRecord.model_validate({"durationMinutes": "abc", "source": "wearable"})

        error = invalid_input_from_pydantic(exc_info.value)

        assert error.context["field"] == "durationMinutes"
