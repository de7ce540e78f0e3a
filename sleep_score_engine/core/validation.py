#!/usr/bin/env python3
"""
Input Validation Module for the Sleep Score Engine
Rejects non-numeric and out-of-domain primitives before scoring.

Missing values are never an error here: absence is handled by the engine
through completeness and confidence. Only values that are present and
impossible (negative durations, NaN, ages outside a human lifespan) are
rejected. Unknown sources and non-numeric fields never get this far: the
schema rejects them, and invalid_input_from_pydantic reports them.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import TYPE_CHECKING, Any

import pydantic

from sleep_score_engine.core.exceptions import ErrorCodes, InvalidInputError

if TYPE_CHECKING:
    from sleep_score_engine.schemas.models import SleepRecord, SleepScoringInput, UserProfile


def invalid_input_from_pydantic(error: pydantic.ValidationError, prefix: str = "") -> InvalidInputError:
    """
    Convert a pydantic schema error into InvalidInputError(INVALID_FORMAT).

    The message names the first failing field, prefixed with prefix when given.
    """
    details = error.errors()
    first = details[0] if details else {}
    location = ".".join(str(part) for part in (prefix, *first.get("loc", ())) if part != "")
    msg = f"Invalid scoring input at '{location}': {first.get('msg', str(error))}"
    return InvalidInputError(msg, ErrorCodes.INVALID_FORMAT, {"field": location, "errors": error.error_count()})


class InputValidator:
    """Domain validation for scoring input."""

    MAX_NIGHT_MINUTES = 1440
    MAX_AGE_YEARS = 130
    STAGE_FIELDS = (
        "deep_sleep_minutes",
        "rem_sleep_minutes",
        "light_sleep_minutes",
        "awake_sleep_minutes",
    )

    @staticmethod
    def validate_minutes(value: Any, field_name: str, maximum: float | None = MAX_NIGHT_MINUTES) -> None:
        """
        Validate an optional minute count.

        Raises:
            InvalidInputError: If the value is present and not a finite number in [0, maximum]

        """
        if value is None:
            return

        if isinstance(value, bool) or not isinstance(value, Real):
            msg = f"{field_name} must be numeric, got {type(value).__name__}"
            raise InvalidInputError(msg, ErrorCodes.INVALID_FORMAT, {"field": field_name})

        if not math.isfinite(value):
            msg = f"{field_name} must be finite, got {value}"
            raise InvalidInputError(msg, ErrorCodes.INVALID_INPUT, {"field": field_name, "value": str(value)})

        if value < 0:
            msg = f"{field_name} cannot be negative: {value}"
            raise InvalidInputError(msg, ErrorCodes.OUT_OF_RANGE, {"field": field_name, "value": value})

        if maximum is not None and value > maximum:
            msg = f"{field_name} exceeds {maximum} minutes: {value}"
            raise InvalidInputError(msg, ErrorCodes.OUT_OF_RANGE, {"field": field_name, "value": value})

    @staticmethod
    def validate_record(record: SleepRecord, prefix: str = "current") -> None:
        """Validate every numeric field of one night."""
        InputValidator.validate_minutes(record.duration_minutes, f"{prefix}.duration_minutes")
        for stage_field in InputValidator.STAGE_FIELDS:
            InputValidator.validate_minutes(getattr(record, stage_field), f"{prefix}.{stage_field}")

        summary = record.screen_time_summary
        if summary is not None:
            InputValidator.validate_minutes(
                summary.total_minutes_last_2_hours,
                f"{prefix}.screen_time_summary.total_minutes_last_2_hours",
                maximum=120,
            )
            InputValidator.validate_minutes(
                summary.last_app_used_minutes_before_bed,
                f"{prefix}.screen_time_summary.last_app_used_minutes_before_bed",
                maximum=None,
            )

    @staticmethod
    def validate_profile(profile: UserProfile | None) -> None:
        """Validate age and sleep goal when present."""
        if profile is None:
            return

        age = profile.age
        if age is not None:
            if isinstance(age, bool) or not isinstance(age, int):
                msg = f"user_profile.age must be an integer, got {type(age).__name__}"
                raise InvalidInputError(msg, ErrorCodes.INVALID_FORMAT, {"field": "user_profile.age"})
            if not 0 <= age <= InputValidator.MAX_AGE_YEARS:
                msg = f"user_profile.age out of range: {age}"
                raise InvalidInputError(msg, ErrorCodes.OUT_OF_RANGE, {"field": "user_profile.age", "value": age})

        goal = profile.sleep_goal_minutes
        InputValidator.validate_minutes(goal, "user_profile.sleep_goal_minutes")
        if goal is not None and goal == 0:
            msg = "user_profile.sleep_goal_minutes must be positive"
            raise InvalidInputError(msg, ErrorCodes.OUT_OF_RANGE, {"field": "user_profile.sleep_goal_minutes"})

    @staticmethod
    def validate_scoring_input(scoring_input: SleepScoringInput) -> None:
        """
        Validate the night being scored and the profile.

        History nights are not validated here; the baseline builder drops
        invalid history nights individually.

        Raises:
            InvalidInputError: On the first invalid field

        """
        InputValidator.validate_record(scoring_input.current)
        InputValidator.validate_profile(scoring_input.user_profile)

    @staticmethod
    def is_valid_record(record: SleepRecord) -> bool:
        """Return True when the record passes validate_record."""
        try:
            InputValidator.validate_record(record, prefix="history")
        except InvalidInputError:
            return False
        return True
