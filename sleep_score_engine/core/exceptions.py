#!/usr/bin/env python3
"""
Custom Exception Classes for the Sleep Score Engine
Provides structured error handling with specific exception types.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class SleepScoreError(Exception):
    """Base exception for all sleep score engine errors."""

    def __init__(self, message: str, error_code: str | None = None, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable error payload."""
        return {
            "error": type(self).__name__,
            "code": str(self.error_code) if self.error_code else None,
            "message": self.message,
            "context": self.context,
        }


class ValidationError(SleepScoreError):
    """Raised when input validation fails."""


class InvalidInputError(ValidationError):
    """Raised when a scoring input holds a non-numeric or out-of-domain value."""


class ConfigurationError(SleepScoreError):
    """Raised when configuration is invalid."""


class DataLoadingError(SleepScoreError):
    """Raised when nights cannot be loaded from a file."""


# Error codes for specific error types
class ErrorCodes(StrEnum):
    """Standardized error codes."""

    # Validation errors
    INVALID_INPUT = "INVALID_INPUT"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    INVALID_FORMAT = "INVALID_FORMAT"
    MISSING_REQUIRED = "MISSING_REQUIRED"

    # Configuration errors
    CONFIG_INVALID = "CONFIG_INVALID"

    # File errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_READ_ERROR = "FILE_READ_ERROR"
