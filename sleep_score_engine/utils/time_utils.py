"""
Clock arithmetic for bedtimes and wake times.

Bedtimes are compared on a continuous "night axis": clock times before noon
are shifted by a full day, so 23:30 maps to 1410 and 00:30 maps to 1470 and the
two are 60 minutes apart rather than 1380.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

MINUTES_PER_DAY = 1440
NOON_MINUTES = 720


def clock_minutes(value: datetime) -> int:
    """Minutes since local midnight (0-1439), using the timestamp's own wall clock."""
    return value.hour * 60 + value.minute


def to_night_axis(minutes: float) -> float:
    """Shift a clock time (0-1439) onto the night axis (720-2159)."""
    return minutes + MINUTES_PER_DAY if minutes < NOON_MINUTES else minutes


def night_minutes(value: datetime | None) -> float | None:
    """Night-axis minutes for a timestamp, or None when absent."""
    if value is None:
        return None
    return to_night_axis(clock_minutes(value))


def circular_diff_minutes(value: float, target: float) -> float:
    """Shortest distance between two clock times around the 24h dial."""
    direct = abs(value - target) % MINUTES_PER_DAY
    return min(direct, MINUTES_PER_DAY - direct)


def interval_minutes(start: datetime | None, end: datetime | None) -> float | None:
    """
    Length of the [start, end] interval in minutes.

    Returns None when either endpoint is missing, when only one endpoint is
    timezone-aware, or when the interval is empty or reversed.
    """
    if start is None or end is None:
        return None
    if (start.tzinfo is None) != (end.tzinfo is None):
        return None
    minutes = (end - start).total_seconds() / 60.0
    return minutes if minutes > 0 else None
