"""
Per-night derived metrics shared by the baseline builder, the component
scorers and the flag generator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sleep_score_engine.utils.time_utils import interval_minutes, night_minutes

if TYPE_CHECKING:
    from sleep_score_engine.schemas.models import SleepRecord


def total_sleep_minutes(record: SleepRecord) -> float:
    """Total sleep time (TST), 0 when unknown."""
    return record.duration_minutes or 0.0


def time_in_bed_minutes(record: SleepRecord) -> float | None:
    """
    Minutes between bedtime and wake-up.

    Uses the recorded interval (falling back to screen-time estimates) and,
    without one, TST plus awake minutes when awake minutes are known.
    """
    interval = interval_minutes(record.bedtime, record.wakeup)
    if interval is not None:
        return interval
    tst = total_sleep_minutes(record)
    if tst > 0 and record.awake_sleep_minutes is not None:
        return tst + record.awake_sleep_minutes
    return None


def sleep_efficiency(record: SleepRecord) -> float | None:
    """TST / time in bed as a ratio, capped at 1.0; None when not computable."""
    tst = total_sleep_minutes(record)
    time_in_bed = time_in_bed_minutes(record)
    if tst <= 0 or not time_in_bed:
        return None
    return min(1.0, tst / time_in_bed)


def stage_percentage(stage_minutes: float | None, record: SleepRecord) -> float | None:
    """Share of TST spent in a stage, in percent; None when the stage is unreported."""
    tst = total_sleep_minutes(record)
    if stage_minutes is None or tst <= 0:
        return None
    return stage_minutes / tst * 100.0


def bedtime_night_minutes(record: SleepRecord) -> float | None:
    return night_minutes(record.bedtime)


def wake_night_minutes(record: SleepRecord) -> float | None:
    return night_minutes(record.wakeup)


def has_timing_window(record: SleepRecord) -> bool:
    """True when both ends of the night are known."""
    return record.bedtime is not None and record.wakeup is not None
