"""
Batch scoring of a night series.

Each night is scored against the nights recorded before it, so a series
replays how the score would have evolved day by day. Nights that fail
validation, or that do not even parse, are collected and reported; they never
abort the batch.

Example usage:
    >>> from sleep_score_engine.services.batch_scoring_service import (
    ...     load_night_series, results_to_dataframe, score_night_series,
    ... )
    >>>
    >>> series = load_night_series("./nights.json")
    >>> batch = score_night_series(series.nights, series.profile, max_workers=4, rejected=series.rejected)
    >>> df = results_to_dataframe(batch.results)
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pandas as pd
import pydantic

from sleep_score_engine.core.constants import ComponentKey
from sleep_score_engine.core.exceptions import DataLoadingError, ErrorCodes, InvalidInputError
from sleep_score_engine.core.scoring.engine import ScoringOutcome, SleepScoringEngine
from sleep_score_engine.core.validation import invalid_input_from_pydantic
from sleep_score_engine.schemas.models import SleepRecord, SleepScoringInput, UserProfile

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sleep_score_engine.services.cache_service import ScoreCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NightResult:
    """Outcome of scoring one night of a series."""

    record: SleepRecord
    outcome: ScoringOutcome

    @property
    def record_id(self) -> str:
        return self.record.id

    @property
    def night_date(self) -> dt.date | None:
        return night_date(self.record)


@dataclass
class BatchResult:
    """Scored nights plus the (record id, error message) of every failed night."""

    results: list[NightResult] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def succeeded(self) -> list[NightResult]:
        return [result for result in self.results if result.outcome.ok]


def night_date(record: SleepRecord) -> dt.date | None:
    """Calendar date of a night, falling back to its bedtime or wake-up."""
    if record.date is not None:
        return record.date
    for timestamp in (record.bedtime, record.wakeup):
        if timestamp is not None:
            return timestamp.date()
    return None


def sort_chronologically(nights: Sequence[SleepRecord]) -> list[SleepRecord]:
    """Order nights by date; undated nights keep their relative position at the start."""
    return sorted(nights, key=lambda record: night_date(record) or dt.date.min)


@dataclass
class NightSeries:
    """Nights loaded from a file, plus the (record id, error) of every night that did not parse."""

    nights: list[SleepRecord] = field(default_factory=list)
    profile: UserProfile | None = None
    rejected: list[tuple[str, InvalidInputError]] = field(default_factory=list)


def load_night_series(path: str | Path) -> NightSeries:
    """
    Load nights from a JSON file.

    Accepts either a list of SleepRecord objects or an object of the form
    {"nights": [...], "userProfile": {...}}. Each night is parsed on its own:
    a night that does not match the schema is rejected without losing the
    others.

    Raises:
        DataLoadingError: If the file is missing, unreadable or not a night series

    """
    file_path = Path(path)
    if not file_path.exists():
        msg = f"Night series file not found: {file_path}"
        raise DataLoadingError(msg, ErrorCodes.FILE_NOT_FOUND, {"path": str(file_path)})

    try:
        payload: Any = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Could not read night series from {file_path}: {e}"
        raise DataLoadingError(msg, ErrorCodes.FILE_READ_ERROR, {"path": str(file_path)}) from e

    raw_profile = None
    if isinstance(payload, dict):
        raw_profile = payload.get("userProfile", payload.get("user_profile"))
        payload = payload.get("nights", [])

    if not isinstance(payload, list):
        msg = f"Invalid night series in {file_path}: expected a list of nights, got {type(payload).__name__}"
        raise DataLoadingError(msg, ErrorCodes.INVALID_FORMAT, {"path": str(file_path)})

    try:
        profile = UserProfile.model_validate(raw_profile) if raw_profile is not None else None
    except pydantic.ValidationError as e:
        msg = f"Invalid user profile in {file_path}: {invalid_input_from_pydantic(e, 'userProfile').message}"
        raise DataLoadingError(msg, ErrorCodes.INVALID_FORMAT, {"path": str(file_path)}) from e

    series = NightSeries(profile=profile)
    for index, item in enumerate(payload):
        try:
            series.nights.append(SleepRecord.model_validate(item))
        except pydantic.ValidationError as e:
            error = invalid_input_from_pydantic(e, f"nights.{index}")
            record_id = str(item.get("id", "")) if isinstance(item, dict) else ""
            logger.warning("Rejected night %d (id=%r): %s", index, record_id, error)
            series.rejected.append((record_id, error))

    logger.info("Loaded %d nights from %s (%d rejected)", len(series.nights), file_path, len(series.rejected))
    return series


def _score_one(
    scorer: SleepScoringEngine | ScoreCache,
    scoring_input: SleepScoringInput,
    now: dt.datetime | None,
) -> ScoringOutcome:
    return scorer.score(scoring_input, now=now)


def score_night_series(
    nights: Sequence[SleepRecord],
    profile: UserProfile | None = None,
    engine: SleepScoringEngine | None = None,
    cache: ScoreCache | None = None,
    max_workers: int = 1,
    now: dt.datetime | None = None,
    rejected: Sequence[tuple[str, InvalidInputError]] = (),
) -> BatchResult:
    """
    Score every night of a series against the nights before it.

    Args:
        nights: Nights in any order; sorted chronologically before scoring
        profile: Optional profile shared by every night
        engine: Engine to score with; defaults to an engine with the default config
        cache: Optional score cache, used instead of the engine when given
        max_workers: Thread count; 1 scores sequentially
        now: Timestamp stamped into every breakdown
        rejected: Nights that failed to parse, reported as failures ahead of the scored nights

    Returns:
        BatchResult with one NightResult per night, in chronological order
        and one failure entry per rejected or invalid night

    """
    scorer: SleepScoringEngine | ScoreCache = cache or engine or SleepScoringEngine()
    ordered = sort_chronologically(nights)
    inputs = [
        SleepScoringInput(current=record, history=ordered[:index], user_profile=profile)
        for index, record in enumerate(ordered)
    ]
    logger.info("Scoring %d nights with %d worker(s)", len(inputs), max_workers)

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            outcomes = list(executor.map(lambda item: _score_one(scorer, item, now), inputs))
    else:
        outcomes = [_score_one(scorer, item, now) for item in inputs]

    batch = BatchResult(failed=[(record_id, str(error)) for record_id, error in rejected])
    for record, outcome in zip(ordered, outcomes, strict=True):
        batch.results.append(NightResult(record=record, outcome=outcome))
        if not outcome.ok:
            error_msg = str(outcome.error) if outcome.error else "unknown error"
            batch.failed.append((record.id, error_msg))

    if batch.failed:
        logger.warning(
            "Batch scoring completed with %d failures out of %d nights:",
            len(batch.failed),
            len(ordered) + len(rejected),
        )
        for record_id, error in batch.failed:
            logger.warning("  - %s: %s", record_id or "<no id>", error)
    else:
        logger.info("Successfully scored all %d nights", len(ordered))

    return batch


def results_to_dataframe(results: Sequence[NightResult]) -> pd.DataFrame:
    """
    Flatten night results into one row per night.

    Columns: id, date, score, confidence, flags (semicolon separated), error,
    one normalised and one weight column per component, and the adjustment
    factors. Failed nights keep their id, date and error with empty scores.
    """
    rows = []
    for result in results:
        row: dict[str, Any] = {"id": result.record_id, "date": result.night_date}
        breakdown = result.outcome.breakdown
        if breakdown is None:
            row["error"] = str(result.outcome.error) if result.outcome.error else None
            rows.append(row)
            continue

        row.update(
            {
                "score": breakdown.score,
                "confidence": str(breakdown.confidence),
                "flags": ";".join(breakdown.flags),
                "error": None,
            }
        )
        for key in ComponentKey:
            component = breakdown.components[key]
            row[f"{key}_normalised"] = component.normalised
            row[f"{key}_weight"] = component.weight
        row.update(breakdown.adjustments.model_dump())
        rows.append(row)

    df = pd.DataFrame(rows)
    if not df.empty:
        df["date"] = pd.to_datetime(df["date"])
    if "score" in df.columns:
        df["score"] = df["score"].astype("Int64")
    return df
