#!/usr/bin/env python3
"""
Command-line entry point.

Commands:
    score    Score one night from a SleepScoringInput JSON file
    batch    Score a night series, each night against the nights before it
    summary  Weekly or monthly summary of a scored night series

Exit status is 0 on success and 1 when input cannot be loaded or scored.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sleep_score_engine import __version__
from sleep_score_engine.app_bootstrap import setup_logging
from sleep_score_engine.config import get_settings
from sleep_score_engine.core.constants import SummaryPeriod
from sleep_score_engine.core.exceptions import DataLoadingError, ErrorCodes, SleepScoreError
from sleep_score_engine.core.scoring.engine import ScoringOutcome, SleepScoringEngine
from sleep_score_engine.services.batch_scoring_service import load_night_series, results_to_dataframe, score_night_series
from sleep_score_engine.services.cache_service import ScoreCache
from sleep_score_engine.services.summary_service import days_from_results, summarize

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sleep_score_engine.config import Settings

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    if not path.exists():
        msg = f"Input file not found: {path}"
        raise DataLoadingError(msg, ErrorCodes.FILE_NOT_FOUND, {"path": str(path)})
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Could not read JSON from {path}: {e}"
        raise DataLoadingError(msg, ErrorCodes.FILE_READ_ERROR, {"path": str(path)}) from e


def _write(text: str, output: Path | None) -> None:
    if output is None:
        sys.stdout.write(text + "\n")
    else:
        output.write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %s", output)


def cmd_score(input_path: Path, settings: Settings, include_timestamp: bool = True) -> int:
    """Score one night and print the breakdown (or the error) as JSON."""
    engine = SleepScoringEngine(settings.to_scoring_config())
    outcome = engine.score_payload(_read_json(input_path))
    _write(json.dumps(outcome.to_dict(include_timestamp=include_timestamp), indent=2), None)
    return 0 if outcome.ok else 1


def cmd_batch(input_path: Path, settings: Settings, output: Path | None, output_format: str) -> int:
    """Score a night series and write one result per night as JSON or CSV."""
    series = load_night_series(input_path)
    engine = SleepScoringEngine(settings.to_scoring_config())
    batch = score_night_series(
        series.nights,
        series.profile,
        cache=ScoreCache(engine, maxsize=settings.cache_max_entries),
        max_workers=settings.batch_max_workers,
        rejected=series.rejected,
    )

    if output_format == "csv":
        _write(results_to_dataframe(batch.results).to_csv(index=False).rstrip("\n"), output)
    else:
        payload = [{"id": record_id, **ScoringOutcome(error=error).to_dict()} for record_id, error in series.rejected]
        payload.extend({"id": result.record_id, **result.outcome.to_dict()} for result in batch.results)
        _write(json.dumps(payload, indent=2), output)

    return 0 if not batch.failed else 1


def cmd_summary(input_path: Path, settings: Settings, period: SummaryPeriod) -> int:
    """Score a night series and print its weekly or monthly summary."""
    series = load_night_series(input_path)
    engine = SleepScoringEngine(settings.to_scoring_config())
    batch = score_night_series(series.nights, series.profile, engine=engine, max_workers=settings.batch_max_workers)
    summary = summarize(days_from_results(batch.results), period)
    _write(json.dumps(summary.model_dump(mode="json", by_alias=True), indent=2), None)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sleep-score", description="Explainable 0-100 sleep quality scoring")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", help="Override SLEEP_SCORE_LOG_LEVEL (DEBUG, INFO, WARNING, ...)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Score command
    score_parser = subparsers.add_parser("score", help="Score one night")
    score_parser.add_argument("input", type=Path, help="SleepScoringInput JSON file")
    score_parser.add_argument("--no-timestamp", action="store_true", help="Omit calculatedAt from the output")

    # Batch command
    batch_parser = subparsers.add_parser("batch", help="Score a night series")
    batch_parser.add_argument("input", type=Path, help="JSON list of nights, or {nights, userProfile}")
    batch_parser.add_argument("--output", type=Path, help="Output file (default: stdout)")
    batch_parser.add_argument("--format", dest="output_format", choices=["json", "csv"], default="json", help="Output format")

    # Summary command
    summary_parser = subparsers.add_parser("summary", help="Weekly or monthly summary of a night series")
    summary_parser.add_argument("input", type=Path, help="JSON list of nights, or {nights, userProfile}")
    summary_parser.add_argument("--period", type=SummaryPeriod, choices=list(SummaryPeriod), default=SummaryPeriod.WEEK)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(args.log_level or settings.log_level)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "score":
            return cmd_score(args.input, settings, include_timestamp=not args.no_timestamp)
        if args.command == "batch":
            return cmd_batch(args.input, settings, args.output, args.output_format)
        if args.command == "summary":
            return cmd_summary(args.input, settings, args.period)
    except SleepScoreError as e:
        logger.error("Command failed: %s", e)
        sys.stderr.write(json.dumps({"ok": False, "error": e.to_dict()}) + "\n")
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
