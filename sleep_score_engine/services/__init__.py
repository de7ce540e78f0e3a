# Services package for the Sleep Score Engine
#
# Names are imported lazily to keep pandas off the engine's import path:
#   from sleep_score_engine.services import ScoreCache
#   from sleep_score_engine.services.batch_scoring_service import score_night_series

__all__ = [
    # Batch scoring
    "BatchResult",
    "NightResult",
    "NightSeries",
    "load_night_series",
    "results_to_dataframe",
    "score_night_series",
    # Caching
    "LRUCache",
    "ScoreCache",
    # Summaries
    "days_from_results",
    "monthly_summary",
    "summarize",
    "weekly_summary",
]

_BATCH_NAMES = {
    "BatchResult",
    "NightResult",
    "NightSeries",
    "load_night_series",
    "results_to_dataframe",
    "score_night_series",
}
_CACHE_NAMES = {"LRUCache", "ScoreCache"}
_SUMMARY_NAMES = {"days_from_results", "monthly_summary", "summarize", "weekly_summary"}


def __getattr__(name: str):
    """Lazy import of service names."""
    if name in _BATCH_NAMES:
        from sleep_score_engine.services import batch_scoring_service

        return getattr(batch_scoring_service, name)
    if name in _CACHE_NAMES:
        from sleep_score_engine.services import cache_service

        return getattr(cache_service, name)
    if name in _SUMMARY_NAMES:
        from sleep_score_engine.services import summary_service

        return getattr(summary_service, name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
