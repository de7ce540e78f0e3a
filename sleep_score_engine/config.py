"""
Runtime configuration using Pydantic Settings.

Loads from environment variables (prefix SLEEP_SCORE_) with .env file support.
Scoring constants are not settings: Settings only overrides the few runtime
knobs and builds the immutable ScoringConfig from them.
"""

from __future__ import annotations

from dataclasses import replace
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sleep_score_engine.core.scoring.config import DEFAULT_SCORING_CONFIG, ScoringConfig


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SLEEP_SCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    # Scoring
    history_window_nights: int = Field(default=30, ge=1)
    default_sleep_goal_minutes: float = Field(default=480, gt=0, le=1440)

    # Services
    cache_max_entries: int = Field(default=256, ge=1)
    batch_max_workers: int = Field(default=1, ge=1)  # 1 = score sequentially

    def to_scoring_config(self, base: ScoringConfig = DEFAULT_SCORING_CONFIG) -> ScoringConfig:
        """Build the immutable scoring configuration with these overrides applied."""
        return replace(
            base,
            history_window_nights=self.history_window_nights,
            default_sleep_goal_minutes=self.default_sleep_goal_minutes,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
