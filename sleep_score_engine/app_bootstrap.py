#!/usr/bin/env python3
"""
Application bootstrap utilities.

Shared logging setup for the command-line entry point. Library code never
configures logging itself.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | int = logging.WARNING) -> None:
    """
    Configure root logging on stderr.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or logging constant

    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    logging.getLogger(__name__).debug("Logging configured at level %s", logging.getLevelName(level))
