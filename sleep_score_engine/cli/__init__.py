"""
Command-line interface for the sleep score engine.

Example usage:
    ```bash
    sleep-score score night.json
    sleep-score batch nights.json --output scores.csv --format csv
    sleep-score summary nights.json --period month
    ```
"""

from __future__ import annotations

__all__ = ["main"]

from .main import main
