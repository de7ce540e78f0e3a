#!/usr/bin/env python3
"""
Sleep Score Engine.

Deterministic, explainable sleep quality scoring for nightly sleep telemetry.
"""

__version__ = "0.1.0"
__author__ = "Sleep Research Team"
__description__ = "Deterministic sleep quality scoring engine"
