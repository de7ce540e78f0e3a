"""Utility helpers for the sleep score engine."""
