"""
Utilities package for the Pitch Board match engine.

This package contains utility functions and constants used throughout the application.
"""
from .time_utils import fmt_mmss, now_ms, whole_seconds_between
from .constants import (
    APP_TITLE, DEFAULT_MINUTES_PER_HALF, HALF_LENGTH_OPTIONS, PITCH_STATE_KEY,
    TICK_INTERVAL_SECONDS, TIMER_STORAGE_KEY
)

__all__ = [
    "fmt_mmss", "now_ms", "whole_seconds_between", "APP_TITLE",
    "DEFAULT_MINUTES_PER_HALF", "HALF_LENGTH_OPTIONS", "PITCH_STATE_KEY",
    "TICK_INTERVAL_SECONDS", "TIMER_STORAGE_KEY"
]
