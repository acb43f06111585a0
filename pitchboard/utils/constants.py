"""
Constants for the Pitch Board match engine.

This module contains configuration constants used throughout the application.
"""

# Application metadata
APP_TITLE = "Pitch Board"

# Game timing defaults
DEFAULT_MINUTES_PER_HALF = 45
MIN_MINUTES_PER_HALF = 1
MAX_MINUTES_PER_HALF = 60
HALF_LENGTH_OPTIONS = [5, 10, 15, 20, 25, 30, 35, 40, 45]
HALVES = (1, 2)

# The tick loop is the only timing authority
TICK_INTERVAL_SECONDS = 1.0

# Local durable record keys (device scoped, optionally suffixed by a session id)
TIMER_STORAGE_KEY = "pitch-board-timer-state"
PITCH_STATE_KEY = "pitch-board-state"

# Team sizes supported by the pitch board
DEFAULT_TEAM_SIZE = "7"
SUPPORTED_TEAM_SIZES = ["4", "7", "9", "11"]

# Rotation plan generation
MIN_SUB_INTERVAL_SECONDS = 45
ROTATION_SPEEDS = {
    1: "Slow",
    2: "Medium",
    3: "Fast",
}
DEFAULT_ROTATION_SPEED = 2

# Remote stats endpoint tables
GAME_SUMMARIES_TABLE = "game_summaries"
GAME_PLAYER_STATS_TABLE = "game_player_stats"
DEFAULT_STATS_TIMEOUT_SECONDS = 10
