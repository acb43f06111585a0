"""
Models package for the Pitch Board match engine.

This package contains the core data models used throughout the application.
"""
from .player import Player, can_play_position, normalize_positions
from .formation import FORMATIONS, Formation, Position, get_formation, is_pitch_position
from .clock_state import ClockPhase, ClockReading, GameClockState
from .match_events import Goal, PositionSwap, PositionSwapRecord, SubstitutionEvent
from .pitch_state import PitchState
from .game_report import GameReport, GameSummary, PlayerStat

__all__ = [
    "Player", "can_play_position", "normalize_positions",
    "FORMATIONS", "Formation", "Position", "get_formation", "is_pitch_position",
    "ClockPhase", "ClockReading", "GameClockState",
    "Goal", "PositionSwap", "PositionSwapRecord", "SubstitutionEvent",
    "PitchState", "GameReport", "GameSummary", "PlayerStat",
]
