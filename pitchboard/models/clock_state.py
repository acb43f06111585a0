"""
Game clock state for the Pitch Board match engine.

This module contains the GameClockState dataclass which is the persisted
record of the two-half match clock, plus the read-only ``ClockReading``
snapshot handed to callers on every tick.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..utils import DEFAULT_MINUTES_PER_HALF


class ClockPhase(Enum):
    """Lifecycle phase of the game clock."""
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"
    HALF_COMPLETE = "half_complete"
    CONCLUDED = "concluded"


@dataclass
class GameClockState:
    """
    Represents the persisted state of the game clock.

    Attributes:
        minutes_per_half: Configured half length in minutes
        current_half: Active half (1 or 2)
        elapsed_seconds: Stored elapsed seconds for the current half, captured
            at the last user action or tick
        is_running: Whether the clock is currently counting
        last_update_ms: Wall-clock epoch milliseconds of the last capture
        sound_enabled: Whether the hosting view should play the whistle
        team_id: Team the match belongs to (optional)
        team_name: Display name of the team (optional)
        is_finished: Set once the second half reaches its bound
        first_half_seconds: Seconds actually played in the first half
    """
    minutes_per_half: int = DEFAULT_MINUTES_PER_HALF
    current_half: int = 1
    elapsed_seconds: int = 0
    is_running: bool = False
    last_update_ms: int = 0
    sound_enabled: bool = True
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    is_finished: bool = False
    first_half_seconds: int = 0

    @property
    def half_seconds(self) -> int:
        """Upper bound of elapsed seconds within one half."""
        return self.minutes_per_half * 60

    @property
    def has_started(self) -> bool:
        return (
            self.is_running
            or self.elapsed_seconds > 0
            or self.current_half > 1
            or self.is_finished
        )

    def to_json(self) -> dict:
        """
        Convert GameClockState to the clock record dictionary.

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        data = {
            "minutesPerHalf": self.minutes_per_half,
            "currentHalf": self.current_half,
            "elapsedSeconds": self.elapsed_seconds,
            "isRunning": self.is_running,
            "soundEnabled": self.sound_enabled,
            "lastUpdateTime": self.last_update_ms,
            "isGameFinished": self.is_finished,
            "firstHalfSeconds": self.first_half_seconds,
        }
        if self.team_id is not None:
            data["teamId"] = self.team_id
        if self.team_name is not None:
            data["teamName"] = self.team_name
        return data

    @staticmethod
    def from_json(data: dict) -> "GameClockState":
        """
        Create GameClockState from a clock record dictionary.

        Args:
            data: Dictionary with clock state data

        Returns:
            New GameClockState instance
        """
        state = GameClockState()
        state.minutes_per_half = int(data.get("minutesPerHalf", DEFAULT_MINUTES_PER_HALF))
        state.current_half = 2 if int(data.get("currentHalf", 1)) == 2 else 1
        state.elapsed_seconds = max(0, int(data.get("elapsedSeconds", 0)))
        state.is_running = bool(data.get("isRunning", False))
        state.sound_enabled = bool(data.get("soundEnabled", True))
        state.last_update_ms = int(data.get("lastUpdateTime", 0) or 0)
        state.team_id = data.get("teamId")
        state.team_name = data.get("teamName")
        state.is_finished = bool(data.get("isGameFinished", False))
        state.first_half_seconds = max(0, int(data.get("firstHalfSeconds", 0) or 0))
        state.ensure_bounds()
        return state

    def ensure_bounds(self) -> None:
        """Clamp stored values to the configured half length."""
        self.minutes_per_half = max(1, int(self.minutes_per_half or DEFAULT_MINUTES_PER_HALF))
        self.elapsed_seconds = min(max(0, self.elapsed_seconds), self.half_seconds)
        self.first_half_seconds = min(max(0, self.first_half_seconds), self.half_seconds)
        if self.is_finished:
            self.is_running = False


@dataclass(frozen=True)
class ClockReading:
    """Snapshot of the clock as displayed at one instant."""
    half: int
    elapsed_seconds: int
    phase: ClockPhase
    total_game_seconds: int
    is_running: bool
    minutes_per_half: int

    @property
    def remaining_seconds(self) -> int:
        return max(0, self.minutes_per_half * 60 - self.elapsed_seconds)

    def to_dict(self) -> dict:
        return {
            "half": self.half,
            "elapsed_seconds": self.elapsed_seconds,
            "remaining_seconds": self.remaining_seconds,
            "phase": self.phase.value,
            "total_game_seconds": self.total_game_seconds,
            "is_running": self.is_running,
            "minutes_per_half": self.minutes_per_half,
        }
