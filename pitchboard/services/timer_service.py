"""Game clock service for the Pitch Board match engine."""

import logging
from typing import Callable, List, Optional

from ..models import ClockPhase, ClockReading, GameClockState
from ..utils import TIMER_STORAGE_KEY, now_ms, whole_seconds_between
from ..utils.constants import MAX_MINUTES_PER_HALF, MIN_MINUTES_PER_HALF
from .persistence_service import PersistenceService

logger = logging.getLogger(__name__)


class GameClock:
    """Two-half match clock whose elapsed time is recomputed from wall-clock deltas.

    The stored elapsed value only moves on user actions and half boundaries;
    in between, the displayed value is derived from the time since the last
    capture, so a reload or a missed tick never loses time.
    """

    def __init__(self, store: Optional[PersistenceService] = None, state: Optional[GameClockState] = None):
        self.store = store
        self.state = state or GameClockState()
        self._dismiss_listeners: List[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> bool:
        """Restore the clock record. Returns True when a record was found."""

        if self.store is None:
            return False
        data = self.store.load(TIMER_STORAGE_KEY)
        if data is None:
            return False
        try:
            self.state = GameClockState.from_json(data)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring unreadable clock record: %s", e)
            return False
        return True

    def _save(self) -> None:
        if self.store is not None:
            self.store.save(TIMER_STORAGE_KEY, self.state.to_json())

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------
    def displayed_elapsed(self, now: Optional[int] = None) -> int:
        """Elapsed seconds of the current half as shown to the user."""

        stored = self.state.elapsed_seconds
        if not self.state.is_running:
            return stored
        now = now_ms() if now is None else now
        delta = whole_seconds_between(self.state.last_update_ms, now)
        return max(stored, min(stored + delta, self.state.half_seconds))

    def phase(self, now: Optional[int] = None) -> ClockPhase:
        if self.state.is_finished:
            return ClockPhase.CONCLUDED
        if self.displayed_elapsed(now) >= self.state.half_seconds:
            if self.state.current_half == 1:
                return ClockPhase.HALF_COMPLETE
            return ClockPhase.CONCLUDED
        if self.state.is_running:
            return ClockPhase.RUNNING
        if self.state.has_started:
            return ClockPhase.PAUSED
        return ClockPhase.STOPPED

    def total_game_seconds(self, now: Optional[int] = None) -> int:
        """Seconds played across both halves."""

        elapsed = self.displayed_elapsed(now)
        if self.state.current_half == 2:
            return self.state.first_half_seconds + elapsed
        return elapsed

    def read(self, now: Optional[int] = None) -> ClockReading:
        now = now_ms() if now is None else now
        return ClockReading(
            half=self.state.current_half,
            elapsed_seconds=self.displayed_elapsed(now),
            phase=self.phase(now),
            total_game_seconds=self.total_game_seconds(now),
            is_running=self.state.is_running,
            minutes_per_half=self.state.minutes_per_half,
        )

    @property
    def has_started(self) -> bool:
        return self.state.has_started

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------
    def toggle(self, now: Optional[int] = None) -> ClockReading:
        """Start, pause or resume the clock.

        From a completed first half this starts the second half. Once the
        match has concluded the call changes nothing.
        """

        now = now_ms() if now is None else now
        phase = self.phase(now)
        if phase == ClockPhase.CONCLUDED:
            return self.read(now)
        if phase == ClockPhase.HALF_COMPLETE:
            return self.start_second_half(now)

        self.state.elapsed_seconds = self.displayed_elapsed(now)
        self.state.is_running = not self.state.is_running
        self.state.last_update_ms = now
        self._save()
        logger.debug(
            "Clock %s at %ss (half %s)",
            "started" if self.state.is_running else "paused",
            self.state.elapsed_seconds, self.state.current_half,
        )
        return self.read(now)

    def start_second_half(self, now: Optional[int] = None) -> ClockReading:
        """Begin the second half, banking the seconds played in the first.

        Raises:
            ValueError: If the second half already started or the first half
                        is still running
        """

        now = now_ms() if now is None else now
        if self.state.current_half != 1 or self.state.is_finished:
            raise ValueError("Second half has already started")
        phase = self.phase(now)
        if phase not in (ClockPhase.HALF_COMPLETE, ClockPhase.PAUSED):
            raise ValueError("Pause the first half before starting the second")

        self.state.first_half_seconds = self.displayed_elapsed(now)
        self.state.current_half = 2
        self.state.elapsed_seconds = 0
        self.state.is_running = True
        self.state.last_update_ms = now
        self._save()
        logger.info("Second half started after %ss", self.state.first_half_seconds)
        return self.read(now)

    def tick(self, now: Optional[int] = None) -> Optional[ClockPhase]:
        """Recompute the clock and freeze it at the half bound.

        Returns:
            HALF_COMPLETE or CONCLUDED when this tick crossed a bound, else None
        """

        if not self.state.is_running:
            return None
        now = now_ms() if now is None else now
        elapsed = self.displayed_elapsed(now)
        if elapsed < self.state.half_seconds:
            return None

        self.state.elapsed_seconds = self.state.half_seconds
        self.state.is_running = False
        self.state.last_update_ms = now
        if self.state.current_half == 2:
            self.state.is_finished = True
            transition = ClockPhase.CONCLUDED
        else:
            transition = ClockPhase.HALF_COMPLETE
        self._save()
        logger.info("Clock reached %s in half %s", transition.value, self.state.current_half)
        return transition

    def configure(
        self,
        *,
        minutes_per_half: Optional[int] = None,
        team_id: Optional[str] = None,
        team_name: Optional[str] = None,
    ) -> None:
        """Set half length and linked team before kickoff.

        Raises:
            ValueError: If the clock has started or the half length is out of range
        """

        if self.state.has_started:
            raise ValueError("Cannot configure the clock after kickoff")

        if minutes_per_half is not None:
            minutes = int(minutes_per_half)
            if not MIN_MINUTES_PER_HALF <= minutes <= MAX_MINUTES_PER_HALF:
                raise ValueError(
                    f"Half length must be between {MIN_MINUTES_PER_HALF} and "
                    f"{MAX_MINUTES_PER_HALF} minutes"
                )
            if minutes != self.state.minutes_per_half:
                self.state = GameClockState(
                    minutes_per_half=minutes,
                    sound_enabled=self.state.sound_enabled,
                    team_id=self.state.team_id,
                    team_name=self.state.team_name,
                )
        if team_id is not None:
            self.state.team_id = team_id
        if team_name is not None:
            self.state.team_name = team_name

    def set_sound(self, enabled: bool) -> None:
        self.state.sound_enabled = bool(enabled)
        if self.state.has_started:
            self._save()

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------
    def add_dismiss_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run whenever the clock is dismissed."""

        self._dismiss_listeners.append(callback)

    def dismiss(self) -> None:
        """Clear the clock record and everything coupled to it."""

        if self.store is not None:
            self.store.delete(TIMER_STORAGE_KEY)
        self.state = GameClockState(
            minutes_per_half=self.state.minutes_per_half,
            sound_enabled=self.state.sound_enabled,
        )
        for callback in self._dismiss_listeners:
            callback()
        logger.info("Clock dismissed")
