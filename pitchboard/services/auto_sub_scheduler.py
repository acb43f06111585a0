"""
Auto-substitution scheduler.

Holds the planned substitutions of a match, ordered by (half, time), and
hands out the batch of events that has come due on each tick. An event is
marked executed in the plan before it is returned, so a second evaluation of
the same tick can never claim it again.
"""
import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from ..models import PitchState, SubstitutionEvent

logger = logging.getLogger(__name__)


class AutoSubScheduler:
    """Scheduler over the ``auto_sub_plan`` of a pitch state."""

    def __init__(self, state: PitchState):
        self.state = state

    @property
    def plan(self) -> List[SubstitutionEvent]:
        return self.state.auto_sub_plan

    @property
    def is_active(self) -> bool:
        return self.state.auto_sub_active

    @property
    def is_paused(self) -> bool:
        return self.state.auto_sub_paused

    def set_plan(self, events: List[SubstitutionEvent], activate: bool = True) -> None:
        """Replace the plan, sorted by (half, time)."""
        self.state.auto_sub_plan = sorted(events, key=lambda e: e.key)
        self.state.auto_sub_active = activate and bool(self.state.auto_sub_plan)
        self.state.auto_sub_paused = False
        logger.info("Auto-sub plan set with %d events", len(self.state.auto_sub_plan))

    def pause(self) -> None:
        self.state.auto_sub_paused = True

    def resume(self) -> None:
        self.state.auto_sub_paused = False

    def cancel(self) -> None:
        """Drop the plan and its flags."""
        self.state.auto_sub_plan = []
        self.state.auto_sub_active = False
        self.state.auto_sub_paused = False

    def pending(self) -> List[SubstitutionEvent]:
        return [e for e in self.plan if e.is_pending]

    def next_pending_key(self) -> Optional[Tuple[int, int]]:
        keys = [e.key for e in self.pending()]
        return min(keys) if keys else None

    def due_batch(self, half: int, elapsed: int) -> List[SubstitutionEvent]:
        """Pending events sharing the earliest key that is at or before (half, elapsed)."""
        if not self.is_active or self.is_paused:
            return []
        key = self.next_pending_key()
        if key is None or key > (half, elapsed):
            return []
        return [e for e in self.plan if e.is_pending and e.key == key]

    def claim_due(self, half: int, elapsed: int) -> List[SubstitutionEvent]:
        """
        Mark the due batch executed and return it.

        Callers hold the session lock, so check and set happen together.
        """
        batch = self.due_batch(half, elapsed)
        if not batch:
            return []
        ids = {e.id for e in batch}
        self.state.auto_sub_plan = [
            e.mark_executed() if e.id in ids else e for e in self.plan
        ]
        claimed = [e for e in self.plan if e.id in ids]
        self._finish_if_complete()
        return claimed

    def mark_skipped(self, event_id: str) -> None:
        """Mark an event skipped; an already claimed event loses its executed flag."""
        self.state.auto_sub_plan = [
            replace(e, executed=False, skipped=True) if e.id == event_id else e
            for e in self.plan
        ]
        self._finish_if_complete()

    def skip_next(self) -> List[SubstitutionEvent]:
        """Skip the next pending batch regardless of whether it is due."""
        key = self.next_pending_key()
        if key is None:
            return []
        skipped = [e for e in self.pending() if e.key == key]
        for event in skipped:
            self.mark_skipped(event.id)
        logger.info("Skipped %d planned substitutions at %s", len(skipped), key)
        return [e for e in self.plan if e.id in {s.id for s in skipped}]

    def _finish_if_complete(self) -> None:
        if self.state.auto_sub_active and not self.pending():
            self.state.auto_sub_active = False
            logger.info("Auto-sub plan complete")
