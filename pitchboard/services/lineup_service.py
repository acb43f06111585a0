"""Lineup placement and rotation planning for the pitch board."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Dict, List, Optional

from ..models import Formation, Player, PositionSwap, SubstitutionEvent
from ..utils.constants import DEFAULT_ROTATION_SPEED, MIN_SUB_INTERVAL_SECONDS, ROTATION_SPEEDS
from .substitution_planner import SubstitutionPlanner

logger = logging.getLogger(__name__)

GOALKEEPER = "GK"


def _is_goalkeeper_only(player: Player) -> bool:
    return player.eligible_positions == [GOALKEEPER]


class LineupService:
    """
    Places a roster into a formation and builds auto-substitution plans.
    """

    def __init__(self, planner: Optional[SubstitutionPlanner] = None):
        self.planner = planner or SubstitutionPlanner()

    # ---------- Placement ---------- #

    def auto_place(self, players: List[Player], formation: Formation) -> Dict[str, Optional[str]]:
        """
        Assign players to the formation's positions.

        Specialists (exactly one eligible position) are placed first, then
        multi-position players into any open position they can play, then
        unrestricted players into whatever is left. Everyone else, and every
        injured player, goes to the bench.

        Args:
            players: Roster in display order
            formation: Formation to fill

        Returns:
            Player id -> position (None = bench) for every player
        """
        open_slots = list(formation.positions)
        assignment: Dict[str, Optional[str]] = {p.id: None for p in players}
        available = [p for p in players if not p.is_injured]

        def take(player: Player, slot: str) -> None:
            assignment[player.id] = slot
            open_slots.remove(slot)

        for player in available:
            if len(player.eligible_positions) == 1:
                target = player.eligible_positions[0]
                if target in open_slots:
                    take(player, target)

        for player in available:
            if len(player.eligible_positions) > 1 and assignment[player.id] is None:
                slot = next((s for s in open_slots if player.can_play(s)), None)
                if slot is not None:
                    take(player, slot)

        for player in available:
            if player.is_unrestricted and open_slots:
                take(player, open_slots[0])

        if open_slots:
            logger.info("Formation %s left open: %s", formation.name, ", ".join(open_slots))
        return assignment

    # ---------- Rotation ---------- #

    def generate_rotation_plan(
        self,
        players: List[Player],
        minutes_per_half: int,
        rotation_speed: int = DEFAULT_ROTATION_SPEED,
        allow_swaps: bool = True,
        allow_batch: bool = True,
        start_half: int = 1,
        start_elapsed: int = 0,
    ) -> List[SubstitutionEvent]:
        """
        Build an auto-substitution plan that evens out playing time.

        Sub windows are spread evenly across each half. At each window the
        most-played outfield player comes off for the least-played bench
        player: a direct sub when eligible, otherwise the first swap
        candidate, otherwise a mismatched direct sub. A goalkeeper-only
        player on the bench replaces the keeper at half time.

        Args:
            players: Roster with current positions and playing time
            minutes_per_half: Half length in minutes
            rotation_speed: 1 (slow), 2 (medium) or 3 (fast)
            allow_swaps: Allow three-step swap substitutions
            allow_batch: Allow several substitutions in one window
            start_half: Half to plan from (2 when re-planning after half time)
            start_elapsed: Elapsed seconds in ``start_half`` to plan from

        Returns:
            Planned events sorted by (half, time)

        Raises:
            ValueError: If ``rotation_speed`` is not a known speed
        """
        if rotation_speed not in ROTATION_SPEEDS:
            raise ValueError(f"Unknown rotation speed: {rotation_speed}")
        half_seconds = int(minutes_per_half) * 60
        if not players or half_seconds <= 0:
            return []

        sim = [replace(p) for p in players]
        pitch = [p for p in sim if p.on_pitch]
        bench = [p for p in sim if not p.on_pitch and not p.is_injured]
        if not bench:
            return []

        gk_on_pitch = next((p for p in pitch if p.position == GOALKEEPER), None)
        gk_on_bench = next((p for p in bench if _is_goalkeeper_only(p)), None)
        outfield = [
            p for p in sim
            if p.position != GOALKEEPER
            and not _is_goalkeeper_only(p)
            and not (p.is_injured and not p.on_pitch)
        ]
        outfield_bench = [p for p in outfield if not p.on_pitch]

        plan: List[SubstitutionEvent] = []
        if outfield_bench:
            plan.extend(self._rotation_events(
                outfield, outfield_bench, half_seconds, rotation_speed,
                allow_swaps, allow_batch, start_half, start_elapsed,
            ))

        if gk_on_bench is not None and gk_on_pitch is not None and start_half == 1:
            plan.append(SubstitutionEvent(
                time=0,
                half=2,
                player_out=gk_on_pitch.id,
                player_in=gk_on_bench.id,
                position=GOALKEEPER,
            ))

        plan.sort(key=lambda e: e.key)
        logger.info("Generated rotation plan with %d substitutions", len(plan))
        return plan

    def _rotation_events(
        self,
        outfield: List[Player],
        outfield_bench: List[Player],
        half_seconds: int,
        rotation_speed: int,
        allow_swaps: bool,
        allow_batch: bool,
        start_half: int,
        start_elapsed: int,
    ) -> List[SubstitutionEvent]:
        subs_at_once = 1
        if allow_batch and len(outfield_bench) >= 2:
            subs_at_once = min(rotation_speed, len(outfield_bench))

        min_subs_needed = max(len(outfield_bench), math.ceil(len(outfield) / 2))
        if rotation_speed == 1:
            windows = max(2, math.ceil(min_subs_needed / subs_at_once))
        elif rotation_speed == 3:
            windows = max(4, math.ceil(min_subs_needed * 1.5 / subs_at_once))
        else:
            windows = max(3, math.ceil(min_subs_needed * 1.2 / subs_at_once))
        windows = min(windows, half_seconds // MIN_SUB_INTERVAL_SECONDS)

        window_times = [math.floor(i * half_seconds / (windows + 1)) for i in range(1, windows + 1)]
        played = {p.id: p.minutes_played for p in outfield}
        events: List[SubstitutionEvent] = []

        for half in range(start_half, 3):
            last = start_elapsed if half == start_half else 0
            for sub_time in window_times:
                if sub_time <= last:
                    continue
                on_pitch = [p for p in outfield if p.on_pitch]
                for player in on_pitch:
                    played[player.id] += sub_time - last
                last = sub_time
                events.extend(self._window_subs(
                    outfield, played, subs_at_once, allow_swaps, half, sub_time,
                ))
            for player in outfield:
                if player.on_pitch:
                    played[player.id] += half_seconds - last
        return events

    def _window_subs(
        self,
        outfield: List[Player],
        played: Dict[str, int],
        subs_at_once: int,
        allow_swaps: bool,
        half: int,
        sub_time: int,
    ) -> List[SubstitutionEvent]:
        events: List[SubstitutionEvent] = []
        used = set()
        for index in range(subs_at_once):
            on_pitch = sorted(
                (p for p in outfield if p.on_pitch and p.id not in used),
                key=lambda p: -played[p.id],
            )
            bench = sorted(
                (p for p in outfield if not p.on_pitch and p.id not in used),
                key=lambda p: played[p.id],
            )
            if not on_pitch or not bench:
                break
            out, incoming = on_pitch[0], bench[0]
            if index == 0 and played[out.id] <= played[incoming.id]:
                break

            position = out.position
            swap_player = None
            if not incoming.can_play(position) and allow_swaps:
                candidates = self.planner.swap_candidates(outfield, incoming, position, out)
                swap_player = next((c for c in candidates if c.id not in used), None)

            swap = None
            out.position = None
            if swap_player is not None:
                swap = PositionSwap(swap_player.id, swap_player.position, position)
                incoming.position = swap_player.position
                swap_player.position = position
            else:
                incoming.position = position

            events.append(SubstitutionEvent(
                time=sub_time,
                half=half,
                player_out=out.id,
                player_in=incoming.id,
                position=position,
                position_swap=swap,
            ))
            used.update({out.id, incoming.id})
        return events
