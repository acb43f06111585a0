"""
PitchState model for the Pitch Board match engine.

This module contains the PitchState dataclass which represents the pitch
side of a live match: the roster with current positions, the auto-sub plan
and its flags, and the event log the final statistics are derived from.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .match_events import Goal, PositionSwapRecord, SubstitutionEvent
from .player import Player
from ..utils.constants import DEFAULT_TEAM_SIZE


@dataclass
class PitchState:
    """
    Represents the pitch-side record of a match.

    Attributes:
        team_id: Linked team identifier
        players: Roster in display order; order drives planner candidate order
        team_size: Team size key ("4", "7", "9", "11")
        formation_name: Name of the formation in use
        auto_sub_plan: Planned substitutions, ordered by (half, time)
        auto_sub_active: Whether the scheduler evaluates the plan on tick
        auto_sub_paused: Whether the scheduler is temporarily paused
        linked_match_id: Identifier of the match the stats are saved against
        executed_subs: Event log of executed substitutions
        position_swaps: Event log of on-pitch position trades
        goals: Goals for either side
        kickoff_positions: Player id -> position captured at first kickoff
        last_update_ms: Wall-clock epoch milliseconds of the last write
    """
    team_id: Optional[str] = None
    players: List[Player] = field(default_factory=list)
    team_size: str = DEFAULT_TEAM_SIZE
    formation_name: Optional[str] = None
    auto_sub_plan: List[SubstitutionEvent] = field(default_factory=list)
    auto_sub_active: bool = False
    auto_sub_paused: bool = False
    linked_match_id: Optional[str] = None
    executed_subs: List[SubstitutionEvent] = field(default_factory=list)
    position_swaps: List[PositionSwapRecord] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    kickoff_positions: Optional[Dict[str, Optional[str]]] = None
    last_update_ms: int = 0

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def occupant(self, position: str) -> Optional[Player]:
        """Pitch player holding ``position``, if any."""
        position = position.upper()
        for player in self.players:
            if player.position == position:
                return player
        return None

    def on_pitch(self) -> List[Player]:
        return [p for p in self.players if p.on_pitch]

    def bench(self) -> List[Player]:
        return [p for p in self.players if not p.on_pitch]

    def positions_map(self) -> Dict[str, Optional[str]]:
        return {p.id: p.position for p in self.players}

    def capture_kickoff(self) -> bool:
        """Record the kickoff lineup once. Returns True when captured now."""
        if self.kickoff_positions is not None:
            return False
        self.kickoff_positions = self.positions_map()
        return True

    def to_json(self) -> dict:
        """
        Convert PitchState to the pitch-state record dictionary.

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        return {
            "teamId": self.team_id,
            "players": [p.to_dict() for p in self.players],
            "teamSize": self.team_size,
            "formation": self.formation_name,
            "autoSubPlan": [e.to_dict() for e in self.auto_sub_plan],
            "autoSubActive": self.auto_sub_active,
            "autoSubPaused": self.auto_sub_paused,
            "linkedEventId": self.linked_match_id,
            "executedSubs": [e.to_dict() for e in self.executed_subs],
            "positionSwaps": [s.to_dict() for s in self.position_swaps],
            "goals": [g.to_dict() for g in self.goals],
            "kickoffPositions": (
                dict(self.kickoff_positions) if self.kickoff_positions is not None else None
            ),
            "lastUpdateTime": self.last_update_ms,
        }

    @staticmethod
    def from_json(data: dict) -> "PitchState":
        """
        Create PitchState from a pitch-state record dictionary.

        Args:
            data: Dictionary with pitch state data

        Returns:
            New PitchState instance
        """
        state = PitchState()
        state.team_id = data.get("teamId")
        state.players = [Player.from_dict(p) for p in data.get("players", []) or []]
        state.team_size = str(data.get("teamSize") or DEFAULT_TEAM_SIZE)
        state.formation_name = data.get("formation")
        state.auto_sub_plan = [
            SubstitutionEvent.from_dict(e) for e in data.get("autoSubPlan", []) or []
        ]
        state.auto_sub_active = bool(data.get("autoSubActive", False))
        state.auto_sub_paused = bool(data.get("autoSubPaused", False))
        state.linked_match_id = data.get("linkedEventId")
        state.executed_subs = [
            SubstitutionEvent.from_dict(e) for e in data.get("executedSubs", []) or []
        ]
        state.position_swaps = [
            PositionSwapRecord.from_dict(s) for s in data.get("positionSwaps", []) or []
        ]
        state.goals = [Goal.from_dict(g) for g in data.get("goals", []) or []]
        kickoff = data.get("kickoffPositions")
        state.kickoff_positions = dict(kickoff) if kickoff is not None else None
        state.last_update_ms = int(data.get("lastUpdateTime", 0) or 0)
        return state
