"""Dataclasses representing the persisted end-of-game statistics."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class GameSummary:
    """One row per match, upserted by match id."""

    match_id: str
    team_id: Optional[str]
    total_game_time: int
    half_duration: int
    formation_used: Optional[str]
    team_size: str
    total_substitutions: int

    def to_row(self) -> Dict[str, Any]:
        return {
            "event_id": self.match_id,
            "team_id": self.team_id,
            "total_game_time": self.total_game_time,
            "half_duration": self.half_duration,
            "formation_used": self.formation_used,
            "team_size": self.team_size,
            "total_substitutions": self.total_substitutions,
        }


@dataclass
class PlayerStat:
    """Derived statistics for a single player in one match."""

    match_id: str
    team_id: Optional[str]
    player_id: Optional[str]
    fill_in_player_name: Optional[str]
    jersey_number: Optional[int]
    positions_played: List[str] = field(default_factory=list)
    substitutions_count: int = 0
    started_on_pitch: bool = False
    goals_scored: int = 0
    minutes_played: int = 0
    # display only, not part of the persisted row
    player_name: str = ""

    @property
    def display_name(self) -> str:
        return self.player_name or self.fill_in_player_name or self.player_id or ""

    def to_row(self) -> Dict[str, Any]:
        return {
            "event_id": self.match_id,
            "team_id": self.team_id,
            "user_id": self.player_id,
            "fill_in_player_name": self.fill_in_player_name,
            "jersey_number": self.jersey_number,
            "positions_played": list(self.positions_played),
            "substitutions_count": self.substitutions_count,
            "started_on_pitch": self.started_on_pitch,
            "goals_scored": self.goals_scored,
            "minutes_played": self.minutes_played,
        }


@dataclass
class GameReport:
    """Summary row plus per-player rows for one finished match."""

    summary: GameSummary
    players: List[PlayerStat] = field(default_factory=list)

    def player_rows(self) -> List[Dict[str, Any]]:
        return [p.to_row() for p in self.players]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_row(),
            "players": self.player_rows(),
        }
