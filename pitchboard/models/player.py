"""
Player model for the Pitch Board match engine.

This module contains the Player dataclass which represents an individual
player on the pitch board, including position eligibility and playing time
tracking against the game clock.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


def normalize_positions(positions: Optional[Iterable[str]]) -> List[str]:
    """
    Normalise a collection of position labels.

    Labels are stripped and upper-cased; duplicates are dropped while keeping
    first-seen order. A comma-separated string is accepted as well.

    Args:
        positions: Iterable of labels, a comma-separated string, or None

    Returns:
        List of unique position labels (e.g., ["CM", "ST"])
    """
    if not positions:
        return []
    if isinstance(positions, str):
        positions = positions.split(",")
    seen: List[str] = []
    for raw in positions:
        label = str(raw).strip().upper()
        if label and label not in seen:
            seen.append(label)
    return seen


@dataclass
class Player:
    """
    Represents a player on the pitch board.

    Attributes:
        id: Stable identifier (roster member id, or generated for fill-ins)
        name: Display name
        number: Jersey number (optional)
        eligible_positions: Position labels the player is declared able to
            play; empty means unrestricted
        position: Current pitch position label, or None when on the bench
        minutes_played: Accumulated playing time in seconds (closed intervals)
        is_fill_in: True for a temporary player who is not a registered member
        is_injured: Injured players cannot be brought on from the bench
        stint_start: Game second at which the current on-pitch interval opened
    """
    id: str
    name: str
    number: Optional[int] = None
    eligible_positions: List[str] = field(default_factory=list)
    position: Optional[str] = None
    minutes_played: int = 0
    is_fill_in: bool = False
    is_injured: bool = False
    stint_start: Optional[int] = None

    def __post_init__(self) -> None:
        self.eligible_positions = normalize_positions(self.eligible_positions)
        if self.position is not None:
            self.position = str(self.position).strip().upper() or None

    @property
    def on_pitch(self) -> bool:
        """Whether the player currently holds a pitch position."""
        return self.position is not None

    @property
    def is_unrestricted(self) -> bool:
        return not self.eligible_positions

    def can_play(self, position: Optional[str]) -> bool:
        """
        Eligibility predicate for a position.

        Args:
            position: Position label to check

        Returns:
            True if the player is unrestricted or lists the position
        """
        if self.is_unrestricted or position is None:
            return True
        return position.upper() in self.eligible_positions

    def open_interval(self, game_seconds: int) -> None:
        """
        Start a playing interval at the given game second.

        Args:
            game_seconds: Game clock reading (whole seconds since kickoff)
        """
        if self.stint_start is None:
            self.stint_start = int(game_seconds)

    def close_interval(self, game_seconds: int) -> int:
        """
        Close the open playing interval and bank its seconds.

        Args:
            game_seconds: Game clock reading at the moment of the change

        Returns:
            Number of seconds added to ``minutes_played``
        """
        added = self.current_stint_seconds(game_seconds)
        self.minutes_played += added
        self.stint_start = None
        return added

    def current_stint_seconds(self, game_seconds: int) -> int:
        """
        Seconds played in the open interval.

        Args:
            game_seconds: Current game clock reading

        Returns:
            Seconds in the current interval, or 0 when no interval is open
        """
        if self.stint_start is None:
            return 0
        return max(0, int(game_seconds) - self.stint_start)

    def live_seconds(self, game_seconds: int) -> int:
        """Total playing time including the open interval."""
        return self.minutes_played + self.current_stint_seconds(game_seconds)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert player to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the player
        """
        return {
            "id": self.id,
            "name": self.name,
            "number": self.number,
            "eligiblePositions": list(self.eligible_positions),
            "position": self.position,
            "minutesPlayed": self.minutes_played,
            "isFillIn": self.is_fill_in,
            "isInjured": self.is_injured,
            "stintStart": self.stint_start,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        """
        Create player from dictionary for JSON deserialization.

        Both the record's camelCase keys and snake_case keys (as sent by the
        roster collaborator) are accepted.

        Args:
            data: Dictionary representation of player

        Returns:
            Player instance
        """
        number = data.get("number")
        if number in ("", None):
            number = None
        else:
            try:
                number = int(number)
            except (TypeError, ValueError):
                number = None

        return cls(
            id=str(data["id"]),
            name=data.get("name") or str(data["id"]),
            number=number,
            eligible_positions=data.get("eligiblePositions", data.get("eligible_positions")) or [],
            position=data.get("position"),
            minutes_played=int(data.get("minutesPlayed", data.get("minutes_played", 0)) or 0),
            is_fill_in=bool(data.get("isFillIn", data.get("is_fill_in", False))),
            is_injured=bool(data.get("isInjured", data.get("is_injured", False))),
            stint_start=data.get("stintStart", data.get("stint_start")),
        )


def can_play_position(player: Player, position: Optional[str]) -> bool:
    """True when ``player`` may play ``position`` (always true when unrestricted)."""
    return player.can_play(position)
