"""
Match event records for the Pitch Board match engine.

Substitution events, on-pitch position swaps and goals make up the event
log from which the final player statistics are derived. Events are frozen:
marking one executed or skipped replaces it with a new instance.
"""
import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple


def _optional_id(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass(frozen=True)
class PositionSwap:
    """Secondary move carried by a three-step substitution.

    ``player`` leaves ``from_position`` (the required position is taken by
    the incoming player's partner) and moves to ``to_position``.
    """
    player: str
    from_position: str
    to_position: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "player": self.player,
            "fromPosition": self.from_position,
            "toPosition": self.to_position,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PositionSwap":
        return cls(
            player=str(data["player"]),
            from_position=str(data.get("fromPosition", data.get("from_position"))),
            to_position=str(data.get("toPosition", data.get("to_position"))),
        )


@dataclass(frozen=True)
class SubstitutionEvent:
    """
    A planned or executed substitution.

    Attributes:
        time: Elapsed seconds within ``half`` at which it fires or fired
        half: Half the event belongs to (1 or 2)
        player_out: Id of the pitch player leaving; None when ``position``
                    was empty
        player_in: Id of the bench player coming on; None when a player
                   left without replacement
        position: Label vacated by ``player_out`` (or filled when it was empty)
        position_swap: Optional secondary move of a pitch player
        executed: True once applied to the pitch
        skipped: True when the event was stale or skipped by the coach
        id: Stable identifier of the event
    """
    time: int
    half: int
    player_out: Optional[str]
    player_in: Optional[str]
    position: Optional[str] = None
    position_swap: Optional[PositionSwap] = None
    executed: bool = False
    skipped: bool = False
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            object.__setattr__(self, "id", uuid.uuid4().hex[:12])

    @property
    def key(self) -> Tuple[int, int]:
        """Ordering key within a match."""
        return (self.half, self.time)

    @property
    def is_pending(self) -> bool:
        return not self.executed and not self.skipped

    def participants(self) -> Tuple[str, ...]:
        """Ids named by the event in any role."""
        ids = [self.player_out, self.player_in]
        if self.position_swap is not None:
            ids.append(self.position_swap.player)
        return tuple(i for i in ids if i is not None)

    def mark_executed(self) -> "SubstitutionEvent":
        return replace(self, executed=True)

    def mark_skipped(self) -> "SubstitutionEvent":
        return replace(self, skipped=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "time": self.time,
            "half": self.half,
            "playerOut": self.player_out,
            "playerIn": self.player_in,
            "position": self.position,
            "positionSwap": self.position_swap.to_dict() if self.position_swap else None,
            "executed": self.executed,
            "skipped": self.skipped,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubstitutionEvent":
        swap = data.get("positionSwap", data.get("position_swap"))
        return cls(
            time=int(data.get("time", 0)),
            half=int(data.get("half", 1)),
            player_out=_optional_id(data.get("playerOut", data.get("player_out"))),
            player_in=_optional_id(data.get("playerIn", data.get("player_in"))),
            position=data.get("position"),
            position_swap=PositionSwap.from_dict(swap) if swap else None,
            executed=bool(data.get("executed", False)),
            skipped=bool(data.get("skipped", False)),
            id=str(data.get("id") or ""),
        )


@dataclass(frozen=True)
class PositionSwapRecord:
    """Two pitch players trading positions without anyone leaving the pitch.

    ``player_b`` is None when ``player_a`` moved into the empty ``b_from``.
    """
    time: int
    half: int
    player_a: str
    player_b: Optional[str]
    a_from: str
    b_from: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "half": self.half,
            "playerA": self.player_a,
            "playerB": self.player_b,
            "aFrom": self.a_from,
            "bFrom": self.b_from,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PositionSwapRecord":
        return cls(
            time=int(data.get("time", 0)),
            half=int(data.get("half", 1)),
            player_a=str(data["playerA"]),
            player_b=_optional_id(data.get("playerB")),
            a_from=str(data["aFrom"]),
            b_from=str(data["bFrom"]),
        )


@dataclass(frozen=True)
class Goal:
    """A goal for either side. ``scorer_id`` is None for opponent goals or unknown scorers."""
    time: int
    half: int
    scorer_id: Optional[str] = None
    scorer_name: Optional[str] = None
    is_opponent_goal: bool = False
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            object.__setattr__(self, "id", uuid.uuid4().hex[:12])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "scorerId": self.scorer_id,
            "scorerName": self.scorer_name,
            "time": self.time,
            "half": self.half,
            "isOpponentGoal": self.is_opponent_goal,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        return cls(
            time=int(data.get("time", 0)),
            half=int(data.get("half", 1)),
            scorer_id=data.get("scorerId", data.get("scorer_id")),
            scorer_name=data.get("scorerName", data.get("scorer_name")),
            is_opponent_goal=bool(data.get("isOpponentGoal", data.get("is_opponent_goal", False))),
            id=str(data.get("id") or ""),
        )
