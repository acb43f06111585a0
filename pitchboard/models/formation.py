"""Formation models for the Pitch Board match engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..utils.constants import DEFAULT_TEAM_SIZE, SUPPORTED_TEAM_SIZES


class Position(Enum):
    """On-field role labels. Each label is held by at most one player."""
    GOALKEEPER = "GK"

    LEFT_BACK = "LB"
    LEFT_CENTER_BACK = "LCB"
    CENTER_BACK = "CB"
    RIGHT_CENTER_BACK = "RCB"
    RIGHT_BACK = "RB"
    LEFT_WING_BACK = "LWB"
    RIGHT_WING_BACK = "RWB"

    DEFENSIVE_MIDFIELDER = "CDM"
    LEFT_CENTRAL_MIDFIELDER = "LCM"
    CENTRAL_MIDFIELDER = "CM"
    RIGHT_CENTRAL_MIDFIELDER = "RCM"
    LEFT_MIDFIELDER = "LM"
    RIGHT_MIDFIELDER = "RM"
    ATTACKING_MIDFIELDER = "CAM"

    LEFT_WINGER = "LW"
    RIGHT_WINGER = "RW"
    LEFT_STRIKER = "LST"
    STRIKER = "ST"
    RIGHT_STRIKER = "RST"
    CENTER_FORWARD = "CF"


POSITION_LABELS = frozenset(p.value for p in Position)

DEFENDER_LABELS = frozenset({"LB", "LCB", "CB", "RCB", "RB", "LWB", "RWB"})
MIDFIELDER_LABELS = frozenset({"CDM", "LCM", "CM", "RCM", "LM", "RM", "CAM"})
FORWARD_LABELS = frozenset({"LW", "RW", "LST", "ST", "RST", "CF"})


def is_pitch_position(label: Optional[str]) -> bool:
    """True when ``label`` is one of the known on-field role labels."""
    return label is not None and label.upper() in POSITION_LABELS


def position_group(label: str) -> str:
    """Broad group of a label: GK, DEF, MID or FWD."""
    label = label.upper()
    if label == Position.GOALKEEPER.value:
        return "GK"
    if label in DEFENDER_LABELS:
        return "DEF"
    if label in MIDFIELDER_LABELS:
        return "MID"
    return "FWD"


@dataclass(frozen=True)
class Formation:
    """A named shape for one team size, listing its position labels back to front."""
    name: str
    team_size: str
    positions: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_goalkeeper(self) -> bool:
        return Position.GOALKEEPER.value in self.positions

    def get_formation_shape(self) -> Tuple[int, int, int, int]:
        """Get formation shape as (GK, DEF, MID, FWD) tuple."""
        groups = [position_group(p) for p in self.positions]
        return (
            groups.count("GK"),
            groups.count("DEF"),
            groups.count("MID"),
            groups.count("FWD"),
        )

    def to_dict(self) -> Dict:
        """Convert formation to dictionary for serialization."""
        return {
            "name": self.name,
            "team_size": self.team_size,
            "positions": list(self.positions),
        }


def _formation(name: str, team_size: str, *labels: str) -> Formation:
    return Formation(name=name, team_size=team_size, positions=tuple(labels))


# 4-a-side has no goalkeeper; every other size starts with GK
FORMATIONS: Dict[str, List[Formation]] = {
    "4": [
        _formation("1-2-1", "4", "CB", "LM", "RM", "ST"),
        _formation("2-1-1", "4", "LCB", "RCB", "CM", "ST"),
        _formation("1-1-2", "4", "CB", "CM", "LST", "RST"),
    ],
    "7": [
        _formation("2-3-1", "7", "GK", "LCB", "RCB", "LM", "CM", "RM", "ST"),
        _formation("3-2-1", "7", "GK", "LCB", "CB", "RCB", "LCM", "RCM", "ST"),
        _formation("2-2-2", "7", "GK", "LCB", "RCB", "LCM", "RCM", "LST", "RST"),
    ],
    "9": [
        _formation("3-3-2", "9", "GK", "LCB", "CB", "RCB", "LM", "CM", "RM", "LST", "RST"),
        _formation("3-2-3", "9", "GK", "LCB", "CB", "RCB", "LCM", "RCM", "LW", "ST", "RW"),
        _formation("2-4-2", "9", "GK", "LCB", "RCB", "LM", "LCM", "RCM", "RM", "LST", "RST"),
    ],
    "11": [
        _formation("4-4-2", "11", "GK", "LB", "LCB", "RCB", "RB", "LM", "LCM", "RCM", "RM", "LST", "RST"),
        _formation("4-3-3", "11", "GK", "LB", "LCB", "RCB", "RB", "LCM", "CM", "RCM", "LW", "ST", "RW"),
        _formation("3-5-2", "11", "GK", "LCB", "CB", "RCB", "LWB", "LCM", "CM", "RCM", "RWB", "LST", "RST"),
        _formation("4-2-3-1", "11", "GK", "LB", "LCB", "RCB", "RB", "LCM", "RCM", "LW", "CAM", "RW", "ST"),
    ],
}


def get_formation(team_size: str = DEFAULT_TEAM_SIZE, name: Optional[str] = None) -> Formation:
    """
    Look up a formation for a team size.

    Args:
        team_size: One of the supported team sizes ("4", "7", "9", "11")
        name: Formation name; the first formation for the size when omitted

    Returns:
        The matching Formation

    Raises:
        ValueError: If the team size or formation name is unknown
    """
    size = str(team_size)
    if size not in SUPPORTED_TEAM_SIZES:
        raise ValueError(f"Unsupported team size: {team_size}")
    options = FORMATIONS[size]
    if name is None:
        return options[0]
    for formation in options:
        if formation.name == name:
            return formation
    raise ValueError(f"Unknown formation '{name}' for {size}-a-side")
