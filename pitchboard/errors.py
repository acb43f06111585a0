"""Domain errors and warnings raised by the Pitch Board services."""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ConstraintMismatch:
    """A placement that puts a player outside their eligibility set.

    This is a warning, never an exception: the placement still goes ahead
    once the coach confirms it.
    """

    player_id: str
    player_name: str
    position: str
    eligible_positions: Tuple[str, ...] = ()

    @property
    def message(self) -> str:
        allowed = ", ".join(self.eligible_positions) or "any"
        return f"{self.player_name} is not listed for {self.position} (plays {allowed})"

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "player_name": self.player_name,
            "position": self.position,
            "eligible_positions": list(self.eligible_positions),
            "message": self.message,
        }


class InvalidSubstitution(ValueError):
    """Raised when a substitution or placement would break the pitch invariants."""


class NoValidSwap(Exception):
    """Raised when the planner cannot find a legal single-hop swap."""

    ADVICE = "Broaden a player's eligible positions or accept an ineligible placement"

    def __init__(self, bench_player_id: str, position: str, message: Optional[str] = None):
        super().__init__(message or f"No valid swap puts {bench_player_id} on at {position}")
        self.bench_player_id = bench_player_id
        self.position = position

    def to_dict(self) -> dict:
        return {
            "code": "no_valid_swap",
            "message": str(self),
            "bench_player_id": self.bench_player_id,
            "position": self.position,
            "suggestions": [self.ADVICE],
        }


class PersistenceFailure(Exception):
    """Raised internally when the local durable store cannot be read or written."""

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key


class RemoteSaveFailure(Exception):
    """Raised when the remote stats endpoint rejects or cannot receive a save."""

    def __init__(self, step: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.step = step
        self.status_code = status_code

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "message": str(self),
            **({"status_code": self.status_code} if self.status_code is not None else {}),
        }
