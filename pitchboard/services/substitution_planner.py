"""
Substitution planning for the pitch board.

Given a bench player and the position they are needed at, the planner
proposes either a direct substitution or a single-hop swap: a pitch player
who can cover the required position moves there, and the bench player takes
the swap player's vacated position. Candidates are returned in roster order;
there is no ranking beyond first-fit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import ConstraintMismatch, InvalidSubstitution, NoValidSwap
from ..models import Player, is_pitch_position
from .position_validator import mismatch_for, mismatches_for

logger = logging.getLogger(__name__)

DIRECT = "direct"
SWAP = "swap"
NO_PATH = "none"


@dataclass(frozen=True)
class SwapCandidate:
    """Pitch player who can cover the required position for the bench player."""
    player_id: str
    player_name: str
    from_position: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "player_id": self.player_id,
            "player_name": self.player_name,
            "from_position": self.from_position,
        }


@dataclass
class SubstitutionProposal:
    """
    Planner output for bringing a bench player on at a required position.

    Attributes:
        bench_player_id: Player coming on
        position: Required position label
        occupant_id: Pitch player currently at ``position`` (None when vacant)
        kind: "direct", "swap" or "none"
        candidates: Swap candidates in roster order
        warnings: Eligibility mismatches a direct substitution would cause
    """
    bench_player_id: str
    position: str
    occupant_id: Optional[str]
    kind: str
    candidates: List[SwapCandidate] = field(default_factory=list)
    warnings: List[ConstraintMismatch] = field(default_factory=list)

    @property
    def is_direct(self) -> bool:
        return self.kind == DIRECT

    @property
    def has_path(self) -> bool:
        return self.kind == DIRECT or bool(self.candidates)

    def to_dict(self) -> Dict[str, object]:
        return {
            "bench_player_id": self.bench_player_id,
            "position": self.position,
            "occupant_id": self.occupant_id,
            "kind": self.kind,
            "candidates": [c.to_dict() for c in self.candidates],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class SubstitutionPlan:
    """
    A confirmed substitution ready for the executor.

    Direct: occupant -> bench, bench player -> position.
    Three-step: occupant -> bench, swap player -> position, bench player ->
    the swap player's vacated position.
    """
    bench_player_id: str
    position: str
    occupant_id: Optional[str] = None
    swap_player_id: Optional[str] = None
    swap_from_position: Optional[str] = None

    @property
    def is_three_step(self) -> bool:
        return self.swap_player_id is not None

    def target_positions(self) -> Dict[str, Optional[str]]:
        """Player id -> position after the plan is applied."""
        moves: Dict[str, Optional[str]] = {}
        if self.occupant_id is not None:
            moves[self.occupant_id] = None
        if self.is_three_step:
            moves[self.swap_player_id] = self.position
            moves[self.bench_player_id] = self.swap_from_position
        else:
            moves[self.bench_player_id] = self.position
        return moves


@dataclass(frozen=True)
class PitchSwapProposal:
    """Two pitch players trading positions, with any eligibility warnings."""
    player_a_id: str
    player_b_id: str
    a_from: str
    b_from: str
    warnings: List[ConstraintMismatch] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "player_a_id": self.player_a_id,
            "player_b_id": self.player_b_id,
            "a_from": self.a_from,
            "b_from": self.b_from,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class SubstitutionOption:
    """One way to replace a given pitch player, as listed in the preview."""
    bench_player_id: str
    kind: str
    swap_player_id: Optional[str] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "bench_player_id": self.bench_player_id,
            "kind": self.kind,
            "swap_player_id": self.swap_player_id,
            "description": self.description,
        }


class SubstitutionPlanner:
    """Proposes substitutions and position swaps for the current roster."""

    def propose(
        self,
        players: List[Player],
        bench_player_id: str,
        position: str,
        force_swap: bool = False,
    ) -> SubstitutionProposal:
        """
        Propose how to bring ``bench_player_id`` on at ``position``.

        Args:
            players: Roster in display order
            bench_player_id: Player on the bench to bring on
            position: Required position label
            force_swap: Search swap candidates even when a direct sub is legal

        Returns:
            SubstitutionProposal; ``kind == "none"`` with no candidates when
            no single-hop path exists

        Raises:
            InvalidSubstitution: If the bench player is unknown, on the pitch
                                 or injured, or the position is not a pitch label
        """
        bench = self._require_bench_player(players, bench_player_id)
        position = self._require_position(position)
        occupant = _occupant(players, position)
        occupant_id = occupant.id if occupant is not None else None

        if bench.can_play(position) and not force_swap:
            return SubstitutionProposal(
                bench_player_id=bench.id,
                position=position,
                occupant_id=occupant_id,
                kind=DIRECT,
            )

        candidates = [
            SwapCandidate(player_id=p.id, player_name=p.name, from_position=p.position)
            for p in self.swap_candidates(players, bench, position, occupant)
        ]
        if not candidates:
            logger.info("No valid swap brings %s on at %s", bench.id, position)
        return SubstitutionProposal(
            bench_player_id=bench.id,
            position=position,
            occupant_id=occupant_id,
            kind=SWAP if candidates else NO_PATH,
            candidates=candidates,
            warnings=[m for m in [mismatch_for(bench, position)] if m is not None],
        )

    @staticmethod
    def swap_candidates(
        players: List[Player],
        bench: Player,
        position: str,
        occupant: Optional[Player],
    ) -> List[Player]:
        """
        Depth-one swap search.

        Every pitch player P other than the occupant qualifies when P can play
        ``position`` and the bench player can play P's current position.
        """
        found = []
        for player in players:
            if not player.on_pitch or player.position == position:
                continue
            if occupant is not None and player.id == occupant.id:
                continue
            if player.can_play(position) and bench.can_play(player.position):
                found.append(player)
        return found

    @staticmethod
    def require_path(proposal: SubstitutionProposal) -> SubstitutionProposal:
        """
        Raises:
            NoValidSwap: If the proposal has neither a direct path nor a candidate
        """
        if not proposal.has_path:
            raise NoValidSwap(proposal.bench_player_id, proposal.position)
        return proposal

    def confirm(
        self,
        players: List[Player],
        proposal: SubstitutionProposal,
        swap_player_id: Optional[str] = None,
        accept_mismatch: bool = False,
    ) -> SubstitutionPlan:
        """
        Turn a proposal into a plan for the executor.

        Args:
            players: Roster in display order
            proposal: Planner output
            swap_player_id: Chosen swap candidate for a three-step plan
            accept_mismatch: Go ahead with a direct sub the bench player is
                             not eligible for

        Raises:
            NoValidSwap: If no path exists and the mismatch was not accepted
            InvalidSubstitution: If the chosen swap player is not a candidate
        """
        if swap_player_id is not None:
            chosen = next((c for c in proposal.candidates if c.player_id == swap_player_id), None)
            if chosen is None:
                player = _find(players, swap_player_id)
                if player is None or not player.on_pitch or player.position == proposal.position:
                    raise InvalidSubstitution(
                        f"'{swap_player_id}' cannot swap into {proposal.position}"
                    )
                # an ineligible swap the coach picked by hand
                chosen = SwapCandidate(player.id, player.name, player.position)
            return SubstitutionPlan(
                bench_player_id=proposal.bench_player_id,
                position=proposal.position,
                occupant_id=proposal.occupant_id,
                swap_player_id=chosen.player_id,
                swap_from_position=chosen.from_position,
            )

        if proposal.is_direct or accept_mismatch:
            return SubstitutionPlan(
                bench_player_id=proposal.bench_player_id,
                position=proposal.position,
                occupant_id=proposal.occupant_id,
            )
        if proposal.candidates:
            first = proposal.candidates[0]
            return SubstitutionPlan(
                bench_player_id=proposal.bench_player_id,
                position=proposal.position,
                occupant_id=proposal.occupant_id,
                swap_player_id=first.player_id,
                swap_from_position=first.from_position,
            )
        raise NoValidSwap(proposal.bench_player_id, proposal.position)

    def options_for(self, players: List[Player], player_out_id: str) -> List[SubstitutionOption]:
        """
        List every way the bench can replace a pitch player.

        Direct options come first, then swap options, each in roster order.
        Injured bench players are left out.

        Raises:
            InvalidSubstitution: If the player is unknown or not on the pitch
        """
        player_out = _find(players, player_out_id)
        if player_out is None or not player_out.on_pitch:
            raise InvalidSubstitution(f"'{player_out_id}' is not on the pitch")
        position = player_out.position

        direct: List[SubstitutionOption] = []
        swaps: List[SubstitutionOption] = []
        for bench in players:
            if bench.on_pitch or bench.is_injured:
                continue
            if bench.can_play(position):
                direct.append(SubstitutionOption(
                    bench_player_id=bench.id,
                    kind=DIRECT,
                    description=f"{bench.name} replaces {player_out.name} at {position}",
                ))
                continue
            for swap in self.swap_candidates(players, bench, position, player_out):
                swaps.append(SubstitutionOption(
                    bench_player_id=bench.id,
                    kind=SWAP,
                    swap_player_id=swap.id,
                    description=(
                        f"{swap.name} moves to {position}, "
                        f"{bench.name} takes {swap.position}"
                    ),
                ))
        return direct + swaps

    @staticmethod
    def propose_pitch_swap(players: List[Player], player_a_id: str, player_b_id: str) -> PitchSwapProposal:
        """
        Propose that two pitch players trade positions.

        Raises:
            InvalidSubstitution: If either player is unknown or on the bench,
                                 or both ids are the same player
        """
        if player_a_id == player_b_id:
            raise InvalidSubstitution("A player cannot swap with themselves")
        a = _find(players, player_a_id)
        b = _find(players, player_b_id)
        for pid, player in ((player_a_id, a), (player_b_id, b)):
            if player is None or not player.on_pitch:
                raise InvalidSubstitution(f"'{pid}' is not on the pitch")
        return PitchSwapProposal(
            player_a_id=a.id,
            player_b_id=b.id,
            a_from=a.position,
            b_from=b.position,
            warnings=mismatches_for([(a, b.position), (b, a.position)]),
        )

    @staticmethod
    def _require_bench_player(players: List[Player], player_id: str) -> Player:
        player = _find(players, player_id)
        if player is None:
            raise InvalidSubstitution(f"Unknown player '{player_id}'")
        if player.on_pitch:
            raise InvalidSubstitution(f"'{player.name}' is already on the pitch")
        if player.is_injured:
            raise InvalidSubstitution(f"'{player.name}' is injured")
        return player

    @staticmethod
    def _require_position(position: str) -> str:
        if not is_pitch_position(position):
            raise InvalidSubstitution(f"Unknown position '{position}'")
        return position.upper()


def _find(players: List[Player], player_id: Optional[str]) -> Optional[Player]:
    for player in players:
        if player.id == player_id:
            return player
    return None


def _occupant(players: List[Player], position: str) -> Optional[Player]:
    for player in players:
        if player.position == position:
            return player
    return None
