"""
Position validation for the pitch board.

Hard rules (each label held by one player, labels known, players placed once)
are reported as errors. Eligibility is advisory: a player outside their
eligible positions produces a ``ConstraintMismatch`` warning and nothing more.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from ..errors import ConstraintMismatch
from ..models import Player, can_play_position, is_pitch_position


class ValidationResult:
    """Result of a validation operation with errors and advisory warnings."""

    def __init__(
        self,
        is_valid: bool = True,
        errors: Optional[List[str]] = None,
        warnings: Optional[List[ConstraintMismatch]] = None,
    ):
        self.is_valid = is_valid
        self.errors = errors or []
        self.warnings = warnings or []

    def add_error(self, error: str) -> None:
        """Add an error message and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: ConstraintMismatch) -> None:
        self.warnings.append(warning)

    def combine(self, other: 'ValidationResult') -> 'ValidationResult':
        """Combine with another validation result."""
        return ValidationResult(
            is_valid=self.is_valid and other.is_valid,
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": [w.to_dict() for w in self.warnings],
        }


class ValidationRule(ABC):
    """Abstract base class for validation rules."""

    @abstractmethod
    def validate(self, players: List[Player]) -> ValidationResult:
        """Perform validation and return result."""
        pass


class OccupancyValidator(ValidationRule):
    """Each player is placed at most once and each label held by at most one player."""

    def validate(self, players: List[Player]) -> ValidationResult:
        result = ValidationResult()
        holders: Dict[str, str] = {}
        seen_ids = set()
        for player in players:
            if player.id in seen_ids:
                result.add_error(f"Player '{player.id}' appears more than once in the roster")
            seen_ids.add(player.id)

            if player.position is None:
                continue
            if player.position in holders:
                result.add_error(
                    f"Position {player.position} is held by both "
                    f"'{holders[player.position]}' and '{player.name}'"
                )
            else:
                holders[player.position] = player.name
        return result


class PositionLabelValidator(ValidationRule):
    """Every occupied position must be a known pitch label."""

    def validate(self, players: List[Player]) -> ValidationResult:
        result = ValidationResult()
        for player in players:
            if player.position is not None and not is_pitch_position(player.position):
                result.add_error(f"Unknown position '{player.position}' for '{player.name}'")
        return result


class InjuryValidator(ValidationRule):
    """Injured players may not hold a pitch position."""

    def validate(self, players: List[Player]) -> ValidationResult:
        result = ValidationResult()
        for player in players:
            if player.is_injured and player.on_pitch:
                result.add_error(f"'{player.name}' is injured but placed at {player.position}")
        return result


class EligibilityValidator(ValidationRule):
    """Flags placements outside a player's eligible positions as warnings."""

    def validate(self, players: List[Player]) -> ValidationResult:
        result = ValidationResult()
        for player in players:
            if player.position is None:
                continue
            mismatch = mismatch_for(player, player.position)
            if mismatch is not None:
                result.add_warning(mismatch)
        return result


def mismatch_for(player: Player, position: Optional[str]) -> Optional[ConstraintMismatch]:
    """Warning for placing ``player`` at ``position``, or None when eligible."""
    if position is None or can_play_position(player, position):
        return None
    return ConstraintMismatch(
        player_id=player.id,
        player_name=player.name,
        position=position.upper(),
        eligible_positions=tuple(player.eligible_positions),
    )


def mismatches_for(placements: Iterable[tuple]) -> List[ConstraintMismatch]:
    """Warnings for a batch of ``(player, position)`` placements."""
    found = []
    for player, position in placements:
        mismatch = mismatch_for(player, position)
        if mismatch is not None:
            found.append(mismatch)
    return found


class PositionValidationService:
    """
    Orchestrates the placement rules for a roster.

    ``check_placement`` never raises; callers decide whether errors block an
    action. Warnings never block.
    """

    def __init__(self, rules: Optional[List[ValidationRule]] = None):
        self.rules = rules or [
            OccupancyValidator(),
            PositionLabelValidator(),
            InjuryValidator(),
            EligibilityValidator(),
        ]

    def check_placement(self, players: List[Player]) -> ValidationResult:
        """
        Validate the current placement of every player.

        Args:
            players: Roster with current positions

        Returns:
            ValidationResult with hard errors and eligibility warnings
        """
        result = ValidationResult()
        for rule in self.rules:
            result = result.combine(rule.validate(players))
        return result

    def check_invariants(self, players: List[Player]) -> ValidationResult:
        """Hard rules only, without eligibility warnings."""
        result = ValidationResult()
        for rule in self.rules:
            if isinstance(rule, EligibilityValidator):
                continue
            result = result.combine(rule.validate(players))
        return result
