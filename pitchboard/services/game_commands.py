"""
Command pattern implementation for pitch board actions.

Substitutions, position swaps and lineup placements are undoable commands.
Every command goes through the ``SubstitutionExecutor``, which computes all
reassignments on a copy of the roster, checks the pitch invariants, and only
then commits, closing and opening playing-time intervals at the game second
the clock displayed when the action was taken.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple, Union

from ..errors import ConstraintMismatch, InvalidSubstitution
from ..models import PitchState, PositionSwap, PositionSwapRecord, SubstitutionEvent
from .position_validator import PositionValidationService, mismatch_for
from .substitution_planner import SubstitutionPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClockMark:
    """Clock values captured at the moment of an action."""
    half: int
    elapsed_seconds: int
    game_seconds: int


class Command(ABC):
    """Abstract base class for all pitch commands - Command pattern."""

    @abstractmethod
    def execute(self) -> bool:
        """
        Execute the command.

        Returns:
            True if command executed successfully, False otherwise
        """
        pass

    @abstractmethod
    def undo(self) -> bool:
        """
        Undo the command.

        Returns:
            True if command undone successfully, False otherwise
        """
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get human-readable description of the command."""
        pass


@dataclass
class PitchSnapshot:
    """Snapshot of positions, injury flags and playing time for undo functionality."""
    player_states: Dict[str, Tuple[Optional[str], int, Optional[int], bool]]
    executed_count: int
    swap_count: int

    @classmethod
    def from_pitch_state(cls, state: PitchState) -> 'PitchSnapshot':
        """Create snapshot from current pitch state."""
        return cls(
            player_states={
                p.id: (p.position, p.minutes_played, p.stint_start, p.is_injured)
                for p in state.players
            },
            executed_count=len(state.executed_subs),
            swap_count=len(state.position_swaps),
        )

    def restore(self, state: PitchState) -> None:
        for player in state.players:
            if player.id in self.player_states:
                (player.position, player.minutes_played,
                 player.stint_start, player.is_injured) = self.player_states[player.id]
        del state.executed_subs[self.executed_count:]
        del state.position_swaps[self.swap_count:]


class SubstitutionExecutor:
    """Applies position reassignments to a pitch state as one atomic update."""

    def __init__(self, validator: Optional[PositionValidationService] = None):
        self.validator = validator or PositionValidationService()

    def apply_moves(
        self,
        state: PitchState,
        moves: Dict[str, Optional[str]],
        game_seconds: int,
    ) -> List[ConstraintMismatch]:
        """
        Move players to new positions (None = bench) in one step.

        Args:
            state: Pitch state to mutate
            moves: Player id -> new position
            game_seconds: Clock reading used to close and open intervals

        Returns:
            Eligibility warnings for the players that moved onto a position

        Raises:
            InvalidSubstitution: If a player is unknown or the result would
                                 break the pitch invariants
        """
        by_id = {p.id: p for p in state.players}
        for player_id in moves:
            if player_id not in by_id:
                raise InvalidSubstitution(f"Unknown player '{player_id}'")

        preview = [
            replace(p, position=moves[p.id]) if p.id in moves else p
            for p in state.players
        ]
        check = self.validator.check_invariants(preview)
        if not check.is_valid:
            raise InvalidSubstitution("; ".join(check.errors))

        warnings: List[ConstraintMismatch] = []
        for player_id, new_position in moves.items():
            player = by_id[player_id]
            if player.position == new_position:
                continue
            if player.on_pitch:
                player.close_interval(game_seconds)
            player.position = new_position
            if new_position is not None:
                player.open_interval(game_seconds)
                mismatch = mismatch_for(player, new_position)
                if mismatch is not None:
                    warnings.append(mismatch)
        return warnings

    def execute_plan(
        self,
        state: PitchState,
        plan: SubstitutionPlan,
        mark: ClockMark,
    ) -> Tuple[SubstitutionEvent, List[ConstraintMismatch]]:
        """
        Apply a confirmed substitution plan and log it.

        Returns:
            The executed SubstitutionEvent and any eligibility warnings

        Raises:
            InvalidSubstitution: If the plan no longer matches the pitch
        """
        self._check_plan(state, plan)
        warnings = self.apply_moves(state, plan.target_positions(), mark.game_seconds)

        swap = None
        if plan.is_three_step:
            swap = PositionSwap(
                player=plan.swap_player_id,
                from_position=plan.swap_from_position,
                to_position=plan.position,
            )
        event = SubstitutionEvent(
            time=mark.elapsed_seconds,
            half=mark.half,
            player_out=plan.occupant_id,
            player_in=plan.bench_player_id,
            position=plan.position,
            position_swap=swap,
            executed=True,
        )
        state.executed_subs.append(event)
        logger.info(
            "Substitution at %ss (half %s): %s off, %s on at %s%s",
            event.time, event.half, event.player_out, event.player_in,
            swap.from_position if swap else plan.position,
            f", {swap.player} to {swap.to_position}" if swap else "",
        )
        return event, warnings

    def execute_pitch_swap(
        self,
        state: PitchState,
        player_a_id: str,
        player_b_id: str,
        mark: ClockMark,
    ) -> Tuple[PositionSwapRecord, List[ConstraintMismatch]]:
        """Trade the positions of two pitch players and log the trade."""
        a = state.get_player(player_a_id)
        b = state.get_player(player_b_id)
        if a is None or b is None or not a.on_pitch or not b.on_pitch:
            raise InvalidSubstitution("Both players must be on the pitch to swap")
        if a.id == b.id:
            raise InvalidSubstitution("A player cannot swap with themselves")

        record = PositionSwapRecord(
            time=mark.elapsed_seconds,
            half=mark.half,
            player_a=a.id,
            player_b=b.id,
            a_from=a.position,
            b_from=b.position,
        )
        warnings = self.apply_moves(state, {a.id: b.position, b.id: a.position}, mark.game_seconds)
        state.position_swaps.append(record)
        return record, warnings

    def execute_placement(
        self,
        state: PitchState,
        player_id: str,
        position: Optional[str],
        mark: Optional[ClockMark] = None,
    ) -> Tuple[Optional[Union[SubstitutionEvent, PositionSwapRecord]], List[ConstraintMismatch]]:
        """
        Move one player to a position or to the bench.

        A holder of the target position takes the player's previous spot.
        Once the kickoff lineup is captured the move is logged like any
        other pitch change, so the final statistics see it.

        Returns:
            The logged event or swap record (None before kickoff) and any
            eligibility warnings
        """
        player = state.get_player(player_id)
        if player is None:
            raise InvalidSubstitution(f"Unknown player '{player_id}'")
        if position is not None and player.is_injured:
            raise InvalidSubstitution(f"'{player.name}' is injured")

        from_position = player.position
        holder = state.occupant(position) if position is not None else None
        if holder is not None and holder.id == player.id:
            holder = None
        moves: Dict[str, Optional[str]] = {player.id: position}
        if holder is not None:
            moves[holder.id] = from_position

        warnings = self.apply_moves(state, moves, mark.game_seconds if mark else 0)
        if mark is None or state.kickoff_positions is None or from_position == position:
            return None, warnings

        holder_id = holder.id if holder is not None else None
        if from_position is None or position is None:
            event = SubstitutionEvent(
                time=mark.elapsed_seconds,
                half=mark.half,
                player_out=player.id if position is None else holder_id,
                player_in=player.id if from_position is None else None,
                position=position if position is not None else from_position,
                executed=True,
            )
            state.executed_subs.append(event)
            logger.info(
                "Lineup change at %ss (half %s): %s off, %s on at %s",
                event.time, event.half, event.player_out, event.player_in, event.position,
            )
            return event, warnings

        record = PositionSwapRecord(
            time=mark.elapsed_seconds,
            half=mark.half,
            player_a=player.id,
            player_b=holder_id,
            a_from=from_position,
            b_from=position,
        )
        state.position_swaps.append(record)
        return record, warnings

    @staticmethod
    def _check_plan(state: PitchState, plan: SubstitutionPlan) -> None:
        if plan.occupant_id is None:
            holder = state.occupant(plan.position)
            if holder is not None:
                raise InvalidSubstitution(f"'{holder.id}' now holds {plan.position}")
        else:
            occupant = state.get_player(plan.occupant_id)
            if occupant is None or occupant.position != plan.position:
                raise InvalidSubstitution(f"'{plan.occupant_id}' is not on the pitch at {plan.position}")

        incoming = state.get_player(plan.bench_player_id)
        if incoming is None or incoming.on_pitch:
            raise InvalidSubstitution(f"'{plan.bench_player_id}' is not on the bench")
        if incoming.is_injured:
            raise InvalidSubstitution(f"'{incoming.name}' is injured")

        if plan.is_three_step:
            swap = state.get_player(plan.swap_player_id)
            if swap is None or swap.position != plan.swap_from_position:
                raise InvalidSubstitution(
                    f"'{plan.swap_player_id}' is no longer at {plan.swap_from_position}"
                )


class SubstitutionCommand(Command):
    """Command to apply a confirmed substitution plan."""

    def __init__(self, state: PitchState, executor: SubstitutionExecutor,
                 plan: SubstitutionPlan, mark_source: Callable[[], ClockMark]):
        self.state = state
        self.executor = executor
        self.plan = plan
        self.mark_source = mark_source
        self.event: Optional[SubstitutionEvent] = None
        self.warnings: List[ConstraintMismatch] = []
        self._previous_state: Optional[PitchSnapshot] = None

    def execute(self) -> bool:
        """Execute the substitution. Invalid plans raise before any change."""
        snapshot = PitchSnapshot.from_pitch_state(self.state)
        self.event, self.warnings = self.executor.execute_plan(self.state, self.plan, self.mark_source())
        self._previous_state = snapshot
        return True

    def undo(self) -> bool:
        """Undo the substitution."""
        if self._previous_state is None:
            return False
        self._previous_state.restore(self.state)
        self._previous_state = None
        return True

    @property
    def description(self) -> str:
        outgoing = self.plan.occupant_id or f"empty {self.plan.position}"
        return f"Substitute {outgoing} → {self.plan.bench_player_id}"


class PositionSwapCommand(Command):
    """Command to trade the positions of two pitch players."""

    def __init__(self, state: PitchState, executor: SubstitutionExecutor,
                 player_a_id: str, player_b_id: str, mark_source: Callable[[], ClockMark]):
        self.state = state
        self.executor = executor
        self.player_a_id = player_a_id
        self.player_b_id = player_b_id
        self.mark_source = mark_source
        self.record: Optional[PositionSwapRecord] = None
        self.warnings: List[ConstraintMismatch] = []
        self._previous_state: Optional[PitchSnapshot] = None

    def execute(self) -> bool:
        snapshot = PitchSnapshot.from_pitch_state(self.state)
        self.record, self.warnings = self.executor.execute_pitch_swap(
            self.state, self.player_a_id, self.player_b_id, self.mark_source()
        )
        self._previous_state = snapshot
        return True

    def undo(self) -> bool:
        if self._previous_state is None:
            return False
        self._previous_state.restore(self.state)
        self._previous_state = None
        return True

    @property
    def description(self) -> str:
        return f"Swap {self.player_a_id} ⇄ {self.player_b_id}"


class PlacementCommand(Command):
    """Command to place a player at a position (or on the bench) in the lineup.

    When the target position is held by someone else, that player takes the
    placed player's previous spot.
    """

    def __init__(self, state: PitchState, executor: SubstitutionExecutor,
                 player_id: str, position: Optional[str],
                 mark_source: Optional[Callable[[], ClockMark]] = None):
        self.state = state
        self.executor = executor
        self.player_id = player_id
        self.position = position.upper() if position else None
        self.mark_source = mark_source
        self.logged: Optional[Union[SubstitutionEvent, PositionSwapRecord]] = None
        self.warnings: List[ConstraintMismatch] = []
        self._previous_state: Optional[PitchSnapshot] = None

    @property
    def event(self) -> Optional[SubstitutionEvent]:
        return self.logged if isinstance(self.logged, SubstitutionEvent) else None

    @property
    def record(self) -> Optional[PositionSwapRecord]:
        return self.logged if isinstance(self.logged, PositionSwapRecord) else None

    def execute(self) -> bool:
        snapshot = PitchSnapshot.from_pitch_state(self.state)
        mark = self.mark_source() if self.mark_source else None
        self.logged, self.warnings = self.executor.execute_placement(
            self.state, self.player_id, self.position, mark
        )
        self._previous_state = snapshot
        return True

    def undo(self) -> bool:
        if self._previous_state is None:
            return False
        self._previous_state.restore(self.state)
        self._previous_state = None
        return True

    @property
    def description(self) -> str:
        return f"Place {self.player_id} at {self.position or 'bench'}"


class InjuryCommand(Command):
    """Command to flag a player injured (or fit again).

    An injured pitch player goes to the bench in the same step; undo clears
    the flag and puts them back.
    """

    def __init__(self, state: PitchState, executor: SubstitutionExecutor,
                 player_id: str, injured: bool = True,
                 mark_source: Optional[Callable[[], ClockMark]] = None):
        self.state = state
        self.executor = executor
        self.player_id = player_id
        self.injured = injured
        self.mark_source = mark_source
        self.event: Optional[SubstitutionEvent] = None
        self._previous_state: Optional[PitchSnapshot] = None

    def execute(self) -> bool:
        player = self.state.get_player(self.player_id)
        if player is None:
            raise InvalidSubstitution(f"Unknown player '{self.player_id}'")
        snapshot = PitchSnapshot.from_pitch_state(self.state)
        if self.injured and player.on_pitch:
            mark = self.mark_source() if self.mark_source else None
            logged, _ = self.executor.execute_placement(self.state, player.id, None, mark)
            self.event = logged if isinstance(logged, SubstitutionEvent) else None
        player.is_injured = self.injured
        self._previous_state = snapshot
        return True

    def undo(self) -> bool:
        if self._previous_state is None:
            return False
        self._previous_state.restore(self.state)
        self._previous_state = None
        return True

    @property
    def description(self) -> str:
        return f"Mark {self.player_id} {'injured' if self.injured else 'fit'}"


class GameCommandManager:
    """
    Manager for executing and tracking pitch commands with undo/redo support.
    """

    def __init__(self, max_history: int = 50):
        """
        Initialize command manager.

        Args:
            max_history: Maximum number of commands to keep in history
        """
        self.max_history = max_history
        self._command_history: List[Command] = []
        self._current_index = -1

    def execute_command(self, command: Command) -> bool:
        """
        Execute a command and add it to history.

        Args:
            command: Command to execute

        Returns:
            True if command executed successfully
        """
        success = command.execute()

        if success:
            # Remove any commands after current index (for redo functionality)
            self._command_history = self._command_history[:self._current_index + 1]

            self._command_history.append(command)
            self._current_index += 1

            if len(self._command_history) > self.max_history:
                self._command_history.pop(0)
                self._current_index -= 1

        return success

    def undo(self) -> Optional[Command]:
        """
        Undo the last command.

        Returns:
            The undone command, or None if nothing was undone
        """
        if not self.can_undo():
            return None

        command = self._command_history[self._current_index]
        if not command.undo():
            return None
        self._current_index -= 1
        return command

    def redo(self) -> Optional[Command]:
        """
        Redo the next command.

        Returns:
            The redone command, or None if nothing was redone
        """
        if not self.can_redo():
            return None

        command = self._command_history[self._current_index + 1]
        if not command.execute():
            return None
        self._current_index += 1
        return command

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self._current_index >= 0

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return self._current_index < len(self._command_history) - 1

    def get_command_history(self) -> List[str]:
        """Get history of command descriptions."""
        return [cmd.description for cmd in self._command_history]

    def clear_history(self) -> None:
        """Clear command history."""
        self._command_history.clear()
        self._current_index = -1

