"""
Match session for the Pitch Board match engine.

``MatchSession`` is the single owner of a live match: the clock, the pitch
state, the auto-sub scheduler, the undo history and the local store. The
hosting view holds one session and passes it by reference; every mutation
runs under the session lock and is written to the local store before the
call returns.
"""
import copy
import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..errors import ConstraintMismatch, InvalidSubstitution, RemoteSaveFailure
from ..models import (
    ClockPhase, ClockReading, GameReport, Goal, PitchState, Player,
    PositionSwapRecord, SubstitutionEvent, get_formation,
)
from ..utils import PITCH_STATE_KEY, now_ms
from ..utils.constants import DEFAULT_ROTATION_SPEED, HALVES, SUPPORTED_TEAM_SIZES
from .analytics_service import GameStatsAggregator
from .auto_sub_scheduler import AutoSubScheduler
from .game_commands import (
    ClockMark, GameCommandManager, InjuryCommand, PlacementCommand,
    PositionSwapCommand, SubstitutionCommand, SubstitutionExecutor,
)
from .lineup_service import LineupService
from .persistence_service import PersistenceService
from .position_validator import PositionValidationService, ValidationResult
from .stats_store import StatsStore
from .substitution_planner import (
    SubstitutionOption, SubstitutionPlan, SubstitutionPlanner, SubstitutionProposal,
)
from .timer_service import GameClock

logger = logging.getLogger(__name__)


@dataclass
class SubstitutionResult:
    """Outcome of an executed substitution or swap."""
    event: Optional[SubstitutionEvent] = None
    swap: Optional[PositionSwapRecord] = None
    warnings: List[ConstraintMismatch] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event.to_dict() if self.event else None,
            "swap": self.swap.to_dict() if self.swap else None,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class TickResult:
    """What one tick observed and did."""
    reading: ClockReading
    transition: Optional[ClockPhase] = None
    executed: List[SubstitutionEvent] = field(default_factory=list)
    skipped: List[SubstitutionEvent] = field(default_factory=list)
    warnings: List[ConstraintMismatch] = field(default_factory=list)

    @property
    def game_over(self) -> bool:
        return self.reading.phase == ClockPhase.CONCLUDED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clock": self.reading.to_dict(),
            "transition": self.transition.value if self.transition else None,
            "executed": [e.to_dict() for e in self.executed],
            "skipped": [e.to_dict() for e in self.skipped],
            "warnings": [w.to_dict() for w in self.warnings],
            "game_over": self.game_over,
        }


@dataclass
class FinishResult:
    """Outcome of the finish flow. ``message`` is shown once to the user."""
    report: GameReport
    saved: bool
    message: str
    error: Optional[RemoteSaveFailure] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report": self.report.to_dict(),
            "saved": self.saved,
            "message": self.message,
            "error": self.error.to_dict() if self.error else None,
        }


class MatchSession:
    """A single live match on one device."""

    def __init__(
        self,
        store: Optional[PersistenceService] = None,
        stats_store: Optional[StatsStore] = None,
        planner: Optional[SubstitutionPlanner] = None,
        executor: Optional[SubstitutionExecutor] = None,
        lineup: Optional[LineupService] = None,
        aggregator: Optional[GameStatsAggregator] = None,
        validator: Optional[PositionValidationService] = None,
    ):
        self.store = store or PersistenceService()
        self.stats_store = stats_store
        self.validator = validator or PositionValidationService()
        self.planner = planner or SubstitutionPlanner()
        self.executor = executor or SubstitutionExecutor(self.validator)
        self.lineup = lineup or LineupService(self.planner)
        self.aggregator = aggregator or GameStatsAggregator()
        self.commands = GameCommandManager()
        self.lock = threading.RLock()

        self.clock = GameClock(self.store)
        self.pitch = PitchState()
        self.scheduler = AutoSubScheduler(self.pitch)
        self.clock.add_dismiss_listener(self._clear_pitch)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def load(self) -> bool:
        """Restore clock and pitch records. Returns True when a pitch record was found."""
        with self.lock:
            self.clock.load()
            data = self.store.load(PITCH_STATE_KEY)
            if data is None:
                return False
            try:
                pitch = PitchState.from_json(data)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Ignoring unreadable pitch record: %s", e)
                return False
            self._replace_pitch(pitch)
            self._open_missing_intervals()
            return True

    def save(self) -> None:
        with self.lock:
            self.pitch.last_update_ms = now_ms()
            self.store.save(PITCH_STATE_KEY, self.pitch.to_json())

    def _replace_pitch(self, pitch: PitchState) -> None:
        self.pitch = pitch
        self.scheduler.state = pitch
        self.commands.clear_history()

    def _open_missing_intervals(self) -> None:
        game_seconds = self.clock.total_game_seconds()
        for player in self.pitch.on_pitch():
            if player.stint_start is None:
                player.open_interval(game_seconds)

    def _mark(self, now: Optional[int] = None) -> ClockMark:
        reading = self.clock.read(now)
        return ClockMark(
            half=reading.half,
            elapsed_seconds=reading.elapsed_seconds,
            game_seconds=reading.total_game_seconds,
        )

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def configure(
        self,
        *,
        minutes_per_half: Optional[int] = None,
        team_id: Optional[str] = None,
        team_name: Optional[str] = None,
        team_size: Optional[str] = None,
        match_id: Optional[str] = None,
    ) -> None:
        """Set match parameters before kickoff.

        Raises:
            ValueError: If the clock has started or a value is out of range
        """
        with self.lock:
            self.clock.configure(minutes_per_half=minutes_per_half, team_id=team_id, team_name=team_name)
            if team_size is not None:
                if str(team_size) not in SUPPORTED_TEAM_SIZES:
                    raise ValueError(f"Unsupported team size: {team_size}")
                if str(team_size) != self.pitch.team_size:
                    self.pitch.team_size = str(team_size)
                    self.pitch.formation_name = get_formation(self.pitch.team_size).name
            if team_id is not None:
                self.pitch.team_id = team_id
            if match_id is not None:
                self.pitch.linked_match_id = match_id
            self.save()

    def link_match(self, match_id: Optional[str]) -> None:
        with self.lock:
            self.pitch.linked_match_id = match_id
            self.save()

    def set_roster(self, players: Iterable[Any]) -> List[Player]:
        """
        Replace the roster with players supplied by the hosting view.

        Args:
            players: Player instances or dicts with id, name, number and
                     eligible positions

        Raises:
            ValueError: If the match has already kicked off
            InvalidSubstitution: If the given positions break the pitch rules
        """
        with self.lock:
            if self.clock.has_started:
                raise ValueError("Cannot replace the roster after kickoff")
            roster = [p if isinstance(p, Player) else Player.from_dict(p) for p in players]
            check = self.validator.check_invariants(roster)
            if not check.is_valid:
                raise InvalidSubstitution("; ".join(check.errors))
            for player in roster:
                player.minutes_played = 0
                player.stint_start = None
            self.pitch.players = roster
            self.pitch.kickoff_positions = None
            self.commands.clear_history()
            self._open_missing_intervals()
            self.save()
            return roster

    def add_fill_in(self, name: str, number: Optional[int] = None,
                    eligible_positions: Optional[Iterable[str]] = None) -> Player:
        """Add a temporary player who is not a registered member."""
        with self.lock:
            if not name or not name.strip():
                raise ValueError("Fill-in player needs a name")
            player = Player(
                id=f"fill-in-{uuid.uuid4().hex[:8]}",
                name=name.strip(),
                number=number,
                eligible_positions=list(eligible_positions or []),
                is_fill_in=True,
            )
            self.pitch.players.append(player)
            self.save()
            return player

    def set_injured(self, player_id: str, injured: bool = True) -> Player:
        """Flag a player injured; an injured pitch player goes to the bench."""
        with self.lock:
            player = self._require_player(player_id)
            if player.is_injured != injured:
                self.commands.execute_command(
                    InjuryCommand(self.pitch, self.executor, player.id, injured, self._mark)
                )
            self.save()
            return player

    def select_formation(self, name: Optional[str] = None, auto_place: bool = True) -> Dict[str, Optional[str]]:
        """Choose a formation for the team size and optionally place the roster in it."""
        with self.lock:
            formation = get_formation(self.pitch.team_size, name)
            self.pitch.formation_name = formation.name
            assignment: Dict[str, Optional[str]] = {}
            if auto_place:
                assignment = self.auto_place()
            self.save()
            return assignment

    def auto_place(self) -> Dict[str, Optional[str]]:
        """
        Place the roster in the selected formation.

        Raises:
            ValueError: If the match has already kicked off
        """
        with self.lock:
            if self.clock.has_started:
                raise ValueError("Auto placement is only available before kickoff")
            formation = get_formation(self.pitch.team_size, self.pitch.formation_name)
            self.pitch.formation_name = formation.name
            assignment = self.lineup.auto_place(self.pitch.players, formation)
            # bench first so the new positions never collide mid-update
            self.executor.apply_moves(self.pitch, {pid: None for pid in assignment}, 0)
            self.executor.apply_moves(
                self.pitch, {pid: pos for pid, pos in assignment.items() if pos}, 0
            )
            self.commands.clear_history()
            self.save()
            return assignment

    def place_player(self, player_id: str, position: Optional[str]) -> SubstitutionResult:
        """
        Move a player to a position or to the bench.

        After kickoff, moving onto an occupied position is logged like any
        other change: two pitch players trade places through a position swap,
        and a bench player replaces the holder through a substitution.
        """
        with self.lock:
            player = self._require_player(player_id)
            target = position.upper() if position else None
            holder = self.pitch.occupant(target) if target else None
            if self.clock.has_started and holder is not None and holder.id != player.id:
                if player.on_pitch:
                    return self.swap_positions(player.id, holder.id)
                return self.confirm_substitution(player.id, target, accept_mismatch=True)

            command = PlacementCommand(self.pitch, self.executor, player.id, target, self._mark)
            self.commands.execute_command(command)
            self.save()
            return SubstitutionResult(event=command.event, swap=command.record, warnings=command.warnings)

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------
    def read_clock(self) -> ClockReading:
        with self.lock:
            return self.clock.read()

    def toggle_clock(self) -> ClockReading:
        """Start, pause or resume. The lineup is captured at first kickoff."""
        with self.lock:
            reading = self.clock.toggle()
            if reading.is_running and self.pitch.capture_kickoff():
                logger.info("Kickoff lineup captured for %d players", len(self.pitch.on_pitch()))
            self.save()
            return reading

    def start_second_half(self) -> ClockReading:
        with self.lock:
            reading = self.clock.start_second_half()
            self.save()
            return reading

    def set_sound(self, enabled: bool) -> None:
        with self.lock:
            self.clock.set_sound(enabled)

    def tick(self, now: Optional[int] = None) -> TickResult:
        """
        One beat of the tick loop: recompute the clock, then run due auto-subs.
        """
        with self.lock:
            transition = self.clock.tick(now)
            reading = self.clock.read(now)
            result = TickResult(reading=reading, transition=transition)

            for event in self.scheduler.claim_due(reading.half, reading.elapsed_seconds):
                plan = self._plan_for(event)
                if plan is None:
                    self.scheduler.mark_skipped(event.id)
                    result.skipped.append(event)
                    logger.info("Skipping stale auto-sub %s -> %s", event.player_out, event.player_in)
                    continue
                command = SubstitutionCommand(self.pitch, self.executor, plan, lambda: self._mark(now))
                try:
                    self.commands.execute_command(command)
                except InvalidSubstitution as e:
                    self.scheduler.mark_skipped(event.id)
                    result.skipped.append(event)
                    logger.warning("Auto-sub %s could not run: %s", event.id, e)
                    continue
                result.executed.append(command.event)
                result.warnings.extend(command.warnings)

            if transition is not None or result.executed or result.skipped:
                self.save()
            return result

    def _plan_for(self, event: SubstitutionEvent) -> Optional[SubstitutionPlan]:
        """Plan for a scheduled event against the current pitch, or None when stale."""
        out = self.pitch.get_player(event.player_out)
        incoming = self.pitch.get_player(event.player_in)
        if out is None or incoming is None:
            return None
        if not out.on_pitch or incoming.on_pitch or incoming.is_injured:
            return None

        swap = event.position_swap
        if swap is not None:
            swap_player = self.pitch.get_player(swap.player)
            if (
                swap_player is not None
                and swap_player.id != out.id
                and swap_player.position == swap.from_position
            ):
                return SubstitutionPlan(
                    bench_player_id=incoming.id,
                    position=out.position,
                    occupant_id=out.id,
                    swap_player_id=swap_player.id,
                    swap_from_position=swap_player.position,
                )
        return SubstitutionPlan(
            bench_player_id=incoming.id,
            position=out.position,
            occupant_id=out.id,
        )

    # ------------------------------------------------------------------
    # Substitutions
    # ------------------------------------------------------------------
    def preview_substitution(self, bench_player_id: str, position: str,
                             force_swap: bool = False) -> SubstitutionProposal:
        with self.lock:
            return self.planner.propose(self.pitch.players, bench_player_id, position, force_swap)

    def substitution_options(self, player_out_id: str) -> List[SubstitutionOption]:
        with self.lock:
            return self.planner.options_for(self.pitch.players, player_out_id)

    def confirm_substitution(
        self,
        bench_player_id: str,
        position: str,
        swap_player_id: Optional[str] = None,
        accept_mismatch: bool = False,
    ) -> SubstitutionResult:
        """
        Apply a substitution the coach confirmed.

        Raises:
            InvalidSubstitution: If the players are not where the plan needs them
            NoValidSwap: If no path exists and the mismatch was not accepted
        """
        with self.lock:
            proposal = self.planner.propose(
                self.pitch.players, bench_player_id, position,
                force_swap=swap_player_id is not None,
            )
            plan = self.planner.confirm(
                self.pitch.players, proposal,
                swap_player_id=swap_player_id, accept_mismatch=accept_mismatch,
            )
            if plan.occupant_id is None and not plan.is_three_step:
                command = PlacementCommand(
                    self.pitch, self.executor, plan.bench_player_id, plan.position, self._mark
                )
                self.commands.execute_command(command)
                self.save()
                return SubstitutionResult(event=command.event, warnings=command.warnings)

            command = SubstitutionCommand(self.pitch, self.executor, plan, self._mark)
            self.commands.execute_command(command)
            self.save()
            return SubstitutionResult(event=command.event, warnings=command.warnings)

    def swap_positions(self, player_a_id: str, player_b_id: str) -> SubstitutionResult:
        """Two pitch players trade positions; mismatches are warnings only."""
        with self.lock:
            proposal = self.planner.propose_pitch_swap(self.pitch.players, player_a_id, player_b_id)
            command = PositionSwapCommand(
                self.pitch, self.executor, proposal.player_a_id, proposal.player_b_id, self._mark
            )
            self.commands.execute_command(command)
            self.save()
            return SubstitutionResult(swap=command.record, warnings=command.warnings)

    def undo(self) -> Optional[str]:
        """Undo the last pitch change. Returns its description."""
        with self.lock:
            command = self.commands.undo()
            if command is None:
                return None
            self.save()
            return command.description

    def redo(self) -> Optional[str]:
        with self.lock:
            command = self.commands.redo()
            if command is None:
                return None
            self.save()
            return command.description

    # ------------------------------------------------------------------
    # Auto-sub plan
    # ------------------------------------------------------------------
    def generate_auto_sub_plan(
        self,
        rotation_speed: int = DEFAULT_ROTATION_SPEED,
        allow_swaps: bool = True,
        allow_batch: bool = True,
        activate: bool = True,
    ) -> List[SubstitutionEvent]:
        """Build a rotation plan from the current pitch and clock, and install it."""
        with self.lock:
            reading = self.clock.read()
            plan = self.lineup.generate_rotation_plan(
                self.pitch.players,
                reading.minutes_per_half,
                rotation_speed=rotation_speed,
                allow_swaps=allow_swaps,
                allow_batch=allow_batch,
                start_half=reading.half,
                start_elapsed=reading.elapsed_seconds if self.clock.has_started else 0,
            )
            self.scheduler.set_plan(plan, activate=activate)
            self.save()
            return list(self.scheduler.plan)

    def set_auto_sub_plan(self, events: Iterable[Any], activate: bool = True) -> List[SubstitutionEvent]:
        """Install a plan edited by the coach.

        Raises:
            InvalidSubstitution: If an event names an unknown player or half
        """
        with self.lock:
            plan = [e if isinstance(e, SubstitutionEvent) else SubstitutionEvent.from_dict(e) for e in events]
            for event in plan:
                if event.half not in HALVES:
                    raise InvalidSubstitution(f"Unknown half {event.half}")
                if event.player_out is None or event.player_in is None:
                    raise InvalidSubstitution("Planned substitutions need a player out and a player in")
                for player_id in event.participants():
                    self._require_player(player_id)
            self.scheduler.set_plan(plan, activate=activate)
            self.save()
            return list(self.scheduler.plan)

    def pause_auto_subs(self) -> None:
        with self.lock:
            self.scheduler.pause()
            self.save()

    def resume_auto_subs(self) -> None:
        with self.lock:
            self.scheduler.resume()
            self.save()

    def skip_next_auto_sub(self, recalculate: bool = False) -> List[SubstitutionEvent]:
        """Skip the next planned batch; optionally re-plan what remains."""
        with self.lock:
            skipped = self.scheduler.skip_next()
            if recalculate and skipped:
                reading = self.clock.read()
                remaining = self.lineup.generate_rotation_plan(
                    self.pitch.players,
                    reading.minutes_per_half,
                    start_half=reading.half,
                    start_elapsed=reading.elapsed_seconds,
                )
                done = [e for e in self.scheduler.plan if not e.is_pending]
                self.scheduler.set_plan(done + remaining, activate=bool(remaining))
            self.save()
            return skipped

    def cancel_auto_subs(self) -> None:
        with self.lock:
            self.scheduler.cancel()
            self.save()

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------
    def add_goal(self, scorer_id: Optional[str] = None, is_opponent_goal: bool = False) -> Goal:
        with self.lock:
            scorer_name = None
            if scorer_id is not None and not is_opponent_goal:
                scorer_name = self._require_player(scorer_id).name
            reading = self.clock.read()
            goal = Goal(
                time=reading.elapsed_seconds,
                half=reading.half,
                scorer_id=None if is_opponent_goal else scorer_id,
                scorer_name=scorer_name,
                is_opponent_goal=is_opponent_goal,
            )
            self.pitch.goals.append(goal)
            self.save()
            return goal

    def remove_goal(self, goal_id: str) -> bool:
        with self.lock:
            before = len(self.pitch.goals)
            self.pitch.goals = [g for g in self.pitch.goals if g.id != goal_id]
            changed = len(self.pitch.goals) != before
            if changed:
                self.save()
            return changed

    def score(self) -> Dict[str, int]:
        with self.lock:
            ours = sum(1 for g in self.pitch.goals if not g.is_opponent_goal)
            return {"team": ours, "opponent": len(self.pitch.goals) - ours}

    # ------------------------------------------------------------------
    # Finish / teardown
    # ------------------------------------------------------------------
    def finish_game(self, match_id: Optional[str] = None) -> FinishResult:
        """
        Close the match: bank playing time, build the stats, save them once,
        then clear the clock and pitch records whatever the save outcome.
        """
        with self.lock:
            reading = self.clock.read()
            game_seconds = reading.total_game_seconds
            for player in self.pitch.on_pitch():
                player.close_interval(game_seconds)

            match_id = match_id or self.pitch.linked_match_id
            report = self.aggregator.aggregate(
                self.pitch,
                match_id=match_id or "",
                total_game_time=game_seconds,
                half_duration=reading.minutes_per_half * 60,
                team_id=self.pitch.team_id or self.clock.state.team_id,
            )

            saved = False
            error: Optional[RemoteSaveFailure] = None
            if not match_id:
                message = "Game finished. No match linked, so stats were not saved."
            elif self.stats_store is None:
                message = "Game finished. No stats store configured, so stats were not saved."
            else:
                try:
                    self.stats_store.save_report(report)
                    saved = True
                    message = "Game stats saved. Player statistics have been recorded for this game."
                except RemoteSaveFailure as e:
                    error = e
                    message = f"Failed to save stats: {e}"
                    logger.error("Stats save for match %s failed: %s", match_id, e)

            self.clock.dismiss()
            return FinishResult(report=report, saved=saved, message=message, error=error)

    def preview_report(self) -> GameReport:
        """Stats as they would be saved if the match ended now. Changes nothing."""
        with self.lock:
            reading = self.clock.read()
            game_seconds = reading.total_game_seconds
            pitch = copy.deepcopy(self.pitch)
            for player in pitch.on_pitch():
                player.close_interval(game_seconds)
            return self.aggregator.aggregate(
                pitch,
                match_id=pitch.linked_match_id or "",
                total_game_time=game_seconds,
                half_duration=reading.minutes_per_half * 60,
                team_id=pitch.team_id or self.clock.state.team_id,
            )

    def dismiss(self) -> None:
        """Clear the clock; the pitch state and auto-sub plan go with it."""
        with self.lock:
            self.clock.dismiss()

    def _clear_pitch(self) -> None:
        old = self.pitch
        roster = [
            Player(
                id=p.id,
                name=p.name,
                number=p.number,
                eligible_positions=list(p.eligible_positions),
                is_fill_in=p.is_fill_in,
                is_injured=p.is_injured,
            )
            for p in old.players
            if not p.is_fill_in
        ]
        self._replace_pitch(PitchState(
            team_id=old.team_id,
            players=roster,
            team_size=old.team_size,
            formation_name=old.formation_name,
        ))
        self.store.delete(PITCH_STATE_KEY)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def check_placement(self) -> ValidationResult:
        with self.lock:
            return self.validator.check_placement(self.pitch.players)

    def _require_player(self, player_id: str) -> Player:
        player = self.pitch.get_player(player_id)
        if player is None:
            raise InvalidSubstitution(f"Unknown player '{player_id}'")
        return player

    def snapshot(self) -> Dict[str, Any]:
        """Everything the hosting view renders, in one consistent read."""
        with self.lock:
            reading = self.clock.read()
            game_seconds = reading.total_game_seconds

            def player_view(p: Player) -> Dict[str, Any]:
                data = p.to_dict()
                data["liveSeconds"] = p.live_seconds(game_seconds)
                return data

            return {
                "clock": reading.to_dict(),
                "sound_enabled": self.clock.state.sound_enabled,
                "team_id": self.pitch.team_id,
                "team_size": self.pitch.team_size,
                "formation": self.pitch.formation_name,
                "linked_match_id": self.pitch.linked_match_id,
                "on_pitch": [player_view(p) for p in self.pitch.on_pitch()],
                "bench": [player_view(p) for p in self.pitch.bench()],
                "auto_sub": {
                    "plan": [e.to_dict() for e in self.scheduler.plan],
                    "active": self.scheduler.is_active,
                    "paused": self.scheduler.is_paused,
                },
                "executed_subs": [e.to_dict() for e in self.pitch.executed_subs],
                "position_swaps": [s.to_dict() for s in self.pitch.position_swaps],
                "goals": [g.to_dict() for g in self.pitch.goals],
                "score": self.score(),
                "validation": self.validator.check_placement(self.pitch.players).to_dict(),
                "can_undo": self.commands.can_undo(),
                "can_redo": self.commands.can_redo(),
            }
