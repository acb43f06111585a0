"""Tests for substitution execution, playing time and undo/redo."""
import unittest

from pitchboard.errors import InvalidSubstitution
from pitchboard.models import PitchState, Player
from pitchboard.services.game_commands import (
    ClockMark,
    GameCommandManager,
    InjuryCommand,
    PlacementCommand,
    PositionSwapCommand,
    SubstitutionCommand,
    SubstitutionExecutor,
)
from pitchboard.services.substitution_planner import SubstitutionPlan


class Marks:
    """Settable clock mark source."""

    def __init__(self, half=1, elapsed=0, game=0):
        self.mark = ClockMark(half, elapsed, game)

    def set(self, half, elapsed, game):
        self.mark = ClockMark(half, elapsed, game)

    def __call__(self):
        return self.mark


def pitch_state():
    players = [
        Player(id="o", name="Olly", eligible_positions=["CM"], position="CM", stint_start=0),
        Player(id="p", name="Pia", eligible_positions=["ST", "CM"], position="ST", stint_start=0),
        Player(id="b", name="Bea", eligible_positions=["ST"]),
        Player(id="c", name="Cy", eligible_positions=["LB"]),
    ]
    return PitchState(team_id="t1", players=players)


class SubstitutionExecutionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.state = pitch_state()
        self.executor = SubstitutionExecutor()
        self.marks = Marks()
        self.manager = GameCommandManager()

    def test_three_step_substitution_moves_everyone_and_banks_time(self) -> None:
        self.marks.set(1, 600, 600)
        plan = SubstitutionPlan("b", "CM", occupant_id="o", swap_player_id="p", swap_from_position="ST")
        command = SubstitutionCommand(self.state, self.executor, plan, self.marks)
        self.manager.execute_command(command)

        positions = self.state.positions_map()
        self.assertEqual(positions, {"o": None, "p": "CM", "b": "ST", "c": None})
        olly = self.state.get_player("o")
        self.assertEqual(olly.minutes_played, 600)
        self.assertIsNone(olly.stint_start)
        self.assertEqual(self.state.get_player("b").stint_start, 600)
        # Pia never left the pitch; her interval is split at the move
        self.assertEqual(self.state.get_player("p").live_seconds(900), 900)

        event = command.event
        self.assertTrue(event.executed)
        self.assertEqual((event.half, event.time), (1, 600))
        self.assertEqual(event.position_swap.to_position, "CM")
        self.assertEqual(self.state.executed_subs, [event])
        self.assertEqual(command.warnings, [])

    def test_invalid_plan_changes_nothing(self) -> None:
        plan = SubstitutionPlan("b", "CM", occupant_id="p")
        with self.assertRaises(InvalidSubstitution):
            self.manager.execute_command(SubstitutionCommand(self.state, self.executor, plan, self.marks))
        self.assertEqual(self.state.get_player("o").position, "CM")
        self.assertEqual(self.state.executed_subs, [])
        self.assertFalse(self.manager.can_undo())

    def test_direct_mismatch_returns_warning(self) -> None:
        plan = SubstitutionPlan("c", "CM", occupant_id="o")
        command = SubstitutionCommand(self.state, self.executor, plan, self.marks)
        self.manager.execute_command(command)
        self.assertEqual([w.player_id for w in command.warnings], ["c"])
        self.assertEqual(self.state.get_player("c").position, "CM")

    def test_undo_and_redo_restore_positions_time_and_log(self) -> None:
        self.marks.set(1, 300, 300)
        plan = SubstitutionPlan("b", "ST", occupant_id="p")
        command = SubstitutionCommand(self.state, self.executor, plan, self.marks)
        self.manager.execute_command(command)
        self.assertEqual(self.state.get_player("p").minutes_played, 300)

        undone = self.manager.undo()
        self.assertIs(undone, command)
        pia = self.state.get_player("p")
        self.assertEqual((pia.position, pia.minutes_played, pia.stint_start), ("ST", 0, 0))
        self.assertEqual(self.state.executed_subs, [])
        self.assertIsNone(self.manager.undo())

        # redo reads the clock again
        self.marks.set(1, 420, 420)
        self.assertIs(self.manager.redo(), command)
        self.assertEqual(self.state.get_player("p").minutes_played, 420)
        self.assertEqual(self.state.executed_subs[0].time, 420)
        self.assertIsNone(self.manager.redo())

    def test_position_swap_is_logged(self) -> None:
        self.marks.set(2, 60, 1560)
        command = PositionSwapCommand(self.state, self.executor, "o", "p", self.marks)
        self.manager.execute_command(command)
        self.assertEqual(self.state.get_player("o").position, "ST")
        self.assertEqual(self.state.get_player("p").position, "CM")
        record = self.state.position_swaps[0]
        self.assertEqual((record.a_from, record.b_from, record.half), ("CM", "ST", 2))
        self.assertEqual([w.player_id for w in command.warnings], ["o"])

        self.manager.undo()
        self.assertEqual(self.state.position_swaps, [])
        self.assertEqual(self.state.get_player("o").position, "CM")

    def test_swap_requires_two_pitch_players(self) -> None:
        with self.assertRaises(InvalidSubstitution):
            self.manager.execute_command(PositionSwapCommand(self.state, self.executor, "o", "b", self.marks))

    def test_placement_trades_with_holder(self) -> None:
        command = PlacementCommand(self.state, self.executor, "b", "ST")
        self.manager.execute_command(command)
        self.assertEqual(self.state.get_player("b").position, "ST")
        self.assertIsNone(self.state.get_player("p").position)

        self.manager.execute_command(PlacementCommand(self.state, self.executor, "o", None))
        self.assertEqual(len(self.state.on_pitch()), 1)
        self.assertEqual(self.manager.get_command_history(), ["Place b at ST", "Place o at bench"])

    def test_injured_player_cannot_be_placed(self) -> None:
        self.state.get_player("c").is_injured = True
        with self.assertRaises(InvalidSubstitution):
            self.manager.execute_command(PlacementCommand(self.state, self.executor, "c", "LB"))

    def test_substitution_into_empty_position(self) -> None:
        self.marks.set(1, 300, 300)
        plan = SubstitutionPlan("b", "LB", swap_player_id="p", swap_from_position="ST")
        command = SubstitutionCommand(self.state, self.executor, plan, self.marks)
        self.manager.execute_command(command)

        self.assertEqual(self.state.get_player("p").position, "LB")
        self.assertEqual(self.state.get_player("b").position, "ST")
        self.assertIsNone(command.event.player_out)
        self.assertEqual(command.event.participants(), ("b", "p"))
        self.assertEqual(command.description, "Substitute empty LB → b")

    def test_empty_position_plan_rejected_once_filled(self) -> None:
        with self.assertRaises(InvalidSubstitution):
            self.manager.execute_command(
                SubstitutionCommand(self.state, self.executor, SubstitutionPlan("c", "CM"), self.marks)
            )
        self.assertEqual(self.state.executed_subs, [])

    def test_placement_after_kickoff_is_logged(self) -> None:
        self.state.kickoff_positions = self.state.positions_map()
        self.marks.set(1, 90, 90)

        benched = PlacementCommand(self.state, self.executor, "o", None, self.marks)
        self.manager.execute_command(benched)
        self.assertEqual(
            (benched.event.player_out, benched.event.player_in, benched.event.position),
            ("o", None, "CM"),
        )

        moved = PlacementCommand(self.state, self.executor, "p", "CM", self.marks)
        self.manager.execute_command(moved)
        self.assertEqual((moved.record.player_b, moved.record.a_from, moved.record.b_from), (None, "ST", "CM"))

        self.manager.undo()
        self.manager.undo()
        self.assertEqual(self.state.executed_subs, [])
        self.assertEqual(self.state.position_swaps, [])

    def test_injury_is_undone_with_the_move(self) -> None:
        self.marks.set(1, 30, 30)
        command = InjuryCommand(self.state, self.executor, "o", True, self.marks)
        self.manager.execute_command(command)
        olly = self.state.get_player("o")
        self.assertEqual((olly.position, olly.is_injured, olly.minutes_played), (None, True, 30))

        self.manager.undo()
        self.assertEqual((olly.position, olly.is_injured, olly.minutes_played), ("CM", False, 0))

    def test_history_is_bounded(self) -> None:
        manager = GameCommandManager(max_history=2)
        for position in ("LB", "CM", "ST"):
            manager.execute_command(PlacementCommand(self.state, self.executor, "c", position))
        self.assertEqual(len(manager.get_command_history()), 2)


if __name__ == "__main__":
    unittest.main()
