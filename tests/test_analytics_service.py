"""Tests for end-of-game statistics and CSV export."""
import copy
import csv
import io
import unittest

from pitchboard.models import (
    Goal, PitchState, Player, PositionSwap, PositionSwapRecord, SubstitutionEvent,
)
from pitchboard.services import GameReportExporter, GameStatsAggregator


def finished_match() -> PitchState:
    players = [
        Player(id="k", name="Kai", number=4, minutes_played=600),
        Player(id="s", name="Sol", number=9, position="CM", minutes_played=1200),
        Player(id="b", name="Bo", number=12, position="ST", minutes_played=600),
        Player(id="m", name="Max", number=6, position="LCB", minutes_played=1200),
        Player(id="f", name="Fran", is_fill_in=True),
    ]
    return PitchState(
        team_id="team-1",
        players=players,
        team_size="7",
        formation_name="2-3-1",
        executed_subs=[
            SubstitutionEvent(
                time=600, half=1, player_out="k", player_in="b", position="CM",
                position_swap=PositionSwap("s", "ST", "CM"), executed=True,
            ),
            # skipped events never count
            SubstitutionEvent(time=900, half=1, player_out="s", player_in="f", skipped=True),
        ],
        position_swaps=[PositionSwapRecord(time=60, half=2, player_a="m", player_b="s",
                                           a_from="LCB", b_from="CM")],
        goals=[
            Goal(time=100, half=1, scorer_id="s", scorer_name="Sol"),
            Goal(time=200, half=1, scorer_id="s", scorer_name="Sol"),
            Goal(time=300, half=2, is_opponent_goal=True),
            Goal(time=400, half=2),
        ],
        kickoff_positions={"k": "CM", "s": "ST", "b": None, "m": "LCB", "f": None},
    )


class GameStatsAggregatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.state = finished_match()
        self.aggregator = GameStatsAggregator()

    def aggregate(self, state=None):
        return self.aggregator.aggregate(
            state or self.state, match_id="match-1", total_game_time=1200, half_duration=600
        )

    def test_summary_row(self) -> None:
        row = self.aggregate().summary.to_row()
        self.assertEqual(row, {
            "event_id": "match-1",
            "team_id": "team-1",
            "total_game_time": 1200,
            "half_duration": 600,
            "formation_used": "2-3-1",
            "team_size": "7",
            "total_substitutions": 1,
        })

    def test_player_rows(self) -> None:
        rows = {r["user_id"] or r["fill_in_player_name"]: r for r in self.aggregate().player_rows()}

        self.assertEqual(rows["k"]["positions_played"], ["CM"])
        self.assertTrue(rows["k"]["started_on_pitch"])
        self.assertEqual(rows["k"]["substitutions_count"], 1)

        self.assertEqual(rows["s"]["positions_played"], ["CM", "LCB", "ST"])
        self.assertEqual(rows["s"]["goals_scored"], 2)
        self.assertEqual(rows["s"]["substitutions_count"], 1)

        self.assertEqual(rows["b"]["positions_played"], ["ST"])
        self.assertFalse(rows["b"]["started_on_pitch"])
        self.assertEqual(rows["b"]["jersey_number"], 12)

        self.assertEqual(rows["m"]["positions_played"], ["CM", "LCB"])
        self.assertEqual(rows["m"]["substitutions_count"], 0)

        fill_in = rows["Fran"]
        self.assertIsNone(fill_in["user_id"])
        self.assertEqual(fill_in["positions_played"], [])
        self.assertEqual(fill_in["substitutions_count"], 0)
        self.assertIsNone(fill_in["jersey_number"])

    def test_aggregation_is_idempotent(self) -> None:
        first = self.aggregate()
        second = self.aggregate()
        self.assertEqual(first.to_dict(), second.to_dict())
        self.assertEqual(self.aggregate(copy.deepcopy(self.state)).to_dict(), first.to_dict())

    def test_jersey_number_zero_is_kept(self) -> None:
        self.state.players.append(Player(id="z", name="Zed", number=0))
        rows = {r.player_name: r for r in self.aggregate().players}
        self.assertEqual(rows["Zed"].jersey_number, 0)
        csv_rows = list(csv.reader(io.StringIO(GameReportExporter().export_to_csv(self.aggregate()))))
        self.assertEqual(csv_rows[-1][:2], ["Zed", "0"])

    def test_moves_with_an_empty_side_are_counted(self) -> None:
        self.state.executed_subs.append(
            SubstitutionEvent(time=30, half=2, player_out=None, player_in="f", position="RM", executed=True)
        )
        self.state.position_swaps.append(
            PositionSwapRecord(time=40, half=2, player_a="b", player_b=None, a_from="ST", b_from="LM")
        )
        rows = {r.player_name: r for r in self.aggregate().players}
        self.assertEqual((rows["Fran"].positions_played, rows["Fran"].substitutions_count), (["RM"], 1))
        self.assertIn("LM", rows["Bo"].positions_played)
        self.assertEqual(self.aggregate().summary.total_substitutions, 2)

    def test_team_id_override(self) -> None:
        report = self.aggregator.aggregate(self.state, "match-1", 0, 600, team_id="other")
        self.assertEqual(report.summary.team_id, "other")
        self.assertTrue(all(p.team_id == "other" for p in report.players))


class GameReportExporterTests(unittest.TestCase):
    def test_csv_export_format(self) -> None:
        report = GameStatsAggregator().aggregate(finished_match(), "match-1", 1200, 600)
        csv_content = GameReportExporter().export_to_csv(report)

        rows = list(csv.reader(io.StringIO(csv_content)))
        self.assertEqual(rows[0], ["Name", "Number", "Fill-in", "Started", "Minutes",
                                   "Positions", "Substitutions", "Goals"])
        self.assertEqual(len(rows), 6)
        self.assertEqual(rows[2], ["Sol", "9", "no", "yes", "20:00", "CM LCB ST", "1", "2"])
        self.assertEqual(rows[5][:3], ["Fran", "", "yes"])


if __name__ == "__main__":
    unittest.main()
