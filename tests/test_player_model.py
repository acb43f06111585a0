"""
Unit tests for the Player model.

Tests eligibility, playing-time intervals and record serialization.
"""
import unittest

from pitchboard.models import Player, can_play_position, normalize_positions


class TestPlayerModel(unittest.TestCase):
    """Test cases for Player."""

    def setUp(self) -> None:
        self.striker = Player(id="p1", name="Ava", number=9, eligible_positions=["st", " cm ", "ST"])
        self.anyone = Player(id="p2", name="Ben")

    def test_positions_are_normalized(self) -> None:
        self.assertEqual(self.striker.eligible_positions, ["ST", "CM"])
        self.assertEqual(normalize_positions("gk, lb ,GK"), ["GK", "LB"])
        self.assertEqual(normalize_positions(None), [])

    def test_eligibility(self) -> None:
        self.assertTrue(self.striker.can_play("st"))
        self.assertFalse(self.striker.can_play("GK"))
        self.assertTrue(self.anyone.is_unrestricted)
        self.assertTrue(can_play_position(self.anyone, "GK"))

    def test_interval_accounting(self) -> None:
        self.striker.position = "ST"
        self.striker.open_interval(100)
        # re-opening an open interval keeps the original start
        self.striker.open_interval(150)
        self.assertEqual(self.striker.current_stint_seconds(160), 60)
        self.assertEqual(self.striker.live_seconds(160), 60)

        self.assertEqual(self.striker.close_interval(400), 300)
        self.assertEqual(self.striker.minutes_played, 300)
        self.assertIsNone(self.striker.stint_start)
        self.assertEqual(self.striker.close_interval(500), 0)
        self.assertEqual(self.striker.minutes_played, 300)

    def test_record_round_trip(self) -> None:
        self.striker.position = "ST"
        self.striker.minutes_played = 42
        self.striker.stint_start = 10
        data = self.striker.to_dict()
        self.assertEqual(data["eligiblePositions"], ["ST", "CM"])
        self.assertEqual(data["minutesPlayed"], 42)
        self.assertEqual(Player.from_dict(data), self.striker)

    def test_from_dict_accepts_roster_keys(self) -> None:
        player = Player.from_dict({
            "id": "p3",
            "name": "Cal",
            "number": "7",
            "eligible_positions": ["lb"],
            "is_injured": True,
        })
        self.assertEqual(player.number, 7)
        self.assertEqual(player.eligible_positions, ["LB"])
        self.assertTrue(player.is_injured)
        self.assertFalse(player.on_pitch)

    def test_bad_jersey_number_is_dropped(self) -> None:
        player = Player.from_dict({"id": "p4", "number": "ten"})
        self.assertIsNone(player.number)
        self.assertEqual(player.name, "p4")


if __name__ == "__main__":
    unittest.main()
