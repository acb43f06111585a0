"""
Unit tests for formation lookup and position labels.
"""
import unittest

from pitchboard.models import FORMATIONS, Position, get_formation, is_pitch_position
from pitchboard.models.formation import position_group


class TestPositions(unittest.TestCase):
    def test_labels(self) -> None:
        self.assertEqual(len(Position), 21)
        self.assertTrue(is_pitch_position("cm"))
        self.assertFalse(is_pitch_position("SW"))
        self.assertFalse(is_pitch_position(None))

    def test_groups(self) -> None:
        self.assertEqual(position_group("GK"), "GK")
        self.assertEqual(position_group("rwb"), "DEF")
        self.assertEqual(position_group("CAM"), "MID")
        self.assertEqual(position_group("CF"), "FWD")


class TestFormations(unittest.TestCase):
    def test_every_formation_fills_its_team_size(self) -> None:
        for size, formations in FORMATIONS.items():
            for formation in formations:
                with self.subTest(size=size, formation=formation.name):
                    self.assertEqual(len(formation.positions), int(size))
                    self.assertEqual(len(set(formation.positions)), int(size))
                    self.assertTrue(all(is_pitch_position(p) for p in formation.positions))

    def test_goalkeeper_rule(self) -> None:
        self.assertFalse(get_formation("4").has_goalkeeper)
        self.assertTrue(get_formation("7").has_goalkeeper)

    def test_shape(self) -> None:
        formation = get_formation("11", "4-3-3")
        self.assertEqual(formation.get_formation_shape(), (1, 4, 3, 3))
        self.assertEqual(formation.to_dict()["team_size"], "11")

    def test_default_and_unknown(self) -> None:
        self.assertEqual(get_formation().team_size, "7")
        with self.assertRaises(ValueError):
            get_formation("5")
        with self.assertRaises(ValueError):
            get_formation("7", "9-9-9")


if __name__ == "__main__":
    unittest.main()
