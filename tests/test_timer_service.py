import unittest
from unittest.mock import patch

from pitchboard.models import ClockPhase, GameClockState
from pitchboard.services import GameClock, PersistenceService
from pitchboard.utils import TIMER_STORAGE_KEY


def secs(n: float) -> int:
    return int(n * 1000)


class GameClockTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = PersistenceService()
        self.clock = GameClock(self.store, GameClockState(minutes_per_half=25))

    def test_reload_after_long_gap_caps_at_half_bound(self) -> None:
        self.clock.toggle(now=0)
        restored = GameClock(self.store)
        self.assertTrue(restored.load())

        reading = restored.read(now=secs(4000))
        self.assertEqual(reading.elapsed_seconds, 1500)
        self.assertEqual(reading.phase, ClockPhase.HALF_COMPLETE)
        self.assertEqual(reading.remaining_seconds, 0)

        self.assertEqual(restored.tick(now=secs(4000)), ClockPhase.HALF_COMPLETE)
        self.assertFalse(restored.state.is_running)
        self.assertEqual(restored.state.elapsed_seconds, 1500)
        self.assertIsNone(restored.tick(now=secs(5000)))

    def test_pause_and_resume_never_lose_or_repeat_seconds(self) -> None:
        self.clock.toggle(now=secs(1))
        self.clock.toggle(now=secs(11.5))
        self.assertEqual(self.clock.state.elapsed_seconds, 10)
        self.assertEqual(self.clock.phase(now=secs(50)), ClockPhase.PAUSED)
        self.assertEqual(self.clock.displayed_elapsed(now=secs(50)), 10)

        self.clock.toggle(now=secs(20))
        self.assertEqual(self.clock.displayed_elapsed(now=secs(20.999)), 10)
        self.assertEqual(self.clock.displayed_elapsed(now=secs(21)), 11)

    def test_displayed_elapsed_never_drops_below_stored(self) -> None:
        self.clock.toggle(now=secs(100))
        self.clock.state.elapsed_seconds = 30
        # wall clock moved backwards
        self.assertEqual(self.clock.displayed_elapsed(now=secs(90)), 30)

    def test_second_half_total_game_time(self) -> None:
        self.clock.toggle(now=0)
        self.clock.tick(now=secs(1500))
        reading = self.clock.toggle(now=secs(1600))
        self.assertEqual(reading.half, 2)
        self.assertEqual(reading.elapsed_seconds, 0)
        self.assertEqual(self.clock.state.first_half_seconds, 1500)
        self.assertEqual(self.clock.total_game_seconds(now=secs(1660)), 1560)

    def test_second_half_after_early_pause_banks_actual_first_half(self) -> None:
        self.clock.toggle(now=0)
        self.clock.toggle(now=secs(600))
        self.clock.start_second_half(now=secs(700))
        self.assertEqual(self.clock.state.first_half_seconds, 600)
        self.assertEqual(self.clock.total_game_seconds(now=secs(710)), 610)

        with self.assertRaises(ValueError):
            self.clock.start_second_half(now=secs(720))

    def test_cannot_start_second_half_while_first_is_running(self) -> None:
        self.clock.toggle(now=0)
        with self.assertRaises(ValueError):
            self.clock.start_second_half(now=secs(60))

    def test_match_concludes_at_end_of_second_half(self) -> None:
        self.clock.toggle(now=0)
        self.clock.tick(now=secs(1500))
        self.clock.start_second_half(now=secs(1500))
        self.assertEqual(self.clock.tick(now=secs(3100)), ClockPhase.CONCLUDED)
        self.assertTrue(self.clock.state.is_finished)
        self.assertEqual(self.clock.total_game_seconds(now=secs(4000)), 3000)

        reading = self.clock.toggle(now=secs(4000))
        self.assertEqual(reading.phase, ClockPhase.CONCLUDED)
        self.assertFalse(reading.is_running)

    def test_configure_rules(self) -> None:
        with self.assertRaises(ValueError):
            self.clock.configure(minutes_per_half=0)
        with self.assertRaises(ValueError):
            self.clock.configure(minutes_per_half=61)

        self.clock.configure(minutes_per_half=20, team_id="team-1", team_name="Lions")
        self.assertEqual(self.clock.state.half_seconds, 1200)
        self.assertEqual(self.clock.state.team_id, "team-1")

        self.clock.toggle(now=0)
        with self.assertRaises(ValueError):
            self.clock.configure(minutes_per_half=30)

    def test_now_defaults_to_wall_clock(self) -> None:
        with patch("pitchboard.services.timer_service.now_ms", return_value=secs(1000)):
            self.clock.toggle()
        with patch("pitchboard.services.timer_service.now_ms", return_value=secs(1042)):
            self.assertEqual(self.clock.read().elapsed_seconds, 42)

    def test_dismiss_clears_record_and_notifies(self) -> None:
        calls = []
        self.clock.add_dismiss_listener(lambda: calls.append("cleared"))
        self.clock.toggle(now=0)
        self.assertIsNotNone(self.store.load(TIMER_STORAGE_KEY))

        self.clock.dismiss()
        self.assertIsNone(self.store.load(TIMER_STORAGE_KEY))
        self.assertEqual(calls, ["cleared"])
        self.assertFalse(self.clock.has_started)
        self.assertEqual(self.clock.state.minutes_per_half, 25)


class GameClockStateTests(unittest.TestCase):
    def test_record_round_trip_uses_record_keys(self) -> None:
        state = GameClockState(minutes_per_half=30, current_half=2, elapsed_seconds=125,
                               is_running=True, last_update_ms=99, team_id="t1")
        data = state.to_json()
        self.assertEqual(data["minutesPerHalf"], 30)
        self.assertEqual(data["isGameFinished"], False)
        self.assertEqual(data["teamId"], "t1")
        self.assertNotIn("teamName", data)
        self.assertEqual(GameClockState.from_json(data), state)

    def test_from_json_clamps_elapsed(self) -> None:
        state = GameClockState.from_json({"minutesPerHalf": 10, "elapsedSeconds": 9999})
        self.assertEqual(state.elapsed_seconds, 600)


if __name__ == "__main__":
    unittest.main()
