import random
import unittest
from dataclasses import replace

from ludo_table.config import Config
from ludo_table.controller import TurnController
from ludo_table.errors import InvariantViolation
from ludo_table.scheduler import VirtualScheduler
from ludo_table.state import GameState, check_invariants
from ludo_table.types import AtBase, Color, Difficulty, GameMode, Phase, Screen

SETTINGS = Config(
    ROLL_DELAY_MS=600,
    AUTO_SKIP_DELAY_MS=1000,
    EASY_THINK_MS=800,
    MEDIUM_THINK_MS=1200,
    RESUME_DELAY_MS=500,
)


class ScriptedDice:
    """Rolls from a fixed script, then from a seeded generator."""

    def __init__(self, rolls, seed: int = 0):
        self.rolls = list(rolls)
        self._fallback = random.Random(seed)

    def randint(self, a, b):
        if self.rolls:
            return self.rolls.pop(0)
        return self._fallback.randint(a, b)

    def random(self):
        return self._fallback.random()

    def randrange(self, n):
        return self._fallback.randrange(n)


def place(state: GameState, token_id: str, progress: int) -> GameState:
    token = state.token(token_id)
    player = state.player(token.color)
    return state.with_player(player.with_token(token.moved_to(progress)))


class ControllerTestCase(unittest.TestCase):
    def make(self, rolls=(), seed: int = 0) -> TurnController:
        self.scheduler = VirtualScheduler()
        self.controller = TurnController(
            self.scheduler,
            rng=ScriptedDice(rolls, seed),
            settings=SETTINGS,
            clock=lambda: self.scheduler.now_ms,
        )
        return self.controller

    def setup_board(self, current: Color, **progress) -> None:
        """Place tokens by id (``red_0=18``) and hand the turn to ``current``."""
        state = self.controller.state
        for key, value in progress.items():
            state = place(state, key.replace("_", "-"), value)
        self.controller.state = replace(
            state, current_player_index=state.player_index(current)
        )
        check_invariants(self.controller.state)

    def roll(self) -> None:
        self.assertTrue(self.controller.request_roll())
        self.assertEqual(self.controller.phase, Phase.ROLLING)
        self.scheduler.advance(SETTINGS.ROLL_DELAY_MS)


class TestTurnScenarios(ControllerTestCase):
    def test_launch_then_advance(self):
        c = self.make([6, 3])
        c.initialize(4, GameMode.LOCAL)
        self.roll()
        self.assertEqual(c.phase, Phase.AWAITING_MOVE)
        self.assertEqual(
            c.legal_token_ids, ("red-0", "red-1", "red-2", "red-3")
        )
        self.assertTrue(c.request_move("red-0"))
        self.assertEqual(c.state.token("red-0").absolute, 0)
        # The six earns another roll
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)
        self.assertEqual(c.state.current_player.color, Color.RED)
        self.assertEqual(c.state.dice.six_streak, 1)

        self.roll()
        self.assertEqual(c.legal_token_ids, ("red-0",))
        self.assertTrue(c.request_move("red-0"))
        self.assertEqual(c.state.token("red-0").progress, 3)
        self.assertEqual(c.state.dice.six_streak, 0)
        self.assertEqual(c.state.current_player.color, Color.GREEN)
        self.assertEqual(len(c.state.move_log), 2)

    def test_capture_grants_extra_roll(self):
        c = self.make([2])
        c.initialize(4, GameMode.LOCAL)
        self.setup_board(Color.RED, red_0=18, green_0=7)
        self.roll()
        self.assertTrue(c.request_move("red-0"))
        self.assertEqual(c.state.token("red-0").absolute, 20)
        self.assertIsInstance(c.state.token("green-0").place, AtBase)
        self.assertEqual(c.state.current_player.color, Color.RED)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)
        self.assertEqual(c.state.dice.six_streak, 0)
        self.assertEqual(c.state.move_log[-1].captured, ("green-0",))

    def test_safe_square_shared(self):
        c = self.make([3])
        c.initialize(4, GameMode.LOCAL)
        self.setup_board(Color.GREEN, yellow_0=47, green_0=5)
        self.roll()
        self.assertTrue(c.request_move("green-0"))
        self.assertEqual(c.state.token("green-0").absolute, 21)
        self.assertEqual(c.state.token("yellow-0").absolute, 21)
        self.assertEqual(c.state.last_captured, ())
        self.assertEqual(c.state.current_player.color, Color.YELLOW)

    def test_exact_finish_and_auto_skip(self):
        c = self.make([2, 1])
        c.initialize(4, GameMode.LOCAL)
        self.setup_board(Color.BLUE, blue_0=56)
        self.roll()
        self.assertEqual(c.phase, Phase.NO_LEGAL_MOVE)
        self.assertEqual(c.legal_token_ids, ())
        self.assertFalse(c.request_move("blue-0"))
        self.scheduler.advance(SETTINGS.AUTO_SKIP_DELAY_MS - 1)
        self.assertEqual(c.phase, Phase.NO_LEGAL_MOVE)
        self.scheduler.advance(1)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)
        self.assertEqual(c.state.current_player.color, Color.RED)

        c.state = replace(c.state, current_player_index=3)
        self.roll()
        self.assertEqual(c.legal_token_ids, ("blue-0",))
        self.assertTrue(c.request_move("blue-0"))
        self.assertTrue(c.state.token("blue-0").is_finished)
        self.assertEqual(c.state.current_player.color, Color.BLUE)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)

    def test_third_six_forfeits_turn(self):
        c = self.make([6, 6, 6])
        c.initialize(4, GameMode.LOCAL)
        self.roll()
        c.request_move("red-0")
        self.roll()
        c.request_move("red-0")
        self.assertEqual(c.state.dice.six_streak, 2)
        self.roll()
        self.assertEqual(c.state.current_player.color, Color.GREEN)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)
        self.assertEqual(c.state.dice.six_streak, 0)
        red_moves = [e for e in c.state.move_log if e.color == Color.RED]
        self.assertEqual(len(red_moves), 2)
        self.assertEqual(c.state.token("red-0").progress, 6)

    def test_win_detection(self):
        c = self.make([2])
        c.initialize(4, GameMode.LOCAL)
        self.setup_board(
            Color.GREEN,
            green_0=57,
            green_1=57,
            green_2=57,
            green_3=55,
            blue_0=57,
            blue_1=57,
            red_0=57,
            yellow_2=57,
        )
        self.roll()
        self.assertTrue(c.request_move("green-3"))
        state = c.state
        self.assertTrue(state.game_over)
        self.assertEqual(state.winner.color, Color.GREEN)
        self.assertEqual(
            [p.color for p in state.ranking],
            [Color.GREEN, Color.BLUE, Color.RED, Color.YELLOW],
        )
        self.assertEqual(c.phase, Phase.GAME_OVER)
        self.assertEqual(c.screen, Screen.GAME_OVER)
        self.assertEqual(self.scheduler.pending, 0)
        self.assertFalse(c.request_roll())


class TestRequests(ControllerTestCase):
    def test_out_of_phase_requests_are_ignored(self):
        c = self.make([4])
        self.assertFalse(c.request_roll())
        c.initialize(2, GameMode.LOCAL)
        self.setup_board(Color.RED, red_0=10)
        self.assertFalse(c.request_move("red-0"))
        self.assertTrue(c.request_roll())
        self.assertFalse(c.request_roll())
        self.scheduler.advance(SETTINGS.ROLL_DELAY_MS)
        self.assertFalse(c.request_move("red-1"))
        self.assertFalse(c.request_roll())
        self.assertTrue(c.request_move("red-0"))
        self.assertEqual(c.state.current_player.color, Color.YELLOW)

    def test_select_token(self):
        c = self.make([6])
        c.initialize(4, GameMode.LOCAL)
        self.assertFalse(c.select_token("red-0"))
        self.roll()
        self.assertTrue(c.select_token("red-2"))
        self.assertEqual(c.snapshot().selected_token_id, "red-2")
        self.assertFalse(c.select_token("green-0"))
        self.assertTrue(c.select_token(None))
        self.assertIsNone(c.selected_token_id)
        c.select_token("red-1")
        c.request_move("red-1")
        self.assertIsNone(c.selected_token_id)

    def test_current_player_and_turn(self):
        c = self.make()
        self.assertIsNone(c.current_player())
        self.assertFalse(c.is_player_turn("player-red"))
        c.initialize(3, GameMode.LOCAL)
        self.assertEqual(c.current_player().name, "Red")
        self.assertTrue(c.is_player_turn("player-red"))
        self.assertFalse(c.is_player_turn("player-green"))


class TestSetup(ControllerTestCase):
    def test_local_seats_are_human(self):
        c = self.make()
        c.initialize(2, GameMode.LOCAL)
        self.assertEqual(
            [p.color for p in c.state.players], [Color.RED, Color.YELLOW]
        )
        self.assertFalse(any(p.is_machine for p in c.state.players))
        self.assertEqual(c.screen, Screen.GAME)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)

    def test_versus_machine_seats(self):
        c = self.make()
        c.initialize(4, "vsMachine", "easy")
        self.assertEqual(c.mode, GameMode.VS_MACHINE)
        self.assertEqual(c.difficulty, Difficulty.EASY)
        self.assertEqual(
            [p.name for p in c.state.players],
            ["Red", "Green (CPU)", "Yellow (CPU)", "Blue (CPU)"],
        )

    def test_human_seats_override(self):
        c = self.make()
        c.initialize(3, GameMode.VS_MACHINE, human_seats=["green", Color.YELLOW])
        machines = [p.color for p in c.state.players if p.is_machine]
        self.assertEqual(machines, [Color.RED])
        # Red is a machine, so its roll is already queued
        self.assertEqual(self.scheduler.pending, 1)
        self.assertFalse(c.request_roll())

    def test_bad_settings_raise(self):
        c = self.make()
        with self.assertRaises(ValueError):
            c.initialize(5)
        with self.assertRaises(ValueError):
            c.initialize(4, "online")
        with self.assertRaises(ValueError):
            c.initialize(4, GameMode.LOCAL, "hard")
        with self.assertRaises(InvariantViolation):
            c.initialize(4, GameMode.VS_MACHINE, human_seats=["purple"])
        self.assertIsNone(c.state)

    def test_screen_and_sound(self):
        c = self.make()
        self.assertEqual(c.screen, Screen.SPLASH)
        c.set_screen("home")
        self.assertEqual(c.snapshot().screen, Screen.HOME)
        with self.assertRaises(ValueError):
            c.set_screen("credits")
        self.assertTrue(c.sound_enabled)
        c.toggle_sound()
        self.assertFalse(c.snapshot().sound_enabled)
        c.set_sound_enabled(True)
        self.assertTrue(c.sound_enabled)

    def test_subscribe_and_unsubscribe(self):
        c = self.make()
        seen = []
        unsubscribe = c.subscribe(seen.append)
        c.initialize(4, GameMode.LOCAL)
        self.assertEqual(len(seen), 1)
        self.assertEqual(seen[0].phase, Phase.AWAITING_ROLL)
        self.assertIs(seen[0].state, c.state)
        unsubscribe()
        unsubscribe()
        c.toggle_sound()
        self.assertEqual(len(seen), 1)


class TestMachineTurns(ControllerTestCase):
    def test_machine_rolls_and_moves_on_schedule(self):
        c = self.make([6, 4])
        c.initialize(4, GameMode.VS_MACHINE, Difficulty.MEDIUM, human_seats=["yellow"])
        self.assertFalse(c.request_roll())

        self.scheduler.advance(1199)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)
        self.scheduler.advance(1)
        self.assertEqual(c.phase, Phase.ROLLING)
        self.scheduler.advance(600)
        self.assertEqual(c.phase, Phase.AWAITING_MOVE)
        self.assertFalse(c.request_move("red-0"))
        self.scheduler.advance(600)
        # Every launch scores the same, so the first token goes
        self.assertEqual(c.state.token("red-0").progress, 0)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)
        self.assertEqual(c.state.current_player.color, Color.RED)

        self.scheduler.advance(1200)
        self.scheduler.advance(600)
        self.assertEqual(c.legal_token_ids, ("red-0",))
        self.scheduler.advance(600)
        self.assertEqual(c.state.token("red-0").progress, 4)
        self.assertEqual(c.state.current_player.color, Color.GREEN)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)
        self.assertEqual(self.scheduler.pending, 1)

    def test_easy_machine_thinks_faster(self):
        c = self.make([3])
        c.initialize(2, GameMode.VS_MACHINE, Difficulty.EASY, human_seats=())
        self.scheduler.advance(800)
        self.assertEqual(c.phase, Phase.ROLLING)

    def test_full_machine_game_keeps_invariants(self):
        scheduler = VirtualScheduler()
        c = TurnController(
            scheduler,
            rng=random.Random(7),
            settings=SETTINGS,
            clock=lambda: scheduler.now_ms,
        )
        snapshots = []
        c.subscribe(snapshots.append)
        c.initialize(4, GameMode.VS_MACHINE, Difficulty.EASY, human_seats=())
        scheduler.run_until_idle(
            max_callbacks=500_000, until=lambda: c.state.game_over
        )

        state = c.state
        self.assertTrue(state.game_over)
        self.assertTrue(state.winner.has_won())
        self.assertEqual(state.ranking[0].color, state.winner.color)
        self.assertEqual(c.phase, Phase.GAME_OVER)
        self.assertEqual(scheduler.pending, 0)
        for snap in snapshots:
            check_invariants(snap.state)
        for entry in state.move_log:
            self.assertGreater(entry.progress_after, entry.progress_before)
        timestamps = [e.timestamp for e in state.move_log]
        self.assertEqual(timestamps, sorted(timestamps))


class TestPauseAndReset(ControllerTestCase):
    def test_pause_holds_human_roll(self):
        c = self.make([5])
        c.initialize(4, GameMode.LOCAL)
        c.request_roll()
        self.scheduler.advance(300)
        c.pause()
        self.assertTrue(c.snapshot().state.paused)
        self.assertEqual(self.scheduler.pending, 0)
        self.assertFalse(c.request_roll())
        self.scheduler.advance(5000)
        self.assertEqual(c.phase, Phase.ROLLING)

        c.resume()
        self.assertFalse(c.state.paused)
        self.scheduler.advance(SETTINGS.ROLL_DELAY_MS - 1)
        self.assertEqual(c.phase, Phase.ROLLING)
        self.scheduler.advance(1)
        self.assertEqual(c.state.dice.value, 5)

    def test_resume_restarts_machine_after_short_delay(self):
        c = self.make([3])
        c.initialize(4, GameMode.VS_MACHINE, human_seats=())
        self.scheduler.advance(100)
        c.pause()
        c.pause()
        self.scheduler.advance(5000)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)
        c.resume()
        self.scheduler.advance(SETTINGS.RESUME_DELAY_MS - 1)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)
        self.scheduler.advance(1)
        self.assertEqual(c.phase, Phase.ROLLING)

    def test_reset_drops_pending_work(self):
        c = self.make([6])
        c.initialize(4, GameMode.LOCAL)
        c.request_roll()
        c.reset()
        self.scheduler.advance(10_000)
        self.assertIsNone(c.state)
        self.assertEqual(c.phase, Phase.IDLE)
        self.assertEqual(c.screen, Screen.HOME)
        self.assertFalse(c.request_roll())

    def test_new_game_discards_old_roll(self):
        c = self.make([6, 2])
        c.initialize(4, GameMode.LOCAL)
        c.request_roll()
        c.initialize(4, GameMode.LOCAL)
        self.scheduler.advance(10_000)
        self.assertEqual(c.phase, Phase.AWAITING_ROLL)
        self.assertEqual(c.state.dice.value, 0)
        self.roll()
        self.assertEqual(c.state.dice.value, 6)


if __name__ == "__main__":
    unittest.main()
