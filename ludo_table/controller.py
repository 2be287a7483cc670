"""
Turn controller: the single owner and writer of a game's state.

The UI sends requests (roll, move, pause, resume, reset) and subscribes to
immutable snapshots. Delays are handed to an injectable scheduler and re-enter
the controller as fresh callbacks; machine seats are driven the same way.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Collection, List, Optional, Tuple

from loguru import logger

from .config import Config, config
from .opponent import HeuristicOpponent, think_delay_ms
from .player import Player, seat_colors
from .rules import (
    EXIT_ROLL,
    apply_move,
    extra_turn,
    is_forfeit,
    legal_tokens,
    roll_dice,
    terminal,
)
from .scheduler import Scheduler
from .state import DiceState, GameState, check_invariants, new_game_state
from .types import Color, Difficulty, GameMode, Phase, PlayerKind, Screen


@dataclass(frozen=True, slots=True)
class Snapshot:
    """What a renderer sees after each transition."""

    state: Optional[GameState]
    phase: Phase
    legal_token_ids: Tuple[str, ...]
    screen: Screen
    sound_enabled: bool
    mode: GameMode
    difficulty: Difficulty
    selected_token_id: Optional[str] = None


@dataclass(slots=True, eq=False)
class _Pending:
    kind: str
    delay_ms: float
    action: Callable[[], None]
    epoch: int
    handle: Any = None


class TurnController:
    def __init__(
        self,
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
        settings: Config = config,
        clock: Callable[[], float] = time.time,
    ):
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.settings = settings
        self.clock = clock

        self.state: Optional[GameState] = None
        self.phase = Phase.IDLE
        self.mode = GameMode.LOCAL
        self.difficulty = Difficulty.MEDIUM
        self.screen = Screen.SPLASH
        self.sound_enabled = True
        self.legal_token_ids: Tuple[str, ...] = ()
        self.selected_token_id: Optional[str] = None

        self._opponent = HeuristicOpponent(
            self.difficulty, rng=self.rng, settings=self.settings
        )
        self._pending: List[_Pending] = []
        self._epoch = 0
        self._subscribers: List[Callable[[Snapshot], None]] = []

    # --- Observation ---
    def subscribe(self, callback: Callable[[Snapshot], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> Snapshot:
        return Snapshot(
            state=self.state,
            phase=self.phase,
            legal_token_ids=self.legal_token_ids,
            screen=self.screen,
            sound_enabled=self.sound_enabled,
            mode=self.mode,
            difficulty=self.difficulty,
            selected_token_id=self.selected_token_id,
        )

    def current_player(self) -> Optional[Player]:
        return self.state.current_player if self.state else None

    def is_player_turn(self, player_id: str) -> bool:
        player = self.current_player()
        return player is not None and player.id == player_id

    def _publish(self) -> None:
        snap = self.snapshot()
        for callback in list(self._subscribers):
            callback(snap)

    # --- Setup ---
    def initialize(
        self,
        player_count: int,
        mode: GameMode | str = GameMode.LOCAL,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        human_seats: Optional[Collection[Color | str]] = None,
    ) -> None:
        """Start a new game, discarding any game in progress.

        In ``vsMachine`` mode only the first seat is human unless
        ``human_seats`` names the human colors.
        """
        try:
            mode = GameMode(mode)
            difficulty = Difficulty(difficulty)
        except ValueError as e:
            raise ValueError(f"Invalid game settings: {e}") from None
        colors = seat_colors(player_count)

        if mode is GameMode.LOCAL:
            humans = set(colors)
        elif human_seats is None:
            humans = {colors[0]}
        else:
            humans = {Color.parse(c) for c in human_seats}
        kinds = {
            c: PlayerKind.HUMAN if c in humans else PlayerKind.MACHINE for c in colors
        }

        self._cancel_all()
        self._epoch += 1
        self.mode = mode
        self.difficulty = difficulty
        self._opponent = HeuristicOpponent(
            difficulty, rng=self.rng, settings=self.settings
        )
        self.state = new_game_state(player_count, kinds)
        self.phase = Phase.AWAITING_ROLL
        self.legal_token_ids = ()
        self.selected_token_id = None
        self.screen = Screen.GAME
        seats = ", ".join(p.name for p in self.state.players)
        logger.info(f"New {mode.value} game ({difficulty.value}): {seats}")
        self._publish()
        self._queue_machine_turn()

    def reset(self) -> None:
        """Drop the game and everything scheduled for it; back to the menu."""
        self._cancel_all()
        self._epoch += 1
        self.state = None
        self.phase = Phase.IDLE
        self.legal_token_ids = ()
        self.selected_token_id = None
        self.screen = Screen.HOME
        logger.debug("Game reset")
        self._publish()

    # --- UI requests ---
    def _accepts_input(self, action: str) -> bool:
        state = self.state
        if state is None or state.game_over or state.paused:
            logger.debug(f"Ignoring {action}: no active game")
            return False
        if state.current_player.is_machine:
            logger.debug(f"Ignoring {action}: {state.current_player.name} is playing")
            return False
        return True

    def request_roll(self) -> bool:
        if not self._accepts_input("roll"):
            return False
        if self.phase is not Phase.AWAITING_ROLL:
            logger.debug(f"Ignoring roll while {self.phase.value}")
            return False
        self._start_roll()
        return True

    def request_move(self, token_id: str) -> bool:
        if not self._accepts_input("move"):
            return False
        if self.phase is not Phase.AWAITING_MOVE or token_id not in self.legal_token_ids:
            logger.debug(f"Ignoring move of {token_id} while {self.phase.value}")
            return False
        self._apply(token_id)
        return True

    def select_token(self, token_id: Optional[str]) -> bool:
        if token_id is not None and (
            not self._accepts_input("select") or token_id not in self.legal_token_ids
        ):
            return False
        self.selected_token_id = token_id
        self._publish()
        return True

    def pause(self) -> None:
        state = self.state
        if state is None or state.game_over or state.paused:
            return
        self.state = replace(state, paused=True)
        for entry in self._pending:
            if entry.handle is not None:
                self.scheduler.cancel(entry.handle)
                entry.handle = None
        logger.info(f"Paused with {len(self._pending)} pending action(s)")
        self._publish()

    def resume(self) -> None:
        state = self.state
        if state is None or not state.paused:
            return
        self.state = replace(state, paused=False)
        for entry in self._pending:
            if entry.handle is None:
                delay = entry.delay_ms
                if entry.kind.startswith("machine"):
                    delay = self.settings.RESUME_DELAY_MS
                entry.handle = self.scheduler.schedule(delay, self._firing(entry))
        logger.info("Resumed")
        self._publish()

    def set_sound_enabled(self, enabled: bool) -> None:
        self.sound_enabled = bool(enabled)
        self._publish()

    def toggle_sound(self) -> None:
        self.set_sound_enabled(not self.sound_enabled)

    def set_screen(self, screen: Screen | str) -> None:
        self.screen = Screen(screen)
        self._publish()

    # --- Scheduling ---
    def _schedule(self, kind: str, delay_ms: float, action: Callable[[], None]) -> None:
        entry = _Pending(kind=kind, delay_ms=delay_ms, action=action, epoch=self._epoch)
        self._pending.append(entry)
        if not self.state.paused:
            entry.handle = self.scheduler.schedule(delay_ms, self._firing(entry))
        logger.debug(f"Scheduled {kind} in {delay_ms}ms")

    def _firing(self, entry: _Pending) -> Callable[[], None]:
        def fire() -> None:
            if entry.epoch != self._epoch or not any(e is entry for e in self._pending):
                logger.debug(f"Dropping stale {entry.kind}")
                return
            if self.state.paused:
                # Stays pending; resume schedules it again.
                entry.handle = None
                return
            self._pending.remove(entry)
            entry.action()

        return fire

    def _cancel_all(self) -> None:
        for entry in self._pending:
            if entry.handle is not None:
                self.scheduler.cancel(entry.handle)
        self._pending.clear()

    def _queue_machine_turn(self) -> None:
        state = self.state
        if (
            state is None
            or state.game_over
            or self.phase is not Phase.AWAITING_ROLL
            or not state.current_player.is_machine
        ):
            return
        delay = think_delay_ms(self.difficulty, self.settings)
        self._schedule("machine_roll", delay, self._machine_roll)

    # --- Turn flow ---
    def _set_dice(self, **changes) -> None:
        self.state = replace(self.state, dice=replace(self.state.dice, **changes))

    def _start_roll(self) -> None:
        self.phase = Phase.ROLLING
        self._set_dice(rolling=True, can_roll=False)
        self._publish()
        self._schedule("roll", self.settings.ROLL_DELAY_MS, self._finish_roll)

    def _finish_roll(self) -> None:
        if self.phase is not Phase.ROLLING:
            return
        player = self.state.current_player
        value = roll_dice(self.rng)
        streak = self.state.dice.six_streak + 1 if value == EXIT_ROLL else 0
        if is_forfeit(streak):
            logger.info(f"{player.name} rolled {streak} sixes in a row; turn forfeited")
            self._end_turn()
            return

        legal = legal_tokens(player, value)
        self._set_dice(value=value, rolling=False, can_roll=False, six_streak=streak)
        self.legal_token_ids = tuple(t.id for t in legal)
        logger.info(f"{player.name} rolled {value}")

        if not legal:
            self.phase = Phase.NO_LEGAL_MOVE
            self._publish()
            self._schedule("auto_skip", self.settings.AUTO_SKIP_DELAY_MS, self._auto_skip)
            return

        self.phase = Phase.AWAITING_MOVE
        self._publish()
        if player.is_machine:
            delay = think_delay_ms(self.difficulty, self.settings) / 2
            self._schedule("machine_move", delay, self._machine_move)

    def _apply(self, token_id: str) -> None:
        self.phase = Phase.APPLYING
        dice = self.state.dice
        player = self.state.current_player
        outcome = apply_move(
            self.state, self.state.token(token_id), dice.value, timestamp=self.clock()
        )
        self.state = outcome.state
        self.legal_token_ids = ()
        self.selected_token_id = None

        entry = outcome.entry
        logger.info(
            f"{player.name} moved {token_id}: {entry.progress_before} -> {entry.progress_after}"
        )
        for victim in outcome.captured:
            logger.info(f"{player.name} captured {victim.id}")

        result = terminal(self.state.players)
        if result.over:
            self.state = replace(
                self.state,
                game_over=True,
                winner=result.winner,
                ranking=result.ranking,
                dice=replace(dice, rolling=False, can_roll=False),
            )
            check_invariants(self.state)
            self._cancel_all()
            self.phase = Phase.GAME_OVER
            self.screen = Screen.GAME_OVER
            order = ", ".join(p.name for p in result.ranking)
            logger.info(f"{result.winner.name} wins; ranking: {order}")
            self._publish()
            return

        check_invariants(self.state)
        if extra_turn(
            dice.value,
            bool(outcome.captured),
            dice.six_streak,
            finished=outcome.finished_now,
        ):
            streak = dice.six_streak if dice.value == EXIT_ROLL else 0
            self.state = replace(self.state, dice=DiceState(six_streak=streak))
            self.phase = Phase.AWAITING_ROLL
            logger.debug(f"{player.name} rolls again")
            self._publish()
            self._queue_machine_turn()
            return

        self._end_turn()

    def _end_turn(self) -> None:
        state = self.state
        next_index = (state.current_player_index + 1) % len(state.players)
        self.state = replace(state, current_player_index=next_index, dice=DiceState())
        self.phase = Phase.AWAITING_ROLL
        self.legal_token_ids = ()
        self.selected_token_id = None
        self._publish()
        self._queue_machine_turn()

    def _auto_skip(self) -> None:
        if self.phase is not Phase.NO_LEGAL_MOVE:
            return
        logger.info(f"{self.state.current_player.name} has no legal move; skipping")
        self._end_turn()

    def _machine_roll(self) -> None:
        if self.phase is Phase.AWAITING_ROLL and self.state.current_player.is_machine:
            self._start_roll()

    def _machine_move(self) -> None:
        if self.phase is not Phase.AWAITING_MOVE:
            return
        player = self.state.current_player
        if not player.is_machine:
            return
        token = self._opponent.select(player, self.state.dice.value, self.state.players)
        if token is None:
            self._end_turn()
            return
        self._apply(token.id)
