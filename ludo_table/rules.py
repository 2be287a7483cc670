"""
Move rules for Ludo.

Pure functions over immutable state: legality, destinations, captures,
extra turns and end-of-game detection. Nothing here mutates its input.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from .board import FINISH, RING_LENGTH, absolute_of, is_safe
from .errors import IllegalMove, InvariantViolation
from .player import Player
from .state import GameState, MoveLogEntry
from .token import Token
from .types import Color

DICE_MIN = 1
DICE_MAX = 6
EXIT_ROLL = 6
FORFEIT_STREAK = 3


@dataclass(frozen=True, slots=True)
class MoveOutcome:
    state: GameState
    captured: Tuple[Token, ...]  # tokens as they stood before being sent back
    finished_now: bool
    entry: MoveLogEntry


@dataclass(frozen=True, slots=True)
class Terminal:
    over: bool
    winner: Optional[Player]
    ranking: Tuple[Player, ...]


def _check_dice(dice: int) -> None:
    if not DICE_MIN <= dice <= DICE_MAX:
        raise InvariantViolation(f"Dice value out of range: {dice}")


def roll_dice(rng: random.Random) -> int:
    return rng.randint(DICE_MIN, DICE_MAX)


# --- Legality ---
def is_legal(token: Token, dice: int) -> bool:
    """Whether ``token`` may move with ``dice``.

    Base tokens leave only on a six; the finish needs an exact roll.
    """
    _check_dice(dice)
    if token.is_finished:
        return False
    if token.is_at_base:
        return dice == EXIT_ROLL
    return token.progress + dice <= FINISH


def legal_tokens(player: Player, dice: int) -> List[Token]:
    return [t for t in player.tokens if is_legal(t, dice)]


def any_legal(player: Player, dice: int) -> bool:
    return any(is_legal(t, dice) for t in player.tokens)


def next_progress(token: Token, dice: int) -> int:
    """Progress after moving; a launched token lands on its start square (0)."""
    _check_dice(dice)
    if token.is_at_base:
        return 0
    return min(token.progress + dice, FINISH)


# --- Captures ---
def capture_at(
    target: Optional[int], moving_color: Color, players: Iterable[Player]
) -> Tuple[Token, ...]:
    """Opponent tokens sent back by landing on ring square ``target``.

    ``target`` is None when the mover lands in its home stretch, which is
    private. Safe squares never capture.
    """
    if target is None or is_safe(target):
        return ()
    captured: List[Token] = []
    for player in players:
        if player.color == moving_color:
            continue
        captured.extend(t for t in player.tokens if t.absolute == target)
    return tuple(captured)


# --- Applying a move ---
def apply_move(
    state: GameState, token: Token, dice: int, *, timestamp: float = 0.0
) -> MoveOutcome:
    """Move ``token`` by ``dice`` and return the resulting state.

    Raises IllegalMove if the roll does not allow the move.
    """
    if not is_legal(token, dice):
        raise IllegalMove(token.id, dice)
    current = state.token(token.id)
    if current != token:
        raise InvariantViolation(f"Stale token {token} (board has {current})")

    new_progress = next_progress(token, dice)
    target = absolute_of(new_progress, token.color) if new_progress < RING_LENGTH else None
    captured = capture_at(target, token.color, state.players)

    moved = token.moved_to(new_progress)
    new_state = state.with_player(state.player(token.color).with_token(moved))
    for victim in captured:
        owner = new_state.player(victim.color)
        new_state = new_state.with_player(owner.with_token(victim.sent_home()))

    entry = MoveLogEntry(
        color=token.color,
        token_id=token.id,
        progress_before=token.progress,
        progress_after=new_progress,
        dice=dice,
        captured=tuple(t.id for t in captured),
        timestamp=timestamp,
    )
    new_state = replace(
        new_state,
        move_log=state.move_log + (entry,),
        last_captured=captured,
    )
    return MoveOutcome(
        state=new_state,
        captured=captured,
        finished_now=moved.is_finished,
        entry=entry,
    )


# --- Turn policy ---
def extra_turn(
    dice: int, captured: bool, six_streak: int, finished: bool = False
) -> bool:
    """Whether the mover rolls again after a move.

    ``six_streak`` counts consecutive sixes including ``dice``. A third six
    never earns a roll; it is forfeited before any move is offered.
    """
    if dice == EXIT_ROLL and six_streak >= FORFEIT_STREAK:
        return False
    return dice == EXIT_ROLL or captured or finished


def is_forfeit(six_streak: int) -> bool:
    return six_streak >= FORFEIT_STREAK


def terminal(players: Iterable[Player]) -> Terminal:
    """Detect a winner; rank players by finished tokens, seating breaks ties."""
    players = tuple(players)
    ranking = tuple(sorted(players, key=lambda p: -p.finished_tokens))
    winner = next((p for p in players if p.has_won()), None)
    return Terminal(over=winner is not None, winner=winner, ranking=ranking)
