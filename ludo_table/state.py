from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Tuple

from .board import FINISH, TOKENS_PER_PLAYER, is_safe
from .errors import InvariantViolation
from .player import Player, seat_colors
from .token import Token, parse_token_id
from .types import Color, PlayerKind


@dataclass(frozen=True, slots=True)
class DiceState:
    value: int = 0  # 0 = no active roll
    rolling: bool = False
    can_roll: bool = True
    six_streak: int = 0  # consecutive sixes of the active player


@dataclass(frozen=True, slots=True)
class MoveLogEntry:
    color: Color
    token_id: str
    progress_before: int
    progress_after: int
    dice: int
    captured: Tuple[str, ...] = ()
    timestamp: float = 0.0

    @property
    def was_capture(self) -> bool:
        return bool(self.captured)


@dataclass(frozen=True, slots=True)
class GameState:
    players: Tuple[Player, ...]
    current_player_index: int = 0
    dice: DiceState = field(default_factory=DiceState)
    move_log: Tuple[MoveLogEntry, ...] = ()
    last_captured: Tuple[Token, ...] = ()
    game_over: bool = False
    winner: Optional[Player] = None
    ranking: Tuple[Player, ...] = ()
    paused: bool = False

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def player_index(self, color: Color) -> int:
        color = Color.parse(color)
        for idx, player in enumerate(self.players):
            if player.color == color:
                return idx
        raise InvariantViolation(f"{color.label} is not seated in this game")

    def player(self, color: Color) -> Player:
        return self.players[self.player_index(color)]

    def token(self, token_id: str) -> Token:
        color, slot = parse_token_id(token_id)
        return self.player(color).tokens[slot]

    def with_player(self, player: Player) -> "GameState":
        idx = self.player_index(player.color)
        players = self.players[:idx] + (player,) + self.players[idx + 1 :]
        return replace(self, players=players)


def new_game_state(
    player_count: int, kinds: Optional[Mapping[Color, PlayerKind]] = None
) -> GameState:
    """Seat ``player_count`` players with every token at base."""
    kinds = kinds or {}
    players = tuple(
        Player.create(color, kinds.get(color, PlayerKind.HUMAN))
        for color in seat_colors(player_count)
    )
    return GameState(players=players)


def check_invariants(state: GameState) -> None:
    """Raise InvariantViolation if ``state`` breaks a board invariant."""
    colors = [p.color for p in state.players]
    if len(set(colors)) != len(colors):
        raise InvariantViolation("A color is seated twice")
    if not 0 <= state.current_player_index < len(state.players):
        raise InvariantViolation(
            f"Current player index out of range: {state.current_player_index}"
        )

    occupants: dict[int, set[Color]] = defaultdict(set)
    for player in state.players:
        if len(player.tokens) != TOKENS_PER_PLAYER:
            raise InvariantViolation(f"{player.id} does not own four tokens")
        for token in player.tokens:
            if token.is_at_base and token.is_finished:
                raise InvariantViolation(f"{token.id} is both at base and finished")
            if token.is_finished and token.progress != FINISH:
                raise InvariantViolation(f"{token.id} finished off the finish square")
            if token.in_play and not 0 <= token.progress < FINISH:
                raise InvariantViolation(f"{token.id} progress out of range")
            if token.absolute is not None:
                occupants[token.absolute].add(token.color)

    for square, owners in occupants.items():
        if len(owners) > 1 and not is_safe(square):
            names = ", ".join(sorted(c.label for c in owners))
            raise InvariantViolation(f"Square {square} is shared by {names}")

    winners = [p for p in state.players if p.has_won()]
    if state.game_over:
        if len(winners) != 1:
            raise InvariantViolation("Game over requires exactly one winner")
        if state.winner is None or state.winner.color != winners[0].color:
            raise InvariantViolation("Recorded winner does not match the board")
