"""
Player representation for the Ludo engine.
Each player has a color, a kind (human or machine) and controls 4 tokens.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

from .board import TOKENS_PER_PLAYER
from .errors import InvariantViolation
from .token import Token
from .types import Color, PlayerKind

_SEATS = {
    2: (Color.RED, Color.YELLOW),
    3: (Color.RED, Color.GREEN, Color.YELLOW),
    4: (Color.RED, Color.GREEN, Color.YELLOW, Color.BLUE),
}


def seat_colors(player_count: int) -> Tuple[Color, ...]:
    """Colors taking part in a game; two players sit opposite each other."""
    try:
        return _SEATS[player_count]
    except KeyError:
        raise ValueError(
            f"Player count must be one of {sorted(_SEATS)}, got {player_count}"
        ) from None


@dataclass(frozen=True, slots=True)
class Player:
    color: Color
    kind: PlayerKind
    tokens: Tuple[Token, ...]

    def __post_init__(self) -> None:
        if len(self.tokens) != TOKENS_PER_PLAYER:
            raise InvariantViolation(
                f"{self.color.label} must own {TOKENS_PER_PLAYER} tokens"
            )
        for slot, token in enumerate(self.tokens):
            if token.color != self.color or token.slot != slot:
                raise InvariantViolation(f"Token {token.id} misplaced in {self.id}")

    @classmethod
    def create(cls, color: Color, kind: PlayerKind = PlayerKind.HUMAN) -> "Player":
        color = Color.parse(color)
        tokens = tuple(Token(color=color, slot=i) for i in range(TOKENS_PER_PLAYER))
        return cls(color=color, kind=PlayerKind(kind), tokens=tokens)

    @property
    def id(self) -> str:
        return f"player-{self.color.name.lower()}"

    @property
    def name(self) -> str:
        if self.is_machine:
            return f"{self.color.label} (CPU)"
        return self.color.label

    @property
    def is_machine(self) -> bool:
        return self.kind is PlayerKind.MACHINE

    @property
    def finished_tokens(self) -> int:
        return sum(1 for t in self.tokens if t.is_finished)

    def has_won(self) -> bool:
        return self.finished_tokens == TOKENS_PER_PLAYER

    def with_token(self, token: Token) -> "Player":
        if token.color != self.color:
            raise InvariantViolation(f"Token {token.id} does not belong to {self.id}")
        tokens = list(self.tokens)
        tokens[token.slot] = token
        return replace(self, tokens=tuple(tokens))

    def __str__(self) -> str:
        return f"Player({self.color.label}, tokens: {[str(t) for t in self.tokens]})"
