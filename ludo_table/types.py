from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Union

from .errors import InvariantViolation


class Color(IntEnum):
    """Seat colors; the integer value is the seating order around the track."""

    RED = 0
    GREEN = 1
    YELLOW = 2
    BLUE = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: "str | int | Color") -> "Color":
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                raise InvariantViolation(f"Unknown color '{value}'") from None
        try:
            return cls(value)
        except ValueError:
            raise InvariantViolation(f"Unknown color id {value}") from None


class PlayerKind(str, Enum):
    HUMAN = "human"
    MACHINE = "machine"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"


class GameMode(str, Enum):
    LOCAL = "local"
    VS_MACHINE = "vsMachine"


class Screen(str, Enum):
    SPLASH = "splash"
    HOME = "home"
    GAME = "game"
    GAME_OVER = "gameOver"


class Phase(str, Enum):
    """Turn controller states."""

    IDLE = "idle"
    AWAITING_ROLL = "awaiting_roll"
    ROLLING = "rolling"
    AWAITING_MOVE = "awaiting_move"
    APPLYING = "applying"
    NO_LEGAL_MOVE = "no_legal_move"
    GAME_OVER = "game_over"


# --- Token places ---
# Progress is counted from the color's start square: 0..51 ring, 52..56 home
# stretch, 57 finish.


@dataclass(frozen=True, slots=True)
class AtBase:
    """Parked in the color's corner; the token's slot is its base cell."""


@dataclass(frozen=True, slots=True)
class OnRing:
    progress: int

    def __post_init__(self) -> None:
        if not 0 <= self.progress <= 51:
            raise InvariantViolation(f"Ring progress out of range: {self.progress}")


@dataclass(frozen=True, slots=True)
class InStretch:
    progress: int

    def __post_init__(self) -> None:
        if not 52 <= self.progress <= 56:
            raise InvariantViolation(
                f"Home stretch progress out of range: {self.progress}"
            )


@dataclass(frozen=True, slots=True)
class Finished:
    pass


Place = Union[AtBase, OnRing, InStretch, Finished]
