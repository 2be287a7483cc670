"""
Token representation for the Ludo engine.
Each player owns four tokens; a token is immutable and moves by replacement.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .board import FINISH, RING_LENGTH, TOKENS_PER_PLAYER, absolute_of
from .errors import InvariantViolation
from .types import AtBase, Color, Finished, InStretch, OnRing, Place

BASE_PROGRESS = -1


def place_for(progress: int) -> Place:
    """Build the place variant matching a progress value (-1 means base)."""
    if progress == BASE_PROGRESS:
        return AtBase()
    if 0 <= progress < RING_LENGTH:
        return OnRing(progress)
    if RING_LENGTH <= progress < FINISH:
        return InStretch(progress)
    if progress == FINISH:
        return Finished()
    raise InvariantViolation(f"Progress out of range: {progress}")


def token_id(color: Color, slot: int) -> str:
    return f"{Color.parse(color).name.lower()}-{slot}"


def parse_token_id(value: str) -> tuple[Color, int]:
    """Split ``"green-2"`` into ``(Color.GREEN, 2)``."""
    color_name, sep, slot = value.partition("-")
    if not sep or not slot.isdigit():
        raise InvariantViolation(f"Malformed token id '{value}'")
    slot_idx = int(slot)
    if not 0 <= slot_idx < TOKENS_PER_PLAYER:
        raise InvariantViolation(f"Token slot out of range in '{value}'")
    return Color.parse(color_name), slot_idx


@dataclass(frozen=True, slots=True)
class Token:
    color: Color
    slot: int  # 0..3, also the base cell it returns to
    place: Place = AtBase()

    def __post_init__(self) -> None:
        if not 0 <= self.slot < TOKENS_PER_PLAYER:
            raise InvariantViolation(f"Token slot out of range: {self.slot}")

    @property
    def id(self) -> str:
        return token_id(self.color, self.slot)

    @property
    def is_at_base(self) -> bool:
        return isinstance(self.place, AtBase)

    @property
    def is_finished(self) -> bool:
        return isinstance(self.place, Finished)

    @property
    def in_play(self) -> bool:
        return isinstance(self.place, (OnRing, InStretch))

    @property
    def progress(self) -> int:
        """-1 at base, 0..56 in play, 57 finished."""
        place = self.place
        if isinstance(place, AtBase):
            return BASE_PROGRESS
        if isinstance(place, Finished):
            return FINISH
        return place.progress

    @property
    def absolute(self) -> Optional[int]:
        """Shared ring square, or None when off the ring."""
        if isinstance(self.place, OnRing):
            return absolute_of(self.place.progress, self.color)
        return None

    def moved_to(self, progress: int) -> "Token":
        return replace(self, place=place_for(progress))

    def sent_home(self) -> "Token":
        return replace(self, place=AtBase())

    def __str__(self) -> str:
        return f"Token({self.id} at {self.progress})"
