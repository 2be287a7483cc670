"""
Board topology for the four-color Ludo track.

Rules only use absolute ring squares (0..51) and per-color progress (0..57).
The grid helpers project those onto the 15x15 board drawn by renderers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Tuple

import numpy as np

from .errors import InvariantViolation
from .types import AtBase, Color, Finished, InStretch, OnRing

if TYPE_CHECKING:
    from .player import Player
    from .token import Token

Cell = Tuple[int, int]

# --- Constants ---
RING_LENGTH = 52
HOME_STRETCH_LENGTH = 6
STRETCH_START = RING_LENGTH  # first home stretch progress
FINISH = RING_LENGTH + HOME_STRETCH_LENGTH - 1  # 57
TOKENS_PER_PLAYER = 4
GRID_SIZE = 15
CENTER: Cell = (7, 7)

# Indexed by Color
START_SQUARES: Tuple[int, ...] = (0, 13, 26, 39)
HOME_ENTRY_SQUARES: Tuple[int, ...] = (50, 11, 24, 37)
SAFE_SQUARES: frozenset[int] = frozenset({0, 8, 13, 21, 26, 34, 39, 47})

_RING_CELLS: Tuple[Cell, ...] = (
    # Red arm, heading up then left
    (13, 6), (12, 6), (11, 6), (10, 6), (9, 6), (8, 6),
    (8, 5), (8, 4), (8, 3), (8, 2), (8, 1), (8, 0),
    (7, 0),
    # Green arm, heading right then up
    (6, 0), (6, 1), (6, 2), (6, 3), (6, 4), (6, 5),
    (5, 6), (4, 6), (3, 6), (2, 6), (1, 6), (0, 6),
    (0, 7),
    # Yellow arm, heading down then right
    (0, 8), (1, 8), (2, 8), (3, 8), (4, 8), (5, 8),
    (6, 9), (6, 10), (6, 11), (6, 12), (6, 13), (6, 14),
    (7, 14),
    # Blue arm, heading left then down
    (8, 14), (8, 13), (8, 12), (8, 11), (8, 10), (8, 9),
    (9, 8), (10, 8), (11, 8), (12, 8), (13, 8), (14, 8),
    (14, 7),
)

_STRETCH_CELLS: Tuple[Tuple[Cell, ...], ...] = (
    ((13, 7), (12, 7), (11, 7), (10, 7), (9, 7), (8, 7)),
    ((7, 1), (7, 2), (7, 3), (7, 4), (7, 5), (7, 6)),
    ((1, 7), (2, 7), (3, 7), (4, 7), (5, 7), (6, 7)),
    ((7, 13), (7, 12), (7, 11), (7, 10), (7, 9), (7, 8)),
)

_BASE_CELLS: Tuple[Tuple[Cell, ...], ...] = (
    ((11, 2), (11, 4), (13, 2), (13, 4)),
    ((2, 2), (2, 4), (4, 2), (4, 4)),
    ((2, 10), (2, 12), (4, 10), (4, 12)),
    ((11, 10), (11, 12), (13, 10), (13, 12)),
)


def is_safe(abs_pos: int) -> bool:
    return abs_pos in SAFE_SQUARES


def absolute_of(progress: int, color: Color) -> int:
    """Map ring progress (0..51) of ``color`` to the shared ring square."""
    if not 0 <= progress < RING_LENGTH:
        raise InvariantViolation(f"Progress {progress} has no ring square")
    return (START_SQUARES[Color.parse(color)] + progress) % RING_LENGTH


def ring_distance(ahead: int, behind: int) -> int:
    """Steps a token on ``behind`` must walk forward to reach ``ahead``."""
    return (ahead - behind + RING_LENGTH) % RING_LENGTH


def ring_coord(abs_pos: int) -> Cell:
    if not 0 <= abs_pos < RING_LENGTH:
        raise InvariantViolation(f"Ring square out of range: {abs_pos}")
    return _RING_CELLS[abs_pos]


def stretch_coord(progress: int, color: Color) -> Cell:
    if not STRETCH_START <= progress <= FINISH:
        raise InvariantViolation(f"Progress {progress} is not in the home stretch")
    return _STRETCH_CELLS[Color.parse(color)][progress - STRETCH_START]


def base_coord(color: Color, slot: int) -> Cell:
    if not 0 <= slot < TOKENS_PER_PLAYER:
        raise InvariantViolation(f"Base slot out of range: {slot}")
    return _BASE_CELLS[Color.parse(color)][slot]


def token_coord(token: "Token") -> Cell:
    """Grid cell a renderer should draw ``token`` on."""
    place = token.place
    if isinstance(place, AtBase):
        return base_coord(token.color, token.slot)
    if isinstance(place, OnRing):
        return ring_coord(absolute_of(place.progress, token.color))
    if isinstance(place, InStretch):
        return stretch_coord(place.progress, token.color)
    if isinstance(place, Finished):
        return stretch_coord(FINISH, token.color)
    raise InvariantViolation(f"Unknown token place: {place!r}")


def occupancy_grid(
    players: Iterable["Player"], out: np.ndarray | None = None
) -> np.ndarray:
    """Build a (4, 15, 15) count tensor, one channel per color."""
    shape = (len(Color), GRID_SIZE, GRID_SIZE)
    if out is not None:
        if out.shape != shape:
            raise ValueError(f"Expected grid of shape {shape}")
        grid = out
        grid.fill(0)
    else:
        grid = np.zeros(shape, dtype=np.int8)
    for player in players:
        ch = grid[int(player.color)]
        for token in player.tokens:
            row, col = token_coord(token)
            ch[row, col] += 1
    return grid
