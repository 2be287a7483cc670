"""
Ludo Table
Rules engine, heuristic opponent and turn controller for four-color Ludo.
"""

from ludo_table.board import (
    FINISH,
    HOME_ENTRY_SQUARES,
    RING_LENGTH,
    SAFE_SQUARES,
    START_SQUARES,
    absolute_of,
    base_coord,
    occupancy_grid,
    ring_coord,
    stretch_coord,
    token_coord,
)
from ludo_table.config import Config, OpponentWeights, config, opponent_weights
from ludo_table.controller import Snapshot, TurnController
from ludo_table.errors import IllegalMove, InvariantViolation, LudoError
from ludo_table.opponent import HeuristicOpponent, MoveScore, think_delay_ms
from ludo_table.player import Player, seat_colors
from ludo_table.rules import (
    MoveOutcome,
    Terminal,
    any_legal,
    apply_move,
    capture_at,
    extra_turn,
    is_legal,
    legal_tokens,
    next_progress,
    roll_dice,
    terminal,
)
from ludo_table.scheduler import AsyncioScheduler, Scheduler, VirtualScheduler
from ludo_table.state import (
    DiceState,
    GameState,
    MoveLogEntry,
    check_invariants,
    new_game_state,
)
from ludo_table.token import Token, parse_token_id, place_for, token_id
from ludo_table.types import (
    AtBase,
    Color,
    Difficulty,
    Finished,
    GameMode,
    InStretch,
    OnRing,
    Phase,
    PlayerKind,
    Screen,
)

__all__ = [
    "TurnController",
    "Snapshot",
    "HeuristicOpponent",
    "MoveScore",
    "think_delay_ms",
    "Scheduler",
    "VirtualScheduler",
    "AsyncioScheduler",
    "GameState",
    "DiceState",
    "MoveLogEntry",
    "new_game_state",
    "check_invariants",
    "Player",
    "seat_colors",
    "Token",
    "token_id",
    "parse_token_id",
    "place_for",
    "MoveOutcome",
    "Terminal",
    "roll_dice",
    "is_legal",
    "legal_tokens",
    "any_legal",
    "next_progress",
    "capture_at",
    "apply_move",
    "extra_turn",
    "terminal",
    "RING_LENGTH",
    "FINISH",
    "START_SQUARES",
    "HOME_ENTRY_SQUARES",
    "SAFE_SQUARES",
    "absolute_of",
    "ring_coord",
    "stretch_coord",
    "base_coord",
    "token_coord",
    "occupancy_grid",
    "Color",
    "PlayerKind",
    "Difficulty",
    "GameMode",
    "Screen",
    "Phase",
    "AtBase",
    "OnRing",
    "InStretch",
    "Finished",
    "Config",
    "OpponentWeights",
    "config",
    "opponent_weights",
    "LudoError",
    "InvariantViolation",
    "IllegalMove",
]
