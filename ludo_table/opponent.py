"""Heuristic machine opponent.

Every legal token is scored with additive bonuses (launch, capture, safe
landing, home stretch, finish, advancement) and, on medium, a penalty for
landing within reach of opponents behind. Easy play adds noise and sometimes
picks one of the top three moves at random.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from loguru import logger

from .board import FINISH, RING_LENGTH, absolute_of, is_safe, ring_distance
from .config import Config, OpponentWeights, config, opponent_weights
from .player import Player
from .rules import DICE_MAX, capture_at, legal_tokens, next_progress
from .token import Token
from .types import Difficulty


@dataclass(slots=True)
class MoveScore:
    token: Token
    score: float
    reason: str = "default"


def think_delay_ms(difficulty: Difficulty, settings: Config = config) -> int:
    if Difficulty(difficulty) is Difficulty.EASY:
        return settings.EASY_THINK_MS
    return settings.MEDIUM_THINK_MS


@dataclass(slots=True)
class HeuristicOpponent:
    difficulty: Difficulty = Difficulty.MEDIUM
    rng: random.Random = field(default_factory=random.Random)
    weights: OpponentWeights = field(default_factory=lambda: opponent_weights)
    settings: Config = field(default_factory=lambda: config)

    def __post_init__(self) -> None:
        self.difficulty = Difficulty(self.difficulty)

    def danger(self, target: int, mover: Player, players: Iterable[Player]) -> int:
        """Penalty for sitting on ring square ``target``.

        Each opponent ring token 1..6 steps behind adds (7 - distance) * step.
        """
        if is_safe(target):
            return 0
        total = 0
        for player in players:
            if player.color == mover.color:
                continue
            for token in player.tokens:
                behind = token.absolute
                if behind is None:
                    continue
                distance = ring_distance(target, behind)
                if 1 <= distance <= DICE_MAX:
                    total += (DICE_MAX + 1 - distance) * self.weights.danger_step
        return total

    def score_move(
        self, player: Player, token: Token, dice: int, players: List[Player]
    ) -> MoveScore:
        w = self.weights
        score = 0.0
        reason = "default"

        new_progress = next_progress(token, dice)
        target = (
            absolute_of(new_progress, player.color)
            if new_progress < RING_LENGTH
            else None
        )

        if token.is_at_base:
            score += w.leave_base
            reason = "leaving base"

        captured = capture_at(target, player.color, players)
        if captured:
            score += w.capture
            reason = "capturing opponent"
            if any(t.progress > w.deep_capture_threshold for t in captured):
                score += w.deep_capture
                reason = "capturing advanced opponent"

        if target is not None and is_safe(target):
            score += w.safe_square
            if reason == "default":
                reason = "moving to safe square"

        if new_progress >= RING_LENGTH:
            score += w.enter_stretch + (new_progress - RING_LENGTH) * w.stretch_step
            reason = "entering home stretch"

        if new_progress == FINISH:
            score += w.finish
            reason = "finishing token"

        if self.difficulty is Difficulty.MEDIUM and target is not None:
            penalty = self.danger(target, player, players)
            score -= penalty
            if penalty > 2 * w.danger_step:
                reason = "avoiding danger"

        if not token.is_at_base:
            score += (token.progress // w.advance_bucket) * w.advance_step

        if self.difficulty is Difficulty.EASY:
            score += self.rng.random() * self.settings.EASY_NOISE

        return MoveScore(token=token, score=score, reason=reason)

    def score_moves(
        self, player: Player, dice: int, players: Iterable[Player]
    ) -> List[MoveScore]:
        """Score every legal token, best first; ties keep legal order."""
        players = list(players)
        scores = [
            self.score_move(player, token, dice, players)
            for token in legal_tokens(player, dice)
        ]
        scores.sort(key=lambda s: -s.score)
        return scores

    def select(
        self, player: Player, dice: int, players: Iterable[Player]
    ) -> Optional[Token]:
        candidates = legal_tokens(player, dice)
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        scores = self.score_moves(player, dice, players)
        if (
            self.difficulty is Difficulty.EASY
            and self.rng.random() < self.settings.EASY_RANDOM_PICK
        ):
            pick = scores[self.rng.randrange(min(self.settings.EASY_TOP_K, len(scores)))]
            logger.debug(f"{player.name} picks {pick.token.id} at random ({pick.reason})")
            return pick.token

        best = scores[0]
        logger.debug(
            f"{player.name} picks {best.token.id} score={best.score:.1f} ({best.reason})"
        )
        return best.token
