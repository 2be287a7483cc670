"""Exceptions raised by the Ludo rules engine."""


class LudoError(Exception):
    """Base class for engine errors."""


class InvariantViolation(LudoError):
    """A programming invariant was broken. Never recovered from."""


class IllegalMove(LudoError):
    """A move was applied that the dice value does not allow."""

    def __init__(self, token_id: str, dice: int):
        self.token_id = token_id
        self.dice = dice
        super().__init__(f"Token {token_id} cannot move with a roll of {dice}")
