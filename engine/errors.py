"""
Exceptions raised by the tic-tac-toe engine.
"""


class GameError(Exception):
    """Base class for all engine errors."""


class InvalidConfiguration(GameError):
    """Session settings were rejected (empty or duplicate markers, bad slot)."""


class IllegalMove(GameError):
    """A move broke a board rule, e.g. placing on an occupied cell."""


class InvalidCell(IllegalMove, IndexError):
    """A cell index outside 0-8."""

    def __init__(self, index):
        super().__init__(f"Invalid cell {index!r}. Must be 0-8.")
        self.index = index


class NoMovesAvailable(GameError):
    """A strategy was asked to move on a full board."""
