"""
Configuration for the tic-tac-toe engine.
Default markers, colors, timing and AI settings.
"""

import re
from dataclasses import dataclass, replace
from typing import Optional

from .errors import InvalidConfiguration


class GameConfig:
    """
    Configuration class for game settings.
    Change these values to tweak the defaults.
    """

    # ==================== BOARD SETTINGS ====================
    # TicTacToe is a 3x3 grid
    BOARD_SIZE = 3
    CELL_COUNT = BOARD_SIZE * BOARD_SIZE  # 9 cells, indexed 0-8 row-major

    CENTER = 4
    CORNERS = (0, 2, 6, 8)  # checked in this order by the heuristic AI

    # ==================== PLAYER SETTINGS ====================
    DEFAULT_PLAYER1_MARKER = "X"
    DEFAULT_PLAYER2_MARKER = "O"
    DEFAULT_PLAYER1_COLOR = "#dc3545"  # red
    DEFAULT_PLAYER2_COLOR = "#007bff"  # blue

    # ==================== AI SETTINGS ====================
    DEFAULT_DIFFICULTY = "easy"  # easy, medium, hard

    # Pause before a computer move is applied (milliseconds)
    COMPUTER_MOVE_DELAY_MS = 700

    # Minimax scores: win = WIN_SCORE - depth, loss = depth - WIN_SCORE
    WIN_SCORE = 10

    # Shuffle root moves so equally good minimax moves vary between games
    MINIMAX_SHUFFLE_TIES = True


# Colors are "#rgb" or "#rrggbb"
COLOR_PATTERN = re.compile(r"#(?:[0-9a-fA-F]{3}){1,2}")


def normalize_marker(marker: Optional[str]) -> str:
    """Strip whitespace and upper-case a marker."""
    return (marker or "").strip().upper()


@dataclass(frozen=True)
class SessionSettings:
    """
    Everything a session needs to start a game.

    computer_slot is None for human-vs-human, otherwise 1 or 2.
    """
    player1_marker: str = GameConfig.DEFAULT_PLAYER1_MARKER
    player2_marker: str = GameConfig.DEFAULT_PLAYER2_MARKER
    player1_color: str = GameConfig.DEFAULT_PLAYER1_COLOR
    player2_color: str = GameConfig.DEFAULT_PLAYER2_COLOR
    computer_slot: Optional[int] = None
    difficulty: str = GameConfig.DEFAULT_DIFFICULTY

    @property
    def vs_computer(self) -> bool:
        return self.computer_slot is not None

    def normalized(self) -> "SessionSettings":
        """Return a copy with normalized markers, colors and difficulty name."""
        difficulty = self.difficulty
        if isinstance(difficulty, str):
            difficulty = difficulty.strip().lower()
        return replace(
            self,
            player1_marker=normalize_marker(self.player1_marker),
            player2_marker=normalize_marker(self.player2_marker),
            player1_color=(self.player1_color or "").strip(),
            player2_color=(self.player2_color or "").strip(),
            difficulty=difficulty,
        )

    def validate(self) -> "SessionSettings":
        """
        Validate the settings.

        Returns:
            The normalized settings.

        Raises:
            InvalidConfiguration: If markers are empty or equal, a color is
                not a hex color, or the computer slot or difficulty is unknown.
        """
        # Imported here to avoid a cycle (strategies imports config)
        from .strategies import Difficulty

        settings = self.normalized()

        if not settings.player1_marker or not settings.player2_marker:
            raise InvalidConfiguration("Please enter a marker for both players.")

        if settings.player1_marker == settings.player2_marker:
            raise InvalidConfiguration(
                "Player 1 and Player 2 markers cannot be the same."
            )

        for number, color in ((1, settings.player1_color), (2, settings.player2_color)):
            if not COLOR_PATTERN.fullmatch(color):
                raise InvalidConfiguration(
                    f"Invalid color {color!r} for Player {number}. Use #rgb or #rrggbb."
                )

        if settings.computer_slot not in (None, 1, 2):
            raise InvalidConfiguration(
                f"Invalid computer slot {settings.computer_slot!r}. Must be None, 1 or 2."
            )

        try:
            Difficulty.parse(settings.difficulty)
        except ValueError as e:
            raise InvalidConfiguration(str(e)) from e

        return settings
