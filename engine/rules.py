"""
Rules engine for tic-tac-toe.
Checks if a player has won or if the game is a draw.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .board import Board, EMPTY

Line = Tuple[int, int, int]

# All possible winning lines, in the order they are checked
WINNING_LINES: Tuple[Line, ...] = (
    # Rows
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    # Columns
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    # Diagonals
    (0, 4, 8),
    (2, 4, 6),
)


class GameStatus(Enum):
    """Where the game stands after a move."""
    IN_PROGRESS = "in_progress"
    WIN = "win"
    DRAW = "draw"


@dataclass(frozen=True)
class GameOutcome:
    """
    Result of evaluating a board.

    winner and line are only set for a WIN. mover is the marker of the
    player who made the last move, when the caller knows it.
    """
    status: GameStatus
    winner: Optional[str] = None
    line: Optional[Line] = None
    mover: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not GameStatus.IN_PROGRESS

    @property
    def is_win(self) -> bool:
        return self.status is GameStatus.WIN

    @property
    def is_draw(self) -> bool:
        return self.status is GameStatus.DRAW

    def describe(self) -> str:
        """Status message in the form shown to players."""
        if self.is_win:
            return f"Player {self.winner} has won!"
        if self.is_draw:
            return "Game ended in a draw!"
        if self.mover:
            return f"Last move by {self.mover}"
        return "Game in progress"


def _line_owner(cells: Sequence[str], line: Line) -> Optional[str]:
    """Marker that fills the whole line, or None."""
    a, b, c = line
    if cells[a] != EMPTY and cells[a] == cells[b] == cells[c]:
        return cells[a]
    return None


def winning_line(board: Board) -> Optional[Line]:
    """First completed line in WINNING_LINES order, or None."""
    cells = board.cells
    for line in WINNING_LINES:
        if _line_owner(cells, line) is not None:
            return line
    return None


def check_winner(board: Board) -> Optional[str]:
    """Marker of the winner, or None if no line is complete."""
    line = winning_line(board)
    if line is None:
        return None
    return board[line[0]]


def evaluate(board: Board, last_mover: Optional[str] = None) -> GameOutcome:
    """
    Work out the game outcome for a board.

    Lines are checked in WINNING_LINES order and the first complete one
    wins. A full board with no complete line is a draw. The board is not
    modified.

    Args:
        board: The board to check.
        last_mover: Marker of the player who just moved (reported back).

    Returns:
        The GameOutcome.
    """
    cells = board.cells
    for line in WINNING_LINES:
        owner = _line_owner(cells, line)
        if owner is not None:
            return GameOutcome(GameStatus.WIN, winner=owner, line=line, mover=last_mover)

    if board.is_full():
        return GameOutcome(GameStatus.DRAW, mover=last_mover)

    return GameOutcome(GameStatus.IN_PROGRESS, mover=last_mover)


# Quick test
if __name__ == "__main__":
    print("Testing rules...")

    # Horizontal win
    board = Board.from_cells(["X", "X", "X", "", "O", "", "O", "", ""])
    outcome = evaluate(board, "X")
    print(f"Test 1 (horizontal): {outcome}")
    assert outcome.winner == "X" and outcome.line == (0, 1, 2)

    # Full board, no line
    board = Board.from_cells(["X", "O", "X", "O", "X", "O", "O", "X", "O"])
    outcome = evaluate(board)
    print(f"Test 2 (draw): {outcome}")
    assert outcome.is_draw

    # Nothing yet
    board = Board.from_cells(["X", "", "", "", "O", "", "", "", ""])
    outcome = evaluate(board)
    print(f"Test 3 (in progress): {outcome}")
    assert not outcome.is_terminal

    print("\nRules test done!")
