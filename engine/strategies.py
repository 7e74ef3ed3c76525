"""
Computer opponents for tic-tac-toe.

Three strengths:
- EASY:   RandomStrategy, any empty cell
- MEDIUM: HeuristicStrategy, win / block / center / corner / random
- HARD:   MinimaxStrategy, exhaustive search that never loses
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Union

import numpy as np

from .board import Board, EMPTY
from .config import GameConfig
from .errors import NoMovesAvailable
from .rules import WINNING_LINES, GameStatus, evaluate

logger = logging.getLogger(__name__)


class Difficulty(Enum):
    """AI difficulty levels."""
    EASY = "easy"      # Random moves
    MEDIUM = "medium"  # Rule-based
    HARD = "hard"      # Full minimax

    @classmethod
    def parse(cls, value: Union[str, "Difficulty"]) -> "Difficulty":
        """Accept a Difficulty or its name/value in any case."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for difficulty in cls:
            if key in (difficulty.value, difficulty.name.lower()):
                return difficulty
        choices = ", ".join(d.value for d in cls)
        raise ValueError(f"Unknown difficulty {value!r}. Choose one of: {choices}")


class MoveStrategy(ABC):
    """
    Picks a cell for a computer-controlled player.

    choose_move() must return the index of an empty cell and leave the
    board exactly as it found it.
    """

    name = "strategy"

    def __init__(self, rng: Optional[np.random.Generator] = None):
        """
        Args:
            rng: Random generator. Pass a seeded one for reproducible play.
        """
        self.rng = rng if rng is not None else np.random.default_rng()

    @abstractmethod
    def choose_move(self, board: Board, self_marker: str, opponent_marker: str) -> int:
        """
        Choose a move.

        Args:
            board: Current board (at least one empty cell).
            self_marker: Marker of the player to move.
            opponent_marker: Marker of the other player.

        Returns:
            Index (0-8) of an empty cell.

        Raises:
            NoMovesAvailable: If the board is full.
        """

    def _require_moves(self, board: Board) -> List[int]:
        empty = board.empty_cells()
        if not empty:
            raise NoMovesAvailable(f"{self.name}: no empty cells left")
        return empty

    def _random_cell(self, empty: List[int]) -> int:
        return int(self.rng.choice(empty))

    def __repr__(self):
        return f"{type(self).__name__}()"


class RandomStrategy(MoveStrategy):
    """Pick any empty cell, uniformly at random."""

    name = "random"

    def choose_move(self, board: Board, self_marker: str, opponent_marker: str) -> int:
        return self._random_cell(self._require_moves(board))


def find_winning_move(board: Board, marker: str) -> Optional[int]:
    """
    Find a cell that completes a line for marker.

    Lines are scanned in WINNING_LINES order, so when several cells would
    win the one on the earliest line is returned.

    Returns:
        The cell index, or None if no single move wins.
    """
    cells = board.cells
    for line in WINNING_LINES:
        values = [cells[i] for i in line]
        if values.count(EMPTY) != 1:
            continue
        empty_pos = values.index(EMPTY)
        values[empty_pos] = marker
        if values[0] == values[1] == values[2] == marker:
            return line[empty_pos]
    return None


class HeuristicStrategy(MoveStrategy):
    """
    Rule-based AI. The first rule that applies wins:

    1. Complete our own line
    2. Block the opponent's line
    3. Take the center
    4. Take the first free corner (0, 2, 6, 8)
    5. Any random empty cell
    """

    name = "heuristic"

    def choose_move(self, board: Board, self_marker: str, opponent_marker: str) -> int:
        empty = self._require_moves(board)

        move = find_winning_move(board, self_marker)
        if move is not None:
            return move

        move = find_winning_move(board, opponent_marker)
        if move is not None:
            return move

        if board.is_empty(GameConfig.CENTER):
            return GameConfig.CENTER

        for corner in GameConfig.CORNERS:
            if board.is_empty(corner):
                return corner

        return self._random_cell(empty)


class MinimaxStrategy(MoveStrategy):
    """
    Plays perfectly using full minimax search.

    We are the maximizing player. A win scores WIN_SCORE - depth and a
    loss depth - WIN_SCORE, so faster wins and slower losses are preferred.
    Draws score 0. Depth is 0 right after the candidate move being scored.

    Moves are tried in place on the board and always taken back.
    """

    name = "minimax"

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        shuffle_ties: bool = GameConfig.MINIMAX_SHUFFLE_TIES,
    ):
        """
        Args:
            rng: Random generator used to shuffle root moves.
            shuffle_ties: If False, moves are scanned lowest index first
                and the first best move is returned (deterministic).
        """
        super().__init__(rng)
        self.shuffle_ties = shuffle_ties

        # How many positions the last search looked at (for debugging)
        self.positions_evaluated = 0

    def choose_move(self, board: Board, self_marker: str, opponent_marker: str) -> int:
        candidates = self._require_moves(board)
        self.positions_evaluated = 0

        if self.shuffle_ties and len(candidates) > 1:
            candidates = [int(i) for i in self.rng.permutation(candidates)]

        best_score = float("-inf")
        best_move = candidates[0]

        for index in candidates:
            with board.speculative(index, self_marker):
                score = self._minimax(board, 0, False, self_marker, opponent_marker)

            if score > best_score:
                best_score = score
                best_move = index

        logger.debug(
            "Minimax evaluated %d positions. Best move: %d (score: %s)",
            self.positions_evaluated, best_move, best_score,
        )
        return best_move

    def _minimax(
        self,
        board: Board,
        depth: int,
        is_maximizing: bool,
        self_marker: str,
        opponent_marker: str,
    ) -> int:
        """
        Score a position.

        Args:
            board: Position to score (restored before returning).
            depth: Moves made since the root candidate.
            is_maximizing: True if it is our turn.

        Returns:
            The minimax score of the position.
        """
        self.positions_evaluated += 1

        # Terminal states
        outcome = evaluate(board)
        if outcome.status is GameStatus.WIN:
            if outcome.winner == self_marker:
                return GameConfig.WIN_SCORE - depth
            return depth - GameConfig.WIN_SCORE
        if outcome.status is GameStatus.DRAW:
            return 0

        mover = self_marker if is_maximizing else opponent_marker
        best_score = float("-inf") if is_maximizing else float("inf")

        for index in board.empty_cells():
            board.place(index, mover)
            try:
                score = self._minimax(
                    board, depth + 1, not is_maximizing, self_marker, opponent_marker
                )
            finally:
                board.clear(index)

            if is_maximizing:
                best_score = max(best_score, score)
            else:
                best_score = min(best_score, score)

        return best_score

    def __repr__(self):
        return f"MinimaxStrategy(shuffle_ties={self.shuffle_ties})"


_STRATEGIES = {
    Difficulty.EASY: RandomStrategy,
    Difficulty.MEDIUM: HeuristicStrategy,
    Difficulty.HARD: MinimaxStrategy,
}


def create_strategy(
    difficulty: Union[str, Difficulty],
    rng: Optional[np.random.Generator] = None,
) -> MoveStrategy:
    """
    Build the strategy for a difficulty level.

    Raises:
        ValueError: If the difficulty is unknown.
    """
    return _STRATEGIES[Difficulty.parse(difficulty)](rng)


# Quick test
if __name__ == "__main__":
    print("Testing strategies...")

    ai = HeuristicStrategy()

    # Heuristic should block X at 2
    board = Board.from_cells(["X", "X", "", "", "O", "", "", "", ""])
    print(board.render())
    move = ai.choose_move(board, "O", "X")
    print(f"Heuristic move: {move}")
    assert move == 2, f"Expected 2, got {move}"

    # Minimax should take the win at 2 rather than block at 5
    board = Board.from_cells(["O", "O", "", "X", "X", "", "", "", ""])
    print(board.render())
    ai = MinimaxStrategy(shuffle_ties=False)
    move = ai.choose_move(board, "O", "X")
    print(f"Minimax move: {move} ({ai.positions_evaluated} positions)")
    assert move == 2, f"Expected 2, got {move}"

    print("\nStrategies test done!")
