"""
Board model for tic-tac-toe.
A fixed 9-cell grid, indexed 0-8 row-major:

     0 | 1 | 2
    ---+---+---
     3 | 4 | 5
    ---+---+---
     6 | 7 | 8
"""

from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Tuple

from .config import GameConfig
from .errors import IllegalMove, InvalidCell

# An empty cell
EMPTY = ""


class Board:
    """
    The 3x3 board.

    Each cell is EMPTY or holds the marker of the player who took it.
    Once a cell is occupied it stays occupied until the board is reset
    (search algorithms may clear their own speculative moves).
    """

    def __init__(self, cells: Optional[Iterable[str]] = None):
        """
        Args:
            cells: 9 starting cell values (None or "" for empty).
                Defaults to an empty board.
        """
        if cells is None:
            cells = [EMPTY] * GameConfig.CELL_COUNT
        cells = [cell or EMPTY for cell in cells]
        if len(cells) != GameConfig.CELL_COUNT:
            raise ValueError(
                f"A board has {GameConfig.CELL_COUNT} cells, got {len(cells)}"
            )
        self._cells: List[str] = cells

    @classmethod
    def from_cells(cls, cells: Iterable[str]) -> "Board":
        """Build a board from a sequence of 9 cell values."""
        return cls(cells)

    @property
    def cells(self) -> Tuple[str, ...]:
        """Read-only view of the cells."""
        return tuple(self._cells)

    def __eq__(self, other):
        if not isinstance(other, Board):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self):
        return f"Board({self._cells!r})"

    def __getitem__(self, index: int) -> str:
        self._check_index(index)
        return self._cells[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self._cells)

    def snapshot(self) -> Tuple[str, ...]:
        """Read-only view of the cells."""
        return self.cells

    def _check_index(self, index: int):
        if (
            isinstance(index, bool)
            or not isinstance(index, int)
            or not 0 <= index < GameConfig.CELL_COUNT
        ):
            raise InvalidCell(index)

    def is_empty(self, index: int) -> bool:
        """
        Check if a cell is empty.

        Raises:
            InvalidCell: If index is not 0-8.
        """
        self._check_index(index)
        return self._cells[index] == EMPTY

    def place(self, index: int, marker: str):
        """
        Put a marker on an empty cell.

        Raises:
            InvalidCell: If index is not 0-8.
            IllegalMove: If the cell is occupied or the marker is empty.
        """
        if not marker:
            raise IllegalMove("Cannot place an empty marker")
        if not self.is_empty(index):
            raise IllegalMove(
                f"Cell {index} is already occupied by {self._cells[index]}"
            )
        self._cells[index] = marker

    def clear(self, index: int):
        """Empty a cell again. Only used to undo speculative moves."""
        self._check_index(index)
        self._cells[index] = EMPTY

    @contextmanager
    def speculative(self, index: int, marker: str):
        """
        Try a move and always take it back.

            with board.speculative(4, "X"):
                outcome = evaluate(board)
        """
        self.place(index, marker)
        try:
            yield self
        finally:
            self._cells[index] = EMPTY

    def is_full(self) -> bool:
        return EMPTY not in self._cells

    def empty_cells(self) -> List[int]:
        """Indices of all empty cells, lowest first."""
        return [i for i, cell in enumerate(self._cells) if cell == EMPTY]

    def reset(self):
        """Empty every cell."""
        self._cells = [EMPTY] * GameConfig.CELL_COUNT

    def copy(self) -> "Board":
        """Create an independent copy of the board."""
        return Board(self._cells)

    def render(self) -> str:
        """
        Text picture of the board. Empty cells show their 1-9 key.
        """
        size = GameConfig.BOARD_SIZE
        rows = []
        for row in range(size):
            labels = []
            for col in range(size):
                index = row * size + col
                cell = self._cells[index]
                labels.append(f"{cell:^3}" if cell else f"{index + 1:^3}")
            rows.append("|".join(labels))
        return "\n" + "\n---+---+---\n".join(rows) + "\n"
