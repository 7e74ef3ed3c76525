"""
Game session controller for tic-tac-toe.
Owns the board and scores, runs turn order and triggers computer moves.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple, Union

import numpy as np

from .board import Board
from .config import GameConfig, SessionSettings
from .rules import GameOutcome, GameStatus, evaluate
from .scheduler import ImmediateScheduler, Scheduler
from .strategies import Difficulty, MoveStrategy, create_strategy

logger = logging.getLogger(__name__)

# Placeholder for a computer move whose handle is not known yet
_SCHEDULING = object()


class ControllerKind(Enum):
    """Who makes the moves for a slot."""
    HUMAN = "human"
    COMPUTER = "computer"


class SessionState(Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    TERMINAL = "terminal"


@dataclass
class Slot:
    """
    One of the two player positions.
    Slot 1 always moves first.
    """
    number: int                                 # 1 or 2
    marker: str
    color: str
    kind: ControllerKind = ControllerKind.HUMAN
    strategy: Optional[MoveStrategy] = None     # Only for computer slots

    @property
    def is_computer(self) -> bool:
        return self.kind is ControllerKind.COMPUTER

    @property
    def label(self) -> str:
        """Display name, e.g. 'Player 1 (X)'."""
        return f"Player {self.number} ({self.marker})"


@dataclass
class ScoreTally:
    """Wins and draws across the games of a session."""
    player1_wins: int = 0
    player2_wins: int = 0
    draws: int = 0

    def record(self, outcome: GameOutcome, winner_slot: Optional[int] = None):
        """
        Count a finished game.

        Args:
            outcome: A terminal outcome.
            winner_slot: Slot number (1 or 2) of the winner, for a WIN.
        """
        if outcome.status is GameStatus.DRAW:
            self.draws += 1
        elif outcome.status is GameStatus.WIN:
            if winner_slot == 1:
                self.player1_wins += 1
            elif winner_slot == 2:
                self.player2_wins += 1
            else:
                raise ValueError(f"Invalid winner slot {winner_slot!r}")

    def reset(self):
        self.player1_wins = 0
        self.player2_wins = 0
        self.draws = 0

    @property
    def games_played(self) -> int:
        return self.player1_wins + self.player2_wins + self.draws


@dataclass
class ValidationResult:
    """Result of a move request."""
    is_valid: bool
    error_message: Optional[str] = None
    index: Optional[int] = None     # Cell played, when valid


@dataclass(frozen=True)
class GameStarted:
    """Sent to listeners when a new game begins."""
    game_id: int
    active_marker: str
    cells: Tuple[str, ...]


@dataclass(frozen=True)
class MoveEvent:
    """Sent to listeners after every applied move."""
    game_id: int
    index: int
    marker: str
    slot: int
    outcome: GameOutcome
    cells: Tuple[str, ...]

    @property
    def winning_line(self):
        return self.outcome.line


Listener = Callable[[Union[GameStarted, MoveEvent]], Any]


class GameSession:
    """
    A series of tic-tac-toe games between two slots.

    Game flow:
    1. start() clears the board; slot 1 moves first
    2. Humans move with submit_move(); computer moves are scheduled
       automatically and applied through computer_turn()
    3. After every move the rules engine decides: win, draw or next turn
    4. Finished games are added to the score tally
    5. restart() begins the next game, keeping the scores
    """

    def __init__(
        self,
        settings: Optional[SessionSettings] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
        computer_delay_ms: int = GameConfig.COMPUTER_MOVE_DELAY_MS,
    ):
        """
        Initialize the session. The first game begins with start().

        Args:
            settings: Markers, colors, computer slot and difficulty.
            scheduler: Defers computer moves (default: run immediately).
            rng: Random generator shared by the computer strategies.
            computer_delay_ms: Pause before a computer move.

        Raises:
            InvalidConfiguration: If the settings are invalid.
        """
        self.scheduler = scheduler or ImmediateScheduler()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.computer_delay_ms = computer_delay_ms

        self.settings = (settings or SessionSettings()).validate()
        self.slots: List[Slot] = self._build_slots(self.settings)
        self.scores = ScoreTally()

        self._board = Board()
        self._state = SessionState.IDLE
        self._active = 0
        self._outcome = GameOutcome(GameStatus.IN_PROGRESS)
        self._game_id = 0
        self._pending = None
        self._listeners: List[Listener] = []

    # ==================== CONFIGURATION ====================

    def _build_slots(self, settings: SessionSettings) -> List[Slot]:
        slots = []
        for number, marker, color in (
            (1, settings.player1_marker, settings.player1_color),
            (2, settings.player2_marker, settings.player2_color),
        ):
            if settings.computer_slot == number:
                slot = Slot(
                    number=number,
                    marker=marker,
                    color=color,
                    kind=ControllerKind.COMPUTER,
                    strategy=create_strategy(settings.difficulty, self.rng),
                )
            else:
                slot = Slot(number=number, marker=marker, color=color)
            slots.append(slot)
        return slots

    def configure(self, settings: SessionSettings):
        """
        Apply new settings and restart the game. Scores are kept.

        Raises:
            InvalidConfiguration: If the settings are invalid. The current
                settings and game are left untouched.
        """
        validated = settings.validate()
        self.settings = validated
        self.slots = self._build_slots(validated)
        logger.info(
            "Configured: %s vs %s, computer slot %s, difficulty %s",
            validated.player1_marker, validated.player2_marker,
            validated.computer_slot, validated.difficulty,
        )
        self.restart()

    def set_mode(self, vs_computer: bool, computer_slot: int = 2):
        """Switch between human-vs-human and human-vs-computer."""
        self.configure(
            replace(self.settings, computer_slot=computer_slot if vs_computer else None)
        )

    def set_difficulty(self, difficulty: Union[str, Difficulty]):
        """Change the computer strength (easy, medium, hard)."""
        self.configure(
            replace(self.settings, difficulty=Difficulty.parse(difficulty).value)
        )

    def set_markers(
        self,
        player1_marker: str,
        player2_marker: str,
        player1_color: Optional[str] = None,
        player2_color: Optional[str] = None,
    ):
        """Change markers (and optionally colors) for both players."""
        self.configure(
            replace(
                self.settings,
                player1_marker=player1_marker,
                player2_marker=player2_marker,
                player1_color=player1_color or self.settings.player1_color,
                player2_color=player2_color or self.settings.player2_color,
            )
        )

    # ==================== READ-ONLY STATE ====================

    @property
    def cells(self) -> Tuple[str, ...]:
        return self._board.snapshot()

    @property
    def board(self) -> Board:
        """A copy of the board (changing it does not affect the game)."""
        return self._board.copy()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def outcome(self) -> GameOutcome:
        return self._outcome

    @property
    def game_id(self) -> int:
        return self._game_id

    @property
    def active_slot(self) -> Slot:
        return self.slots[self._active]

    @property
    def opponent_slot(self) -> Slot:
        return self.slots[1 - self._active]

    @property
    def active_marker(self) -> str:
        return self.active_slot.marker

    @property
    def vs_computer(self) -> bool:
        return any(slot.is_computer for slot in self.slots)

    @property
    def pending_computer_move(self) -> bool:
        return self._pending is not None

    def slot_for_marker(self, marker: str) -> Optional[Slot]:
        for slot in self.slots:
            if slot.marker == marker:
                return slot
        return None

    def status_message(self) -> str:
        """One-line status for display."""
        if self._state is SessionState.TERMINAL:
            return self._outcome.describe()
        if self._state is SessionState.IN_PROGRESS:
            return f"It's {self.active_marker}'s turn"
        return "Press start to play"

    # ==================== LISTENERS ====================

    def add_listener(self, listener: Listener):
        """Call listener with a GameStarted or MoveEvent after each change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event):
        for listener in list(self._listeners):
            listener(event)

    def _notify_then_schedule(self, event):
        """Tell listeners, then schedule the computer even if a listener raised."""
        game_id = self._game_id
        try:
            self._notify(event)
        finally:
            # A listener that started a new game has already scheduled for it
            if game_id == self._game_id:
                self._schedule_computer_if_needed()

    # ==================== GAME FLOW ====================

    def start(self):
        """Begin a new game on a fresh board. Slot 1 moves first."""
        self._cancel_pending()
        self._game_id += 1
        self._board.reset()
        self._active = 0
        self._outcome = GameOutcome(GameStatus.IN_PROGRESS)
        self._state = SessionState.IN_PROGRESS

        logger.info(
            "Game %d started: %s vs %s",
            self._game_id, self.slots[0].label, self.slots[1].label,
        )
        self._notify_then_schedule(
            GameStarted(self._game_id, self.active_marker, self.cells)
        )

    def restart(self):
        """Drop the current game (and any pending computer move) and start again."""
        self._cancel_pending()
        self._state = SessionState.IDLE
        self.start()

    def reset_scores(self):
        self.scores.reset()

    def validate_move(self, index: int) -> ValidationResult:
        """
        Check whether the active human player may play a cell.

        Args:
            index: Cell index (0-8).

        Returns:
            ValidationResult with is_valid and error_message.
        """
        if self._state is not SessionState.IN_PROGRESS:
            return ValidationResult(
                is_valid=False,
                error_message="Game is not in progress!"
            )

        if self.active_slot.is_computer:
            return ValidationResult(
                is_valid=False,
                error_message=f"It's the computer's turn ({self.active_marker})!"
            )

        if (
            isinstance(index, bool)
            or not isinstance(index, int)
            or not 0 <= index < GameConfig.CELL_COUNT
        ):
            return ValidationResult(
                is_valid=False,
                error_message=f"Invalid cell {index!r}. Must be 0-8."
            )

        if not self._board.is_empty(index):
            return ValidationResult(
                is_valid=False,
                error_message=f"Cell {index} is already occupied by {self._board[index]}"
            )

        return ValidationResult(is_valid=True, index=index)

    def submit_move(self, index: int) -> ValidationResult:
        """
        Play a cell for the active human player.

        Rejected moves change nothing.

        Returns:
            ValidationResult; is_valid is False if the move was rejected.
        """
        result = self.validate_move(index)
        if not result.is_valid:
            logger.debug("Rejected move %r: %s", index, result.error_message)
            return result

        self._apply_move(index)
        return result

    def computer_turn(self) -> ValidationResult:
        """
        Let the active computer slot pick and play its move.

        Returns:
            ValidationResult with the cell played, or the reason nothing
            happened.
        """
        if self._state is not SessionState.IN_PROGRESS:
            return ValidationResult(
                is_valid=False,
                error_message="Game is not in progress!"
            )

        slot = self.active_slot
        if not slot.is_computer:
            return ValidationResult(
                is_valid=False,
                error_message=f"It's a human's turn ({slot.marker})!"
            )

        # A direct call replaces any scheduled one
        self._cancel_pending()

        index = slot.strategy.choose_move(
            self._board, slot.marker, self.opponent_slot.marker
        )
        logger.debug("Computer (%s, %s) plays %d", slot.marker, slot.strategy.name, index)

        self._apply_move(index)
        return ValidationResult(is_valid=True, index=index)

    def _apply_move(self, index: int):
        """Place the active marker, evaluate, then finish or pass the turn."""
        slot = self.active_slot
        self._board.place(index, slot.marker)

        outcome = evaluate(self._board, slot.marker)
        self._outcome = outcome

        if outcome.is_terminal:
            self._state = SessionState.TERMINAL
            self.scores.record(outcome, slot.number if outcome.is_win else None)
            if outcome.is_win:
                logger.info("Game %d: %s wins on %s", self._game_id, slot.label, outcome.line)
            else:
                logger.info("Game %d: draw", self._game_id)
        else:
            self._active = 1 - self._active

        self._notify_then_schedule(
            MoveEvent(
                game_id=self._game_id,
                index=index,
                marker=slot.marker,
                slot=slot.number,
                outcome=outcome,
                cells=self.cells,
            )
        )

    # ==================== COMPUTER SCHEDULING ====================

    def _schedule_computer_if_needed(self):
        if self._state is not SessionState.IN_PROGRESS or not self.active_slot.is_computer:
            return
        if self._pending is not None:
            return  # Already scheduled

        game_id = self._game_id
        # Set before scheduling: an immediate scheduler clears it again
        self._pending = _SCHEDULING
        handle = self.scheduler.schedule(
            self.computer_delay_ms, lambda: self._run_scheduled_move(game_id)
        )
        if self._pending is _SCHEDULING:
            self._pending = handle

    def _run_scheduled_move(self, game_id: int):
        if game_id != self._game_id:
            logger.debug("Discarding computer move from game %d", game_id)
            return
        self._pending = None
        self.computer_turn()

    def _cancel_pending(self):
        if self._pending is None:
            return
        if self._pending is not _SCHEDULING:
            self.scheduler.cancel(self._pending)
        self._pending = None
