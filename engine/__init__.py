"""
Tic-tac-toe engine.
Board model, rules, computer opponents and the game session controller.
"""

from .board import Board, EMPTY
from .config import GameConfig, SessionSettings
from .errors import GameError, IllegalMove, InvalidCell, InvalidConfiguration, NoMovesAvailable
from .rules import WINNING_LINES, GameOutcome, GameStatus, evaluate
from .scheduler import ImmediateScheduler, ManualScheduler, Scheduler
from .session import ControllerKind, GameSession, MoveEvent, ScoreTally, SessionState
from .strategies import (
    Difficulty,
    HeuristicStrategy,
    MinimaxStrategy,
    RandomStrategy,
    create_strategy,
)

__version__ = "1.0.0"
