"""
Main entry point for tic-tac-toe.

Launches the Tkinter UI by default, or a console game with --no-ui.
Play against a friend, or against the computer on easy, medium or hard.
"""

import logging
import sys
from typing import Optional

import numpy as np

from engine.config import GameConfig, SessionSettings
from engine.errors import InvalidConfiguration
from engine.scheduler import ImmediateScheduler
from engine.session import GameSession, MoveEvent, SessionState

logger = logging.getLogger(__name__)

HELP_TEXT = "Commands: 1-9 play a cell, r restart, s scores, c clear scores, q quit"


class ConsoleGame:
    """
    Plays tic-tac-toe in the terminal.

    Game flow:
    1. Board is printed with free cells numbered 1-9
    2. Human types a number to move
    3. Computer answers straight away (no UI pause in the console)
    4. After a win or draw, type r for a new game
    """

    def __init__(self, session: GameSession):
        self.session = session
        self.is_running = False
        session.add_listener(self._on_event)

    def _on_event(self, event):
        if not isinstance(event, MoveEvent):
            return
        slot = self.session.slots[event.slot - 1]
        if slot.is_computer:
            print(f"\n>>> Computer ({event.marker}) plays {event.index + 1}")
        if event.outcome.is_terminal:
            self._show_game_result()

    def _show_game_result(self):
        print(self.session.board.render())
        print("=" * 40)
        print(f"   {self.session.outcome.describe()}")
        print("=" * 40)
        self.print_scores()
        print("Type r to play again or q to quit.")

    def print_scores(self):
        scores = self.session.scores
        p1, p2 = self.session.slots
        print(
            f"{p1.label}: {scores.player1_wins}  "
            f"{p2.label}: {scores.player2_wins}  "
            f"Draws: {scores.draws}"
        )

    def _prompt(self) -> str:
        if self.session.state is SessionState.IN_PROGRESS:
            return f"{self.session.status_message()} > "
        return "> "

    def handle_command(self, command: str) -> bool:
        """
        Handle one line of input.

        Returns:
            False when the player wants to quit.
        """
        command = command.strip().lower()

        if command in ("q", "quit", "exit"):
            return False
        if command in ("r", "restart"):
            self.session.restart()
        elif command in ("s", "scores"):
            self.print_scores()
        elif command in ("c", "clear"):
            self.session.reset_scores()
            print("Scores cleared.")
        elif command.isdecimal():
            number = int(command)
            if not 1 <= number <= GameConfig.CELL_COUNT:
                print(f"Invalid move: choose a cell from 1 to {GameConfig.CELL_COUNT}.")
                return True
            result = self.session.submit_move(number - 1)
            if not result.is_valid:
                print(f"Invalid move: {result.error_message}")
        elif command:
            print(HELP_TEXT)
        return True

    def run(self):
        """Run until the player quits."""
        print(HELP_TEXT)
        self.session.start()
        self.is_running = True

        while self.is_running:
            if self.session.state is SessionState.IN_PROGRESS:
                print(self.session.board.render())
            try:
                line = input(self._prompt())
            except EOFError:
                break
            self.is_running = self.handle_command(line)


def build_settings(args) -> SessionSettings:
    """Turn parsed command-line arguments into session settings."""
    player1, player2 = args.markers
    computer_slot: Optional[int] = None
    if args.mode == "pvc":
        computer_slot = 1 if args.computer_first else 2
    return SessionSettings(
        player1_marker=player1,
        player2_marker=player2,
        computer_slot=computer_slot,
        difficulty=args.difficulty,
    )


def parse_args(argv=None):
    import argparse

    parser = argparse.ArgumentParser(description="Tic-tac-toe")
    parser.add_argument(
        "--mode",
        choices=["pvp", "pvc"],
        default="pvp",
        help="pvp: two humans, pvc: human vs computer"
    )
    parser.add_argument(
        "--difficulty",
        choices=["easy", "medium", "hard"],
        default=GameConfig.DEFAULT_DIFFICULTY,
        help="Computer strength in pvc mode"
    )
    parser.add_argument(
        "--markers",
        nargs=2,
        metavar=("P1", "P2"),
        default=[GameConfig.DEFAULT_PLAYER1_MARKER, GameConfig.DEFAULT_PLAYER2_MARKER],
        help="Markers for player 1 and player 2"
    )
    parser.add_argument(
        "--computer-first",
        action="store_true",
        help="Let the computer play first (as player 1)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed the computer's random choices"
    )
    parser.add_argument(
        "--no-ui",
        action="store_true",
        help="Run without UI (console mode)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug logging (AI search statistics, rejected moves)"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        settings = build_settings(args).validate()
    except InvalidConfiguration as e:
        print(f"ERROR: {e}")
        return 2

    rng = np.random.default_rng(args.seed)

    # Launch UI by default
    if not args.no_ui:
        from ui import TicTacToeUI
        print("\n" + "=" * 60)
        print("   Tic-Tac-Toe UI")
        print("=" * 60 + "\n")
        ui = TicTacToeUI(settings=settings, rng=rng)
        ui.run()
        return 0

    # Console mode (--no-ui)
    session = GameSession(settings=settings, scheduler=ImmediateScheduler(), rng=rng)
    game = ConsoleGame(session)

    try:
        game.run()
    except KeyboardInterrupt:
        print("\n\nGame interrupted by user.")
    finally:
        print("Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
