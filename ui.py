"""
Tic-Tac-Toe UI
A graphical interface for the tic-tac-toe engine using Tkinter.

Shows:
- The 3x3 board (click a cell to move)
- Game mode selection (player vs player, player vs computer)
- Difficulty level selection
- Custom markers and colors
- Scoreboard
"""

import tkinter as tk
from tkinter import messagebox, ttk
from typing import Any, Callable, Optional

import numpy as np

from engine.config import GameConfig, SessionSettings
from engine.errors import InvalidConfiguration
from engine.scheduler import Scheduler
from engine.session import GameSession, GameStarted, MoveEvent, SessionState
from engine.strategies import Difficulty

EMPTY_CELL_BG = '#16213e'
DRAW_FLASH_BG = '#ffc107'
DRAW_FLASH_MS = 150


class TkScheduler(Scheduler):
    """Schedules callbacks on the Tk event loop with after()/after_cancel()."""

    def __init__(self, root: tk.Misc):
        self.root = root

    def schedule(self, delay_ms: int, callback: Callable[[], Any]) -> Any:
        return self.root.after(delay_ms, callback)

    def cancel(self, handle: Any):
        if handle is None:
            return
        try:
            self.root.after_cancel(handle)
        except tk.TclError:
            pass  # Already ran


class TicTacToeUI:
    """
    Main UI class for tic-tac-toe.
    """

    def __init__(
        self,
        settings: Optional[SessionSettings] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """Initialize the UI."""
        self.is_running = False

        # Create UI
        self._create_ui()

        self.session = GameSession(
            settings=settings,
            scheduler=TkScheduler(self.root),
            rng=rng,
        )
        self.session.add_listener(self._on_game_event)

        self._sync_controls()
        self.session.start()

    def _create_ui(self):
        """Create the Tkinter UI."""
        self.root = tk.Tk()
        self.root.title("Tic-Tac-Toe")
        self.root.configure(bg='#1a1a2e')
        self.root.minsize(420, 640)

        # Main container
        main_frame = ttk.Frame(self.root)
        main_frame.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)

        # Configure style
        style = ttk.Style()
        style.theme_use('clam')
        style.configure('TFrame', background='#1a1a2e')
        style.configure('TLabel', background='#1a1a2e', foreground='white', font=('Segoe UI', 11))
        style.configure('Title.TLabel', font=('Segoe UI', 16, 'bold'), foreground='#00d4ff')
        style.configure('Status.TLabel', font=('Segoe UI', 12), foreground='#ffd700')

        # Game mode section
        ttk.Label(main_frame, text="🎮 Game Mode", style='Title.TLabel').pack()

        mode_frame = ttk.Frame(main_frame)
        mode_frame.pack(pady=5)

        self.btn_pvp = tk.Button(
            mode_frame, text="Player vs Player", font=('Segoe UI', 10, 'bold'),
            width=14, command=lambda: self._set_mode(False)
        )
        self.btn_pvp.pack(side=tk.LEFT, padx=5)
        self.btn_pvc = tk.Button(
            mode_frame, text="Player vs Computer", font=('Segoe UI', 10, 'bold'),
            width=16, command=lambda: self._set_mode(True)
        )
        self.btn_pvc.pack(side=tk.LEFT, padx=5)

        # Difficulty section (only shown against the computer)
        self.diff_frame = ttk.Frame(main_frame)

        diff_buttons = [
            ("Easy", "EASY", "#4ade80"),
            ("Medium", "MEDIUM", "#fbbf24"),
            ("Hard", "HARD", "#f87171")
        ]
        self.diff_colors = {value: color for _, value, color in diff_buttons}

        for text, value, color in diff_buttons:
            btn = tk.Button(
                self.diff_frame,
                text=text,
                font=('Segoe UI', 10, 'bold'),
                width=8,
                bg='#2d3748',
                fg='white',
                activebackground=color,
                command=lambda v=value: self._set_difficulty(v)
            )
            btn.pack(side=tk.LEFT, padx=5)
            setattr(self, f'btn_{value.lower()}', btn)

        # Marker / color section (only shown for two humans)
        self.marker_frame = ttk.Frame(main_frame)

        self.p1_marker_var = tk.StringVar()
        self.p2_marker_var = tk.StringVar()
        self.p1_color_var = tk.StringVar()
        self.p2_color_var = tk.StringVar()

        for row, (label, marker_var, color_var) in enumerate([
            ("Player 1", self.p1_marker_var, self.p1_color_var),
            ("Player 2", self.p2_marker_var, self.p2_color_var),
        ]):
            ttk.Label(self.marker_frame, text=label).grid(row=row, column=0, padx=4, pady=2)
            tk.Entry(self.marker_frame, textvariable=marker_var, width=4).grid(row=row, column=1, padx=4)
            tk.Entry(self.marker_frame, textvariable=color_var, width=9).grid(row=row, column=2, padx=4)

        tk.Button(
            self.marker_frame,
            text="Apply",
            font=('Segoe UI', 10, 'bold'),
            bg='#6366f1',
            fg='white',
            command=self._apply_markers
        ).grid(row=0, column=3, rowspan=2, padx=6)

        # Board section
        self.settings_anchor = ttk.Separator(main_frame, orient='horizontal')
        self.settings_anchor.pack(fill=tk.X, pady=10)

        self.board_frame = tk.Frame(main_frame, bg='#1a1a2e')
        self.board_frame.pack(pady=10)

        self.board_cells = []
        size = GameConfig.BOARD_SIZE
        for index in range(GameConfig.CELL_COUNT):
            cell = tk.Button(
                self.board_frame,
                text="",
                font=('Segoe UI', 24, 'bold'),
                width=4,
                height=2,
                bg=EMPTY_CELL_BG,
                fg='white',
                relief='ridge',
                borderwidth=2,
                command=lambda i=index: self._on_cell_click(i)
            )
            cell.grid(row=index // size, column=index % size, padx=2, pady=2)
            self.board_cells.append(cell)

        # Game status section
        self.status_label = ttk.Label(main_frame, text="Initializing...", style='Status.TLabel')
        self.status_label.pack(pady=5)

        # Scoreboard
        ttk.Separator(main_frame, orient='horizontal').pack(fill=tk.X, pady=10)
        ttk.Label(main_frame, text="📊 Scores", style='Title.TLabel').pack()

        self.score_label = ttk.Label(main_frame, text="")
        self.score_label.pack(pady=5)

        # Control buttons
        control_frame = ttk.Frame(main_frame)
        control_frame.pack(pady=10)

        tk.Button(
            control_frame,
            text="🔄 Restart",
            font=('Segoe UI', 11, 'bold'),
            bg='#10b981',
            fg='white',
            width=12,
            command=self._restart_game
        ).pack(side=tk.LEFT, padx=5)

        tk.Button(
            control_frame,
            text="Reset Scores",
            font=('Segoe UI', 11, 'bold'),
            bg='#6366f1',
            fg='white',
            width=12,
            command=self._reset_scores
        ).pack(side=tk.LEFT, padx=5)

        # Quit button
        tk.Button(
            main_frame,
            text="✕ Quit",
            font=('Segoe UI', 10),
            bg='#ef4444',
            fg='white',
            width=26,
            command=self._quit
        ).pack(pady=10)

        # Bind close event
        self.root.protocol("WM_DELETE_WINDOW", self._quit)

    # ==================== CONTROLS ====================

    def _sync_controls(self):
        """Make the mode, difficulty and marker controls match the session."""
        settings = self.session.settings
        vs_computer = settings.vs_computer

        self.btn_pvp.configure(
            bg='#2d3748' if vs_computer else '#00d4ff',
            fg='white' if vs_computer else 'black'
        )
        self.btn_pvc.configure(
            bg='#00d4ff' if vs_computer else '#2d3748',
            fg='black' if vs_computer else 'white'
        )

        # Computer always takes the other marker, so markers are a PvP setting
        if vs_computer:
            self.marker_frame.pack_forget()
            self.diff_frame.pack(pady=10, before=self.settings_anchor)
        else:
            self.diff_frame.pack_forget()
            self.marker_frame.pack(pady=10, before=self.settings_anchor)

        current = Difficulty.parse(settings.difficulty).name
        for name, color in self.diff_colors.items():
            btn = getattr(self, f'btn_{name.lower()}')
            if name == current:
                btn.configure(bg=color, fg='black')
            else:
                btn.configure(bg='#2d3748', fg='white')

        self.p1_marker_var.set(settings.player1_marker)
        self.p2_marker_var.set(settings.player2_marker)
        self.p1_color_var.set(settings.player1_color)
        self.p2_color_var.set(settings.player2_color)

    def _set_mode(self, vs_computer: bool):
        """Switch game mode (restarts the game)."""
        self.session.set_mode(vs_computer)
        self._sync_controls()
        print(f"Mode set to: {'PvC' if vs_computer else 'PvP'}")

    def _set_difficulty(self, value: str):
        """Set the AI difficulty level (restarts the game)."""
        self.session.set_difficulty(value)
        self._sync_controls()
        print(f"Difficulty set to: {value}")

    def _apply_markers(self):
        """Apply custom markers and colors from the entry boxes."""
        try:
            self.session.set_markers(
                self.p1_marker_var.get(),
                self.p2_marker_var.get(),
                self.p1_color_var.get().strip() or None,
                self.p2_color_var.get().strip() or None,
            )
        except InvalidConfiguration as e:
            messagebox.showwarning("Tic-Tac-Toe", str(e))
        self._sync_controls()

    # ==================== GAME EVENTS ====================

    def _on_cell_click(self, index: int):
        """Handle a click on a board cell. Invalid clicks are ignored."""
        self.session.submit_move(index)

    def _on_game_event(self, event):
        """Update the display after the session changes."""
        if isinstance(event, GameStarted):
            self._clear_board_display()
        elif isinstance(event, MoveEvent):
            slot = self.session.slots[event.slot - 1]
            self.board_cells[event.index].configure(text=event.marker, fg=slot.color)
            if event.outcome.is_win:
                self._highlight_win(event.outcome.line, slot.color)
            elif event.outcome.is_draw:
                self._flash_draw()
        self._update_game_info()

    def _clear_board_display(self):
        for cell in self.board_cells:
            cell.configure(text="", bg=EMPTY_CELL_BG, fg='white')

    def _highlight_win(self, line, color: str):
        """Light up the three winning cells in the winner's color."""
        for index in line:
            self.board_cells[index].configure(bg=color, fg='white')
        self.root.bell()

    def _flash_draw(self, times: int = 4):
        """Flash the whole board a few times."""
        game_id = self.session.game_id

        def flash(remaining: int):
            if self.session.game_id != game_id:
                return  # New game started
            bg = DRAW_FLASH_BG if remaining % 2 == 0 else EMPTY_CELL_BG
            for cell in self.board_cells:
                cell.configure(bg=bg)
            if remaining > 1:
                self.root.after(DRAW_FLASH_MS, flash, remaining - 1)

        flash(times)

    def _update_game_info(self):
        """Update status and score labels."""
        session = self.session
        status = session.status_message()
        if session.state is SessionState.IN_PROGRESS and session.active_slot.is_computer:
            status = f"Computer ({session.active_marker}) is thinking..."
        self.status_label.configure(text=status)

        scores = session.scores
        p1, p2 = session.slots
        self.score_label.configure(
            text=(
                f"{p1.label}: {scores.player1_wins}   "
                f"{p2.label}: {scores.player2_wins}   "
                f"Draws: {scores.draws}"
            )
        )

    def _restart_game(self):
        """Start a new game, keeping scores."""
        print("Restarting game...")
        self.session.restart()

    def _reset_scores(self):
        self.session.reset_scores()
        self._update_game_info()

    def _quit(self):
        """Quit the application."""
        print("Quitting...")
        self.is_running = False
        self.root.quit()
        self.root.destroy()

    def run(self):
        """Run the UI main loop."""
        self.is_running = True
        self.root.mainloop()


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Tic-Tac-Toe UI")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed the computer's random choices"
    )

    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("   Tic-Tac-Toe UI")
    print("=" * 60 + "\n")

    ui = TicTacToeUI(rng=np.random.default_rng(args.seed))
    ui.run()


if __name__ == "__main__":
    main()
