"""
Tests for the game session controller.
"""

import numpy as np
import pytest

from engine.config import SessionSettings
from engine.errors import InvalidConfiguration
from engine.rules import GameStatus
from engine.scheduler import ImmediateScheduler, ManualScheduler
from engine.session import GameSession, GameStarted, MoveEvent, SessionState
from engine.strategies import HeuristicStrategy, MinimaxStrategy, RandomStrategy


def _session(settings=None, scheduler=None, seed=42):
    session = GameSession(
        settings=settings,
        scheduler=scheduler or ManualScheduler(),
        rng=np.random.default_rng(seed),
    )
    return session


def _play(session, *indices):
    for index in indices:
        result = session.submit_move(index)
        assert result.is_valid, result.error_message


@pytest.fixture
def pvp():
    session = _session()
    session.start()
    return session


@pytest.fixture
def scheduler():
    return ManualScheduler()


# ==================== HUMAN VS HUMAN ====================

def test_new_session_is_idle():
    session = _session()
    assert session.state is SessionState.IDLE
    assert session.submit_move(0).is_valid is False


def test_start(pvp):
    assert pvp.state is SessionState.IN_PROGRESS
    assert pvp.active_marker == "X"
    assert pvp.active_slot.number == 1
    assert pvp.cells == ("",) * 9
    assert pvp.status_message() == "It's X's turn"


def test_submit_move_flips_turn(pvp):
    result = pvp.submit_move(4)
    assert result.is_valid
    assert result.index == 4
    assert pvp.cells[4] == "X"
    assert pvp.active_marker == "O"


def test_occupied_cell_is_rejected(pvp):
    _play(pvp, 4)
    before = pvp.cells

    result = pvp.submit_move(4)

    assert not result.is_valid
    assert "occupied" in result.error_message
    assert pvp.cells == before
    assert pvp.active_marker == "O"


@pytest.mark.parametrize("index", [-1, 9, "3", None])
def test_bad_index_is_rejected(pvp, index):
    result = pvp.submit_move(index)
    assert not result.is_valid
    assert pvp.cells == ("",) * 9
    assert pvp.active_marker == "X"


def test_win_ends_game_and_counts(pvp):
    _play(pvp, 0, 3, 1, 4, 2)

    assert pvp.state is SessionState.TERMINAL
    assert pvp.outcome.status is GameStatus.WIN
    assert pvp.outcome.winner == "X"
    assert pvp.outcome.line == (0, 1, 2)
    assert pvp.scores.player1_wins == 1
    assert pvp.scores.player2_wins == 0
    assert pvp.status_message() == "Player X has won!"

    # No more moves once the game is over
    before = pvp.cells
    assert not pvp.submit_move(8).is_valid
    assert pvp.cells == before


def test_player_two_win(pvp):
    _play(pvp, 0, 3, 1, 4, 8, 5)
    assert pvp.outcome.winner == "O"
    assert pvp.scores.player2_wins == 1


def test_draw_is_counted(pvp):
    # X O X / X O O / O X X
    _play(pvp, 0, 1, 2, 4, 3, 5, 7, 6, 8)
    assert pvp.outcome.is_draw
    assert pvp.scores.draws == 1
    assert pvp.state is SessionState.TERMINAL


def test_restart_keeps_scores(pvp):
    _play(pvp, 0, 3, 1, 4, 2)
    game_id = pvp.game_id

    pvp.restart()

    assert pvp.game_id == game_id + 1
    assert pvp.state is SessionState.IN_PROGRESS
    assert pvp.cells == ("",) * 9
    assert pvp.active_marker == "X"
    assert pvp.scores.player1_wins == 1


def test_reset_scores(pvp):
    _play(pvp, 0, 3, 1, 4, 2)
    pvp.reset_scores()
    assert pvp.scores.games_played == 0


def test_listeners_get_events(pvp):
    events = []
    pvp.add_listener(events.append)

    _play(pvp, 0, 3, 1, 4, 2)
    pvp.restart()

    moves = [e for e in events if isinstance(e, MoveEvent)]
    assert [e.index for e in moves] == [0, 3, 1, 4, 2]
    assert [e.marker for e in moves] == ["X", "O", "X", "O", "X"]
    assert moves[-1].winning_line == (0, 1, 2)
    assert moves[-1].cells[2] == "X"
    assert isinstance(events[-1], GameStarted)

    pvp.remove_listener(events.append)
    _play(pvp, 4)
    assert not isinstance(events[-1], MoveEvent)


def test_board_property_is_a_copy(pvp):
    board = pvp.board
    board.place(0, "O")
    assert pvp.cells[0] == ""


# ==================== HUMAN VS COMPUTER ====================

def test_computer_moves_after_human(scheduler):
    session = _session(SessionSettings(computer_slot=2, difficulty="medium"), scheduler)
    session.start()
    assert not session.pending_computer_move

    _play(session, 0)
    assert session.pending_computer_move
    assert session.active_marker == "O"

    # Human cannot move for the computer
    result = session.submit_move(8)
    assert not result.is_valid
    assert session.cells[8] == ""

    assert scheduler.run_pending() == 1
    assert not session.pending_computer_move
    assert session.cells[4] == "O"  # Heuristic takes the center
    assert session.active_marker == "X"


def test_computer_delay_is_used(scheduler):
    session = _session(SessionSettings(computer_slot=2), scheduler)
    session.start()
    _play(session, 0)
    assert scheduler.pending[0].delay_ms == 700


def test_restart_discards_pending_computer_move(scheduler):
    session = _session(SessionSettings(computer_slot=2), scheduler)
    session.start()
    _play(session, 0)
    call = scheduler.pending[0]

    session.restart()

    assert scheduler.pending == []
    assert not session.pending_computer_move
    assert call.cancelled

    # Even if the old callback fires anyway it must not touch the new game
    call.callback()
    assert session.cells == ("",) * 9
    assert session.active_marker == "X"


def test_mode_switch_discards_pending_computer_move(scheduler):
    session = _session(SessionSettings(computer_slot=2), scheduler)
    session.start()
    _play(session, 0)

    session.set_mode(False)

    assert scheduler.run_pending() == 0
    assert session.cells == ("",) * 9
    assert not session.vs_computer


def test_computer_first(scheduler):
    session = _session(SessionSettings(computer_slot=1, difficulty="medium"), scheduler)
    session.start()
    assert session.pending_computer_move
    assert not session.submit_move(0).is_valid

    scheduler.run_pending()
    assert session.cells[4] == "X"
    assert session.active_marker == "O"
    assert session.submit_move(0).is_valid


def test_failing_listener_still_schedules_computer(scheduler):
    session = _session(SessionSettings(computer_slot=2, difficulty="medium"), scheduler)

    def broken_listener(event):
        if isinstance(event, MoveEvent) and event.slot == 1:
            raise ValueError("listener failed")

    session.add_listener(broken_listener)
    session.start()

    with pytest.raises(ValueError):
        session.submit_move(0)

    assert session.cells[0] == "X"
    assert session.pending_computer_move
    assert scheduler.run_pending() == 1
    assert session.cells[4] == "O"
    assert session.active_marker == "X"


def test_listener_restart_does_not_leak_old_computer_move(scheduler):
    session = _session(SessionSettings(computer_slot=1, difficulty="medium"), scheduler)
    restarted = []

    def restart_once(event):
        if isinstance(event, MoveEvent) and not restarted:
            restarted.append(event.game_id)
            session.restart()

    session.add_listener(restart_once)
    session.start()
    assert scheduler.run_pending() == 1

    # Only the new game's opening move is queued
    assert restarted
    assert session.cells == ("",) * 9
    assert len(scheduler.pending) == 1
    assert session.pending_computer_move

    assert scheduler.run_pending() == 1
    assert session.cells.count("X") == 1
    assert session.active_marker == "O"


def test_immediate_scheduler_moves_right_away():
    session = _session(SessionSettings(computer_slot=2, difficulty="easy"), ImmediateScheduler())
    session.start()
    _play(session, 4)
    assert sum(1 for cell in session.cells if cell) == 2
    assert session.active_marker == "X"
    assert not session.pending_computer_move


def test_computer_turn_rejected_for_human():
    session = _session(SessionSettings(computer_slot=2))
    session.start()
    result = session.computer_turn()
    assert not result.is_valid
    assert session.cells == ("",) * 9


def test_computer_turn_called_directly(scheduler):
    session = _session(SessionSettings(computer_slot=2, difficulty="hard"), scheduler)
    session.start()
    _play(session, 0)
    result = session.computer_turn()
    assert result.is_valid
    assert result.index == 4
    assert scheduler.run_pending() == 0


def test_hard_computer_never_loses():
    session = _session(SessionSettings(computer_slot=2, difficulty="hard"), ImmediateScheduler())
    for _ in range(3):
        session.restart()
        while session.state is SessionState.IN_PROGRESS:
            # Human always plays the lowest free cell
            session.submit_move(session.board.empty_cells()[0])
        assert session.outcome.winner != "X"
    assert session.scores.player1_wins == 0
    assert session.scores.games_played == 3


def test_computer_win_counts_for_its_slot(scheduler):
    session = _session(SessionSettings(computer_slot=2, difficulty="medium"), scheduler)
    session.start()
    # O takes the center, then has to block X at 2
    _play(session, 0)
    scheduler.run_pending()
    _play(session, 1)
    scheduler.run_pending()
    assert session.cells[2] == "O"
    _play(session, 3)
    scheduler.run_pending()
    # O holds 2 and 4 and wins on 6
    assert session.outcome.winner == "O"
    assert session.scores.player2_wins == 1


# ==================== CONFIGURATION ====================

@pytest.mark.parametrize("p1, p2", [("X", "x"), ("", "O"), ("X", "  "), (" o ", "O")])
def test_invalid_markers_are_rejected(pvp, p1, p2):
    _play(pvp, 4)
    before = pvp.settings

    with pytest.raises(InvalidConfiguration):
        pvp.set_markers(p1, p2)

    assert pvp.settings == before
    assert pvp.cells[4] == "X"  # Game untouched


def test_invalid_settings_rejected_at_construction():
    with pytest.raises(InvalidConfiguration):
        GameSession(SessionSettings(player1_marker="A", player2_marker="a"))
    with pytest.raises(InvalidConfiguration):
        GameSession(SessionSettings(computer_slot=3))
    with pytest.raises(InvalidConfiguration):
        GameSession(SessionSettings(difficulty="impossible"))


@pytest.mark.parametrize("color", ["redd", "#12", "#12345g", "#1234"])
def test_invalid_colors_are_rejected(pvp, color):
    before = pvp.settings

    with pytest.raises(InvalidConfiguration):
        pvp.set_markers("X", "O", player1_color=color)

    assert pvp.settings == before


def test_hex_colors_are_accepted(pvp):
    pvp.set_markers("X", "O", player1_color=" #abc ", player2_color="#00FF00")
    assert [slot.color for slot in pvp.slots] == ["#abc", "#00FF00"]


def test_blank_color_rejected_in_settings():
    with pytest.raises(InvalidConfiguration):
        SessionSettings(player2_color="").validate()


def test_markers_are_normalized(pvp):
    pvp.set_markers(" a ", "b", player1_color="#00ff00")
    assert [slot.marker for slot in pvp.slots] == ["A", "B"]
    assert pvp.slots[0].color == "#00ff00"
    assert pvp.active_marker == "A"
    _play(pvp, 0)
    assert pvp.cells[0] == "A"


def test_set_difficulty_swaps_strategy():
    session = _session(SessionSettings(computer_slot=2))
    assert isinstance(session.slots[1].strategy, RandomStrategy)
    session.set_difficulty("medium")
    assert isinstance(session.slots[1].strategy, HeuristicStrategy)
    session.set_difficulty("HARD")
    assert isinstance(session.slots[1].strategy, MinimaxStrategy)
    assert session.settings.difficulty == "hard"
    assert session.slot_for_marker("O").is_computer


def test_configuration_change_keeps_scores(pvp):
    _play(pvp, 0, 3, 1, 4, 2)
    pvp.set_mode(True)
    assert pvp.scores.player1_wins == 1
    assert pvp.vs_computer
    assert pvp.state is SessionState.IN_PROGRESS
