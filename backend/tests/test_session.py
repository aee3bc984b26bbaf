import pytest

from tictactoe.services.games.errors import (
    CellOccupied, NotAParticipant, NotReady, OutOfTurn, RoomFull, SessionNotFound,
)
from tictactoe.services.games.scheduler import ResetTimer
from tictactoe.services.games.session import FINISHED, PLAYING, WAITING, Session


def _playing_session():
    session = Session()
    session.add_seat('sid-a', 'Alice')
    session.add_seat('sid-b', 'Bob')
    return session


def _play(session, moves):
    for conn, cell in moves:
        session.apply_move(conn, cell)


def test_seats_follow_arrival_order():
    session = Session()
    first = session.add_seat('sid-a', 'Alice')
    assert session.status == WAITING
    second = session.add_seat('sid-b', 'Bob')
    assert (first.symbol, second.symbol) == ('X', 'O')
    assert session.status == PLAYING
    assert session.current_symbol == 'X'
    assert session.id.startswith('game-')


def test_third_occupant_is_rejected():
    session = _playing_session()
    with pytest.raises(RoomFull):
        session.add_seat('sid-c', 'Cara')
    assert len(session.seats) == 2


def test_reseating_returns_existing_seat():
    session = Session()
    seat = session.add_seat('sid-a', 'Alice')
    assert session.add_seat('sid-a', 'Alice again') is seat
    assert len(session.seats) == 1


def test_session_ids_are_unique():
    assert len({Session().id for _ in range(100)}) == 100


def test_first_move_writes_symbol_and_flips_turn():
    session = _playing_session()
    result = session.apply_move('sid-a', 4)
    assert session.board == ['', '', '', '', 'X', '', '', '', '']
    assert result.board == session.board
    assert result.current_symbol == 'O' == session.current_symbol
    assert result.winner is None
    assert not result.is_terminal
    assert session.status == PLAYING


def test_missing_participant_is_rejected_without_mutation():
    session = _playing_session()
    with pytest.raises(NotAParticipant):
        session.apply_move('sid-z', 0)
    assert session.board == [''] * 9


def test_waiting_session_is_not_ready():
    session = Session()
    session.add_seat('sid-a', 'Alice')
    with pytest.raises(NotReady):
        session.apply_move('sid-a', 0)
    assert session.board == [''] * 9


def test_out_of_turn_is_rejected_without_mutation():
    session = _playing_session()
    with pytest.raises(OutOfTurn):
        session.apply_move('sid-b', 0)
    assert session.board == [''] * 9
    assert session.current_symbol == 'X'


def test_occupied_cell_is_rejected_without_mutation():
    session = _playing_session()
    session.apply_move('sid-a', 0)
    before = list(session.board)
    with pytest.raises(CellOccupied):
        session.apply_move('sid-b', 0)
    assert session.board == before
    assert session.current_symbol == 'O'


@pytest.mark.parametrize('cell', [-1, 9, 42, 'a', None, 1.5, True])
def test_out_of_range_cells_are_rejected(cell):
    session = _playing_session()
    with pytest.raises(CellOccupied):
        session.apply_move('sid-a', cell)
    assert session.board == [''] * 9


def test_checks_run_in_order():
    session = Session()
    session.add_seat('sid-a', 'Alice')
    # not a participant wins over not ready
    with pytest.raises(NotAParticipant):
        session.apply_move('sid-z', 0)
    session.add_seat('sid-b', 'Bob')
    session.apply_move('sid-a', 0)
    # out of turn wins over occupied cell
    with pytest.raises(OutOfTurn):
        session.apply_move('sid-a', 0)


def test_closed_session_is_not_found():
    session = _playing_session()
    session.close()
    with pytest.raises(SessionNotFound):
        session.apply_move('sid-a', 0)


def test_win_finishes_session_and_blocks_moves():
    session = _playing_session()
    _play(session, [('sid-a', 0), ('sid-b', 3), ('sid-a', 1), ('sid-b', 4)])
    result = session.apply_move('sid-a', 2)
    assert result.winner == 'X'
    assert result.is_terminal and not result.is_draw
    assert session.status == FINISHED
    assert session.winner_seat(result).display_name == 'Alice'
    with pytest.raises(NotReady):
        session.apply_move('sid-b', 5)


def test_draw_finishes_session():
    session = _playing_session()
    # X O X / X O O / O X X
    _play(session, [
        ('sid-a', 0), ('sid-b', 1), ('sid-a', 2),
        ('sid-b', 4), ('sid-a', 3), ('sid-b', 5),
        ('sid-a', 7), ('sid-b', 6),
    ])
    result = session.apply_move('sid-a', 8)
    assert result.is_draw
    assert result.winner is None
    assert session.winner_seat(result) is None
    assert session.status == FINISHED
    assert session.games_completed == 1


def test_reset_restores_empty_board_and_first_symbol():
    session = _playing_session()
    _play(session, [('sid-a', 0), ('sid-b', 3), ('sid-a', 1), ('sid-b', 4), ('sid-a', 2)])
    assert session.reset() is True
    assert session.board == [''] * 9
    assert session.current_symbol == 'X'
    assert session.status == PLAYING


def test_reset_is_noop_after_close():
    session = _playing_session()
    session.apply_move('sid-a', 0)
    session.close()
    assert session.reset() is False
    assert session.board[0] == 'X'


def test_close_cancels_attached_timer():
    calls = []
    session = _playing_session()
    timer = ResetTimer(session.id, 3, calls.append)
    session.attach_reset_timer(timer)
    session.close()
    assert timer.cancelled
    assert timer.fire() is False
    assert calls == []


def test_timer_attached_after_close_is_cancelled():
    session = _playing_session()
    session.close()
    timer = ResetTimer(session.id, 3, lambda sid: None)
    session.attach_reset_timer(timer)
    assert timer.cancelled
    assert not timer.pending


def test_timer_fires_once():
    calls = []
    timer = ResetTimer('game-1', 0, calls.append)
    assert timer.fire() is True
    assert timer.fire() is False
    timer.cancel()
    assert calls == ['game-1']
    assert not timer.cancelled
