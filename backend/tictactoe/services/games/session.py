import threading
import time
import uuid
from dataclasses import dataclass
from typing import List, Optional

from .board import EMPTY, BOARD_SIZE, SYMBOL_A, SYMBOL_B, empty_board, evaluate, other_symbol
from .errors import CellOccupied, NotAParticipant, NotReady, OutOfTurn, RoomFull, SessionNotFound

WAITING = 'waiting'
PLAYING = 'playing'
FINISHED = 'finished'

DEFAULT_GAME_TYPE = 'match3x3'


def new_session_id() -> str:
    return f"game-{uuid.uuid4().hex[:12]}"


@dataclass
class Seat:
    connection_id: str
    display_name: str
    symbol: str

    def to_dict(self):
        return {'displayName': self.display_name, 'symbol': self.symbol}


@dataclass(frozen=True)
class MoveResult:
    session_id: str
    cell_index: int
    symbol: str
    display_name: str
    board: List[str]
    current_symbol: str
    winner: Optional[str]
    is_full: bool

    @property
    def is_draw(self) -> bool:
        return self.winner is None and self.is_full

    @property
    def is_terminal(self) -> bool:
        return self.winner is not None or self.is_full

    def to_dict(self):
        return {
            'sessionId': self.session_id,
            'cellIndex': self.cell_index,
            'symbol': self.symbol,
            'board': list(self.board),
            'currentSymbol': self.current_symbol,
            'winner': self.winner,
            'isDraw': self.is_draw,
            'isTerminal': self.is_terminal,
        }


class Session:
    """One match between two seats.

    Every mutation happens under ``self.lock``. The lock is reentrant so a
    caller may hold it across ``apply_move`` and the broadcast of its result.
    """

    def __init__(self, game_type: str = DEFAULT_GAME_TYPE, name: Optional[str] = None,
                 session_id: Optional[str] = None):
        self.id = session_id or new_session_id()
        self.game_type = game_type
        self.name = name
        self.created_at = time.time()
        self.seats: List[Seat] = []
        self.board = empty_board()
        self.current_symbol = SYMBOL_A
        self.status = WAITING
        self.games_completed = 0
        self.last_result: Optional[MoveResult] = None
        self.closed = False
        self.reset_timer = None
        self.lock = threading.RLock()

    # ---- seats ----
    def seat_for(self, connection_id: str) -> Optional[Seat]:
        for seat in self.seats:
            if seat.connection_id == connection_id:
                return seat
        return None

    def other_seat(self, connection_id: str) -> Optional[Seat]:
        for seat in self.seats:
            if seat.connection_id != connection_id:
                return seat
        return None

    def add_seat(self, connection_id: str, display_name: str) -> Seat:
        """Seat a connection. The first seat is symbol A, the second symbol B."""
        with self.lock:
            if self.closed:
                raise SessionNotFound()
            existing = self.seat_for(connection_id)
            if existing:
                return existing
            if len(self.seats) >= 2:
                raise RoomFull()
            taken = {s.symbol for s in self.seats}
            symbol = SYMBOL_A if SYMBOL_A not in taken else SYMBOL_B
            seat = Seat(connection_id=connection_id, display_name=display_name, symbol=symbol)
            self.seats.append(seat)
            self.seats.sort(key=lambda s: s.symbol != SYMBOL_A)
            if len(self.seats) == 2:
                self.status = PLAYING
            return seat

    # ---- moves ----
    def apply_move(self, connection_id: str, cell_index) -> MoveResult:
        """Validate and apply one move.

        Checks run in a fixed order and all of them pass before the board
        is touched: participant, status, turn, cell.
        """
        with self.lock:
            if self.closed:
                raise SessionNotFound()
            seat = self.seat_for(connection_id)
            if seat is None:
                raise NotAParticipant()
            if self.status != PLAYING:
                raise NotReady()
            if seat.symbol != self.current_symbol:
                raise OutOfTurn()
            if isinstance(cell_index, bool) or not isinstance(cell_index, int) \
                    or not 0 <= cell_index < BOARD_SIZE:
                raise CellOccupied(f'Cell {cell_index!r} is out of range')
            if self.board[cell_index] != EMPTY:
                raise CellOccupied('Cell already occupied')

            self.board[cell_index] = seat.symbol
            outcome = evaluate(self.board)
            self.current_symbol = other_symbol(self.current_symbol)
            result = MoveResult(
                session_id=self.id,
                cell_index=cell_index,
                symbol=seat.symbol,
                display_name=seat.display_name,
                board=list(self.board),
                current_symbol=self.current_symbol,
                winner=outcome.winner,
                is_full=outcome.is_full,
            )
            if result.is_terminal:
                self.status = FINISHED
                self.games_completed += 1
                self.last_result = result
            return result

    def winner_seat(self, result: MoveResult) -> Optional[Seat]:
        if result.winner is None:
            return None
        for seat in self.seats:
            if seat.symbol == result.winner:
                return seat
        return None

    # ---- lifecycle ----
    def attach_reset_timer(self, timer) -> None:
        with self.lock:
            if self.closed:
                timer.cancel()
                return
            if self.reset_timer is not None:
                self.reset_timer.cancel()
            self.reset_timer = timer

    def reset(self) -> bool:
        """Clear the board after a finished game. Returns False once closed."""
        with self.lock:
            if self.closed:
                return False
            self.board = empty_board()
            self.current_symbol = SYMBOL_A
            self.status = PLAYING if len(self.seats) == 2 else WAITING
            self.reset_timer = None
            return True

    def close(self) -> None:
        with self.lock:
            self.closed = True
            if self.reset_timer is not None:
                self.reset_timer.cancel()
                self.reset_timer = None

    def to_dict(self):
        with self.lock:
            return {
                'sessionId': self.id,
                'gameType': self.game_type,
                'name': self.name,
                'status': self.status,
                'board': list(self.board),
                'currentSymbol': self.current_symbol,
                'seats': [s.to_dict() for s in self.seats],
                'gamesCompleted': self.games_completed,
            }
