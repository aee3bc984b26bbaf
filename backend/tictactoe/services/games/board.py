from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

EMPTY = ''
SYMBOL_A = 'X'
SYMBOL_B = 'O'
SYMBOLS = (SYMBOL_A, SYMBOL_B)
BOARD_SIZE = 9

# rows, columns, diagonals
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


@dataclass(frozen=True)
class BoardResult:
    winner: Optional[str]
    is_full: bool

    @property
    def is_terminal(self) -> bool:
        return self.winner is not None or self.is_full


def empty_board():
    return [EMPTY] * BOARD_SIZE


def validate_board(board: Sequence[str]) -> None:
    if len(board) != BOARD_SIZE:
        raise ValueError(f'board must have {BOARD_SIZE} cells, got {len(board)}')
    for cell in board:
        if cell != EMPTY and cell not in SYMBOLS:
            raise ValueError(f'invalid cell value {cell!r}')


def evaluate(board: Sequence[str], lines=WINNING_LINES) -> BoardResult:
    """Evaluate a board snapshot for a winner and exhaustion.

    A winner exists iff one of the eight triples holds three equal,
    non-empty cells. Pure; the board is not modified.
    """
    validate_board(board)
    winner = None
    for a, b, c in lines:
        if board[a] != EMPTY and board[a] == board[b] == board[c]:
            winner = board[a]
            break
    return BoardResult(winner=winner, is_full=all(cell != EMPTY for cell in board))


def other_symbol(symbol: str) -> str:
    return SYMBOL_B if symbol == SYMBOL_A else SYMBOL_A
