from typing import Optional, Sequence, Tuple

from xo_rooms.models import BOARD_SIZE, DRAW

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


def evaluate_board(board: Sequence[Optional[str]]) -> Tuple[Optional[str], Optional[Tuple[int, int, int]]]:
    """Return ``(winner, winning_line)`` for a board.

    Lines are checked in ``WINNING_LINES`` order and the first complete one
    decides the game. A full board without a line is a draw (no line).
    ``(None, None)`` means play continues.
    """
    for line in WINNING_LINES:
        a, b, c = line
        if board[a] and board[a] == board[b] == board[c]:
            return board[a], line
    if all(board):
        return DRAW, None
    return None, None


def is_valid_index(index) -> bool:
    # bool is an int subclass; True/False are not cell numbers
    if isinstance(index, bool) or not isinstance(index, int):
        return False
    return 0 <= index < BOARD_SIZE
