import threading
from typing import Dict, List, Optional, Tuple

X = 'X'
O = 'O'
DRAW = 'draw'
ROLES = (X, O)
BOARD_SIZE = 9


def other_role(role: str) -> str:
    return O if role == X else X


class Session:
    """In-memory state of one room.

    Lives only as long as the process and only while at least one role is
    held. ``lock`` is the room's serialization point: every read-modify-write
    of the fields below happens while holding it.
    """

    def __init__(self, room_id: str):
        self.room_id = room_id
        self.players: Dict[str, Optional[str]] = {X: None, O: None}
        self.started = False
        self.lock = threading.RLock()
        self.reset()

    def reset(self) -> None:
        self.board: List[Optional[str]] = [None] * BOARD_SIZE
        self.turn = X
        self.winner: Optional[str] = None
        self.winning_line: Optional[Tuple[int, int, int]] = None
        self.last_move: Optional[int] = None

    def open_role(self) -> Optional[str]:
        for role in ROLES:
            if not self.players[role]:
                return role
        return None

    def role_of(self, sid: str) -> Optional[str]:
        for role in ROLES:
            if sid and self.players[role] == sid:
                return role
        return None

    @property
    def is_full(self) -> bool:
        return all(self.players[role] for role in ROLES)

    @property
    def is_empty(self) -> bool:
        return not any(self.players[role] for role in ROLES)

    @property
    def status(self) -> str:
        if self.is_empty:
            return 'empty'
        if not self.is_full:
            return 'waiting'
        if self.winner:
            return 'terminal'
        return 'active'

    def to_dict(self):
        # Copies only; callers may hand this straight to the transport.
        return {
            'roomId': self.room_id,
            'board': list(self.board),
            'turn': self.turn,
            'winner': self.winner,
            'winningLine': list(self.winning_line) if self.winning_line else None,
            'players': dict(self.players),
            'lastMove': self.last_move,
        }

    def __repr__(self):
        return f"<Session {self.room_id} status={self.status} turn={self.turn}>"
