"""Game domain services: board rules, room registry and the session engine.

This package contains pure domain logic that is driven by the Socket.IO
handlers and HTTP routes, keeping transport concerns separated from core
game mechanics.
"""

from .board import WINNING_LINES, evaluate_board, is_valid_index
from .engine import Membership, Outbound, SessionEngine
from .errors import RejectedInput, RoomJoinError
from .registry import RoomRegistry, normalize_room_id

__all__ = [
    'WINNING_LINES',
    'evaluate_board',
    'is_valid_index',
    'Membership',
    'Outbound',
    'SessionEngine',
    'RejectedInput',
    'RoomJoinError',
    'RoomRegistry',
    'normalize_room_id',
]
