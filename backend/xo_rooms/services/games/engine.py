import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from xo_rooms.models import ROLES, other_role
from .board import evaluate_board, is_valid_index
from .errors import RoomJoinError
from .registry import RoomRegistry, normalize_room_id

logger = logging.getLogger(__name__)

# Outbound event names, as the browser client knows them.
JOINED_ROOM = 'joinedRoom'
ROOM_JOIN_ERROR = 'roomJoinError'
WAITING_FOR_PLAYER = 'waitingForPlayer'
GAME_STARTED = 'start-game'
GAME_STATE = 'gameState'
OPPONENT_LEFT = 'opponentLeft'
REMATCH_REQUESTED = 'rematchRequested'


@dataclass(frozen=True)
class Outbound:
    """One event for the transport to emit.

    ``to`` is a room id or a connection id; ``skip_sid`` excludes one
    connection from a room broadcast. A ``None`` payload means the event
    carries no data.
    """
    event: str
    to: str
    payload: Any = None
    skip_sid: Optional[str] = None


@dataclass(frozen=True)
class Membership:
    """Add (``entered=True``) or drop a connection from a room's delivery group."""
    sid: str
    room_id: str
    entered: bool


Delivery = Union[Outbound, Membership]


class SessionEngine:
    """Room state machine: EMPTY -> WAITING -> ACTIVE -> TERMINAL.

    Each operation resolves its Session through the registry, mutates it while
    holding the Session's lock, then hands the resulting deliveries to
    ``deliver`` before releasing the lock, so clients observe broadcasts in
    the order the state changed. The same deliveries are returned to the
    caller. Events that make no sense for the current state (late moves,
    moves out of turn, unknown rooms) are ignored and return ``[]``.
    """

    def __init__(
        self,
        registry: Optional[RoomRegistry] = None,
        deliver: Optional[Callable[[Delivery], None]] = None,
        is_connected: Optional[Callable[[str], bool]] = None,
    ):
        self.registry = registry if registry is not None else RoomRegistry()
        self._deliver = deliver
        self._is_connected = is_connected or (lambda sid: True)
        # sid -> (room_id, role); the transport-side "socket.data"
        self._connections: Dict[str, Tuple[str, str]] = {}
        self._index_lock = threading.Lock()
        # sid -> lock serializing that connection's joins and leaves
        self._sid_locks: Dict[str, Any] = {}

    # ---- connection index ----

    def membership_of(self, sid: str) -> Optional[Tuple[str, str]]:
        with self._index_lock:
            return self._connections.get(sid)

    def _remember(self, sid: str, room_id: str, role: str) -> None:
        with self._index_lock:
            self._connections[sid] = (room_id, role)

    def _forget(self, sid: str, room_id: str) -> None:
        with self._index_lock:
            current = self._connections.get(sid)
            if current and current[0] == room_id:
                del self._connections[sid]

    def _connection_lock(self, sid: str):
        with self._index_lock:
            lock = self._sid_locks.get(sid)
            if lock is None:
                lock = self._sid_locks[sid] = threading.RLock()
            return lock

    def _dispatch(self, deliveries: List[Delivery]) -> List[Delivery]:
        if self._deliver is not None:
            for item in deliveries:
                self._deliver(item)
        return deliveries

    # ---- operations ----

    def join(self, room_id, sid: str) -> List[Delivery]:
        """Seat ``sid`` in ``room_id`` as X, or O if X is taken.

        Raises RoomJoinError for an empty id, a repeated join of the same
        room, or a full room. A connection seated elsewhere leaves that room
        first. Joins and leaves of one connection never interleave, so a sid
        holds at most one seat in one room.
        """
        normalized = normalize_room_id(room_id)
        if not normalized:
            raise RoomJoinError('Room ID is required.')

        with self._connection_lock(sid):
            current = self.membership_of(sid)
            if current and current[0] == normalized:
                raise RoomJoinError('You are already in this room.')
            if current:
                logger.info(f"[join-migrate] sid={sid} from={current[0]} to={normalized}")
                self._vacate(sid)
            return self._seat(normalized, sid)

    def _seat(self, normalized: str, sid: str) -> List[Delivery]:
        while True:
            session = self.registry.resolve_or_create(normalized)
            with session.lock:
                if self.registry.get(normalized) is not session:
                    # evicted by a concurrent leave between resolve and lock
                    continue
                if session.role_of(sid) is not None:
                    raise RoomJoinError('You are already in this room.')
                role = session.open_role()
                if role is None:
                    raise RoomJoinError('Room is full.')

                session.players[role] = sid
                self._remember(sid, normalized, role)
                logger.info(f"[join] room={normalized} sid={sid} role={role}")

                deliveries: List[Delivery] = [
                    Membership(sid, normalized, entered=True),
                    Outbound(JOINED_ROOM, to=sid, payload={
                        'roomId': normalized,
                        'role': role,
                        'players': dict(session.players),
                    }),
                ]
                if session.is_full:
                    session.started = True
                    logger.info(f"[game-started] room={normalized} players={dict(session.players)}")
                    deliveries.append(Outbound(GAME_STARTED, to=normalized, payload=session.to_dict()))
                    deliveries.append(Outbound(GAME_STATE, to=normalized, payload=session.to_dict()))
                else:
                    deliveries.append(Outbound(WAITING_FOR_PLAYER, to=normalized, payload=session.to_dict()))
                return self._dispatch(deliveries)

    def leave(self, sid: str) -> List[Delivery]:
        """Vacate whatever role ``sid`` holds."""
        with self._connection_lock(sid):
            return self._vacate(sid)

    def disconnect(self, sid: str) -> List[Delivery]:
        """Transport lost ``sid``: leave its room and drop its bookkeeping."""
        deliveries = self.leave(sid)
        with self._index_lock:
            self._sid_locks.pop(sid, None)
        return deliveries

    def _vacate(self, sid: str) -> List[Delivery]:
        current = self.membership_of(sid)
        if not current:
            return []
        room_id, role = current
        session = self.registry.get(room_id)
        if session is None:
            self._forget(sid, room_id)
            return []

        with session.lock:
            self._forget(sid, room_id)
            if session.players.get(role) != sid:
                return []
            session.players[role] = None
            session.started = False
            logger.info(f"[leave] room={room_id} sid={sid} role={role}")

            deliveries: List[Delivery] = [Membership(sid, room_id, entered=False)]
            remaining_role = other_role(role)
            remaining_sid = session.players[remaining_role]
            if remaining_sid and self._is_connected(remaining_sid):
                deliveries.append(Outbound(OPPONENT_LEFT, to=remaining_sid))
                deliveries.append(Outbound(WAITING_FOR_PLAYER, to=room_id, payload=session.to_dict()))
            else:
                if remaining_sid:
                    # peer vanished without a disconnect reaching us
                    logger.warning(f"[leave] room={room_id} dropping unreachable sid={remaining_sid}")
                    session.players[remaining_role] = None
                    self._forget(remaining_sid, room_id)
                    deliveries.append(Membership(remaining_sid, room_id, entered=False))
                self.registry.remove(room_id)
            return self._dispatch(deliveries)

    def move(self, room_id, sid: str, index) -> List[Delivery]:
        normalized = normalize_room_id(room_id)
        session = self.registry.get(normalized)
        if session is None:
            return self._ignored('move', normalized, sid, 'no such room')

        with session.lock:
            if self.registry.get(normalized) is not session:
                return self._ignored('move', normalized, sid, 'room closed')
            if not session.started:
                return self._ignored('move', normalized, sid, 'not started')
            if session.winner:
                return self._ignored('move', normalized, sid, 'game over')
            if session.players[session.turn] != sid:
                return self._ignored('move', normalized, sid, 'not your turn')
            if not is_valid_index(index):
                return self._ignored('move', normalized, sid, f'bad index {index!r}')
            if session.board[index]:
                return self._ignored('move', normalized, sid, f'cell {index} taken')
            current = self.membership_of(sid)
            if not current or current != (normalized, session.turn):
                return self._ignored('move', normalized, sid, 'role mismatch')

            role = session.turn
            session.board[index] = role
            session.last_move = index
            session.winner, session.winning_line = evaluate_board(session.board)
            if not session.winner:
                session.turn = other_role(role)
            logger.info(f"[move] room={normalized} sid={sid} role={role} index={index}")
            if session.winner:
                logger.info(f"[game-over] room={normalized} winner={session.winner} line={session.winning_line}")
            return self._dispatch([Outbound(GAME_STATE, to=normalized, payload=session.to_dict())])

    def request_rematch(self, sid: str) -> List[Delivery]:
        current = self.membership_of(sid)
        if not current:
            return self._ignored('rematch-request', None, sid, 'not in a room')
        room_id = current[0]
        logger.info(f"[rematch-requested] room={room_id} sid={sid}")
        return self._dispatch([Outbound(REMATCH_REQUESTED, to=room_id, skip_sid=sid)])

    def accept_rematch(self, sid: str) -> List[Delivery]:
        current = self.membership_of(sid)
        if not current:
            return self._ignored('rematch-accept', None, sid, 'not in a room')
        room_id = current[0]
        session = self.registry.get(room_id)
        if session is None:
            return self._ignored('rematch-accept', room_id, sid, 'no such room')

        with session.lock:
            if self.registry.get(room_id) is not session:
                return self._ignored('rematch-accept', room_id, sid, 'room closed')
            if not session.is_full:
                return self._ignored('rematch-accept', room_id, sid, 'opponent missing')
            session.reset()
            session.started = True
            logger.info(f"[rematch] room={room_id} sid={sid}")
            return self._dispatch([
                Outbound(GAME_STARTED, to=room_id, payload=session.to_dict()),
                Outbound(GAME_STATE, to=room_id, payload=session.to_dict()),
            ])

    # ---- read side ----

    def describe(self, room_id) -> Optional[dict]:
        session = self.registry.get(room_id)
        if session is None:
            return None
        with session.lock:
            payload = session.to_dict()
            # sids are for room members only; outsiders see which seats are taken
            payload['players'] = {role: bool(sid) for role, sid in session.players.items()}
            payload['status'] = session.status
            payload['started'] = session.started
            return payload

    def summaries(self) -> List[dict]:
        rooms = []
        for room_id in self.registry.room_ids():
            session = self.registry.get(room_id)
            if session is None:
                continue
            with session.lock:
                rooms.append({
                    'roomId': session.room_id,
                    'status': session.status,
                    'players': sum(1 for role in ROLES if session.players[role]),
                })
        return rooms

    @staticmethod
    def _ignored(op: str, room_id, sid: str, reason: str) -> List[Delivery]:
        logger.debug(f"[ignored] op={op} room={room_id} sid={sid} reason={reason}")
        return []
