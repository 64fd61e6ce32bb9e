import logging
import re
import threading
from typing import Dict, List, Optional

from xo_rooms.models import Session

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')


def normalize_room_id(raw) -> str:
    """Canonical form of a client supplied room id.

    ``"  Game Night "`` and ``"game   night"`` both become ``"game-night"``.
    """
    if raw is None:
        return ''
    return _WHITESPACE.sub('-', str(raw).strip()).lower()


class RoomRegistry:
    """Process-wide map of normalized room id -> Session.

    The registry owns every Session. Callers resolve a room by id on each
    event and must not keep the Session around between events. The map
    itself is guarded by ``_lock``; per-room state is guarded by each
    Session's own lock.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def resolve_or_create(self, room_id: str) -> Session:
        room_id = normalize_room_id(room_id)
        with self._lock:
            session = self._sessions.get(room_id)
            if session is None:
                session = Session(room_id)
                self._sessions[room_id] = session
                logger.info(f"[room-created] room={room_id}")
            return session

    def get(self, room_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(normalize_room_id(room_id))

    def remove(self, room_id: str) -> None:
        room_id = normalize_room_id(room_id)
        with self._lock:
            if self._sessions.pop(room_id, None) is not None:
                logger.info(f"[room-evicted] room={room_id}")

    def room_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._sessions)

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def __contains__(self, room_id):
        return self.get(room_id) is not None
