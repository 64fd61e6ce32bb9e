from flask import current_app, request
from flask_socketio import emit, join_room, leave_room
from xo_rooms import socketio
from xo_rooms.services.games import Membership, RoomJoinError
from xo_rooms.services.games.engine import ROOM_JOIN_ERROR


class SocketIOTransport:
    """Carries engine deliveries over Flask-SocketIO rooms on one namespace."""

    def __init__(self, namespace: str = '/'):
        self.namespace = namespace

    def deliver(self, item) -> None:
        if isinstance(item, Membership):
            if item.entered:
                join_room(item.room_id, sid=item.sid, namespace=self.namespace)
            else:
                leave_room(item.room_id, sid=item.sid, namespace=self.namespace)
            return
        args = () if item.payload is None else (item.payload,)
        socketio.emit(item.event, *args, to=item.to, skip_sid=item.skip_sid, namespace=self.namespace)

    def is_connected(self, sid: str) -> bool:
        return socketio.server.manager.is_connected(sid, self.namespace)


def _engine():
    return current_app.extensions['xo_rooms']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    sid = _get_sid()
    current_app.logger.info(f"[connect] sid={sid}")
    emit('connected', {'id': sid})


def handle_disconnect(reason=None):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid} reason={reason}")
    _engine().disconnect(sid)


def handle_join_room(data=None):
    room_id = data.get('roomId') if isinstance(data, dict) else None
    try:
        _engine().join(room_id, _get_sid())
    except RoomJoinError as exc:
        current_app.logger.info(f"[join-rejected] sid={_get_sid()} room={room_id!r} reason={exc}")
        emit(ROOM_JOIN_ERROR, str(exc))


def handle_leave_room(data=None):
    _engine().leave(_get_sid())


def handle_player_move(data=None):
    if not isinstance(data, dict):
        return
    _engine().move(data.get('roomId'), _get_sid(), data.get('index'))


def handle_request_rematch(data=None):
    _engine().request_rematch(_get_sid())


def handle_accept_rematch(data=None):
    _engine().accept_rematch(_get_sid())


def handle_error(exc):
    # Keep one bad event from taking the server (and every other room) down
    event = getattr(request, 'event', None) or {}
    current_app.logger.exception(f"[socket-error] sid={_get_sid()} event={event.get('message')}: {exc}")


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('joinRoom', handle_join_room, namespace=namespace)
    socketio.on_event('leaveRoom', handle_leave_room, namespace=namespace)
    socketio.on_event('playerMove', handle_player_move, namespace=namespace)
    socketio.on_event('requestRematch', handle_request_rematch, namespace=namespace)
    socketio.on_event('acceptRematch', handle_accept_rematch, namespace=namespace)
    socketio.on_error(namespace)(handle_error)
