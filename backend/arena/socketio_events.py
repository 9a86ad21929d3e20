from flask import current_app, request
from flask_socketio import emit, join_room
from arena import socketio
from arena.services.games.gateway import NAMESPACE, room_for


def _engine():
    return current_app.extensions['arena']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    sid = _get_sid()
    # Socket.IO drops the connection from its rooms on its own
    session_id = _engine().disconnect(sid)
    current_app.logger.info(f"[disconnect] conn={sid} session={session_id} reason={reason}")


def handle_join_game(data=None):
    """Seat the caller; the return value is delivered as the ack."""
    sid = _get_sid()
    return _engine().join(sid, subscribe=lambda session_id: join_room(room_for(session_id)))


def handle_ready(data=None):
    _engine().ready(_get_sid())


def handle_move(data):
    direction = data.get('direction') if isinstance(data, dict) else None
    if not isinstance(direction, str):
        return
    _engine().move(_get_sid(), direction)


def handle_bomb(data=None):
    _engine().place_bomb(_get_sid())


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(namespace: str = NAMESPACE) -> None:
    """Register Socket.IO event handlers on the game namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join_game', handle_join_game, namespace=namespace)
    socketio.on_event('ready', handle_ready, namespace=namespace)
    socketio.on_event('move', handle_move, namespace=namespace)
    socketio.on_event('bomb', handle_bomb, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
