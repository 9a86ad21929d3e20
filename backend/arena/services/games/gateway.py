from typing import Any, Dict

NAMESPACE = '/ws'


def room_for(session_id: str) -> str:
    return f"arena:{session_id}"


class SocketIOBroadcaster:
    """Fans engine notifications out to everyone seated in a session."""

    def __init__(self, socketio, namespace: str = NAMESPACE):
        self.socketio = socketio
        self.namespace = namespace

    def emit(self, session_id: str, event: str, payload: Dict[str, Any]) -> None:
        # socketio.emit works both inside handlers and from background tasks
        self.socketio.emit(event, payload, to=room_for(session_id), namespace=self.namespace)
