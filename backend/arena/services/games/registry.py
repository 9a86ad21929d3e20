import logging
import random
import string
import threading
from typing import Callable, Dict, Optional, Tuple

from .session import Participant, RoomFull, Session

SINGLE_ROOM_ID = 'ROOM'


def generate_session_code(existing, length=4, rng=None) -> str:
    """Generate a unique, short session code."""
    rng = rng or random
    while True:
        code = ''.join(rng.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in existing:
            return code


class SessionRegistry:
    """Owns every live Session plus the connection -> seat lookup.

    ``new_grid`` is called once per created session. ``on_remove`` runs after
    a session is dropped so the owner can cancel timers and clean mirrors.

    Lock order is ``registry.lock`` before ``session.lock``; code that needs
    both (join, teardown) must take them in that order.
    """

    def __init__(self, new_grid: Callable, single_room: bool = False,
                 on_remove: Callable[[str], None] = None, logger=None):
        self.new_grid = new_grid
        self.single_room = single_room
        self.on_remove = on_remove
        self.logger = logger or logging.getLogger(__name__)
        self.sessions: Dict[str, Session] = {}
        self.connections: Dict[str, Tuple[str, str]] = {}
        self.lock = threading.RLock()

    def _create(self, session_id: str = None) -> Session:
        session_id = session_id or generate_session_code(self.sessions)
        session = Session(session_id, self.new_grid())
        self.sessions[session_id] = session
        self.logger.info(f"[session-create] session={session_id}")
        return session

    def _find_open(self) -> Session:
        if self.single_room:
            room = self.sessions.get(SINGLE_ROOM_ID)
            if room is None:
                return self._create(SINGLE_ROOM_ID)
            # A started or finished room only takes players again once it empties.
            if not room.is_open:
                raise RoomFull(SINGLE_ROOM_ID)
            return room
        for session in self.sessions.values():
            if session.is_open:
                return session
        return self._create()

    def join_or_create(self, connection_id: str) -> Tuple[Session, Participant, bool]:
        """Seat a connection in the first open session, creating one if needed.

        Returns ``(session, participant, seated)``; ``seated`` is False when
        the connection already held a seat, which is returned unchanged.
        Raises RoomFull only in single-room mode; matchmaking always finds
        or makes a seat.
        """
        with self.lock:
            seat = self.connections.get(connection_id)
            if seat and seat[0] in self.sessions:
                session = self.sessions[seat[0]]
                return session, session.get_player(seat[1]), False
            session = self._find_open()
            with session.lock:
                player = session.join(connection_id)
            self.connections[connection_id] = (session.id, player.id)
            return session, player, True

    def get(self, session_id: str) -> Optional[Session]:
        with self.lock:
            return self.sessions.get(session_id)

    def lookup(self, connection_id: str) -> Tuple[Optional[Session], Optional[str]]:
        with self.lock:
            seat = self.connections.get(connection_id)
            if not seat:
                return None, None
            return self.sessions.get(seat[0]), seat[1]

    def release(self, connection_id: str) -> Optional[Tuple[str, str]]:
        with self.lock:
            return self.connections.pop(connection_id, None)

    def remove(self, session_id: str) -> bool:
        with self.lock:
            session = self.sessions.pop(session_id, None)
            if session is None:
                return False
            session.closed = True
            for cid in [c for c, seat in self.connections.items() if seat[0] == session_id]:
                del self.connections[cid]
        self.logger.info(f"[session-remove] session={session_id}")
        if self.on_remove:
            self.on_remove(session_id)
        return True

    def __len__(self):
        return len(self.sessions)

    def all(self):
        with self.lock:
            return list(self.sessions.values())
