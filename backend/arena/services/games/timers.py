import logging
import threading
from typing import Callable, Dict, Tuple


class TimerRegistry:
    """Deferred callbacks keyed by ``(session_id, key)``.

    Each timer runs as a Socket.IO background task that sleeps and then
    checks that its token is still registered. Cancelling just drops the
    token, so a cancelled task wakes up and exits without acting.
    """

    def __init__(self, socketio, app=None, logger=None):
        self.socketio = socketio
        self.app = app
        self.logger = logger or logging.getLogger(__name__)
        self._tokens: Dict[Tuple[str, str], object] = {}
        self._lock = threading.Lock()

    def schedule(self, session_id: str, key: str, delay_ms: int, callback: Callable, *args) -> None:
        token = object()
        with self._lock:
            self._tokens[(session_id, key)] = token
        self.logger.debug(f"[timer-set] session={session_id} key={key} delay={delay_ms}ms")
        self.socketio.start_background_task(self._runner, session_id, key, token, delay_ms / 1000.0, callback, args)

    def _runner(self, session_id, key, token, delay, callback, args):
        self.socketio.sleep(delay)
        with self._lock:
            if self._tokens.get((session_id, key)) is not token:
                self.logger.debug(f"[timer-abort] session={session_id} key={key} cancelled")
                return
            del self._tokens[(session_id, key)]
        self.logger.debug(f"[timer-fire] session={session_id} key={key}")
        try:
            if self.app is not None:
                with self.app.app_context():
                    callback(*args)
            else:
                callback(*args)
        except Exception:
            # A background task has nobody to report to; keep the worker alive.
            self.logger.exception(f"[timer-error] session={session_id} key={key}")

    def cancel_session(self, session_id: str) -> int:
        with self._lock:
            keys = [k for k in self._tokens if k[0] == session_id]
            for k in keys:
                del self._tokens[k]
        if keys:
            self.logger.info(f"[timer-cancel] session={session_id} cancelled={len(keys)}")
        return len(keys)

    def pending(self, session_id: str) -> int:
        with self._lock:
            return sum(1 for k in self._tokens if k[0] == session_id)
