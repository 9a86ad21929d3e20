import os
import random
import sys
import pytest

# Ensure the backend root (containing the `arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from arena import create_app, db, socketio
from arena.services.games.engine import ArenaEngine
from arena.services.games.grid import EMPTY, GRID_HEIGHT, GRID_WIDTH, is_fixed_wall, WALL
from arena.services.games.session import Session


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = '*'
    BOMB_FUSE_MS = 2000
    BLAST_DISPLAY_MS = 500
    POWER_UP_SPAWN_CHANCE = 0.0
    BLOCK_DENSITY = 0.7
    ENFORCE_MOVE_INTERVAL = False
    ARENA_SINGLE_ROOM = False
    BOMB_MIRROR_ENABLED = True


class ManualTimers:
    """Timer double: callbacks run only when a test fires them."""

    def __init__(self):
        self.pending = []

    def schedule(self, session_id, key, delay_ms, callback, *args):
        self.pending.append((session_id, key, delay_ms, callback, args))

    def cancel_session(self, session_id):
        before = len(self.pending)
        self.pending = [t for t in self.pending if t[0] != session_id]
        return before - len(self.pending)

    def keys(self):
        return [t[1] for t in self.pending]

    def fire(self, prefix=''):
        """Run every pending timer whose key starts with ``prefix``."""
        due = [t for t in self.pending if t[1].startswith(prefix)]
        self.pending = [t for t in self.pending if not t[1].startswith(prefix)]
        for _session_id, _key, _delay, callback, args in due:
            callback(*args)
        return len(due)

    def fire_all(self):
        fired = 0
        while self.pending:
            fired += self.fire()
        return fired


class RecordingBroadcaster:
    def __init__(self):
        self.events = []

    def emit(self, session_id, event, payload):
        self.events.append((session_id, event, payload))

    def names(self):
        return [e[1] for e in self.events]

    def last(self, event):
        for _sid, name, payload in reversed(self.events):
            if name == event:
                return payload
        return None


def open_grid():
    """A board with only the fixed walls, no blocks."""
    return [[WALL if is_fixed_wall(x, y, GRID_WIDTH, GRID_HEIGHT) else EMPTY
             for x in range(GRID_WIDTH)] for y in range(GRID_HEIGHT)]


def active_session(players=3, grid=None):
    """A session already in the active phase with ``players`` seated as p1..pN."""
    session = Session('TEST', grid or open_grid())
    for i in range(players):
        session.join(f"p{i + 1}")
    for player in session.players:
        player.ready = True
    session.phase = 'active'
    return session


@pytest.fixture()
def timers():
    return ManualTimers()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def engine(timers, broadcaster):
    return ArenaEngine(broadcaster, timers, rng=random.Random(7), power_up_chance=0.0,
                       block_density=0.0)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    # Swap in the manual timer double so detonations are deterministic
    application.extensions['arena'].timers = ManualTimers()
    with application.app_context():
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
