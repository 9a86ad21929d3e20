import logging
import random
import threading
import time
from collections import deque
from contextlib import contextmanager
from functools import partial

from . import actions
from .detonation import detonate
from .grid import GRID_HEIGHT, GRID_WIDTH, SPAWN_POINTS, copy_grid, generate_grid
from .registry import SessionRegistry
from .session import ACTIVE, RoomFull


class ArenaEngine:
    """Serialization point between transport events, timers and sessions.

    Inbound intents and timer callbacks both resolve their session through
    the registry and then run under ``session.lock``, so two mutations of the
    same session never interleave. Rejected intents are dropped silently.
    """

    def __init__(self, broadcaster, timers, mirror=None, rng=None, logger=None,
                 fuse_ms=2000, blast_display_ms=500, power_up_chance=0.3,
                 block_density=0.7, enforce_move_interval=False, single_room=False,
                 clock=time.monotonic):
        self.broadcaster = broadcaster
        self.timers = timers
        self.mirror = mirror
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)
        self.fuse_ms = fuse_ms
        self.blast_display_ms = blast_display_ms
        self.power_up_chance = power_up_chance
        self.enforce_move_interval = enforce_move_interval
        self.clock = clock
        self._mirror_ops = deque()
        self._mirror_lock = threading.Lock()
        self.registry = SessionRegistry(
            new_grid=partial(generate_grid, GRID_WIDTH, GRID_HEIGHT, SPAWN_POINTS,
                             self.rng, block_density),
            single_room=single_room,
            on_remove=self._teardown,
            logger=self.logger,
        )

    @classmethod
    def from_config(cls, config, broadcaster, timers, mirror=None, logger=None):
        return cls(
            broadcaster,
            timers,
            mirror=mirror,
            logger=logger,
            fuse_ms=int(config.get('BOMB_FUSE_MS', 2000)),
            blast_display_ms=int(config.get('BLAST_DISPLAY_MS', 500)),
            power_up_chance=float(config.get('POWER_UP_SPAWN_CHANCE', 0.3)),
            block_density=float(config.get('BLOCK_DENSITY', 0.7)),
            enforce_move_interval=bool(config.get('ENFORCE_MOVE_INTERVAL', False)),
            single_room=bool(config.get('ARENA_SINGLE_ROOM', False)),
        )

    def _emit(self, session, event, payload):
        self.broadcaster.emit(session.id, event, payload)

    def _mirror(self, op, *args):
        # Queued under the session lock, so rows follow state order.
        if self.mirror is not None:
            self._mirror_ops.append((op, args))

    def _flush_mirror(self):
        """Apply queued mirror writes. Never call with a session or registry lock held."""
        with self._mirror_lock:
            while self._mirror_ops:
                op, args = self._mirror_ops.popleft()
                getattr(self.mirror, op)(*args)

    @contextmanager
    def _serialized(self, session):
        with session.lock:
            yield
        self._flush_mirror()

    # ---- inbound intents ----

    def join(self, connection_id: str, subscribe=None) -> dict:
        """Seat a connection and announce it.

        ``subscribe(session_id)`` runs before the announcement so the joiner
        receives its own ``player_joined`` along with everyone else. A
        repeated join from a seated connection gets the same seat back.
        """
        try:
            session, player, seated = self.registry.join_or_create(connection_id)
        except RoomFull:
            self.logger.info(f"[join-rejected] conn={connection_id} reason=RoomFull")
            return {'success': False, 'reason': RoomFull.reason, 'message': 'Room full'}

        with session.lock:
            ack = self._join_ack(session, player)
            if subscribe is not None:
                subscribe(session.id)
            if not seated:
                return ack
            self.logger.info(
                f"[join] session={session.id} player={player.id} slot={player.slot} total={len(session.players)}"
            )
            self._emit(session, 'player_joined', {
                'session_id': session.id,
                'participant': player.to_dict(),
                'roster': session.roster(),
                'total_players': len(session.players),
                'phase': session.phase,
            })
            return ack

    @staticmethod
    def _join_ack(session, player):
        return {
            'success': True,
            'session_id': session.id,
            'participant': player.to_dict(),
            'snapshot': session.snapshot(),
        }

    def ready(self, connection_id: str) -> None:
        session, player_id = self.registry.lookup(connection_id)
        if session is None:
            return
        with session.lock:
            if session.closed:
                return
            started = session.mark_ready(player_id)
            self._emit(session, 'players_ready_status', session.ready_map())
            if started:
                self.logger.info(f"[game-start] session={session.id}")
                self._emit(session, 'game_start', session.snapshot())

    def move(self, connection_id: str, direction: str) -> None:
        session, player_id = self.registry.lookup(connection_id)
        if session is None:
            return
        with session.lock:
            if session.closed:
                return
            result = actions.move(session, player_id, direction, now=self.clock(),
                                  enforce_interval=self.enforce_move_interval)
            if result is None:
                return
            player = result['player']
            self._emit(session, 'player_moved', {'player_id': player.id, 'x': player.x, 'y': player.y})
            if result['power_up'] is not None:
                self._emit(session, 'powerups_updated', {
                    'power_ups': [p.to_dict() for p in session.power_ups],
                    'roster': session.roster(),
                })

    def place_bomb(self, connection_id: str) -> None:
        session, player_id = self.registry.lookup(connection_id)
        if session is None:
            return
        with self._serialized(session):
            if session.closed:
                return
            bomb = actions.place_bomb(session, player_id, self.fuse_ms)
            if bomb is None:
                return
            self._emit(session, 'bomb_placed', {
                'bomb_id': bomb.id,
                'x': bomb.x,
                'y': bomb.y,
                'player_id': bomb.owner_id,
            })
            self._mirror('bomb_placed', session.id, bomb)
            self.timers.schedule(session.id, f"detonate:{bomb.id}", self.fuse_ms,
                                 self.on_fuse, session.id, bomb.id)

    def disconnect(self, connection_id: str):
        """Drop a connection's seat. Returns the session id it was seated in."""
        try:
            return self._unseat(connection_id)
        finally:
            self._flush_mirror()

    def _unseat(self, connection_id):
        with self.registry.lock:
            seat = self.registry.release(connection_id)
            if not seat:
                return None
            session_id, player_id = seat
            session = self.registry.get(session_id)
            if session is None:
                return session_id
            with session.lock:
                session.remove_player(player_id)
                self.logger.info(f"[leave] session={session_id} player={player_id} remaining={len(session.players)}")
                if not session.players:
                    self.registry.remove(session_id)
                    return session_id
                self._emit(session, 'player_disconnected', {'player_id': player_id, 'roster': session.roster()})
                if session.check_game_over():
                    self._announce_winner(session)
        return session_id

    # ---- timer callbacks ----

    def on_fuse(self, session_id: str, bomb_id: str) -> None:
        session = self.registry.get(session_id)
        if session is None:
            self.logger.info(f"[detonate-stale] session={session_id} bomb={bomb_id}")
            return
        with self._serialized(session):
            if session.closed:
                return
            result = detonate(session, bomb_id, self.rng, self.power_up_chance)
            if result is None:
                self.logger.info(f"[detonate-stale] session={session_id} bomb={bomb_id}")
                return
            self._mirror('bomb_removed', session_id, bomb_id)
            if not result['blast']:
                return
            self.logger.info(
                f"[detonate] session={session_id} bomb={bomb_id} cells={len(result['cells'])} casualties={result['casualties']}"
            )
            self._emit(session, 'bomb_exploded', {
                'bomb_id': bomb_id,
                'explosions': [{'x': x, 'y': y} for x, y in result['cells']],
                'dead_players': result['casualties'],
                'grid': copy_grid(session.grid),
                'power_ups': [p.to_dict() for p in session.power_ups],
            })
            self.timers.schedule(session_id, f"clear:{bomb_id}", self.blast_display_ms,
                                 self.on_blast_clear, session_id, bomb_id)

    def on_blast_clear(self, session_id: str, bomb_id: str) -> None:
        session = self.registry.get(session_id)
        if session is None:
            return
        with session.lock:
            if session.closed or session.phase != ACTIVE:
                return
            if session.check_game_over():
                self._announce_winner(session)

    def _announce_winner(self, session):
        winner = session.winner.to_dict() if session.winner else None
        self.logger.info(f"[game-over] session={session.id} winner={winner['id'] if winner else None}")
        self._emit(session, 'game_over', {'session_id': session.id, 'winner': winner})

    def _teardown(self, session_id: str) -> None:
        self.timers.cancel_session(session_id)
        self._mirror('session_removed', session_id)
