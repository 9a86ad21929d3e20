import threading
from typing import Dict, List, Optional

from .grid import SPAWN_POINTS, copy_grid

# Lifecycle phases
WAITING = 'waiting'
READY_CHECK = 'ready_check'
ACTIVE = 'active'
OVER = 'over'

MAX_PLAYERS = 3
DEFAULT_BOMBS = 1
DEFAULT_RADIUS = 2
BASE_SPEED = 150
MOVE_INTERVAL_BASE_MS = 100
PLAYER_COLORS = ['#FF6B6B', '#4ECDC4', '#FFE66D']


class RoomFull(Exception):
    """Raised when a session already holds the maximum number of participants."""

    reason = 'RoomFull'


class Participant:
    def __init__(self, participant_id: str, slot: int, x: int, y: int):
        self.id = participant_id
        self.slot = slot
        self.x = x
        self.y = y
        self.bombs = DEFAULT_BOMBS
        self.bomb_radius = DEFAULT_RADIUS
        self.speed = BASE_SPEED
        self.alive = True
        self.ready = False
        self.last_move_at: Optional[float] = None

    @property
    def move_interval_ms(self) -> int:
        return int(MOVE_INTERVAL_BASE_MS * BASE_SPEED / self.speed)

    @property
    def color(self) -> str:
        return PLAYER_COLORS[(self.slot - 1) % len(PLAYER_COLORS)]

    def to_dict(self):
        return {
            'id': self.id,
            'slot': self.slot,
            'x': self.x,
            'y': self.y,
            'bombs': self.bombs,
            'bomb_radius': self.bomb_radius,
            'speed': self.speed,
            'move_interval_ms': self.move_interval_ms,
            'alive': self.alive,
            'ready': self.ready,
            'color': self.color,
        }


class Bomb:
    def __init__(self, bomb_id: str, owner_id: str, x: int, y: int, radius: int,
                 armed_at: float, fuse_ms: int):
        self.id = bomb_id
        self.owner_id = owner_id
        self.x = x
        self.y = y
        self.radius = radius
        self.armed_at = armed_at
        self.fuse_ms = fuse_ms

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.owner_id,
            'x': self.x,
            'y': self.y,
            'radius': self.radius,
        }


class PowerUp:
    def __init__(self, x: int, y: int, kind: str):
        self.x = x
        self.y = y
        self.kind = kind

    def to_dict(self):
        return {'x': self.x, 'y': self.y, 'type': self.kind}


class Session:
    """Authoritative state of one arena.

    Every read or write must happen while holding ``lock``; the engine takes
    it for inbound intents and for timer callbacks alike. ``closed`` flips
    once the registry drops the session so late callbacks can bail out.
    """

    def __init__(self, session_id: str, grid):
        self.id = session_id
        self.grid = grid
        self.players: List[Participant] = []
        self.bombs: Dict[str, Bomb] = {}
        self.power_ups: List[PowerUp] = []
        self.phase = WAITING
        self.winner: Optional[Participant] = None
        self.closed = False
        self.lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self.phase == WAITING and len(self.players) < MAX_PLAYERS and not self.closed

    def get_player(self, participant_id: str) -> Optional[Participant]:
        for player in self.players:
            if player.id == participant_id:
                return player
        return None

    def bomb_at(self, x: int, y: int) -> Optional[Bomb]:
        for bomb in self.bombs.values():
            if bomb.x == x and bomb.y == y:
                return bomb
        return None

    def power_up_at(self, x: int, y: int) -> Optional[PowerUp]:
        for power_up in self.power_ups:
            if power_up.x == x and power_up.y == y:
                return power_up
        return None

    def alive_players(self) -> List[Participant]:
        return [p for p in self.players if p.alive]

    def join(self, participant_id: str) -> Participant:
        if len(self.players) >= MAX_PLAYERS:
            raise RoomFull(self.id)
        # Lowest free slot; equals roster length + 1 unless someone left.
        taken = {p.slot for p in self.players}
        slot = next(s for s in range(1, MAX_PLAYERS + 1) if s not in taken)
        x, y = SPAWN_POINTS[slot - 1]
        player = Participant(participant_id, slot, x, y)
        self.players.append(player)
        if len(self.players) == MAX_PLAYERS and self.phase == WAITING:
            self.phase = READY_CHECK
        return player

    def mark_ready(self, participant_id: str) -> bool:
        """Set the ready flag; return True when this starts the game."""
        player = self.get_player(participant_id)
        if not player or self.phase not in (WAITING, READY_CHECK):
            return False
        player.ready = True
        if self.phase == READY_CHECK and all(p.ready for p in self.players):
            self.phase = ACTIVE
            return True
        return False

    def ready_map(self) -> Dict[str, bool]:
        return {p.id: p.ready for p in self.players}

    def remove_player(self, participant_id: str) -> Optional[Participant]:
        player = self.get_player(participant_id)
        if not player:
            return None
        self.players.remove(player)
        if self.phase == READY_CHECK:
            self.phase = WAITING
        return player

    def check_game_over(self) -> bool:
        """Close an active game once at most one participant is alive.

        Returns True only on the transition itself so callers announce the
        result exactly once.
        """
        if self.phase != ACTIVE:
            return False
        alive = self.alive_players()
        if len(alive) > 1:
            return False
        self.phase = OVER
        self.winner = alive[0] if alive else None
        return True

    def roster(self):
        return [p.to_dict() for p in self.players]

    def snapshot(self):
        return {
            'grid': copy_grid(self.grid),
            'roster': self.roster(),
            'phase': self.phase,
            'bombs': [b.to_dict() for b in self.bombs.values()],
            'power_ups': [p.to_dict() for p in self.power_ups],
        }

    def summary(self):
        return {
            'session_id': self.id,
            'phase': self.phase,
            'players': len(self.players),
            'alive': len(self.alive_players()),
            'bombs': len(self.bombs),
            'winner': self.winner.id if self.winner else None,
        }
