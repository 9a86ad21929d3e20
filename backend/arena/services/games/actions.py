"""Validation and mutation of participant intents.

Every function here assumes the caller holds ``session.lock``. A rejected
intent returns ``None`` and leaves the session untouched; rejections are
never errors, since most of them are just latency jitter on the client.
"""
import time
import uuid
from typing import Optional

from .grid import BLOCK, WALL
from .session import ACTIVE, Bomb, Participant, Session

EXTRA_BOMB = 'extra_bomb'
BIGGER_RADIUS = 'bigger_radius'
SPEED = 'speed'
POWER_UP_TYPES = [EXTRA_BOMB, BIGGER_RADIUS, SPEED]

MAX_BOMBS = 10
MAX_RADIUS = 10
MAX_SPEED = 300
SPEED_STEP = 20

DIRECTIONS = {
    'up': (0, -1),
    'down': (0, 1),
    'left': (-1, 0),
    'right': (1, 0),
}


def apply_power_up(player: Participant, kind: str) -> None:
    if kind == EXTRA_BOMB:
        player.bombs = min(player.bombs + 1, MAX_BOMBS)
    elif kind == BIGGER_RADIUS:
        player.bomb_radius = min(player.bomb_radius + 1, MAX_RADIUS)
    elif kind == SPEED:
        player.speed = min(player.speed + SPEED_STEP, MAX_SPEED)


def _actor(session: Session, participant_id: str) -> Optional[Participant]:
    if session.phase != ACTIVE:
        return None
    player = session.get_player(participant_id)
    if not player or not player.alive:
        return None
    return player


def move(session: Session, participant_id: str, direction: str,
         now: float = None, enforce_interval: bool = False) -> Optional[dict]:
    """Step a participant one cell.

    Returns ``{'player': ..., 'power_up': ...}`` on success, where
    ``power_up`` is the consumed PowerUp or None.
    """
    player = _actor(session, participant_id)
    if not player or direction not in DIRECTIONS:
        return None

    now = time.monotonic() if now is None else now
    if enforce_interval and player.last_move_at is not None:
        if (now - player.last_move_at) * 1000.0 < player.move_interval_ms:
            return None

    dx, dy = DIRECTIONS[direction]
    width, height = len(session.grid[0]), len(session.grid)
    new_x = min(max(player.x + dx, 0), width - 1)
    new_y = min(max(player.y + dy, 0), height - 1)

    if session.grid[new_y][new_x] in (WALL, BLOCK):
        return None
    if session.bomb_at(new_x, new_y):
        return None

    power_up = session.power_up_at(new_x, new_y)
    if power_up:
        apply_power_up(player, power_up.kind)
        session.power_ups.remove(power_up)

    player.x = new_x
    player.y = new_y
    player.last_move_at = now
    return {'player': player, 'power_up': power_up}


def _new_bomb_id(session: Session) -> str:
    while True:
        bomb_id = uuid.uuid4().hex[:9]
        if bomb_id not in session.bombs:
            return bomb_id


def place_bomb(session: Session, participant_id: str, fuse_ms: int,
               now: float = None) -> Optional[Bomb]:
    """Drop a bomb under the participant, spending one unit of capacity."""
    player = _actor(session, participant_id)
    if not player or player.bombs <= 0:
        return None
    if session.bomb_at(player.x, player.y):
        return None

    bomb = Bomb(
        bomb_id=_new_bomb_id(session),
        owner_id=player.id,
        x=player.x,
        y=player.y,
        radius=player.bomb_radius,
        armed_at=time.time() if now is None else now,
        fuse_ms=fuse_ms,
    )
    session.bombs[bomb.id] = bomb
    player.bombs -= 1
    return bomb
