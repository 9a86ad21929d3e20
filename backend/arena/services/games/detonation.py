import random
from typing import List, Optional, Tuple

from .actions import POWER_UP_TYPES
from .grid import BLOCK, EMPTY, WALL, in_bounds
from .session import ACTIVE, PowerUp, Session

# up, down, left, right
BLAST_DIRECTIONS = [(0, -1), (0, 1), (-1, 0), (1, 0)]


def compute_blast(grid, x: int, y: int, radius: int) -> List[Tuple[int, int]]:
    """Cells reached by a blast centred on (x, y).

    Each arm stops before the first wall and on the first block.
    """
    cells = [(x, y)]
    for dx, dy in BLAST_DIRECTIONS:
        for step in range(1, radius + 1):
            cx, cy = x + dx * step, y + dy * step
            if not in_bounds(grid, cx, cy):
                break
            cell = grid[cy][cx]
            if cell == WALL:
                break
            cells.append((cx, cy))
            if cell == BLOCK:
                break
    return cells


def detonate(session: Session, bomb_id: str, rng: random.Random = None,
             power_up_chance: float = 0.3) -> Optional[dict]:
    """Resolve a fuse expiry against the session's current state.

    Returns None when the bomb is already gone. A bomb going off after the
    game ended is removed without a blast and reported with ``blast=False``.
    Caller holds ``session.lock``.
    """
    bomb = session.bombs.pop(bomb_id, None)
    if bomb is None:
        return None

    owner = session.get_player(bomb.owner_id)
    if owner and owner.alive:
        owner.bombs += 1

    if session.phase != ACTIVE:
        return {'bomb': bomb, 'blast': False}

    rng = rng or random.Random()
    cells = compute_blast(session.grid, bomb.x, bomb.y, bomb.radius)
    spawned = []
    for cx, cy in cells:
        if session.grid[cy][cx] != BLOCK:
            continue
        session.grid[cy][cx] = EMPTY
        if rng.random() < power_up_chance:
            power_up = PowerUp(cx, cy, rng.choice(POWER_UP_TYPES))
            session.power_ups.append(power_up)
            spawned.append(power_up)

    hit = set(cells)
    casualties = []
    for player in session.players:
        if player.alive and (player.x, player.y) in hit:
            player.alive = False
            casualties.append(player.id)

    return {
        'bomb': bomb,
        'blast': True,
        'cells': cells,
        'casualties': casualties,
        'spawned': spawned,
    }
