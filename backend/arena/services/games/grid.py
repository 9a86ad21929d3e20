import random
from typing import List, Sequence, Tuple

EMPTY = 0
WALL = 'wall'
BLOCK = 'block'

GRID_WIDTH = 13
GRID_HEIGHT = 11
SPAWN_POINTS: List[Tuple[int, int]] = [
    (1, 1),                            # slot 1, top-left
    (GRID_WIDTH - 2, 1),               # slot 2, top-right
    (1, GRID_HEIGHT - 2),              # slot 3, bottom-left
]
SPAWN_CLEARANCE = 2

Grid = List[list]


def is_fixed_wall(x: int, y: int, width: int, height: int) -> bool:
    """Border and even/even cells are permanent walls."""
    if x == 0 or y == 0 or x == width - 1 or y == height - 1:
        return True
    return x % 2 == 0 and y % 2 == 0


def near_spawn(x: int, y: int, spawn_points: Sequence[Tuple[int, int]],
               clearance: int = SPAWN_CLEARANCE) -> bool:
    return any(abs(sx - x) <= clearance and abs(sy - y) <= clearance for sx, sy in spawn_points)


def generate_grid(width: int = GRID_WIDTH, height: int = GRID_HEIGHT,
                  spawn_points: Sequence[Tuple[int, int]] = SPAWN_POINTS,
                  rng: random.Random = None, block_chance: float = 0.7) -> Grid:
    """Build a fresh board as ``grid[y][x]``.

    The wall layout is deterministic; breakable blocks are rolled per cell
    with ``block_chance``, keeping a Chebyshev radius of two around every
    spawn point clear so nobody starts boxed in.
    """
    rng = rng or random.Random()
    grid = [[EMPTY for _ in range(width)] for _ in range(height)]
    for y in range(height):
        for x in range(width):
            if is_fixed_wall(x, y, width, height):
                grid[y][x] = WALL
            elif not near_spawn(x, y, spawn_points) and rng.random() < block_chance:
                grid[y][x] = BLOCK
    return grid


def in_bounds(grid: Grid, x: int, y: int) -> bool:
    return 0 <= y < len(grid) and 0 <= x < len(grid[0])


def copy_grid(grid: Grid) -> Grid:
    return [list(row) for row in grid]
