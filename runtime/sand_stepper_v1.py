"""
Sand stepper v1 (engine primitive)

Advances every falling grain by a dt-scaled number of one-cell moves and
settles grains that have nowhere left to go.

Per tick, in this order:
  1. rebuild the occupancy grid from the settled grains (never incremental)
  2. walk the store front to back; for each falling grain:
       re-align -> straight fall | diagonal slide | settle
  3. (hue advance lives on the simulation context)

Diagonal ties are broken by row parity: even rows slide left, odd rows slide
right. That gives the pile its stable angle of repose instead of jitter.

Also hosts the obstacle re-settle pass used when the obstacle changes at
runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple
import math

from runtime.obstacles_v1 import Obstacle, blocks_cell
from runtime.occupancy_v1 import OccupancyGrid
from runtime.rng_v1 import DeterministicRNG
from runtime.sand_particles_v1 import ParticleStore, SandParticle, align

# Reference frame interval (ms) the fall speed is expressed against.
REFERENCE_FRAME_MS = 16.0
# Spiral search radius for the re-settle pass, in cells.
RESETTLE_MAX_RADIUS_CELLS = 32

BlockedFn = Callable[[int, int], bool]


@dataclass
class StepStats:
    steps: int = 0
    moved: int = 0
    settled: int = 0
    stacked: int = 0
    falling: int = 0
    dropped: int = 0


@dataclass
class ResettleStats:
    relocated: int = 0
    fallback: int = 0
    released: int = 0
    dropped: int = 0


def step_count(fall_speed: float, dt_ms: float) -> int:
    return max(1, int(math.floor(fall_speed * dt_ms / REFERENCE_FRAME_MS)))


def last_cell(extent: int, cell_size: int) -> int:
    """Largest aligned coordinate whose cell still fits inside [0, extent)."""
    return (int(extent) // int(cell_size) - 1) * int(cell_size)


def make_blocked(grid: OccupancyGrid, obstacle: Obstacle, *, cell_size: int, width: int, height: int) -> BlockedFn:
    cs = int(cell_size)
    w = int(width)
    h = int(height)

    def blocked(x: int, y: int) -> bool:
        if x < 0 or y < 0 or x + cs > w or y + cs > h:
            return True
        if blocks_cell(obstacle, x, y, cs):
            return True
        return grid.is_occupied(x, y)

    return blocked


def _settle_at(p: SandParticle, x: int, y: int, grid: OccupancyGrid) -> bool:
    p.x = x
    p.y = y
    p.settled = True
    grid.set_occupied(x, y, True)
    return True


def _settle(p: SandParticle, grid: OccupancyGrid, cell_size: int, max_x: int, blocked: BlockedFn) -> bool:
    """Settle p in place, or in the nearest free cell above or beside it when its own cell is taken.

    Returns False only when neither the column above nor the row holds a free cell.
    """
    if not grid.is_occupied(p.x, p.y):
        return _settle_at(p, p.x, p.y, grid)
    # Two falling grains shared a cell; the later one stacks on top.
    y = p.y - cell_size
    while y >= 0:
        if not blocked(p.x, y):
            return _settle_at(p, p.x, y, grid)
        y -= cell_size
    # Column full up to the top: nearest free cell in the same row, parity side first.
    left_first = (p.y // cell_size) % 2 == 0
    k = 1
    while p.x - k * cell_size >= 0 or p.x + k * cell_size <= max_x:
        lx = p.x - k * cell_size
        rx = p.x + k * cell_size
        for x in ((lx, rx) if left_first else (rx, lx)):
            if not blocked(x, p.y):
                return _settle_at(p, x, p.y, grid)
        k += 1
    return False


def advance_particle(p: SandParticle, steps: int, *, cell_size: int, max_x: int,
                     grid: OccupancyGrid, blocked: BlockedFn) -> Tuple[bool, bool, bool]:
    """Run up to `steps` moves for one falling grain. Returns (moved, settled, stuck).

    stuck means the grain shares a taken cell and no free cell was left to settle in.
    """
    cs = cell_size
    p.x = align(p.x, cs)
    p.y = align(p.y, cs)
    moved = False

    for _ in range(steps):
        ny = p.y + cs
        if not blocked(p.x, ny):
            p.y = ny
            moved = True
        else:
            lx = p.x - cs
            rx = p.x + cs
            can_left = not blocked(lx, ny)
            can_right = not blocked(rx, ny)
            if can_left and can_right:
                row = p.y // cs
                p.x = lx if row % 2 == 0 else rx
                p.y = ny
                moved = True
            elif can_left or can_right:
                p.x = lx if can_left else rx
                p.y = ny
                moved = True
            else:
                settled = _settle(p, grid, cs, max_x, blocked)
                return moved, settled, not settled

        if p.x < 0:
            p.x = 0
        elif p.x > max_x:
            p.x = max_x

    return moved, False, False


def step_particles(store: ParticleStore, grid: OccupancyGrid, obstacle: Obstacle, *,
                   cell_size: int, width: int, height: int,
                   fall_speed: float, dt_ms: float) -> StepStats:
    """One simulation tick over the whole store.

    Preconditions: cell_size >= 1, fall_speed > 0, width/height >= cell_size.
    """
    grid.rebuild(store)

    stats = StepStats(steps=step_count(fall_speed, dt_ms))
    blocked = make_blocked(grid, obstacle, cell_size=cell_size, width=width, height=height)
    max_x = last_cell(width, cell_size)

    stuck = []
    for p in store:
        if p.settled:
            continue
        y_before = p.y
        moved, settled, no_room = advance_particle(p, stats.steps, cell_size=cell_size, max_x=max_x, grid=grid, blocked=blocked)
        if moved:
            stats.moved += 1
        if settled:
            stats.settled += 1
            if p.y < y_before:
                stats.stacked += 1
        elif no_room:
            stuck.append(p)
        else:
            stats.falling += 1

    if stuck:
        stats.dropped = store.remove(stuck)
    return stats


# ---- Obstacle re-settle ----------------------------------------------------------

def spiral_search(x: int, y: int, *, cell_size: int, blocked: BlockedFn,
                  max_radius_cells: int = RESETTLE_MAX_RADIUS_CELLS) -> Optional[Tuple[int, int]]:
    """Nearest free aligned cell around (x, y), searching rings of growing radius."""
    cs = cell_size
    for r in range(1, int(max_radius_cells) + 1):
        # More angle samples on wider rings so no cell is skipped.
        samples = max(8, int(math.ceil(2.0 * math.pi * r)))
        dist = r * cs
        for i in range(samples):
            a = 2.0 * math.pi * i / samples
            cx = align(x + math.cos(a) * dist, cs)
            cy = align(y + math.sin(a) * dist, cs)
            if not blocked(cx, cy):
                return cx, cy
    return None


def fallback_position(obstacle: Obstacle, rng: DeterministicRNG, *, cell_size: int,
                      width: int, height: int, blocked: BlockedFn) -> Optional[Tuple[int, int]]:
    """Just above the obstacle's top edge, jittered sideways by up to two cells.

    When that cell is blocked (obstacle reaching past the canvas top, or a
    full row), rows are scanned from the top down, outward from the jittered
    x. None means the canvas has no free cell at all.
    """
    cs = cell_size
    max_x = last_cell(width, cs)
    max_y = last_cell(height, cs)
    x = align(obstacle.cx + rng.jitter(2 * cs), cs)
    y = align(obstacle.top(), cs) - 2 * cs
    x = min(max(x, 0), max_x)
    y = min(max(y, 0), max_y)
    if not blocked(x, y):
        return x, y

    for row in range(0, max_y + 1, cs):
        k = 0
        while x - k * cs >= 0 or x + k * cs <= max_x:
            for cx in (x - k * cs, x + k * cs):
                if not blocked(cx, row):
                    return cx, row
            k += 1
    return None


def resettle_after_obstacle_change(store: ParticleStore, grid: OccupancyGrid, obstacle: Obstacle, *,
                                   cell_size: int, width: int, height: int, rng: DeterministicRNG,
                                   max_radius_cells: int = RESETTLE_MAX_RADIUS_CELLS) -> ResettleStats:
    """Push grains out of a new obstacle footprint and let the rest of the pile re-pack.

    Settled grains inside the obstacle move to the nearest free cell and stay
    settled there; on a search miss they drop in from just above the obstacle
    (or the first free cell from the top). Grains with nowhere left to go are
    dropped.
    Every other settled grain goes back to falling.
    """
    cs = cell_size
    stats = ResettleStats()
    inside = []
    outside_settled = []
    for p in store:
        if blocks_cell(obstacle, p.x, p.y, cs):
            inside.append(p)
        elif p.settled:
            outside_settled.append(p)

    grid.clear()
    for p in outside_settled:
        grid.set_occupied(p.x, p.y, True)

    homeless = []
    blocked = make_blocked(grid, obstacle, cell_size=cs, width=width, height=height)
    for p in inside:
        spot = spiral_search(p.x, p.y, cell_size=cs, blocked=blocked, max_radius_cells=max_radius_cells)
        if spot is not None:
            p.x, p.y = spot
            if p.settled:
                grid.set_occupied(p.x, p.y, True)
            stats.relocated += 1
        else:
            spot = fallback_position(obstacle, rng, cell_size=cs, width=width, height=height, blocked=blocked)
            if spot is None:
                homeless.append(p)
                continue
            p.x, p.y = spot
            p.settled = False
            stats.fallback += 1

    for p in outside_settled:
        p.settled = False
        stats.released += 1

    if homeless:
        stats.dropped = store.remove(homeless)
    grid.rebuild(store)
    return stats
