from __future__ import annotations

"""
Sand emitter v1 (engine primitive)

Turns pointer activity into new falling grains.

- Rate-limited by a minimum interval between batches (spawn rate does not
  follow frame rate).
- Each candidate is the pointer position plus a uniform +-spread offset,
  aligned to the grid. Blocked candidates are discarded, never retried.
- The store never grows past max_particles: at the ceiling the oldest settled
  grains are evicted in bulk; falling grains are never evicted.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
import math

from app.log_buffer import log
from runtime.sand_particles_v1 import RGB, align
from runtime.sand_stepper_v1 import make_blocked
from runtime.shader_math_v1 import hsl_to_rgb

if TYPE_CHECKING:
    from runtime.rng_v1 import DeterministicRNG
    from runtime.sand_sim_v1 import PointerState, SandSimulation

BASE_SATURATION = 80.0
BASE_LIGHTNESS = 60.0
COLOR_VARIATION = 5.0


@dataclass
class EmitStats:
    attempted: int = 0
    spawned: int = 0
    rejected: int = 0
    evicted: int = 0
    dropped: int = 0


def particle_color(rng: "DeterministicRNG", hue: float) -> RGB:
    """Current hue with a little hue/saturation/lightness noise per grain."""
    return hsl_to_rgb(
        hue + rng.jitter(COLOR_VARIATION),
        BASE_SATURATION + rng.jitter(COLOR_VARIATION),
        BASE_LIGHTNESS + rng.jitter(COLOR_VARIATION),
    )


def eviction_count(max_particles: int, fraction: float) -> int:
    return max(1, int(math.ceil(max_particles * fraction)))


class SandEmitter:
    def __init__(self):
        self.last_emit_ms: Optional[float] = None

    def reset(self) -> None:
        self.last_emit_ms = None

    def ready(self, now_ms: float, interval_ms: float) -> bool:
        return self.last_emit_ms is None or (now_ms - self.last_emit_ms) >= interval_ms

    def emit(self, sim: "SandSimulation", pointer: "PointerState", *, now_ms: float,
             batch: int, interval_ms: float) -> EmitStats:
        stats = EmitStats()
        if pointer is None or not pointer.active:
            return stats
        if not self.ready(now_ms, interval_ms):
            return stats
        self.last_emit_ms = now_ms

        cfg = sim.config
        cs = cfg.cell_size
        spread = cfg.sand_flow
        grid = sim.grid
        store = sim.store
        blocked = make_blocked(grid, sim.obstacle, cell_size=cs, width=sim.width, height=sim.height)

        for _ in range(int(batch)):
            stats.attempted += 1
            x = align(pointer.x + sim.rng.jitter(spread), cs)
            y = align(pointer.y + sim.rng.jitter(spread), cs)
            if blocked(x, y):
                stats.rejected += 1
                continue

            if len(store) >= cfg.max_particles:
                evicted = store.evict_oldest_settled(eviction_count(cfg.max_particles, cfg.eviction_fraction))
                for p in evicted:
                    grid.set_occupied(p.x, p.y, False)
                stats.evicted += len(evicted)
                if len(store) >= cfg.max_particles:
                    stats.dropped += 1
                    continue

            store.add(x, y, particle_color(sim.rng, sim.hue), now_ms)
            stats.spawned += 1

        if stats.evicted:
            log("emitter", f"evicted {stats.evicted} settled grains at ceiling {cfg.max_particles}")
        return stats
