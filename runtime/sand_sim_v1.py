from __future__ import annotations

"""
Sand simulation context v1

Everything the falling-sand engine shares across ticks lives on one
SandSimulation value: occupancy grid, particle store, obstacle, global hue,
emitter timing, performance governor, RNG and the sim clock. Nothing is
module-global.

The host owns the frame scheduler and calls:

    snapshot = sim.tick(dt_ms, PointerState(x, y, active))

Per tick: emitter -> stepper -> hue advance -> snapshot -> governor.

Preconditions (not guarded): cell_size >= 1, fall_speed > 0,
width/height >= cell_size, max_particles >= 1.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional, Tuple

from app.log_buffer import log
from params.resolve import resolve
from runtime.obstacles_v1 import Obstacle, make_obstacle
from runtime.occupancy_v1 import OccupancyGrid
from runtime.perf_governor_v1 import GovernorConfig, PerformanceGovernor
from runtime.rng_v1 import DeterministicRNG
from runtime.sand_emitter_v1 import EmitStats, SandEmitter
from runtime.sand_particles_v1 import RGB, ParticleStore
from runtime.sand_stepper_v1 import ResettleStats, StepStats, resettle_after_obstacle_change, step_particles

# Config field <- params registry key, where the names differ.
PARAM_ALIASES = {"pixel_size": "cell_size"}


@dataclass(frozen=True)
class SandConfig:
    sand_flow: float = 2.0
    fall_speed: float = 2.0
    color_speed: float = 0.5
    particles_per_tick: int = 20
    particle_interval_ms: float = 16.0
    cell_size: int = 4
    max_particles: int = 20000
    shape_type: str = "none"
    shape_size: float = 60.0
    eviction_fraction: float = 0.2
    fps_low: float = 30.0
    fps_high: float = 50.0

    @staticmethod
    def field_names() -> Tuple[str, ...]:
        return tuple(f.name for f in fields(SandConfig))

    @staticmethod
    def from_params(params: Optional[Dict[str, Any]] = None) -> "SandConfig":
        return SandConfig(**config_changes_from_params(resolve(params)))


def config_changes_from_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Map params-registry keys onto SandConfig field names (unknown keys are dropped)."""
    names = set(SandConfig.field_names())
    out: Dict[str, Any] = {}
    for k, v in (params or {}).items():
        name = PARAM_ALIASES.get(k, k)
        if name in names:
            out[name] = v
    return out


@dataclass(frozen=True)
class PointerState:
    x: float = 0.0
    y: float = 0.0
    active: bool = False


@dataclass(frozen=True)
class CellSnapshot:
    x: int
    y: int
    size: int
    color: RGB


Snapshot = Tuple[CellSnapshot, ...]


class SandSimulation:
    def __init__(self, width: int, height: int, config: Optional[SandConfig] = None, seed: int = 0):
        self.config = config or SandConfig()
        self.width = int(width)
        self.height = int(height)
        self.rng = DeterministicRNG(seed)

        self.grid = OccupancyGrid(self.config.cell_size)
        self.store = ParticleStore()
        self.obstacle: Obstacle = self._build_obstacle()
        self.emitter = SandEmitter()
        self.governor = PerformanceGovernor(
            self.config.particles_per_tick,
            self.config.particle_interval_ms,
            GovernorConfig(fps_low=self.config.fps_low, fps_high=self.config.fps_high),
        )

        self.hue = 0.0
        self.time_ms = 0.0
        self.ticks = 0
        self.last_emit = EmitStats()
        self.last_step = StepStats()
        self.last_resettle: Optional[ResettleStats] = None

    # ---- tick

    def tick(self, dt_ms: float, pointer: Optional[PointerState] = None) -> Snapshot:
        dt = max(0.0, float(dt_ms))
        self.time_ms += dt
        self.ticks += 1
        cfg = self.config

        if pointer is not None and pointer.active:
            self.last_emit = self.emitter.emit(
                self, pointer,
                now_ms=self.time_ms,
                batch=self.governor.batch,
                interval_ms=self.governor.interval_ms,
            )
        else:
            self.last_emit = EmitStats()

        self.last_step = step_particles(
            self.store, self.grid, self.obstacle,
            cell_size=cfg.cell_size, width=self.width, height=self.height,
            fall_speed=cfg.fall_speed, dt_ms=dt,
        )

        self.hue = (self.hue + cfg.color_speed) % 360.0
        snap = self.snapshot()
        self.governor.observe(dt)
        return snap

    def snapshot(self) -> Snapshot:
        cs = self.config.cell_size
        return tuple(CellSnapshot(p.x, p.y, cs, p.color) for p in self.store)

    # ---- structural changes

    def _build_obstacle(self) -> Obstacle:
        return make_obstacle(self.config.shape_type, self.width / 2.0, self.height / 2.0, self.config.shape_size)

    def reset(self, reason: str = "reset") -> None:
        self.store.clear()
        self.grid.clear()
        self.emitter.reset()
        log("sim", f"cleared particles ({reason})")

    def resize(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)
        self.obstacle = self._build_obstacle()
        self.reset(f"resize {self.width}x{self.height}")

    def configure(self, **changes: Any) -> None:
        """Apply config changes. Continuous knobs apply next tick; structural ones reset or re-settle."""
        names = set(SandConfig.field_names())
        unknown = sorted(k for k in changes if k not in names)
        if unknown:
            raise KeyError(f"unknown simulation config key(s): {', '.join(unknown)}")

        old = self.config
        new = replace(old, **changes)
        if new == old:
            return
        self.config = new

        if new.cell_size != old.cell_size:
            self.grid.set_cell_size(new.cell_size)
            self.reset(f"cell size {old.cell_size} -> {new.cell_size}")

        if (new.shape_type, new.shape_size) != (old.shape_type, old.shape_size):
            self.obstacle = self._build_obstacle()
            self.resettle()

        if new.max_particles < len(self.store):
            self.trim_to_ceiling()

        if (new.particles_per_tick, new.particle_interval_ms) != (old.particles_per_tick, old.particle_interval_ms):
            self.governor.rebase(new.particles_per_tick, new.particle_interval_ms)

        if (new.fps_low, new.fps_high) != (old.fps_low, old.fps_high):
            self.governor.set_thresholds(new.fps_low, new.fps_high)

    def resettle(self) -> ResettleStats:
        cfg = self.config
        stats = resettle_after_obstacle_change(
            self.store, self.grid, self.obstacle,
            cell_size=cfg.cell_size, width=self.width, height=self.height, rng=self.rng,
        )
        self.last_resettle = stats
        log("sim", f"obstacle -> {self.obstacle.kind} size={cfg.shape_size:g}: "
                   f"relocated={stats.relocated} fallback={stats.fallback} released={stats.released} "
                   f"dropped={stats.dropped}")
        return stats

    def trim_to_ceiling(self) -> int:
        """Evict down to max_particles (oldest settled first). Returns the number removed."""
        evicted = self.store.trim_to(self.config.max_particles)
        for p in evicted:
            if p.settled:
                self.grid.set_occupied(p.x, p.y, False)
        if evicted:
            log("sim", f"max particles {self.config.max_particles}: evicted {len(evicted)} grains")
        return len(evicted)

    # ---- inspection

    def stats(self) -> Dict[str, Any]:
        settled, falling = self.store.counts()
        return {
            "width": self.width,
            "height": self.height,
            "ticks": self.ticks,
            "time_ms": round(self.time_ms, 3),
            "particles": settled + falling,
            "settled": settled,
            "falling": falling,
            "occupied_cells": len(self.grid),
            "hue": round(self.hue, 3),
            "obstacle": self.obstacle.kind,
            "governor": self.governor.snapshot(),
        }
