from __future__ import annotations

from .occupancy_v1 import OccupancyGrid, cell_key
from .obstacles_v1 import (
    NoObstacle,
    CircleObstacle,
    SquareObstacle,
    TriangleObstacle,
    SHAPE_KINDS,
    make_obstacle,
    blocks_cell,
)
from .sand_particles_v1 import SandParticle, ParticleStore, align
from .sand_stepper_v1 import (
    StepStats,
    ResettleStats,
    step_count,
    step_particles,
    spiral_search,
    resettle_after_obstacle_change,
)
from .sand_emitter_v1 import SandEmitter, EmitStats, particle_color
from .perf_governor_v1 import PerformanceGovernor, GovernorConfig
from .rng_v1 import DeterministicRNG
from .shader_math_v1 import clamp01, hsl_to_rgb, rgb_to_hex

from .sand_sim_v1 import SandSimulation, SandConfig, PointerState, CellSnapshot, config_changes_from_params
