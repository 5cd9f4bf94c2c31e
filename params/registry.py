# Parameter registry (single source of truth)
# - All tweakable simulation knobs live here.
# - The Qt params panel builds its controls from this dict; params.resolve clamps to it.
# - "structural" knobs force a reset or re-settle pass when changed (see SandSimulation.configure).
#
# Types supported by ParamsPanel + resolve():
#   float, int, enum

from __future__ import annotations

PARAMS: dict[str, dict] = {
    # Pouring
    "sand_flow":            {"type": "float", "label": "Sand Flow", "default": 2.0, "min": 0.0, "max": 40.0, "step": 0.5, "decimals": 1},
    "fall_speed":           {"type": "float", "label": "Fall Speed", "default": 2.0, "min": 0.5, "max": 5.0, "step": 0.5, "decimals": 1},
    "color_speed":          {"type": "float", "label": "Color Speed", "default": 0.5, "min": 0.1, "max": 2.0, "step": 0.1, "decimals": 1},
    "particles_per_tick":   {"type": "int",   "label": "Grains / Batch", "default": 20, "min": 1, "max": 200, "widget": "spin"},
    "particle_interval_ms": {"type": "float", "label": "Batch Interval (ms)", "default": 16.0, "min": 0.0, "max": 250.0, "step": 1.0, "decimals": 0},

    # Grid / store
    "pixel_size":           {"type": "int",   "label": "Pixel Size", "default": 4, "min": 1, "max": 32, "widget": "spin", "structural": True},
    "max_particles":        {"type": "int",   "label": "Max Grains", "default": 20000, "min": 100, "max": 200000, "widget": "spin"},
    "eviction_fraction":    {"type": "float", "label": "Eviction Fraction", "default": 0.2, "min": 0.01, "max": 1.0, "step": 0.01, "decimals": 2},

    # Obstacle
    "shape_type":           {"type": "enum",  "label": "Shape", "default": "none", "choices": ["none", "circle", "square", "triangle"], "structural": True},
    "shape_size":           {"type": "float", "label": "Shape Size", "default": 60.0, "min": 10.0, "max": 400.0, "step": 5.0, "decimals": 0, "structural": True},

    # Governor
    "fps_low":              {"type": "float", "label": "FPS Low", "default": 30.0, "min": 5.0, "max": 120.0, "step": 1.0, "decimals": 0},
    "fps_high":             {"type": "float", "label": "FPS High", "default": 50.0, "min": 5.0, "max": 240.0, "step": 1.0, "decimals": 0},
}

# Panel order (dict order is also stable, but keep this explicit for the UI)
PANEL_KEYS = [
    "sand_flow", "fall_speed", "color_speed",
    "pixel_size", "shape_type", "shape_size",
    "max_particles", "particles_per_tick", "particle_interval_ms", "eviction_fraction",
    "fps_low", "fps_high",
]

STRUCTURAL_KEYS = frozenset(k for k, spec in PARAMS.items() if spec.get("structural"))
