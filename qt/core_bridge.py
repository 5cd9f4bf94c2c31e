"""Headless core bridge for Qt.

Owns the live SandSimulation and the current parameter values, and gives the
Qt widgets the minimal API they need (tick, resize, set_param, stats).
Nothing here imports Qt, so tools and tests can drive it too.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from app.log_buffer import log
from params.resolve import clamp_param, resolve
from preview.engine_registry import set_last_simulation
from runtime.sand_sim_v1 import PointerState, SandConfig, SandSimulation, Snapshot, config_changes_from_params


class CoreBridge:
    def __init__(self, width: int = 800, height: int = 600, params: Optional[Dict[str, Any]] = None, seed: int = 0):
        self._params: Dict[str, Any] = resolve(params)
        self.params_revision = 0  # increments on every accepted param change (UI sync guard)
        self.sim = SandSimulation(width, height, SandConfig.from_params(self._params), seed=seed)
        set_last_simulation(self.sim)
        self.pointer = PointerState()
        log("core", f"simulation ready {width}x{height} seed={seed}")

    @property
    def params(self) -> Dict[str, Any]:
        return dict(self._params)

    def set_param(self, key: str, value: Any) -> Any:
        """Clamp and apply one parameter. Returns the value actually stored."""
        v = clamp_param(key, value)
        if self._params.get(key) == v:
            return v
        self._params[key] = v
        if key in ("fps_low", "fps_high") and self._params["fps_high"] < self._params["fps_low"]:
            self._params["fps_high"] = self._params["fps_low"]
        self.sim.configure(**config_changes_from_params(self._params))
        self.params_revision += 1
        return v

    def set_pointer(self, x: float, y: float, active: bool) -> None:
        self.pointer = PointerState(float(x), float(y), bool(active))

    def release_pointer(self) -> None:
        self.pointer = PointerState(self.pointer.x, self.pointer.y, False)

    def resize(self, width: int, height: int) -> None:
        if (int(width), int(height)) == (self.sim.width, self.sim.height):
            return
        self.sim.resize(width, height)

    def clear(self) -> None:
        self.sim.reset("cleared by user")

    def tick(self, dt_ms: float) -> Snapshot:
        return self.sim.tick(dt_ms, self.pointer)

    def stats(self) -> Dict[str, Any]:
        return self.sim.stats()
