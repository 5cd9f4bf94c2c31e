from __future__ import annotations
"""Headless runner for regression tests.

It runs the sand simulation without any Qt, producing a stable hash of the
per-frame snapshots for a given parameter set + pointer script + seed.

Same params, same pointer script, same seed -> same hash.
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Callable, Dict, Optional
import hashlib
import json
import math

from preview.engine_registry import set_last_simulation
from runtime.sand_sim_v1 import PointerState, SandConfig, SandSimulation, Snapshot

# (frame index, sim time in ms) -> pointer state for that frame
PointerPath = Callable[[int, float], PointerState]


def fixed_pour_path(x: float, y: float, *, active_frames: Optional[int] = None) -> PointerPath:
    """Pointer held down at one spot (optionally released after active_frames)."""
    def path(i: int, t_ms: float) -> PointerState:
        return PointerState(float(x), float(y), active_frames is None or i < active_frames)
    return path


def circle_pour_path(cx: float, cy: float, radius: float, *, period_frames: int = 120,
                     active_frames: Optional[int] = None) -> PointerPath:
    """Pointer held down while circling (cx, cy)."""
    def path(i: int, t_ms: float) -> PointerState:
        a = 2.0 * math.pi * (i % max(1, period_frames)) / max(1, period_frames)
        return PointerState(cx + math.cos(a) * radius, cy + math.sin(a) * radius,
                            active_frames is None or i < active_frames)
    return path


def _snapshot_to_bytes(snap: Snapshot) -> bytes:
    out = bytearray()
    for c in snap:
        out.extend(int(c.x).to_bytes(4, "little", signed=True))
        out.extend(int(c.y).to_bytes(4, "little", signed=True))
        out.append(int(c.size) & 0xFF)
        r, g, b = c.color
        out.append(int(r) & 0xFF)
        out.append(int(g) & 0xFF)
        out.append(int(b) & 0xFF)
    return bytes(out)


def run_simulation(params: Optional[Dict[str, Any]] = None, pointer_path: Optional[PointerPath] = None, *,
                   frames: int = 60, fps: float = 60.0, width: int = 320, height: int = 240,
                   seed: int = 0, on_frame: Optional[Callable[[int, Snapshot], None]] = None) -> SandSimulation:
    sim = SandSimulation(width, height, SandConfig.from_params(params), seed=seed)
    set_last_simulation(sim)
    dt_ms = 1000.0 / max(1.0, float(fps))
    for i in range(int(frames)):
        pointer = pointer_path(i, i * dt_ms) if pointer_path is not None else None
        snap = sim.tick(dt_ms, pointer)
        if on_frame is not None:
            on_frame(i, snap)
    return sim


def run_headless(params: Optional[Dict[str, Any]] = None, pointer_path: Optional[PointerPath] = None, *,
                 frames: int = 60, fps: float = 60.0, width: int = 320, height: int = 240, seed: int = 0) -> str:
    h = hashlib.sha256()
    run_simulation(params, pointer_path, frames=frames, fps=fps, width=width, height=height, seed=seed,
                   on_frame=lambda _i, snap: h.update(_snapshot_to_bytes(snap)))
    return h.hexdigest()


@dataclass
class HeadlessResult:
    sha256: str
    frames: int
    fps: float
    particles: int
    settled: int


def run_and_write(out_json: Path, params: Optional[Dict[str, Any]] = None, pointer_path: Optional[PointerPath] = None, *,
                  frames: int = 60, fps: float = 60.0, width: int = 320, height: int = 240, seed: int = 0) -> HeadlessResult:
    h = hashlib.sha256()
    sim = run_simulation(params, pointer_path, frames=frames, fps=fps, width=width, height=height, seed=seed,
                         on_frame=lambda _i, snap: h.update(_snapshot_to_bytes(snap)))
    settled, falling = sim.store.counts()
    res = HeadlessResult(sha256=h.hexdigest(), frames=int(frames), fps=float(fps),
                         particles=settled + falling, settled=settled)
    Path(out_json).write_text(json.dumps(asdict(res), indent=2), encoding="utf-8")
    return res
