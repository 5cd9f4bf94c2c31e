from __future__ import annotations

"""
Performance governor v1

Closed-loop throttle on emission. Once per measurement period it turns the
frame counter into fps and nudges the effective batch size and emission
interval:

  fps < fps_low   -> fewer, less frequent grains
  fps > fps_high  -> relax back toward the configured batch/interval
  otherwise       -> leave alone (hysteresis band)

Not a real-time guarantee; it trades density for responsiveness.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.log_buffer import log


@dataclass
class GovernorConfig:
    fps_low: float = 30.0
    fps_high: float = 50.0
    period_ms: float = 1000.0
    throttle: float = 0.75      # batch multiplier when slow
    backoff: float = 1.25       # interval multiplier when slow
    min_batch: int = 1
    max_interval_ms: float = 250.0


class PerformanceGovernor:
    def __init__(self, base_batch: int, base_interval_ms: float, cfg: Optional[GovernorConfig] = None):
        self.cfg = cfg or GovernorConfig()
        self.base_batch = int(base_batch)
        self.base_interval_ms = float(base_interval_ms)
        self.batch = self.base_batch
        self.interval_ms = self.base_interval_ms
        self.fps: Optional[float] = None
        self.adjustments = 0
        self._frames = 0
        self._elapsed_ms = 0.0

    def reset_window(self) -> None:
        self._frames = 0
        self._elapsed_ms = 0.0

    def rebase(self, base_batch: int, base_interval_ms: float) -> None:
        """New configured maxima; keep current throttling but never exceed them."""
        self.base_batch = int(base_batch)
        self.base_interval_ms = float(base_interval_ms)
        self.batch = min(max(self.batch, self.cfg.min_batch), self.base_batch)
        self.interval_ms = min(max(self.interval_ms, self.base_interval_ms), self._interval_ceiling())

    def set_thresholds(self, fps_low: float, fps_high: float) -> None:
        self.cfg.fps_low = float(fps_low)
        self.cfg.fps_high = float(fps_high)

    def _interval_ceiling(self) -> float:
        return max(self.cfg.max_interval_ms, self.base_interval_ms)

    def observe(self, dt_ms: float) -> Optional[float]:
        """Count one frame. Returns the measured fps when a period completes."""
        self._frames += 1
        self._elapsed_ms += max(0.0, float(dt_ms))
        if self._elapsed_ms < self.cfg.period_ms:
            return None

        fps = self._frames * 1000.0 / self._elapsed_ms
        self.fps = fps
        self.reset_window()

        if fps < self.cfg.fps_low:
            self._throttle(fps)
        elif fps > self.cfg.fps_high:
            self._relax()
        return fps

    def _throttle(self, fps: float) -> None:
        batch = max(min(self.cfg.min_batch, self.base_batch), int(self.batch * self.cfg.throttle))
        interval = min(self._interval_ceiling(), self.interval_ms * self.cfg.backoff)
        if batch != self.batch or interval != self.interval_ms:
            self.batch = batch
            self.interval_ms = interval
            self.adjustments += 1
            log("governor", f"fps={fps:.1f} < {self.cfg.fps_low:g}: batch={self.batch} interval={self.interval_ms:.1f}ms")

    def _relax(self) -> None:
        batch = min(self.base_batch, max(self.batch + 1, int(self.batch * self.cfg.backoff)))
        interval = max(self.base_interval_ms, self.interval_ms / self.cfg.backoff)
        if batch != self.batch or interval != self.interval_ms:
            self.batch = batch
            self.interval_ms = interval
            self.adjustments += 1

    def snapshot(self) -> Dict[str, Any]:
        return {
            "fps": None if self.fps is None else round(self.fps, 2),
            "batch": self.batch,
            "interval_ms": round(self.interval_ms, 3),
            "base_batch": self.base_batch,
            "base_interval_ms": self.base_interval_ms,
            "adjustments": self.adjustments,
        }
