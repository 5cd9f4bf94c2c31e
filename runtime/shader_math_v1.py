from __future__ import annotations

"""
shader_math_v1 (shared colour/math helpers)

Tiny utilities shared by the emitter, the snapshot code and the Qt canvas.
This is NOT a simulation step; it is a primitive utility module.
"""

from typing import Tuple

RGB = Tuple[int, int, int]


def clamp01(x: float) -> float:
    if x < 0.0: return 0.0
    if x > 1.0: return 1.0
    return x


def _hue_channel(p: float, q: float, t: float) -> float:
    t = t % 1.0
    if t < 1.0 / 6.0:
        return p + (q - p) * 6.0 * t
    if t < 0.5:
        return q
    if t < 2.0 / 3.0:
        return p + (q - p) * (2.0 / 3.0 - t) * 6.0
    return p


def hsl_to_rgb(h_deg: float, s_pct: float, l_pct: float) -> RGB:
    """CSS-style hsl(): hue in degrees (wraps), saturation/lightness in percent."""
    h = (float(h_deg) % 360.0) / 360.0
    s = clamp01(float(s_pct) / 100.0)
    l = clamp01(float(l_pct) / 100.0)
    if s == 0.0:
        r = g = b = l
    else:
        q = l * (1.0 + s) if l < 0.5 else l + s - l * s
        p = 2.0 * l - q
        r = _hue_channel(p, q, h + 1.0 / 3.0)
        g = _hue_channel(p, q, h)
        b = _hue_channel(p, q, h - 1.0 / 3.0)
    return (int(round(r * 255)) & 255, int(round(g * 255)) & 255, int(round(b * 255)) & 255)


def rgb_to_hex(c: RGB) -> str:
    r, g, b = c
    return f"#{int(r) & 255:02x}{int(g) & 255:02x}{int(b) & 255:02x}"
