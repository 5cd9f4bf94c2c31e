from __future__ import annotations
from typing import Dict, Any

from .registry import PARAMS
from .ensure import ensure_params


def clamp_param(key: str, v: Any):
    """Coerce a UI value into the declared domain; bad input falls back to the default."""
    spec = PARAMS.get(key) or {}
    t = spec.get("type")

    if t == "float":
        try:
            v = float(v)
        except (TypeError, ValueError):
            v = float(spec.get("default", 0.0))
        if v != v:  # NaN
            v = float(spec.get("default", 0.0))
        mn = spec.get("min", None)
        mx = spec.get("max", None)
        if mn is not None and v < float(mn):
            v = float(mn)
        if mx is not None and v > float(mx):
            v = float(mx)
        return v

    if t == "int":
        try:
            v = int(round(float(v)))
        except (TypeError, ValueError, OverflowError):
            v = int(spec.get("default", 0))
        mn = spec.get("min", None)
        mx = spec.get("max", None)
        if mn is not None and v < int(mn):
            v = int(mn)
        if mx is not None and v > int(mx):
            v = int(mx)
        return v

    if t == "enum":
        choices = list(spec.get("choices", []) or [])
        s = str(v).strip().lower() if v is not None else str(spec.get("default", ""))
        if choices and s not in choices:
            return str(spec.get("default", choices[0]))
        return s

    return v


def resolve(base_params: Dict[str, Any] | None) -> Dict[str, Any]:
    """Fill defaults, then clamp every known key."""
    params = ensure_params(base_params)
    for k in list(params.keys()):
        if k in PARAMS:
            params[k] = clamp_param(k, params[k])
    if params["fps_high"] < params["fps_low"]:
        params["fps_high"] = params["fps_low"]
    return params
