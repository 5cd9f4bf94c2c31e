"""Extension Points (v1)

Engine-only hooks so tooling can observe the simulation without reaching into
UI code.

Goals:
- Deterministic: stable ordering of hooks (sorted by name).
- Minimal: no UI requirements.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

# ---- Health Probes ----------------------------------------------------------

# A health probe returns a small JSON-safe dict describing one subsystem.
HealthProbe = Callable[[], Dict[str, Any]]

_HEALTH_PROBES: List[Tuple[str, HealthProbe]] = []


def register_health_probe(name: str, fn: HealthProbe) -> None:
    """Register (or replace) a named probe."""
    if not isinstance(name, str) or not name.strip():
        raise ValueError("health probe name must be a non-empty string")
    if not callable(fn):
        raise TypeError(f"health probe {name!r} is not callable")
    key = name.strip()
    _HEALTH_PROBES[:] = [(n, f) for (n, f) in _HEALTH_PROBES if n != key]
    _HEALTH_PROBES.append((key, fn))
    _HEALTH_PROBES.sort(key=lambda x: x[0])


def list_health_probes() -> List[str]:
    return [n for n, _ in _HEALTH_PROBES]


def collect_health_probe_data() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name, fn in list(_HEALTH_PROBES):
        try:
            d = fn()
        except Exception as e:
            # A broken probe must not take diagnostics (or a crash report) down with it.
            out[name] = {"error": f"{type(e).__name__}: {e}"}
            continue
        if isinstance(d, dict):
            out[name] = d
    return out
