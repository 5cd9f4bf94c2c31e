from __future__ import annotations
from typing import Dict, Any, Iterable, Optional

from .registry import PARAMS


def defaults_for(keys: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k in (PARAMS.keys() if keys is None else keys):
        if k in PARAMS:
            out[k] = PARAMS[k].get("default")
    return out


def ensure_params(params: Dict[str, Any] | None, keys: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """Return a params dict that contains at least defaults for given keys (all keys by default)."""
    params = dict(params or {})
    for k in (PARAMS.keys() if keys is None else keys):
        if k not in params and k in PARAMS:
            params[k] = PARAMS[k].get("default")
    return params
