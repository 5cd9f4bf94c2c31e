from __future__ import annotations
import sys, platform, json
from pathlib import Path

from runtime.extensions_v1 import collect_health_probe_data
import preview  # noqa: F401  (registers the performance probe)

ROOT = Path(__file__).resolve().parents[1]


def gather() -> dict:
    return {
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "project_root": str(ROOT),
        "health": collect_health_probe_data(),
    }


def as_text() -> str:
    d = gather()
    return json.dumps(d, indent=2, default=str)
