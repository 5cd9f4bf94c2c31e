"""Simulation registry (v1)

Holds a reference to the last constructed SandSimulation so health probes
can report performance stats without UI access.
"""

from __future__ import annotations

from typing import Any, Optional

LAST_SIMULATION: Optional[Any] = None


def set_last_simulation(sim: Any) -> None:
    global LAST_SIMULATION
    LAST_SIMULATION = sim
