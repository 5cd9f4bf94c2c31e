from __future__ import annotations

from typing import Any, Dict

from runtime.extensions_v1 import register_health_probe


def _probe() -> Dict[str, Any]:
    from preview import engine_registry
    sim = engine_registry.LAST_SIMULATION
    if sim is None:
        return {'present': False}
    st = sim.stats()
    gov = st.get('governor') or {}
    # keep this small + stable
    return {
        'present': True,
        'fps': gov.get('fps'),
        'batch': gov.get('batch'),
        'interval_ms': gov.get('interval_ms'),
        'adjustments': gov.get('adjustments'),
        'particles': st.get('particles'),
        'settled': st.get('settled'),
        'falling': st.get('falling'),
        'obstacle': st.get('obstacle'),
    }


register_health_probe('performance', _probe)
