"""Preview package.

Headless/engine-side helpers shared by the Qt shell and the tools:
headless runner, live-simulation registry, performance probe.
"""

# Registers the 'performance' health probe.
from . import performance_health  # noqa: F401
