from __future__ import annotations

"""Deterministic RNG used by every random draw in the sand engine.

Spawn jitter, colour variation and the re-settle fallback all draw from one
instance owned by the simulation, so identical seeds + identical inputs give
identical runs.
"""

import random


class DeterministicRNG:
    def __init__(self, seed: int = 0):
        self.seed = int(seed) & 0xFFFFFFFF
        self._rng = random.Random(self.seed)

    def jitter(self, amount: float) -> float:
        """Uniform value in [-amount, +amount]."""
        return (self._rng.random() * 2.0 - 1.0) * float(amount)
