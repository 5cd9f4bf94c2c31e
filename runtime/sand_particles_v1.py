from __future__ import annotations

"""
Sand particle store v1 (engine primitive)

Ordered collection of sand grains. Each grain is a tiny state machine:

    falling --(no free cell below or diagonal)--> settled

Store order is insertion order, which is also birth order. The stepper walks
it front to back, and eviction removes from the front.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple
import math

RGB = Tuple[int, int, int]


def align(v: float, cell_size: int) -> int:
    """Nearest multiple of cell_size (halves round up)."""
    return int(math.floor(v / cell_size + 0.5)) * int(cell_size)


@dataclass
class SandParticle:
    x: int
    y: int
    color: RGB = (255, 255, 255)
    settled: bool = False
    birth_ms: float = 0.0
    pid: int = 0


class ParticleStore:
    def __init__(self):
        self._items: List[SandParticle] = []
        self._next_pid = 1

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[SandParticle]:
        return iter(self._items)

    def add(self, x: int, y: int, color: RGB, birth_ms: float) -> SandParticle:
        p = SandParticle(x=x, y=y, color=color, settled=False, birth_ms=float(birth_ms), pid=self._next_pid)
        self._next_pid += 1
        self._items.append(p)
        return p

    def counts(self) -> Tuple[int, int]:
        s = sum(1 for p in self._items if p.settled)
        return s, len(self._items) - s

    def clear(self) -> None:
        self._items.clear()

    def remove(self, doomed: Iterable[SandParticle]) -> int:
        """Drop the given particles (by identity). Returns how many were removed."""
        ids = {id(p) for p in doomed}
        if not ids:
            return 0
        before = len(self._items)
        self._items = [p for p in self._items if id(p) not in ids]
        return before - len(self._items)

    def evict_oldest_settled(self, count: int) -> List[SandParticle]:
        """Remove up to `count` settled particles from the old end of the store."""
        if count <= 0:
            return []
        evicted: List[SandParticle] = []
        kept: List[SandParticle] = []
        for p in self._items:
            if p.settled and len(evicted) < count:
                evicted.append(p)
            else:
                kept.append(p)
        self._items = kept
        return evicted

    def trim_to(self, limit: int) -> List[SandParticle]:
        """Shrink the store to `limit` particles.

        Oldest settled particles go first; falling ones are only dropped
        (oldest first) when there are not enough settled ones.
        """
        excess = len(self._items) - max(0, int(limit))
        if excess <= 0:
            return []
        dropped = self.evict_oldest_settled(excess)
        rest = excess - len(dropped)
        if rest > 0:
            dropped.extend(self._items[:rest])
            del self._items[:rest]
        return dropped
