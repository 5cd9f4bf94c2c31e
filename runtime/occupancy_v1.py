from __future__ import annotations

"""
Occupancy Grid v1 (engine primitive)

Sparse set of filled cells, keyed by the integer cell coordinate
(floor(x / cell_size), floor(y / cell_size)).

Design goals:
- Derived index, not state: it is rebuilt from the settled particles every tick.
- O(1) lookup/mutation (tuple keys hashed directly).
- No bounds knowledge: out-of-canvas keys are valid and simply never set.
"""

import math
from typing import Iterable, Iterator, Set, Tuple

CellKey = Tuple[int, int]


def cell_key(x: float, y: float, cell_size: int) -> CellKey:
    return (int(math.floor(x / cell_size)), int(math.floor(y / cell_size)))


class OccupancyGrid:
    def __init__(self, cell_size: int = 4):
        self.cell_size = int(cell_size)
        self._cells: Set[CellKey] = set()

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, key: CellKey) -> bool:
        return key in self._cells

    def cells(self) -> Iterator[CellKey]:
        return iter(self._cells)

    def is_occupied(self, x: float, y: float) -> bool:
        return cell_key(x, y, self.cell_size) in self._cells

    def set_occupied(self, x: float, y: float, occupied: bool = True) -> None:
        key = cell_key(x, y, self.cell_size)
        if occupied:
            self._cells.add(key)
        else:
            self._cells.discard(key)

    def clear(self) -> None:
        self._cells.clear()

    def set_cell_size(self, cell_size: int) -> None:
        # Keys from the old resolution mean nothing at the new one.
        self.cell_size = int(cell_size)
        self._cells.clear()

    def rebuild(self, particles: Iterable) -> int:
        """Clear, then mark every settled particle. Returns the occupied count."""
        self._cells.clear()
        cs = self.cell_size
        for p in particles:
            if p.settled:
                self._cells.add(cell_key(p.x, p.y, cs))
        return len(self._cells)
