"""
obstacles_v1.py

Engine primitive: the static obstacle sand falls around.

A small closed set of shapes, one containment test per shape. Adding a shape
means adding one dataclass and one SHAPES entry; call sites only ever see
`contains(x, y, cell_size)` and `top()`.

- Deterministic, pure math.
- No Qt / UI dependencies.
- Never cached: callers re-evaluate on demand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Union
import math

SQRT3 = math.sqrt(3.0)


@dataclass(frozen=True)
class NoObstacle:
    cx: float = 0.0
    cy: float = 0.0
    size: float = 0.0
    kind: str = "none"

    def contains(self, x: float, y: float, cell_size: float) -> bool:
        return False

    def top(self) -> float:
        return self.cy


@dataclass(frozen=True)
class CircleObstacle:
    cx: float
    cy: float
    size: float  # radius
    kind: str = "circle"

    def contains(self, x: float, y: float, cell_size: float) -> bool:
        # Half-cell pad so nothing spawns or settles on the rim.
        return math.hypot(x - self.cx, y - self.cy) < self.size + cell_size * 0.5

    def top(self) -> float:
        return self.cy - self.size


@dataclass(frozen=True)
class SquareObstacle:
    cx: float
    cy: float
    size: float  # half-width
    kind: str = "square"

    def contains(self, x: float, y: float, cell_size: float) -> bool:
        return abs(x - self.cx) <= self.size and abs(y - self.cy) <= self.size

    def top(self) -> float:
        return self.cy - self.size


@dataclass(frozen=True)
class TriangleObstacle:
    """Equilateral, apex up. Base width 2*size, height size*sqrt(3)."""
    cx: float
    cy: float
    size: float
    kind: str = "triangle"

    def vertices(self) -> Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float]]:
        half_h = self.size * SQRT3 * 0.5
        apex = (self.cx, self.cy - half_h)
        left = (self.cx - self.size, self.cy + half_h)
        right = (self.cx + self.size, self.cy + half_h)
        return apex, left, right

    def contains(self, x: float, y: float, cell_size: float) -> bool:
        (ax, ay), (bx, by), (cx, cy) = self.vertices()
        denom = (by - cy) * (ax - cx) + (cx - bx) * (ay - cy)
        if denom == 0:
            return False
        w1 = ((by - cy) * (x - cx) + (cx - bx) * (y - cy)) / denom
        w2 = ((cy - ay) * (x - cx) + (ax - cx) * (y - cy)) / denom
        w3 = 1.0 - w1 - w2
        return 0.0 <= w1 <= 1.0 and 0.0 <= w2 <= 1.0 and 0.0 <= w3 <= 1.0

    def top(self) -> float:
        return self.cy - self.size * SQRT3 * 0.5


Obstacle = Union[NoObstacle, CircleObstacle, SquareObstacle, TriangleObstacle]

SHAPES: Dict[str, Callable[[float, float, float], Obstacle]] = {
    "none": lambda cx, cy, size: NoObstacle(float(cx), float(cy), float(size)),
    "circle": lambda cx, cy, size: CircleObstacle(float(cx), float(cy), float(size)),
    "square": lambda cx, cy, size: SquareObstacle(float(cx), float(cy), float(size)),
    "triangle": lambda cx, cy, size: TriangleObstacle(float(cx), float(cy), float(size)),
}

SHAPE_KINDS = tuple(SHAPES.keys())


def make_obstacle(kind: str, cx: float, cy: float, size: float) -> Obstacle:
    k = str(kind or "none").strip().lower()
    if k not in SHAPES:
        raise ValueError(f"unknown obstacle shape {kind!r} (expected one of {', '.join(SHAPE_KINDS)})")
    return SHAPES[k](cx, cy, size)


def blocks_cell(obstacle: Obstacle, x: float, y: float, cell_size: float) -> bool:
    """Obstacle test for the cell whose top-left corner is (x, y)."""
    half = cell_size * 0.5
    return obstacle.contains(x + half, y + half, cell_size)
