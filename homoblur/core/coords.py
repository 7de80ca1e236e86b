"""Rectangles in canonical or pixel coordinates, and the infinite sentinels."""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

# Host-side sentinels for unbounded regions (INT_MIN / INT_MAX).
INFINITE_MIN = -2147483648.0
INFINITE_MAX = 2147483647.0


@dataclass(frozen=True)
class Rect:
    """Axis-aligned box (x1, y1)-(x2, y2).

    ``x1 <= x2`` and ``y1 <= y2`` hold for every rect except the super-empty
    accumulator returned by :meth:`super_empty`.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def infinite(cls) -> "Rect":
        return cls(INFINITE_MIN, INFINITE_MIN, INFINITE_MAX, INFINITE_MAX)

    @classmethod
    def super_empty(cls) -> "Rect":
        # min and max are reversed so that any union replaces it
        return cls(INFINITE_MAX, INFINITE_MAX, INFINITE_MIN, INFINITE_MIN)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "Rect":
        if len(values) != 4:
            raise ValueError(f"Expected (x1, y1, x2, y2), got {values!r}")
        return cls(*(float(v) for v in values))

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x1, self.y1, self.x2, self.y2)

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    def is_empty(self) -> bool:
        return self.x2 <= self.x1 or self.y2 <= self.y1

    def is_infinite(self) -> bool:
        return (self.x1 <= INFINITE_MIN or self.x2 >= INFINITE_MAX or
                self.y1 <= INFINITE_MIN or self.y2 >= INFINITE_MAX)

    def union(self, other: "Rect") -> "Rect":
        """Bounding box of both rects; an empty rect contributes nothing."""
        if self.is_empty():
            return other
        if other.is_empty():
            return self
        return Rect(min(self.x1, other.x1), min(self.y1, other.y1),
                    max(self.x2, other.x2), max(self.y2, other.y2))

    def intersects(self, other: "Rect") -> bool:
        if self.is_empty() or other.is_empty():
            return False
        return (max(self.x1, other.x1) < min(self.x2, other.x2) and
                max(self.y1, other.y1) < min(self.y2, other.y2))

    def expanded(self, dx: float, dy: float) -> "Rect":
        """Grow each finite side outward; infinite sides stay at their sentinel."""
        return Rect(
            self.x1 - dx if self.x1 > INFINITE_MIN else self.x1,
            self.y1 - dy if self.y1 > INFINITE_MIN else self.y1,
            self.x2 + dx if self.x2 < INFINITE_MAX else self.x2,
            self.y2 + dy if self.y2 < INFINITE_MAX else self.y2,
        )


def to_pixel_enclosing(rect: Rect, render_scale: Tuple[float, float],
                       pixel_aspect_ratio: float) -> Rect:
    """Smallest integer pixel box containing a canonical rect."""
    sx, sy = render_scale

    def _lo(v: float, s: float) -> float:
        return v if v <= INFINITE_MIN else float(math.floor(v * s))

    def _hi(v: float, s: float) -> float:
        return v if v >= INFINITE_MAX else float(math.ceil(v * s))

    return Rect(
        _lo(rect.x1, sx / pixel_aspect_ratio),
        _lo(rect.y1, sy),
        _hi(rect.x2, sx / pixel_aspect_ratio),
        _hi(rect.y2, sy),
    )
