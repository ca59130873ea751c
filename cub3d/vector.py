"""Two-dimensional vectors used for positions, directions and camera planes."""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Iterator


@dataclass(frozen=True)
class Vec2:
    """An immutable 2D vector."""

    x: float = 0.0
    y: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: Vec2) -> Vec2:
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vec2:
        if not isinstance(scalar, Real):
            return NotImplemented
        return Vec2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vec2:
        """Divide by a scalar; dividing by zero yields the zero vector."""
        if not isinstance(scalar, Real):
            return NotImplemented
        if scalar == 0:
            return Vec2(0.0, 0.0)
        return Vec2(self.x / scalar, self.y / scalar)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def normalized(self) -> Vec2:
        """Unit vector in the same direction; the zero vector stays zero."""
        return self / self.length()

    def perp(self) -> Vec2:
        """The vector rotated a quarter turn counter-clockwise."""
        return Vec2(-self.y, self.x)

    def rotated(self, degrees: float) -> Vec2:
        angle = math.radians(degrees)
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        return Vec2(
            self.x * cos_a - self.y * sin_a,
            self.x * sin_a + self.y * cos_a,
        )