from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


class NullVectorError(ValueError):
    """Raised when a vector operation receives a missing operand."""

    def __init__(self, operation: str):
        super().__init__(f"Vector2D.{operation} received a None operand")
        self.operation = operation


def normalize_angle(angle: float) -> float:
    """Map any angle in degrees onto (-180, 180]."""
    angle = float(angle)
    if -180.0 < angle <= 180.0:
        return angle
    wrapped = 180.0 - ((180.0 - angle) % 360.0)
    # float modulo can return the divisor itself for tiny negative operands
    if wrapped <= -180.0:
        wrapped += 360.0
    return wrapped


def _require(v: Optional["Vector2D"], operation: str) -> "Vector2D":
    if v is None:
        raise NullVectorError(operation)
    return v


@dataclass(frozen=True)
class Vector2D:
    """Immutable cartesian 2D vector; angles are expressed in degrees."""

    x: float
    y: float

    @classmethod
    def from_polar(cls, radius: float, angle_degrees: float) -> "Vector2D":
        radians = math.radians(angle_degrees)
        return cls(radius * math.cos(radians), radius * math.sin(radians))

    def add(self, v: Optional["Vector2D"]) -> "Vector2D":
        v = _require(v, "add")
        return Vector2D(self.x + v.x, self.y + v.y)

    def subtract(self, v: Optional["Vector2D"]) -> "Vector2D":
        v = _require(v, "subtract")
        return Vector2D(self.x - v.x, self.y - v.y)

    def scale(self, factor: float) -> "Vector2D":
        return Vector2D(self.x * factor, self.y * factor)

    def dot(self, v: Optional["Vector2D"]) -> float:
        v = _require(v, "dot")
        return self.x * v.x + self.y * v.y

    def polar_radius(self) -> float:
        return math.hypot(self.x, self.y)

    def polar_angle(self) -> float:
        """Direction in degrees; the zero vector maps to 0 rather than NaN."""
        if self.x == 0 and self.y == 0:
            return 0.0
        return math.degrees(math.atan2(self.y, self.x))

    def clamp(self, max_modulus: float) -> "Vector2D":
        """Return a copy rescaled so its modulus does not exceed `max_modulus`."""
        modulus = self.polar_radius()
        if modulus > max_modulus:
            return self.scale(max_modulus / modulus)
        return self

    def distance_to(self, v: Optional["Vector2D"]) -> float:
        v = _require(v, "distance_to")
        return v.subtract(self).polar_radius()

    def direction_of(self, v: Optional["Vector2D"]) -> float:
        v = _require(v, "direction_of")
        return v.subtract(self).polar_angle()

    def __str__(self) -> str:
        return f"({self.x:g}, {self.y:g})"
