"""
2D Vector Value Type
====================
Small immutable (x, y) pair used for position, velocity, acceleration
and force. Values are copied, never shared: every operation returns a
new Vector2.

Coordinate system:
  x = downrange (horizontal, metres)
  y = height above ground (vertical, up positive)
"""

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Vector2:
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> "Vector2":
        return Vector2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector2":
        return Vector2(-self.x, -self.y)

    def norm(self) -> float:
        """Euclidean length."""
        return math.hypot(self.x, self.y)

    def normalized(self) -> "Vector2":
        mag = self.norm()
        if mag == 0:
            return Vector2(0.0, 0.0)
        return Vector2(self.x / mag, self.y / mag)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y])

    @classmethod
    def from_array(cls, arr) -> "Vector2":
        return cls(float(arr[0]), float(arr[1]))

    @classmethod
    def from_polar(cls, magnitude: float, angle_deg: float) -> "Vector2":
        """Vector of the given length at angle_deg above the +x axis."""
        angle = math.radians(angle_deg)
        return cls(magnitude * math.cos(angle), magnitude * math.sin(angle))


ZERO = Vector2(0.0, 0.0)
