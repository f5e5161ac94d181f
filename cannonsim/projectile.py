"""
Projectile Definition & Kinematics
==================================
Defines the cannonball, the launch settings and the cannon itself, and
computes the acceleration acting on the ball:
  - Gravity
  - Optional quadratic air drag (sphere)

Coordinate system:
  x = downrange (horizontal)
  y = height above ground (vertical, up positive)
"""

import math
from dataclasses import dataclass

from .drag_model import (
    AIR_DENSITY, SPHERE_DRAG_COEFFICIENT, cross_section_area, drag_force,
)
from .vector import Vector2


GRAVITY = 9.81  # m/s²


class InvalidParametersError(ValueError):
    """Raised when a shot is configured with non-physical values."""


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise InvalidParametersError(f"{name} must be finite, got {value!r}")


@dataclass(frozen=True)
class BodyParameters:
    """
    Physical properties of the cannonball.
    """
    mass: float = 5.0             # kg
    diameter: float = 0.5         # m
    drag_enabled: bool = False

    @property
    def area(self) -> float:
        """Reference cross-sectional area (m²)."""
        return cross_section_area(self.diameter)

    def validate(self) -> "BodyParameters":
        _require_finite("mass", self.mass)
        _require_finite("diameter", self.diameter)
        if self.mass <= 0:
            raise InvalidParametersError(f"mass must be > 0, got {self.mass}")
        if self.diameter <= 0:
            raise InvalidParametersError(
                f"diameter must be > 0, got {self.diameter}")
        return self


@dataclass(frozen=True)
class LaunchParameters:
    """
    Muzzle speed and barrel elevation at the moment of firing.
    """
    initial_speed: float = 15.0   # m/s
    angle_deg: float = 45.0       # degrees above horizontal

    def initial_velocity(self) -> Vector2:
        """Convert launch speed + elevation to a (vx, vy) vector."""
        return Vector2.from_polar(self.initial_speed, self.angle_deg)

    def validate(self) -> "LaunchParameters":
        _require_finite("initial_speed", self.initial_speed)
        _require_finite("angle_deg", self.angle_deg)
        if self.initial_speed < 0:
            raise InvalidParametersError(
                f"initial_speed must be >= 0, got {self.initial_speed}")
        return self


@dataclass(frozen=True)
class CannonGeometry:
    """
    Where the barrel pivots and how long it is (metres).

    The ball leaves from the muzzle tip, while ranges are measured from
    the pivot. Defaults match the on-screen cannon: pivot 30 px from the
    left edge, 20 px above ground, 60 px barrel, at 20 px per metre.
    """
    pivot_x: float = 1.5
    pivot_y: float = 1.0
    barrel_length: float = 3.0

    @classmethod
    def at_origin(cls) -> "CannonGeometry":
        """A point-like cannon sitting at (0, 0): launch and pivot coincide."""
        return cls(pivot_x=0.0, pivot_y=0.0, barrel_length=0.0)

    @property
    def pivot(self) -> Vector2:
        return Vector2(self.pivot_x, self.pivot_y)

    def muzzle_position(self, angle_deg: float) -> Vector2:
        """World position of the barrel tip at the given elevation."""
        return self.pivot + Vector2.from_polar(self.barrel_length, angle_deg)


@dataclass(frozen=True)
class ProjectileState:
    """Instantaneous dynamical state of the single simulated ball."""
    position: Vector2
    velocity: Vector2

    @property
    def speed(self) -> float:
        return self.velocity.norm()

    @classmethod
    def launch(cls, launch: LaunchParameters,
               cannon: CannonGeometry) -> "ProjectileState":
        return cls(position=cannon.muzzle_position(launch.angle_deg),
                   velocity=launch.initial_velocity())


def compute_acceleration(velocity: Vector2, params: BodyParameters) -> Vector2:
    """
    Compute the acceleration acting on the ball.

    Parameters
    ----------
    velocity : Vector2
        Current velocity (m/s)
    params : BodyParameters
        Mass, diameter and whether air resistance is on

    Returns
    -------
    acceleration : Vector2 (m/s²)
    """
    # ── 1. Gravity ────────────────────────────────────────────────────────
    ax, ay = 0.0, -GRAVITY

    # ── 2. Aerodynamic drag ───────────────────────────────────────────────
    if params.drag_enabled:
        f_drag = drag_force(velocity, AIR_DENSITY, SPHERE_DRAG_COEFFICIENT,
                            params.area)
        ax += f_drag.x / params.mass
        ay += f_drag.y / params.mass

    return Vector2(ax, ay)


def compute_force(velocity: Vector2, params: BodyParameters) -> Vector2:
    """Net force on the ball (N), for force-vector display."""
    return compute_acceleration(velocity, params) * params.mass
