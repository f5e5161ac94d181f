"""
Aerodynamic Drag Model
======================
Quadratic (velocity-squared) drag on a spherical cannonball:

    F_drag = -½ ρ |v|² Cd A v̂

Air density and drag coefficient are fixed: the simulator flies at
ground level, low subsonic speeds, where a smooth sphere sits on the
flat part of its Cd curve (Cd ≈ 0.47, Hoerner "Fluid Dynamic Drag").
"""

import math

from .vector import Vector2, ZERO


AIR_DENSITY = 1.225               # kg/m³  sea-level standard atmosphere
SPHERE_DRAG_COEFFICIENT = 0.47    # dimensionless, subsonic sphere


def cross_section_area(diameter: float) -> float:
    """Frontal area of a sphere of the given diameter (m²)."""
    return math.pi * (diameter / 2) ** 2


def drag_force(velocity: Vector2, rho: float = AIR_DENSITY,
               cd: float = SPHERE_DRAG_COEFFICIENT,
               area: float = 0.0) -> Vector2:
    """
    Compute aerodynamic drag force vector (N).

    Parameters
    ----------
    velocity : Vector2
        Velocity relative to still air (m/s)
    rho : float
        Air density (kg/m³)
    cd : float
        Drag coefficient (dimensionless)
    area : float
        Reference cross-sectional area (m²)

    Returns
    -------
    Vector2
        Drag force, pointing against the velocity. Zero at rest.
    """
    v_mag = velocity.norm()
    if v_mag == 0.0:
        return ZERO

    f_mag = 0.5 * rho * v_mag ** 2 * cd * area
    return velocity.normalized() * -f_mag
