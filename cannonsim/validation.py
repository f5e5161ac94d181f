"""
Validation Against Reference Solutions
======================================
Checks the fixed-step engine against two independent references:

  - Closed-form vacuum ballistics (drag off):
        t_f = (vy + sqrt(vy² + 2 g h)) / g
        R   = vx t_f
        H   = h + vy² / (2 g)
  - A high-accuracy adaptive solver (scipy `solve_ivp`, RK45 with tight
    tolerances and a ground-crossing event) running the same force
    model, for shots with air resistance.

The fixed step of 1/120 s should stay within about 1 % of either.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.integrate import solve_ivp

from .engine import SimulationConfig, run_to_impact
from .projectile import (
    GRAVITY, BodyParameters, CannonGeometry, LaunchParameters,
    compute_acceleration,
)
from .vector import Vector2


# (initial speed m/s, elevation deg)
DEFAULT_CASES: Tuple[Tuple[float, float], ...] = (
    (10.0, 30.0),
    (15.0, 45.0),
    (20.0, 30.0),
    (25.0, 60.0),
    (30.0, 75.0),
)


@dataclass
class ReferenceFlight:
    """Range / apex / flight time / impact speed of a reference solution."""
    max_range: float
    max_height: float
    total_time: float
    impact_velocity: float


@dataclass
class ValidationResult:
    """Result of one validation comparison."""
    speed: float
    angle_deg: float
    ref_range: float
    sim_range: float
    range_error_pct: float
    ref_max_height: float
    sim_max_height: float
    height_error_pct: float
    ref_tof: float
    sim_tof: float
    tof_error_pct: float


def _pct(sim: float, ref: float) -> float:
    return 100.0 * (sim - ref) / ref if ref != 0 else 0.0


def analytic_vacuum_flight(launch: LaunchParameters,
                           cannon: CannonGeometry) -> ReferenceFlight:
    """Exact drag-free flight from the muzzle back down to y = 0."""
    start = cannon.muzzle_position(launch.angle_deg)
    v0 = launch.initial_velocity()
    h = start.y

    t_f = (v0.y + math.sqrt(v0.y ** 2 + 2 * GRAVITY * h)) / GRAVITY
    apex = h + max(v0.y, 0.0) ** 2 / (2 * GRAVITY)
    vy_f = v0.y - GRAVITY * t_f

    return ReferenceFlight(
        max_range=start.x + v0.x * t_f - cannon.pivot_x,
        max_height=apex,
        total_time=t_f,
        impact_velocity=math.hypot(v0.x, vy_f),
    )


def reference_solver_flight(launch: LaunchParameters, body: BodyParameters,
                            cannon: CannonGeometry,
                            max_time: float = 600.0) -> ReferenceFlight:
    """
    Integrate the same equations of motion with an adaptive RK45 solver.
    """
    start = cannon.muzzle_position(launch.angle_deg)
    v0 = launch.initial_velocity()

    def rhs(t, y):
        acc = compute_acceleration(Vector2(y[2], y[3]), body)
        return [y[2], y[3], acc.x, acc.y]

    def hit_ground(t, y):
        return y[1]
    hit_ground.terminal = True
    hit_ground.direction = -1

    def apex(t, y):
        return y[3]
    apex.direction = -1

    sol = solve_ivp(rhs, (0.0, max_time), [start.x, start.y, v0.x, v0.y],
                    method='RK45', events=[hit_ground, apex],
                    rtol=1e-10, atol=1e-10)

    if len(sol.t_events[0]) == 0:
        raise RuntimeError(f"reference solution did not land within {max_time} s")

    impact = sol.y_events[0][0]
    heights = [start.y] + [float(s[1]) for s in sol.y_events[1]]

    return ReferenceFlight(
        max_range=float(impact[0]) - cannon.pivot_x,
        max_height=max(heights),
        total_time=float(sol.t_events[0][0]),
        impact_velocity=float(np.hypot(impact[2], impact[3])),
    )


def _compare(launch, ref: ReferenceFlight, body, config) -> ValidationResult:
    shot = run_to_impact(launch, body, config)
    s = shot.summary
    return ValidationResult(
        speed=launch.initial_speed,
        angle_deg=launch.angle_deg,
        ref_range=ref.max_range,
        sim_range=s.max_range,
        range_error_pct=_pct(s.max_range, ref.max_range),
        ref_max_height=ref.max_height,
        sim_max_height=s.max_height,
        height_error_pct=_pct(s.max_height, ref.max_height),
        ref_tof=ref.total_time,
        sim_tof=s.total_time,
        tof_error_pct=_pct(s.total_time, ref.total_time),
    )


def _print_table(title: str, results: List[ValidationResult]) -> None:
    print(f"\n{'='*75}")
    print(f"  VALIDATION: {title}")
    print(f"{'='*75}")
    print(f"{'v0':>5} {'θ°':>5} {'Ref R':>8} {'Sim R':>8} {'Err %':>7} "
          f"{'Ref H':>7} {'Sim H':>7} {'Err %':>7} "
          f"{'Ref T':>7} {'Sim T':>7} {'Err %':>7}")
    print("-" * 75)
    for r in results:
        print(f"{r.speed:>5.1f} {r.angle_deg:>5.0f} {r.ref_range:>8.2f} "
              f"{r.sim_range:>8.2f} {r.range_error_pct:>+7.2f} "
              f"{r.ref_max_height:>7.2f} {r.sim_max_height:>7.2f} "
              f"{r.height_error_pct:>+7.2f} "
              f"{r.ref_tof:>7.3f} {r.sim_tof:>7.3f} {r.tof_error_pct:>+7.2f}")

    avg_range_err = np.mean([abs(r.range_error_pct) for r in results])
    avg_tof_err = np.mean([abs(r.tof_error_pct) for r in results])
    print("-" * 75)
    print(f"  Mean absolute errors — Range: {avg_range_err:.2f}% | "
          f"Time: {avg_tof_err:.2f}%")
    status = "✓ PASS" if avg_range_err < 1.0 else "✗ CHECK STEP SIZE"
    print(f"  Status: {status}")
    print(f"{'='*75}\n")


def validate_against_analytic(cases: Sequence[Tuple[float, float]] = DEFAULT_CASES,
                              config: Optional[SimulationConfig] = None,
                              verbose: bool = True) -> List[ValidationResult]:
    """
    Fire each (speed, angle) case without drag and compare against the
    closed-form vacuum solution.
    """
    config = config or SimulationConfig()
    body = BodyParameters(drag_enabled=False)

    results = []
    for speed, angle in cases:
        launch = LaunchParameters(initial_speed=speed, angle_deg=angle)
        ref = analytic_vacuum_flight(launch, config.cannon)
        results.append(_compare(launch, ref, body, config))

    if verbose:
        _print_table("closed-form vacuum trajectory", results)
    return results


def validate_against_reference_solver(cases: Sequence[Tuple[float, float]] = DEFAULT_CASES,
                                      body: Optional[BodyParameters] = None,
                                      config: Optional[SimulationConfig] = None,
                                      verbose: bool = True) -> List[ValidationResult]:
    """
    Fire each case with air resistance and compare against solve_ivp.
    """
    config = config or SimulationConfig()
    body = body or BodyParameters(drag_enabled=True)

    results = []
    for speed, angle in cases:
        launch = LaunchParameters(initial_speed=speed, angle_deg=angle)
        ref = reference_solver_flight(launch, body, config.cannon)
        results.append(_compare(launch, ref, body, config))

    if verbose:
        _print_table(f"RK45 reference, drag on (m={body.mass} kg, "
                     f"d={body.diameter} m)", results)
    return results


def run_all_validations(verbose: bool = True) -> Dict[str, List[ValidationResult]]:
    """Run validation against every available reference."""
    return {
        'analytic': validate_against_analytic(verbose=verbose),
        'reference_solver': validate_against_reference_solver(verbose=verbose),
    }


if __name__ == "__main__":
    run_all_validations(verbose=True)
