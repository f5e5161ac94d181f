"""
Cannon Shot Simulator
=====================
Interactive 2D projectile-motion simulator: configure a cannon, fire it,
and watch the ball fly in real time while the engine records the
trajectory and reports flight statistics.

  - Gravity plus optional quadratic air drag on a sphere
  - Semi-implicit Euler at a fixed 1/120 s step
  - Accumulator-based frame scheduler: the physics is identical at any
    display frame rate, with a capped catch-up after stalls
  - Per-shot trajectory history with time series for charting
  - Validation against closed-form and adaptive-solver references

Run `python main.py` for the full demonstration.
"""

from .vector import Vector2
from .drag_model import AIR_DENSITY, SPHERE_DRAG_COEFFICIENT, drag_force
from .projectile import (
    GRAVITY, BodyParameters, CannonGeometry, InvalidParametersError,
    LaunchParameters, ProjectileState, compute_acceleration, compute_force,
)
from .integrator import (
    FIXED_DT, GROUND_GRACE_PERIOD, StepResult, is_grounded, step,
)
from .recorder import (
    SimulationSample, Trajectory, TrajectoryClosedError, TrajectoryRecorder,
)
from .summary import FlightSummary, compute_flight_summary
from .engine import (
    IMPACT_CUE_DURATION, MAX_FRAME_TIME, FrameSnapshot, ImpactEvent,
    ManualFrameSource, RealtimeFrameLoop, ShotResult, SimulationConfig,
    SimulationEngine, run_to_impact,
)
from .validation import (
    validate_against_analytic, validate_against_reference_solver,
    run_all_validations,
)

__version__ = "1.0.0"
__all__ = [
    'Vector2',
    'BodyParameters', 'LaunchParameters', 'CannonGeometry', 'ProjectileState',
    'InvalidParametersError', 'compute_acceleration', 'compute_force',
    'drag_force', 'GRAVITY', 'AIR_DENSITY', 'SPHERE_DRAG_COEFFICIENT',
    'FIXED_DT', 'GROUND_GRACE_PERIOD', 'MAX_FRAME_TIME', 'IMPACT_CUE_DURATION',
    'StepResult', 'step', 'is_grounded',
    'SimulationSample', 'Trajectory', 'TrajectoryRecorder',
    'TrajectoryClosedError',
    'FlightSummary', 'compute_flight_summary',
    'SimulationEngine', 'SimulationConfig', 'FrameSnapshot', 'ImpactEvent',
    'ShotResult', 'ManualFrameSource', 'RealtimeFrameLoop', 'run_to_impact',
    'validate_against_analytic', 'validate_against_reference_solver',
    'run_all_validations',
]
