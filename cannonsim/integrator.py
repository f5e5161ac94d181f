"""
Fixed-Step Integration Engine
=============================
Advances the ball by one constant time increment with semi-implicit
("symplectic") Euler:

    v_{n+1} = v_n + a(v_n) * dt
    x_{n+1} = x_n + v_n * dt

The position update deliberately uses the pre-step velocity v_n.

The step size is fixed at 1/120 s no matter how fast the screen
refreshes; the frame scheduler in engine.py converts wall-clock time
into a whole number of these steps.
"""

from dataclasses import dataclass

from .projectile import BodyParameters, ProjectileState, compute_acceleration
from .vector import Vector2


FIXED_DT = 1.0 / 120.0       # s  simulated time per integrator step
GROUND_GRACE_PERIOD = 0.1    # s  ignore ground contact right after launch


@dataclass(frozen=True)
class StepResult:
    """Outcome of one integrator call."""
    state: ProjectileState
    acceleration: Vector2
    grounded: bool = False


def is_grounded(state: ProjectileState, elapsed: float,
                grace_period: float = GROUND_GRACE_PERIOD) -> bool:
    """
    True once the ball is at or below ground after the launch grace period.

    Inside the grace period only a ball that is already under the ground
    plane and still falling counts as landed.
    """
    y = state.position.y
    if elapsed > grace_period:
        return y <= 0.0
    return y < 0.0 and state.velocity.y < 0.0


def step(state: ProjectileState, params: BodyParameters, elapsed: float,
         dt: float = FIXED_DT,
         grace_period: float = GROUND_GRACE_PERIOD) -> StepResult:
    """
    Advance state by one fixed step.

    Parameters
    ----------
    state : ProjectileState
        State at time `elapsed`
    params : BodyParameters
        Read-only for the duration of the step
    elapsed : float
        Simulated time since launch (s)
    dt : float
        Step size (s)

    Returns
    -------
    StepResult
        The next state and the acceleration used to reach it. When the
        ball is already on the ground the step is a no-op and the result
        is flagged `grounded`, leaving termination to the caller.
    """
    acc = compute_acceleration(state.velocity, params)

    if is_grounded(state, elapsed, grace_period):
        return StepResult(state=state, acceleration=acc, grounded=True)

    new_velocity = state.velocity + acc * dt
    new_position = state.position + state.velocity * dt

    return StepResult(
        state=ProjectileState(position=new_position, velocity=new_velocity),
        acceleration=acc,
    )
