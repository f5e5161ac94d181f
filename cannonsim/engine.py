"""
Simulation Engine & Frame Scheduling
====================================
Bridges irregular wall-clock frame callbacks to the fixed-step
integrator. Each frame:

  1. measure the wall-clock time since the previous frame,
     capped at MAX_FRAME_TIME so a stalled host cannot trigger a
     runaway catch-up ("spiral of death")
  2. add it to the accumulator and run one integrator step per
     whole FIXED_DT it contains
  3. publish one snapshot for the display, however many steps ran
  4. on ground contact: freeze the trajectory, summarise it, notify
     listeners and stop; otherwise ask the host for another frame

The host is anything that can call `SimulationEngine.on_frame(now)`
with a timestamp in seconds: a game loop, a GUI timer, or a test
feeding synthetic times. Two hosts are provided here:
`ManualFrameSource` (synthetic clock) and `RealtimeFrameLoop`
(blocking loop on the performance counter).

Everything runs on one thread. The engine never re-enters on_frame and
drops callbacks that were queued before a stop().
"""

import functools
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .integrator import FIXED_DT, GROUND_GRACE_PERIOD, is_grounded, step
from .projectile import (
    BodyParameters, CannonGeometry, InvalidParametersError, LaunchParameters,
    ProjectileState, compute_acceleration, compute_force,
)
from .recorder import SimulationSample, Trajectory, TrajectoryRecorder
from .summary import FlightSummary, compute_flight_summary
from .vector import Vector2


logger = logging.getLogger(__name__)

MAX_FRAME_TIME = 0.25          # s  cap on wall-clock time consumed per frame
ACCUMULATOR_TOLERANCE = 1e-9   # s  absorbs float residue of repeated subtraction
IMPACT_CUE_DURATION = 0.5      # s  display-only length of the impact effect


@dataclass(frozen=True)
class SimulationConfig:
    """Loop tunables and the cannon the shots leave from."""
    fixed_dt: float = FIXED_DT
    max_frame_time: float = MAX_FRAME_TIME
    ground_grace_period: float = GROUND_GRACE_PERIOD
    cannon: CannonGeometry = field(default_factory=CannonGeometry)


@dataclass(frozen=True)
class FrameSnapshot:
    """What the display needs to draw the ball for one frame."""
    position: Vector2
    velocity: Vector2
    acceleration: Vector2
    force: Vector2
    elapsed_time: float


@dataclass(frozen=True)
class ImpactEvent:
    """Ground contact, for a short visual or audio cue."""
    position: Vector2
    time: float
    speed: float


@dataclass(frozen=True)
class ShotResult:
    """Finished shot: the frozen trajectory and its statistics."""
    trajectory: Trajectory
    summary: FlightSummary
    launch: LaunchParameters
    body: BodyParameters


# ══════════════════════════════════════════════════════════════════════════
#  Frame sources
# ══════════════════════════════════════════════════════════════════════════

class _FrameQueue(ABC):
    """Pending frame callbacks keyed by handle; one-shot, like a render request."""

    def __init__(self):
        self._pending: Dict[int, Callable[[float], None]] = {}
        self._next_handle = 1

    @abstractmethod
    def now(self) -> float:
        """Current host time in seconds."""

    def request_frame(self, callback: Callable[[float], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _dispatch(self, timestamp: float) -> int:
        # Callbacks requested while dispatching wait for the next frame
        callbacks = list(self._pending.values())
        self._pending.clear()
        for callback in callbacks:
            callback(timestamp)
        return len(callbacks)


class ManualFrameSource(_FrameQueue):
    """
    Synthetic clock. Time only moves when `advance` is called, which
    then fires every callback requested so far.
    """

    def __init__(self, start: float = 0.0):
        super().__init__()
        self.time = start

    def now(self) -> float:
        return self.time

    def advance(self, dt: float) -> int:
        """Move the clock forward by dt seconds and run one frame."""
        self.time += dt
        return self._dispatch(self.time)


class RealtimeFrameLoop(_FrameQueue):
    """
    Blocking render loop on the performance counter, limited to `fps`
    frames per second. `run` returns once nothing requests a frame.
    """

    def __init__(self, fps: float = 60.0,
                 clock: Callable[[], float] = time.perf_counter,
                 sleep: Callable[[float], None] = time.sleep):
        super().__init__()
        self.frame_interval = 1.0 / fps
        self.clock = clock
        self.sleep = sleep

    def now(self) -> float:
        return self.clock()

    def run(self, max_duration: Optional[float] = None) -> int:
        """Dispatch frames until idle; returns the number of frames run."""
        start = self.clock()
        frames = 0
        while self._pending:
            frame_start = self.clock()
            self._dispatch(frame_start)
            frames += 1

            if max_duration is not None and self.clock() - start > max_duration:
                logger.warning("frame loop stopped after %.1f s", max_duration)
                break

            # Limit FPS
            remaining = self.frame_interval - (self.clock() - frame_start)
            if remaining > 0:
                self.sleep(remaining)
        return frames


# ══════════════════════════════════════════════════════════════════════════
#  Engine
# ══════════════════════════════════════════════════════════════════════════

class SimulationEngine:
    """
    Owns the single live projectile, the accumulator and the frame clock.

    Lifecycle: create -> fire -> on_frame* -> ground contact ->
    (fire again | dispose). `reset` returns to the freshly created state.
    """

    def __init__(self, body: Optional[BodyParameters] = None,
                 config: Optional[SimulationConfig] = None,
                 frame_source=None,
                 on_update: Optional[Callable[[FrameSnapshot], None]] = None,
                 on_impact: Optional[Callable[[ImpactEvent], None]] = None,
                 on_complete: Optional[Callable[[ShotResult], None]] = None):
        self.config = config or SimulationConfig()
        self.body = (body or BodyParameters()).validate()
        self.frame_source = frame_source
        self.on_update = on_update
        self.on_impact = on_impact
        self.on_complete = on_complete

        self.recorder = TrajectoryRecorder()
        self.state: Optional[ProjectileState] = None
        self.launch: Optional[LaunchParameters] = None
        self.accumulator = 0.0
        self.last_timestamp: Optional[float] = None
        self.steps = 0
        self.last_result: Optional[ShotResult] = None
        self.last_impact: Optional[ImpactEvent] = None

        self._running = False
        self._generation = 0
        self._pending_handle: Optional[int] = None
        self._in_frame = False
        self._disposed = False

    # ── Read-only views ───────────────────────────────────────────────────
    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def elapsed_time(self) -> float:
        """Simulated time since launch (s); always a whole number of steps."""
        return self.steps * self.config.fixed_dt

    @property
    def history(self) -> List[Trajectory]:
        return self.recorder.history

    def current_path(self) -> List[Vector2]:
        return self.recorder.current_path()

    def snapshot(self) -> Optional[FrameSnapshot]:
        """Display vectors derived from the live state, or None when idle."""
        if self.state is None:
            return None
        velocity = self.state.velocity
        return FrameSnapshot(
            position=self.state.position,
            velocity=velocity,
            acceleration=compute_acceleration(velocity, self.body),
            force=compute_force(velocity, self.body),
            elapsed_time=self.elapsed_time,
        )

    # ── Commands ──────────────────────────────────────────────────────────
    def fire(self, launch: LaunchParameters,
             body: Optional[BodyParameters] = None,
             now: Optional[float] = None) -> bool:
        """
        Launch a new shot. Returns False (and changes nothing) while a
        shot is already in flight.

        Raises InvalidParametersError for non-physical parameters or an
        elevation that puts the muzzle under the ground.
        """
        if self._disposed:
            raise RuntimeError("engine has been disposed")
        if self._running:
            logger.debug("fire ignored: a shot is already in flight")
            return False

        launch.validate()
        muzzle = self.config.cannon.muzzle_position(launch.angle_deg)
        if muzzle.y < 0.0:
            raise InvalidParametersError(
                f"angle {launch.angle_deg} deg puts the muzzle below ground "
                f"(y={muzzle.y:.3f} m)")
        body = (body or self.body).validate()

        self.body = body
        self.launch = launch
        self.state = ProjectileState.launch(launch, self.config.cannon)
        self.steps = 0
        self.accumulator = 0.0
        self.last_timestamp = self._now() if now is None else now
        self.last_result = None
        self.last_impact = None

        seed_acc = compute_acceleration(self.state.velocity, body)
        self.recorder.start(SimulationSample(
            time=0.0,
            position=self.state.position,
            speed=self.state.speed,
            acceleration_magnitude=seed_acc.norm(),
        ))

        self._running = True
        self._generation += 1
        logger.info("fired: v0=%.2f m/s angle=%.1f deg mass=%.2f kg drag=%s",
                    launch.initial_speed, launch.angle_deg, body.mass,
                    body.drag_enabled)
        self._schedule()
        return True

    def update_body_parameters(self, params: BodyParameters) -> None:
        """Takes effect from the next integrator step."""
        self.body = params.validate()

    def stop(self) -> None:
        """Halt the loop. Safe to call repeatedly."""
        if self._running:
            logger.debug("stopped at t=%.3f s", self.elapsed_time)
        self._running = False
        self._generation += 1
        self._cancel_pending()

    def reset(self) -> None:
        """Stop and forget the live shot and every archived trajectory."""
        self.stop()
        self.recorder.discard()
        self.recorder.clear_history()
        self.state = None
        self.launch = None
        self.accumulator = 0.0
        self.last_timestamp = None
        self.steps = 0
        self.last_result = None
        self.last_impact = None

    def erase(self) -> None:
        """Clear archived trajectories; configuration and a shot in flight survive."""
        self.recorder.clear_history()
        self.last_result = None
        self.last_impact = None

    def dispose(self) -> None:
        self.stop()
        self._disposed = True

    # ── Frame handling ────────────────────────────────────────────────────
    def on_frame(self, now: float) -> bool:
        """
        Advance the simulation to wall-clock time `now` (seconds).

        Returns True while the shot is still in flight.
        """
        if not self._running or self._disposed:
            return False
        if self._in_frame:
            raise RuntimeError("on_frame called re-entrantly")

        generation = self._generation
        self._in_frame = True
        try:
            steps_run, landed = self._advance(now)

            if steps_run and self.on_update is not None:
                self.on_update(self.snapshot())

            # A listener may have stopped or restarted the engine
            if generation != self._generation:
                return self._running

            if landed:
                self._terminate()
                return self._running
        finally:
            self._in_frame = False

        self._schedule()
        return True

    def _advance(self, now: float):
        cfg = self.config
        frame_delta = now - self.last_timestamp
        self.last_timestamp = now

        if frame_delta > cfg.max_frame_time:
            logger.debug("frame delta %.3f s clamped to %.2f s",
                         frame_delta, cfg.max_frame_time)
            frame_delta = cfg.max_frame_time
        elif frame_delta < 0.0:
            frame_delta = 0.0
        self.accumulator += frame_delta

        steps_run = 0
        landed = False
        while self.accumulator + ACCUMULATOR_TOLERANCE >= cfg.fixed_dt:
            result = step(self.state, self.body, self.elapsed_time,
                          cfg.fixed_dt, cfg.ground_grace_period)
            if result.grounded:
                landed = True
                break

            self.accumulator = max(self.accumulator - cfg.fixed_dt, 0.0)
            self.state = result.state
            self.steps += 1
            steps_run += 1

            landed = is_grounded(self.state, self.elapsed_time,
                                 cfg.ground_grace_period)
            if landed:
                # Rest on the ground plane; velocity is kept for the impact speed
                pos = self.state.position
                self.state = ProjectileState(position=Vector2(pos.x, 0.0),
                                             velocity=self.state.velocity)

            self.recorder.append(SimulationSample(
                time=self.elapsed_time,
                position=self.state.position,
                speed=self.state.speed,
                acceleration_magnitude=result.acceleration.norm(),
            ))
            if landed:
                break

        if landed:
            self.accumulator = 0.0
        return steps_run, landed

    def _terminate(self) -> None:
        final_state = self.state
        self._running = False
        self._generation += 1
        self._cancel_pending()

        trajectory = self.recorder.finalize()
        summary = compute_flight_summary(trajectory, final_state.speed,
                                         origin_x=self.config.cannon.pivot_x)
        impact = ImpactEvent(position=final_state.position,
                             time=trajectory.last_sample.time,
                             speed=final_state.speed)
        result = ShotResult(trajectory=trajectory, summary=summary,
                            launch=self.launch, body=self.body)

        self.state = None
        self.last_impact = impact
        self.last_result = result
        logger.info("impact at x=%.2f m after %.3f s (range %.2f m, %d shots archived)",
                    impact.position.x, impact.time, summary.max_range,
                    len(self.recorder.history))

        if self.on_impact is not None:
            self.on_impact(impact)
        if self.on_complete is not None:
            self.on_complete(result)

    # ── Scheduling helpers ────────────────────────────────────────────────
    def _now(self) -> float:
        if self.frame_source is not None:
            return self.frame_source.now()
        return time.perf_counter()

    def _schedule(self) -> None:
        if self.frame_source is None:
            return
        self._cancel_pending()
        callback = functools.partial(self._scheduled_frame, self._generation)
        self._pending_handle = self.frame_source.request_frame(callback)

    def _scheduled_frame(self, generation: int, timestamp: float) -> None:
        if generation != self._generation:
            return
        self._pending_handle = None
        self.on_frame(timestamp)

    def _cancel_pending(self) -> None:
        if self._pending_handle is not None and self.frame_source is not None:
            self.frame_source.cancel_frame(self._pending_handle)
        self._pending_handle = None


def run_to_impact(launch: LaunchParameters,
                  body: Optional[BodyParameters] = None,
                  config: Optional[SimulationConfig] = None,
                  frame_rate: float = 60.0,
                  max_time: float = 600.0) -> ShotResult:
    """
    Fire one shot and drive it to the ground with a synthetic clock
    ticking at `frame_rate` frames per second.

    The result does not depend on frame_rate: only the number of fixed
    steps matters.
    """
    source = ManualFrameSource()
    engine = SimulationEngine(body=body, config=config, frame_source=source)
    engine.fire(launch)

    frame = 1.0 / frame_rate
    while engine.is_running:
        if engine.elapsed_time > max_time:
            engine.dispose()
            raise RuntimeError(f"no ground contact within {max_time} s")
        source.advance(frame)

    return engine.last_result
