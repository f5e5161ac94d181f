"""
Tests for the Simulation Engine and Frame Scheduling
====================================================
Every test drives the engine with synthetic timestamps, either by
calling on_frame directly or through ManualFrameSource.
Run: python -m pytest tests/ -v
"""

import sys
import os
import math
import random
import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from cannonsim.engine import (
    ManualFrameSource, RealtimeFrameLoop, SimulationConfig, SimulationEngine,
    _FrameQueue, run_to_impact,
)
from cannonsim.integrator import FIXED_DT
from cannonsim.projectile import (
    GRAVITY, BodyParameters, CannonGeometry, InvalidParametersError,
    LaunchParameters,
)


@pytest.fixture
def origin_config():
    """Point-like cannon at (0, 0): launch height 0, range measured from x = 0."""
    return SimulationConfig(cannon=CannonGeometry.at_origin())


def _drive(engine, source, fps=60.0):
    while engine.is_running:
        source.advance(1.0 / fps)
    return engine.last_result


class TestVacuumFlight:
    """Drag-free shots against closed-form ballistics."""

    def test_range_matches_analytic(self, origin_config):
        v, theta = 15.0, 45.0
        shot = run_to_impact(LaunchParameters(v, theta), BodyParameters(), origin_config)
        expected = v ** 2 * math.sin(math.radians(2 * theta)) / GRAVITY
        assert abs(expected - 22.93) < 0.01
        assert shot.summary.max_range == pytest.approx(expected, rel=0.01)

    def test_flight_time_and_apex(self, origin_config):
        v, theta = 20.0, 30.0
        shot = run_to_impact(LaunchParameters(v, theta), BodyParameters(), origin_config)
        t_f = 2 * v * math.sin(math.radians(theta)) / GRAVITY
        apex = (v * math.sin(math.radians(theta))) ** 2 / (2 * GRAVITY)
        assert shot.summary.total_time == pytest.approx(t_f, abs=0.02)
        assert shot.summary.max_height == pytest.approx(apex, rel=0.015)
        assert shot.summary.max_height == pytest.approx(5.09, abs=0.06)

    def test_impact_speed_close_to_launch_speed(self, origin_config):
        shot = run_to_impact(LaunchParameters(20.0, 60.0), BodyParameters(), origin_config)
        assert shot.summary.impact_velocity == pytest.approx(20.0, rel=0.02)

    def test_drag_shortens_range(self):
        launch = LaunchParameters(25.0, 45.0)
        vacuum = run_to_impact(launch, BodyParameters(drag_enabled=False))
        dragged = run_to_impact(launch, BodyParameters(drag_enabled=True))
        assert dragged.summary.max_range < vacuum.summary.max_range
        assert dragged.summary.impact_velocity < vacuum.summary.impact_velocity


class TestTrajectoryInvariants:

    def test_samples_evenly_spaced(self):
        shot = run_to_impact(LaunchParameters(18.0, 50.0), BodyParameters(drag_enabled=True))
        t = shot.trajectory.time
        assert t[0] == 0.0
        assert np.allclose(np.diff(t), FIXED_DT)
        assert np.all(np.diff(t) > 0)

    @pytest.mark.parametrize("speed, angle, cannon", [
        (15.0, 45.0, CannonGeometry.at_origin()),
        (10.0, 0.0, CannonGeometry()),
        (10.0, 0.0, CannonGeometry.at_origin()),
        (50.0, -15.0, CannonGeometry()),
    ])
    def test_no_sample_below_ground(self, speed, angle, cannon):
        config = SimulationConfig(cannon=cannon)
        shot = run_to_impact(LaunchParameters(speed, angle), BodyParameters(), config)
        assert shot.trajectory.y.min() >= 0.0
        assert shot.trajectory.last_sample.position.y == 0.0
        assert shot.summary.total_time == shot.trajectory.last_sample.time

    def test_seed_sample(self):
        config = SimulationConfig()
        launch = LaunchParameters(12.0, 40.0)
        shot = run_to_impact(launch, BodyParameters(), config)
        seed = shot.trajectory.samples[0]
        assert seed.time == 0.0
        assert seed.position == config.cannon.muzzle_position(40.0)
        assert seed.speed == pytest.approx(12.0)
        assert seed.acceleration_magnitude == pytest.approx(GRAVITY)
        assert shot.trajectory.path[0] == seed.position

    def test_range_measured_from_pivot(self):
        config = SimulationConfig()
        shot = run_to_impact(LaunchParameters(15.0, 45.0), BodyParameters(), config)
        last = shot.trajectory.last_sample.position
        assert shot.summary.max_range == pytest.approx(last.x - config.cannon.pivot_x)

    def test_total_time_matches_last_sample_randomized(self):
        rng = random.Random(1234)
        for _ in range(20):
            launch = LaunchParameters(rng.uniform(1.0, 30.0), rng.uniform(5.0, 85.0))
            body = BodyParameters(mass=rng.uniform(1.0, 20.0),
                                  diameter=rng.uniform(0.1, 1.0),
                                  drag_enabled=rng.random() < 0.5)
            shot = run_to_impact(launch, body)
            assert shot.summary.total_time == shot.trajectory.last_sample.time
            assert shot.trajectory.y.min() >= 0.0

    def test_independent_of_frame_rate(self):
        launch = LaunchParameters(22.0, 35.0)
        body = BodyParameters(drag_enabled=True)
        reference = run_to_impact(launch, body, frame_rate=60.0)
        for fps in (24.0, 30.0, 144.0, 2.0):
            shot = run_to_impact(launch, body, frame_rate=fps)
            assert shot.trajectory.path == reference.trajectory.path
            assert shot.summary == reference.summary


class TestFrameScheduler:

    def test_long_gap_clamped(self):
        gap = SimulationEngine()
        gap.fire(LaunchParameters(20.0, 60.0), now=0.0)
        gap.on_frame(5.0)

        capped = SimulationEngine()
        capped.fire(LaunchParameters(20.0, 60.0), now=0.0)
        capped.on_frame(0.25)

        assert gap.steps == capped.steps == 30
        assert gap.elapsed_time == pytest.approx(0.25)
        assert gap.accumulator < FIXED_DT
        assert gap.state == capped.state

    def test_small_increments_match_single_frame(self):
        split = SimulationEngine()
        split.fire(LaunchParameters(20.0, 60.0), now=0.0)
        for ts in (0.1, 0.2, 0.25):
            split.on_frame(ts)
        assert split.steps == 30

    def test_fractional_frames_carry_over(self):
        engine = SimulationEngine()
        engine.fire(LaunchParameters(20.0, 60.0), now=0.0)
        engine.on_frame(FIXED_DT * 0.6)
        assert engine.steps == 0
        engine.on_frame(FIXED_DT * 1.2)
        assert engine.steps == 1

    def test_backwards_clock_ignored(self):
        engine = SimulationEngine()
        engine.fire(LaunchParameters(20.0, 60.0), now=10.0)
        engine.on_frame(9.0)
        assert engine.steps == 0
        assert engine.accumulator == 0.0

    def test_one_update_per_frame(self):
        updates = []
        engine = SimulationEngine(on_update=updates.append)
        engine.fire(LaunchParameters(20.0, 60.0), now=0.0)
        engine.on_frame(0.25)
        assert len(updates) == 1
        assert updates[0].elapsed_time == pytest.approx(0.25)
        engine.on_frame(0.25 + FIXED_DT / 2)
        assert len(updates) == 1

    def test_snapshot_vectors(self):
        body = BodyParameters(mass=3.0, drag_enabled=True)
        engine = SimulationEngine(body=body)
        engine.fire(LaunchParameters(20.0, 45.0), now=0.0)
        engine.on_frame(0.1)
        snap = engine.snapshot()
        assert snap.force.x == pytest.approx(3.0 * snap.acceleration.x)
        assert snap.force.y == pytest.approx(3.0 * snap.acceleration.y)
        assert snap.acceleration.y < -GRAVITY

    def test_stops_at_first_ground_contact(self):
        engine = SimulationEngine()
        engine.fire(LaunchParameters(10.0, 45.0), now=0.0)
        t = 0.0
        while engine.is_running:
            t += 0.25
            engine.on_frame(t)
        traj = engine.history[-1]
        assert np.all(traj.y[:-1] > 0.0)
        assert traj.y[-1] == 0.0
        assert engine.accumulator == 0.0
        assert engine.state is None

    def test_frame_source_reschedules_until_impact(self):
        source = ManualFrameSource()
        engine = SimulationEngine(frame_source=source)
        engine.fire(LaunchParameters(10.0, 30.0))
        assert source.pending == 1
        frames = 0
        while engine.is_running:
            frames += source.advance(1 / 60)
        assert frames > 1
        assert source.pending == 0
        assert engine.last_result is not None

    def test_direct_frame_replaces_queued_request(self):
        source = ManualFrameSource()
        engine = SimulationEngine(frame_source=source)
        engine.fire(LaunchParameters(20.0, 60.0))
        engine.on_frame(1 / 60)
        assert source.pending == 1
        for _ in range(5):
            assert source.advance(1 / 60) == 1
            assert source.pending == 1

    def test_frame_source_needs_a_clock(self):
        with pytest.raises(TypeError):
            _FrameQueue()

    def test_on_frame_not_reentrant(self):
        engine = SimulationEngine()

        def nested(_):
            engine.on_frame(1.0)

        engine.on_update = nested
        engine.fire(LaunchParameters(20.0, 60.0), now=0.0)
        with pytest.raises(RuntimeError):
            engine.on_frame(0.1)


class TestLifecycle:

    def test_fire_while_running_is_noop(self):
        engine = SimulationEngine()
        assert engine.fire(LaunchParameters(20.0, 60.0), now=0.0)
        engine.on_frame(0.1)
        state, steps = engine.state, engine.steps

        assert not engine.fire(LaunchParameters(5.0, 10.0), now=0.1)
        assert engine.state is state
        assert engine.steps == steps
        assert engine.launch.initial_speed == 20.0

    def test_invalid_parameters_refused(self):
        engine = SimulationEngine()
        with pytest.raises(InvalidParametersError):
            engine.fire(LaunchParameters(), BodyParameters(mass=0.0), now=0.0)
        assert not engine.is_running
        assert engine.state is None
        with pytest.raises(InvalidParametersError):
            engine.update_body_parameters(BodyParameters(diameter=-1.0))

    def test_muzzle_below_ground_refused(self):
        engine = SimulationEngine()
        with pytest.raises(InvalidParametersError):
            engine.fire(LaunchParameters(10.0, -45.0), now=0.0)
        assert not engine.is_running
        assert engine.state is None
        assert engine.current_path() == []
        assert engine.history == []

        assert engine.fire(LaunchParameters(10.0, -10.0), now=0.0)

    def test_reset_idempotent(self):
        def observe(e):
            return (e.state, e.accumulator, e.last_timestamp, e.steps,
                    len(e.history), e.current_path(), e.is_running,
                    e.last_result, e.launch)

        source = ManualFrameSource()
        engine = SimulationEngine(frame_source=source)
        engine.fire(LaunchParameters(10.0, 45.0))
        _drive(engine, source)
        engine.fire(LaunchParameters(10.0, 45.0))
        source.advance(0.1)

        engine.reset()
        once = observe(engine)
        engine.reset()
        assert observe(engine) == once
        assert once == (None, 0.0, None, 0, 0, [], False, None, None)

    def test_reset_revokes_pending_frame(self):
        source = ManualFrameSource()
        engine = SimulationEngine(frame_source=source)
        engine.fire(LaunchParameters(10.0, 45.0))
        engine.reset()
        assert source.pending == 0
        source.advance(0.1)
        assert engine.steps == 0
        assert engine.state is None

    def test_stale_callback_ignored(self):
        class NoCancelSource(ManualFrameSource):
            def cancel_frame(self, handle):
                pass

        source = NoCancelSource()
        engine = SimulationEngine(frame_source=source)
        engine.fire(LaunchParameters(10.0, 45.0))
        engine.stop()
        engine.stop()
        assert source.advance(0.1) == 1
        assert engine.steps == 0

    def test_dispose(self):
        source = ManualFrameSource()
        engine = SimulationEngine(frame_source=source)
        engine.fire(LaunchParameters(10.0, 45.0))
        engine.dispose()
        assert source.pending == 0
        assert not engine.on_frame(1.0)
        with pytest.raises(RuntimeError):
            engine.fire(LaunchParameters(10.0, 45.0))

    def test_erase_keeps_configuration(self):
        body = BodyParameters(mass=7.0, drag_enabled=True)
        source = ManualFrameSource()
        engine = SimulationEngine(body=body, frame_source=source)
        engine.fire(LaunchParameters(10.0, 45.0))
        _drive(engine, source)
        assert len(engine.history) == 1

        engine.fire(LaunchParameters(10.0, 45.0))
        source.advance(0.1)
        engine.erase()
        assert engine.history == []
        assert engine.last_result is None
        assert engine.body == body
        assert engine.is_running

        _drive(engine, source)
        assert len(engine.history) == 1

    def test_body_update_applies_from_next_step(self):
        engine = SimulationEngine()
        engine.fire(LaunchParameters(20.0, 45.0), now=0.0)
        engine.on_frame(FIXED_DT)
        vx0 = LaunchParameters(20.0, 45.0).initial_velocity().x
        assert engine.state.velocity.x == vx0

        engine.update_body_parameters(BodyParameters(drag_enabled=True))
        engine.on_frame(2 * FIXED_DT)
        assert engine.state.velocity.x < vx0
        samples = engine.recorder.current_samples()
        assert samples[1].acceleration_magnitude == pytest.approx(GRAVITY)
        assert samples[2].acceleration_magnitude > GRAVITY

    def test_completion_events(self):
        impacts, results = [], []
        source = ManualFrameSource()
        engine = SimulationEngine(frame_source=source, on_impact=impacts.append,
                                  on_complete=results.append)
        engine.fire(LaunchParameters(12.0, 45.0))
        _drive(engine, source)

        assert len(impacts) == len(results) == 1
        result = results[0]
        assert engine.history == [result.trajectory]
        assert impacts[0].position.y == 0.0
        assert impacts[0].time == result.summary.total_time
        assert impacts[0].speed == result.summary.impact_velocity

    def test_fire_again_after_impact(self):
        source = ManualFrameSource()
        engine = SimulationEngine(frame_source=source)
        for speed in (8.0, 12.0, 16.0):
            assert engine.fire(LaunchParameters(speed, 45.0))
            _drive(engine, source)
        ranges = [t.last_sample.position.x for t in engine.history]
        assert len(ranges) == 3
        assert ranges == sorted(ranges)


class TestRealtimeFrameLoop:

    def test_loop_with_fake_clock(self):
        clock = {'t': 100.0}

        def now():
            return clock['t']

        def sleep(seconds):
            clock['t'] += seconds

        loop = RealtimeFrameLoop(fps=60.0, clock=now, sleep=sleep)
        engine = SimulationEngine(frame_source=loop)
        launch = LaunchParameters(15.0, 45.0)
        engine.fire(launch)
        frames = loop.run()

        assert not engine.is_running
        assert frames > 60
        reference = run_to_impact(launch)
        assert engine.last_result.summary == reference.summary


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
