#!/usr/bin/env python3
"""
═══════════════════════════════════════════════════════════════════════════════
  CANNON SHOT SIMULATOR — Main Runner
═══════════════════════════════════════════════════════════════════════════════

  Executes the demonstration pipeline:
    1. Default shot (15 m/s @ 45°, no air resistance)
    2. Air resistance comparison (same launch, drag on)
    3. Frame-rate independence (30 / 60 / 144 fps and a stalled host)
    4. Validation against closed-form and RK45 reference solutions
    5. Trajectory history, time series and dashboard plots
    6. Animated shot GIF
    7. Real-time shot driven by the wall clock

  All outputs saved to outputs/ directory.

  Usage:
    python main.py              # Run everything
    python main.py --quick      # Skip animation and real-time run
    python main.py --live       # Open an interactive window after the report
    python main.py --verbose    # Engine debug logging
═══════════════════════════════════════════════════════════════════════════════
"""

import sys
import os
import time
import logging

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import matplotlib
if '--live' not in sys.argv:
    matplotlib.use('Agg')
import matplotlib.pyplot as plt

from cannonsim.engine import (
    ManualFrameSource, RealtimeFrameLoop, SimulationConfig, SimulationEngine,
    run_to_impact,
)
from cannonsim.projectile import BodyParameters, LaunchParameters
from cannonsim.validation import (
    validate_against_analytic, validate_against_reference_solver,
)
from cannonsim.visualization import (
    plot_trajectories, plot_time_series, plot_dashboard,
    create_shot_animation, run_live, ensure_output_dir,
)


def banner():
    print("""
╔═══════════════════════════════════════════════════════════════════════╗
║                                                                       ║
║     CANNON SHOT SIMULATOR                                             ║
║     ─────────────────────────────────────────────────────             ║
║     Gravity · Quadratic drag (sphere, Cd = 0.47)                      ║
║     Semi-implicit Euler @ 1/120 s │ Frame-rate independent loop       ║
║                                                                       ║
╚═══════════════════════════════════════════════════════════════════════╝
""")


def section(title):
    print(f"\n{'─'*60}")
    print(f"  {title}")
    print(f"{'─'*60}")


def main():
    start_time = time.time()
    quick = '--quick' in sys.argv
    live = '--live' in sys.argv

    logging.basicConfig(
        level=logging.DEBUG if '--verbose' in sys.argv else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    banner()
    out = ensure_output_dir('outputs')
    config = SimulationConfig()

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 1: Default Shot
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 1: Default Shot (15 m/s @ 45°, vacuum)")

    source = ManualFrameSource()
    engine = SimulationEngine(body=BodyParameters(), config=config,
                              frame_source=source)
    launch = LaunchParameters(initial_speed=15.0, angle_deg=45.0)
    engine.fire(launch)
    while engine.is_running:
        source.advance(1 / 60)
    vacuum = engine.last_result
    print(vacuum.summary.summary())

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 2: Air Resistance
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 2: Air Resistance (5 kg, 0.5 m sphere)")

    engine.fire(launch, body=BodyParameters(drag_enabled=True))
    while engine.is_running:
        source.advance(1 / 60)
    dragged = engine.last_result
    print(dragged.summary.summary())
    loss = 100.0 * (1 - dragged.summary.max_range / vacuum.summary.max_range)
    print(f"  Range lost to drag: {loss:.1f}%")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 3: Frame-Rate Independence
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 3: Frame-Rate Independence")

    print(f"  {'Display':>12} {'Samples':>8} {'Range (m)':>10} {'Time (s)':>9}")
    for fps in (30.0, 60.0, 144.0, 2.0):
        shot = run_to_impact(launch, config=config, frame_rate=fps)
        label = f"{fps:.0f} fps" if fps >= 10 else "stalled"
        print(f"  {label:>12} {len(shot.trajectory):>8d} "
              f"{shot.summary.max_range:>10.4f} {shot.summary.total_time:>9.4f}")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 4: Validation
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 4: Validation")
    validate_against_analytic(config=config)
    validate_against_reference_solver(config=config)

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 5: Plots
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 5: Trajectory Plots")

    for speed, angle in ((20.0, 30.0), (20.0, 60.0), (25.0, 45.0)):
        engine.fire(LaunchParameters(initial_speed=speed, angle_deg=angle),
                    body=BodyParameters())
        while engine.is_running:
            source.advance(1 / 60)

    fig = plot_trajectories(engine.history, config,
                            save_path=f'{out}/01_trajectories.png')
    plt.close(fig)
    print(f"  ✓ Saved: {out}/01_trajectories.png  ({len(engine.history)} shots)")

    fig = plot_time_series(dragged.trajectory, save_path=f'{out}/02_time_series.png')
    plt.close(fig)
    print(f"  ✓ Saved: {out}/02_time_series.png")

    fig = plot_dashboard(dragged, save_path=f'{out}/03_dashboard.png')
    plt.close(fig)
    print(f"  ✓ Saved: {out}/03_dashboard.png")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 6 & 7: Animation and Real-Time Run
    # ══════════════════════════════════════════════════════════════════════
    if not quick:
        section("PHASE 6: Shot Animation (GIF)")
        create_shot_animation(launch, BodyParameters(drag_enabled=True), config,
                              save_path=f'{out}/04_shot_animation.gif')
        print(f"  ✓ Saved: {out}/04_shot_animation.gif")

        section("PHASE 7: Real-Time Shot (60 fps wall clock)")
        loop = RealtimeFrameLoop(fps=60.0)
        rt_engine = SimulationEngine(config=config, frame_source=loop)
        rt_engine.fire(launch)
        frames = loop.run(max_duration=30.0)
        rt = rt_engine.last_result
        print(f"  Frames rendered: {frames}")
        print(f"  Range: {rt.summary.max_range:.4f} m "
              f"(synthetic clock: {vacuum.summary.max_range:.4f} m)")
    else:
        section("PHASE 6-7: Animation and real-time run SKIPPED (--quick mode)")

    engine.dispose()

    # ══════════════════════════════════════════════════════════════════════
    #  SUMMARY
    # ══════════════════════════════════════════════════════════════════════
    elapsed = time.time() - start_time
    section("COMPLETE")
    print(f"""
  All outputs saved to: {os.path.abspath(out)}/

  Generated files:
    01_trajectories.png   — Overlay of archived shots
    02_time_series.png    — Position / speed / acceleration vs time
    03_dashboard.png      — Flight data dashboard
    {'04_shot_animation.gif — Animated shot' if not quick else '(animation skipped)'}

  Total runtime: {elapsed:.1f} seconds
""")

    if live:
        run_live(launch, BodyParameters(drag_enabled=True), config)


if __name__ == "__main__":
    main()
