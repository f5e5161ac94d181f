"""
Visualization
=============
Plots and animations that consume simulation output:
  1. Trajectory overlay of every archived shot
  2. Position / speed / acceleration vs time for one shot
  3. Dashboard with flight statistics
  4. Animated shot (GIF), rendered frame by frame from the engine
  5. Live window driven by a matplotlib timer

Nothing here feeds back into the physics; the engine only sees
fire / reset commands and frame timestamps.
"""

import os
import time
from typing import List, Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.gridspec as gridspec

from .engine import (
    IMPACT_CUE_DURATION, FrameSnapshot, ManualFrameSource, ShotResult,
    SimulationConfig, SimulationEngine,
)
from .projectile import BodyParameters, LaunchParameters
from .recorder import Trajectory


# ── Style Configuration ───────────────────────────────────────────────────
STYLE = {
    'bg_color': '#0a0a0a',
    'text_color': '#e0e0e0',
    'grid_color': '#333333',
    'accent_colors': ['#00d4ff', '#ff6b35', '#00e676', '#ffeb3b',
                      '#e040fb', '#ff5252'],
    'ground_color': '#4ade80',
}

VECTOR_COLORS = {
    'velocity': '#22c55e',
    'acceleration': '#facc15',
    'force': '#f97316',
}


def _apply_dark_style(fig, axes):
    """Apply consistent dark theme to figure and axes."""
    fig.patch.set_facecolor(STYLE['bg_color'])
    if not isinstance(axes, np.ndarray):
        axes = [axes]
    else:
        axes = axes.flatten()

    for ax in axes:
        ax.set_facecolor(STYLE['bg_color'])
        ax.tick_params(colors=STYLE['text_color'])
        ax.xaxis.label.set_color(STYLE['text_color'])
        ax.yaxis.label.set_color(STYLE['text_color'])
        ax.title.set_color(STYLE['text_color'])
        ax.grid(True, color=STYLE['grid_color'], alpha=0.4, linewidth=0.5)
        for spine in ax.spines.values():
            spine.set_color(STYLE['grid_color'])


def _legend(ax):
    ax.legend(fontsize=9, facecolor='#1a1a1a', edgecolor='#444',
              labelcolor=STYLE['text_color'])


def ensure_output_dir(path: str = 'outputs'):
    os.makedirs(path, exist_ok=True)
    return path


def _save(fig, save_path):
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight',
                    facecolor=STYLE['bg_color'])


# ══════════════════════════════════════════════════════════════════════════
#  1. Trajectory overlay
# ══════════════════════════════════════════════════════════════════════════

def plot_trajectories(history: Sequence[Trajectory],
                      config: Optional[SimulationConfig] = None,
                      save_path: str = None) -> plt.Figure:
    """Every archived path, newest highlighted, with the impact distance."""
    config = config or SimulationConfig()
    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)

    colors = STYLE['accent_colors']
    for i, traj in enumerate(history):
        newest = i == len(history) - 1
        ax.plot(traj.x, traj.y, color=colors[i % len(colors)],
                linewidth=2.5 if newest else 1.5,
                alpha=1.0 if newest else 0.5,
                label=f'Shot {i + 1}')

    if history:
        last = history[-1].last_sample.position
        distance = last.x - config.cannon.pivot_x
        ax.plot(last.x, 0, 'x', color='#ff5252', markersize=12,
                markeredgewidth=3, zorder=5)
        ax.annotate(f'{distance:.2f} m', (last.x, 0), textcoords='offset points',
                    xytext=(0, 12), ha='center', color=STYLE['text_color'],
                    fontweight='bold')

    ax.axhline(0, color=STYLE['ground_color'], linewidth=3)
    ax.plot(config.cannon.pivot_x, config.cannon.pivot_y, 's',
            color='#64748b', markersize=12, label='Cannon')
    _legend(ax)
    ax.set_xlabel('Distance (m)', fontsize=12)
    ax.set_ylabel('Height (m)', fontsize=12)
    ax.set_title('Cannon Shots', fontsize=13, fontweight='bold')
    ax.set_ylim(bottom=-0.5)
    ax.set_xlim(left=0)
    ax.set_aspect('equal', adjustable='datalim')

    plt.tight_layout()
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  2. Time series
# ══════════════════════════════════════════════════════════════════════════

def plot_time_series(trajectory: Trajectory, save_path: str = None) -> plt.Figure:
    """Position, speed and acceleration magnitude against time."""
    fig, axes = plt.subplots(1, 3, figsize=(18, 5))
    _apply_dark_style(fig, axes)
    t = trajectory.time

    ax = axes[0]
    ax.plot(t, trajectory.x, color='#8884d8', linewidth=2, label='Position X')
    ax.plot(t, trajectory.y, color='#82ca9d', linewidth=2, label='Position Y')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Position (m)')
    ax.set_title('POSITION', fontweight='bold')
    _legend(ax)

    ax = axes[1]
    ax.plot(t, trajectory.speed, color='#ffc658', linewidth=2)
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Speed (m/s)')
    ax.set_title('SPEED', fontweight='bold')

    ax = axes[2]
    ax.plot(t, trajectory.acceleration, color='#ff7300', linewidth=2)
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Acceleration (m/s²)')
    ax.set_title('ACCELERATION', fontweight='bold')

    plt.tight_layout()
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  3. Dashboard
# ══════════════════════════════════════════════════════════════════════════

def plot_dashboard(shot: ShotResult, save_path: str = None) -> plt.Figure:
    """Trajectory, flight data panel and time series of one shot."""
    traj = shot.trajectory
    s = shot.summary

    fig = plt.figure(figsize=(18, 10))
    fig.patch.set_facecolor(STYLE['bg_color'])
    gs = gridspec.GridSpec(2, 3, figure=fig, hspace=0.35, wspace=0.3)

    # ── Trajectory (top, spans 2 cols) ──
    ax1 = fig.add_subplot(gs[0, :2])
    _apply_dark_style(fig, ax1)
    ax1.plot(traj.x, traj.y, color='#00d4ff', linewidth=2.5)
    idx_max = int(np.argmax(traj.y))
    ax1.plot(traj.x[idx_max], traj.y[idx_max], '^', color='#ffeb3b', markersize=12)
    ax1.plot(traj.x[-1], 0, 'x', color='#ff5252', markersize=14, markeredgewidth=3)
    ax1.set_xlabel('Distance (m)')
    ax1.set_ylabel('Height (m)')
    ax1.set_title('TRAJECTORY', fontweight='bold', fontsize=13)
    ax1.set_ylim(bottom=0)

    # ── Metrics panel (top-right) ──
    ax_info = fig.add_subplot(gs[0, 2])
    ax_info.set_facecolor('#111111')
    ax_info.axis('off')

    metrics = [
        ('LAUNCH', f'{shot.launch.initial_speed:.1f} m/s @ {shot.launch.angle_deg:.0f}°'),
        ('MASS', f'{shot.body.mass:.1f} kg'),
        ('DIAMETER', f'{shot.body.diameter:.2f} m'),
        ('AIR DRAG', 'ON' if shot.body.drag_enabled else 'OFF'),
        ('RANGE', f'{s.max_range:.2f} m'),
        ('MAX HEIGHT', f'{s.max_height:.2f} m'),
        ('FLIGHT TIME', f'{s.total_time:.2f} s'),
        ('IMPACT VEL', f'{s.impact_velocity:.2f} m/s'),
    ]
    for i, (label, value) in enumerate(metrics):
        y_pos = 0.92 - i * 0.115
        ax_info.text(0.05, y_pos, label, fontsize=10, fontweight='bold',
                     color='#888888', transform=ax_info.transAxes, fontfamily='monospace')
        ax_info.text(0.95, y_pos, value, fontsize=11, fontweight='bold',
                     color='#00d4ff', transform=ax_info.transAxes,
                     ha='right', fontfamily='monospace')
    ax_info.set_title('FLIGHT DATA', fontweight='bold',
                      color=STYLE['text_color'], fontsize=13, pad=10)

    # ── Bottom row: time series ──
    series = [
        (traj.y, 'Height (m)', 'HEIGHT', '#82ca9d'),
        (traj.speed, 'Speed (m/s)', 'SPEED', '#ffc658'),
        (traj.acceleration, 'Acceleration (m/s²)', 'ACCELERATION', '#ff7300'),
    ]
    for col, (values, ylabel, title, color) in enumerate(series):
        ax = fig.add_subplot(gs[1, col])
        _apply_dark_style(fig, ax)
        ax.plot(traj.time, values, color=color, linewidth=2)
        ax.set_xlabel('Time (s)')
        ax.set_ylabel(ylabel)
        ax.set_title(title, fontweight='bold')

    fig.suptitle('CANNON SHOT DASHBOARD', fontsize=16, fontweight='bold',
                 color='#00d4ff', y=0.98)
    _save(fig, save_path)
    return fig


# ══════════════════════════════════════════════════════════════════════════
#  4. Animated shot (GIF)
# ══════════════════════════════════════════════════════════════════════════

def record_frames(launch: LaunchParameters, body: Optional[BodyParameters] = None,
                  config: Optional[SimulationConfig] = None,
                  fps: float = 30.0) -> List[FrameSnapshot]:
    """
    Run a shot with the display ticking at `fps` and keep the snapshot
    the engine publishes on every frame.
    """
    frames: List[FrameSnapshot] = []
    source = ManualFrameSource()
    engine = SimulationEngine(body=body, config=config, frame_source=source,
                              on_update=frames.append)
    engine.fire(launch)
    while engine.is_running:
        source.advance(1.0 / fps)
    return frames


def _draw_vectors(ax, snapshot: FrameSnapshot, artists, scales):
    for name, vec in (('velocity', snapshot.velocity),
                      ('acceleration', snapshot.acceleration),
                      ('force', snapshot.force)):
        k = scales[name]
        artists[name].set_data(
            [snapshot.position.x, snapshot.position.x + vec.x * k],
            [snapshot.position.y, snapshot.position.y + vec.y * k])


def create_shot_animation(launch: LaunchParameters,
                          body: Optional[BodyParameters] = None,
                          config: Optional[SimulationConfig] = None,
                          save_path: str = 'outputs/shot_anim.gif',
                          fps: float = 30.0) -> str:
    """Create animated GIF of one shot with its velocity/acceleration/force vectors."""
    from matplotlib.animation import FuncAnimation, PillowWriter

    body = body or BodyParameters()
    frames = record_frames(launch, body, config, fps)
    xs = [f.position.x for f in frames]
    ys = [f.position.y for f in frames]

    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)
    ax.set_xlim(0, max(xs) * 1.1 + 1.0)
    ax.set_ylim(-0.5, max(ys) * 1.25 + 1.0)
    ax.axhline(0, color=STYLE['ground_color'], linewidth=3)
    ax.set_xlabel('Distance (m)', fontsize=12)
    ax.set_ylabel('Height (m)', fontsize=12)
    ax.set_title(f'Cannon Shot — v₀={launch.initial_speed:.1f} m/s, '
                 f'θ={launch.angle_deg:.0f}°', fontsize=14, fontweight='bold')

    trail_line, = ax.plot([], [], color='#00d4ff', linewidth=1.5, alpha=0.6,
                          linestyle='--')
    ball, = ax.plot([], [], 'o', color='#e0e0e0', markersize=8)
    arrows = {name: ax.plot([], [], color=color, linewidth=2)[0]
              for name, color in VECTOR_COLORS.items()}
    scales = {'velocity': 0.15, 'acceleration': 0.15, 'force': 0.15 / body.mass}
    info = ax.text(0.02, 0.95, '', transform=ax.transAxes,
                   color=STYLE['text_color'], fontsize=11, fontfamily='monospace')

    # Hold the final frame for the impact cue
    hold = int(round(IMPACT_CUE_DURATION * fps))
    total = len(frames) + hold

    def animate(i):
        idx = min(i, len(frames) - 1)
        snap = frames[idx]
        trail_line.set_data(xs[:idx + 1], ys[:idx + 1])
        ball.set_data([snap.position.x], [snap.position.y])
        _draw_vectors(ax, snap, arrows, scales)
        info.set_text(f't={snap.elapsed_time:.2f}s | '
                      f'v={snap.velocity.norm():.1f} m/s | '
                      f'y={snap.position.y:.2f} m')
        return (trail_line, ball, info, *arrows.values())

    anim = FuncAnimation(fig, animate, frames=total, interval=1000 / fps, blit=True)
    anim.save(save_path, writer=PillowWriter(fps=int(fps)),
              savefig_kwargs={'facecolor': STYLE['bg_color']})
    plt.close(fig)
    print(f"  Animation saved: {save_path}")
    return save_path


# ══════════════════════════════════════════════════════════════════════════
#  5. Live window
# ══════════════════════════════════════════════════════════════════════════

def run_live(launch: LaunchParameters, body: Optional[BodyParameters] = None,
             config: Optional[SimulationConfig] = None,
             fps: float = 60.0) -> SimulationEngine:
    """
    Open a window and fire one shot in real time. The matplotlib timer
    is the frame host: every tick hands the wall clock to the engine.
    """
    from matplotlib.animation import FuncAnimation

    config = config or SimulationConfig()
    body = body or BodyParameters()
    engine = SimulationEngine(body=body, config=config)
    preview = _preview_extent(launch, body, config)

    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)
    ax.set_xlim(0, preview[0])
    ax.set_ylim(-0.5, preview[1])
    ax.axhline(0, color=STYLE['ground_color'], linewidth=3)
    ax.set_xlabel('Distance (m)')
    ax.set_ylabel('Height (m)')
    trail_line, = ax.plot([], [], color='#00d4ff', linewidth=2, linestyle='--')
    ball, = ax.plot([], [], 'o', color='#e0e0e0', markersize=8)
    info = ax.text(0.02, 0.95, '', transform=ax.transAxes,
                   color=STYLE['text_color'], fontsize=11, fontfamily='monospace')

    def tick(_):
        if engine.is_running:
            engine.on_frame(time.perf_counter())
        path = engine.current_path() or (
            list(engine.history[-1].path) if engine.history else [])
        trail_line.set_data([p.x for p in path], [p.y for p in path])
        snap = engine.snapshot()
        if snap is not None:
            ball.set_data([snap.position.x], [snap.position.y])
            info.set_text(f't={snap.elapsed_time:.2f}s  v={snap.velocity.norm():.1f} m/s')
        elif engine.last_result is not None:
            info.set_text(engine.last_result.summary.summary())
        return trail_line, ball, info

    engine.fire(launch, now=time.perf_counter())
    anim = FuncAnimation(fig, tick, interval=1000 / fps, blit=False,
                         cache_frame_data=False)
    plt.show()
    engine.dispose()
    del anim
    return engine


def _preview_extent(launch, body, config):
    """Axis limits from a synthetic-clock dry run of the same shot."""
    frames = record_frames(launch, body, config, fps=30.0)
    max_x = max(f.position.x for f in frames)
    max_y = max(f.position.y for f in frames)
    return max_x * 1.1 + 1.0, max_y * 1.25 + 1.0
