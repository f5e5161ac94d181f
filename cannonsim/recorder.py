"""
Trajectory Recording
====================
Collects the samples emitted by the integrator into per-shot records.

Each shot keeps two index-aligned sequences:
  - path points (position only) for cheap live drawing
  - full samples (time / position / speed / acceleration) for charts

A trajectory is frozen exactly once, when the ball reaches the ground,
and is then appended to the history of past shots.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .vector import Vector2


class TrajectoryClosedError(RuntimeError):
    """Raised when writing to a recorder with no open trajectory."""


@dataclass(frozen=True)
class SimulationSample:
    """Snapshot of the ball at one instant."""
    time: float
    position: Vector2
    speed: float
    acceleration_magnitude: float


@dataclass(frozen=True)
class Trajectory:
    """Complete, immutable record of one shot."""
    samples: Tuple[SimulationSample, ...]
    path: Tuple[Vector2, ...]

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def last_sample(self) -> SimulationSample:
        return self.samples[-1]

    # Arrays, each of shape (N,)
    @property
    def time(self) -> np.ndarray:
        return np.array([s.time for s in self.samples])

    @property
    def x(self) -> np.ndarray:
        return np.array([s.position.x for s in self.samples])

    @property
    def y(self) -> np.ndarray:
        return np.array([s.position.y for s in self.samples])

    @property
    def speed(self) -> np.ndarray:
        return np.array([s.speed for s in self.samples])

    @property
    def acceleration(self) -> np.ndarray:
        return np.array([s.acceleration_magnitude for s in self.samples])


class TrajectoryRecorder:
    """
    Accumulates the live shot and the archive of finished ones.
    """

    def __init__(self):
        self._samples: Optional[List[SimulationSample]] = None
        self._path: List[Vector2] = []
        self.history: List[Trajectory] = []

    @property
    def is_open(self) -> bool:
        return self._samples is not None

    def start(self, seed: SimulationSample) -> None:
        """Open a new trajectory; an unfinished one is dropped."""
        self._samples = [seed]
        self._path = [seed.position]

    def append(self, sample: SimulationSample) -> None:
        if self._samples is None:
            raise TrajectoryClosedError("no trajectory is being recorded")
        self._samples.append(sample)
        self._path.append(sample.position)

    def finalize(self) -> Trajectory:
        """Freeze the live trajectory and archive it."""
        if self._samples is None:
            raise TrajectoryClosedError("no trajectory to finalize")
        trajectory = Trajectory(samples=tuple(self._samples),
                                path=tuple(self._path))
        self.history.append(trajectory)
        self._samples = None
        self._path = []
        return trajectory

    def current_path(self) -> List[Vector2]:
        """Path of the shot in flight (empty when idle)."""
        return list(self._path)

    def current_samples(self) -> List[SimulationSample]:
        return list(self._samples or [])

    def discard(self) -> None:
        self._samples = None
        self._path = []

    def clear_history(self) -> None:
        self.history = []
