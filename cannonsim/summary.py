"""
Flight Summary
==============
End-of-flight statistics derived from a finished trajectory.
"""

from dataclasses import dataclass

from .recorder import Trajectory


@dataclass(frozen=True)
class FlightSummary:
    """Aggregate statistics of one shot."""
    max_range: float          # m, measured from the cannon pivot
    max_height: float         # m above ground
    total_time: float         # s
    impact_velocity: float    # m/s

    def summary(self) -> str:
        """Human-readable summary string."""
        lines = [
            f"╔══════════════════════════════════════╗",
            f"║  FLIGHT SUMMARY                      ║",
            f"╠══════════════════════════════════════╣",
            f"║  Range        : {self.max_range:>10.2f} m{'':<9s} ║",
            f"║  Max height   : {self.max_height:>10.2f} m{'':<9s} ║",
            f"║  Flight time  : {self.total_time:>10.3f} s{'':<9s} ║",
            f"║  Impact vel   : {self.impact_velocity:>10.2f} m/s{'':<7s} ║",
            f"╚══════════════════════════════════════╝",
        ]
        return '\n'.join(lines)


def compute_flight_summary(trajectory: Trajectory, impact_velocity: float,
                           origin_x: float = 0.0) -> FlightSummary:
    """
    Summarise a finalized trajectory.

    Parameters
    ----------
    trajectory : Trajectory
        Finished shot with at least one sample
    impact_velocity : float
        Speed of the final integrator state (m/s)
    origin_x : float
        Horizontal position of the cannon pivot; range is measured from it
    """
    if len(trajectory) == 0:
        raise ValueError("cannot summarise an empty trajectory")

    last = trajectory.last_sample
    max_height = max(s.position.y for s in trajectory.samples)

    return FlightSummary(
        max_range=last.position.x - origin_x,
        max_height=max(max_height, 0.0),
        total_time=last.time,
        impact_velocity=impact_velocity,
    )
