import numpy as np
from typing import Tuple

from uav_deconfliction.utils.input_loader import Trajectory


def interpolate_position(trajectory: Trajectory, t: float) -> Tuple[float, float, float]:
    """Linearly interpolate the drone position at time t, clamped to the first/last waypoint."""
    waypoints = trajectory.waypoints

    if t <= waypoints[0].t:
        return waypoints[0].position
    if t >= waypoints[-1].t:
        return waypoints[-1].position

    for i in range(len(waypoints) - 1):
        wp1, wp2 = waypoints[i], waypoints[i + 1]
        if wp1.t <= t <= wp2.t:
            duration = wp2.t - wp1.t
            ratio = (t - wp1.t) / duration if duration > 0 else 0.0

            x = wp1.x + ratio * (wp2.x - wp1.x)
            y = wp1.y + ratio * (wp2.y - wp1.y)
            z = wp1.z + ratio * (wp2.z - wp1.z)

            return (x, y, z)

    return waypoints[-1].position


def interpolate_positions(trajectory: Trajectory, times: np.ndarray) -> np.ndarray:
    """
    Vectorized interpolate_position over an array of times.

    Returns an (n, 3) array. Each row equals interpolate_position(trajectory, times[i]):
    the same segment is chosen (the first one whose closed interval holds t) and
    zero-duration segments use ratio 0.
    """
    times = np.asarray(times, dtype=float)
    points = np.array([wp.position for wp in trajectory.waypoints], dtype=float)
    stamps = np.array([wp.t for wp in trajectory.waypoints], dtype=float)

    if len(stamps) == 1:
        return np.tile(points[0], (len(times), 1))

    clamped = np.clip(times, stamps[0], stamps[-1])

    # First segment i with stamps[i] <= t <= stamps[i + 1]
    seg = np.searchsorted(stamps, clamped, side='left')
    seg = np.clip(seg, 1, len(stamps) - 1) - 1

    t1 = stamps[seg]
    duration = stamps[seg + 1] - t1
    safe_duration = np.where(duration > 0, duration, 1.0)
    ratio = np.where(duration > 0, (clamped - t1) / safe_duration, 0.0)

    p1 = points[seg]
    p2 = points[seg + 1]
    positions = p1 + ratio[:, None] * (p2 - p1)

    # Outside the time span the boundary waypoint is returned as-is
    positions[times <= stamps[0]] = points[0]
    positions[times >= stamps[-1]] = points[-1]
    return positions
