import numpy as np

from uav_deconfliction.config import COST_TIME_WEIGHT
from uav_deconfliction.utils.input_loader import Trajectory


def calculate_path_length(trajectory: Trajectory) -> float:
    """Calculate total 3D path length"""
    if len(trajectory.waypoints) < 2:
        return 0.0
    points = np.array([wp.position for wp in trajectory.waypoints], dtype=float)
    return float(np.sum(np.linalg.norm(np.diff(points, axis=0), axis=1)))


def trajectory_cost(trajectory: Trajectory, time_weight: float = COST_TIME_WEIGHT) -> float:
    """Path length in meters plus ``time_weight`` times the elapsed flight time in seconds."""
    if len(trajectory.waypoints) < 2:
        return 0.0
    return calculate_path_length(trajectory) + time_weight * trajectory.duration
