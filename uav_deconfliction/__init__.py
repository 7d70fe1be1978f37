from uav_deconfliction.exceptions import ConflictCheckError, DeconflictionError, InvalidInputError
from uav_deconfliction.models.trajectory_optimizer import optimize_trajectory
from uav_deconfliction.utils.conflict_checker import Conflict, check_conflicts
from uav_deconfliction.utils.input_loader import Mission, Trajectory, Waypoint

__version__ = "0.1.0"

__all__ = [
    "Conflict",
    "ConflictCheckError",
    "DeconflictionError",
    "InvalidInputError",
    "Mission",
    "Trajectory",
    "Waypoint",
    "check_conflicts",
    "optimize_trajectory",
]
