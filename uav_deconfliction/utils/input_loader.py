import json
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from uav_deconfliction.exceptions import InvalidInputError
from uav_deconfliction.utils.time_utils import to_seconds


@dataclass(frozen=True)
class Waypoint:
    """A planned 3D position (meters) at one instant (seconds)."""
    x: float
    y: float
    z: float
    t: float

    def __post_init__(self):
        for name in ("x", "y", "z", "t"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidInputError(f"Waypoint {name} must be finite, got {getattr(self, name)!r}")

    @property
    def position(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.z, self.t)

    def __repr__(self):
        return f"Waypoint(x={self.x}, y={self.y}, z={self.z}, t={self.t})"


@dataclass(frozen=True)
class Trajectory:
    """
    A time-ordered path for one drone.

    Waypoints are joined by straight segments flown at constant rate between their
    timestamps. ``speed`` is informational only; ``safety_buffer`` is the radius in
    meters the drone claims around itself.
    """
    waypoints: Tuple[Waypoint, ...]
    drone_id: str
    speed: float = 0.0
    safety_buffer: float = 0.0

    def __post_init__(self):
        waypoints = tuple(self.waypoints)
        object.__setattr__(self, "waypoints", waypoints)
        if not waypoints:
            raise InvalidInputError(f"Trajectory {self.drone_id} has no waypoints")
        if not (math.isfinite(self.safety_buffer) and self.safety_buffer >= 0):
            raise InvalidInputError(
                f"Trajectory {self.drone_id} needs a finite, non-negative safety buffer, got {self.safety_buffer}")
        for i in range(len(waypoints) - 1):
            if waypoints[i].t > waypoints[i + 1].t:
                raise InvalidInputError(
                    f"Waypoints of {self.drone_id} must be sorted by time. Found unsorted at index {i}.")

    @property
    def start_time(self) -> float:
        return self.waypoints[0].t

    @property
    def end_time(self) -> float:
        return self.waypoints[-1].t

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def get_path(self) -> List[tuple]:
        return [wp.to_tuple() for wp in self.waypoints]

    def with_waypoints(self, waypoints: Sequence[Waypoint]) -> "Trajectory":
        """Same drone, new path."""
        return Trajectory(tuple(waypoints), self.drone_id, self.speed, self.safety_buffer)

    def __repr__(self):
        return (f"Trajectory(drone_id={self.drone_id}, waypoints={len(self.waypoints)}, "
                f"t=[{self.start_time}, {self.end_time}], safety_buffer={self.safety_buffer})")


@dataclass(frozen=True)
class Mission:
    """One deconfliction query: is ``primary`` safe against every trajectory in ``others``."""
    primary: Trajectory
    others: Tuple[Trajectory, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "others", tuple(self.others))


def trajectory_from_dict(entry: Dict) -> Trajectory:
    try:
        waypoints = [
            Waypoint(
                x=float(wp['x']),
                y=float(wp['y']),
                z=float(wp.get('z', 0.0)),
                t=to_seconds(wp['t'])
            ) for wp in entry['waypoints']
        ]
        return Trajectory(
            waypoints=tuple(waypoints),
            drone_id=str(entry['drone_id']),
            speed=float(entry.get('speed', 0.0)),
            safety_buffer=float(entry.get('safety_buffer', 0.0))
        )
    except InvalidInputError:
        raise
    except KeyError as e:
        raise InvalidInputError(f"Trajectory entry is missing field {e}") from e
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Malformed trajectory entry: {e}") from e


def trajectory_to_dict(trajectory: Trajectory) -> Dict:
    return {
        "drone_id": trajectory.drone_id,
        "speed": trajectory.speed,
        "safety_buffer": trajectory.safety_buffer,
        "waypoints": [{"x": wp.x, "y": wp.y, "z": wp.z, "t": wp.t} for wp in trajectory.waypoints]
    }


def load_trajectories(file_path: str) -> List[Trajectory]:
    with open(file_path, 'r') as f:
        data = json.load(f)

    if not isinstance(data, dict) or not isinstance(data.get('trajectories'), list):
        raise InvalidInputError(f"{file_path} has no 'trajectories' list")
    return [trajectory_from_dict(entry) for entry in data['trajectories']]


def load_mission(file_path: str, primary_id: Optional[str] = None) -> Mission:
    """
    Build a Mission from a trajectories file.

    The trajectory whose id is ``primary_id`` becomes the primary; without an id the
    first trajectory in the file is used. Every other trajectory is checked against it.
    """
    trajectories = load_trajectories(file_path)
    if not trajectories:
        raise InvalidInputError(f"{file_path} contains no trajectories")

    if primary_id is None:
        return Mission(trajectories[0], tuple(trajectories[1:]))

    for i, trajectory in enumerate(trajectories):
        if trajectory.drone_id == primary_id:
            return Mission(trajectory, tuple(trajectories[:i] + trajectories[i + 1:]))
    raise InvalidInputError(f"Drone {primary_id} not found in {file_path}")


def save_trajectories(trajectories: Sequence[Trajectory], file_path: str) -> None:
    with open(file_path, 'w') as f:
        json.dump({"trajectories": [trajectory_to_dict(t) for t in trajectories]}, f, indent=2)
