import os

from uav_deconfliction.utils.input_loader import Trajectory, Waypoint

FIXTURE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "input", "missions.json")

# 2023-01-01T00:00:00Z
T0 = 1672531200.0


def straight(drone_id, start, end, t_start, t_end, buffer=5.0, speed=10.0):
    return Trajectory(
        (Waypoint(*start, t=t_start), Waypoint(*end, t=t_end)),
        drone_id, speed, buffer
    )


def corridor_drone(t_offset=0.0):
    """DroneA: (0,0,10) -> (100,0,10) over one minute."""
    return straight("DroneA", (0.0, 0.0, 10.0), (100.0, 0.0, 10.0), T0 + t_offset, T0 + t_offset + 60)


def crossing_drone():
    """DroneB: crosses DroneA's corridor at x=50 between 30s and 90s."""
    return straight("DroneB", (50.0, -5.0, 10.0), (50.0, 5.0, 10.0), T0 + 30, T0 + 90)
