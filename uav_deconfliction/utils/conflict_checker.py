import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from uav_deconfliction.config import DEFAULT_TIME_STEP, TIME_EPSILON
from uav_deconfliction.exceptions import ConflictCheckError, InvalidInputError
from uav_deconfliction.utils.input_loader import Mission, Trajectory
from uav_deconfliction.utils.interpolation import interpolate_positions
from uav_deconfliction.utils.time_utils import format_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    """
    One sampled instant at which two drones are closer than their combined buffers.

    ``location`` is the midpoint between the two interpolated positions and
    ``distance`` the separation measured at ``time``.
    """
    location: Tuple[float, float, float]
    time: float
    drone1: str
    drone2: str
    distance: float

    def to_dict(self) -> Dict:
        return {
            "time": self.time,
            "location": list(self.location),
            "drone1": self.drone1,
            "drone2": self.drone2,
            "distance": self.distance
        }

    def __repr__(self):
        loc = ", ".join(f"{c:.1f}" for c in self.location)
        return (f"Conflict({self.drone1} vs {self.drone2} at ({loc}), "
                f"t={format_time(self.time)}, distance={self.distance:.2f}m)")


@dataclass(frozen=True)
class ConflictInterval:
    """Consecutive conflict samples of the same pair, merged into one span."""
    drone1: str
    drone2: str
    start_time: float
    end_time: float
    min_distance: float
    closest_location: Tuple[float, float, float]
    samples: int

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


def _validate_time_step(time_step: float) -> None:
    if not time_step > 0:
        raise InvalidInputError(f"Time step must be positive, got {time_step}")


def _time_tolerance(*times: float) -> float:
    # Epoch-scale timestamps carry rounding error of a few ulps, far above TIME_EPSILON
    return max(TIME_EPSILON, 4 * float(np.spacing(max(abs(t) for t in times))))


def sample_times(t_start: float, t_end: float, time_step: float) -> np.ndarray:
    """Instants t_start, t_start + step, ... up to and including t_end."""
    span = t_end - t_start
    steps = span / time_step
    nearest = int(round(steps))
    if abs(span - nearest * time_step) <= _time_tolerance(t_start, t_end):
        times = t_start + time_step * np.arange(nearest + 1, dtype=float)
        times[-1] = t_end
        return times
    count = int(math.floor(steps)) + 1
    return t_start + time_step * np.arange(count, dtype=float)


def check_pair_conflicts(traj1: Trajectory, traj2: Trajectory,
                         time_step: float = DEFAULT_TIME_STEP) -> List[Conflict]:
    """
    Sample both trajectories over their shared time window and report every instant at
    which they are closer than ``traj1.safety_buffer + traj2.safety_buffer``.

    Trajectories that are never airborne at the same time cannot conflict, so an empty
    list is returned for them regardless of geometry.
    """
    _validate_time_step(time_step)

    t_start = max(traj1.start_time, traj2.start_time)
    t_end = min(traj1.end_time, traj2.end_time)
    if t_start > t_end:
        return []

    times = sample_times(t_start, t_end, time_step)
    pos1 = interpolate_positions(traj1, times)
    pos2 = interpolate_positions(traj2, times)

    distances = np.linalg.norm(pos1 - pos2, axis=1)
    min_dist = traj1.safety_buffer + traj2.safety_buffer

    conflicts = []
    for i in np.flatnonzero(distances < min_dist):
        midpoint = (pos1[i] + pos2[i]) / 2
        conflicts.append(Conflict(
            location=(float(midpoint[0]), float(midpoint[1]), float(midpoint[2])),
            time=float(times[i]),
            drone1=traj1.drone_id,
            drone2=traj2.drone_id,
            distance=float(distances[i])
        ))
    return conflicts


def count_conflicts(trajectory: Trajectory, others: Sequence[Trajectory],
                    time_step: float = DEFAULT_TIME_STEP) -> int:
    return sum(len(check_pair_conflicts(trajectory, other, time_step)) for other in others)


def _scan_other(primary: Trajectory, other: Trajectory, time_step: float) -> List[Conflict]:
    try:
        conflicts = check_pair_conflicts(primary, other, time_step)
    except Exception as e:
        logger.error("Conflict check %s vs %s failed: %s", primary.drone_id, other.drone_id, e)
        raise ConflictCheckError(primary.drone_id, other.drone_id, str(e)) from e
    logger.debug("%s vs %s: %d conflict samples", primary.drone_id, other.drone_id, len(conflicts))
    return conflicts


def check_conflicts(mission: Mission, time_step: float = DEFAULT_TIME_STEP,
                    max_workers: Optional[int] = None) -> List[Conflict]:
    """
    Check the mission's primary trajectory against every other trajectory.

    Conflicts are returned grouped by the order of ``mission.others`` and, within each
    pair, in chronological order. With ``max_workers`` above one the pairs are scanned
    on a thread pool; the result order does not change.

    Raises:
        InvalidInputError: the primary has no waypoints or ``time_step <= 0``.
        ConflictCheckError: scanning one of the pairs failed.
    """
    _validate_time_step(time_step)
    if not mission.primary.waypoints:
        raise InvalidInputError("Primary trajectory has no waypoints")

    primary = mission.primary
    others = list(mission.others)
    logger.info("Checking %s against %d other trajectories (step %.3fs)",
                primary.drone_id, len(others), time_step)

    if max_workers is not None and max_workers > 1 and len(others) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            per_other = list(pool.map(lambda other: _scan_other(primary, other, time_step), others))
    else:
        per_other = [_scan_other(primary, other, time_step) for other in others]

    all_conflicts = [conflict for conflicts in per_other for conflict in conflicts]
    logger.info("Found %d conflict samples for %s", len(all_conflicts), primary.drone_id)
    return all_conflicts


def merge_conflict_intervals(conflicts: Sequence[Conflict],
                             time_step: float = DEFAULT_TIME_STEP) -> List[ConflictInterval]:
    """
    Merge per-sample conflicts of the same drone pair whose times are one step apart.

    Intervals are ordered by pair of first appearance, then by start time.
    """
    _validate_time_step(time_step)

    by_pair: Dict[Tuple[str, str], List[Conflict]] = {}
    for conflict in conflicts:
        by_pair.setdefault((conflict.drone1, conflict.drone2), []).append(conflict)

    intervals = []
    for (drone1, drone2), samples in by_pair.items():
        samples = sorted(samples, key=lambda c: c.time)
        run = [samples[0]]
        for conflict in samples[1:]:
            if conflict.time - run[-1].time <= time_step + _time_tolerance(conflict.time):
                run.append(conflict)
            else:
                intervals.append(_close_interval(drone1, drone2, run))
                run = [conflict]
        intervals.append(_close_interval(drone1, drone2, run))
    return intervals


def _close_interval(drone1: str, drone2: str, run: List[Conflict]) -> ConflictInterval:
    closest = min(run, key=lambda c: c.distance)
    return ConflictInterval(
        drone1=drone1,
        drone2=drone2,
        start_time=run[0].time,
        end_time=run[-1].time,
        min_distance=closest.distance,
        closest_location=closest.location,
        samples=len(run)
    )


def build_conflict_report(conflicts: Sequence[Conflict]) -> Dict:
    """Summarize a conflict list for display or export."""
    report = {
        "status": "clear",
        "total_conflicts": len(conflicts),
        "conflicts": [c.to_dict() for c in conflicts],
        "conflicts_per_drone": {},
        "closest_approach": None
    }
    if not conflicts:
        return report

    report["status"] = "conflict_detected"
    for conflict in conflicts:
        counts = report["conflicts_per_drone"]
        counts[conflict.drone2] = counts.get(conflict.drone2, 0) + 1
    report["closest_approach"] = min(conflicts, key=lambda c: c.distance).to_dict()
    return report
