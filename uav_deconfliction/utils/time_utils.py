from datetime import datetime, timezone
from typing import Iterable, Tuple, Union

from uav_deconfliction.exceptions import InvalidInputError

TimeLike = Union[int, float, str, datetime]


def to_seconds(value: TimeLike) -> float:
    """Convert a waypoint time (seconds, ISO-8601 string or datetime) to float seconds.

    Naive datetimes and ISO strings without an offset are read as UTC.
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"Not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidInputError(f"Unparseable timestamp {value!r}") from e
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    raise InvalidInputError(f"Not a timestamp: {value!r}")


def format_time(seconds: float) -> str:
    # Mission-relative times stay numeric; epoch times read better as dates
    if abs(seconds) < 1e8:
        return f"{seconds:.1f}s"
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat(timespec="milliseconds")


def get_time_bounds(trajectories: Iterable) -> Tuple[float, float]:
    all_times = []
    for trajectory in trajectories:
        all_times.extend(wp.t for wp in trajectory.waypoints)
    if not all_times:
        raise InvalidInputError("No waypoints to take time bounds from")
    return min(all_times), max(all_times)
