import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from uav_deconfliction.config import (BOUNDS_DIMENSIONS, DEFAULT_MAX_ITERATIONS,
                                      DEFAULT_POPULATION_SIZE, TIME_OFFSET_SCALE_MS,
                                      OptimizerParameters)
from uav_deconfliction.exceptions import InvalidInputError
from uav_deconfliction.models.cost_model import trajectory_cost
from uav_deconfliction.models.search import DifferentialEvolutionSearch, SearchStrategy
from uav_deconfliction.utils.conflict_checker import count_conflicts
from uav_deconfliction.utils.input_loader import Trajectory, Waypoint

logger = logging.getLogger(__name__)

Bounds = Tuple[Tuple[float, float], ...]


def validate_bounds(bounds: Sequence[Sequence[float]]) -> Bounds:
    """
    Check the (x, y, z, time offset) search bounds and return them as float pairs.

    x/y/z bounds are absolute coordinates in meters; the time bound limits each
    waypoint's time shift in seconds and must contain 0.
    """
    if bounds is None or len(bounds) != BOUNDS_DIMENSIONS:
        raise InvalidInputError(
            f"Expected {BOUNDS_DIMENSIONS} (min, max) bounds for x, y, z and time, got {bounds!r}")

    checked = []
    for axis, pair in zip("xyzt", bounds):
        if len(pair) != 2:
            raise InvalidInputError(f"Bound for {axis} must be a (min, max) pair, got {pair!r}")
        low, high = float(pair[0]), float(pair[1])
        if math.isnan(low) or math.isnan(high):
            raise InvalidInputError(f"Bound for {axis} contains NaN")
        if low > high:
            raise InvalidInputError(f"Bound for {axis} has min {low} > max {high}")
        checked.append((low, high))

    # The zero candidate must leave waypoint times untouched
    t_low, t_high = checked[3]
    if not t_low <= 0.0 <= t_high:
        raise InvalidInputError(f"Time shift bound must contain 0, got ({t_low}, {t_high})")
    return tuple(checked)


def _clamp(value: float, bound: Tuple[float, float]) -> float:
    return min(max(value, bound[0]), bound[1])


def apply_offsets(trajectory: Trajectory, offsets: np.ndarray, bounds: Bounds) -> Trajectory:
    """
    Shift every waypoint by its (dx, dy, dz, dt) unit offsets.

    Positions are clamped into the x/y/z bounds. ``dt`` is scaled to milliseconds,
    rounded, and clamped into the time bound; a waypoint is never moved before its
    predecessor so the result stays time-ordered.
    """
    offsets = np.asarray(offsets, dtype=float).reshape(-1, BOUNDS_DIMENSIONS)
    if len(offsets) != len(trajectory.waypoints):
        raise InvalidInputError(
            f"Got offsets for {len(offsets)} waypoints, trajectory has {len(trajectory.waypoints)}")

    new_waypoints = []
    previous_t = -math.inf
    for wp, (dx, dy, dz, dt) in zip(trajectory.waypoints, offsets):
        shift = int(round(float(dt) * TIME_OFFSET_SCALE_MS)) / 1000.0
        t = max(wp.t + _clamp(shift, bounds[3]), previous_t)
        new_waypoints.append(Waypoint(
            x=_clamp(wp.x + float(dx), bounds[0]),
            y=_clamp(wp.y + float(dy), bounds[1]),
            z=_clamp(wp.z + float(dz), bounds[2]),
            t=t
        ))
        previous_t = t

    return trajectory.with_waypoints(new_waypoints)


class ConflictObjective:
    """Objective = conflict samples * penalty + path cost of the perturbed trajectory."""

    def __init__(self, initial: Trajectory, others: Sequence[Trajectory], bounds: Bounds,
                 params: OptimizerParameters):
        self.initial = initial
        self.others = tuple(others)
        self.bounds = bounds
        self.params = params

    @property
    def dimensionality(self) -> int:
        return BOUNDS_DIMENSIONS * len(self.initial.waypoints)

    def score(self, trajectory: Trajectory) -> Tuple[int, float]:
        conflicts = count_conflicts(trajectory, self.others, self.params.time_step)
        value = conflicts * self.params.conflict_penalty + trajectory_cost(trajectory, self.params.time_weight)
        return conflicts, value

    def __call__(self, x: np.ndarray) -> float:
        candidate = apply_offsets(self.initial, x, self.bounds)
        return self.score(candidate)[1]


class OptimizationResult:
    def __init__(self, trajectory: Trajectory, objective: float, initial_objective: float,
                 initial_conflicts: int, final_conflicts: int, evaluations: int, iterations: int):
        self.trajectory = trajectory
        self.objective = objective
        self.initial_objective = initial_objective
        self.initial_conflicts = initial_conflicts
        self.final_conflicts = final_conflicts
        self.evaluations = evaluations
        self.iterations = iterations

    @property
    def conflict_free(self) -> bool:
        return self.final_conflicts == 0

    def __repr__(self):
        return (f"OptimizationResult(drone_id={self.trajectory.drone_id}, "
                f"conflicts={self.initial_conflicts}->{self.final_conflicts}, "
                f"objective={self.initial_objective:.2f}->{self.objective:.2f}, "
                f"evaluations={self.evaluations})")


class TrajectoryOptimizer:
    """
    Searches per-waypoint perturbations of a trajectory that avoid the other trajectories.

    The search runs over unit offsets in [-1, 1] for every (x, y, z, t) of every
    waypoint; ConflictObjective maps each candidate into an absolute, bounds-clamped
    trajectory before scoring it.
    """

    def __init__(self, initial: Trajectory, others: Sequence[Trajectory],
                 bounds: Sequence[Sequence[float]],
                 strategy: Optional[SearchStrategy] = None,
                 params: Optional[OptimizerParameters] = None):
        self.params = params or OptimizerParameters()
        if not self.params.time_step > 0:
            raise InvalidInputError(f"Time step must be positive, got {self.params.time_step}")
        self.initial = initial
        self.others: List[Trajectory] = list(others)
        self.bounds = validate_bounds(bounds)
        self.strategy = strategy or DifferentialEvolutionSearch(workers=self.params.workers)
        self.objective = ConflictObjective(self.initial, self.others, self.bounds, self.params)

    def run(self, max_iterations: int = DEFAULT_MAX_ITERATIONS,
            population_size: int = DEFAULT_POPULATION_SIZE,
            seed: Optional[int] = None) -> OptimizationResult:
        initial_conflicts, initial_objective = self.objective.score(self.initial)
        logger.info("Optimizing %s (%d waypoints) against %d trajectories with %s: "
                    "%d conflict samples, objective %.2f",
                    self.initial.drone_id, len(self.initial.waypoints), len(self.others),
                    self.strategy.name, initial_conflicts, initial_objective)

        search = self.strategy.minimize(self.objective, self.objective.dimensionality,
                                        max_iterations, population_size, seed)

        optimized = apply_offsets(self.initial, search.best_x, self.bounds)
        final_conflicts, final_objective = self.objective.score(optimized)
        logger.info("Optimization of %s finished after %d evaluations: "
                    "%d -> %d conflict samples, objective %.2f -> %.2f",
                    self.initial.drone_id, search.evaluations, initial_conflicts,
                    final_conflicts, initial_objective, final_objective)

        return OptimizationResult(optimized, final_objective, initial_objective,
                                  initial_conflicts, final_conflicts,
                                  search.evaluations, search.iterations)


def optimize_trajectory(initial: Trajectory, others: Sequence[Trajectory],
                        bounds: Sequence[Sequence[float]],
                        max_iterations: int = DEFAULT_MAX_ITERATIONS,
                        population_size: int = DEFAULT_POPULATION_SIZE,
                        seed: Optional[int] = None,
                        strategy: Optional[SearchStrategy] = None,
                        params: Optional[OptimizerParameters] = None) -> Trajectory:
    """
    Return the best-found perturbation of ``initial`` against ``others``.

    The result keeps the drone id, speed and safety buffer of ``initial``. It is not
    guaranteed to be conflict-free; re-check it with check_conflicts.
    """
    optimizer = TrajectoryOptimizer(initial, others, bounds, strategy=strategy, params=params)
    return optimizer.run(max_iterations, population_size, seed).trajectory
