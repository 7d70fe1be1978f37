"""
UAV Deconfliction - command-line entry point.

    uav-deconflict check input/missions.json --primary Primary
    uav-deconflict optimize input/missions.json --bounds 0 200 0 200 5 50 -30 30 --seed 7
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from uav_deconfliction.config import (DEFAULT_MAX_ITERATIONS, DEFAULT_POPULATION_SIZE,
                                      DEFAULT_TIME_STEP, OptimizerParameters)
from uav_deconfliction.exceptions import DeconflictionError
from uav_deconfliction.models.search import STRATEGIES, get_strategy
from uav_deconfliction.models.trajectory_optimizer import TrajectoryOptimizer
from uav_deconfliction.utils.conflict_checker import (build_conflict_report, check_conflicts,
                                                      merge_conflict_intervals)
from uav_deconfliction.utils.input_loader import Mission, load_mission, save_trajectories
from uav_deconfliction.utils.time_utils import format_time
from uav_deconfliction.utils.visualizer_3d import visualize_4d

logger = logging.getLogger("uav_deconfliction")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Defines and parses command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="uav-deconflict",
        description="4D (space + time) conflict checking and trajectory optimization for UAV missions"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("mission_file", help="JSON file with a 'trajectories' list")
    common.add_argument("--primary", metavar="DRONE_ID",
                        help="Drone to check against all others (default: first in file)")
    common.add_argument("--time-step", type=float, default=DEFAULT_TIME_STEP,
                        help=f"Sampling step in seconds (default: {DEFAULT_TIME_STEP})")
    common.add_argument("--workers", type=int, default=1,
                        help="Parallel workers for conflict scans / objective evaluation (default: 1)")
    common.add_argument("--plot", metavar="HTML_FILE", help="Write an interactive 3D plot to this file")
    common.add_argument("--output", metavar="JSON_FILE", help="Write results to this file")
    verbosity = common.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")

    subparsers.add_parser("check", parents=[common], help="Report conflicts of the primary drone")

    optimize = subparsers.add_parser("optimize", parents=[common],
                                     help="Perturb the primary trajectory to remove conflicts")
    optimize.add_argument("--bounds", type=float, nargs=8, required=True,
                          metavar=("X_MIN", "X_MAX", "Y_MIN", "Y_MAX", "Z_MIN", "Z_MAX", "DT_MIN", "DT_MAX"),
                          help="Absolute x/y/z bounds (m) and per-waypoint time shift bounds (s)")
    optimize.add_argument("--iterations", type=int, default=DEFAULT_MAX_ITERATIONS)
    optimize.add_argument("--population", type=int, default=DEFAULT_POPULATION_SIZE)
    optimize.add_argument("--seed", type=int)
    optimize.add_argument("--strategy", choices=sorted(STRATEGIES), default="de")

    return parser.parse_args(argv)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def print_conflicts(mission: Mission, conflicts, time_step: float) -> None:
    if not conflicts:
        print(f"{mission.primary.drone_id}: CLEAR - no conflicts with {len(mission.others)} trajectories")
        return
    print(f"{mission.primary.drone_id}: {len(conflicts)} conflict samples")
    for interval in merge_conflict_intervals(conflicts, time_step):
        print(f"  {interval.drone1} vs {interval.drone2}: "
              f"{format_time(interval.start_time)} - {format_time(interval.end_time)}, "
              f"closest {interval.min_distance:.2f}m ({interval.samples} samples)")


def run_check(args: argparse.Namespace) -> int:
    mission = load_mission(args.mission_file, args.primary)
    conflicts = check_conflicts(mission, args.time_step, max_workers=args.workers)
    print_conflicts(mission, conflicts, args.time_step)

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(build_conflict_report(conflicts), f, indent=2)
        logger.info("Report saved to %s", args.output)
    if args.plot:
        visualize_4d(mission, conflicts).write_html(args.plot)
        logger.info("Plot saved to %s", args.plot)
    return 1 if conflicts else 0


def run_optimize(args: argparse.Namespace) -> int:
    mission = load_mission(args.mission_file, args.primary)
    bounds = [tuple(args.bounds[i:i + 2]) for i in range(0, 8, 2)]
    params = OptimizerParameters(time_step=args.time_step, workers=args.workers)
    if args.strategy == "de":
        strategy = get_strategy(args.strategy, workers=args.workers)
    else:
        strategy = get_strategy(args.strategy)

    optimizer = TrajectoryOptimizer(mission.primary, mission.others, bounds, strategy=strategy, params=params)
    result = optimizer.run(args.iterations, args.population, args.seed)

    adjusted = Mission(result.trajectory, mission.others)
    conflicts = check_conflicts(adjusted, args.time_step, max_workers=args.workers)
    print(f"Conflict samples: {result.initial_conflicts} -> {result.final_conflicts} "
          f"(objective {result.initial_objective:.2f} -> {result.objective:.2f}, "
          f"{result.evaluations} evaluations)")
    print_conflicts(adjusted, conflicts, args.time_step)

    if args.output:
        save_trajectories([result.trajectory], args.output)
        logger.info("Optimized trajectory saved to %s", args.output)
    if args.plot:
        visualize_4d(adjusted, conflicts).write_html(args.plot)
        logger.info("Plot saved to %s", args.plot)
    return 1 if conflicts else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    configure_logging(args.verbose, args.quiet)

    try:
        if args.command == "check":
            return run_check(args)
        return run_optimize(args)
    except (DeconflictionError, OSError, json.JSONDecodeError) as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
