# Sampling
DEFAULT_TIME_STEP = 1.0  # seconds
TIME_EPSILON = 1e-9  # seconds - tolerance when counting samples up to a window end

# Objective weighting
CONFLICT_PENALTY = 1000.0  # per sampled conflict
COST_TIME_WEIGHT = 0.1  # per second of elapsed flight time

# Search space
SEARCH_RANGE = (-1.0, 1.0)  # every search variable lives in this range
TIME_OFFSET_SCALE_MS = 1000  # a unit time variable shifts a waypoint by this many ms
BOUNDS_DIMENSIONS = 4  # x, y, z, t

# Search budget
DEFAULT_MAX_ITERATIONS = 50
DEFAULT_POPULATION_SIZE = 30


class OptimizerParameters:
    def __init__(self, conflict_penalty: float = CONFLICT_PENALTY,
                 time_weight: float = COST_TIME_WEIGHT,
                 time_step: float = DEFAULT_TIME_STEP,
                 workers: int = 1):
        self.conflict_penalty = conflict_penalty
        self.time_weight = time_weight
        self.time_step = time_step
        self.workers = workers

    def __repr__(self):
        return (f"OptimizerParameters(conflict_penalty={self.conflict_penalty}, "
                f"time_weight={self.time_weight}, time_step={self.time_step}, workers={self.workers})")
