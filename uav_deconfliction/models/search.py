"""
Derivative-free minimizers over the unit search box.

Every strategy searches ``[-1, 1]^D`` (``config.SEARCH_RANGE``) and returns the best
candidate it evaluated. The zero vector is always part of the initial population, so the
result is never worse than leaving the input untouched. Runs are reproducible for a
fixed seed.
"""

import logging
from typing import Callable, Optional

import numpy as np
from scipy.optimize import differential_evolution

from uav_deconfliction.config import SEARCH_RANGE
from uav_deconfliction.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

Objective = Callable[[np.ndarray], float]


class SearchResult:
    def __init__(self, best_x: np.ndarray, best_value: float, evaluations: int, iterations: int):
        self.best_x = best_x
        self.best_value = best_value
        self.evaluations = evaluations
        self.iterations = iterations

    def __repr__(self):
        return (f"SearchResult(best_value={self.best_value:.3f}, evaluations={self.evaluations}, "
                f"iterations={self.iterations})")


class SearchStrategy:
    """Interface of a black-box minimizer over the unit search box."""

    name = "base"

    def minimize(self, objective: Objective, dimensionality: int, iterations: int,
                 population_size: int, seed: Optional[int] = None) -> SearchResult:
        raise NotImplementedError

    @staticmethod
    def _validate(dimensionality: int, iterations: int, population_size: int) -> None:
        if dimensionality < 1:
            raise InvalidInputError(f"Search dimensionality must be at least 1, got {dimensionality}")
        if iterations < 1:
            raise InvalidInputError(f"Iteration budget must be at least 1, got {iterations}")
        if population_size < 1:
            raise InvalidInputError(f"Population size must be at least 1, got {population_size}")

    @staticmethod
    def initial_population(rng: np.random.Generator, size: int, dimensionality: int) -> np.ndarray:
        low, high = SEARCH_RANGE
        population = rng.uniform(low, high, size=(size, dimensionality))
        population[0] = 0.0
        return population


class DifferentialEvolutionSearch(SearchStrategy):
    """
    scipy's differential evolution with an explicit initial population.

    ``population_size`` is the number of members (scipy needs at least 5, smaller values
    are raised to 5). With ``workers`` above one the population is evaluated in parallel
    and updated once per generation, which keeps seeded runs reproducible.
    """

    name = "de"
    MIN_POPULATION = 5

    def __init__(self, workers: int = 1, mutation=(0.5, 1.0), recombination: float = 0.7):
        self.workers = workers
        self.mutation = mutation
        self.recombination = recombination

    def minimize(self, objective: Objective, dimensionality: int, iterations: int,
                 population_size: int, seed: Optional[int] = None) -> SearchResult:
        self._validate(dimensionality, iterations, population_size)
        size = max(population_size, self.MIN_POPULATION)
        if size != population_size:
            logger.debug("Population raised from %d to %d for differential evolution",
                         population_size, size)

        rng = np.random.default_rng(seed)
        init = self.initial_population(rng, size, dimensionality)

        result = differential_evolution(
            objective,
            bounds=[SEARCH_RANGE] * dimensionality,
            maxiter=iterations,
            init=init,
            seed=seed,
            mutation=self.mutation,
            recombination=self.recombination,
            tol=0.0,
            polish=False,
            workers=self.workers,
            updating='deferred' if self.workers != 1 else 'immediate'
        )
        logger.debug("Differential evolution finished: %s", result.message)
        return SearchResult(np.asarray(result.x, dtype=float), float(result.fun),
                            int(result.nfev), int(result.nit))


class ParticleSwarmSearch(SearchStrategy):
    """Global-best particle swarm with positions clipped to the unit box."""

    name = "pso"

    def __init__(self, inertia: float = 0.7, cognitive: float = 1.5, social: float = 1.5,
                 max_velocity: float = 0.5):
        self.inertia = inertia
        self.cognitive = cognitive
        self.social = social
        self.max_velocity = max_velocity

    def minimize(self, objective: Objective, dimensionality: int, iterations: int,
                 population_size: int, seed: Optional[int] = None) -> SearchResult:
        self._validate(dimensionality, iterations, population_size)
        low, high = SEARCH_RANGE
        rng = np.random.default_rng(seed)

        particles = self.initial_population(rng, population_size, dimensionality)
        velocities = rng.uniform(-0.1, 0.1, size=particles.shape)

        personal_bests = particles.copy()
        personal_best_costs = np.full(population_size, np.inf)
        global_best = particles[0].copy()
        global_best_cost = np.inf
        evaluations = 0

        for iteration in range(iterations):
            for i in range(population_size):
                cost = objective(particles[i])
                evaluations += 1

                if cost < personal_best_costs[i]:
                    personal_best_costs[i] = cost
                    personal_bests[i] = particles[i].copy()

                if cost < global_best_cost:
                    global_best_cost = cost
                    global_best = particles[i].copy()

            r1 = rng.random(size=particles.shape)
            r2 = rng.random(size=particles.shape)
            velocities = (self.inertia * velocities
                          + self.cognitive * r1 * (personal_bests - particles)
                          + self.social * r2 * (global_best - particles))
            velocities = np.clip(velocities, -self.max_velocity, self.max_velocity)
            particles = np.clip(particles + velocities, low, high)

            logger.debug("PSO iteration %d: best objective %.3f", iteration, global_best_cost)

        return SearchResult(global_best, float(global_best_cost), evaluations, iterations)


STRATEGIES = {
    DifferentialEvolutionSearch.name: DifferentialEvolutionSearch,
    ParticleSwarmSearch.name: ParticleSwarmSearch,
}


def get_strategy(name: str, **kwargs) -> SearchStrategy:
    if name not in STRATEGIES:
        raise InvalidInputError(f"Unknown search strategy {name!r}; choose one of {sorted(STRATEGIES)}")
    return STRATEGIES[name](**kwargs)
