"""
Binary Samplers for the VRP QUBO.

This module provides the samplers that stand in for QAOA circuit execution:
- JitteredNearestNeighborSampler: nearest-neighbour construction with a
  random perturbation on every distance comparison
- AnnealingSampler: single-bit-flip simulated annealing on x^T Q x,
  warm-started from the jittered construction

Both return a binary vector of length n*n*v laid out as in
:func:`route_navigator.qubo.variable_index`.
"""

import time
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from .config import Settings, get_settings
from .exceptions import InvalidInputException
from .logging_config import get_logger
from .models import QAOAParams, VRPProblem
from .qubo import decode_solution, num_variables, qubo_energy, variable_index
from .utils import DEPOT

logger = get_logger(__name__)


class BinarySampler(ABC):
    """Produces a binary assignment vector for a VRP QUBO."""

    name: str = "sampler"

    @abstractmethod
    def sample(
        self,
        qubo: np.ndarray,
        problem: VRPProblem,
        params: Optional[QAOAParams] = None
    ) -> np.ndarray:
        """
        Draw one binary vector.

        Args:
            qubo: QUBO matrix built for ``problem``.
            problem: The VRP problem.
            params: QAOA parameters of the run, if any.

        Returns:
            int8 vector of length n*n*v.
        """


class JitteredNearestNeighborSampler(BinarySampler):
    """
    Nearest-neighbour route construction with multiplicative noise.

    Every candidate distance is scaled by (1 + u), u ~ U(-jitter, jitter),
    before the comparison. Ties go to the lowest node id. The first vehicle
    keeps extending its route until no customer is left, so later vehicles
    only receive work when the first one cannot take it.

    The QUBO argument is accepted for interface symmetry and never read;
    distances come straight from the problem.

    Attributes:
        jitter: Half-width of the noise interval.
        rng: numpy Generator (seeded if a seed was given).
    """

    name = "jittered"

    def __init__(
        self,
        jitter: float = 0.25,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None
    ):
        if jitter < 0:
            raise InvalidInputException(
                f"Jitter must be non-negative, got {jitter}",
                field="jitter",
                code="negative_jitter"
            )
        self.jitter = jitter
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def sample(
        self,
        qubo: np.ndarray,
        problem: VRPProblem,
        params: Optional[QAOAParams] = None
    ) -> np.ndarray:
        n = problem.n_nodes
        v = problem.n_vehicles
        dist_matrix = problem.distance_array()

        solution = np.zeros(num_variables(n, v), dtype=np.int8)
        remaining = list(range(1, n))

        for veh in range(v):
            if not remaining:
                break

            current = DEPOT
            while remaining:
                candidates = np.array(remaining)
                noise = self.rng.uniform(-self.jitter, self.jitter, size=len(candidates))
                adjusted = dist_matrix[current, candidates] * (1 + noise)

                # argmin keeps the first minimum, remaining is sorted ascending
                best_node = int(candidates[int(np.argmin(adjusted))])

                solution[variable_index(current, best_node, veh, n, v)] = 1
                remaining.remove(best_node)
                current = best_node

            # Return to depot
            if current != DEPOT:
                solution[variable_index(current, DEPOT, veh, n, v)] = 1

        return solution


def _covered_customers(solution: np.ndarray, problem: VRPProblem) -> int:
    """Customers visited by the routes the vector decodes to."""
    return sum(len(route.path) - 2 for route in decode_solution(solution, problem))


class AnnealingSampler(BinarySampler):
    """
    Simulated annealing over single bit flips of the QUBO.

    Starts from the jittered construction and keeps the lowest-energy vector
    seen whose decoded routes visit at least as many customers as the
    starting vector. The QUBO rewards dangling assignments that no route
    from the depot reaches, so the unconstrained minimum usually decodes to
    no routes at all; when nothing better qualifies the starting vector is
    returned unchanged. The result is never worse than the starting point
    in energy or in coverage.

    Attributes:
        max_iter: Maximum number of flip proposals.
        temp_init: Initial temperature.
        temp_min: Temperature at which the run stops.
        cooling_rate: Geometric temperature decay per proposal.
        timeout: Wall-clock limit in seconds.
    """

    name = "annealing"

    def __init__(
        self,
        max_iter: int = 5000,
        temp_init: float = 100.0,
        temp_min: float = 0.01,
        cooling_rate: float = 0.995,
        timeout: float = 5.0,
        jitter: float = 0.25,
        seed: Optional[int] = None
    ):
        self.max_iter = max_iter
        self.temp_init = temp_init
        self.temp_min = temp_min
        self.cooling_rate = cooling_rate
        self.timeout = timeout
        self.rng = np.random.default_rng(seed)
        self.warm_start = JitteredNearestNeighborSampler(jitter=jitter, rng=self.rng)

    def sample(
        self,
        qubo: np.ndarray,
        problem: VRPProblem,
        params: Optional[QAOAParams] = None
    ) -> np.ndarray:
        current = self.warm_start.sample(qubo, problem)
        num_vars = current.size
        if num_vars == 0:
            return current

        current_cost = qubo_energy(qubo, current)
        best = current.copy()
        best_cost = current_cost
        required = _covered_customers(current, problem)
        rejected = 0

        # Flip gain of bit i is (1 - 2 x_i) * field[i] + Q[i, i]
        symmetric = qubo + qubo.T
        field = symmetric @ current.astype(float)
        diagonal = np.diag(qubo)

        temp = self.temp_init
        start_time = time.perf_counter()
        accepted = 0

        for _ in range(self.max_iter):
            if time.perf_counter() - start_time > self.timeout:
                break

            if temp < self.temp_min:
                break

            i = int(self.rng.integers(num_vars))
            step = 1 - 2 * int(current[i])
            delta = step * field[i] + diagonal[i]

            if delta < 0 or self.rng.random() < np.exp(-delta / temp):
                current[i] += step
                field += step * symmetric[:, i]
                current_cost += delta
                accepted += 1

                if current_cost < best_cost:
                    if _covered_customers(current, problem) >= required:
                        best = current.copy()
                        best_cost = current_cost
                    else:
                        rejected += 1

            temp *= self.cooling_rate

        logger.debug(
            "Annealing finished",
            extra={
                "num_variables": num_vars,
                "accepted_flips": accepted,
                "best_energy": best_cost,
                "rejected_for_coverage": rejected,
                "final_temperature": temp
            }
        )

        return best


def create_sampler(
    name: Optional[str] = None,
    seed: Optional[int] = None,
    settings: Optional[Settings] = None
) -> BinarySampler:
    """
    Build a sampler from its name and the application settings.

    Args:
        name: "jittered" or "annealing" (default: settings.DEFAULT_SAMPLER).
        seed: Random seed (default: settings.SAMPLER_SEED).
        settings: Application settings.

    Returns:
        Configured sampler instance.
    """
    settings = settings or get_settings()
    name = name or settings.DEFAULT_SAMPLER
    seed = seed if seed is not None else settings.SAMPLER_SEED

    if name == JitteredNearestNeighborSampler.name:
        return JitteredNearestNeighborSampler(jitter=settings.SAMPLER_JITTER, seed=seed)

    if name == AnnealingSampler.name:
        return AnnealingSampler(
            max_iter=settings.ANNEALING_MAX_ITER,
            temp_init=settings.ANNEALING_TEMP_INIT,
            temp_min=settings.ANNEALING_TEMP_MIN,
            cooling_rate=settings.ANNEALING_COOLING_RATE,
            timeout=settings.ANNEALING_TIMEOUT,
            jitter=settings.SAMPLER_JITTER,
            seed=seed
        )

    raise InvalidInputException(
        f"Unknown sampler '{name}'",
        field="sampler",
        code="unknown_sampler"
    )
