"""
Routing Strategies and Solver Entry Points for Quantum Route Navigator.

This module wires the building blocks into solvers:
- QuantumInspiredStrategy: encode to QUBO, sample a binary vector, decode
- GreedyClassicalStrategy: round-robin nearest neighbour
- Synchronous and async entry points, and a side-by-side comparison

Both strategies share the same solve wrapper, which bounds the problem
size, times the run, logs it and records metrics.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import List, Optional, Union

from .classical import solve_greedy_routes
from .config import Settings, get_settings
from .diagnostics import get_qaoa_metrics
from .exceptions import RouteNavigatorException, SolverException
from .generator import generate_node_coordinates, generate_random_distance_matrix
from .logging_config import LogContext, get_logger
from .metrics import track_comparison, track_qubo_size, track_solve
from .models import ComparisonResult, QAOAParams, Route, VRPProblem, VRPSolution
from .qubo import decode_solution, vrp_to_qubo
from .samplers import BinarySampler, create_sampler
from .utils import (
    compute_improvement,
    find_unassigned_nodes,
    format_distance,
    format_execution_time,
    total_route_distance,
    validate_problem,
)

logger = get_logger(__name__)

__all__ = [
    "RoutingStrategy",
    "QuantumInspiredStrategy",
    "GreedyClassicalStrategy",
    "solve_quantum",
    "solve_classical",
    "solve_vrp_with_qaoa",
    "solve_vrp_classical",
    "compare_solvers",
    "vrp_to_qubo",
    "decode_solution",
    "get_qaoa_metrics",
    "generate_random_distance_matrix",
    "generate_node_coordinates",
]


class RoutingStrategy(ABC):
    """
    Base class of the VRP solvers.

    Subclasses only build routes; :meth:`solve` adds validation, timing,
    logging and metrics around them.
    """

    name: str = "strategy"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @abstractmethod
    def build_routes(self, problem: VRPProblem) -> List[Route]:
        """Compute the non-trivial routes for a problem."""

    def solve(self, problem: VRPProblem) -> VRPSolution:
        """
        Solve a problem and package the result.

        Args:
            problem: The VRP problem.

        Returns:
            VRPSolution tagged with this strategy's name.

        Raises:
            InvalidInputException: If the problem is malformed.
            ProblemTooLargeException: If the problem exceeds the size limits.
            SolverException: If route construction fails unexpectedly.
        """
        with LogContext(solver=self.name, nodes=problem.n_nodes, vehicles=problem.n_vehicles):
            logger.info(f"Starting {self.name} solve")

            start_time = time.perf_counter()
            try:
                validate_problem(
                    problem,
                    max_nodes=self.settings.MAX_NODES,
                    max_vehicles=self.settings.MAX_VEHICLES
                )
                routes = self.build_routes(problem)
            except RouteNavigatorException:
                track_solve(self.name, problem.n_nodes, 0.0, 0.0, success=False)
                raise
            except Exception as e:
                track_solve(self.name, problem.n_nodes, 0.0, 0.0, success=False)
                logger.exception(f"{self.name} solver failed")
                raise SolverException(self.name, str(e)) from e

            elapsed = time.perf_counter() - start_time

            solution = VRPSolution(
                routes=routes,
                total_distance=total_route_distance(routes),
                execution_time=elapsed * 1000,
                solver=self.name,
                unassigned_nodes=find_unassigned_nodes(routes, problem.n_nodes)
            )

            if solution.unassigned_nodes:
                logger.warning(
                    f"{len(solution.unassigned_nodes)} node(s) left unassigned",
                    extra={"unassigned_nodes": solution.unassigned_nodes}
                )

            track_solve(
                self.name,
                problem.n_nodes,
                elapsed,
                solution.total_distance,
                unassigned=len(solution.unassigned_nodes)
            )

            logger.info(
                f"Finished {self.name} solve in {format_execution_time(solution.execution_time)}",
                extra={
                    "routes": len(solution.routes),
                    "total_distance": solution.total_distance,
                    "execution_time_ms": solution.execution_time
                }
            )

            return solution


class QuantumInspiredStrategy(RoutingStrategy):
    """
    QUBO-based strategy standing in for QAOA.

    The problem is encoded as a QUBO, a sampler produces a binary vector in
    place of circuit measurements, and the vector is decoded into routes.
    QAOA parameters only label the run.

    Attributes:
        params: QAOA parameters of the run.
        sampler: Sampler producing the binary vector.
        penalty: Constraint penalty used for the encoding.
    """

    name = "quantum"

    def __init__(
        self,
        params: Optional[QAOAParams] = None,
        sampler: Optional[BinarySampler] = None,
        penalty: Optional[float] = None,
        settings: Optional[Settings] = None
    ):
        super().__init__(settings)
        self.params = params or QAOAParams(
            p=self.settings.QAOA_LAYERS,
            backend=self.settings.QAOA_BACKEND,
            shots=self.settings.QAOA_SHOTS
        )
        self.sampler = sampler or create_sampler(settings=self.settings)
        self.penalty = penalty if penalty is not None else self.settings.QUBO_PENALTY

    def build_routes(self, problem: VRPProblem) -> List[Route]:
        logger.info(
            f"Solving VRP with QAOA (p={self.params.p}, backend={self.params.backend}, "
            f"shots={self.params.shots})",
            extra={"sampler": self.sampler.name, "penalty": self.penalty}
        )

        qubo = vrp_to_qubo(problem, self.penalty)
        track_qubo_size(qubo.shape[0])
        solution = self.sampler.sample(qubo, problem, self.params)
        return decode_solution(solution, problem)


class GreedyClassicalStrategy(RoutingStrategy):
    """Round-robin nearest-neighbour baseline."""

    name = "classical"

    def build_routes(self, problem: VRPProblem) -> List[Route]:
        return solve_greedy_routes(problem)


# =========================
# Entry Points
# =========================

def solve_quantum(
    problem: VRPProblem,
    params: Optional[QAOAParams] = None,
    sampler: Union[BinarySampler, str, None] = None,
    penalty: Optional[float] = None,
    seed: Optional[int] = None,
    settings: Optional[Settings] = None
) -> VRPSolution:
    """
    Solve with the quantum-inspired strategy.

    Args:
        problem: The VRP problem.
        params: QAOA parameters (defaults from settings).
        sampler: Sampler instance or name ("jittered"/"annealing").
        penalty: Constraint penalty (default: settings.QUBO_PENALTY).
        seed: Seed for a sampler built by name.
        settings: Application settings.

    Returns:
        VRPSolution tagged "quantum".
    """
    if not isinstance(sampler, BinarySampler):
        sampler = create_sampler(sampler, seed=seed, settings=settings)

    strategy = QuantumInspiredStrategy(
        params=params,
        sampler=sampler,
        penalty=penalty,
        settings=settings
    )
    return strategy.solve(problem)


def solve_classical(
    problem: VRPProblem,
    settings: Optional[Settings] = None
) -> VRPSolution:
    """Solve with the greedy classical strategy."""
    return GreedyClassicalStrategy(settings).solve(problem)


async def solve_vrp_with_qaoa(
    problem: VRPProblem,
    params: Optional[QAOAParams] = None,
    sampler: Union[BinarySampler, str, None] = None,
    penalty: Optional[float] = None,
    seed: Optional[int] = None,
    settings: Optional[Settings] = None
) -> VRPSolution:
    """Async variant of :func:`solve_quantum`, run in a worker thread."""
    return await asyncio.to_thread(
        solve_quantum, problem, params, sampler, penalty, seed, settings
    )


async def solve_vrp_classical(
    problem: VRPProblem,
    settings: Optional[Settings] = None
) -> VRPSolution:
    """Async variant of :func:`solve_classical`, run in a worker thread."""
    return await asyncio.to_thread(solve_classical, problem, settings)


async def compare_solvers(
    problem: VRPProblem,
    params: Optional[QAOAParams] = None,
    sampler: Union[BinarySampler, str, None] = None,
    seed: Optional[int] = None,
    settings: Optional[Settings] = None
) -> ComparisonResult:
    """
    Run both strategies concurrently on the same problem.

    Args:
        problem: The VRP problem.
        params: QAOA parameters for the quantum-inspired run.
        sampler: Sampler instance or name for the quantum-inspired run.
        seed: Seed for a sampler built by name.
        settings: Application settings.

    Returns:
        ComparisonResult with both solutions and their relative quality.
    """
    quantum, classical = await asyncio.gather(
        solve_vrp_with_qaoa(problem, params, sampler, seed=seed, settings=settings),
        solve_vrp_classical(problem, settings)
    )

    # a solution that leaves customers out never beats one that covers more
    complete = not quantum.unassigned_nodes and not classical.unassigned_nodes
    quantum_rank = (len(quantum.unassigned_nodes), quantum.total_distance)
    classical_rank = (len(classical.unassigned_nodes), classical.total_distance)

    if quantum_rank < classical_rank:
        better_solver = "quantum"
        better, worse = quantum, classical
    else:
        better_solver = "classical"
        better, worse = classical, quantum

    # distances over different customer sets are not comparable
    improvement = compute_improvement(better.total_distance, worse.total_distance) if complete else 0.0

    if complete:
        track_comparison(better_solver)
    else:
        logger.warning(
            "Comparison is incomplete, a solution left customers unassigned",
            extra={
                "quantum_unassigned": quantum.unassigned_nodes,
                "classical_unassigned": classical.unassigned_nodes
            }
        )

    combined = quantum.total_distance + classical.total_distance
    if combined > 0:
        distance_share = {
            "quantum": quantum.total_distance / combined * 100,
            "classical": classical.total_distance / combined * 100,
        }
    else:
        distance_share = {"quantum": 50.0, "classical": 50.0}

    logger.info(
        f"Comparison finished, {better_solver} is better by {improvement:.1f}%",
        extra={
            "quantum_distance": quantum.total_distance,
            "classical_distance": classical.total_distance
        }
    )

    return ComparisonResult(
        quantum=quantum,
        classical=classical,
        better_solver=better_solver,
        improvement_pct=improvement,
        distance_share=distance_share,
        complete=complete
    )


def demo():
    """Demonstrate both solvers on a random problem."""
    import numpy as np

    from .generator import generate_random_problem

    print("=" * 60)
    print("Quantum Route Navigator Demo")
    print("=" * 60)

    problem = generate_random_problem(num_nodes=6, num_vehicles=2, rng=np.random.default_rng(42))

    print("\nDistance matrix:")
    print(np.array(problem.distance_matrix, dtype=int))

    result = asyncio.run(compare_solvers(problem, seed=42))

    print("\n" + "-" * 40)
    for solution in (result.quantum, result.classical):
        print(f"{solution.solver}: total {format_distance(solution.total_distance)}, "
              f"time {format_execution_time(solution.execution_time)}")
        for route in solution.routes:
            print(f"  vehicle {route.vehicle_id}: {route.path} ({route.distance:.0f})")

    print("\n" + "-" * 40)
    print(f"Better solver: {result.better_solver} ({result.improvement_pct:.1f}% shorter)")

    print("\nDemo complete!")


if __name__ == "__main__":
    demo()
