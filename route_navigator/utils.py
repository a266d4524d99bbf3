"""
Utility Functions for Quantum Route Navigator.

This module provides helper functions for problem validation, route
distance computation, coverage checks and result formatting.
"""

from typing import Iterable, List, Optional, Sequence

import numpy as np

from .exceptions import InvalidInputException, ProblemTooLargeException
from .models import Route, VRPProblem


DEPOT = 0


def validate_problem(
    problem: VRPProblem,
    max_nodes: Optional[int] = None,
    max_vehicles: Optional[int] = None
) -> np.ndarray:
    """
    Check the structural invariants of a problem.

    Node ids must be 0..n-1 in order, the distance matrix must be n x n with
    finite non-negative entries. Size limits are only enforced when given.

    Args:
        problem: Problem to validate.
        max_nodes: Optional upper bound on the node count.
        max_vehicles: Optional upper bound on the vehicle count.

    Returns:
        The distance matrix as a float array.

    Raises:
        InvalidInputException: If the problem is malformed.
        ProblemTooLargeException: If a size limit is exceeded.
    """
    n = problem.n_nodes
    matrix = problem.distance_matrix

    if len(matrix) != n:
        raise InvalidInputException(
            f"Distance matrix has {len(matrix)} rows but the problem has {n} nodes",
            field="distance_matrix",
            code="dimension_mismatch"
        )

    for row_idx, row in enumerate(matrix):
        if len(row) != n:
            raise InvalidInputException(
                f"Distance matrix row {row_idx} has {len(row)} columns, expected {n}",
                field="distance_matrix",
                code="not_square"
            )

    node_ids = [node.id for node in problem.nodes]
    if node_ids != list(range(n)):
        raise InvalidInputException(
            "Node ids must be 0..n-1 in order, with 0 as the depot",
            field="nodes",
            code="node_ids"
        )

    dist_matrix = problem.distance_array()
    if dist_matrix.size and (not np.all(np.isfinite(dist_matrix)) or np.any(dist_matrix < 0)):
        raise InvalidInputException(
            "Distances must be finite and non-negative",
            field="distance_matrix",
            code="negative_distance"
        )

    too_many_nodes = max_nodes is not None and n > max_nodes
    too_many_vehicles = max_vehicles is not None and problem.n_vehicles > max_vehicles
    if too_many_nodes or too_many_vehicles:
        raise ProblemTooLargeException(
            n, problem.n_vehicles,
            max_nodes if max_nodes is not None else n,
            max_vehicles if max_vehicles is not None else problem.n_vehicles
        )

    return dist_matrix


def calculate_route_distance(
    path: Sequence[int],
    dist_matrix: np.ndarray
) -> float:
    """
    Calculate total distance for a path.

    Args:
        path: Node ids in visiting order.
        dist_matrix: Distance matrix.

    Returns:
        Sum of consecutive edge weights.
    """
    if len(path) < 2:
        return 0.0

    total = 0.0
    for i in range(len(path) - 1):
        total += float(dist_matrix[path[i], path[i + 1]])

    return total


def total_route_distance(routes: Iterable[Route]) -> float:
    """Sum of the distances of the given routes."""
    return float(sum(route.distance for route in routes))


def find_unassigned_nodes(routes: Iterable[Route], n_nodes: int) -> List[int]:
    """
    List the customers no route visits.

    Args:
        routes: Routes to inspect.
        n_nodes: Node count of the problem (depot included).

    Returns:
        Sorted ids of unvisited non-depot nodes.
    """
    visited = set()
    for route in routes:
        visited.update(route.path)
    return [node for node in range(1, n_nodes) if node not in visited]


def compute_improvement(
    optimized_cost: float,
    baseline_cost: float
) -> float:
    """
    Compute percentage improvement over baseline.

    Args:
        optimized_cost: Cost of optimized solution.
        baseline_cost: Cost of baseline solution.

    Returns:
        Percentage improvement (negative = worse).
    """
    if baseline_cost <= 0:
        return 0.0
    return (baseline_cost - optimized_cost) / baseline_cost * 100


def format_execution_time(milliseconds: float) -> str:
    """Format an execution time like "12.34 ms"."""
    return f"{milliseconds:.2f} ms"


def format_distance(distance: float) -> str:
    """Format a distance with two decimals."""
    return f"{distance:.2f}"
