"""
Greedy Classical VRP Solver.

Round-robin nearest-neighbour construction: vehicles take turns extending
their route with the closest unassigned customer, then every route that
received a customer drives back to the depot. No QUBO is involved.
"""

from typing import List

from .exceptions import InvalidInputException
from .logging_config import get_logger
from .models import Route, VRPProblem
from .utils import DEPOT, validate_problem

logger = get_logger(__name__)


def solve_greedy_routes(problem: VRPProblem) -> List[Route]:
    """
    Build routes with the round-robin greedy heuristic.

    Args:
        problem: The VRP problem.

    Returns:
        Closed routes of the vehicles that received at least one customer.

    Raises:
        InvalidInputException: If the problem has no vehicles or is malformed.
    """
    dist_matrix = validate_problem(problem)
    n = problem.n_nodes
    v = problem.n_vehicles

    if v == 0:
        raise InvalidInputException(
            "Problem has no vehicles",
            field="vehicles",
            code="no_vehicles"
        )

    paths: List[List[int]] = [[DEPOT] for _ in range(v)]
    distances = [0.0] * v
    unassigned = list(range(1, n))
    current_vehicle = 0

    while unassigned:
        path = paths[current_vehicle]
        current = path[-1]

        # Find nearest unassigned, ties to the lowest id
        best_next = -1
        best_dist = float('inf')
        for node in unassigned:
            if dist_matrix[current, node] < best_dist:
                best_dist = float(dist_matrix[current, node])
                best_next = node

        path.append(best_next)
        distances[current_vehicle] += best_dist
        unassigned.remove(best_next)

        current_vehicle = (current_vehicle + 1) % v

    routes = []
    for veh, path in enumerate(paths):
        if len(path) == 1:
            continue
        distances[veh] += float(dist_matrix[path[-1], DEPOT])
        path.append(DEPOT)
        routes.append(Route(vehicle_id=problem.vehicles[veh].id, path=path, distance=distances[veh]))

    logger.debug(
        "Greedy routes built",
        extra={"n_nodes": n, "n_vehicles": v, "routes": len(routes)}
    )

    return routes
