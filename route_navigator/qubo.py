"""
QUBO Encoding and Decoding for Vehicle Routing.

This module maps a VRP instance onto a QUBO (Quadratic Unconstrained Binary
Optimization) matrix over edge variables, and maps binary assignment
vectors back into per-vehicle routes.

Variables:
    x_{i,j,k} = 1 iff vehicle k drives directly from node i to node j,
    stored at linear index i*n*v + j*v + k.
"""

from typing import List, Sequence, Union

import numpy as np

from .exceptions import InvalidInputException
from .logging_config import get_logger
from .models import Route, VRPProblem
from .utils import DEPOT, validate_problem

logger = get_logger(__name__)

BinaryVector = Union[Sequence[int], np.ndarray]


def variable_index(i: int, j: int, k: int, n: int, v: int) -> int:
    """Linear index of x_{i,j,k} for n nodes and v vehicles."""
    return i * n * v + j * v + k


def num_variables(n: int, v: int) -> int:
    """Number of binary variables for n nodes and v vehicles."""
    return n * n * v


def vrp_to_qubo(problem: VRPProblem, penalty: float = 10.0) -> np.ndarray:
    """
    Encode a VRP as a QUBO matrix.

    Objective:
        min Σ d[i,j] * x_{i,j,k}                       (distance cost)
        + penalty * (Σ_{i,k} x_{i,j,k} - 1)^2 for j≠0  (enter each customer once)
        + penalty * (Σ_{j,k} x_{i,j,k} - 1)^2 for i≠0  (leave each customer once)
        + flow continuity terms per customer and vehicle

    The squared constraints are expanded into a linear term of -penalty on
    each variable and +2*penalty on every distinct pair. Entries accumulate
    into the upper-accumulating matrix; nothing is symmetrised.

    Args:
        problem: The VRP problem definition.
        penalty: Constraint penalty coefficient (must be > 0).

    Returns:
        Dense QUBO matrix of shape (n*n*v, n*n*v).

    Raises:
        InvalidInputException: If the penalty is not positive or the
            problem is malformed.
    """
    if not penalty > 0:
        raise InvalidInputException(
            f"Penalty must be positive, got {penalty}",
            field="penalty",
            code="non_positive_penalty"
        )

    dist_matrix = validate_problem(problem)
    n = problem.n_nodes
    v = problem.n_vehicles
    num_vars = num_variables(n, v)

    Q = np.zeros((num_vars, num_vars))
    if num_vars == 0:
        return Q

    def index(i: int, j: int, veh: int) -> int:
        return variable_index(i, j, veh, n, v)

    # 1. Objective: distance of every used edge
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            for veh in range(v):
                idx = index(i, j, veh)
                Q[idx, idx] += dist_matrix[i, j]

    # 2. Each customer entered exactly once
    for j in range(1, n):
        for i1 in range(n):
            for v1 in range(v):
                idx1 = index(i1, j, v1)
                Q[idx1, idx1] += penalty * (1 - 2)

                for i2 in range(n):
                    for v2 in range(v):
                        if i1 == i2 and v1 == v2:
                            continue
                        Q[idx1, index(i2, j, v2)] += penalty * 2

    # 3. Each customer left exactly once
    for i in range(1, n):
        for j1 in range(n):
            if j1 == i:
                continue
            for v1 in range(v):
                idx1 = index(i, j1, v1)
                Q[idx1, idx1] += penalty * (1 - 2)

                for j2 in range(n):
                    if j2 == i:
                        continue
                    for v2 in range(v):
                        if j1 == j2 and v1 == v2:
                            continue
                        Q[idx1, index(i, j2, v2)] += penalty * 2

    # 4. Flow continuity: a vehicle entering a customer also leaves it
    for k in range(1, n):
        for veh in range(v):
            for i in range(n):
                if i == k:
                    continue
                in_idx = index(i, k, veh)

                for j in range(n):
                    if j == k:
                        continue
                    out_idx = index(k, j, veh)

                    Q[in_idx, in_idx] += penalty
                    Q[out_idx, out_idx] += penalty
                    Q[in_idx, out_idx] -= penalty * 2

    logger.debug(
        "QUBO encoded",
        extra={"n_nodes": n, "n_vehicles": v, "num_variables": num_vars, "penalty": penalty}
    )

    return Q


def qubo_energy(qubo: np.ndarray, solution: BinaryVector) -> float:
    """
    Evaluate x^T Q x for a binary vector.

    Args:
        qubo: QUBO matrix.
        solution: Binary vector matching the matrix size.

    Returns:
        The QUBO energy.
    """
    x = np.asarray(solution, dtype=float)
    if x.shape != (qubo.shape[0],):
        raise InvalidInputException(
            f"Solution vector has length {x.size}, expected {qubo.shape[0]}",
            field="solution",
            code="length_mismatch"
        )
    return float(x @ qubo @ x)


def decode_solution(solution: BinaryVector, problem: VRPProblem) -> List[Route]:
    """
    Decode a binary solution vector into vehicle routes.

    Each vehicle starts at the depot and repeatedly follows the lowest-id
    unvisited destination whose variable is set. The visited set is shared
    by all vehicles, so a node assigned twice belongs to the first vehicle
    that reaches it. Feasibility is not checked; routes that visit no
    customer are dropped.

    Args:
        solution: Binary vector of length n*n*v.
        problem: The VRP problem the vector was built for.

    Returns:
        Non-trivial routes in vehicle order.

    Raises:
        InvalidInputException: If the vector length does not match the problem.
    """
    dist_matrix = validate_problem(problem)
    n = problem.n_nodes
    v = problem.n_vehicles

    x = np.asarray(solution)
    if x.shape != (num_variables(n, v),):
        raise InvalidInputException(
            f"Solution vector has length {x.size}, expected {num_variables(n, v)}",
            field="solution",
            code="length_mismatch"
        )

    routes: List[Route] = []
    visited = {DEPOT}

    for veh in range(v):
        current = DEPOT
        path = [DEPOT]
        distance = 0.0

        while len(visited) < n:
            next_node = -1
            for j in range(n):
                if j not in visited and x[variable_index(current, j, veh, n, v)] == 1:
                    next_node = j
                    break

            if next_node == -1:
                break

            path.append(next_node)
            distance += float(dist_matrix[current, next_node])
            visited.add(next_node)
            current = next_node

        # Return to depot to complete the route
        if len(path) > 1:
            path.append(DEPOT)
            distance += float(dist_matrix[current, DEPOT])

        routes.append(Route(vehicle_id=problem.vehicles[veh].id, path=path, distance=distance))

    return [route for route in routes if len(route.path) > 2]


def encode_routes(routes: Sequence[Route], problem: VRPProblem) -> np.ndarray:
    """
    Build the binary vector that a set of routes corresponds to.

    Args:
        routes: Routes whose vehicle ids belong to the problem's fleet.
        problem: The VRP problem.

    Returns:
        int8 vector of length n*n*v with one bit per driven edge.
    """
    n = problem.n_nodes
    v = problem.n_vehicles
    position = {vehicle.id: k for k, vehicle in enumerate(problem.vehicles)}

    x = np.zeros(num_variables(n, v), dtype=np.int8)
    for route in routes:
        if route.vehicle_id not in position:
            raise InvalidInputException(
                f"Route refers to unknown vehicle {route.vehicle_id}",
                field="routes",
                code="unknown_vehicle"
            )
        k = position[route.vehicle_id]
        for src, dst in zip(route.path, route.path[1:]):
            x[variable_index(src, dst, k, n, v)] = 1

    return x
