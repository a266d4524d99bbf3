"""
Quantum Route Navigator.

Vehicle routing with a QUBO-based quantum-inspired solver and a greedy
classical baseline.
"""

from .models import Node, QAOAParams, Route, Vehicle, VRPProblem, VRPSolution
from .solvers import (
    compare_solvers,
    decode_solution,
    generate_node_coordinates,
    generate_random_distance_matrix,
    get_qaoa_metrics,
    solve_classical,
    solve_quantum,
    solve_vrp_classical,
    solve_vrp_with_qaoa,
    vrp_to_qubo,
)

__version__ = "1.0.0"

__all__ = [
    "Node",
    "Vehicle",
    "VRPProblem",
    "Route",
    "VRPSolution",
    "QAOAParams",
    "vrp_to_qubo",
    "decode_solution",
    "solve_quantum",
    "solve_classical",
    "solve_vrp_with_qaoa",
    "solve_vrp_classical",
    "compare_solvers",
    "get_qaoa_metrics",
    "generate_random_distance_matrix",
    "generate_node_coordinates",
]
