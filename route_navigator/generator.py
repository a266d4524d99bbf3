"""
Problem Generator for Quantum Route Navigator.

This module builds demo VRP instances: random symmetric distance matrices,
circular node layouts for display, coloured fleets, and the projection of
node coordinates into a drawing area.
"""

import math
from typing import List, Optional, Sequence

import numpy as np

from .exceptions import InvalidInputException
from .models import VEHICLE_COLORS, Node, Vehicle, ViewportPoint, VRPProblem


DEFAULT_RADIUS = 100.0
MIN_EXTENT = 1.0


def generate_random_distance_matrix(
    num_nodes: int,
    max_distance: int = 100,
    rng: Optional[np.random.Generator] = None
) -> List[List[float]]:
    """
    Generate a random symmetric distance matrix.

    Off-diagonal entries are integers drawn uniformly from [1, max_distance];
    the diagonal is zero.

    Args:
        num_nodes: Matrix dimension (depot included).
        max_distance: Largest possible distance.
        rng: Optional numpy Generator for reproducible output.

    Returns:
        num_nodes x num_nodes matrix as nested lists.
    """
    if num_nodes < 0:
        raise InvalidInputException(
            f"Number of nodes must be non-negative, got {num_nodes}",
            field="num_nodes",
            code="negative_nodes"
        )
    if max_distance < 1:
        raise InvalidInputException(
            f"Maximum distance must be at least 1, got {max_distance}",
            field="max_distance",
            code="invalid_max_distance"
        )

    if rng is None:
        rng = np.random.default_rng()

    matrix = np.zeros((num_nodes, num_nodes))
    upper = np.triu_indices(num_nodes, k=1)
    matrix[upper] = rng.integers(1, max_distance + 1, size=len(upper[0]))
    matrix = matrix + matrix.T

    return matrix.tolist()


def generate_node_coordinates(
    distance_matrix: Sequence[Sequence[float]],
    radius: float = DEFAULT_RADIUS
) -> List[Node]:
    """
    Place one node per matrix row evenly on a circle.

    The layout is for display only and does not try to reproduce the
    distances.
    """
    n = len(distance_matrix)
    nodes = []

    for i in range(n):
        angle = 2 * math.pi * i / n
        nodes.append(Node(
            id=i,
            x=radius * math.cos(angle),
            y=radius * math.sin(angle),
            label="Depot" if i == 0 else f"Node {i}"
        ))

    return nodes


def generate_vehicles(count: int) -> List[Vehicle]:
    """Create ``count`` vehicles coloured from the fleet palette."""
    if count < 0:
        raise InvalidInputException(
            f"Number of vehicles must be non-negative, got {count}",
            field="num_vehicles",
            code="negative_vehicles"
        )
    return [
        Vehicle(id=i, color=VEHICLE_COLORS[i % len(VEHICLE_COLORS)])
        for i in range(count)
    ]


def generate_random_problem(
    num_nodes: int = 6,
    num_vehicles: int = 2,
    max_distance: int = 100,
    rng: Optional[np.random.Generator] = None,
    radius: float = DEFAULT_RADIUS
) -> VRPProblem:
    """
    Generate a complete random VRP instance.

    Args:
        num_nodes: Nodes including the depot (default: 6).
        num_vehicles: Fleet size (default: 2).
        max_distance: Largest possible distance (default: 100).
        rng: Optional numpy Generator.
        radius: Radius of the node layout circle.

    Returns:
        VRPProblem with circular coordinates and a coloured fleet.
    """
    distance_matrix = generate_random_distance_matrix(num_nodes, max_distance, rng)

    return VRPProblem(
        nodes=generate_node_coordinates(distance_matrix, radius),
        vehicles=generate_vehicles(num_vehicles),
        distance_matrix=distance_matrix
    )


def project_to_viewport(
    nodes: Sequence[Node],
    width: float,
    height: float,
    margin: float = 40.0
) -> List[ViewportPoint]:
    """
    Scale node coordinates into a width x height drawing area.

    A single uniform scale keeps the aspect ratio. Extents narrower than
    MIN_EXTENT are widened to it, so coincident nodes land on the margin
    corner instead of dividing by zero.

    Args:
        nodes: Nodes to project.
        width: Drawing area width.
        height: Drawing area height.
        margin: Padding kept free on every side.

    Returns:
        One projected point per node, in input order.
    """
    if not nodes:
        return []

    xs = [node.x for node in nodes]
    ys = [node.y for node in nodes]
    min_x, min_y = min(xs), min(ys)

    extent_x = max(max(xs) - min_x, MIN_EXTENT)
    extent_y = max(max(ys) - min_y, MIN_EXTENT)

    scale = min(
        (width - 2 * margin) / extent_x,
        (height - 2 * margin) / extent_y
    )

    return [
        ViewportPoint(
            id=node.id,
            x=margin + (node.x - min_x) * scale,
            y=margin + (node.y - min_y) * scale
        )
        for node in nodes
    ]
