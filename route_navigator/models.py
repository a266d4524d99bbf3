"""
Pydantic Models for Quantum Route Navigator.

This module defines the VRP domain objects (nodes, vehicles, problems,
routes, solutions), the QAOA parameter and diagnostics schemas, and the
request/response bodies of the HTTP API.
"""

from typing import Dict, List, Literal, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field


BackendType = Literal['qasm_simulator', 'aer_simulator', 'ibmq_lima', 'ibmq_belem', 'ibmq_quito']
SolverTag = Literal['quantum', 'classical']
SamplerName = Literal['jittered', 'annealing']

VEHICLE_COLORS = ["#8B5CF6", "#0EA5E9", "#20E3B2", "#F59E0B", "#EF4444"]


# =========================
# Domain Models
# =========================

class Node(BaseModel):
    """
    A location in the routing problem.

    Attributes:
        id: Node index (0 is always the depot).
        x: X coordinate used for display.
        y: Y coordinate used for display.
        label: Optional human-readable name.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0, description="Node index (0 = depot)")
    x: float = Field(default=0.0, description="X coordinate")
    y: float = Field(default=0.0, description="Y coordinate")
    label: Optional[str] = Field(default=None, description="Display label")


class Vehicle(BaseModel):
    """
    A vehicle of the fleet.

    Capacity is carried for callers but not used by the current heuristics.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0, description="Vehicle index")
    capacity: Optional[float] = Field(default=None, ge=0, description="Vehicle capacity")
    color: str = Field(default=VEHICLE_COLORS[0], description="Display color")


class VRPProblem(BaseModel):
    """
    A Vehicle Routing Problem instance.

    Attributes:
        nodes: Locations, node 0 being the depot.
        vehicles: Available vehicles.
        distance_matrix: n x n non-negative distances.
    """
    nodes: List[Node] = Field(..., description="Locations (0 = depot)")
    vehicles: List[Vehicle] = Field(..., description="Fleet")
    distance_matrix: List[List[float]] = Field(..., description="n x n distance matrix")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "nodes": [
                    {"id": 0, "x": 100.0, "y": 0.0, "label": "Depot"},
                    {"id": 1, "x": -50.0, "y": 86.6, "label": "Node 1"},
                    {"id": 2, "x": -50.0, "y": -86.6, "label": "Node 2"}
                ],
                "vehicles": [{"id": 0, "color": "#8B5CF6"}],
                "distance_matrix": [[0, 4, 7], [4, 0, 3], [7, 3, 0]]
            }
        }
    )

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    @property
    def n_vehicles(self) -> int:
        return len(self.vehicles)

    def distance_array(self) -> np.ndarray:
        """Distance matrix as a float array (a fresh copy)."""
        if not self.distance_matrix:
            return np.zeros((0, 0))
        return np.array(self.distance_matrix, dtype=float)


class Route(BaseModel):
    """
    Path driven by one vehicle.

    Attributes:
        vehicle_id: Vehicle that drives the route.
        path: Node ids in visiting order, starting and ending at the depot.
        distance: Sum of consecutive edge weights along the path.
    """
    model_config = ConfigDict(frozen=True)

    vehicle_id: int = Field(..., ge=0, description="Vehicle id")
    path: List[int] = Field(..., description="Visited node ids")
    distance: float = Field(..., ge=0, description="Accumulated distance")


class VRPSolution(BaseModel):
    """
    Result of a solve call.

    Attributes:
        routes: Non-trivial routes only.
        total_distance: Sum of route distances.
        execution_time: Wall-clock solve time in milliseconds.
        solver: Strategy that produced the solution.
        unassigned_nodes: Customers no route visits (quantum path only).
    """
    routes: List[Route] = Field(default_factory=list, description="Vehicle routes")
    total_distance: float = Field(..., ge=0, description="Total distance")
    execution_time: float = Field(..., ge=0, description="Solve time (ms)")
    solver: SolverTag = Field(..., description="Solver tag")
    unassigned_nodes: List[int] = Field(default_factory=list, description="Nodes left unvisited")


class QAOAParams(BaseModel):
    """
    QAOA run parameters.

    Only used to label the run and size the synthetic diagnostics.
    """
    p: int = Field(default=1, ge=1, description="Number of QAOA layers")
    backend: BackendType = Field(default='qasm_simulator', description="Backend label")
    shots: int = Field(default=1000, ge=1, description="Number of shots")


# =========================
# Diagnostics Models
# =========================

class EnergyLevel(BaseModel):
    layer: int
    energy: float


class ConvergencePoint(BaseModel):
    iteration: int
    energy: float


class StateProbability(BaseModel):
    state: str
    prob: float


class DiagnosticsBundle(BaseModel):
    """Synthetic QAOA telemetry for display."""
    energy_levels: List[EnergyLevel]
    convergence: List[ConvergencePoint]
    eigenvalues: List[float]
    probabilities: List[StateProbability]


class ComparisonResult(BaseModel):
    """
    Side-by-side result of both strategies on the same problem.

    Attributes:
        better_solver: The solver leaving fewer customers unassigned; on equal
            coverage "quantum" only when strictly shorter, else "classical".
        improvement_pct: How much shorter the better solution is, relative
            to the worse one, in percent. 0.0 when the comparison is
            incomplete.
        complete: False when either solution left customers unassigned;
            such comparisons are not counted in the win metric.
        distance_share: Each solver's share of the combined distance
            (percent, 50/50 when both are zero).
    """
    quantum: VRPSolution
    classical: VRPSolution
    better_solver: SolverTag
    improvement_pct: float
    distance_share: Dict[str, float]
    complete: bool = True


class ViewportPoint(BaseModel):
    id: int
    x: float
    y: float


# =========================
# API Request/Response Models
# =========================

class RandomProblemRequest(BaseModel):
    """Request body for generating a random demo problem."""
    num_nodes: int = Field(default=6, ge=1, description="Nodes including the depot")
    num_vehicles: int = Field(default=2, ge=1, description="Vehicles")
    max_distance: Optional[int] = Field(default=None, ge=1, description="Upper bound for distances (default from settings)")
    seed: Optional[int] = Field(default=None, description="Random seed")


class QuboRequest(BaseModel):
    problem: VRPProblem
    penalty: Optional[float] = Field(default=None, description="Constraint penalty (default from settings)")


class QuboResponse(BaseModel):
    num_variables: int
    matrix: List[List[float]]


class DecodeRequest(BaseModel):
    problem: VRPProblem
    solution: List[int] = Field(..., description="Binary vector of length n*n*v")


class QuantumSolveRequest(BaseModel):
    problem: VRPProblem
    params: QAOAParams = Field(default_factory=QAOAParams)
    sampler: Optional[SamplerName] = Field(default=None, description="Sampler (default from settings)")
    seed: Optional[int] = Field(default=None, description="Sampler seed")


class ClassicalSolveRequest(BaseModel):
    problem: VRPProblem


class CompareRequest(BaseModel):
    problem: VRPProblem
    params: QAOAParams = Field(default_factory=QAOAParams)
    sampler: Optional[SamplerName] = Field(default=None, description="Sampler for the quantum-inspired run")
    seed: Optional[int] = Field(default=None, description="Sampler seed")


class LayoutRequest(BaseModel):
    nodes: List[Node]
    width: float = Field(default=800.0, gt=0)
    height: float = Field(default=600.0, gt=0)
    margin: float = Field(default=40.0, ge=0)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(default="healthy", description="Service status")
    version: str = Field(default="1.0.0", description="API version")
