"""
Version 1 of the Quantum Route Navigator HTTP API.

Endpoints fall into three groups:
- problems: random instances, viewport layout, QUBO encode and decode
- solving: quantum-inspired, classical and side-by-side comparison
- operations: readiness, info, QAOA diagnostics and Prometheus metrics

Encoding and decoding are CPU-bound numpy work, so those endpoints are
plain ``def`` and run in FastAPI's threadpool; the solve endpoints hand
off to ``asyncio.to_thread`` inside the solver entry points.
"""

from typing import Annotated, List

import numpy as np
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from .config import Settings, get_settings
from .diagnostics import get_qaoa_metrics
from .exceptions import ErrorResponse, ProblemTooLargeException
from .generator import generate_random_problem, project_to_viewport
from .metrics import get_metrics, get_metrics_content_type, health_checker
from .models import (
    ClassicalSolveRequest,
    CompareRequest,
    ComparisonResult,
    DecodeRequest,
    DiagnosticsBundle,
    LayoutRequest,
    QAOAParams,
    QuantumSolveRequest,
    QuboRequest,
    QuboResponse,
    RandomProblemRequest,
    Route,
    ViewportPoint,
    VRPProblem,
    VRPSolution,
)
from .qubo import decode_solution, num_variables, vrp_to_qubo
from .solvers import compare_solvers, solve_vrp_classical, solve_vrp_with_qaoa
from .utils import validate_problem

SettingsDep = Annotated[Settings, Depends(get_settings)]

api_v1_router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed or oversized problem"},
    422: {"model": ErrorResponse, "description": "Request body failed validation"},
    500: {"model": ErrorResponse, "description": "Solver failed"},
}


@api_v1_router.get(
    "/health",
    tags=["Operations"],
    summary="Readiness",
    responses={503: {"description": "A component check failed"}}
)
async def health_check(settings: SettingsDep):
    """Run the registered component checks; 503 when any of them fails."""
    report = await health_checker.check_all()
    return JSONResponse(
        status_code=200 if report["status"] == "healthy" else 503,
        content={
            "status": report["status"],
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "checks": report["checks"]
        }
    )


@api_v1_router.get("/health/live", tags=["Operations"], summary="Liveness")
async def liveness():
    return {"status": "alive"}


@api_v1_router.get("/info", tags=["Operations"], summary="Solver defaults and limits")
async def api_info(settings: SettingsDep):
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "solvers": {
            "quantum": {
                "sampler": settings.DEFAULT_SAMPLER,
                "penalty": settings.QUBO_PENALTY,
                "qaoa_layers": settings.QAOA_LAYERS,
                "qaoa_backend": settings.QAOA_BACKEND,
            },
            "classical": {"algorithm": "greedy_round_robin"},
        },
        "limits": {
            "max_nodes": settings.MAX_NODES,
            "max_vehicles": settings.MAX_VEHICLES,
            "max_qubo_variables": num_variables(settings.MAX_NODES, settings.MAX_VEHICLES),
        }
    }


@api_v1_router.post(
    "/problems/random",
    response_model=VRPProblem,
    responses=ERROR_RESPONSES,
    tags=["Problems"],
    summary="Random symmetric instance on a circle",
)
async def random_problem(request: RandomProblemRequest, settings: SettingsDep):
    """Same seed, same instance."""
    if request.num_nodes > settings.MAX_NODES or request.num_vehicles > settings.MAX_VEHICLES:
        raise ProblemTooLargeException(
            request.num_nodes, request.num_vehicles,
            settings.MAX_NODES, settings.MAX_VEHICLES
        )

    return generate_random_problem(
        num_nodes=request.num_nodes,
        num_vehicles=request.num_vehicles,
        max_distance=request.max_distance or settings.DEFAULT_MAX_DISTANCE,
        rng=np.random.default_rng(request.seed),
        radius=settings.COORDINATE_RADIUS
    )


@api_v1_router.post(
    "/layout",
    response_model=List[ViewportPoint],
    tags=["Problems"],
    summary="Scale node coordinates into a drawing area",
)
async def layout(request: LayoutRequest):
    return project_to_viewport(request.nodes, request.width, request.height, request.margin)


@api_v1_router.post(
    "/qubo",
    response_model=QuboResponse,
    responses=ERROR_RESPONSES,
    tags=["Problems"],
    summary="Encode a problem as a dense QUBO matrix",
)
def encode_qubo(request: QuboRequest, settings: SettingsDep):
    """
    The matrix has (n*n*v)^2 entries, so the size limits are checked
    before anything is allocated.
    """
    problem = request.problem
    validate_problem(problem, settings.MAX_NODES, settings.MAX_VEHICLES)
    penalty = settings.QUBO_PENALTY if request.penalty is None else request.penalty

    return QuboResponse(
        num_variables=num_variables(problem.n_nodes, problem.n_vehicles),
        matrix=vrp_to_qubo(problem, penalty).tolist()
    )


@api_v1_router.post(
    "/decode",
    response_model=List[Route],
    responses=ERROR_RESPONSES,
    tags=["Problems"],
    summary="Decode a binary assignment vector into routes",
)
def decode(request: DecodeRequest):
    return decode_solution(request.solution, request.problem)


@api_v1_router.post(
    "/solve/quantum",
    response_model=VRPSolution,
    responses=ERROR_RESPONSES,
    tags=["Solving"],
    summary="Quantum-inspired solve (encode, sample, decode)",
)
async def solve_quantum_endpoint(request: QuantumSolveRequest, settings: SettingsDep):
    return await solve_vrp_with_qaoa(
        request.problem,
        params=request.params,
        sampler=request.sampler,
        seed=request.seed,
        settings=settings
    )


@api_v1_router.post(
    "/solve/classical",
    response_model=VRPSolution,
    responses=ERROR_RESPONSES,
    tags=["Solving"],
    summary="Greedy round-robin nearest-neighbour solve",
)
async def solve_classical_endpoint(request: ClassicalSolveRequest, settings: SettingsDep):
    return await solve_vrp_classical(request.problem, settings=settings)


@api_v1_router.post(
    "/compare",
    response_model=ComparisonResult,
    responses=ERROR_RESPONSES,
    tags=["Solving"],
    summary="Run both solvers concurrently and compare totals",
)
async def compare(request: CompareRequest, settings: SettingsDep):
    return await compare_solvers(
        request.problem,
        params=request.params,
        sampler=request.sampler,
        seed=request.seed,
        settings=settings
    )


@api_v1_router.post(
    "/qaoa/metrics",
    response_model=DiagnosticsBundle,
    tags=["Operations"],
    summary="Synthetic QAOA telemetry for a layer count",
)
async def qaoa_metrics(params: QAOAParams):
    return get_qaoa_metrics(params)


@api_v1_router.get("/metrics", include_in_schema=False)
async def metrics():
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


def create_api_router(settings: Settings) -> APIRouter:
    """Mount the v1 endpoints under ``settings.API_PREFIX``."""
    router = APIRouter()
    router.include_router(api_v1_router, prefix=settings.API_PREFIX)
    return router
