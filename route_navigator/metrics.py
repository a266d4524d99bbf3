"""
Prometheus metrics and health checks for Quantum Route Navigator.

Solver metrics are labelled by solver tag (``quantum`` / ``classical``);
HTTP metrics by method and route template.
"""

import inspect
import re
import time
from typing import Any, Callable, Dict

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from .config import Settings


APP_INFO = Info("route_navigator", "Quantum Route Navigator build and runtime configuration")

# --- HTTP ---
REQUEST_COUNT = Counter(
    "http_requests_total", "HTTP requests", ["method", "endpoint", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "HTTP request latency", ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)
REQUEST_IN_PROGRESS = Gauge(
    "http_requests_in_progress", "HTTP requests being served", ["method", "endpoint"]
)

# --- solvers ---
SOLVE_COUNT = Counter(
    "vrp_solve_requests_total", "VRP solve calls", ["solver", "status"]
)
SOLVE_DURATION = Histogram(
    "vrp_solve_duration_seconds", "Wall-clock time of one solve", ["solver"],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0)
)
ROUTE_DISTANCE = Histogram(
    "vrp_route_total_distance", "Total distance of returned solutions", ["solver"],
    buckets=(10, 50, 100, 250, 500, 1000, 2500, 5000)
)
NODES_PER_PROBLEM = Histogram(
    "vrp_nodes_per_problem", "Nodes per solved problem, depot included",
    buckets=(1, 2, 3, 5, 7, 10, 15)
)
QUBO_VARIABLES = Histogram(
    "vrp_qubo_variables", "Binary variables per encoded QUBO (n*n*v)",
    buckets=(4, 16, 64, 256, 512, 1125)
)
UNASSIGNED_NODES = Counter(
    "vrp_unassigned_nodes_total", "Customers left unvisited by the quantum-inspired path"
)
COMPARISON_WINS = Counter(
    "vrp_comparison_wins_total", "Side-by-side comparisons won, by solver", ["solver"]
)
QAOA_LAYERS = Gauge("qaoa_layers_configured", "Default QAOA layer count")

ERROR_COUNT = Counter(
    "errors_total", "Errors returned to clients", ["error_type", "endpoint"]
)


_recording = {"enabled": True}


def configure_metrics(settings: Settings) -> None:
    """
    Apply ``METRICS_ENABLED`` to every recorder in this module.

    When disabled, the ``track_*`` helpers are no-ops, no app info is
    published and ``create_app`` leaves out the HTTP middleware.
    """
    _recording["enabled"] = settings.METRICS_ENABLED
    if not settings.METRICS_ENABLED:
        return
    APP_INFO.info({
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "sampler": settings.DEFAULT_SAMPLER,
        "qaoa_backend": settings.QAOA_BACKEND,
    })
    QAOA_LAYERS.set(settings.QAOA_LAYERS)


def metrics_enabled() -> bool:
    return _recording["enabled"]


def track_solve(
    solver: str,
    n_nodes: int,
    duration: float,
    total_distance: float,
    unassigned: int = 0,
    success: bool = True
) -> None:
    """
    Record one solve call.

    Args:
        solver: "quantum" or "classical".
        n_nodes: Node count of the problem.
        duration: Wall-clock duration in seconds.
        total_distance: Total distance of the solution.
        unassigned: Customers left unvisited.
        success: False when the solve raised; only the counter moves then.
    """
    if not metrics_enabled():
        return
    SOLVE_COUNT.labels(solver=solver, status="success" if success else "failure").inc()
    if not success:
        return

    SOLVE_DURATION.labels(solver=solver).observe(duration)
    ROUTE_DISTANCE.labels(solver=solver).observe(total_distance)
    NODES_PER_PROBLEM.observe(n_nodes)
    if unassigned:
        UNASSIGNED_NODES.inc(unassigned)


def track_qubo_size(n_variables: int) -> None:
    if not metrics_enabled():
        return
    QUBO_VARIABLES.observe(n_variables)


def track_comparison(winner: str) -> None:
    if not metrics_enabled():
        return
    COMPARISON_WINS.labels(solver=winner).inc()


def track_error(error_type: str, endpoint: str) -> None:
    if not metrics_enabled():
        return
    ERROR_COUNT.labels(error_type=error_type, endpoint=endpoint).inc()


def get_metrics() -> bytes:
    """Current registry in the Prometheus text format."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST


class HealthChecker:
    """
    Named component checks behind the readiness endpoint.

    A check is a sync or async callable returning a bool. Exceptions are
    reported as an unhealthy component rather than failing the whole check.
    """

    def __init__(self):
        self.checks: Dict[str, Callable[[], Any]] = {}

    def register(self, name: str, check: Callable[[], Any]) -> None:
        self.checks[name] = check

    async def _run(self, check: Callable[[], Any]) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            healthy = bool(await check() if inspect.iscoroutinefunction(check) else check())
            result: Dict[str, Any] = {"status": "healthy" if healthy else "unhealthy", "healthy": healthy}
        except Exception as e:
            result = {"status": "error", "healthy": False, "error": f"{type(e).__name__}: {e}"}
        result["latency_ms"] = round((time.perf_counter() - started) * 1000, 3)
        return result

    async def check_all(self) -> Dict[str, Any]:
        results = {name: await self._run(check) for name, check in self.checks.items()}
        healthy = all(r["healthy"] for r in results.values())
        return {"status": "healthy" if healthy else "unhealthy", "checks": results}


health_checker = HealthChecker()


_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|$)")


class MetricsMiddleware:
    """ASGI middleware recording request count, latency and concurrency."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "UNKNOWN")
        endpoint = _NUMERIC_SEGMENT.sub("/{id}", scope.get("path", "/"))
        in_progress = REQUEST_IN_PROGRESS.labels(method=method, endpoint=endpoint)
        status_code = 500

        async def send_recording_status(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        in_progress.inc()
        started = time.perf_counter()
        try:
            await self.app(scope, receive, send_recording_status)
        finally:
            in_progress.dec()
            REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(time.perf_counter() - started)
            REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
