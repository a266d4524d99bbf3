"""
FastAPI application for Quantum Route Navigator.

Run locally with::

    uvicorn route_navigator.main:app --reload

The versioned API lives under ``API_PREFIX`` (see api_router.py); the
unversioned ``/``, ``/health`` and ``/metrics`` routes are for load
balancers and Prometheus scrapers.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .api_router import create_api_router
from .config import Settings, get_settings
from .exceptions import register_exception_handlers
from .logging_config import RequestLoggingMiddleware, get_logger, setup_logging
from .metrics import (
    MetricsMiddleware,
    configure_metrics,
    get_metrics,
    get_metrics_content_type,
    health_checker,
)
from .models import HealthResponse, Node, Vehicle, VRPProblem
from .qubo import vrp_to_qubo
from .samplers import create_sampler

logger = get_logger(__name__)

_CHECK_PROBLEM = VRPProblem(
    nodes=[Node(id=0), Node(id=1)],
    vehicles=[Vehicle(id=0)],
    distance_matrix=[[0, 1], [1, 0]]
)


def check_sampler_config(settings: Settings) -> bool:
    """The configured default sampler can be built."""
    return create_sampler(settings=settings) is not None


def check_encoder(settings: Settings) -> bool:
    """A two-node problem encodes to a 4x4 QUBO with the configured penalty."""
    return vrp_to_qubo(_CHECK_PROBLEM, settings.QUBO_PENALTY).shape == (4, 4)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    setup_logging(settings)
    configure_metrics(settings)

    health_checker.register("sampler", lambda: check_sampler_config(settings))
    health_checker.register("encoder", lambda: check_encoder(settings))

    logger.info(
        f"{settings.APP_NAME} {settings.APP_VERSION} ready",
        extra={
            "environment": settings.ENVIRONMENT,
            "sampler": settings.DEFAULT_SAMPLER,
            "max_nodes": settings.MAX_NODES,
            "max_vehicles": settings.MAX_VEHICLES
        }
    )
    yield
    logger.info(f"{settings.APP_NAME} stopped")


def _add_root_routes(app: FastAPI, settings: Settings, docs_enabled: bool) -> None:
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "api": settings.API_PREFIX,
            "docs": "/docs" if docs_enabled else None,
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        """Liveness check without dependency checks."""
        return HealthResponse(status="healthy", version=settings.APP_VERSION)

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        return Response(content=get_metrics(), media_type=get_metrics_content_type())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application: middleware, error handlers and routes."""
    settings = settings or get_settings()
    docs_enabled = settings.DEBUG or settings.is_development

    app = FastAPI(
        title=settings.APP_NAME,
        description="Vehicle routing with a QUBO-based quantum-inspired solver and a greedy classical baseline",
        version=settings.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    # added last runs first: request logging wraps metrics and CORS
    if settings.METRICS_ENABLED:
        app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list or ["*"],
        allow_credentials=bool(settings.cors_origins_list),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["x-correlation-id"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)
    app.include_router(create_api_router(settings))
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings
    _add_root_routes(app, settings, docs_enabled)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("route_navigator.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
