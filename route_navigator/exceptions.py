"""
Error types and FastAPI error handlers for Quantum Route Navigator.

Domain code raises :class:`RouteNavigatorException` subclasses; the
handlers registered here turn them, request validation failures and
unexpected errors into one JSON error body (:class:`ErrorResponse`).
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .logging_config import get_correlation_id, get_logger
from .metrics import track_error

logger = get_logger(__name__)


class ErrorDetail(BaseModel):
    """One offending field or constraint."""
    field: Optional[str] = None
    message: str
    code: Optional[str] = None


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""
    error: str = Field(..., description="Machine-readable error code")
    message: str
    status_code: int
    correlation_id: Optional[str] = None
    details: Optional[List[ErrorDetail]] = None
    timestamp: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": "INVALID_INPUT",
                "message": "At least one vehicle is required",
                "status_code": 400,
                "correlation_id": "5f0c2d9e4b7a4c18",
                "details": [
                    {"field": "vehicles", "message": "At least one vehicle is required", "code": "no_vehicles"}
                ]
            }
        }
    }


def _error_body(
    error: str,
    message: str,
    status_code: int,
    details: Optional[List[ErrorDetail]] = None
) -> ErrorResponse:
    return ErrorResponse(
        error=error,
        message=message,
        status_code=status_code,
        correlation_id=get_correlation_id(),
        details=details,
        timestamp=datetime.now(timezone.utc).isoformat()
    )


class RouteNavigatorException(Exception):
    """
    Base class of all domain errors.

    Subclasses set ``error_code`` and ``status_code``; the API maps them
    straight onto the response.
    """

    error_code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[List[ErrorDetail]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> ErrorResponse:
        return _error_body(self.error_code, self.message, self.status_code, self.details)


class InvalidInputException(RouteNavigatorException):
    """
    A problem, penalty or solution vector is malformed.

    ``field`` names the offending input and ``code`` a stable reason
    (``dimension_mismatch``, ``no_vehicles``, ...).
    """

    error_code = "INVALID_INPUT"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: Optional[str] = None, code: Optional[str] = None):
        details = [ErrorDetail(field=field, message=message, code=code)] if field or code else None
        super().__init__(message, details)
        self.field = field


class ProblemTooLargeException(RouteNavigatorException):
    """The problem exceeds the configured node or vehicle bound."""

    error_code = "PROBLEM_TOO_LARGE"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, n_nodes: int, n_vehicles: int, max_nodes: int, max_vehicles: int):
        variables = n_nodes * n_nodes * n_vehicles
        super().__init__(
            f"{n_nodes} nodes x {n_vehicles} vehicles is over the limit "
            f"({max_nodes} nodes, {max_vehicles} vehicles)",
            [ErrorDetail(
                message=f"The QUBO would have {variables} binary variables",
                code="too_large"
            )]
        )
        self.n_nodes = n_nodes
        self.n_vehicles = n_vehicles


class SolverException(RouteNavigatorException):
    """A routing strategy failed on input that passed validation."""

    error_code = "SOLVER_ERROR"

    def __init__(self, solver: str, message: str):
        super().__init__(f"{solver} solver failed: {message}")
        self.solver = solver


async def route_navigator_exception_handler(request: Request, exc: RouteNavigatorException) -> JSONResponse:
    logger.warning(
        f"{exc.error_code}: {exc.message}",
        extra={"error_code": exc.error_code, "path": request.url.path}
    )
    track_error(exc.error_code, request.url.path)
    return JSONResponse(status_code=exc.status_code, content=exc.to_response().model_dump())


HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    503: "SERVICE_UNAVAILABLE",
}


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    error = HTTP_ERROR_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
    body = _error_body(error, str(exc.detail), exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Pydantic rejected the request body or query: 422 with one detail per error."""
    details = [
        ErrorDetail(
            field=".".join(str(part) for part in error.get("loc", ())),
            message=error.get("msg", "Invalid value"),
            code=error.get("type")
        )
        for error in exc.errors()
    ]
    logger.info(
        f"Rejected request to {request.url.path}",
        extra={"path": request.url.path, "error_count": len(details)}
    )
    track_error("VALIDATION_ERROR", request.url.path)

    body = _error_body(
        "VALIDATION_ERROR", "Request validation failed",
        status.HTTP_422_UNPROCESSABLE_ENTITY, details
    )
    return JSONResponse(status_code=body.status_code, content=body.model_dump())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled {type(exc).__name__} on {request.url.path}")
    track_error("INTERNAL_ERROR", request.url.path)

    from .config import get_settings
    message = "An unexpected error occurred" if get_settings().is_production else str(exc)

    body = _error_body("INTERNAL_ERROR", message, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=body.status_code, content=body.model_dump())


def register_exception_handlers(app) -> None:
    """Attach the error handlers to a FastAPI app."""
    app.add_exception_handler(RouteNavigatorException, route_navigator_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
