"""
Structured Logging for Quantum Route Navigator.

Log records carry two pieces of ambient context:
- the correlation ID of the HTTP request that triggered them
- the solve context (solver, problem size) set by the routing strategies

Both live in context variables so they follow a request into
``asyncio.to_thread`` workers, where the solvers actually run.
"""

import json
import logging
import sys
import time
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from .config import Settings, get_settings


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
solve_context_var: ContextVar[Dict[str, Any]] = ContextVar("solve_context", default={})

CORRELATION_HEADERS = (b"x-correlation-id", b"x-request-id")

# LogRecord attributes set by the logging module itself
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName", "correlation_id", "solve"}


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set the correlation ID, generating one when none is given."""
    correlation_id = correlation_id or uuid4().hex
    correlation_id_var.set(correlation_id)
    return correlation_id


def get_solve_context() -> Dict[str, Any]:
    """Get a copy of the current solve context."""
    return dict(solve_context_var.get())


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__()
        settings = settings or get_settings()
        self.static_fields = {
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id and correlation_id != "-":
            entry["correlation_id"] = correlation_id

        solve = getattr(record, "solve", None) or get_solve_context()
        if solve:
            entry["solve"] = solve

        data = _extra_fields(record)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["error"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        entry.update(self.static_fields)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """
    Single-line console format for development.

    Example::

        14:02:11.513 INFO     route_navigator.solvers [3f2a9c1e] Solve finished solver=quantum nodes=6
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = False):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]

        level = f"{record.levelname:8}"
        if self.use_colors and record.levelname in self.LEVEL_COLORS:
            level = f"{self.LEVEL_COLORS[record.levelname]}{level}{self.RESET}"

        parts = [clock, level, record.name]

        correlation_id = get_correlation_id()
        if correlation_id:
            parts.append(f"[{correlation_id[:8]}]")

        parts.append(record.getMessage())
        parts.extend(f"{key}={value}" for key, value in get_solve_context().items())

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


class ContextFilter(logging.Filter):
    """Copies the correlation ID and solve context onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        record.solve = get_solve_context()
        return True


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Install a single stdout handler on the root logger."""
    settings = settings or get_settings()
    level = logging.getLevelName(settings.LOG_LEVEL)

    if settings.LOG_FORMAT == "json":
        formatter: logging.Formatter = JsonFormatter(settings)
    else:
        formatter = TextFormatter(use_colors=settings.is_development and sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Requests are logged by RequestLoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    for noisy in ("asyncio", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured",
        extra={"log_level": settings.LOG_LEVEL, "log_format": settings.LOG_FORMAT}
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; context is attached by the handler filter."""
    return logging.getLogger(name)


class LogContext:
    """
    Scope solve context fields onto every record logged inside the block.

    Usage:
        with LogContext(solver="quantum", nodes=6, vehicles=2):
            logger.info("Solve started")

    Nested contexts merge their fields; a correlation ID is generated for
    runs outside an HTTP request so a whole solve can still be grepped.
    """

    def __init__(self, correlation_id: Optional[str] = None, **fields: Any):
        self.correlation_id = correlation_id
        self.fields = fields
        self._tokens = []

    def __enter__(self) -> "LogContext":
        if self.correlation_id or get_correlation_id() is None:
            cid = self.correlation_id or uuid4().hex
            self._tokens.append((correlation_id_var, correlation_id_var.set(cid)))
        if self.fields:
            merged = {**solve_context_var.get(), **self.fields}
            self._tokens.append((solve_context_var, solve_context_var.set(merged)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


def _header(scope, names) -> Optional[str]:
    for key, value in scope.get("headers", []):
        if key.lower() in names and value:
            return value.decode("latin-1")
    return None


class RequestLoggingMiddleware:
    """
    ASGI middleware that tags each request with a correlation ID.

    The ID is taken from ``X-Correlation-ID`` / ``X-Request-ID`` when the
    client sends one, echoed back in ``x-correlation-id``, and logged once
    per request together with status and latency.
    """

    def __init__(self, app):
        self.app = app
        self.logger = get_logger("route_navigator.requests")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = _header(scope, CORRELATION_HEADERS) or uuid4().hex
        cid_token = correlation_id_var.set(correlation_id)
        method, path = scope.get("method", ""), scope.get("path", "")
        status_code = 500
        started = time.perf_counter()

        async def send_with_header(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                message["headers"] = [
                    *message.get("headers", []),
                    (b"x-correlation-id", correlation_id.encode("latin-1")),
                ]
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        except Exception:
            self.logger.exception(f"{method} {path} raised", extra={"path": path})
            raise
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.logger.info(
                f"{method} {path} -> {status_code} ({elapsed_ms:.1f} ms)",
                extra={"method": method, "path": path, "status_code": status_code, "duration_ms": elapsed_ms}
            )
            correlation_id_var.reset(cid_token)
