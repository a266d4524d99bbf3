"""
Tests for settings, structured logging, metrics and health checks.

Run with: pytest tests/test_infrastructure.py -v
"""

import asyncio
import json
import logging

import pytest
from prometheus_client import REGISTRY
from pydantic import ValidationError

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from route_navigator.config import Settings
from route_navigator.logging_config import (
    ContextFilter,
    JsonFormatter,
    LogContext,
    TextFormatter,
    get_correlation_id,
    get_solve_context,
)
from route_navigator.metrics import (
    HealthChecker,
    configure_metrics,
    get_metrics,
    track_comparison,
    track_error,
    track_qubo_size,
    track_solve,
)


def make_record(message="Solve finished", **extra):
    record = logging.LogRecord("route_navigator.solvers", logging.INFO, __file__, 10, message, None, None)
    record.__dict__.update(extra)
    return record


class TestSettings:
    """Tests for Settings validation."""

    def test_defaults(self):
        settings = Settings()
        assert settings.QUBO_PENALTY == 10.0
        assert settings.DEFAULT_SAMPLER == "jittered"
        assert settings.MAX_NODES == 15
        assert settings.MAX_VEHICLES == 5

    def test_choices_are_case_insensitive(self):
        settings = Settings(ENVIRONMENT="Production", LOG_LEVEL="debug", DEFAULT_SAMPLER="ANNEALING")
        assert settings.is_production
        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.DEFAULT_SAMPLER == "annealing"

    def test_unknown_sampler_rejected(self):
        with pytest.raises(ValidationError):
            Settings(DEFAULT_SAMPLER="dwave")

    def test_penalty_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(QUBO_PENALTY=0)

    def test_annealing_schedule(self):
        with pytest.raises(ValidationError):
            Settings(ANNEALING_TEMP_INIT=1.0, ANNEALING_TEMP_MIN=2.0)

    def test_cors_origins_list(self):
        assert Settings(CORS_ORIGINS=" http://a.test, ,http://b.test").cors_origins_list == [
            "http://a.test", "http://b.test"
        ]
        assert Settings(CORS_ORIGINS="").cors_origins_list == []


class TestLogContext:
    """Tests for the scoped solve context."""

    def test_fields_scoped_to_block(self):
        assert get_solve_context() == {}
        with LogContext(solver="quantum", nodes=4):
            assert get_solve_context() == {"solver": "quantum", "nodes": 4}
        assert get_solve_context() == {}

    def test_nested_contexts_merge(self):
        with LogContext(solver="classical"):
            with LogContext(nodes=6):
                assert get_solve_context() == {"solver": "classical", "nodes": 6}
            assert get_solve_context() == {"solver": "classical"}

    def test_correlation_id_generated_and_restored(self):
        assert get_correlation_id() is None
        with LogContext(solver="quantum"):
            assert get_correlation_id()
        assert get_correlation_id() is None

    def test_explicit_correlation_id(self):
        with LogContext(correlation_id="run-42"):
            assert get_correlation_id() == "run-42"

    def test_context_follows_to_thread(self):
        async def run():
            with LogContext(solver="quantum"):
                return await asyncio.to_thread(get_solve_context)

        assert asyncio.run(run()) == {"solver": "quantum"}


class TestFormatters:
    """Tests for JSON and text output."""

    def test_json_formatter_fields(self):
        formatter = JsonFormatter(Settings(ENVIRONMENT="testing"))
        with LogContext(correlation_id="abc", solver="quantum"):
            record = make_record(total_distance=14.0)
            ContextFilter().filter(record)
            entry = json.loads(formatter.format(record))

        assert entry["message"] == "Solve finished"
        assert entry["correlation_id"] == "abc"
        assert entry["solve"] == {"solver": "quantum"}
        assert entry["data"] == {"total_distance": 14.0}
        assert entry["environment"] == "testing"

    def test_json_formatter_exception(self):
        formatter = JsonFormatter(Settings())
        try:
            raise ValueError("bad vector")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        entry = json.loads(formatter.format(record))
        assert entry["error"]["type"] == "ValueError"
        assert entry["error"]["message"] == "bad vector"

    def test_text_formatter_appends_context(self):
        with LogContext(correlation_id="0123456789", solver="classical", nodes=3):
            line = TextFormatter().format(make_record())

        assert "[01234567]" in line
        assert line.endswith("Solve finished solver=classical nodes=3")


class TestHealthChecker:
    """Tests for HealthChecker."""

    def test_all_healthy(self):
        checker = HealthChecker()
        checker.register("sync", lambda: True)

        async def async_check():
            return True

        checker.register("async", async_check)
        report = asyncio.run(checker.check_all())

        assert report["status"] == "healthy"
        assert set(report["checks"]) == {"sync", "async"}
        assert report["checks"]["sync"]["latency_ms"] >= 0

    def test_failing_and_raising_checks(self):
        checker = HealthChecker()
        checker.register("down", lambda: False)
        checker.register("broken", lambda: 1 / 0)
        report = asyncio.run(checker.check_all())

        assert report["status"] == "unhealthy"
        assert report["checks"]["down"]["status"] == "unhealthy"
        assert report["checks"]["broken"]["status"] == "error"
        assert "ZeroDivisionError" in report["checks"]["broken"]["error"]

    def test_no_checks_is_healthy(self):
        assert asyncio.run(HealthChecker().check_all())["status"] == "healthy"


class TestSolverMetrics:
    """Tests for the solver-specific metric helpers."""

    def test_exposed(self):
        track_qubo_size(64)
        track_comparison("classical")
        text = get_metrics().decode()

        assert "vrp_qubo_variables_bucket" in text
        assert 'vrp_comparison_wins_total{solver="classical"}' in text

    def test_disabled_recorders_are_noops(self):
        def sample(name, labels=None):
            return REGISTRY.get_sample_value(name, labels or {}) or 0.0

        before = (
            sample("vrp_solve_requests_total", {"solver": "classical", "status": "success"}),
            sample("vrp_qubo_variables_count"),
            sample("vrp_comparison_wins_total", {"solver": "quantum"}),
            sample("errors_total", {"error_type": "INVALID_INPUT", "endpoint": "/x"}),
        )

        configure_metrics(Settings(METRICS_ENABLED=False))
        try:
            track_solve("classical", 4, 0.01, 14.0)
            track_qubo_size(16)
            track_comparison("quantum")
            track_error("INVALID_INPUT", "/x")
        finally:
            configure_metrics(Settings())

        after = (
            sample("vrp_solve_requests_total", {"solver": "classical", "status": "success"}),
            sample("vrp_qubo_variables_count"),
            sample("vrp_comparison_wins_total", {"solver": "quantum"}),
            sample("errors_total", {"error_type": "INVALID_INPUT", "endpoint": "/x"}),
        )
        assert after == before

        track_qubo_size(16)
        assert sample("vrp_qubo_variables_count") == before[1] + 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
