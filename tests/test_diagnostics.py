"""
Unit tests for the QAOA diagnostics (diagnostics.py).

Run with: pytest tests/test_diagnostics.py -v
"""

import math

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from route_navigator.diagnostics import compute_diagnostics, get_qaoa_metrics
from route_navigator.models import QAOAParams


class TestComputeDiagnostics:
    """Test cases for compute_diagnostics."""

    def test_energy_levels_per_layer(self):
        bundle = compute_diagnostics(3)

        assert [level.layer for level in bundle.energy_levels] == [1, 2, 3]
        for level in bundle.energy_levels:
            assert level.energy == pytest.approx(-10 * (1 - math.exp(-0.5 * level.layer)))

    def test_energies_decrease_toward_ground(self):
        energies = [level.energy for level in compute_diagnostics(6).energy_levels]
        assert energies == sorted(energies, reverse=True)
        assert all(-10 < e < 0 for e in energies)

    def test_convergence_curve(self):
        convergence = compute_diagnostics(1).convergence

        assert len(convergence) == 20
        assert convergence[0].iteration == 1
        assert convergence[-1].iteration == 20
        assert convergence[9].energy == pytest.approx(-10 * (1 - math.exp(-1.0)))

    def test_fixed_tables(self):
        bundle = compute_diagnostics(2)

        assert bundle.eigenvalues == [-9.8, -7.5, -5.2, -3.1, -1.8, 0.3, 2.5, 4.7]
        assert [p.state for p in bundle.probabilities] == [
            "000", "001", "010", "011", "100", "101", "110", "111"
        ]
        assert sum(p.prob for p in bundle.probabilities) == pytest.approx(1.0)
        assert bundle.probabilities[-1].prob == pytest.approx(0.40)

    def test_pure(self):
        assert compute_diagnostics(4) == compute_diagnostics(4)

    def test_tables_not_shared(self):
        """Mutating one bundle does not leak into the next."""
        bundle = compute_diagnostics(1)
        bundle.eigenvalues.append(99.0)
        assert len(compute_diagnostics(1).eigenvalues) == 8


class TestGetQaoaMetrics:
    """Test cases for get_qaoa_metrics."""

    def test_uses_layer_count(self):
        bundle = get_qaoa_metrics(QAOAParams(p=5, backend="aer_simulator", shots=10))
        assert len(bundle.energy_levels) == 5

    def test_default_params(self):
        assert len(get_qaoa_metrics(QAOAParams()).energy_levels) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
