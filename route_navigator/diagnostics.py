"""
QAOA Diagnostics.

Synthetic telemetry shown next to a quantum-inspired run: an energy value
per QAOA layer, a 20-step convergence curve, and fixed eigenvalue and
measurement-probability tables. None of it depends on the solved problem.
"""

import math

from .models import (
    ConvergencePoint,
    DiagnosticsBundle,
    EnergyLevel,
    QAOAParams,
    StateProbability,
)


GROUND_ENERGY = -10.0
CONVERGENCE_ITERATIONS = 20

EIGENVALUES = [-9.8, -7.5, -5.2, -3.1, -1.8, 0.3, 2.5, 4.7]

STATE_PROBABILITIES = [
    ("000", 0.02),
    ("001", 0.03),
    ("010", 0.05),
    ("011", 0.05),
    ("100", 0.10),
    ("101", 0.15),
    ("110", 0.20),
    ("111", 0.40),
]


def _decay(rate: float, step: int) -> float:
    return GROUND_ENERGY * (1 - math.exp(-rate * step))


def compute_diagnostics(layer_count: int) -> DiagnosticsBundle:
    """
    Build the diagnostics bundle for a given number of layers.

    Args:
        layer_count: QAOA depth p; one energy level per layer.

    Returns:
        DiagnosticsBundle with energies decaying toward -10.
    """
    return DiagnosticsBundle(
        energy_levels=[
            EnergyLevel(layer=layer, energy=_decay(0.5, layer))
            for layer in range(1, layer_count + 1)
        ],
        convergence=[
            ConvergencePoint(iteration=it, energy=_decay(0.1, it))
            for it in range(1, CONVERGENCE_ITERATIONS + 1)
        ],
        eigenvalues=list(EIGENVALUES),
        probabilities=[
            StateProbability(state=state, prob=prob)
            for state, prob in STATE_PROBABILITIES
        ],
    )


def get_qaoa_metrics(params: QAOAParams) -> DiagnosticsBundle:
    """Diagnostics for a run with the given QAOA parameters."""
    return compute_diagnostics(params.p)
