"""
AxiomOS — Penalty Scorer

penalty = Σ weight(axiom) × multiplier(severity)

Multipliers escalate exponentially so that a single CRITICAL violation
outweighs several LOW ones.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from axiomos.systems.healer.registry import DEFAULT_WEIGHT
from axiomos.systems.healer.types import Axiom, Severity, Violation


SEVERITY_MULTIPLIERS: dict[Severity, float] = {
    Severity.LOW: 1.0,
    Severity.MEDIUM: 2.0,
    Severity.HIGH: 4.0,
    Severity.CRITICAL: 8.0,
}


class PenaltyScorer:
    """Pure and total: never raises, empty input scores 0.0."""

    def __init__(self, default_weight: float = DEFAULT_WEIGHT) -> None:
        self._default_weight = default_weight

    def multiplier(self, severity: Severity) -> float:
        return SEVERITY_MULTIPLIERS.get(severity, 1.0)

    def score(
        self,
        violations: Sequence[Violation],
        weights: Mapping[Axiom, float],
    ) -> float:
        return sum(
            (
                weights.get(v.axiom, self._default_weight) * self.multiplier(v.severity)
                for v in violations
            ),
            0.0,
        )
