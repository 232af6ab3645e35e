"""
Tests for the Penalty Scorer.

Covers:
  - Severity multipliers
  - Default weights for unregistered axioms
  - Monotonicity in count and severity
"""

from __future__ import annotations

import pytest

from axiomos.systems.healer.registry import DEFAULT_WEIGHTS
from axiomos.systems.healer.scorer import SEVERITY_MULTIPLIERS, PenaltyScorer
from axiomos.systems.healer.types import Axiom, Severity, Violation


def _make_violation(
    axiom: Axiom = Axiom.SAFETY,
    severity: Severity = Severity.CRITICAL,
) -> Violation:
    return Violation(axiom=axiom, severity=severity, context="test", timestamp=0)


class TestPenaltyScorer:
    def test_empty_is_zero(self):
        assert PenaltyScorer().score([], DEFAULT_WEIGHTS) == 0.0

    def test_single_critical_safety(self):
        penalty = PenaltyScorer().score([_make_violation()], DEFAULT_WEIGHTS)
        assert penalty == pytest.approx(12.0)

    def test_multipliers_escalate_exponentially(self):
        assert [SEVERITY_MULTIPLIERS[s] for s in Severity] == [1.0, 2.0, 4.0, 8.0]

    def test_missing_weight_defaults_to_one(self):
        penalty = PenaltyScorer().score(
            [_make_violation(Axiom.FAIRNESS, Severity.MEDIUM)], {}
        )
        assert penalty == pytest.approx(2.0)

    def test_sum_over_violations(self):
        violations = [
            _make_violation(Axiom.CONSISTENCY, Severity.HIGH),  # 1.0 * 4
            _make_violation(Axiom.SAFETY, Severity.LOW),  # 1.5 * 1
        ]
        assert PenaltyScorer().score(violations, DEFAULT_WEIGHTS) == pytest.approx(5.5)

    def test_one_critical_outweighs_several_low(self):
        scorer = PenaltyScorer()
        lows = [_make_violation(Axiom.CONSISTENCY, Severity.LOW)] * 7
        critical = [_make_violation(Axiom.CONSISTENCY, Severity.CRITICAL)]
        assert scorer.score(critical, DEFAULT_WEIGHTS) > scorer.score(lows, DEFAULT_WEIGHTS)

    def test_monotonic_in_count(self):
        scorer = PenaltyScorer()
        violations: list[Violation] = []
        previous = scorer.score(violations, DEFAULT_WEIGHTS)
        for axiom in Axiom:
            violations.append(_make_violation(axiom, Severity.LOW))
            current = scorer.score(violations, DEFAULT_WEIGHTS)
            assert current >= previous
            previous = current

    @pytest.mark.parametrize("axiom", list(Axiom))
    def test_monotonic_in_severity(self, axiom):
        scorer = PenaltyScorer()
        scores = [
            scorer.score([_make_violation(axiom, s)], DEFAULT_WEIGHTS) for s in Severity
        ]
        assert scores == sorted(scores)
