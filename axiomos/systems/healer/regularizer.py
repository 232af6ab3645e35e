"""
AxiomOS — Adaptive Axiomatic Regularizer

Composition root for the non-orchestrating parts of the healer:

  AxiomRegistry + WeightAdapter  — adaptive axiom weights
  ViolationDetector              — rule evaluation
  PenaltyScorer                  — weighted severity penalty
  ViolationLedger                — shared violation history

The regularizer holds no decision logic of its own. It exists so callers
can detect, score, adapt, and record without going through the healer.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from axiomos.systems.healer.detector import (
    BaseDetectionRule,
    Clock,
    KeywordRule,
    ViolationDetector,
)
from axiomos.systems.healer.ledger import ViolationLedger
from axiomos.systems.healer.registry import AxiomRegistry, WeightAdapter
from axiomos.systems.healer.scorer import PenaltyScorer
from axiomos.systems.healer.types import Axiom, Violation, ViolationStatistics

if TYPE_CHECKING:
    from axiomos.config import LedgerConfig, RegularizerConfig


class AdaptiveAxiomaticRegularizer:
    """Monitors axioms and carries the adaptive weights used to enforce them."""

    def __init__(
        self,
        registry: AxiomRegistry | None = None,
        detector: ViolationDetector | None = None,
        scorer: PenaltyScorer | None = None,
        ledger: ViolationLedger | None = None,
        learning_rate: float = 0.01,
    ) -> None:
        self.registry = registry or AxiomRegistry()
        self.detector = detector or ViolationDetector()
        self.scorer = scorer or PenaltyScorer()
        self.ledger = ledger or ViolationLedger()
        self.adapter = WeightAdapter(self.registry, learning_rate)

    @classmethod
    def from_config(
        cls,
        config: RegularizerConfig,
        ledger_config: LedgerConfig | None = None,
        clock: Clock | None = None,
    ) -> AdaptiveAxiomaticRegularizer:
        rules: list[BaseDetectionRule] = [
            KeywordRule(r.name, r.axiom, r.severity, r.keywords) for r in config.rules
        ]
        ledger = (
            ViolationLedger(
                max_entries=ledger_config.max_entries,
                lock_timeout_s=ledger_config.lock_timeout_s,
            )
            if ledger_config is not None
            else ViolationLedger()
        )
        return cls(
            registry=AxiomRegistry(
                config.initial_weights,
                min_weight=config.min_weight,
                max_weight=config.max_weight,
            ),
            detector=ViolationDetector(rules, clock=clock),
            ledger=ledger,
            learning_rate=config.learning_rate,
        )

    @property
    def learning_rate(self) -> float:
        return self.adapter.learning_rate

    @property
    def weights(self) -> dict[Axiom, float]:
        return self.registry.snapshot()

    def detect_violations(self, context: str) -> list[Violation]:
        return self.detector.detect(context)

    def calculate_penalty(self, violations: Sequence[Violation]) -> float:
        return self.scorer.score(violations, self.registry.snapshot())

    def update_weights(self, axiom: Axiom, feedback: float) -> float | None:
        return self.adapter.update(axiom, feedback)

    def record_violation(self, violation: Violation) -> None:
        self.ledger.record(violation)

    def record_violations(self, violations: Iterable[Violation]) -> None:
        self.ledger.record_many(violations)

    def statistics(self) -> ViolationStatistics:
        return self.ledger.statistics()
