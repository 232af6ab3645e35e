"""
AxiomOS — Axiomatic Self-Healer (Orchestration)

Every unit of work passes through the healer. It either passes the
context through untouched, records but tolerates minor deviations, or
actively rewrites the context to restore conformance.

Pipeline:
  Detect → Score → (threshold, auto_heal) → Pass | Tolerate | Heal → Record

Healing rules:
  - Violations are processed in detection order
  - Each violation's strategies are tried in catalog order against the
    current working context; the first success wins, the rest are skipped
  - A violation whose strategies all fail is left unhealed; processing
    continues with the next one
  - Every violation is recorded exactly once, healed or not
  - Strategy failures never fail the call

Interface:
  monitor()            — full pipeline, returns a HealReport
  monitor_and_heal()   — full pipeline, returns the resulting context
  detect_violations()  — detection only
  calculate_penalty()  — scoring only
  update_weights()     — feed back a signal for one axiom
  get_statistics()     — ledger aggregates
  health()             — self-health report
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import structlog

from axiomos.systems.healer.regularizer import AdaptiveAxiomaticRegularizer
from axiomos.systems.healer.strategies import StrategyCatalog, default_implementations
from axiomos.systems.healer.types import (
    Axiom,
    HealAction,
    HealReport,
    StrategyOutcome,
    Violation,
    ViolationStatistics,
)

if TYPE_CHECKING:
    from axiomos.config import AxiomOSConfig
    from axiomos.systems.healer.detector import Clock

logger = structlog.get_logger()


class AxiomaticSelfHealer:
    """
    Orchestrates detection, scoring, and remediation.

    threshold and auto_heal are fixed at construction. The only state that
    outlives a call is the regularizer's weight map and ledger, plus the
    healer's own counters.
    """

    system_id: str = "healer"

    def __init__(
        self,
        regularizer: AdaptiveAxiomaticRegularizer | None = None,
        catalog: StrategyCatalog | None = None,
        threshold: float = 0.5,
        auto_heal: bool = True,
    ) -> None:
        self._regularizer = regularizer or AdaptiveAxiomaticRegularizer()
        self._catalog = catalog or StrategyCatalog()
        self._threshold = threshold
        self._auto_heal = auto_heal
        self._logger = logger.bind(system="healer", component="self_healer")

        # Counters
        self._counters_lock = threading.Lock()
        self._total_monitored: int = 0
        self._actions: Counter[str] = Counter()
        self._total_strategy_attempts: int = 0
        self._total_strategy_failures: int = 0
        self._total_unhealed: int = 0

    @classmethod
    def from_config(
        cls,
        config: AxiomOSConfig,
        clock: Clock | None = None,
    ) -> AxiomaticSelfHealer:
        regularizer = AdaptiveAxiomaticRegularizer.from_config(
            config.regularizer, config.ledger, clock=clock
        )
        catalog = StrategyCatalog(
            plan=config.healer.strategies,
            implementations=default_implementations(
                config.healer.recompute_replacements
            ),
        )
        return cls(
            regularizer=regularizer,
            catalog=catalog,
            threshold=config.healer.threshold,
            auto_heal=config.healer.auto_heal,
        )

    # ─── Properties ──────────────────────────────────────────────────

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def auto_heal(self) -> bool:
        return self._auto_heal

    @property
    def regularizer(self) -> AdaptiveAxiomaticRegularizer:
        return self._regularizer

    @property
    def catalog(self) -> StrategyCatalog:
        return self._catalog

    # ─── Pipeline ────────────────────────────────────────────────────

    def monitor(self, context: str) -> HealReport:
        """Run the full pipeline and report everything that happened."""
        violations = self._regularizer.detect_violations(context)

        if not violations:
            self._count(HealAction.PASSED)
            return HealReport(
                original_context=context,
                context=context,
                action=HealAction.PASSED,
            )

        penalty = self._regularizer.calculate_penalty(violations)
        self._logger.debug(
            "penalty_scored",
            penalty=round(penalty, 4),
            threshold=self._threshold,
            violations=len(violations),
        )

        if penalty <= self._threshold or not self._auto_heal:
            self._regularizer.record_violations(violations)
            self._count(HealAction.TOLERATED)
            self._logger.info(
                "violations_tolerated",
                penalty=round(penalty, 4),
                threshold=self._threshold,
                auto_heal=self._auto_heal,
                count=len(violations),
            )
            return HealReport(
                original_context=context,
                context=context,
                action=HealAction.TOLERATED,
                penalty=penalty,
                violations=violations,
            )

        return self._heal(context, violations, penalty)

    def monitor_and_heal(self, context: str) -> str:
        """Run the full pipeline and return the (possibly rewritten) context."""
        return self.monitor(context).context

    def _heal(
        self,
        context: str,
        violations: Sequence[Violation],
        penalty: float,
    ) -> HealReport:
        working = context
        outcomes: list[StrategyOutcome] = []
        unhealed: list[Violation] = []

        for violation in violations:
            healed = False
            for strategy in self._catalog.strategies_for(violation.axiom):
                outcome = self._catalog.apply(strategy, working, violation)
                outcomes.append(outcome)
                if outcome.succeeded and outcome.context is not None:
                    working = outcome.context
                    healed = True
                    self._logger.info(
                        "violation_healed",
                        violation_id=violation.id,
                        axiom=violation.axiom.value,
                        strategy=strategy.value,
                    )
                    break

            if not healed:
                unhealed.append(violation)
                self._logger.warning(
                    "violation_unhealed",
                    violation_id=violation.id,
                    axiom=violation.axiom.value,
                    severity=violation.severity.name,
                    attempted=[
                        s.value for s in self._catalog.strategies_for(violation.axiom)
                    ],
                )

        # Recorded once each, in detection order, regardless of outcome
        self._regularizer.record_violations(violations)

        failures = sum(1 for o in outcomes if not o.succeeded)
        with self._counters_lock:
            self._total_monitored += 1
            self._actions[HealAction.HEALED.value] += 1
            self._total_strategy_attempts += len(outcomes)
            self._total_strategy_failures += failures
            self._total_unhealed += len(unhealed)

        return HealReport(
            original_context=context,
            context=working,
            action=HealAction.HEALED,
            penalty=penalty,
            violations=list(violations),
            outcomes=outcomes,
            unhealed=unhealed,
        )

    # ─── Facade ──────────────────────────────────────────────────────

    def detect_violations(self, context: str) -> list[Violation]:
        return self._regularizer.detect_violations(context)

    def calculate_penalty(self, violations: Sequence[Violation]) -> float:
        return self._regularizer.calculate_penalty(violations)

    def update_weights(self, axiom: Axiom, feedback: float) -> float | None:
        return self._regularizer.update_weights(axiom, feedback)

    def get_statistics(self) -> ViolationStatistics:
        return self._regularizer.statistics()

    # ─── Health ──────────────────────────────────────────────────────

    def health(self) -> dict[str, Any]:
        """Snapshot of status, configuration, counters, weights, and ledger size."""
        ledger = self._regularizer.ledger
        stats = self.stats
        # Degraded once any violation was left unhealed or a ledger read timed out
        degraded = stats["unhealed"] > 0 or ledger.lock_timeouts > 0
        return {
            "status": "degraded" if degraded else "healthy",
            "auto_heal": self._auto_heal,
            "threshold": self._threshold,
            **stats,
            "ledger_lock_timeouts": ledger.lock_timeouts,
            "ledger_size": len(ledger),
            "ledger_total_recorded": ledger.total_recorded,
            "ledger_max_entries": ledger.max_entries,
            "weights": {a.value: round(w, 4) for a, w in self._regularizer.weights.items()},
        }

    @property
    def stats(self) -> dict[str, Any]:
        with self._counters_lock:
            return {
                "total_monitored": self._total_monitored,
                "passed": self._actions[HealAction.PASSED.value],
                "tolerated": self._actions[HealAction.TOLERATED.value],
                "healed": self._actions[HealAction.HEALED.value],
                "strategy_attempts": self._total_strategy_attempts,
                "strategy_failures": self._total_strategy_failures,
                "unhealed": self._total_unhealed,
            }

    def _count(self, action: HealAction) -> None:
        with self._counters_lock:
            self._total_monitored += 1
            self._actions[action.value] += 1
