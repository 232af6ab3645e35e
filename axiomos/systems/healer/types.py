"""
AxiomOS — Healer Type Definitions

All data types for the axiomatic self-healer: axioms, severities,
violations, correction strategies, statistics, and heal reports.

A Violation is the fundamental primitive. Detection creates it, the
ledger stores it, and the healer consumes it. Nothing mutates it.
"""

from __future__ import annotations

import enum

from pydantic import Field

from axiomos.primitives.common import AxiomBaseModel, FrozenModel, new_id


# ─── Enums ────────────────────────────────────────────────────────


class Axiom(enum.StrEnum):
    """The closed set of monitored behavioural axioms."""

    CONSISTENCY = "consistency"
    COMPLETENESS = "completeness"
    TRANSPARENCY = "transparency"
    SAFETY = "safety"
    FAIRNESS = "fairness"


class Severity(int, enum.Enum):
    """Ordered by declaration: LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class CorrectionStrategy(enum.StrEnum):
    """Remediation strategies a catalog can schedule for an axiom."""

    ROLLBACK = "rollback"
    RECOMPUTE = "recompute"
    INTERPOLATE = "interpolate"
    QUERY_USER = "query_user"  # Never succeeds, forces escalation
    APPLY_DEFAULT = "apply_default"


class HealAction(enum.StrEnum):
    """What a single monitor call ended up doing."""

    PASSED = "passed"  # No violations
    TOLERATED = "tolerated"  # Recorded, not corrected
    HEALED = "healed"  # Healing attempted


# ─── Errors ──────────────────────────────────────────────────────


class StrategyFailedError(Exception):
    """A correction strategy could not complete its transformation."""

    def __init__(self, strategy: CorrectionStrategy, reason: str) -> None:
        super().__init__(f"{strategy.value}: {reason}")
        self.strategy = strategy
        self.reason = reason


# ─── Violation ───────────────────────────────────────────────────


class Violation(FrozenModel):
    """
    A detected axiom violation.

    Immutable once created. The same instance may be recorded in the
    ledger and consumed by the healer within one pass.
    """

    id: str = Field(default_factory=new_id)
    axiom: Axiom
    severity: Severity
    context: str
    timestamp: int = Field(default=0, ge=0)

    # ── Provenance ──
    rule: str = ""  # Name of the detection rule that emitted it
    evidence: str = ""  # Matched trigger substring, as it appeared in context


# ─── Strategy Outcome ────────────────────────────────────────────


class StrategyOutcome(FrozenModel):
    """Result of one strategy attempt: transformed text or a failure."""

    strategy: CorrectionStrategy
    violation_id: str
    succeeded: bool
    context: str | None = None
    error: str | None = None

    @classmethod
    def success(
        cls, strategy: CorrectionStrategy, violation: Violation, context: str
    ) -> StrategyOutcome:
        return cls(
            strategy=strategy,
            violation_id=violation.id,
            succeeded=True,
            context=context,
        )

    @classmethod
    def failure(
        cls, strategy: CorrectionStrategy, violation: Violation, error: str
    ) -> StrategyOutcome:
        return cls(
            strategy=strategy,
            violation_id=violation.id,
            succeeded=False,
            error=error,
        )


# ─── Statistics & Reports ────────────────────────────────────────


class ViolationStatistics(AxiomBaseModel):
    """Point-in-time aggregate over the violation ledger."""

    total: int = 0
    by_axiom: dict[Axiom, int] = Field(default_factory=dict)
    by_severity: dict[Severity, int] = Field(default_factory=dict)


class HealReport(AxiomBaseModel):
    """Everything a single monitor call observed and did."""

    original_context: str
    context: str
    action: HealAction
    penalty: float = 0.0
    violations: list[Violation] = Field(default_factory=list)
    outcomes: list[StrategyOutcome] = Field(default_factory=list)
    unhealed: list[Violation] = Field(default_factory=list)

    @property
    def modified(self) -> bool:
        return self.context != self.original_context
