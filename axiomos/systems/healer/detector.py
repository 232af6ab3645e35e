"""
AxiomOS — Violation Detector (Detection)

Detection rules are the sensory organs of the healer. Each rule inspects
a context and may emit one Violation. The detector evaluates every rule
independently: one context can trip zero, one, or many rules, and no
rule short-circuits another.

Rules are pluggable. New axioms or heuristics are added by registering
another BaseDetectionRule subclass; existing rule logic is never touched.

The default keyword rules are illustrative placeholders, not a semantic
policy. Production deployments register their own.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import Protocol

import structlog

from axiomos.primitives.common import epoch_ms
from axiomos.systems.healer.types import Axiom, Severity, Violation

logger = structlog.get_logger()


# ─── Clock ──────────────────────────────────────────────────────


class Clock(Protocol):
    """Timestamp source for violations. Integer ticks, never negative."""

    def __call__(self) -> int: ...


def system_clock() -> int:
    """Wall-clock milliseconds since the Unix epoch."""
    return epoch_ms()


class FixedClock:
    """A clock that always reads the same value. Useful for replay and tests."""

    def __init__(self, value: int = 0) -> None:
        self.value = value

    def __call__(self) -> int:
        return self.value


# ─── Strategy ABC ───────────────────────────────────────────────


class BaseDetectionRule(ABC):
    """
    Strategy base class for all detection rules.

    Contract:
    - ``rule_name`` must be a stable string unique within a detector.
    - ``evaluate`` must be pure and total: no side effects, no exceptions
      for any input string, including the empty string.
    """

    @property
    @abstractmethod
    def rule_name(self) -> str: ...

    @abstractmethod
    def evaluate(self, context: str, timestamp: int) -> Violation | None:
        """Return a Violation if the context breaks this rule, else None."""
        ...


class KeywordRule(BaseDetectionRule):
    """
    Flags a context when it contains any of the given keywords.

    Matching is case-insensitive. The violation's evidence is the matched
    text exactly as it appears in the context, so corrective strategies
    can target it.
    """

    def __init__(
        self,
        name: str,
        axiom: Axiom,
        severity: Severity,
        keywords: Iterable[str],
    ) -> None:
        self._name = name
        self.axiom = axiom
        self.severity = severity
        self.keywords: tuple[str, ...] = tuple(k.lower() for k in keywords if k)
        # Matched against the original text; lowercasing can change length
        self._patterns: tuple[re.Pattern[str], ...] = tuple(
            re.compile(re.escape(k), re.IGNORECASE) for k in self.keywords
        )

    @property
    def rule_name(self) -> str:
        return self._name

    def evaluate(self, context: str, timestamp: int) -> Violation | None:
        if not context:
            return None
        for pattern in self._patterns:
            match = pattern.search(context)
            if match is not None:
                return Violation(
                    axiom=self.axiom,
                    severity=self.severity,
                    context=context,
                    timestamp=timestamp,
                    rule=self._name,
                    evidence=match.group(0),
                )
        return None

    def __repr__(self) -> str:
        return (
            f"KeywordRule(name={self._name!r}, axiom={self.axiom.value}, "
            f"severity={self.severity.name}, keywords={list(self.keywords)!r})"
        )


def default_rules() -> list[BaseDetectionRule]:
    """The built-in illustrative rule set."""
    return [
        KeywordRule(
            "inconsistency",
            Axiom.CONSISTENCY,
            Severity.HIGH,
            ["inconsistent"],
        ),
        KeywordRule(
            "unsafe_operation",
            Axiom.SAFETY,
            Severity.CRITICAL,
            ["unsafe"],
        ),
    ]


# ─── Detector ───────────────────────────────────────────────────


class ViolationDetector:
    """
    Runs every registered rule against a context.

    Reads nothing mutable beyond its own rule list, which is only changed
    through register(). Deterministic for a fixed rule set and clock.
    """

    def __init__(
        self,
        rules: Sequence[BaseDetectionRule] | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._rules: list[BaseDetectionRule] = []
        self._clock: Clock = clock or system_clock
        self._logger = logger.bind(system="healer", component="detector")
        for rule in default_rules() if rules is None else rules:
            self.register(rule)

    @property
    def rules(self) -> tuple[BaseDetectionRule, ...]:
        return tuple(self._rules)

    def register(self, rule: BaseDetectionRule) -> None:
        """Add a rule. Rule names must be unique within a detector."""
        if any(r.rule_name == rule.rule_name for r in self._rules):
            raise ValueError(f"Duplicate detection rule: {rule.rule_name}")
        self._rules.append(rule)

    def detect(self, context: str) -> list[Violation]:
        """Evaluate all rules. Empty or unrecognised context → []."""
        if not context:
            return []

        # One timestamp per detection pass
        timestamp = max(0, int(self._clock()))
        violations: list[Violation] = []
        for rule in self._rules:
            violation = rule.evaluate(context, timestamp)
            if violation is not None:
                violations.append(violation)

        if violations:
            self._logger.info(
                "violations_detected",
                count=len(violations),
                axioms=[v.axiom.value for v in violations],
                rules=[v.rule for v in violations],
            )
        return violations
