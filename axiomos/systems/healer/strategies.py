"""
AxiomOS — Correction Strategies & Catalog

A strategy is a text transformation that tries to restore conformance for
one violation. Attempts are total: every attempt yields a StrategyOutcome,
success or failure, and never raises into the healer.

QUERY_USER always fails. It exists to mark a violation as needing a human,
so the healer falls through to whatever comes next, or leaves the
violation unhealed.

The catalog maps each axiom to an ordered strategy plan. It is read-only
once built and is shared across callers without locking.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from types import MappingProxyType

import structlog

from axiomos.systems.healer.types import (
    Axiom,
    CorrectionStrategy,
    StrategyFailedError,
    StrategyOutcome,
    Violation,
)

logger = structlog.get_logger()


ROLLBACK_MARKER = "[ROLLED_BACK]"
INTERPOLATION_MARKER = "[INTERPOLATED]"
DEFAULT_APPLIED_MARKER = "[DEFAULT_APPLIED]"

# Corrected forms for Recompute, keyed by lowercase trigger text
DEFAULT_REPLACEMENTS: dict[str, str] = {
    "inconsistent": "consistent",
}

DEFAULT_PLAN: dict[Axiom, tuple[CorrectionStrategy, ...]] = {
    Axiom.CONSISTENCY: (CorrectionStrategy.RECOMPUTE, CorrectionStrategy.ROLLBACK),
    Axiom.SAFETY: (CorrectionStrategy.ROLLBACK, CorrectionStrategy.QUERY_USER),
    Axiom.COMPLETENESS: (
        CorrectionStrategy.INTERPOLATE,
        CorrectionStrategy.APPLY_DEFAULT,
    ),
}


# ─── Strategy ABC ───────────────────────────────────────────────


class BaseCorrectionStrategy(ABC):
    """
    Template for a correction strategy.

    Subclasses implement ``_transform`` and raise StrategyFailedError when
    they cannot produce a corrected context. ``attempt`` turns every
    result, including unexpected exceptions, into a StrategyOutcome.
    """

    strategy: CorrectionStrategy

    def __init__(self) -> None:
        self._logger = logger.bind(
            system="healer", component="strategy", strategy=self.strategy.value
        )

    @abstractmethod
    def _transform(self, context: str, violation: Violation) -> str: ...

    def attempt(self, context: str, violation: Violation) -> StrategyOutcome:
        try:
            corrected = self._transform(context, violation)
        except StrategyFailedError as exc:
            self._logger.debug(
                "strategy_failed",
                violation_id=violation.id,
                reason=exc.reason,
            )
            return StrategyOutcome.failure(self.strategy, violation, exc.reason)
        except Exception as exc:
            self._logger.error(
                "strategy_error",
                violation_id=violation.id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return StrategyOutcome.failure(
                self.strategy, violation, f"{type(exc).__name__}: {exc}"
            )
        return StrategyOutcome.success(self.strategy, violation, corrected)


class RollbackStrategy(BaseCorrectionStrategy):
    strategy = CorrectionStrategy.ROLLBACK

    def _transform(self, context: str, violation: Violation) -> str:
        return f"{ROLLBACK_MARKER} {context}"


class RecomputeStrategy(BaseCorrectionStrategy):
    """
    Replaces the violation's trigger text with its corrected form.

    Fails when the violation carries no evidence, when no corrected form is
    known for it, or when the trigger no longer appears in the context.
    """

    strategy = CorrectionStrategy.RECOMPUTE

    def __init__(self, replacements: Mapping[str, str] | None = None) -> None:
        super().__init__()
        source = DEFAULT_REPLACEMENTS if replacements is None else replacements
        self._replacements = {k.lower(): v for k, v in source.items() if k}

    def _transform(self, context: str, violation: Violation) -> str:
        trigger = violation.evidence.lower()
        if not trigger:
            raise StrategyFailedError(self.strategy, "no evidence to recompute")
        corrected = self._replacements.get(trigger)
        if corrected is None:
            raise StrategyFailedError(
                self.strategy, f"no corrected form for {trigger!r}"
            )
        pattern = re.compile(re.escape(trigger), re.IGNORECASE)
        result, count = pattern.subn(lambda _m: corrected, context)
        if count == 0:
            raise StrategyFailedError(
                self.strategy, f"{trigger!r} not present in context"
            )
        return result


class InterpolateStrategy(BaseCorrectionStrategy):
    strategy = CorrectionStrategy.INTERPOLATE

    def _transform(self, context: str, violation: Violation) -> str:
        return f"{context} {INTERPOLATION_MARKER}"


class QueryUserStrategy(BaseCorrectionStrategy):
    strategy = CorrectionStrategy.QUERY_USER

    def _transform(self, context: str, violation: Violation) -> str:
        raise StrategyFailedError(self.strategy, "User intervention required")


class ApplyDefaultStrategy(BaseCorrectionStrategy):
    strategy = CorrectionStrategy.APPLY_DEFAULT

    def _transform(self, context: str, violation: Violation) -> str:
        return f"{context} {DEFAULT_APPLIED_MARKER}"


def default_implementations(
    replacements: Mapping[str, str] | None = None,
) -> dict[CorrectionStrategy, BaseCorrectionStrategy]:
    return {
        CorrectionStrategy.ROLLBACK: RollbackStrategy(),
        CorrectionStrategy.RECOMPUTE: RecomputeStrategy(replacements),
        CorrectionStrategy.INTERPOLATE: InterpolateStrategy(),
        CorrectionStrategy.QUERY_USER: QueryUserStrategy(),
        CorrectionStrategy.APPLY_DEFAULT: ApplyDefaultStrategy(),
    }


# ─── Catalog ────────────────────────────────────────────────────


class StrategyCatalog:
    """Per-axiom ordered strategy plans plus their implementations."""

    def __init__(
        self,
        plan: Mapping[Axiom, Iterable[CorrectionStrategy]] | None = None,
        implementations: Mapping[CorrectionStrategy, BaseCorrectionStrategy]
        | None = None,
    ) -> None:
        source = DEFAULT_PLAN if plan is None else plan
        self._plan = MappingProxyType(
            {axiom: tuple(strategies) for axiom, strategies in source.items()}
        )
        impls = dict(default_implementations())
        if implementations is not None:
            impls.update(implementations)
        self._implementations = MappingProxyType(impls)

    @property
    def plan(self) -> Mapping[Axiom, tuple[CorrectionStrategy, ...]]:
        return self._plan

    def strategies_for(self, axiom: Axiom) -> tuple[CorrectionStrategy, ...]:
        """Ordered plan for an axiom; empty if none is configured."""
        return self._plan.get(axiom, ())

    def resolve(self, strategy: CorrectionStrategy) -> BaseCorrectionStrategy:
        return self._implementations[strategy]

    def apply(
        self,
        strategy: CorrectionStrategy,
        context: str,
        violation: Violation,
    ) -> StrategyOutcome:
        return self.resolve(strategy).attempt(context, violation)
