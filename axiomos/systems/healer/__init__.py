"""
AxiomOS — Healer

The axiomatic self-healer. Detects violations of behavioural axioms,
scores them with adaptive weights, and rewrites contexts through ordered
correction strategies when the penalty crosses the healing threshold.
"""

from axiomos.systems.healer.detector import (
    BaseDetectionRule,
    Clock,
    FixedClock,
    KeywordRule,
    ViolationDetector,
    default_rules,
    system_clock,
)
from axiomos.systems.healer.ledger import ViolationLedger
from axiomos.systems.healer.registry import (
    DEFAULT_WEIGHTS,
    AxiomRegistry,
    WeightAdapter,
)
from axiomos.systems.healer.regularizer import AdaptiveAxiomaticRegularizer
from axiomos.systems.healer.scorer import SEVERITY_MULTIPLIERS, PenaltyScorer
from axiomos.systems.healer.service import AxiomaticSelfHealer
from axiomos.systems.healer.strategies import (
    DEFAULT_PLAN,
    ApplyDefaultStrategy,
    BaseCorrectionStrategy,
    InterpolateStrategy,
    QueryUserStrategy,
    RecomputeStrategy,
    RollbackStrategy,
    StrategyCatalog,
)
from axiomos.systems.healer.types import (
    Axiom,
    CorrectionStrategy,
    HealAction,
    HealReport,
    Severity,
    StrategyFailedError,
    StrategyOutcome,
    Violation,
    ViolationStatistics,
)

__all__ = [
    # Service
    "AxiomaticSelfHealer",
    "AdaptiveAxiomaticRegularizer",
    # Sub-systems
    "AxiomRegistry",
    "BaseCorrectionStrategy",
    "BaseDetectionRule",
    "KeywordRule",
    "PenaltyScorer",
    "StrategyCatalog",
    "ViolationDetector",
    "ViolationLedger",
    "WeightAdapter",
    # Strategies
    "ApplyDefaultStrategy",
    "InterpolateStrategy",
    "QueryUserStrategy",
    "RecomputeStrategy",
    "RollbackStrategy",
    # Clocks
    "Clock",
    "FixedClock",
    "system_clock",
    # Defaults
    "DEFAULT_PLAN",
    "DEFAULT_WEIGHTS",
    "SEVERITY_MULTIPLIERS",
    "default_rules",
    # Types: enums
    "Axiom",
    "CorrectionStrategy",
    "HealAction",
    "Severity",
    # Types: models
    "HealReport",
    "StrategyOutcome",
    "Violation",
    "ViolationStatistics",
    # Errors
    "StrategyFailedError",
]
