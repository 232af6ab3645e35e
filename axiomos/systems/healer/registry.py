"""
AxiomOS — Axiom Registry & Weight Adapter

The registry holds the adaptive weight of every axiom. The adapter is the
only writer: it nudges a weight by learning_rate * feedback and clamps the
result back into [min_weight, max_weight].

Each axiom has its own lock. Updates to different axioms never contend;
updates to the same axiom serialise, so read → add → clamp is atomic and
no feedback is lost under concurrent callers.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Mapping

import structlog

from axiomos.systems.healer.types import Axiom

logger = structlog.get_logger()


DEFAULT_WEIGHTS: dict[Axiom, float] = {
    Axiom.CONSISTENCY: 1.0,
    Axiom.COMPLETENESS: 1.0,
    Axiom.TRANSPARENCY: 1.0,
    Axiom.SAFETY: 1.5,
    Axiom.FAIRNESS: 1.0,
}

DEFAULT_WEIGHT = 1.0  # Used for any axiom missing from the map
MIN_WEIGHT = 0.1
MAX_WEIGHT = 10.0


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


class AxiomRegistry:
    """
    Adaptive weight map keyed by Axiom.

    The axiom set is fixed at construction. Lookups for an axiom that is
    not registered fall back to DEFAULT_WEIGHT rather than failing.
    """

    def __init__(
        self,
        weights: Mapping[Axiom, float] | None = None,
        min_weight: float = MIN_WEIGHT,
        max_weight: float = MAX_WEIGHT,
    ) -> None:
        if min_weight > max_weight:
            raise ValueError(
                f"min_weight {min_weight} exceeds max_weight {max_weight}"
            )
        self.min_weight = min_weight
        self.max_weight = max_weight

        source = DEFAULT_WEIGHTS if weights is None else weights
        self._initial: dict[Axiom, float] = {
            axiom: clamp(float(w), min_weight, max_weight)
            for axiom, w in source.items()
        }
        self._weights: dict[Axiom, float] = dict(self._initial)
        self._locks: dict[Axiom, threading.Lock] = {
            axiom: threading.Lock() for axiom in self._weights
        }

    def __contains__(self, axiom: object) -> bool:
        return axiom in self._weights

    @property
    def axioms(self) -> frozenset[Axiom]:
        return frozenset(self._weights)

    def weight(self, axiom: Axiom) -> float:
        return self._weights.get(axiom, DEFAULT_WEIGHT)

    def snapshot(self) -> dict[Axiom, float]:
        """Copy of the current weight map."""
        return dict(self._weights)

    def adjust(self, axiom: Axiom, delta: float) -> float | None:
        """
        Add delta to an axiom's weight and clamp, atomically.
        Returns the new weight, or None if the axiom is not registered.
        """
        if not math.isfinite(delta):
            raise ValueError(f"delta must be finite, got {delta}")
        lock = self._locks.get(axiom)
        if lock is None:
            return None
        with lock:
            updated = clamp(
                self._weights[axiom] + delta, self.min_weight, self.max_weight
            )
            self._weights[axiom] = updated
        return updated

    def reset(self) -> None:
        """Restore every weight to its value at construction."""
        for axiom, lock in self._locks.items():
            with lock:
                self._weights[axiom] = self._initial[axiom]


class WeightAdapter:
    """Applies external feedback signals to the registry."""

    def __init__(self, registry: AxiomRegistry, learning_rate: float = 0.01) -> None:
        if learning_rate < 0:
            raise ValueError(f"learning_rate must be >= 0, got {learning_rate}")
        self._registry = registry
        self._learning_rate = learning_rate
        self._logger = logger.bind(system="healer", component="weight_adapter")

    @property
    def learning_rate(self) -> float:
        return self._learning_rate

    def update(self, axiom: Axiom, feedback: float) -> float | None:
        """
        weight += learning_rate * feedback, then clamp.

        An axiom outside the registry is a no-op: the axiom set is closed
        and is never extended implicitly. So is a NaN or infinite signal,
        which would otherwise clamp straight to a bound.
        """
        if axiom not in self._registry:
            self._logger.debug("weight_update_ignored", axiom=str(axiom))
            return None

        delta = self._learning_rate * feedback
        if not math.isfinite(delta):
            self._logger.warning(
                "non_finite_feedback_ignored", axiom=axiom.value, feedback=feedback
            )
            return None

        updated = self._registry.adjust(axiom, delta)
        self._logger.debug(
            "weight_updated",
            axiom=axiom.value,
            feedback=feedback,
            new_weight=round(updated, 4) if updated is not None else None,
        )
        return updated
