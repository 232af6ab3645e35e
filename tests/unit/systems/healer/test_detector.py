"""
Tests for the Violation Detector.

Covers:
  - Built-in keyword rules
  - Independent, non-short-circuiting rule evaluation
  - Rule registration (pluggability, duplicate names)
  - Clock handling
"""

from __future__ import annotations

import pytest

from axiomos.systems.healer.detector import (
    BaseDetectionRule,
    FixedClock,
    KeywordRule,
    ViolationDetector,
    default_rules,
    system_clock,
)
from axiomos.systems.healer.types import Axiom, Severity, Violation


class _LengthRule(BaseDetectionRule):
    """Flags very long contexts as incomplete summaries."""

    @property
    def rule_name(self) -> str:
        return "too_long"

    def evaluate(self, context: str, timestamp: int) -> Violation | None:
        if len(context) <= 40:
            return None
        return Violation(
            axiom=Axiom.COMPLETENESS,
            severity=Severity.LOW,
            context=context,
            timestamp=timestamp,
            rule=self.rule_name,
        )


def _make_detector(**kwargs) -> ViolationDetector:
    kwargs.setdefault("clock", FixedClock(0))
    return ViolationDetector(**kwargs)


class TestDefaultRules:
    def test_inconsistent_yields_one_consistency_violation(self):
        violations = _make_detector().detect("This is inconsistent")
        assert len(violations) == 1
        assert violations[0].axiom == Axiom.CONSISTENCY
        assert violations[0].severity == Severity.HIGH

    def test_unsafe_yields_one_critical_safety_violation(self):
        violations = _make_detector().detect("this is unsafe")
        assert len(violations) == 1
        assert violations[0].axiom == Axiom.SAFETY
        assert violations[0].severity == Severity.CRITICAL

    def test_both_rules_fire_independently(self):
        violations = _make_detector().detect("an inconsistent and unsafe plan")
        assert [v.axiom for v in violations] == [Axiom.CONSISTENCY, Axiom.SAFETY]

    def test_violation_carries_context_and_evidence(self):
        (v,) = _make_detector().detect("Totally INCONSISTENT output")
        assert v.context == "Totally INCONSISTENT output"
        assert v.evidence == "INCONSISTENT"
        assert v.rule == "inconsistency"

    @pytest.mark.parametrize("context", ["", "all good", "consistent and safe"])
    def test_no_match_yields_empty(self, context):
        assert _make_detector().detect(context) == []

    def test_default_rule_names(self):
        assert [r.rule_name for r in default_rules()] == [
            "inconsistency",
            "unsafe_operation",
        ]


class TestKeywordRule:
    def test_any_keyword_matches(self):
        rule = KeywordRule("bias", Axiom.FAIRNESS, Severity.MEDIUM, ["biased", "unfair"])
        v = rule.evaluate("an unfair ranking", 7)
        assert v is not None
        assert v.axiom == Axiom.FAIRNESS
        assert v.evidence == "unfair"
        assert v.timestamp == 7

    @pytest.mark.parametrize(
        ("context", "evidence"),
        [
            ("İ inconsistent", "inconsistent"),
            ("İİ INCONSISTENT result", "INCONSISTENT"),
        ],
    )
    def test_evidence_survives_length_changing_case_folds(self, context, evidence):
        # "İ".lower() is two code points
        (v,) = _make_detector().detect(context)
        assert v.evidence == evidence
        assert v.evidence in context

    def test_empty_context(self):
        rule = KeywordRule("bias", Axiom.FAIRNESS, Severity.MEDIUM, ["biased"])
        assert rule.evaluate("", 0) is None

    def test_blank_keywords_ignored(self):
        rule = KeywordRule("blank", Axiom.FAIRNESS, Severity.LOW, ["", "x"])
        assert rule.keywords == ("x",)


class TestRegistration:
    def test_custom_rule_is_added_without_touching_existing(self):
        detector = _make_detector()
        detector.register(_LengthRule())
        violations = detector.detect("this is inconsistent and it goes on and on")
        assert [v.rule for v in violations] == ["inconsistency", "too_long"]

    def test_duplicate_rule_name_rejected(self):
        detector = _make_detector()
        with pytest.raises(ValueError, match="Duplicate"):
            detector.register(
                KeywordRule("inconsistency", Axiom.CONSISTENCY, Severity.LOW, ["x"])
            )

    def test_explicit_empty_rule_set(self):
        detector = _make_detector(rules=[])
        assert detector.rules == ()
        assert detector.detect("this is unsafe") == []


class TestClock:
    def test_fixed_clock_stamps_violations(self):
        (v,) = _make_detector(clock=FixedClock(1234)).detect("unsafe")
        assert v.timestamp == 1234

    def test_negative_clock_is_clamped(self):
        (v,) = _make_detector(clock=FixedClock(-50)).detect("unsafe")
        assert v.timestamp == 0

    def test_system_clock_is_non_negative(self):
        assert system_clock() >= 0

    def test_one_timestamp_per_pass(self):
        ticks = iter(range(100, 200))
        detector = ViolationDetector(clock=lambda: next(ticks))
        violations = detector.detect("inconsistent and unsafe")
        assert {v.timestamp for v in violations} == {100}
