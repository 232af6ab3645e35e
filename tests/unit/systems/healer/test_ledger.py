"""
Tests for the Violation Ledger.

Covers:
  - Append order and statistics aggregation
  - Batch recording
  - Retention bound (ring buffer)
  - Lock-timeout degradation
  - Concurrent appends (no drops) and consistent concurrent reads
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from axiomos.systems.healer.ledger import ViolationLedger
from axiomos.systems.healer.types import Axiom, Severity, Violation


def _make_violation(
    axiom: Axiom = Axiom.CONSISTENCY,
    severity: Severity = Severity.HIGH,
    context: str = "test",
) -> Violation:
    return Violation(axiom=axiom, severity=severity, context=context, timestamp=0)


class TestRecording:
    def test_starts_empty(self):
        ledger = ViolationLedger()
        assert len(ledger) == 0
        assert ledger.snapshot() == ()
        assert ledger.statistics().total == 0

    def test_record_preserves_order(self):
        ledger = ViolationLedger()
        violations = [_make_violation(context=f"c{i}") for i in range(5)]
        for v in violations:
            ledger.record(v)
        assert ledger.snapshot() == tuple(violations)

    def test_record_many_preserves_order(self):
        ledger = ViolationLedger()
        violations = [_make_violation(context=f"c{i}") for i in range(5)]
        ledger.record_many(violations)
        assert [v.context for v in ledger.snapshot()] == [f"c{i}" for i in range(5)]

    def test_snapshot_is_detached(self):
        ledger = ViolationLedger()
        snap = ledger.snapshot()
        ledger.record(_make_violation())
        assert snap == ()
        assert len(ledger.snapshot()) == 1


class TestStatistics:
    def test_groups_by_axiom_and_severity(self):
        ledger = ViolationLedger()
        ledger.record(_make_violation(Axiom.CONSISTENCY, Severity.HIGH))
        ledger.record(_make_violation(Axiom.CONSISTENCY, Severity.LOW))
        ledger.record(_make_violation(Axiom.SAFETY, Severity.CRITICAL))

        stats = ledger.statistics()
        assert stats.total == 3
        assert stats.by_axiom == {Axiom.CONSISTENCY: 2, Axiom.SAFETY: 1}
        assert stats.by_severity == {
            Severity.HIGH: 1,
            Severity.LOW: 1,
            Severity.CRITICAL: 1,
        }

    def test_lock_timeout_degrades_to_empty(self):
        ledger = ViolationLedger(lock_timeout_s=0.01)
        ledger.record(_make_violation())
        ledger._lock.acquire()
        try:
            stats = ledger.statistics()
            snap = ledger.snapshot()
        finally:
            ledger._lock.release()
        assert stats.total == 0
        assert stats.by_axiom == {}
        assert snap == ()
        assert ledger.lock_timeouts == 2
        # Nothing was lost
        assert ledger.statistics().total == 1


class TestRetention:
    def test_unbounded_by_default(self):
        ledger = ViolationLedger()
        assert ledger.max_entries is None
        ledger.record_many(_make_violation() for _ in range(1000))
        assert len(ledger) == 1000

    def test_bounded_evicts_oldest(self):
        ledger = ViolationLedger(max_entries=3)
        for i in range(5):
            ledger.record(_make_violation(context=f"c{i}"))
        assert [v.context for v in ledger.snapshot()] == ["c2", "c3", "c4"]
        assert ledger.total_recorded == 5

    def test_invalid_bound_rejected(self):
        with pytest.raises(ValueError):
            ViolationLedger(max_entries=0)


class TestConcurrency:
    def test_concurrent_records_are_not_dropped(self):
        ledger = ViolationLedger()

        def worker(n: int) -> None:
            for i in range(100):
                ledger.record(_make_violation(context=f"w{n}-{i}"))

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(worker, range(8)))

        assert ledger.statistics().total == 800

    def test_per_caller_order_preserved(self):
        ledger = ViolationLedger()

        def worker(n: int) -> None:
            ledger.record_many(_make_violation(context=f"w{n}-{i}") for i in range(50))

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(worker, range(4)))

        entries = [v.context for v in ledger.snapshot()]
        for n in range(4):
            mine = [c for c in entries if c.startswith(f"w{n}-")]
            assert mine == [f"w{n}-{i}" for i in range(50)]

    def test_statistics_never_torn_during_concurrent_writes(self):
        ledger = ViolationLedger()
        mix = [
            _make_violation(Axiom.CONSISTENCY, Severity.HIGH),
            _make_violation(Axiom.SAFETY, Severity.CRITICAL),
            _make_violation(Axiom.FAIRNESS, Severity.LOW),
        ]

        def writer(_n: int) -> None:
            for _ in range(200):
                ledger.record_many(mix)

        def reader() -> list:
            seen = []
            for _ in range(200):
                seen.append(ledger.statistics())
            return seen

        with ThreadPoolExecutor(max_workers=6) as pool:
            readers = [pool.submit(reader) for _ in range(2)]
            list(pool.map(writer, range(4)))
            observed = [s for f in readers for s in f.result()]

        for stats in observed:
            assert stats.total == sum(stats.by_axiom.values())
            assert stats.total == sum(stats.by_severity.values())
            # Batches land whole
            assert stats.total % len(mix) == 0
        assert ledger.statistics().total == 4 * 200 * len(mix)
