"""
AxiomOS — Violation Ledger

Append-only history of every recorded violation, shared by all callers.

Only append and snapshot are exposed; there is no raw iteration that could
race with concurrent writers. Statistics are computed from a consistent
snapshot taken under the lock.

Retention: unbounded by default. Setting max_entries turns the ledger into
a ring buffer that evicts the oldest entries first.
"""

from __future__ import annotations

import threading
from collections import Counter, deque
from collections.abc import Iterable

import structlog

from axiomos.systems.healer.types import Violation, ViolationStatistics

logger = structlog.get_logger()


class ViolationLedger:
    """
    Thread-safe append-only violation log.

    If the lock cannot be acquired within lock_timeout_s, reads degrade to
    empty results instead of blocking or raising. Writes always wait.
    """

    def __init__(
        self,
        max_entries: int | None = None,
        lock_timeout_s: float = 5.0,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._entries: deque[Violation] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self._lock_timeout_s = lock_timeout_s
        self._total_recorded: int = 0
        self._lock_timeouts: int = 0
        self._timeouts_lock = threading.Lock()
        self._logger = logger.bind(system="healer", component="ledger")

    @property
    def max_entries(self) -> int | None:
        return self._entries.maxlen

    @property
    def total_recorded(self) -> int:
        """Entries ever appended, including any evicted by retention."""
        return self._total_recorded

    @property
    def lock_timeouts(self) -> int:
        """Reads that degraded to empty because the lock was not acquired."""
        return self._lock_timeouts

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, violation: Violation) -> None:
        with self._lock:
            self._append(violation)

    def record_many(self, violations: Iterable[Violation]) -> None:
        """Append a batch in one critical section, preserving its order."""
        with self._lock:
            for violation in violations:
                self._append(violation)

    def snapshot(self) -> tuple[Violation, ...]:
        """Consistent copy of the ledger, oldest first."""
        if not self._lock.acquire(timeout=self._lock_timeout_s):
            with self._timeouts_lock:
                self._lock_timeouts += 1
            self._logger.warning("ledger_lock_timeout", operation="snapshot")
            return ()
        try:
            return tuple(self._entries)
        finally:
            self._lock.release()

    def statistics(self) -> ViolationStatistics:
        """Total plus per-axiom and per-severity counts."""
        entries = self.snapshot()
        if not entries:
            return ViolationStatistics()

        by_axiom = Counter(v.axiom for v in entries)
        by_severity = Counter(v.severity for v in entries)
        return ViolationStatistics(
            total=len(entries),
            by_axiom=dict(by_axiom),
            by_severity=dict(by_severity),
        )

    def _append(self, violation: Violation) -> None:
        if (
            self._entries.maxlen is not None
            and len(self._entries) == self._entries.maxlen
        ):
            self._logger.debug(
                "ledger_evicted_oldest",
                evicted_id=self._entries[0].id,
                max_entries=self._entries.maxlen,
            )
        self._entries.append(violation)
        self._total_recorded += 1
