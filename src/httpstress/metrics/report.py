from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from httpstress.metrics.aggregator import DerivedStats, compute_derived
from httpstress.metrics.models import OutcomeKind, RequestOutcome


@dataclass(slots=True)
class StressReport:
    """Shared accumulator for the outcomes of one stress run.

    Workers call :meth:`record` concurrently; every merge happens under a
    single lock so counters, the status histogram and the fastest/slowest
    times always move together. :meth:`finalize` is called once, after all
    workers have joined, and freezes the report.
    """

    requests: int = 0
    failed: int = 0
    succeeded: int = 0
    timed_out: int = 0
    total_time_ms: float = 0.0
    average_time_ms: float = 0.0
    fastest_time_ms: int = 0
    slowest_time_ms: int = 0
    percentage_succeeded: float = 0.0
    percentage_failed: float = 0.0
    percentage_timed_out: float = 0.0
    status_requests: dict[int, int] = field(default_factory=dict)
    finalized: bool = False
    _timed: bool = field(default=False, init=False, repr=False, compare=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def record(self, outcome: RequestOutcome) -> int:
        """Merge one outcome and return its sequence number within the run."""
        with self._lock:
            if self.finalized:
                msg = "Cannot record outcomes into a finalized report"
                raise RuntimeError(msg)
            self.requests += 1
            if outcome.status_code is None:
                self.failed += 1
                if outcome.kind is OutcomeKind.TIMEOUT:
                    self.timed_out += 1
            else:
                if outcome.status_code == 200:
                    self.succeeded += 1
                else:
                    self.failed += 1
                self.status_requests[outcome.status_code] = (
                    self.status_requests.get(outcome.status_code, 0) + 1
                )
            if not self._timed or outcome.elapsed_ms < self.fastest_time_ms:
                self.fastest_time_ms = outcome.elapsed_ms
                self._timed = True
            if outcome.elapsed_ms > self.slowest_time_ms:
                self.slowest_time_ms = outcome.elapsed_ms
            return self.requests

    def finalize(self, total_time_ms: float) -> None:
        if self.finalized:
            msg = "Report already finalized"
            raise RuntimeError(msg)
        stats = self.derived(total_time_ms)
        self.total_time_ms = stats.total_time_ms
        self.average_time_ms = stats.average_time_ms
        self.percentage_succeeded = stats.percentage_succeeded
        self.percentage_failed = stats.percentage_failed
        self.percentage_timed_out = stats.percentage_timed_out
        self.finalized = True

    def derived(self, total_time_ms: float | None = None) -> DerivedStats:
        return compute_derived(
            self.requests,
            self.succeeded,
            self.failed,
            self.timed_out,
            self.total_time_ms if total_time_ms is None else total_time_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "requests": self.requests,
            "failed": self.failed,
            "succeeded": self.succeeded,
            "timed_out": self.timed_out,
            "total_time_ms": self.total_time_ms,
            "average_time_ms": self.average_time_ms,
            "fastest_time_ms": self.fastest_time_ms,
            "slowest_time_ms": self.slowest_time_ms,
            "percentage_succeeded": self.percentage_succeeded,
            "percentage_failed": self.percentage_failed,
            "percentage_timed_out": self.percentage_timed_out,
            "status_requests": {str(code): count for code, count in sorted(self.status_requests.items())},
        }
