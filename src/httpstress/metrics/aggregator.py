from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DerivedStats:
    total_time_ms: float
    average_time_ms: float
    percentage_succeeded: float
    percentage_failed: float
    percentage_timed_out: float


def compute_derived(
    requests: int,
    succeeded: int,
    failed: int,
    timed_out: int,
    total_time_ms: float,
) -> DerivedStats:
    """Derive averages and percentages from raw report counters.

    A run that issued no requests has nothing to average over, so every
    ratio is reported as 0.0 instead of dividing by zero.
    """
    if requests <= 0:
        return DerivedStats(
            total_time_ms=total_time_ms,
            average_time_ms=0.0,
            percentage_succeeded=0.0,
            percentage_failed=0.0,
            percentage_timed_out=0.0,
        )
    return DerivedStats(
        total_time_ms=total_time_ms,
        average_time_ms=total_time_ms / requests,
        percentage_succeeded=succeeded / requests * 100,
        percentage_failed=failed / requests * 100,
        percentage_timed_out=timed_out / requests * 100,
    )
