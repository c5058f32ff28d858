from __future__ import annotations

from httpstress.metrics.aggregator import DerivedStats, compute_derived
from httpstress.metrics.models import ErrorType, OutcomeKind, RequestOutcome
from httpstress.metrics.render import render_report
from httpstress.metrics.report import StressReport

__all__ = [
    "DerivedStats",
    "ErrorType",
    "OutcomeKind",
    "RequestOutcome",
    "StressReport",
    "compute_derived",
    "render_report",
]
