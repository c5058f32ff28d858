from __future__ import annotations

from httpstress.metrics.report import StressReport


def render_report(report: StressReport) -> str:
    lines = [
        "--- Report ---",
        f"Requests: {report.requests}",
        f"Failed: {report.failed}",
        f"Succeeded: {report.succeeded}",
        f"TimedOut: {report.timed_out}",
        f"TotalTime: {report.total_time_ms:g} ms",
        f"AverageTime: {report.average_time_ms:g} ms",
        f"FastestTime: {report.fastest_time_ms} ms",
        f"SlowestTime: {report.slowest_time_ms} ms",
        f"PercentageSucceeded: {report.percentage_succeeded:g} %",
        f"PercentageFailed: {report.percentage_failed:g} %",
        f"PercentageTimedOut: {report.percentage_timed_out:g} %",
        "--- Requests per status code ---",
    ]
    for status, count in sorted(report.status_requests.items()):
        lines.append(f"Status {status}: {count} requests")
    return "\n".join(lines)
