from __future__ import annotations

import itertools
import socket
import logging
import threading

import httpx
import pytest

from httpstress.config import StressConfig
from httpstress.loadgen.client import ConnectionRefusedAbort
from httpstress.loadgen.runner import StressRunner

URL = "http://stress.test/"


def test_all_ok(transport_for) -> None:
    config = StressConfig(url=URL, concurrency=5, requests=5)
    report = StressRunner(config, transport=transport_for(itertools.repeat(200))).run()
    assert report.requests == 5
    assert report.succeeded == 5
    assert report.failed == 0
    assert report.status_requests == {200: 5}
    assert report.percentage_succeeded == 100.0
    assert report.finalized


def test_mixed_statuses(transport_for) -> None:
    config = StressConfig(url=URL, concurrency=2, requests=4)
    report = StressRunner(config, transport=transport_for([200, 500, 200, 500])).run()
    assert report.succeeded == 2
    assert report.failed == 2
    assert report.status_requests == {200: 2, 500: 2}
    assert report.percentage_failed == 50.0


def test_uneven_partition_issues_every_request(always_ok) -> None:
    config = StressConfig(url=URL, concurrency=3, requests=10)
    report = StressRunner(config, transport=always_ok).run()
    assert report.requests == 10
    assert sum(report.status_requests.values()) == 10


def test_zero_requests_finalizes_empty_report() -> None:
    report = StressRunner(StressConfig(url=URL, concurrency=4, requests=0)).run()
    assert report.requests == 0
    assert report.finalized
    assert report.average_time_ms == 0.0
    assert report.status_requests == {}


def test_timeouts_are_counted() -> None:
    calls = itertools.count()
    lock = threading.Lock()

    def handler(request: httpx.Request) -> httpx.Response:
        with lock:
            n = next(calls)
        if n % 2:
            raise httpx.ConnectTimeout("timed out", request=request)
        return httpx.Response(200)

    config = StressConfig(url=URL, concurrency=2, requests=6)
    report = StressRunner(config, transport=httpx.MockTransport(handler)).run()
    assert report.requests == 6
    assert report.timed_out == 3
    assert report.failed == 3
    assert report.succeeded == 3
    assert report.status_requests == {200: 3}
    assert report.percentage_timed_out == 50.0


def test_single_refused_connection_aborts_run() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    runner = StressRunner(StressConfig(url=URL, concurrency=1, requests=1), transport=httpx.MockTransport(handler))
    with pytest.raises(ConnectionRefusedAbort):
        runner.run()
    assert not runner.report.finalized


def test_refused_connection_stops_remaining_work() -> None:
    calls = itertools.count(1)

    def handler(request: httpx.Request) -> httpx.Response:
        if next(calls) == 3:
            raise httpx.ConnectError("Connection refused", request=request)
        return httpx.Response(200)

    runner = StressRunner(StressConfig(url=URL, concurrency=1, requests=10), transport=httpx.MockTransport(handler))
    with pytest.raises(ConnectionRefusedAbort):
        runner.run()
    assert runner.report.requests == 2


def test_refused_connection_recorded_when_configured() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    config = StressConfig(url=URL, concurrency=2, requests=4, abort_on_connection_refused=False)
    report = StressRunner(config, transport=httpx.MockTransport(handler)).run()
    assert report.requests == 4
    assert report.failed == 4
    assert report.status_requests == {}
    assert report.percentage_failed == 100.0


def test_verbose_logs_each_request(always_ok, caplog) -> None:
    caplog.set_level(logging.INFO, logger="httpstress")
    config = StressConfig(url=URL, concurrency=2, requests=4, verbose=True)
    StressRunner(config, transport=always_ok).run()
    lines = [r.getMessage() for r in caplog.records if "Time:" in r.getMessage()]
    assert len(lines) == 4
    assert all(f"GET {URL}" in line and "Status: 200" in line for line in lines)
    assert sorted(int(line.split(" | ")[1].split()[0]) for line in lines) == [1, 2, 3, 4]


def test_quiet_run_does_not_log_requests(always_ok, caplog) -> None:
    caplog.set_level(logging.INFO, logger="httpstress")
    StressRunner(StressConfig(url=URL, concurrency=2, requests=4), transport=always_ok).run()
    assert not [r for r in caplog.records if "Time:" in r.getMessage()]


def test_run_only_once(always_ok) -> None:
    runner = StressRunner(StressConfig(url=URL), transport=always_ok)
    runner.run()
    with pytest.raises(RuntimeError):
        runner.run()


def test_print_report(always_ok, capsys) -> None:
    runner = StressRunner(StressConfig(url=URL, concurrency=1, requests=2), transport=always_ok)
    runner.run()
    runner.print_report()
    out = capsys.readouterr().out
    assert "Requests: 2" in out
    assert "Status 200: 2 requests" in out


def test_refused_connection_stops_other_workers() -> None:
    calls = itertools.count(1)
    lock = threading.Lock()

    def handler(request: httpx.Request) -> httpx.Response:
        with lock:
            n = next(calls)
        if n == 5:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)
        return httpx.Response(200)

    runner = StressRunner(StressConfig(url=URL, concurrency=4, requests=400), transport=httpx.MockTransport(handler))
    with pytest.raises(ConnectionRefusedAbort):
        runner.run()
    assert runner.report.requests < 50
    assert not runner.report.finalized


def _closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_closed_local_port_aborts_run() -> None:
    config = StressConfig(url=f"http://127.0.0.1:{_closed_port()}/", concurrency=2, requests=4, timeout_sec=2.0)
    runner = StressRunner(config)
    with pytest.raises(ConnectionRefusedAbort):
        runner.run()
    assert runner.report.requests == 0


def test_verbose_logs_refused_attempt(caplog) -> None:
    caplog.set_level(logging.INFO, logger="httpstress")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    config = StressConfig(url=URL, concurrency=1, requests=1, verbose=True)
    with pytest.raises(ConnectionRefusedAbort):
        StressRunner(config, transport=httpx.MockTransport(handler)).run()
    lines = [r.getMessage() for r in caplog.records if "Time:" in r.getMessage()]
    assert len(lines) == 1
    assert lines[0].startswith(f"1 | - GET {URL}")
    assert "Status: connection refused" in lines[0]
