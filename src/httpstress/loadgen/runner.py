from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

import httpx

from httpstress.config import StressConfig
from httpstress.loadgen.client import ConnectionRefusedAbort, build_client, send_request
from httpstress.metrics import StressReport, render_report
from httpstress.storage import Storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunResult:
    run_id: str
    report: StressReport


def partition_requests(requests: int, concurrency: int) -> list[int]:
    """Split ``requests`` into per-worker shares.

    Every one of the ``concurrency`` workers gets ``requests // concurrency``
    requests; the remainder is handed out as extra single-request workers.
    Empty shares are dropped.
    """
    if concurrency < 1:
        msg = f"Concurrency must be at least 1, got {concurrency}"
        raise ValueError(msg)
    per_worker = requests // concurrency
    shares = [per_worker] * concurrency if per_worker > 0 else []
    shares.extend([1] * (requests % concurrency))
    return shares


@dataclass(slots=True)
class StressRunner:
    config: StressConfig
    transport: httpx.BaseTransport | None = None
    report: StressReport = field(default_factory=StressReport)
    _abort: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _started: bool = field(default=False, init=False, repr=False)

    def run(self) -> StressReport:
        if self._started:
            msg = "StressRunner.run() can only be called once"
            raise RuntimeError(msg)
        self._started = True
        logger.info("Running stress test...")
        started_mono = time.perf_counter()
        shares = partition_requests(self.config.requests, self.config.concurrency)
        if shares:
            self._execute(shares)
        total_time_ms = float(int((time.perf_counter() - started_mono) * 1000.0))
        self.report.finalize(total_time_ms)
        logger.info("Finished stress test")
        return self.report

    def print_report(self) -> None:
        print(render_report(self.report))

    def _execute(self, shares: list[int]) -> None:
        first_error: BaseException | None = None
        with ThreadPoolExecutor(max_workers=len(shares), thread_name_prefix="stress-worker") as pool:
            futures = [
                pool.submit(self._worker, worker_id, share)
                for worker_id, share in enumerate(shares, start=1)
            ]
            for future in as_completed(futures):
                exc = future.exception()
                if exc is not None and first_error is None:
                    self._abort.set()
                    first_error = exc
        if first_error is not None:
            logger.error("Stress test aborted: %s", first_error)
            raise first_error

    def _worker(self, worker_id: int, share: int) -> None:
        with build_client(self.config, self.transport) as client:
            for _ in range(share):
                if self._abort.is_set():
                    return
                try:
                    outcome = send_request(client, self.config)
                except ConnectionRefusedAbort as exc:
                    self._abort.set()
                    self._log_attempt(worker_id, "-", exc.elapsed_ms, f"connection refused ({exc.error})")
                    raise
                except Exception:
                    self._abort.set()
                    raise
                seq = self.report.record(outcome)
                self._log_attempt(worker_id, str(seq), outcome.elapsed_ms, outcome.describe())

    def _log_attempt(self, worker_id: int, seq: str, elapsed_ms: int, status: str) -> None:
        if not self.config.verbose:
            return
        logger.info(
            "%d | %s %s %s Time: %d ms, Status: %s",
            worker_id,
            seq,
            self.config.method,
            self.config.url,
            elapsed_ms,
            status,
        )


def _new_run_id() -> str:
    return uuid.uuid4().hex


def run_experiment(
    config: StressConfig,
    storage: Storage,
    transport: httpx.BaseTransport | None = None,
    run_id: str | None = None,
) -> RunResult:
    run_id = run_id or _new_run_id()
    if storage.run_exists(run_id):
        msg = f"Run {run_id} already exists"
        raise ValueError(msg)
    report = StressRunner(config, transport=transport).run()
    storage.save_run(config, run_id, report)
    return RunResult(run_id=run_id, report=report)
