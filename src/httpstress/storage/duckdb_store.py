from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import duckdb
import pandas as pd

from httpstress.config import StressConfig
from httpstress.metrics import StressReport


@dataclass(slots=True)
class Storage:
    db_path: Path

    def __post_init__(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))

    def _init_schema(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS run_meta (
                    run_id TEXT PRIMARY KEY,
                    created_at TIMESTAMP,
                    config_json TEXT,
                    notes TEXT,
                    url TEXT,
                    method TEXT,
                    concurrency INTEGER,
                    requests INTEGER,
                    failed INTEGER,
                    succeeded INTEGER,
                    timed_out INTEGER,
                    total_time_ms DOUBLE,
                    average_time_ms DOUBLE,
                    fastest_time_ms BIGINT,
                    slowest_time_ms BIGINT,
                    percentage_succeeded DOUBLE,
                    percentage_failed DOUBLE,
                    percentage_timed_out DOUBLE
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS status_requests (
                    run_id TEXT,
                    status_code INTEGER,
                    requests INTEGER
                );
                """
            )

    def run_exists(self, run_id: str) -> bool:
        with self._connect() as con:
            result = con.execute(
                "SELECT COUNT(*) FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            return bool(result and result[0] > 0)

    def save_run(self, config: StressConfig, run_id: str, report: StressReport) -> None:
        if not report.finalized:
            msg = "Only finalized reports can be saved"
            raise ValueError(msg)
        config_json = json.dumps(config.to_metadata())
        with self._connect() as con:
            con.execute(
                "INSERT INTO run_meta VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    run_id,
                    config.created_at,
                    config_json,
                    config.notes,
                    config.url,
                    config.method,
                    config.concurrency,
                    report.requests,
                    report.failed,
                    report.succeeded,
                    report.timed_out,
                    report.total_time_ms,
                    report.average_time_ms,
                    report.fastest_time_ms,
                    report.slowest_time_ms,
                    report.percentage_succeeded,
                    report.percentage_failed,
                    report.percentage_timed_out,
                ],
            )
            status_df = pd.DataFrame(
                [
                    {"run_id": run_id, "status_code": code, "requests": count}
                    for code, count in sorted(report.status_requests.items())
                ]
            )
            if not status_df.empty:
                con.execute("INSERT INTO status_requests SELECT * FROM status_df")

    def list_runs(self) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                """
                SELECT run_id, created_at, url, method, requests, percentage_succeeded, notes
                FROM run_meta ORDER BY created_at DESC
                """
            ).fetchdf()

    def load_run_meta(self, run_id: str) -> dict[str, object] | None:
        with self._connect() as con:
            row = con.execute(
                "SELECT config_json FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            if not row:
                return None
            return json.loads(row[0])

    def load_status_requests(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT status_code, requests FROM status_requests WHERE run_id = ? ORDER BY status_code",
                [run_id],
            ).fetchdf()
