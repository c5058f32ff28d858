from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from httpstress.config import StressConfig
from httpstress.loadgen.client import ConnectionRefusedAbort
from httpstress.loadgen.runner import StressRunner, run_experiment
from httpstress.metrics import StressReport, render_report
from httpstress.storage import Storage, default_storage


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            msg = f"Invalid header {value!r}, expected 'Name: value'"
            raise argparse.ArgumentTypeError(msg)
        headers[name.strip()] = content.strip()
    return headers


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HTTP stress tester")
    parser.add_argument("--url", required=True, help="Target URL")
    parser.add_argument("-X", "--method", default="GET")
    parser.add_argument("-c", "--concurrency", type=int, default=1)
    parser.add_argument("-n", "--requests", type=int, default=1)
    parser.add_argument("--timeout", type=float, default=10.0, help="Per-request timeout in seconds")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument(
        "--continue-on-refused",
        action="store_true",
        help="Count refused connections as failures instead of aborting",
    )
    parser.add_argument("-H", "--header", action="append", default=[])
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--save", action="store_true", help="Persist the report")
    parser.add_argument("--db", type=Path, default=None, help="Report store path (default .httpstress/httpstress.duckdb)")
    parser.add_argument("--notes", default="")
    return parser


def build_config(args: argparse.Namespace) -> StressConfig:
    return StressConfig(
        url=args.url,
        method=args.method,
        concurrency=args.concurrency,
        requests=args.requests,
        timeout_sec=args.timeout,
        verify_tls=not args.insecure,
        verbose=args.verbose,
        headers=_parse_headers(args.header),
        abort_on_connection_refused=not args.continue_on_refused,
        notes=args.notes,
    )


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        config = build_config(args)
    except (ValueError, argparse.ArgumentTypeError) as exc:
        parser.error(str(exc))

    try:
        if args.save:
            storage = Storage(args.db) if args.db else default_storage()
            result = run_experiment(config, storage)
            report: StressReport = result.report
            print(f"Run saved: {result.run_id}")
        else:
            report = StressRunner(config).run()
    except ConnectionRefusedAbort as exc:
        logging.getLogger(__name__).error("%s", exc)
        raise SystemExit(1) from exc

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(render_report(report))


if __name__ == "__main__":
    main()
