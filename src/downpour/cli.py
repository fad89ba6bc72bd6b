#!/usr/bin/env python3
# cli.py — Command-line entry point for downpour

import argparse
import asyncio
import logging
import sys

from downpour.config import ENV_VARS, load_config
from downpour.core import LoadRunner
from downpour.errors import DownpourError
from downpour.logging_config import setup_logging
from downpour.persistence import ReportWriter


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Downpour: HTTP load generator with bounded concurrency, pacing and retries",
        epilog="Every option falls back to its environment variable: "
        + ", ".join(var for var, _ in ENV_VARS.values()),
    )

    parser.add_argument("--url", help="Target endpoint (URL)")
    parser.add_argument("-n", "--requests", type=int, help="Requests per run (REQUESTS)")
    parser.add_argument("-c", "--concurrency", type=int, help="Max in-flight requests (CONCURRENCY)")
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds to spread each run's requests over when not bursting (INTERVAL)",
    )
    parser.add_argument(
        "--burst",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Start requests as fast as concurrency allows (BURST)",
    )
    parser.add_argument("--max-retries", type=int, help="Retries per request (MAX_RETRIES)")
    parser.add_argument("--repeat-count", type=int, help="Number of runs (REPEAT_COUNT)")
    parser.add_argument("--repeat-delay", type=float, help="Seconds between runs (REPEAT_DELAY)")
    parser.add_argument(
        "--compress",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="gzip the CSV report (COMPRESS)",
    )
    parser.add_argument(
        "--log-requests",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Dump every request/response to the trace log (LOG_REQUESTS)",
    )
    parser.add_argument(
        "--verify-tls",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Verify server certificates (VERIFY_TLS)",
    )
    parser.add_argument("--timeout", type=float, dest="request_timeout_s", help="Per-request timeout in seconds (REQUEST_TIMEOUT)")
    parser.add_argument("--report-dir", help="Directory for CSV reports (REPORT_DIR)")
    parser.add_argument("--log-dir", help="Directory for trace logs (LOG_DIR)")

    # Output
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument(
        "--histogram-bins",
        type=int,
        default=20,
        help="Bins in the final latency histogram (0 disables it)",
    )

    # Logging & Debugging
    parser.add_argument("--debug", action="store_true", help="Enable debug-level logging")
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional file to write logs to (e.g., downpour.log)",
    )

    return parser.parse_args(argv)


async def run(argv=None):
    args = parse_args(argv)

    config = load_config(**{name: getattr(args, name) for name in ENV_VARS})
    setup_logging(
        level="DEBUG" if args.debug else "INFO",
        log_file=args.log_file,
        trace_dir=config.log_dir if config.log_requests else None,
    )

    with ReportWriter(config.report_dir, compress=config.compress) as report:
        runner = LoadRunner(
            config,
            sink=report.write,
            report_path=report.path,
            use_progress_bar=not args.no_progress,
            histogram_bins=args.histogram_bins,
        )
        stats = await runner.run()

    logging.info(
        f"Load test finished: {stats.success} succeeded, {stats.failed} failed | "
        f"Report: {report.path}"
    )
    return stats


def main(argv=None):
    try:
        asyncio.run(run(argv))
    except DownpourError as e:
        logging.error(f"Aborted: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
