"""
Feed propagation benchmark CLI entry point.

Publish a sequence of feed updates through writer nodes and measure how long
reader nodes take to agree on the latest index.

Usage::

    python -m feed_bench -x 10 -di 2 -s 40 -w 3
    python -m feed_bench --config bench.yaml --convergence-timeout 300
    python -m feed_bench -bw http://localhost:1633 -br http://localhost:1733 --topic 00..00

Environment:
    BEE_API_URLS       Comma-separated writer URLs (overrides --bee-writer)
    BEE_PEER_API_URL   Comma-separated reader URLs (overrides --bee-reader)
    BEE_STAMP          Comma-separated stamps, one per writer (overrides --stamp)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from feed_bench.benchmark import run_benchmark
from feed_bench.config import BenchmarkConfig
from feed_bench.exceptions import FeedBenchError
from feed_bench.metrics import generate_metrics

logger = logging.getLogger(__name__)

CONFIG_FIELDS = (
    "writers",
    "readers",
    "stamps",
    "updates",
    "topic",
    "topic_seed",
    "download_iteration",
    "grace_period",
    "round_wait",
    "poll_interval",
    "convergence_timeout",
    "sync_tags",
    "sync_trials",
    "private_key",
    "report_path",
)
"""Parsed arguments that map one to one onto `BenchmarkConfig` fields."""


DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class ColoredFormatter(logging.Formatter):
    """Colors the level and logger name; tracebacks are appended uncolored."""

    DIM = "\x1b[2m"
    MAGENTA = "\x1b[38;5;170m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: DIM,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        line = (
            f"{self.DIM}{self.formatTime(record, self.datefmt)}{self.RESET} "
            f"{color}{record.levelname:8}{self.RESET} "
            f"{self.MAGENTA}{record.name}{self.RESET}: {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Install a stderr handler on the root logger."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        if no_color
        else ColoredFormatter(datefmt=DATE_FORMAT)
    )

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # Request lines from httpx drown the benchmark output at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Every config-backed flag defaults to None so that only flags the user
    actually gave override the YAML file.
    """
    parser = argparse.ArgumentParser(
        prog="feed-bench",
        description="Swarm feed propagation benchmark",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with benchmark settings",
    )
    parser.add_argument(
        "-bw",
        "--bee-writer",
        action="append",
        default=None,
        dest="writers",
        help="Writer node URL (can be repeated)",
    )
    parser.add_argument(
        "-br",
        "--bee-reader",
        action="append",
        default=None,
        dest="readers",
        help="Reader node URL (can be repeated)",
    )
    parser.add_argument(
        "-st",
        "--stamp",
        action="append",
        default=None,
        dest="stamps",
        help="Postage stamp per writer (can be repeated, same order as writers)",
    )
    parser.add_argument(
        "-x",
        "--updates",
        type=int,
        default=None,
        help="Number of feed updates to publish (default: 2)",
    )
    parser.add_argument(
        "--topic",
        type=str,
        default=None,
        help="Explicit feed topic as 64 hex characters",
    )
    parser.add_argument(
        "-t",
        "--topic-seed",
        type=int,
        default=None,
        help="Seed for a reproducible random topic",
    )
    parser.add_argument(
        "-di",
        "--download-iteration",
        type=int,
        default=None,
        help="Verify readers every N-th update (default: 1)",
    )
    parser.add_argument(
        "-s",
        "--sync-time",
        type=float,
        default=None,
        dest="grace_period",
        help="Seconds to wait before reading an update (default: 40)",
    )
    parser.add_argument(
        "-w",
        "--wait-time",
        type=float,
        default=None,
        dest="round_wait",
        help="Seconds to wait between updates (default: 3)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between reader polls while they disagree (default: 3)",
    )
    parser.add_argument(
        "--convergence-timeout",
        type=float,
        default=None,
        help="Give up on a round after this many seconds of polling",
    )
    parser.add_argument(
        "--sync-tags",
        action="store_true",
        default=None,
        help="Wait for upload sync tags before reading",
    )
    parser.add_argument(
        "--sync-trials",
        type=int,
        default=None,
        help="Sync tag polls without progress before failing (default: 15)",
    )
    parser.add_argument(
        "--private-key",
        type=str,
        default=None,
        help="Hex-encoded feed owner key (default: built-in test key)",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        dest="report_path",
        help="CSV report file (default: report.csv)",
    )
    parser.add_argument(
        "--metrics-output",
        type=Path,
        default=None,
        help="Write Prometheus metrics to this file when the run ends",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Collect the config fields that were given on the command line."""
    return {name: getattr(args, name) for name in CONFIG_FIELDS if getattr(args, name) is not None}


async def run(config: BenchmarkConfig, metrics_output: Path | None = None) -> None:
    """
    Run one benchmark session and export metrics.

    Metrics are written even when the session fails, so partial runs can
    still be inspected.
    """
    try:
        outcome = await run_benchmark(config)
        logger.info(
            "Benchmark finished: feed %s, manifest %s, %d verified round(s)",
            outcome.feed,
            outcome.manifest.hex(),
            len(outcome.reports),
        )
    finally:
        if metrics_output is not None:
            metrics_output.write_bytes(generate_metrics())


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose, args.no_color)

    try:
        config = BenchmarkConfig.load(args.config, overrides_from_args(args))
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)

    try:
        asyncio.run(run(config, args.metrics_output))
    except FeedBenchError as e:
        logger.error("Benchmark failed: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
        sys.exit(130)


if __name__ == "__main__":
    main()
