"""log-ingestor: resequence an HTTP access-log CSV and report traffic alerts and stats."""

import argparse
import asyncio
import logging
import sys
from typing import AsyncIterable

from ingestor.config import IngestorConfig, load_config
from ingestor.dispatcher import Dispatcher, DispatchSummary
from ingestor.errors import SinkError
from ingestor.processors.alerts import Alerts
from ingestor.processors.stats import Stats
from ingestor.reader import open_source, read_csv_async
from ingestor.resequencer import Resequencer
from ingestor.sink import Sink

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="log-ingestor",
        description="Process HTTP access logs: traffic alerts and per-section stats.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="CSV file with the logs (default: read standard input)",
    )
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument(
        "--buffer-seconds", type=int, default=None,
        help="Reorder window in seconds for out-of-order records",
    )
    parser.add_argument(
        "--alert-threshold", type=float, default=None,
        help="Average requests/sec that triggers a high-traffic alert",
    )
    parser.add_argument(
        "--alert-window", type=int, default=None,
        help="Sliding window in seconds for the traffic alert",
    )
    parser.add_argument(
        "--stats-period", type=int, default=None,
        help="Seconds between per-section stats reports",
    )
    parser.add_argument("--workers", type=int, default=None, help="Processor worker threads")
    parser.add_argument(
        "--color", action="store_true",
        help="Highlight alerts with an ANSI banner",
    )
    parser.add_argument("--log-level", default=None, help="Diagnostic log level (stderr)")
    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def build_processors(config: IngestorConfig, color: bool = False) -> list:
    return [
        Alerts(config.alert_threshold, config.alert_window, highlight=color),
        Stats(config.stats_period, sort_sections=True),
    ]


async def process_logs(
    lines: AsyncIterable[str],
    sink: Sink,
    config: IngestorConfig,
    color: bool = False,
) -> DispatchSummary:
    """Run the whole pipeline over *lines*, writing results to *sink*."""
    groups = Resequencer(read_csv_async(lines), config.buffer_seconds)
    dispatcher = Dispatcher(build_processors(config, color), sink, max_workers=config.workers)
    summary = await dispatcher.run(groups)
    logger.info(
        "Processed %d group(s): %d parse error(s), %d late record(s), %d processor error(s)",
        summary.groups, groups.parse_errors, groups.late_records, summary.processor_errors,
    )
    return summary


async def run(args: argparse.Namespace) -> int:
    # config loading logs its own warnings, so a handler must exist first
    setup_logging(args.log_level or "WARNING")
    config = load_config(
        args.config,
        buffer_seconds=args.buffer_seconds,
        alert_threshold=args.alert_threshold,
        alert_window=args.alert_window,
        stats_period=args.stats_period,
        workers=args.workers,
        log_level=args.log_level,
    )
    setup_logging(config.log_level)
    logger.info("Config: %s", config)

    try:
        async with open_source(args.path) as f:
            await process_logs(f, Sink(sys.stdout), config, color=args.color)
    except OSError as e:
        logger.error("Cannot open input: %s", e)
        return 1
    except SinkError as e:
        logger.error("%s", e)
        return 1
    return 0


def main() -> None:
    args = build_parser().parse_args()
    try:
        sys.exit(asyncio.run(run(args)))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
