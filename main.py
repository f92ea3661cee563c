# main.py
"""
Command-line entry point.

Usage:
    python main.py            # default budget (1000 unless DEFAULT_TOTAL_TIME is set)
    python main.py 200
    python main.py 200 --log-level DEBUG
"""

import argparse
import json
import logging
import math
import sys

from prioritizer.config import PrioritizerConfig
from prioritizer.controller import Prioritizer
from prioritizer.errors import PrioritizerError


def setup_logging(log_level: str = "WARNING") -> logging.Logger:
    """Console logging on stderr, so stdout carries only the report."""
    logger = logging.getLogger("prioritizer")
    logger.setLevel(getattr(logging, log_level.upper()))

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    ))
    logger.handlers = [console_handler]
    return logger


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Select the transactions that move the most value within a latency budget."
    )
    parser.add_argument(
        "budget", nargs="?", default=None,
        help="Total time budget (integer). Non-numeric or absent values use the configured default."
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )
    return parser.parse_args(argv)


def parse_budget(raw: str | None, default: int) -> int:
    """Integer part of a numeric argument; anything else falls back to `default`."""
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if not math.isfinite(value) or value < 0:
        return default
    return int(value)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = PrioritizerConfig.from_env()
        budget = parse_budget(args.budget, config.default_budget)
        report = Prioritizer(config).prepare_selection(budget)
    except PrioritizerError as e:
        print(f"ERROR: {e}.", file=sys.stderr)
        return 1

    print(json.dumps(report.to_dict(), indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
