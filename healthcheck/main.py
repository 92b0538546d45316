#!/usr/bin/env python3
"""
healthcheck

Prints a one-shot health summary of the local host: CPU, memory and root
filesystem usage, uptime and load average, each classified as OK, WARNING
or CRITICAL against fixed thresholds.

Usage:
    healthcheck            print the health summary
    healthcheck explain    describe each metric and its thresholds
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from healthcheck.config import get_settings
from healthcheck.services import report

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="healthcheck",
        description=(
            "Print CPU, memory, disk, uptime and load average of this host "
            "with OK/WARNING/CRITICAL classification."
        ),
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["explain"],
        help="explain: describe each metric and its thresholds instead of sampling",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    # Unknown arguments exit with status 2 here (argparse)
    args = parse_args(argv)

    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command == "explain":
        sys.stdout.write(report.explain_text())
        return 0

    health = report.build_report(settings)
    color = sys.stdout.isatty() and not settings.no_color
    logger.debug("rendering report (color=%s)", color)
    sys.stdout.write(report.render_report(health, color=color))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
