"""Command line interface: ``scss-guard lint`` and ``scss-guard fix``."""

import argparse
import os
import sys
from typing import List, Optional

from . import __version__
from .config import load_config
from .linter import Linter
from .utils.errors import ConfigurationError
from .utils.logging_config import get_logger, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scss-guard",
        description="Lint and format SCSS against the CSS/Sass style guide",
    )
    parser.add_argument("--version", action="version", version=__version__)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("paths", nargs="+", help="Files, directories or glob patterns")
    common.add_argument("--config", "-c", type=str, help="Path to configuration file")
    common.add_argument(
        "--format",
        choices=["human", "structured"],
        help="Report format (default from configuration)",
    )
    common.add_argument(
        "--severity",
        choices=["warning", "error"],
        help="Lowest severity to report; warnings never change the exit code",
    )
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("lint", parents=[common], help="Report style violations")
    commands.add_parser(
        "fix", parents=[common], help="Apply auto-fixes and canonical formatting in place"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)

    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"scss-guard: {e.message}", file=sys.stderr)
        return 2

    if args.format:
        config.reporter.format = args.format
    if args.severity:
        config.reporter.min_severity = args.severity

    setup_logging(config.logging)
    logger = get_logger("cli")

    linter = Linter(config)
    try:
        if args.command == "fix":
            reporter = linter.fix_paths(args.paths)
        else:
            reporter = linter.lint_paths(args.paths)
    except ConfigurationError as e:
        print(f"scss-guard: {e.message}", file=sys.stderr)
        return 2

    print(reporter.render(config.reporter.format))
    logger.debug(f"Exiting with code {reporter.exit_code}")
    return reporter.exit_code


if __name__ == "__main__":
    sys.exit(main())
