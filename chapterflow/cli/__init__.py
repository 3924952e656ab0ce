"""chapterflow CLI - Command-line interface for chapter translation.

Usage:
    chapterflow run                      # resume where the last run stopped
    chapterflow run --start 12           # start at chapter 12 (1-based)
    chapterflow run --yes                # accept the suggestion, no pauses
    chapterflow status --config my.yaml  # show per-chapter progress
"""

import argparse
import logging

from chapterflow.cli import commands
from chapterflow.cli.commands import cmd_run, cmd_status

__all__ = [
    # Submodules
    "commands",
    # Entry points
    "main",
    "create_parser",
]


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser.

    Returns:
        Configured ArgumentParser for testing and main().
    """
    parser = argparse.ArgumentParser(
        description="chapterflow - two-pass novel chapter translator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Translate chapters")
    run_parser.add_argument(
        "--config", "-c", type=str, default=None,
        help="Config file (default: config.yaml or config.yml)",
    )
    run_parser.add_argument(
        "--start", "-s", type=int, default=None,
        help="Chapter number to start from (1-based), skips the prompt",
    )
    run_parser.add_argument(
        "--yes", "-y", action="store_true",
        help="Accept the suggested start and do not pause between chapters",
    )
    run_parser.set_defaults(func=cmd_run)

    # Status command
    status_parser = subparsers.add_parser("status", help="Show translation progress")
    status_parser.add_argument(
        "--config", "-c", type=str, default=None,
        help="Config file (default: config.yaml or config.yml)",
    )
    status_parser.set_defaults(func=cmd_status)

    return parser


def main():
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()
