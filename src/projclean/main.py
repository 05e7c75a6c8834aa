"""Main entry point for projclean."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from . import __version__
from .app import EXIT_FAILURE, ProjcleanApp
from .config import ProjcleanConfig
from .errors import ProjcleanError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments.

    """
    parser = argparse.ArgumentParser(
        prog="projclean",
        description="Find and clean dependency and build directories",
    )

    parser.add_argument(
        "rules",
        nargs="*",
        metavar="RULES",
        help="Search rules, like node_modules or target@Cargo.toml",
    )
    parser.add_argument(
        "--cwd",
        "-C",
        type=Path,
        default=Path("."),
        metavar="DIR",
        help="Start searching from DIR",
    )
    parser.add_argument(
        "--exclude",
        "-x",
        action="append",
        default=None,
        metavar="NAME",
        help="Directory name to skip (repeatable)",
    )
    parser.add_argument(
        "--time",
        "-t",
        default=None,
        help="Age filter in days: +N older than, -N newer than, N exactly",
    )
    parser.add_argument(
        "--size",
        "-s",
        default=None,
        help="Size filter with optional K/M/G/T unit, e.g. +1M",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help="Number of worker threads",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug logging",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Delete found targets without asking",
    )
    mode.add_argument(
        "--print",
        "-p",
        action="store_true",
        dest="print_only",
        help="Print found targets only",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ProjcleanConfig:
    """Load the config file and apply command line overrides."""
    config = ProjcleanConfig.load(args.config)

    if args.rules:
        config.rules = list(args.rules)
    if args.exclude:
        config.exclude = list(args.exclude)
    if args.time is not None:
        config.time = args.time
    if args.size is not None:
        config.size = args.size
    if args.workers is not None:
        config.workers = args.workers
    if args.force:
        config.force = True
    if args.verbose:
        config.log_level = "DEBUG"

    config.validate()
    return config


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code.

    """
    args = parse_args(argv)
    console = Console(stderr=True)

    try:
        config = build_config(args)
        if not config.rules:
            console.print("[red]No rules given[/red]")
            return EXIT_FAILURE

        app = ProjcleanApp(config)
        if args.print_only:
            return app.run_print(args.cwd)
        if config.force:
            return app.run_force(args.cwd)
        return app.run_interactive(args.cwd)
    except (ProjcleanError, OSError) as e:
        console.print(f"[red]{escape(str(e))}[/red]", highlight=False)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
