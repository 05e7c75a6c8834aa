"""Run modes tying the scanner and the selection session to the terminal."""

from __future__ import annotations

import logging
import signal
import threading
from datetime import UTC, datetime
from pathlib import Path
from types import FrameType

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from .cleaner import Cleaner
from .config import ProjcleanConfig
from .filters import SIZE_UNITS
from .scanner import Scanner
from .session import DeletionOutcome, DeletionReport, SelectionSession

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def format_size(size: int) -> str:
    """Format a byte count with a binary unit, e.g. ``1.5M`` or ``12G``."""
    for exponent in range(len(SIZE_UNITS), 0, -1):
        marker = 1024**exponent
        if size >= marker:
            unit = SIZE_UNITS[exponent - 1]
            if size // marker < 10:
                return f"{size / marker:.1f}{unit}"
            return f"{size // marker}{unit}"
    return f"{size}B"


def parse_selection(text: str, count: int) -> list[int]:
    """Parse ``1 3-5,7`` into zero-based indices.

    Raises:
        ValueError: If a number or range is malformed or out of range.

    """
    indices: list[int] = []
    for token in text.replace(",", " ").split():
        start, sep, end = token.partition("-")
        first = int(start)
        last = int(end) if sep else first
        if first < 1 or last > count or first > last:
            raise ValueError(f"Out of range: {token}")
        indices.extend(range(first - 1, last))
    return indices


class ProjcleanApp:
    """Finds targets under a directory and deletes the ones the user picks."""

    def __init__(self, config: ProjcleanConfig, console: Console | None = None) -> None:
        """Initialize the app.

        Args:
            config: Run configuration.
            console: Console for user-facing output.

        """
        self.config = config
        self.console = console or Console()
        self.logger = self._setup_logging()
        self.interrupted = False
        self._scanner: Scanner | None = None

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the run.

        Returns:
            Configured logger instance.

        Raises:
            ValueError: If the configured log level is unknown.

        """
        level = logging.getLevelName(self.config.log_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Invalid log_level: {self.config.log_level}")

        logger = logging.getLogger("projclean")
        logger.setLevel(level)

        # Clear existing handlers to avoid duplicates if the app is recreated
        if logger.handlers:
            logger.handlers.clear()

        console_handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
        )
        console_handler.setLevel(level)
        logger.addHandler(console_handler)

        if self.config.log_file is not None:
            self.config.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.config.log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
            logger.addHandler(file_handler)

        return logger

    def create_scanner(self, start_path: Path) -> Scanner:
        """Build a scanner from the configuration; raises on invalid input."""
        return Scanner(
            start_path,
            self.config.rules,
            self.config.exclude,
            self.config.time,
            self.config.size,
            workers=self.config.workers,
        )

    def _handle_shutdown(self, _signum: int, _frame: FrameType | None) -> None:
        """Handle interrupt signal during a scan."""
        self.logger.info("Interrupt received, stopping scan")
        self.interrupted = True
        if self._scanner is not None:
            self._scanner.stop()

    def collect(self, scanner: Scanner, *, echo: bool = False) -> SelectionSession:
        """Run the scan into a new session.

        An interrupt stops the traversal; targets found so far are kept.

        Args:
            scanner: Prepared scanner.
            echo: Print each path to stdout as soon as it is found.

        Returns:
            Session in the READY state.

        """
        session = SelectionSession(cleaner=Cleaner(self.logger))
        self._scanner = scanner
        previous = None
        if threading.current_thread() is threading.main_thread():
            previous = signal.signal(signal.SIGINT, self._handle_shutdown)

        try:
            if echo:
                for info in scanner:
                    session.add(info)
                    print(info.path, flush=True)
            else:
                with self.console.status("Searching...") as status:
                    for info in scanner:
                        index = session.add(info)
                        status.update(f"Searching... {index + 1} found, {format_size(session.total_size)}")
        finally:
            if previous is not None:
                signal.signal(signal.SIGINT, previous)
            self._scanner = None

        session.finish()
        if (warnings := scanner.warnings) and not echo:
            self.console.print(f"[yellow]Skipped {len(warnings)} unreadable path(s)[/yellow]")
        return session

    def run_print(self, start_path: Path) -> int:
        """List found targets, one path per line."""
        session = self.collect(self.create_scanner(start_path), echo=True)
        session.abort()
        return EXIT_INTERRUPTED if self.interrupted else EXIT_OK

    def run_force(self, start_path: Path) -> int:
        """Delete every found target without asking."""
        session = self.collect(self.create_scanner(start_path))
        if self.interrupted:
            session.abort()
            self.console.print("[yellow]Interrupted, nothing deleted[/yellow]")
            return EXIT_INTERRUPTED

        if not len(session):
            self.console.print("[green]No targets found[/green]")
            return EXIT_OK

        session.select_all()
        return self.report(session.confirm(self.config.workers))

    def run_interactive(self, start_path: Path) -> int:
        """Show found targets and delete the ones the user selects."""
        session = self.collect(self.create_scanner(start_path))
        if not len(session):
            self.console.print("[green]No targets found[/green]")
            return EXIT_OK

        try:
            while True:
                self.show_targets(session)
                answer = Prompt.ask(
                    "Toggle targets ([cyan]1 3-5[/cyan], [cyan]all[/cyan], [cyan]none[/cyan]; "
                    "empty to continue, [cyan]q[/cyan] to quit)",
                    console=self.console,
                    default="",
                    show_default=False,
                ).strip().lower()
                if not answer:
                    break
                if answer == "q":
                    session.abort()
                    return EXIT_OK
                if answer == "all":
                    session.select_all()
                elif answer == "none":
                    session.select_none()
                else:
                    try:
                        for index in parse_selection(answer, len(session)):
                            session.toggle(index)
                    except ValueError as e:
                        self.console.print(f"[red]{escape(str(e))}[/red]")

            selected = session.selected()
            if not selected:
                session.abort()
                self.console.print("Nothing selected")
                return EXIT_OK

            size = sum(session.targets[i].size for i in selected)
            if not Confirm.ask(
                f"Delete {len(selected)} target(s), {format_size(size)}?",
                console=self.console,
                default=False,
            ):
                session.abort()
                return EXIT_OK
        except (KeyboardInterrupt, EOFError):
            session.abort()
            self.console.print()
            return EXIT_INTERRUPTED

        return self.report(session.confirm(self.config.workers))

    def show_targets(self, session: SelectionSession) -> None:
        """Render the found targets with their selection marks."""
        now = datetime.now(UTC)
        selected = session.selected()
        table = Table(title=f"Found {len(session)} target(s), {format_size(session.total_size)}")
        table.add_column("", width=3)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Path", style="cyan")
        table.add_column("Rule", style="dim")
        table.add_column("Size", justify="right", style="green")
        table.add_column("Age", justify="right")

        for index, info in enumerate(session.targets):
            table.add_row(
                "✔" if index in selected else "",
                str(index + 1),
                escape(str(info.relative_path)),
                escape(info.rule_label),
                format_size(info.size),
                f"{info.age_days(now)}d",
            )

        self.console.print(table)

    def report(self, report: DeletionReport) -> int:
        """Print the deletion results and derive the exit code."""
        for result in report.succeeded:
            self.console.print(f"[green]Deleted[/green] {escape(str(result.path))}")

        if report.failed:
            table = Table(title=f"Failed to delete {len(report.failed)} target(s)")
            table.add_column("Path", style="red")
            table.add_column("Reason", style="dim")
            for result in report.failed:
                table.add_row(escape(str(result.path)), escape(result.reason or ""))
            self.console.print(table)

        self.console.print(
            f"Deleted {len(report.succeeded)} target(s), freed {format_size(report.freed_bytes)}"
        )
        return EXIT_FAILURE if report.outcome is DeletionOutcome.PARTIAL else EXIT_OK
