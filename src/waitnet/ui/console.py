"""Console output formatting utilities for waitnet."""

from __future__ import annotations

import sys
from datetime import datetime
from typing import List, Optional

from rich.console import Console as RichConsole
from rich.table import Table


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug
        # file=None makes rich resolve sys.stdout on every write
        self._rich = RichConsole(highlight=False)

    def _log(self, level: str, message: str) -> None:
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        print(f"{stamp} {level:<5} {message}", file=sys.stderr)

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(self, workflow: str, job_count: int) -> None:
        """Log the start marker of a run."""
        self._log("INFO", f"=== Start {workflow} ({job_count} jobs) ===")

    def print_run_finished(self, workflow: str, duration: Optional[float] = None) -> None:
        """Log the finish marker of a run."""
        suffix = f" in {duration:.1f}s" if duration is not None else ""
        self._log("INFO", f"=== Finish {workflow}{suffix} ===")

    def print_job_error(self, error: BaseException) -> None:
        """Log one collected job failure."""
        self._log("ERROR", str(error) or type(error).__name__)

    def print_status_table(self, table: Table) -> None:
        """Render a status table on stdout."""
        self._rich.print(table)

    def print_plan(self, levels: List[List[str]]) -> None:
        """Print execution stages."""
        self.print_header("PLAN")
        for idx, level in enumerate(levels, start=1):
            print(f"  Stage {idx}: {', '.join(level)}")

    def print_wait_started(self, condition: str, timeout: float, poll_interval: float) -> None:
        self._log("INFO", f"waiting for {condition} (timeout={timeout:g}s, poll every {poll_interval:g}s)")

    def print_wait_satisfied(self, condition: str, checks: int) -> None:
        self._log("INFO", f"{condition} satisfied after {checks} check(s)")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
