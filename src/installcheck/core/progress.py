"""User-facing console output for harness runs.

Design principles:
- One line per finished test, no spinners (output is usually captured by CI)
- Captured test output is printed verbatim, never interpreted as markup
- Graceful degradation in non-TTY (CI, pipes)

Usage::

    from installcheck.core.progress import status, heading, print_summary

    heading("Phase 1: Testing if SLI can execute scripts and report errors")
    status("Running test 'selftests/test_pass.sli'... Success", style="success")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from installcheck.harness.models import RunTotals

_console = Console(highlight=False)

# Style prefixes
_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}


def _get_logger() -> BoundLogger:
    """Get logger lazily to respect runtime config."""
    from installcheck.core.logging import get_logger

    return get_logger("progress")


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message."""
    prefix = _STYLES.get(style, "")
    padding = " " * indent
    text = Text.from_markup(f"{padding}{prefix}")
    text.append(message)
    _console.print(text, soft_wrap=True)

    _get_logger().debug("status", message=message, style=style)


def heading(title: str) -> None:
    _console.print()
    _console.print(title, style="bold", markup=False)
    _console.print("-" * len(title), style="dim", markup=False)


def print_block(text: str, *, prefix: str = "") -> None:
    """Print captured output verbatim, one prefixed line per input line."""
    for line in text.splitlines():
        _console.print(f"{prefix}{line}", markup=False, soft_wrap=True)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Args:
        count: The number of items
        singular: Singular form (e.g., "test")
        plural: Plural form (default: singular + "s")

    Returns:
        Formatted string like "1 test" or "3 tests"
    """
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


def make_summary_table(totals: RunTotals) -> Table:
    """Build the end-of-run summary table."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("label", style="bold")
    table.add_column("value", justify="right")
    table.add_row("Total number of tests", str(totals.total))
    table.add_row("Passed", str(totals.passed), style="green" if totals.passed else None)
    table.add_row("Failed", str(totals.failed), style="red" if totals.failed else None)
    if totals.skipped:
        table.add_row("Skipped", str(totals.skipped), style="yellow")
    table.add_row("Time", f"{totals.elapsed:.1f} s")
    return table


def print_summary(totals: RunTotals, *, title: str = "Testsuite Summary") -> None:
    _console.print()
    _console.print(Rule(title, style="cyan"))
    _console.print(make_summary_table(totals))
    _console.print(Rule(style="cyan"))
