"""Rich console utilities for controller log output.

This module provides the consistent, styled output used by the reconciler
and the CLI. Everything goes through one shared themed console so tests
can patch a single object.
"""

from collections.abc import Generator
from contextlib import contextmanager

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
    }
)

# Shared console instance; log lines go to stderr so stdout stays scriptable
console = Console(theme=_THEME, stderr=True, log_path=False)


def info(message: str) -> None:
    """Log a neutral reconciler event, such as which configuration source is in use."""
    console.log(f"[info]ℹ[/info] {message}")


def success(message: str) -> None:
    """Log a completed write or a finished reconciliation.

    Args:
        message: Event text; may contain Rich markup from :func:`highlight`.

    """
    console.log(f"[success]✓[/success] {message}")


def warning(message: str) -> None:
    """Log a degraded transition or a suspicious input that did not stop the pipeline."""
    console.log(f"[warning]⚠[/warning] {message}")


def error(message: str) -> None:
    """Log the failure behind a retry.

    The same text is reported as the degraded condition message, so it
    should be readable without the surrounding log lines.

    Args:
        message: Failure description.

    """
    console.log(f"[error]✗[/error] {message}")


def action(message: str) -> None:
    """Log the start of a reconciliation step."""
    console.log(f"[info]→[/info] {message}")


def step(message: str) -> None:
    """Log a decision inside a step, such as a skipped trigger."""
    console.log(f"[muted]•[/muted] {message}")


def highlight(text: str) -> str:
    """Mark an object identity or field name for emphasis in a log line."""
    return f"[highlight]{text}[/highlight]"


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Show a transient status line while a CLI reconciliation runs.

    Log lines emitted inside the block are printed above the status line.

    Args:
        message: Status text, usually naming the request being reconciled.

    """
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def summary_panel(title: str, items: dict[str, str], *, failed: bool = False) -> None:
    """Print the outcome of a CLI reconciliation as a bordered table.

    Args:
        title: Panel title.
        items: Rows such as request, outcome and degraded reason, in display order.
        failed: Use the error border, for results that ask for a retry.

    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(style="cyan")

    for label, value in items.items():
        table.add_row(f"{label}:", value)

    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style="red" if failed else "green"))
