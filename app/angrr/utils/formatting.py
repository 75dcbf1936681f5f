"""Rich console formatting utilities.

Provides the shared consoles and message helpers used by the CLI and
the run engine. Decorated status lines go to stderr so that stdout
stays free for the removed-path stream.
"""

import sys

from rich.console import Console
from rich.markup import escape

from angrr.core.theme import get_theme


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stderr.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def dry_run_indicator(show: bool) -> str:
    """Return the " (dry-run)" markup suffix when show is True."""
    return " [dry_run](dry-run)[/]" if show else ""


def quote_path(path: object) -> str:
    """Quote a path for display, escaping Rich markup."""
    return escape(repr(str(path)))


def print_info(message: str) -> None:
    """Print an info message."""
    err_console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {escape(message)}", soft_wrap=True)


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {escape(message)}", soft_wrap=True)


def print_success(message: str) -> None:
    """Print a success message."""
    err_console.print(f"[success]{message}[/]")
