"""Rich Console factory and theme for adrctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

from adrctl.domain.lifecycle import match_status

ADR_THEME = Theme(
    {
        "adr.ok": "bold green",
        "adr.error": "bold red",
        "adr.warning": "bold yellow",
        "adr.info": "cyan",
        "adr.op": "bold cyan",
        "adr.key": "dim",
        "adr.number": "bold blue",
        "adr.path": "dim",
        "adr.title": "bold",
        "adr.status.proposed": "yellow",
        "adr.status.accepted": "green",
        "adr.status.deprecated": "dim",
        "adr.status.superseded": "dim strike",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=ADR_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    if not isinstance(console.file, StringIO):
        raise TypeError("console was not created by create_console()")
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Rich style name for a record status; custom statuses are unstyled."""
    matched = match_status(status)
    return f"adr.status.{matched.value}" if matched else ""
