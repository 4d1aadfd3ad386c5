"""Rich Console factory and theme for fzctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

FZ_THEME = Theme(
    {
        "fz.ok": "bold green",
        "fz.error": "bold red",
        "fz.warning": "bold yellow",
        "fz.op": "bold cyan",
        "fz.key": "dim",
        "fz.id": "bold blue",
        "fz.title": "bold",
        "fz.type.sequence": "green",
        "fz.type.branch": "magenta",
        "fz.old": "red",
        "fz.new": "green",
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
        theme=FZ_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_type(zettel_type: str) -> str:
    """Return the Rich style name for ``sequence`` or ``branch``."""
    return f"fz.type.{zettel_type}" if zettel_type in ("sequence", "branch") else ""
