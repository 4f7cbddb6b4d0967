"""Rich Console factory and theme for tangleapi output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_reply() -> str`` contract. In non-TTY environments (tests,
pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

TANGLE_THEME = Theme(
    {
        "tangle.ok": "bold green",
        "tangle.error": "bold red",
        "tangle.warning": "bold yellow",
        "tangle.op": "bold cyan",
        "tangle.key": "dim",
        "tangle.field": "magenta",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=TANGLE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
