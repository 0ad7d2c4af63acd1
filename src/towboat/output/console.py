"""Rich Console factory and theme for towboat output.

Consoles render into a StringIO buffer so renderers stay pure
``ServiceResult -> str`` functions. In non-TTY environments (tests,
pipes) Rich drops color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

TOW_THEME = Theme(
    {
        "tow.ok": "bold green",
        "tow.error": "bold red",
        "tow.warning": "bold yellow",
        "tow.op": "bold cyan",
        "tow.key": "dim",
        "tow.path": "dim",
        "tow.tag": "bold magenta",
        "tow.dry": "bold yellow",
        "tow.action.write": "green",
        "tow.action.link": "blue",
        "tow.action.adopt": "yellow",
        "tow.action.remove": "red",
        "tow.action.mkdir": "cyan",
        "tow.action.unchanged": "dim",
        "tow.action.skip": "dim yellow",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Override terminal width (keeps test output stable).
    """
    return Console(
        file=StringIO(),
        theme=TOW_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_action(action: str) -> str:
    """Rich style name for a planner action (``write``, ``link`` ...)."""
    style = f"tow.action.{action}"
    return style if style in TOW_THEME.styles else ""
