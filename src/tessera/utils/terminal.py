"""Terminal colouring for compile diagnostics.

Colours are decided once at import: FORCE_COLOR wins over NO_COLOR
(https://no-color.org/), otherwise only a TTY on stderr gets ANSI codes.
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

ColorName = Literal["reset", "bold", "dim", "yellow", "cyan", "bright_red"]

_ANSI: dict[str, str] = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
    "bright_red": "\033[91m",
}

_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def _should_use_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stderr.isatty()


_USE_COLORS = _should_use_colors()


def colorize(text: str, *colors: ColorName) -> str:
    """Wrap ``text`` in the ANSI codes for ``colors`` when colours are on."""
    prefix = "".join(_ANSI.get(color, "") for color in colors)
    if not (_USE_COLORS and prefix):
        return text
    return f"{prefix}{text}{_ANSI['reset']}"


def strip_colors(text: str) -> str:
    return _ANSI_ESCAPE.sub("", text)


# Diagnostic roles


def location(text: str) -> str:
    """``card.html:3:5`` after the ``-->`` arrow."""
    return colorize(text, "cyan")


def line_number(text: str) -> str:
    return colorize(text, "yellow")


def error_line(text: str) -> str:
    """The offending source line and its caret."""
    return colorize(text, "bright_red")


def dim_text(text: str) -> str:
    """Gutters and context lines."""
    return colorize(text, "dim")


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """Number one markup source line; the offending one is marked with ``>``.

    Example:
        >>> strip_colors(format_source_line(3, "<p>", is_error=True))
        '>  3 | <p>'
    """
    gutter = line_number(f"{'>' if is_error else ' '}{lineno:>3}")
    return f"{gutter} | {error_line(content) if is_error else dim_text(content)}"
