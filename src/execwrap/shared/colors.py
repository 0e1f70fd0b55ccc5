"""Terminal color scheme.

execwrap shared v0.1.0

ANSI colors used when echoed lines go to a terminal.
"""

from __future__ import annotations

from typing import IO

__all__ = [
    "COLORS",
    "STREAM_COLORS",
    "colorize",
    "supports_color",
]

RESET = "\033[0m"

# Base palette
COLORS = {
    "white": "\033[37m",
    "red": "\033[31m",
    "yellow": "\033[33m",
    "green": "\033[32m",
    "dim": "\033[2m",

    # Status
    "success": "\033[32m",
    "error": "\033[31m",
    "warning": "\033[33m",
}

# Per-stream colors for echoed output
STREAM_COLORS = {
    "stdout": COLORS["white"],
    "stderr": COLORS["red"],
}


def supports_color(stream: IO[str] | None) -> bool:
    """Whether a stream is an interactive terminal."""
    if stream is None:
        return False
    isatty = getattr(stream, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except (OSError, ValueError):
        # closed or detached stream
        return False


def colorize(text: str, color: str) -> str:
    """Wrap text in an ANSI color.

    Args:
        text: Text to color
        color: Key of COLORS / STREAM_COLORS, or a raw escape sequence
    """
    code = COLORS.get(color) or STREAM_COLORS.get(color) or color
    return f"{code}{text}{RESET}"
