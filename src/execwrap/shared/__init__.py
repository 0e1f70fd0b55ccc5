"""Shared helpers for terminal output."""

from .colors import COLORS, STREAM_COLORS, colorize, supports_color

__all__ = [
    "COLORS",
    "STREAM_COLORS",
    "colorize",
    "supports_color",
]
