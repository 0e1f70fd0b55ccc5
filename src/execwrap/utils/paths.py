"""Working directory resolution."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..errors import PathResolutionError

__all__ = ["build_absolute_path_from_home"]

logger = logging.getLogger(__name__)


def build_absolute_path_from_home(path: str | os.PathLike[str]) -> Path:
    """Turn a possibly home-relative path into an absolute one.

    A leading "~" (or "~user") is expanded, relative paths are joined onto the
    current directory, and "." / ".." segments are collapsed. The path does
    not have to exist.

    Args:
        path: Path as given by the caller

    Returns:
        Absolute, normalized path

    Raises:
        PathResolutionError: If the path is empty or invalid, or the home
            directory cannot be determined
    """
    raw = os.fspath(path)
    if not raw:
        raise PathResolutionError(raw, "path is empty")
    if "\x00" in raw:
        raise PathResolutionError(raw, "path contains a NUL byte")

    try:
        expanded = Path(raw).expanduser()
    except RuntimeError as e:
        # Path.expanduser raises when HOME / the user entry is unavailable
        raise PathResolutionError(raw, f"home directory could not be determined ({e})") from e

    if expanded.parts and expanded.parts[0].startswith("~"):
        raise PathResolutionError(raw, "home directory could not be determined")

    try:
        resolved = Path(os.path.abspath(expanded))
    except (OSError, ValueError) as e:
        raise PathResolutionError(raw, str(e)) from e

    logger.debug(f"Resolved {raw} -> {resolved}")
    return resolved
