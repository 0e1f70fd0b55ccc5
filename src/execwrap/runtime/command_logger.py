"""Per-command logger.

Wraps a stdlib logger so every record carries the command name, both as a
"[name]" message prefix and as the ``command_name`` attribute for handlers
and filters, and drops records below the level mapped from the run's
verbosity.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any

from ..config import level_for_verbosity

__all__ = ["CommandLogger"]


class CommandLogger(logging.LoggerAdapter):
    """LoggerAdapter tagging records with a command name.

    Example:
        log = CommandLogger(logging.getLogger(__name__), "build", verbosity=2)
        log.info("Running command")
        # -> "[build] Running command", record.command_name == "build"
    """

    def __init__(self, logger: logging.Logger, command_name: str, verbosity: int = 0) -> None:
        super().__init__(logger, {"command_name": command_name})
        self.command_name = command_name
        self.verbosity = verbosity
        self.min_level = level_for_verbosity(verbosity)

    def isEnabledFor(self, level: int) -> bool:
        if level < self.min_level:
            return False
        return self.logger.isEnabledFor(level)

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return f"[{self.command_name}] {msg}", kwargs
