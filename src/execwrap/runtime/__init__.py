"""Runtime module for running a child process and capturing its output.

This module provides validation, concurrent stream capture and outcome
reporting for a single external command.
"""

from __future__ import annotations

from .command_logger import CommandLogger
from .process_runner import EXIT_CODE_FAILURE, ProcessRunner, run_command
from .types import CaptureMode, CommandSpec, EchoMode, FailurePolicy, RunResult

__all__ = [
    "CaptureMode",
    "CommandLogger",
    "CommandSpec",
    "EchoMode",
    "EXIT_CODE_FAILURE",
    "FailurePolicy",
    "ProcessRunner",
    "RunResult",
    "run_command",
]
