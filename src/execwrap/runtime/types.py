"""Command and result types.

execwrap runtime module v0.1.0

Defines the command description passed to ProcessRunner, the run result, and
the three policy enums that select capture, echo and failure behavior.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, TypeVar

from ..errors import ExecError

__all__ = [
    "CaptureMode",
    "EchoMode",
    "FailurePolicy",
    "CommandSpec",
    "RunResult",
]

_E = TypeVar("_E", bound="_ParsableEnum")


class _ParsableEnum(str, Enum):
    """str Enum that parses case-insensitively, accepting '-' or '_'."""

    @classmethod
    def from_string(cls: type[_E], value: str) -> _E:
        """Parse a mode name.

        Args:
            value: e.g. "discard-stderr", "DISCARD_STDERR"

        Returns:
            The matching member

        Raises:
            ValueError: If no member matches
        """
        normalized = value.strip().lower().replace("_", "-")
        for member in cls:
            if member.value == normalized:
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"invalid {cls.__name__}: {value!r} (expected one of: {choices})")


class CaptureMode(_ParsableEnum):
    """How stdout/stderr are retained.

    - SEPARATE: one buffer per stream
    - COMBINED: stderr is merged into the stdout buffer
    - DISCARD_STDERR: stderr goes to the null device
    """

    SEPARATE = "separate"
    COMBINED = "combined"
    DISCARD_STDERR = "discard-stderr"


class EchoMode(_ParsableEnum):
    """Where captured lines are echoed while the process runs.

    - SILENT: buffer only
    - ON_TRACE: log every line when verbosity reaches the trace threshold
    - ALWAYS_TO_TERMINAL: mirror lines to this process's stdout/stderr
    """

    SILENT = "silent"
    ON_TRACE = "on-trace"
    ALWAYS_TO_TERMINAL = "always-to-terminal"


class FailurePolicy(_ParsableEnum):
    """What happens after a failed run."""

    RETURN_ERROR = "return-error"
    TERMINATE_PROCESS = "terminate-process"


@dataclass(frozen=True)
class CommandSpec:
    """Description of a process to launch.

    Built by the caller, passed to one run and then discarded.

    Attributes:
        name: Human-readable label used for logging (required)
        executable: Program path or bare name looked up on PATH (required)
        arguments: Arguments passed verbatim to the child
        working_directory: Optional directory, may start with "~"
        verbosity: Overrides the runner's configured verbosity when set
        capture_mode: Stream retention policy
        echo_mode: Live echo policy
        on_failure: Post-failure policy
        continue_on_failure: Suppresses termination under TERMINATE_PROCESS
        stdout_sink: Extra destination for every stdout line
        stderr_sink: Extra destination for every stderr line
        env: Child environment (None = inherit parent)
    """

    name: str
    executable: str
    arguments: Sequence[str] = ()
    working_directory: str | Path | None = None
    verbosity: int | None = None
    capture_mode: CaptureMode = CaptureMode.SEPARATE
    echo_mode: EchoMode = EchoMode.ON_TRACE
    on_failure: FailurePolicy = FailurePolicy.RETURN_ERROR
    continue_on_failure: bool = False
    stdout_sink: IO[str] | None = field(default=None, compare=False, repr=False)
    stderr_sink: IO[str] | None = field(default=None, compare=False, repr=False)
    env: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "arguments", tuple(self.arguments))
        for attr, enum_type in (
            ("capture_mode", CaptureMode),
            ("echo_mode", EchoMode),
            ("on_failure", FailurePolicy),
        ):
            value = getattr(self, attr)
            if isinstance(value, str) and not isinstance(value, enum_type):
                object.__setattr__(self, attr, enum_type.from_string(value))

    @property
    def argv(self) -> list[str]:
        """Full command line, executable first."""
        return [self.executable, *self.arguments]

    @classmethod
    def fire_and_continue(
        cls,
        name: str,
        executable: str,
        arguments: Sequence[str] = (),
        *,
        verbosity: int = 0,
        continue_on_failure: bool = False,
        working_directory: str | Path | None = None,
    ) -> "CommandSpec":
        """Build a spec that echoes to the terminal and exits the program on failure.

        Output is echoed live when verbosity > 0 and only buffered otherwise.
        A failure terminates the host process with status 2 unless
        continue_on_failure is set.
        """
        return cls(
            name=name,
            executable=executable,
            arguments=arguments,
            working_directory=working_directory,
            verbosity=verbosity,
            echo_mode=EchoMode.ALWAYS_TO_TERMINAL if verbosity > 0 else EchoMode.SILENT,
            on_failure=FailurePolicy.TERMINATE_PROCESS,
            continue_on_failure=continue_on_failure,
        )


@dataclass
class RunResult:
    """Outcome of a single run.

    Attributes:
        name: Command name
        stdout: Every stdout line read, each followed by a newline
        stderr: Every stderr line read, each followed by a newline
        returncode: Exit status, None if the process never ran
        error: The failure, None on success
    """

    name: str
    stdout: str = ""
    stderr: str = ""
    returncode: int | None = None
    error: ExecError | None = None

    @property
    def success(self) -> bool:
        """True when the run produced no error."""
        return self.error is None

    def raise_for_error(self) -> "RunResult":
        """Raise the stored error, if any.

        Returns:
            self, so calls can be chained
        """
        if self.error is not None:
            raise self.error
        return self
