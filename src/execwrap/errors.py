"""Exception types for process execution.

execwrap v0.1.0

Every failure a run can produce is one of these. ProcessRunner returns them
in RunResult.error instead of raising, so callers can still read whatever
output was captured.
"""

from __future__ import annotations

__all__ = [
    "ExecError",
    "ValidationError",
    "PathResolutionError",
    "PipeSetupError",
    "StartError",
    "ExitError",
]

# Number of trailing stderr lines quoted in ExitError messages
EXIT_ERROR_TAIL_LINES = 5


class ExecError(Exception):
    """Base class for all run failures.

    Attributes:
        name: Command name the failure belongs to
    """

    def __init__(self, message: str, name: str = "") -> None:
        self.name = name
        self.message = message
        super().__init__(message)


class ValidationError(ExecError):
    """The command description is incomplete. No process was spawned.

    Attributes:
        messages: Every validation problem found, in check order
    """

    def __init__(self, messages: list[str], name: str = "") -> None:
        self.messages = list(messages)
        super().__init__(
            "Command validation failed: " + "; ".join(self.messages),
            name=name,
        )


class PathResolutionError(ExecError):
    """The working directory could not be turned into an absolute path.

    Attributes:
        path: The path as given by the caller
        reason: Why resolution failed
    """

    def __init__(self, path: str, reason: str, name: str = "") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not resolve path {path!r}: {reason}", name=name)


class PipeSetupError(ExecError):
    """A readable handle for stdout or stderr could not be obtained.

    Attributes:
        stream: "stdout" or "stderr"
    """

    def __init__(self, stream: str, name: str = "") -> None:
        self.stream = stream
        super().__init__(f"Could not create {stream} pipe", name=name)


class StartError(ExecError):
    """The OS refused to create the process.

    The underlying OSError is chained as __cause__.

    Attributes:
        executable: Program that failed to start
    """

    def __init__(self, executable: str, reason: str, name: str = "") -> None:
        self.executable = executable
        self.reason = reason
        super().__init__(f"Could not start process {executable!r}: {reason}", name=name)


class ExitError(ExecError):
    """The process ran but exited non-zero or was killed by a signal.

    Attributes:
        returncode: Exit status (negative for a signal on POSIX)
        stdout: Captured standard output
        stderr: Captured standard error
    """

    def __init__(
        self,
        returncode: int,
        stdout: str = "",
        stderr: str = "",
        name: str = "",
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

        label = name or "command"
        if returncode < 0:
            message = f"{label} was terminated by signal {-returncode}"
        else:
            message = f"{label} exited with code {returncode}"
        if stderr.strip():
            # The last few lines usually hold the actual error
            lines = stderr.strip().split("\n")
            message += ":\n" + "\n".join(lines[-EXIT_ERROR_TAIL_LINES:])
        super().__init__(message, name=name)
