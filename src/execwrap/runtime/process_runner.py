"""Process runner with concurrent stdout/stderr capture.

execwrap runtime module v0.1.0

This module provides:
- Validation of a CommandSpec before any OS interaction
- Home-relative working directory resolution
- Concurrent line-by-line draining of stdout and stderr while the child runs
- Optional mirroring of captured lines to sinks or the terminal
- Structured logging tagged with the command name
- Failure reporting as a value, or process termination when requested

Key design points:
- Pipes are attached at spawn time; a full pipe never blocks the child
  because both streams are drained concurrently
- Process exit and end-of-stream on both pipes are awaited together in one
  task group, so no buffered output is lost whichever finishes first
- Cleanup after cancellation is shielded and terminates the child
"""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import IO

import anyio

from ..config import TRACE_VERBOSITY, Config, load_config
from ..errors import (
    ExitError,
    PathResolutionError,
    PipeSetupError,
    StartError,
    ValidationError,
)
from ..shared.colors import colorize
from ..utils.paths import build_absolute_path_from_home
from .command_logger import CommandLogger
from .types import CaptureMode, CommandSpec, EchoMode, FailurePolicy, RunResult

__all__ = [
    "EXIT_CODE_FAILURE",
    "ProcessRunner",
    "run_command",
]

logger = logging.getLogger(__name__)

# Host exit status when a TERMINATE_PROCESS run fails
EXIT_CODE_FAILURE = 2

# Bytes requested per read from a child pipe
READ_CHUNK_SIZE = 64 * 1024

# Only used when a run is cancelled while the child is still alive
DEFAULT_TERM_TIMEOUT = 2.0  # seconds to wait after terminate()
DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after kill()

_STDERR_TARGETS = {
    CaptureMode.SEPARATE: asyncio.subprocess.PIPE,
    CaptureMode.COMBINED: asyncio.subprocess.STDOUT,
    CaptureMode.DISCARD_STDERR: asyncio.subprocess.DEVNULL,
}


@dataclass
class _StreamCapture:
    """Accumulates the lines of one child stream.

    Written only by the reader task that owns it.
    """

    label: str
    log: CommandLogger
    sink: IO[str] | None = None
    color: bool = False
    log_level: int | None = None
    lines: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(self.lines)

    def add_line(self, raw: bytes) -> None:
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        line = raw.decode("utf-8", errors="replace")
        self.lines.append(line + "\n")

        if self.sink is not None:
            out = colorize(line, self.label) if self.color else line
            try:
                self.sink.write(out + "\n")
            except (OSError, ValueError) as e:
                # Closed or broken sink: keep capturing, stop mirroring
                self.log.warning(f"Disabling {self.label} sink after write failure: {e}")
                self.sink = None

        if self.log_level is not None:
            self.log.log(self.log_level, line)

    def flush(self) -> None:
        if self.sink is None:
            return
        try:
            self.sink.flush()
        except (OSError, ValueError) as e:
            self.log.debug(f"Could not flush {self.label} sink: {e}")


@dataclass
class ProcessRunner:
    """Runs one child process per call and captures its output.

    The runner holds configuration only; every call builds its own process
    handle and buffers, so one runner can serve any number of runs.

    Example:
        runner = ProcessRunner()
        result = runner.run(CommandSpec(
            name="greeting",
            executable="echo",
            arguments=["It works!"],
        ))
        assert result.success
        assert result.stdout == "It works!\\n"

    Attributes:
        config: Default verbosity, color and logging settings
        term_timeout: Grace period after terminate() during cancellation cleanup
        kill_timeout: Wait after kill() during cancellation cleanup
    """

    config: Config = field(default_factory=partial(load_config, create_log_file=False))
    term_timeout: float = DEFAULT_TERM_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT

    def run(self, spec: CommandSpec) -> RunResult:
        """Run the command and block until it finished.

        Starts its own event loop, so it cannot be called from a coroutine:
        inside a running loop it raises RuntimeError. Await run_async()
        there instead.

        Args:
            spec: Command description

        Returns:
            The captured output and outcome. Failures are reported in
            RunResult.error rather than raised.

        Raises:
            SystemExit: With status 2 when spec.on_failure is
                TERMINATE_PROCESS, the run failed and continue_on_failure
                is not set
        """
        result = anyio.run(partial(self._run_captured, spec))
        self._apply_failure_policy(spec, result)
        return result

    async def run_async(self, spec: CommandSpec) -> RunResult:
        """Coroutine form of run() for callers already inside an event loop."""
        result = await self._run_captured(spec)
        self._apply_failure_policy(spec, result)
        return result

    def effective_verbosity(self, spec: CommandSpec) -> int:
        """Verbosity for a run: CommandSpec.verbosity, else the configured default."""
        return self.config.verbosity if spec.verbosity is None else spec.verbosity

    @staticmethod
    def validate(spec: CommandSpec) -> list[str]:
        """Collect every problem with a spec.

        Returns:
            Validation messages, empty when the command can be run
        """
        messages: list[str] = []
        if not spec.name:
            messages.append("Name property is required")
        if not spec.executable:
            messages.append("Executable must be specified")
        return messages

    async def _run_captured(self, spec: CommandSpec) -> RunResult:
        """Run and log start/outcome, without applying the failure policy."""
        log = self._command_logger(spec)
        log.info("Running command")

        result = await self._execute(spec, log)

        if result.success:
            log.info("Command succeeded")
        else:
            log.warning(f"Command execution failed: {result.error}")
        return result

    def _command_logger(self, spec: CommandSpec) -> CommandLogger:
        return CommandLogger(logger, spec.name, self.effective_verbosity(spec))

    async def _execute(self, spec: CommandSpec, log: CommandLogger) -> RunResult:
        """Validate, spawn, drain and wait.

        Args:
            spec: Command description
            log: Logger tagged with the command name

        Returns:
            Result with buffers, return code and error filled in
        """
        result = RunResult(name=spec.name)

        messages = self.validate(spec)
        if messages:
            log.warning("Command validation failed")
            result.error = ValidationError(messages, name=spec.name)
            return result

        cwd: Path | None = None
        if spec.working_directory:
            try:
                cwd = build_absolute_path_from_home(spec.working_directory)
            except PathResolutionError as e:
                e.name = spec.name
                result.error = e
                return result
            log.debug(f"Set working directory to {cwd}")
        log.debug(f"Command: {' '.join(spec.argv)}")

        process: asyncio.subprocess.Process | None = None
        try:
            try:
                process = await self._spawn(spec, cwd)
            except (OSError, ValueError) as e:
                log.warning("Could not start process")
                error = StartError(spec.executable, str(e), name=spec.name)
                error.__cause__ = e
                result.error = error
                return result

            log.debug(f"Started subprocess pid={process.pid}")

            pipe_error = self._check_pipes(spec, process)
            if pipe_error is not None:
                log.warning(f"Could not create {pipe_error.stream} pipe")
                result.error = pipe_error
                return result

            stdout_capture, stderr_capture = self._build_captures(spec, log)

            # Exit and both end-of-streams may complete in any order
            async with anyio.create_task_group() as tg:
                tg.start_soon(self._drain, process.stdout, stdout_capture)
                if process.stderr is not None:
                    tg.start_soon(self._drain, process.stderr, stderr_capture)
                tg.start_soon(process.wait)

            result.stdout = stdout_capture.text
            result.stderr = stderr_capture.text
            result.returncode = process.returncode

            log.debug(
                f"Subprocess completed pid={process.pid} "
                f"returncode={process.returncode}"
            )

            if process.returncode != 0:
                result.error = ExitError(
                    process.returncode,
                    stdout=result.stdout,
                    stderr=result.stderr,
                    name=spec.name,
                )
            return result

        finally:
            await self._safe_cleanup(process)

    async def _spawn(
        self, spec: CommandSpec, cwd: Path | None
    ) -> asyncio.subprocess.Process:
        """Create the child with its pipes attached.

        stdin is the null device so the child never shares the caller's
        terminal input.
        """
        return await asyncio.create_subprocess_exec(
            *spec.argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=_STDERR_TARGETS[spec.capture_mode],
            cwd=cwd,
            env=dict(spec.env) if spec.env is not None else None,
        )

    @staticmethod
    def _check_pipes(
        spec: CommandSpec, process: asyncio.subprocess.Process
    ) -> PipeSetupError | None:
        if process.stdout is None:
            return PipeSetupError("stdout", name=spec.name)
        if spec.capture_mode is CaptureMode.SEPARATE and process.stderr is None:
            return PipeSetupError("stderr", name=spec.name)
        return None

    def _build_captures(
        self, spec: CommandSpec, log: CommandLogger
    ) -> tuple[_StreamCapture, _StreamCapture]:
        """Create the stdout and stderr captures for one run."""
        stdout_sink = spec.stdout_sink
        stderr_sink = spec.stderr_sink
        if spec.echo_mode is EchoMode.ALWAYS_TO_TERMINAL:
            stdout_sink = stdout_sink or sys.stdout
            stderr_sink = stderr_sink or sys.stderr

        trace = (
            spec.echo_mode is EchoMode.ON_TRACE
            and log.verbosity >= TRACE_VERBOSITY
        )

        stdout_capture = _StreamCapture(
            label="stdout",
            log=log,
            sink=stdout_sink,
            color=self.config.use_color(stdout_sink),
            log_level=logging.INFO if trace else None,
        )
        stderr_capture = _StreamCapture(
            label="stderr",
            log=log,
            sink=stderr_sink,
            color=self.config.use_color(stderr_sink),
            log_level=logging.WARNING if trace else None,
        )
        return stdout_capture, stderr_capture

    @staticmethod
    async def _drain(stream: asyncio.StreamReader, capture: _StreamCapture) -> None:
        """Read a stream to end-of-file, one line at a time.

        Reads fixed-size chunks and splits them itself, so no line length
        limit applies. A final line without a newline is still captured.
        Each chunk is scanned once; pieces of an unfinished line are only
        joined when its newline (or end-of-file) arrives.
        """
        pending: list[bytes] = []
        try:
            while True:
                chunk = await stream.read(READ_CHUNK_SIZE)
                if not chunk:
                    if pending:
                        capture.add_line(b"".join(pending))
                    break

                start = 0
                while True:
                    end = chunk.find(b"\n", start)
                    if end < 0:
                        break
                    pending.append(chunk[start:end])
                    capture.add_line(b"".join(pending))
                    pending = []
                    start = end + 1
                if start < len(chunk):
                    pending.append(chunk[start:])
        finally:
            capture.flush()

    def _apply_failure_policy(self, spec: CommandSpec, result: RunResult) -> None:
        """Report a failed run to the terminal and exit if on_failure asks to."""
        if result.success:
            return

        terminal_facing = (
            spec.echo_mode is EchoMode.ALWAYS_TO_TERMINAL
            or spec.on_failure is FailurePolicy.TERMINATE_PROCESS
        )
        if terminal_facing:
            self._print_failure(spec, result)

        if spec.on_failure is FailurePolicy.TERMINATE_PROCESS and not spec.continue_on_failure:
            self._command_logger(spec).error(
                f"Terminating with exit code {EXIT_CODE_FAILURE}"
            )
            sys.exit(EXIT_CODE_FAILURE)

    def _print_failure(self, spec: CommandSpec, result: RunResult) -> None:
        """Write a diagnostic for a failed run to this process's stderr."""
        if self.effective_verbosity(spec) > 0:
            text = result.stderr.rstrip("\n") or str(result.error)
        else:
            text = f"Command '{spec.name}' failed"

        if self.config.use_color(sys.stderr):
            text = colorize(text, "error")
        sys.stderr.write(text + "\n")
        sys.stderr.flush()

    async def _safe_cleanup(self, process: asyncio.subprocess.Process | None) -> None:
        """Terminate the child if it is still alive, shielded from cancellation."""
        if process is None or process.returncode is not None:
            return
        with anyio.CancelScope(shield=True):
            await self._terminate_process(process)

    async def _terminate_process(self, process: asyncio.subprocess.Process) -> None:
        """Terminate gracefully, then forcefully if needed.

        Termination strategy:
        1. terminate() (SIGTERM on POSIX)
        2. Wait up to term_timeout
        3. kill() if still running
        4. Wait up to kill_timeout
        """
        pid = process.pid
        logger.debug(f"Terminating subprocess pid={pid}")

        try:
            process.terminate()
            with anyio.move_on_after(self.term_timeout):
                await process.wait()
            if process.returncode is not None:
                logger.debug(
                    f"Subprocess terminated gracefully pid={pid} "
                    f"returncode={process.returncode}"
                )
                return

            logger.debug(f"Force killing subprocess pid={pid}")
            process.kill()
            with anyio.move_on_after(self.kill_timeout):
                await process.wait()
            if process.returncode is None:
                logger.warning(f"Subprocess did not exit after kill pid={pid}")

        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={pid}")


def run_command(spec: CommandSpec, *, config: Config | None = None) -> RunResult:
    """Run a single command with a throwaway runner.

    Args:
        spec: Command description
        config: Settings to use (default: loaded from the environment)

    Returns:
        The run result
    """
    runner = ProcessRunner(config=config) if config is not None else ProcessRunner()
    return runner.run(spec)
