#!/usr/bin/env python3
"""Fake CLI for integration testing.

This script plays the child process in the runner tests. It writes numbered
lines to stdout and/or stderr, optionally interleaved and flushed one by one,
and exits with a chosen code.

Usage:
    python fake_cli.py [--stdout TEXT]... [--stderr TEXT]...
                       [--stdout-lines N] [--stderr-lines N] [--interleave]
                       [--stdout-hex HEX] [--long-line N]
                       [--no-newline] [--pwd] [--env NAME] [--sleep SECONDS]
                       [--exit-code CODE] [--signal NAME]

Arguments:
    --stdout / --stderr: Write TEXT as one line to that stream (repeatable)
    --stdout-lines / --stderr-lines: Write N lines "out-<i>" / "err-<i>"
    --interleave: Alternate stdout and stderr lines instead of stdout first
    --stdout-hex: Write raw bytes (hex encoded) to stdout, unmodified
    --long-line: Write one line of N "x" characters to stdout
    --no-newline: Leave the last stdout write without a trailing newline
    --pwd: Print the current working directory to stdout
    --env: Print the value of an environment variable to stdout
    --sleep: Sleep before exiting
    --exit-code: Exit code (default: 0)
    --signal: Kill itself with a signal instead of exiting (POSIX only)
"""

from __future__ import annotations

import argparse
import os
import signal
import sys
import time
from typing import NoReturn


def emit(stream, text: str, newline: bool = True) -> None:
    """Write one line and flush so the reader sees it immediately."""
    stream.write(text + ("\n" if newline else ""))
    stream.flush()


def main() -> NoReturn:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Fake CLI for testing")
    parser.add_argument("--stdout", action="append", default=[], help="Line for stdout")
    parser.add_argument("--stderr", action="append", default=[], help="Line for stderr")
    parser.add_argument("--stdout-lines", type=int, default=0, help="Numbered stdout lines")
    parser.add_argument("--stderr-lines", type=int, default=0, help="Numbered stderr lines")
    parser.add_argument("--interleave", action="store_true", help="Alternate streams")
    parser.add_argument("--stdout-hex", type=str, default=None, help="Raw stdout bytes as hex")
    parser.add_argument("--long-line", type=int, default=0, help="Length of one long line")
    parser.add_argument("--no-newline", action="store_true", help="No trailing newline")
    parser.add_argument("--pwd", action="store_true", help="Print working directory")
    parser.add_argument("--env", type=str, default=None, help="Print an env variable")
    parser.add_argument("--sleep", type=float, default=0.0, help="Sleep before exit")
    parser.add_argument("--exit-code", type=int, default=0, help="Exit code")
    parser.add_argument("--signal", type=str, default=None, help="Die by signal")

    args = parser.parse_args()

    if args.pwd:
        emit(sys.stdout, os.getcwd())
    if args.env:
        emit(sys.stdout, os.environ.get(args.env, ""))

    for text in args.stdout:
        emit(sys.stdout, text)
    for text in args.stderr:
        emit(sys.stderr, text)

    if args.interleave:
        for i in range(max(args.stdout_lines, args.stderr_lines)):
            if i < args.stdout_lines:
                emit(sys.stdout, f"out-{i}")
            if i < args.stderr_lines:
                emit(sys.stderr, f"err-{i}")
    else:
        for i in range(args.stdout_lines):
            sys.stdout.write(f"out-{i}\n")
        sys.stdout.flush()
        for i in range(args.stderr_lines):
            sys.stderr.write(f"err-{i}\n")
        sys.stderr.flush()

    if args.stdout_hex:
        sys.stdout.flush()
        sys.stdout.buffer.write(bytes.fromhex(args.stdout_hex))
        sys.stdout.buffer.flush()

    if args.long_line:
        # One line, many times larger than a single pipe read
        piece = "x" * 65536
        remaining = args.long_line
        while remaining > 0:
            sys.stdout.write(piece[:remaining])
            remaining -= len(piece)
        emit(sys.stdout, "")

    if args.no_newline:
        emit(sys.stdout, "partial", newline=False)

    if args.sleep:
        time.sleep(args.sleep)

    if args.signal:
        os.kill(os.getpid(), getattr(signal, args.signal))
        time.sleep(5)

    sys.exit(args.exit_code)


if __name__ == "__main__":
    main()
