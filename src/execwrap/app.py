"""execwrap 命令行入口。

包含日志配置和主入口点。

用法:
    python -m execwrap [选项] -- executable [args...]
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .config import MAX_VERBOSITY, Config, get_config
from .errors import ExitError
from .runtime import (
    CaptureMode,
    CommandSpec,
    EchoMode,
    FailurePolicy,
    ProcessRunner,
)

__all__ = ["build_parser", "configure_logging", "main"]

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(config: Config) -> None:
    """配置日志输出。

    - log_debug: 输出到临时文件，级别 DEBUG
    - 默认: 输出到 stderr，级别由 verbosity 决定
    """
    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(stderr_handler)
        log_level = config.log_level

    # 配置 root logger（第三方库）为 WARNING，减少噪音
    logging.basicConfig(
        level=logging.WARNING,
        handlers=log_handlers,
    )
    # 只对 execwrap 命名空间按 verbosity 启用日志
    logging.getLogger("execwrap").setLevel(log_level)


def build_parser() -> argparse.ArgumentParser:
    """构建命令行解析器。"""
    parser = argparse.ArgumentParser(
        prog="execwrap",
        description="Run a command, capture its output and report the outcome.",
    )
    parser.add_argument("--name", default="", help="Command name used in logs (default: executable name)")
    parser.add_argument("-C", "--cwd", default=None, help="Working directory, may start with ~")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase verbosity (repeatable, adds to EXECWRAP_VERBOSITY)",
    )
    parser.add_argument(
        "--capture",
        type=CaptureMode.from_string,
        default=CaptureMode.SEPARATE,
        help="separate | combined | discard-stderr",
    )
    parser.add_argument(
        "--echo",
        type=EchoMode.from_string,
        default=EchoMode.ON_TRACE,
        help="silent | on-trace | always-to-terminal",
    )
    parser.add_argument(
        "--exit-on-failure", action="store_true",
        help="Exit with status 2 when the command fails",
    )
    parser.add_argument(
        "--continue-on-failure", action="store_true",
        help="With --exit-on-failure, report the failure but keep going",
    )
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Executable and its arguments")
    return parser


def _exit_status(error: BaseException | None) -> int:
    """运行结果映射到退出码。"""
    if error is None:
        return 0
    if isinstance(error, ExitError):
        if error.returncode > 0:
            return error.returncode
        if error.returncode < 0:
            return 128 - error.returncode  # 128 + 信号编号
    return 1


def main(argv: list[str] | None = None) -> int:
    """主入口点。

    Returns:
        进程退出码
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        parser.error("no command given")

    config = get_config()
    if args.verbose:
        config = replace(config, verbosity=min(config.verbosity + args.verbose, MAX_VERBOSITY))
    configure_logging(config)
    logger.debug(f"Loaded configuration: {config}")

    spec = CommandSpec(
        name=args.name or Path(command[0]).name,
        executable=command[0],
        arguments=command[1:],
        working_directory=args.cwd,
        verbosity=config.verbosity,
        capture_mode=args.capture,
        echo_mode=args.echo,
        on_failure=(
            FailurePolicy.TERMINATE_PROCESS
            if args.exit_on_failure
            else FailurePolicy.RETURN_ERROR
        ),
        continue_on_failure=args.continue_on_failure,
    )

    result = ProcessRunner(config=config).run(spec)

    # 未实时回显时，运行结束后输出捕获内容
    if spec.echo_mode is not EchoMode.ALWAYS_TO_TERMINAL:
        sys.stdout.write(result.stdout)
        sys.stdout.flush()
        sys.stderr.write(result.stderr)
        sys.stderr.flush()

    return _exit_status(result.error)


if __name__ == "__main__":
    sys.exit(main())
