"""execwrap - run external commands and capture their output.

环境变量:
    EXECWRAP_VERBOSITY: 默认详细级别 (默认 0)
    EXECWRAP_COLOR: 终端着色模式 auto/always/never (默认 auto)
    EXECWRAP_LOG_DEBUG: 日志输出到临时文件 (默认 false)

用法:
    python -m execwrap -- echo "It works!"
"""

__version__ = "0.1.0"

from .config import Config, load_config
from .errors import (
    ExecError,
    ExitError,
    PathResolutionError,
    PipeSetupError,
    StartError,
    ValidationError,
)
from .runtime import (
    CaptureMode,
    CommandSpec,
    EchoMode,
    FailurePolicy,
    ProcessRunner,
    RunResult,
    run_command,
)

__all__ = [
    "__version__",
    "CaptureMode",
    "CommandSpec",
    "Config",
    "EchoMode",
    "ExecError",
    "ExitError",
    "FailurePolicy",
    "PathResolutionError",
    "PipeSetupError",
    "ProcessRunner",
    "RunResult",
    "StartError",
    "ValidationError",
    "load_config",
    "run_command",
]
