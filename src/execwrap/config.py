"""execwrap 环境变量配置管理。

环境变量:
    EXECWRAP_VERBOSITY: 默认详细级别
        - 整数，限制在 0-9 范围 (默认 0)
        - 0 = 仅 error, 1 = warning, 2-3 = info, >=4 = debug
        - >=3 时逐行记录子进程输出

    EXECWRAP_COLOR: 终端着色模式
        - auto = 仅在终端输出时着色 (默认)
        - always = 总是着色
        - never = 从不着色

    NO_COLOR: 任意非空值时，auto 模式下禁用着色

    EXECWRAP_LOG_DEBUG: 日志调试模式
        - true/1/yes = 开启 (日志输出到临时文件)
        - false/0/no = 关闭 (默认，日志输出到 stderr)
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import IO

from .shared.colors import supports_color

__all__ = [
    "ColorMode",
    "MAX_VERBOSITY",
    "Config",
    "TRACE_VERBOSITY",
    "get_config",
    "level_for_verbosity",
    "load_config",
    "reload_config",
]

# 达到此级别时逐行记录子进程输出
TRACE_VERBOSITY = 3

MAX_VERBOSITY = 9


class ColorMode(Enum):
    """终端着色模式。"""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"

    @classmethod
    def from_string(cls, value: str) -> "ColorMode":
        """从字符串解析模式。

        Args:
            value: 模式字符串 (auto/always/never)

        Returns:
            对应的 ColorMode 枚举值，无效值返回 AUTO
        """
        value = value.lower().strip()
        for mode in cls:
            if mode.value == value:
                return mode
        return cls.AUTO  # 默认值


def level_for_verbosity(verbosity: int) -> int:
    """详细级别映射到最低日志级别。"""
    if verbosity <= 0:
        return logging.ERROR
    if verbosity == 1:
        return logging.WARNING
    if verbosity <= 3:
        return logging.INFO
    return logging.DEBUG


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """解析布尔值环境变量。"""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_verbosity(value: str | None) -> int:
    """解析详细级别环境变量。"""
    if not value:
        return 0
    try:
        verbosity = int(value.strip())
    except ValueError:
        return 0
    return max(0, min(verbosity, MAX_VERBOSITY))  # 限制在 0-9 范围


def _parse_color_mode(value: str | None, no_color: str | None) -> ColorMode:
    """解析着色模式，auto 时遵循 NO_COLOR。"""
    mode = ColorMode.from_string(value) if value else ColorMode.AUTO
    if mode is ColorMode.AUTO and no_color:
        return ColorMode.NEVER
    return mode


@dataclass
class Config:
    """execwrap 配置。

    Attributes:
        verbosity: 默认详细级别（CommandSpec.verbosity 可覆盖）
        color: 终端着色模式
        log_debug: 日志调试模式（输出到临时文件）
        log_file: 日志文件路径（当 log_debug=True 时自动设置）
    """

    verbosity: int = 0
    color: ColorMode = ColorMode.AUTO
    log_debug: bool = False
    log_file: str | None = None

    @property
    def log_level(self) -> int:
        """当前详细级别对应的日志级别。"""
        return level_for_verbosity(self.verbosity)

    def use_color(self, stream: IO[str] | None) -> bool:
        """检查输出到指定流时是否着色。"""
        if self.color is ColorMode.ALWAYS:
            return stream is not None
        if self.color is ColorMode.NEVER:
            return False
        return supports_color(stream)

    def __repr__(self) -> str:
        return (
            f"Config(verbosity={self.verbosity}, "
            f"color={self.color.value}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def _generate_log_file_path() -> str:
    """生成日志文件路径。

    Returns:
        临时目录下的日志文件绝对路径
    """
    log_dir = Path(tempfile.gettempdir()) / "execwrap"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"execwrap_debug_{timestamp}.log"

    return str(log_file.resolve())


def load_config(create_log_file: bool = True) -> Config:
    """从环境变量加载配置。

    Args:
        create_log_file: log_debug 开启时是否生成日志文件路径（会创建临时目录）。
            库调用方（ProcessRunner 默认配置）不需要日志文件，传 False。
    """
    log_debug = _parse_bool(os.environ.get("EXECWRAP_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug and create_log_file else None

    return Config(
        verbosity=_parse_verbosity(os.environ.get("EXECWRAP_VERBOSITY")),
        color=_parse_color_mode(
            os.environ.get("EXECWRAP_COLOR"),
            os.environ.get("NO_COLOR"),
        ),
        log_debug=log_debug,
        log_file=log_file,
    )


# 全局配置实例（延迟加载，仅供命令行入口使用）
_config: Config | None = None


def get_config() -> Config:
    """获取全局配置实例。"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """重新加载配置（用于测试）。"""
    global _config
    _config = load_config()
    return _config
