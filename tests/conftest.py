"""Pytest 配置和 fixtures。"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# 项目根目录
PROJECT_ROOT = Path(__file__).parent.parent

# 添加 src 目录到 Python 路径
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

# 子进程测试脚本
FAKE_CLI = Path(__file__).parent / "fixtures" / "fake_cli.py"


@pytest.fixture
def project_root() -> Path:
    """项目根目录。"""
    return PROJECT_ROOT


@pytest.fixture
def fake_cli() -> Path:
    """子进程测试脚本路径。"""
    return FAKE_CLI


@pytest.fixture
def fake_cli_argv(fake_cli: Path):
    """构建运行 fake_cli 的 (executable, arguments)。"""

    def build(*args: str) -> tuple[str, list[str]]:
        return sys.executable, [str(fake_cli), *args]

    return build
