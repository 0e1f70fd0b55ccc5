"""工具函数模块。"""

from .paths import build_absolute_path_from_home

__all__ = [
    "build_absolute_path_from_home",
]
