"""
工具模块

提供纯函数工具和日志功能。
"""
from .logger import info, success, warning, error, debug, get_logger
from .text import sanitize_line_text, strip_bom, strip_punct

__all__ = [
    "info",
    "success",
    "warning",
    "error",
    "debug",
    "get_logger",
    "sanitize_line_text",
    "strip_bom",
    "strip_punct",
]
