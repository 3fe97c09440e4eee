"""
日志工具

统一的 "surtitle" logger：
- INFO 及以下输出到 stdout
- WARNING 及以上输出到 stderr
- 格式：[LEVEL] message

pipeline 模块直接调用 info()/warning() 等函数；
web 层使用 logging.getLogger(__name__)，会向上传播到 "surtitle"。
"""
import logging
import sys
from typing import Callable

SUCCESS_LEVEL = 25
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

_LOGGER_NAME = "surtitle"


def _max_level_filter(max_level: int) -> Callable[[logging.LogRecord], bool]:
    def _filter(record: logging.LogRecord) -> bool:
        return record.levelno <= max_level
    return _filter


def _build_logger() -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    fmt = logging.Formatter("[%(levelname)s] %(message)s")

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(fmt)
    stdout_handler.addFilter(_max_level_filter(SUCCESS_LEVEL))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(fmt)
    stderr_handler.setLevel(logging.WARNING)

    logger.addHandler(stdout_handler)
    logger.addHandler(stderr_handler)
    logger.propagate = False
    return logger


_LOGGER = _build_logger()


def get_logger(name: str | None = None) -> logging.Logger:
    """返回 "surtitle" logger 或其子 logger。"""
    if not name:
        return _LOGGER
    return _LOGGER.getChild(name)


def set_log_level(level: str) -> None:
    """根据配置 / CLI 字符串设置日志级别（未知值回退到 INFO）。"""
    mapping = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    _LOGGER.setLevel(mapping.get(str(level or "").strip().lower(), logging.INFO))


def debug(message: str) -> None:
    _LOGGER.debug(message)


def info(message: str) -> None:
    _LOGGER.info(message)


def success(message: str) -> None:
    _LOGGER.log(SUCCESS_LEVEL, message)


def warning(message: str) -> None:
    _LOGGER.warning(message)


def error(message: str) -> None:
    _LOGGER.error(message)
