"""
日志模块

使用 loguru 提供统一的日志记录功能。所有日志消息在输出前都会隐藏 URL 中内嵌的凭据。
"""

import os
import re
import sys
from typing import Optional

from loguru import logger

_CREDENTIALS_RE = re.compile(r"(https?://)[^/@\s]+@")

CONSOLE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
DEBUG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message}"
)


def redact(url: str) -> str:
    """隐藏 URL 中内嵌的用户名和密码"""
    return _CREDENTIALS_RE.sub(r"\1***@", url)


def _redact_record(record) -> None:
    record["message"] = redact(record["message"])


def setup_logger(
    level: Optional[str] = None,
    sink=sys.stderr,
    enqueue: bool = True,
    colorize: Optional[bool] = None,
) -> None:
    """
    设置日志记录器

    Args:
        level: 日志级别，未指定时由 GHFETCH_DEBUG 环境变量决定
        sink: 输出目标，默认 stderr，避免与命令输出的 JSON 混在一起
        enqueue: 是否启用队列（线程安全）
        colorize: 是否启用颜色，None 表示由 loguru 根据终端判断
    """
    if level is None:
        level = "DEBUG" if os.environ.get("GHFETCH_DEBUG", "0") == "1" else "INFO"
    debug = level == "DEBUG"

    logger.remove()
    logger.configure(patcher=_redact_record)
    logger.add(
        sink=sink,
        format=DEBUG_FORMAT if debug else CONSOLE_FORMAT,
        enqueue=enqueue,
        level=level,
        colorize=colorize,
        backtrace=debug,
        diagnose=debug,
    )

    if debug:
        logger.debug("DEBUG 模式已启用")


# 导出 logger
__all__ = ["logger", "setup_logger", "redact"]
