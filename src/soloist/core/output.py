"""
Unified output system using Loguru.
Replaces print() statements and stdlib logging with dual output (console + file).
"""

import sys
import threading
from pathlib import Path

from loguru import logger

from .console import get_console

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def setup_loguru(log_file: Path, level: str = "INFO", console_output: bool = False) -> None:
    """
    Configure loguru for file logging, optionally mirrored to stderr.

    Args:
        log_file: Path to log file
        level: Minimum level for logging (DEBUG, INFO, WARNING, ERROR)
        console_output: Also write log records to stderr
    """
    # Remove default handler
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,  # Keep 5 backup files
        level=level,
        format=LOG_FORMAT,
        enqueue=False,  # Synchronous writes (thread-safe but blocking)
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to the log file AND prints for the user.

    Use this instead of print() for user-facing messages that should also be logged.
    Threads with a truthy `silent_logging` attribute only write to the log.

    Args:
        message: User-facing message (Rich markup allowed)
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)

    if getattr(threading.current_thread(), "silent_logging", False):
        return

    style = {"warning": "yellow", "error": "red"}.get(level)
    get_console().print(message, style=style)
