"""
Unified output system using Loguru.
Writes every message to the log file and routes user-facing ones to the UI.
"""

import threading
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

# UI callback receives (message, level); set by the CLI or any other front end
_ui_callback: Optional[Callable[[str, str], None]] = None
_ui_callback_lock = threading.Lock()


def setup_loguru(
    log_file: Path,
    level: str = "INFO",
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """
    Configure loguru for file-only logging (the front end handles console display).

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        max_file_size_mb: Rotate once the file reaches this size
        backup_count: Number of rotated files to keep
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation=f"{max_file_size_mb} MB",
        retention=backup_count,
        level=level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def set_ui_callback(callback: Optional[Callable[[str, str], None]]) -> None:
    """
    Route user-facing messages through a UI callback instead of stdout.

    Args:
        callback: Called with (message, level) for every log() call
    """
    global _ui_callback
    with _ui_callback_lock:
        _ui_callback = callback
        logger.debug("UI callback registered - log() will route through it")


def clear_ui_callback() -> None:
    """Restore stdout printing for user-facing messages."""
    global _ui_callback
    with _ui_callback_lock:
        _ui_callback = None


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to file AND shows the message to the user.

    Use this instead of print() for user-facing messages that should also be logged.

    Args:
        message: User-facing message
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)

    with _ui_callback_lock:
        callback = _ui_callback

    if callback is None:
        if level != "debug":
            print(message)
        return

    try:
        callback(message, level)
    except Exception as e:
        logger.error(f"UI callback failed: {e}")
