"""Logging configuration utilities.

The library logs through loguru but stays silent until an application
calls :func:`setup_logging` (``uciharness`` is disabled on import).
Engine traffic is logged at TRACE, so ``level="TRACE"`` shows every
command sent and line received; lines read by a session's pump carry
its thread name (``uci-pump-<engine>``).
"""

import sys
from pathlib import Path

from loguru import logger

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{thread.name}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {thread.name} | {name}:{line} | {message}"


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    rotation: str = "10 MB",
    retention: str = "1 week",
    colorize: bool | None = None,
) -> None:
    """Configure loguru and enable the ``uciharness`` loggers.

    Args:
        level: Minimum log level to display (``TRACE`` for engine traffic).
        log_file: Optional path to a log file.
        rotation: When to rotate the log file.
        retention: How long to keep old log files.
        colorize: Force colours on or off; None detects a terminal.
    """
    logger.remove()
    logger.enable("uciharness")

    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT, colorize=colorize)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            level=level,
            format=_FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            compression="gz",
        )

    logger.debug(f"Logging configured at level: {level}")
