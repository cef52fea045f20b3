"""Logging setup.

Console output goes through Rich; an optional log file receives the full
tracebacks that are never shown to the person at the terminal.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "biblioteca"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Log level name
        log_file: Optional file that receives every record with tracebacks
        console: Rich console for terminal output (stderr by default)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Re-running setup must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = _ConsoleHandler(
        console=console or Console(stderr=True),
        show_path=False,
    )
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger of the package logger."""
    if name.startswith(LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


class _ConsoleHandler(RichHandler):
    """Rich handler that keeps tracebacks out of the terminal."""

    def emit(self, record: logging.LogRecord) -> None:
        if record.exc_info:
            record = logging.makeLogRecord(
                {**record.__dict__, "exc_info": None, "exc_text": None}
            )
        super().emit(record)
