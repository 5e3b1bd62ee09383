"""
Logging configuration for HSSP profile generation.

This module provides standardized logging setup for the hssp package.
It supports console output with colors and optional file logging.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(levelname)s %(message)s"
# Debug output names the module, e.g. hssp.profile.stockholm for dropped homologs
DEBUG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


# ANSI color codes for terminal output
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[0;31m"
    GREEN = "\033[0;32m"
    YELLOW = "\033[1;33m"
    GRAY = "\033[0;90m"


class ColoredFormatter(logging.Formatter):
    """
    Custom formatter with colored output for different log levels.
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GRAY,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.RED,
    }

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True):
        super().__init__(fmt or "%(message)s")
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so file handlers sharing the record see the plain name
        record = logging.makeLogRecord(record.__dict__)
        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
            record.levelname = f"{color}[{record.levelname}]{Colors.RESET}"
        else:
            record.levelname = f"[{record.levelname}]"

        return super().format(record)


def setup_logging(
    name: str = "hssp",
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    use_colors: bool = True,
    verbose: bool = False,
) -> logging.Logger:
    """
    Set up logging for the hssp package.

    Args:
        name: Logger name (default: "hssp")
        level: Logging level (default: INFO)
        log_file: Optional path to log file
        use_colors: Use colored output for console (default: True)
        verbose: Enable verbose/debug output (default: False)

    Returns:
        Configured logger instance
    """
    if verbose:
        level = logging.DEBUG

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_fmt = DEBUG_FORMAT if level <= logging.DEBUG else CONSOLE_FORMAT
    console_handler.setFormatter(ColoredFormatter(console_fmt, use_colors=use_colors))
    logger.addHandler(console_handler)

    # File handler (plain text, no colors)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "hssp") -> logging.Logger:
    """
    Get or create a logger for the hssp package.

    Args:
        name: Logger name (default: "hssp")

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        setup_logging(name)

    return logger
