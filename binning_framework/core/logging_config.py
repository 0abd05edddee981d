"""
Logging configuration for the binning framework.

Modules obtain loggers through get_logger(__name__); the CLI calls
setup_logging() once per command to attach console and file handlers to
the package logger.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from binning_framework.core.constants import LOG_FORMAT, LOG_DATE_FORMAT, DEFAULT_LOG_LEVEL

PACKAGE_LOGGER = "binning_framework"


def setup_logging(level: str = DEFAULT_LOG_LEVEL, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path for a log file; parent directories are created

    Returns:
        The configured package logger
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root = logging.getLogger(PACKAGE_LOGGER)
    root.setLevel(numeric_level)

    # Replace handlers so repeated CLI invocations in one process don't stack them
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name."""
    return logging.getLogger(name)
