"""
bindflow/logging_setup.py - Console logging for scripts and the CLI
"""

from __future__ import annotations
from typing import Optional
import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure the `bindflow` logger hierarchy.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    package_logger = logging.getLogger("bindflow")
    package_logger.setLevel(log_level)

    # Idempotent across repeated CLI invocations in one process
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    # stderr keeps stdout clean for JSON output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        package_logger.addHandler(file_handler)
