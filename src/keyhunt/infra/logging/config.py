from __future__ import annotations

"""
Logging Settings.

The CLI keeps the console at WARNING so the report on stdout stays clean;
--debug lowers the threshold and --log-file adds a rotating trace that
records the scanning thread of every message.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

_LEVEL_MAP: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


@dataclass(frozen=True)
class LoggingConfig:
    """
    Settings for configure_logging().

    Attributes:
        level: Minimum severity for every handler.
        console: Emit to stderr.
        log_file: Rotating log file, if any.
        max_bytes: Rollover size of the log file.
        backup_count: Rotated files kept.
        console_fmt: Format of stderr lines.
        file_fmt: Format of log file lines.
        datefmt: Timestamp format of log file lines.
    """
    level: str = "WARNING"
    console: bool = True
    log_file: Optional[str] = None

    max_bytes: int = 1024 * 1024
    backup_count: int = 2

    console_fmt: str = "keyhunt | %(levelname)s | %(message)s"
    file_fmt: str = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def for_cli(cls, *, debug: bool = False, log_file: Optional[str] = None) -> LoggingConfig:
        """Console settings of a command-line run."""
        return cls(level="DEBUG" if debug else "WARNING", console=True, log_file=log_file)
