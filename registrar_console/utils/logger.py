"""Logging setup for the registrar console.

All modules log through one named logger; app.py configures it once at startup.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "registrar_console"

# Libraries whose INFO/DEBUG chatter drowns out command logging.
_NOISY_LOGGERS = ("urllib3", "watchdog")


def setup_logger(
    name: str = LOGGER_NAME,
    level: int | str = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure and return the console logger. Calling it again is a no-op.

    Args:
        name: Logger name.
        level: A level number or name such as "DEBUG".
        log_file: Also append to this file when given.
    """
    log = logging.getLogger(name)
    if log.handlers:
        return log

    log.setLevel(level)
    log.propagate = False
    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(fmt)
    log.addHandler(stream)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        log.addHandler(fh)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return log


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    return logging.getLogger(name)
