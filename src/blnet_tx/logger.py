#!/usr/bin/env python3
"""BL-NET - a UVR1611/UVR61-3 protocol client via the BL-NET bridge.

This module wraps logger to provide console (coloured) & log file handlers.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import sys
from logging.handlers import (
    RotatingFileHandler,
    TimedRotatingFileHandler as _TimedRotatingFileHandler,
)
from typing import Any

import colorlog

from .version import VERSION

DEV_MODE = False

_LOGGER = logging.getLogger(__name__)
if DEV_MODE:
    _LOGGER.setLevel(logging.DEBUG)

DEFAULT_DATEFMT = "%H:%M:%S"

CONSOLE_COLS = int(shutil.get_terminal_size(fallback=(int(2e3), 24)).columns - 1)

CONSOLE_FMT = f"%(asctime)s.%(msecs)03d %(name)s: %(message).{CONSOLE_COLS - 13}s"
LOG_FILE_FMT = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s: %(message)s"

LOG_COLOURS = {
    "DEBUG": "white",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "bold_red",
    "CRITICAL": "bold_red",
}  # default_log_colors


class StdErrFilter(logging.Filter):  # record.levelno >= logging.WARNING
    """For sys.stderr, process only warnings & worse."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Return True if the record is to be processed."""  # WARNING-30, ERROR-40
        return record.levelno >= logging.WARNING


class StdOutFilter(logging.Filter):  # record.levelno < logging.WARNING
    """For sys.stdout, process only info & debug."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Return True if the record is to be processed."""  # INFO-20, DEBUG-10
        return record.levelno < logging.WARNING


class TimedRotatingFileHandler(_TimedRotatingFileHandler):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        assert self.when == "MIDNIGHT"
        self.extMatch = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)

    def getFilesToDelete(self) -> list[str]:
        """Determine the files to delete when rolling over."""

        dir_name, base_name = os.path.split(self.baseFilename)
        prefix = base_name + "."

        result = sorted(
            os.path.join(dir_name, f)
            for f in os.listdir(dir_name)
            if f.startswith(prefix) and self.extMatch.match(f[len(prefix) :])
        )
        if len(result) < self.backupCount:
            return []
        return result[: len(result) - self.backupCount]


def set_logging(
    logger: logging.Logger,
    cc_console: bool = False,
    level: int = logging.INFO,
    file_name: str | None = None,
    rotate_backups: int = 0,
    rotate_bytes: int | None = None,
) -> None:
    """Create/configure handlers, formatters, etc.

    Parameters:
    - rotate_backups: keep this many copies, and rotate at midnight unless:
    - rotate_bytes:   rotate log files when log > rotate_bytes
    """

    logger.setLevel(level)

    # as set_logging() may be called several times: to avoid duplicates in logs...
    for hdlr in list(logger.handlers):
        logger.removeHandler(hdlr)

    handler: logging.Handler

    if file_name:
        if rotate_bytes:
            rotate_backups = rotate_backups or 2
            handler = RotatingFileHandler(
                file_name, maxBytes=rotate_bytes, backupCount=rotate_backups
            )
        elif rotate_backups:
            handler = TimedRotatingFileHandler(
                file_name, when="MIDNIGHT", backupCount=rotate_backups
            )
        else:
            handler = logging.FileHandler(file_name)

        handler.setFormatter(
            logging.Formatter(fmt=LOG_FILE_FMT, datefmt=DEFAULT_DATEFMT)
        )
        handler.setLevel(logging.DEBUG)
        logger.addHandler(handler)

    if cc_console:  # CC: output to stdout/stderr
        console_fmt = colorlog.ColoredFormatter(
            fmt=f"%(log_color)s{CONSOLE_FMT}",
            datefmt=DEFAULT_DATEFMT,
            reset=True,
            log_colors=LOG_COLOURS,
        )

        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(console_fmt)
        handler.setLevel(logging.WARNING)  # must be .WARNING or less
        handler.addFilter(StdErrFilter())  # record.levelno >= .WARNING
        logger.addHandler(handler)

        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(console_fmt)
        handler.setLevel(logging.DEBUG)  # must be .INFO or less
        handler.addFilter(StdOutFilter())  # record.levelno < .WARNING
        logger.addHandler(handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
        return

    logger.debug("blnet_tx %s: logging configured", VERSION)  # initial log line
