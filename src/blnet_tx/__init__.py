#!/usr/bin/env python3
"""BL-NET - a UVR1611/UVR61-3 protocol client via the BL-NET bridge."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any

from .const import (
    DEFAULT_PORT,
    SZ_ADDRESS,
    SZ_PORT,
    Command,
    DeviceMode,
    TransmissionMode,
    Unit,
    UvrType,
)
from .logger import set_logging
from .parsers import HeatMeter, InputValue, UvrRecord, parser_header, parser_record
from .probe import DeviceInfo, DeviceProbe
from .protocol import RetryingFetcher
from .transport import TransportClient
from .version import VERSION

__all__ = [
    "VERSION",
    #
    "DEFAULT_PORT",
    "SZ_ADDRESS",
    "SZ_PORT",
    #
    "Command",
    "DeviceMode",
    "TransmissionMode",
    "Unit",
    "UvrType",
    #
    "DeviceInfo",
    "HeatMeter",
    "InputValue",
    "UvrRecord",
    #
    "DeviceProbe",
    "RetryingFetcher",
    "TransportClient",
    #
    "parser_header",
    "parser_record",
    #
    "set_logging_config",
]


async def set_logging_config(logger: logging.Logger, **config: Any) -> logging.Logger:
    """Set up logging to the console and/or a file.

    Runs in an executor, as opening a log file is a blocking call.
    """
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, partial(set_logging, logger, **config))
    return logger
