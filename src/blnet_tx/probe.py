#!/usr/bin/env python3
"""BL-NET - identify the controller(s) behind a BL-NET."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .const import (
    SZ_FIRMWARE_VERSION,
    SZ_MODULE_ID,
    SZ_TRANSMISSION_MODE,
    SZ_UVR2_TYPE,
    SZ_UVR_MODE,
    SZ_UVR_TYPE,
    Command,
    DeviceMode,
    TransmissionMode,
    UvrType,
)
from .helpers import hex_id
from .parsers import parse_firmware_version, parse_transmission_mode, parser_header
from .protocol import RetryingFetcher

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceInfo:
    mode: DeviceMode
    uvr_type: UvrType
    uvr2_type: UvrType | None  # only for DeviceMode.TWO_DEVICE
    module_id: bytes
    firmware_version: str
    transmission_mode: TransmissionMode

    def as_dict(self) -> dict[str, Any]:
        """Return the device info as strings, less any absent fields."""

        result = {
            SZ_UVR_MODE: str(self.mode),
            SZ_UVR_TYPE: str(self.uvr_type),
            SZ_UVR2_TYPE: str(self.uvr2_type) if self.uvr2_type else None,
            SZ_MODULE_ID: hex_id(self.module_id),
            SZ_FIRMWARE_VERSION: self.firmware_version,
            SZ_TRANSMISSION_MODE: str(self.transmission_mode),
        }
        return {k: v for k, v in result.items() if v is not None}

    def __str__(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.as_dict().items())


class DeviceProbe:
    """Run the identification sequence: VERSION, HEADER, FIRMWARE, MODE.

    Only the header is fetched with retries, the other commands are sent once. Any
    failure is raised: a partial DeviceInfo is never returned.
    """

    def __init__(self, fetcher: RetryingFetcher) -> None:
        self._fetcher = fetcher
        self._transport = fetcher.transport

    async def probe(self) -> DeviceInfo:
        module_id = await self._transport.send(Command.VERSION)
        _LOGGER.debug("Module ID: %s", hex_id(module_id))

        header = await self._fetcher.fetch_block(Command.HEADER)
        mode, uvr_type, uvr2_type = parser_header(header)
        _LOGGER.debug("Header: mode=%s, types=%s/%s", mode, uvr_type, uvr2_type)

        firmware_version = parse_firmware_version(
            await self._transport.send(Command.FIRMWARE)
        )
        _LOGGER.debug("Firmware version: %s", firmware_version)

        transmission_mode = parse_transmission_mode(
            await self._transport.send(Command.MODE)
        )
        _LOGGER.debug("Transmission mode: %s", transmission_mode)

        return DeviceInfo(
            mode=mode,
            uvr_type=uvr_type,
            uvr2_type=uvr2_type,
            module_id=module_id,
            firmware_version=firmware_version,
            transmission_mode=transmission_mode,
        )
