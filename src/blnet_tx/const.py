#!/usr/bin/env python3
"""BL-NET - a UVR1611/UVR61-3 protocol client via the BL-NET bridge."""

from __future__ import annotations

from enum import EnumCheck, IntEnum, StrEnum, verify
from typing import Final

# used by transport...
DEFAULT_PORT: Final[int] = 40000
DEFAULT_QUIESCENCE_DELAY: Final[float] = 2.0  # the BL-NET needs to settle between cmds
DEFAULT_RESPONSE_TIMEOUT: Final[float] = 10.0  # waiting for the 1st chunk of a reply

# used by protocol (block fetches)...
DEFAULT_MAX_ATTEMPTS: Final[int] = 5
MIN_BLOCK_LENGTH: Final[int] = 2  # a 0/1-byte reply is a runt, not a block

# used by probe (header/Kopfsatz)...
HEADER_LENGTH_1DL: Final[int] = 13  # KopfsatzA8, one data line
HEADER_LENGTH_2DL: Final[int] = 14  # KopfsatzD1, two data lines
HEADER_LENGTH_CAN: Final[int] = 21  # KopfsatzDC, CAN logging

HEADER_DEVICE1_OFFSET: Final[int] = 5  # satzlaengeGeraet1
HEADER_DEVICE2_OFFSET: Final[int] = 6  # satzlaengeGeraet2 (2DL only)

UVR_TYPE_UVR61_3: Final[int] = 0x5A
UVR_TYPE_UVR1611: Final[int] = 0x76

MODE_CURRENT_DATA: Final[int] = 0x80

# used by parsers (current data record)...
RECORD_LENGTH: Final[int] = 57
RECORD_TAG_CURRENT_DATA: Final[int] = 0x80  # 0x90 would be UVR61-3, not supported

NUM_INPUTS: Final[int] = 16
NUM_OUTPUTS: Final[int] = 13

INPUTS_OFFSET: Final[int] = 1
OUTPUTS_OFFSET: Final[int] = 33
SPEED_LEVELS_OFFSET: Final[int] = 35
HEAT_METER_STATUS_OFFSET: Final[int] = 39
HEAT_METER_OFFSETS: Final[tuple[int, int]] = (40, 48)

INPUT_SIGN_BIT: Final[int] = 0x80  # of the high byte
INPUT_UNIT_MASK: Final[int] = 0x70  # of the high byte
INPUT_HIGH_NIBBLE: Final[int] = 0x0F  # of the high byte


SZ_ADDRESS: Final = "address"
SZ_PORT: Final = "port"

SZ_MODULE_ID: Final = "module_id"
SZ_UVR_MODE: Final = "uvr_mode"
SZ_UVR_TYPE: Final = "uvr_type"
SZ_UVR2_TYPE: Final = "uvr2_type"
SZ_FIRMWARE_VERSION: Final = "firmware_version"
SZ_TRANSMISSION_MODE: Final = "transmission_mode"

SZ_OUTPUTS: Final = "outputs"
SZ_SPEED_LEVELS: Final = "speed_levels"
SZ_INPUTS: Final = "inputs"
SZ_HEAT_METERS_STATUS: Final = "thermal_energy_counters_status"
SZ_HEAT_METERS: Final = "thermal_energy_counters"

SZ_CURRENT_HEAT_POWER: Final = "current_heat_power"
SZ_TOTAL_HEAT_ENERGY: Final = "total_heat_energy"

SZ_ON: Final = "ON"
SZ_OFF: Final = "OFF"
SZ_ACTIVE: Final = "active"
SZ_INACTIVE: Final = "inactive"


@verify(EnumCheck.UNIQUE)
class Command(IntEnum):
    """The single-byte opcodes understood by the BL-NET."""

    MODE = 0x21
    VERSION = 0x81
    FIRMWARE = 0x82
    HEADER = 0xAA
    CURRENT_DATA = 0xAB

    def __str__(self) -> str:
        return f"{self.name} (0x{self.value:02X})"


@verify(EnumCheck.UNIQUE)
class DeviceMode(StrEnum):
    ONE_DEVICE = "1DL"  # 0xA8
    TWO_DEVICE = "2DL"  # 0xD1
    CAN = "CAN"  # 0xDC


class UvrType(StrEnum):
    UVR61_3 = "UVR61-3"
    UVR1611 = "UVR1611"
    UNKNOWN = "Unknown"


class TransmissionMode(StrEnum):
    CURRENT_DATA = "Current Data"
    UNKNOWN = "Unknown"


@verify(EnumCheck.UNIQUE)
class Unit(StrEnum):
    UNUSED = "unused"
    DIGITAL = "digital"
    CELSIUS = "°C"
    LITERS_PER_HOUR = "l/h"
    WATTS_PER_SQUARE_METER = "W/m²"
    ROOM_CELSIUS = "°C (room sensor)"
    UNKNOWN = "unknown"


HEADER_LENGTH_MAP: Final[dict[int, DeviceMode]] = {
    HEADER_LENGTH_2DL: DeviceMode.TWO_DEVICE,
    HEADER_LENGTH_1DL: DeviceMode.ONE_DEVICE,
    HEADER_LENGTH_CAN: DeviceMode.CAN,
}

UVR_TYPE_MAP: Final[dict[int, UvrType]] = {
    UVR_TYPE_UVR61_3: UvrType.UVR61_3,
    UVR_TYPE_UVR1611: UvrType.UVR1611,
}

TRANSMISSION_MODE_MAP: Final[dict[int, TransmissionMode]] = {
    MODE_CURRENT_DATA: TransmissionMode.CURRENT_DATA,
}

UNIT_CODE_MAP: Final[dict[int, Unit]] = {  # bits 4-6 of an input's high byte
    0x00: Unit.UNUSED,
    0x10: Unit.DIGITAL,
    0x20: Unit.CELSIUS,
    0x30: Unit.LITERS_PER_HOUR,
    0x60: Unit.WATTS_PER_SQUARE_METER,
    0x70: Unit.ROOM_CELSIUS,
}

OUTPUT_NAMES: Final[tuple[str, ...]] = tuple(
    f"A{i:02d}" for i in range(1, NUM_OUTPUTS + 1)
)
INPUT_NAMES: Final[tuple[str, ...]] = tuple(
    f"S{i:02d}" for i in range(1, NUM_INPUTS + 1)
)
SPEED_LEVEL_NAMES: Final[tuple[str, ...]] = ("DzA1", "DzA2", "DzA6", "DzA7")
HEAT_METER_NAMES: Final[tuple[str, ...]] = ("wmz1", "wmz2")
