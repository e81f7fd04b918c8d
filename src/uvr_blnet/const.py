#!/usr/bin/env python3
"""UVR BL-NET - a UVR1611/UVR61-3 poller via the BL-NET bridge."""

from __future__ import annotations

from enum import EnumCheck, StrEnum, verify
from typing import Final

from blnet_tx.const import (  # noqa: F401
    HEAT_METER_NAMES,
    OUTPUT_NAMES,
    SPEED_LEVEL_NAMES,
    SZ_CURRENT_HEAT_POWER,
    SZ_HEAT_METERS,
    SZ_HEAT_METERS_STATUS,
    SZ_INPUTS,
    SZ_OUTPUTS,
    SZ_SPEED_LEVELS,
    SZ_TOTAL_HEAT_ENERGY,
)

DEFAULT_POLL_INTERVAL: Final[float] = 30  # seconds
MIN_POLL_INTERVAL: Final[float] = 5

DEFAULT_MQTT_TOPIC: Final = "uvr16xx_blnet/0"

SZ_INFO: Final = "info"
SZ_CONNECTION: Final = "connection"

STATE_CONNECTION: Final = f"{SZ_INFO}.{SZ_CONNECTION}"

UNIT_KW: Final = "kW"
UNIT_KWH: Final = "kWh"

# the keys of an object declaration (its 'common' dict)
SZ_NAME: Final = "name"
SZ_TYPE: Final = "type"
SZ_ROLE: Final = "role"
SZ_UNIT: Final = "unit"
SZ_READ: Final = "read"
SZ_WRITE: Final = "write"
SZ_DEF: Final = "def"


@verify(EnumCheck.UNIQUE)
class StateType(StrEnum):
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"


@verify(EnumCheck.UNIQUE)
class StateRole(StrEnum):
    INDICATOR = "indicator"
    VALUE = "value"
