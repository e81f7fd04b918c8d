#!/usr/bin/env python3
"""BL-NET - payload processors.

Decode the header (Kopfsatz) and the 'Current Data' record of a UVR1611, as
returned by a BL-NET. The decoders are pure functions: no I/O.

    Current data record (57 bytes, little-endian words):
    - [0]        transmission tag, 0x80 for a UVR1611
    - [1..32]    inputs S01..S16, a word each
    - [33..34]   outputs A01..A13, a bit each
    - [35..38]   speed levels DzA1, DzA2, DzA6, DzA7
    - [39]       heat meter (WMZ) status, a bit each
    - [40..47]   heat meter 1: power (4 bytes), energy (kWh word, MWh word)
    - [48..55]   heat meter 2: as for heat meter 1
    - [56]       checksum (not verified)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Final

from . import exceptions as exc
from .const import (
    HEADER_DEVICE1_OFFSET,
    HEADER_DEVICE2_OFFSET,
    HEADER_LENGTH_MAP,
    HEAT_METER_NAMES,
    HEAT_METER_OFFSETS,
    HEAT_METER_STATUS_OFFSET,
    INPUT_HIGH_NIBBLE,
    INPUT_NAMES,
    INPUT_SIGN_BIT,
    INPUT_UNIT_MASK,
    INPUTS_OFFSET,
    OUTPUT_NAMES,
    OUTPUTS_OFFSET,
    RECORD_LENGTH,
    RECORD_TAG_CURRENT_DATA,
    SPEED_LEVEL_NAMES,
    SPEED_LEVELS_OFFSET,
    SZ_ACTIVE,
    SZ_CURRENT_HEAT_POWER,
    SZ_HEAT_METERS,
    SZ_HEAT_METERS_STATUS,
    SZ_INACTIVE,
    SZ_INPUTS,
    SZ_OFF,
    SZ_ON,
    SZ_OUTPUTS,
    SZ_SPEED_LEVELS,
    SZ_TOTAL_HEAT_ENERGY,
    TRANSMISSION_MODE_MAP,
    UNIT_CODE_MAP,
    UVR_TYPE_MAP,
    DeviceMode,
    TransmissionMode,
    Unit,
    UvrType,
)
from .helpers import u16_le, u24_le

_LOGGER = logging.getLogger(__name__)

_SIGN_EXTEND: Final[int] = 0x1000  # 2**12, as raw12 is a 12-bit magnitude


@dataclass(frozen=True)
class InputValue:
    """A decoded input: its value (after sign & unit scaling), and its unit."""

    value: float
    unit: Unit


@dataclass(frozen=True)
class HeatMeter:
    """A decoded heat meter (WMZ): power in kW, energy in kWh."""

    current_power: float = 0
    total_energy: float = 0


@dataclass(frozen=True)
class UvrRecord:
    """A snapshot of a UVR1611, as decoded from one current data record."""

    outputs: dict[str, bool] = field(default_factory=dict)
    speed_levels: dict[str, int] = field(default_factory=dict)
    inputs: dict[str, InputValue] = field(default_factory=dict)
    heat_meters_active: dict[str, bool] = field(default_factory=dict)
    heat_meters: dict[str, HeatMeter] = field(default_factory=dict)

    @property
    def units(self) -> dict[str, Unit]:
        return {k: v.unit for k, v in self.inputs.items()}

    def states(self) -> dict[str, Any]:
        """Return the record as a flat dict of state names and their values."""

        result: dict[str, Any] = {}

        for name, is_on in self.outputs.items():
            result[f"{SZ_OUTPUTS}.{name}"] = SZ_ON if is_on else SZ_OFF

        for name, level in self.speed_levels.items():
            result[f"{SZ_SPEED_LEVELS}.{name}"] = level

        for name, reading in self.inputs.items():
            result[f"{SZ_INPUTS}.{name}"] = reading.value

        for name, is_active in self.heat_meters_active.items():
            result[f"{SZ_HEAT_METERS_STATUS}.{name}"] = (
                SZ_ACTIVE if is_active else SZ_INACTIVE
            )

        for idx, meter in enumerate(self.heat_meters.values(), start=1):
            result[f"{SZ_HEAT_METERS}.{SZ_CURRENT_HEAT_POWER}{idx}"] = (
                meter.current_power
            )
            result[f"{SZ_HEAT_METERS}.{SZ_TOTAL_HEAT_ENERGY}{idx}"] = (
                meter.total_energy
            )

        return result


def parser_header(data: bytes) -> tuple[DeviceMode, UvrType, UvrType | None]:
    """Return the device mode & controller type(s) from a header (Kopfsatz).

    The length of the header selects its layout. Raise UnknownHeaderLength if the
    length is none of 13 (1DL), 14 (2DL) or 21 (CAN).
    """

    try:
        mode = HEADER_LENGTH_MAP[len(data)]
    except KeyError:
        raise exc.UnknownHeaderLength(
            f"Unknown data length: {len(data)} (header: {data.hex()})"
        ) from None

    if mode == DeviceMode.CAN:  # has no type byte
        return mode, UvrType.UVR1611, None

    uvr_type = parse_uvr_type(data[HEADER_DEVICE1_OFFSET])

    if mode == DeviceMode.TWO_DEVICE:
        return mode, uvr_type, parse_uvr_type(data[HEADER_DEVICE2_OFFSET])

    return mode, uvr_type, None


def parse_uvr_type(value: int) -> UvrType:
    return UVR_TYPE_MAP.get(value, UvrType.UNKNOWN)


def parse_firmware_version(data: bytes) -> str:  # e.g. b"\x91" -> "1.45"
    return f"{data[0] / 100:g}"


def parse_transmission_mode(data: bytes) -> TransmissionMode:
    return TRANSMISSION_MODE_MAP.get(data[0], TransmissionMode.UNKNOWN)


def parse_unit(high_byte: int) -> Unit:
    """Return the unit of an input, from bits 4-6 of its high byte."""
    return UNIT_CODE_MAP.get(high_byte & INPUT_UNIT_MASK, Unit.UNKNOWN)


def parse_input(word: int) -> InputValue:
    """Return the value & unit of a raw 16-bit input word.

    The high byte has a sign flag (bit 7) & a unit code (bits 4-6). The low nibble
    of the high byte and the low byte are a 12-bit magnitude, so that a negative
    value is raw12 - 4096. Celsius values are in tenths of a degree.
    """

    high_byte, low_byte = word >> 8, word & 0xFF

    value: float = ((high_byte & INPUT_HIGH_NIBBLE) << 8) | low_byte
    if high_byte & INPUT_SIGN_BIT:
        value -= _SIGN_EXTEND

    unit = parse_unit(high_byte)
    if unit == Unit.CELSIUS:  # but not Unit.ROOM_CELSIUS
        value /= 10

    return InputValue(value, unit)


def parse_heat_meter(data: bytes, offset: int) -> HeatMeter:
    """Return the current power (kW) & total energy (kWh) of a heat meter.

    The power is always positive: the device's sign check (of a single byte against
    a 16-bit threshold) can never be true, and so is not applied here.
    """

    hundredths = data[offset] * 10 / 256  # not truncated
    magnitude = u24_le(data, offset + 1)

    return HeatMeter(
        current_power=(10 * magnitude + hundredths) / 100,
        total_energy=u16_le(data, offset + 4) / 10 + u16_le(data, offset + 6) * 1000,
    )


def extract_record(data: bytes) -> bytes:
    """Return the current data record from a data block, less any trailing bytes.

    Raise UnexpectedFormatError if the block is not a 'Current Data' record, or is
    too short.
    """

    if not data or data[0] != RECORD_TAG_CURRENT_DATA:
        raise exc.UnexpectedFormatError(
            f"Unexpected data format: 0x{data[:1].hex() or '--'} (expected 0x80)"
        )
    if len(data) < RECORD_LENGTH:
        raise exc.RecordTooShort(
            f"Record is too short: {len(data)} bytes (expected {RECORD_LENGTH})"
        )
    return data[:RECORD_LENGTH]


def parser_record(data: bytes) -> UvrRecord:
    """Return the snapshot decoded from a 57-byte current data record."""

    if len(data) < RECORD_LENGTH:
        raise exc.RecordTooShort(
            f"Record is too short: {len(data)} bytes (expected {RECORD_LENGTH})"
        )

    output_bits = u16_le(data, OUTPUTS_OFFSET)
    outputs = {n: bool(output_bits & (1 << i)) for i, n in enumerate(OUTPUT_NAMES)}

    speed_levels = {
        n: data[SPEED_LEVELS_OFFSET + i] for i, n in enumerate(SPEED_LEVEL_NAMES)
    }

    inputs = {
        n: parse_input(u16_le(data, INPUTS_OFFSET + 2 * i))
        for i, n in enumerate(INPUT_NAMES)
    }

    status = data[HEAT_METER_STATUS_OFFSET]
    heat_meters_active = {
        n: bool(status & (1 << i)) for i, n in enumerate(HEAT_METER_NAMES)
    }
    heat_meters = {
        n: parse_heat_meter(data, offset) if heat_meters_active[n] else HeatMeter()
        for n, offset in zip(HEAT_METER_NAMES, HEAT_METER_OFFSETS, strict=True)
    }

    record = UvrRecord(
        outputs=outputs,
        speed_levels=speed_levels,
        inputs=inputs,
        heat_meters_active=heat_meters_active,
        heat_meters=heat_meters,
    )

    if _LOGGER.isEnabledFor(logging.DEBUG):
        _LOGGER.debug("Outputs: %s", outputs)
        _LOGGER.debug("Speed levels: %s", speed_levels)
        _LOGGER.debug("Inputs: %s", {k: v.value for k, v in inputs.items()})
        _LOGGER.debug("Heat meters: %s", heat_meters)

    return record
