#!/usr/bin/env python3
"""BL-NET - Test the helper APIs."""

import pytest

from blnet_tx import exceptions as exc
from blnet_tx.const import Command
from blnet_tx.helpers import hex_dump, hex_id, hex_to_bytes, u16_le, u24_le
from uvr_blnet.helpers import deep_merge


def test_u16_le() -> None:
    assert u16_le(b"\x00\x05\x00", 1) == 0x0005
    assert u16_le(b"\xce\xaf", 0) == 0xAFCE


def test_u24_le() -> None:
    assert u24_le(b"\x00\x64\x00\x00", 1) == 100
    assert u24_le(b"\x01\x02\x03", 0) == 0x030201


def test_hex_id() -> None:
    assert hex_id(b"\xa3") == "0xA3"
    assert hex_id(b"\x01\xab") == "0x01AB"


def test_hex_dump() -> None:
    assert list(hex_dump(bytes(range(18)), width=8)) == [
        "0000: 00 01 02 03 04 05 06 07",
        "0008: 08 09 0A 0B 0C 0D 0E 0F",
        "0010: 10 11",
    ]
    assert list(hex_dump(b"")) == []


@pytest.mark.parametrize(
    "value",
    ["80 d7 20", "80d720", "0x80 0xD7 0x20", "80:d7:20", "80-D7-20", "80,d7,20\n"],
)
def test_hex_to_bytes(value: str) -> None:
    assert hex_to_bytes(value) == b"\x80\xd7\x20"


@pytest.mark.parametrize("value", ["80 d7 2", "zz", "80 g7"])
def test_hex_to_bytes_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        hex_to_bytes(value)


def test_deep_merge() -> None:
    src = {"comms_params": {"max_attempts": 3}, "port": 40001}
    dst = {"comms_params": {"quiescence_delay": 0.5}, "address": "blnet.local"}

    assert deep_merge(src, dst) == {
        "address": "blnet.local",
        "comms_params": {"max_attempts": 3, "quiescence_delay": 0.5},
        "port": 40001,
    }
    assert dst == {"comms_params": {"quiescence_delay": 0.5}, "address": "blnet.local"}


def test_command_str() -> None:
    assert str(Command.CURRENT_DATA) == "CURRENT_DATA (0xAB)"
    assert bytes([Command.HEADER]) == b"\xaa"


def test_exception_str() -> None:
    assert str(exc.TransportError("Connection refused")) == "Connection refused"
    assert str(exc.ExhaustedRetriesError("Max retries reached.")) == (
        "Max retries reached. (hint: check the BL-NET is reachable, "
        "and not in use by another client)"
    )
    assert str(exc.RecordTooShort("Too short")) == "Too short"
    assert isinstance(exc.RecordTooShort(), exc.ParserError)
