#!/usr/bin/env python3
"""BL-NET - Protocol/byte-level helpers."""

from __future__ import annotations

import re
from collections.abc import Iterator

_HEX_NOISE = re.compile(r"(0x|[\s,:-])", re.IGNORECASE)


def u16_le(data: bytes, offset: int) -> int:
    """Return the little-endian unsigned word at data[offset:offset + 2]."""
    return data[offset] | (data[offset + 1] << 8)


def u24_le(data: bytes, offset: int) -> int:
    """Return the little-endian unsigned 24-bit value at data[offset:offset + 3]."""
    return data[offset] | (data[offset + 1] << 8) | (data[offset + 2] << 16)


def hex_id(data: bytes) -> str:  # e.g. b"\x91" -> "0x91"
    return "0x" + data.hex().upper()


def hex_dump(data: bytes, width: int = 16) -> Iterator[str]:
    """Yield the data as lines of upper-case hex, width bytes per line."""

    for idx in range(0, len(data), width):
        yield f"{idx:04X}: " + " ".join(f"{b:02X}" for b in data[idx : idx + width])


def hex_to_bytes(value: str) -> bytes:
    """Return bytes from a hex string, tolerating whitespace, colons & 0x prefixes.

    Raises ValueError if the string is not valid hex.
    """
    return bytes.fromhex(_HEX_NOISE.sub("", value))
