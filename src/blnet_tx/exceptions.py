#!/usr/bin/env python3
"""BL-NET - exceptions within the record/protocol/transport layer."""

from __future__ import annotations


class _BlnetBaseException(Exception):
    """Base class for all blnet_tx exceptions."""

    pass


class BlnetException(_BlnetBaseException):
    """Base class for all blnet_tx exceptions."""

    HINT: None | str = None

    def __init__(self, *args: object):
        super().__init__(*args)
        self.message: str | None = args[0] if args else None  # type: ignore[assignment]

    def __str__(self) -> str:
        if self.message and self.HINT:
            return f"{self.message} (hint: {self.HINT})"
        if self.message:
            return self.message
        if self.HINT:
            return f"Hint: {self.HINT}"
        return ""


class _BlnetLowerError(BlnetException):
    """A failure in the lower layer (parser, protocol, transport)."""


########################################################################################
# Errors at/below the protocol/transport layer


class ProtocolError(_BlnetLowerError):
    """An error occurred when exchanging a command with the BL-NET."""


class TransportError(ProtocolError):
    """The connection was refused, reset or closed before any data arrived."""


class ShortResponse(ProtocolError):
    """The BL-NET replied with a runt frame (0 or 1 bytes), worth a retry."""


class ExhaustedRetriesError(ProtocolError):
    """Every attempt to fetch a data block failed."""

    HINT = "check the BL-NET is reachable, and not in use by another client"


########################################################################################
# Errors when making sense of the bytes received


class ParserError(_BlnetLowerError):
    """The response could not be parsed."""


class UnknownHeaderLength(ParserError):
    """The header (Kopfsatz) has a length that matches none of 1DL, 2DL or CAN."""


class UnexpectedFormatError(ParserError):
    """The current data block is not in the expected format."""

    HINT = "only the 'Current Data' transmission mode (UVR1611) is supported"


class RecordTooShort(UnexpectedFormatError):
    """The current data block is shorter than a complete record."""

    HINT = None
