#!/usr/bin/env python3
"""UVR BL-NET - exceptions above the record/protocol/transport layer."""

from __future__ import annotations

from blnet_tx.exceptions import (
    BlnetException as BlnetException,
    ExhaustedRetriesError as ExhaustedRetriesError,
    ParserError as ParserError,
    ProtocolError as ProtocolError,
    TransportError as TransportError,
    UnexpectedFormatError as UnexpectedFormatError,
    UnknownHeaderLength as UnknownHeaderLength,
)


class _BlnetUpperError(BlnetException):
    """A failure in the upper layer (state store, gateway)."""


########################################################################################
# Errors above the protocol/transport layer


class StateStoreError(_BlnetUpperError):
    """The state store could not accept a declaration or a publish."""

    HINT = "check the MQTT broker is reachable"


class GatewayNotStarted(_BlnetUpperError):
    """The gateway has not been started (or has been stopped)."""
