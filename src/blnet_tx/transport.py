#!/usr/bin/env python3
"""BL-NET - the TCP transport to a BL-NET bridge.

The BL-NET speaks a strict request/response protocol: a client opens a new TCP
connection, writes a single opcode byte, and the first chunk of data received is
the complete response (there is no length prefix, nor terminator). The connection
is then closed.

The bridge requires a settling interval between commands, and offers no flow
control, so every exchange is preceded by a fixed quiescence delay.

    Operation of the BL-NET, sending a command:
    1. sleep for the quiescence delay
    2. connect, and write the opcode byte
    3. await the first data_received()
    4. close the connection
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Final

from . import exceptions as exc
from .const import (
    DEFAULT_PORT,
    DEFAULT_QUIESCENCE_DELAY,
    DEFAULT_RESPONSE_TIMEOUT,
    Command,
)
from .helpers import hex_dump

#
# NOTE: All debug flags should be False for deployment to end-users
_DBG_FORCE_FRAME_LOGGING: Final[bool] = False

_LOGGER = logging.getLogger(__name__)


QUIESCENCE_DELAY: float = DEFAULT_QUIESCENCE_DELAY  # tests patch this to 0

SleepT = Callable[[float], Awaitable[Any]]


class _ExchangeProtocol(asyncio.Protocol):
    """A single-shot Protocol: write one opcode, then await one chunk of data."""

    def __init__(self, command: Command) -> None:
        self._command = command

        self._loop = asyncio.get_running_loop()
        self._transport: asyncio.Transport | None = None

        self._response: asyncio.Future[bytes] = self._loop.create_future()

    def connection_made(self, transport: asyncio.Transport) -> None:  # type: ignore[override]
        """Called when the connection is established: send the opcode."""

        self._transport = transport

        if _DBG_FORCE_FRAME_LOGGING:
            _LOGGER.warning("Tx: %s", self._command)
        transport.write(bytes([self._command]))

    def data_received(self, data: bytes) -> None:
        """Called with the first (and only wanted) chunk of the response."""

        if self._response.done():  # trailing chunks are not part of the response
            return

        if _DBG_FORCE_FRAME_LOGGING:
            _LOGGER.warning("Rx: %s", data.hex())

        self._response.set_result(data)
        self.close()

    def connection_lost(self, err: Exception | None) -> None:
        """Called when the connection is lost or closed.

        If this happens before any data was received, the exchange has failed.
        """

        if self._response.done():
            return

        if err:
            self._response.set_exception(
                exc.TransportError(f"Connection lost: {err}")
            )
        else:
            self._response.set_exception(
                exc.TransportError("Connection closed unexpectedly")
            )

    def close(self) -> None:
        if self._transport and not self._transport.is_closing():
            self._transport.close()

    def abort(self) -> None:
        if self._transport:
            self._transport.abort()

    async def wait_for_response(self, timeout: float) -> bytes:
        """Wait until data_received() has been invoked, and return the data.

        Will raise TransportError if no data arrives within timeout seconds.
        """

        try:
            return await asyncio.wait_for(self._response, timeout)
        except TimeoutError as err:
            raise exc.TransportError(
                f"No response to {self._command} within {timeout} secs"
            ) from err


class TransportClient:
    """Exchange single-byte commands with a BL-NET, one connection per command."""

    def __init__(
        self,
        address: str,
        port: int = DEFAULT_PORT,
        *,
        quiescence_delay: float | None = None,
        response_timeout: float = DEFAULT_RESPONSE_TIMEOUT,
        sleep: SleepT | None = None,
    ) -> None:
        self.address = address
        self.port = port

        self._quiescence_delay = (
            QUIESCENCE_DELAY if quiescence_delay is None else quiescence_delay
        )
        self._response_timeout = response_timeout
        self._sleep: SleepT = sleep or asyncio.sleep

        self._protocol: _ExchangeProtocol | None = None  # the exchange in flight

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.address}:{self.port})"

    @property
    def is_busy(self) -> bool:
        return self._protocol is not None

    async def send(self, command: Command) -> bytes:
        """Send a command to the BL-NET, and return its (raw) response.

        Raise TransportError if the connection is refused, the socket errors, the
        peer closes the connection before any data arrives, or there is no response
        within the response timeout. The connection is always closed on return.
        """

        await self._sleep(self._quiescence_delay)

        _LOGGER.debug("%s: Sending command %s", self, command)

        loop = asyncio.get_running_loop()
        protocol = _ExchangeProtocol(command)
        self._protocol = protocol

        try:
            try:
                await asyncio.wait_for(
                    loop.create_connection(lambda: protocol, self.address, self.port),
                    self._response_timeout,
                )
            except TimeoutError as err:
                raise exc.TransportError(
                    f"Unable to connect to {self.address}:{self.port} "
                    f"within {self._response_timeout} secs"
                ) from err
            except (OSError, ValueError) as err:  # ValueError incl. UnicodeError
                raise exc.TransportError(
                    f"Unable to connect to {self.address}:{self.port}: {err}"
                ) from err

            data = await protocol.wait_for_response(self._response_timeout)

        except BaseException:
            protocol.abort()
            raise

        else:
            protocol.close()

        finally:
            self._protocol = None

        if _LOGGER.isEnabledFor(logging.DEBUG):
            _LOGGER.debug(
                "%s: Received %s bytes for %s", self, len(data), command.name
            )
            for line in hex_dump(data):
                _LOGGER.debug("%s:   %s", self, line)

        return data

    def abort(self) -> None:
        """Force-close the socket of any exchange in flight."""

        if self._protocol:
            _LOGGER.debug("%s: Aborting the exchange in flight", self)
            self._protocol.abort()
