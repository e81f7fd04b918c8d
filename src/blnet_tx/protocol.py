#!/usr/bin/env python3
"""BL-NET - block fetches (with retries) on top of the TCP transport."""

from __future__ import annotations

import logging

from . import exceptions as exc
from .const import DEFAULT_MAX_ATTEMPTS, MIN_BLOCK_LENGTH, Command
from .parsers import extract_record
from .transport import TransportClient

_LOGGER = logging.getLogger(__name__)


class RetryingFetcher:
    """Fetch multi-byte data blocks, retrying runt responses & transport errors.

    There is no backoff: each attempt already pays the transport's quiescence delay.
    """

    def __init__(
        self, transport: TransportClient, max_attempts: int = DEFAULT_MAX_ATTEMPTS
    ) -> None:
        self._transport = transport
        self.max_attempts = max_attempts

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._transport.address})"

    @property
    def transport(self) -> TransportClient:
        return self._transport

    async def _fetch_once(self, command: Command) -> bytes:
        data = await self._transport.send(command)
        if len(data) < MIN_BLOCK_LENGTH:
            raise exc.ShortResponse(
                f"Invalid short response from device: {data.hex() or '(empty)'}"
            )
        return data

    async def fetch_block(self, command: Command) -> bytes:
        """Return the (unmodified) data block for the command.

        Raise ExhaustedRetriesError (from the last error) if every attempt fails.
        """

        last_err: exc.ProtocolError | None = None

        for attempt in range(1, self.max_attempts + 1):
            _LOGGER.debug(
                "%s: Fetching %s (attempt %s of %s)",
                self,
                command.name,
                attempt,
                self.max_attempts,
            )

            try:
                return await self._fetch_once(command)

            except exc.ShortResponse as err:
                _LOGGER.debug("%s: %s, retrying...", self, err)
                last_err = err

            except exc.TransportError as err:
                _LOGGER.debug("%s: %s", self, err)
                last_err = err

        _LOGGER.warning(
            "%s: Max retries reached fetching %s: %s", self, command.name, last_err
        )
        raise exc.ExhaustedRetriesError(
            "Max retries reached. Unable to communicate with device."
        ) from last_err

    async def fetch_current_data(self) -> bytes:
        """Return the 57-byte current data record, as received from the device.

        Raise UnexpectedFormatError if the block isn't a 'Current Data' record.
        """

        data = await self.fetch_block(Command.CURRENT_DATA)
        return extract_record(data)
