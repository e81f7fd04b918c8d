#!/usr/bin/env python3
"""Fixtures for testing."""

import asyncio
from collections.abc import AsyncGenerator

import pytest

from virtual_blnet import VirtualBlnet

#######################################################################################


@pytest.fixture(autouse=True)
def patches_for_tests(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("blnet_tx.transport.QUIESCENCE_DELAY", 0)


@pytest.fixture()
async def blnet() -> AsyncGenerator[VirtualBlnet, None]:
    """Return a virtual BL-NET (of a UVR1611 in 1DL mode)."""

    server = VirtualBlnet()
    await server.start()

    try:
        yield server
    finally:
        await server.stop()


@pytest.fixture()
async def refused_port() -> int:
    """Return a local port that will refuse connections."""

    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port: int = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    return port
