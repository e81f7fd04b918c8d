#!/usr/bin/env python3
"""UVR BL-NET - Test the gateway (its state machine, and what it publishes)."""

import asyncio
from collections.abc import AsyncGenerator
from typing import Any, Final

import pytest
import voluptuous as vol

from blnet_tx.const import Command, Unit
from uvr_blnet import Gateway, Initialized, MemoryStore, Uninitialized, create_gateway
from uvr_blnet import exceptions as exc
from virtual_blnet import HEADER_1DL, RECORD, VirtualBlnet

COMMS_PARAMS: Final = {"quiescence_delay": 0}

PROBE_SEQUENCE: Final = [
    Command.VERSION,
    Command.HEADER,
    Command.FIRMWARE,
    Command.MODE,
    Command.CURRENT_DATA,
]


class FailingStore(MemoryStore):
    async def publish(self, name: str, value: Any, ack: bool = True) -> None:
        raise exc.StateStoreError("Unable to publish")


@pytest.fixture()
async def gwy(blnet: VirtualBlnet) -> AsyncGenerator[Gateway, None]:
    """Return a started gateway, that won't tick by itself."""

    gwy = Gateway(
        "127.0.0.1",
        blnet.port,
        poll_interval=3600,
        comms_params=COMMS_PARAMS,
        store=MemoryStore(),
    )
    await gwy.start()

    try:
        yield gwy
    finally:
        await gwy.stop()


# ### TESTS ############################################################################


async def test_first_tick_initializes(blnet: VirtualBlnet, gwy: Gateway) -> None:
    """Check the probe, and that the trial record is published."""

    store: MemoryStore = gwy.store  # type: ignore[assignment]

    assert isinstance(gwy.state, Uninitialized)
    await gwy.tick()
    assert isinstance(gwy.state, Initialized)

    assert blnet.log == PROBE_SEQUENCE

    assert store.value("info.connection") is True
    assert store.value("info.uvr_type") == "UVR1611"
    assert store.value("info.firmware_version") == "1.45"
    assert store.value("info.module_id") == "0xA3"

    assert store.value("outputs.A01") == "ON"
    assert store.value("outputs.A02") == "OFF"
    assert store.value("speed_levels.DzA2") == 30
    assert store.value("inputs.S01") == 21.5
    assert store.value("inputs.S02") == -5.0
    assert store.value("thermal_energy_counters_status.wmz1") == "active"
    assert store.value("thermal_energy_counters.current_heat_power1") == 10.0
    assert store.value("thermal_energy_counters.current_heat_power2") == 0

    assert gwy.device_info is not None
    assert gwy.units["S01"] == Unit.CELSIUS
    assert gwy.last_record is not None


async def test_states_are_declared(gwy: Gateway) -> None:
    store: MemoryStore = gwy.store  # type: ignore[assignment]

    assert store.objects["info.connection"]["type"] == "boolean"
    assert len(store.objects) == 1  # until the device is probed

    await gwy.tick()

    assert store.objects["info.uvr_mode"]["def"] == "1DL"
    assert store.objects["outputs.A13"]["role"] == "indicator"
    assert store.objects["speed_levels.DzA7"]["type"] == "number"
    assert store.objects["inputs.S01"]["unit"] == "°C"
    assert store.objects["inputs.S03"]["unit"] == "digital"
    assert store.objects["inputs.S05"]["unit"] == "°C (room sensor)"
    assert store.objects["inputs.S16"]["unit"] == "unused"
    assert store.objects["thermal_energy_counters.current_heat_power2"]["unit"] == (
        "kW"
    )
    assert store.objects["thermal_energy_counters.total_heat_energy1"]["unit"] == (
        "kWh"
    )
    assert all(not o["write"] for o in store.objects.values())

    # every published state has been declared
    assert set(store.states) <= set(store.objects)


async def test_second_tick_polls(blnet: VirtualBlnet, gwy: Gateway) -> None:
    await gwy.tick()
    await gwy.tick()

    assert blnet.log == PROBE_SEQUENCE + [Command.CURRENT_DATA]
    assert gwy.is_initialized


async def test_probe_failure_stays_uninitialized(
    blnet: VirtualBlnet, gwy: Gateway
) -> None:
    """Check a failed probe is retried from scratch at the next tick."""

    store: MemoryStore = gwy.store  # type: ignore[assignment]

    blnet.replies[Command.HEADER] = bytes(15)

    await gwy.tick()

    assert isinstance(gwy.state, Uninitialized)
    assert store.value("info.connection") is False
    assert gwy.device_info is None

    blnet.replies[Command.HEADER] = HEADER_1DL
    blnet.log.clear()

    await gwy.tick()

    assert isinstance(gwy.state, Initialized)
    assert store.value("info.connection") is True
    assert blnet.log == PROBE_SEQUENCE


async def test_poll_failure_stays_initialized(
    blnet: VirtualBlnet, gwy: Gateway
) -> None:
    """Check a failed poll does not force a re-probe."""

    store: MemoryStore = gwy.store  # type: ignore[assignment]

    await gwy.tick()

    blnet.script(Command.CURRENT_DATA, *([None] * 5))
    blnet.log.clear()

    await gwy.tick()

    assert isinstance(gwy.state, Initialized)
    assert store.value("info.connection") is False
    assert store.value("inputs.S01") == 21.5  # the last values are kept
    assert blnet.log == [Command.CURRENT_DATA] * 5

    await gwy.tick()

    assert store.value("info.connection") is True
    assert Command.VERSION not in blnet.log


async def test_poll_uses_units_of_each_record(
    blnet: VirtualBlnet, gwy: Gateway
) -> None:
    """Check the value of an input is scaled by the unit bits of its own record."""

    store: MemoryStore = gwy.store  # type: ignore[assignment]

    await gwy.tick()

    blnet.replies[Command.CURRENT_DATA] = RECORD[:1] + b"\xd7\x00" + RECORD[3:]
    await gwy.tick()

    assert store.value("inputs.S01") == 215  # now unused, so not scaled
    assert gwy.last_record is not None
    assert gwy.last_record.inputs["S01"].unit == Unit.UNUSED
    assert gwy.units["S01"] == Unit.CELSIUS  # as learnt at the probe


async def test_store_errors_are_not_raised(blnet: VirtualBlnet) -> None:
    """Check a tick survives a failing store (and that the probe is repeated)."""

    gwy = Gateway(
        "127.0.0.1", blnet.port, comms_params=COMMS_PARAMS, store=FailingStore()
    )
    await gwy.start()

    try:
        await gwy.tick()
        assert not gwy.is_initialized

        await gwy.tick()
        assert blnet.count(Command.VERSION) == 2

    finally:
        await gwy.stop()


async def test_busy_tick_is_skipped(blnet: VirtualBlnet, gwy: Gateway) -> None:
    gwy._is_busy = True

    await gwy.tick()

    assert blnet.log == []
    assert not gwy.is_initialized


async def test_poller_ticks(blnet: VirtualBlnet) -> None:
    """Check the gateway ticks by itself, once started."""

    gwy = Gateway(
        "127.0.0.1", blnet.port, poll_interval=0.01, comms_params=COMMS_PARAMS
    )

    assert blnet.log == []
    await gwy.start()

    try:
        async with asyncio.timeout(5):
            while blnet.count(Command.CURRENT_DATA) < 2:
                await asyncio.sleep(0.01)

    finally:
        await gwy.stop()

    assert gwy.is_initialized
    assert all(t.done() for t in gwy._tasks)


async def test_poller_survives_an_unresolvable_address() -> None:
    """Check a bad hostname is a failed tick, and the ticks carry on."""

    gwy = Gateway("a..b", 40000, poll_interval=0.01, comms_params=COMMS_PARAMS)
    store: MemoryStore = gwy.store  # type: ignore[assignment]

    await gwy.start()
    (poller,) = gwy._tasks

    try:
        async with asyncio.timeout(5):
            while store.value("info.connection") is not False:
                await asyncio.sleep(0.01)
            await asyncio.sleep(0.05)

        assert not poller.done()

    finally:
        await gwy.stop()

    assert not gwy.is_initialized
    assert store.states["info.connection"] == (False, True)


async def test_poller_survives_unexpected_errors(
    blnet: VirtualBlnet, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Check an error that no state handles is logged, and the ticks carry on."""

    calls = 0

    async def tick(self: Uninitialized) -> None:
        nonlocal calls
        calls += 1
        raise RuntimeError("Unexpected")

    monkeypatch.setattr(Uninitialized, "tick", tick)

    gwy = Gateway(
        "127.0.0.1", blnet.port, poll_interval=0.01, comms_params=COMMS_PARAMS
    )
    await gwy.start()
    (poller,) = gwy._tasks

    try:
        async with asyncio.timeout(5):
            while calls < 3:
                await asyncio.sleep(0.01)

        assert not poller.done()
        assert not gwy._is_busy

    finally:
        await gwy.stop()


async def test_start_twice_has_one_poller(gwy: Gateway) -> None:
    (poller,) = gwy._tasks

    await gwy.start()

    assert [t for t in gwy._tasks if not t.done()] == [poller]


async def test_wait_until_stopped(blnet: VirtualBlnet) -> None:
    gwy = Gateway(
        "127.0.0.1", blnet.port, poll_interval=3600, comms_params=COMMS_PARAMS
    )
    await gwy.start()

    waiter = asyncio.create_task(gwy.wait_until_stopped())
    await asyncio.sleep(0.01)
    assert not waiter.done()

    await gwy.stop()

    async with asyncio.timeout(5):
        await waiter


async def test_not_started(blnet: VirtualBlnet) -> None:
    gwy = Gateway("127.0.0.1", blnet.port, comms_params=COMMS_PARAMS)

    with pytest.raises(exc.GatewayNotStarted):
        await gwy.tick()

    with pytest.raises(exc.GatewayNotStarted):
        await gwy.stop()

    await gwy.start()
    await gwy.stop()

    with pytest.raises(exc.GatewayNotStarted):
        await gwy.tick()


async def test_create_gateway(blnet: VirtualBlnet) -> None:
    gwy = create_gateway(
        {"address": "127.0.0.1", "port": blnet.port, "comms_params": COMMS_PARAMS}
    )

    assert isinstance(gwy.store, MemoryStore)
    assert gwy.poll_interval == 30
    assert gwy.port == blnet.port

    await gwy.start()

    try:
        await gwy.tick()
        assert gwy.is_initialized
    finally:
        await gwy.stop()


def test_create_gateway_invalid() -> None:
    with pytest.raises(vol.Invalid):
        create_gateway({"address": "127.0.0.1", "poll_interval": 1})

    with pytest.raises(vol.Invalid):
        create_gateway({"port": 40000})
