#!/usr/bin/env python3
"""UVR BL-NET - the gateway: probe the controller once, then poll it forever.

The gateway is a two-state machine, driven by a periodic tick:
- Uninitialized: probe the device (and decode one trial record, for the input
  units), declare the states, and publish the device info
- Initialized: fetch & decode the current data, and publish it

Once Initialized, the gateway never returns to Uninitialized: a failed poll does
not force a re-probe. Any failure is logged, and published as info.connection =
False, and the next tick runs as usual.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, TypeAlias

from blnet_tx import (
    DeviceInfo,
    DeviceProbe,
    RetryingFetcher,
    TransportClient,
    Unit,
    UvrRecord,
    parser_record,
)
from blnet_tx.const import DEFAULT_PORT, SZ_ADDRESS, SZ_PORT
from blnet_tx.schemas import (
    SZ_MAX_ATTEMPTS,
    SZ_QUIESCENCE_DELAY,
    SZ_RESPONSE_TIMEOUT,
    CommsParamsT,
)
from blnet_tx.transport import SleepT

from . import exceptions as exc
from .const import (
    DEFAULT_POLL_INTERVAL,
    HEAT_METER_NAMES,
    OUTPUT_NAMES,
    SPEED_LEVEL_NAMES,
    STATE_CONNECTION,
    SZ_CONNECTION,
    SZ_CURRENT_HEAT_POWER,
    SZ_DEF,
    SZ_HEAT_METERS,
    SZ_HEAT_METERS_STATUS,
    SZ_INFO,
    SZ_INPUTS,
    SZ_NAME,
    SZ_OUTPUTS,
    SZ_READ,
    SZ_ROLE,
    SZ_SPEED_LEVELS,
    SZ_TOTAL_HEAT_ENERGY,
    SZ_TYPE,
    SZ_UNIT,
    SZ_WRITE,
    UNIT_KW,
    UNIT_KWH,
    StateRole,
    StateType,
)
from .schemas import (
    SCH_COMMS_PARAMS,
    SZ_COMMS_PARAMS,
    SZ_MQTT_URL,
    SZ_POLL_INTERVAL,
    SZ_RETAIN,
    SZ_STATE_STORE,
    SZ_TOPIC,
    load_config,
)
from .store import MemoryStore, StateStore, store_factory

_LOGGER = logging.getLogger(__name__)


class GatewayStateBase:
    def __init__(self, context: Gateway) -> None:
        self._context = context

    def __repr__(self) -> str:
        return f"<GatewayState state={self.__class__.__name__}>"

    async def tick(self) -> None:  # Different for each state
        raise NotImplementedError


class Uninitialized(GatewayStateBase):
    """The device has not (yet) been successfully probed."""

    async def tick(self) -> None:
        """Probe the device, and transition to Initialized if successful."""

        gwy = self._context

        try:
            device_info, record = await gwy._probe()
        except exc.BlnetException as err:
            await gwy._publish_connection(False)
            _LOGGER.error("%s: Initialization failed: %s", gwy, err)
            return

        await gwy._declare_states(device_info, record.units)
        await gwy._publish_info(device_info)
        await gwy._publish_connection(True)

        gwy._set_state(Initialized)
        _LOGGER.info("%s: Initialization succeeded: %s", gwy, device_info)

        await gwy._publish_record(record)  # the trial record is current data too


class Initialized(GatewayStateBase):
    """The device has been probed, and is now polled."""

    async def tick(self) -> None:
        """Fetch, decode & publish the current data (stay Initialized, regardless)."""

        gwy = self._context

        try:
            record = await gwy._fetch_record()
        except exc.BlnetException as err:
            await gwy._publish_connection(False)
            _LOGGER.error("%s: Error polling state values: %s", gwy, err)
            return

        await gwy._publish_connection(True)
        await gwy._publish_record(record)
        _LOGGER.info("%s: Polled state values from the device", gwy)


_GatewayStateClassT: TypeAlias = type[Uninitialized] | type[Initialized]


class Gateway:
    """The gateway class."""

    def __init__(
        self,
        address: str,
        port: int = DEFAULT_PORT,
        /,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        comms_params: CommsParamsT | dict[str, Any] | None = None,
        store: StateStore | None = None,
        sleep: SleepT | None = None,
    ) -> None:
        comms: CommsParamsT = SCH_COMMS_PARAMS(comms_params or {})

        self.address = address
        self.port = port
        self.poll_interval = poll_interval

        self.store: StateStore = store or MemoryStore()

        self._transport = TransportClient(
            address,
            port,
            quiescence_delay=comms[SZ_QUIESCENCE_DELAY],
            response_timeout=comms[SZ_RESPONSE_TIMEOUT],
            sleep=sleep,
        )
        self._fetcher = RetryingFetcher(
            self._transport, max_attempts=comms[SZ_MAX_ATTEMPTS]
        )

        self._state: GatewayStateBase = Uninitialized(self)
        self._is_busy = False  # a tick is in progress
        self._is_started = False
        self._is_stopped = False
        self._tasks: list[asyncio.Task[Any]] = []

        self._device_info: DeviceInfo | None = None
        self._units: dict[str, Unit] = {}
        self._last_record: UvrRecord | None = None

    def __repr__(self) -> str:
        return f"Gateway({self.address}:{self.port})"

    @property
    def state(self) -> GatewayStateBase:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return isinstance(self._state, Initialized)

    @property
    def device_info(self) -> DeviceInfo | None:
        return self._device_info

    @property
    def units(self) -> dict[str, Unit]:
        return dict(self._units)

    @property
    def last_record(self) -> UvrRecord | None:
        return self._last_record

    def _set_state(self, state_class: _GatewayStateClassT) -> None:
        _LOGGER.debug(
            "%s: State changed: %s -> %s",
            self,
            self._state.__class__.__name__,
            state_class.__name__,
        )
        self._state = state_class(self)

    def add_task(self, task: asyncio.Task[Any]) -> None:
        # keep a track of tasks, so we can tidy-up
        self._tasks = [t for t in self._tasks if not t.done()]
        self._tasks.append(task)

    async def start(self) -> None:
        """Start polling: the first tick is one poll interval from now."""

        if self._is_started and not self._is_stopped:
            _LOGGER.warning("%s: Gateway is already started", self)
            return

        _LOGGER.info(
            "%s: Starting: address=%s, port=%s, poll_interval=%ss",
            self,
            self.address,
            self.port,
            self.poll_interval,
        )

        await self.store.declare(
            STATE_CONNECTION,
            _common(SZ_CONNECTION, StateType.BOOLEAN, StateRole.INDICATOR),
        )

        self._is_started = True
        self._is_stopped = False
        self.add_task(asyncio.create_task(self._poller(), name=f"{self}.poller"))

    async def stop(self) -> None:
        """Stop polling, abort any exchange in flight, and close the state store."""

        if not self._is_started:
            raise exc.GatewayNotStarted(f"{self}: Gateway was never started")

        self._is_stopped = True

        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await asyncio.gather(*tasks)

        self._transport.abort()
        await self.store.close()

        _LOGGER.info("%s: Stopped", self)

    async def wait_until_stopped(self) -> None:
        """Wait until polling has ended (e.g. via stop(), or a cancellation)."""

        if tasks := [t for t in self._tasks if not t.done()]:
            await asyncio.wait(tasks)

    async def _poller(self) -> None:
        """Tick every poll interval, never starting a tick before the last is done."""

        loop = asyncio.get_running_loop()
        delay = self.poll_interval

        while True:
            await asyncio.sleep(delay)

            dtm_start = loop.time()
            try:
                await self.tick()
            except Exception:  # the next tick must always run
                _LOGGER.exception("%s: Unexpected error during a tick", self)
            delay = max(0, self.poll_interval - (loop.time() - dtm_start))

    async def tick(self) -> None:
        """Run a single tick of the state machine."""

        if not self._is_started or self._is_stopped:
            raise exc.GatewayNotStarted(f"{self}: Gateway is not running")

        if self._is_busy:
            _LOGGER.warning("%s: The previous tick is still in progress", self)
            return

        self._is_busy = True
        try:
            await self._state.tick()
        except exc.StateStoreError as err:
            _LOGGER.error("%s: Unable to update the state store: %s", self, err)
        finally:
            self._is_busy = False

    async def _probe(self) -> tuple[DeviceInfo, UvrRecord]:
        """Identify the device, and decode one record (to learn the input units)."""

        device_info = await DeviceProbe(self._fetcher).probe()
        record = await self._fetch_record()

        self._device_info = device_info
        self._units = record.units
        return device_info, record

    async def _fetch_record(self) -> UvrRecord:
        record = parser_record(await self._fetcher.fetch_current_data())
        self._last_record = record
        return record

    async def _publish_connection(self, is_connected: bool) -> None:
        _LOGGER.debug("%s: Setting connection status to: %s", self, is_connected)
        await self.store.publish(STATE_CONNECTION, is_connected)

    async def _publish_info(self, device_info: DeviceInfo) -> None:
        for key, value in device_info.as_dict().items():
            await self.store.publish(f"{SZ_INFO}.{key}", value)

    async def _publish_record(self, record: UvrRecord) -> None:
        for name, value in record.states().items():
            _LOGGER.debug("%s: Setting state %s to value %s", self, name, value)
            await self.store.publish(name, value)

    async def _declare_states(
        self, device_info: DeviceInfo, units: dict[str, Unit]
    ) -> None:
        """Declare every state, using the units learnt from the trial record."""

        for key, value in device_info.as_dict().items():
            await self.store.declare(
                f"{SZ_INFO}.{key}",
                _common(key, StateType.STRING, StateRole.INDICATOR, default=value),
            )

        for name in OUTPUT_NAMES:
            await self.store.declare(
                f"{SZ_OUTPUTS}.{name}",
                _common(name, StateType.STRING, StateRole.INDICATOR),
            )

        for name in SPEED_LEVEL_NAMES:
            await self.store.declare(
                f"{SZ_SPEED_LEVELS}.{name}",
                _common(name, StateType.NUMBER, StateRole.VALUE),
            )

        for name, unit in units.items():
            await self.store.declare(
                f"{SZ_INPUTS}.{name}",
                _common(name, StateType.NUMBER, StateRole.VALUE, unit=str(unit)),
            )

        for name in HEAT_METER_NAMES:
            await self.store.declare(
                f"{SZ_HEAT_METERS_STATUS}.{name}",
                _common(name, StateType.STRING, StateRole.INDICATOR),
            )

        for idx in range(1, len(HEAT_METER_NAMES) + 1):
            for key, unit in (
                (SZ_CURRENT_HEAT_POWER, UNIT_KW),
                (SZ_TOTAL_HEAT_ENERGY, UNIT_KWH),
            ):
                name = f"{key}{idx}"
                await self.store.declare(
                    f"{SZ_HEAT_METERS}.{name}",
                    _common(name, StateType.NUMBER, StateRole.VALUE, unit=unit),
                )

        _LOGGER.debug("%s: States declared", self)


def _common(
    name: str,
    type_: StateType,
    role: StateRole,
    unit: str | None = None,
    default: Any = None,
) -> dict[str, Any]:
    """Return the declaration of a read-only state."""

    result: dict[str, Any] = {
        SZ_NAME: name,
        SZ_TYPE: str(type_),
        SZ_ROLE: str(role),
        SZ_READ: True,
        SZ_WRITE: False,
    }
    if unit is not None:
        result[SZ_UNIT] = unit
    if default is not None:
        result[SZ_DEF] = default
    return result


def create_gateway(config: dict[str, Any], **kwargs: Any) -> Gateway:
    """Return a gateway (and its state store) from an unvalidated config dict."""

    config = load_config(config)

    store: StateStore | None = kwargs.pop("store", None)
    if store is None and (store_config := config[SZ_STATE_STORE]):
        store = store_factory(
            store_config[SZ_MQTT_URL],
            topic=store_config[SZ_TOPIC],
            retain=store_config[SZ_RETAIN],
        )

    return Gateway(
        config[SZ_ADDRESS],
        config[SZ_PORT],
        poll_interval=config[SZ_POLL_INTERVAL],
        comms_params=config[SZ_COMMS_PARAMS],
        store=store,
        **kwargs,
    )
