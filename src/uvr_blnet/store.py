#!/usr/bin/env python3
"""UVR BL-NET - the (external) state stores that receive the polled values.

A state store is told about each state once (declare), and then is sent its values
(publish). The gateway never reads back from a store.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Final
from urllib.parse import unquote, urlparse

from paho.mqtt import MQTTException, client as mqtt

from . import exceptions as exc
from .const import DEFAULT_MQTT_TOPIC

#
# NOTE: All debug flags should be False for deployment to end-users
_DBG_FORCE_PUBLISH_LOGGING: Final[bool] = False

_LOGGER = logging.getLogger(__name__)


SZ_META: Final = "$meta"


class StateStore(ABC):
    """The interface of a state store."""

    @abstractmethod
    async def declare(self, name: str, common: dict[str, Any]) -> None:
        """Declare a state (its type, role, unit, etc.), if not already declared."""

    @abstractmethod
    async def publish(self, name: str, value: Any, ack: bool = True) -> None:
        """Set the value of a state (ack is True if the value is from the device)."""

    async def close(self) -> None:
        """Release any resources held by the store."""


class MemoryStore(StateStore):
    """A dict-based state store, for testing & the CLI."""

    def __init__(self) -> None:
        self.objects: dict[str, dict[str, Any]] = {}
        self.states: dict[str, tuple[Any, bool]] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(states={len(self.states)})"

    async def declare(self, name: str, common: dict[str, Any]) -> None:
        self.objects.setdefault(name, common)

    async def publish(self, name: str, value: Any, ack: bool = True) -> None:
        if _DBG_FORCE_PUBLISH_LOGGING:
            _LOGGER.warning("%s = %s (ack=%s)", name, value, ack)
        self.states[name] = (value, ack)

    def value(self, name: str) -> Any:
        """Return the current value of a state (None if it has none)."""
        return self.states.get(name, (None, False))[0]


class MqttStore(StateStore):
    """Publish states to an MQTT broker, as JSON, one topic per state.

    For example, 'inputs.S01' is published to '<topic>/inputs/S01', and its
    declaration to '<topic>/inputs/S01/$meta'.
    """

    def __init__(
        self,
        mqtt_url: str,
        topic: str = DEFAULT_MQTT_TOPIC,
        retain: bool = True,
    ) -> None:
        self._broker_url = urlparse(mqtt_url)

        self._topic_base = topic.strip("/")
        self._retain = retain

        self._declared: set[str] = set()
        self._connected = False

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        if self._broker_url.username:
            self.client.username_pw_set(
                unquote(self._broker_url.username),
                unquote(self._broker_url.password or ""),
            )
        if self._broker_url.scheme == "mqtts":
            self.client.tls_set()

        default_port = 8883 if self._broker_url.scheme == "mqtts" else 1883
        self.client.connect_async(
            self._broker_url.hostname,  # type: ignore[arg-type]
            self._broker_url.port or default_port,
            60,
        )
        self.client.loop_start()

    def __repr__(self) -> str:
        host = self._broker_url.hostname
        return f"{self.__class__.__name__}({host}/{self._topic_base})"

    def _on_connect(
        self,
        client: mqtt.Client,
        userdata: Any | None,
        flags: Any,
        reason_code: Any,
        properties: Any | None = None,
    ) -> None:
        if getattr(reason_code, "is_failure", False):
            _LOGGER.error(f"{self}: Failed to connect: {reason_code}")
            return

        _LOGGER.info(f"{self}: Connected to the MQTT broker")
        self._connected = True

    def _on_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any | None,
        flags: Any,
        reason_code: Any,
        properties: Any | None = None,
    ) -> None:
        if self._connected:
            _LOGGER.warning(f"{self}: Disconnected with result code {reason_code}")
        self._connected = False

    def topic(self, name: str) -> str:
        return f"{self._topic_base}/{name.replace('.', '/')}"

    def _publish(self, topic: str, payload: str) -> None:
        if _DBG_FORCE_PUBLISH_LOGGING:
            _LOGGER.warning("Tx: %s %s", topic, payload)

        try:
            info: mqtt.MQTTMessageInfo = self.client.publish(
                topic, payload=payload, qos=0, retain=self._retain
            )
        except (MQTTException, ValueError) as err:
            raise exc.StateStoreError(f"Unable to publish to {topic}: {err}") from err

        if info.rc not in (mqtt.MQTT_ERR_SUCCESS, mqtt.MQTT_ERR_NO_CONN):
            raise exc.StateStoreError(
                f"Unable to publish to {topic}: {mqtt.error_string(info.rc)}"
            )
        if info.rc == mqtt.MQTT_ERR_NO_CONN:
            _LOGGER.debug(f"{self}: Not connected, {topic} not published")

    async def declare(self, name: str, common: dict[str, Any]) -> None:
        if name in self._declared:
            return
        self._publish(f"{self.topic(name)}/{SZ_META}", json.dumps(common))
        self._declared.add(name)

    async def publish(self, name: str, value: Any, ack: bool = True) -> None:
        self._publish(self.topic(name), json.dumps(value))

    async def close(self) -> None:
        """Disconnect from the broker and stop its network loop."""

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._close)

    def _close(self) -> None:
        self.client.disconnect()
        self.client.loop_stop()
        self._connected = False


def store_factory(
    mqtt_url: str | None = None,
    topic: str = DEFAULT_MQTT_TOPIC,
    retain: bool = True,
) -> StateStore:
    """Return an MQTT store if there is an MQTT URL, otherwise a memory store."""

    if mqtt_url:
        return MqttStore(mqtt_url, topic=topic, retain=retain)
    return MemoryStore()
