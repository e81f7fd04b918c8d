#!/usr/bin/env python3
"""UVR BL-NET - a UVR1611/UVR61-3 poller via the BL-NET bridge.

Schema processor for upper layer.
"""

from __future__ import annotations

import logging
from typing import Any, Final

import voluptuous as vol

from blnet_tx.schemas import (  # noqa: F401
    SCH_COMMS_PARAMS,
    SZ_COMMS_PARAMS,
    SZ_LOG,
    SZ_MAX_ATTEMPTS,
    SZ_QUIESCENCE_DELAY,
    SZ_RESPONSE_TIMEOUT,
    sch_bridge_dict_factory,
    sch_comms_dict_factory,
    sch_log_dict_factory,
)

from .const import DEFAULT_MQTT_TOPIC, DEFAULT_POLL_INTERVAL, MIN_POLL_INTERVAL

_LOGGER = logging.getLogger(__name__)


#
# 0/2: Polling configuration
SZ_POLL_INTERVAL: Final = "poll_interval"

SCH_POLL_INTERVAL = vol.All(vol.Coerce(float), vol.Range(min=MIN_POLL_INTERVAL))


#
# 1/2: State store configuration
SZ_STATE_STORE: Final = "state_store"
SZ_MQTT_URL: Final = "mqtt_url"
SZ_TOPIC: Final = "topic"
SZ_RETAIN: Final = "retain"

SCH_MQTT_URL = vol.All(str, vol.Match(r"^mqtts?://"))
SCH_TOPIC = vol.All(str, vol.Match(r"^[^#+]+$"))  # no wildcards when publishing

SCH_STATE_STORE = vol.Schema(
    {
        vol.Required(SZ_MQTT_URL): SCH_MQTT_URL,
        vol.Optional(SZ_TOPIC, default=DEFAULT_MQTT_TOPIC): SCH_TOPIC,
        vol.Optional(SZ_RETAIN, default=True): bool,
    },
    extra=vol.PREVENT_EXTRA,
)


#
# 2/2: Global configuration (bridge, comms, polling, state store, logging)
SCH_GLOBAL_CONFIG = (
    vol.Schema(
        {
            vol.Optional(
                SZ_POLL_INTERVAL, default=DEFAULT_POLL_INTERVAL
            ): SCH_POLL_INTERVAL,
            vol.Optional(SZ_STATE_STORE, default=None): vol.Any(
                None, SCH_STATE_STORE
            ),
        },
        extra=vol.PREVENT_EXTRA,
    )
    .extend(sch_bridge_dict_factory())
    .extend(sch_comms_dict_factory())
    .extend(sch_log_dict_factory(default_backups=0))
)


def load_config(config: dict[str, Any]) -> dict[str, Any]:
    """Return the validated config, with defaults, or raise vol.Invalid."""

    result: dict[str, Any] = SCH_GLOBAL_CONFIG(config)
    return result
