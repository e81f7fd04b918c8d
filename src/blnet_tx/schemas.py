#!/usr/bin/env python3
"""BL-NET - a UVR1611/UVR61-3 protocol client via the BL-NET bridge.

Schema processor for protocol (lower) layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Final, TypedDict

import voluptuous as vol

from .const import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PORT,
    DEFAULT_QUIESCENCE_DELAY,
    DEFAULT_RESPONSE_TIMEOUT,
    SZ_ADDRESS,
    SZ_PORT,
)

_LOGGER = logging.getLogger(__name__)


#
# 0/3: Comms (exchange) configuration
SZ_COMMS_PARAMS: Final = "comms_params"
SZ_MAX_ATTEMPTS: Final = "max_attempts"
SZ_QUIESCENCE_DELAY: Final = "quiescence_delay"
SZ_RESPONSE_TIMEOUT: Final = "response_timeout"

SCH_COMMS_PARAMS = vol.Schema(
    {
        vol.Required(SZ_QUIESCENCE_DELAY, default=DEFAULT_QUIESCENCE_DELAY): vol.All(
            vol.Coerce(float), vol.Range(min=0, max=10)
        ),
        vol.Required(SZ_MAX_ATTEMPTS, default=DEFAULT_MAX_ATTEMPTS): vol.All(
            int, vol.Range(min=1, max=10)
        ),
        vol.Required(SZ_RESPONSE_TIMEOUT, default=DEFAULT_RESPONSE_TIMEOUT): vol.All(
            vol.Coerce(float), vol.Range(min=0.5, max=60)
        ),
    },
    extra=vol.PREVENT_EXTRA,
)


class CommsParamsT(TypedDict):
    quiescence_delay: float
    max_attempts: int
    response_timeout: float


#
# 1/3: BL-NET (bridge) configuration
SCH_ADDRESS = vol.All(str, vol.Strip, vol.Length(min=1))
SCH_PORT = vol.All(vol.Coerce(int), vol.Range(min=1, max=65535))


def sch_bridge_dict_factory() -> dict[vol.Required, Any]:
    """Return a BL-NET address/port dict.

    usage:

    SCH_BRIDGE = vol.Schema(sch_bridge_dict_factory(), extra=vol.PREVENT_EXTRA)
    """

    return {  # SCH_BRIDGE_DICT
        vol.Required(SZ_ADDRESS): SCH_ADDRESS,
        vol.Optional(SZ_PORT, default=DEFAULT_PORT): SCH_PORT,
    }


SCH_BRIDGE = vol.Schema(sch_bridge_dict_factory(), extra=vol.PREVENT_EXTRA)


#
# 2/3: Log (file) configuration
SZ_FILE_NAME: Final = "file_name"
SZ_LOG: Final = "log"
SZ_ROTATE_BACKUPS: Final = "rotate_backups"
SZ_ROTATE_BYTES: Final = "rotate_bytes"


class LogConfigT(TypedDict):
    file_name: str
    rotate_backups: int
    rotate_bytes: int | None


def sch_log_dict_factory(default_backups: int = 0) -> dict[vol.Required, Any]:
    """Return a log dict with a configurable default rotation policy.

    usage:

    SCH_LOG_7 = vol.Schema(sch_log_dict_factory(default_backups=7))
    """

    SCH_LOG_CONFIG = vol.Schema(
        {
            vol.Optional(SZ_ROTATE_BACKUPS, default=default_backups): vol.Any(
                None, int
            ),
            vol.Optional(SZ_ROTATE_BYTES): vol.Any(None, int),
        },
        extra=vol.PREVENT_EXTRA,
    )

    SCH_LOG_NAME = str

    def NormaliseLog(rotate_backups: int = 0) -> Callable[..., Any]:
        def normalise_log(node_value: str | LogConfigT) -> LogConfigT:
            if isinstance(node_value, str):
                return {
                    SZ_FILE_NAME: node_value,
                    SZ_ROTATE_BACKUPS: rotate_backups,
                    SZ_ROTATE_BYTES: None,
                }
            return node_value

        return normalise_log

    return {  # SCH_LOG_DICT
        vol.Required(SZ_LOG, default=None): vol.Any(
            None,
            vol.All(SCH_LOG_NAME, NormaliseLog(rotate_backups=default_backups)),
            SCH_LOG_CONFIG.extend({vol.Required(SZ_FILE_NAME): SCH_LOG_NAME}),
        )
    }


SCH_LOG = vol.Schema(sch_log_dict_factory(default_backups=7), extra=vol.PREVENT_EXTRA)


#
# 3/3: Transport configuration (the lower layer, as a whole)
def sch_comms_dict_factory() -> dict[vol.Required, Any]:
    """Return a comms_params dict, with defaults for any absent keys."""

    return {  # SCH_COMMS_DICT
        vol.Optional(SZ_COMMS_PARAMS, default={}): SCH_COMMS_PARAMS,
    }


SCH_TRANSPORT_CONFIG = vol.Schema(
    sch_bridge_dict_factory() | sch_comms_dict_factory(), extra=vol.PREVENT_EXTRA
)
