#!/usr/bin/env python3
"""UVR BL-NET - a UVR1611/UVR61-3 poller via the BL-NET bridge.

Works with (amongst others):
- UVR1611 (in 'Current Data' transmission mode)
- UVR61-3 (identification only)
- BL-NET in 1DL, 2DL & CAN modes
"""

from __future__ import annotations

import logging

from blnet_tx import DeviceInfo, UvrRecord  # noqa: F401
from blnet_tx.version import VERSION  # noqa: F401

from .gateway import Gateway, Initialized, Uninitialized, create_gateway  # noqa: F401
from .store import MemoryStore, MqttStore, StateStore, store_factory  # noqa: F401

_LOGGER = logging.getLogger(__name__)