#!/usr/bin/env python3
"""UVR BL-NET - Helper functions."""

from __future__ import annotations

from copy import deepcopy
from typing import Any, TypeAlias

_ConfigT: TypeAlias = dict[str, Any]


def deep_merge(src: _ConfigT, dst: _ConfigT, _dc: bool = False) -> _ConfigT:
    """Deep merge a src dict (precedent) into a dst dict and return the result.

    >>> deep_merge({"comms_params": {"max_attempts": 3}}, {"comms_params": {}})
    {'comms_params': {'max_attempts': 3}}
    """

    new_dst = dst if _dc else deepcopy(dst)  # start with copy of dst, merge src into it
    for key, value in src.items():
        if isinstance(value, dict) and isinstance(new_dst.get(key), dict):
            deep_merge(value, new_dst[key], _dc=True)
        else:
            new_dst[key] = deepcopy(value)  # src takes precedence
    return new_dst
