#!/usr/bin/env python3
"""BL-NET - a UVR1611/UVR61-3 protocol client via the BL-NET bridge."""

__version__ = "0.3.1"
VERSION = __version__
