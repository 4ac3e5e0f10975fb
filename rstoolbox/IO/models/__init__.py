# -*- coding: utf-8 -*-
"""
IO Models - Typed metadata dataclasses.

License
-------
MIT License
Copyright (c) 2026 rstoolbox contributors
See LICENSE file for full text.

Created
-------
2026-02-23

Modified
--------
2026-02-23
"""

from rstoolbox.IO.models.landsat import (
    BAND_CATEGORIES,
    BAND_QUANTITIES,
    LandsatBand,
    LandsatMetadata,
    RadiometricRescaling,
)

__all__ = [
    'BAND_CATEGORIES',
    'BAND_QUANTITIES',
    'LandsatBand',
    'LandsatMetadata',
    'RadiometricRescaling',
]
