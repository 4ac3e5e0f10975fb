# -*- coding: utf-8 -*-
"""
EO Submodule - Readers for electro-optical multispectral products.

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

from rstoolbox.IO.eo.landsat import earth_sun_distance, read_meta, stack_meta

__all__ = [
    'earth_sun_distance',
    'read_meta',
    'stack_meta',
]
