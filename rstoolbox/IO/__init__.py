# -*- coding: utf-8 -*-
"""
IO Module - Input/Output Operations for Georeferenced Rasters.

Base data format IO (GeoTIFF) lives at this level. Sensor-specific
metadata readers are organized into submodules (``eo/``) with their typed
metadata in ``models/``.

Dependencies
------------
rasterio

License
-------
MIT License
Copyright (c) 2026 rstoolbox contributors
See LICENSE file for full text.

Created
-------
2026-01-30

Modified
--------
2026-03-02
"""

from rstoolbox.IO.base import ImageReader, ImageWriter
from rstoolbox.IO.geotiff import (
    GeoTIFFReader,
    GeoTIFFWriter,
    read_raster,
    write_raster,
)
from rstoolbox.IO.models import (
    LandsatBand,
    LandsatMetadata,
    RadiometricRescaling,
)
from rstoolbox.IO.eo import read_meta, stack_meta

__all__ = [
    'ImageReader',
    'ImageWriter',
    'GeoTIFFReader',
    'GeoTIFFWriter',
    'read_raster',
    'write_raster',
    'LandsatBand',
    'LandsatMetadata',
    'RadiometricRescaling',
    'read_meta',
    'stack_meta',
]
