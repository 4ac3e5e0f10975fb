# -*- coding: utf-8 -*-
"""
rstoolbox - Remote sensing utilities for satellite imagery workflows.

Image-to-image co-registration by mutual information maximization,
Landsat MTL metadata parsing, and stacking of Landsat band files into
multi-band rasters.

Dependencies
------------
numpy
scipy
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

__version__ = "0.1.0"

from rstoolbox.exceptions import (
    RsToolboxError,
    ValidationError,
    ProjectionMismatchError,
    BandCountMismatchError,
    DegenerateRangeError,
    InsufficientOverlapError,
    MetadataError,
)
from rstoolbox.raster import Extent, RasterImage
from rstoolbox.coregistration import (
    CoRegistration,
    CoRegistrationReport,
    MutualInformationCoRegistration,
    coregister_images,
)
from rstoolbox.IO import read_meta, read_raster, stack_meta, write_raster

__all__ = [
    'RsToolboxError',
    'ValidationError',
    'ProjectionMismatchError',
    'BandCountMismatchError',
    'DegenerateRangeError',
    'InsufficientOverlapError',
    'MetadataError',
    'Extent',
    'RasterImage',
    'CoRegistration',
    'CoRegistrationReport',
    'MutualInformationCoRegistration',
    'coregister_images',
    'read_meta',
    'read_raster',
    'stack_meta',
    'write_raster',
]
