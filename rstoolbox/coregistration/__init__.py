# -*- coding: utf-8 -*-
"""
Co-Registration Module - Image-to-image alignment of georeferenced rasters.

Provides interfaces and implementations for registering a slave raster to
a master (reference) raster. Co-registration is the prerequisite step for
multi-temporal change analysis in which all images share a common grid.

Key Classes
-----------
- CoRegistration: Abstract base class for co-registration algorithms
- CoRegistrationReport: Per-candidate statistics and the selected shift
- MutualInformationCoRegistration: Shift search maximizing mutual information

Usage
-----
Co-register a slave raster to a master reference:

    >>> from rstoolbox.coregistration import coregister_images
    >>> aligned = coregister_images(slave, master, shift=3, n_samples=500)

or, keeping estimation and application separate:

    >>> from rstoolbox.coregistration import MutualInformationCoRegistration
    >>> coreg = MutualInformationCoRegistration(shift=3, max_workers=4)
    >>> report = coreg.estimate(master, slave)
    >>> aligned = coreg.apply(slave, report)

Dependencies
------------
scipy

License
-------
MIT License
Copyright (c) 2026 rstoolbox contributors
See LICENSE file for full text.

Created
-------
2026-02-06

Modified
--------
2026-03-02
"""

from rstoolbox.coregistration.base import (
    CoRegistration,
    CoRegistrationReport,
    shift_key,
)
from rstoolbox.coregistration.mutual_information import (
    MutualInformationCoRegistration,
    coregister_images,
)

__all__ = [
    'CoRegistration',
    'CoRegistrationReport',
    'MutualInformationCoRegistration',
    'coregister_images',
    'shift_key',
]
