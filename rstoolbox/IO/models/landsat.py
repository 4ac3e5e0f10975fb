# -*- coding: utf-8 -*-
"""
Landsat Metadata - Typed metadata for Landsat Level-1 MTL files.

Provides ``LandsatMetadata`` with explicit optional fields for the unified
scene attributes shared by Landsat 4-8 MTL files (current and pre-2012
legacy layouts), ``LandsatBand`` for the per-band file records used to
assemble stacks, and ``RadiometricRescaling`` for the DN to radiance and
reflectance coefficients.

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
2026-03-02
"""

# Standard library
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional


# Allowed vocabularies for band records.
BAND_CATEGORIES = ('image', 'pan', 'index', 'qa')
BAND_QUANTITIES = ('dn', 'tra', 'tre', 'sre', 'bt', 'idx')


@dataclass
class LandsatBand:
    """One band file listed in an MTL file.

    Attributes
    ----------
    name : str
        Band name derived from the file name (``'B1'``, ``'B6_VCID_1'``,
        ``'BQA'``).
    file_name : str
        File name as listed in the metadata, relative to the MTL file.
    category : str
        One of ``BAND_CATEGORIES``.
    quantity : str
        One of ``BAND_QUANTITIES``. Level-1 products carry ``'dn'``.
    resolution : float, optional
        Nominal grid cell size in metres from the metadata.
    """

    name: str
    file_name: str
    category: str = 'image'
    quantity: str = 'dn'
    resolution: Optional[float] = None


@dataclass
class RadiometricRescaling:
    """Per-band linear rescaling coefficients keyed by band name.

    ``radiance = rad_gain[b] * DN + rad_offset[b]`` and likewise for
    top-of-atmosphere reflectance. Reflectance coefficients are only
    published in the current MTL layout.
    """

    rad_gain: Dict[str, float] = field(default_factory=dict)
    rad_offset: Dict[str, float] = field(default_factory=dict)
    ref_gain: Dict[str, float] = field(default_factory=dict)
    ref_offset: Dict[str, float] = field(default_factory=dict)


@dataclass
class LandsatMetadata:
    """Unified metadata of a Landsat Level-1 scene.

    Attributes
    ----------
    metadata_file : Path, optional
        The MTL file the record was read from. Band files are resolved
        relative to its directory.
    legacy : bool
        True for MTL files produced before August 29, 2012.
    spacecraft_id : str, optional
        ``'LANDSAT5'``, ``'LANDSAT7'``, ``'LANDSAT8'``, ...
    sensor_id : str, optional
        ``'TM'``, ``'ETM'``, ``'OLI_TIRS'``, ...
    scene_id : str, optional
        Landsat scene identifier. Not present in legacy files.
    data_type : str, optional
        Product level, e.g. ``'L1T'``.
    acquisition_date : str, optional
        ``YYYY-MM-DD``.
    processing_date : str, optional
        File creation timestamp.
    path, row : int, optional
        WRS path and row.
    sun_azimuth, sun_elevation : float, optional
        Solar angles in degrees.
    earth_sun_distance : float, optional
        Astronomical units; computed from the acquisition date when the
        file does not provide it.
    bands : List[LandsatBand]
        Band file records in metadata order.
    radiometric : RadiometricRescaling
        Rescaling coefficients.
    groups : Dict[str, Dict[str, str]]
        Raw ``GROUP -> {KEY: VALUE}`` content of the file.

    Examples
    --------
    >>> meta = read_meta('LC08_L1TP_193026_20150723_MTL.txt')
    >>> meta.spacecraft_id
    'LANDSAT8'
    >>> meta.band_names[:3]
    ['B1', 'B2', 'B3']
    """

    metadata_file: Optional[Path] = None
    legacy: bool = False

    # Identification
    spacecraft_id: Optional[str] = None
    sensor_id: Optional[str] = None
    scene_id: Optional[str] = None
    data_type: Optional[str] = None

    # Temporal
    acquisition_date: Optional[str] = None
    processing_date: Optional[str] = None

    # WRS-2 location
    path: Optional[int] = None
    row: Optional[int] = None

    # Insolation
    sun_azimuth: Optional[float] = None
    sun_elevation: Optional[float] = None
    earth_sun_distance: Optional[float] = None

    bands: List[LandsatBand] = field(default_factory=list)
    radiometric: RadiometricRescaling = field(
        default_factory=RadiometricRescaling
    )
    groups: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @property
    def band_names(self) -> List[str]:
        return [b.name for b in self.bands]

    @property
    def files(self) -> List[str]:
        return [b.file_name for b in self.bands]

    @property
    def categories(self) -> List[str]:
        return sorted({b.category for b in self.bands})

    @property
    def quantities(self) -> List[str]:
        return sorted({b.quantity for b in self.bands})
