# -*- coding: utf-8 -*-
"""
Landsat Reader - Parse Landsat MTL metadata and stack band GeoTIFFs.

``read_meta`` parses the ``GROUP``/``END_GROUP`` blocks of ``KEY = VALUE``
lines of a Landsat Level-1 MTL file, detects the pre-2012 legacy layout,
and builds a ``LandsatMetadata`` record with unified scene attributes,
band file records and radiometric rescaling coefficients.

``stack_meta`` loads the band files listed in the metadata and stacks
them into multi-band rasters, one per spatial resolution, filtered by band
category and quantity.

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
2026-02-23

Modified
--------
2026-03-02
"""

# Standard library
import datetime
import logging
import math
import re
import warnings
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

# Third-party
import numpy as np
from rasterio.warp import Resampling, reproject

# rstoolbox internal
from rstoolbox.exceptions import MetadataError, ValidationError
from rstoolbox.IO.geotiff import read_raster
from rstoolbox.IO.models.landsat import (
    BAND_CATEGORIES,
    BAND_QUANTITIES,
    LandsatBand,
    LandsatMetadata,
    RadiometricRescaling,
)
from rstoolbox.raster import RasterImage

logger = logging.getLogger(__name__)

# KEY = VALUE, with optional quotes around VALUE
_LINE_RE = re.compile(r'^([A-Za-z0-9_]+)\s*=\s*(.*)$')

# Nominal resolution of the stack returned when only one is requested.
DEFAULT_STACK_RESOLUTION = 30.0

# Resampling kernels accepted for coarse thermal bands.
RESAMPLING_METHODS = {
    'nearest': Resampling.nearest,
    'bilinear': Resampling.bilinear,
}

# Thermal bands per spacecraft, used to pick the grid cell size.
_THERMAL_PREFIXES = {
    'LANDSAT8': ('B10', 'B11'),
}


def _parse_groups(text: str) -> Dict[str, Dict[str, str]]:
    """Split MTL text into ``{group: {key: value}}``.

    Only the innermost group of each entry is recorded; wrapper groups
    holding no entries of their own (``L1_METADATA_FILE``) are dropped.

    Raises
    ------
    MetadataError
        On unparsable lines, entries outside any group, or unbalanced
        ``GROUP``/``END_GROUP`` markers.
    """
    groups: Dict[str, Dict[str, str]] = {}
    stack: List[str] = []

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.replace('\x00', '').strip()
        if not line or line == 'END':
            continue
        match = _LINE_RE.match(line)
        if match is None:
            raise MetadataError(f"Line {lineno}: cannot parse {raw!r}")
        key, value = match.group(1), match.group(2).strip().strip('"')

        if key == 'GROUP':
            stack.append(value)
            groups.setdefault(value, {})
        elif key == 'END_GROUP':
            if not stack or stack[-1] != value:
                raise MetadataError(
                    f"Line {lineno}: END_GROUP {value!r} does not close "
                    f"{stack[-1] if stack else 'any group'!r}"
                )
            stack.pop()
        else:
            if not stack:
                raise MetadataError(
                    f"Line {lineno}: entry {key!r} outside of any GROUP"
                )
            groups[stack[-1]][key] = value

    if stack:
        raise MetadataError(f"Unclosed GROUP {stack[-1]!r}")
    return {name: entries for name, entries in groups.items() if entries}


def _to_float(value: Optional[str], key: str) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as e:
        raise MetadataError(f"{key} is not numeric: {value!r}") from e


def _to_int(value: Optional[str], key: str) -> Optional[int]:
    number = _to_float(value, key)
    return None if number is None else int(number)


def earth_sun_distance(date: Union[str, datetime.date]) -> float:
    """Approximate Earth-Sun distance in astronomical units.

    Parameters
    ----------
    date : str or datetime.date
        Acquisition date (``YYYY-MM-DD`` when given as a string).

    Returns
    -------
    float
    """
    if isinstance(date, str):
        date = datetime.date.fromisoformat(date[:10])
    doy = date.timetuple().tm_yday
    return 1 - 0.01672 * math.cos(math.radians(0.9856 * (doy - 4)))


def _spacecraft(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    digits = ''.join(ch for ch in raw if ch.isdigit())
    return f"LANDSAT{digits}"


def _band_name(file_name: str, prefix: str, strip_zero: bool) -> str:
    name = file_name
    if prefix and name.startswith(prefix + '_'):
        name = name[len(prefix) + 1:]
    name = re.sub(r'\.tif$', '', name, flags=re.IGNORECASE)
    if strip_zero and re.fullmatch(r'B\d0', name):
        # Legacy naming: ..._B10.TIF is band 1
        name = name[:-1]
    return name


def _band_category(name: str, spacecraft: Optional[str]) -> str:
    if 'QA' in name:
        return 'qa'
    if name == 'B8' and spacecraft in ('LANDSAT7', 'LANDSAT8'):
        return 'pan'
    return 'image'


def _band_resolution(
    name: str,
    category: str,
    spacecraft: Optional[str],
    cell_sizes: Dict[str, Optional[float]],
) -> Optional[float]:
    if category == 'pan':
        return cell_sizes['pan']
    thermal = _THERMAL_PREFIXES.get(spacecraft, ('B6',))
    if name.startswith(thermal):
        return cell_sizes['thermal']
    return cell_sizes['reflective']


def _lookup(
    groups: Dict[str, Dict[str, str]],
    candidates: Iterable[Tuple[str, str]],
) -> Optional[str]:
    """First value found among ``(group, key)`` candidates."""
    for group, key in candidates:
        value = groups.get(group, {}).get(key)
        if value is not None:
            return value
    return None


def _radiometric_current(
    groups: Dict[str, Dict[str, str]],
) -> RadiometricRescaling:
    targets = {
        'RADIANCE_MULT': 'rad_gain',
        'RADIANCE_ADD': 'rad_offset',
        'REFLECTANCE_MULT': 'ref_gain',
        'REFLECTANCE_ADD': 'ref_offset',
    }
    rescaling = RadiometricRescaling()
    for key, value in groups.get('RADIOMETRIC_RESCALING', {}).items():
        prefix, sep, band = key.partition('_BAND_')
        if not sep or prefix not in targets:
            continue
        getattr(rescaling, targets[prefix])[f"B{band}"] = _to_float(value, key)
    return rescaling


def _radiometric_legacy(
    groups: Dict[str, Dict[str, str]],
) -> RadiometricRescaling:
    radiance = groups.get('MIN_MAX_RADIANCE', {})
    pixel = groups.get('MIN_MAX_PIXEL_VALUE', {})
    rescaling = RadiometricRescaling()
    for key in radiance:
        if not key.startswith('LMAX_BAND'):
            continue
        band = key[len('LMAX_BAND'):]
        try:
            lmax = _to_float(radiance[key], key)
            lmin = _to_float(radiance[f"LMIN_BAND{band}"], key)
            qmax = _to_float(pixel[f"QCALMAX_BAND{band}"], key)
            qmin = _to_float(pixel[f"QCALMIN_BAND{band}"], key)
        except KeyError as e:
            raise MetadataError(
                f"Incomplete legacy calibration for band {band}: "
                f"missing {e.args[0]}"
            ) from e
        if qmax == qmin:
            raise MetadataError(
                f"QCALMAX equals QCALMIN for band {band}"
            )
        gain = (lmax - lmin) / (qmax - qmin)
        rescaling.rad_gain[f"B{band}"] = gain
        rescaling.rad_offset[f"B{band}"] = lmin - gain * qmin
    return rescaling


def read_meta(filepath: Union[str, Path]) -> LandsatMetadata:
    """Read a Landsat MTL metadata file.

    Handles the current MTL layout as well as the legacy layout of scenes
    processed before August 29, 2012, for which some fields (e.g. the
    scene id) are unavailable.

    Parameters
    ----------
    filepath : str or Path
        Path to the ``..._MTL.txt`` file.

    Returns
    -------
    LandsatMetadata
        Unified scene metadata plus the raw groups.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    MetadataError
        If the file is malformed or lacks ``PRODUCT_METADATA``.

    Examples
    --------
    >>> meta = read_meta('LE07_L1TP_193026_20030712_MTL.txt')
    >>> meta.radiometric.rad_gain['B1']
    0.778740
    """
    filepath = Path(filepath)
    if 'MTL' not in filepath.name:
        warnings.warn(
            f"The Landsat metadata file {filepath.name!r} looks unusual: "
            f"typically the file name contains 'MTL'. Reading it anyway.",
            UserWarning,
            stacklevel=2,
        )
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    groups = _parse_groups(filepath.read_text(errors='replace'))
    product = groups.get('PRODUCT_METADATA')
    if product is None:
        raise MetadataError(
            f"{filepath.name} has no PRODUCT_METADATA group"
        )

    legacy = 'PROCESSING_SOFTWARE' in product
    if legacy:
        logger.info(
            "%s was processed before August 29, 2012. Using the legacy "
            "MTL format; some fields such as SCENE_ID will be missing.",
            filepath.name,
        )

    spacecraft = _spacecraft(product.get('SPACECRAFT_ID'))
    file_info = groups.get('METADATA_FILE_INFO', {})
    sun_group = 'PRODUCT_PARAMETERS' if legacy else 'IMAGE_ATTRIBUTES'

    meta = LandsatMetadata(
        metadata_file=filepath,
        legacy=legacy,
        spacecraft_id=spacecraft,
        sensor_id=product.get('SENSOR_ID'),
        scene_id=file_info.get('LANDSAT_SCENE_ID'),
        data_type=product.get('PRODUCT_TYPE' if legacy else 'DATA_TYPE'),
        acquisition_date=product.get(
            'ACQUISITION_DATE' if legacy else 'DATE_ACQUIRED'
        ),
        processing_date=file_info.get(
            'PRODUCT_CREATION_TIME' if legacy else 'FILE_DATE'
        ),
        path=_to_int(product.get('WRS_PATH'), 'WRS_PATH'),
        row=_to_int(
            product.get('STARTING_ROW' if legacy else 'WRS_ROW'), 'WRS_ROW'
        ),
        sun_azimuth=_to_float(
            groups.get(sun_group, {}).get('SUN_AZIMUTH'), 'SUN_AZIMUTH'
        ),
        sun_elevation=_to_float(
            groups.get(sun_group, {}).get('SUN_ELEVATION'), 'SUN_ELEVATION'
        ),
        groups=groups,
    )

    distance = _to_float(
        groups.get('IMAGE_ATTRIBUTES', {}).get('EARTH_SUN_DISTANCE'),
        'EARTH_SUN_DISTANCE',
    )
    if distance is None and meta.acquisition_date:
        distance = earth_sun_distance(meta.acquisition_date)
    meta.earth_sun_distance = distance

    cell_sizes = {
        'pan': _to_float(_lookup(groups, [
            ('PROJECTION_PARAMETERS', 'GRID_CELL_SIZE_PANCHROMATIC'),
            ('PRODUCT_METADATA', 'GRID_CELL_SIZE_PAN'),
        ]), 'GRID_CELL_SIZE_PANCHROMATIC'),
        'reflective': _to_float(_lookup(groups, [
            ('PROJECTION_PARAMETERS', 'GRID_CELL_SIZE_REFLECTIVE'),
            ('PRODUCT_METADATA', 'GRID_CELL_SIZE_REF'),
        ]), 'GRID_CELL_SIZE_REFLECTIVE'),
        'thermal': _to_float(_lookup(groups, [
            ('PROJECTION_PARAMETERS', 'GRID_CELL_SIZE_THERMAL'),
            ('PRODUCT_METADATA', 'GRID_CELL_SIZE_THM'),
        ]), 'GRID_CELL_SIZE_THERMAL'),
    }

    files = [
        value for key, value in product.items()
        if 'FILE_NAME' in key and 'BAND' in key
    ]
    if files:
        prefix = files[0].split('_B')[0]
        for file_name in files:
            name = _band_name(file_name, prefix, legacy)
            category = _band_category(name, spacecraft)
            meta.bands.append(LandsatBand(
                name=name,
                file_name=file_name,
                category=category,
                quantity='dn',
                resolution=_band_resolution(
                    name, category, spacecraft, cell_sizes
                ),
            ))
    logger.debug("Parsed %d band records from %s",
                 len(meta.bands), filepath.name)

    meta.radiometric = (
        _radiometric_legacy(groups) if legacy
        else _radiometric_current(groups)
    )
    return meta


def _as_list(value: Union[str, Sequence[str]]) -> List[str]:
    return [value] if isinstance(value, str) else list(value)


def _check_available(
    requested: List[str],
    available: List[str],
    label: str,
) -> List[str]:
    present = [r for r in requested if r in available]
    missing = [r for r in requested if r not in available]
    if not present:
        raise ValidationError(
            f"None of the specified {label} exist according to the "
            f"metadata. You specified: {', '.join(requested)}"
        )
    if missing:
        warnings.warn(
            f"The following specified {label} don't exist: "
            f"{', '.join(missing)}. Returning available {label}: "
            f"{', '.join(present)}",
            UserWarning,
            stacklevel=3,
        )
    return present


def _resample_onto(
    layer: RasterImage,
    reference: RasterImage,
    method: str,
) -> RasterImage:
    """Warp ``layer`` onto the grid of ``reference``."""
    out = np.zeros(
        (layer.band_count, reference.rows, reference.cols),
        dtype=layer.data.dtype,
    )
    reproject(
        source=layer.data,
        destination=out,
        src_transform=layer.transform,
        src_crs=layer.crs,
        dst_transform=reference.transform,
        dst_crs=reference.crs,
        src_nodata=layer.nodata,
        dst_nodata=layer.nodata,
        resampling=RESAMPLING_METHODS[method],
    )
    return RasterImage(out, reference.transform, crs=reference.crs,
                       nodata=layer.nodata, band_names=layer.band_names)


def stack_meta(
    meta: Union[str, Path, LandsatMetadata],
    all_resolutions: bool = False,
    quantity: Union[str, Sequence[str]] = 'all',
    category: Union[str, Sequence[str]] = 'image',
    resample_tir: bool = False,
    resampling_method: str = 'nearest',
) -> Union[RasterImage, Dict[str, RasterImage]]:
    """Stack the band files of a Landsat scene.

    By default only 30 m image bands are returned, i.e. neither the
    panchromatic band nor thermal bands delivered at another resolution.
    Scenes processed before February 25, 2010 ship thermal bands at their
    native 60 m or 120 m; ``resample_tir`` brings them onto the 30 m grid
    so they join the 30 m stack.

    Parameters
    ----------
    meta : str, Path or LandsatMetadata
        MTL file path or metadata already read with ``read_meta``.
    all_resolutions : bool
        If True, return one stack per spatial resolution.
    quantity : str or Sequence[str]
        Quantities to include: ``'dn'``, ``'tra'``, ``'tre'``, ``'sre'``,
        ``'bt'``, ``'idx'`` or ``'all'``.
    category : str or Sequence[str]
        Categories to include: ``'image'``, ``'pan'``, ``'index'``,
        ``'qa'`` or ``'all'``.
    resample_tir : bool
        Resample bands coarser than 30 m onto the grid of the first
        selected 30 m band.
    resampling_method : str
        ``'nearest'`` or ``'bilinear'``.

    Returns
    -------
    RasterImage or Dict[str, RasterImage]
        The 30 m stack, or ``{'spatRes_<res>m': stack}`` when
        ``all_resolutions`` is True. Band names follow the metadata.

    Raises
    ------
    ValidationError
        On unknown options, when none of the requested quantities or
        categories exist, when no 30 m band matches the selection, or
        when thermal bands should be resampled but no 30 m band is
        selected to resample onto.
    """
    quantity = _as_list(quantity)
    category = _as_list(category)
    bad = [q for q in quantity if q not in BAND_QUANTITIES + ('all',)]
    bad += [c for c in category if c not in BAND_CATEGORIES + ('all',)]
    if bad:
        raise ValidationError(
            f"Unknown quantity/category option(s): {', '.join(bad)}"
        )
    if resampling_method not in RESAMPLING_METHODS:
        raise ValidationError(
            f"Unknown resampling_method {resampling_method!r}; expected "
            f"one of {', '.join(RESAMPLING_METHODS)}"
        )

    if not isinstance(meta, LandsatMetadata):
        meta = read_meta(meta)

    if 'all' in quantity:
        quantity = meta.quantities
    if 'all' in category:
        category = meta.categories
    quantity = _check_available(quantity, meta.quantities, 'quantities')
    category = _check_available(category, meta.categories, 'categories')

    base_dir = (
        meta.metadata_file.parent if meta.metadata_file is not None
        else Path('.')
    )
    selected = [
        b for b in meta.bands
        if b.category in category and b.quantity in quantity
    ]

    layers = []
    for band in selected:
        raster = read_raster(base_dir / band.file_name)
        names = (
            [band.name] if raster.band_count == 1
            else [f"{band.name}_{i + 1}" for i in range(raster.band_count)]
        )
        raster.band_names = names
        layers.append(raster)

    resolutions = [layer.resolution[0] for layer in layers]
    coarse = [i for i, res in enumerate(resolutions)
              if res > DEFAULT_STACK_RESOLUTION]
    if coarse and resample_tir:
        reference = next(
            (layer for layer, res in zip(layers, resolutions)
             if np.isclose(res, DEFAULT_STACK_RESOLUTION)),
            None,
        )
        if reference is None:
            raise ValidationError(
                "Cannot resample TIR bands: no 30m band is selected"
            )
        for i in coarse:
            logger.debug("Resampling %s from %gm to 30m (%s)",
                         layers[i].band_names[0], resolutions[i],
                         resampling_method)
            layers[i] = _resample_onto(layers[i], reference,
                                       resampling_method)
            resolutions[i] = DEFAULT_STACK_RESOLUTION
    elif coarse:
        logger.info(
            "Landsat data includes TIR band(s) which were not resampled "
            "to 30m. Set resample_tir=True to get a single stack."
        )

    if all_resolutions:
        wanted = list(dict.fromkeys(resolutions))
    else:
        wanted = [DEFAULT_STACK_RESOLUTION]

    stacks: Dict[str, RasterImage] = {}
    for res in wanted:
        members = [
            layer for layer, layer_res in zip(layers, resolutions)
            if np.isclose(layer_res, res)
        ]
        if members:
            stacks[f"spatRes_{res:g}m"] = RasterImage.stack(members)

    if all_resolutions:
        return stacks
    if not stacks:
        raise ValidationError(
            "No 30m bands match the requested quantities and categories"
        )
    return stacks[f"spatRes_{DEFAULT_STACK_RESOLUTION:g}m"]
