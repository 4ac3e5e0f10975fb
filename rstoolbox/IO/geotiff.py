# -*- coding: utf-8 -*-
"""
GeoTIFF Reader/Writer - Read and write GeoTIFF rasters.

Base data format IO for any GeoTIFF file (single Landsat band files,
multi-band stacks, co-registered outputs). Uses rasterio (GDAL) as the
backend.

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
2026-02-09

Modified
--------
2026-03-02
"""

# Standard library
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

# Third-party
import numpy as np
import rasterio
from rasterio.errors import RasterioIOError
from rasterio.windows import Window

# rstoolbox internal
from rstoolbox.IO.base import ImageReader, ImageWriter
from rstoolbox.raster import RasterImage


class GeoTIFFReader(ImageReader):
    """Open a GeoTIFF (or COG) and load it as arrays or ``RasterImage``.

    Parameters
    ----------
    filepath : str or Path
        Path to the GeoTIFF file.

    Attributes
    ----------
    metadata : Dict[str, Any]
        ``format``, ``rows``, ``cols``, ``bands``, ``dtype``, ``crs``,
        ``transform``, ``bounds``, ``resolution``, ``nodata`` and
        ``descriptions`` (per-band description or None).
    dataset : rasterio.DatasetReader
        Open rasterio handle; released by ``close``.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If rasterio cannot open the file.

    Examples
    --------
    >>> with GeoTIFFReader('LC08_..._B4.TIF') as reader:
    ...     raster = reader.to_raster()
    """

    def __init__(self, filepath: Union[str, Path]) -> None:
        self.dataset = None
        super().__init__(filepath)

    def _load_metadata(self) -> None:
        try:
            self.dataset = rasterio.open(str(self.filepath))
        except RasterioIOError as e:
            raise ValueError(
                f"Cannot open {self.filepath.name} as GeoTIFF: {e}"
            ) from e

        ds = self.dataset
        self.metadata = {
            'format': 'GeoTIFF',
            'rows': ds.height,
            'cols': ds.width,
            'bands': ds.count,
            'dtype': str(ds.dtypes[0]),
            'crs': ds.crs,
            'transform': ds.transform,
            'bounds': ds.bounds,
            'resolution': ds.res,
            'nodata': ds.nodata,
            'descriptions': ds.descriptions,
        }

    def _read(
        self,
        window: Optional[Window],
        bands: Optional[List[int]],
    ) -> np.ndarray:
        indexes = None if bands is None else [b + 1 for b in bands]
        data = self.dataset.read(indexes, window=window)
        return data[0] if data.shape[0] == 1 else data

    def read_chip(
        self,
        row_start: int,
        row_end: int,
        col_start: int,
        col_end: int,
        bands: Optional[List[int]] = None,
    ) -> np.ndarray:
        """Read a pixel window; rows and columns are half-open ranges.

        Raises
        ------
        ValueError
            If the window starts before or ends past the image.
        """
        if row_start < 0 or col_start < 0:
            raise ValueError("Start indices must be non-negative")
        if row_end > self.metadata['rows'] or col_end > self.metadata['cols']:
            raise ValueError("End indices exceed image dimensions")
        window = Window(col_start, row_start,
                        col_end - col_start, row_end - row_start)
        return self._read(window, bands)

    def read_full(self, bands: Optional[List[int]] = None) -> np.ndarray:
        return self._read(None, bands)

    def get_shape(self) -> Tuple[int, ...]:
        shape = (self.metadata['rows'], self.metadata['cols'])
        if self.metadata['bands'] > 1:
            shape += (self.metadata['bands'],)
        return shape

    def get_dtype(self) -> np.dtype:
        return np.dtype(self.metadata['dtype'])

    def get_geolocation(self) -> Optional[Dict[str, Any]]:
        keys = ('crs', 'transform', 'bounds', 'resolution')
        return {key: self.metadata[key] for key in keys}

    def to_raster(self, bands: Optional[List[int]] = None) -> RasterImage:
        """Load the file as a ``RasterImage``.

        Band names come from the GeoTIFF band descriptions when present,
        otherwise from the file stem (single band) or ``<stem>_<n>``.
        """
        data = self.read_full(bands=bands)
        if data.ndim == 2:
            data = data[np.newaxis, :, :]

        indices = list(range(self.metadata['bands'])) if bands is None \
            else list(bands)
        stem = self.filepath.stem
        descriptions = self.metadata['descriptions']
        names = []
        for i in indices:
            if descriptions[i]:
                names.append(descriptions[i])
            elif len(indices) == 1:
                names.append(stem)
            else:
                names.append(f"{stem}_{i + 1}")

        return RasterImage(
            data,
            self.metadata['transform'],
            crs=self.metadata['crs'],
            nodata=self.metadata['nodata'],
            band_names=names,
        )

    def close(self) -> None:
        if self.dataset is not None:
            self.dataset.close()
            self.dataset = None


class GeoTIFFWriter(ImageWriter):
    """Write rasters to GeoTIFF.

    ``write`` creates (or overwrites) the file; ``write_chip`` updates a
    window of a file created earlier.

    Parameters
    ----------
    filepath : str or Path
        Output path.
    metadata : Dict[str, Any], optional
        Supported keys: ``'nodata'``, ``'band_names'``, ``'compress'``.
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(filepath, metadata)

    def write(
        self,
        data: np.ndarray,
        geolocation: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Write a full image.

        Parameters
        ----------
        data : np.ndarray
            Shape ``(rows, cols)`` or ``(bands, rows, cols)``.
        geolocation : Dict[str, Any], optional
            ``'crs'`` and ``'transform'`` of the output grid.

        Raises
        ------
        ValueError
            If ``data`` is not 2D or 3D.
        """
        if data.ndim == 2:
            data = data[np.newaxis, :, :]
        if data.ndim != 3:
            raise ValueError(f"Expected 2D or 3D data, got {data.ndim}D")
        geolocation = geolocation or {}

        profile = {
            'driver': 'GTiff',
            'height': data.shape[1],
            'width': data.shape[2],
            'count': data.shape[0],
            'dtype': str(data.dtype),
            'crs': geolocation.get('crs'),
            'transform': geolocation.get('transform'),
            'nodata': self.metadata.get('nodata'),
        }
        if self.metadata.get('compress'):
            profile['compress'] = self.metadata['compress']

        with rasterio.open(str(self.filepath), 'w', **profile) as ds:
            ds.write(data)
            for i, name in enumerate(self.metadata.get('band_names') or []):
                ds.set_band_description(i + 1, name)

    def write_chip(
        self,
        data: np.ndarray,
        row_start: int,
        col_start: int,
        geolocation: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Write a chip into an existing GeoTIFF.

        Raises
        ------
        FileNotFoundError
            If the file has not been created with ``write``.
        ValueError
            If the chip does not fit inside the file.
        """
        if not self.filepath.exists():
            raise FileNotFoundError(f"File not found: {self.filepath}")
        if data.ndim == 2:
            data = data[np.newaxis, :, :]

        with rasterio.open(str(self.filepath), 'r+') as ds:
            if (row_start < 0 or col_start < 0
                    or row_start + data.shape[1] > ds.height
                    or col_start + data.shape[2] > ds.width):
                raise ValueError("Chip exceeds image dimensions")
            window = Window(col_start, row_start,
                            data.shape[2], data.shape[1])
            ds.write(data, window=window)


def read_raster(
    filepath: Union[str, Path],
    bands: Optional[List[int]] = None,
) -> RasterImage:
    """Read a GeoTIFF into a ``RasterImage``.

    Parameters
    ----------
    filepath : str or Path
        Path to the GeoTIFF file.
    bands : List[int], optional
        Band indices (0-based). If None, read all bands.

    Returns
    -------
    RasterImage
    """
    with GeoTIFFReader(filepath) as reader:
        return reader.to_raster(bands=bands)


def write_raster(
    image: RasterImage,
    filepath: Union[str, Path],
    compress: Optional[str] = None,
) -> Path:
    """Write a ``RasterImage`` to GeoTIFF.

    Parameters
    ----------
    image : RasterImage
        Raster to write; band names become band descriptions.
    filepath : str or Path
        Output path.
    compress : str, optional
        GDAL compression name (e.g. ``'deflate'``).

    Returns
    -------
    Path
        The written file.
    """
    writer = GeoTIFFWriter(
        filepath,
        metadata={
            'nodata': image.nodata,
            'band_names': image.band_names,
            'compress': compress,
        },
    )
    with writer:
        writer.write(
            image.data,
            geolocation={'crs': image.crs, 'transform': image.transform},
        )
    return writer.filepath
