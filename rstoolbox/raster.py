# -*- coding: utf-8 -*-
"""
Raster Image - In-memory georeferenced raster grids.

Provides ``RasterImage``, a multi-band pixel array bound to a north-up
affine geotransform and a coordinate reference system, and ``Extent``, the
axis-aligned bounding box in map units used for overlap computations.

A ``RasterImage`` supports the operations co-registration needs: reading
values at arbitrary map coordinates (nearest cell), drawing random cell
samples within an extent, and producing translated copies whose pixel
content is untouched while the georeferencing moves.

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
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

# Third-party
import numpy as np
from rasterio.crs import CRS
from rasterio.transform import Affine, from_origin

# rstoolbox internal
from rstoolbox.exceptions import ValidationError


@dataclass(frozen=True)
class Extent:
    """Axis-aligned bounding box in map units.

    Parameters
    ----------
    xmin, xmax : float
        Horizontal bounds.
    ymin, ymax : float
        Vertical bounds.
    """

    xmin: float
    xmax: float
    ymin: float
    ymax: float

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def is_empty(self) -> bool:
        """True when the box has no positive area."""
        return self.xmax <= self.xmin or self.ymax <= self.ymin

    def intersect(self, other: 'Extent') -> 'Extent':
        """Intersection of two extents. May be empty (see ``is_empty``)."""
        return Extent(
            max(self.xmin, other.xmin),
            min(self.xmax, other.xmax),
            max(self.ymin, other.ymin),
            min(self.ymax, other.ymax),
        )

    def scale(self, factor: float) -> 'Extent':
        """Grow or shrink the extent about its centre.

        Parameters
        ----------
        factor : float
            Multiplier applied to width and height. ``0.9`` shrinks the
            box to 90% of its size on each axis.

        Returns
        -------
        Extent
        """
        cx = (self.xmin + self.xmax) / 2.0
        cy = (self.ymin + self.ymax) / 2.0
        half_w = self.width * factor / 2.0
        half_h = self.height * factor / 2.0
        return Extent(cx - half_w, cx + half_w, cy - half_h, cy + half_h)

    def translate(self, dx: float, dy: float) -> 'Extent':
        return Extent(self.xmin + dx, self.xmax + dx,
                      self.ymin + dy, self.ymax + dy)

    def contains(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Element-wise test whether points fall inside (closed box)."""
        x = np.asarray(x)
        y = np.asarray(y)
        return (
            (x >= self.xmin) & (x <= self.xmax)
            & (y >= self.ymin) & (y <= self.ymax)
        )


class RasterImage:
    """Multi-band raster with north-up georeferencing.

    Parameters
    ----------
    data : np.ndarray
        Pixel values. Shape ``(rows, cols)`` for single band or
        ``(bands, rows, cols)`` for multi-band. Stored as given; a 2D
        array is promoted to a single band.
    transform : Affine
        Geotransform mapping (col, row) pixel corners to map (x, y).
        Rotated grids are not supported.
    crs : CRS or str, optional
        Coordinate reference system. Anything accepted by
        ``rasterio.crs.CRS.from_user_input`` (e.g. ``'EPSG:32633'``).
    nodata : float, optional
        Value marking missing cells. NaN cells are always missing.
    band_names : Sequence[str], optional
        One name per band. Defaults to ``band_1 .. band_n``.

    Raises
    ------
    ValidationError
        If the array is not 2D/3D, the transform is rotated, or the band
        names do not match the band count.

    Examples
    --------
    >>> img = RasterImage.from_origin(np.zeros((50, 50)), 0.0, 50.0, 1.0, 1.0)
    >>> img.extent
    Extent(xmin=0.0, xmax=50.0, ymin=0.0, ymax=50.0)
    >>> img.shift(2.0, 3.0).extent
    Extent(xmin=2.0, xmax=52.0, ymin=3.0, ymax=53.0)
    """

    def __init__(
        self,
        data: np.ndarray,
        transform: Affine,
        crs: Optional[Union[CRS, str]] = None,
        nodata: Optional[float] = None,
        band_names: Optional[Sequence[str]] = None,
    ) -> None:
        data = np.asarray(data)
        if data.ndim == 2:
            data = data[np.newaxis, :, :]
        if data.ndim != 3:
            raise ValidationError(
                f"Raster data must be 2D or 3D, got {data.ndim}D"
            )
        if transform.b != 0 or transform.d != 0:
            raise ValidationError(
                "Rotated geotransforms are not supported"
            )
        if band_names is None:
            band_names = [f"band_{i + 1}" for i in range(data.shape[0])]
        elif len(band_names) != data.shape[0]:
            raise ValidationError(
                f"Got {len(band_names)} band names for "
                f"{data.shape[0]} bands"
            )

        self.data = data
        self.transform = transform
        self.crs = (
            CRS.from_user_input(crs) if crs is not None else None
        )
        self.nodata = nodata
        self.band_names: List[str] = list(band_names)

    @classmethod
    def from_origin(
        cls,
        data: np.ndarray,
        west: float,
        north: float,
        res_x: float,
        res_y: float,
        **kwargs,
    ) -> 'RasterImage':
        """Build a raster from its upper-left corner and cell size.

        Extra keyword arguments are passed to the constructor.
        """
        return cls(data, from_origin(west, north, res_x, res_y), **kwargs)

    @classmethod
    def stack(cls, images: Sequence['RasterImage']) -> 'RasterImage':
        """Combine rasters on the same grid into one multi-band raster.

        Parameters
        ----------
        images : Sequence[RasterImage]
            Rasters sharing shape, geotransform and CRS.

        Returns
        -------
        RasterImage
            Bands in input order; band names carried over.

        Raises
        ------
        ValidationError
            If ``images`` is empty or the grids differ.
        """
        if not images:
            raise ValidationError("Cannot stack an empty list of rasters")
        first = images[0]
        for img in images[1:]:
            if (img.rows, img.cols) != (first.rows, first.cols):
                raise ValidationError(
                    f"Raster shapes differ: {(first.rows, first.cols)} "
                    f"vs {(img.rows, img.cols)}"
                )
            if not img.transform.almost_equals(first.transform):
                raise ValidationError("Raster geotransforms differ")
            if not img.crs_equals(first):
                raise ValidationError("Raster CRSs differ")

        data = np.concatenate([img.data for img in images], axis=0)
        names = [name for img in images for name in img.band_names]
        return cls(data, first.transform, crs=first.crs,
                   nodata=first.nodata, band_names=names)

    @property
    def band_count(self) -> int:
        return self.data.shape[0]

    @property
    def rows(self) -> int:
        return self.data.shape[1]

    @property
    def cols(self) -> int:
        return self.data.shape[2]

    @property
    def resolution(self) -> Tuple[float, float]:
        """Cell size ``(res_x, res_y)`` in map units, both positive."""
        return (abs(self.transform.a), abs(self.transform.e))

    @property
    def extent(self) -> Extent:
        t = self.transform
        xs = (t.c, t.c + t.a * self.cols)
        ys = (t.f, t.f + t.e * self.rows)
        return Extent(min(xs), max(xs), min(ys), max(ys))

    def crs_equals(self, other: 'RasterImage') -> bool:
        """Whether both rasters share a reference system.

        Two rasters without a CRS are considered equal.
        """
        if self.crs is None or other.crs is None:
            return self.crs is None and other.crs is None
        return self.crs == other.crs

    def shift(self, dx: float = 0.0, dy: float = 0.0) -> 'RasterImage':
        """Translate the georeferencing by ``(dx, dy)`` map units.

        Pixel values are not resampled; the returned raster shares the
        pixel array with this one.

        Parameters
        ----------
        dx : float
            Offset added to every x coordinate.
        dy : float
            Offset added to every y coordinate.

        Returns
        -------
        RasterImage
        """
        t = self.transform
        return RasterImage(
            self.data,
            Affine(t.a, t.b, t.c + dx, t.d, t.e, t.f + dy),
            crs=self.crs,
            nodata=self.nodata,
            band_names=self.band_names,
        )

    def _missing(self, values: np.ndarray) -> np.ndarray:
        """True where ``values`` (gathered from ``data``) are NaN or nodata."""
        missing = np.zeros(values.shape, dtype=bool)
        if np.issubdtype(values.dtype, np.floating):
            missing |= np.isnan(values)
        if self.nodata is not None:
            missing |= values == self.nodata
        return missing

    def valid_mask(self) -> np.ndarray:
        """Boolean array, same shape as ``data``, False on missing cells."""
        return ~self._missing(self.data)

    def _masked_float(self) -> np.ndarray:
        return np.where(
            self.valid_mask(), self.data.astype(np.float64), np.nan
        )

    def min_value(self) -> np.ndarray:
        """Per-band minimum, ignoring missing cells. Shape ``(bands,)``."""
        return np.nanmin(self._masked_float(), axis=(1, 2))

    def max_value(self) -> np.ndarray:
        """Per-band maximum, ignoring missing cells. Shape ``(bands,)``."""
        return np.nanmax(self._masked_float(), axis=(1, 2))

    def values_at(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Read cell values at map coordinates.

        Only the addressed cells are touched, so the cost grows with the
        number of points rather than the raster size.

        Parameters
        ----------
        x, y : np.ndarray
            Map coordinates, shape ``(N,)``.

        Returns
        -------
        np.ndarray
            Float array of shape ``(N, bands)``. NaN where the point lies
            outside the raster or the cell is missing.
        """
        x = np.atleast_1d(np.asarray(x, dtype=np.float64))
        y = np.atleast_1d(np.asarray(y, dtype=np.float64))

        # North-up: col = (x - c) / a, row = (y - f) / e
        t = self.transform
        col_f = (x - float(t.c)) / float(t.a)
        row_f = (y - float(t.f)) / float(t.e)
        finite = np.isfinite(col_f) & np.isfinite(row_f)
        cols = np.floor(np.where(finite, col_f, -1)).astype(np.int64)
        rows = np.floor(np.where(finite, row_f, -1)).astype(np.int64)

        inside = (
            finite
            & (cols >= 0) & (cols < self.cols)
            & (rows >= 0) & (rows < self.rows)
        )

        out = np.full((x.size, self.band_count), np.nan, dtype=np.float64)
        gathered = self.data[:, rows[inside], cols[inside]].T
        values = gathered.astype(np.float64)
        values[self._missing(gathered)] = np.nan
        out[inside] = values
        return out

    def _cell_centres(self) -> Tuple[np.ndarray, np.ndarray]:
        """Map x of every column centre and map y of every row centre."""
        t = self.transform
        xs = float(t.c) + (np.arange(self.cols) + 0.5) * float(t.a)
        ys = float(t.f) + (np.arange(self.rows) + 0.5) * float(t.e)
        return xs, ys

    def sample_random(
        self,
        size: int,
        extent: Optional[Extent] = None,
        rng: Optional[Union[int, np.random.Generator]] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Draw random cells whose centres fall inside ``extent``.

        Cells are drawn without replacement. Cells missing in any band are
        never drawn, so fewer than ``size`` samples are returned when the
        extent holds fewer valid cells. Pixel values are read in batches
        of ``size`` random cells until enough valid ones are found.

        Parameters
        ----------
        size : int
            Requested number of samples.
        extent : Extent, optional
            Sampling region. Defaults to the full raster extent.
        rng : int or np.random.Generator, optional
            Seed or generator for reproducible draws.

        Returns
        -------
        xy : np.ndarray
            Cell-centre coordinates, shape ``(n, 2)``.
        values : np.ndarray
            Cell values, shape ``(n, bands)``.
        """
        rng = np.random.default_rng(rng)
        size = int(size)
        if extent is None:
            extent = self.extent

        x_centres, y_centres = self._cell_centres()
        col_sel = np.flatnonzero((x_centres >= extent.xmin)
                                 & (x_centres <= extent.xmax))
        row_sel = np.flatnonzero((y_centres >= extent.ymin)
                                 & (y_centres <= extent.ymax))

        # Flat index k addresses cell (row_sel[k // n], col_sel[k % n]).
        n_cols = col_sel.size
        order = rng.permutation(row_sel.size * n_cols)
        batch = max(size, 1)
        chosen = []
        n_chosen = 0
        for start in range(0, order.size, batch):
            if n_chosen >= size:
                break
            flat = order[start:start + batch]
            rr = row_sel[flat // n_cols]
            cc = col_sel[flat % n_cols]
            ok = ~self._missing(self.data[:, rr, cc]).any(axis=0)
            chosen.append(flat[ok])
            n_chosen += int(ok.sum())

        flat = (np.concatenate(chosen) if chosen
                else np.empty(0, dtype=np.int64))[:size]
        rr = row_sel[flat // n_cols] if n_cols else flat
        cc = col_sel[flat % n_cols] if n_cols else flat
        xy = np.column_stack([x_centres[cc], y_centres[rr]])
        values = self.data[:, rr, cc].T
        return xy, values

    def __repr__(self) -> str:
        return (
            f"RasterImage(bands={self.band_count}, "
            f"shape=({self.rows}, {self.cols}), "
            f"res={self.resolution}, crs={self.crs})"
        )
