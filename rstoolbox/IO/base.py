# -*- coding: utf-8 -*-
"""
IO Base Classes - Reader and writer interfaces for georeferenced rasters.

Readers open a file on construction, expose its metadata as a dict and
load pixel windows or whole files, either as plain arrays or as
``RasterImage`` objects. Writers create a file from a full array and may
update windows of it afterwards. Both are context managers.

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

# Standard library
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

# Third-party
import numpy as np

# rstoolbox internal
from rstoolbox.raster import RasterImage


class ImageReader(ABC):
    """Base class for raster file readers.

    Subclasses fill ``self.metadata`` in ``_load_metadata``; at least the
    keys ``'rows'``, ``'cols'`` and ``'bands'`` are expected.

    Parameters
    ----------
    filepath : str or Path
        File to open.

    Raises
    ------
    FileNotFoundError
        If ``filepath`` does not exist.
    """

    def __init__(self, filepath: Union[str, Path]) -> None:
        self.filepath = Path(filepath)
        if not self.filepath.exists():
            raise FileNotFoundError(f"File not found: {self.filepath}")

        self.metadata: Dict[str, Any] = {}
        self._load_metadata()

    @abstractmethod
    def _load_metadata(self) -> None:
        ...

    @abstractmethod
    def read_chip(
        self,
        row_start: int,
        row_end: int,
        col_start: int,
        col_end: int,
        bands: Optional[List[int]] = None,
    ) -> np.ndarray:
        """Read the pixel window ``[row_start:row_end, col_start:col_end]``.

        ``bands`` holds 0-based band indices; all bands when None. A single
        band comes back 2D, several bands as ``(bands, rows, cols)``.
        Out-of-range windows raise ``ValueError``.
        """
        ...

    def read_full(self, bands: Optional[List[int]] = None) -> np.ndarray:
        """Read every pixel; same band selection and shape rules as
        ``read_chip``."""
        rows, cols = self.metadata['rows'], self.metadata['cols']
        return self.read_chip(0, rows, 0, cols, bands=bands)

    @abstractmethod
    def get_shape(self) -> Tuple[int, ...]:
        """``(rows, cols)``, or ``(rows, cols, bands)`` for several bands."""
        ...

    @abstractmethod
    def get_dtype(self) -> np.dtype:
        ...

    @abstractmethod
    def get_geolocation(self) -> Optional[Dict[str, Any]]:
        """CRS, transform, bounds and resolution, or None if ungeocoded."""
        ...

    @abstractmethod
    def to_raster(self, bands: Optional[List[int]] = None) -> RasterImage:
        """Load the selected bands (all when None) as a ``RasterImage``."""
        ...

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class ImageWriter(ABC):
    """Base class for raster file writers.

    Parameters
    ----------
    filepath : str or Path
        Output file.
    metadata : Dict[str, Any], optional
        Format-specific creation options.
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.filepath = Path(filepath)
        self.metadata = metadata or {}

    @abstractmethod
    def write(
        self,
        data: np.ndarray,
        geolocation: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Create the file from ``(rows, cols)`` or ``(bands, rows, cols)``
        data, georeferenced by the ``'crs'`` and ``'transform'`` entries of
        ``geolocation``."""
        ...

    @abstractmethod
    def write_chip(
        self,
        data: np.ndarray,
        row_start: int,
        col_start: int,
        geolocation: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Overwrite a window of a file created by ``write``, with its
        upper-left pixel at ``(row_start, col_start)``."""
        ...

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
