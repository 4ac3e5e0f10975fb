# -*- coding: utf-8 -*-
"""
Co-Registration Base Classes - Abstract interfaces for image co-registration.

Defines the ``CoRegistration`` ABC and the ``CoRegistrationReport`` result
class that co-registration algorithms produce. Co-registration estimates a
translation, in map units, that moves the georeferencing of a slave raster
onto a master (reference) raster.

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

# Standard library
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

# Third-party
import numpy as np
from rasterio.transform import Affine

# rstoolbox internal
from rstoolbox.raster import RasterImage


def shift_key(dx: float, dy: float) -> str:
    """Stringified ``"dx/dy"`` key used to index joint histograms."""
    return f"{dx:g}/{dy:g}"


class CoRegistrationReport:
    """Result of a shift-search co-registration.

    Parameters
    ----------
    mutual_information : List[Tuple[float, float, float]]
        ``(dx, dy, score)`` per candidate shift, in candidate enumeration
        order. Shifts are in map units.
    joint_histograms : Dict[str, np.ndarray]
        Joint probability table per candidate, keyed by ``"dx/dy"``
        (see ``shift_key``). Tables are indexed ``[master_bin, slave_bin]``.
    best_shift : Tuple[float, float]
        Candidate with the highest score (first one on ties).
    shifted_image : RasterImage, optional
        Slave raster translated by ``best_shift``.
    metadata : Dict[str, Any], optional
        Algorithm-specific metadata (sample count, bins, version).

    Attributes
    ----------
    mutual_information : List[Tuple[float, float, float]]
    joint_histograms : Dict[str, np.ndarray]
    best_shift : Tuple[float, float]
    shifted_image : Optional[RasterImage]
    metadata : Dict[str, Any]
    """

    def __init__(
        self,
        mutual_information: List[Tuple[float, float, float]],
        joint_histograms: Dict[str, np.ndarray],
        best_shift: Tuple[float, float],
        shifted_image: Optional[RasterImage] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.mutual_information = mutual_information
        self.joint_histograms = joint_histograms
        self.best_shift = best_shift
        self.shifted_image = shifted_image
        self.metadata = metadata or {}

    @property
    def shifts(self) -> np.ndarray:
        """Candidate shifts, shape ``(N, 2)``."""
        return np.array(
            [(dx, dy) for dx, dy, _ in self.mutual_information],
            dtype=np.float64,
        ).reshape(-1, 2)

    @property
    def scores(self) -> np.ndarray:
        """Score per candidate, shape ``(N,)``."""
        return np.array(
            [mi for _, _, mi in self.mutual_information], dtype=np.float64
        )

    @property
    def best_score(self) -> float:
        return float(self.scores.max())

    @property
    def transform(self) -> Affine:
        """Best shift as an affine translation in map units."""
        return Affine.translation(*self.best_shift)

    def to_table(self) -> np.ndarray:
        """Candidate table as an ``(N, 3)`` array of ``dx, dy, score``."""
        return np.array(self.mutual_information, dtype=np.float64).reshape(
            -1, 3
        )

    def __repr__(self) -> str:
        dx, dy = self.best_shift
        return (
            f"CoRegistrationReport(best_shift=({dx:g}, {dy:g}), "
            f"score={self.best_score:.4f}, "
            f"candidates={len(self.mutual_information)})"
        )


class CoRegistration(ABC):
    """Abstract base class for image co-registration algorithms.

    Co-registration aligns a slave raster to a master (reference) raster by
    estimating a spatial offset. The two-step interface separates
    estimation (``estimate``) from application (``apply``), so the same
    offset can be applied to other rasters of the slave acquisition.
    """

    @abstractmethod
    def estimate(
        self,
        master: RasterImage,
        slave: RasterImage,
    ) -> CoRegistrationReport:
        """Estimate the offset that aligns slave to master.

        Parameters
        ----------
        master : RasterImage
            Reference raster.
        slave : RasterImage
            Raster to be registered.

        Returns
        -------
        CoRegistrationReport
            Per-candidate statistics and the selected shift.

        Raises
        ------
        ValidationError
            If the rasters are incompatible.
        InsufficientOverlapError
            If the rasters do not overlap enough to be compared.
        """
        ...

    @abstractmethod
    def apply(
        self,
        slave: RasterImage,
        result: CoRegistrationReport,
    ) -> RasterImage:
        """Move a raster by an estimated offset.

        Parameters
        ----------
        slave : RasterImage
            Raster to move.
        result : CoRegistrationReport
            Result of a previous ``estimate`` call.

        Returns
        -------
        RasterImage
            Raster aligned to the master grid.
        """
        ...
