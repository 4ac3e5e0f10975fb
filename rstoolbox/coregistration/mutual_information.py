# -*- coding: utf-8 -*-
"""
Mutual Information Co-Registration - Translational shift search.

Shifts a slave raster to match a master (reference) raster. A discrete set
of candidate x/y shifts is evaluated: for each candidate, master and
shifted slave values at random sample locations are binned into a joint
histogram and their mutual information is computed. The candidate with
maximum mutual information wins.

Only translations are considered. No rotation or non-linear warping is
estimated, so imagery should already be geometrically corrected.

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
2026-02-12

Modified
--------
2026-03-02
"""

# Standard library
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

# Third-party
import numpy as np

# rstoolbox internal
from rstoolbox.coregistration.base import (
    CoRegistration,
    CoRegistrationReport,
    shift_key,
)
from rstoolbox.coregistration.utils import (
    OVERLAP_SHRINK,
    bin_edges,
    candidate_shifts,
    discretize,
    joint_histogram,
    mutual_information,
    sampling_extent,
)
from rstoolbox.IO.geotiff import write_raster
from rstoolbox.exceptions import (
    BandCountMismatchError,
    InsufficientOverlapError,
    ProjectionMismatchError,
    ValidationError,
)
from rstoolbox.raster import RasterImage
from rstoolbox.versioning import processor_version

logger = logging.getLogger(__name__)

DEFAULT_SHIFT = 3
DEFAULT_SHIFT_INCREMENT = 1.0
DEFAULT_N_SAMPLES = 500
DEFAULT_N_BINS = 100

ShiftSpec = Union[float, Sequence[Sequence[float]], np.ndarray]


def _evaluate_candidate(
    shift: np.ndarray,
    slave: RasterImage,
    xy: np.ndarray,
    master_bins: np.ndarray,
    slave_edges: np.ndarray,
    n_bins: int,
) -> Tuple[float, np.ndarray]:
    """Mutual information between master samples and one shifted slave.

    Samples falling outside the shifted slave, or on missing slave
    cells, are dropped from the histogram.
    """
    moved = slave.shift(shift[0], shift[1])
    slave_values = moved.values_at(xy[:, 0], xy[:, 1])
    slave_bins = discretize(slave_values, slave_edges)
    joint = joint_histogram(master_bins, slave_bins, n_bins)
    return mutual_information(joint), joint


@processor_version('0.1.0')
class MutualInformationCoRegistration(CoRegistration):
    """Co-registration by maximizing mutual information over shifts.

    Parameters
    ----------
    shift : float or array-like
        Maximal absolute shift radius in pixels of the master resolution,
        tested as ``-shift .. shift`` in steps of ``shift_increment`` on
        both axes. Alternatively an ``(N, 2)`` array of explicit
        ``(x, y)`` pixel offsets; only those are tested.
    shift_increment : float
        Step between tested offsets, in pixels. Ignored for explicit
        offsets.
    n_samples : int
        Number of random sample locations.
    n_bins : int
        Number of histogram bins per image.
    max_workers : int
        Threads used to evaluate candidates. ``1`` evaluates serially.
    seed : int or np.random.Generator, optional
        Seed for the sample locations. Fixed seeds give reproducible
        results.
    verbose : bool
        Log the identified shift at INFO instead of DEBUG level.

    Raises
    ------
    ValidationError
        For non-positive ``n_samples``, ``n_bins`` or ``max_workers``.

    Examples
    --------
    >>> coreg = MutualInformationCoRegistration(shift=3, n_samples=500)
    >>> report = coreg.estimate(master, slave)
    >>> report.best_shift
    (60.0, -30.0)
    >>> aligned = coreg.apply(slave, report)
    """

    def __init__(
        self,
        shift: ShiftSpec = DEFAULT_SHIFT,
        shift_increment: float = DEFAULT_SHIFT_INCREMENT,
        n_samples: int = DEFAULT_N_SAMPLES,
        n_bins: int = DEFAULT_N_BINS,
        max_workers: int = 1,
        seed: Optional[Union[int, np.random.Generator]] = None,
        verbose: bool = False,
    ) -> None:
        if n_samples < 1:
            raise ValidationError(f"n_samples must be >= 1, got {n_samples}")
        if n_bins < 1:
            raise ValidationError(f"n_bins must be >= 1, got {n_bins}")
        if max_workers < 1:
            raise ValidationError(
                f"max_workers must be >= 1, got {max_workers}"
            )
        self.shift = shift
        self.shift_increment = shift_increment
        self.n_samples = int(n_samples)
        self.n_bins = int(n_bins)
        self.max_workers = int(max_workers)
        self.seed = seed
        self.verbose = verbose

    @staticmethod
    def _check_compatible(master: RasterImage, slave: RasterImage) -> None:
        if not master.crs_equals(slave):
            raise ProjectionMismatchError(
                f"Projection must be the same for master and slave "
                f"(master: {master.crs}, slave: {slave.crs})"
            )
        if master.band_count != slave.band_count:
            raise BandCountMismatchError(
                f"Slave and master must have the same number of bands "
                f"(master: {master.band_count}, slave: {slave.band_count})"
            )

    def candidate_shifts(self, master: RasterImage) -> np.ndarray:
        """Candidate shifts in map units for a given master raster."""
        return candidate_shifts(
            self.shift, self.shift_increment, master.resolution
        )

    def estimate(
        self,
        master: RasterImage,
        slave: RasterImage,
    ) -> CoRegistrationReport:
        """Search the candidate shifts for maximum mutual information.

        Parameters
        ----------
        master : RasterImage
            Reference raster.
        slave : RasterImage
            Raster to register. Same CRS and band count as master.

        Returns
        -------
        CoRegistrationReport
            Mutual information and joint histogram per candidate, the
            best shift, and the slave moved by it.

        Raises
        ------
        ProjectionMismatchError
            If the CRSs differ.
        BandCountMismatchError
            If the band counts differ.
        InsufficientOverlapError
            If the sampling region is empty, holds no valid master cell,
            or a candidate leaves no valid sample pair.
        DegenerateRangeError
            If either raster has a constant (or fully missing) value
            range.
        """
        self._check_compatible(master, slave)

        shifts = self.candidate_shifts(master)
        logger.debug("Evaluating %d candidate shifts", len(shifts))

        extent = sampling_extent(master, slave, shifts, OVERLAP_SHRINK)
        if extent.is_empty:
            raise InsufficientOverlapError(
                "Master and shifted slave footprints do not overlap"
            )
        xy, master_values = master.sample_random(
            self.n_samples, extent, rng=self.seed
        )
        if xy.shape[0] == 0:
            raise InsufficientOverlapError(
                "No valid master cells inside the sampling region"
            )
        logger.debug("Drew %d samples in %s", xy.shape[0], extent)

        master_edges = bin_edges(
            float(np.nanmin(master.min_value())),
            float(np.nanmax(master.max_value())),
            self.n_bins,
        )
        slave_edges = bin_edges(
            float(np.nanmin(slave.min_value())),
            float(np.nanmax(slave.max_value())),
            self.n_bins,
        )
        master_bins = discretize(master_values, master_edges)

        evaluate = partial(
            _evaluate_candidate,
            slave=slave,
            xy=xy,
            master_bins=master_bins,
            slave_edges=slave_edges,
            n_bins=self.n_bins,
        )
        if self.max_workers == 1:
            results = [evaluate(s) for s in shifts]
        else:
            # map() yields in submission order, not completion order.
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(evaluate, shifts))

        scores = np.array([mi for mi, _ in results])
        best = int(np.argmax(scores))
        best_shift = (float(shifts[best, 0]), float(shifts[best, 1]))

        logger.log(
            logging.INFO if self.verbose else logging.DEBUG,
            "Identified shift in map units (x/y): %g/%g",
            best_shift[0], best_shift[1],
        )

        table = [
            (float(dx), float(dy), float(mi))
            for (dx, dy), mi in zip(shifts, scores)
        ]
        histograms = {
            shift_key(dx, dy): joint
            for (dx, dy), (_, joint) in zip(shifts, results)
        }

        return CoRegistrationReport(
            mutual_information=table,
            joint_histograms=histograms,
            best_shift=best_shift,
            shifted_image=slave.shift(*best_shift),
            metadata={
                'method': 'mutual_information',
                'n_samples': int(xy.shape[0]),
                'n_bins': self.n_bins,
                'sampling_extent': extent,
                'processor_version': self.__processor_version__,
            },
        )

    def apply(
        self,
        slave: RasterImage,
        result: CoRegistrationReport,
    ) -> RasterImage:
        """Translate ``slave`` by the best shift of ``result``."""
        return slave.shift(*result.best_shift)


def coregister_images(
    slave: RasterImage,
    master: RasterImage,
    shift: ShiftSpec = DEFAULT_SHIFT,
    shift_increment: float = DEFAULT_SHIFT_INCREMENT,
    n_samples: int = DEFAULT_N_SAMPLES,
    n_bins: int = DEFAULT_N_BINS,
    report_stats: bool = False,
    verbose: bool = False,
    max_workers: int = 1,
    seed: Optional[Union[int, np.random.Generator]] = None,
    output_path: Optional[Union[str, Path]] = None,
) -> Union[RasterImage, CoRegistrationReport]:
    """Image to image co-registration based on mutual information.

    Shifts ``slave`` to match ``master``. See
    ``MutualInformationCoRegistration`` for the parameters.

    Parameters
    ----------
    slave : RasterImage
        Raster to shift onto master.
    master : RasterImage
        Reference raster.
    report_stats : bool
        If False return only the shifted raster, otherwise the full
        ``CoRegistrationReport``.
    output_path : str or Path, optional
        Also write the shifted raster to this GeoTIFF.

    Returns
    -------
    RasterImage or CoRegistrationReport

    Examples
    --------
    >>> moved = coregister_images(slave, master, shift=3, n_samples=500)
    >>> report = coregister_images(slave, master, report_stats=True)
    >>> report.joint_histograms['2/3'].shape
    (100, 100)
    """
    coreg = MutualInformationCoRegistration(
        shift=shift,
        shift_increment=shift_increment,
        n_samples=n_samples,
        n_bins=n_bins,
        max_workers=max_workers,
        seed=seed,
        verbose=verbose,
    )
    report = coreg.estimate(master, slave)

    if output_path is not None:
        write_raster(report.shifted_image, output_path)

    if report_stats:
        return report
    return report.shifted_image
