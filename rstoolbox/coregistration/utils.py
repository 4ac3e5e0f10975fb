# -*- coding: utf-8 -*-
"""
Co-Registration Utilities - Shift candidates, binning and information measures.

Provides helper functions for enumerating candidate shifts, computing the
region that stays valid under every candidate, discretizing intensities
into equal-width bins, building joint histograms, and computing Shannon
entropy and mutual information.

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

# Standard library
from typing import Sequence, Tuple, Union

# Third-party
import numpy as np
from scipy.stats import entropy

# rstoolbox internal
from rstoolbox.exceptions import (
    DegenerateRangeError,
    InsufficientOverlapError,
    ValidationError,
)
from rstoolbox.raster import Extent, RasterImage

# Sampling region is shrunk about its centre by this factor to keep
# samples away from edges.
OVERLAP_SHRINK = 0.9


def candidate_shifts(
    shift: Union[float, Sequence[Sequence[float]], np.ndarray],
    shift_increment: float,
    resolution: Tuple[float, float],
) -> np.ndarray:
    """Enumerate candidate shifts in map units.

    Parameters
    ----------
    shift : float or array-like
        Either a radius ``r`` in pixels, giving offsets
        ``-r, -r + shift_increment, ..., r`` on each axis and their full
        x-by-y grid, or an ``(N, 2)`` array of explicit ``(x, y)`` pixel
        offsets.
    shift_increment : float
        Step between offsets, in pixels (not restricted to integers).
        Ignored for explicit offsets.
    resolution : Tuple[float, float]
        ``(res_x, res_y)`` of the master raster.

    Returns
    -------
    np.ndarray
        Shape ``(N, 2)``, columns ``(dx, dy)``. For a radius, x varies
        fastest.

    Raises
    ------
    ValidationError
        For negative radii, non-positive increments, or explicit offsets
        that are not a non-empty two-column array.
    """
    res = np.asarray(resolution, dtype=np.float64)

    if np.ndim(shift) == 0:
        radius = float(shift)
        if radius < 0:
            raise ValidationError(f"shift radius must be >= 0, got {radius}")
        if shift_increment <= 0:
            raise ValidationError(
                f"shift_increment must be > 0, got {shift_increment}"
            )
        steps = int(np.floor(2 * radius / shift_increment + 1e-9))
        offsets = np.round(
            -radius + shift_increment * np.arange(steps + 1), 12
        )
        gx, gy = np.meshgrid(offsets * res[0], offsets * res[1])
        shifts = np.column_stack([gx.ravel(), gy.ravel()])
    else:
        offsets = np.asarray(shift, dtype=np.float64)
        if offsets.ndim != 2 or offsets.shape[1] != 2 or offsets.shape[0] == 0:
            raise ValidationError(
                f"Explicit shifts must be a non-empty (N, 2) array, "
                f"got shape {offsets.shape}"
            )
        shifts = offsets * res

    # Normalizes -0.0 so histogram keys read "0" rather than "-0".
    return shifts + 0.0


def sampling_extent(
    master: RasterImage,
    slave: RasterImage,
    shifts: np.ndarray,
    shrink: float = OVERLAP_SHRINK,
) -> Extent:
    """Region of the master that every shifted slave covers.

    The slave footprint is translated by the component-wise minimum and
    maximum candidate; the intersection of both footprints with the
    master extent is shrunk about its centre by ``shrink``.

    Parameters
    ----------
    master : RasterImage
        Reference raster.
    slave : RasterImage
        Raster being registered.
    shifts : np.ndarray
        Candidate shifts, shape ``(N, 2)``.
    shrink : float
        Centred scale factor applied to the overlap.

    Returns
    -------
    Extent
        Sampling region. Empty (``is_empty``) if there is no overlap.
    """
    low = shifts.min(axis=0)
    high = shifts.max(axis=0)
    footprint = slave.extent
    overlap = (
        footprint.translate(low[0], low[1])
        .intersect(footprint.translate(high[0], high[1]))
        .intersect(master.extent)
    )
    if overlap.is_empty:
        return overlap
    return overlap.scale(shrink)


def bin_edges(vmin: float, vmax: float, n_bins: int) -> np.ndarray:
    """Equal-width bin edges spanning ``[vmin, vmax]``.

    Parameters
    ----------
    vmin, vmax : float
        Value range.
    n_bins : int
        Number of bins.

    Returns
    -------
    np.ndarray
        Shape ``(n_bins + 1,)``; first and last edge equal the bounds.

    Raises
    ------
    DegenerateRangeError
        If the range is not finite or has zero width.
    """
    if not (np.isfinite(vmin) and np.isfinite(vmax)) or vmax <= vmin:
        raise DegenerateRangeError(
            f"Cannot build bins over value range [{vmin}, {vmax}]"
        )
    return np.linspace(vmin, vmax, n_bins + 1)


def discretize(values: np.ndarray, edges: np.ndarray) -> np.ndarray:
    """Assign values to bins.

    Bins are right-closed ``(a, b]``, except the first, which also
    includes its lower edge.

    Parameters
    ----------
    values : np.ndarray
        Values of any shape.
    edges : np.ndarray
        Monotonic bin edges from ``bin_edges``.

    Returns
    -------
    np.ndarray
        Integer bin index per value, same shape as ``values``. ``-1`` for
        NaN or values outside the edges.
    """
    values = np.asarray(values, dtype=np.float64)
    idx = np.searchsorted(edges, values, side='left') - 1
    idx = np.where(values == edges[0], 0, idx)
    valid = (
        np.isfinite(values) & (values >= edges[0]) & (values <= edges[-1])
    )
    return np.where(valid, idx, -1)


def joint_histogram(
    a_bins: np.ndarray,
    b_bins: np.ndarray,
    n_bins: int,
) -> np.ndarray:
    """Joint probability table of paired bin indices.

    Pairs where either index is ``-1`` are skipped.

    Parameters
    ----------
    a_bins, b_bins : np.ndarray
        Paired bin indices, same shape.
    n_bins : int
        Number of bins per axis.

    Returns
    -------
    np.ndarray
        Shape ``(n_bins, n_bins)``, indexed ``[a_bin, b_bin]``, summing
        to one.

    Raises
    ------
    InsufficientOverlapError
        If no valid pair remains.
    """
    a_bins = np.ravel(a_bins)
    b_bins = np.ravel(b_bins)
    keep = (a_bins >= 0) & (b_bins >= 0)
    if not keep.any():
        raise InsufficientOverlapError(
            "No valid sample pairs to build a joint histogram"
        )
    counts = np.zeros((n_bins, n_bins), dtype=np.float64)
    np.add.at(counts, (a_bins[keep], b_bins[keep]), 1.0)
    return counts / counts.sum()


def shannon_entropy(p: np.ndarray) -> float:
    """Shannon entropy in nats; zero-probability cells contribute nothing."""
    p = np.ravel(p)
    p = p[p > 0]
    if p.size == 0:
        return 0.0
    return float(entropy(p))


def mutual_information(joint: np.ndarray) -> float:
    """Mutual information of a joint probability table.

    ``MI = H(A) + H(B) - H(A, B)``, with marginals taken along the table
    axes. Clipped at zero to absorb floating point round-off.

    Parameters
    ----------
    joint : np.ndarray
        2D joint probability table summing to one.

    Returns
    -------
    float
        Mutual information in nats.
    """
    h_a = shannon_entropy(joint.sum(axis=1))
    h_b = shannon_entropy(joint.sum(axis=0))
    h_ab = shannon_entropy(joint)
    return max(h_a + h_b - h_ab, 0.0)
