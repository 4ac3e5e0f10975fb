# -*- coding: utf-8 -*-
"""
Raster Tests - Unit tests for RasterImage and Extent.

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

import warnings

import numpy as np
import pytest
from rasterio.transform import Affine

from rstoolbox.exceptions import ValidationError
from rstoolbox.raster import Extent, RasterImage


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def small_raster():
    """3x4 single-band raster with values 0..11 at 1-unit cells."""
    data = np.arange(12, dtype=np.float64).reshape(3, 4)
    return RasterImage.from_origin(data, 0.0, 3.0, 1.0, 1.0,
                                   crs='EPSG:32633')


@pytest.fixture
def multi_band_raster():
    """2-band 10x10 raster at 30 m cells with a nodata cell."""
    rng = np.random.default_rng(7)
    data = rng.integers(1, 255, size=(2, 10, 10)).astype(np.int16)
    data[1, 4, 4] = -9999
    return RasterImage.from_origin(
        data, 500000.0, 4200300.0, 30.0, 30.0,
        crs='EPSG:32633', nodata=-9999, band_names=['B1', 'B2'],
    )


# ---------------------------------------------------------------------------
# Extent
# ---------------------------------------------------------------------------

class TestExtent:

    def test_intersect(self):
        a = Extent(0, 10, 0, 10)
        b = Extent(5, 15, -5, 5)
        assert a.intersect(b) == Extent(5, 10, 0, 5)

    def test_disjoint_is_empty(self):
        a = Extent(0, 10, 0, 10)
        b = Extent(20, 30, 0, 10)
        assert a.intersect(b).is_empty

    def test_scale_is_centred(self):
        e = Extent(0, 10, 0, 20).scale(0.9)
        assert e.xmin == pytest.approx(0.5)
        assert e.xmax == pytest.approx(9.5)
        assert e.ymin == pytest.approx(1.0)
        assert e.ymax == pytest.approx(19.0)

    def test_translate(self):
        assert Extent(0, 1, 0, 1).translate(2, -3) == Extent(2, 3, -3, -2)

    def test_contains(self):
        e = Extent(0, 10, 0, 10)
        inside = e.contains(np.array([0, 5, 11]), np.array([10, 5, 5]))
        np.testing.assert_array_equal(inside, [True, True, False])


# ---------------------------------------------------------------------------
# RasterImage
# ---------------------------------------------------------------------------

class TestRasterImageGeometry:

    def test_2d_promoted_to_single_band(self, small_raster):
        assert small_raster.band_count == 1
        assert (small_raster.rows, small_raster.cols) == (3, 4)
        assert small_raster.band_names == ['band_1']

    def test_resolution_and_extent(self, multi_band_raster):
        assert multi_band_raster.resolution == (30.0, 30.0)
        assert multi_band_raster.extent == Extent(
            500000.0, 500300.0, 4200000.0, 4200300.0
        )

    def test_shift_moves_georeferencing_only(self, small_raster):
        moved = small_raster.shift(2.0, 3.0)
        assert moved.extent == Extent(2.0, 6.0, 3.0, 6.0)
        assert small_raster.extent == Extent(0.0, 4.0, 0.0, 3.0)
        assert moved.data is small_raster.data
        assert moved.crs == small_raster.crs

    def test_crs_equals(self, small_raster):
        other = RasterImage(small_raster.data, small_raster.transform,
                            crs='EPSG:4326')
        no_crs = RasterImage(small_raster.data, small_raster.transform)
        assert small_raster.crs_equals(small_raster.shift(1, 1))
        assert not small_raster.crs_equals(other)
        assert not small_raster.crs_equals(no_crs)
        assert no_crs.crs_equals(no_crs)

    def test_invalid_dimensions_raise(self):
        with pytest.raises(ValidationError, match="2D or 3D"):
            RasterImage(np.zeros(5), Affine.identity())

    def test_rotated_transform_raises(self):
        with pytest.raises(ValidationError, match="Rotated"):
            RasterImage(np.zeros((2, 2)), Affine.rotation(10))

    def test_band_name_count_mismatch_raises(self):
        with pytest.raises(ValidationError, match="band names"):
            RasterImage(np.zeros((2, 3, 3)), Affine.identity(),
                        band_names=['a'])


class TestRasterImageValues:

    def test_values_at_cell_centres(self, small_raster):
        values = small_raster.values_at([0.5, 3.5], [2.5, 0.5])
        np.testing.assert_array_equal(values[:, 0], [0.0, 11.0])

    def test_values_outside_are_nan(self, small_raster):
        values = small_raster.values_at([-0.5, 4.5, 1.5], [1.5, 1.5, 1.5])
        assert np.isnan(values[0, 0])
        assert np.isnan(values[1, 0])
        assert values[2, 0] == 5.0

    def test_values_follow_shift(self, small_raster):
        moved = small_raster.shift(10.0, 0.0)
        assert moved.values_at([10.5], [2.5])[0, 0] == 0.0
        assert np.isnan(moved.values_at([0.5], [2.5])[0, 0])

    def test_nodata_reads_as_nan(self, multi_band_raster):
        x = 500000.0 + 4.5 * 30.0
        y = 4200300.0 - 4.5 * 30.0
        values = multi_band_raster.values_at([x], [y])
        assert not np.isnan(values[0, 0])
        assert np.isnan(values[0, 1])

    def test_min_max_ignore_nodata(self, multi_band_raster):
        assert multi_band_raster.min_value()[1] >= 1
        assert multi_band_raster.max_value()[1] <= 254
        np.testing.assert_array_equal(
            multi_band_raster.min_value()[0],
            multi_band_raster.data[0].min(),
        )

    def test_min_max_ignore_nan(self):
        data = np.array([[1.0, np.nan], [3.0, 4.0]])
        img = RasterImage.from_origin(data, 0, 2, 1, 1)
        assert img.min_value()[0] == 1.0
        assert img.max_value()[0] == 4.0


class TestSampleRandom:

    def test_samples_inside_extent(self, multi_band_raster):
        extent = Extent(500060.0, 500240.0, 4200060.0, 4200240.0)
        xy, values = multi_band_raster.sample_random(20, extent, rng=1)
        assert xy.shape == (20, 2)
        assert values.shape == (20, 2)
        assert extent.contains(xy[:, 0], xy[:, 1]).all()

    def test_values_match_lookup(self, multi_band_raster):
        xy, values = multi_band_raster.sample_random(30, rng=3)
        looked_up = multi_band_raster.values_at(xy[:, 0], xy[:, 1])
        np.testing.assert_array_equal(values, looked_up)

    def test_no_duplicate_cells(self, small_raster):
        xy, _ = small_raster.sample_random(12, rng=0)
        assert len({tuple(p) for p in xy}) == 12

    def test_size_capped_and_nodata_skipped(self, multi_band_raster):
        xy, values = multi_band_raster.sample_random(1000, rng=0)
        assert xy.shape[0] == 99
        assert not (values == -9999).any()

    def test_reproducible_with_seed(self, multi_band_raster):
        a, _ = multi_band_raster.sample_random(10, rng=42)
        b, _ = multi_band_raster.sample_random(10, rng=42)
        np.testing.assert_array_equal(a, b)

    def test_empty_extent_gives_no_samples(self, small_raster):
        xy, values = small_raster.sample_random(
            5, Extent(100, 110, 100, 110), rng=0
        )
        assert xy.shape == (0, 2)
        assert values.shape == (0, 1)


class TestStack:

    def test_stack_concatenates_bands(self, small_raster):
        other = RasterImage(small_raster.data * 2, small_raster.transform,
                            crs=small_raster.crs, band_names=['double'])
        stacked = RasterImage.stack([small_raster, other])
        assert stacked.band_count == 2
        assert stacked.band_names == ['band_1', 'double']
        np.testing.assert_array_equal(stacked.data[1], small_raster.data[0] * 2)

    def test_stack_rejects_different_grids(self, small_raster):
        with pytest.raises(ValidationError, match="geotransforms"):
            RasterImage.stack([small_raster, small_raster.shift(1, 0)])

    def test_stack_rejects_empty(self):
        with pytest.raises(ValidationError, match="empty"):
            RasterImage.stack([])


# ---------------------------------------------------------------------------
# Per-point cost and affine arithmetic
# ---------------------------------------------------------------------------

class TestLookupCost:

    @pytest.fixture
    def no_full_mask(self, multi_band_raster, monkeypatch):
        """Fail if a full-raster validity mask is built."""
        def _fail():
            raise AssertionError("full-raster mask built")
        monkeypatch.setattr(multi_band_raster, 'valid_mask', _fail)
        return multi_band_raster

    def test_values_at_reads_only_addressed_cells(self, no_full_mask):
        x = 500000.0 + 4.5 * 30.0
        y = 4200300.0 - 4.5 * 30.0
        values = no_full_mask.values_at([x, x + 30.0], [y, y])
        assert np.isnan(values[0, 1])
        assert not np.isnan(values[1, 1])

    def test_sample_random_reads_only_drawn_cells(self, no_full_mask):
        xy, values = no_full_mask.sample_random(1000, rng=0)
        assert xy.shape[0] == 99
        assert not (values == -9999).any()

    def test_sample_random_with_few_valid_cells(self):
        data = np.full((20, 20), np.nan)
        data[3, 4] = 1.0
        data[15, 9] = 2.0
        img = RasterImage.from_origin(data, 0.0, 20.0, 1.0, 1.0)
        xy, values = img.sample_random(1, rng=5)
        assert xy.shape == (1, 2)
        assert values[0, 0] in (1.0, 2.0)
        xy, values = img.sample_random(10, rng=5)
        assert sorted(values[:, 0]) == [1.0, 2.0]


def test_no_affine_operator_warnings(small_raster):
    with warnings.catch_warnings():
        warnings.simplefilter('error')
        moved = small_raster.shift(1.5, -2.0)
        moved.values_at([2.0], [1.5])
        moved.sample_random(3, rng=0)
        assert moved.transform.c == 1.5
        assert moved.transform.f == 1.0
