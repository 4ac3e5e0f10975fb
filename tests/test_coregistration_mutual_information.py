# -*- coding: utf-8 -*-
"""
Tests for MutualInformationCoRegistration and coregister_images.

Uses synthetic noise rasters whose slave copy is displaced by a known
number of cells, so the correcting shift is known exactly.

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

import logging

import numpy as np
import pytest

from rstoolbox.coregistration import (
    CoRegistrationReport,
    MutualInformationCoRegistration,
    coregister_images,
)
from rstoolbox.exceptions import (
    BandCountMismatchError,
    DegenerateRangeError,
    InsufficientOverlapError,
    ProjectionMismatchError,
    ValidationError,
)
from rstoolbox.raster import RasterImage


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_pair(dx, dy, size=50, res=1.0, bands=1, seed=42, crs='EPSG:32633'):
    """Master raster and a slave whose georeferencing is off by (-dx, -dy).

    The slave holds the same pixels as the master, so translating it by
    ``(dx, dy)`` cells puts it back on the master grid.
    """
    rng = np.random.default_rng(seed)
    shape = (bands, size, size) if bands > 1 else (size, size)
    data = rng.random(shape)
    north = size * res
    master = RasterImage.from_origin(data, 0.0, north, res, res, crs=crs)
    slave = RasterImage.from_origin(
        data.copy(), -dx * res, north - dy * res, res, res, crs=crs
    )
    return master, slave


# ---------------------------------------------------------------------------
# Shift recovery
# ---------------------------------------------------------------------------

class TestShiftRecovery:

    def test_known_shift_scenario(self):
        master, slave = make_pair(2, 3)
        report = coregister_images(
            slave, master, shift=3, shift_increment=1,
            n_samples=300, n_bins=20, report_stats=True, seed=0,
        )
        assert report.best_shift == (2.0, 3.0)
        assert report.shifted_image.extent == master.extent

    def test_returns_shifted_image_by_default(self):
        master, slave = make_pair(2, 3)
        moved = coregister_images(slave, master, n_samples=300, n_bins=20,
                                  seed=0)
        assert isinstance(moved, RasterImage)
        assert moved.extent == master.extent
        np.testing.assert_array_equal(moved.data, slave.data)

    def test_map_units_follow_resolution(self):
        master, slave = make_pair(-1, 2, res=30.0)
        report = coregister_images(slave, master, shift=2, n_samples=400,
                                   n_bins=20, report_stats=True, seed=1)
        assert report.best_shift == (-30.0, 60.0)

    def test_multi_band(self):
        master, slave = make_pair(1, -1, bands=3)
        report = coregister_images(slave, master, shift=2, n_samples=300,
                                   n_bins=20, report_stats=True, seed=2)
        assert report.best_shift == (1.0, -1.0)

    def test_identity_is_argmax(self):
        master, _ = make_pair(0, 0)
        report = coregister_images(master, master, shift=2, n_samples=300,
                                   n_bins=20, report_stats=True, seed=3)
        assert report.best_shift == (0.0, 0.0)
        # Identical bins on both axes: all mass on the diagonal.
        joint = report.joint_histograms['0/0']
        assert np.diag(joint).sum() == pytest.approx(1.0)

    def test_recovery_across_seeds(self):
        recovered = 0
        trials = 10
        for seed in range(trials):
            master, slave = make_pair(-2, 1, seed=100 + seed)
            report = coregister_images(
                slave, master, shift=3, n_samples=500, n_bins=20,
                report_stats=True, seed=seed,
            )
            recovered += report.best_shift == (-2.0, 1.0)
        assert recovered >= 0.9 * trials

    def test_missing_slave_cells_are_dropped(self):
        master, slave = make_pair(2, 3)
        data = slave.data.copy()
        data[0, 10:20, 10:20] = np.nan
        holey = RasterImage(data, slave.transform, crs=slave.crs)
        report = coregister_images(holey, master, n_samples=400, n_bins=20,
                                   report_stats=True, seed=4)
        assert report.best_shift == (2.0, 3.0)


# ---------------------------------------------------------------------------
# Report content
# ---------------------------------------------------------------------------

class TestReport:

    @pytest.fixture
    def report(self):
        master, slave = make_pair(2, 3)
        return coregister_images(slave, master, shift=3, n_samples=300,
                                 n_bins=20, report_stats=True, seed=0)

    def test_report_type(self, report):
        assert isinstance(report, CoRegistrationReport)
        assert report.metadata['method'] == 'mutual_information'
        assert report.metadata['n_bins'] == 20
        assert report.metadata['n_samples'] == 300

    def test_table_in_enumeration_order(self, report):
        table = report.to_table()
        assert table.shape == (49, 3)
        np.testing.assert_array_equal(table[0, :2], [-3.0, -3.0])
        np.testing.assert_array_equal(table[1, :2], [-2.0, -3.0])

    def test_best_shift_is_a_candidate(self, report):
        assert tuple(report.best_shift) in {
            (dx, dy) for dx, dy, _ in report.mutual_information
        }

    def test_mutual_information_non_negative(self, report):
        assert (report.scores >= 0).all()

    def test_joint_histograms(self, report):
        assert len(report.joint_histograms) == 49
        joint = report.joint_histograms['2/3']
        assert joint.shape == (20, 20)
        assert joint.sum() == pytest.approx(1.0)

    def test_independent_noise_scores_near_zero(self):
        rng = np.random.default_rng(11)
        master = RasterImage.from_origin(rng.random((100, 100)), 0.0, 100.0,
                                         1.0, 1.0, crs='EPSG:32633')
        slave = RasterImage.from_origin(rng.random((100, 100)), 0.0, 100.0,
                                        1.0, 1.0, crs='EPSG:32633')
        report = coregister_images(slave, master, shift=2, n_samples=5000,
                                   n_bins=5, report_stats=True, seed=12)
        assert report.metadata['n_samples'] == 5000
        assert report.scores.shape == (25,)
        # Plug-in bias for 5 bins and 5000 pairs is about 0.0016 nats.
        assert (report.scores >= 0).all()
        assert (report.scores < 0.01).all()

    def test_best_is_first_maximum(self, report):
        assert report.best_score == report.scores.max()
        first = int(np.argmax(report.scores))
        assert tuple(report.shifts[first]) == report.best_shift


# ---------------------------------------------------------------------------
# Candidate input
# ---------------------------------------------------------------------------

class TestExplicitShifts:

    def test_single_row(self):
        master, slave = make_pair(2, 3, res=30.0)
        report = coregister_images(slave, master, shift=[[1, -2]],
                                   n_samples=200, n_bins=20,
                                   report_stats=True, seed=0)
        assert len(report.mutual_information) == 1
        assert report.best_shift == (30.0, -60.0)

    def test_explicit_list(self):
        master, slave = make_pair(2, 3)
        report = coregister_images(
            slave, master, shift=np.array([[0, 0], [2, 3], [-2, -3]]),
            n_samples=300, n_bins=20, report_stats=True, seed=0,
        )
        assert [(dx, dy) for dx, dy, _ in report.mutual_information] == [
            (0.0, 0.0), (2.0, 3.0), (-2.0, -3.0)
        ]
        assert report.best_shift == (2.0, 3.0)


# ---------------------------------------------------------------------------
# Determinism and concurrency
# ---------------------------------------------------------------------------

class TestDeterminism:

    def test_same_seed_same_result(self):
        master, slave = make_pair(1, 1)
        a = coregister_images(slave, master, n_samples=200, n_bins=10,
                              report_stats=True, seed=9)
        b = coregister_images(slave, master, n_samples=200, n_bins=10,
                              report_stats=True, seed=9)
        assert a.mutual_information == b.mutual_information

    def test_threaded_matches_serial(self):
        master, slave = make_pair(1, 1)
        serial = coregister_images(slave, master, n_samples=200, n_bins=10,
                                   report_stats=True, seed=9)
        threaded = coregister_images(slave, master, n_samples=200,
                                     n_bins=10, report_stats=True, seed=9,
                                     max_workers=4)
        assert threaded.mutual_information == serial.mutual_information
        assert threaded.best_shift == serial.best_shift

    def test_inputs_not_mutated(self):
        master, slave = make_pair(1, 1)
        transform = slave.transform
        data = slave.data.copy()
        coregister_images(slave, master, n_samples=100, n_bins=10, seed=0)
        assert slave.transform == transform
        np.testing.assert_array_equal(slave.data, data)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TestErrors:

    def test_projection_mismatch(self):
        master, _ = make_pair(0, 0, crs='EPSG:32633')
        _, slave = make_pair(0, 0, crs='EPSG:32632')
        with pytest.raises(ProjectionMismatchError, match="Projection"):
            coregister_images(slave, master)

    def test_band_count_mismatch(self):
        master, _ = make_pair(0, 0, bands=1)
        _, slave = make_pair(0, 0, bands=2)
        with pytest.raises(BandCountMismatchError, match="number of bands"):
            coregister_images(slave, master)

    def test_constant_master(self):
        master, slave = make_pair(0, 0)
        flat = RasterImage(np.ones((50, 50)), master.transform,
                           crs=master.crs)
        with pytest.raises(DegenerateRangeError):
            coregister_images(slave, flat, n_samples=50)

    def test_disjoint_rasters(self):
        master, slave = make_pair(0, 0)
        with pytest.raises(InsufficientOverlapError):
            coregister_images(slave.shift(1000.0, 1000.0), master)

    def test_mismatch_is_value_error(self):
        master, _ = make_pair(0, 0, bands=1)
        _, slave = make_pair(0, 0, bands=2)
        with pytest.raises(ValueError):
            coregister_images(slave, master)

    @pytest.mark.parametrize("kwargs", [
        {'n_samples': 0}, {'n_bins': 0}, {'max_workers': 0},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValidationError):
            MutualInformationCoRegistration(**kwargs)


# ---------------------------------------------------------------------------
# Estimate / apply interface
# ---------------------------------------------------------------------------

class TestEstimateApply:

    def test_apply_uses_best_shift(self):
        master, slave = make_pair(-1, 2)
        coreg = MutualInformationCoRegistration(shift=2, n_samples=300,
                                                n_bins=20, seed=0)
        report = coreg.estimate(master, slave)
        aligned = coreg.apply(slave, report)
        assert aligned.extent == master.extent

    def test_processor_version(self):
        assert MutualInformationCoRegistration.__processor_version__ == '0.1.0'

    def test_verbose_logs_identified_shift(self, caplog):
        master, slave = make_pair(2, 3)
        caplog.set_level(logging.INFO,
                         logger='rstoolbox.coregistration.mutual_information')
        coregister_images(slave, master, n_samples=200, n_bins=20, seed=0,
                          verbose=True)
        assert 'Identified shift in map units (x/y): 2/3' in caplog.text

    def test_quiet_by_default(self, caplog):
        master, slave = make_pair(2, 3)
        caplog.set_level(logging.INFO,
                         logger='rstoolbox.coregistration.mutual_information')
        coregister_images(slave, master, n_samples=200, n_bins=20, seed=0)
        assert 'Identified shift' not in caplog.text

    def test_output_path_writes_geotiff(self, tmp_path):
        from rstoolbox.IO.geotiff import read_raster

        master, slave = make_pair(2, 3)
        out = tmp_path / 'coreg.tif'
        coregister_images(slave, master, n_samples=200, n_bins=20, seed=0,
                          output_path=out)
        written = read_raster(out)
        assert written.extent == master.extent
        np.testing.assert_allclose(written.data, slave.data)
