#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for grid resampling.
"""

import unittest
import numpy as np

from raster_grid.core.grid import Grid, GridGeometry
from raster_grid.core.exceptions import InvalidParameter
from raster_grid.processing.resample import resample, resample_to, align


class TestResample(unittest.TestCase):
    """Test nearest and bilinear resampling."""

    def setUp(self):
        self.geometry = GridGeometry(width=4, height=4, origin_x=0.0, origin_y=40.0,
                                     cellsize_x=10.0, cellsize_y=10.0)
        # Values increase linearly to the east: 0, 10, 20, 30
        self.ramp = Grid(np.tile(np.arange(4) * 10.0, (4, 1)), self.geometry)
        rng = np.random.default_rng(7)
        values = rng.uniform(0, 1000, (4, 4))
        values[1, 2] = np.nan
        self.random = Grid(values, self.geometry)

    def test_nearest_identity(self):
        result = resample(self.random, self.geometry, method="nearest")
        np.testing.assert_array_equal(result.values, self.random.values)

    def test_bilinear_identity(self):
        result = resample(self.ramp, self.geometry, method="bilinear")
        np.testing.assert_allclose(result.values, self.ramp.values)

    def test_nearest_downsample(self):
        target = GridGeometry(width=2, height=2, origin_x=0.0, origin_y=40.0,
                              cellsize_x=20.0, cellsize_y=20.0)
        result = resample(self.ramp, target, method="nearest")
        # Target centres at x=10 and x=30 tie between source cells; higher index wins
        np.testing.assert_array_equal(result.values, [[10.0, 30.0], [10.0, 30.0]])

    def test_bilinear_interpolates_interior(self):
        # One target cell centred between source columns 1 and 2 (x = 20)
        target = GridGeometry(width=1, height=1, origin_x=15.0, origin_y=25.0,
                              cellsize_x=10.0, cellsize_y=10.0)
        result = resample(self.ramp, target, method="bilinear")
        self.assertAlmostEqual(result.get(0, 0), 15.0)

    def test_bilinear_edge_falls_back_to_nearest(self):
        # Centre at x = 2, within half a cell of the western border
        target = GridGeometry(width=1, height=1, origin_x=0.0, origin_y=40.0,
                              cellsize_x=4.0, cellsize_y=4.0)
        result = resample(self.ramp, target, method="bilinear")
        self.assertEqual(result.get(0, 0), 0.0)

    def test_bilinear_missing_corner_is_nodata(self):
        # Centre between source rows 1-2 and columns 2-3; (1, 2) is missing
        target = GridGeometry(width=1, height=1, origin_x=25.0, origin_y=25.0,
                              cellsize_x=10.0, cellsize_y=10.0)
        result = resample(self.random, target, method="bilinear")
        self.assertEqual(result.get(0, 0), result.nodata)

    def test_out_of_bounds_is_nodata(self):
        target = GridGeometry(width=3, height=1, origin_x=30.0, origin_y=40.0,
                              cellsize_x=10.0, cellsize_y=10.0)
        for method in ("nearest", "bilinear"):
            result = resample(self.ramp, target, method=method)
            self.assertEqual(result.get(0, 0), 30.0)
            self.assertEqual(result.get(0, 1), result.nodata)
            self.assertEqual(result.get(0, 2), result.nodata)

    def test_unknown_method(self):
        with self.assertRaises(InvalidParameter):
            resample(self.ramp, self.geometry, method="cubic")
        with self.assertRaises(InvalidParameter):
            resample(self.ramp, self.geometry, method="")

    def test_resample_to_and_align(self):
        coarse = Grid(np.ones((2, 2)), GridGeometry(width=2, height=2, origin_x=0.0, origin_y=40.0,
                                                     cellsize_x=20.0, cellsize_y=20.0))
        fine = resample_to(coarse, self.ramp)
        self.assertEqual(fine.shape, (4, 4))
        self.assertTrue(np.all(fine.values == 1.0))

        aligned = align([self.ramp, coarse], self.ramp)
        self.assertIs(aligned[0], self.ramp)
        self.assertTrue(aligned[1].geometry.matches(self.ramp.geometry))


if __name__ == '__main__':
    unittest.main()
