#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for spectral indices.
"""

import unittest
import numpy as np

from raster_grid.core.grid import Grid, GridGeometry
from raster_grid.core.exceptions import ShapeMismatch
from raster_grid.processing import spectral


class TestSpectralIndices(unittest.TestCase):
    """Test NDVI and related indices."""

    def setUp(self):
        rng = np.random.default_rng(5)
        self.geometry = GridGeometry(width=10, height=8, origin_x=300000.0, origin_y=5000000.0,
                                     cellsize_x=10.0, cellsize_y=10.0)
        nir = rng.integers(0, 10000, (8, 10)).astype(float)
        red = rng.integers(0, 10000, (8, 10)).astype(float)
        nir[0, 0] = red[0, 0] = 0.0
        red[3, 4] = np.nan
        self.nir = Grid(nir, self.geometry)
        self.red = Grid(red, self.geometry)

    def test_ndvi_examples(self):
        nir = Grid([[200.0, 0.0]])
        red = Grid([[100.0, 0.0]])
        result = spectral.ndvi(nir, red)
        self.assertAlmostEqual(result.get(0, 0), 1.0 / 3.0)
        self.assertEqual(result.get(0, 1), result.nodata)

    def test_ndvi_range(self):
        result = spectral.ndvi(self.nir, self.red)
        values = result.values[result.valid_mask()]
        self.assertTrue(np.all((values >= -1.0) & (values <= 1.0)))
        self.assertEqual(result.get(0, 0), result.nodata)
        self.assertEqual(result.get(3, 4), result.nodata)

    def test_ndvi_negative_inputs_stay_in_range(self):
        result = spectral.ndvi(Grid([[-1.0, 0.5]]), Grid([[2.0, 0.1]]))
        self.assertEqual(result.get(0, 0), result.nodata)
        self.assertAlmostEqual(result.get(0, 1), 0.4 / 0.6)

    def test_ndvi_requires_coregistered_bands(self):
        shifted = Grid(self.red.to_array(), GridGeometry(width=10, height=8, origin_x=300010.0,
                                                          origin_y=5000000.0, cellsize_x=10.0,
                                                          cellsize_y=10.0))
        with self.assertRaises(ShapeMismatch):
            spectral.ndvi(self.nir, shifted)

    def test_ndwi(self):
        result = spectral.ndwi(Grid([[300.0]]), Grid([[100.0]]))
        self.assertAlmostEqual(result.get(0, 0), 0.5)

    def test_to_reflectance(self):
        result = spectral.to_reflectance(Grid([[1000.0, -9999.0]]))
        self.assertAlmostEqual(result.get(0, 0), 0.1)
        self.assertEqual(result.get(0, 1), result.nodata)
        shifted = spectral.to_reflectance(Grid([[1000.0]]), scale=1e-4, offset=-0.1)
        self.assertAlmostEqual(shifted.get(0, 0), 0.0)

    def test_reflectance_preserves_ndvi(self):
        raw = spectral.ndvi(self.nir, self.red)
        scaled = spectral.ndvi(spectral.to_reflectance(self.nir), spectral.to_reflectance(self.red))
        np.testing.assert_allclose(scaled.to_array(), raw.to_array())


if __name__ == '__main__':
    unittest.main()
