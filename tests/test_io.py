#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for the rasterio adapter.
"""

import os
import tempfile
import unittest
import numpy as np
import rasterio
from rasterio.transform import Affine

from raster_grid.core import io
from raster_grid.core.grid import Grid, GridGeometry
from raster_grid.core.exceptions import ShapeMismatch


class TestRasterIO(unittest.TestCase):
    """Test reading and writing grids through rasterio."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.geometry = GridGeometry(width=5, height=4, origin_x=440000.0, origin_y=3750000.0,
                                     cellsize_x=30.0, cellsize_y=30.0)
        values = np.arange(20, dtype=float).reshape(4, 5)
        values[2, 3] = np.nan
        self.grid = Grid(values, self.geometry, nodata=-9999.0, crs="EPSG:32611")

    def tearDown(self):
        self.tmpdir.cleanup()

    def _path(self, name):
        return os.path.join(self.tmpdir.name, name)

    def test_write_then_read(self):
        path = io.write_grid(self.grid, self._path("out/dem.tif"))
        loaded = io.read_grid(path)
        self.assertTrue(loaded.geometry.matches(self.geometry, tolerance=1e-9))
        self.assertEqual(loaded.nodata, -9999.0)
        self.assertEqual(loaded.get(2, 3), -9999.0)
        np.testing.assert_array_equal(loaded.values, self.grid.values)
        self.assertEqual(loaded.crs.to_epsg(), 32611)

    def test_missing_nodata_uses_default(self):
        path = self._path("no_nodata.tif")
        with rasterio.open(path, "w", driver="GTiff", height=2, width=2, count=1,
                           dtype="float32", transform=Affine(1.0, 0.0, 0.0, 0.0, -1.0, 2.0)) as dst:
            dst.write(np.ones((2, 2), dtype="float32"), 1)
        loaded = io.read_grid(path)
        self.assertEqual(loaded.nodata, -9999.0)
        self.assertEqual(loaded.statistics()["count"], 4)

    def test_read_stack_from_band_files(self):
        red = io.write_grid(self.grid, self._path("B04.tif"))
        nir = io.write_grid(self.grid * 2, self._path("B08.tif"))
        stack = io.read_stack([red, nir])
        self.assertEqual(stack.names, ["B04", "B08"])
        self.assertEqual(stack.band("B08").get(0, 1), 2.0)

    def test_read_stack_resamples_coarser_band(self):
        fine = io.write_grid(self.grid, self._path("B04.tif"))
        coarse_geometry = GridGeometry(width=3, height=2, origin_x=440000.0, origin_y=3750000.0,
                                       cellsize_x=60.0, cellsize_y=60.0)
        coarse = io.write_grid(Grid(np.ones((2, 3)), coarse_geometry, crs="EPSG:32611"),
                               self._path("B11.tif"))
        with self.assertRaises(ShapeMismatch):
            io.read_stack([fine, coarse])
        stack = io.read_stack([fine, coarse], resample_method="nearest")
        self.assertEqual(stack.band("B11").shape, (4, 5))

    def test_read_stack_from_multiband_file(self):
        path = self._path("rgb.tif")
        with rasterio.open(path, "w", driver="GTiff", height=4, width=5, count=3,
                           dtype="float64", transform=self.geometry.transform, nodata=0.0) as dst:
            for i in range(1, 4):
                dst.write(np.full((4, 5), float(i)), i)
        stack = io.read_stack(path)
        self.assertEqual(len(stack), 3)
        self.assertEqual(stack.names, ["band1", "band2", "band3"])
        self.assertEqual(stack[2].get(0, 0), 3.0)


if __name__ == '__main__':
    unittest.main()
