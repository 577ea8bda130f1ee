#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for the utility helpers.
"""

import unittest
import numpy as np

from raster_grid.core.config import PERFORMANCE_CONFIG
from raster_grid.utils.utils import normalize_array, parallel_apply, row_blocks, timer


class TestRowBlocks(unittest.TestCase):
    """Test row splitting with halos."""

    def test_blocks_cover_all_rows_once(self):
        blocks = row_blocks(10, 4, halo=1)
        self.assertEqual(len(blocks), 3)
        covered = []
        for read, crop in blocks:
            rows = np.arange(10)[read][crop]
            covered.extend(rows.tolist())
        self.assertEqual(covered, list(range(10)))

    def test_halo_is_clipped_at_edges(self):
        blocks = row_blocks(10, 4, halo=1)
        self.assertEqual(blocks[0], (slice(0, 5), slice(0, 4)))
        self.assertEqual(blocks[1], (slice(3, 9), slice(1, 5)))
        self.assertEqual(blocks[2], (slice(7, 10), slice(1, 3)))

    def test_invalid_block_size(self):
        with self.assertRaises(ValueError):
            row_blocks(10, 0)


class TestParallelApply(unittest.TestCase):
    """Test sequential and joblib execution paths."""

    def setUp(self):
        self.saved = dict(PERFORMANCE_CONFIG)

    def tearDown(self):
        PERFORMANCE_CONFIG.clear()
        PERFORMANCE_CONFIG.update(self.saved)

    def test_sequential(self):
        PERFORMANCE_CONFIG["use_parallel"] = False
        self.assertEqual(parallel_apply(lambda x, k=1: x * k, [1, 2, 3], k=3), [3, 6, 9])

    def test_parallel_preserves_order(self):
        PERFORMANCE_CONFIG["use_parallel"] = True
        result = parallel_apply(lambda x: x ** 2, list(range(8)), n_jobs=2, prefer="threads")
        self.assertEqual(result, [x ** 2 for x in range(8)])


class TestNormalizeArray(unittest.TestCase):
    """Test normalization to [0, 1]."""

    def test_basic(self):
        np.testing.assert_allclose(normalize_array(np.array([2.0, 4.0, 6.0])), [0.0, 0.5, 1.0])

    def test_explicit_range_clips(self):
        result = normalize_array(np.array([0.0, 5.0, 20.0]), 0.0, 10.0)
        np.testing.assert_allclose(result, [0.0, 0.5, 1.0])

    def test_nan_and_constant(self):
        result = normalize_array(np.array([3.0, np.nan, 3.0]))
        self.assertTrue(np.isnan(result[1]))
        self.assertEqual(result[0], 0.0)
        self.assertTrue(np.all(np.isnan(normalize_array(np.full(3, np.nan)))))


class TestTimer(unittest.TestCase):
    """Test the timing decorator."""

    def test_wraps_function(self):
        @timer
        def add(a, b):
            return a + b

        self.assertEqual(add(2, 3), 5)
        self.assertEqual(add.__name__, "add")


if __name__ == '__main__':
    unittest.main()
