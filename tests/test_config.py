#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for configuration overrides and logging setup.
"""

import logging
import os
import tempfile
import unittest

from raster_grid.core import config
from raster_grid.core.exceptions import InvalidParameter
from raster_grid.core.logging_config import get_module_logger, setup_logging


class TestLoadConfig(unittest.TestCase):
    """Test YAML configuration overrides."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.saved = dict(config.TERRAIN_CONFIG)

    def tearDown(self):
        config.TERRAIN_CONFIG.clear()
        config.TERRAIN_CONFIG.update(self.saved)
        self.tmpdir.cleanup()

    def _write(self, text):
        path = os.path.join(self.tmpdir.name, "config.yaml")
        with open(path, "w") as f:
            f.write(text)
        return path

    def test_override_updates_shared_dict(self):
        path = self._write("terrain:\n  edge_policy: nodata\n  neighbors: 4\n")
        sections = config.load_config(path)
        self.assertEqual(config.TERRAIN_CONFIG["edge_policy"], "nodata")
        self.assertEqual(config.TERRAIN_CONFIG["neighbors"], 4)
        self.assertIs(sections["terrain"], config.TERRAIN_CONFIG)
        # Untouched keys keep their defaults
        self.assertEqual(config.TERRAIN_CONFIG["sun_azimuth"], 315.0)

    def test_unknown_section(self):
        path = self._write("plotting:\n  theme: minimal\n")
        with self.assertRaises(InvalidParameter):
            config.load_config(path)

    def test_empty_file(self):
        path = self._write("")
        config.load_config(path)
        self.assertEqual(config.TERRAIN_CONFIG, self.saved)


class TestLogging(unittest.TestCase):
    """Test logger setup."""

    def test_module_logger_is_child_of_package_logger(self):
        self.assertEqual(get_module_logger("terrain").name, "raster_grid.terrain")
        self.assertEqual(get_module_logger("raster_grid.processing.terrain").name,
                         "raster_grid.processing.terrain")

    def test_setup_logging_with_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, "logs", "run.log")
            logger = setup_logging("DEBUG", log_file, module_name="raster_grid_test_file")
            try:
                self.assertEqual(logger.level, logging.DEBUG)
                self.assertTrue(any(isinstance(h, logging.FileHandler) for h in logger.handlers))
                self.assertTrue(os.path.exists(log_file))
            finally:
                for handler in list(logger.handlers):
                    handler.close()
                    logger.removeHandler(handler)

    def test_invalid_level(self):
        with self.assertRaises(ValueError):
            setup_logging("LOUD", module_name="raster_grid_test_invalid")


if __name__ == '__main__':
    unittest.main()
