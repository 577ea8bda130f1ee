#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Raster Grid Processing Package.

Georeferenced 2D grids with nodata-aware algebra, resampling, terrain
derivatives (slope, aspect, hillshade) and spectral indices such as NDVI.
"""

__version__ = "0.1.0"
__author__ = "Elena Project Team"
__email__ = "user@example.com"

from raster_grid.core.exceptions import (
    RasterGridError, ShapeMismatch, InvalidParameter, OutOfBounds
)
from raster_grid.core.grid import Grid, GridGeometry
