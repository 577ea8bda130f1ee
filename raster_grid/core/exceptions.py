#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exceptions raised by raster grid operations.

Arithmetic anomalies (division by zero, missing samples) are never raised;
they become nodata cells in the result.
"""


class RasterGridError(Exception):
    """Base class for raster grid errors."""


class ShapeMismatch(RasterGridError, ValueError):
    """Grids are not co-registered (dimensions or georeferencing differ)."""


class InvalidParameter(RasterGridError, ValueError):
    """A parameter is outside its valid domain (e.g. a negative cell size)."""


class OutOfBounds(RasterGridError, IndexError):
    """A row/column index lies outside the grid."""
