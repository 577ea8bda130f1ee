#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Spectral indices from co-registered bands.

NDVI and related normalized differences are built from grid algebra calls,
so missing cells and zero denominators become nodata.
"""
from typing import Optional

import numpy as np

from raster_grid.core.config import SPECTRAL_CONFIG
from raster_grid.core.grid import Grid
from raster_grid.core.logging_config import get_module_logger
from raster_grid.processing import algebra

# Initialize logger
logger = get_module_logger(__name__)


def normalized_difference(a: Grid, b: Grid, tolerance: Optional[float] = None) -> Grid:
    """
    Calculate ``(a - b) / (a + b)``.

    Parameters
    ----------
    a, b : Grid
        Co-registered bands.
    tolerance : float, optional
        Georeferencing tolerance, defaults to GEOREF_TOLERANCE.

    Returns
    -------
    Grid
        Index in [-1, 1]. Cells where ``a + b == 0``, and cells outside
        [-1, 1] (possible only with negative inputs), are nodata.
    """
    difference = algebra.subtract(a, b, tolerance)
    total = algebra.add(a, b, tolerance)
    index = algebra.divide(difference, total)

    values = index.to_array()
    out_of_range = np.abs(values) > 1.0
    if np.any(out_of_range):
        logger.warning(f"{int(np.sum(out_of_range))} cells outside [-1, 1] set to nodata "
                       f"(negative band values)")
        values[out_of_range] = np.nan
        index = index.like(values)

    stats = index.statistics()
    logger.info(f"Normalized difference complete - shape: {index.shape}, min: {stats['min']}, "
                f"max: {stats['max']}, nodata count: {stats['total_cells'] - stats['count']}")
    return index


def ndvi(nir: Grid, red: Grid, tolerance: Optional[float] = None) -> Grid:
    """
    Normalized Difference Vegetation Index, ``(NIR - Red) / (NIR + Red)``.

    Examples
    --------
    >>> ndvi(Grid([[200.0, 0.0]]), Grid([[100.0, 0.0]])).get(0, 0)
    0.3333333333333333
    """
    logger.debug("Calculating NDVI")
    return normalized_difference(nir, red, tolerance)


def ndwi(green: Grid, nir: Grid, tolerance: Optional[float] = None) -> Grid:
    """McFeeters Normalized Difference Water Index, ``(Green - NIR) / (Green + NIR)``."""
    logger.debug("Calculating NDWI")
    return normalized_difference(green, nir, tolerance)


def to_reflectance(
    band: Grid,
    scale: Optional[float] = None,
    offset: Optional[float] = None
) -> Grid:
    """
    Convert digital numbers to surface reflectance, ``dn * scale + offset``.

    Defaults come from SPECTRAL_CONFIG (Sentinel-2 L2A: scale 1e-4).
    """
    scale = SPECTRAL_CONFIG.get("reflectance_scale", 1e-4) if scale is None else scale
    offset = SPECTRAL_CONFIG.get("reflectance_offset", 0.0) if offset is None else offset
    return algebra.add(algebra.multiply(band, scale), offset)
