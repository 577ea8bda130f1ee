#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Terrain derivatives from elevation grids.

This module computes slope, aspect and hillshade. Surface gradients come
from Horn's 3x3 kernel (8 neighbours) or the Zevenbergen & Thorne
4-neighbour differences.

Edge cells follow one of two policies, selected by ``edge_policy``:

- ``'reduced'``: the (1, 2, 1) smoothing weights are renormalised over the
  neighbours that exist, and derivatives use one-sided differences at the
  border. An axis of length 1 contributes no gradient.
- ``'nodata'``: every border cell is nodata.

Under both policies a cell is nodata when it, or any neighbour the kernel
reads, is nodata.

Conventions: x runs east along columns, y runs north against rows. Aspect is
the compass direction of steepest descent, clockwise from north. Flat cells
get the aspect sentinel FLAT_ASPECT.
"""
from typing import Dict, Iterable, Optional, Tuple

import numpy as np
from scipy import ndimage

from raster_grid.core.config import FLAT_ASPECT, PERFORMANCE_CONFIG, TERRAIN_CONFIG
from raster_grid.core.exceptions import InvalidParameter
from raster_grid.core.grid import Grid, check_coregistered
from raster_grid.core.logging_config import get_module_logger
from raster_grid.utils.utils import parallel_apply, row_blocks, timer

# Initialize logger
logger = get_module_logger(__name__)

UNITS = ("degrees", "radians")
EDGE_POLICIES = ("reduced", "nodata")
METRICS = ("slope", "aspect", "hillshade")


def _resolve(units: Optional[str], neighbors: Optional[int], edge_policy: Optional[str]):
    if units is None:
        units = TERRAIN_CONFIG.get("units", "degrees")
    if neighbors is None:
        neighbors = TERRAIN_CONFIG.get("neighbors", 8)
    if edge_policy is None:
        edge_policy = TERRAIN_CONFIG.get("edge_policy", "reduced")
    if units not in UNITS:
        raise InvalidParameter(f"Unknown angle unit: {units}, expected one of {UNITS}")
    if neighbors not in (4, 8):
        raise InvalidParameter(f"Neighbors must be 4 or 8, got {neighbors}")
    if edge_policy not in EDGE_POLICIES:
        raise InvalidParameter(f"Unknown edge policy: {edge_policy}, expected one of {EDGE_POLICIES}")
    return units, neighbors, edge_policy


def _smooth(z: np.ndarray, axis: int) -> np.ndarray:
    """(1, 2, 1) weighted average along an axis, renormalised at the border."""
    if z.shape[axis] == 1:
        return z.copy()
    weights = [1.0, 2.0, 1.0]
    total = ndimage.correlate1d(z, weights, axis=axis, mode="constant", cval=0.0)
    norm = ndimage.correlate1d(np.ones_like(z), weights, axis=axis, mode="constant", cval=0.0)
    return total / norm


def _derivative(z: np.ndarray, axis: int, spacing: float) -> np.ndarray:
    """Central differences inside, one-sided differences at the border."""
    if z.shape[axis] < 2:
        return np.where(np.isnan(z), np.nan, 0.0)
    return np.gradient(z, spacing, axis=axis)


def _block_gradients(
    z: np.ndarray,
    cellsize_x: float,
    cellsize_y: float,
    neighbors: int
) -> Tuple[np.ndarray, np.ndarray]:
    if neighbors == 8:
        dz_dcol = _derivative(_smooth(z, axis=0), axis=1, spacing=cellsize_x)
        dz_drow = _derivative(_smooth(z, axis=1), axis=0, spacing=cellsize_y)
    else:
        dz_dcol = _derivative(z, axis=1, spacing=cellsize_x)
        dz_drow = _derivative(z, axis=0, spacing=cellsize_y)
    # Rows run south, so the northward derivative flips sign
    return dz_dcol, -dz_drow


def gradients(
    elevation: Grid,
    neighbors: Optional[int] = None,
    edge_policy: Optional[str] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Surface gradients (dz/dx east, dz/dy north) of an elevation grid.

    Parameters
    ----------
    elevation : Grid
        Elevation grid; vertical units should match the horizontal units.
    neighbors : int, optional
        8 for Horn's method, 4 for Zevenbergen & Thorne.
        If None, uses TERRAIN_CONFIG.
    edge_policy : str, optional
        'reduced' or 'nodata'. If None, uses TERRAIN_CONFIG.

    Returns
    -------
    tuple
        Two float arrays with NaN where the gradient is undefined.
    """
    _, neighbors, edge_policy = _resolve(None, neighbors, edge_policy)
    z = elevation.to_array()
    geometry = elevation.geometry
    chunk_size = PERFORMANCE_CONFIG.get("chunk_size", 1024)

    if PERFORMANCE_CONFIG.get("use_parallel", False) and z.shape[0] > chunk_size:
        blocks = row_blocks(z.shape[0], chunk_size, halo=1)

        def _run(block):
            read, crop = block
            dx, dy = _block_gradients(z[read], geometry.cellsize_x, geometry.cellsize_y, neighbors)
            return dx[crop], dy[crop]

        results = parallel_apply(_run, blocks)
        dz_dx = np.vstack([dx for dx, _ in results])
        dz_dy = np.vstack([dy for _, dy in results])
        logger.debug(f"Computed gradients over {len(blocks)} row blocks")
    else:
        dz_dx, dz_dy = _block_gradients(z, geometry.cellsize_x, geometry.cellsize_y, neighbors)

    missing = np.isnan(z)
    if edge_policy == "nodata":
        missing = missing.copy()
        missing[0, :] = missing[-1, :] = True
        missing[:, 0] = missing[:, -1] = True
    dz_dx[missing] = np.nan
    dz_dy[missing] = np.nan
    return dz_dx, dz_dy


def _slope_from_gradients(dz_dx: np.ndarray, dz_dy: np.ndarray, units: str) -> np.ndarray:
    slope_rad = np.arctan(np.hypot(dz_dx, dz_dy))
    return np.rad2deg(slope_rad) if units == "degrees" else slope_rad


def _aspect_from_gradients(dz_dx: np.ndarray, dz_dy: np.ndarray, units: str) -> np.ndarray:
    # Steepest descent is -grad(z); bearing = atan2(east, north)
    aspect_deg = np.mod(np.rad2deg(np.arctan2(-dz_dx, -dz_dy)), 360.0)
    aspect = np.deg2rad(aspect_deg) if units == "radians" else aspect_deg

    flat_threshold = TERRAIN_CONFIG.get("flat_threshold", 1e-4)
    is_flat = np.hypot(dz_dx, dz_dy) < flat_threshold
    aspect[is_flat] = FLAT_ASPECT
    return aspect


def _log_metric(name: str, grid: Grid) -> None:
    stats = grid.statistics()
    logger.info(
        f"{name} calculation complete - shape: {grid.shape}, min: {stats['min']}, "
        f"max: {stats['max']}, nodata count: {stats['total_cells'] - stats['count']}"
    )


@timer
def slope(
    elevation: Grid,
    units: Optional[str] = None,
    neighbors: Optional[int] = None,
    edge_policy: Optional[str] = None
) -> Grid:
    """
    Calculate slope from an elevation grid.

    Parameters
    ----------
    elevation : Grid
        Elevation grid.
    units : str, optional
        'degrees' or 'radians'. If None, uses TERRAIN_CONFIG.
    neighbors : int, optional
        8 (Horn) or 4 (Zevenbergen & Thorne). If None, uses TERRAIN_CONFIG.
    edge_policy : str, optional
        'reduced' or 'nodata'. If None, uses TERRAIN_CONFIG.

    Returns
    -------
    Grid
        Slope angle, ``atan(|gradient|)``.
    """
    units, neighbors, edge_policy = _resolve(units, neighbors, edge_policy)
    dz_dx, dz_dy = gradients(elevation, neighbors, edge_policy)
    result = elevation.like(_slope_from_gradients(dz_dx, dz_dy, units))
    _log_metric("Slope", result)
    return result


@timer
def aspect(
    elevation: Grid,
    units: Optional[str] = None,
    neighbors: Optional[int] = None,
    edge_policy: Optional[str] = None
) -> Grid:
    """
    Calculate aspect from an elevation grid.

    Parameters
    ----------
    elevation : Grid
        Elevation grid.
    units : str, optional
        'degrees' or 'radians'. If None, uses TERRAIN_CONFIG.
    neighbors : int, optional
        8 (Horn) or 4 (Zevenbergen & Thorne). If None, uses TERRAIN_CONFIG.
    edge_policy : str, optional
        'reduced' or 'nodata'. If None, uses TERRAIN_CONFIG.

    Returns
    -------
    Grid
        Direction of steepest descent in [0, 360) degrees (or [0, 2*pi)
        radians), clockwise from north. Flat cells hold FLAT_ASPECT.
    """
    units, neighbors, edge_policy = _resolve(units, neighbors, edge_policy)
    dz_dx, dz_dy = gradients(elevation, neighbors, edge_policy)
    result = elevation.like(_aspect_from_gradients(dz_dx, dz_dy, units))
    _log_metric("Aspect", result)
    return result


def _validate_sun(azimuth: Optional[float], altitude: Optional[float]) -> Tuple[float, float]:
    azimuth = TERRAIN_CONFIG.get("sun_azimuth", 315.0) if azimuth is None else azimuth
    altitude = TERRAIN_CONFIG.get("sun_altitude", 45.0) if altitude is None else altitude
    if not np.isfinite(azimuth):
        raise InvalidParameter(f"Sun azimuth must be finite, got {azimuth}")
    if not 0.0 <= altitude <= 90.0:
        raise InvalidParameter(f"Sun altitude must be within [0, 90] degrees, got {altitude}")
    return float(azimuth) % 360.0, float(altitude)


@timer
def hillshade(
    slope_grid: Grid,
    aspect_grid: Grid,
    azimuth: Optional[float] = None,
    altitude: Optional[float] = None,
    units: str = "radians"
) -> Grid:
    """
    Calculate hillshade from slope and aspect grids.

    Parameters
    ----------
    slope_grid : Grid
        Slope angles.
    aspect_grid : Grid
        Aspect angles, clockwise from north. Cells holding FLAT_ASPECT
        are lit as flat.
    azimuth : float, optional
        Sun azimuth in degrees clockwise from north. If None, uses
        TERRAIN_CONFIG (315, light from the north-west).
    altitude : float, optional
        Sun altitude in degrees above the horizon (0-90). If None, uses
        TERRAIN_CONFIG.
    units : str, optional
        Angle unit of the slope and aspect grids, by default 'radians'.

    Returns
    -------
    Grid
        Shading factor in [0, 1].
    """
    if units not in UNITS:
        raise InvalidParameter(f"Unknown angle unit: {units}, expected one of {UNITS}")
    check_coregistered(slope_grid, aspect_grid)
    azimuth, altitude = _validate_sun(azimuth, altitude)

    slope_values = slope_grid.to_array()
    aspect_values = aspect_grid.to_array()
    is_flat = aspect_values == FLAT_ASPECT
    if units == "degrees":
        slope_values = np.deg2rad(slope_values)
        aspect_values = np.deg2rad(aspect_values)

    zenith_rad = np.deg2rad(90.0 - altitude)
    azimuth_rad = np.deg2rad(azimuth)

    directional = np.sin(zenith_rad) * np.sin(slope_values) * np.cos(azimuth_rad - aspect_values)
    directional[is_flat] = 0.0
    shade = np.cos(zenith_rad) * np.cos(slope_values) + directional
    # Cells missing in either input stay missing
    shade[np.isnan(aspect_values)] = np.nan

    result = slope_grid.like(np.clip(shade, 0.0, 1.0))
    _log_metric("Hillshade", result)
    return result


def hillshade_from_elevation(
    elevation: Grid,
    azimuth: Optional[float] = None,
    altitude: Optional[float] = None,
    neighbors: Optional[int] = None,
    edge_policy: Optional[str] = None
) -> Grid:
    """Derive slope and aspect in radians, then shade them."""
    maps = terrain(elevation, metrics=("slope", "aspect"), units="radians",
                   neighbors=neighbors, edge_policy=edge_policy)
    return hillshade(maps["slope"], maps["aspect"], azimuth, altitude, units="radians")


@timer
def terrain(
    elevation: Grid,
    metrics: Iterable[str] = ("slope", "aspect"),
    units: Optional[str] = None,
    neighbors: Optional[int] = None,
    edge_policy: Optional[str] = None,
    azimuth: Optional[float] = None,
    altitude: Optional[float] = None
) -> Dict[str, Grid]:
    """
    Compute several terrain metrics from one gradient pass.

    Parameters
    ----------
    elevation : Grid
        Elevation grid.
    metrics : iterable of str, optional
        Any of 'slope', 'aspect', 'hillshade'.
    units : str, optional
        Unit of the slope and aspect outputs. If None, uses TERRAIN_CONFIG.
    neighbors, edge_policy : optional
        Gradient settings, see ``slope``.
    azimuth, altitude : float, optional
        Sun position for 'hillshade'.

    Returns
    -------
    dict
        Mapping of metric name to Grid.
    """
    metrics = list(metrics)
    unknown = [m for m in metrics if m not in METRICS]
    if unknown:
        raise InvalidParameter(f"Unknown terrain metrics: {unknown}, expected any of {METRICS}")
    units, neighbors, edge_policy = _resolve(units, neighbors, edge_policy)

    logger.info(f"Extracting terrain metrics {metrics} with cell size "
                f"({elevation.geometry.cellsize_x}, {elevation.geometry.cellsize_y})")
    dz_dx, dz_dy = gradients(elevation, neighbors, edge_policy)

    results: Dict[str, Grid] = {}
    if "slope" in metrics:
        results["slope"] = elevation.like(_slope_from_gradients(dz_dx, dz_dy, units))
        _log_metric("Slope", results["slope"])
    if "aspect" in metrics:
        results["aspect"] = elevation.like(_aspect_from_gradients(dz_dx, dz_dy, units))
        _log_metric("Aspect", results["aspect"])
    if "hillshade" in metrics:
        slope_rad = elevation.like(_slope_from_gradients(dz_dx, dz_dy, "radians"))
        aspect_rad = elevation.like(_aspect_from_gradients(dz_dx, dz_dy, "radians"))
        results["hillshade"] = hillshade(slope_rad, aspect_rad, azimuth, altitude, units="radians")

    return results
