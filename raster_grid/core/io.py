#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Input/output handling for raster grids.

This module adapts rasterio datasets (GeoTIFF, JPEG2000, ...) to ``Grid``
objects and back. The processing modules never touch files themselves.
"""
import os
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import rasterio

from raster_grid.core.config import DEFAULT_NODATA_VALUE
from raster_grid.core.grid import Grid, GridGeometry
from raster_grid.core.logging_config import get_module_logger
from raster_grid.processing.resample import align
from raster_grid.processing.stack import BandStack

# Initialize logger
logger = get_module_logger(__name__)

PathLike = Union[str, Path]


def grid_from_dataset(src, band: int = 1) -> Grid:
    """
    Build a grid from one band of an open rasterio dataset.

    Parameters
    ----------
    src : rasterio.io.DatasetReader
        Open dataset.
    band : int, optional
        1-based band index, by default 1.

    Returns
    -------
    Grid
        Grid carrying the dataset's transform and CRS. When the dataset
        declares no nodata value, DEFAULT_NODATA_VALUE is used.
    """
    arr = src.read(band).astype(np.float64)

    nodata = src.nodata
    if nodata is None:
        nodata = DEFAULT_NODATA_VALUE
        logger.warning(f"No nodata value found, using default: {nodata}")

    geometry = GridGeometry.from_transform(src.transform, src.width, src.height)
    return Grid(arr, geometry, nodata, src.crs)


def read_grid(path: PathLike, band: int = 1) -> Grid:
    """
    Load one band of a raster file as a grid.

    Parameters
    ----------
    path : str or Path
        Path to any raster format rasterio can open.
    band : int, optional
        1-based band index, by default 1.
    """
    logger.info(f"Loading raster from {path}")
    with rasterio.open(path) as src:
        grid = grid_from_dataset(src, band)

    stats = grid.statistics()
    logger.info(f"Loaded raster with shape {grid.shape}, {stats['count']} valid cells")
    return grid


def read_stack(
    paths: Union[PathLike, Sequence[PathLike]],
    names: Optional[Sequence[str]] = None,
    resample_method: Optional[str] = None
) -> BandStack:
    """
    Load a band stack.

    Parameters
    ----------
    paths : str, Path or sequence of them
        A single multi-band file, or one single-band file per band
        (e.g. Sentinel-2 JPEG2000 band files).
    names : sequence of str, optional
        Band names. Defaults to the dataset band descriptions or file stems.
    resample_method : str, optional
        When given, bands are resampled onto the first band's geometry
        ('nearest' or 'bilinear') before stacking.

    Raises
    ------
    ShapeMismatch
        If the bands are not co-registered.
    """
    if isinstance(paths, (str, Path)):
        logger.info(f"Loading band stack from {paths}")
        with rasterio.open(paths) as src:
            bands = [grid_from_dataset(src, i) for i in range(1, src.count + 1)]
            if names is None and all(src.descriptions):
                names = list(src.descriptions)
        return BandStack(bands, names)

    bands = [read_grid(path) for path in paths]
    if resample_method is not None:
        bands = align(bands, bands[0], resample_method)
    if names is None:
        names = [Path(path).stem for path in paths]
    return BandStack(bands, names)


def write_grid(grid: Grid, path: PathLike, driver: str = "GTiff") -> str:
    """
    Write a grid to a single-band raster file.

    Parameters
    ----------
    grid : Grid
        Grid to write.
    path : str or Path
        Output path; parent directories are created.
    driver : str, optional
        GDAL driver name, by default "GTiff".

    Returns
    -------
    str
        Path to the written file.
    """
    collisions = int(np.sum(grid.to_array() == grid.nodata))
    if collisions:
        logger.warning(f"{collisions} valid cells equal the nodata value {grid.nodata} "
                       f"and will read back as missing")

    output_dir = os.path.dirname(str(path))
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    with rasterio.open(
        path,
        "w",
        driver=driver,
        height=grid.height,
        width=grid.width,
        count=1,
        dtype="float64",
        crs=grid.crs,
        transform=grid.transform,
        nodata=grid.nodata,
    ) as dst:
        dst.write(np.asarray(grid.values), 1)

    logger.info(f"Saved raster to {path}")
    return str(path)
