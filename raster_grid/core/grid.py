#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Georeferenced grid abstraction.

A ``Grid`` is a dense, immutable 2D array of float64 samples paired with a
north-up ``GridGeometry`` (origin at the top-left corner, rows running south,
columns running east, no rotation) and a nodata sentinel. Every operation
returns a new grid. Missing cells are tracked apart from the samples and are
excluded from statistics and propagated by arithmetic; the sentinel is only
written where samples leave the grid (``values``, ``get`` and file export).
"""
import math
import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np
from affine import Affine

from raster_grid.core.config import DEFAULT_NODATA_VALUE, GEOREF_TOLERANCE
from raster_grid.core.exceptions import InvalidParameter, OutOfBounds, ShapeMismatch
from raster_grid.core.logging_config import get_module_logger

# Initialize logger
logger = get_module_logger(__name__)


@dataclass(frozen=True)
class GridGeometry:
    """
    Size and georeferencing of a grid.

    Parameters
    ----------
    width, height : int
        Number of columns and rows.
    origin_x, origin_y : float
        Map coordinates of the top-left corner of the top-left cell.
    cellsize_x, cellsize_y : float
        Positive cell width and height in map units.
    """
    width: int
    height: int
    origin_x: float = 0.0
    origin_y: float = 0.0
    cellsize_x: float = 1.0
    cellsize_y: float = 1.0

    def __post_init__(self):
        for name in ("width", "height"):
            value = getattr(self, name)
            try:
                value = operator.index(value)
            except TypeError:
                raise InvalidParameter(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise InvalidParameter(f"{name} must be positive, got {value}")
            object.__setattr__(self, name, value)

        for name in ("cellsize_x", "cellsize_y"):
            value = float(getattr(self, name))
            if not math.isfinite(value) or value <= 0:
                raise InvalidParameter(f"{name} must be a positive finite number, got {value}")
            object.__setattr__(self, name, value)

        for name in ("origin_x", "origin_y"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise InvalidParameter(f"{name} must be finite, got {value}")
            object.__setattr__(self, name, value)

    @classmethod
    def from_transform(cls, transform: Any, width: int, height: int) -> "GridGeometry":
        """
        Build a geometry from an affine transform (rasterio style).

        Only north-up, unrotated transforms are accepted.
        """
        t = transform if isinstance(transform, Affine) else Affine(*tuple(transform)[:6])
        if t.b != 0 or t.d != 0:
            raise InvalidParameter(f"Rotated transforms are not supported: {tuple(t)[:6]}")
        if t.a <= 0 or t.e >= 0:
            raise InvalidParameter(f"Transform must be north-up with positive cell size: {tuple(t)[:6]}")
        return cls(width, height, t.c, t.f, t.a, -t.e)

    @property
    def transform(self) -> Affine:
        return Affine(self.cellsize_x, 0.0, self.origin_x,
                      0.0, -self.cellsize_y, self.origin_y)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(left, bottom, right, top) in map units."""
        return (
            self.origin_x,
            self.origin_y - self.height * self.cellsize_y,
            self.origin_x + self.width * self.cellsize_x,
            self.origin_y,
        )

    def cell_center(self, row: int, col: int) -> Tuple[float, float]:
        return (
            self.origin_x + (col + 0.5) * self.cellsize_x,
            self.origin_y - (row + 0.5) * self.cellsize_y,
        )

    def cell_centers(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return 2D arrays of x and y cell-centre coordinates."""
        xs = self.origin_x + (np.arange(self.width) + 0.5) * self.cellsize_x
        ys = self.origin_y - (np.arange(self.height) + 0.5) * self.cellsize_y
        return np.meshgrid(xs, ys)

    def rowcol(self, x, y):
        """
        Fractional (row, col) position of map coordinates.

        Integer results fall on cell centres; a cell covers
        ``[index - 0.5, index + 0.5)``.
        """
        col = (np.asarray(x, dtype=np.float64) - self.origin_x) / self.cellsize_x - 0.5
        row = (self.origin_y - np.asarray(y, dtype=np.float64)) / self.cellsize_y - 0.5
        return row, col

    def matches(self, other: "GridGeometry", tolerance: float = 0.0) -> bool:
        if self.shape != other.shape:
            return False
        pairs = (
            (self.origin_x, other.origin_x),
            (self.origin_y, other.origin_y),
            (self.cellsize_x, other.cellsize_x),
            (self.cellsize_y, other.cellsize_y),
        )
        return all(abs(a - b) <= tolerance for a, b in pairs)


def check_coregistered(a: "Grid", b: "Grid", tolerance: Optional[float] = None) -> None:
    """
    Raise ``ShapeMismatch`` unless two grids share shape and georeferencing.

    Parameters
    ----------
    a, b : Grid
        Grids to compare.
    tolerance : float, optional
        Maximum absolute difference allowed for origin and cell size.
        If None, uses GEOREF_TOLERANCE from config.py.
    """
    if tolerance is None:
        tolerance = GEOREF_TOLERANCE
    if tolerance < 0:
        raise InvalidParameter(f"Tolerance must be non-negative, got {tolerance}")

    if a.shape != b.shape:
        logger.error(f"Grid shapes differ: {a.shape} vs {b.shape}")
        raise ShapeMismatch(f"Grid shapes differ: {a.shape} vs {b.shape}")
    if not a.geometry.matches(b.geometry, tolerance):
        logger.error(f"Grid georeferencing differs: {a.geometry} vs {b.geometry}")
        raise ShapeMismatch(
            f"Grid georeferencing differs beyond tolerance {tolerance}: "
            f"{a.geometry} vs {b.geometry}"
        )


class Grid:
    """
    Immutable georeferenced grid of float64 samples with a nodata sentinel.

    Parameters
    ----------
    values : array_like
        2D array of samples, shape (height, width). NaN, infinite and
        ``nodata``-valued samples are treated as missing.
    geometry : GridGeometry, optional
        Georeferencing. Defaults to unit cells with the origin at (0, 0).
    nodata : float, optional
        Sentinel for missing samples, by default DEFAULT_NODATA_VALUE.
    crs : any, optional
        Coordinate reference system, carried through derived grids untouched.
    """

    def __init__(
        self,
        values: Any,
        geometry: Optional[GridGeometry] = None,
        nodata: Optional[float] = DEFAULT_NODATA_VALUE,
        crs: Any = None
    ):
        nodata = DEFAULT_NODATA_VALUE if nodata is None else float(nodata)
        arr = np.array(values, dtype=np.float64)
        if arr.ndim == 2 and math.isfinite(nodata):
            arr[arr == nodata] = np.nan
        self._setup(arr, geometry, nodata, crs)

    def _setup(self, arr: np.ndarray, geometry: Optional[GridGeometry], nodata: float, crs: Any) -> None:
        if arr.ndim != 2:
            raise InvalidParameter(f"Grid values must be 2D, got {arr.ndim}D")
        if geometry is None:
            geometry = GridGeometry(width=arr.shape[1], height=arr.shape[0])
        if arr.shape != geometry.shape:
            raise ShapeMismatch(f"Values shape {arr.shape} does not match geometry {geometry.shape}")

        # Missing cells are NaN internally; the sentinel only appears on output
        arr[~np.isfinite(arr)] = np.nan
        arr.flags.writeable = False

        self._data = arr
        self._values = None
        self._geometry = geometry
        self._nodata = nodata
        self._crs = crs

    @classmethod
    def from_array(
        cls,
        array: Any,
        geometry: Optional[GridGeometry] = None,
        nodata: Optional[float] = DEFAULT_NODATA_VALUE,
        crs: Any = None
    ) -> "Grid":
        """
        Build a grid from an array in which only NaN (or inf) marks missing
        cells. Finite values equal to ``nodata`` stay valid.
        """
        grid = cls.__new__(cls)
        nodata = DEFAULT_NODATA_VALUE if nodata is None else float(nodata)
        grid._setup(np.array(array, dtype=np.float64), geometry, nodata, crs)
        return grid

    @classmethod
    def full(
        cls,
        geometry: GridGeometry,
        fill_value: float,
        nodata: Optional[float] = DEFAULT_NODATA_VALUE,
        crs: Any = None
    ) -> "Grid":
        return cls.from_array(np.full(geometry.shape, fill_value, dtype=np.float64), geometry, nodata, crs)

    def like(self, array: Any) -> "Grid":
        """New grid with this grid's geometry, nodata and CRS; NaN marks missing cells."""
        return Grid.from_array(array, self._geometry, self._nodata, self._crs)

    @property
    def values(self) -> np.ndarray:
        """Read-only array of the samples with ``nodata`` in missing cells."""
        if self._values is None:
            values = np.where(np.isnan(self._data), self._nodata, self._data)
            values.flags.writeable = False
            self._values = values
        return self._values

    @property
    def geometry(self) -> GridGeometry:
        return self._geometry

    @property
    def nodata(self) -> float:
        return self._nodata

    @property
    def crs(self) -> Any:
        return self._crs

    @property
    def shape(self) -> Tuple[int, int]:
        return self._data.shape

    @property
    def width(self) -> int:
        return self._geometry.width

    @property
    def height(self) -> int:
        return self._geometry.height

    @property
    def transform(self) -> Affine:
        return self._geometry.transform

    def valid_mask(self) -> np.ndarray:
        """Boolean array, True where the cell holds data."""
        return ~np.isnan(self._data)

    def to_array(self) -> np.ndarray:
        """Writable float64 copy with NaN in missing cells."""
        return self._data.copy()

    def is_nodata(self, value: float) -> bool:
        if math.isnan(self._nodata):
            return math.isnan(value)
        return value == self._nodata

    def get(self, row: int, col: int) -> float:
        """
        Return the sample at (row, col), or the nodata sentinel if missing.

        Raises
        ------
        OutOfBounds
            If the indices lie outside the grid.
        """
        try:
            row = operator.index(row)
            col = operator.index(col)
        except TypeError:
            raise OutOfBounds(f"Indices must be integers, got ({row!r}, {col!r})")
        if not (0 <= row < self.height and 0 <= col < self.width):
            raise OutOfBounds(f"Cell ({row}, {col}) outside grid of shape {self.shape}")
        value = self._data[row, col]
        return self._nodata if np.isnan(value) else float(value)

    def map(self, func: Callable, vectorized: bool = True) -> "Grid":
        """
        Apply ``func`` to every valid cell.

        Parameters
        ----------
        func : callable
            Function of one argument. With ``vectorized=True`` it receives a
            1D float array of valid samples; otherwise it is called per value.
        vectorized : bool, optional
            Whether ``func`` accepts arrays, by default True.

        Returns
        -------
        Grid
            New grid; missing cells stay missing and non-finite results
            become missing.
        """
        valid = self.valid_mask()
        out = np.full(self.shape, np.nan)
        if not vectorized:
            func = np.vectorize(func, otypes=[np.float64])
        with np.errstate(all="ignore"):
            out[valid] = func(self._data[valid])
        return self.like(out)

    def zip_with(
        self,
        other: "Grid",
        func: Callable,
        tolerance: Optional[float] = None,
        vectorized: bool = True
    ) -> "Grid":
        """
        Combine two co-registered grids cell by cell.

        Parameters
        ----------
        other : Grid
            Second operand; must match shape and georeferencing.
        func : callable
            Binary function, called with arrays of the cells valid in both
            grids (or per value pair when ``vectorized=False``).
        tolerance : float, optional
            Georeferencing tolerance, defaults to GEOREF_TOLERANCE.

        Raises
        ------
        ShapeMismatch
            If the grids are not co-registered.
        """
        check_coregistered(self, other, tolerance)
        valid = self.valid_mask() & other.valid_mask()
        out = np.full(self.shape, np.nan)
        if not vectorized:
            func = np.vectorize(func, otypes=[np.float64])
        with np.errstate(all="ignore"):
            out[valid] = func(self._data[valid], other._data[valid])
        return self.like(out)

    def with_nodata(self, nodata: float) -> "Grid":
        """Same data with a different nodata sentinel."""
        return Grid.from_array(self._data, self._geometry, nodata, self._crs)

    def statistics(self) -> Dict[str, Any]:
        """
        Summary statistics over valid cells.

        Returns
        -------
        dict
            count, total_cells, min, max, mean, std and median. The value
            statistics are None when the grid holds no valid cells.
        """
        valid_values = self._data[self.valid_mask()]
        stats: Dict[str, Any] = {
            "count": int(valid_values.size),
            "total_cells": int(self._data.size),
        }
        if valid_values.size == 0:
            stats.update(min=None, max=None, mean=None, std=None, median=None)
            return stats
        stats.update(
            min=float(np.min(valid_values)),
            max=float(np.max(valid_values)),
            mean=float(np.mean(valid_values)),
            std=float(np.std(valid_values)),
            median=float(np.median(valid_values)),
        )
        return stats

    # Arithmetic operators delegate to the algebra module
    def __add__(self, other):
        from raster_grid.processing import algebra
        return algebra.add(self, other)

    def __radd__(self, other):
        from raster_grid.processing import algebra
        return algebra.add(self, other)

    def __sub__(self, other):
        from raster_grid.processing import algebra
        return algebra.subtract(self, other)

    def __rsub__(self, other):
        from raster_grid.processing import algebra
        return algebra.add(algebra.negate(self), other)

    def __mul__(self, other):
        from raster_grid.processing import algebra
        return algebra.multiply(self, other)

    def __rmul__(self, other):
        from raster_grid.processing import algebra
        return algebra.multiply(self, other)

    def __truediv__(self, other):
        from raster_grid.processing import algebra
        return algebra.divide(self, other)

    def __rtruediv__(self, other):
        from raster_grid.processing import algebra
        return algebra.divide(self.full(self._geometry, other, self._nodata, self._crs), self)

    def __neg__(self):
        from raster_grid.processing import algebra
        return algebra.negate(self)

    def __abs__(self):
        from raster_grid.processing import algebra
        return algebra.absolute(self)

    def __repr__(self) -> str:
        g = self._geometry
        return (
            f"Grid(height={g.height}, width={g.width}, origin=({g.origin_x}, {g.origin_y}), "
            f"cellsize=({g.cellsize_x}, {g.cellsize_y}), nodata={self._nodata})"
        )
