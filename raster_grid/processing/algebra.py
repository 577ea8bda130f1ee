#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Elementwise grid algebra.

Binary operations work between two co-registered grids or between a grid
and a scalar. Missing cells propagate (nodata op x = nodata), and arithmetic
anomalies such as division by zero or the log of a negative number yield
nodata at that cell instead of raising.
"""
from typing import Callable, Optional, Union

import numpy as np

from raster_grid.core.exceptions import InvalidParameter
from raster_grid.core.grid import Grid, check_coregistered
from raster_grid.core.logging_config import get_module_logger

# Initialize logger
logger = get_module_logger(__name__)

Operand = Union[Grid, int, float]


def _binary(a: Grid, b: Operand, func: Callable, tolerance: Optional[float] = None) -> Grid:
    if isinstance(b, Grid):
        return a.zip_with(b, func, tolerance=tolerance)
    if isinstance(b, (int, float, np.integer, np.floating)):
        scalar = float(b)
        if not np.isfinite(scalar):
            return a.like(np.full(a.shape, np.nan))
        return a.map(lambda values: func(values, scalar))
    raise InvalidParameter(f"Unsupported operand type: {type(b).__name__}")


def add(a: Grid, b: Operand, tolerance: Optional[float] = None) -> Grid:
    """Cell-wise ``a + b``."""
    return _binary(a, b, np.add, tolerance)


def subtract(a: Grid, b: Operand, tolerance: Optional[float] = None) -> Grid:
    """Cell-wise ``a - b``."""
    return _binary(a, b, np.subtract, tolerance)


def multiply(a: Grid, b: Operand, tolerance: Optional[float] = None) -> Grid:
    """Cell-wise ``a * b``."""
    return _binary(a, b, np.multiply, tolerance)


def divide(a: Grid, b: Operand, tolerance: Optional[float] = None) -> Grid:
    """
    Cell-wise ``a / b``.

    Cells where the divisor is zero or missing become nodata.
    """
    result = _binary(a, b, np.divide, tolerance)
    n_missing = int(np.sum(~result.valid_mask()))
    if n_missing:
        logger.debug(f"Division produced {n_missing} nodata cells")
    return result


def negate(a: Grid) -> Grid:
    return a.map(np.negative)


def absolute(a: Grid) -> Grid:
    return a.map(np.abs)


def sqrt(a: Grid) -> Grid:
    """Square root; negative cells become nodata."""
    return a.map(np.sqrt)


def log(a: Grid) -> Grid:
    """Natural logarithm; non-positive cells become nodata."""
    return a.map(np.log)


def clip(a: Grid, lower: Optional[float] = None, upper: Optional[float] = None) -> Grid:
    """Limit valid cells to ``[lower, upper]``."""
    if lower is not None and upper is not None and lower > upper:
        raise InvalidParameter(f"Lower bound {lower} exceeds upper bound {upper}")
    lo = -np.inf if lower is None else lower
    hi = np.inf if upper is None else upper
    return a.map(lambda values: np.clip(values, lo, hi))


def where(condition: Grid, a: Operand, b: Operand, tolerance: Optional[float] = None) -> Grid:
    """
    Choose ``a`` where ``condition`` is non-zero and ``b`` elsewhere.

    Cells where the condition is missing are nodata. Grid operands must be
    co-registered with the condition grid.
    """
    def _values(operand: Operand) -> np.ndarray:
        if isinstance(operand, Grid):
            check_coregistered(condition, operand, tolerance)
            return operand.to_array()
        return np.full(condition.shape, float(operand))

    cond = condition.to_array()
    chosen = np.where(cond != 0, _values(a), _values(b))
    chosen[np.isnan(cond)] = np.nan
    return condition.like(chosen)
