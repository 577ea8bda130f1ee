#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utility functions for raster grid processing.

This module provides common helpers used across the processing modules,
including timing, row-block splitting, parallel processing and array
normalization.
"""
import numpy as np
import time
import functools
from typing import Callable, Any, List, Tuple, Optional
from tqdm import tqdm
from joblib import Parallel, delayed

from raster_grid.core.config import PERFORMANCE_CONFIG
from raster_grid.core.logging_config import get_module_logger

# Initialize logger
logger = get_module_logger(__name__)


def timer(func: Callable) -> Callable:
    """
    Decorator to time function execution.

    Parameters
    ----------
    func : Callable
        Function to time.

    Returns
    -------
    Callable
        Wrapped function with timing.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        elapsed = time.time() - start_time
        logger.debug(f"Function {func.__name__} took {elapsed:.2f} seconds to run")
        return result
    return wrapper


def row_blocks(n_rows: int, block_size: int, halo: int = 0) -> List[Tuple[slice, slice]]:
    """
    Split rows into blocks with an overlapping halo.

    Parameters
    ----------
    n_rows : int
        Number of rows to split.
    block_size : int
        Rows per block (the last block may be shorter).
    halo : int, optional
        Extra rows read on each side of a block, by default 0.

    Returns
    -------
    List[Tuple[slice, slice]]
        For each block, the slice of rows to read (block plus halo) and the
        slice that crops the block's own rows out of the read window.
    """
    if block_size <= 0:
        raise ValueError(f"Block size must be positive, got {block_size}")

    blocks = []
    for start in range(0, n_rows, block_size):
        stop = min(start + block_size, n_rows)
        read_start = max(0, start - halo)
        read_stop = min(n_rows, stop + halo)
        blocks.append((
            slice(read_start, read_stop),
            slice(start - read_start, stop - read_start)
        ))
    return blocks


def parallel_apply(
    func: Callable,
    iterable: List[Any],
    n_jobs: Optional[int] = None,
    prefer: Optional[str] = None,
    progress: bool = False,
    **kwargs
) -> List[Any]:
    """
    Apply a function to an iterable in parallel.

    Parameters
    ----------
    func : Callable
        Function to apply.
    iterable : List[Any]
        Items to process.
    n_jobs : int, optional
        Number of jobs. If None, uses PERFORMANCE_CONFIG.
    prefer : str, optional
        'processes' or 'threads'. If None, uses PERFORMANCE_CONFIG.
    progress : bool, optional
        Whether to show a progress bar, by default False.
    **kwargs
        Additional arguments to pass to the function.

    Returns
    -------
    List[Any]
        Results of applying the function to each item, in input order.
    """
    if n_jobs is None:
        n_jobs = PERFORMANCE_CONFIG.get("n_jobs", -1)
    if prefer is None:
        prefer = PERFORMANCE_CONFIG.get("prefer", "threads")

    if not PERFORMANCE_CONFIG.get("use_parallel", False) or n_jobs == 1:
        logger.debug(f"Running {len(iterable)} tasks sequentially")
        if progress:
            iterable = tqdm(iterable, desc=f"Running {func.__name__}")
        return [func(item, **kwargs) for item in iterable]

    logger.debug(f"Running {len(iterable)} tasks in parallel with {n_jobs} jobs")
    return Parallel(n_jobs=n_jobs, prefer=prefer, verbose=10 if progress else 0)(
        delayed(func)(item, **kwargs) for item in iterable
    )


def normalize_array(
    array: np.ndarray,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
    clip: bool = True
) -> np.ndarray:
    """
    Normalize array to range [0, 1], ignoring NaN.

    Parameters
    ----------
    array : np.ndarray
        Input array.
    min_val : float, optional
        Minimum value for normalization. If None, uses array minimum.
    max_val : float, optional
        Maximum value for normalization. If None, uses array maximum.
    clip : bool, optional
        Whether to clip values outside [min_val, max_val], by default True.

    Returns
    -------
    np.ndarray
        Normalized array; NaN stays NaN.
    """
    if np.all(np.isnan(array)):
        return np.full_like(array, np.nan, dtype=np.float64)

    if min_val is None:
        min_val = np.nanmin(array)
    if max_val is None:
        max_val = np.nanmax(array)

    # Constant input maps to zero
    if min_val == max_val:
        return np.where(np.isnan(array), np.nan, 0.0)

    normalized = (array - min_val) / (max_val - min_val)

    if clip:
        normalized = np.clip(normalized, 0, 1)

    return normalized
