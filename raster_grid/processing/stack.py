#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Band stacks and RGB composites.

A ``BandStack`` is an ordered, named sequence of co-registered grids, such
as the bands of a multispectral scene. Composites are returned as plain
``uint8`` arrays for an external renderer.
"""
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from raster_grid.core.config import SPECTRAL_CONFIG
from raster_grid.core.exceptions import InvalidParameter
from raster_grid.core.grid import Grid, GridGeometry, check_coregistered
from raster_grid.core.logging_config import get_module_logger
from raster_grid.utils.utils import normalize_array

# Initialize logger
logger = get_module_logger(__name__)

BandKey = Union[int, str]


class BandStack:
    """
    Ordered collection of co-registered grids.

    Parameters
    ----------
    bands : sequence of Grid
        Member grids; all must share shape and georeferencing.
    names : sequence of str, optional
        Band names, by default ``band1``, ``band2``, ...
    tolerance : float, optional
        Georeferencing tolerance, defaults to GEOREF_TOLERANCE.

    Raises
    ------
    ShapeMismatch
        If any member is not co-registered with the first band.
    """

    def __init__(
        self,
        bands: Sequence[Grid],
        names: Optional[Sequence[str]] = None,
        tolerance: Optional[float] = None
    ):
        bands = list(bands)
        if not bands:
            raise InvalidParameter("A band stack needs at least one band")
        if names is None:
            names = [f"band{i + 1}" for i in range(len(bands))]
        names = list(names)
        if len(names) != len(bands):
            raise InvalidParameter(f"Got {len(names)} names for {len(bands)} bands")
        if len(set(names)) != len(names):
            raise InvalidParameter(f"Band names must be unique: {names}")

        for band in bands[1:]:
            check_coregistered(bands[0], band, tolerance)

        self._bands = bands
        self._names = names
        logger.debug(f"Created band stack {names} with shape {bands[0].shape}")

    @property
    def names(self) -> List[str]:
        return list(self._names)

    @property
    def geometry(self) -> GridGeometry:
        return self._bands[0].geometry

    @property
    def shape(self) -> Tuple[int, int]:
        return self._bands[0].shape

    def __len__(self) -> int:
        return len(self._bands)

    def __iter__(self) -> Iterator[Grid]:
        return iter(self._bands)

    def __getitem__(self, key: BandKey) -> Grid:
        return self.band(key)

    def band(self, key: BandKey) -> Grid:
        """Return a band by position or name."""
        if isinstance(key, str):
            if key not in self._names:
                raise KeyError(f"No band named '{key}', available: {self._names}")
            return self._bands[self._names.index(key)]
        return self._bands[key]

    def map(self, func: Callable[[Grid], Grid]) -> "BandStack":
        """Apply a grid-to-grid function to every band."""
        return BandStack([func(band) for band in self._bands], self._names)

    def to_array(self) -> np.ndarray:
        """Array of shape (bands, rows, cols) with NaN for missing cells."""
        return np.stack([band.to_array() for band in self._bands])

    def to_dataframe(self) -> pd.DataFrame:
        """
        Table of cell-centre coordinates and band values.

        Only cells valid in every band are included.
        """
        xs, ys = self.geometry.cell_centers()
        rows, cols = np.indices(self.shape)
        data: Dict[str, np.ndarray] = {
            "row": rows.ravel(),
            "col": cols.ravel(),
            "x": xs.ravel(),
            "y": ys.ravel(),
        }
        valid = np.ones(self.shape[0] * self.shape[1], dtype=bool)
        for name, band in zip(self._names, self._bands):
            data[name] = band.to_array().ravel()
            valid &= band.valid_mask().ravel()

        df = pd.DataFrame(data)
        logger.info(f"Exporting {int(valid.sum())} valid cells out of {len(df)} total cells")
        return df[valid].reset_index(drop=True)

    def rgb_composite(
        self,
        red: BandKey = 0,
        green: BandKey = 1,
        blue: BandKey = 2,
        stretch: Optional[str] = "linear",
        percentiles: Optional[Tuple[float, float]] = None
    ) -> np.ndarray:
        """
        Build an 8-bit RGB image from three bands.

        Parameters
        ----------
        red, green, blue : int or str
            Bands for each channel, by position or name.
        stretch : str, optional
            'linear' stretches each channel between the given percentiles;
            None scales each channel between its own minimum and maximum.
        percentiles : tuple, optional
            Lower and upper percentile for the linear stretch. If None,
            uses SPECTRAL_CONFIG.

        Returns
        -------
        np.ndarray
            Array of shape (rows, cols, 3) and dtype uint8. Cells missing in
            any channel are black.
        """
        if stretch not in ("linear", None):
            raise InvalidParameter(f"Unknown stretch: {stretch}, expected 'linear' or None")
        if percentiles is None:
            percentiles = SPECTRAL_CONFIG.get("stretch_percentiles", (2.0, 98.0))
        low, high = percentiles
        if not 0.0 <= low < high <= 100.0:
            raise InvalidParameter(f"Invalid stretch percentiles: {percentiles}")

        channels = []
        for key in (red, green, blue):
            values = self.band(key).to_array()
            if stretch == "linear" and not np.all(np.isnan(values)):
                lo, hi = np.nanpercentile(values, [low, high])
                channels.append(normalize_array(values, lo, hi, clip=True))
            else:
                channels.append(normalize_array(values))

        rgb = np.stack(channels, axis=-1)
        missing = np.any(np.isnan(rgb), axis=-1)
        rgb[missing] = 0.0
        return np.round(rgb * 255).astype(np.uint8)
