#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration settings for raster grid processing.

This module centralizes all configuration parameters used across the
processing modules, making it easier to modify settings in one place.
Settings can be overridden from a YAML file with ``load_config``.
"""
from typing import Dict, Any, Union
from pathlib import Path
import yaml

from raster_grid.core.exceptions import InvalidParameter

# General configuration
DEFAULT_NODATA_VALUE: float = -9999.0
GEOREF_TOLERANCE: float = 0.0  # Exact georeferencing match by default
FLAT_ASPECT: float = -1.0      # Sentinel aspect for flat cells
CHUNK_SIZE: int = 1024         # Rows per block for parallel processing
N_JOBS: int = -1               # Number of parallel jobs (-1 = all cores)

# Path configuration
PROJECT_ROOT: Path = Path(__file__).parent.absolute()
DEFAULT_OUTPUT_DIR: Path = PROJECT_ROOT / "output"

# Terrain derivative configuration
TERRAIN_CONFIG: Dict[str, Any] = {
    "neighbors": 8,             # 8 = Horn, 4 = Zevenbergen & Thorne
    "edge_policy": "reduced",   # Options: 'reduced', 'nodata'
    "flat_threshold": 1e-4,     # Gradient magnitude below which a cell is flat
    "sun_azimuth": 315.0,       # Degrees clockwise from north
    "sun_altitude": 45.0,       # Degrees above the horizon
    "units": "degrees",         # Default output unit for slope and aspect
}

# Resampling configuration
RESAMPLE_CONFIG: Dict[str, Any] = {
    "method": "nearest",  # Options: 'nearest', 'bilinear'
}

# Spectral index configuration
SPECTRAL_CONFIG: Dict[str, Any] = {
    "reflectance_scale": 1e-4,   # Sentinel-2 L2A digital numbers to reflectance
    "reflectance_offset": 0.0,
    "stretch_percentiles": (2.0, 98.0),
}

# Performance tuning
PERFORMANCE_CONFIG: Dict[str, Any] = {
    "use_parallel": False,
    "n_jobs": N_JOBS,
    "chunk_size": CHUNK_SIZE,
    "prefer": "threads",  # joblib backend preference
}

# Logging configuration
LOGGING_CONFIG: Dict[str, Any] = {
    "level": "INFO",  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    "log_to_file": False,
    "log_file": DEFAULT_OUTPUT_DIR / "raster_grid.log",
    "log_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

_SECTIONS: Dict[str, Dict[str, Any]] = {
    "terrain": TERRAIN_CONFIG,
    "resample": RESAMPLE_CONFIG,
    "spectral": SPECTRAL_CONFIG,
    "performance": PERFORMANCE_CONFIG,
    "logging": LOGGING_CONFIG,
}


def load_config(path: Union[str, Path]) -> Dict[str, Dict[str, Any]]:
    """
    Override configuration sections from a YAML file.

    The file maps section names (``terrain``, ``resample``, ``spectral``,
    ``performance``, ``logging``) to key/value overrides. The module-level
    dictionaries are updated in place so that every importer sees the change.

    Parameters
    ----------
    path : str or Path
        Path to the YAML configuration file.

    Returns
    -------
    dict
        Mapping of section name to the updated settings dictionary.
    """
    with open(path, "r") as f:
        overrides = yaml.safe_load(f) or {}

    if not isinstance(overrides, dict):
        raise InvalidParameter(f"Configuration file must contain a mapping: {path}")

    for section, values in overrides.items():
        if section not in _SECTIONS:
            raise InvalidParameter(
                f"Unknown configuration section '{section}', "
                f"expected one of {sorted(_SECTIONS)}"
            )
        if not isinstance(values, dict):
            raise InvalidParameter(f"Section '{section}' must be a mapping")
        _SECTIONS[section].update(values)

    return dict(_SECTIONS)
