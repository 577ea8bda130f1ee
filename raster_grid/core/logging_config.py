#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Package logger setup.

Modules log through children of the ``raster_grid`` logger, which gets a
console handler on import and a file handler when LOGGING_CONFIG asks for one.
"""
import logging
from pathlib import Path
from typing import Optional

from raster_grid.core.config import LOGGING_CONFIG

ROOT_LOGGER_NAME = "raster_grid"


def setup_logging(log_level: Optional[str] = None,
                  log_file: Optional[str] = None,
                  module_name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Attach handlers to a logger unless it already has some.

    Parameters
    ----------
    log_level : str, optional
        Level name; defaults to LOGGING_CONFIG["level"].
    log_file : str, optional
        Also log to this file, whatever ``log_to_file`` says.
    module_name : str, optional
        Logger to configure, by default the package logger.
    """
    logger = logging.getLogger(module_name)
    if logger.handlers:
        return logger

    level = (log_level or LOGGING_CONFIG["level"]).upper()
    if not isinstance(getattr(logging, level, None), int):
        raise ValueError(f"Invalid log level: {level}")
    logger.setLevel(level)

    handlers = [logging.StreamHandler()]
    if log_file is None and LOGGING_CONFIG.get("log_to_file"):
        log_file = LOGGING_CONFIG["log_file"]
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(LOGGING_CONFIG["log_format"])
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def get_module_logger(module_name: str) -> logging.Logger:
    """Child of the package logger for ``module_name`` (usually ``__name__``)."""
    if module_name == ROOT_LOGGER_NAME or module_name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(module_name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{module_name}")


# Initialize the package logger
root_logger = setup_logging()
