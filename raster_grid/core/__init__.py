#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Core functionality for raster grid processing.

This module contains the grid abstraction, the error taxonomy,
configuration management, logging setup and the rasterio adapter.
"""
