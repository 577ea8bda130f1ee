#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utility functions for raster grid processing.
"""
