#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Grid processing modules: algebra, resampling, terrain derivatives,
spectral indices and band stacks.
"""
