"""
Input loaders.
"""

from .loaders import (
    load_occurrences,
    load_protected_raster,
    load_range_rasters,
    load_ecoregions,
    load_inputs,
)

__all__ = [
    "load_occurrences",
    "load_protected_raster",
    "load_range_rasters",
    "load_ecoregions",
    "load_inputs",
]
