"""Raster to RGBA conversion for web map image overlays."""

from typing import List, Optional, Tuple

import numpy as np
import xarray as xr
import rioxarray as rxr  # Required for .rio accessor, even if not directly called
from matplotlib import colormaps
from matplotlib.colors import to_hex


def normalize(array: np.ndarray, vmin=None, vmax=None) -> np.ndarray:
    """
    This function normalizes an array to be between 0 and 1.
    """
    if vmin is None:
        vmin = np.nanmin(array)
    if vmax is None:
        vmax = np.nanmax(array)
    array = np.clip(array, vmin, vmax)
    value_range = vmax - vmin
    if value_range == 0:
        # a constant layer, e.g. a presence-only range
        return np.where(np.isnan(array), np.nan, 1.0)
    return (array - vmin) / value_range


def array_to_rgba(array: np.ndarray, colormap="viridis", vmin=None, vmax=None) -> np.ndarray:
    """
    This function converts an array to a RGBA array using a colormap.

    NaN cells are fully transparent.
    """
    colormap_fn = colormaps[colormap]
    if np.isnan(array).all():
        return np.zeros(array.shape + (4,))
    rgba = colormap_fn(normalize(array, vmin, vmax))
    rgba[np.isnan(array), 3] = 0.0
    return rgba


def colormap_hex(colormap: str, value: float = 0.8) -> str:
    """Representative colour of a colormap, for legends."""
    return to_hex(colormaps[colormap](value))


def colormap_rgb(colormap: str, values: np.ndarray, alpha: int = 200) -> List[List[int]]:
    """0-255 RGBA colours for each value in [0, 1], as plain lists for JSON layers."""
    rgba = colormaps[colormap](np.asarray(values, dtype=float))
    return [[int(r * 255), int(g * 255), int(b * 255), alpha] for r, g, b, _ in rgba]


def raster_to_overlay(
    raster: xr.DataArray,
    colormap: str = "viridis",
    vmin: Optional[float] = None,
    vmax: Optional[float] = None,
) -> Tuple[np.ndarray, List[List[float]]]:
    """
    Prepares a raster for a Leaflet image overlay.

    Returns:
        Tuple of (north-up RGBA image, [[south, west], [north, east]] bounds in EPSG:4326).
    """
    if "band" in raster.dims:
        raster = raster.squeeze("band", drop=True)
    if raster.rio.crs is not None and raster.rio.crs.to_epsg() != 4326:
        raster = raster.rio.reproject("EPSG:4326")

    image = array_to_rgba(np.asarray(raster.values, dtype=float), colormap, vmin, vmax)
    y = raster[raster.rio.y_dim].values
    if len(y) > 1 and y[0] < y[-1]:
        image = np.flipud(image)

    west, south, east, north = raster.rio.bounds()
    return image, [[south, west], [north, east]]
