"""Presence-only filtering of modelled species range rasters."""

import logging
from typing import Dict, Mapping

import numpy as np
import xarray as xr
import rioxarray as rxr  # Required for .rio accessor, even if not directly called
from tqdm import tqdm

logger = logging.getLogger(__name__)


def filter_presence(raster: xr.DataArray, threshold: float = 1.0) -> xr.DataArray:
    """Mask out every cell below the presence threshold.

    Cells with a value ``>= threshold`` are kept as they are; everything else
    (absence, nodata) becomes NaN so only presence renders. The input is not
    modified.

    Args:
        raster: Species range raster.
        threshold: Minimum value counted as presence.

    Returns:
        New float raster with NaN as its nodata value.
    """
    presence = raster.where(raster >= threshold)
    presence.attrs = {k: v for k, v in raster.attrs.items() if k not in ("_FillValue", "nodata")}
    presence = presence.rio.write_nodata(np.nan, encoded=False)

    n_kept = int(presence.notnull().sum())
    logger.debug(f"{raster.name}: kept {n_kept} of {raster.size} cells at threshold {threshold}")
    return presence


def filter_ranges(
    ranges: Mapping[str, xr.DataArray],
    threshold: float = 1.0,
) -> Dict[str, xr.DataArray]:
    """Apply :func:`filter_presence` to each species independently."""
    filtered = {}
    for species, raster in tqdm(ranges.items(), desc="Filtering ranges", total=len(ranges), disable=len(ranges) < 2):
        filtered[species] = filter_presence(raster, threshold=threshold)
    logger.info(f"Filtered {len(filtered)} species range rasters to presence cells")
    return filtered
