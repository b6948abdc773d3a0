"""
Protected-area status of occurrence records.

Joins each occurrence to the protected-area raster cell it falls in and
normalises the resulting flag so that every record is labelled 0 or 1.
"""

import logging
from typing import Optional, Tuple, Union

import numpy as np
import pandas as pd
import geopandas as gpd
import xarray as xr
import rioxarray as rxr  # Required for .rio accessor, even if not directly called
from pyproj import CRS
from rasterio.transform import rowcol
from rasterio.errors import WindowError
from rioxarray.exceptions import NoDataInBounds, OneDimensionalRaster

from occmap.occurrence.validation import validate_occurrences

logger = logging.getLogger(__name__)

CRSLike = Union[str, int, CRS]


def _same_crs(a: CRS, b: CRS) -> bool:
    if a.equals(b, ignore_axis_order=True):
        return True
    epsg = a.to_epsg()
    return epsg is not None and epsg == b.to_epsg()


def reconcile_crs(
    points_crs: CRSLike,
    raster: xr.DataArray,
    reproject: bool = False,
) -> CRS:
    """Work out which CRS the points should be sampled in.

    The points' declared CRS must match the raster's. When it does not, the
    points are only moved into the raster CRS if ``reproject`` is set; the
    raster itself is never reprojected.

    Args:
        points_crs: CRS the point coordinates are recorded in.
        raster: Raster to be sampled.
        reproject: Allow transforming the points into the raster CRS.

    Returns:
        The CRS to sample in (always the raster's).

    Raises:
        ValueError: If the raster has no CRS, or the CRSs differ and
            ``reproject`` is False.
    """
    if raster.rio.crs is None:
        raise ValueError("Protected-area raster has no CRS; cannot relate it to the occurrence coordinates")

    points_crs = CRS.from_user_input(points_crs)
    raster_crs = CRS.from_user_input(raster.rio.crs)

    if _same_crs(points_crs, raster_crs):
        return raster_crs

    if not reproject:
        raise ValueError(
            f"Occurrence CRS ({points_crs.to_string()}) does not match the raster CRS "
            f"({raster_crs.to_string()}). Set reproject_points to transform the points."
        )

    logger.warning(f"Reprojecting occurrences from {points_crs.to_string()} to {raster_crs.to_string()} for sampling")
    return raster_crs


def points_to_geodataframe(
    df: pd.DataFrame,
    lon_col: str = "longitude",
    lat_col: str = "latitude",
    crs: CRSLike = "EPSG:4326",
) -> gpd.GeoDataFrame:
    """Attach point geometry and a CRS to an occurrence table. Index and row order are kept."""
    return gpd.GeoDataFrame(
        df.copy(),
        geometry=gpd.points_from_xy(df[lon_col], df[lat_col]),
        crs=crs,
    )


def crop_to_points(raster: xr.DataArray, points: gpd.GeoDataFrame) -> Optional[xr.DataArray]:
    """Crop a raster to the bounding box of a set of points.

    Points must already be in the raster CRS. The box is padded by one cell
    on every side so a point lying on a cell edge keeps the cell that
    :func:`sample_raster_at_points` assigns it to.

    Returns:
        The cropped raster, or None if no raster cell overlaps the points.
    """
    if points.empty:
        logger.warning("No points to crop to")
        return None

    minx, miny, maxx, maxy = points.total_bounds
    res_x, res_y = (abs(r) for r in raster.rio.resolution())
    try:
        cropped = raster.rio.clip_box(
            minx=minx - res_x,
            miny=miny - res_y,
            maxx=maxx + res_x,
            maxy=maxy + res_y,
            auto_expand=True,
        )
    except (NoDataInBounds, WindowError):
        logger.warning(
            f"Occurrence extent {(minx, miny, maxx, maxy)} does not overlap the raster "
            f"bounds {raster.rio.bounds()}"
        )
        return None
    except OneDimensionalRaster:
        # raster too narrow to crop to two cells; sampling the whole of it is equivalent
        logger.warning(f"Cannot crop raster of shape {raster.shape}, sampling it uncropped")
        return raster

    logger.info(f"Cropped raster from {raster.shape} to {cropped.shape}, bounds {cropped.rio.bounds()}")
    return cropped


def sample_raster_at_points(raster: xr.DataArray, points: gpd.GeoDataFrame) -> pd.Series:
    """Read the raster cell value under each point.

    Cells are half-open: a point on an edge shared by two cells belongs to
    the cell east / south of it, so points on the raster's outer east or
    south edge fall outside the grid. Points outside the grid and points on
    nodata cells get NaN.

    Returns:
        Float Series aligned to ``points.index``.
    """
    values = np.full(len(points), np.nan, dtype=float)
    if len(points) == 0:
        return pd.Series(values, index=points.index, dtype=float)

    if "band" in raster.dims:
        raster = raster.squeeze("band", drop=True)

    rows, cols = rowcol(
        raster.rio.transform(),
        points.geometry.x.to_numpy(),
        points.geometry.y.to_numpy(),
    )
    rows = np.asarray(rows, dtype=int)
    cols = np.asarray(cols, dtype=int)

    inside = (rows >= 0) & (rows < raster.rio.height) & (cols >= 0) & (cols < raster.rio.width)
    if inside.any():
        grid = np.asarray(raster.values, dtype=float)
        values[inside] = grid[rows[inside], cols[inside]]

    nodata = raster.rio.nodata
    if nodata is not None and not np.isnan(nodata):
        values[values == nodata] = np.nan

    return pd.Series(values, index=points.index, dtype=float)


def join_protected_status(
    df: pd.DataFrame,
    raster: xr.DataArray,
    lon_col: str = "longitude",
    lat_col: str = "latitude",
    points_crs: CRSLike = "EPSG:4326",
    protected_col: str = "protected",
    reproject: bool = False,
) -> Tuple[pd.DataFrame, Optional[xr.DataArray]]:
    """Sample the protected-area raster at every occurrence.

    1. Attach a CRS to the point coordinates, reconciled with the raster's.
    2. Crop the raster to the extent of the points.
    3. Sample the cropped raster under each point.

    Args:
        df: Validated occurrence table.
        raster: Protected-area raster.
        lon_col: Longitude / x column.
        lat_col: Latitude / y column.
        points_crs: CRS of the coordinates in ``df``.
        protected_col: Name of the column to add.
        reproject: Allow transforming the points into the raster CRS.

    Returns:
        Tuple of (copy of ``df`` with exactly one new column ``protected_col``,
        cropped raster or None when the points fall entirely outside it).
    """
    if protected_col in df.columns:
        raise ValueError(f"Occurrence table already has a '{protected_col}' column")

    sample_crs = reconcile_crs(points_crs, raster, reproject=reproject)
    points = points_to_geodataframe(df, lon_col, lat_col, crs=points_crs)
    if not _same_crs(CRS.from_user_input(points.crs), sample_crs):
        points = points.to_crs(sample_crs)

    cropped = crop_to_points(raster, points)
    if cropped is None:
        samples = pd.Series(np.nan, index=df.index, dtype=float)
    else:
        samples = sample_raster_at_points(cropped, points)

    joined = df.copy()
    joined[protected_col] = samples.to_numpy()

    n_missing = int(joined[protected_col].isna().sum())
    logger.info(f"Sampled protected status for {len(joined)} points ({n_missing} without data)")
    return joined, cropped


def normalize_protected(df: pd.DataFrame, protected_col: str = "protected") -> pd.DataFrame:
    """Replace missing protected flags with 0.

    Points outside the raster and points on nodata cells both become 0. No
    rows are dropped. Applying this twice gives the same result as once.
    """
    if protected_col not in df.columns:
        raise ValueError(f"Occurrence table has no '{protected_col}' column")

    df = df.copy()
    flags = df[protected_col].fillna(0)
    if (flags % 1 == 0).all():
        flags = flags.astype("int64")
    df[protected_col] = flags
    return df


def label_points(
    df: pd.DataFrame,
    raster: xr.DataArray,
    lon_col: str = "longitude",
    lat_col: str = "latitude",
    taxon_col: str = "taxon",
    points_crs: CRSLike = "EPSG:4326",
    protected_col: str = "protected",
    reproject: bool = False,
) -> Tuple[pd.DataFrame, Optional[xr.DataArray]]:
    """Validate, join and normalise: every occurrence labelled protected (1) or not (0).

    Returns:
        Tuple of (labelled occurrence table, cropped protected-area raster or None).
    """
    geographic = CRS.from_user_input(points_crs).is_geographic
    df = validate_occurrences(df, lon_col=lon_col, lat_col=lat_col, taxon_col=taxon_col, geographic=geographic)

    joined, cropped = join_protected_status(
        df,
        raster,
        lon_col=lon_col,
        lat_col=lat_col,
        points_crs=points_crs,
        protected_col=protected_col,
        reproject=reproject,
    )
    labelled = normalize_protected(joined, protected_col=protected_col)

    n_protected = int((labelled[protected_col] == 1).sum())
    logger.info(f"{n_protected} of {len(labelled)} occurrences fall in protected areas")
    return labelled, cropped
