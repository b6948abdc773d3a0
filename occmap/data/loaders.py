"""
Input loading for the occurrence / protected-area pipeline.

Every loader checks its path up front and raises ``FileNotFoundError`` before
reading anything, so a failed run never leaves partially loaded inputs behind.
"""

import logging
import zipfile
from pathlib import Path
from typing import Dict, Tuple, Union

import pandas as pd
import geopandas as gpd
import rioxarray as rxr
import xarray as xr

from occmap.utils.io import PipelineConfig
from occmap.utils.text_utils import tidy_variable_name

logger = logging.getLogger(__name__)

RASTER_SUFFIXES = (".tif", ".tiff")


def _check_exists(path: Path, description: str) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{description} not found: {path}")
    return path


def load_occurrences(points_path: Union[str, Path]) -> pd.DataFrame:
    """Load the table of sample points.

    Args:
        points_path: CSV or Parquet file with one row per occurrence record.

    Returns:
        DataFrame in file order.
    """
    points_path = _check_exists(points_path, "Occurrence table")
    suffix = points_path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(points_path)
    elif suffix in (".parquet", ".pq"):
        df = pd.read_parquet(points_path)
    else:
        raise ValueError(f"Unsupported occurrence table format '{suffix}': {points_path}")

    logger.info(f"Loaded {len(df)} occurrence records from {points_path}")
    return df


def _open_single_band(path: str, name: str) -> xr.DataArray:
    data = rxr.open_rasterio(path, masked=True)
    if "band" in data.dims:
        if data.sizes["band"] != 1:
            raise ValueError(f"Expected a single-band raster, {path} has {data.sizes['band']} bands")
        data = data.squeeze("band", drop=True)
    return data.rename(name)


def load_protected_raster(raster_path: Union[str, Path]) -> xr.DataArray:
    """Load the single-band protected-area raster.

    Nodata cells are masked to NaN.
    """
    raster_path = _check_exists(raster_path, "Protected-area raster")
    raster = _open_single_band(str(raster_path), "protected")
    logger.info(
        f"Loaded protected-area raster {raster_path} "
        f"(shape={raster.shape}, crs={raster.rio.crs}, bounds={raster.rio.bounds()})"
    )
    return raster


def load_range_rasters(ranges_path: Union[str, Path]) -> Dict[str, xr.DataArray]:
    """Load the per-species range rasters.

    Args:
        ranges_path: Either a ``.zip`` archive of GeoTIFFs or a directory of
            ``*.tif`` files. One single-band raster per species.

    Returns:
        Dictionary of species layer name (tidied file stem) to raster, in
        archive / sorted file order.
    """
    ranges_path = _check_exists(ranges_path, "Species range rasters")

    if ranges_path.is_dir():
        members = sorted(
            p for p in ranges_path.iterdir() if p.suffix.lower() in RASTER_SUFFIXES
        )
        sources = [(p.stem, str(p)) for p in members]
    elif zipfile.is_zipfile(ranges_path):
        with zipfile.ZipFile(ranges_path) as archive:
            members = [
                m for m in archive.namelist()
                if Path(m).suffix.lower() in RASTER_SUFFIXES and not m.startswith("__MACOSX")
            ]
        sources = [(Path(m).stem, f"/vsizip/{ranges_path.resolve()}/{m}") for m in members]
    else:
        raise ValueError(f"{ranges_path} is neither a directory nor a zip archive of rasters")

    if not sources:
        raise ValueError(f"No rasters found in {ranges_path}")

    ranges = {}
    for stem, source in sources:
        name = tidy_variable_name(stem)
        if name in ranges:
            raise ValueError(f"Duplicate species layer name '{name}' in {ranges_path}")
        ranges[name] = _open_single_band(source, name)
        logger.debug(f"Loaded range raster {name} from {source}")

    logger.info(f"Loaded {len(ranges)} species range rasters: {list(ranges)}")
    return ranges


def load_ecoregions(
    ecoregions_path: Union[str, Path],
    count_col: str = "count",
    name_col: str = "name",
) -> gpd.GeoDataFrame:
    """Load the prepared ecoregion polygons with their sample counts.

    The polygons are reprojected to EPSG:4326 for web rendering.
    """
    ecoregions_path = _check_exists(ecoregions_path, "Ecoregion polygons")
    ecoregions = gpd.read_file(ecoregions_path)

    missing = [c for c in (count_col, name_col) if c not in ecoregions.columns]
    if missing:
        raise ValueError(f"Ecoregion file {ecoregions_path} is missing attributes: {missing}")

    if ecoregions.crs is None:
        logger.warning(f"{ecoregions_path} has no CRS, assuming EPSG:4326")
        ecoregions = ecoregions.set_crs(4326)
    elif ecoregions.crs.to_epsg() != 4326:
        ecoregions = ecoregions.to_crs(4326)

    logger.info(f"Loaded {len(ecoregions)} ecoregion polygons from {ecoregions_path}")
    return ecoregions


def load_inputs(config: PipelineConfig) -> Tuple[pd.DataFrame, xr.DataArray]:
    """Load the occurrence table and protected-area raster named by the config."""
    points = load_occurrences(config.resolved("points_path"))
    raster = load_protected_raster(config.resolved("protected_raster_path"))
    return points, raster
