import zipfile
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import xarray as xr
import rioxarray as rxr


def make_raster(
    values,
    west: float = -113.0,
    north: float = 32.0,
    resolution: float = 0.5,
    crs="EPSG:4326",
    name: str = "protected",
    nodata=None,
) -> xr.DataArray:
    """Build a north-up raster whose top-left corner is (west, north)."""
    values = np.asarray(values, dtype=float)
    n_rows, n_cols = values.shape
    x = west + resolution * (np.arange(n_cols) + 0.5)
    y = north - resolution * (np.arange(n_rows) + 0.5)
    raster = xr.DataArray(values, coords={"y": y, "x": x}, dims=("y", "x"), name=name)
    if crs is not None:
        raster = raster.rio.write_crs(crs)
    if nodata is not None:
        raster = raster.rio.write_nodata(nodata)
    return raster


@pytest.fixture
def protected_raster() -> xr.DataArray:
    """
    4x4 cells of 0.5 degrees covering lon -113..-111, lat 30..32.

    The left half is protected (1), the right half is nodata.
    """
    values = np.array([
        [1, 1, np.nan, np.nan],
        [1, 1, np.nan, np.nan],
        [1, 1, np.nan, np.nan],
        [1, 1, np.nan, np.nan],
    ])
    return make_raster(values)


@pytest.fixture
def occurrences() -> pd.DataFrame:
    return pd.DataFrame({
        "taxon": ["Gopherus morafkai", "Gopherus morafkai", "Heloderma suspectum", "Heloderma suspectum"],
        "longitude": [-112.75, -112.25, -111.25, -111.75],
        "latitude": [31.25, 30.25, 31.75, 30.75],
        "observer": ["a", "b", "c", "d"],
    })


@pytest.fixture
def range_rasters() -> dict:
    return {
        "gopherus_morafkai": make_raster([[0, 1], [np.nan, 2]], name="gopherus_morafkai"),
        "heloderma_suspectum": make_raster([[3, 0.5], [1, 0]], name="heloderma_suspectum"),
    }


def write_tif(raster: xr.DataArray, path: Path) -> Path:
    raster.rio.to_raster(path)
    return path


@pytest.fixture
def input_dir(tmp_path, protected_raster, occurrences, range_rasters) -> Path:
    """A project folder holding every input file the pipeline reads."""
    import geopandas as gpd
    from shapely.geometry import box

    data_dir = tmp_path / "data"
    data_dir.mkdir()

    occurrences.to_csv(data_dir / "occurrences.csv", index=False)
    write_tif(protected_raster.rio.write_nodata(-9999), data_dir / "protected_areas.tif")

    tif_dir = tmp_path / "range_tifs"
    tif_dir.mkdir()
    with zipfile.ZipFile(data_dir / "species_ranges.zip", "w") as archive:
        for name, raster in range_rasters.items():
            tif_path = write_tif(raster.rio.write_nodata(-9999), tif_dir / f"{name}.tif")
            archive.write(tif_path, arcname=f"{name}.tif")

    ecoregions = gpd.GeoDataFrame(
        {
            "name": ["Sonoran Desert", "Madrean Archipelago"],
            "count": [3, 1],
        },
        geometry=[box(-113, 30, -112, 32), box(-112, 30, -111, 32)],
        crs="EPSG:4326",
    )
    ecoregions.to_file(data_dir / "ecoregions.geojson", driver="GeoJSON")

    return tmp_path


@pytest.fixture
def config_file(input_dir) -> Path:
    config_dir = input_dir / "config"
    config_dir.mkdir()
    config_path = config_dir / "default.yaml"
    config_path.write_text(
        "pipeline:\n"
        "  output_dir: outputs\n"
        "  points_path: data/occurrences.csv\n"
        "  protected_raster_path: data/protected_areas.tif\n"
        "  ranges_path: data/species_ranges.zip\n"
        "  ecoregions_path: data/ecoregions.geojson\n"
    )
    return config_path
