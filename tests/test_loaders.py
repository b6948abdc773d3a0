import zipfile

import numpy as np
import pandas as pd
import pytest

from occmap.data.loaders import (
    load_ecoregions,
    load_occurrences,
    load_protected_raster,
    load_range_rasters,
)

from conftest import make_raster, write_tif


def test_load_occurrences_csv_and_parquet(tmp_path, occurrences):
    csv_path = tmp_path / "points.csv"
    occurrences.to_csv(csv_path, index=False)
    pd.testing.assert_frame_equal(load_occurrences(csv_path), occurrences)

    parquet_path = tmp_path / "points.parquet"
    occurrences.to_parquet(parquet_path)
    assert len(load_occurrences(parquet_path)) == len(occurrences)


def test_load_occurrences_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_occurrences(tmp_path / "missing.csv")


def test_load_occurrences_unknown_format(tmp_path):
    path = tmp_path / "points.xlsx"
    path.write_text("")
    with pytest.raises(ValueError):
        load_occurrences(path)


def test_load_protected_raster_masks_nodata(tmp_path):
    path = write_tif(make_raster([[1, -9999], [0, 1]]).rio.write_nodata(-9999), tmp_path / "pa.tif")
    raster = load_protected_raster(path)

    assert raster.dims == ("y", "x")
    assert raster.rio.crs.to_epsg() == 4326
    assert np.isnan(raster.values[0, 1])
    assert raster.values[1, 0] == 0


def test_load_protected_raster_rejects_multiband(tmp_path):
    import xarray as xr

    band = make_raster(np.ones((2, 2)))
    stack = xr.concat([band, band], dim="band").assign_coords(band=[1, 2])
    path = tmp_path / "stack.tif"
    stack.rio.to_raster(path)

    with pytest.raises(ValueError, match="single-band"):
        load_protected_raster(path)


def test_load_protected_raster_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_protected_raster(tmp_path / "missing.tif")


def test_load_range_rasters_from_zip(input_dir):
    ranges = load_range_rasters(input_dir / "data" / "species_ranges.zip")

    assert list(ranges) == ["gopherus_morafkai", "heloderma_suspectum"]
    assert ranges["gopherus_morafkai"].shape == (2, 2)
    assert np.isnan(ranges["gopherus_morafkai"].values[1, 0])


def test_load_range_rasters_from_directory(tmp_path):
    write_tif(make_raster([[0, 1], [1, 1]], name="a"), tmp_path / "Species A.tif")
    write_tif(make_raster([[1, 1], [1, 0]], name="b"), tmp_path / "species-b.tif")
    (tmp_path / "notes.txt").write_text("not a raster")

    ranges = load_range_rasters(tmp_path)
    assert list(ranges) == ["species_a", "species_b"]


def test_load_range_rasters_empty_archive(tmp_path):
    path = tmp_path / "empty.zip"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("readme.txt", "nothing here")

    with pytest.raises(ValueError, match="No rasters"):
        load_range_rasters(path)


def test_load_ecoregions(input_dir):
    ecoregions = load_ecoregions(input_dir / "data" / "ecoregions.geojson")
    assert ecoregions["count"].tolist() == [3, 1]
    assert ecoregions.crs.to_epsg() == 4326


def test_load_ecoregions_requires_count(input_dir):
    with pytest.raises(ValueError, match="missing attributes"):
        load_ecoregions(input_dir / "data" / "ecoregions.geojson", count_col="n_samples")
