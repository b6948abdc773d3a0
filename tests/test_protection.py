import numpy as np
import pandas as pd
import pytest
import xarray as xr

from occmap.occurrence.protection import (
    crop_to_points,
    join_protected_status,
    label_points,
    normalize_protected,
    points_to_geodataframe,
    reconcile_crs,
    sample_raster_at_points,
)

from conftest import make_raster


def test_points_inside_protected_cells_are_flagged(occurrences, protected_raster):
    labelled, _ = label_points(occurrences, protected_raster)

    inside = occurrences["longitude"] < -112
    assert (labelled.loc[inside, "protected"] == 1).all()
    assert (labelled.loc[~inside, "protected"] == 0).all()


def test_points_outside_raster_extent_are_zero_not_missing(protected_raster):
    df = pd.DataFrame({
        "taxon": ["a", "b", "c"],
        "longitude": [-112.75, -100.0, 10.0],
        "latitude": [31.75, 31.0, 50.0],
    })
    labelled, _ = label_points(df, protected_raster)

    assert labelled["protected"].notna().all()
    assert labelled["protected"].tolist() == [1, 0, 0]


def test_points_entirely_outside_raster(protected_raster):
    df = pd.DataFrame({
        "taxon": ["a", "b"],
        "longitude": [10.0, 11.0],
        "latitude": [50.0, 51.0],
    })
    labelled, cropped = label_points(df, protected_raster)

    assert cropped is None
    assert labelled["protected"].tolist() == [0, 0]


def test_single_point_protected_and_nodata():
    point = pd.DataFrame({"taxon": ["x"], "longitude": [-112.0], "latitude": [31.0]})

    # 0.5 degree cells offset so (-112, 31) falls inside the second row / column
    protected = make_raster(np.ones((3, 3)), west=-112.75, north=31.75)
    labelled, _ = label_points(point, protected)
    assert labelled["protected"].tolist() == [1]

    missing = make_raster(np.full((3, 3), np.nan), west=-112.75, north=31.75)
    labelled, _ = label_points(point, missing)
    assert labelled["protected"].tolist() == [0]


@pytest.mark.parametrize(
    "coords",
    [
        # largest x and smallest y both on interior cell edges
        [(-112.75, 31.75), (-112.0, 31.0)],
        [(-112.5, 31.0), (-112.75, 31.75)],
        # west and north outer edges
        [(-113.0, 32.0), (-111.5, 30.5)],
    ],
)
def test_points_on_cell_edges_in_fully_protected_raster(coords):
    raster = make_raster(np.ones((4, 4)))
    df = pd.DataFrame({
        "taxon": ["a"] * len(coords),
        "longitude": [x for x, _ in coords],
        "latitude": [y for _, y in coords],
    })
    labelled, cropped = label_points(df, raster)

    assert labelled["protected"].tolist() == [1] * len(coords)
    assert cropped is not None


def test_cell_edge_samples_do_not_depend_on_other_points():
    raster = make_raster(np.arange(1, 17).reshape(4, 4))
    xs, ys = np.meshgrid([-113.0, -112.5, -112.0, -111.5], [32.0, 31.5, 31.0, 30.5])
    df = pd.DataFrame({"taxon": "a", "longitude": xs.ravel(), "latitude": ys.ravel()})
    uncropped = sample_raster_at_points(raster, points_to_geodataframe(df))

    # a point on a shared edge takes the cell east / south of it
    assert uncropped.iloc[5] == 6

    joined, _ = join_protected_status(df, raster)
    assert joined["protected"].notna().all()
    assert joined["protected"].tolist() == uncropped.tolist()

    for i in range(1, len(df)):
        pair, _ = join_protected_status(df.iloc[[0, i]], raster)
        assert pair["protected"].tolist() == uncropped.iloc[[0, i]].tolist()


def test_points_on_outer_east_and_south_edges_are_outside():
    raster = make_raster(np.ones((4, 4)))
    df = pd.DataFrame({
        "taxon": ["a", "b", "c"],
        "longitude": [-112.75, -111.0, -112.25],
        "latitude": [31.75, 31.25, 30.0],
    })
    labelled, _ = label_points(df, raster)

    assert labelled["protected"].tolist() == [1, 0, 0]


def test_join_adds_exactly_one_column_and_keeps_row_order(occurrences, protected_raster):
    shuffled = occurrences.sample(frac=1, random_state=1)
    joined, _ = join_protected_status(shuffled, protected_raster)

    assert list(joined.columns) == list(shuffled.columns) + ["protected"]
    assert joined.index.equals(shuffled.index)
    assert len(joined) == len(shuffled)
    assert joined["longitude"].tolist() == shuffled["longitude"].tolist()


def test_join_leaves_missing_samples_as_nan(occurrences, protected_raster):
    joined, _ = join_protected_status(occurrences, protected_raster)
    assert joined["protected"].isna().sum() == 2


def test_join_rejects_existing_flag_column(occurrences, protected_raster):
    occurrences["protected"] = 1
    with pytest.raises(ValueError):
        join_protected_status(occurrences, protected_raster)


def test_normalize_is_idempotent():
    df = pd.DataFrame({"taxon": ["a", "b", "c"], "protected": [1.0, np.nan, 0.0]})
    once = normalize_protected(df)
    twice = normalize_protected(once)

    assert once["protected"].tolist() == [1, 0, 0]
    pd.testing.assert_frame_equal(once, twice)
    # input untouched
    assert df["protected"].isna().sum() == 1


def test_normalize_requires_column():
    with pytest.raises(ValueError):
        normalize_protected(pd.DataFrame({"taxon": ["a"]}))


def test_row_count_preserved_at_every_step(occurrences, protected_raster):
    joined, _ = join_protected_status(occurrences, protected_raster)
    normalized = normalize_protected(joined)
    assert len(joined) == len(occurrences) == len(normalized)


def test_crop_to_points_covers_all_points(protected_raster):
    points = points_to_geodataframe(pd.DataFrame({
        "longitude": [-112.75, -112.25],
        "latitude": [31.75, 31.25],
    }))
    cropped = crop_to_points(protected_raster, points)

    assert isinstance(cropped, xr.DataArray)
    assert cropped.rio.width <= protected_raster.rio.width
    assert cropped.rio.height <= protected_raster.rio.height
    west, south, east, north = cropped.rio.bounds()
    minx, miny, maxx, maxy = points.total_bounds
    assert west <= minx and east >= maxx
    assert south <= miny and north >= maxy
    assert cropped.rio.crs == protected_raster.rio.crs


def test_sample_raster_respects_nodata_value():
    raster = make_raster([[1, -9999], [0, 1]], nodata=-9999)
    points = points_to_geodataframe(pd.DataFrame({
        "longitude": [-112.75, -112.25, -112.75, -112.25, -100.0],
        "latitude": [31.75, 31.75, 31.25, 31.25, 31.25],
    }))
    values = sample_raster_at_points(raster, points)

    assert values.iloc[0] == 1
    assert np.isnan(values.iloc[1])
    assert values.iloc[2] == 0
    assert values.iloc[3] == 1
    assert np.isnan(values.iloc[4])


def test_reconcile_crs_accepts_matching_crs(protected_raster):
    crs = reconcile_crs("EPSG:4326", protected_raster)
    assert crs.to_epsg() == 4326


def test_reconcile_crs_rejects_mismatch(protected_raster):
    with pytest.raises(ValueError, match="does not match"):
        reconcile_crs("EPSG:27700", protected_raster)


def test_reconcile_crs_requires_raster_crs():
    raster = make_raster(np.ones((2, 2)), crs=None)
    with pytest.raises(ValueError, match="no CRS"):
        reconcile_crs("EPSG:4326", raster)


def test_reprojects_points_when_allowed(protected_raster):
    raster_3857 = protected_raster.rio.reproject("EPSG:3857")
    df = pd.DataFrame({"taxon": ["a"], "longitude": [-112.75], "latitude": [31.25]})

    with pytest.raises(ValueError):
        label_points(df, raster_3857)

    labelled, _ = label_points(df, raster_3857, reproject=True)
    assert labelled["protected"].tolist() == [1]
