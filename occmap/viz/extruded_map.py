"""3D deck.gl map: ecoregions extruded by sample count, with the raw samples on top."""

import json
import logging
from pathlib import Path

import numpy as np
import pandas as pd
import geopandas as gpd
import pydeck as pdk

from occmap.viz.colour import colormap_rgb

logger = logging.getLogger(__name__)


def build_extruded_map(
    points: pd.DataFrame,
    ecoregions: gpd.GeoDataFrame,
    lon_col: str = "longitude",
    lat_col: str = "latitude",
    taxon_col: str = "taxon",
    count_col: str = "count",
    name_col: str = "name",
    elevation_scale: float = 1000,
    colormap: str = "YlOrRd",
    zoom: float = 5,
    pitch: float = 45,
) -> pdk.Deck:
    """Build the extruded ecoregion map.

    Args:
        points: Raw occurrence table with coordinates in EPSG:4326.
        ecoregions: Ecoregion polygons in EPSG:4326 with a count and name attribute.
        lon_col: Longitude column.
        lat_col: Latitude column.
        taxon_col: Taxon column, carried with the sample points.
        count_col: Polygon attribute used for height and colour.
        name_col: Polygon attribute shown in the tooltip.
        elevation_scale: Metres of extrusion per counted sample.
        colormap: Matplotlib colormap for the polygon fill.
        zoom: Initial zoom.
        pitch: Initial camera pitch in degrees.

    Returns:
        pdk.Deck
    """
    regions = ecoregions[[name_col, count_col, ecoregions.geometry.name]].copy()
    counts = regions[count_col].astype(float).to_numpy()
    max_count = counts.max() if len(counts) else 0
    scaled = counts / max_count if max_count > 0 else np.zeros_like(counts)
    regions["fill_color"] = pd.Series(colormap_rgb(colormap, scaled), index=regions.index, dtype=object)
    # 'name' and 'count' are the keys the tooltip template refers to
    regions = regions.rename(columns={name_col: "name", count_col: "count"})

    polygon_layer = pdk.Layer(
        "GeoJsonLayer",
        data=json.loads(regions.to_json()),
        id="ecoregions",
        extruded=True,
        wireframe=True,
        filled=True,
        pickable=True,
        auto_highlight=True,
        get_elevation="properties.count",
        elevation_scale=elevation_scale,
        get_fill_color="properties.fill_color",
        get_line_color=[255, 255, 255],
        opacity=0.8,
    )

    point_data = points[[lon_col, lat_col, taxon_col]].rename(
        columns={lon_col: "lon", lat_col: "lat", taxon_col: "taxon"}
    )
    point_data["taxon"] = point_data["taxon"].astype(str)
    point_layer = pdk.Layer(
        "ScatterplotLayer",
        data=point_data,
        id="samples",
        get_position=["lon", "lat"],
        get_radius=2000,
        radius_min_pixels=2,
        get_fill_color=[40, 40, 40, 200],
        pickable=False,
    )

    if len(point_data):
        latitude, longitude = float(point_data["lat"].mean()), float(point_data["lon"].mean())
    elif len(regions):
        minx, miny, maxx, maxy = regions.total_bounds
        latitude, longitude = float((miny + maxy) / 2), float((minx + maxx) / 2)
    else:
        latitude, longitude = 0.0, 0.0

    view_state = pdk.ViewState(latitude=latitude, longitude=longitude, zoom=zoom, pitch=pitch, bearing=0)

    return pdk.Deck(
        layers=[polygon_layer, point_layer],
        initial_view_state=view_state,
        map_provider="carto",
        map_style="light",
        tooltip={
            "html": "<b>{name}</b><br/>Samples: {count}",
            "style": {"backgroundColor": "steelblue", "color": "white"},
        },
    )


def save_extruded_map(deck: pdk.Deck, output_path: Path, offline: bool = False) -> Path:
    """Write the deck as a standalone HTML document."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    deck.to_html(str(output_path), open_browser=False, notebook_display=False, offline=offline)
    logger.info(f"Saved extruded ecoregion map to: {output_path}")
    return output_path
