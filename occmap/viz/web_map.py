"""2D Leaflet map of labelled occurrences, protected areas and species ranges."""

import logging
from itertools import cycle
from pathlib import Path
from typing import Mapping, Optional

import folium
import pandas as pd
import xarray as xr
from folium.plugins import HeatMap

from occmap.utils.text_utils import display_name
from occmap.viz.colour import colormap_hex, raster_to_overlay

logger = logging.getLogger(__name__)

PROTECTED_COLOURS = {1: "#1b9e77", 0: "#d95f02"}
PROTECTED_LABELS = {1: "Protected", 0: "Unprotected"}
PROTECTED_COLORMAP = "Greens"
RANGE_COLORMAPS = ("Purples", "Oranges", "Blues", "Reds", "Greys")


def _add_base_layers(m: folium.Map) -> None:
    folium.TileLayer("OpenStreetMap", name="Street map").add_to(m)
    folium.TileLayer("CartoDB positron", name="Light").add_to(m)
    folium.TileLayer(
        tiles="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        attr="Esri World Imagery",
        name="Satellite",
    ).add_to(m)


def _add_raster_overlay(
    m: folium.Map,
    raster: xr.DataArray,
    name: str,
    colormap: str,
    opacity: float = 0.6,
    show: bool = True,
) -> None:
    image, bounds = raster_to_overlay(raster, colormap=colormap)
    folium.raster_layers.ImageOverlay(
        image=image,
        bounds=bounds,
        name=name,
        opacity=opacity,
        mercator_project=True,
        interactive=False,
        show=show,
    ).add_to(m)


def _legend_html(range_entries: Mapping[str, str], has_protected_layer: bool) -> str:
    items = [
        f'<div><span style="background:{PROTECTED_COLOURS[flag]};border-radius:50%;'
        f'display:inline-block;width:10px;height:10px;margin-right:6px;"></span>{label}</div>'
        for flag, label in PROTECTED_LABELS.items()
    ]
    if has_protected_layer:
        items.append(
            f'<div><span style="background:{colormap_hex(PROTECTED_COLORMAP)};display:inline-block;'
            f'width:10px;height:10px;margin-right:6px;"></span>Protected area</div>'
        )
    for label, colour in range_entries.items():
        items.append(
            f'<div><span style="background:{colour};display:inline-block;'
            f'width:10px;height:10px;margin-right:6px;"></span>{label} range</div>'
        )
    return (
        '<div style="position: fixed; bottom: 30px; left: 30px; z-index: 9999; '
        'background: white; padding: 8px 12px; border: 1px solid #999; '
        'font-family: Arial; font-size: 12px;">'
        "<b>Legend</b>" + "".join(items) + "</div>"
    )


def build_occurrence_map(
    points: pd.DataFrame,
    protected_raster: Optional[xr.DataArray] = None,
    ranges: Optional[Mapping[str, xr.DataArray]] = None,
    lon_col: str = "longitude",
    lat_col: str = "latitude",
    taxon_col: str = "taxon",
    protected_col: str = "protected",
    zoom_start: int = 6,
    heatmap: bool = True,
) -> folium.Map:
    """Build the interactive 2D occurrence map.

    Layers, bottom to top: base tiles, the protected-area raster, one overlay
    per species range, a sample-density heatmap and one marker group per
    taxon with markers coloured by protected status.

    Args:
        points: Labelled occurrence table with coordinates in EPSG:4326.
        protected_raster: Cropped protected-area raster.
        ranges: Presence-only species range rasters keyed by layer name.
        lon_col: Longitude column.
        lat_col: Latitude column.
        taxon_col: Taxon column used to group markers.
        protected_col: 0/1 protected flag column.
        zoom_start: Initial zoom when there are no points to fit to.
        heatmap: Whether to add the sample-density heatmap.

    Returns:
        folium.Map
    """
    ranges = ranges or {}
    if len(points):
        location = [float(points[lat_col].mean()), float(points[lon_col].mean())]
    else:
        location = [0.0, 0.0]

    m = folium.Map(location=location, zoom_start=zoom_start, tiles=None)
    _add_base_layers(m)

    if protected_raster is not None:
        _add_raster_overlay(
            m,
            protected_raster.where(protected_raster > 0),
            name="Protected areas",
            colormap=PROTECTED_COLORMAP,
        )

    range_entries = {}
    for (layer_name, raster), colormap in zip(ranges.items(), cycle(RANGE_COLORMAPS)):
        label = display_name(layer_name)
        _add_raster_overlay(m, raster, name=f"{label} range", colormap=colormap, show=not range_entries)
        range_entries[label] = colormap_hex(colormap)

    if heatmap and len(points):
        HeatMap(
            points[[lat_col, lon_col]].to_numpy().tolist(),
            name="Sample density",
            radius=15,
            blur=10,
            show=False,
        ).add_to(m)

    for taxon, group in points.groupby(taxon_col, sort=True, dropna=False):
        taxon_label = "Unknown" if pd.isna(taxon) else str(taxon)
        feature_group = folium.FeatureGroup(name=f"{taxon_label} ({len(group)})")
        for lat, lon, flag in zip(group[lat_col], group[lon_col], group[protected_col]):
            flag = int(flag)
            popup_html = (
                f"<b>{taxon_label}</b><br>"
                f"{PROTECTED_LABELS.get(flag, flag)}<br>"
                f"{lat:.4f}, {lon:.4f}"
            )
            folium.CircleMarker(
                location=[lat, lon],
                radius=5,
                color="white",
                weight=1,
                fill=True,
                fill_color=PROTECTED_COLOURS.get(flag, "gray"),
                fill_opacity=0.8,
                popup=folium.Popup(popup_html, max_width=250),
                tooltip=taxon_label,
            ).add_to(feature_group)
        feature_group.add_to(m)

    m.get_root().html.add_child(folium.Element(_legend_html(range_entries, protected_raster is not None)))
    folium.LayerControl(collapsed=False).add_to(m)

    if len(points) > 1:
        bounds = [
            [float(points[lat_col].min()), float(points[lon_col].min())],
            [float(points[lat_col].max()), float(points[lon_col].max())],
        ]
        m.fit_bounds(bounds)

    return m


def save_occurrence_map(m: folium.Map, output_path: Path) -> Path:
    """Write the map as a standalone HTML document."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    m.save(str(output_path))
    logger.info(f"Saved occurrence map to: {output_path}")
    return output_path
