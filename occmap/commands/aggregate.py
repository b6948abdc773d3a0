import logging
from pathlib import Path
from typing import Optional

import geopandas as gpd

from occmap.data.loaders import load_occurrences
from occmap.occurrence.aggregation import count_points_by_polygon
from occmap.occurrence.protection import points_to_geodataframe
from occmap.occurrence.validation import validate_occurrences
from occmap.utils.io import CONFIG_PATH, PipelineConfig
from occmap.utils.logging_utils import setup_logging


def aggregate_ecoregions_wrapper(
    polygons_path: Path,
    config_path: Path = CONFIG_PATH,
    points_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    name_field: Optional[str] = None,
    count_col: Optional[str] = None,
    lon_col: Optional[str] = None,
    lat_col: Optional[str] = None,
    taxon_col: Optional[str] = None,
    points_crs: Optional[str] = None,
    taxon: Optional[str] = None,
    verbose: bool = False,
) -> Path:
    """
    Prepare the ecoregion aggregate consumed by the 3D map: one count of
    occurrences per polygon.

    Column names, the points CRS and the occurrence table come from the
    config unless overridden here.

    Args:
        polygons_path: Ecoregion polygons (any format geopandas reads)
        config_path: Path to the YAML config
        points_path: Optional override of the occurrence table (CSV or Parquet)
        output_path: GeoJSON file to write, defaults to ``ecoregion_counts.geojson``
            under the configured output directory
        name_field: Polygon attribute holding the ecoregion name
        count_col: Name of the count attribute to add
        lon_col: Longitude column
        lat_col: Latitude column
        taxon_col: Taxon column
        points_crs: CRS of the occurrence coordinates
        taxon: Only count this taxon
        verbose: Enable verbose logging

    Returns:
        Path to the written GeoJSON
    """
    setup_logging(verbose=verbose)
    config = PipelineConfig.from_yaml(
        config_path,
        points_path=points_path,
        name_col=name_field,
        count_col=count_col,
        lon_col=lon_col,
        lat_col=lat_col,
        taxon_col=taxon_col,
        points_crs=points_crs,
    )

    points = validate_occurrences(
        load_occurrences(config.resolved("points_path")),
        config.lon_col,
        config.lat_col,
        config.taxon_col,
    )
    points_gdf = points_to_geodataframe(points, config.lon_col, config.lat_col, crs=config.points_crs)

    if not Path(polygons_path).exists():
        raise FileNotFoundError(f"Ecoregion polygons not found: {polygons_path}")
    polygons = gpd.read_file(polygons_path)
    if config.name_col not in polygons.columns:
        raise ValueError(f"{polygons_path} has no '{config.name_col}' attribute")

    counted = count_points_by_polygon(
        points_gdf, polygons, count_col=config.count_col, taxon_col=config.taxon_col, taxon=taxon
    )
    counted = counted[[config.name_col, config.count_col, counted.geometry.name]].to_crs(4326)

    output_path = Path(output_path) if output_path else config.ecoregion_counts_output
    output_path.parent.mkdir(parents=True, exist_ok=True)
    counted.to_file(output_path, driver="GeoJSON")
    logging.info(f"Saved {len(counted)} ecoregion counts to: {output_path}")
    if output_path != config.resolved("ecoregions_path"):
        logging.info(f"Point ecoregions_path at {output_path} to use these counts in the 3D map")
    return output_path
