import logging
from typing import Optional

import geopandas as gpd

logger = logging.getLogger(__name__)


def count_points_by_polygon(
    points_gdf: gpd.GeoDataFrame,
    polygons: gpd.GeoDataFrame,
    count_col: str = "count",
    taxon_col: Optional[str] = None,
    taxon: Optional[str] = None,
) -> gpd.GeoDataFrame:
    """Count occurrences falling within each polygon.

    This prepares the ecoregion aggregate rendered by the extruded 3D map.

    Args:
        points_gdf: Occurrence points.
        polygons: Polygons to aggregate to (e.g. ecoregions).
        count_col: Name of the count column to add to the polygons.
        taxon_col: Column holding the taxon, required if ``taxon`` is given.
        taxon: Only count occurrences of this taxon.

    Returns:
        Copy of ``polygons`` with an integer ``count_col``; polygons with no
        points get 0.
    """
    if taxon is not None:
        if taxon_col is None or taxon_col not in points_gdf.columns:
            raise ValueError("taxon_col must name a column of points_gdf to filter by taxon")
        points_gdf = points_gdf[points_gdf[taxon_col] == taxon]
        logger.info(f"Counting {len(points_gdf)} occurrences of {taxon}")

    if points_gdf.crs != polygons.crs:
        points_gdf = points_gdf.to_crs(polygons.crs)

    polygons = polygons.copy()
    joined = gpd.sjoin(
        points_gdf[[points_gdf.geometry.name]],
        polygons[[polygons.geometry.name]],
        how="inner",
        predicate="within",
    )
    counts = joined.groupby("index_right").size()
    polygons[count_col] = counts.reindex(polygons.index, fill_value=0).astype("int64")

    logger.info(
        f"Aggregated {int(polygons[count_col].sum())} occurrences into "
        f"{int((polygons[count_col] > 0).sum())} of {len(polygons)} polygons"
    )
    return polygons
