import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from occmap.data.loaders import load_ecoregions, load_occurrences, load_protected_raster
from occmap.pipeline import presence_ranges
from occmap.utils.io import CONFIG_PATH, PipelineConfig
from occmap.utils.logging_utils import setup_logging
from occmap.viz.extruded_map import build_extruded_map, save_extruded_map
from occmap.viz.web_map import build_occurrence_map, save_occurrence_map


def render_occurrence_map(
    labelled_points_path: Path,
    config_path: Path = CONFIG_PATH,
    cropped_raster_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    include_ranges: bool = True,
    verbose: bool = False,
) -> Path:
    """
    Render the 2D occurrence map from an already labelled occurrence table.

    Args:
        labelled_points_path: Table written by the `label` command
        config_path: Path to the YAML config (column names, range rasters)
        cropped_raster_path: Optional cropped protected-area raster to overlay
        output_path: HTML file to write, defaults to the configured location
        include_ranges: Overlay the presence-only species ranges
        verbose: Enable verbose logging
    """
    setup_logging(verbose=verbose)
    config = PipelineConfig.from_yaml(config_path)

    labelled = load_occurrences(labelled_points_path)
    if config.protected_col not in labelled.columns:
        raise ValueError(
            f"{labelled_points_path} has no '{config.protected_col}' column; run the label command first"
        )
    cropped = load_protected_raster(cropped_raster_path) if cropped_raster_path else None
    ranges = presence_ranges(config) if include_ranges else {}

    web_map = build_occurrence_map(
        labelled,
        protected_raster=cropped,
        ranges=ranges,
        lon_col=config.lon_col,
        lat_col=config.lat_col,
        taxon_col=config.taxon_col,
        protected_col=config.protected_col,
    )
    return save_occurrence_map(web_map, output_path or config.map_2d_path)


def render_extruded_map(
    config_path: Path = CONFIG_PATH,
    points_path: Optional[Path] = None,
    ecoregions_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    elevation_scale: Optional[float] = None,
    offline: bool = False,
    verbose: bool = False,
) -> Path:
    """
    Render the 3D extruded ecoregion map.

    Args:
        config_path: Path to the YAML config
        points_path: Optional override of the occurrence table
        ecoregions_path: Optional override of the ecoregion polygons (with counts)
        output_path: HTML file to write, defaults to the configured location
        elevation_scale: Optional override of metres of extrusion per sample
        offline: Embed the deck.gl bundle in the HTML
        verbose: Enable verbose logging
    """
    setup_logging(verbose=verbose)
    config = PipelineConfig.from_yaml(
        config_path,
        points_path=points_path,
        ecoregions_path=ecoregions_path,
        elevation_scale=elevation_scale,
    )
    if config.ecoregions_path is None:
        raise ValueError("No ecoregion polygons configured")

    points: pd.DataFrame = load_occurrences(config.resolved("points_path"))
    ecoregions = load_ecoregions(
        config.resolved("ecoregions_path"), count_col=config.count_col, name_col=config.name_col
    )
    deck = build_extruded_map(
        points,
        ecoregions,
        lon_col=config.lon_col,
        lat_col=config.lat_col,
        taxon_col=config.taxon_col,
        count_col=config.count_col,
        name_col=config.name_col,
        elevation_scale=config.elevation_scale,
    )
    output_path = output_path or config.map_3d_path
    save_extruded_map(deck, output_path, offline=offline)
    logging.info(f"Extruded map written for {len(ecoregions)} ecoregions")
    return output_path
