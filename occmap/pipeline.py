"""
Runs the occurrence / protected-area / species-range pipeline end to end.

Steps run strictly in sequence; any failure stops the run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
import xarray as xr

from occmap.data.loaders import load_ecoregions, load_inputs, load_range_rasters
from occmap.occurrence.protection import label_points
from occmap.raster.io import write_cog
from occmap.raster.ranges import filter_ranges
from occmap.utils.io import PipelineConfig
from occmap.viz.extruded_map import build_extruded_map, save_extruded_map
from occmap.viz.web_map import build_occurrence_map, save_occurrence_map

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    raw_points: pd.DataFrame
    labelled_points: pd.DataFrame
    cropped_raster: Optional[xr.DataArray]
    presence_ranges: Dict[str, xr.DataArray]
    outputs: Dict[str, Path] = field(default_factory=dict)


def label_occurrences(config: PipelineConfig):
    """Steps 1-3: load, join to protected-area status and normalise.

    Returns:
        Tuple of (raw points, labelled points, cropped raster or None).
    """
    points, raster = load_inputs(config)
    labelled, cropped = label_points(
        points,
        raster,
        lon_col=config.lon_col,
        lat_col=config.lat_col,
        taxon_col=config.taxon_col,
        points_crs=config.points_crs,
        protected_col=config.protected_col,
        reproject=config.reproject_points,
    )
    return points, labelled, cropped


def presence_ranges(config: PipelineConfig) -> Dict[str, xr.DataArray]:
    """Step 4: presence-only species range rasters."""
    ranges = load_range_rasters(config.resolved("ranges_path"))
    return filter_ranges(ranges, threshold=config.presence_threshold)


def write_outputs(
    config: PipelineConfig,
    labelled: pd.DataFrame,
    cropped: Optional[xr.DataArray],
    ranges: Dict[str, xr.DataArray],
) -> Dict[str, Path]:
    """Write the labelled table and derived rasters under the configured output directory."""
    config.resolved("output_dir").mkdir(parents=True, exist_ok=True)
    outputs = {}

    points_path = config.labelled_points_output
    labelled.to_csv(points_path, index=False)
    logger.info(f"Saved {len(labelled)} labelled occurrences to: {points_path}")
    outputs["labelled_points"] = points_path

    if cropped is not None:
        outputs["protected_raster"] = write_cog(cropped, config.cropped_raster_output)

    for species, raster in ranges.items():
        outputs[f"range_{species}"] = write_cog(raster, config.ranges_output_dir / f"{species}_presence.tif")

    return outputs


def render_maps(
    config: PipelineConfig,
    raw_points: pd.DataFrame,
    labelled: pd.DataFrame,
    cropped: Optional[xr.DataArray],
    ranges: Dict[str, xr.DataArray],
) -> Dict[str, Path]:
    """Step 5: hand the derived data to the 2D and 3D renderers."""
    outputs = {}

    web_map = build_occurrence_map(
        labelled,
        protected_raster=cropped,
        ranges=ranges,
        lon_col=config.lon_col,
        lat_col=config.lat_col,
        taxon_col=config.taxon_col,
        protected_col=config.protected_col,
    )
    outputs["map_2d"] = save_occurrence_map(web_map, config.map_2d_path)

    ecoregions_path = config.resolved("ecoregions_path")
    if ecoregions_path is None:
        logger.info("No ecoregion file configured, skipping the 3D map")
        return outputs

    ecoregions = load_ecoregions(ecoregions_path, count_col=config.count_col, name_col=config.name_col)
    deck = build_extruded_map(
        raw_points,
        ecoregions,
        lon_col=config.lon_col,
        lat_col=config.lat_col,
        taxon_col=config.taxon_col,
        count_col=config.count_col,
        name_col=config.name_col,
        elevation_scale=config.elevation_scale,
    )
    outputs["map_3d"] = save_extruded_map(deck, config.map_3d_path)
    return outputs


def run_pipeline(config: PipelineConfig, render: bool = True) -> PipelineResult:
    """Run every step for one configuration.

    Args:
        config: Input locations, output directory and display parameters.
        render: Whether to write the two HTML maps.

    Returns:
        PipelineResult
    """
    output_dir = config.resolved("output_dir")
    logger.info(f"Running pipeline from {config.base_dir}, outputs in {output_dir}")

    raw_points, labelled, cropped = label_occurrences(config)
    ranges = presence_ranges(config)

    outputs = write_outputs(config, labelled, cropped, ranges)
    if render:
        outputs.update(render_maps(config, raw_points, labelled, cropped, ranges))

    logger.info(f"Pipeline finished: {len(outputs)} outputs written")
    return PipelineResult(
        raw_points=raw_points,
        labelled_points=labelled,
        cropped_raster=cropped,
        presence_ranges=ranges,
        outputs=outputs,
    )
