import logging
from pathlib import Path
from typing import Dict, Optional

from occmap.pipeline import presence_ranges
from occmap.raster.io import write_cog
from occmap.utils.io import CONFIG_PATH, PipelineConfig
from occmap.utils.logging_utils import setup_logging


def filter_ranges_wrapper(
    config_path: Path = CONFIG_PATH,
    ranges_path: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    threshold: Optional[float] = None,
    verbose: bool = False,
) -> Dict[str, Path]:
    """
    Mask each species range raster to its presence cells and save them as COGs.

    Args:
        config_path: Path to the YAML config
        ranges_path: Optional override of the zip archive or directory of range GeoTIFFs
        output_dir: Directory to save the presence-only rasters, defaults to
            ``ranges`` under the configured output directory
        threshold: Optional override of the minimum cell value counted as presence
        verbose: Enable verbose logging

    Returns:
        Dictionary of species layer name to output path
    """
    setup_logging(verbose=verbose)
    config = PipelineConfig.from_yaml(
        config_path,
        ranges_path=ranges_path,
        presence_threshold=threshold,
    )
    output_dir = Path(output_dir) if output_dir else config.ranges_output_dir

    presence = presence_ranges(config)

    output_paths = {}
    for species, raster in presence.items():
        output_paths[species] = write_cog(raster, output_dir / f"{species}_presence.tif")

    logging.info(f"Saved {len(output_paths)} presence rasters to: {output_dir}")
    return output_paths
