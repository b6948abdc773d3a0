import logging
from pathlib import Path
from typing import Optional

from occmap.pipeline import label_occurrences
from occmap.raster.io import write_cog
from occmap.utils.io import CONFIG_PATH, PipelineConfig
from occmap.utils.logging_utils import setup_logging


def label_occurrences_wrapper(
    config_path: Path = CONFIG_PATH,
    points_path: Optional[Path] = None,
    protected_raster_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    cropped_raster_path: Optional[Path] = None,
    reproject_points: bool = False,
    verbose: bool = False,
) -> Path:
    """
    Label each occurrence as inside (1) or outside (0) a protected area.

    Args:
        config_path: Path to the YAML config
        points_path: Optional override of the occurrence table
        protected_raster_path: Optional override of the protected-area raster
        output_path: Where to write the labelled table (CSV), defaults to the configured output directory
        cropped_raster_path: Optional path to save the cropped protected-area raster
        reproject_points: Transform points into the raster CRS if they differ
        verbose: Enable verbose logging

    Returns:
        Path to the labelled table
    """
    setup_logging(verbose=verbose)
    config = PipelineConfig.from_yaml(
        config_path,
        points_path=points_path,
        protected_raster_path=protected_raster_path,
        reproject_points=reproject_points or None,
    )

    _, labelled, cropped = label_occurrences(config)

    output_path = Path(output_path) if output_path else config.labelled_points_output
    output_path.parent.mkdir(parents=True, exist_ok=True)
    labelled.to_csv(output_path, index=False)
    logging.info(f"Saved {len(labelled)} labelled occurrences to: {output_path}")

    if cropped_raster_path is not None:
        if cropped is None:
            logging.warning("Occurrences do not overlap the protected-area raster; no cropped raster written")
        else:
            write_cog(cropped, cropped_raster_path)

    return output_path
