import logging
from pathlib import Path
from typing import Optional

from occmap.pipeline import PipelineResult, run_pipeline
from occmap.utils.io import CONFIG_PATH, PipelineConfig
from occmap.utils.logging_utils import setup_logging


def run_pipeline_wrapper(
    config_path: Path = CONFIG_PATH,
    output_dir: Optional[Path] = None,
    render: bool = True,
    verbose: bool = False,
) -> PipelineResult:
    """
    Core function to run the full pipeline from a YAML config.
    Can be called from other scripts or notebooks.

    Args:
        config_path: Path to the YAML config
        output_dir: Optional override of the configured output directory
        render: Write the 2D and 3D HTML maps
        verbose: Enable verbose logging

    Returns:
        The pipeline result, including the paths written
    """
    setup_logging(verbose=verbose)
    config = PipelineConfig.from_yaml(config_path, output_dir=output_dir)
    result = run_pipeline(config, render=render)

    for name, path in result.outputs.items():
        logging.info(f"{name}: {path}")
    return result
