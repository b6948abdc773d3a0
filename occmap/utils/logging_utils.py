import logging
import sys
from typing import Iterable

# GDAL / OGR bindings log every driver call at DEBUG
QUIET_LOGGERS = ("rasterio", "fiona", "pyogrio")


def setup_logging(level=logging.INFO, verbose: bool = False, quiet: Iterable[str] = QUIET_LOGGERS):
    """Log to stdout; ``quiet`` loggers are held at WARNING even when verbose."""
    log_level = logging.DEBUG if verbose else level
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
