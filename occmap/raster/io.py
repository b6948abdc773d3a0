import logging
import tempfile
from pathlib import Path
from typing import Dict, Any, Optional

import xarray as xr
import rioxarray as rxr  # Required for .rio accessor, even if not directly called
from rio_cogeo.cogeo import cog_translate
from rio_cogeo.profiles import cog_profiles

logger = logging.getLogger(__name__)


def translate_to_cog(
    src_path: Path,
    dst_path: Path,
    profile: str = "deflate",
    profile_options: Optional[Dict[str, Any]] = None,
    **options: Any
) -> None:
    """Translates a raster to a Cloud Optimized GeoTIFF (COG).

    Args:
        src_path: Path to the source raster file.
        dst_path: Path to save the output COG file.
        profile: COG profile to use (e.g., "deflate", "zstd", "lzw").
                 See rio-cogeo documentation for available profiles.
        profile_options: Dictionary of options for the chosen profile.
        **options: Additional keyword arguments to pass to cog_translate.
    """
    dst_profile = cog_profiles.get(profile)
    if not dst_profile:
        raise ValueError(f"Unknown COG profile: {profile}. Available: {list(cog_profiles.keys())}")

    final_dst_profile = dst_profile.copy()
    final_dst_profile.update(profile_options or {})

    dst_path.parent.mkdir(parents=True, exist_ok=True)

    options.setdefault("quiet", True)
    cog_translate(
        src_path,
        dst_path,
        final_dst_profile,
        **options,
    )


def write_cog(raster: xr.DataArray, dst_path: Path, profile: str = "deflate") -> Path:
    """Write an in-memory raster to ``dst_path`` as a COG."""
    dst_path = Path(dst_path)
    with tempfile.TemporaryDirectory() as tmp_dir:
        tmp_path = Path(tmp_dir) / dst_path.name
        raster.rio.to_raster(tmp_path)
        translate_to_cog(tmp_path, dst_path, profile=profile)

    logger.info(f"Saved {raster.name or 'raster'} to: {dst_path}")
    return dst_path
