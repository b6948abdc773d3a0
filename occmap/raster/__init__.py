# occmap/raster/__init__.py
from .ranges import filter_presence, filter_ranges
from .io import translate_to_cog, write_cog

__all__ = [
    "filter_presence",
    "filter_ranges",
    "translate_to_cog",
    "write_cog",
]
