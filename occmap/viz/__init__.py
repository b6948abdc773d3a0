"""
Web map rendering. Thin wrappers around folium (Leaflet) and pydeck (deck.gl).
"""

from .web_map import build_occurrence_map, save_occurrence_map
from .extruded_map import build_extruded_map, save_extruded_map

__all__ = [
    "build_occurrence_map",
    "save_occurrence_map",
    "build_extruded_map",
    "save_extruded_map",
]
