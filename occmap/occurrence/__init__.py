"""
Occurrence data processing: validation, protected-area status and aggregation.
"""

from .validation import validate_occurrences
from .protection import (
    reconcile_crs,
    points_to_geodataframe,
    crop_to_points,
    sample_raster_at_points,
    join_protected_status,
    normalize_protected,
    label_points,
)
from .aggregation import count_points_by_polygon

__all__ = [
    'validate_occurrences',
    'reconcile_crs',
    'points_to_geodataframe',
    'crop_to_points',
    'sample_raster_at_points',
    'join_protected_status',
    'normalize_protected',
    'label_points',
    'count_points_by_polygon',
]
