"""
Occurrence and pseudo-absence point handling.
"""

from .cleaning import drop_missing_coordinates, occurrences_to_gdf
from .sampling import sample_background_points, label_points

__all__ = [
    'drop_missing_coordinates',
    'occurrences_to_gdf',
    'sample_background_points',
    'label_points',
]
