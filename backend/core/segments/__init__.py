"""
Segments package.

This package turns track points into motion segments.
Clean, focused interface with no circular dependencies.
"""

from .kinematics import build_segment_list, compute_segments

# Segment models
from core.models.segment import Segment, segments_to_dataframe, dataframe_to_segments

__all__ = [
    'compute_segments',
    'build_segment_list',

    # Models
    'Segment',
    'segments_to_dataframe',
    'dataframe_to_segments',
]
