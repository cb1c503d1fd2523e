"""
Segment data models.

This module defines the motion segment linking two consecutive GPS fixes.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any
import math
import pandas as pd

SEGMENT_COLUMNS = [
    'start_lat', 'start_lon', 'end_lat', 'end_lon',
    'start_time', 'end_time',
    'distance_m', 'duration_sec', 'speed_kmh', 'bearing', 'acceleration',
]


@dataclass
class Segment:
    """
    Motion between two consecutive track points.

    Segment i links point i to point i+1. Missing or non-monotonic
    timestamps leave duration_sec as None and speed_kmh at 0.
    """
    # Endpoints
    start_lat: float
    start_lon: float
    end_lat: float
    end_lon: float

    # Kinematics
    distance_m: float  # Great-circle distance in meters
    duration_sec: Optional[float]  # Elapsed time, None when timestamps are unusable
    speed_kmh: float  # Always >= 0
    bearing: Optional[float]  # Degrees in [0, 360), None for degenerate distance
    acceleration: float = 0.0  # km/h per second, from the previous segment

    # Timestamps of the endpoints (optional)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert segment to dictionary for DataFrame creation."""
        return asdict(self)

    @property
    def has_valid_duration(self) -> bool:
        """True when the segment carries a strictly positive elapsed time."""
        return (self.duration_sec is not None
                and math.isfinite(self.duration_sec)
                and self.duration_sec > 0)


def segments_to_dataframe(segments: List[Segment]) -> pd.DataFrame:
    """
    Convert a list of segments to a pandas DataFrame.

    Args:
        segments: List of Segment objects

    Returns:
        pandas DataFrame with one row per segment (empty frame keeps the columns)
    """
    if not segments:
        return pd.DataFrame(columns=SEGMENT_COLUMNS)

    data = [segment.to_dict() for segment in segments]
    return pd.DataFrame(data, columns=SEGMENT_COLUMNS)


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _optional_time(value: Any) -> Optional[datetime]:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value if isinstance(value, datetime) else None


def dataframe_to_segments(df: pd.DataFrame) -> List[Segment]:
    """
    Convert a pandas DataFrame to a list of Segment objects.

    Args:
        df: DataFrame with segment columns

    Returns:
        List of Segment objects
    """
    segments = []

    for _, row in df.iterrows():
        segment = Segment(
            start_lat=float(row['start_lat']),
            start_lon=float(row['start_lon']),
            end_lat=float(row['end_lat']),
            end_lon=float(row['end_lon']),
            distance_m=float(row['distance_m']),
            duration_sec=_optional_float(row.get('duration_sec')),
            speed_kmh=float(row['speed_kmh']),
            bearing=_optional_float(row.get('bearing')),
            acceleration=_optional_float(row.get('acceleration')) or 0.0,
            start_time=_optional_time(row.get('start_time')),
            end_time=_optional_time(row.get('end_time')),
        )
        segments.append(segment)

    return segments
