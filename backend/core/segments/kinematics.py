"""
Kinematics engine.

Turns the ordered point table of a track into motion segments with distance,
elapsed time, speed, bearing and acceleration. Degenerate data never raises:
missing or backwards timestamps give an undefined duration and zero speed,
zero-length moves give an undefined bearing.
"""

import math
import pandas as pd
import logging
from datetime import datetime
from typing import List, Optional

from core.calculations import calculate_bearing, calculate_distance, meters_per_second_to_kmh
from core.models.segment import Segment, segments_to_dataframe

logger = logging.getLogger(__name__)


def _elapsed_seconds(track_df: pd.DataFrame) -> pd.Series:
    """Seconds between consecutive fixes, NaN where either timestamp is missing."""
    if 'time' not in track_df.columns:
        return pd.Series([math.nan] * len(track_df), dtype=float)

    times = pd.to_datetime(track_df['time'], errors='coerce', utc=True)
    return times.diff().dt.total_seconds().reset_index(drop=True)


def _to_datetime(value) -> Optional[datetime]:
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value).to_pydatetime()


def build_segment_list(track_df: pd.DataFrame) -> List[Segment]:
    """
    Calculate kinematics for each pair of consecutive points.

    Args:
        track_df: DataFrame with 'latitude', 'longitude' and optional 'time' columns

    Returns:
        List of len(track_df) - 1 Segment objects
    """
    if track_df is None or len(track_df) < 2:
        logger.warning("Not enough points to build segments")
        return []

    latitudes = track_df['latitude'].to_numpy(dtype=float)
    longitudes = track_df['longitude'].to_numpy(dtype=float)
    elapsed = _elapsed_seconds(track_df).to_numpy(dtype=float)
    times = (pd.to_datetime(track_df['time'], errors='coerce', utc=True).tolist()
             if 'time' in track_df.columns else [None] * len(track_df))

    segments: List[Segment] = []
    previous: Optional[Segment] = None

    for i in range(len(track_df) - 1):
        lat1, lon1 = latitudes[i], longitudes[i]
        lat2, lon2 = latitudes[i + 1], longitudes[i + 1]

        distance = calculate_distance(lat1, lon1, lat2, lon2)
        distance_ok = math.isfinite(distance)

        dt = elapsed[i + 1]
        duration = float(dt) if math.isfinite(dt) and dt > 0 else None

        if distance_ok and duration is not None:
            speed_kmh = meters_per_second_to_kmh(distance / duration)
        else:
            speed_kmh = 0.0

        bearing = calculate_bearing(lat1, lon1, lat2, lon2) if distance_ok and distance > 0 else None

        # First difference over the previous segment's elapsed time
        if previous is not None and previous.has_valid_duration:
            acceleration = (speed_kmh - previous.speed_kmh) / previous.duration_sec
        else:
            acceleration = 0.0

        segment = Segment(
            start_lat=float(lat1),
            start_lon=float(lon1),
            end_lat=float(lat2),
            end_lon=float(lon2),
            distance_m=float(distance) if distance_ok else 0.0,
            duration_sec=duration,
            speed_kmh=speed_kmh,
            bearing=bearing,
            acceleration=acceleration,
            start_time=_to_datetime(times[i]),
            end_time=_to_datetime(times[i + 1]),
        )
        segments.append(segment)
        previous = segment

    timed = sum(1 for s in segments if s.has_valid_duration)
    if timed == 0:
        logger.warning("Track has no usable timestamps, all speeds default to 0")

    logger.debug(f"Built {len(segments)} segments ({timed} with valid elapsed time)")
    return segments


def compute_segments(track_df: pd.DataFrame) -> pd.DataFrame:
    """
    Build the segment table for a track.

    This is the first step of wave detection; every later stage works on the
    table returned here.

    Args:
        track_df: DataFrame with 'latitude', 'longitude' and optional 'time' columns

    Returns:
        DataFrame with one row per segment (see core.models.segment.SEGMENT_COLUMNS)
    """
    segments = build_segment_list(track_df)
    result = segments_to_dataframe(segments)
    logger.info(f"Computed {len(result)} segments from {0 if track_df is None else len(track_df)} points")
    return result
