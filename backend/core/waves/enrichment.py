"""
Wave enrichment and ranking.

Expands stable waves into presentation-ready records: point ranges,
geographic bounds, representative points, mean direction, average speed,
peak location and the per-segment speed series.
"""

import numpy as np
import pandas as pd
import logging
from datetime import datetime
from typing import List, Optional

from core.calculations import calculate_bearing, meters_per_second_to_kmh
from core.models.wave import StableWave, EnrichedWave

logger = logging.getLogger(__name__)


def _start_time(track_df: pd.DataFrame, point_idx: int) -> Optional[datetime]:
    if 'time' not in track_df.columns:
        return None
    value = pd.to_datetime(track_df['time'].iloc[point_idx], errors='coerce', utc=True)
    if value is None or pd.isna(value):
        return None
    return value.to_pydatetime()


def enrich_wave(wave: StableWave, track_df: pd.DataFrame, segments: pd.DataFrame) -> EnrichedWave:
    """
    Build the presentation record for one wave.

    Args:
        wave: Wave that passed the stability filter
        track_df: Point table the segments were computed from
        segments: Segment table

    Returns:
        EnrichedWave
    """
    last_segment = len(segments) - 1
    indices = sorted({int(i) for i in wave.segment_indices if 0 <= i <= last_segment})
    if not indices:
        # Detector output always has members; fall back to the declared range
        start = min(max(wave.start_idx, 0), last_segment)
        end = min(max(wave.end_idx, start), last_segment)
        indices = list(range(start, end + 1))

    start_idx, end_idx = indices[0], indices[-1]
    start_point_idx = start_idx
    end_point_idx = min(end_idx + 1, len(track_df) - 1)

    latitudes = track_df['latitude'].to_numpy(dtype=float)[start_point_idx:end_point_idx + 1]
    longitudes = track_df['longitude'].to_numpy(dtype=float)[start_point_idx:end_point_idx + 1]

    bounds = (float(latitudes.min()), float(longitudes.min()),
              float(latitudes.max()), float(longitudes.max()))
    start_point = (float(latitudes[0]), float(longitudes[0]))
    mid = len(latitudes) // 2
    mid_point = (float(latitudes[mid]), float(longitudes[mid]))

    # Mean of the bearing samples, else the straight start-to-end bearing
    if wave.bearing_samples:
        direction = wave.mean_bearing
    elif len(latitudes) >= 2:
        direction = calculate_bearing(latitudes[0], longitudes[0], latitudes[-1], longitudes[-1])
    else:
        direction = None

    avg_speed = (meters_per_second_to_kmh(wave.distance / wave.duration)
                 if wave.duration > 0 else None)

    speeds = pd.to_numeric(segments['speed_kmh'], errors='coerce').to_numpy(dtype=float)[indices]
    speeds = np.nan_to_num(speeds, nan=0.0)
    peak_offset = int(np.argmax(speeds))

    return EnrichedWave(
        start_idx=start_idx,
        end_idx=end_idx,
        segment_indices=tuple(indices),
        start_point_idx=start_point_idx,
        end_point_idx=end_point_idx,
        distance=wave.distance,
        duration=wave.duration,
        peak_speed_kmh=wave.peak_speed_kmh,
        avg_speed_kmh=avg_speed,
        direction=direction,
        bearing_std=wave.bearing_std,
        bearing_samples=wave.bearing_samples,
        bounds=bounds,
        start_point=start_point,
        mid_point=mid_point,
        peak_segment_idx=indices[peak_offset],
        peak_offset=peak_offset,
        speed_series=tuple(float(s) for s in speeds),
        start_time=_start_time(track_df, start_point_idx),
    )


def enrich_waves(waves: List[StableWave], track_df: pd.DataFrame,
                 segments: pd.DataFrame) -> List[EnrichedWave]:
    """Enrich every stable wave, preserving order."""
    enriched = [enrich_wave(wave, track_df, segments) for wave in waves]
    logger.debug(f"Enriched {len(enriched)} waves")
    return enriched


def select_best_wave(waves: List[EnrichedWave]) -> Optional[EnrichedWave]:
    """
    Pick the best wave of a session.

    Highest peak speed wins; ties go to the longer distance, then to the
    earlier wave.

    Returns:
        The best wave, or None when there are no waves
    """
    best = None
    for wave in waves:
        if best is None:
            best = wave
        elif wave.peak_speed_kmh > best.peak_speed_kmh:
            best = wave
        elif wave.peak_speed_kmh == best.peak_speed_kmh and wave.distance > best.distance:
            best = wave
    return best
