"""
Shared wave analysis service.

This module provides the unified analysis pipeline
(segments -> candidates -> stable waves -> enriched waves -> direction filter)
used by the API, and the result object that carries one run's output.
"""

import pandas as pd
import logging
from dataclasses import replace
from typing import Dict, Any, Optional, List

from core.gpx import load_track_file, build_session_gpx
from core.calculations import calculate_track_metrics, compute_auto_threshold
from core.filtering import filter_waves_by_direction, wave_direction_delta, DirectionFilterResult
from core.models.wave import EnrichedWave
from core.segments import compute_segments
from core.waves import (
    WaveDetectionParams, detect_candidate_waves, filter_stable_waves,
    enrich_waves, select_best_wave
)
from utils.formatting import format_distance, format_duration, format_bearing

logger = logging.getLogger(__name__)


def detect_waves(track_data: pd.DataFrame,
                 segments: pd.DataFrame,
                 params: Optional[WaveDetectionParams] = None) -> DirectionFilterResult:
    """
    Run the detection stages on an already computed segment table.

    Pure given (segments, params): running it twice yields identical waves.

    Args:
        track_data: Point table
        segments: Segment table computed from track_data
        params: Detection parameters (normalised here)

    Returns:
        DirectionFilterResult with the final waves and the rejection count
    """
    params = (params or WaveDetectionParams()).normalized()

    candidates = detect_candidate_waves(segments, params)
    stable = filter_stable_waves(candidates, params.direction_std_max)
    enriched = enrich_waves(stable, track_data, segments)

    return filter_waves_by_direction(
        enriched,
        enabled=params.direction_filter_enabled,
        target_direction=params.target_direction,
        tolerance=params.direction_tolerance
    )


def best_wave_label(wave: Optional[EnrichedWave]) -> Optional[str]:
    """'120 m • 0m 8s • 31.4 km/h' style summary of a wave."""
    if wave is None:
        return None
    return (f"{format_distance(wave.distance)} • {format_duration(wave.duration)} • "
            f"{wave.peak_speed_kmh:.1f} km/h")


class WaveAnalysisResult:
    """Container for one detection run over a loaded track."""

    def __init__(self,
                 track_data: pd.DataFrame,
                 segments: pd.DataFrame,
                 direction_result: DirectionFilterResult,
                 params: WaveDetectionParams,
                 metadata: Dict[str, Any],
                 filename: str,
                 auto_threshold: float):
        self.track_data = track_data
        self.segments = segments
        self.direction_result = direction_result
        self.params = params
        self.metadata = metadata
        self.filename = filename
        self.auto_threshold = auto_threshold

        # Calculate derived metrics
        self._calculate_summary_metrics()

    @property
    def waves(self) -> List[EnrichedWave]:
        return self.direction_result.waves

    @property
    def rejected_count(self) -> int:
        return self.direction_result.rejected_count

    def _calculate_summary_metrics(self) -> None:
        """Calculate session metrics from segments and waves."""
        metrics = calculate_track_metrics(self.segments)
        self.total_distance = metrics['total_distance_m']
        self.total_duration = metrics['total_duration_sec']
        self.avg_speed = metrics['avg_speed_kmh']
        self.max_speed = metrics['max_speed_kmh']

        self.wave_count = len(self.waves)
        self.best_wave = select_best_wave(self.waves)

    def summary(self) -> Dict[str, Any]:
        """Aggregate stats for display."""
        return {
            'total_distance_m': self.total_distance,
            'total_duration_sec': self.total_duration,
            'avg_speed_kmh': self.avg_speed,
            'max_speed_kmh': self.max_speed,
            'wave_count': self.wave_count,
            'best_wave': best_wave_label(self.best_wave),
            'rejected_by_direction': self.rejected_count,
            'raw_wave_count': self.direction_result.raw_count,
        }

    def wave_rows(self) -> List[Dict[str, Any]]:
        """Waves as table rows, numbered from 1, with the delta to the target direction."""
        rows = []
        show_delta = self.direction_result.applied
        for ordinal, wave in enumerate(self.waves, start=1):
            row = wave.to_dict()
            row['id'] = ordinal
            row['is_best'] = wave is self.best_wave
            row['direction_label'] = format_bearing(wave.direction)
            row['direction_delta'] = (wave_direction_delta(wave, self.params.target_direction)
                                      if show_delta else None)
            rows.append(row)
        return rows

    def to_gpx(self) -> str:
        """Export the session and its waves as GPX."""
        return build_session_gpx(self.track_data, self.waves)


def analyze_track_data(track_data: pd.DataFrame,
                       params: Optional[WaveDetectionParams] = None,
                       filename: str = "current_track.gpx",
                       metadata: Optional[Dict[str, Any]] = None,
                       use_auto_threshold: bool = False) -> WaveAnalysisResult:
    """
    Analyze track data that's already loaded into a DataFrame.

    Segments are rebuilt from the points on every call and the waves from
    the segments, so a result never shares state with a previous run.

    Args:
        track_data: DataFrame containing track points
        params: Detection parameters, defaults when None
        filename: Name for the track (for display purposes)
        metadata: Optional metadata dict
        use_auto_threshold: Replace the fixed threshold with the session's auto threshold

    Returns:
        WaveAnalysisResult: Complete analysis results

    Raises:
        Exception: If analysis fails
    """
    if metadata is None:
        metadata = {}

    params = (params or WaveDetectionParams()).normalized()

    try:
        logger.info(f"Analyzing track data for {filename} with {len(track_data)} points")

        # Step 1: Kinematics
        segments = compute_segments(track_data)

        # Step 2: Threshold
        auto_threshold = compute_auto_threshold(segments)
        if use_auto_threshold:
            params = replace(params, threshold_kmh=auto_threshold).normalized()
            logger.info(f"Using auto threshold {auto_threshold:.1f} km/h")

        # Step 3: Detection, stability, enrichment, direction
        direction_result = detect_waves(track_data, segments, params)

        if direction_result.all_rejected:
            logger.warning(f"All {direction_result.raw_count} waves in {filename} "
                           f"were outside the direction tolerance")
        elif not direction_result.waves:
            logger.warning(f"No waves found for {filename}")

        logger.info(f"Successfully analyzed {filename}: {len(direction_result.waves)} waves")

        return WaveAnalysisResult(
            track_data=track_data,
            segments=segments,
            direction_result=direction_result,
            params=params,
            metadata=metadata,
            filename=filename,
            auto_threshold=auto_threshold
        )

    except Exception as e:
        logger.error(f"Error analyzing {filename}: {e}")
        raise


def analyze_track_file(file,
                       params: Optional[WaveDetectionParams] = None,
                       use_auto_threshold: bool = False) -> WaveAnalysisResult:
    """
    Analyze a single track file using the standard pipeline.

    This function loads a GPX or CSV file and delegates to analyze_track_data.

    Args:
        file: File object with a 'name' (extension picks the parser)
        params: Detection parameters
        use_auto_threshold: Use the session's auto threshold

    Returns:
        WaveAnalysisResult: Complete analysis results

    Raises:
        ValidationError: If the file cannot be loaded
    """
    filename = getattr(file, 'name', str(file))

    try:
        track_data, metadata = load_track_file(file)
        logger.info(f"Loaded {filename} with {len(track_data)} points")

        return analyze_track_data(
            track_data=track_data,
            params=params,
            filename=filename,
            metadata=metadata,
            use_auto_threshold=use_auto_threshold
        )

    except Exception as e:
        logger.error(f"Error analyzing {filename}: {e}")
        raise
