"""
Wave segmenter.

Single pass over the segment table with two states: idle (no wave) and
active (accumulating a candidate). While active, a wave only ends after its
speed has dropped far enough below its own peak for long enough, so a rider
coasting for a moment near the end of a ride does not split one wave into
several.
"""

import math
import numpy as np
import pandas as pd
import logging
from typing import List, Optional

from core.models.wave import CandidateWave
from core.waves.params import WaveDetectionParams
from core.waves.thresholds import compute_thresholds

logger = logging.getLogger(__name__)


def _numeric(segments: pd.DataFrame, column: str) -> np.ndarray:
    return pd.to_numeric(segments[column], errors='coerce').to_numpy(dtype=float)


def drop_from_peak_percent(speed_kmh: float, peak_kmh: float) -> float:
    """How far below the peak a speed sits, in percent (100 when the peak is 0)."""
    if peak_kmh <= 0:
        return 100.0
    return 100.0 * (1.0 - speed_kmh / peak_kmh)


class _WaveAccumulator:
    """Mutable detection state for one pass over the segments."""

    def __init__(self, distances: np.ndarray, durations: np.ndarray,
                 speeds: np.ndarray, bearings: np.ndarray):
        self.distances = distances
        self.durations = durations
        self.speeds = speeds
        self.bearings = bearings
        self.current: Optional[CandidateWave] = None
        self.pending: List[int] = []  # Decaying segments awaiting the grace verdict
        self.grace = 0.0

    def start(self, idx: int) -> None:
        self.current = CandidateWave(start_idx=idx, end_idx=idx, peak_speed_kmh=float(self.speeds[idx]))
        self.pending = []
        self.grace = 0.0
        self.absorb(idx)

    def absorb(self, idx: int) -> None:
        wave = self.current
        wave.end_idx = idx
        wave.segment_indices.append(idx)
        wave.peak_speed_kmh = max(wave.peak_speed_kmh, float(self.speeds[idx]))

        # Untimed segments keep the run contiguous but add no distance or bearing
        duration = self.durations[idx]
        if not (math.isfinite(duration) and duration > 0):
            return
        wave.duration += float(duration)
        distance = self.distances[idx]
        if math.isfinite(distance):
            wave.distance += float(distance)
        bearing = self.bearings[idx]
        if math.isfinite(bearing):
            wave.bearing_samples.append(float(bearing))

    def extend(self, idx: int) -> None:
        """Fold any pending segments back in, then the current one."""
        for pending_idx in self.pending:
            self.absorb(pending_idx)
        self.pending = []
        self.grace = 0.0
        self.absorb(idx)

    def hold(self, idx: int, elapsed: float) -> None:
        self.pending.append(idx)
        self.grace += elapsed

    def close(self, min_duration: float, found: List[CandidateWave]) -> None:
        wave = self.current
        if wave.segment_indices and wave.duration >= min_duration:
            found.append(wave)
            logger.debug(f"Wave {wave.start_idx}-{wave.end_idx}: {wave.distance:.0f}m, "
                         f"{wave.duration:.1f}s, peak {wave.peak_speed_kmh:.1f} km/h")
        else:
            logger.debug(f"Discarded short candidate {wave.start_idx}-{wave.end_idx} "
                         f"({wave.duration:.1f}s < {min_duration}s)")
        self.current = None
        self.pending = []
        self.grace = 0.0


def detect_candidate_waves(segments: pd.DataFrame,
                           params: Optional[WaveDetectionParams] = None,
                           thresholds: Optional[np.ndarray] = None) -> List[CandidateWave]:
    """
    Detect raw wave candidates in the segment table.

    Rules, applied in segment order:
    - Idle: a segment at or above its threshold with a positive elapsed time
      starts a candidate.
    - Active, at or above threshold: extend the candidate.
    - Active, below threshold but less than drop_percent under the peak:
      still part of the wave, extend the candidate.
    - Active, decayed by drop_percent or more: run the grace timer. If the
      wave recovers first, the decayed segments are folded back in; once the
      timer reaches end_grace_seconds the candidate closes without them.
    - End of the table while active: close the candidate.

    A closed candidate is kept when its duration reaches min_duration.

    Args:
        segments: Segment table from compute_segments
        params: Detection parameters (defaults when None)
        thresholds: Optional precomputed per-segment thresholds

    Returns:
        List of CandidateWave in segment order, with disjoint contiguous ranges
    """
    if segments is None or segments.empty:
        return []

    params = (params or WaveDetectionParams()).normalized()
    if thresholds is None:
        thresholds = compute_thresholds(segments, params)

    speeds = np.nan_to_num(_numeric(segments, 'speed_kmh'), nan=0.0, posinf=0.0, neginf=0.0)
    durations = _numeric(segments, 'duration_sec')
    state = _WaveAccumulator(
        distances=_numeric(segments, 'distance_m'),
        durations=durations,
        speeds=speeds,
        bearings=_numeric(segments, 'bearing'),
    )

    found: List[CandidateWave] = []

    for i in range(len(speeds)):
        elapsed = durations[i]
        timed = math.isfinite(elapsed) and elapsed > 0
        over = timed and speeds[i] >= thresholds[i]

        if state.current is None:
            if over:
                state.start(i)
            continue

        if over:
            state.extend(i)
            continue

        drop = drop_from_peak_percent(speeds[i], state.current.peak_speed_kmh)
        if timed and drop < params.drop_percent:
            state.extend(i)
            continue

        state.hold(i, elapsed if timed else 0.0)
        if state.grace >= params.end_grace_seconds:
            state.close(params.min_duration, found)

    if state.current is not None:
        state.close(params.min_duration, found)

    logger.info(f"Detected {len(found)} candidate waves in {len(speeds)} segments "
                f"({'adaptive' if params.use_adaptive else 'fixed'} threshold "
                f"{params.threshold_kmh:.1f} km/h)")
    return found
