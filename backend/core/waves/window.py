"""
Trailing local speed statistics.

For every segment, summarises the speeds of the segments recorded during the
preceding window_seconds (wall-clock time, not a segment count). The adaptive
threshold uses these to raise the bar during fast stretches of a session.
"""

import math
import numpy as np
import pandas as pd
import logging
from typing import List

from core.constants import DEFAULT_WINDOW_SECONDS
from core.models.wave import LocalWindowStat

logger = logging.getLogger(__name__)

EMPTY_WINDOW_STAT = LocalWindowStat(median=0.0, std=0.0)


def summarize_speeds(speeds: np.ndarray) -> LocalWindowStat:
    """
    Median and sample standard deviation of the finite values in a window.

    The standard deviation uses the n-1 denominator, floored at 1 so a
    single sample gives 0 instead of NaN.
    """
    values = speeds[np.isfinite(speeds)]
    if values.size == 0:
        return EMPTY_WINDOW_STAT

    median = float(np.median(values))
    mean = float(values.mean())
    variance = float(((values - mean) ** 2).sum()) / max(values.size - 1, 1)
    return LocalWindowStat(median=median, std=math.sqrt(variance))


def compute_local_window_stats(segments: pd.DataFrame,
                               window_seconds: float = DEFAULT_WINDOW_SECONDS) -> List[LocalWindowStat]:
    """
    Compute the trailing (median, std) speed pair for each segment.

    Two-pointer sweep: the right edge advances one segment at a time adding
    its elapsed time, and the left edge advances while the covered span
    exceeds window_seconds. The current segment always stays in its own
    window. Segments without a valid elapsed time add no span.

    Args:
        segments: DataFrame with 'speed_kmh' and 'duration_sec' columns
        window_seconds: Length of the trailing window in seconds

    Returns:
        One LocalWindowStat per segment, in segment order
    """
    if segments is None or segments.empty:
        return []

    if not (isinstance(window_seconds, (int, float)) and math.isfinite(window_seconds)
            and window_seconds > 0):
        logger.warning(f"Invalid window length {window_seconds!r}, using {DEFAULT_WINDOW_SECONDS}s")
        window_seconds = DEFAULT_WINDOW_SECONDS

    speeds = pd.to_numeric(segments['speed_kmh'], errors='coerce').to_numpy(dtype=float)
    durations = pd.to_numeric(segments['duration_sec'], errors='coerce').to_numpy(dtype=float)
    elapsed = np.where(np.isfinite(durations) & (durations > 0), durations, 0.0)

    stats: List[LocalWindowStat] = []
    left = 0
    span = 0.0
    largest_window = 0

    for right in range(len(speeds)):
        span += elapsed[right]
        while span > window_seconds and left < right:
            span -= elapsed[left]
            left += 1

        stats.append(summarize_speeds(speeds[left:right + 1]))
        largest_window = max(largest_window, right - left + 1)

    logger.debug(f"Local window stats over {window_seconds}s for {len(stats)} segments "
                 f"(largest window {largest_window} segments)")
    return stats
