"""
Direction stability filter.

Rejects candidates whose bearings wander too much to be a single ride on a
wave face (e.g. paddling around in circles at speed).
"""

import math
import logging
from typing import List, Optional

from core.calculations import circular_mean, circular_std
from core.models.wave import CandidateWave, StableWave

logger = logging.getLogger(__name__)


def is_direction_stable(bearing_std: Optional[float], std_max: Optional[float]) -> bool:
    """
    Decide whether a bearing spread is acceptable.

    Candidates without bearing samples (std None) always pass, as does
    everything when the maximum is unset or not finite.
    """
    if bearing_std is None:
        return True
    if std_max is None or not math.isfinite(std_max):
        return True
    return bearing_std <= std_max


def filter_stable_waves(candidates: List[CandidateWave],
                        std_max: Optional[float]) -> List[StableWave]:
    """
    Keep the candidates with a coherent direction of travel.

    Args:
        candidates: Candidates from detect_candidate_waves
        std_max: Maximum circular standard deviation in degrees

    Returns:
        StableWave records for the survivors, in the original order
    """
    stable = []

    for candidate in candidates:
        mean_bearing = circular_mean(candidate.bearing_samples)
        bearing_std = circular_std(candidate.bearing_samples)

        if not is_direction_stable(bearing_std, std_max):
            logger.debug(f"Rejected unstable wave {candidate.start_idx}-{candidate.end_idx}: "
                         f"bearing std {bearing_std:.1f}° > {std_max}°")
            continue

        stable.append(StableWave.from_candidate(candidate, mean_bearing, bearing_std))

    logger.info(f"Stability filter: {len(candidates)} -> {len(stable)} waves (max std {std_max})")
    return stable
