"""
Direction filtering for detected waves.

Keeps only the waves ridden towards a chosen direction, e.g. rights or lefts
on a given peak. This filter runs AFTER enrichment, since it needs each
wave's mean direction.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from core.calculations import angular_difference
from core.models.wave import EnrichedWave
from core.validation import clamp_number, normalize_direction
from core.constants import MAX_DIRECTION_DEGREES, DEFAULT_DIRECTION_TOLERANCE_DEGREES

logger = logging.getLogger(__name__)


@dataclass
class DirectionFilterResult:
    """
    Waves kept by the direction filter and what it rejected.

    raw_count > 0 with an empty waves list means every wave was ridden in
    the wrong direction, not that none were found.
    """
    waves: List[EnrichedWave] = field(default_factory=list)
    rejected_count: int = 0
    raw_count: int = 0
    applied: bool = False

    @property
    def all_rejected(self) -> bool:
        return self.applied and self.raw_count > 0 and not self.waves


def wave_direction_delta(wave: EnrichedWave, target_direction: float) -> Optional[float]:
    """Angular distance between a wave's direction and the target, None if undefined."""
    if wave.direction is None:
        return None
    return angular_difference(wave.direction, target_direction)


def filter_waves_by_direction(
    waves: List[EnrichedWave],
    enabled: bool = False,
    target_direction: float = 0.0,
    tolerance: float = DEFAULT_DIRECTION_TOLERANCE_DEGREES
) -> DirectionFilterResult:
    """
    Keep waves whose mean direction lies within tolerance of the target.

    Waves without a defined direction are rejected when the filter is on.

    Args:
        waves: Enriched waves
        enabled: Whether to apply the filter at all
        target_direction: Wanted direction in degrees (normalised mod 360)
        tolerance: Allowed angular difference in degrees (clamped to 0-180)

    Returns:
        DirectionFilterResult with kept waves and the rejected count
    """
    if not enabled:
        return DirectionFilterResult(waves=list(waves), raw_count=len(waves))

    target = normalize_direction(target_direction)
    tolerance = clamp_number(tolerance, 0.0, MAX_DIRECTION_DEGREES, DEFAULT_DIRECTION_TOLERANCE_DEGREES)

    kept = []
    for wave in waves:
        delta = wave_direction_delta(wave, target)
        if delta is not None and delta <= tolerance:
            kept.append(wave)

    rejected = len(waves) - len(kept)
    logger.info(f"Direction filter {target:.1f}° ±{tolerance:.1f}°: "
                f"{len(waves)} -> {len(kept)} waves ({rejected} rejected)")

    return DirectionFilterResult(waves=kept, rejected_count=rejected,
                                 raw_count=len(waves), applied=True)

