"""
Wave detection parameters.
"""

import math
from dataclasses import dataclass, fields, replace
from typing import Dict, Any, Optional

from core.constants import (
    DEFAULT_THRESHOLD_KMH, DEFAULT_MIN_WAVE_DURATION_SECONDS, DEFAULT_USE_ADAPTIVE,
    DEFAULT_WINDOW_SECONDS, DEFAULT_K_SIGMA, DEFAULT_DROP_PERCENT,
    DEFAULT_END_GRACE_SECONDS, DEFAULT_DIRECTION_FILTER_ENABLED,
    DEFAULT_TARGET_DIRECTION_DEGREES, DEFAULT_DIRECTION_TOLERANCE_DEGREES,
    DEFAULT_DIRECTION_STD_MAX_DEGREES, MAX_THRESHOLD_KMH, MAX_DROP_PERCENT,
    MAX_DIRECTION_DEGREES, MIN_WINDOW_SECONDS
)
from core.validation import clamp_number, normalize_direction


@dataclass(frozen=True)
class WaveDetectionParams:
    """Parameters for the wave detection pipeline."""
    threshold_kmh: float = DEFAULT_THRESHOLD_KMH
    min_duration: float = DEFAULT_MIN_WAVE_DURATION_SECONDS
    use_adaptive: bool = DEFAULT_USE_ADAPTIVE
    window_seconds: float = DEFAULT_WINDOW_SECONDS
    k_sigma: float = DEFAULT_K_SIGMA
    drop_percent: float = DEFAULT_DROP_PERCENT
    end_grace_seconds: float = DEFAULT_END_GRACE_SECONDS
    direction_filter_enabled: bool = DEFAULT_DIRECTION_FILTER_ENABLED
    target_direction: float = DEFAULT_TARGET_DIRECTION_DEGREES
    direction_tolerance: float = DEFAULT_DIRECTION_TOLERANCE_DEGREES
    # None or NaN disables the stability filter
    direction_std_max: Optional[float] = DEFAULT_DIRECTION_STD_MAX_DEGREES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for function calls."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'WaveDetectionParams':
        """Build normalised parameters from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        params = cls(**{k: v for k, v in values.items() if k in known})
        return params.normalized()

    def normalized(self) -> 'WaveDetectionParams':
        """
        Return a copy with every value clamped into its valid range.

        Out-of-range values are clamped and unusable ones (non-numeric,
        NaN, infinite) fall back to the defaults; nothing raises.
        """
        std_max = self.direction_std_max
        if std_max is not None:
            try:
                std_max = float(std_max)
            except (TypeError, ValueError):
                std_max = None
        if std_max is not None and math.isfinite(std_max):
            std_max = min(max(std_max, 0.0), MAX_DIRECTION_DEGREES)
        else:
            std_max = None

        return replace(
            self,
            threshold_kmh=clamp_number(self.threshold_kmh, 0.0, MAX_THRESHOLD_KMH, DEFAULT_THRESHOLD_KMH),
            min_duration=clamp_number(self.min_duration, 0.0, None, DEFAULT_MIN_WAVE_DURATION_SECONDS),
            use_adaptive=bool(self.use_adaptive),
            window_seconds=clamp_number(self.window_seconds, MIN_WINDOW_SECONDS, None, DEFAULT_WINDOW_SECONDS),
            k_sigma=clamp_number(self.k_sigma, 0.0, None, DEFAULT_K_SIGMA),
            drop_percent=clamp_number(self.drop_percent, 0.0, MAX_DROP_PERCENT, DEFAULT_DROP_PERCENT),
            end_grace_seconds=clamp_number(self.end_grace_seconds, 0.0, None, DEFAULT_END_GRACE_SECONDS),
            direction_filter_enabled=bool(self.direction_filter_enabled),
            target_direction=normalize_direction(self.target_direction, DEFAULT_TARGET_DIRECTION_DEGREES),
            direction_tolerance=clamp_number(self.direction_tolerance, 0.0, MAX_DIRECTION_DEGREES,
                                             DEFAULT_DIRECTION_TOLERANCE_DEGREES),
            direction_std_max=std_max,
        )
