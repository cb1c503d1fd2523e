"""
Human-readable formatting of distances, durations and bearings.

Used for GPX track names and the best-wave summary.
"""

import math
from typing import Optional

PLACEHOLDER = '–'


def format_distance(meters: Optional[float]) -> str:
    """'850 m' below one kilometer, '1.25 km' above."""
    if meters is None or not math.isfinite(meters):
        return PLACEHOLDER
    return f"{meters / 1000:.2f} km" if meters >= 1000 else f"{meters:.0f} m"


def format_duration(seconds: Optional[float]) -> str:
    """'1h 2m 5s', or '2m 5s' under an hour."""
    if seconds is None or not math.isfinite(seconds):
        return PLACEHOLDER
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    prefix = f"{hours}h " if hours > 0 else ""
    return f"{prefix}{minutes}m {secs}s"


def format_bearing(degrees: Optional[float]) -> str:
    """Bearing rounded to one decimal, without a trailing '.0'."""
    if degrees is None or not math.isfinite(degrees):
        return PLACEHOLDER
    rounded = round(degrees * 10) / 10
    return str(int(rounded)) if rounded == int(rounded) else f"{rounded:.1f}"
