"""
Shared calculations module.

This module contains the shared calculation functions used by the kinematics
engine, the wave detector and the service layer. It provides a single source
of truth for geometric, circular and unit operations.
"""

import math
import numpy as np
import pandas as pd
from geopy.distance import great_circle
from typing import Dict, Any, Optional, Iterable
import logging

from core.constants import (
    FULL_CIRCLE_DEGREES, ANGLE_WRAP_BOUNDARY_DEGREES, METERS_PER_SECOND_TO_KMH,
    METERS_PER_KILOMETER, SECONDS_PER_HOUR,
    EARTH_RADIUS_KILOMETERS, MIN_RESULTANT_LENGTH, MIN_DIRECTION_VECTOR,
    MIN_DURATION_DIVISOR_HOURS, DEFAULT_THRESHOLD_KMH, AUTO_THRESHOLD_QUANTILE,
    AUTO_THRESHOLD_MIN_MOVING_KMH, AUTO_THRESHOLD_MIN_KMH, AUTO_THRESHOLD_MAX_KMH
)

logger = logging.getLogger(__name__)


def is_finite_number(value: Any) -> bool:
    """True for int/float values that are neither None, NaN nor infinite."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


# =============================================================================
# BASIC GEOMETRIC CALCULATIONS
# =============================================================================

def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the bearing between two points in degrees."""
    # Convert to radians
    lat1 = math.radians(lat1)
    lon1 = math.radians(lon1)
    lat2 = math.radians(lat2)
    lon2 = math.radians(lon2)

    # Calculate bearing
    x = math.sin(lon2 - lon1) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(lon2 - lon1)
    initial_bearing = math.atan2(x, y)

    # Convert to degrees
    initial_bearing = math.degrees(initial_bearing)
    compass_bearing = (initial_bearing + FULL_CIRCLE_DEGREES) % FULL_CIRCLE_DEGREES

    return compass_bearing


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in meters (spherical earth)."""
    return great_circle((lat1, lon1), (lat2, lon2), radius=EARTH_RADIUS_KILOMETERS).meters


def normalize_bearing(degrees: float) -> Optional[float]:
    """Wrap an angle into [0, 360). Returns None for non-finite input."""
    if not is_finite_number(degrees):
        return None
    wrapped = float(degrees) % FULL_CIRCLE_DEGREES
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if wrapped >= FULL_CIRCLE_DEGREES else wrapped


def angular_difference(a: float, b: float) -> Optional[float]:
    """
    Smallest angle between two bearings.

    Takes the shorter of the two arcs around the circle, so the result is
    always in [0, 180]; e.g. 10° and 350° are 20° apart, not 340°.

    Returns:
        The difference in degrees, or None if either bearing is not finite
    """
    a_norm = normalize_bearing(a)
    b_norm = normalize_bearing(b)
    if a_norm is None or b_norm is None:
        return None

    diff = abs(a_norm - b_norm) % FULL_CIRCLE_DEGREES
    return FULL_CIRCLE_DEGREES - diff if diff > ANGLE_WRAP_BOUNDARY_DEGREES else diff


# =============================================================================
# CIRCULAR STATISTICS
# =============================================================================

def _finite_bearings(bearings: Iterable[float]) -> np.ndarray:
    values = np.asarray([b for b in bearings if is_finite_number(b)], dtype=float)
    return np.radians(values)


def circular_mean(bearings: Iterable[float]) -> Optional[float]:
    """
    Circular mean of a set of bearings in degrees.

    Bearings [10°, 350°] average to 0°, not to the arithmetic 180°.

    Returns:
        Mean bearing in [0, 360), or None when there are no samples or the
        samples cancel out (e.g. exactly opposite directions)
    """
    radians = _finite_bearings(bearings)
    if radians.size == 0:
        return None

    sin_sum = float(np.sin(radians).sum())
    cos_sum = float(np.cos(radians).sum())
    if abs(sin_sum) <= MIN_DIRECTION_VECTOR and abs(cos_sum) <= MIN_DIRECTION_VECTOR:
        return None

    return normalize_bearing(math.degrees(math.atan2(sin_sum, cos_sum)))


def circular_std(bearings: Iterable[float]) -> Optional[float]:
    """
    Circular standard deviation of a set of bearings, in degrees.

    Uses sqrt(-2 ln R) where R is the mean resultant length. R is clamped
    away from zero so fully dispersed samples give a large finite value.

    Returns:
        Standard deviation in degrees, or None when there are no samples
    """
    radians = _finite_bearings(bearings)
    if radians.size == 0:
        return None

    sin_sum = float(np.sin(radians).sum())
    cos_sum = float(np.cos(radians).sum())
    resultant = math.hypot(sin_sum, cos_sum) / radians.size
    resultant = min(1.0, max(resultant, MIN_RESULTANT_LENGTH))

    return math.degrees(math.sqrt(max(0.0, -2.0 * math.log(resultant))))


# =============================================================================
# UNIT CONVERSIONS
# =============================================================================

def meters_per_second_to_kmh(speed_ms: float) -> float:
    """Convert meters per second to kilometers per hour."""
    return speed_ms * METERS_PER_SECOND_TO_KMH


def meters_to_kilometers(distance_m: float) -> float:
    """Convert meters to kilometers."""
    return distance_m / METERS_PER_KILOMETER


# =============================================================================
# TRACK METRICS
# =============================================================================

def calculate_track_metrics(segments: pd.DataFrame) -> Dict[str, Any]:
    """
    Calculate session-level metrics from the segment table.

    Only finite distances and strictly positive durations count towards the
    totals, so segments without timestamps do not distort the average.

    Parameters:
    - segments: DataFrame with 'distance_m', 'duration_sec' and 'speed_kmh' columns

    Returns:
    - Dictionary with total_distance_m, total_duration_sec, avg_speed_kmh, max_speed_kmh
    """
    if segments is None or segments.empty:
        return {
            'total_distance_m': 0.0,
            'total_duration_sec': 0.0,
            'avg_speed_kmh': 0.0,
            'max_speed_kmh': 0.0,
        }

    distances = pd.to_numeric(segments['distance_m'], errors='coerce')
    durations = pd.to_numeric(segments['duration_sec'], errors='coerce')
    speeds = pd.to_numeric(segments['speed_kmh'], errors='coerce')

    total_distance = float(distances[np.isfinite(distances)].sum())
    total_duration = float(durations[np.isfinite(durations) & (durations > 0)].sum())

    duration_hours = total_duration / SECONDS_PER_HOUR or MIN_DURATION_DIVISOR_HOURS
    avg_speed = meters_to_kilometers(total_distance) / duration_hours

    finite_speeds = speeds[np.isfinite(speeds)]
    max_speed = float(finite_speeds.max()) if not finite_speeds.empty else 0.0

    return {
        'total_distance_m': total_distance,
        'total_duration_sec': total_duration,
        'avg_speed_kmh': avg_speed,
        'max_speed_kmh': max(max_speed, 0.0),
    }


def compute_auto_threshold(segments: pd.DataFrame) -> float:
    """
    Suggest a detection threshold from the session's own speeds.

    Takes the 75th percentile (lower index, no interpolation) of the moving
    speeds and clamps it to a sensible range.

    Args:
        segments: DataFrame with a 'speed_kmh' column

    Returns:
        Threshold in km/h
    """
    if segments is None or segments.empty or 'speed_kmh' not in segments.columns:
        return DEFAULT_THRESHOLD_KMH

    speeds = pd.to_numeric(segments['speed_kmh'], errors='coerce').to_numpy(dtype=float)
    moving = np.sort(speeds[np.isfinite(speeds) & (speeds > AUTO_THRESHOLD_MIN_MOVING_KMH)])
    if moving.size == 0:
        logger.debug("No moving speeds found, using default threshold")
        return DEFAULT_THRESHOLD_KMH

    idx = int(math.floor(AUTO_THRESHOLD_QUANTILE * (moving.size - 1)))
    candidate = float(moving[idx])
    threshold = min(max(candidate, AUTO_THRESHOLD_MIN_KMH), AUTO_THRESHOLD_MAX_KMH)

    logger.debug(f"Auto threshold {threshold:.1f} km/h from {moving.size} moving segments")
    return threshold
