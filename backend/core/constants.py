"""
Constants for the Wave Lab application.

This module contains all the mathematical, algorithmic, and domain-specific
constants used throughout the codebase. Constants are grouped by their purpose
and documented with their units where applicable.
"""

# =============================================================================
# CONVERSION FACTORS
# =============================================================================

# Speed conversions
METERS_PER_SECOND_TO_KMH = 3.6  # 1 m/s = 3.6 km/h
KMH_TO_METERS_PER_SECOND = 1 / METERS_PER_SECOND_TO_KMH

# Distance conversions
METERS_PER_KILOMETER = 1000
SECONDS_PER_HOUR = 3600

# Spherical earth model used for great-circle distances
EARTH_RADIUS_METERS = 6371000
EARTH_RADIUS_KILOMETERS = EARTH_RADIUS_METERS / METERS_PER_KILOMETER

# =============================================================================
# ANGLE CONSTANTS (all in degrees)
# =============================================================================

FULL_CIRCLE_DEGREES = 360
ANGLE_WRAP_BOUNDARY_DEGREES = 180  # Largest possible angular difference

# Resultant length floor, avoids log(0) in circular std
MIN_RESULTANT_LENGTH = 1e-12

# Below this the summed sin/cos vector has no usable direction
MIN_DIRECTION_VECTOR = 1e-6

# =============================================================================
# WAVE DETECTION DEFAULTS
# =============================================================================

DEFAULT_THRESHOLD_KMH = 15.0  # Fixed speed threshold
DEFAULT_MIN_WAVE_DURATION_SECONDS = 2.0
DEFAULT_USE_ADAPTIVE = False
DEFAULT_WINDOW_SECONDS = 30.0  # Trailing window for local speed statistics
DEFAULT_K_SIGMA = 1.0  # Std multiplier for the adaptive threshold
DEFAULT_DROP_PERCENT = 40.0  # Drop from peak that counts as decay
DEFAULT_END_GRACE_SECONDS = 2.0  # Sustained decay time before a wave ends

# Direction filters
DEFAULT_DIRECTION_FILTER_ENABLED = False
DEFAULT_TARGET_DIRECTION_DEGREES = 0.0
DEFAULT_DIRECTION_TOLERANCE_DEGREES = 45.0
DEFAULT_DIRECTION_STD_MAX_DEGREES = 60.0

# =============================================================================
# AUTO THRESHOLD
# =============================================================================

AUTO_THRESHOLD_QUANTILE = 0.75  # Quantile of moving speeds
AUTO_THRESHOLD_MIN_MOVING_KMH = 1.0  # Speeds at or below this are ignored
AUTO_THRESHOLD_MIN_KMH = 5.0
AUTO_THRESHOLD_MAX_KMH = 120.0

# =============================================================================
# PARAMETER RANGES
# =============================================================================

MAX_THRESHOLD_KMH = 200.0
MAX_DROP_PERCENT = 100.0
MAX_DIRECTION_DEGREES = 180.0
MIN_WINDOW_SECONDS = 1.0

# Guard for speed averages over an empty duration
MIN_DURATION_DIVISOR_HOURS = 1e-9

# =============================================================================
# VALIDATION
# =============================================================================

assert AUTO_THRESHOLD_MIN_KMH <= DEFAULT_THRESHOLD_KMH <= AUTO_THRESHOLD_MAX_KMH, \
    "Default threshold must sit inside the auto threshold range"
