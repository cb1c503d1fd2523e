"""
Application settings and configuration.

This module contains application-specific configuration, API settings, and defaults.
For algorithmic constants, see core.constants module.
"""

import logging
from typing import Dict, Any

# Import algorithmic constants from core module
from core.constants import (
    DEFAULT_THRESHOLD_KMH,
    DEFAULT_MIN_WAVE_DURATION_SECONDS,
    DEFAULT_USE_ADAPTIVE,
    DEFAULT_WINDOW_SECONDS,
    DEFAULT_K_SIGMA,
    DEFAULT_DROP_PERCENT,
    DEFAULT_END_GRACE_SECONDS,
    DEFAULT_DIRECTION_FILTER_ENABLED,
    DEFAULT_TARGET_DIRECTION_DEGREES,
    DEFAULT_DIRECTION_TOLERANCE_DEGREES,
    DEFAULT_DIRECTION_STD_MAX_DEGREES,
)

# App information
APP_NAME = "Wave Lab"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Detect and rank the waves ridden in a bodyboard GPS session"

# Upload limits
MAX_UPLOAD_SIZE_BYTES = 50 * 1024 * 1024  # 50MB
SUPPORTED_TRACK_EXTENSIONS = (".gpx", ".csv")

# Export parameters
EXPORT_CREATOR = "Bodyboard Viewer"
EXPORT_SESSION_TRACK_NAME = "Bodyboard Session"
EXPORT_FILENAME_PREFIX = "session_"

# Logging configuration
LOGGING_CONFIG = {
    "level": logging.INFO,
    "format": '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
}


# =============== Configuration Classes ===============
# These classes provide typed access to configuration sections

class WaveConfig:
    """Configuration parameters for wave detection."""
    THRESHOLD_KMH = DEFAULT_THRESHOLD_KMH
    MIN_DURATION = DEFAULT_MIN_WAVE_DURATION_SECONDS
    USE_ADAPTIVE = DEFAULT_USE_ADAPTIVE
    WINDOW_SECONDS = DEFAULT_WINDOW_SECONDS
    K_SIGMA = DEFAULT_K_SIGMA
    DROP_PERCENT = DEFAULT_DROP_PERCENT
    END_GRACE_SECONDS = DEFAULT_END_GRACE_SECONDS

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Get wave detection configuration as a dictionary."""
        return {
            'threshold_kmh': cls.THRESHOLD_KMH,
            'min_duration': cls.MIN_DURATION,
            'use_adaptive': cls.USE_ADAPTIVE,
            'window_seconds': cls.WINDOW_SECONDS,
            'k_sigma': cls.K_SIGMA,
            'drop_percent': cls.DROP_PERCENT,
            'end_grace_seconds': cls.END_GRACE_SECONDS,
        }


class DirectionConfig:
    """Configuration parameters for the direction filters."""
    FILTER_ENABLED = DEFAULT_DIRECTION_FILTER_ENABLED
    TARGET_DIRECTION = DEFAULT_TARGET_DIRECTION_DEGREES
    TOLERANCE = DEFAULT_DIRECTION_TOLERANCE_DEGREES
    STD_MAX = DEFAULT_DIRECTION_STD_MAX_DEGREES

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Get direction configuration as a dictionary."""
        return {
            'direction_filter_enabled': cls.FILTER_ENABLED,
            'target_direction': cls.TARGET_DIRECTION,
            'direction_tolerance': cls.TOLERANCE,
            'direction_std_max': cls.STD_MAX,
        }


class ExportConfig:
    """Configuration parameters for GPX export."""
    CREATOR = EXPORT_CREATOR
    SESSION_TRACK_NAME = EXPORT_SESSION_TRACK_NAME
    FILENAME_PREFIX = EXPORT_FILENAME_PREFIX

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Get export configuration as a dictionary."""
        return {
            'creator': cls.CREATOR,
            'session_track_name': cls.SESSION_TRACK_NAME,
            'filename_prefix': cls.FILENAME_PREFIX,
        }
