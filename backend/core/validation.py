"""
Input validation utilities for core functions.

Only malformed input files raise. Detection parameters are clamped into
range instead, and degenerate track data resolves to safe defaults further
down the pipeline.
"""

import math
import pandas as pd
import numpy as np
import logging
from typing import Any, Optional
from pathlib import Path

from core.constants import FULL_CIRCLE_DEGREES
from config.settings import MAX_UPLOAD_SIZE_BYTES, SUPPORTED_TRACK_EXTENSIONS

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


def validate_track_dataframe(df: pd.DataFrame, context: str = "Track data") -> pd.DataFrame:
    """
    Validate a track DataFrame has required columns and enough valid points.

    Rows with non-finite coordinates are dropped before the point count is
    checked, so a file with a few broken fixes still loads.

    Args:
        df: DataFrame to validate
        context: Context description for error messages

    Returns:
        Validated DataFrame with a fresh 0..n-1 index

    Raises:
        ValidationError: If validation fails
    """
    if df is None:
        raise ValidationError(f"{context}: DataFrame is None")

    if df.empty:
        raise ValidationError(f"{context}: No track points found")

    # Required columns for basic track processing
    required_columns = ['latitude', 'longitude']
    missing_columns = [col for col in required_columns if col not in df.columns]

    if missing_columns:
        raise ValidationError(f"{context}: Missing required columns: {missing_columns}")

    result = df.copy()
    result['latitude'] = pd.to_numeric(result['latitude'], errors='coerce')
    result['longitude'] = pd.to_numeric(result['longitude'], errors='coerce')

    finite_mask = np.isfinite(result['latitude']) & np.isfinite(result['longitude'])
    dropped = int((~finite_mask).sum())
    if dropped:
        logger.warning(f"{context}: dropped {dropped} points with invalid coordinates")
    result = result[finite_mask].reset_index(drop=True)

    # Validate coordinate ranges
    if not result['latitude'].between(-90, 90).all():
        invalid_count = (~result['latitude'].between(-90, 90)).sum()
        raise ValidationError(f"{context}: {invalid_count} invalid latitude values (must be -90 to 90)")

    if not result['longitude'].between(-180, 180).all():
        invalid_count = (~result['longitude'].between(-180, 180)).sum()
        raise ValidationError(f"{context}: {invalid_count} invalid longitude values (must be -180 to 180)")

    # Validate minimum data points
    if len(result) < 2:
        raise ValidationError(f"{context}: Need at least 2 data points for analysis, got {len(result)}")

    for column in ('elevation', 'time'):
        if column not in result.columns:
            result[column] = None

    logger.debug(f"{context}: Validation passed for {len(result)} data points")
    return result


def validate_file_upload(uploaded_file: Any) -> str:
    """
    Validate an uploaded track file before processing.

    Args:
        uploaded_file: File-like object, optionally carrying 'name' and 'size'

    Returns:
        The lower-cased file extension ('.gpx' or '.csv'), or '' when the
        file has no name

    Raises:
        ValidationError: If file validation fails
    """
    if uploaded_file is None:
        raise ValidationError("No file uploaded")

    size = getattr(uploaded_file, 'size', None)
    if isinstance(size, (int, float)) and size > MAX_UPLOAD_SIZE_BYTES:
        raise ValidationError(f"File too large: {size / 1024 / 1024:.1f}MB (max {MAX_UPLOAD_SIZE_BYTES // 1024 // 1024}MB)")

    suffix = ''
    name = getattr(uploaded_file, 'name', None)
    if isinstance(name, str) and name:
        suffix = Path(name).suffix.lower()
        if suffix not in SUPPORTED_TRACK_EXTENSIONS:
            raise ValidationError(f"Unsupported file type: {suffix or 'none'} (use .gpx or .csv)")

    logger.debug(f"File validation passed: {name or 'unknown'}")
    return suffix


# =============================================================================
# PARAMETER CLAMPING
# =============================================================================

def clamp_number(value: Any, minimum: float, maximum: Optional[float], default: float) -> float:
    """
    Coerce a numeric parameter into [minimum, maximum].

    Non-numeric and non-finite values fall back to the default. Pass
    maximum=None for an open upper bound.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default

    if not math.isfinite(number):
        return default

    number = max(minimum, number)
    if maximum is not None:
        number = min(maximum, number)
    return number


def normalize_direction(value: Any, default: float = 0.0) -> float:
    """Coerce a direction to a float in [0, 360)."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default

    if not math.isfinite(number):
        return default

    wrapped = number % FULL_CIRCLE_DEGREES
    return 0.0 if wrapped >= FULL_CIRCLE_DEGREES else wrapped
