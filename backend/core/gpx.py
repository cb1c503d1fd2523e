"""
Track file parsing and GPX export.

This module contains functions for loading GPX and CSV tracks into a point
DataFrame and for writing a session (full track plus one track per wave)
back out as GPX.
"""

import io
import os
import gpxpy
import gpxpy.gpx
import pandas as pd
import logging
from datetime import datetime, timezone
from typing import Tuple, Dict, List, Optional, Any

from config.settings import ExportConfig
from core.models.wave import EnrichedWave
from core.validation import validate_file_upload, validate_track_dataframe, ValidationError
from utils.formatting import format_distance

logger = logging.getLogger(__name__)

CSV_REQUIRED_COLUMNS = ('time', 'lat', 'lon')


def _empty_metadata() -> Dict[str, Any]:
    return {
        'name': None,
        'description': None,
        'time': None,
        'author': None,
        'format': None,
    }


def load_gpx_file(gpx_file) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Load and parse a GPX file into a pandas DataFrame with comprehensive validation.

    Args:
        gpx_file: A file-like object (or XML string) containing GPX data

    Returns:
        tuple: (DataFrame with track data, dict with metadata)

    Raises:
        ValidationError: If file validation or parsing fails
    """
    try:
        if not isinstance(gpx_file, str):
            validate_file_upload(gpx_file)

        content = gpx_file.read() if hasattr(gpx_file, 'read') else gpx_file
        if isinstance(content, bytes):
            content = content.decode('utf-8-sig')

        gpx = gpxpy.parse(content)

        if not gpx.tracks:
            raise ValidationError("GPX file contains no tracks")

    except gpxpy.gpx.GPXException as e:
        raise ValidationError(f"Invalid GPX file format: {str(e)}") from e
    except Exception as e:
        if isinstance(e, ValidationError):
            raise
        raise ValidationError(f"Failed to parse GPX file: {str(e)}") from e

    metadata = _empty_metadata()
    metadata['format'] = 'gpx'

    # Try to get the track name from GPX data
    if gpx.tracks and gpx.tracks[0].name:
        metadata['name'] = gpx.tracks[0].name
    elif isinstance(getattr(gpx_file, 'name', None), str):
        filename = os.path.basename(gpx_file.name)
        metadata['name'] = os.path.splitext(filename)[0]

    if gpx.description:
        metadata['description'] = gpx.description
    if gpx.time:
        metadata['time'] = gpx.time
    if gpx.author_name:
        metadata['author'] = gpx.author_name

    # Parse track points
    data = []
    for track in gpx.tracks:
        for segment in track.segments:
            for point in segment.points:
                data.append({
                    'latitude': point.latitude,
                    'longitude': point.longitude,
                    'elevation': point.elevation,
                    'time': point.time,
                })

    df = pd.DataFrame(data, columns=['latitude', 'longitude', 'elevation', 'time'])
    validated_df = validate_track_dataframe(df, f"GPX file {metadata.get('name') or 'unknown'}")

    logger.info(f"Successfully loaded GPX file with {len(validated_df)} track points")
    return validated_df, metadata


def load_csv_file(csv_file) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Load a CSV track with a header containing time, lat, lon and optional ele.

    Header names are case-insensitive. Times may use either ISO 8601 or
    'YYYY-MM-DD HH:MM:SS'; unparseable times become missing timestamps.

    Args:
        csv_file: A file-like object or path containing CSV data

    Returns:
        tuple: (DataFrame with track data, dict with metadata)

    Raises:
        ValidationError: If the file cannot be read or lacks required columns
    """
    if not isinstance(csv_file, str):
        validate_file_upload(csv_file)

    try:
        raw = pd.read_csv(csv_file, skip_blank_lines=True, dtype=str, encoding='utf-8-sig')
    except pd.errors.EmptyDataError as e:
        raise ValidationError("CSV file is empty") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValidationError(f"Invalid CSV file: {str(e)}") from e

    raw.columns = [str(c).strip().lower() for c in raw.columns]
    missing = [c for c in CSV_REQUIRED_COLUMNS if c not in raw.columns]
    if missing:
        raise ValidationError("CSV must have columns: time,lat,lon[,ele] "
                              f"(missing: {', '.join(missing)})")

    if raw.empty:
        raise ValidationError("CSV file has no data rows")

    df = pd.DataFrame({
        'latitude': pd.to_numeric(raw['lat'].str.strip(), errors='coerce'),
        'longitude': pd.to_numeric(raw['lon'].str.strip(), errors='coerce'),
        'elevation': (pd.to_numeric(raw['ele'].str.strip(), errors='coerce')
                      if 'ele' in raw.columns else None),
        'time': pd.to_datetime(raw['time'].str.strip(), errors='coerce', utc=True, format='ISO8601'),
    })

    metadata = _empty_metadata()
    metadata['format'] = 'csv'
    name = csv_file if isinstance(csv_file, str) else getattr(csv_file, 'name', None)
    if isinstance(name, str):
        metadata['name'] = os.path.splitext(os.path.basename(name))[0]

    validated_df = validate_track_dataframe(df, f"CSV file {metadata.get('name') or 'unknown'}")

    logger.info(f"Successfully loaded CSV file with {len(validated_df)} track points")
    return validated_df, metadata


def load_track_file(track_file, file_format: Optional[str] = None) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Load a GPX or CSV track, picking the parser from the format or file name.

    Args:
        track_file: File-like object with a 'name', or raw content when file_format is given
        file_format: 'gpx' or 'csv'; inferred from the file name when omitted

    Returns:
        tuple: (DataFrame with track data, dict with metadata)

    Raises:
        ValidationError: If the format is unsupported or parsing fails
    """
    if file_format is None:
        suffix = validate_file_upload(track_file)
        file_format = suffix.lstrip('.')

    file_format = (file_format or '').lower().lstrip('.')
    if file_format == 'gpx':
        return load_gpx_file(track_file)
    if file_format == 'csv':
        return load_csv_file(track_file)

    raise ValidationError("Unsupported format (use .gpx or .csv)")


def load_track_from_path(file_path: str) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Load a GPX or CSV track from disk path.

    Args:
        file_path: Path to the track file

    Returns:
        tuple: (DataFrame with track data, dict with metadata)

    Raises:
        FileNotFoundError: If the file does not exist
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Track file not found: {file_path}")

    with open(file_path, 'rb') as f:
        data, metadata = load_track_file(f)

    # Use filename if no name was extracted
    if not metadata['name']:
        metadata['name'] = os.path.splitext(os.path.basename(file_path))[0]

    return data, metadata


# =============================================================================
# GPX EXPORT
# =============================================================================

def _track_points(track_df: pd.DataFrame, start: int, end: int) -> List[gpxpy.gpx.GPXTrackPoint]:
    """GPX points for rows start..end inclusive."""
    points = []
    rows = track_df.iloc[start:end + 1]
    times = (pd.to_datetime(rows['time'], errors='coerce', utc=True)
             if 'time' in rows.columns else pd.Series([pd.NaT] * len(rows)))
    elevations = (pd.to_numeric(rows['elevation'], errors='coerce')
                  if 'elevation' in rows.columns else pd.Series([None] * len(rows)))

    for lat, lon, ele, time in zip(rows['latitude'], rows['longitude'], elevations, times):
        points.append(gpxpy.gpx.GPXTrackPoint(
            latitude=float(lat),
            longitude=float(lon),
            elevation=None if ele is None or pd.isna(ele) else float(ele),
            time=None if pd.isna(time) else time.to_pydatetime(),
        ))
    return points


def _build_track(name: str, points: List[gpxpy.gpx.GPXTrackPoint]) -> gpxpy.gpx.GPXTrack:
    track = gpxpy.gpx.GPXTrack(name=name)
    segment = gpxpy.gpx.GPXTrackSegment()
    segment.points.extend(points)
    track.segments.append(segment)
    return track


def wave_track_name(ordinal: int, wave: EnrichedWave) -> str:
    """Track name embedding the wave ordinal, distance and peak speed."""
    return f"Wave {ordinal} • {format_distance(wave.distance)} • {wave.peak_speed_kmh:.1f} km/h"


def build_session_gpx(track_df: pd.DataFrame,
                      waves: List[EnrichedWave],
                      creator: Optional[str] = None,
                      session_name: Optional[str] = None,
                      exported_at: Optional[datetime] = None) -> str:
    """
    Build a GPX 1.1 document holding the whole session plus one track per wave.

    Args:
        track_df: Point table of the session
        waves: Final (filtered) waves
        creator: GPX creator attribute
        session_name: Name of the primary track
        exported_at: Metadata timestamp, defaults to now (UTC)

    Returns:
        GPX XML as a string
    """
    gpx = gpxpy.gpx.GPX()
    gpx.creator = creator or ExportConfig.CREATOR
    gpx.time = exported_at or datetime.now(timezone.utc)

    gpx.tracks.append(_build_track(session_name or ExportConfig.SESSION_TRACK_NAME,
                                   _track_points(track_df, 0, len(track_df) - 1)))

    for ordinal, wave in enumerate(waves, start=1):
        gpx.tracks.append(_build_track(wave_track_name(ordinal, wave),
                                       _track_points(track_df, wave.start_point_idx, wave.end_point_idx)))

    logger.info(f"Exported GPX with session track and {len(waves)} wave tracks")
    return gpx.to_xml(version='1.1')


def parse_track_bytes(content: bytes, filename: str) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Load a track from raw upload bytes, keeping the original file name.

    Args:
        content: Uploaded file content
        filename: Original file name (its extension selects the parser)

    Returns:
        tuple: (DataFrame with track data, dict with metadata)
    """
    file_obj = io.BytesIO(content)
    file_obj.name = filename
    data, metadata = load_track_file(file_obj)
    if not metadata['name']:
        metadata['name'] = os.path.splitext(os.path.basename(filename))[0]
    return data, metadata
