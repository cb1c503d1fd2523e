"""
Shared fixtures: synthetic tracks and segment tables.
"""

import pytest
import pandas as pd
from datetime import datetime, timedelta, timezone
from geopy.distance import great_circle

from core.constants import EARTH_RADIUS_KILOMETERS, KMH_TO_METERS_PER_SECOND

START_TIME = datetime(2024, 7, 1, 9, 0, 0, tzinfo=timezone.utc)
START_POINT = (43.4832, -1.5586)


def build_track(speeds_kmh, dt=1.0, bearing=90.0, start=START_POINT, start_time=START_TIME,
                with_time=True):
    """
    Point table whose consecutive segments move at the given speeds.

    Args:
        speeds_kmh: One speed per segment (the track has len + 1 points)
        dt: Seconds between fixes
        bearing: Direction of travel, a single value or one per segment
    """
    bearings = bearing if isinstance(bearing, (list, tuple)) else [bearing] * len(speeds_kmh)
    lat, lon = start
    rows = [{'latitude': lat, 'longitude': lon, 'elevation': 0.0,
             'time': start_time if with_time else None}]

    for i, (speed, heading) in enumerate(zip(speeds_kmh, bearings), start=1):
        meters = speed * KMH_TO_METERS_PER_SECOND * dt
        if meters > 0:
            point = great_circle(meters=meters, radius=EARTH_RADIUS_KILOMETERS).destination((lat, lon), heading)
            lat, lon = point.latitude, point.longitude
        rows.append({
            'latitude': lat,
            'longitude': lon,
            'elevation': 0.0,
            'time': start_time + timedelta(seconds=dt * i) if with_time else None,
        })

    return pd.DataFrame(rows)


def build_segments(speeds_kmh, dt=1.0, bearing=90.0):
    """Segment table with exact speeds, skipping the geometry."""
    bearings = bearing if isinstance(bearing, (list, tuple)) else [bearing] * len(speeds_kmh)
    return pd.DataFrame({
        'distance_m': [s * KMH_TO_METERS_PER_SECOND * dt for s in speeds_kmh],
        'duration_sec': [dt] * len(speeds_kmh),
        'speed_kmh': [float(s) for s in speeds_kmh],
        'bearing': [float(b) if b is not None else float('nan') for b in bearings],
    })


def noisy_baseline_with_spike(length=60, spike_at=40, spike_len=3):
    """Alternating 3/8 km/h paddling with one short 25 km/h ride."""
    speeds = [3.0 if i % 2 == 0 else 8.0 for i in range(length)]
    for i in range(spike_at, spike_at + spike_len):
        speeds[i] = 25.0
    return speeds


def gpx_document(track_df, name="Morning session"):
    """Serialise a point table as a minimal GPX 1.1 file."""
    points = []
    for _, row in track_df.iterrows():
        time = f"<time>{row['time'].strftime('%Y-%m-%dT%H:%M:%SZ')}</time>" if row['time'] is not None else ""
        points.append(f'<trkpt lat="{row["latitude"]:.8f}" lon="{row["longitude"]:.8f}">'
                      f'<ele>{row["elevation"]:.1f}</ele>{time}</trkpt>')
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">'
        f'<trk><name>{name}</name><trkseg>{"".join(points)}</trkseg></trk></gpx>'
    )


def csv_document(track_df, time_format='%Y-%m-%dT%H:%M:%SZ'):
    """Serialise a point table as time,lat,lon,ele CSV."""
    lines = ['time,lat,lon,ele']
    for _, row in track_df.iterrows():
        lines.append(f"{row['time'].strftime(time_format)},{row['latitude']:.8f},"
                     f"{row['longitude']:.8f},{row['elevation']:.1f}")
    return '\n'.join(lines) + '\n'


@pytest.fixture
def session_speeds():
    """Two clear rides separated by paddling, then a short burst."""
    return ([4.0] * 10 + [12.0, 20.0, 28.0, 30.0, 26.0, 22.0, 18.0] + [4.0] * 10 +
            [16.0, 24.0, 34.0, 30.0, 20.0] + [4.0] * 10 + [25.0] + [4.0] * 5)


@pytest.fixture
def session_track(session_speeds):
    return build_track(session_speeds)
