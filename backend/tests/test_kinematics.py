"""
Tests for segment kinematics.
"""

import pytest
import pandas as pd
from datetime import datetime, timedelta, timezone

from core.models.segment import SEGMENT_COLUMNS, dataframe_to_segments
from core.segments import compute_segments, build_segment_list
from conftest import build_track


class TestComputeSegments:
    """Tests for compute_segments."""

    def test_two_points_hundred_meters_ten_seconds(self):
        """100 m in 10 s is 36 km/h."""
        track = build_track([36.0], dt=10.0)
        segments = compute_segments(track)

        assert len(segments) == 1
        row = segments.iloc[0]
        assert row['distance_m'] == pytest.approx(100.0, rel=1e-6)
        assert row['duration_sec'] == pytest.approx(10.0)
        assert row['speed_kmh'] == pytest.approx(36.0, rel=1e-6)
        assert row['bearing'] == pytest.approx(90.0, abs=0.01)

    def test_one_segment_per_consecutive_pair(self):
        """n points give n - 1 segments with the standard columns."""
        track = build_track([10.0, 12.0, 14.0, 16.0])
        segments = compute_segments(track)

        assert len(segments) == len(track) - 1
        assert list(segments.columns) == SEGMENT_COLUMNS

    def test_segment_endpoints_link_consecutive_points(self):
        """Segment i starts at point i and ends at point i + 1."""
        track = build_track([10.0, 20.0])
        segments = compute_segments(track)

        assert segments.iloc[1]['start_lat'] == pytest.approx(track.iloc[1]['latitude'])
        assert segments.iloc[1]['end_lon'] == pytest.approx(track.iloc[2]['longitude'])

    def test_acceleration_uses_previous_elapsed_time(self):
        """Acceleration is the speed change over the previous segment's duration."""
        track = build_track([10.0, 20.0, 14.0], dt=2.0)
        segments = compute_segments(track)

        assert segments.iloc[0]['acceleration'] == 0.0
        assert segments.iloc[1]['acceleration'] == pytest.approx(5.0, rel=1e-6)
        assert segments.iloc[2]['acceleration'] == pytest.approx(-3.0, rel=1e-6)

    def test_missing_timestamps_give_zero_speed(self):
        """Without time there is no duration and no speed, but no error either."""
        track = build_track([10.0, 20.0], with_time=False)
        segments = compute_segments(track)

        assert len(segments) == 2
        assert segments['duration_sec'].isna().all()
        assert (segments['speed_kmh'] == 0.0).all()
        assert segments['distance_m'].iloc[0] > 0

    def test_non_increasing_time_gives_zero_speed(self):
        """A fix that goes back in time does not produce a speed."""
        t0 = datetime(2024, 7, 1, 9, 0, 0, tzinfo=timezone.utc)
        track = build_track([10.0, 10.0])
        track['time'] = [t0, t0 + timedelta(seconds=2), t0 + timedelta(seconds=1)]
        segments = compute_segments(track)

        assert segments.iloc[0]['speed_kmh'] > 0
        assert segments.iloc[0]['duration_sec'] == pytest.approx(2.0)
        assert segments.iloc[1]['speed_kmh'] == 0.0
        assert pd.isna(segments.iloc[1]['duration_sec'])

    def test_zero_distance_has_no_bearing(self):
        """Standing still leaves the bearing undefined."""
        track = build_track([0.0, 10.0])
        segments = compute_segments(track)

        assert pd.isna(segments.iloc[0]['bearing'])
        assert segments.iloc[0]['speed_kmh'] == 0.0
        assert not pd.isna(segments.iloc[1]['bearing'])

    def test_single_point_gives_no_segments(self):
        """Fewer than two points produce an empty table with the standard columns."""
        track = build_track([])
        segments = compute_segments(track)

        assert segments.empty
        assert list(segments.columns) == SEGMENT_COLUMNS

    def test_dataframe_round_trip(self):
        """The segment table converts back to Segment objects."""
        track = build_track([10.0, 20.0])
        segments = dataframe_to_segments(compute_segments(track))
        originals = build_segment_list(track)

        assert [s.speed_kmh for s in segments] == pytest.approx([s.speed_kmh for s in originals])
        assert all(s.has_valid_duration for s in segments)
