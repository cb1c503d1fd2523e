"""
Tests for wave enrichment and best-wave selection.
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from core.models.wave import StableWave, waves_to_dataframe
from core.segments import compute_segments
from core.waves import (
    WaveDetectionParams, detect_candidate_waves, filter_stable_waves, enrich_waves, select_best_wave
)
from core.waves.enrichment import enrich_wave
from conftest import build_track, START_TIME


@pytest.fixture
def ride():
    """One north-east ride over segments 2-5."""
    track = build_track([2.0, 2.0, 20.0, 25.0, 30.0, 22.0, 2.0, 2.0, 2.0], bearing=45.0)
    segments = compute_segments(track)
    candidates = detect_candidate_waves(segments, WaveDetectionParams(threshold_kmh=15.0))
    stable = filter_stable_waves(candidates, std_max=60.0)
    return track, segments, stable


class TestEnrichWave:
    """Tests for enrich_wave."""

    def test_index_and_point_ranges(self, ride):
        """The point slice runs to the trailing point of the last segment."""
        track, segments, stable = ride
        wave = enrich_waves(stable, track, segments)[0]

        assert wave.segment_indices == (2, 3, 4, 5)
        assert (wave.start_point_idx, wave.end_point_idx) == (2, 6)
        assert wave.point_count == 5

    def test_geography(self, ride):
        """Bounds cover the slice and the representative points come from it."""
        track, segments, stable = ride
        wave = enrich_waves(stable, track, segments)[0]

        min_lat, min_lon, max_lat, max_lon = wave.bounds
        assert min_lat == pytest.approx(track.loc[2, 'latitude'])
        assert max_lat == pytest.approx(track.loc[6, 'latitude'])
        assert min_lon == pytest.approx(track.loc[2, 'longitude'])
        assert max_lon == pytest.approx(track.loc[6, 'longitude'])
        assert wave.start_point == pytest.approx((track.loc[2, 'latitude'], track.loc[2, 'longitude']))
        assert wave.mid_point == pytest.approx((track.loc[4, 'latitude'], track.loc[4, 'longitude']))

    def test_speeds_and_peak(self, ride):
        """Average speed, peak location and speed series."""
        track, segments, stable = ride
        wave = enrich_waves(stable, track, segments)[0]

        assert wave.avg_speed_kmh == pytest.approx((20 + 25 + 30 + 22) / 4, rel=1e-6)
        assert wave.peak_speed_kmh == pytest.approx(30.0, rel=1e-6)
        assert wave.peak_offset == 2
        assert wave.peak_segment_idx == 4
        assert wave.speed_series == pytest.approx((20.0, 25.0, 30.0, 22.0), rel=1e-6)

    def test_direction_and_start_time(self, ride):
        """Mean direction follows the ride and the start time comes from the first point."""
        track, segments, stable = ride
        wave = enrich_waves(stable, track, segments)[0]

        assert wave.direction == pytest.approx(45.0, abs=0.01)
        assert wave.start_time == START_TIME + timedelta(seconds=2)

    def test_direction_falls_back_to_start_end_bearing(self, ride):
        """Without bearing samples the straight start-to-end bearing is used."""
        track, segments, stable = ride
        bare = replace(stable[0], bearing_samples=(), mean_bearing=None, bearing_std=None)

        wave = enrich_wave(bare, track, segments)
        assert wave.direction == pytest.approx(45.0, abs=0.01)
        assert wave.bearing_std is None

    def test_zero_duration_has_no_average_speed(self, ride):
        """Average speed is undefined when the wave has no duration."""
        track, segments, stable = ride
        wave = enrich_wave(replace(stable[0], duration=0.0), track, segments)
        assert wave.avg_speed_kmh is None

    def test_duplicate_member_indices_are_cleaned(self, ride):
        """Member indices are deduplicated and sorted."""
        track, segments, _ = ride
        messy = StableWave(start_idx=3, end_idx=2, distance=10.0, duration=2.0, peak_speed_kmh=25.0,
                           segment_indices=(3, 2, 3), bearing_samples=(45.0,),
                           mean_bearing=45.0, bearing_std=0.0)

        wave = enrich_wave(messy, track, segments)
        assert wave.segment_indices == (2, 3)
        assert (wave.start_idx, wave.end_idx) == (2, 3)

    def test_to_dict_and_dataframe(self, ride):
        """Waves convert to JSON-friendly dicts and a table."""
        track, segments, stable = ride
        waves = enrich_waves(stable, track, segments)

        data = waves[0].to_dict()
        assert isinstance(data['bounds'], list)
        assert data['segment_indices'] == [2, 3, 4, 5]
        assert len(waves_to_dataframe(waves)) == 1


class TestSelectBestWave:
    """Tests for select_best_wave."""

    def test_highest_peak_wins(self, ride):
        track, segments, stable = ride
        wave = enrich_waves(stable, track, segments)[0]
        slower = replace(wave, peak_speed_kmh=20.0, distance=500.0)

        assert select_best_wave([slower, wave]) is wave

    def test_tie_goes_to_longer_distance(self, ride):
        """Equal peaks are ranked by distance."""
        track, segments, stable = ride
        wave = enrich_waves(stable, track, segments)[0]
        longer = replace(wave, distance=wave.distance + 50.0)

        assert select_best_wave([wave, longer]) is longer

    def test_no_waves(self):
        assert select_best_wave([]) is None
