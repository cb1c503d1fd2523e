"""
Tests for the direction stability filter.
"""

import pytest

from core.models.wave import CandidateWave
from core.waves import filter_stable_waves
from core.waves.stability import is_direction_stable


def _candidate(bearings, start=0):
    return CandidateWave(
        start_idx=start,
        end_idx=start + max(len(bearings), 1) - 1,
        distance=40.0,
        duration=4.0,
        peak_speed_kmh=25.0,
        segment_indices=list(range(start, start + max(len(bearings), 1))),
        bearing_samples=list(bearings),
    )


class TestFilterStableWaves:
    """Tests for filter_stable_waves."""

    def test_consistent_direction_passes(self):
        """Bearings [0°, 5°, 355°] hold a steady heading."""
        stable = filter_stable_waves([_candidate([0.0, 5.0, 355.0])], std_max=25.0)

        assert len(stable) == 1
        mean = stable[0].mean_bearing
        assert min(mean, 360 - mean) < 2.0
        assert stable[0].bearing_std < 25.0

    def test_dispersed_direction_fails(self):
        """Bearings [0°, 90°, 180°, 270°] are rejected."""
        assert filter_stable_waves([_candidate([0.0, 90.0, 180.0, 270.0])], std_max=25.0) == []

    def test_wave_without_samples_passes(self):
        """No bearing samples means no evidence of meandering."""
        stable = filter_stable_waves([_candidate([])], std_max=0.0)

        assert len(stable) == 1
        assert stable[0].mean_bearing is None
        assert stable[0].bearing_std is None

    def test_order_preserved(self):
        """Survivors keep their detection order."""
        candidates = [
            _candidate([90.0, 92.0], start=0),
            _candidate([0.0, 90.0, 180.0, 270.0], start=10),
            _candidate([270.0, 268.0], start=20),
        ]
        stable = filter_stable_waves(candidates, std_max=30.0)
        assert [w.start_idx for w in stable] == [0, 20]

    def test_new_records_leave_candidates_untouched(self):
        """Stable waves are new values; candidates are not modified."""
        candidate = _candidate([10.0, 12.0])
        stable = filter_stable_waves([candidate], std_max=30.0)[0]

        assert stable.bearing_samples == (10.0, 12.0)
        assert not hasattr(candidate, 'mean_bearing')
        with pytest.raises(AttributeError):
            stable.distance = 0.0


class TestIsDirectionStable:
    """Tests for is_direction_stable."""

    def test_unset_maximum_disables_filter(self):
        assert is_direction_stable(170.0, None)
        assert is_direction_stable(170.0, float('nan'))

    def test_boundary_is_inclusive(self):
        assert is_direction_stable(25.0, 25.0)
        assert not is_direction_stable(25.1, 25.0)
