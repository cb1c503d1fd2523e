"""
Wave data models.

Detection produces a CandidateWave, the stability filter turns survivors into
StableWave values and enrichment builds an EnrichedWave. Each stage creates a
new record instead of appending fields to the previous one.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, Tuple, Dict, Any
import pandas as pd


@dataclass(frozen=True)
class LocalWindowStat:
    """Median and sample standard deviation of speed over a trailing time window."""
    median: float
    std: float


@dataclass
class CandidateWave:
    """
    Accumulator for a wave while the detector is in its active state.

    Indices refer to the segment table and are inclusive.
    """
    start_idx: int
    end_idx: int
    distance: float = 0.0  # meters
    duration: float = 0.0  # seconds
    peak_speed_kmh: float = 0.0
    segment_indices: List[int] = field(default_factory=list)
    bearing_samples: List[float] = field(default_factory=list)

    @property
    def segment_count(self) -> int:
        return len(self.segment_indices)


@dataclass(frozen=True)
class StableWave:
    """A candidate that passed the direction stability filter."""
    start_idx: int
    end_idx: int
    distance: float
    duration: float
    peak_speed_kmh: float
    segment_indices: Tuple[int, ...]
    bearing_samples: Tuple[float, ...]
    mean_bearing: Optional[float]  # Circular mean, None without samples
    bearing_std: Optional[float]  # Circular std in degrees, None without samples

    @classmethod
    def from_candidate(cls, candidate: CandidateWave,
                       mean_bearing: Optional[float],
                       bearing_std: Optional[float]) -> 'StableWave':
        return cls(
            start_idx=candidate.start_idx,
            end_idx=candidate.end_idx,
            distance=candidate.distance,
            duration=candidate.duration,
            peak_speed_kmh=candidate.peak_speed_kmh,
            segment_indices=tuple(candidate.segment_indices),
            bearing_samples=tuple(candidate.bearing_samples),
            mean_bearing=mean_bearing,
            bearing_std=bearing_std,
        )


@dataclass(frozen=True)
class EnrichedWave:
    """
    Presentation-ready wave.

    Carries geographic coordinates and index ranges only; map bounds and
    markers are built by whoever renders the wave.
    """
    # Segment range (inclusive)
    start_idx: int
    end_idx: int
    segment_indices: Tuple[int, ...]

    # Point range (inclusive), end_point_idx is the trailing point of end_idx
    start_point_idx: int
    end_point_idx: int

    # Ride characteristics
    distance: float  # meters
    duration: float  # seconds
    peak_speed_kmh: float
    avg_speed_kmh: Optional[float]  # None when duration is 0
    direction: Optional[float]  # Mean travel direction in degrees (0-360)
    bearing_std: Optional[float]
    bearing_samples: Tuple[float, ...]

    # Geography: bounds are (min_lat, min_lon, max_lat, max_lon)
    bounds: Tuple[float, float, float, float]
    start_point: Tuple[float, float]
    mid_point: Tuple[float, float]

    # Peak and series for visualisation
    peak_segment_idx: int
    peak_offset: int  # Position of the peak within the wave
    speed_series: Tuple[float, ...]

    start_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert wave to a JSON-friendly dictionary."""
        data = asdict(self)
        for key in ('segment_indices', 'bearing_samples', 'bounds',
                    'start_point', 'mid_point', 'speed_series'):
            data[key] = list(data[key])
        return data

    @property
    def point_count(self) -> int:
        return self.end_point_idx - self.start_point_idx + 1


def waves_to_dataframe(waves: List[EnrichedWave]) -> pd.DataFrame:
    """
    Convert a list of enriched waves to a pandas DataFrame (one row per wave).

    Args:
        waves: List of EnrichedWave objects

    Returns:
        pandas DataFrame with wave data
    """
    if not waves:
        return pd.DataFrame()

    return pd.DataFrame([wave.to_dict() for wave in waves])
