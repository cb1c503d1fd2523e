"""
Wave detection package.

Clean, focused interface for the detection stages:
local window stats -> thresholds -> candidates -> stability -> enrichment.
"""

from .params import WaveDetectionParams
from .window import compute_local_window_stats
from .thresholds import ThresholdFactory, compute_thresholds
from .detector import detect_candidate_waves
from .stability import filter_stable_waves
from .enrichment import enrich_waves, select_best_wave

__all__ = [
    'WaveDetectionParams',
    'compute_local_window_stats',
    'ThresholdFactory',
    'compute_thresholds',
    'detect_candidate_waves',
    'filter_stable_waves',
    'enrich_waves',
    'select_best_wave',
]
