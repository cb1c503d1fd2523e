"""
Services package.

Provides business logic layer between API and core algorithms.

Modules:
    wave_analysis_service: Main wave detection pipeline for GPX/CSV tracks
"""

from services.wave_analysis_service import (
    analyze_track_data,
    analyze_track_file,
    detect_waves,
    WaveAnalysisResult,
)

__all__ = [
    'analyze_track_data',
    'analyze_track_file',
    'detect_waves',
    'WaveAnalysisResult',
]
