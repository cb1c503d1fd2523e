"""
FastAPI backend for Wave Lab.

This provides REST API endpoints for wave detection and GPX export,
enabling framework-agnostic frontend development.
"""

from fastapi import FastAPI, UploadFile, File, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel
from typing import Dict, List, Optional, Any
import pandas as pd
import logging
import sys
import os

# Add parent directory to path to import our modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import (
    APP_NAME, APP_VERSION, APP_DESCRIPTION, LOGGING_CONFIG, MAX_UPLOAD_SIZE_BYTES,
    WaveConfig, DirectionConfig, ExportConfig
)

# Initialize logging
logging.basicConfig(**LOGGING_CONFIG)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=f"{APP_NAME} API",
    description=APP_DESCRIPTION,
    version=APP_VERSION
)

# Add CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",  # Next.js dev server
        "http://localhost:3001",  # Next.js dev server (alt port)
        "http://localhost:5173",  # Vite dev server
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Import our services
from services.wave_analysis_service import analyze_track_data, WaveAnalysisResult
from core.gpx import parse_track_bytes
from core.validation import ValidationError
from core.waves import WaveDetectionParams


# Pydantic models for API responses
class DirectionFilterSummary(BaseModel):
    enabled: bool
    target_direction: float
    tolerance: float
    raw_count: int
    rejected_count: int
    all_rejected: bool


class WaveAnalysisResponse(BaseModel):
    segments: List[Dict[str, Any]]
    waves: List[Dict[str, Any]]
    best_wave_id: Optional[int]
    direction_filter: DirectionFilterSummary
    parameters: Dict[str, Any]
    auto_threshold: float
    track_summary: Dict[str, Any]


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame rows as JSON-safe dicts (NaN and NaT become None)."""
    if df.empty:
        return []
    df = df.copy()
    for column in df.select_dtypes(include=['datetime', 'datetimetz']).columns:
        df[column] = df[column].map(lambda t: t.isoformat() if pd.notna(t) else None)
    clean = df.astype(object).where(pd.notna(df), None)
    return clean.to_dict(orient='records')


def _build_params(threshold_kmh: Optional[float],
                  min_duration: float,
                  use_adaptive: bool,
                  window_seconds: float,
                  k_sigma: float,
                  drop_percent: float,
                  end_grace_seconds: float,
                  direction_filter_enabled: bool,
                  target_direction: float,
                  direction_tolerance: float,
                  direction_std_max: Optional[float]) -> WaveDetectionParams:
    return WaveDetectionParams(
        threshold_kmh=WaveConfig.THRESHOLD_KMH if threshold_kmh is None else threshold_kmh,
        min_duration=min_duration,
        use_adaptive=use_adaptive,
        window_seconds=window_seconds,
        k_sigma=k_sigma,
        drop_percent=drop_percent,
        end_grace_seconds=end_grace_seconds,
        direction_filter_enabled=direction_filter_enabled,
        target_direction=target_direction,
        direction_tolerance=direction_tolerance,
        direction_std_max=direction_std_max,
    ).normalized()


async def _run_analysis(file: UploadFile, params: WaveDetectionParams,
                        use_auto_threshold: bool) -> WaveAnalysisResult:
    """Read the upload, parse it and run the detection pipeline."""
    if not file.filename:
        raise ValidationError("Uploaded file has no name")

    content = await file.read()

    if len(content) > MAX_UPLOAD_SIZE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {MAX_UPLOAD_SIZE_BYTES // 1024 // 1024}MB, "
                   f"received {len(content) / 1024 / 1024:.1f}MB"
        )

    logger.info(f"Processing file: {file.filename}")
    track_data, metadata = parse_track_bytes(content, file.filename)

    return analyze_track_data(
        track_data=track_data,
        params=params,
        filename=file.filename,
        metadata=metadata,
        use_auto_threshold=use_auto_threshold
    )


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": f"{APP_NAME} API",
        "version": APP_VERSION,
        "endpoints": {
            "POST /api/analyze-track": "Detect waves in a GPX or CSV track",
            "POST /api/export-gpx": "Export the session and its waves as GPX",
            "GET /api/config": "Default detection parameters and ranges",
            "GET /api/health": "Health check endpoint"
        }
    }


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "wave-lab-api"}


@app.get("/api/config")
async def get_config():
    """Get default configuration values."""
    return {
        "defaults": {**WaveConfig.as_dict(), **DirectionConfig.as_dict()},
        "export": ExportConfig.as_dict(),
        "ranges": {
            "threshold_kmh": {"min": 0, "max": 200, "step": 0.5},
            "min_duration": {"min": 0, "max": 30, "step": 0.5},
            "window_seconds": {"min": 1, "max": 300, "step": 1},
            "k_sigma": {"min": 0, "max": 5, "step": 0.1},
            "drop_percent": {"min": 0, "max": 100, "step": 1},
            "end_grace_seconds": {"min": 0, "max": 30, "step": 0.5},
            "target_direction": {"min": 0, "max": 359, "step": 1},
            "direction_tolerance": {"min": 0, "max": 180, "step": 1},
            "direction_std_max": {"min": 0, "max": 180, "step": 1}
        }
    }


@app.post("/api/analyze-track", response_model=WaveAnalysisResponse)
async def analyze_track(
    file: UploadFile = File(...),
    threshold_kmh: Optional[float] = None,
    min_duration: float = WaveConfig.MIN_DURATION,
    use_adaptive: bool = WaveConfig.USE_ADAPTIVE,
    window_seconds: float = WaveConfig.WINDOW_SECONDS,
    k_sigma: float = WaveConfig.K_SIGMA,
    drop_percent: float = WaveConfig.DROP_PERCENT,
    end_grace_seconds: float = WaveConfig.END_GRACE_SECONDS,
    direction_filter_enabled: bool = DirectionConfig.FILTER_ENABLED,
    target_direction: float = DirectionConfig.TARGET_DIRECTION,
    direction_tolerance: float = DirectionConfig.TOLERANCE,
    direction_std_max: Optional[float] = DirectionConfig.STD_MAX
):
    """
    Detect the waves ridden in a GPX or CSV track.

    Args:
        file: GPX or CSV file to analyze
        threshold_kmh: Fixed speed threshold; the session's auto threshold when omitted
        min_duration: Minimum wave duration in seconds
        use_adaptive: Raise the threshold to the local median + k_sigma * std
        window_seconds: Trailing window for the adaptive threshold
        k_sigma: Standard deviation multiplier for the adaptive threshold
        drop_percent: Drop from peak speed that counts as decay
        end_grace_seconds: Sustained decay time before a wave ends
        direction_filter_enabled: Keep only waves ridden towards target_direction
        target_direction: Wanted direction in degrees
        direction_tolerance: Allowed deviation from target_direction in degrees
        direction_std_max: Maximum bearing spread within one wave in degrees

    Returns:
        Segments, waves, direction filter outcome and session stats
    """
    params = _build_params(threshold_kmh, min_duration, use_adaptive, window_seconds,
                           k_sigma, drop_percent, end_grace_seconds, direction_filter_enabled,
                           target_direction, direction_tolerance, direction_std_max)

    try:
        result = await _run_analysis(file, params, use_auto_threshold=threshold_kmh is None)

        rows = result.wave_rows()
        best_wave_id = next((row['id'] for row in rows if row['is_best']), None)
        direction_result = result.direction_result

        segments_with_id = result.segments.copy()
        segments_with_id['id'] = segments_with_id.index

        return WaveAnalysisResponse(
            segments=_records(segments_with_id),
            waves=rows,
            best_wave_id=best_wave_id,
            direction_filter=DirectionFilterSummary(
                enabled=direction_result.applied,
                target_direction=result.params.target_direction,
                tolerance=result.params.direction_tolerance,
                raw_count=direction_result.raw_count,
                rejected_count=direction_result.rejected_count,
                all_rejected=direction_result.all_rejected
            ),
            parameters=result.params.to_dict(),
            auto_threshold=result.auto_threshold,
            track_summary={
                **result.summary(),
                'point_count': len(result.track_data),
                'filename': file.filename,
                'name': result.metadata.get('name'),
                'format': result.metadata.get('format')
            }
        )

    except HTTPException:
        raise
    except ValidationError as e:
        logger.warning(f"Rejected upload {file.filename}: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error analyzing track: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error analyzing track: {str(e)}")


@app.post("/api/export-gpx")
async def export_gpx(
    file: UploadFile = File(...),
    threshold_kmh: Optional[float] = None,
    min_duration: float = WaveConfig.MIN_DURATION,
    use_adaptive: bool = WaveConfig.USE_ADAPTIVE,
    window_seconds: float = WaveConfig.WINDOW_SECONDS,
    k_sigma: float = WaveConfig.K_SIGMA,
    drop_percent: float = WaveConfig.DROP_PERCENT,
    end_grace_seconds: float = WaveConfig.END_GRACE_SECONDS,
    direction_filter_enabled: bool = DirectionConfig.FILTER_ENABLED,
    target_direction: float = DirectionConfig.TARGET_DIRECTION,
    direction_tolerance: float = DirectionConfig.TOLERANCE,
    direction_std_max: Optional[float] = DirectionConfig.STD_MAX
):
    """
    Export the session track plus one track per detected wave as GPX.

    Takes the same parameters as /api/analyze-track.
    """
    params = _build_params(threshold_kmh, min_duration, use_adaptive, window_seconds,
                           k_sigma, drop_percent, end_grace_seconds, direction_filter_enabled,
                           target_direction, direction_tolerance, direction_std_max)

    try:
        result = await _run_analysis(file, params, use_auto_threshold=threshold_kmh is None)
        xml = result.to_gpx()

        stem = os.path.splitext(os.path.basename(file.filename))[0]
        filename = f"{ExportConfig.FILENAME_PREFIX}{stem}.gpx"
        return Response(
            content=xml,
            media_type="application/gpx+xml",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )

    except HTTPException:
        raise
    except ValidationError as e:
        logger.warning(f"Rejected upload {file.filename}: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error exporting GPX: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error exporting GPX: {str(e)}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
