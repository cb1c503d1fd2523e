"""
Tests for the FastAPI backend.

Uses FastAPI's TestClient, so no running server is needed.
"""

import gpxpy
import pytest
from fastapi.testclient import TestClient

from api.main import app
from conftest import csv_document, gpx_document


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def gpx_upload(session_track):
    return {'file': ('session.gpx', gpx_document(session_track).encode('utf-8'), 'application/gpx+xml')}


class TestInfoEndpoints:
    """Tests for the informational endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "POST /api/analyze-track" in response.json()['endpoints']

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    def test_config(self, client):
        """Defaults expose every detection parameter."""
        data = client.get("/api/config").json()

        assert data['defaults']['threshold_kmh'] == 15.0
        assert data['defaults']['direction_std_max'] == 60.0
        assert set(data['ranges']) >= {'threshold_kmh', 'drop_percent', 'direction_tolerance'}
        assert data['export']['session_track_name'] == 'Bodyboard Session'


class TestAnalyzeTrack:
    """Tests for POST /api/analyze-track."""

    def test_gpx_upload(self, client, gpx_upload, session_speeds):
        """A GPX upload returns segments, waves and stats."""
        response = client.post("/api/analyze-track", files=gpx_upload, params={'threshold_kmh': 15})
        assert response.status_code == 200

        data = response.json()
        assert len(data['segments']) == len(session_speeds)
        assert len(data['waves']) == 2
        assert data['best_wave_id'] == 2
        assert data['parameters']['threshold_kmh'] == 15.0
        assert data['track_summary']['wave_count'] == 2
        assert data['track_summary']['format'] == 'gpx'
        assert data['direction_filter']['enabled'] is False

    def test_csv_upload_with_direction_filter(self, client, session_track):
        """Direction rejections are reported separately."""
        files = {'file': ('session.csv', csv_document(session_track).encode('utf-8'), 'text/csv')}
        params = {'threshold_kmh': 15, 'direction_filter_enabled': True,
                  'target_direction': 270, 'direction_tolerance': 20}
        response = client.post("/api/analyze-track", files=files, params=params)
        assert response.status_code == 200

        data = response.json()
        assert data['waves'] == []
        assert data['direction_filter']['rejected_count'] == 2
        assert data['direction_filter']['all_rejected'] is True

    def test_auto_threshold_when_not_given(self, client, gpx_upload):
        """Without threshold_kmh the session's auto threshold is used."""
        data = client.post("/api/analyze-track", files=gpx_upload).json()
        assert data['parameters']['threshold_kmh'] == pytest.approx(data['auto_threshold'])

    def test_unsupported_file_type(self, client):
        files = {'file': ('track.kml', b'<kml/>', 'application/xml')}
        response = client.post("/api/analyze-track", files=files)
        assert response.status_code == 400

    def test_malformed_gpx(self, client):
        files = {'file': ('track.gpx', b'<gpx><trk>', 'application/gpx+xml')}
        response = client.post("/api/analyze-track", files=files)
        assert response.status_code == 400
        assert 'GPX' in response.json()['detail']


class TestExportGpx:
    """Tests for POST /api/export-gpx."""

    def test_export(self, client, gpx_upload):
        """The export is a GPX document with the session and wave tracks."""
        response = client.post("/api/export-gpx", files=gpx_upload, params={'threshold_kmh': 15})
        assert response.status_code == 200
        assert response.headers['content-type'].startswith('application/gpx+xml')
        assert 'session_session.gpx' in response.headers['content-disposition']

        gpx = gpxpy.parse(response.text)
        assert [t.name for t in gpx.tracks][0] == 'Bodyboard Session'
        assert len(gpx.tracks) == 3

    def test_export_invalid_upload(self, client):
        files = {'file': ('track.csv', b'a,b\n1,2\n', 'text/csv')}
        response = client.post("/api/export-gpx", files=files)
        assert response.status_code == 400
