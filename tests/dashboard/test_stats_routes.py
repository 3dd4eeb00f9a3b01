"""Tests for the statistics snapshot endpoint."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from runstats.dashboard.main import app
from runstats.dashboard.router import configure_data_dir
from runstats.models import MetricKind


@pytest_asyncio.fixture
async def client(tmp_path):
    """Create test client bound to a temporary data directory."""
    configure_data_dir(str(tmp_path))
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        configure_data_dir(None)


class TestStatsSnapshot:
    """Tests for GET /api/projects/{project}/runs/{run}/stats."""

    @pytest.mark.asyncio
    async def test_heart_rate_snapshot(self, client, tmp_path, make_run, write_run_files):
        run = make_run(duration=3)
        write_run_files(tmp_path, run, [(MetricKind.HEART_RATE, s, 140 + s) for s in range(4)])

        response = await client.get(f"/api/projects/{run.project}/runs/{run.name}/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["metric"] == "heart_rate"
        assert data["message"] is None
        assert data["is_finished"] is False
        assert [s["value"] for s in data["update"]["display_samples"]] == [140, 141, 142, 143]
        assert data["update"]["stats"] == {"min": 140, "max": 143, "sum": 566, "count": 4, "average": 141.5}
        assert data["update"]["dropped_points"] == 0

    @pytest.mark.asyncio
    async def test_sparse_cadence_has_message(self, client, tmp_path, make_run, write_run_files):
        run = make_run()
        write_run_files(tmp_path, run, [(MetricKind.CADENCE, 0, 170)])

        response = await client.get(f"/api/projects/{run.project}/runs/{run.name}/stats", params={"metric": "cadence"})

        assert response.status_code == 200
        assert response.json()["message"] == "Not enough cadence data for this run."

    @pytest.mark.asyncio
    async def test_malformed_log_lines_are_skipped(self, client, tmp_path, make_run, write_run_files):
        run = make_run(duration=3)
        log = write_run_files(tmp_path, run, [(MetricKind.HEART_RATE, 0, 140), (MetricKind.HEART_RATE, 1, 141)])
        with open(log, "a") as f:
            f.write('{"timestamp": 1e20, "metric": "heart_rate", "value": 150}\n')

        response = await client.get(f"/api/projects/{run.project}/runs/{run.name}/stats")

        assert response.status_code == 200
        assert response.json()["update"]["stats"]["count"] == 2

    @pytest.mark.asyncio
    async def test_run_without_samples(self, client, tmp_path, make_run, write_run_files):
        run = make_run()
        write_run_files(tmp_path, run)

        response = await client.get(f"/api/projects/{run.project}/runs/{run.name}/stats")

        data = response.json()
        assert data["update"]["display_samples"] == []
        assert data["update"]["stats"] is None
        assert data["message"] == "No heart rate data available"

    @pytest.mark.asyncio
    async def test_large_series_is_downsampled(self, client, tmp_path, monkeypatch, make_run, write_run_files):
        """Test that the configured limits apply to the snapshot."""
        from runstats.config import reset_settings

        monkeypatch.setenv("RUNSTATS_HR_DOWNSAMPLE_THRESHOLD", "10")
        monkeypatch.setenv("RUNSTATS_HR_DOWNSAMPLE_LIMIT", "5")
        reset_settings()
        run = make_run(duration=19)
        write_run_files(tmp_path, run, [(MetricKind.HEART_RATE, s, s) for s in range(20)])

        response = await client.get(f"/api/projects/{run.project}/runs/{run.name}/stats")

        update = response.json()["update"]
        assert len(update["display_samples"]) == 5
        assert update["dropped_points"] == 15
        assert update["stats"]["count"] == 20

    @pytest.mark.asyncio
    async def test_missing_run_returns_404(self, client):
        response = await client.get("/api/projects/athlete/runs/missing/stats")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_name_returns_400(self, client):
        response = await client.get("/api/projects/athlete/runs/bad.name/stats")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_metric_returns_422(self, client, tmp_path, make_run, write_run_files):
        run = make_run()
        write_run_files(tmp_path, run)

        response = await client.get(f"/api/projects/{run.project}/runs/{run.name}/stats", params={"metric": "power"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_security_headers(self, client):
        response = await client.get("/api/projects/athlete/runs/missing/stats")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
