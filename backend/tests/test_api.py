"""Tests for the read-only dashboard API."""

import pytest
from fastapi.testclient import TestClient

from sitesync.bootstrap import build_orchestrator, build_rollout_controller
from sitesync.config import Settings, get_settings
from sitesync.main import app
from sitesync.schemas.report import ScheduleKind


@pytest.fixture
def client(settings: Settings):
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestReports:
    """Report endpoints."""

    def test_latest_before_any_run(self, client):
        assert client.get("/api/reports/latest").status_code == 404

    def test_latest_and_listing(self, client, settings):
        orchestrator = build_orchestrator(settings)
        report = orchestrator.run(ScheduleKind.DAILY)

        latest = client.get("/api/reports/latest")
        assert latest.status_code == 200
        assert latest.json()["run_id"] == report.run_id
        assert latest.json()["schedule"] == "daily"

        listing = client.get("/api/reports", params={"limit": 5})
        assert listing.status_code == 200
        rows = listing.json()
        assert [row["run_id"] for row in rows] == [report.run_id]
        assert rows[0]["hard_failures"] == report.summary.hard_failures

    def test_unreadable_latest_is_a_server_error(self, client, settings):
        settings.reports_path.mkdir(parents=True, exist_ok=True)
        (settings.reports_path / "latest-maintenance.json").write_text("{}", encoding="utf-8")

        response = client.get("/api/reports/latest")
        assert response.status_code == 500
        assert response.json()["detail"] == "Latest report is unreadable"

    def test_limit_is_validated(self, client):
        assert client.get("/api/reports", params={"limit": 0}).status_code == 422


class TestRollout:
    """Rollout endpoints."""

    def test_phases(self, client):
        response = client.get("/api/rollout/phases")
        assert response.status_code == 200
        assert [phase["status"] for phase in response.json()] == ["pending", "pending", "pending"]

    def test_history(self, client, settings):
        build_rollout_controller(settings).deploy(1)

        response = client.get("/api/rollout/history")
        assert response.status_code == 200
        assert [phase["order"] for phase in response.json()] == [1]

    def test_corrupt_state_is_a_server_error(self, client, settings):
        settings.phase_state_path.parent.mkdir(parents=True, exist_ok=True)
        settings.phase_state_path.write_text("{broken", encoding="utf-8")
        assert client.get("/api/rollout/phases").status_code == 500
