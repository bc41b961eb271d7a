"""Tests for the scheduled maintenance Celery task."""

from unittest.mock import patch

from sitesync.celery_app import celery_app
from sitesync.tasks.maintenance_tasks import run_maintenance_task


class TestRunMaintenanceTask:
    """Task results and the beat schedule."""

    def test_task_returns_run_summary(self, settings):
        with patch("sitesync.tasks.maintenance_tasks.get_settings", return_value=settings):
            result = run_maintenance_task("weekly")

        assert result["schedule"] == "weekly"
        assert result["run_id"]
        assert result["status"] in ("completed", "failed")
        assert (settings.reports_path / "latest-maintenance.json").exists()

    def test_configuration_error_is_reported(self, site, settings):
        (site / "broken.json").write_text("nope", encoding="utf-8")
        settings.preview_mappings_file = site / "broken.json"

        with patch("sitesync.tasks.maintenance_tasks.get_settings", return_value=settings):
            result = run_maintenance_task("daily")

        assert result["status"] == "failed"
        assert "Invalid preview mappings file" in result["error"]

    def test_beat_schedule_covers_every_profile(self):
        schedules = {entry["kwargs"]["schedule"] for entry in celery_app.conf.beat_schedule.values()}
        assert schedules == {"daily", "weekly", "monthly"}
