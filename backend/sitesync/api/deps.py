"""
FastAPI Dependencies
====================

Provide report and rollout services to the dashboard routes. Routes
never build services themselves, so tests can swap them through
`app.dependency_overrides`.

Usage in routes:
    @router.get("/latest")
    def latest(store: ReportStore = Depends(get_report_store)):
        return store.latest()
"""

from fastapi import Depends

from sitesync.bootstrap import build_report_store, build_rollout_controller
from sitesync.config import Settings, get_settings
from sitesync.services.report_store import ReportStore
from sitesync.services.rollout_service import RolloutController


def get_report_store(settings: Settings = Depends(get_settings)) -> ReportStore:
    return build_report_store(settings)


def get_rollout_controller(settings: Settings = Depends(get_settings)) -> RolloutController:
    """Controller for read-only use; the dashboard never deploys or adjusts."""
    return build_rollout_controller(settings)
