"""
Celery tasks for scheduled maintenance.

Runs are not retried: a failed run already produced a report, and the
next scheduled run picks up whatever is still stale.
"""

from __future__ import annotations

import logging

from sitesync.bootstrap import build_orchestrator
from sitesync.celery_app import celery_app
from sitesync.config import get_settings
from sitesync.errors import SiteSyncError
from sitesync.schemas.report import ScheduleKind
from sitesync.schemas.tasks import MaintenanceRunResultDict

logger = logging.getLogger(__name__)


@celery_app.task(name="sitesync.tasks.maintenance_tasks.run_maintenance")
def run_maintenance_task(schedule: str = "daily") -> MaintenanceRunResultDict:
    """Run one maintenance profile against the configured site checkout."""
    logger.info(f"Scheduled {schedule} maintenance starting")
    kind = ScheduleKind(schedule)

    try:
        orchestrator = build_orchestrator(get_settings())
    except SiteSyncError as e:
        logger.error(f"Cannot start {schedule} maintenance: {e}")
        return MaintenanceRunResultDict(
            run_id="",
            schedule=kind.value,
            status="failed",
            hard_failures=0,
            recommendations=0,
            error=str(e),
        )

    report = orchestrator.run(kind)
    return MaintenanceRunResultDict(
        run_id=report.run_id,
        schedule=report.schedule.value,
        status=report.status,
        hard_failures=report.summary.hard_failures,
        recommendations=len(report.recommendations),
    )
