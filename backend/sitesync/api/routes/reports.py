"""API routes for maintenance reports."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from sitesync.api.deps import get_report_store
from sitesync.errors import StoreIOError
from sitesync.schemas.report import MaintenanceReport, ReportListItem
from sitesync.services.report_store import ReportStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/latest", response_model=MaintenanceReport)
def get_latest_report(store: ReportStore = Depends(get_report_store)):
    """The most recent maintenance report."""
    try:
        report = store.latest()
    except StoreIOError as e:
        logger.error(f"Failed to read latest report: {e}")
        raise HTTPException(status_code=500, detail="Latest report is unreadable")
    if report is None:
        raise HTTPException(status_code=404, detail="No maintenance report yet")
    return report


@router.get("", response_model=list[ReportListItem])
def list_reports(
    limit: int = Query(20, ge=1, le=100),
    store: ReportStore = Depends(get_report_store),
):
    """Recent runs, newest first."""
    return [
        ReportListItem(
            run_id=report.run_id,
            schedule=report.schedule,
            status=report.status,
            finished_at=report.finished_at,
            hard_failures=report.summary.hard_failures,
            recommendations=len(report.recommendations),
        )
        for report in store.list_reports(limit)
    ]
