from sitesync.schemas.report import (
    MaintenanceReport,
    Priority,
    ProcedureResult,
    ProcedureStatus,
    Recommendation,
    ReportListItem,
    ScheduleKind,
)
from sitesync.schemas.tasks import MaintenanceRunResultDict


__all__ = [
    "MaintenanceReport",
    "Priority",
    "ProcedureResult",
    "ProcedureStatus",
    "Recommendation",
    "ReportListItem",
    "ScheduleKind",
    "MaintenanceRunResultDict",
]
