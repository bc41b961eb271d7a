"""
Schemas for maintenance reports.

The report is the orchestrator's only externally visible artifact. It is
persisted as JSON and read back by the CLI printer and the dashboard API.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from sitesync.models.rollout import RolloutPhase


class ScheduleKind(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ProcedureStatus(str, enum.Enum):
    PASSED = "passed"
    WARNING = "warning"  # Findings for a human, not a failing run
    FAILED = "failed"  # Findings that make the run fail
    ERROR = "error"  # The procedure itself raised


class Priority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProcedureResult(BaseModel):

    name: str
    status: ProcedureStatus
    message: str = ""
    duration_ms: float = Field(default=0.0, ge=0.0)
    error_type: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_hard_failure(self) -> bool:
        return self.status in (ProcedureStatus.FAILED, ProcedureStatus.ERROR)


class Recommendation(BaseModel):

    priority: Priority
    category: str
    message: str
    details: list[Any] = Field(default_factory=list)


class BrokenLinkInfo(BaseModel):
    source_id: str
    raw_target: str
    target_id: str
    anchor_text: str = ""
    line: int | None = None


class ParseWarningInfo(BaseModel):
    source_id: str
    snippet: str
    reason: str
    line: int | None = None


class LinkIntegritySummary(BaseModel):

    documents_checked: int = Field(default=0, ge=0)
    total_references: int = Field(default=0, ge=0)
    resolvable: int = Field(default=0, ge=0)
    broken: list[BrokenLinkInfo] = Field(default_factory=list)
    orphaned: list[str] = Field(default_factory=list)
    parse_warnings: list[ParseWarningInfo] = Field(default_factory=list)


class PreviewFailureInfo(BaseModel):
    source_id: str
    insertion_point_id: str
    error: str


class PreviewSyncSummary(BaseModel):

    updated: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    updated_sources: list[str] = Field(default_factory=list)
    failures: list[PreviewFailureInfo] = Field(default_factory=list)


class ReportSummary(BaseModel):

    procedures_run: int = Field(default=0, ge=0)
    passed: int = Field(default=0, ge=0)
    warnings: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    errors: int = Field(default=0, ge=0)

    @property
    def hard_failures(self) -> int:
        return self.failed + self.errors


class MaintenanceReport(BaseModel):
    """One maintenance run."""

    run_id: str
    schedule: ScheduleKind
    started_at: datetime
    finished_at: datetime
    duration_ms: float = Field(ge=0.0)
    status: str  # "completed" | "failed"
    procedures: list[ProcedureResult] = Field(default_factory=list)
    link_integrity: LinkIntegritySummary | None = None
    preview_sync: PreviewSyncSummary | None = None
    rollout: list[RolloutPhase] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    summary: ReportSummary = Field(default_factory=ReportSummary)
    persisted: bool = True  # False when the report could not be written

    @property
    def ok(self) -> bool:
        return self.summary.hard_failures == 0 and self.persisted


class ReportListItem(BaseModel):
    """Row of the dashboard's report listing."""

    run_id: str
    schedule: ScheduleKind
    status: str
    finished_at: datetime
    hard_failures: int = Field(ge=0)
    recommendations: int = Field(ge=0)
