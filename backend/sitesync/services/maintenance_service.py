"""
Maintenance Orchestrator - Scheduled Run Profiles
=================================================

Composes the validator, the preview synchronizer and the rollout
controller into daily / weekly / monthly runs and persists one report
per run.

Run Profiles:
-------------
Profiles are strict supersets:

    daily   = link_integrity, preview_sync, rollout_status
    weekly  = daily + preview_marker_audit, preview_coverage
    monthly = weekly + content_audit, rollout_consistency, report_retention

Failure Isolation:
------------------
Every procedure runs in its own try/except. A procedure that raises is
recorded as `error` and the run continues with the next one. The run
"fails" only through its summary counts (failed + error procedures).

Recommendations:
----------------
Derived after all procedures ran, by fixed severity rules:
- broken links, procedure errors, inconsistent rollout state -> high
- orphaned sections, preview failures, invalidated previews  -> medium
- parse warnings, unmapped sections, content audit findings  -> low
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from sitesync.errors import SiteSyncError
from sitesync.models.document import DocumentRole
from sitesync.models.preview import PreviewMapping
from sitesync.models.rollout import RolloutPhase
from sitesync.schemas.report import (
    BrokenLinkInfo,
    LinkIntegritySummary,
    MaintenanceReport,
    ParseWarningInfo,
    PreviewFailureInfo,
    PreviewSyncSummary,
    Priority,
    ProcedureResult,
    ProcedureStatus,
    Recommendation,
    ReportSummary,
    ScheduleKind,
)
from sitesync.services.content_store import ContentStore
from sitesync.services.link_validator import LinkGraphValidator, LinkValidationResult
from sitesync.services.preview_service import PreviewSynchronizer, PreviewSyncResult
from sitesync.services.report_store import ReportStore
from sitesync.services.rollout_service import RolloutController

logger = logging.getLogger(__name__)

Outcome = tuple[ProcedureStatus, str, dict[str, Any]]

DAILY_PROCEDURES = ("link_integrity", "preview_sync", "rollout_status")
WEEKLY_PROCEDURES = ("preview_marker_audit", "preview_coverage")
MONTHLY_PROCEDURES = ("content_audit", "rollout_consistency", "report_retention")


def procedures_for(schedule: ScheduleKind) -> list[str]:
    names = list(DAILY_PROCEDURES)
    if schedule in (ScheduleKind.WEEKLY, ScheduleKind.MONTHLY):
        names.extend(WEEKLY_PROCEDURES)
    if schedule == ScheduleKind.MONTHLY:
        names.extend(MONTHLY_PROCEDURES)
    return names


@dataclass
class _RunContext:
    """Findings collected while procedures run, turned into recommendations at the end."""
    links: LinkValidationResult | None = None
    documents_checked: int = 0
    sync: PreviewSyncResult | None = None
    rollout: list[RolloutPhase] = field(default_factory=list)
    invalidated: list[str] = field(default_factory=list)
    unmapped_sections: list[str] = field(default_factory=list)
    thin_sections: list[str] = field(default_factory=list)
    dangling_mappings: list[str] = field(default_factory=list)
    rollout_problems: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class MaintenanceOrchestrator:
    """
    Runs a maintenance profile and persists its report.

    All collaborators are injected; see sitesync.bootstrap for wiring from
    settings.

    Usage:
        report = orchestrator.run(ScheduleKind.WEEKLY)
        report.ok, report.recommendations
    """

    def __init__(
        self,
        store: ContentStore,
        validator: LinkGraphValidator,
        synchronizer: PreviewSynchronizer,
        rollout: RolloutController,
        report_store: ReportStore,
        mappings: Sequence[PreviewMapping],
        *,
        report_retention: int = 30,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.validator = validator
        self.synchronizer = synchronizer
        self.rollout = rollout
        self.report_store = report_store
        self.mappings = list(mappings)
        self.report_retention = report_retention
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self._procedures: dict[str, Callable[[_RunContext], Outcome]] = {
            "link_integrity": self._link_integrity,
            "preview_sync": self._preview_sync,
            "rollout_status": self._rollout_status,
            "preview_marker_audit": self._preview_marker_audit,
            "preview_coverage": self._preview_coverage,
            "content_audit": self._content_audit,
            "rollout_consistency": self._rollout_consistency,
            "report_retention": self._report_retention,
        }

    # -------------------------------------------------------------------------
    # Daily procedures
    # -------------------------------------------------------------------------

    def _link_integrity(self, ctx: _RunContext) -> Outcome:
        documents = self.store.list_documents()
        result = self.validator.validate(documents)
        ctx.links = result
        ctx.documents_checked = len(documents)

        message = (
            f"{result.total_references} references, {len(result.broken)} broken, "
            f"{len(result.orphaned)} orphaned, {len(result.parse_warnings)} parse warnings"
        )
        if result.broken:
            return ProcedureStatus.FAILED, message, {}
        if result.orphaned or result.parse_warnings:
            return ProcedureStatus.WARNING, message, {}
        return ProcedureStatus.PASSED, message, {}

    def _preview_sync(self, ctx: _RunContext) -> Outcome:
        result = self.synchronizer.sync(self.mappings)
        ctx.sync = result
        message = f"updated {len(result.updated)}, skipped {len(result.skipped)}, failed {len(result.failed)}"
        status = ProcedureStatus.FAILED if result.failed else ProcedureStatus.PASSED
        return status, message, {}

    def _rollout_status(self, ctx: _RunContext) -> Outcome:
        phases = self.rollout.status()
        ctx.rollout = phases
        deployed = sum(1 for phase in phases if phase.is_deployed)
        return ProcedureStatus.PASSED, f"{deployed}/{len(phases)} phases deployed", {}

    # -------------------------------------------------------------------------
    # Weekly procedures
    # -------------------------------------------------------------------------

    def _preview_marker_audit(self, ctx: _RunContext) -> Outcome:
        missing = self.synchronizer.find_missing_markers(self.mappings)
        if not missing:
            return ProcedureStatus.PASSED, "all synced previews present in hub", {}

        ctx.invalidated = self.synchronizer.invalidate([m.source_id for m in missing])
        ids = [m.insertion_point_id for m in missing]
        return (
            ProcedureStatus.WARNING,
            f"{len(ids)} previews missing from hub, queued for resync",
            {"insertion_points": ids},
        )

    def _preview_coverage(self, ctx: _RunContext) -> Outcome:
        mapped = {mapping.source_id for mapping in self.mappings}
        sections = [doc.id for doc in self.store.list_documents(DocumentRole.SECTION)]
        ctx.unmapped_sections = sorted(set(sections) - mapped)
        message = f"{len(sections) - len(ctx.unmapped_sections)}/{len(sections)} sections have a hub preview"
        if ctx.unmapped_sections:
            return ProcedureStatus.WARNING, message, {"unmapped": ctx.unmapped_sections}
        return ProcedureStatus.PASSED, message, {}

    # -------------------------------------------------------------------------
    # Monthly procedures
    # -------------------------------------------------------------------------

    def _content_audit(self, ctx: _RunContext) -> Outcome:
        sections = {doc.id: doc for doc in self.store.list_documents(DocumentRole.SECTION)}
        ctx.thin_sections = sorted(
            doc_id for doc_id, doc in sections.items()
            if not self.synchronizer.has_substantial_content(doc.body)
        )
        ctx.dangling_mappings = sorted(
            mapping.insertion_point_id for mapping in self.mappings if mapping.source_id not in sections
        )
        message = (
            f"{len(ctx.thin_sections)} sections without previewable content, "
            f"{len(ctx.dangling_mappings)} mappings without a source"
        )
        if ctx.thin_sections or ctx.dangling_mappings:
            return ProcedureStatus.WARNING, message, {
                "thin_sections": ctx.thin_sections,
                "dangling_mappings": ctx.dangling_mappings,
            }
        return ProcedureStatus.PASSED, message, {}

    def _rollout_consistency(self, ctx: _RunContext) -> Outcome:
        ctx.rollout_problems = self.rollout.check_consistency()
        if ctx.rollout_problems:
            return (
                ProcedureStatus.FAILED,
                f"{len(ctx.rollout_problems)} rollout state problems",
                {"problems": ctx.rollout_problems},
            )
        return ProcedureStatus.PASSED, "rollout state consistent", {}

    def _report_retention(self, ctx: _RunContext) -> Outcome:
        # The report for this run is saved afterwards and counts toward the limit.
        removed = self.report_store.prune(max(self.report_retention - 1, 0))
        return ProcedureStatus.PASSED, f"pruned {len(removed)} reports", {"removed": removed}

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def _execute(self, name: str, ctx: _RunContext) -> ProcedureResult:
        logger.info(f"Starting procedure: {name}")
        started = time.perf_counter()
        try:
            status, message, details = self._procedures[name](ctx)
            error_type = None
        except Exception as e:
            logger.exception(f"Procedure {name} failed")
            status, message, details = ProcedureStatus.ERROR, str(e) or type(e).__name__, {}
            error_type = type(e).__name__
            ctx.errors.append(name)

        duration_ms = (time.perf_counter() - started) * 1000
        logger.info(f"Procedure {name}: {status.value} ({duration_ms:.0f}ms) {message}")
        return ProcedureResult(
            name=name,
            status=status,
            message=message,
            duration_ms=duration_ms,
            error_type=error_type,
            details=details,
        )

    def run(self, schedule: ScheduleKind = ScheduleKind.DAILY) -> MaintenanceReport:
        schedule = ScheduleKind(schedule)
        started_at = self.clock()
        started = time.perf_counter()
        logger.info(f"Starting {schedule.value} maintenance")

        ctx = _RunContext()
        procedures = [self._execute(name, ctx) for name in procedures_for(schedule)]

        summary = ReportSummary(
            procedures_run=len(procedures),
            passed=sum(1 for p in procedures if p.status == ProcedureStatus.PASSED),
            warnings=sum(1 for p in procedures if p.status == ProcedureStatus.WARNING),
            failed=sum(1 for p in procedures if p.status == ProcedureStatus.FAILED),
            errors=sum(1 for p in procedures if p.status == ProcedureStatus.ERROR),
        )

        report = MaintenanceReport(
            run_id=started_at.strftime("%Y%m%dT%H%M%S%fZ"),
            schedule=schedule,
            started_at=started_at,
            finished_at=self.clock(),
            duration_ms=(time.perf_counter() - started) * 1000,
            status="completed" if summary.hard_failures == 0 else "failed",
            procedures=procedures,
            link_integrity=self._link_summary(ctx),
            preview_sync=self._sync_summary(ctx),
            rollout=ctx.rollout,
            recommendations=build_recommendations(ctx),
            summary=summary,
        )

        try:
            self.report_store.save(report)
        except SiteSyncError:
            logger.exception("Could not persist maintenance report")
            report.persisted = False
            report.status = "failed"

        logger.info(
            f"{schedule.value.capitalize()} maintenance {report.status}: "
            f"{summary.passed} passed, {summary.warnings} warnings, "
            f"{summary.failed} failed, {summary.errors} errors"
        )
        return report

    @staticmethod
    def _link_summary(ctx: _RunContext) -> LinkIntegritySummary | None:
        if ctx.links is None:
            return None
        links = ctx.links
        return LinkIntegritySummary(
            documents_checked=ctx.documents_checked,
            total_references=links.total_references,
            resolvable=len(links.resolvable),
            broken=[
                BrokenLinkInfo(
                    source_id=ref.source_id,
                    raw_target=ref.raw_target,
                    target_id=ref.target_id,
                    anchor_text=ref.anchor_text,
                    line=ref.line,
                )
                for ref in links.broken
            ],
            orphaned=links.orphaned,
            parse_warnings=[
                ParseWarningInfo(source_id=w.source_id, snippet=w.snippet, reason=w.reason, line=w.line)
                for w in links.parse_warnings
            ],
        )

    @staticmethod
    def _sync_summary(ctx: _RunContext) -> PreviewSyncSummary | None:
        if ctx.sync is None:
            return None
        sync = ctx.sync
        return PreviewSyncSummary(
            updated=len(sync.updated),
            skipped=len(sync.skipped),
            failed=len(sync.failed),
            updated_sources=[item.source_id for item in sync.updated],
            failures=[
                PreviewFailureInfo(source_id=f.source_id, insertion_point_id=f.insertion_point_id, error=f.error)
                for f in sync.failed
            ],
        )


def build_recommendations(ctx: _RunContext) -> list[Recommendation]:
    recommendations: list[Recommendation] = []

    def add(priority: Priority, category: str, message: str, details: list[Any]) -> None:
        recommendations.append(
            Recommendation(priority=priority, category=category, message=message, details=details)
        )

    if ctx.links and ctx.links.broken:
        add(
            Priority.HIGH,
            "link-integrity",
            f"Fix {len(ctx.links.broken)} broken cross-page links",
            [f"{ref.source_id}: {ref.raw_target}" for ref in ctx.links.broken],
        )
    if ctx.errors:
        add(
            Priority.HIGH,
            "maintenance",
            f"Investigate {len(ctx.errors)} maintenance procedures that raised errors",
            list(ctx.errors),
        )
    if ctx.rollout_problems:
        add(
            Priority.HIGH,
            "rollout",
            "Repair inconsistent rollout phase state",
            list(ctx.rollout_problems),
        )
    if ctx.links and ctx.links.orphaned:
        add(
            Priority.MEDIUM,
            "content-discovery",
            f"Add hub links for {len(ctx.links.orphaned)} orphaned documentation pages",
            list(ctx.links.orphaned),
        )
    if ctx.sync and ctx.sync.failed:
        add(
            Priority.MEDIUM,
            "content-previews",
            f"Fix {len(ctx.sync.failed)} content preview update errors",
            [f"{f.source_id}: {f.error}" for f in ctx.sync.failed],
        )
    if ctx.invalidated:
        add(
            Priority.MEDIUM,
            "content-previews",
            f"{len(ctx.invalidated)} previews were removed from the hub and will be regenerated",
            list(ctx.invalidated),
        )
    if ctx.links and ctx.links.parse_warnings:
        add(
            Priority.LOW,
            "link-syntax",
            f"Review {len(ctx.links.parse_warnings)} links with unrecognized syntax",
            [f"{w.source_id}:{w.line}: {w.reason}" for w in ctx.links.parse_warnings],
        )
    if ctx.unmapped_sections:
        add(
            Priority.LOW,
            "preview-coverage",
            f"Consider hub previews for {len(ctx.unmapped_sections)} documentation pages",
            list(ctx.unmapped_sections),
        )
    if ctx.thin_sections or ctx.dangling_mappings:
        add(
            Priority.LOW,
            "content-audit",
            "Review documentation pages without previewable content and mappings without a source",
            [*ctx.thin_sections, *ctx.dangling_mappings],
        )
    return recommendations
