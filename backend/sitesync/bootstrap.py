"""
Component wiring from Settings.

Services never read configuration themselves. Entry points (CLI, Celery
tasks, dashboard API) call these builders with the loaded Settings.
"""

from __future__ import annotations

import logging

from sitesync.config import Settings
from sitesync.services.content_store import ContentStore
from sitesync.services.extraction import LinkTargetResolver, MarkdownStripper, MarkupReferenceExtractor
from sitesync.services.link_validator import LinkGraphValidator
from sitesync.services.maintenance_service import MaintenanceOrchestrator
from sitesync.services.preview_service import PreviewSynchronizer, load_preview_mappings
from sitesync.services.report_store import ReportStore
from sitesync.services.rollout_service import RolloutController, load_phase_definitions
from sitesync.services.state_store import PhaseStateStore, PreviewCacheStore

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
    )


def build_content_store(settings: Settings) -> ContentStore:
    return ContentStore(settings.docs_root, settings.hub_file, hub_id=settings.hub_id)


def build_rollout_controller(settings: Settings) -> RolloutController:
    phases_file = settings.rollout_phases_file
    flags_file = settings.feature_flags_file
    return RolloutController(
        PhaseStateStore(settings.phase_state_path),
        load_phase_definitions(settings.resolve(phases_file) if phases_file else None),
        flags_path=settings.resolve(flags_file) if flags_file else None,
    )


def build_report_store(settings: Settings) -> ReportStore:
    return ReportStore(settings.reports_path)


def build_orchestrator(settings: Settings) -> MaintenanceOrchestrator:
    store = build_content_store(settings)
    resolver = LinkTargetResolver(hub_id=settings.hub_id, docs_url_prefix=settings.docs_url_prefix)
    synchronizer = PreviewSynchronizer(
        store,
        PreviewCacheStore(settings.preview_cache_path),
        MarkdownStripper(),
        docs_url_prefix=settings.docs_url_prefix,
        min_paragraph_length=settings.min_paragraph_length,
        fallback_text=settings.preview_fallback_text,
    )
    mappings_file = settings.preview_mappings_file

    return MaintenanceOrchestrator(
        store,
        LinkGraphValidator(MarkupReferenceExtractor(resolver)),
        synchronizer,
        build_rollout_controller(settings),
        build_report_store(settings),
        load_preview_mappings(settings.resolve(mappings_file) if mappings_file else None),
        report_retention=settings.report_retention,
    )
