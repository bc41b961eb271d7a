from sitesync.services.content_store import ContentStore
from sitesync.services.extraction import LinkTargetResolver, MarkdownStripper, MarkupReferenceExtractor
from sitesync.services.link_validator import LinkGraphValidator, LinkValidationResult
from sitesync.services.maintenance_service import MaintenanceOrchestrator
from sitesync.services.preview_service import PreviewSynchronizer, PreviewSyncResult
from sitesync.services.report_store import ReportStore
from sitesync.services.rollout_service import RolloutController
from sitesync.services.state_store import PhaseStateStore, PreviewCacheStore


__all__ = [
    "ContentStore",
    "LinkTargetResolver",
    "MarkdownStripper",
    "MarkupReferenceExtractor",
    "LinkGraphValidator",
    "LinkValidationResult",
    "MaintenanceOrchestrator",
    "PreviewSynchronizer",
    "PreviewSyncResult",
    "ReportStore",
    "RolloutController",
    "PhaseStateStore",
    "PreviewCacheStore",
]
