from sitesync.models.document import Document, DocumentRole, LinkParseWarning, Reference
from sitesync.models.preview import PreviewCacheEntry, PreviewMapping
from sitesync.models.rollout import PhaseStatus, RolloutPhase


__all__ = [
    "Document",
    "DocumentRole",
    "Reference",
    "LinkParseWarning",
    "PreviewMapping",
    "PreviewCacheEntry",
    "RolloutPhase",
    "PhaseStatus",
]
