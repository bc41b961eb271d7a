"""
Error Taxonomy
==============

Exceptions raised by the SiteSync services. Report-only categories
(broken references, reference parse warnings) are plain records in
`sitesync.models` - they never interrupt a run.

Propagation:
------------
- Content store: `NotFound` for unknown ids, `StoreIOError` for OS failures
- Preview sync: `SectionNotFound` when a preview cannot be placed in the Hub
- Rollout: `RolloutError` subclasses for rejected operator commands
- The maintenance orchestrator catches everything per procedure and records it
"""

from __future__ import annotations


class SiteSyncError(Exception):
    """Base class for all SiteSync errors."""


class ConfigurationError(SiteSyncError):
    """A mapping or phase definition file is invalid."""


class NotFound(SiteSyncError):
    """A document id (or rollout phase) does not exist."""

    def __init__(self, identifier: str, kind: str = "document") -> None:
        self.identifier = identifier
        self.kind = kind
        super().__init__(f"{kind} not found: {identifier}")


class StoreIOError(SiteSyncError):
    """Underlying read/write failure against the content store or a state file."""


class SectionNotFound(SiteSyncError):
    """The Hub has neither the preview markers nor the named section container."""

    def __init__(self, insertion_point_id: str, hub_section: str | None, detail: str = "") -> None:
        self.insertion_point_id = insertion_point_id
        self.hub_section = hub_section
        message = f"cannot place preview '{insertion_point_id}'"
        if hub_section:
            message += f" in section '{hub_section}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class RolloutError(SiteSyncError):
    """A rollout command was rejected by a precondition."""


class DependencyNotMet(RolloutError):
    def __init__(self, order: int, required: int) -> None:
        self.order = order
        self.required = required
        super().__init__(
            f"phase {order} cannot be deployed before phase {required} is deployed"
        )


class InvalidPercentage(RolloutError):
    def __init__(self, percentage: object) -> None:
        self.percentage = percentage
        super().__init__(f"rollout percentage must be within [0, 100], got {percentage!r}")


class PhaseNotDeployed(RolloutError):
    def __init__(self, order: int) -> None:
        self.order = order
        super().__init__(f"phase {order} has not been deployed")
