"""
Rollout Controller - Phased Feature Deployment
==============================================

Manages an ordered chain of feature phases. Each phase bundles a set of
capabilities, a rollout percentage and a PENDING/DEPLOYED status.

Rules:
------
1. Phase N may be deployed only after phase N-1 is deployed
2. Deploying an already deployed phase is a no-op
3. The percentage can only be adjusted on a deployed phase, within [0, 100]
4. Adjusting the percentage never changes the status

The percentage is advisory: this component never routes traffic. It is
exported as a flag map for whatever renders the Hub, and `is_enabled`
offers a deterministic audience bucket check for renderers that want one.

Persistence:
------------
Phase state is owned exclusively by this controller and saved as a whole
file after every accepted command. Phase definitions (names,
capabilities) come from configuration; status and percentages come from
the persisted state.
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Sequence

from pydantic import TypeAdapter, ValidationError

from sitesync.errors import (
    ConfigurationError,
    DependencyNotMet,
    InvalidPercentage,
    NotFound,
    PhaseNotDeployed,
    StoreIOError,
)
from sitesync.models.rollout import PhaseStatus, RolloutPhase
from sitesync.services.state_store import PhaseStateStore
from sitesync.utils.files import atomic_write_json

logger = logging.getLogger(__name__)

DEFAULT_ROLLOUT_PHASES: list[dict[str, object]] = [
    {
        "order": 1,
        "name": "Basic Cross-Page Linking",
        "capabilities": ["contextual-links", "breadcrumb-navigation", "basic-navigation-enhancement"],
        "rollout_percentage": 100,
    },
    {
        "order": 2,
        "name": "Content Preview System",
        "capabilities": ["content-preview-components", "documentation-teasers", "content-synchronization"],
    },
    {
        "order": 3,
        "name": "Advanced Features",
        "capabilities": ["related-content-suggestions", "user-journey-optimization", "advanced-analytics"],
    },
]

_PHASES = TypeAdapter(list[RolloutPhase])


def validate_phase_definitions(phases: Sequence[RolloutPhase]) -> list[RolloutPhase]:
    orders = sorted(phase.order for phase in phases)
    if orders != list(range(1, len(orders) + 1)):
        raise ConfigurationError(f"Phase orders must be 1..N without gaps or duplicates, got {orders}")
    return sorted(phases, key=lambda p: p.order)


def load_phase_definitions(path: Path | None = None) -> list[RolloutPhase]:
    """Load phase definitions from a JSON list, or the built-in defaults."""
    if path is None:
        return validate_phase_definitions(_PHASES.validate_python(DEFAULT_ROLLOUT_PHASES))
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        phases = _PHASES.validate_python(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ConfigurationError(f"Invalid rollout phases file {path}: {e}") from e
    return validate_phase_definitions(phases)


def audience_bucket(audience_key: str) -> int:
    """Stable bucket in [0, 100) for an audience key."""
    digest = hashlib.sha256(audience_key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") % 100


class RolloutController:
    """
    Deploys phases in dependency order and tracks their rollout percentage.

    Usage:
        controller = RolloutController(PhaseStateStore(path), load_phase_definitions())
        controller.deploy(1)
        controller.adjust_rollout(1, 50)
        controller.status()
    """

    def __init__(
        self,
        state_store: PhaseStateStore,
        definitions: Sequence[RolloutPhase],
        *,
        flags_path: Path | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.state_store = state_store
        self.definitions = validate_phase_definitions(list(definitions))
        self.flags_path = flags_path
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _load(self) -> list[RolloutPhase]:
        persisted = {phase.order: phase for phase in (self.state_store.load() or [])}
        phases: list[RolloutPhase] = []

        for definition in self.definitions:
            stored = persisted.pop(definition.order, None)
            if stored is None:
                phases.append(definition.model_copy(deep=True))
                continue
            phases.append(
                stored.model_copy(update={"name": definition.name, "capabilities": list(definition.capabilities)})
            )

        # Phases removed from the definitions keep their recorded state
        phases.extend(persisted.values())
        return sorted(phases, key=lambda p: p.order)

    def _persist(self, phases: list[RolloutPhase]) -> None:
        self.state_store.save(phases)
        if self.flags_path is not None:
            self._export_flags(phases)

    def _export_flags(self, phases: list[RolloutPhase]) -> None:
        flags = {
            f"phase{phase.order}": {
                "name": phase.name,
                "enabled": phase.is_deployed,
                "rollout_percentage": phase.rollout_percentage if phase.is_deployed else 0,
                "capabilities": phase.capabilities,
                "updated_at": phase.updated_at.isoformat() if phase.updated_at else None,
            }
            for phase in phases
        }
        try:
            atomic_write_json(self.flags_path, flags)
        except OSError as e:
            raise StoreIOError(f"Failed to write feature flags {self.flags_path}: {e}") from e
        logger.info(f"Updated feature flags: {self.flags_path}")

    @staticmethod
    def _get(phases: list[RolloutPhase], order: int) -> RolloutPhase:
        for phase in phases:
            if phase.order == order:
                return phase
        raise NotFound(str(order), kind="phase")

    def status(self) -> list[RolloutPhase]:
        """Read-only snapshot of every phase, ordered."""
        return self._load()

    def history(self) -> list[RolloutPhase]:
        """Deployed phases in deployment order."""
        deployed = [phase for phase in self._load() if phase.is_deployed and phase.deployed_at]
        return sorted(deployed, key=lambda p: p.deployed_at)

    def deploy(self, order: int) -> RolloutPhase:
        phases = self._load()
        phase = self._get(phases, order)

        if phase.is_deployed:
            logger.info(f"Phase {order} ({phase.name}) already deployed")
            return phase.model_copy(deep=True)

        if order > 1:
            previous = self._get(phases, order - 1)
            if not previous.is_deployed:
                raise DependencyNotMet(order, previous.order)

        now = self.clock()
        phase.status = PhaseStatus.DEPLOYED
        phase.deployed_at = now
        phase.updated_at = now
        self._persist(phases)

        logger.info(f"Deployed phase {order}: {phase.name} ({phase.rollout_percentage}%)")
        return phase.model_copy(deep=True)

    def adjust_rollout(self, order: int, percentage: int) -> RolloutPhase:
        if isinstance(percentage, bool) or not isinstance(percentage, int) or not 0 <= percentage <= 100:
            raise InvalidPercentage(percentage)

        phases = self._load()
        phase = self._get(phases, order)
        if not phase.is_deployed:
            raise PhaseNotDeployed(order)

        phase.rollout_percentage = percentage
        phase.updated_at = self.clock()
        self._persist(phases)

        logger.info(f"Rollout adjusted for phase {order}: {percentage}%")
        return phase.model_copy(deep=True)

    def is_enabled(self, capability: str, audience_key: str) -> bool:
        """Whether a capability is exposed to the given audience key."""
        for phase in self._load():
            if capability in phase.capabilities:
                return phase.is_deployed and audience_bucket(audience_key) < phase.rollout_percentage
        return False

    def check_consistency(self) -> list[str]:
        """
        Verify the persisted state still honours the dependency chain.

        Returns human readable problems; an empty list means consistent.
        """
        problems: list[str] = []
        phases = self._load()
        defined = {definition.order for definition in self.definitions}

        pending_seen: int | None = None
        for phase in phases:
            if phase.order not in defined:
                problems.append(f"phase {phase.order} ({phase.name}) is not defined in the configuration")
            if not phase.is_deployed:
                if pending_seen is None:
                    pending_seen = phase.order
                continue
            if pending_seen is not None:
                problems.append(f"phase {phase.order} is deployed while phase {pending_seen} is pending")
            if phase.deployed_at is None:
                problems.append(f"phase {phase.order} is deployed without a deployment timestamp")
        return problems
