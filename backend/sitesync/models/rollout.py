"""
Rollout Phase Model
===================

An ordered, named bundle of capabilities. Phases form a dependency chain:
phase N may only be deployed once phase N-1 is deployed.

The rollout percentage is advisory state. It is only meaningful for a
deployed phase and is consumed by whatever renders the Hub.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, Field


class PhaseStatus(str, enum.Enum):
    PENDING = "pending"
    DEPLOYED = "deployed"


class RolloutPhase(BaseModel):
    """
    A single rollout phase.

    Attributes:
        order: Position in the dependency chain (1-based)
        name: Human readable name
        capabilities: Capability names gated by this phase
        rollout_percentage: Share of the audience seeing the phase (0-100)
        status: PENDING or DEPLOYED
        deployed_at: Set on first successful deploy
        updated_at: Last persisted change
    """

    order: int = Field(..., ge=1)
    name: str
    capabilities: list[str] = Field(default_factory=list)
    rollout_percentage: int = Field(default=0, ge=0, le=100)
    status: PhaseStatus = PhaseStatus.PENDING
    deployed_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_deployed(self) -> bool:
        return self.status == PhaseStatus.DEPLOYED
