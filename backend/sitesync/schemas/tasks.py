"""
Schemas for Celery task return values.

TypedDicts keep the JSON-serialized task results type-checked without
pulling pydantic models through the result backend.
"""

from __future__ import annotations

from typing import NotRequired, TypedDict


class MaintenanceRunResultDict(TypedDict):
    """Return type for run_maintenance task."""

    run_id: str
    schedule: str
    status: str
    hard_failures: int
    recommendations: int
    error: NotRequired[str | None]
