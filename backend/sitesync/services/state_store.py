"""
Persisted State - Whole-File JSON Stores
========================================

The preview cache and the rollout phase state are the only state that
survives between runs. Each is owned by exactly one component and is
loaded and saved as a whole - there is no partial-record API - and every
save goes through an atomic rename so a crash never leaves torn state.

Corruption Policy:
------------------
- Preview cache: a corrupt file is discarded with a warning. Losing the
  cache only forces a full resync, never incorrect data.
- Phase state: a corrupt file raises StoreIOError. Silently resetting
  deployed phases to pending would be an unsafe rollback.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from sitesync.errors import StoreIOError
from sitesync.models.preview import PreviewCacheEntry
from sitesync.models.rollout import RolloutPhase
from sitesync.utils.files import atomic_write_json

logger = logging.getLogger(__name__)

_PHASES = TypeAdapter(list[RolloutPhase])


class JsonFileStore:
    """Load/save a single JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> Any | None:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise StoreIOError(f"Failed to read {self.path}: {e}") from e

    def write(self, data: Any) -> None:
        try:
            atomic_write_json(self.path, data)
        except OSError as e:
            raise StoreIOError(f"Failed to write {self.path}: {e}") from e


class PreviewCacheStore(JsonFileStore):
    """sourceId -> PreviewCacheEntry, persisted as one JSON object."""

    def load(self) -> dict[str, PreviewCacheEntry]:
        try:
            data = self.read()
        except json.JSONDecodeError:
            logger.warning(f"Preview cache {self.path} is corrupt, starting fresh")
            return {}
        if not data:
            return {}
        raw_entries = data.get("entries") if isinstance(data, dict) else None
        if not isinstance(raw_entries, dict):
            logger.warning(f"Preview cache {self.path} has an unexpected shape, starting fresh")
            return {}

        entries: dict[str, PreviewCacheEntry] = {}
        for source_id, raw in raw_entries.items():
            try:
                entries[source_id] = PreviewCacheEntry.model_validate({"source_id": source_id, **raw})
            except (ValidationError, TypeError):
                logger.warning(f"Dropping invalid preview cache entry for {source_id}")
        return entries

    def save(self, entries: dict[str, PreviewCacheEntry]) -> None:
        self.write({
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "entries": {
                source_id: entry.model_dump(mode="json", exclude={"source_id"})
                for source_id, entry in sorted(entries.items())
            },
        })


class PhaseStateStore(JsonFileStore):
    """Ordered list of RolloutPhase records, persisted as one JSON object."""

    def load(self) -> list[RolloutPhase] | None:
        try:
            data = self.read()
        except json.JSONDecodeError as e:
            raise StoreIOError(f"Phase state {self.path} is corrupt: {e}") from e
        if data is None:
            return None
        try:
            return _PHASES.validate_python(data.get("phases", []))
        except (ValidationError, AttributeError) as e:
            raise StoreIOError(f"Phase state {self.path} is invalid: {e}") from e

    def save(self, phases: list[RolloutPhase]) -> None:
        self.write({
            "last_updated": datetime.now(timezone.utc).isoformat(),
            "phases": [phase.model_dump(mode="json") for phase in sorted(phases, key=lambda p: p.order)],
        })
