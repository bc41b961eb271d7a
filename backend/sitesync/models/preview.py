from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PreviewMapping(BaseModel):
    """Declares that a Section produces a preview at a named point inside the Hub."""

    source_id: str = Field(..., min_length=1)
    insertion_point_id: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9_-]+$")
    max_length: int = Field(default=200, ge=1)
    link_text: str = "Read more"
    # Element id (or class token) in the Hub that receives a new preview block
    hub_section: str | None = None


class PreviewCacheEntry(BaseModel):
    """Last synchronized state of a mapping's source."""

    source_id: str
    source_fingerprint_at_sync: str
    synced_at: datetime
