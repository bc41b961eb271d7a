"""
Document Model
==============

Represents a unit of site content read from the content store. Documents
are derived fresh on every run - nothing here is persisted beyond the
files themselves.

Roles:
------
- HUB: the single target document (homepage) that aggregates links and
  content previews
- SECTION: a documentation page under the docs root

Fingerprint for Change Detection:
---------------------------------
The fingerprint stores a SHA-256 hash of the body. It is recomputed on
every read, so identical bodies always share a fingerprint (even across
ids) and any change to the body changes it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class DocumentRole(str, enum.Enum):
    HUB = "hub"
    SECTION = "section"


@dataclass(frozen=True)
class Document:
    """
    A document in the content store.

    Attributes:
        id: Path-like identifier, e.g. "install" or "guides/setup"
        role: HUB or SECTION
        body: Current text content
        fingerprint: SHA-256 hex digest of body
        last_modified_at: File modification time (UTC)
    """
    id: str
    role: DocumentRole
    body: str
    fingerprint: str
    last_modified_at: datetime


@dataclass(frozen=True)
class Reference:
    """
    A directed link from one document to another.

    target_id is already mapped into the store's id scheme; raw_target keeps
    the href exactly as written for reporting. The fragment is kept for
    display only and is never validated.
    """
    source_id: str
    target_id: str
    anchor_text: str
    raw_target: str
    fragment: str | None = None
    line: int | None = None


@dataclass(frozen=True)
class LinkParseWarning:
    """Reference syntax that could not be parsed. Reported, never resolved."""
    source_id: str
    snippet: str
    reason: str
    line: int | None = None
