"""
Preview Synchronizer - Hub Content Previews
===========================================

Keeps short extractive previews of Section documents embedded in the Hub.
Each PreviewMapping names a source Section and an insertion point inside
the Hub; the rendered block is wrapped in comment markers:

    <!-- installation-preview start -->
    <div class="content-preview" data-source="install"> ... </div>
    <!-- installation-preview end -->

Change Detection:
-----------------
A mapping is up to date iff the cache holds an entry for its source whose
fingerprint equals the Section's live fingerprint. The cache is only
updated after the Hub has been written, so a failed write leaves the
mapping unsynced and it is retried next run.

Write Serialization:
--------------------
Several mappings usually target the same Hub. All pending rewrites are
applied to one in-memory copy of the Hub body and written back once, so
one mapping's insertion can never overwrite another's.

Placement Rules:
----------------
1. Both markers present -> replace everything between them
2. No markers -> insert before the closing tag of the element whose id
   (or class token) equals mapping.hub_section
3. Otherwise -> SectionNotFound. Nothing is ever guessed into the wrong place.
"""

from __future__ import annotations

import html
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Sequence

from pydantic import TypeAdapter, ValidationError

from sitesync.errors import ConfigurationError, NotFound, SectionNotFound, SiteSyncError, StoreIOError
from sitesync.models.preview import PreviewCacheEntry, PreviewMapping
from sitesync.services.content_store import ContentStore
from sitesync.services.extraction import MarkupStripper
from sitesync.services.state_store import PreviewCacheStore

logger = logging.getLogger(__name__)

ELLIPSIS = "..."
DEFAULT_FALLBACK_TEXT = "Documentation content available. Click to read more."

DEFAULT_PREVIEW_MAPPINGS: list[dict[str, object]] = [
    {"source_id": "installation", "insertion_point_id": "installation-preview",
     "hub_section": "download-section", "max_length": 200, "link_text": "View Installation Guide"},
    {"source_id": "quick-start", "insertion_point_id": "quickstart-preview",
     "hub_section": "how-to-section", "max_length": 250, "link_text": "See Quick Start Guide"},
    {"source_id": "addon-api", "insertion_point_id": "api-preview",
     "hub_section": "features-section", "max_length": 180, "link_text": "Explore API Documentation"},
    {"source_id": "addon-development", "insertion_point_id": "development-preview",
     "hub_section": "features-section", "max_length": 200, "link_text": "Learn Addon Development"},
    {"source_id": "package-structure", "insertion_point_id": "structure-preview",
     "hub_section": "download-section", "max_length": 180, "link_text": "Understand Package Structure"},
]

_MAPPINGS = TypeAdapter(list[PreviewMapping])


def validate_mappings(mappings: Sequence[PreviewMapping]) -> list[PreviewMapping]:
    """One mapping per insertion point and per source; the sync cache is keyed by source."""
    seen_points: set[str] = set()
    seen_sources: set[str] = set()
    for mapping in mappings:
        if mapping.insertion_point_id in seen_points:
            raise ConfigurationError(f"Duplicate insertion point id: {mapping.insertion_point_id}")
        if mapping.source_id in seen_sources:
            raise ConfigurationError(f"Duplicate preview source: {mapping.source_id}")
        seen_points.add(mapping.insertion_point_id)
        seen_sources.add(mapping.source_id)
    return list(mappings)


def load_preview_mappings(path: Path | None = None) -> list[PreviewMapping]:
    """Load mappings from a JSON list, or the built-in defaults when no file is configured."""
    if path is None:
        return validate_mappings(_MAPPINGS.validate_python(DEFAULT_PREVIEW_MAPPINGS))
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        mappings = _MAPPINGS.validate_python(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ConfigurationError(f"Invalid preview mappings file {path}: {e}") from e
    return validate_mappings(mappings)


def split_paragraphs(text: str) -> list[str]:
    """Blank-line separated units with inner whitespace collapsed."""
    units = re.split(r"\n\s*\n", text)
    return [" ".join(unit.split()) for unit in units if unit.strip()]


def truncate_at_word(text: str, max_length: int) -> str:
    """Cut to max_length on a word boundary and mark the cut with an ellipsis."""
    if len(text) <= max_length:
        return text
    cut = text[:max_length]
    boundary = cut.rfind(" ")
    if boundary > 0:
        cut = cut[:boundary]
    cut = cut.rstrip(" ,;:-") or text[:max_length]
    return cut + ELLIPSIS


def _marker(insertion_point_id: str, edge: str) -> re.Pattern[str]:
    return re.compile(rf"<!--\s*{re.escape(insertion_point_id)}\s+{edge}\s*-->", re.IGNORECASE)


@dataclass
class PreviewSyncItem:
    source_id: str
    insertion_point_id: str
    preview_length: int


@dataclass
class PreviewSyncFailure:
    source_id: str
    insertion_point_id: str
    error: str


@dataclass
class PreviewSyncResult:
    updated: list[PreviewSyncItem] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[PreviewSyncFailure] = field(default_factory=list)


class PreviewSynchronizer:
    """
    Regenerates Hub previews whose source Section changed.

    Usage:
        sync = PreviewSynchronizer(store, PreviewCacheStore(path), MarkdownStripper())
        result = sync.sync(load_preview_mappings())
        result.updated, result.skipped, result.failed
    """

    def __init__(
        self,
        store: ContentStore,
        cache_store: PreviewCacheStore,
        stripper: MarkupStripper,
        *,
        docs_url_prefix: str = "docs",
        min_paragraph_length: int = 30,
        fallback_text: str = DEFAULT_FALLBACK_TEXT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.cache_store = cache_store
        self.stripper = stripper
        self.docs_url_prefix = docs_url_prefix.strip("/")
        self.min_paragraph_length = min_paragraph_length
        self.fallback_text = fallback_text.strip() or DEFAULT_FALLBACK_TEXT
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # -------------------------------------------------------------------------
    # Change detection
    # -------------------------------------------------------------------------

    @staticmethod
    def _is_stale(entry: PreviewCacheEntry | None, fingerprint: str) -> bool:
        return entry is None or entry.source_fingerprint_at_sync != fingerprint

    def needs_sync(self, mapping: PreviewMapping, cache: dict[str, PreviewCacheEntry]) -> bool:
        """True iff no cache entry exists for the source or its fingerprint changed."""
        entry = cache.get(mapping.source_id)
        if entry is None:
            return True
        source = self.store.get_document(mapping.source_id)
        return self._is_stale(entry, source.fingerprint)

    # -------------------------------------------------------------------------
    # Preview text
    # -------------------------------------------------------------------------

    def build_preview(self, source_body: str, max_length: int) -> str:
        """
        Extract a bounded, never-empty preview from a Section body.

        The first paragraph longer than min_paragraph_length wins. The result
        is at most max_length + len(ELLIPSIS) characters.
        """
        text = self.stripper.strip(source_body)
        for paragraph in split_paragraphs(text):
            if len(paragraph) > self.min_paragraph_length:
                return truncate_at_word(paragraph, max_length)
        return truncate_at_word(self.fallback_text, max_length)

    def has_substantial_content(self, source_body: str) -> bool:
        """False when build_preview would have to use the fallback text."""
        text = self.stripper.strip(source_body)
        return any(len(p) > self.min_paragraph_length for p in split_paragraphs(text))

    def render_block(self, mapping: PreviewMapping, preview: str) -> str:
        doc_link = f"/{self.docs_url_prefix}/{mapping.source_id}/" if self.docs_url_prefix else f"/{mapping.source_id}/"
        link_text = html.escape(mapping.link_text)
        return (
            f"<!-- {mapping.insertion_point_id} start -->\n"
            f'<div class="content-preview" data-source="{html.escape(mapping.source_id)}">\n'
            f'    <div class="preview-content">\n'
            f"        <p>{html.escape(preview, quote=False)}</p>\n"
            f"    </div>\n"
            f'    <div class="preview-actions">\n'
            f'        <a href="{html.escape(doc_link)}" class="preview-link" aria-label="{link_text}">\n'
            f'            {link_text} <span class="link-arrow">&rarr;</span>\n'
            f"        </a>\n"
            f"    </div>\n"
            f"</div>\n"
            f"<!-- {mapping.insertion_point_id} end -->"
        )

    # -------------------------------------------------------------------------
    # Hub placement
    # -------------------------------------------------------------------------

    @staticmethod
    def has_markers(hub_body: str, insertion_point_id: str) -> bool:
        return bool(_marker(insertion_point_id, "start").search(hub_body)) and bool(
            _marker(insertion_point_id, "end").search(hub_body)
        )

    @staticmethod
    def _find_container(hub_body: str, hub_section: str) -> tuple[int, int] | None:
        """Return (open_end, close_start) of the section container element."""
        name = re.escape(hub_section)
        patterns = [
            rf"""<([A-Za-z][\w-]*)\b[^>]*(?<![\w-])id\s*=\s*["']{name}["'][^>]*>""",
            rf"""<([A-Za-z][\w-]*)\b[^>]*(?<![\w-])class\s*=\s*["'][^"']*(?<![\w-]){name}(?![\w-])[^"']*["'][^>]*>""",
        ]
        for pattern in patterns:
            opening = re.search(pattern, hub_body, re.IGNORECASE)
            if not opening:
                continue

            tag = opening.group(1)
            depth = 1
            tags = re.compile(rf"<(/?){re.escape(tag)}\b[^>]*?(/?)>", re.IGNORECASE)
            for match in tags.finditer(hub_body, opening.end()):
                if match.group(1):
                    depth -= 1
                elif not match.group(2):
                    depth += 1
                if depth == 0:
                    return opening.end(), match.start()
            return None
        return None

    def write_preview(
        self,
        hub_body: str,
        insertion_point_id: str,
        rendered_block: str,
        hub_section: str | None = None,
    ) -> str:
        """Place rendered_block in hub_body and return the new body."""
        start_pattern = _marker(insertion_point_id, "start")
        end_pattern = _marker(insertion_point_id, "end")
        start = start_pattern.search(hub_body)
        end = end_pattern.search(hub_body, start.end()) if start else end_pattern.search(hub_body)

        if start and end:
            new_body = hub_body[:start.start()] + rendered_block
            rest = hub_body[end.end():]
            # Collapse duplicated blocks left behind by manual edits
            while True:
                dup_start = start_pattern.search(rest)
                dup_end = end_pattern.search(rest, dup_start.end()) if dup_start else None
                if not (dup_start and dup_end):
                    break
                rest = rest[:dup_start.start()] + rest[dup_end.end():]
            return new_body + rest

        if start or end:
            raise SectionNotFound(insertion_point_id, hub_section, "incomplete preview markers")

        if not hub_section:
            raise SectionNotFound(insertion_point_id, None, "no markers and no section configured")

        container = self._find_container(hub_body, hub_section)
        if container is None:
            raise SectionNotFound(insertion_point_id, hub_section)

        _, close_start = container
        return hub_body[:close_start] + "\n" + rendered_block + "\n" + hub_body[close_start:]

    # -------------------------------------------------------------------------
    # Cache maintenance
    # -------------------------------------------------------------------------

    def load_cache(self) -> dict[str, PreviewCacheEntry]:
        return self.cache_store.load()

    def invalidate(self, source_ids: Sequence[str]) -> list[str]:
        """Drop cache entries so their mappings resync next run."""
        cache = self.cache_store.load()
        removed = [source_id for source_id in source_ids if cache.pop(source_id, None) is not None]
        if removed:
            self.cache_store.save(cache)
            logger.info(f"Invalidated preview cache for {', '.join(removed)}")
        return removed

    def find_missing_markers(self, mappings: Sequence[PreviewMapping]) -> list[PreviewMapping]:
        """Mappings considered synced whose block is no longer present in the Hub."""
        cache = self.cache_store.load()
        hub = self.store.get_document(self.store.hub_id)
        return [
            mapping
            for mapping in mappings
            if mapping.source_id in cache and not self.has_markers(hub.body, mapping.insertion_point_id)
        ]

    # -------------------------------------------------------------------------
    # Synchronization
    # -------------------------------------------------------------------------

    def sync(self, mappings: Sequence[PreviewMapping]) -> PreviewSyncResult:
        """
        Rewrite every stale preview with a single Hub write.

        Per-mapping failures (missing source, missing section) are recorded
        and do not affect other mappings. A Hub write failure fails every
        pending mapping and leaves their cache entries untouched.
        """
        mappings = validate_mappings(mappings)
        result = PreviewSyncResult()
        cache = self.cache_store.load()

        try:
            hub = self.store.get_document(self.store.hub_id)
        except SiteSyncError as e:
            logger.error(f"Cannot read hub document: {e}")
            result.failed.extend(
                PreviewSyncFailure(m.source_id, m.insertion_point_id, str(e)) for m in mappings
            )
            return result

        body = hub.body
        pending: list[tuple[PreviewMapping, str, int]] = []

        for mapping in mappings:
            try:
                source = self.store.get_document(mapping.source_id)
            except (NotFound, StoreIOError) as e:
                logger.error(f"Failed to read preview source {mapping.source_id}: {e}")
                result.failed.append(PreviewSyncFailure(mapping.source_id, mapping.insertion_point_id, str(e)))
                continue

            if not self._is_stale(cache.get(mapping.source_id), source.fingerprint):
                result.skipped.append(mapping.source_id)
                continue

            preview = self.build_preview(source.body, mapping.max_length)
            block = self.render_block(mapping, preview)
            try:
                body = self.write_preview(body, mapping.insertion_point_id, block, mapping.hub_section)
            except SectionNotFound as e:
                logger.warning(f"Could not place preview for {mapping.source_id}: {e}")
                result.failed.append(PreviewSyncFailure(mapping.source_id, mapping.insertion_point_id, str(e)))
                continue

            pending.append((mapping, source.fingerprint, len(preview)))

        if not pending:
            logger.info(f"Preview sync: nothing to update ({len(result.skipped)} up to date)")
            return result

        if body != hub.body:
            try:
                self.store.write_document(self.store.hub_id, body)
            except StoreIOError as e:
                logger.error(f"Hub write-back failed, {len(pending)} previews stay unsynced: {e}")
                result.failed.extend(
                    PreviewSyncFailure(m.source_id, m.insertion_point_id, str(e)) for m, _, _ in pending
                )
                return result

        synced_at = self.clock()
        for mapping, fingerprint, preview_length in pending:
            cache[mapping.source_id] = PreviewCacheEntry(
                source_id=mapping.source_id,
                source_fingerprint_at_sync=fingerprint,
                synced_at=synced_at,
            )
            result.updated.append(PreviewSyncItem(mapping.source_id, mapping.insertion_point_id, preview_length))
        self.cache_store.save(cache)

        logger.info(
            f"Preview sync completed. Updated: {len(result.updated)}, "
            f"Skipped: {len(result.skipped)}, Errors: {len(result.failed)}"
        )
        return result
