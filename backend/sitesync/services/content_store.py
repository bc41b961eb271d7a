"""
Content Store - Read-Only View Over the Site Checkout
=====================================================

Resolves document ids to their current text and fingerprint. The store is
a directory tree:

    <content_root>/
        index.html          <- the Hub (single well-known file)
        _docs/
            install.md      <- Section "install"
            guides/setup.md <- Section "guides/setup"

Section ids are paths relative to the docs root, without extension and
with POSIX separators. The Hub has a configured id (default "index").

Writes:
-------
Only the Hub is writable, and only the preview synchronizer calls
`write_document`. Every other component sees a read-only store, which
keeps them trivially testable with a temp directory.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path

from sitesync.errors import NotFound, StoreIOError
from sitesync.models.document import Document, DocumentRole
from sitesync.utils.files import DOCUMENT_SUFFIXES, atomic_write_text, find_document_files

logger = logging.getLogger(__name__)


class ContentStore:
    """
    Filesystem-backed content store.

    Usage:
        store = ContentStore(Path("site/_docs"), Path("site/index.html"))
        hub = store.get_document(store.hub_id)
        sections = store.list_documents(DocumentRole.SECTION)
    """

    def __init__(
        self,
        docs_root: Path,
        hub_file: Path,
        hub_id: str = "index",
        suffixes: tuple[str, ...] = DOCUMENT_SUFFIXES,
    ) -> None:
        self.docs_root = docs_root
        self.hub_file = hub_file
        self.hub_id = hub_id
        self.suffixes = suffixes

    @staticmethod
    def compute_fingerprint(body: str) -> str:
        return hashlib.sha256(body.encode("utf-8")).hexdigest()

    def _section_paths(self) -> dict[str, Path]:
        try:
            files = find_document_files(self.docs_root, self.suffixes)
        except FileNotFoundError as e:
            raise StoreIOError(str(e)) from e

        paths: dict[str, Path] = {}
        for file_path in files:
            doc_id = file_path.relative_to(self.docs_root).with_suffix("").as_posix()
            if doc_id == self.hub_id:
                logger.warning(f"Section {file_path} shadows the hub id '{self.hub_id}', skipping")
                continue
            if doc_id in paths:
                logger.warning(f"Duplicate section id '{doc_id}': keeping {paths[doc_id].name}, ignoring {file_path.name}")
                continue
            paths[doc_id] = file_path
        return paths

    def _read(self, doc_id: str, role: DocumentRole, path: Path) -> Document:
        try:
            body = path.read_text(encoding="utf-8")
            mtime = path.stat().st_mtime
        except FileNotFoundError as e:
            raise NotFound(doc_id) from e
        except (OSError, UnicodeDecodeError) as e:
            raise StoreIOError(f"Failed to read {path}: {e}") from e

        return Document(
            id=doc_id,
            role=role,
            body=body,
            fingerprint=self.compute_fingerprint(body),
            last_modified_at=datetime.fromtimestamp(mtime, tz=timezone.utc),
        )

    def known_ids(self) -> set[str]:
        ids = set(self._section_paths())
        if self.hub_file.is_file():
            ids.add(self.hub_id)
        return ids

    def list_documents(self, role: DocumentRole | None = None) -> list[Document]:
        """List documents, optionally filtered by role. Hub first, then sections by id."""
        documents: list[Document] = []
        if role in (None, DocumentRole.HUB) and self.hub_file.is_file():
            documents.append(self._read(self.hub_id, DocumentRole.HUB, self.hub_file))
        if role in (None, DocumentRole.SECTION):
            for doc_id, path in sorted(self._section_paths().items()):
                documents.append(self._read(doc_id, DocumentRole.SECTION, path))
        return documents

    def get_document(self, doc_id: str) -> Document:
        if doc_id == self.hub_id:
            return self._read(doc_id, DocumentRole.HUB, self.hub_file)

        path = self._section_paths().get(doc_id)
        if path is None:
            raise NotFound(doc_id)
        return self._read(doc_id, DocumentRole.SECTION, path)

    def write_document(self, doc_id: str, body: str) -> None:
        """Replace the Hub body. Sections are never written."""
        if doc_id != self.hub_id:
            raise ValueError(f"Only the hub document '{self.hub_id}' is writable, got '{doc_id}'")
        try:
            atomic_write_text(self.hub_file, body)
        except OSError as e:
            raise StoreIOError(f"Failed to write {self.hub_file}: {e}") from e
        logger.info(f"Wrote hub document {self.hub_file}")
