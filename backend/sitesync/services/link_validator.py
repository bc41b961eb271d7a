"""
Link Graph Validator - Cross-Page Reference Integrity
=====================================================

Builds the reference graph between the Hub and the Section documents and
classifies every edge.

Classification:
---------------
1. Resolvable - target id exists in the document set
2. Broken     - syntax parsed fine, target id does not exist
3. Parse warning - syntax could not be parsed (counted separately;
   a parse failure is never reported as a broken link)

Orphaned Sections:
------------------
A Section is orphaned when no resolvable reference from any *other*
document points at it - there is no path from the Hub (or anywhere else)
to that page. Self-links do not count.

Fragment Handling:
------------------
"install#requirements" resolves against "install". Whether the
"requirements" anchor exists is deliberately not checked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from sitesync.models.document import Document, DocumentRole, LinkParseWarning, Reference
from sitesync.services.extraction import ReferenceExtractor

logger = logging.getLogger(__name__)


@dataclass
class LinkValidationResult:
    resolvable: list[Reference] = field(default_factory=list)
    broken: list[Reference] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)
    parse_warnings: list[LinkParseWarning] = field(default_factory=list)

    @property
    def total_references(self) -> int:
        return len(self.resolvable) + len(self.broken)


class LinkGraphValidator:
    """
    Validates cross-document references.

    Usage:
        validator = LinkGraphValidator(MarkupReferenceExtractor(resolver))
        result = validator.validate(store.list_documents())
        result.broken    # references to missing documents
        result.orphaned  # section ids nothing links to
    """

    def __init__(self, extractor: ReferenceExtractor) -> None:
        self.extractor = extractor

    @staticmethod
    def _match(target_id: str, known_ids: set[str]) -> str | None:
        if target_id in known_ids:
            return target_id
        # "guides/" may be served by the section "guides/index"
        index_id = f"{target_id}/index"
        if index_id in known_ids:
            return index_id
        return None

    def validate(self, documents: Sequence[Document]) -> LinkValidationResult:
        result = LinkValidationResult()
        known_ids = {doc.id for doc in documents}
        linked: set[str] = set()

        for document in documents:
            references, warnings = self.extractor.extract(document)
            result.parse_warnings.extend(warnings)

            for reference in references:
                matched = self._match(reference.target_id, known_ids)
                if matched is None:
                    result.broken.append(reference)
                    continue

                if matched != reference.target_id:
                    reference = Reference(
                        source_id=reference.source_id,
                        target_id=matched,
                        anchor_text=reference.anchor_text,
                        raw_target=reference.raw_target,
                        fragment=reference.fragment,
                        line=reference.line,
                    )
                result.resolvable.append(reference)
                if matched != document.id:
                    linked.add(matched)

        result.orphaned = sorted(
            doc.id
            for doc in documents
            if doc.role == DocumentRole.SECTION and doc.id not in linked
        )

        logger.info(
            f"Validated {len(documents)} documents: {len(result.resolvable)} resolvable, "
            f"{len(result.broken)} broken, {len(result.orphaned)} orphaned, "
            f"{len(result.parse_warnings)} parse warnings"
        )
        for reference in result.broken:
            logger.warning(f"Broken link in {reference.source_id}: {reference.raw_target}")

        return result
