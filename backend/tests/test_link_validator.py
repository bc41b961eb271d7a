"""Tests for reference extraction, target resolution and the link graph validator."""

from datetime import datetime, timezone

import pytest

from sitesync.models.document import Document, DocumentRole
from sitesync.services.extraction import LinkTargetResolver


def make_doc(doc_id: str, body: str, role: DocumentRole = DocumentRole.SECTION) -> Document:
    return Document(
        id=doc_id,
        role=role,
        body=body,
        fingerprint="x",
        last_modified_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


class TestLinkTargetResolver:
    """Hrefs map into the store's id scheme."""

    @pytest.mark.parametrize(
        "source_id,raw,expected",
        [
            ("index", "docs/install/", ("install", None)),
            ("index", "/docs/guides/setup", ("guides/setup", None)),
            ("install", "quickstart.md", ("quickstart", None)),
            ("guides/setup", "../install.html", ("install", None)),
            ("install", "/", ("index", None)),
            ("install", "../index.html", ("index", None)),
            ("install", "api.md#errors", ("api", "errors")),
            ("install", "api.md?tab=1", ("api", None)),
            ("guides/setup", "/docs/guides/", ("guides", None)),
        ],
    )
    def test_resolves_internal_targets(self, source_id, raw, expected):
        assert LinkTargetResolver().resolve(source_id, raw) == expected

    @pytest.mark.parametrize("raw", ["https://example.com", "mailto:a@b.c", "//cdn.example.com/x.js", "#top"])
    def test_external_and_same_page_targets_are_not_references(self, raw):
        assert LinkTargetResolver().resolve("install", raw) is None


class TestReferenceExtractor:
    """Markdown and HTML link extraction."""

    def test_markdown_and_html_links(self, extractor):
        doc = make_doc("install", 'See [API](api.md) and <a href="quickstart.md">the <b>quick</b> start</a>.')
        references, warnings = extractor.extract(doc)

        assert warnings == []
        assert [(r.target_id, r.anchor_text) for r in references] == [
            ("api", "API"),
            ("quickstart", "the quick start"),
        ]

    def test_images_and_code_are_not_links(self, extractor):
        body = "![logo](logo.png)\n\n`[inline](nope.md)`\n\n```\n[fenced](nope.md)\n```\n"
        references, warnings = extractor.extract(make_doc("install", body))
        assert references == []
        assert warnings == []

    def test_titled_markdown_target(self, extractor):
        references, _ = extractor.extract(make_doc("install", '[API](api.md "Reference")'))
        assert references[0].target_id == "api"

    def test_line_numbers(self, extractor):
        references, _ = extractor.extract(make_doc("install", "intro\n\n[API](api.md)"))
        assert references[0].line == 3

    @pytest.mark.parametrize(
        "body,reason",
        [
            ("[empty]()", "empty link target"),
            ("[spaced](some page.md)", "whitespace in link target"),
            ("[tpl]({{ site.url }}/x)", "template expression in link target"),
            ("[open](api.md", "unterminated markdown link"),
        ],
    )
    def test_malformed_syntax_is_a_warning(self, extractor, body, reason):
        references, warnings = extractor.extract(make_doc("install", body))
        assert references == []
        assert [w.reason for w in warnings] == [reason]
        assert warnings[0].source_id == "install"

    def test_anchor_without_href_is_ignored(self, extractor):
        references, warnings = extractor.extract(make_doc("install", '<a name="top"></a>'))
        assert references == [] and warnings == []

    def test_unparseable_href_is_a_warning(self, extractor):
        _, warnings = extractor.extract(make_doc("install", "<a href=api.md>API</a>"))
        assert [w.reason for w in warnings] == ["unparseable href attribute"]


class TestLinkGraphValidator:
    """Broken links, orphans and parse warnings over a document set."""

    def test_orphaned_section_without_broken_links(self, store, validator):
        result = validator.validate(store.list_documents())

        assert result.orphaned == ["api"]
        assert result.broken == []

    def test_broken_link_is_reported_with_source(self, validator):
        docs = [
            make_doc("index", "[Install](docs/install/)", DocumentRole.HUB),
            make_doc("install", "[Gone](missing.md)"),
        ]
        result = validator.validate(docs)

        assert [(r.source_id, r.target_id) for r in result.broken] == [("install", "missing")]
        assert result.total_references == 2

    def test_fragment_does_not_affect_resolution(self, validator):
        docs = [
            make_doc("index", "[Errors](docs/api/#errors)", DocumentRole.HUB),
            make_doc("api", "# API"),
        ]
        result = validator.validate(docs)

        assert result.broken == []
        assert result.resolvable[0].fragment == "errors"
        assert result.orphaned == []

    def test_self_link_does_not_adopt_a_section(self, validator):
        docs = [
            make_doc("index", "hub", DocumentRole.HUB),
            make_doc("api", "[Top](api.md#top)"),
        ]
        assert validator.validate(docs).orphaned == ["api"]

    def test_directory_link_matches_index_section(self, validator):
        docs = [
            make_doc("index", "[Guides](docs/guides/)", DocumentRole.HUB),
            make_doc("guides/index", "Guides"),
        ]
        result = validator.validate(docs)

        assert result.broken == []
        assert result.resolvable[0].target_id == "guides/index"

    def test_hub_is_never_orphaned(self, validator):
        result = validator.validate([make_doc("index", "no links", DocumentRole.HUB)])
        assert result.orphaned == []

    def test_parse_warnings_are_collected(self, validator):
        docs = [make_doc("index", "[bad]()", DocumentRole.HUB)]
        result = validator.validate(docs)

        assert len(result.parse_warnings) == 1
        assert result.total_references == 0
