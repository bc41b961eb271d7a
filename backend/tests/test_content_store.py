"""Tests for the filesystem content store."""

import pytest

from sitesync.errors import NotFound, StoreIOError
from sitesync.models.document import DocumentRole
from sitesync.services.content_store import ContentStore


class TestListing:
    """Document discovery and id scheme."""

    def test_hub_first_then_sections_sorted(self, store):
        ids = [doc.id for doc in store.list_documents()]
        assert ids == ["index", "api", "install", "quickstart"]

    def test_role_filter(self, store):
        sections = store.list_documents(DocumentRole.SECTION)
        assert {doc.role for doc in sections} == {DocumentRole.SECTION}
        assert [doc.id for doc in store.list_documents(DocumentRole.HUB)] == ["index"]

    def test_nested_ids_use_posix_paths(self, site, store):
        nested = site / "_docs" / "guides"
        nested.mkdir()
        (nested / "setup.html").write_text("<p>Setup</p>", encoding="utf-8")

        assert "guides/setup" in store.known_ids()
        assert store.get_document("guides/setup").body == "<p>Setup</p>"

    def test_other_suffixes_are_ignored(self, site, store):
        (site / "_docs" / "notes.txt").write_text("ignored", encoding="utf-8")
        assert "notes" not in store.known_ids()

    def test_missing_docs_root_is_store_error(self, tmp_path):
        store = ContentStore(tmp_path / "nope", tmp_path / "index.html")
        with pytest.raises(StoreIOError):
            store.list_documents()


class TestReadWrite:
    """Fingerprints, lookups and hub write-back."""

    def test_unknown_id_raises_not_found(self, store):
        with pytest.raises(NotFound) as exc:
            store.get_document("missing")
        assert exc.value.identifier == "missing"

    def test_fingerprint_tracks_body(self, site, store):
        before = store.get_document("install").fingerprint
        assert before == ContentStore.compute_fingerprint(store.get_document("install").body)

        (site / "_docs" / "install.md").write_text("changed", encoding="utf-8")
        assert store.get_document("install").fingerprint != before

    def test_identical_bodies_share_a_fingerprint(self, site, store):
        (site / "_docs" / "copy.md").write_text((site / "_docs" / "api.md").read_text(encoding="utf-8"), encoding="utf-8")
        assert store.get_document("copy").fingerprint == store.get_document("api").fingerprint

    def test_last_modified_is_utc(self, store):
        doc = store.get_document("install")
        assert doc.last_modified_at.tzinfo is not None

    def test_only_hub_is_writable(self, store):
        with pytest.raises(ValueError):
            store.write_document("install", "nope")

    def test_hub_write_replaces_body(self, site, store):
        store.write_document("index", "<html></html>")
        assert (site / "index.html").read_text(encoding="utf-8") == "<html></html>"
        assert not list(site.glob(".index.html.*.tmp"))
