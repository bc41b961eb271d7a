"""Shared fixtures: a small site checkout in a temp directory."""

from datetime import datetime, timedelta, timezone
from itertools import count
from pathlib import Path

import pytest

from sitesync.config import Settings
from sitesync.models.preview import PreviewMapping
from sitesync.services.content_store import ContentStore
from sitesync.services.extraction import LinkTargetResolver, MarkdownStripper, MarkupReferenceExtractor
from sitesync.services.link_validator import LinkGraphValidator
from sitesync.services.maintenance_service import MaintenanceOrchestrator
from sitesync.services.preview_service import PreviewSynchronizer
from sitesync.services.report_store import ReportStore
from sitesync.services.rollout_service import RolloutController, load_phase_definitions
from sitesync.services.state_store import PhaseStateStore, PreviewCacheStore


HUB_HTML = """<!DOCTYPE html>
<html>
<body>
  <nav>
    <a href="docs/install/">Install</a>
    <a href="/docs/quickstart/">Quick start</a>
  </nav>
  <section id="download-section">
    <h2>Download</h2>
  </section>
</body>
</html>
"""

INSTALL_MD = """# Install

Install the package with pip and point CONTENT_ROOT at your site checkout.

Continue with the [quick start](quickstart.md).
"""

QUICKSTART_MD = """# Quick start

Run the daily maintenance command to validate every cross-page link.

Back to the [home page](/).
"""

API_MD = """# API

The API reference lists every public class and function of the package.
"""


class FakeClock:
    """Strictly increasing UTC timestamps, one second apart."""

    def __init__(self, start: datetime | None = None) -> None:
        self.start = start or datetime(2026, 1, 5, 2, 0, tzinfo=timezone.utc)
        self._ticks = count()

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=next(self._ticks))


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """Hub links install and quickstart; api is never linked."""
    docs = tmp_path / "_docs"
    docs.mkdir()
    (tmp_path / "index.html").write_text(HUB_HTML, encoding="utf-8")
    (docs / "install.md").write_text(INSTALL_MD, encoding="utf-8")
    (docs / "quickstart.md").write_text(QUICKSTART_MD, encoding="utf-8")
    (docs / "api.md").write_text(API_MD, encoding="utf-8")
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(site: Path) -> Settings:
    return Settings(_env_file=None, content_root=site)


@pytest.fixture
def store(site: Path) -> ContentStore:
    return ContentStore(site / "_docs", site / "index.html")


@pytest.fixture
def extractor() -> MarkupReferenceExtractor:
    return MarkupReferenceExtractor(LinkTargetResolver())


@pytest.fixture
def validator(extractor) -> LinkGraphValidator:
    return LinkGraphValidator(extractor)


@pytest.fixture
def cache_store(site: Path) -> PreviewCacheStore:
    return PreviewCacheStore(site / ".sitesync" / "preview-cache.json")


@pytest.fixture
def synchronizer(store, cache_store, clock) -> PreviewSynchronizer:
    return PreviewSynchronizer(store, cache_store, MarkdownStripper(), clock=clock)


@pytest.fixture
def install_mapping() -> PreviewMapping:
    return PreviewMapping(
        source_id="install",
        insertion_point_id="install-preview",
        hub_section="download-section",
        max_length=60,
        link_text="View Installation Guide",
    )


@pytest.fixture
def phase_store(site: Path) -> PhaseStateStore:
    return PhaseStateStore(site / ".sitesync" / "rollout-phases.json")


@pytest.fixture
def controller(phase_store, site, clock) -> RolloutController:
    return RolloutController(
        phase_store,
        load_phase_definitions(),
        flags_path=site / "feature-flags.json",
        clock=clock,
    )


@pytest.fixture
def report_store(site: Path) -> ReportStore:
    return ReportStore(site / "maintenance-reports")


@pytest.fixture
def orchestrator(store, validator, synchronizer, controller, report_store, install_mapping, clock):
    return MaintenanceOrchestrator(
        store,
        validator,
        synchronizer,
        controller,
        report_store,
        [install_mapping],
        report_retention=5,
        clock=clock,
    )
