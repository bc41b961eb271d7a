from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from sitesync.errors import StoreIOError
from sitesync.schemas.report import MaintenanceReport
from sitesync.utils.files import atomic_write_text

logger = logging.getLogger(__name__)

LATEST_REPORT = "latest-maintenance.json"
REPORT_PREFIX = "maintenance-"


class ReportStore:
    """
    Report sink for maintenance runs.

    Every run is written twice: a timestamped `maintenance-<run_id>.json`
    and `latest-maintenance.json`. Run ids sort chronologically, so the
    file names do too.
    """

    def __init__(self, reports_dir: Path) -> None:
        self.reports_dir = reports_dir

    def _timestamped(self) -> list[Path]:
        if not self.reports_dir.is_dir():
            return []
        return sorted(
            p for p in self.reports_dir.glob(f"{REPORT_PREFIX}*.json") if p.name != LATEST_REPORT
        )

    def save(self, report: MaintenanceReport) -> Path:
        payload = report.model_dump_json(indent=2) + "\n"
        path = self.reports_dir / f"{REPORT_PREFIX}{report.run_id}.json"
        try:
            atomic_write_text(path, payload)
            atomic_write_text(self.reports_dir / LATEST_REPORT, payload)
        except OSError as e:
            raise StoreIOError(f"Failed to write report {path}: {e}") from e
        logger.info(f"Maintenance report saved to {path}")
        return path

    @staticmethod
    def _load(path: Path) -> MaintenanceReport:
        try:
            return MaintenanceReport.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise StoreIOError(f"Failed to read report {path}: {e}") from e
        except ValidationError as e:
            raise StoreIOError(f"Invalid report {path}: {e}") from e

    def latest(self) -> MaintenanceReport | None:
        path = self.reports_dir / LATEST_REPORT
        if not path.exists():
            return None
        return self._load(path)

    def list_reports(self, limit: int = 20) -> list[MaintenanceReport]:
        """Most recent reports first. Unreadable files are skipped."""
        reports: list[MaintenanceReport] = []
        for path in reversed(self._timestamped()):
            if len(reports) >= limit:
                break
            try:
                reports.append(self._load(path))
            except StoreIOError as e:
                logger.warning(f"Skipping unreadable report {path.name}: {e}")
        return reports

    def prune(self, keep: int) -> list[str]:
        """Delete all but the newest `keep` timestamped reports."""
        files = self._timestamped()
        stale = files[:-keep] if keep > 0 else files
        removed: list[str] = []
        for path in stale:
            try:
                path.unlink()
            except OSError as e:
                raise StoreIOError(f"Failed to delete report {path}: {e}") from e
            removed.append(path.name)
        if removed:
            logger.info(f"Pruned {len(removed)} old maintenance reports")
        return removed
