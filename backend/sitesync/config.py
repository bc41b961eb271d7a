"""
Application Configuration
=========================

Centralized configuration using Pydantic Settings for type-safe environment variables.
All config is loaded from environment variables or .env file.

Environment Setup:
------------------
For a site checkout, create a .env file next to where the tool runs:
    CONTENT_ROOT=/srv/site
    DOCS_DIR=_docs
    HUB_PATH=index.html
    REPORTS_DIR=maintenance-reports
    REDIS_URL=redis://localhost:6379/0

Path Resolution:
----------------
DOCS_DIR, HUB_PATH, STATE_DIR, REPORTS_DIR and the optional definition
files are resolved against CONTENT_ROOT unless they are absolute.

Only entry points (CLI, Celery tasks, dashboard API) read these settings.
Services receive plain values through `sitesync.bootstrap`.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic Settings provides:
    - Automatic type coercion (str -> int, str -> Path)
    - Validation with clear error messages
    - .env file support
    - Case-insensitive matching
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # CONTENT_ROOT == content_root
        extra="ignore",  # Ignore unknown env vars without error
        populate_by_name=True,  # Allow both field name and alias
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = "SiteSync"
    debug: bool = False  # Set DEBUG=true for verbose logging

    # -------------------------------------------------------------------------
    # Content Store
    # -------------------------------------------------------------------------
    content_root: Path = Path(".")
    docs_dir: Path = Path("_docs")  # Section documents (.md / .html)
    hub_path: Path = Path("index.html")  # The single Hub document
    hub_id: str = "index"
    docs_url_prefix: str = "docs"  # Sections render under /docs/<id>/

    # -------------------------------------------------------------------------
    # Persisted State
    # -------------------------------------------------------------------------
    # Both files are rewritten as a whole on every save
    state_dir: Path = Path(".sitesync")
    preview_cache_file: str = "preview-cache.json"
    phase_state_file: str = "rollout-phases.json"

    # Optional definition files; built-in defaults are used when unset
    preview_mappings_file: Path | None = None
    rollout_phases_file: Path | None = None

    # Flag map consumed by whatever renders the Hub
    feature_flags_file: Path | None = None

    # -------------------------------------------------------------------------
    # Previews
    # -------------------------------------------------------------------------
    min_paragraph_length: int = Field(default=30, ge=0)
    preview_fallback_text: str = "Documentation content available. Click to read more."

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------
    reports_dir: Path = Path("maintenance-reports")
    report_retention: int = Field(default=30, ge=1)  # Timestamped reports kept by the monthly prune

    # -------------------------------------------------------------------------
    # Celery Beat (scheduled maintenance runs)
    # -------------------------------------------------------------------------
    redis_url: str = "redis://localhost:6379/0"

    # -------------------------------------------------------------------------
    # Dashboard API
    # -------------------------------------------------------------------------
    api_prefix: str = "/api"
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        alias="CORS_ORIGINS"
    )

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    def resolve(self, path: Path) -> Path:
        """Resolve a configured path against the content root."""
        if path.is_absolute():
            return path
        return self.content_root / path

    @property
    def docs_root(self) -> Path:
        return self.resolve(self.docs_dir)

    @property
    def hub_file(self) -> Path:
        return self.resolve(self.hub_path)

    @property
    def preview_cache_path(self) -> Path:
        return self.resolve(self.state_dir) / self.preview_cache_file

    @property
    def phase_state_path(self) -> Path:
        return self.resolve(self.state_dir) / self.phase_state_file

    @property
    def reports_path(self) -> Path:
        return self.resolve(self.reports_dir)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    This is important because loading from .env has I/O overhead.
    """
    return Settings()


# Global settings instance - entry points import this
# Usage: from sitesync.config import settings
settings = get_settings()
