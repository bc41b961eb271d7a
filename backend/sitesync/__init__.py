"""SiteSync - cross-page maintenance for a documentation site checkout."""

__version__ = "0.1.0"
