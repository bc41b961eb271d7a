"""
SiteSync Dashboard - FastAPI Application Entry Point
====================================================

Read-only view over what the maintenance runs produced: the persisted
reports and the current rollout state. Nothing here mutates the site
checkout; deploys and adjustments go through the CLI.

Running:
--------
    uvicorn sitesync.main:app --reload

Production Considerations:
--------------------------
- Put authentication in front of it; reports list file paths of the checkout
- Serve it from the same host as the report directory
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sitesync import __version__
from sitesync.api.routes import reports, rollout
from sitesync.config import settings


logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.app_name,
    description="Cross-page maintenance dashboard",
    version=__version__,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# =============================================================================
# API Routes
# =============================================================================

app.include_router(
    reports.router,
    prefix=f"{settings.api_prefix}/reports",
    tags=["reports"],
)
app.include_router(
    rollout.router,
    prefix=f"{settings.api_prefix}/rollout",
    tags=["rollout"],
)


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health():
    """Health check; also reports whether the content root is reachable."""
    return {
        "status": "healthy",
        "content_root": str(settings.content_root),
        "content_root_exists": settings.content_root.is_dir(),
        "reports_dir_exists": settings.reports_path.is_dir(),
    }
