"""API routes for rollout state (read-only)."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from sitesync.api.deps import get_rollout_controller
from sitesync.errors import StoreIOError
from sitesync.models.rollout import RolloutPhase
from sitesync.services.rollout_service import RolloutController

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/phases", response_model=list[RolloutPhase])
def list_phases(controller: RolloutController = Depends(get_rollout_controller)):
    try:
        return controller.status()
    except StoreIOError as e:
        logger.error(f"Failed to load rollout state: {e}")
        raise HTTPException(status_code=500, detail="Rollout state is unreadable")


@router.get("/history", response_model=list[RolloutPhase])
def deployment_history(controller: RolloutController = Depends(get_rollout_controller)):
    """Deployed phases in the order they were deployed."""
    try:
        return controller.history()
    except StoreIOError as e:
        logger.error(f"Failed to load rollout state: {e}")
        raise HTTPException(status_code=500, detail="Rollout state is unreadable")
