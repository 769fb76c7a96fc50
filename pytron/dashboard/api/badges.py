from fastapi import APIRouter, Depends
from typing import Dict, Any

from pytron.services.tracker import DailyTracker
from ..dependencies import get_tracker

router = APIRouter(prefix="/api/badges", tags=["badges"])

@router.get("", response_model=Dict[str, Any])
async def get_badges(tracker: DailyTracker = Depends(get_tracker)):
    """
    Full catalog with unlock state and progress
    """
    return tracker.badges_view()
