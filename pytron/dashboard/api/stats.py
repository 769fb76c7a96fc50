from fastapi import APIRouter, Depends, Query
from typing import Dict, Any

from pytron.services.tracker import DailyTracker
from ..dependencies import get_tracker

router = APIRouter(prefix="/api/stats", tags=["stats"])

@router.get("/today", response_model=Dict[str, Any])
async def get_today(tracker: DailyTracker = Depends(get_tracker)):
    """
    Dashboard header: deep work vs target, efficiency, streak
    """
    return tracker.today_summary()

@router.get("/analytics", response_model=Dict[str, Any])
async def get_analytics(
    days: int = Query(7, ge=1, le=365),
    tracker: DailyTracker = Depends(get_tracker)
):
    """
    Window metrics, productivity score and insights
    """
    return tracker.analytics(days)

@router.get("/weekly", response_model=Dict[str, Any])
async def get_weekly(tracker: DailyTracker = Depends(get_tracker)):
    return tracker.weekly()
