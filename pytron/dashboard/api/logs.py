from fastapi import APIRouter, Depends, HTTPException, Path
from typing import Dict, Any

from pytron.services.tracker import DailyTracker
from pytron.utils.datetime_utils import is_valid_date_key
from ..dependencies import get_tracker
from ..schemas import LogHourRequest

router = APIRouter(prefix="/api/logs", tags=["logs"])

def _check_date(date_key: str) -> str:
    if not is_valid_date_key(date_key):
        raise HTTPException(status_code=422, detail=f"Invalid date: {date_key}, expected YYYY-MM-DD")
    return date_key

@router.get("/{date_key}", response_model=Dict[str, Any])
async def get_day_log(date_key: str, tracker: DailyTracker = Depends(get_tracker)):
    """
    Logged hours of one day, keyed by hour
    """
    day_log = tracker.get_day_log(_check_date(date_key))
    return {
        "date": date_key,
        "hours": {str(hour): entry.to_dict() for hour, entry in sorted(day_log.items())}
    }

@router.put("/{date_key}/{hour}", response_model=Dict[str, Any])
async def log_hour(
    request: LogHourRequest,
    date_key: str,
    hour: int = Path(..., ge=0, le=23),
    tracker: DailyTracker = Depends(get_tracker)
):
    """
    Record (or overwrite) one hour
    """
    entry = tracker.log_hour(
        hour,
        request.category,
        request.note,
        date_key=_check_date(date_key),
        task_id=request.taskId
    )
    return {
        "date": date_key,
        "hour": hour,
        "entry": entry.to_dict(),
        "today": tracker.today_summary()
    }
