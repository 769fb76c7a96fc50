from fastapi import APIRouter, Depends
from typing import Dict, Any

from pytron.services.tracker import DailyTracker
from ..dependencies import get_tracker
from ..schemas import SettingsUpdateRequest

router = APIRouter(prefix="/api/settings", tags=["settings"])

@router.get("", response_model=Dict[str, Any])
async def get_settings(tracker: DailyTracker = Depends(get_tracker)):
    return tracker.state.settings.to_dict()

@router.put("", response_model=Dict[str, Any])
async def update_settings(request: SettingsUpdateRequest, tracker: DailyTracker = Depends(get_tracker)):
    changes = request.model_dump(exclude_none=True)
    return tracker.update_settings(changes).to_dict()
