from fastapi import APIRouter, Depends
from typing import Dict, Any

from pytron.services.timer_service import PomodoroTimer
from pytron.services.tracker import DailyTracker
from ..dependencies import get_timer, get_tracker
from ..schemas import PomodoroSettingsRequest

router = APIRouter(prefix="/api/pomodoro", tags=["pomodoro"])

def _status(timer: PomodoroTimer, tracker: DailyTracker) -> Dict[str, Any]:
    return {
        "state": timer.status(),
        "today": timer.today_stats(tracker.today())
    }

@router.get("", response_model=Dict[str, Any])
async def get_pomodoro(timer: PomodoroTimer = Depends(get_timer), tracker: DailyTracker = Depends(get_tracker)):
    return _status(timer, tracker)

@router.post("/start", response_model=Dict[str, Any])
async def start_pomodoro(timer: PomodoroTimer = Depends(get_timer), tracker: DailyTracker = Depends(get_tracker)):
    await timer.start()
    return _status(timer, tracker)

@router.post("/pause", response_model=Dict[str, Any])
async def pause_pomodoro(timer: PomodoroTimer = Depends(get_timer), tracker: DailyTracker = Depends(get_tracker)):
    await timer.pause()
    return _status(timer, tracker)

@router.post("/reset", response_model=Dict[str, Any])
async def reset_pomodoro(timer: PomodoroTimer = Depends(get_timer), tracker: DailyTracker = Depends(get_tracker)):
    await timer.reset()
    return _status(timer, tracker)

@router.put("/settings", response_model=Dict[str, Any])
async def update_pomodoro_settings(
    request: PomodoroSettingsRequest,
    timer: PomodoroTimer = Depends(get_timer),
    tracker: DailyTracker = Depends(get_tracker)
):
    await timer.update_settings(
        work_duration=request.workDuration,
        break_duration=request.breakDuration,
        long_break_duration=request.longBreakDuration,
        sound_enabled=request.soundEnabled
    )
    return _status(timer, tracker)
