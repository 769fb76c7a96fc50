from fastapi import APIRouter, Depends
from typing import Dict, Any

from pytron.services.tracker import DailyTracker
from ..dependencies import get_tracker
from ..schemas import TaskCreateRequest

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

@router.get("", response_model=Dict[str, Any])
async def get_all_tasks(tracker: DailyTracker = Depends(get_tracker)):
    """
    Tasks for display: incomplete first
    """
    tasks = tracker.list_tasks()
    return {
        "tasks": [task.to_dict() for task in tasks],
        "total": len(tasks),
        "completed": tracker.state.tasks.completed_count()
    }

@router.post("", response_model=Dict[str, Any], status_code=201)
async def create_task(request: TaskCreateRequest, tracker: DailyTracker = Depends(get_tracker)):
    task = tracker.add_task(
        request.text,
        due_time=request.dueTime,
        priority=request.priority,
        duration=str(request.duration),
        tag=request.tag
    )
    return task.to_dict()

@router.post("/{task_id}/toggle", response_model=Dict[str, Any])
async def toggle_task(task_id: str, tracker: DailyTracker = Depends(get_tracker)):
    return tracker.toggle_task(task_id).to_dict()

@router.delete("/{task_id}", response_model=Dict[str, Any])
async def delete_task(task_id: str, tracker: DailyTracker = Depends(get_tracker)):
    tracker.delete_task(task_id)
    return {"success": True, "id": task_id}
