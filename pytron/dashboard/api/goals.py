from fastapi import APIRouter, Depends
from typing import Dict, Any

from pytron.services.tracker import DailyTracker
from ..dependencies import get_tracker
from ..schemas import GoalCreateRequest, GoalUpdateRequest

router = APIRouter(prefix="/api/goals", tags=["goals"])

@router.get("", response_model=Dict[str, Any])
async def get_goals(tracker: DailyTracker = Depends(get_tracker)):
    return tracker.goals_view()

@router.post("", response_model=Dict[str, Any], status_code=201)
async def create_goal(request: GoalCreateRequest, tracker: DailyTracker = Depends(get_tracker)):
    goal = tracker.create_goal(
        title=request.title,
        type=request.type.value,
        target=request.target,
        category=request.category.value if request.category else None,
        deadline=request.deadline
    )
    return tracker.goals.goal_view(goal)

@router.patch("/{goal_id}", response_model=Dict[str, Any])
async def update_goal(goal_id: str, request: GoalUpdateRequest, tracker: DailyTracker = Depends(get_tracker)):
    """
    Partial update; only the fields sent are changed
    """
    updates = request.model_dump(exclude_unset=True, mode="json")
    goal = tracker.update_goal(goal_id, updates)
    return tracker.goals.goal_view(goal)

@router.delete("/{goal_id}", response_model=Dict[str, Any])
async def delete_goal(goal_id: str, tracker: DailyTracker = Depends(get_tracker)):
    tracker.delete_goal(goal_id)
    return {"success": True, "id": goal_id}
