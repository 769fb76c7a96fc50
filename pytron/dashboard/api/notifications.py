from fastapi import APIRouter, Depends
from typing import Dict, Any

from pytron.services.notifications import NotificationService
from ..dependencies import get_notifications
from ..schemas import NotificationSettingsRequest

router = APIRouter(prefix="/api/notifications", tags=["notifications"])

@router.get("/settings", response_model=Dict[str, Any])
async def get_notification_settings(notifications: NotificationService = Depends(get_notifications)):
    return notifications.settings

@router.put("/settings", response_model=Dict[str, Any])
async def update_notification_settings(
    request: NotificationSettingsRequest,
    notifications: NotificationService = Depends(get_notifications)
):
    """
    Merge the settings and reschedule every reminder job
    """
    return notifications.update_settings(request.model_dump(exclude_none=True))

@router.post("/test", response_model=Dict[str, Any])
async def send_test_notification(notifications: NotificationService = Depends(get_notifications)):
    return {"sent": notifications.send_test_notification()}
