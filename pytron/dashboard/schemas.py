from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict, Any, Literal, Union

from pytron.core.models import Category, GoalType

# Request models

class LogHourRequest(BaseModel):
    category: Category
    note: str = Field("", max_length=1000)
    taskId: Optional[str] = None

class TaskCreateRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)
    dueTime: str = Field("", pattern=r"^$|^([01]\d|2[0-3]):[0-5]\d$")
    priority: Literal["HIGH", "MEDIUM", "LOW", ""] = ""
    duration: Union[str, int] = ""
    tag: str = ""

    @field_validator('text')
    @classmethod
    def validate_text(cls, v):
        if not v.strip():
            raise ValueError('Task text must not be empty')
        return v.strip()

class GoalCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    type: GoalType
    target: float = Field(..., ge=0)
    category: Optional[Category] = None
    deadline: Optional[str] = None

class GoalUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[GoalType] = None
    target: Optional[float] = Field(None, ge=0)
    current: Optional[float] = None
    category: Optional[Category] = None
    deadline: Optional[str] = None

class SettingsUpdateRequest(BaseModel):
    targetHours: Optional[int] = Field(None, ge=1, le=24)
    streakThreshold: Optional[int] = Field(None, ge=0, le=100)
    userName: Optional[str] = Field(None, max_length=100)
    avatarStyle: Optional[str] = Field(None, max_length=50)

class PomodoroSettingsRequest(BaseModel):
    workDuration: Optional[int] = Field(None, ge=1, le=60)
    breakDuration: Optional[int] = Field(None, ge=1, le=30)
    longBreakDuration: Optional[int] = Field(None, ge=1, le=60)
    soundEnabled: Optional[bool] = None

class NotificationSettingsRequest(BaseModel):
    enabled: Optional[bool] = None
    dailyReminderEnabled: Optional[bool] = None
    dailyReminderTime: Optional[str] = None
    taskDeadlinesEnabled: Optional[bool] = None
    streakAlertsEnabled: Optional[bool] = None
    weeklySummaryEnabled: Optional[bool] = None
    quietHoursEnabled: Optional[bool] = None
    quietHoursStart: Optional[str] = None
    quietHoursEnd: Optional[str] = None

# Response models

class HealthCheck(BaseModel):
    status: str
    service: str
    version: str
    timestamp: float
    data: Dict[str, Any] = {}

class ImportResult(BaseModel):
    success: bool
    imported: List[str]
    message: str
