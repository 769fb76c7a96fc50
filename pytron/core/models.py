#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Core Data Models
Data models with validation and typing

Version: 1.0.0
"""

from datetime import datetime
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum
import logging

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class Category(Enum):
    """Activity categories for an hour of the day"""
    DEEP_WORK = "DEEP_WORK"
    SHALLOW = "SHALLOW"
    DISTRACTION = "DISTRACTION"
    REST = "REST"
    SLEEP = "SLEEP"
    EXERCISE = "EXERCISE"

    @property
    def points(self) -> int:
        """Efficiency points awarded for one hour"""
        return CATEGORY_POINTS[self]

    @property
    def in_denominator(self) -> bool:
        """Whether the hour counts toward the efficiency denominator"""
        return self is not Category.SLEEP

    @property
    def label(self) -> str:
        return self.value.replace('_', ' ').title()

CATEGORY_POINTS: Dict[Category, int] = {
    Category.DEEP_WORK: 100,
    Category.SHALLOW: 50,
    Category.DISTRACTION: -50,
    Category.REST: 0,
    Category.SLEEP: 0,
    Category.EXERCISE: 50,
}

class TaskPriority(Enum):
    """Task priorities"""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NONE = ""

class GoalType(Enum):
    """Goal types"""
    HOURS = "hours"
    STREAK = "streak"
    TASKS = "tasks"
    CUSTOM = "custom"

MILESTONES = (25, 50, 75, 100)

# ===== VALIDATION HELPERS =====

class ValidationError(ValueError):
    """Data validation error"""
    pass

def validate_text(text: str, min_length: int = 1, max_length: int = 1000, field_name: str = "text") -> str:
    """Validate text fields"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} must be a string")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} must contain at least {min_length} characters")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} must contain at most {max_length} characters")

    return text

def validate_number(value: Any, field_name: str) -> float:
    """int or float, never bool"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number")
    return value

def validate_optional_text(value: Any, field_name: str) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value

def parse_category(value: Any) -> Category:
    """Category from an enum member or its string value"""
    if isinstance(value, Category):
        return value
    try:
        return Category(value)
    except ValueError:
        valid_values = [c.value for c in Category]
        raise ValidationError(f"category must be one of: {valid_values}")

def validate_hour(hour: Any) -> int:
    """Hour of day as an int in 0..23"""
    try:
        hour = int(hour)
    except (TypeError, ValueError):
        raise ValidationError(f"hour must be an integer, got {hour!r}")
    if not 0 <= hour <= 23:
        raise ValidationError(f"hour must be between 0 and 23, got {hour}")
    return hour

def validate_priority(value: Any) -> str:
    if value is None:
        return ""
    try:
        return TaskPriority(value).value
    except ValueError:
        raise ValidationError("priority must be one of: HIGH, MEDIUM, LOW or empty")

# ===== CORE MODELS =====

@dataclass
class LogEntry:
    """What one hour of a day was spent on"""
    category: Category
    note: str = ""
    task_id: Optional[str] = None
    task_priority: Optional[str] = None
    task_tags: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'category': self.category.value,
            'note': self.note
        }
        if self.task_id is not None:
            data['taskId'] = self.task_id
        if self.task_priority is not None:
            data['taskPriority'] = self.task_priority
        if self.task_tags is not None:
            data['taskTags'] = list(self.task_tags)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogEntry":
        if not isinstance(data, dict):
            raise ValidationError("log entry must be an object")
        tags = data.get('taskTags')
        if tags is not None and not isinstance(tags, list):
            raise ValidationError("taskTags must be a list")
        task_id = data.get('taskId')
        return cls(
            category=parse_category(data.get('category')),
            note=data.get('note') or "",
            task_id=str(task_id) if task_id is not None else None,
            task_priority=data.get('taskPriority'),
            task_tags=[str(t) for t in tags] if tags is not None else None
        )

@dataclass
class Task:
    """To-do item"""
    id: str
    text: str
    completed: bool = False
    completed_at: Optional[str] = None  # date-key
    due_time: str = ""  # HH:MM
    priority: str = ""
    duration: str = ""  # minutes
    tag: str = ""
    notified_overdue: bool = False

    def __post_init__(self):
        self.text = validate_text(self.text, min_length=1, max_length=500, field_name="text")
        self.priority = validate_priority(self.priority)
        for name in ('due_time', 'duration', 'tag'):
            if not isinstance(getattr(self, name), str):
                raise ValidationError(f"{name} must be a string")
        validate_optional_text(self.completed_at, 'completed_at')

    @property
    def tags(self) -> List[str]:
        """Tag field split into individual tags"""
        return [t.strip() for t in self.tag.split(',') if t.strip()]

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'text': self.text,
            'completed': self.completed,
            'completedAt': self.completed_at,
            'dueTime': self.due_time,
            'priority': self.priority,
            'duration': self.duration,
            'tag': self.tag
        }
        if self.notified_overdue:
            data['notifiedOverdue'] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        if not isinstance(data, dict) or 'id' not in data:
            raise ValidationError("task must be an object with an id")
        duration = data.get('duration') or ""
        if isinstance(duration, (int, float)) and not isinstance(duration, bool):
            duration = str(duration)
        return cls(
            id=str(data['id']),
            text=data.get('text', ''),
            completed=bool(data.get('completed', False)),
            completed_at=data.get('completedAt'),
            due_time=data.get('dueTime') or "",
            priority=data.get('priority') or "",
            duration=duration,
            tag=data.get('tag') or "",
            notified_overdue=bool(data.get('notifiedOverdue', False))
        )

@dataclass
class Settings:
    """User settings"""
    target_hours: int = 8
    streak_threshold: int = 80  # percent
    user_name: str = ""
    avatar_style: str = "initials"

    def __post_init__(self):
        if not isinstance(self.target_hours, int) or isinstance(self.target_hours, bool):
            raise ValidationError("targetHours must be an integer")
        if (not isinstance(self.streak_threshold, int) or isinstance(self.streak_threshold, bool)
                or not 0 <= self.streak_threshold <= 100):
            raise ValidationError("streakThreshold must be an integer between 0 and 100")

    @property
    def required_hours(self) -> float:
        """Deep-work hours a day needs to count toward the streak"""
        return self.target_hours * (self.streak_threshold / 100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'targetHours': self.target_hours,
            'streakThreshold': self.streak_threshold,
            'userName': self.user_name,
            'avatarStyle': self.avatar_style
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        defaults = cls()
        return cls(
            target_hours=data.get('targetHours', defaults.target_hours),
            streak_threshold=data.get('streakThreshold', defaults.streak_threshold),
            user_name=data.get('userName', defaults.user_name),
            avatar_style=data.get('avatarStyle', defaults.avatar_style)
        )

@dataclass
class Goal:
    """User-defined numeric target"""
    id: str
    title: str
    type: str
    target: float
    current: float = 0
    category: Optional[str] = None
    deadline: Optional[str] = None
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    completed_at: Optional[str] = None
    milestones: Dict[str, bool] = field(default_factory=lambda: {str(m): False for m in MILESTONES})

    def __post_init__(self):
        self.title = validate_text(self.title, min_length=1, max_length=200, field_name="title")
        try:
            GoalType(self.type)
        except ValueError:
            raise ValidationError(f"type must be one of: {[t.value for t in GoalType]}")
        validate_number(self.target, 'target')
        validate_number(self.current, 'current')
        for name in ('deadline', 'created_at', 'completed_at'):
            validate_optional_text(getattr(self, name), name)
        if self.category is not None:
            self.category = parse_category(self.category).value
        for milestone in MILESTONES:
            self.milestones.setdefault(str(milestone), False)

    @property
    def goal_type(self) -> GoalType:
        return GoalType(self.type)

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'type': self.type,
            'target': self.target,
            'current': self.current,
            'category': self.category,
            'deadline': self.deadline,
            'createdAt': self.created_at,
            'completedAt': self.completed_at,
            'milestones': dict(self.milestones)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        milestones = data.get('milestones') or {}
        return cls(
            id=str(data['id']),
            title=data['title'],
            type=data['type'],
            target=data['target'],
            current=data.get('current', 0),
            category=data.get('category'),
            deadline=data.get('deadline'),
            created_at=data.get('createdAt') or datetime.now().isoformat(),
            completed_at=data.get('completedAt'),
            milestones={str(k): bool(v) for k, v in milestones.items()}
        )

# ===== EVENTS =====

@dataclass(frozen=True)
class BadgeUnlocked:
    """Emitted once when a badge transitions locked -> unlocked"""
    badge_id: str
    name: str
    description: str
    rarity: str

@dataclass(frozen=True)
class GoalMilestoneReached:
    goal_id: str
    title: str
    milestone: int

@dataclass(frozen=True)
class GoalCompleted:
    goal_id: str
    title: str
    target: float
