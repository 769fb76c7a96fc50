#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Stores
Hourly log, task list and the application state snapshot

Version: 1.0.0
"""

import time
import threading
from datetime import date
from typing import Dict, List, Optional, Any, Iterator, Tuple
from dataclasses import dataclass, field
import logging

from pytron.core.models import (
    Category, LogEntry, Task, Settings, Goal, ValidationError,
    parse_category, validate_hour, validate_priority
)
from pytron.utils.datetime_utils import get_date_key, is_valid_date_key

logger = logging.getLogger(__name__)

DayLog = Dict[int, LogEntry]

# ===== ID GENERATION =====

class IdGenerator:
    """Millisecond-clock ids that never repeat, even within one clock tick"""

    def __init__(self, clock=None):
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            candidate = self._clock()
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)

    def observe(self, existing_id: str) -> None:
        """Make sure future ids sort after an id loaded from storage"""
        with self._lock:
            if existing_id.isdigit():
                self._last = max(self._last, int(existing_id))

# ===== LOG STORE =====

class LogStore:
    """date-key -> hour -> LogEntry"""

    def __init__(self, days: Optional[Dict[str, DayLog]] = None):
        self.days: Dict[str, DayLog] = days or {}

    def __contains__(self, date_key: str) -> bool:
        return date_key in self.days

    def __len__(self) -> int:
        return len(self.days)

    def get_day_log(self, date_key: str) -> DayLog:
        """Existing day log, or a new empty one registered under date_key"""
        if date_key not in self.days:
            self.days[date_key] = {}
        return self.days[date_key]

    def peek(self, date_key: str) -> Optional[DayLog]:
        """Day log without registering it; None when absent or empty"""
        day_log = self.days.get(date_key)
        return day_log or None

    def set_hour(self, date_key: str, hour: int, category: Any, note: str = "",
                 task_id: Optional[str] = None, task_priority: Optional[str] = None,
                 task_tags: Optional[List[str]] = None) -> LogEntry:
        """Overwrite whatever was logged for that hour"""
        if not is_valid_date_key(date_key):
            raise ValidationError(f"Invalid date key: {date_key}")
        hour = validate_hour(hour)
        entry = LogEntry(
            category=parse_category(category),
            note=note or "",
            task_id=task_id,
            task_priority=validate_priority(task_priority) if task_priority else None,
            task_tags=list(task_tags) if task_tags is not None else None
        )
        self.get_day_log(date_key)[hour] = entry
        return entry

    def entries(self) -> Iterator[Tuple[str, int, LogEntry]]:
        """Every logged hour as (date_key, hour, entry)"""
        for date_key, day_log in self.days.items():
            for hour, entry in day_log.items():
                yield date_key, hour, entry

    def to_document(self) -> Dict[str, Any]:
        return {
            date_key: {str(hour): entry.to_dict() for hour, entry in day_log.items()}
            for date_key, day_log in self.days.items()
        }

    @classmethod
    def from_document(cls, document: Any) -> "LogStore":
        """Parse the persisted log; anything malformed yields an empty store"""
        if document is None:
            return cls()
        if not isinstance(document, dict):
            logger.warning("Log document is not an object, starting with an empty log")
            return cls()

        days: Dict[str, DayLog] = {}
        for date_key, hours in document.items():
            if not is_valid_date_key(date_key) or not isinstance(hours, dict):
                logger.warning(f"Skipping malformed day {date_key!r}")
                continue
            day_log: DayLog = {}
            for hour_str, entry_data in hours.items():
                try:
                    day_log[validate_hour(hour_str)] = LogEntry.from_dict(entry_data)
                except ValidationError as e:
                    logger.warning(f"Skipping log entry {date_key} {hour_str}: {e}")
            days[date_key] = day_log
        return cls(days)

# ===== TASK STORE =====

class TaskStore:
    """Ordered task list"""

    def __init__(self, tasks: Optional[List[Task]] = None, id_generator: Optional[IdGenerator] = None):
        self.tasks: List[Task] = tasks or []
        self.id_generator = id_generator or IdGenerator()
        for task in self.tasks:
            self.id_generator.observe(task.id)

    def __len__(self) -> int:
        return len(self.tasks)

    def add(self, text: str, due_time: str = "", priority: str = "",
            duration: str = "", tag: str = "") -> Task:
        task = Task(
            id=self.id_generator.next_id(),
            text=text,
            due_time=due_time or "",
            priority=priority or "",
            duration=str(duration or ""),
            tag=tag or ""
        )
        self.tasks.append(task)
        logger.debug(f"Task added: {task.id}")
        return task

    def get(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def toggle(self, task_id: str, today: date) -> Optional[Task]:
        """Flip completion; completedAt follows the flag"""
        task = self.get(task_id)
        if task is None:
            return None
        task.completed = not task.completed
        task.completed_at = get_date_key(today) if task.completed else None
        return task

    def delete(self, task_id: str) -> bool:
        task = self.get(task_id)
        if task is None:
            return False
        self.tasks.remove(task)
        return True

    def sorted_for_display(self) -> List[Task]:
        """Incomplete first, insertion order within each group"""
        return sorted(self.tasks, key=lambda t: t.completed)

    def completed_count(self) -> int:
        return sum(1 for task in self.tasks if task.completed)

    def completed_on(self, day: date) -> List[Task]:
        date_key = get_date_key(day)
        return [task for task in self.tasks if task.completed and task.completed_at == date_key]

    def to_document(self) -> List[Dict[str, Any]]:
        return [task.to_dict() for task in self.tasks]

    @classmethod
    def from_document(cls, document: Any, id_generator: Optional[IdGenerator] = None) -> "TaskStore":
        if document is None:
            return cls(id_generator=id_generator)
        if not isinstance(document, list):
            logger.warning("Tasks document is not a list, starting with no tasks")
            return cls(id_generator=id_generator)

        tasks = []
        for item in document:
            try:
                tasks.append(Task.from_dict(item))
            except (ValidationError, TypeError) as e:
                logger.warning(f"Skipping malformed task: {e}")
        return cls(tasks, id_generator)

# ===== APPLICATION STATE =====

@dataclass
class AppState:
    """Everything the engines read, owned by the application root"""
    log: LogStore = field(default_factory=LogStore)
    tasks: TaskStore = field(default_factory=TaskStore)
    settings: Settings = field(default_factory=Settings)
    unlocked_badges: List[str] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)

    def count_by_category(self, category: Category) -> int:
        return sum(1 for _, _, entry in self.log.entries() if entry.category is category)

    def total_hours_tracked(self) -> int:
        return sum(len(day_log) for day_log in self.log.days.values())
