#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Daily Tracker
Application root: owns the state, persists every mutation,
re-evaluates badges and goals and notifies listeners
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Any, Callable
import logging

from pytron.core.database import (
    Storage, BackupManager, STORAGE_KEY, SETTINGS_KEY, TASKS_KEY, BADGES_KEY, GOALS_KEY
)
from pytron.core.models import Goal, LogEntry, Settings, Task, ValidationError
from pytron.core.stores import AppState, IdGenerator, LogStore, TaskStore
from pytron.core.achievements import BadgeManager, unlocked_badges_from_document
from pytron.core.goals import GoalEngine, GoalNotFoundError, goals_from_document
from pytron.core import metrics
from pytron.utils.datetime_utils import WEEKDAY_ABBR, now_local, get_date_key

logger = logging.getLogger(__name__)

Listener = Callable[[List[Any]], None]

class TaskNotFoundError(KeyError):
    """Unknown task id"""
    pass

class DailyTracker:
    """
    Single owner of the application state

    Every mutating operation follows the same sequence:
    - mutate the in-memory state
    - persist the affected document
    - re-evaluate badges, then goals
    - hand the resulting events to registered listeners
    """

    def __init__(self, storage: Storage, clock: Optional[Callable[[], datetime]] = None,
                 timezone: Optional[str] = None, backup_manager: Optional[BackupManager] = None):
        self.storage = storage
        self.clock = clock or (lambda: now_local(timezone))
        self.backup_manager = backup_manager
        self.id_generator = IdGenerator()
        self.state = AppState(tasks=TaskStore(id_generator=self.id_generator))
        self.badges = BadgeManager()
        self.goals = GoalEngine(self.state, self.id_generator, clock=self.clock)
        self.listeners: List[Listener] = []

        self.load()

    # ===== LIFECYCLE =====

    def load(self) -> None:
        """Read every document; each step is isolated from the others"""
        steps = (
            ('log', self._load_log),
            ('settings', self._load_settings),
            ('tasks', self._load_tasks),
            ('badges', self._load_badges),
            ('goals', self._load_goals),
        )
        for name, step in steps:
            try:
                step()
            except Exception as e:
                logger.error(f"Failed to load {name}, keeping defaults: {e}")

        logger.info(
            f"Tracker loaded: {len(self.state.log)} days, {len(self.state.tasks)} tasks, "
            f"{len(self.state.goals)} goals, {len(self.state.unlocked_badges)} badges"
        )

    def _load_log(self):
        self.state.log = LogStore.from_document(self.storage.load(STORAGE_KEY))

    def _load_settings(self):
        document = self.storage.load(SETTINGS_KEY)
        self.state.settings = Settings.from_dict(document) if isinstance(document, dict) else Settings()

    def _load_tasks(self):
        self.state.tasks = TaskStore.from_document(self.storage.load(TASKS_KEY), self.id_generator)

    def _load_badges(self):
        self.state.unlocked_badges = unlocked_badges_from_document(self.storage.load(BADGES_KEY))

    def _load_goals(self):
        self.state.goals = goals_from_document(self.storage.load(GOALS_KEY))
        for goal in self.state.goals:
            self.id_generator.observe(goal.id)

    def reload(self) -> List[Any]:
        self.load()
        return self.refresh()

    def save_log(self):
        self.storage.save(STORAGE_KEY, self.state.log.to_document())

    def save_settings(self):
        self.storage.save(SETTINGS_KEY, self.state.settings.to_dict())

    def save_tasks(self):
        self.storage.save(TASKS_KEY, self.state.tasks.to_document())

    def save_badges(self):
        self.storage.save(BADGES_KEY, list(self.state.unlocked_badges))

    def save_goals(self):
        self.storage.save(GOALS_KEY, [goal.to_dict() for goal in self.state.goals])

    def add_listener(self, listener: Listener) -> None:
        """Called with the list of new badge/goal events after every refresh"""
        self.listeners.append(listener)

    def now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        return self.clock().date()

    def refresh(self) -> List[Any]:
        """Re-evaluate badges then goals, persist what changed, notify listeners"""
        today = self.today()
        events: List[Any] = list(self.badges.check_badges(self.state, today))
        if events:
            self.save_badges()

        if self.state.goals:
            events.extend(self.goals.update_all_goal_progress(today))
            self.save_goals()

        for listener in self.listeners:
            try:
                listener(events)
            except Exception as e:
                logger.error(f"Tracker listener failed: {e}")

        return events

    # ===== LOG =====

    def get_day_log(self, date_key: Optional[str] = None) -> Dict[int, LogEntry]:
        """Logged hours of a day without registering an empty day"""
        return self.state.log.peek(date_key or get_date_key(self.today())) or {}

    def log_hour(self, hour: int, category: Any, note: str = "", date_key: Optional[str] = None,
                 task_id: Optional[str] = None) -> LogEntry:
        """Record one hour (today by default); a linked task lends its priority and tags"""
        task_priority = None
        task_tags = None
        if task_id:
            task = self.state.tasks.get(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            task_priority = task.priority or None
            task_tags = task.tags or None

        entry = self.state.log.set_hour(
            date_key or get_date_key(self.today()), hour, category, note,
            task_id=task_id or None, task_priority=task_priority, task_tags=task_tags
        )
        self.save_log()
        self.refresh()
        return entry

    def log_hour_if_empty(self, moment: datetime, category: Any, note: str = "") -> bool:
        """Log the hour of `moment` unless something is already recorded there"""
        date_key = get_date_key(moment)
        day_log = self.state.log.peek(date_key)
        if day_log and moment.hour in day_log:
            return False
        self.log_hour(moment.hour, category, note, date_key=date_key)
        return True

    # ===== TASKS =====

    def list_tasks(self) -> List[Task]:
        return self.state.tasks.sorted_for_display()

    def add_task(self, text: str, **meta) -> Task:
        task = self.state.tasks.add(text, **meta)
        self.save_tasks()
        self.refresh()
        return task

    def toggle_task(self, task_id: str) -> Task:
        task = self.state.tasks.toggle(task_id, self.today())
        if task is None:
            raise TaskNotFoundError(task_id)
        self.save_tasks()
        self.refresh()
        return task

    def delete_task(self, task_id: str) -> None:
        if not self.state.tasks.delete(task_id):
            raise TaskNotFoundError(task_id)
        self.save_tasks()
        self.refresh()

    def mark_task_notified(self, task: Task) -> None:
        task.notified_overdue = True
        self.save_tasks()

    # ===== SETTINGS =====

    def update_settings(self, changes: Dict[str, Any]) -> Settings:
        """Merge camelCase changes into the settings; invalid values leave them untouched"""
        merged = {**self.state.settings.to_dict(), **changes}
        self.state.settings = Settings.from_dict(merged)
        self.save_settings()
        self.refresh()
        return self.state.settings

    # ===== GOALS =====

    def create_goal(self, **data) -> Goal:
        goal = self.goals.create_goal(**data)
        self.save_goals()
        self.refresh()
        return goal

    def update_goal(self, goal_id: str, updates: Dict[str, Any]) -> Goal:
        goal = self.goals.update_goal(goal_id, updates)
        self.save_goals()
        self.refresh()
        return goal

    def delete_goal(self, goal_id: str) -> None:
        if not self.goals.delete_goal(goal_id):
            raise GoalNotFoundError(goal_id)
        self.save_goals()
        self.refresh()

    def goals_view(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            'active': [self.goals.goal_view(g) for g in self.goals.active_goals()],
            'completed': [self.goals.goal_view(g) for g in self.goals.completed_goals()]
        }

    # ===== DERIVED VIEWS =====

    def today_summary(self) -> Dict[str, Any]:
        return metrics.today_summary(self.state, self.today())

    def analytics(self, days: int = 7) -> Dict[str, Any]:
        if days < 1:
            raise ValidationError("days must be a positive integer")
        return metrics.range_report(self.state, self.today(), days)

    def weekly(self) -> Dict[str, Any]:
        today = self.today()
        return {
            'labels': list(WEEKDAY_ABBR),
            'deepWork': metrics.weekly_deep_work(self.state.log, today),
            'streak': metrics.calculate_streak(self.state.log, self.state.settings, today)
        }

    def badges_view(self) -> Dict[str, Any]:
        return {
            'badges': self.badges.get_all_badges(self.state, self.today()),
            'summary': self.badges.get_summary(self.state)
        }
