#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Goal Engine
User-defined numeric targets with one-shot milestones

Version: 1.0.0
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Any, Callable, Union
import logging

from pytron.core.models import (
    Category, Goal, GoalType, GoalCompleted, GoalMilestoneReached, MILESTONES, ValidationError,
    validate_number
)
from pytron.core.stores import AppState, IdGenerator
from pytron.core.metrics import calculate_streak

logger = logging.getLogger(__name__)

GoalEvent = Union[GoalMilestoneReached, GoalCompleted]

UPDATABLE_FIELDS = {
    'title': 'title',
    'type': 'type',
    'target': 'target',
    'current': 'current',
    'category': 'category',
    'deadline': 'deadline',
}

class GoalNotFoundError(KeyError):
    """Unknown goal id"""
    pass

class GoalEngine:
    """Goal CRUD, progress recomputation and milestone detection"""

    def __init__(self, state: AppState, id_generator: Optional[IdGenerator] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.state = state
        self.id_generator = id_generator or IdGenerator()
        self.clock = clock or datetime.now
        self.notification_callbacks: List[Callable[[GoalEvent], None]] = []
        for goal in state.goals:
            self.id_generator.observe(goal.id)

    @property
    def goals(self) -> List[Goal]:
        return self.state.goals

    def add_notification_callback(self, callback: Callable[[GoalEvent], None]) -> None:
        self.notification_callbacks.append(callback)

    # ===== CRUD =====

    def create_goal(self, title: str, type: str, target: float,
                    category: Optional[str] = None, deadline: Optional[str] = None) -> Goal:
        goal = Goal(
            id=self.id_generator.next_id(),
            title=title,
            type=type,
            target=_validate_target(target),
            category=category or None,
            deadline=deadline or None,
            created_at=self.clock().isoformat()
        )
        self.goals.append(goal)
        logger.info(f"Goal created: {goal.title} ({goal.id})")
        return goal

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        return None

    def update_goal(self, goal_id: str, updates: Dict[str, Any]) -> Goal:
        """Apply a partial update of known fields; unknown keys are ignored"""
        goal = self.get_goal(goal_id)
        if goal is None:
            raise GoalNotFoundError(goal_id)

        changes = {UPDATABLE_FIELDS[k]: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
        if 'target' in changes:
            changes['target'] = _validate_target(changes['target'])
        if 'current' in changes:
            changes['current'] = validate_number(changes['current'], 'current')

        # Build the candidate first so a rejected update leaves the goal untouched
        candidate = Goal.from_dict({**goal.to_dict(), **changes})
        for attr in changes:
            setattr(goal, attr, getattr(candidate, attr))
        return goal

    def delete_goal(self, goal_id: str) -> bool:
        goal = self.get_goal(goal_id)
        if goal is None:
            return False
        self.goals.remove(goal)
        logger.info(f"Goal deleted: {goal_id}")
        return True

    def active_goals(self) -> List[Goal]:
        return [g for g in self.goals if not g.is_completed]

    def completed_goals(self) -> List[Goal]:
        return [g for g in self.goals if g.is_completed]

    # ===== PROGRESS =====

    def calculate_progress(self, goal: Goal, today: date) -> float:
        """Recompute `current` from the state; custom goals keep their value"""
        goal_type = goal.goal_type

        if goal_type is GoalType.HOURS:
            if goal.category:
                goal.current = self.state.count_by_category(Category(goal.category))
            else:
                goal.current = self.state.total_hours_tracked()
        elif goal_type is GoalType.STREAK:
            goal.current = calculate_streak(self.state.log, self.state.settings, today)
        elif goal_type is GoalType.TASKS:
            goal.current = self.state.tasks.completed_count()

        return goal.current

    @staticmethod
    def get_progress(goal: Goal) -> float:
        """Percentage in 0..100, unrounded"""
        if not goal.target:
            return 0
        return min(100, goal.current / goal.target * 100)

    def check_milestones(self, goal: Goal) -> List[int]:
        """Mark every newly crossed milestone, ascending; 100 completes the goal"""
        progress = self.get_progress(goal)
        reached: List[int] = []

        for milestone in MILESTONES:
            key = str(milestone)
            if progress < milestone or goal.milestones.get(key):
                continue

            goal.milestones[key] = True
            reached.append(milestone)

            if milestone == 100:
                self.complete_goal(goal)
            else:
                logger.info(f"🎉 Goal '{goal.title}' reached {milestone}%")
                self._notify(GoalMilestoneReached(goal_id=goal.id, title=goal.title, milestone=milestone))

        return reached

    def complete_goal(self, goal: Goal) -> None:
        goal.completed_at = self.clock().isoformat()
        goal.current = goal.target
        goal.milestones['100'] = True
        logger.info(f"🎯 Goal completed: {goal.title}")
        self._notify(GoalCompleted(goal_id=goal.id, title=goal.title, target=goal.target))

    def update_all_goal_progress(self, today: date) -> List[GoalEvent]:
        """Recompute and check milestones for every goal not yet completed"""
        events: List[GoalEvent] = []
        collector = events.append
        self.notification_callbacks.insert(0, collector)
        try:
            for goal in self.goals:
                if goal.is_completed:
                    continue
                self.calculate_progress(goal, today)
                self.check_milestones(goal)
        finally:
            self.notification_callbacks.remove(collector)
        return events

    def goal_view(self, goal: Goal) -> Dict[str, Any]:
        data = goal.to_dict()
        data['progress'] = self.get_progress(goal)
        return data

    def _notify(self, event: GoalEvent) -> None:
        for callback in list(self.notification_callbacks):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Goal notification callback failed: {e}")

def _validate_target(value: Any) -> float:
    value = validate_number(value, 'target')
    if value < 0:
        raise ValidationError("target must not be negative")
    return value

def goals_from_document(document: Any) -> List[Goal]:
    """Persisted goals; malformed records are skipped"""
    if document is None:
        return []
    if not isinstance(document, list):
        logger.warning("Goals document is not a list, starting with no goals")
        return []

    goals = []
    for item in document:
        try:
            goals.append(Goal.from_dict(item))
        except (ValidationError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping malformed goal: {e}")
    return goals
