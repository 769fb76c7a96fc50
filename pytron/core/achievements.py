#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Badge System
Fixed badge catalog, one-way unlocks and progress estimates

Version: 1.0.0
"""

from datetime import date
from typing import Dict, List, Optional, Any, Callable
from dataclasses import dataclass
from enum import Enum
from abc import ABC, abstractmethod
import logging

from pytron.core.models import BadgeUnlocked
from pytron.core.stores import AppState
from pytron.core.metrics import (
    calculate_streak, total_deep_work_hours, has_deep_work_between, consecutive_deep_work_days
)
from pytron.utils.numbers import js_round, percentage

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class BadgeCategory(Enum):
    """Badge categories"""
    STREAK = "streak"
    DEEPWORK = "deepwork"
    TASKS = "tasks"
    SPECIAL = "special"

class BadgeRarity(Enum):
    """Badge rarity"""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

PERFECT_WEEK_DAYS = 7

# ===== DATA CLASSES =====

@dataclass(frozen=True)
class BadgeContext:
    """Everything a checker may look at during one evaluation pass"""
    state: AppState
    today: date
    streak: int

@dataclass
class BadgeDefinition:
    """Catalog entry"""
    badge_id: str
    name: str
    icon: str
    description: str
    category: BadgeCategory
    rarity: BadgeRarity
    target: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.badge_id,
            'name': self.name,
            'icon': self.icon,
            'description': self.description,
            'category': self.category.value,
            'rarity': self.rarity.value,
            'target': self.target
        }

# ===== BADGE CHECKERS =====

class BadgeChecker(ABC):
    """Base class for unlock conditions"""

    @abstractmethod
    def check(self, context: BadgeContext) -> bool:
        """Whether the condition holds"""

    @abstractmethod
    def get_progress(self, context: BadgeContext) -> int:
        """Integer percentage toward unlocking"""

class SimpleCountChecker(BadgeChecker):
    """Counter reaching a target"""

    def __init__(self, target_count: int, value_getter: Callable[[BadgeContext], int]):
        self.target_count = target_count
        self.value_getter = value_getter

    def check(self, context: BadgeContext) -> bool:
        return self.value_getter(context) >= self.target_count

    def get_progress(self, context: BadgeContext) -> int:
        return js_round(percentage(self.value_getter(context), self.target_count))

class StreakChecker(SimpleCountChecker):
    """Current streak reaching a target"""

    def __init__(self, target_streak: int):
        super().__init__(target_streak, lambda context: context.streak)

class ConditionalChecker(BadgeChecker):
    """Boolean condition; progress is all or nothing"""

    def __init__(self, condition_func: Callable[[BadgeContext], bool]):
        self.condition_func = condition_func

    def check(self, context: BadgeContext) -> bool:
        return self.condition_func(context)

    def get_progress(self, context: BadgeContext) -> int:
        return 100 if self.check(context) else 0

# ===== CATALOG =====

def _deep_work_hours(context: BadgeContext) -> int:
    return total_deep_work_hours(context.state)

def _completed_tasks(context: BadgeContext) -> int:
    return context.state.tasks.completed_count()

def _hours_tracked(context: BadgeContext) -> int:
    return context.state.total_hours_tracked()

def _early_bird(context: BadgeContext) -> bool:
    return has_deep_work_between(context.state, 5, 7)

def _night_owl(context: BadgeContext) -> bool:
    return has_deep_work_between(context.state, 22, 24)

def _perfect_week(context: BadgeContext) -> bool:
    return consecutive_deep_work_days(context.state, context.today, PERFECT_WEEK_DAYS) >= PERFECT_WEEK_DAYS

class AchievementRegistry:
    """Registry of every badge"""

    def __init__(self):
        self.badges: Dict[str, BadgeDefinition] = {}
        self.checkers: Dict[str, BadgeChecker] = {}
        self._load_default_badges()

    def register_badge(self, definition: BadgeDefinition, checker: BadgeChecker) -> None:
        self.badges[definition.badge_id] = definition
        self.checkers[definition.badge_id] = checker
        logger.debug(f"Registered badge: {definition.badge_id}")

    def get_badge(self, badge_id: str) -> Optional[BadgeDefinition]:
        return self.badges.get(badge_id)

    def get_checker(self, badge_id: str) -> Optional[BadgeChecker]:
        return self.checkers.get(badge_id)

    def get_all_badges(self) -> List[BadgeDefinition]:
        return list(self.badges.values())

    def get_badges_by_category(self, category: BadgeCategory) -> List[BadgeDefinition]:
        return [badge for badge in self.badges.values() if badge.category == category]

    def _load_default_badges(self):
        """The fixed 13-badge catalog"""

        # ===== STREAK BADGES =====

        for badge_id, name, icon, days, rarity in (
            ('fire_starter', 'Fire Starter', '🔥', 7, BadgeRarity.COMMON),
            ('hot_streak', 'Hot Streak', '🔥🔥', 30, BadgeRarity.RARE),
            ('inferno', 'Inferno', '🔥🔥🔥', 100, BadgeRarity.LEGENDARY),
        ):
            self.register_badge(
                BadgeDefinition(
                    badge_id=badge_id,
                    name=name,
                    icon=icon,
                    description=f"Maintain a {days}-day streak",
                    category=BadgeCategory.STREAK,
                    rarity=rarity,
                    target=days
                ),
                StreakChecker(days)
            )

        # ===== DEEP WORK BADGES =====

        for badge_id, name, icon, hours, rarity in (
            ('focused', 'Focused', '🎯', 10, BadgeRarity.COMMON),
            ('deep_diver', 'Deep Diver', '🎯🎯', 50, BadgeRarity.RARE),
            ('flow_master', 'Flow Master', '🎯🎯🎯', 100, BadgeRarity.LEGENDARY),
        ):
            self.register_badge(
                BadgeDefinition(
                    badge_id=badge_id,
                    name=name,
                    icon=icon,
                    description=f"Log {hours} hours of deep work",
                    category=BadgeCategory.DEEPWORK,
                    rarity=rarity,
                    target=hours
                ),
                SimpleCountChecker(hours, _deep_work_hours)
            )

        # ===== TASK BADGES =====

        for badge_id, name, icon, count, rarity in (
            ('starter', 'Starter', '✅', 10, BadgeRarity.COMMON),
            ('achiever', 'Achiever', '✅✅', 50, BadgeRarity.RARE),
            ('completionist', 'Completionist', '✅✅✅', 100, BadgeRarity.LEGENDARY),
        ):
            self.register_badge(
                BadgeDefinition(
                    badge_id=badge_id,
                    name=name,
                    icon=icon,
                    description=f"Complete {count} tasks",
                    category=BadgeCategory.TASKS,
                    rarity=rarity,
                    target=count
                ),
                SimpleCountChecker(count, _completed_tasks)
            )

        # ===== SPECIAL BADGES =====

        self.register_badge(
            BadgeDefinition(
                badge_id='early_bird',
                name='Early Bird',
                icon='⭐',
                description='Log deep work between 5-7 AM',
                category=BadgeCategory.SPECIAL,
                rarity=BadgeRarity.RARE
            ),
            ConditionalChecker(_early_bird)
        )

        self.register_badge(
            BadgeDefinition(
                badge_id='night_owl',
                name='Night Owl',
                icon='🌙',
                description='Log deep work between 10 PM-12 AM',
                category=BadgeCategory.SPECIAL,
                rarity=BadgeRarity.RARE
            ),
            ConditionalChecker(_night_owl)
        )

        self.register_badge(
            BadgeDefinition(
                badge_id='perfect_week',
                name='Perfect Week',
                icon='📅',
                description='Log deep work every day for a week',
                category=BadgeCategory.SPECIAL,
                rarity=BadgeRarity.EPIC
            ),
            ConditionalChecker(_perfect_week)
        )

        self.register_badge(
            BadgeDefinition(
                badge_id='century',
                name='Century',
                icon='💯',
                description='Log 100 total hours tracked',
                category=BadgeCategory.SPECIAL,
                rarity=BadgeRarity.EPIC,
                target=100
            ),
            SimpleCountChecker(100, _hours_tracked)
        )

# ===== BADGE MANAGER =====

class BadgeManager:
    """Evaluates the catalog against application state"""

    def __init__(self, registry: Optional[AchievementRegistry] = None):
        self.registry = registry or AchievementRegistry()
        self.notification_callbacks: List[Callable[[BadgeUnlocked], None]] = []

    def add_notification_callback(self, callback: Callable[[BadgeUnlocked], None]) -> None:
        """Called once per newly unlocked badge"""
        self.notification_callbacks.append(callback)

    def build_context(self, state: AppState, today: date) -> BadgeContext:
        return BadgeContext(
            state=state,
            today=today,
            streak=calculate_streak(state.log, state.settings, today)
        )

    def check_badges(self, state: AppState, today: date) -> List[BadgeUnlocked]:
        """Unlock every locked badge whose condition now holds; never re-locks"""
        context = self.build_context(state, today)
        newly_unlocked: List[BadgeUnlocked] = []

        for badge_id, definition in self.registry.badges.items():
            if badge_id in state.unlocked_badges:
                continue

            checker = self.registry.get_checker(badge_id)
            if checker is None or not checker.check(context):
                continue

            state.unlocked_badges.append(badge_id)
            event = BadgeUnlocked(
                badge_id=badge_id,
                name=definition.name,
                description=definition.description,
                rarity=definition.rarity.value
            )
            newly_unlocked.append(event)
            logger.info(f"🏆 Badge unlocked: {definition.name} ({badge_id})")
            self._send_badge_notification(event)

        return newly_unlocked

    def _send_badge_notification(self, event: BadgeUnlocked) -> None:
        for callback in self.notification_callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Badge notification callback failed: {e}")

    def get_progress(self, badge_id: str, state: AppState, today: date,
                     context: Optional[BadgeContext] = None) -> int:
        """Percentage toward unlocking, 0 for unknown badges"""
        checker = self.registry.get_checker(badge_id)
        if checker is None:
            return 0
        return checker.get_progress(context or self.build_context(state, today))

    def get_all_badges(self, state: AppState, today: date) -> List[Dict[str, Any]]:
        context = self.build_context(state, today)
        result = []
        for definition in self.registry.get_all_badges():
            data = definition.to_dict()
            data['unlocked'] = definition.badge_id in state.unlocked_badges
            data['progress'] = self.get_progress(definition.badge_id, state, today, context)
            result.append(data)
        return result

    def get_summary(self, state: AppState) -> Dict[str, Any]:
        """Unlocked/total counts for the badge overview"""
        total = len(self.registry.badges)
        unlocked = len([b for b in state.unlocked_badges if b in self.registry.badges])
        return {
            'unlocked': unlocked,
            'total': total,
            'completion': js_round(unlocked / total * 100) if total else 0
        }

def create_badge_manager() -> BadgeManager:
    return BadgeManager()

def unlocked_badges_from_document(document: Any) -> List[str]:
    """Persisted unlock list; malformed documents yield no unlocks"""
    if not isinstance(document, list):
        if document is not None:
            logger.warning("Unlocked badges document is not a list, ignoring it")
        return []
    seen: List[str] = []
    for badge_id in document:
        if isinstance(badge_id, str) and badge_id not in seen:
            seen.append(badge_id)
    return seen
