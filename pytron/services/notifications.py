"""
Notification service: daily reminder, task deadlines and streak alerts
"""

import logging
import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from pytron.core.database import NOTIFICATION_SETTINGS_KEY
from pytron.core.models import BadgeUnlocked, Category, GoalCompleted, ValidationError
from pytron.utils.datetime_utils import parse_hhmm

logger = logging.getLogger(__name__)

Dispatcher = Callable[[str, str, str], Any]

DEFAULT_NOTIFICATION_SETTINGS: Dict[str, Any] = {
    'enabled': False,
    'dailyReminderEnabled': True,
    'dailyReminderTime': '18:00',
    'taskDeadlinesEnabled': True,
    'streakAlertsEnabled': True,
    'weeklySummaryEnabled': True,
    'quietHoursEnabled': False,
    'quietHoursStart': '22:00',
    'quietHoursEnd': '08:00',
}

TIME_FIELDS = ('dailyReminderTime', 'quietHoursStart', 'quietHoursEnd')

STREAK_CHECK_HOUR = 20
DEADLINE_CHECK_HOURS = 1
APPROACHING_MINUTES = 30
OVERDUE_MINUTES = -5

JOB_IDS = ('daily_reminder', 'task_deadlines', 'streak_risk')

def log_dispatcher(title: str, body: str, tag: str) -> None:
    """Default delivery: write the notification to the log"""
    logger.info(f"🔔 [{tag}] {title}: {body}")

def validate_notification_settings(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Known keys only, booleans for flags and HH:MM for times"""
    validated = {}
    for key, value in changes.items():
        if key not in DEFAULT_NOTIFICATION_SETTINGS:
            raise ValidationError(f"Unknown notification setting: {key}")
        if key in TIME_FIELDS:
            minutes = parse_hhmm(value)
            if minutes is None or not 0 <= minutes < 24 * 60:
                raise ValidationError(f"{key} must be a time in HH:MM format")
        elif not isinstance(value, bool):
            raise ValidationError(f"{key} must be true or false")
        validated[key] = value
    return validated

class NotificationService:
    """Schedules reminder jobs and decides which notifications to deliver"""

    def __init__(self, tracker, dispatcher: Optional[Dispatcher] = None,
                 scheduler: Optional[AsyncIOScheduler] = None, timezone: Optional[str] = None):
        self.tracker = tracker
        self.dispatcher = dispatcher or log_dispatcher
        if scheduler is None:
            scheduler = AsyncIOScheduler(timezone=timezone) if timezone else AsyncIOScheduler()
        self.scheduler = scheduler
        self.settings = self._load_settings()

    # ===== SETTINGS =====

    def _load_settings(self) -> Dict[str, Any]:
        settings = dict(DEFAULT_NOTIFICATION_SETTINGS)
        document = self.tracker.storage.load(NOTIFICATION_SETTINGS_KEY)
        if isinstance(document, dict):
            try:
                settings.update(validate_notification_settings(document))
            except ValidationError as e:
                logger.warning(f"Notification settings unreadable, using defaults: {e}")
        return settings

    def update_settings(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Merge, persist and reschedule every job"""
        self.settings.update(validate_notification_settings(changes))
        self.tracker.storage.save(NOTIFICATION_SETTINGS_KEY, self.settings)
        self.schedule_jobs()
        return self.settings

    # ===== SCHEDULING =====

    def start(self) -> None:
        self.schedule_jobs()
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("📅 Notification scheduler started")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("📅 Notification scheduler stopped")

    def schedule_jobs(self) -> List[str]:
        """Drop every job and schedule the ones the settings enable"""
        self.clear_jobs()

        if not self.settings['enabled']:
            logger.info("Notifications disabled, nothing scheduled")
            return []

        if self.settings['dailyReminderEnabled']:
            minutes = parse_hhmm(self.settings['dailyReminderTime'])
            self.scheduler.add_job(
                self._daily_reminder_job,
                CronTrigger(hour=minutes // 60, minute=minutes % 60),
                id='daily_reminder',
                replace_existing=True
            )

        if self.settings['taskDeadlinesEnabled']:
            self.scheduler.add_job(
                self._task_deadlines_job,
                IntervalTrigger(hours=DEADLINE_CHECK_HOURS),
                id='task_deadlines',
                next_run_time=self.tracker.now(),
                replace_existing=True
            )

        if self.settings['streakAlertsEnabled']:
            self.scheduler.add_job(
                self._streak_risk_job,
                CronTrigger(hour=STREAK_CHECK_HOUR, minute=0),
                id='streak_risk',
                replace_existing=True
            )

        scheduled = [job.id for job in self.scheduler.get_jobs() if job.id in JOB_IDS]
        logger.info(f"📅 Notification jobs scheduled: {scheduled}")
        return scheduled

    def clear_jobs(self) -> None:
        for job in self.scheduler.get_jobs():
            if job.id in JOB_IDS:
                self.scheduler.remove_job(job.id)

    async def _daily_reminder_job(self):
        self.send_daily_reminder(self.tracker.now())

    async def _task_deadlines_job(self):
        self.check_task_deadlines(self.tracker.now())

    async def _streak_risk_job(self):
        self.check_streak_risk(self.tracker.now())

    # ===== CHECKS =====

    def is_quiet_hours(self, now: datetime) -> bool:
        if not self.settings['quietHoursEnabled']:
            return False
        current = now.hour * 60 + now.minute
        start = parse_hhmm(self.settings['quietHoursStart'])
        end = parse_hhmm(self.settings['quietHoursEnd'])

        # Overnight window, e.g. 22:00-08:00
        if start > end:
            return current >= start or current < end
        return start <= current < end

    def send_notification(self, title: str, body: str, tag: str, now: Optional[datetime] = None) -> bool:
        if not self.settings['enabled']:
            return False
        if self.is_quiet_hours(now or self.tracker.now()):
            logger.debug(f"Notification skipped (quiet hours): {title}")
            return False
        try:
            self.dispatcher(title, body, tag)
            return True
        except Exception as e:
            logger.error(f"❌ Notification delivery failed: {e}")
            return False

    def send_daily_reminder(self, now: datetime) -> bool:
        hours_logged = len(self.tracker.get_day_log())
        if hours_logged > 0:
            body = f"You've logged {hours_logged} hours today. Keep it up!"
        else:
            body = "Time to log your hours for today! 📝"
        return self.send_notification('Daily Log Reminder', body, 'daily-reminder', now)

    def check_task_deadlines(self, now: datetime) -> List[str]:
        """Tags of the notifications sent"""
        if self.is_quiet_hours(now):
            return []

        sent = []
        for task in self.tracker.state.tasks.tasks:
            if task.completed or not task.due_time:
                continue
            due_minutes = parse_hhmm(task.due_time)
            if due_minutes is None:
                continue

            due = now.replace(hour=due_minutes // 60, minute=due_minutes % 60, second=0, microsecond=0)
            minutes_until_due = math.floor((due - now).total_seconds() / 60)

            if minutes_until_due == APPROACHING_MINUTES:
                tag = f"task-{task.id}"
                if self.send_notification('Task Deadline Approaching',
                                          f'"{task.text}" is due in 30 minutes!', tag, now):
                    sent.append(tag)

            if minutes_until_due == OVERDUE_MINUTES and not task.notified_overdue:
                tag = f"task-overdue-{task.id}"
                if self.send_notification('Task Overdue!', f'"{task.text}" is now overdue!', tag, now):
                    sent.append(tag)
                self.tracker.mark_task_notified(task)

        return sent

    def check_streak_risk(self, now: datetime) -> bool:
        day_log = self.tracker.get_day_log()
        if any(entry.category is Category.DEEP_WORK for entry in day_log.values()):
            return False
        return self.send_notification(
            'Streak at Risk! 🔥',
            "You haven't logged any deep work today. Keep your streak alive!",
            'streak-risk',
            now
        )

    def send_test_notification(self) -> bool:
        return self.send_notification('Test Notification', 'pyTron notifications are working! 🎉', 'test')

    def handle_events(self, events: List[Any]) -> None:
        """Tracker listener relaying badge unlocks and goal completions"""
        for event in events:
            if isinstance(event, BadgeUnlocked):
                self.send_notification('Badge Unlocked! 🏆', f"{event.name}: {event.description}",
                                       f"badge-{event.badge_id}")
            elif isinstance(event, GoalCompleted):
                self.send_notification('Goal Completed! 🎯', f'"{event.title}" - Great job!',
                                       f"goal-{event.goal_id}")
