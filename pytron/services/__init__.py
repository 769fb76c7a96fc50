# pytron/services/__init__.py

"""
pyTron services

Wires storage, the tracker, the pomodoro timer and the notification
scheduler together in the right order.
"""

import logging
from typing import Optional

from pytron.config import AppConfig, get_config
from pytron.core.database import BackupManager, Storage, create_storage
from .tracker import DailyTracker, TaskNotFoundError
from .timer_service import PomodoroTimer, deep_work_logger
from .notifications import NotificationService, Dispatcher

logger = logging.getLogger(__name__)

class ServiceManager:
    """
    Owns every long-lived service

    Provides:
    - initialization in dependency order
    - start/stop of the background jobs (scheduler, timer)
    - a health summary for the dashboard
    """

    def __init__(self, config: Optional[AppConfig] = None, storage: Optional[Storage] = None,
                 dispatcher: Optional[Dispatcher] = None, scheduler=None, clock=None):
        self.config = config or get_config()
        self._storage = storage
        self._dispatcher = dispatcher
        self._scheduler = scheduler
        self._clock = clock
        self.storage: Optional[Storage] = None
        self.backup_manager: Optional[BackupManager] = None
        self.tracker: Optional[DailyTracker] = None
        self.timer: Optional[PomodoroTimer] = None
        self.notifications: Optional[NotificationService] = None
        self.initialized = False

    def initialize_services(self) -> "ServiceManager":
        logger.info("🔧 Initializing pyTron services...")

        # 1. Storage (base for everything else)
        self.storage = self._storage or create_storage(self.config.storage.data_dir)
        if self.config.storage.backup_before_import:
            self.backup_manager = BackupManager(
                self.storage, self.config.storage.backup_dir, self.config.storage.max_backups
            )

        # 2. Tracker
        timezone = self.config.tracker.timezone or None
        self.tracker = DailyTracker(
            self.storage, clock=self._clock, timezone=timezone, backup_manager=self.backup_manager
        )

        # 3. Timer and notifications (depend on the tracker)
        self.timer = PomodoroTimer(self.storage, deep_work_logger(self.tracker), clock=self.tracker.now)
        self.notifications = NotificationService(
            self.tracker, dispatcher=self._dispatcher, scheduler=self._scheduler, timezone=timezone
        )
        self.tracker.add_listener(self.notifications.handle_events)

        self.initialized = True
        logger.info("✅ Services initialized")
        return self

    def start_background(self) -> None:
        """Start the notification scheduler; needs a running event loop"""
        if self.notifications:
            self.notifications.start()

    async def close_services(self) -> None:
        logger.info("🛑 Stopping services...")
        if self.timer:
            await self.timer.shutdown()
        if self.notifications:
            self.notifications.shutdown()
        self.initialized = False
        logger.info("✅ Services stopped")

    def health_check(self) -> dict:
        health = {
            "status": "healthy" if self.initialized else "starting",
            "services": {}
        }
        if self.tracker:
            health["services"]["tracker"] = {
                "status": "healthy",
                "days": len(self.tracker.state.log),
                "tasks": len(self.tracker.state.tasks)
            }
        if self.notifications:
            health["services"]["notifications"] = {
                "status": "healthy",
                "enabled": self.notifications.settings['enabled'],
                "scheduler_running": self.notifications.scheduler.running
            }
        if self.timer:
            health["services"]["pomodoro"] = {
                "status": "healthy",
                "running": self.timer.state.is_running
            }
        return health

__all__ = [
    'DailyTracker',
    'TaskNotFoundError',
    'PomodoroTimer',
    'NotificationService',
    'ServiceManager',
]
