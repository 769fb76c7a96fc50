"""
Pomodoro timer service
"""

import asyncio
import logging
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from pytron.core.database import Storage, POMODORO_STATE_KEY
from pytron.core.models import Category, ValidationError
from pytron.utils.datetime_utils import get_date_key

logger = logging.getLogger(__name__)

SessionLogger = Callable[[datetime, int], Any]

_FIELD_NAMES = {
    'work_duration': 'workDuration',
    'break_duration': 'breakDuration',
    'long_break_duration': 'longBreakDuration',
    'sessions_until_long_break': 'sessionsUntilLongBreak',
    'current_session': 'currentSession',
    'is_running': 'isRunning',
    'is_paused': 'isPaused',
    'is_break': 'isBreak',
    'time_remaining': 'timeRemaining',
    'total_work_sessions': 'totalWorkSessions',
    'sessions_today': 'sessionsToday',
    'sound_enabled': 'soundEnabled',
}

@dataclass
class PomodoroState:
    """Persisted timer state; durations in minutes, time_remaining in seconds"""
    work_duration: int = 25
    break_duration: int = 5
    long_break_duration: int = 15
    sessions_until_long_break: int = 4
    current_session: int = 0
    is_running: bool = False
    is_paused: bool = False
    is_break: bool = False
    time_remaining: int = 25 * 60
    total_work_sessions: int = 0
    sessions_today: List[Dict[str, Any]] = field(default_factory=list)
    sound_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {_FIELD_NAMES[k]: v for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PomodoroState":
        state = cls()
        for attr, key in _FIELD_NAMES.items():
            if key in data:
                setattr(state, attr, data[key])
        return state

class PomodoroTimer:
    """Work/break interval timer ticking once per second on the event loop"""

    def __init__(self, storage: Storage, on_work_session: Optional[SessionLogger] = None,
                 clock: Optional[Callable[[], datetime]] = None, tick_seconds: float = 1.0):
        self.storage = storage
        self.on_work_session = on_work_session
        self.clock = clock or datetime.now
        self.tick_seconds = tick_seconds
        self.state = self._load_state()
        self._task: Optional[asyncio.Task] = None

        # A process restart cannot resume a ticking timer
        if self.state.is_running:
            self.state.is_running = False
            self.state.is_paused = True

    def _load_state(self) -> PomodoroState:
        document = self.storage.load(POMODORO_STATE_KEY)
        if not isinstance(document, dict):
            return PomodoroState()
        try:
            return PomodoroState.from_dict(document)
        except (TypeError, ValueError) as e:
            logger.warning(f"Pomodoro state unreadable, starting fresh: {e}")
            return PomodoroState()

    def save_state(self) -> None:
        self.storage.save(POMODORO_STATE_KEY, self.state.to_dict())

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start or resume the countdown"""
        self._cancel_task()
        self.state.is_running = True
        self.state.is_paused = False
        self._task = asyncio.create_task(self._run())
        self.save_state()
        logger.info(f"⏰ Pomodoro started ({'break' if self.state.is_break else 'work'}, "
                    f"{self.state.time_remaining}s left)")

    async def pause(self) -> None:
        self._cancel_task()
        self._halt()
        logger.info("⏸️ Pomodoro paused")

    async def reset(self) -> None:
        """Back to a fresh work interval; session counters are kept"""
        self._cancel_task()
        self.state.is_running = False
        self.state.is_paused = False
        self.state.is_break = False
        self.state.time_remaining = self.state.work_duration * 60
        self.save_state()
        logger.info("🔄 Pomodoro reset")

    async def shutdown(self) -> None:
        if self.is_active:
            await self.pause()

    async def update_settings(self, work_duration: Optional[int] = None, break_duration: Optional[int] = None,
                              long_break_duration: Optional[int] = None,
                              sound_enabled: Optional[bool] = None) -> PomodoroState:
        """Store new durations (minutes) and reset the timer"""
        for attr, value in (('work_duration', work_duration),
                            ('break_duration', break_duration),
                            ('long_break_duration', long_break_duration)):
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValidationError(f"{attr} must be a positive number of minutes")
            setattr(self.state, attr, value)
        if sound_enabled is not None:
            self.state.sound_enabled = bool(sound_enabled)

        await self.reset()
        return self.state

    def tick(self, now: Optional[datetime] = None) -> None:
        """One second of countdown; a tick at zero completes the interval"""
        if self.state.time_remaining > 0:
            self.state.time_remaining -= 1
            self.save_state()
        else:
            self._complete_session(now or self.clock())

    def _complete_session(self, now: datetime) -> None:
        state = self.state
        if not state.is_break:
            state.current_session += 1
            state.total_work_sessions += 1
            self._log_work_session(now)

            if state.current_session % state.sessions_until_long_break == 0:
                state.time_remaining = state.long_break_duration * 60
                logger.info("🎉 Work session complete, long break")
            else:
                state.time_remaining = state.break_duration * 60
                logger.info("☕ Work session complete, short break")
            state.is_break = True
        else:
            state.time_remaining = state.work_duration * 60
            state.is_break = False
            logger.info("🚀 Break over")

        self._halt()

    def _log_work_session(self, now: datetime) -> None:
        self.state.sessions_today.append({
            'timestamp': now.isoformat(),
            'duration': self.state.work_duration
        })
        if self.on_work_session is None:
            return
        try:
            self.on_work_session(now, self.state.work_duration)
        except Exception as e:
            logger.error(f"Failed to log pomodoro session: {e}")

    def today_stats(self, today: date) -> Dict[str, int]:
        date_key = get_date_key(today)
        sessions = [s for s in self.state.sessions_today if str(s.get('timestamp', '')).startswith(date_key)]
        return {
            'sessionsCompleted': len(sessions),
            'totalMinutes': sum(s.get('duration', 0) for s in sessions)
        }

    def status(self) -> Dict[str, Any]:
        data = self.state.to_dict()
        minutes, seconds = divmod(self.state.time_remaining, 60)
        data['display'] = f"{minutes:02d}:{seconds:02d}"
        data['sessionInCycle'] = self.state.current_session % self.state.sessions_until_long_break
        return data

    def _halt(self) -> None:
        self.state.is_running = False
        self.state.is_paused = True
        self.save_state()

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        try:
            while self.state.is_running:
                await asyncio.sleep(self.tick_seconds)
                if not self.state.is_running:
                    break
                self.tick(self.clock())
        except asyncio.CancelledError:
            logger.debug("⏹️ Pomodoro tick loop cancelled")
            raise
        except Exception as e:
            logger.error(f"❌ Pomodoro tick loop failed: {e}")
            self._halt()

def pomodoro_note(duration: int) -> str:
    return f"Pomodoro session ({duration} min)"

def deep_work_logger(tracker) -> SessionLogger:
    """Session callback that auto-logs deep work into the current hour if it is still empty"""
    def log_session(now: datetime, duration: int) -> bool:
        logged = tracker.log_hour_if_empty(now, Category.DEEP_WORK, pomodoro_note(duration))
        if not logged:
            logger.info(f"Hour {now.hour:02d}:00 already logged, pomodoro session not auto-logged")
        return logged
    return log_session
