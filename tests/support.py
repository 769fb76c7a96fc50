from datetime import date, datetime, timedelta

from pytron.core.database import MemoryStorage
from pytron.core.models import Category
from pytron.core.stores import LogStore
from pytron.services.tracker import DailyTracker
from pytron.utils.datetime_utils import get_date_key

# Monday
FIXED_NOW = datetime(2026, 10, 19, 14, 30)
TODAY = FIXED_NOW.date()


def fixed_clock(moment=FIXED_NOW):
    return lambda: moment


def day_key(days_ago: int, today: date = TODAY) -> str:
    return get_date_key(today - timedelta(days=days_ago))


def log_day(log: LogStore, date_key: str, *categories, start_hour: int = 9):
    """Log consecutive hours starting at start_hour"""
    for offset, category in enumerate(categories):
        log.set_hour(date_key, start_hour + offset, category)


def deep(n: int):
    return [Category.DEEP_WORK] * n


def make_tracker(storage=None, now=FIXED_NOW, **kwargs) -> DailyTracker:
    return DailyTracker(storage if storage is not None else MemoryStorage(), clock=fixed_clock(now), **kwargs)
