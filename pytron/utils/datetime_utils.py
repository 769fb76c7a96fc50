from datetime import datetime, date, timedelta
from typing import List, Optional, Union

import pytz

MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAY_ABBR = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

def now_local(timezone: Optional[str] = None) -> datetime:
    """Current wall-clock time in the configured zone (system local when empty)"""
    if timezone:
        return datetime.now(pytz.timezone(timezone))
    return datetime.now()

def get_date_key(moment: Union[datetime, date]) -> str:
    """YYYY-MM-DD of the local calendar day, independent of time-of-day"""
    if isinstance(moment, datetime):
        moment = moment.date()
    return moment.isoformat()

def parse_date_key(date_key: str) -> date:
    return datetime.strptime(date_key, "%Y-%m-%d").date()

def is_valid_date_key(date_key: str) -> bool:
    try:
        parse_date_key(date_key)
        return True
    except (TypeError, ValueError):
        return False

def date_range(today: Union[datetime, date], days: int) -> List[date]:
    """`days` consecutive days ending at today (inclusive), oldest first"""
    if isinstance(today, datetime):
        today = today.date()
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]

def weekday_index(day: date) -> int:
    # Monday=0 ... Sunday=6
    return day.weekday()

def short_label(day: date) -> str:
    return f"{MONTH_ABBR[day.month - 1]} {day.day}"

def week_start(day: date) -> date:
    """Monday of the calendar week containing `day`"""
    return day - timedelta(days=day.weekday())

def parse_hhmm(value: str) -> Optional[int]:
    """'HH:MM' -> minutes since midnight, None when malformed"""
    try:
        hours, minutes = value.split(":")
        return int(hours) * 60 + int(minutes)
    except (AttributeError, ValueError):
        return None

