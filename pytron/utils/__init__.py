from .datetime_utils import (
    now_local,
    get_date_key,
    parse_date_key,
    is_valid_date_key,
    date_range,
    weekday_index,
    short_label,
    week_start,
    parse_hhmm,
)
from .numbers import js_round, percentage

__all__ = [
    'now_local',
    'get_date_key',
    'parse_date_key',
    'is_valid_date_key',
    'date_range',
    'weekday_index',
    'short_label',
    'week_start',
    'parse_hhmm',
    'js_round',
    'percentage',
]
