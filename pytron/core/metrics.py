#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Metrics Engine
Derived analytics over the hourly activity log

Every function here is pure: it reads a snapshot of the stores plus the
current date and returns fresh aggregates.

Version: 1.0.0
"""

from datetime import date, timedelta
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
import logging

from pytron.core.models import Category, Settings
from pytron.core.stores import AppState, DayLog, LogStore, TaskStore
from pytron.utils.datetime_utils import (
    WEEKDAY_ABBR, date_range, get_date_key, short_label, weekday_index, week_start
)
from pytron.utils.numbers import js_round

logger = logging.getLogger(__name__)

STREAK_LOOKBACK_DAYS = 365
TREND_WINDOW = 3
TREND_MARGIN = 5
NO_PRIORITY = "NONE"

def _category_counter() -> Dict[str, int]:
    return {category.value: 0 for category in Category}

# ===== DATA CLASSES =====

@dataclass
class DayStats:
    """Aggregates for one calendar day"""
    date_key: str
    deep_work: int = 0
    shallow: int = 0
    points: int = 0
    denominator: int = 0
    category_counts: Dict[str, int] = field(default_factory=_category_counter)

    @property
    def efficiency(self) -> int:
        if self.denominator <= 0:
            return 0
        return max(0, js_round(self.points / self.denominator))

    @property
    def has_data(self) -> bool:
        return self.denominator > 0

@dataclass
class TaskSessionStats:
    """Logged hours attributed to a task"""
    task_id: str
    text: Optional[str] = None
    total: int = 0
    by_category: Dict[str, int] = field(default_factory=_category_counter)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'taskId': self.task_id,
            'text': self.text,
            'total': self.total,
            'byCategory': dict(self.by_category)
        }

@dataclass
class RangeMetrics:
    """Aggregates over a window of consecutive days ending today"""
    days: int
    date_keys: List[str] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    deep_work: List[int] = field(default_factory=list)
    shallow_work: List[int] = field(default_factory=list)
    efficiency: List[int] = field(default_factory=list)
    category_totals: Dict[str, int] = field(default_factory=_category_counter)
    category_history: Dict[str, List[int]] = field(
        default_factory=lambda: {category.value: [] for category in Category}
    )
    total_deep_work: int = 0
    avg_efficiency: int = 0
    total_logs: int = 0
    hourly_totals: List[int] = field(default_factory=lambda: [0] * 24)
    weekday_totals: List[int] = field(default_factory=lambda: [0] * 7)
    heatmap: List[List[int]] = field(default_factory=lambda: [[0] * 7 for _ in range(24)])
    task_sessions: Dict[str, TaskSessionStats] = field(default_factory=dict)
    priority_counts: Dict[str, int] = field(default_factory=dict)
    tag_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'days': self.days,
            'dateKeys': self.date_keys,
            'labels': self.labels,
            'deepWork': self.deep_work,
            'shallowWork': self.shallow_work,
            'efficiency': self.efficiency,
            'categoryTotals': self.category_totals,
            'categoryHistory': self.category_history,
            'totalDeepWork': self.total_deep_work,
            'avgEfficiency': self.avg_efficiency,
            'totalLogs': self.total_logs,
            'hourlyTotals': self.hourly_totals,
            'weekdayTotals': self.weekday_totals,
            'heatmap': self.heatmap,
            'taskSessions': [s.to_dict() for s in self.task_sessions.values()],
            'priorityCounts': self.priority_counts,
            'tagCounts': self.tag_counts
        }

@dataclass
class Insight:
    """Textual signal derived from a range"""
    kind: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'message': self.message, 'data': self.data}

# ===== DAILY AGGREGATION =====

def summarize_day(date_key: str, day_log: Optional[DayLog]) -> DayStats:
    """Points, denominator and per-category counts of one day"""
    stats = DayStats(date_key=date_key)
    for entry in (day_log or {}).values():
        category = entry.category
        stats.category_counts[category.value] += 1
        stats.points += category.points
        if category.in_denominator:
            stats.denominator += 1
        if category is Category.DEEP_WORK:
            stats.deep_work += 1
        elif category is Category.SHALLOW:
            stats.shallow += 1
    return stats

def daily_efficiency(day_log: Optional[DayLog]) -> int:
    """Point-weighted score of a day; 0 when nothing but sleep is logged"""
    return summarize_day("", day_log).efficiency

def count_category(day_log: Optional[DayLog], category: Category) -> int:
    return sum(1 for entry in (day_log or {}).values() if entry.category is category)

# ===== RANGE AGGREGATION =====

def process_range(log: LogStore, today: date, days: int = 7,
                  tasks: Optional[TaskStore] = None) -> RangeMetrics:
    """Aggregate the `days` consecutive days ending today"""
    result = RangeMetrics(days=days)
    total_efficiency = 0
    days_with_logs = 0

    for day in date_range(today, days):
        date_key = get_date_key(day)
        day_log = log.peek(date_key) or {}
        weekday = weekday_index(day)
        stats = summarize_day(date_key, day_log)

        for hour, entry in day_log.items():
            if entry.category is Category.DEEP_WORK:
                result.heatmap[hour][weekday] += 1
            result.hourly_totals[hour] += 1
            result.weekday_totals[weekday] += 1
            if entry.task_id is not None:
                _accumulate_task_entry(result, entry, tasks)

        for category, count in stats.category_counts.items():
            result.category_totals[category] += count
            result.category_history[category].append(count)

        result.date_keys.append(date_key)
        result.labels.append(short_label(day))
        result.deep_work.append(stats.deep_work)
        result.shallow_work.append(stats.shallow)
        result.efficiency.append(stats.efficiency)

        result.total_deep_work += stats.deep_work
        result.total_logs += stats.denominator

        if stats.has_data:
            total_efficiency += stats.efficiency
            days_with_logs += 1

    result.avg_efficiency = js_round(total_efficiency / days_with_logs) if days_with_logs > 0 else 0
    return result

def _accumulate_task_entry(result: RangeMetrics, entry, tasks: Optional[TaskStore]) -> None:
    task = tasks.get(entry.task_id) if tasks is not None else None

    sessions = result.task_sessions.get(entry.task_id)
    if sessions is None:
        sessions = TaskSessionStats(task_id=entry.task_id, text=task.text if task else None)
        result.task_sessions[entry.task_id] = sessions
    sessions.total += 1
    sessions.by_category[entry.category.value] += 1

    priority = entry.task_priority or (task.priority if task else "") or NO_PRIORITY
    result.priority_counts[priority] = result.priority_counts.get(priority, 0) + 1

    tags = entry.task_tags if entry.task_tags else (task.tags if task else [])
    for tag in tags:
        result.tag_counts[tag] = result.tag_counts.get(tag, 0) + 1

# ===== STREAK =====

def calculate_streak(log: LogStore, settings: Settings, today: date) -> int:
    """Consecutive qualifying days ending today; today never breaks the streak"""
    required_hours = settings.required_hours
    streak = 0

    for offset in range(STREAK_LOOKBACK_DAYS):
        day_log = log.peek(get_date_key(today - timedelta(days=offset)))

        if day_log is None:
            if offset == 0:
                continue
            break

        if count_category(day_log, Category.DEEP_WORK) >= required_hours:
            streak += 1
        elif offset == 0:
            continue
        else:
            break

    return streak

# ===== COMPOSITE SCORES =====

def productivity_score(metrics: RangeMetrics) -> int:
    """Window-level composite score in 0..100"""
    raw = (metrics.total_deep_work * 10 + metrics.avg_efficiency * 0.5) / max(1, metrics.total_logs / 10)
    return min(100, max(0, js_round(raw)))

def generate_insights(metrics: RangeMetrics) -> List[Insight]:
    insights: List[Insight] = []

    max_hour = max(metrics.hourly_totals)
    if max_hour > 0:
        peak_hours = [h for h, total in enumerate(metrics.hourly_totals) if total == max_hour]
        hours_text = ", ".join(f"{h:02d}:00" for h in peak_hours)
        insights.append(Insight(
            kind="peak_hours",
            message=f"You are most active at {hours_text}",
            data={'hours': peak_hours, 'count': max_hour}
        ))

    max_day = max(metrics.weekday_totals)
    if max_day > 0:
        peak_days = [d for d, total in enumerate(metrics.weekday_totals) if total == max_day]
        days_text = ", ".join(WEEKDAY_ABBR[d] for d in peak_days)
        insights.append(Insight(
            kind="peak_days",
            message=f"Your most active day: {days_text}",
            data={'weekdays': peak_days, 'count': max_day}
        ))

    deep = metrics.category_totals[Category.DEEP_WORK.value]
    distraction = metrics.category_totals[Category.DISTRACTION.value]
    focus_data = {'deepWork': deep, 'distraction': distraction}
    if deep > distraction * 2:
        insights.append(Insight(
            kind="excellent_focus",
            message="Excellent focus: deep work is more than double your distractions",
            data=focus_data
        ))
    elif distraction > deep:
        insights.append(Insight(
            kind="distraction_alert",
            message="Distraction alert: more hours lost to distraction than spent in deep work",
            data=focus_data
        ))
    elif deep > 0 and distraction == 0:
        insights.append(Insight(kind="perfect_focus", message="Perfect focus: no distractions logged", data=focus_data))

    trend = efficiency_trend(metrics.efficiency)
    if trend is not None:
        direction, recent, earlier = trend
        insights.append(Insight(
            kind=f"efficiency_{direction}",
            message=f"Efficiency is {direction}: {recent:.0f}% recently vs {earlier:.0f}% before",
            data={'recent': recent, 'earlier': earlier}
        ))

    return insights

def efficiency_trend(efficiency: List[int]) -> Optional[tuple]:
    """('improving'|'declining', recent mean, earlier mean) or None"""
    if len(efficiency) <= TREND_WINDOW:
        return None
    recent_values = efficiency[-TREND_WINDOW:]
    earlier_values = efficiency[:-TREND_WINDOW]
    recent = sum(recent_values) / len(recent_values)
    earlier = sum(earlier_values) / len(earlier_values)

    if recent > earlier + TREND_MARGIN:
        return "improving", recent, earlier
    if earlier > recent + TREND_MARGIN:
        return "declining", recent, earlier
    return None

# ===== DASHBOARD HELPERS =====

def weekly_deep_work(log: LogStore, today: date) -> List[int]:
    """Deep-work hours for Monday..Sunday of the current week"""
    monday = week_start(today)
    return [
        count_category(log.peek(get_date_key(monday + timedelta(days=i))), Category.DEEP_WORK)
        for i in range(7)
    ]

def today_summary(state: AppState, today: date) -> Dict[str, Any]:
    date_key = get_date_key(today)
    day_log = state.log.peek(date_key) or {}
    stats = summarize_day(date_key, day_log)
    return {
        'date': date_key,
        'deepWorkHours': stats.deep_work,
        'targetHours': state.settings.target_hours,
        'efficiency': stats.efficiency,
        'streak': calculate_streak(state.log, state.settings, today),
        'streakThreshold': state.settings.streak_threshold,
        'categoryCounts': stats.category_counts,
        'hoursLogged': len(day_log),
        'notesLogged': sum(1 for entry in day_log.values() if entry.note),
        'tasksCompletedToday': len(state.tasks.completed_on(today))
    }

def range_report(state: AppState, today: date, days: int = 7) -> Dict[str, Any]:
    """Everything the analytics view shows for a window"""
    metrics = process_range(state.log, today, days, state.tasks)
    return {
        'metrics': metrics.to_dict(),
        'productivityScore': productivity_score(metrics),
        'insights': [insight.to_dict() for insight in generate_insights(metrics)],
        'streak': calculate_streak(state.log, state.settings, today)
    }

# ===== ALL-TIME COUNTERS =====

def total_deep_work_hours(state: AppState) -> int:
    return state.count_by_category(Category.DEEP_WORK)

def has_deep_work_between(state: AppState, start_hour: int, end_hour: int) -> bool:
    """Any deep work ever logged in [start_hour, end_hour)"""
    return any(
        entry.category is Category.DEEP_WORK and start_hour <= hour < end_hour
        for _, hour, entry in state.log.entries()
    )

def consecutive_deep_work_days(state: AppState, today: date, days: int = 7) -> int:
    """How many of the `days` days ending today have deep work, counting back until the first miss"""
    count = 0
    for offset in range(days):
        day_log = state.log.peek(get_date_key(today - timedelta(days=offset)))
        if count_category(day_log, Category.DEEP_WORK) == 0:
            break
        count += 1
    return count
