import unittest

from pytron.core.metrics import (
    calculate_streak,
    daily_efficiency,
    efficiency_trend,
    generate_insights,
    process_range,
    productivity_score,
    today_summary,
    weekly_deep_work,
)
from pytron.core.models import Category, Settings
from pytron.core.stores import AppState, LogStore, TaskStore
from pytron.utils.numbers import js_round

from support import TODAY, day_key, deep, log_day


class TestDailyEfficiency(unittest.TestCase):
    def test_empty_day_is_zero(self):
        self.assertEqual(daily_efficiency({}), 0)
        self.assertEqual(daily_efficiency(None), 0)

    def test_all_deep_work_is_100(self):
        log = LogStore()
        log_day(log, day_key(0), *deep(5))
        self.assertEqual(daily_efficiency(log.peek(day_key(0))), 100)

    def test_sleep_is_excluded_from_denominator(self):
        log = LogStore()
        log_day(log, day_key(0), Category.SLEEP, Category.SLEEP, Category.SLEEP, start_hour=0)
        self.assertEqual(daily_efficiency(log.peek(day_key(0))), 0)

        log_day(log, day_key(0), Category.DEEP_WORK, start_hour=9)
        self.assertEqual(daily_efficiency(log.peek(day_key(0))), 100)

    def test_mixed_day_example(self):
        log = LogStore()
        log_day(
            log, day_key(0),
            *deep(3), Category.SHALLOW, Category.SHALLOW, Category.DISTRACTION
        )
        # (300 + 100 - 50) / 6 = 58.33
        self.assertEqual(daily_efficiency(log.peek(day_key(0))), 58)

    def test_negative_points_clamp_to_zero(self):
        log = LogStore()
        log_day(log, day_key(0), Category.DISTRACTION, Category.DISTRACTION, Category.REST)
        self.assertEqual(daily_efficiency(log.peek(day_key(0))), 0)

    def test_half_up_rounding(self):
        self.assertEqual(js_round(62.5), 63)
        self.assertEqual(js_round(-2.5), -2)
        self.assertEqual(js_round(58.33), 58)


class TestStreak(unittest.TestCase):
    def setUp(self):
        # required deep work: 4 * 0.8 = 3.2 hours
        self.settings = Settings(target_hours=4, streak_threshold=80)

    def test_six_day_streak_with_gap(self):
        log = LogStore()
        for days_ago in range(6):
            log_day(log, day_key(days_ago), *deep(4))
        # gap on day 6, older qualifying days must not count
        log_day(log, day_key(7), *deep(4))
        log_day(log, day_key(8), *deep(4))
        self.assertEqual(calculate_streak(log, self.settings, TODAY), 6)

    def test_no_data_is_zero(self):
        self.assertEqual(calculate_streak(LogStore(), self.settings, TODAY), 0)

    def test_only_today_below_threshold_is_zero(self):
        log = LogStore()
        log_day(log, day_key(0), *deep(3))
        self.assertEqual(calculate_streak(log, self.settings, TODAY), 0)

    def test_today_in_progress_does_not_break_streak(self):
        log = LogStore()
        log_day(log, day_key(0), Category.SHALLOW)
        for days_ago in (1, 2, 3):
            log_day(log, day_key(days_ago), *deep(4))
        self.assertEqual(calculate_streak(log, self.settings, TODAY), 3)

    def test_failing_past_day_ends_streak(self):
        log = LogStore()
        log_day(log, day_key(0), *deep(4))
        log_day(log, day_key(1), *deep(2))
        log_day(log, day_key(2), *deep(4))
        self.assertEqual(calculate_streak(log, self.settings, TODAY), 1)

    def test_empty_registered_day_counts_as_missing(self):
        log = LogStore()
        log_day(log, day_key(1), *deep(4))
        log.get_day_log(day_key(0))
        self.assertEqual(calculate_streak(log, self.settings, TODAY), 1)


class TestProcessRange(unittest.TestCase):
    def test_single_day_window_example(self):
        log = LogStore()
        log_day(log, day_key(2), *deep(2), start_hour=9)

        metrics = process_range(log, TODAY, 7)

        self.assertEqual(metrics.total_deep_work, 2)
        self.assertEqual(metrics.avg_efficiency, 100)
        self.assertEqual(metrics.total_logs, 2)
        nonzero = [(h, d) for h in range(24) for d in range(7) if metrics.heatmap[h][d]]
        # 2026-10-17 is a Saturday
        self.assertEqual(nonzero, [(9, 5), (10, 5)])

    def test_window_shape_and_labels(self):
        metrics = process_range(LogStore(), TODAY, 7)
        self.assertEqual(len(metrics.labels), 7)
        self.assertEqual(metrics.labels[-1], "Oct 19")
        self.assertEqual(metrics.labels[0], "Oct 13")
        self.assertEqual(metrics.date_keys[-1], "2026-10-19")
        self.assertEqual(metrics.efficiency, [0] * 7)
        self.assertEqual(metrics.avg_efficiency, 0)

    def test_hourly_totals_include_sleep_but_heatmap_is_deep_work_only(self):
        log = LogStore()
        log_day(log, day_key(0), Category.SLEEP, start_hour=2)
        log_day(log, day_key(0), Category.DEEP_WORK, start_hour=10)

        metrics = process_range(log, TODAY, 7)

        self.assertEqual(metrics.hourly_totals[2], 1)
        self.assertEqual(metrics.hourly_totals[10], 1)
        self.assertEqual(metrics.weekday_totals[0], 2)
        self.assertEqual(sum(map(sum, metrics.heatmap)), 1)
        self.assertEqual(metrics.category_totals["SLEEP"], 1)
        self.assertEqual(metrics.category_history["DEEP_WORK"][-1], 1)

    def test_average_skips_empty_days(self):
        log = LogStore()
        log_day(log, day_key(0), *deep(2))
        log_day(log, day_key(1), Category.SHALLOW)
        metrics = process_range(log, TODAY, 30)
        self.assertEqual(metrics.avg_efficiency, 75)
        self.assertEqual(len(metrics.deep_work), 30)

    def test_task_analytics_fall_back_to_task_metadata(self):
        tasks = TaskStore()
        task = tasks.add("Write report", priority="HIGH", tag="work, writing")
        log = LogStore()
        log.set_hour(day_key(0), 9, Category.DEEP_WORK, task_id=task.id)
        log.set_hour(day_key(0), 10, Category.SHALLOW, task_id=task.id, task_priority="LOW", task_tags=["email"])
        log.set_hour(day_key(0), 11, Category.SHALLOW, task_id="gone")

        metrics = process_range(log, TODAY, 7, tasks)

        self.assertEqual(metrics.task_sessions[task.id].total, 2)
        self.assertEqual(metrics.task_sessions[task.id].text, "Write report")
        self.assertEqual(metrics.task_sessions[task.id].by_category["DEEP_WORK"], 1)
        self.assertEqual(metrics.priority_counts, {"HIGH": 1, "LOW": 1, "NONE": 1})
        self.assertEqual(metrics.tag_counts, {"work": 1, "writing": 1, "email": 1})


class TestScoresAndInsights(unittest.TestCase):
    def test_productivity_score(self):
        log = LogStore()
        log_day(log, day_key(0), *deep(3))
        metrics = process_range(log, TODAY, 7)
        # (3*10 + 100*0.5) / max(1, 0.3) = 80
        self.assertEqual(productivity_score(metrics), 80)

    def test_productivity_score_is_capped(self):
        log = LogStore()
        for days_ago in range(7):
            log_day(log, day_key(days_ago), *deep(10))
        metrics = process_range(log, TODAY, 7)
        self.assertEqual(productivity_score(metrics), 100)

    def test_insights_for_focused_week(self):
        log = LogStore()
        log_day(log, day_key(0), *deep(3), start_hour=9)
        log_day(log, day_key(1), Category.DEEP_WORK, start_hour=9)

        kinds = [i.kind for i in generate_insights(process_range(log, TODAY, 7))]

        self.assertIn("peak_hours", kinds)
        self.assertIn("peak_days", kinds)
        self.assertIn("excellent_focus", kinds)

    def test_distraction_alert(self):
        log = LogStore()
        log_day(log, day_key(0), Category.DISTRACTION, Category.DISTRACTION, Category.DEEP_WORK)
        kinds = [i.kind for i in generate_insights(process_range(log, TODAY, 7))]
        self.assertIn("distraction_alert", kinds)

    def test_no_insights_without_data(self):
        self.assertEqual(generate_insights(process_range(LogStore(), TODAY, 7)), [])

    def test_efficiency_trend(self):
        self.assertEqual(efficiency_trend([0, 0, 0, 0, 100, 100, 100])[0], "improving")
        self.assertEqual(efficiency_trend([100, 100, 100, 100, 0, 0, 0])[0], "declining")
        self.assertIsNone(efficiency_trend([50] * 7))
        self.assertIsNone(efficiency_trend([50, 50, 50]))


class TestSummaries(unittest.TestCase):
    def test_today_summary(self):
        state = AppState()
        log_day(state.log, day_key(0), *deep(2), Category.REST)
        state.log.set_hour(day_key(0), 20, Category.SHALLOW, note="emails")

        summary = today_summary(state, TODAY)

        self.assertEqual(summary["date"], "2026-10-19")
        self.assertEqual(summary["deepWorkHours"], 2)
        self.assertEqual(summary["targetHours"], 8)
        self.assertEqual(summary["hoursLogged"], 4)
        self.assertEqual(summary["notesLogged"], 1)
        self.assertEqual(summary["categoryCounts"]["REST"], 1)

    def test_weekly_deep_work_starts_on_monday(self):
        log = LogStore()
        log_day(log, day_key(0), *deep(2))
        # previous Sunday belongs to last week
        log_day(log, day_key(1), *deep(5))
        self.assertEqual(weekly_deep_work(log, TODAY), [2, 0, 0, 0, 0, 0, 0])


if __name__ == "__main__":
    unittest.main(verbosity=2)
