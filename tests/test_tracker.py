import unittest

from pytron.core.database import (
    BADGES_KEY, GOALS_KEY, SETTINGS_KEY, STORAGE_KEY, TASKS_KEY, MemoryStorage
)
from pytron.core.goals import GoalNotFoundError
from pytron.core.models import BadgeUnlocked, Category, GoalCompleted, ValidationError
from pytron.services.tracker import TaskNotFoundError

from support import FIXED_NOW, make_tracker


class TestTrackerPersistence(unittest.TestCase):
    def setUp(self):
        self.storage = MemoryStorage()
        self.tracker = make_tracker(self.storage)

    def test_log_hour_persists(self):
        self.tracker.log_hour(9, Category.DEEP_WORK, "deep focus")

        self.assertEqual(self.storage.load(STORAGE_KEY), {
            "2026-10-19": {"9": {"category": "DEEP_WORK", "note": "deep focus"}}
        })
        self.assertEqual(self.tracker.get_day_log()[9].note, "deep focus")

    def test_state_survives_restart(self):
        task = self.tracker.add_task("Write", priority="HIGH")
        self.tracker.log_hour(10, "SHALLOW", date_key="2026-10-18")
        self.tracker.update_settings({"targetHours": 6})
        self.tracker.create_goal(title="Hours", type="hours", target=50)

        restarted = make_tracker(self.storage)

        self.assertEqual(restarted.state.tasks.get(task.id).priority, "HIGH")
        self.assertEqual(restarted.get_day_log("2026-10-18")[10].category, Category.SHALLOW)
        self.assertEqual(restarted.state.settings.target_hours, 6)
        self.assertEqual(restarted.state.goals[0].title, "Hours")
        self.assertEqual(restarted.state.goals[0].current, 1)
        # ids keep increasing across restarts
        self.assertGreater(int(restarted.add_task("Next").id), int(task.id))

    def test_badges_persist_on_unlock(self):
        for hour in range(8, 18):
            self.tracker.log_hour(hour, Category.DEEP_WORK)

        self.assertEqual(self.storage.load(BADGES_KEY), ["focused"])
        self.assertEqual(make_tracker(self.storage).state.unlocked_badges, ["focused"])

    def test_get_day_log_does_not_register_days(self):
        self.assertEqual(self.tracker.get_day_log("2026-01-01"), {})
        self.assertNotIn("2026-01-01", self.tracker.state.log)


class TestTrackerLoading(unittest.TestCase):
    def test_corrupt_documents_are_isolated(self):
        storage = MemoryStorage({
            STORAGE_KEY: '{"2026-10-19": {"9": {"category": "REST", "note": ""}}}',
            SETTINGS_KEY: '{"streakThreshold": 500}',
            TASKS_KEY: '[{"id": "1", "text": "keep me"}]',
            BADGES_KEY: 'not json',
            GOALS_KEY: '{"oops": true}',
        })

        with self.assertLogs("pytron.services.tracker", level="ERROR"):
            tracker = make_tracker(storage)

        self.assertEqual(tracker.state.settings.streak_threshold, 80)
        self.assertEqual(tracker.get_day_log()[9].category, Category.REST)
        self.assertEqual(tracker.state.tasks.get("1").text, "keep me")
        self.assertEqual(tracker.state.unlocked_badges, [])
        self.assertEqual(tracker.state.goals, [])

    def test_wrongly_typed_records_do_not_break_logging(self):
        storage = MemoryStorage({
            GOALS_KEY: '[{"id": "1", "title": "Read", "type": "hours", "target": "10"}]',
            TASKS_KEY: '[{"id": "1", "text": "bad", "tag": ["a"]}, {"id": "2", "text": "good", "tag": "work"}]',
        })
        with self.assertLogs("pytron.core", level="WARNING"):
            tracker = make_tracker(storage)

        self.assertEqual(tracker.state.goals, [])
        self.assertIsNone(tracker.state.tasks.get("1"))

        entry = tracker.log_hour(9, Category.DEEP_WORK, task_id="2")
        self.assertEqual(entry.task_tags, ["work"])
        with self.assertRaises(TaskNotFoundError):
            tracker.log_hour(10, Category.DEEP_WORK, task_id="1")

    def test_goal_engine_shares_reloaded_state(self):
        storage = MemoryStorage()
        tracker = make_tracker(storage)
        tracker.create_goal(title="Custom", type="custom", target=3)
        tracker.reload()
        self.assertIs(tracker.goals.state, tracker.state)
        self.assertEqual(len(tracker.goals.goals), 1)


class TestTrackerOperations(unittest.TestCase):
    def setUp(self):
        self.tracker = make_tracker()

    def test_log_hour_attaches_task_metadata(self):
        task = self.tracker.add_task("Report", priority="HIGH", tag="work, writing")
        plain = self.tracker.add_task("Plain")

        entry = self.tracker.log_hour(9, Category.DEEP_WORK, task_id=task.id)
        bare = self.tracker.log_hour(10, Category.SHALLOW, task_id=plain.id)

        self.assertEqual(entry.task_priority, "HIGH")
        self.assertEqual(entry.task_tags, ["work", "writing"])
        self.assertEqual(bare.task_id, plain.id)
        self.assertIsNone(bare.task_priority)
        self.assertIsNone(bare.task_tags)

    def test_log_hour_rejects_unknown_task_and_bad_hour(self):
        with self.assertRaises(TaskNotFoundError):
            self.tracker.log_hour(9, Category.DEEP_WORK, task_id="missing")
        with self.assertRaises(ValidationError):
            self.tracker.log_hour(25, Category.DEEP_WORK)
        self.assertEqual(self.tracker.get_day_log(), {})

    def test_log_hour_if_empty(self):
        self.assertTrue(self.tracker.log_hour_if_empty(FIXED_NOW, Category.DEEP_WORK, "pomodoro"))
        self.assertFalse(self.tracker.log_hour_if_empty(FIXED_NOW, Category.REST, "other"))
        self.assertEqual(self.tracker.get_day_log()[14].note, "pomodoro")

    def test_task_lifecycle(self):
        first = self.tracker.add_task("First")
        second = self.tracker.add_task("Second")

        self.tracker.toggle_task(first.id)
        self.assertEqual([t.text for t in self.tracker.list_tasks()], ["Second", "First"])
        self.assertEqual(first.completed_at, "2026-10-19")

        self.tracker.delete_task(second.id)
        with self.assertRaises(TaskNotFoundError):
            self.tracker.delete_task(second.id)
        with self.assertRaises(TaskNotFoundError):
            self.tracker.toggle_task(second.id)

    def test_invalid_settings_leave_state_untouched(self):
        with self.assertRaises(ValidationError):
            self.tracker.update_settings({"streakThreshold": 150})
        self.assertEqual(self.tracker.state.settings.streak_threshold, 80)

        self.tracker.update_settings({"userName": "Sam"})
        self.assertEqual(self.tracker.state.settings.user_name, "Sam")
        self.assertEqual(self.tracker.state.settings.target_hours, 8)

    def test_listeners_receive_events(self):
        received = []
        self.tracker.add_listener(received.append)
        self.tracker.create_goal(title="One task", type="tasks", target=1)
        task = self.tracker.add_task("Do it")

        self.tracker.toggle_task(task.id)

        events = received[-1]
        self.assertTrue(any(isinstance(e, GoalCompleted) for e in events))
        self.assertEqual(self.tracker.goals_view()["completed"][0]["title"], "One task")

    def test_failing_listener_is_logged(self):
        def broken(events):
            raise RuntimeError("listener down")

        self.tracker.add_listener(broken)
        with self.assertLogs("pytron.services.tracker", level="ERROR"):
            self.tracker.log_hour(9, Category.REST)
        self.assertIn(9, self.tracker.get_day_log())

    def test_refresh_reports_badge_events(self):
        for hour in range(8, 18):
            self.tracker.state.log.set_hour("2026-10-19", hour, Category.DEEP_WORK)
        events = self.tracker.refresh()
        self.assertEqual([e.badge_id for e in events if isinstance(e, BadgeUnlocked)], ["focused"])

    def test_goal_operations(self):
        goal = self.tracker.create_goal(title="Read", type="custom", target=4)
        self.tracker.update_goal(goal.id, {"current": 2})
        self.assertEqual(self.tracker.goals_view()["active"][0]["progress"], 50)

        self.tracker.delete_goal(goal.id)
        with self.assertRaises(GoalNotFoundError):
            self.tracker.delete_goal(goal.id)

    def test_views(self):
        self.tracker.log_hour(9, Category.DEEP_WORK)

        self.assertEqual(self.tracker.weekly()["deepWork"][0], 1)
        self.assertEqual(self.tracker.weekly()["labels"][0], "Mon")
        self.assertEqual(self.tracker.today_summary()["deepWorkHours"], 1)
        self.assertEqual(self.tracker.analytics(7)["metrics"]["totalDeepWork"], 1)
        self.assertEqual(len(self.tracker.badges_view()["badges"]), 13)
        with self.assertRaises(ValidationError):
            self.tracker.analytics(0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
