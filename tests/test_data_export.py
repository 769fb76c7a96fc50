import csv
import json
import tempfile
import unittest
from pathlib import Path

from pytron.core.database import (
    ALL_KEYS, SETTINGS_KEY, STORAGE_KEY, TASKS_KEY, BackupManager, MemoryStorage
)
from pytron.core.models import Category
from pytron.services.data_export import (
    EXPORT_VERSION,
    DataImportError,
    export_log_csv,
    export_state,
    export_to_json,
    import_state,
    load_import_file,
)

from support import FIXED_NOW, make_tracker


def populated_tracker(storage=None):
    tracker = make_tracker(storage)
    task = tracker.add_task("Write docs", priority="MEDIUM", tag="docs", due_time="16:00")
    tracker.log_hour(9, Category.DEEP_WORK, "focus", task_id=task.id)
    tracker.log_hour(13, Category.EXERCISE, date_key="2026-10-18")
    tracker.toggle_task(task.id)
    tracker.update_settings({"targetHours": 6, "userName": "Sam"})
    return tracker


class TestExport(unittest.TestCase):
    def test_export_document_shape(self):
        tracker = populated_tracker()
        document = export_state(tracker.state, FIXED_NOW)

        self.assertEqual(document["version"], EXPORT_VERSION)
        self.assertEqual(document["exportDate"], "2026-10-19T14:30:00")
        self.assertEqual(set(document), {"version", "exportDate", "data", "tasks", "settings"})
        self.assertEqual(document["settings"]["targetHours"], 6)
        self.assertEqual(document["data"]["2026-10-19"]["9"]["taskTags"], ["docs"])

    def test_round_trip_is_byte_identical(self):
        source = populated_tracker()
        exported = json.loads(json.dumps(export_state(source.state, FIXED_NOW)))

        target_storage = MemoryStorage()
        target = make_tracker(target_storage)
        imported = import_state(target, exported)

        self.assertEqual(imported, ["data", "tasks", "settings"])
        for key in (STORAGE_KEY, TASKS_KEY, SETTINGS_KEY):
            self.assertEqual(target_storage.get_raw(key), source.storage.get_raw(key))
        self.assertEqual(target.state.settings.user_name, "Sam")
        self.assertEqual(target.get_day_log("2026-10-18")[13].category, Category.EXERCISE)

    def test_json_and_csv_files(self):
        tracker = populated_tracker()
        with tempfile.TemporaryDirectory() as tmp:
            json_path = export_to_json(tracker.state, Path(tmp) / "export.json", FIXED_NOW)
            self.assertEqual(load_import_file(json_path)["version"], EXPORT_VERSION)

            csv_path = export_log_csv(tracker.state, Path(tmp) / "log.csv")
            with open(csv_path, newline="", encoding="utf-8") as f:
                rows = list(csv.DictReader(f))

        self.assertEqual([(r["date"], r["hour"], r["category"]) for r in rows], [
            ("2026-10-18", "13", "EXERCISE"),
            ("2026-10-19", "9", "DEEP_WORK"),
        ])
        self.assertEqual(rows[1]["note"], "focus")
        self.assertEqual(rows[0]["taskId"], "")

    def test_csv_skipped_for_empty_log(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertIsNone(export_log_csv(make_tracker().state, Path(tmp) / "log.csv"))
            self.assertFalse((Path(tmp) / "log.csv").exists())


class TestImport(unittest.TestCase):
    def setUp(self):
        self.storage = MemoryStorage()
        self.tracker = populated_tracker(self.storage)
        self.before = {key: self.storage.get_raw(key) for key in ALL_KEYS}

    def assertUntouched(self):
        self.assertEqual({key: self.storage.get_raw(key) for key in ALL_KEYS}, self.before)

    def test_rejects_non_object(self):
        for document in ([], "text", None, 42):
            with self.assertRaises(DataImportError):
                import_state(self.tracker, document)
        self.assertUntouched()

    def test_rejects_malformed_sections(self):
        bad_documents = [
            {"data": {"2026-10-19": {"9": {"category": "NAPPING"}}}},
            {"data": {"19-10-2026": {"9": {"category": "REST"}}}},
            {"data": {"2026-10-19": {"24": {"category": "REST"}}}},
            {"data": {"2026-10-19": {"9": {"category": "REST"}}}, "tasks": [{"id": "1", "text": ""}]},
            {"tasks": [{"id": "1", "text": "ok", "priority": "URGENT"}]},
            {"settings": {"streakThreshold": 150}},
            {"settings": {"streakThreshold": True}},
            {"tasks": "not a list"},
        ]
        for document in bad_documents:
            with self.subTest(document=document):
                with self.assertRaises(DataImportError):
                    import_state(self.tracker, document)
        self.assertUntouched()
        self.assertEqual(self.tracker.state.settings.user_name, "Sam")

    def test_rejects_empty_document(self):
        with self.assertRaises(DataImportError):
            import_state(self.tracker, {"version": "1.0"})
        self.assertUntouched()

    def test_partial_import_keeps_other_sections(self):
        imported = import_state(self.tracker, {"settings": {"targetHours": 10}})

        self.assertEqual(imported, ["settings"])
        self.assertEqual(self.tracker.state.settings.target_hours, 10)
        self.assertEqual(self.storage.get_raw(TASKS_KEY), self.before[TASKS_KEY])

    def test_load_import_file_errors(self):
        with tempfile.TemporaryDirectory() as tmp:
            broken = Path(tmp) / "broken.json"
            broken.write_text("{not json", encoding="utf-8")
            with self.assertRaises(DataImportError):
                load_import_file(broken)
            with self.assertRaises(DataImportError):
                load_import_file(Path(tmp) / "missing.json")

    def test_backup_taken_before_import(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.tracker.backup_manager = BackupManager(self.storage, Path(tmp))
            import_state(self.tracker, {"settings": {"targetHours": 4}})

            backups = self.tracker.backup_manager.list_backups()
            self.assertEqual(len(backups), 1)
            self.assertTrue(self.tracker.backup_manager.restore_backup(Path(backups[0]["path"])))

        self.assertEqual(self.storage.get_raw(SETTINGS_KEY), self.before[SETTINGS_KEY])


if __name__ == "__main__":
    unittest.main(verbosity=2)
