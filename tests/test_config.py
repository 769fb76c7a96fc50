import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pytron.config import AppConfig, Environment, LogLevel, get_config, reset_config


class TestAppConfig(unittest.TestCase):
    def tearDown(self):
        reset_config()

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = AppConfig()

        self.assertEqual(config.environment, Environment.DEVELOPMENT)
        self.assertEqual(config.data_dir, Path("data"))
        self.assertEqual(config.backup_dir, Path("data") / "backups")
        self.assertEqual(config.server.port, 8000)
        self.assertEqual(config.server.cors_origins, ["*"])
        self.assertEqual(config.tracker.default_range_days, 7)
        self.assertTrue(config.storage.backup_before_import)
        self.assertEqual(config.log_level, LogLevel.INFO)

    def test_environment_overrides(self):
        env = {
            'PYTRON_ENV': 'production',
            'PYTRON_DATA_DIR': '/tmp/pytron-data',
            'PYTRON_MAX_BACKUPS': '3',
            'PYTRON_BACKUP_BEFORE_IMPORT': 'false',
            'CORS_ORIGINS': 'http://localhost:3000, http://example.com',
            'PORT': '9000',
            'PYTRON_TIMEZONE': 'Europe/Berlin',
            'PYTRON_DEFAULT_RANGE': '30',
            'LOG_LEVEL': 'debug',
        }
        with patch.dict(os.environ, env, clear=True):
            config = AppConfig()

        self.assertEqual(config.environment, Environment.PRODUCTION)
        self.assertEqual(config.storage.backup_dir, Path('/tmp/pytron-data') / 'backups')
        self.assertEqual(config.storage.max_backups, 3)
        self.assertFalse(config.storage.backup_before_import)
        self.assertEqual(config.server.cors_origins, ['http://localhost:3000', 'http://example.com'])
        self.assertEqual(config.server.port, 9000)
        self.assertEqual(config.tracker.timezone, 'Europe/Berlin')
        self.assertEqual(config.tracker.default_range_days, 30)
        self.assertEqual(config.log_level, LogLevel.DEBUG)
        self.assertEqual(config.to_dict()['timezone'], 'Europe/Berlin')

    def test_invalid_values_are_collected(self):
        env = {'PORT': '80', 'PYTRON_TIMEZONE': 'Mars/Olympus', 'PYTRON_DEFAULT_RANGE': '14'}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ValueError) as ctx:
                AppConfig()

        message = str(ctx.exception)
        self.assertIn("Port 80", message)
        self.assertIn("Mars/Olympus", message)
        self.assertIn("7 or 30", message)

    def test_logging_config(self):
        with patch.dict(os.environ, {'LOG_TO_FILE': 'true', 'PYTRON_LOG_DIR': '/tmp/pytron-logs'}, clear=True):
            config = AppConfig()

        logging_config = config.get_logging_config()
        self.assertEqual(logging_config['loggers']['']['handlers'], ['console', 'file'])
        self.assertEqual(logging_config['handlers']['file']['class'], 'logging.handlers.RotatingFileHandler')
        self.assertTrue(logging_config['handlers']['file']['filename'].endswith('pytron_development.log'))
        self.assertEqual(logging_config['loggers']['apscheduler']['level'], 'WARNING')

    def test_add_log_file(self):
        with patch.dict(os.environ, {}, clear=True):
            config = AppConfig()

        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "nested" / "cli.log"
            handler = config.add_log_file(log_file)
            try:
                logging.getLogger("pytron.test").warning("written to file")
                handler.flush()
                self.assertIn("written to file", log_file.read_text(encoding="utf-8"))
            finally:
                logging.getLogger().removeHandler(handler)
                handler.close()

    def test_get_config_is_cached(self):
        with patch.dict(os.environ, {}, clear=True):
            reset_config()
            self.assertIs(get_config(), get_config())


if __name__ == "__main__":
    unittest.main(verbosity=2)
