#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Document Storage
Key-value persistence of JSON documents with atomic writes and backups

Version: 1.0.0
"""

import json
import gzip
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any
import logging

logger = logging.getLogger(__name__)

# ===== STORAGE KEYS =====

STORAGE_KEY = 'daily_tracker_data_v1'
SETTINGS_KEY = STORAGE_KEY + '_settings'
TASKS_KEY = 'pytron_tasks'
BADGES_KEY = 'pytron_unlocked_badges'
GOALS_KEY = 'pytron_goals'
NOTIFICATION_SETTINGS_KEY = 'pytron_notification_settings'
POMODORO_STATE_KEY = 'pytron_pomodoro_state'

ALL_KEYS = (
    STORAGE_KEY,
    SETTINGS_KEY,
    TASKS_KEY,
    BADGES_KEY,
    GOALS_KEY,
    NOTIFICATION_SETTINGS_KEY,
    POMODORO_STATE_KEY,
)

# ===== STORAGE BACKENDS =====

class Storage(ABC):
    """Key-value document store"""

    @abstractmethod
    def get_raw(self, key: str) -> Optional[str]:
        """Serialized document or None"""

    @abstractmethod
    def set_raw(self, key: str, value: str) -> None:
        """Store a serialized document"""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a document"""

    def load(self, key: str, default: Any = None) -> Any:
        """Parsed document; `default` when missing or corrupt"""
        raw = self.get_raw(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Document '{key}' is corrupted, using defaults: {e}")
            return default

    def save(self, key: str, document: Any) -> None:
        self.set_raw(key, json.dumps(document, ensure_ascii=False))

    def snapshot(self) -> Dict[str, str]:
        """Raw contents of every known key"""
        result = {}
        for key in ALL_KEYS:
            raw = self.get_raw(key)
            if raw is not None:
                result[key] = raw
        return result

class MemoryStorage(Storage):
    """In-process storage for tests and ephemeral sessions"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_raw(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_raw(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

class JsonStorage(Storage):
    """One JSON file per key inside a data directory"""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.file_lock = threading.RLock()

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get_raw(self, key: str) -> Optional[str]:
        path = self._path(key)
        with self.file_lock:
            if not path.exists():
                return None
            try:
                return path.read_text(encoding='utf-8')
            except OSError as e:
                logger.error(f"Failed to read {path}: {e}")
                return None

    def set_raw(self, key: str, value: str) -> None:
        path = self._path(key)
        with self.file_lock:
            # Atomic save through a temporary file
            temp_file = path.with_suffix('.tmp')
            try:
                temp_file.write_text(value, encoding='utf-8')

                # Integrity check of the written file
                json.loads(temp_file.read_text(encoding='utf-8'))

                temp_file.replace(path)
            except Exception:
                if temp_file.exists():
                    temp_file.unlink()
                raise

    def delete(self, key: str) -> None:
        path = self._path(key)
        with self.file_lock:
            if path.exists():
                path.unlink()

# ===== BACKUPS =====

class BackupManager:
    """Gzip snapshots of every stored document"""

    def __init__(self, storage: Storage, backup_dir: Path, max_backups: int = 10):
        self.storage = storage
        self.backup_dir = Path(backup_dir)
        self.max_backups = max_backups
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    def create_backup(self) -> Optional[Path]:
        """Write a snapshot; None when there is nothing to back up"""
        snapshot = self.storage.snapshot()
        if not snapshot:
            logger.warning("Nothing to back up")
            return None

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
        backup_path = self.backup_dir / f"backup_{timestamp}.json.gz"

        with gzip.open(backup_path, 'wt', encoding='utf-8') as f_out:
            json.dump(snapshot, f_out, ensure_ascii=False)

        logger.info(f"Backup created: {backup_path}")
        self._cleanup_old_backups()
        return backup_path

    def restore_backup(self, backup_path: Path) -> bool:
        """Write every document of a snapshot back into storage"""
        backup_path = Path(backup_path)
        if not backup_path.exists():
            logger.error(f"Backup file {backup_path} does not exist")
            return False

        try:
            with gzip.open(backup_path, 'rt', encoding='utf-8') as f_in:
                snapshot = json.load(f_in)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read backup {backup_path}: {e}")
            return False

        if not isinstance(snapshot, dict):
            logger.error(f"Backup {backup_path} has an unexpected shape")
            return False

        for key, raw in snapshot.items():
            if key in ALL_KEYS and isinstance(raw, str):
                self.storage.set_raw(key, raw)

        logger.info(f"Backup restored from {backup_path}")
        return True

    def list_backups(self) -> List[Dict[str, Any]]:
        """All backups, newest first"""
        backups = []

        for backup_file in self.backup_dir.glob("backup_*.json.gz"):
            stat = backup_file.stat()
            backups.append({
                'name': backup_file.name,
                'path': str(backup_file),
                'size_kb': round(stat.st_size / 1024, 2),
                'created': datetime.fromtimestamp(stat.st_mtime).isoformat()
            })

        return sorted(backups, key=lambda x: x['name'], reverse=True)

    def _cleanup_old_backups(self) -> None:
        """Remove backups beyond max_backups"""
        backups = sorted(self.backup_dir.glob("backup_*.json.gz"), key=lambda p: p.name, reverse=True)

        for backup in backups[self.max_backups:]:
            backup.unlink()
            logger.info(f"Removed old backup: {backup}")

def create_storage(data_dir: Optional[Path] = None) -> Storage:
    """File storage in the configured data directory"""
    if data_dir is None:
        from pytron.config import get_config
        data_dir = get_config().storage.data_dir
    return JsonStorage(data_dir)
