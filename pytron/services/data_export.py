# pytron/services/data_export.py

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from pytron.core.database import STORAGE_KEY, SETTINGS_KEY, TASKS_KEY
from pytron.core.models import Category, Settings, ValidationError
from pytron.core.stores import AppState, LogStore, TaskStore
from pytron.utils.datetime_utils import is_valid_date_key

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
CSV_FIELDS = ['date', 'hour', 'category', 'note', 'taskId']

class DataImportError(Exception):
    """Import file rejected; the message is meant for the user"""
    pass

# ===== IMPORT SCHEMA =====

class ImportedLogEntry(BaseModel):
    category: Category
    note: str = ""
    taskId: Optional[Union[str, int]] = None
    taskPriority: Optional[str] = None
    taskTags: Optional[List[str]] = None

class ImportedTask(BaseModel):
    id: Union[str, int]
    text: str = Field(..., max_length=500)
    completed: bool = False
    completedAt: Optional[str] = None
    dueTime: Optional[str] = ""
    priority: Optional[Literal["HIGH", "MEDIUM", "LOW", ""]] = ""
    duration: Optional[Union[str, int]] = ""
    tag: Optional[str] = ""
    notifiedOverdue: bool = False

    @field_validator('text')
    @classmethod
    def validate_text(cls, v):
        if not v.strip():
            raise ValueError('task text must not be empty')
        return v

class ImportedSettings(BaseModel):
    targetHours: int = 8
    streakThreshold: int = Field(80, ge=0, le=100)
    userName: str = ""
    avatarStyle: str = "initials"

class ExportDocument(BaseModel):
    version: Optional[str] = None
    exportDate: Optional[str] = None
    data: Optional[Dict[str, Dict[str, ImportedLogEntry]]] = None
    tasks: Optional[List[ImportedTask]] = None
    settings: Optional[ImportedSettings] = None

    @field_validator('data')
    @classmethod
    def validate_days(cls, v):
        if v is None:
            return v
        for date_key, hours in v.items():
            if not is_valid_date_key(date_key):
                raise ValueError(f'invalid date {date_key!r}')
            for hour in hours:
                if not hour.isdigit() or not 0 <= int(hour) <= 23:
                    raise ValueError(f'invalid hour {hour!r} on {date_key}')
        return v

# ===== EXPORT =====

def export_state(state: AppState, now: datetime) -> Dict[str, Any]:
    """Full-state document: log, tasks and settings"""
    return {
        'version': EXPORT_VERSION,
        'exportDate': now.isoformat(),
        'data': state.log.to_document(),
        'tasks': state.tasks.to_document(),
        'settings': state.settings.to_dict()
    }

def export_to_json(state: AppState, path: Path, now: datetime) -> Path:
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(export_state(state, now), f, ensure_ascii=False, indent=2)
    logger.info(f"📤 State exported to {path}")
    return path

def log_csv_rows(state: AppState) -> List[Dict[str, Any]]:
    """One row per logged hour, chronological"""
    rows = []
    for date_key in sorted(state.log.days):
        day_log = state.log.days[date_key]
        for hour in sorted(day_log):
            entry = day_log[hour]
            rows.append({
                'date': date_key,
                'hour': hour,
                'category': entry.category.value,
                'note': entry.note,
                'taskId': entry.task_id or ""
            })
    return rows

def export_log_csv(state: AppState, path: Path) -> Optional[Path]:
    rows = log_csv_rows(state)
    if not rows:
        return None
    path = Path(path)
    with open(path, "w", newline="", encoding="utf-8") as f:
        dict_writer = csv.DictWriter(f, CSV_FIELDS)
        dict_writer.writeheader()
        dict_writer.writerows(rows)
    logger.info(f"📤 Log exported to {path} ({len(rows)} rows)")
    return path

# ===== IMPORT =====

def load_import_file(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise DataImportError(f"Import file not found: {path}")
    except (OSError, json.JSONDecodeError) as e:
        raise DataImportError(f"Import file is not valid JSON: {e}")

def _describe(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get('loc', ()))
    return f"{location}: {first.get('msg')}" if location else first.get('msg', str(error))

def import_state(tracker, document: Any) -> List[str]:
    """
    Overwrite the log, tasks and settings present in `document`

    Everything is validated before anything is written; a rejected
    document raises DataImportError and leaves the tracker untouched.
    Returns the names of the imported sections.
    """
    if not isinstance(document, dict):
        raise DataImportError("Invalid import file: expected a JSON object")

    try:
        ExportDocument.model_validate(document)
    except PydanticValidationError as e:
        raise DataImportError(f"Invalid import file: {_describe(e)}") from e

    writes = []
    try:
        if document.get('data') is not None:
            writes.append(('data', STORAGE_KEY, LogStore.from_document(document['data']).to_document()))
        if document.get('tasks') is not None:
            writes.append(('tasks', TASKS_KEY, TaskStore.from_document(document['tasks']).to_document()))
        if document.get('settings') is not None:
            writes.append(('settings', SETTINGS_KEY, Settings.from_dict(document['settings']).to_dict()))
    except ValidationError as e:
        raise DataImportError(f"Invalid import file: {e}") from e

    if not writes:
        raise DataImportError("Import file contains no data, tasks or settings")

    if tracker.backup_manager is not None:
        tracker.backup_manager.create_backup()

    for _, key, payload in writes:
        tracker.storage.save(key, payload)

    tracker.reload()
    imported = [name for name, _, _ in writes]
    logger.info(f"📥 Imported {', '.join(imported)}")
    return imported
