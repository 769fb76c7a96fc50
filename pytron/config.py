#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Configuration
Environment-driven configuration with validation

Version: 1.0.0
"""

import os
import sys
import logging
from pathlib import Path
from typing import Dict, Any, List
from dataclasses import dataclass, field
from enum import Enum

import pytz

class Environment(Enum):
    """Runtime environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

@dataclass
class StorageConfig:
    """Document storage configuration"""
    data_dir: Path
    backup_dir: Path
    max_backups: int = 10
    backup_before_import: bool = True

@dataclass
class ServerConfig:
    """Dashboard server configuration"""
    host: str = "127.0.0.1"
    port: int = 8000
    debug_mode: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

@dataclass
class TrackerConfig:
    """Tracker behaviour"""
    timezone: str = ""  # empty = system local time
    default_range_days: int = 7

class AppConfig:
    """Main configuration class"""

    def __init__(self):
        self.environment = Environment(os.getenv('PYTRON_ENV', 'development'))
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Load configuration from environment variables"""

        # Directories
        self.data_dir = Path(os.getenv('PYTRON_DATA_DIR', 'data'))
        self.backup_dir = Path(os.getenv('PYTRON_BACKUP_DIR', str(self.data_dir / 'backups')))
        self.log_dir = Path(os.getenv('PYTRON_LOG_DIR', 'logs'))

        self.storage = StorageConfig(
            data_dir=self.data_dir,
            backup_dir=self.backup_dir,
            max_backups=int(os.getenv('PYTRON_MAX_BACKUPS', 10)),
            backup_before_import=os.getenv('PYTRON_BACKUP_BEFORE_IMPORT', 'true').lower() == 'true'
        )

        origins = os.getenv('CORS_ORIGINS', '*')
        self.server = ServerConfig(
            host=os.getenv('HOST', '127.0.0.1'),
            port=int(os.getenv('PORT', 8000)),
            debug_mode=os.getenv('DEBUG_MODE', 'false').lower() == 'true',
            cors_origins=[o.strip() for o in origins.split(',') if o.strip()]
        )

        self.tracker = TrackerConfig(
            timezone=os.getenv('PYTRON_TIMEZONE', ''),
            default_range_days=int(os.getenv('PYTRON_DEFAULT_RANGE', 7))
        )

        # Logging
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
        self.log_to_file = os.getenv('LOG_TO_FILE', 'false').lower() == 'true'
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Validate configuration"""
        errors = []

        if not 1024 <= self.server.port <= 65535:
            errors.append(f"Port {self.server.port} is outside the allowed range (1024-65535)")

        if self.storage.max_backups < 1:
            errors.append("PYTRON_MAX_BACKUPS must be a positive number")

        if self.tracker.timezone and self.tracker.timezone not in pytz.all_timezones_set:
            errors.append(f"Unknown timezone: {self.tracker.timezone}")

        if self.tracker.default_range_days not in (7, 30):
            errors.append("PYTRON_DEFAULT_RANGE must be 7 or 30")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        """Create required directories"""
        directories = [self.data_dir, self.backup_dir]
        if self.log_to_file:
            directories.append(self.log_dir)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """dictConfig for the application"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        handler_config = {
            'console': {
                'class': 'logging.StreamHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'stream': sys.stdout
            }
        }
        if self.log_to_file:
            handler_config['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"pytron_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': handler_config,
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'apscheduler': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'uvicorn.access': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

    def configure_logging(self):
        """Apply the logging configuration"""
        import logging.config
        if self.log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        logging.config.dictConfig(self.get_logging_config())

    def add_log_file(self, log_file: Path, level: int = logging.INFO) -> logging.Handler:
        """Extra rotating log file on the root logger, e.g. from the CLI --log-file flag"""
        import logging.handlers
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10485760, backupCount=5, encoding='utf-8'
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(self.log_format, datefmt='%Y-%m-%d %H:%M:%S'))
        root = logging.getLogger()
        root.addHandler(handler)
        if root.level > level:
            root.setLevel(level)
        return handler

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration"""
        return {
            'environment': self.environment.value,
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'debug_mode': self.server.debug_mode
            },
            'data_dir': str(self.data_dir),
            'backup_dir': str(self.backup_dir),
            'timezone': self.tracker.timezone or 'local',
            'log_level': self.log_level.value
        }

_config = None

def get_config() -> AppConfig:
    """Lazily built global configuration"""
    global _config
    if _config is None:
        _config = AppConfig()
        logging.getLogger(__name__).debug(f"Configuration loaded: {_config.to_dict()}")
    return _config

def reset_config() -> None:
    global _config
    _config = None

__all__ = [
    'AppConfig',
    'Environment',
    'LogLevel',
    'StorageConfig',
    'ServerConfig',
    'TrackerConfig',
    'get_config',
    'reset_config'
]
