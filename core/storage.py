"""
SQLite storage module for the FocusFlow application.
Persists every piece of state as JSON (or raw) text under a fixed key.
"""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

from .errors import StorageError, ValidationError
from .models import (
    Analysis, AppSettings, DEFAULT_PRESETS, Session, Theme, TimerPreset
)

logger = logging.getLogger(__name__)

SESSIONS_KEY = "focusflow_sessions"
ANALYSES_KEY = "focusflow_analyses"
API_KEY_KEY = "focusflow_api_key"
PRESETS_KEY = "focusflow_presets"
ACTIVE_PRESET_ID_KEY = "focusflow_active_preset_id"
THEME_KEY = "focusflow_theme"
SETTINGS_KEY = "focusflow_settings"


def get_app_data_dir() -> Path:
    """
    Get the appropriate application data directory based on OS.
    Creates the directory if it doesn't exist.
    """
    override = os.environ.get("FOCUSFLOW_DATA_DIR")
    if override:
        base = Path(override)
        base.mkdir(parents=True, exist_ok=True)
        return base

    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', Path.home()))
    elif os.name == 'posix':
        # macOS uses ~/Library/Application Support, Linux uses ~/.local/share
        if os.uname().sysname == 'Darwin':
            base = Path.home() / 'Library' / 'Application Support'
        else:
            base = Path(os.environ.get('XDG_DATA_HOME', Path.home() / '.local' / 'share'))
    else:
        base = Path.home()

    app_dir = base / 'FocusFlow'
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def parse_records(items: Any, factory: Callable[[dict], Any]) -> List[Any]:
    """Convert a list of JSON objects, skipping malformed records."""
    records = []
    for item in items:
        try:
            records.append(factory(item))
        except (TypeError, ValueError) as e:
            logger.warning("Skipping malformed record %r: %s", item, e)
    return records


class Storage:
    """
    Key-value storage manager.
    Handles all SQLite operations for sessions, analyses, presets and preferences.

    Reads never raise: a failure is logged and the default value is returned.
    Writes are logged and dropped on failure.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize storage with database path.

        Args:
            db_path: Optional custom path for database file.
                    If None, uses default app data directory.
        """
        if db_path is None:
            db_path = str(get_app_data_dir() / 'focusflow.db')

        self.db_path = db_path
        self._init_database()

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self):
        """Initialize database schema if the table doesn't exist."""
        try:
            with self._get_connection() as conn:
                conn.execute('''
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                ''')
        except sqlite3.Error as e:
            logger.error("Failed to initialize database at %s: %s", self.db_path, e)

    # ==================== Raw access ====================

    def get_raw(self, key: str) -> Optional[str]:
        """Return the stored text for a key, or None."""
        with self._get_connection() as conn:
            row = conn.execute('SELECT value FROM kv WHERE key = ?', (key,)).fetchone()
            return row[0] if row else None

    def set_raw(self, key: str, value: Optional[str]):
        """Store text under a key; None removes the key."""
        with self._get_connection() as conn:
            if value is None:
                conn.execute('DELETE FROM kv WHERE key = ?', (key,))
            else:
                conn.execute(
                    'INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)',
                    (key, value)
                )

    def _load(self, key: str, decode: Callable[[str], Any], default: Any) -> Any:
        try:
            raw = self.get_raw(key)
            if raw is None:
                return default
            return decode(raw)
        except (sqlite3.Error, ValueError, TypeError) as e:
            logger.error("Failed to load %s: %s", key, StorageError(str(e)))
            return default

    def _save(self, key: str, value: Optional[str]):
        try:
            self.set_raw(key, value)
        except sqlite3.Error as e:
            logger.error("Failed to save %s: %s", key, StorageError(str(e)))

    def _load_list(self, key: str, factory: Callable[[dict], Any]) -> list:
        def decode(raw: str) -> list:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError(f"{key} is not a list")
            return parse_records(items, factory)
        return self._load(key, decode, [])

    # ==================== Sessions ====================

    def load_sessions(self) -> List[Session]:
        return self._load_list(SESSIONS_KEY, Session.from_dict)

    def save_sessions(self, sessions: List[Session]):
        self._save(SESSIONS_KEY, json.dumps([s.to_dict() for s in sessions]))

    # ==================== Analyses ====================

    def load_analyses(self) -> List[Analysis]:
        """Load analysis history, newest first."""
        return self._load_list(ANALYSES_KEY, Analysis.from_dict)

    def save_analyses(self, analyses: List[Analysis]):
        self._save(ANALYSES_KEY, json.dumps([a.to_dict() for a in analyses]))

    # ==================== Presets ====================

    def load_presets(self) -> List[TimerPreset]:
        """Load presets, falling back to the built-in defaults if none are stored."""
        presets = self._load_list(PRESETS_KEY, TimerPreset.from_dict)
        return presets or list(DEFAULT_PRESETS)

    def save_presets(self, presets: List[TimerPreset]):
        self._save(PRESETS_KEY, json.dumps([p.to_dict() for p in presets]))

    def load_active_preset_id(self) -> Optional[str]:
        return self._load(ACTIVE_PRESET_ID_KEY, lambda raw: raw or None, None)

    def save_active_preset_id(self, preset_id: Optional[str]):
        self._save(ACTIVE_PRESET_ID_KEY, preset_id or None)

    # ==================== Preferences ====================

    def load_theme(self) -> Theme:
        return self._load(THEME_KEY, Theme, Theme.SYSTEM)

    def save_theme(self, theme: Theme):
        self._save(THEME_KEY, theme.value)

    def load_api_key(self) -> Optional[str]:
        return self._load(API_KEY_KEY, lambda raw: raw or None, None)

    def save_api_key(self, api_key: str):
        self._save(API_KEY_KEY, api_key)

    def get_settings(self) -> AppSettings:
        """Get application settings."""
        def decode(raw: str) -> AppSettings:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("settings must be an object")
            return AppSettings.from_dict(data)
        return self._load(SETTINGS_KEY, decode, AppSettings())

    def save_settings(self, settings: AppSettings):
        """Save application settings."""
        self._save(SETTINGS_KEY, json.dumps(settings.to_dict()))


# ==================== Import / Export ====================

def default_export_filename(today: date) -> str:
    """Name of the backup file for a given day."""
    return f"focusflow_backup_{today.isoformat()}.json"


def export_to_json(filepath: str, sessions: List[Session], analyses: List[Analysis]) -> int:
    """
    Write session and analysis history to a JSON backup file.

    Returns:
        Number of records exported.
    """
    document = {
        "sessions": [s.to_dict() for s in sessions],
        "analyses": [a.to_dict() for a in analyses],
    }
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(document, f, indent=2, ensure_ascii=False)
    return len(sessions) + len(analyses)


def parse_backup(text: str) -> Tuple[List[Session], List[Analysis]]:
    """
    Parse a backup document.

    Raises:
        ValidationError: if the text is not JSON, or either 'sessions' or
            'analyses' is not a list of valid records.
    """
    try:
        document = json.loads(text)
    except ValueError as e:
        raise ValidationError(f"The file is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise ValidationError("Invalid file format.")
    raw_sessions = document.get("sessions")
    raw_analyses = document.get("analyses")
    if not isinstance(raw_sessions, list) or not isinstance(raw_analyses, list):
        raise ValidationError(
            "Invalid file format: 'sessions' and 'analyses' must both be lists."
        )

    try:
        sessions = [Session.from_dict(item) for item in raw_sessions]
        analyses = [Analysis.from_dict(item) for item in raw_analyses]
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid record in file: {e}") from e
    return sessions, analyses


def import_from_json(filepath: str) -> Tuple[List[Session], List[Analysis]]:
    """Read and validate a backup file written by export_to_json."""
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(f"Could not read file: {e}") from e
    return parse_backup(text)
