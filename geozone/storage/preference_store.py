"""
SQLite-backed key/value store for user preferences.

Values are stored as JSON.  Failures never propagate: a failed load
returns the caller's default and a failed save returns False, both with a
warning in the log.  The in-memory settings stay authoritative.

Usage
-----
    store = PreferenceStore()
    store.save_preference("show_grid", True)
    show_grid = store.load_preference("show_grid", False)
"""
from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Optional

from ..config import DEFAULT_DB

log = logging.getLogger(__name__)


class PreferenceStore:
    """Persistent preference storage.

    Writes are serialised through a lock so a background lookup thread can
    save alongside the GUI thread.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self._path = Path(db_path) if db_path else DEFAULT_DB
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(self._path), check_same_thread=False,
        )
        self._write_lock = threading.Lock()
        self._create_tables()
        log.info("PreferenceStore opened: %s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def _create_tables(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS preferences (
                key         TEXT    PRIMARY KEY,
                value_json  TEXT    NOT NULL,
                updated     REAL    NOT NULL
            );
        """)
        self._conn.commit()

    def load_preference(self, key: str, default: Any = None) -> Any:
        """Return the stored value for *key*, or *default*."""
        try:
            row = self._conn.execute(
                "SELECT value_json FROM preferences WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return default
            return json.loads(row[0])
        except (sqlite3.Error, ValueError) as exc:
            log.warning("Failed to load preference %r: %s", key, exc)
            return default

    def save_preference(self, key: str, value: Any) -> bool:
        """Store *value* under *key*.  Returns False on failure."""
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            log.warning("Preference %r is not serialisable: %s", key, exc)
            return False
        try:
            with self._write_lock:
                self._conn.execute(
                    "INSERT OR REPLACE INTO preferences (key, value_json, updated) "
                    "VALUES (?, ?, ?)",
                    (key, payload, time.time()),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            log.warning("Failed to save preference %r: %s", key, exc)
            return False
        return True

    def close(self) -> None:
        try:
            self._conn.close()
        except sqlite3.Error as exc:
            log.debug("PreferenceStore close: %s", exc)

    def __enter__(self) -> "PreferenceStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
