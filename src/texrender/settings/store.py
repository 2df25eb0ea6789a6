"""Settings blob store backed by SQLite."""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_DEFAULT_DB_PATH = Path.home() / ".texrender" / "settings.db"
_DEFAULT_NAMESPACE = "texrender"


class SettingsStore:
    """Persists one JSON blob per namespace.

    This is the generic key/value store the cache index is round-tripped
    through: callers read the whole blob, change what they own and write it
    back.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        namespace: str = _DEFAULT_NAMESPACE,
    ) -> None:
        self._db_path = db_path or _DEFAULT_DB_PATH
        self._namespace = namespace
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.row_factory = sqlite3.Row
        self._create_table()

    @property
    def path(self) -> Path:
        return self._db_path

    def load(self) -> dict[str, Any]:
        row = self._conn.execute(
            "SELECT value FROM blobs WHERE key = ?", (self._namespace,)
        ).fetchone()
        if row is None:
            return {}
        try:
            data = json.loads(row["value"])
        except (json.JSONDecodeError, TypeError):
            logger.warning("Settings blob '%s' is not valid JSON, ignoring", self._namespace)
            return {}
        if not isinstance(data, dict):
            logger.warning("Settings blob '%s' is not a mapping, ignoring", self._namespace)
            return {}
        return data

    def save(self, data: dict[str, Any]) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO blobs (key, value, updated_at) VALUES (?, ?, ?)",
            (self._namespace, json.dumps(data, sort_keys=True), time.time()),
        )
        self._conn.commit()

    def update(self, **fields: Any) -> dict[str, Any]:
        """Merge fields into the stored blob and save it."""
        data = self.load()
        data.update(fields)
        self.save(data)
        return data

    def clear(self) -> None:
        self._conn.execute("DELETE FROM blobs WHERE key = ?", (self._namespace,))
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def _create_table(self) -> None:
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS blobs (
                key TEXT PRIMARY KEY,
                value TEXT,
                updated_at REAL
            )
        """)
        self._conn.commit()
