# src/taskdeck/tasks/kv_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    SQLite key-value store holding JSON documents.

    One row per collection key (tasks, categories, tags, filter state); values
    are stored verbatim as JSON text.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "taskdeck.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = len(self.keys())
        except Exception:
            total = -1
        logger.info("KeyValueStore ready db=%s keys=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    # ---- public API ----

    def keys(self) -> list[str]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT key FROM kv ORDER BY key ASC")
            return [str(r["key"]) for r in cur.fetchall()]
        finally:
            conn.close()

    def get_json(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for key, or default when missing/corrupt."""
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()

        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except (TypeError, ValueError):
            logger.exception("Corrupt JSON under key=%s; using default.", key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, payload, time.time()),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("kv set key=%s bytes=%d", key, len(payload))

    def delete(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()
