"""
core/audit_logging/logic/audit_logger.py
========================================

Thread-safe audit logger with SQLite backend.

Every entry is also forwarded to the stdlib ``logging`` hierarchy under
``audit.<feature>`` so operators see signing events without opening the DB.
"""
from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.audit_logging.models.log_entry import LogEntry
from core.helpers.date_time_helper import utc_now_iso

_LEVELS = {"DEBUG": logging.DEBUG, "INFO": logging.INFO, "WARNING": logging.WARNING,
           "ERROR": logging.ERROR, "CRITICAL": logging.CRITICAL}


class AuditLogger:
    """Persists audit events (who signed what, when) into a SQLite table."""

    def __init__(self, db_path: Path | str) -> None:
        self._lock = threading.Lock()
        self._db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._ensure_db()

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ------------------------------------------------------------------ #
    #  Connection management (reuse single connection)                   #
    # ------------------------------------------------------------------ #
    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            if str(self._db_path) != ":memory:":
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        """Close the database connection and release resources."""
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                finally:
                    self._conn = None

    # ------------------------------------------------------------------ #
    #  Public API: log                                                   #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        username: Optional[str] = None,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> LogEntry:
        """Persist one audit entry and return it."""
        level = level.upper()
        entry = LogEntry.from_dict({
            "id": None,
            "timestamp": utc_now_iso(),
            "log_level": level,
            "username": username or "unknown",
            "feature": feature,
            "event": event,
            "reference_id": reference_id,
            "message": message,
            "data": dict(data or {}),
        })
        with self._lock:
            conn = self._get_connection()
            cur = conn.execute(
                """
                INSERT INTO logs
                    (timestamp, username, feature, event, reference_id,
                     message, log_level, data)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (entry.timestamp.isoformat(), entry.username, entry.feature, entry.event,
                 entry.reference_id, entry.message, entry.log_level,
                 json.dumps(entry.data, ensure_ascii=False, sort_keys=True)),
            )
            conn.commit()
            entry.id = cur.lastrowid

        logging.getLogger(f"audit.{feature}").log(
            _LEVELS.get(level, logging.INFO), "%s ref=%s user=%s %s",
            event, reference_id, entry.username, message or "",
        )
        return entry

    # ------------------------------------------------------------------ #
    #  Fetch / Query / Clear                                             #
    # ------------------------------------------------------------------ #
    def query_logs(
        self,
        *,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        with self._lock:
            query = "SELECT * FROM logs WHERE 1=1"
            params: list[object] = []

            if feature is not None:
                query += " AND feature = ?"
                params.append(feature)
            if event is not None:
                query += " AND event = ?"
                params.append(event)
            if reference_id is not None:
                query += " AND reference_id = ?"
                params.append(reference_id)
            if level is not None:
                query += " AND log_level = ?"
                params.append(level.upper())

            query += " ORDER BY id DESC LIMIT ?"
            params.append(limit)

            rows = self._get_connection().execute(query, params).fetchall()
            return [LogEntry.from_dict(dict(row)) for row in rows]

    def clear_logs(self) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute("DELETE FROM logs")
            conn.commit()

    # ------------------------------------------------------------------ #
    #  Internal helpers                                                  #
    # ------------------------------------------------------------------ #
    def _ensure_db(self) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    username TEXT,
                    feature TEXT NOT NULL,
                    event TEXT NOT NULL,
                    reference_id TEXT,
                    message TEXT,
                    log_level TEXT NOT NULL DEFAULT 'INFO',
                    data TEXT
                )
                """
            )
            conn.commit()
