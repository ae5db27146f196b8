# storage/repos.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import sqlite3
from typing import Dict, List, Optional

from domain.models import LogEvent
from storage.db import Database

logger = logging.getLogger(__name__)


class AppStateRepo:
    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        with self.db.lock:
            row = self.db.conn.execute(
                "SELECT value FROM app_state WHERE key=?",
                (key,),
            ).fetchone()
        return row["value"] if row else None

    def all(self) -> Dict[str, str]:
        with self.db.lock:
            rows = self.db.conn.execute("SELECT key, value FROM app_state").fetchall()
        return {r["key"]: r["value"] for r in rows}

    def set(self, key: str, value: str) -> None:
        with self.db.lock:
            self.db.conn.execute(
                """
                INSERT INTO app_state(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (key, value),
            )
            self.db.conn.commit()

    def delete(self, key: str) -> None:
        with self.db.lock:
            self.db.conn.execute("DELETE FROM app_state WHERE key=?", (key,))
            self.db.conn.commit()


class EventLogRepo:
    """Append-only log of app starts and state transitions."""

    def __init__(self, db: Database):
        self.db = db

    def append(self, event: LogEvent) -> None:
        try:
            with self.db.lock:
                self.db.conn.execute(
                    """
                    INSERT INTO events(type, timestamp, event, from_state, to_state)
                    VALUES(?,?,?,?,?)
                    """,
                    (
                        event.type,
                        float(event.timestamp),
                        event.event,
                        event.from_state,
                        event.to_state,
                    ),
                )
                self.db.conn.commit()
        except sqlite3.Error:
            # a broken log must never stop the timer
            logger.exception("Cannot write to event log")

    def recent(self, limit: int = 50) -> List[LogEvent]:
        with self.db.lock:
            rows = self.db.conn.execute(
                """
                SELECT type, timestamp, event, from_state, to_state
                FROM events ORDER BY id DESC LIMIT ?
                """,
                (int(limit),),
            ).fetchall()
        return [LogEvent(**dict(r)) for r in reversed(rows)]

    def count(self, type_: Optional[str] = None) -> int:
        with self.db.lock:
            if type_:
                row = self.db.conn.execute(
                    "SELECT COUNT(1) AS c FROM events WHERE type=?", (type_,)
                ).fetchone()
            else:
                row = self.db.conn.execute("SELECT COUNT(1) AS c FROM events").fetchone()
        return int(row["c"] or 0)
