#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import sqlite3
import threading


class Database:
    def __init__(self, db_path: str = "tomatotimer.db"):
        self.db_path = db_path
        # shared by the Tk thread, ticker threads and notification threads
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.lock = threading.RLock()

    def init_schema(self):
        with self.lock:
            cur = self.conn.cursor()

            # --- settings (key/value) ---
            cur.execute("""
                CREATE TABLE IF NOT EXISTS app_state (
                    key TEXT PRIMARY KEY,
                    value TEXT
                );
            """)

            # --- transition log ---
            cur.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    type TEXT NOT NULL,
                    timestamp REAL NOT NULL,
                    event TEXT,
                    from_state TEXT,
                    to_state TEXT
                );
            """)

            self.conn.commit()

    def close(self):
        with self.lock:
            try:
                self.conn.close()
            except sqlite3.Error:
                pass
