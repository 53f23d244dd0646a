from __future__ import annotations

import os
import sqlite3
from datetime import datetime, timezone
from typing import Any

from .settings import settings


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def resolve_db_path(path: str | None = None) -> str:
    """Return a file path usable by sqlite.

    A bind-mounted path that did not exist on the host shows up as a
    directory inside the container; in that case the DB file goes inside it.
    """

    p = os.path.abspath(path or settings.db_path)

    if os.path.isdir(p):
        p = os.path.join(p, "mocs.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


def connect(path: str | None = None) -> sqlite3.Connection:
    conn = sqlite3.connect(
        resolve_db_path(path),
        timeout=max(0, settings.db_busy_timeout_ms) / 1000.0,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    return conn


def init_db(path: str | None = None) -> None:
    """Create tables if they do not exist."""
    with connect(path) as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS resources (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              kind TEXT NOT NULL,
              namespace TEXT NOT NULL,
              name TEXT NOT NULL,
              uid TEXT NOT NULL,
              resource_version INTEGER NOT NULL,
              body TEXT NOT NULL, -- JSON, camelCase keys
              created_at TEXT NOT NULL,
              updated_at TEXT NOT NULL,
              UNIQUE(kind, namespace, name)
            );

            CREATE TABLE IF NOT EXISTS events (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts TEXT NOT NULL,
              level TEXT NOT NULL,
              namespace TEXT,
              name TEXT,
              message TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
            CREATE INDEX IF NOT EXISTS idx_resources_ns ON resources(kind, namespace);
            """
        )


def log_event(level: str, message: str, namespace: str | None = None, name: str | None = None) -> bool:
    """Append one journal entry.

    The journal lives next to the resources, so it is locked or missing exactly
    when the store is. A failed write drops that entry and returns False; the
    store call that follows reports the outage.
    """
    try:
        with connect() as conn:
            conn.execute(
                "INSERT INTO events (ts, level, namespace, name, message) VALUES (?, ?, ?, ?, ?)",
                (utc_now(), level.upper(), namespace, name, message),
            )
        return True
    except sqlite3.Error:
        return False


def latest_events(limit: int = 100) -> list[dict[str, Any]]:
    with connect() as conn:
        rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [dict(r) for r in rows]
