from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS entries (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL,
  updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


def connect(db_path: str) -> sqlite3.Connection:
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA_SQL)
    conn.commit()


def fetch_one(conn: sqlite3.Connection, sql: str, params: tuple[Any, ...] = ()) -> Any | None:
    cur = conn.execute(sql, params)
    row = cur.fetchone()
    return row


def get_entry(conn: sqlite3.Connection, key: str) -> str | None:
    row = fetch_one(conn, "SELECT value FROM entries WHERE key = ?", (key,))
    return row["value"] if row else None


def put_entry(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT INTO entries(key, value) VALUES (?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = datetime('now')",
        (key, value),
    )
    conn.commit()


def delete_entry(conn: sqlite3.Connection, key: str) -> None:
    conn.execute("DELETE FROM entries WHERE key = ?", (key,))
    conn.commit()
