"""Thin helpers over an SQLite connection."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from typing import Any

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    password TEXT,
    nickname TEXT,
    status INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS chat_rooms (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS room_members (
    room_id INTEGER NOT NULL,
    user_id INTEGER NOT NULL,
    PRIMARY KEY (room_id, user_id)
);
CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    sender INTEGER NOT NULL,
    receiver INTEGER,
    room_id INTEGER,
    timestamp INTEGER NOT NULL,
    content TEXT,
    type INTEGER NOT NULL
);
"""


def execute(conn: sqlite3.Connection, sql: str, params: Sequence[Any] = ()) -> bool:
    """Run one statement and commit; return False (and log) if it fails."""
    try:
        conn.execute(sql, tuple(params))
    except sqlite3.Error as exc:
        logger.error("statement failed: %s", exc)
        if conn.in_transaction:
            conn.rollback()
        return False
    if conn.in_transaction:
        conn.commit()
    return True


def query(
    conn: sqlite3.Connection, sql: str, params: Sequence[Any] = ()
) -> list[tuple[Any, ...]]:
    """Run a query and return all rows; return an empty list (and log) on failure."""
    try:
        return conn.execute(sql, tuple(params)).fetchall()
    except sqlite3.Error as exc:
        logger.error("query failed: %s", exc)
        return []


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the tables the chat server uses, if they do not exist yet."""
    conn.executescript(SCHEMA)
    conn.commit()