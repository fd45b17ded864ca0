"""
SQLite persistence layer — session-scoped key/value items.

Each browser session gets its own namespace of items. The widget keeps
exactly one item per session: the serialized recent-search list.
Items disappear with the session cookie and are purged after SESSION_TTL.
"""

import asyncio
import json
import logging
import sqlite3
import time
from typing import Optional

from config import DB_PATH, HISTORY_KEY, MAX_RECENT_SEARCHES

log = logging.getLogger(__name__)


def _init_db(conn: sqlite3.Connection):
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS session_items (
            session_id TEXT NOT NULL,
            key TEXT NOT NULL,
            value TEXT,
            updated_at REAL,
            PRIMARY KEY (session_id, key)
        );
        CREATE INDEX IF NOT EXISTS idx_items_updated ON session_items(updated_at);
    """)


def connect(path: str = DB_PATH) -> sqlite3.Connection:
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    _init_db(conn)
    return conn


# Module-level connection (all controllers run on one event loop)
_conn: Optional[sqlite3.Connection] = None


def get_conn() -> sqlite3.Connection:
    global _conn
    if _conn is None:
        _conn = connect(DB_PATH)
    return _conn


def purge_expired(max_age: float, conn: Optional[sqlite3.Connection] = None) -> int:
    """Drop items not written to for max_age seconds. Returns rows removed."""
    conn = conn or get_conn()
    cur = conn.execute(
        "DELETE FROM session_items WHERE updated_at < ?", (time.time() - max_age,)
    )
    conn.commit()
    return cur.rowcount


async def purge_forever(max_age: float, interval: float, conn: Optional[sqlite3.Connection] = None):
    """Run purge_expired every interval seconds until cancelled."""
    while True:
        purged = purge_expired(max_age, conn=conn)
        if purged:
            log.info(f"Purged {purged} expired session item(s)")
        await asyncio.sleep(interval)


class SessionStore:
    """Key/value view over one browser session's items."""

    def __init__(self, session_id: str, conn: Optional[sqlite3.Connection] = None):
        self.session_id = session_id
        self.conn = conn or get_conn()

    def get(self, key: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT value FROM session_items WHERE session_id = ? AND key = ?",
            (self.session_id, key),
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str):
        self.conn.execute("""
            INSERT OR REPLACE INTO session_items (session_id, key, value, updated_at)
            VALUES (?, ?, ?, ?)
        """, (self.session_id, key, value, time.time()))
        self.conn.commit()

    def clear(self):
        self.conn.execute(
            "DELETE FROM session_items WHERE session_id = ?", (self.session_id,)
        )
        self.conn.commit()


# ── Recent searches ─────────────────────────────────────────────

def load_history(store: SessionStore) -> list[str]:
    """Stored recent searches, or [] if missing or unreadable."""
    try:
        raw = store.get(HISTORY_KEY)
        if not raw:
            return []
        history = json.loads(raw)
    except (sqlite3.Error, ValueError) as e:
        log.error(f"Error loading search history: {e}")
        return []

    if not isinstance(history, list) or not all(isinstance(c, str) for c in history):
        log.error(f"Error loading search history: unexpected value {raw[:80]!r}")
        return []

    seen, cities = set(), []
    for city in history:
        if city not in seen:
            seen.add(city)
            cities.append(city)
    return cities[:MAX_RECENT_SEARCHES]


def save_history(store: SessionStore, history: list[str]):
    try:
        store.set(HISTORY_KEY, json.dumps(history))
    except sqlite3.Error as e:
        log.error(f"Error saving search history: {e}")
